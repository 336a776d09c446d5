from __future__ import annotations

from datetime import date
from typing import List, Optional

from models.target import BulkTargetSet, DailyTarget, TargetSet
from utils.errors import NotFoundError, ValidationError


def _row_to_target(row) -> DailyTarget:
    last = row["last_streak_date"]
    return DailyTarget(
        student_id=row["student_id"],
        memorization_lines=row["memorization_lines"],
        revision_pages=row["revision_pages"],
        consolidation_pages=row["consolidation_pages"],
        current_streak=int(row["current_streak"]),
        longest_streak=int(row["longest_streak"]),
        last_streak_date=date.fromisoformat(last) if last else None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def get_target(conn, student_id: int) -> Optional[DailyTarget]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT student_id, memorization_lines, revision_pages, consolidation_pages,
               current_streak, longest_streak, last_streak_date, created_at, updated_at
        FROM student_targets
        WHERE student_id = ?
        """,
        (student_id,),
    )
    row = cursor.fetchone()
    return _row_to_target(row) if row else None


def _upsert_targets(conn, student_ids: List[int], target: TargetSet) -> None:
    # Streak counters are left untouched when only the definition changes.
    conn.executemany(
        """
        INSERT INTO student_targets (
            student_id, memorization_lines, revision_pages, consolidation_pages
        )
        VALUES (?, ?, ?, ?)
        ON CONFLICT(student_id) DO UPDATE SET
            memorization_lines = excluded.memorization_lines,
            revision_pages = excluded.revision_pages,
            consolidation_pages = excluded.consolidation_pages,
            updated_at = datetime('now')
        """,
        [
            (
                student_id,
                target.memorization_lines,
                target.revision_pages,
                target.consolidation_pages,
            )
            for student_id in student_ids
        ],
    )


def set_target(conn, student_id: int, target: TargetSet) -> DailyTarget:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM students WHERE id = ?", (student_id,))
    if not cursor.fetchone():
        raise NotFoundError(f"Student {student_id} not found")
    _upsert_targets(conn, [student_id], target)
    conn.commit()
    return get_target(conn, student_id)


def _enrolled_student_ids(conn, column: str, value: int) -> List[int]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT DISTINCT student_id
        FROM student_halaqat
        WHERE {column} = ? AND is_active = 1
        ORDER BY student_id
        """,
        (value,),
    )
    return [row[0] for row in cursor.fetchall()]


def bulk_set_targets(conn, request: BulkTargetSet) -> int:
    """Apply one target definition to a set of students; returns how many were touched."""
    if request.student_ids:
        placeholders = ",".join("?" for _ in request.student_ids)
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT id FROM students WHERE id IN ({placeholders}) ORDER BY id",
            list(request.student_ids),
        )
        student_ids = [row[0] for row in cursor.fetchall()]
    elif request.teacher_id is not None:
        student_ids = _enrolled_student_ids(conn, "teacher_id", request.teacher_id)
    elif request.halaqa_id is not None:
        student_ids = _enrolled_student_ids(conn, "halaqa_id", request.halaqa_id)
    else:
        raise ValidationError("Specify student_ids, teacher_id or halaqa_id")
    if not student_ids:
        return 0
    _upsert_targets(conn, student_ids, request)
    conn.commit()
    return len(student_ids)
