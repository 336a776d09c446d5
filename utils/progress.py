from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from models.progress import ProgressCategory, ProgressCreate, ProgressEntry, StudentProgressSummary
from utils.calendar import get_halaqa_active_days
from utils.curriculum import chapter_by_name
from utils.errors import NotFoundError, ValidationError
from utils.lines import get_line_table
from utils.position import apply_progress
from utils.streaks import StreakUpdate, on_progress_recorded

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = """
    id, student_id, halaqa_id, teacher_id, date, category, chapter_name,
    chapter_number, from_verse, to_verse, number_lines, quality, notes, created_at
"""


def _row_to_entry(row) -> ProgressEntry:
    return ProgressEntry(**dict(row))


def _require_enrollment(conn, record: ProgressCreate) -> None:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM students WHERE id = ?", (record.student_id,))
    if not cursor.fetchone():
        raise NotFoundError(f"Student {record.student_id} not found")
    params = [record.student_id, record.halaqa_id]
    teacher_sql = ""
    if record.teacher_id is not None:
        teacher_sql = " AND teacher_id = ?"
        params.append(record.teacher_id)
    cursor.execute(
        f"""
        SELECT 1 FROM student_halaqat
        WHERE student_id = ? AND halaqa_id = ? AND is_active = 1{teacher_sql}
        """,
        params,
    )
    if not cursor.fetchone():
        raise ValidationError("Student is not enrolled in this halaqa with this teacher")


def create_progress_record(conn, record: ProgressCreate) -> ProgressEntry:
    """Store a progress record and run its side effects.

    The line count is computed once here and never recalculated. Memorization
    moves the curriculum position; any category can extend the streak.
    """
    _require_enrollment(conn, record)
    chapter = chapter_by_name(record.chapter_name)
    if chapter is None:
        raise NotFoundError(f"Chapter {record.chapter_name!r} not found")
    if record.to_verse > chapter.verse_count:
        raise ValidationError(
            f"Chapter {chapter.number} has {chapter.verse_count} verses; got to_verse={record.to_verse}"
        )
    number_lines = get_line_table().lines(chapter.number, record.from_verse, record.to_verse)
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO progress_records (
            student_id, halaqa_id, teacher_id, date, category, chapter_name,
            chapter_number, from_verse, to_verse, number_lines, quality, notes
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            record.student_id,
            record.halaqa_id,
            record.teacher_id,
            record.date.isoformat(),
            ProgressCategory(record.category).value,
            record.chapter_name,
            chapter.number,
            record.from_verse,
            record.to_verse,
            number_lines,
            record.quality.value,
            record.notes,
        ),
    )
    record_id = cursor.lastrowid
    apply_progress(conn, record.student_id, record.category, chapter.number, record.to_verse)
    conn.commit()
    record_streak(conn, record.student_id, record.date, record.halaqa_id)
    return get_progress_record(conn, record_id)


def record_streak(conn, student_id: int, day: date, halaqa_id: int) -> StreakUpdate:
    active_days = get_halaqa_active_days(conn, halaqa_id)
    return on_progress_recorded(conn, student_id, day, active_days)


def get_progress_record(conn, record_id: int) -> ProgressEntry:
    cursor = conn.cursor()
    cursor.execute(f"SELECT {_ENTRY_COLUMNS} FROM progress_records WHERE id = ?", (record_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(f"Progress record {record_id} not found")
    return _row_to_entry(row)


def delete_progress_record(conn, record_id: int) -> bool:
    """Delete a record. Stored streak counters are not rolled back."""
    cursor = conn.cursor()
    cursor.execute("DELETE FROM progress_records WHERE id = ?", (record_id,))
    conn.commit()
    if cursor.rowcount:
        logger.info("Deleted progress record %s", record_id)
    return cursor.rowcount > 0


def list_student_progress(conn, student_id: int, from_date: Optional[date] = None) -> List[ProgressEntry]:
    params: list = [student_id]
    date_sql = ""
    if from_date is not None:
        date_sql = " AND date >= ?"
        params.append(from_date.isoformat())
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {_ENTRY_COLUMNS}
        FROM progress_records
        WHERE student_id = ?{date_sql}
        ORDER BY date DESC, id DESC
        """,
        params,
    )
    return [_row_to_entry(row) for row in cursor.fetchall()]


def list_progress_by_date(
    conn,
    day: date,
    teacher_id: Optional[int] = None,
    halaqa_ids: Optional[Iterable[int]] = None,
) -> List[ProgressEntry]:
    filters = ["date = ?"]
    params: list = [day.isoformat()]
    if teacher_id is not None:
        filters.append("teacher_id = ?")
        params.append(teacher_id)
    if halaqa_ids:
        ids = list(halaqa_ids)
        filters.append(f"halaqa_id IN ({','.join('?' for _ in ids)})")
        params.extend(ids)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {_ENTRY_COLUMNS}
        FROM progress_records
        WHERE {' AND '.join(filters)}
        ORDER BY created_at, id
        """,
        params,
    )
    return [_row_to_entry(row) for row in cursor.fetchall()]


def last_progress_by_category(conn, student_id: int, category: ProgressCategory) -> Optional[ProgressEntry]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {_ENTRY_COLUMNS}
        FROM progress_records
        WHERE student_id = ? AND category = ?
        ORDER BY date DESC, created_at DESC, id DESC
        LIMIT 1
        """,
        (student_id, ProgressCategory(category).value),
    )
    row = cursor.fetchone()
    return _row_to_entry(row) if row else None


def student_progress_summary(conn, student_id: int, recent: int = 10) -> StudentProgressSummary:
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM students WHERE id = ?", (student_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(f"Student {student_id} not found")
    entries = list_student_progress(conn, student_id)
    counts = {category: 0 for category in ProgressCategory}
    for entry in entries:
        counts[ProgressCategory(entry.category)] += 1
    return StudentProgressSummary(
        student_id=student_id,
        student_name=row["name"],
        total_memorization=counts[ProgressCategory.MEMORIZATION],
        total_revision=counts[ProgressCategory.REVISION],
        total_consolidation=counts[ProgressCategory.CONSOLIDATION],
        total_lines=round(sum(entry.number_lines for entry in entries), 2),
        last_progress_date=entries[0].date if entries else None,
        recent_progress=entries[:recent],
    )
