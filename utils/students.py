from __future__ import annotations

from typing import List, Optional

from models.student import HalaqaCreate, Halaqa, Student, StudentCreate
from utils.calendar import format_active_days
from utils.curriculum import TOTAL_CHAPTERS, Direction, juz_memorized
from utils.errors import NotFoundError
from utils.position import get_position


def create_student(conn, student: StudentCreate) -> Student:
    direction = Direction(student.direction)
    chapter = student.current_chapter
    if chapter is None:
        chapter = 1 if direction == Direction.FORWARD else TOTAL_CHAPTERS
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO students (name, direction, current_chapter, current_verse, juz_memorized)
        VALUES (?, ?, ?, 0, ?)
        """,
        (student.name, direction.value, chapter, juz_memorized(direction, chapter, 0)),
    )
    conn.commit()
    return get_student(conn, cursor.lastrowid)


def get_student(conn, student_id: int) -> Student:
    cursor = conn.cursor()
    cursor.execute("SELECT id, name, direction FROM students WHERE id = ?", (student_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(f"Student {student_id} not found")
    return Student(
        id=row["id"],
        name=row["name"],
        direction=row["direction"],
        position=get_position(conn, student_id),
    )


def create_teacher(conn, name: str) -> int:
    cursor = conn.cursor()
    cursor.execute("INSERT INTO teachers (name) VALUES (?)", (name,))
    conn.commit()
    return cursor.lastrowid


def create_halaqa(conn, halaqa: HalaqaCreate) -> Halaqa:
    cursor = conn.cursor()
    cursor.execute(
        "INSERT INTO halaqat (name, active_days) VALUES (?, ?)",
        (halaqa.name, format_active_days(halaqa.active_days)),
    )
    conn.commit()
    return get_halaqa(conn, cursor.lastrowid)


def get_halaqa(conn, halaqa_id: int) -> Halaqa:
    cursor = conn.cursor()
    cursor.execute("SELECT id, name, active_days FROM halaqat WHERE id = ?", (halaqa_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(f"Halaqa {halaqa_id} not found")
    return Halaqa(id=row["id"], name=row["name"], active_days=row["active_days"])


def list_halaqat(conn) -> List[Halaqa]:
    cursor = conn.cursor()
    cursor.execute("SELECT id, name, active_days FROM halaqat WHERE is_active = 1 ORDER BY name")
    return [
        Halaqa(id=row["id"], name=row["name"], active_days=row["active_days"])
        for row in cursor.fetchall()
    ]


def enroll_student(conn, student_id: int, halaqa_id: int, teacher_id: Optional[int] = None) -> None:
    get_student(conn, student_id)
    get_halaqa(conn, halaqa_id)
    conn.execute(
        """
        INSERT INTO student_halaqat (student_id, halaqa_id, teacher_id, is_active)
        VALUES (?, ?, ?, 1)
        ON CONFLICT(student_id, halaqa_id) DO UPDATE SET
            teacher_id = excluded.teacher_id,
            is_active = 1
        """,
        (student_id, halaqa_id, teacher_id),
    )
    conn.commit()
