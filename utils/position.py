from __future__ import annotations

from typing import Optional, Tuple

from models.progress import ProgressCategory
from models.student import CurriculumPosition
from utils.curriculum import TOTAL_CHAPTERS, Direction, chapter_by_number, juz_memorized


def advance(direction: Direction, chapter_number: int, to_verse: int) -> Tuple[int, int]:
    """Position after memorizing up to `to_verse` of a chapter.

    A finished chapter moves to the neighbouring chapter at verse 0; past
    either end of the curriculum the position stays on the last verse.
    """
    chapter = chapter_by_number(chapter_number)
    if chapter is None:
        return chapter_number, to_verse
    if to_verse < chapter.verse_count:
        return chapter_number, to_verse
    if Direction(direction) == Direction.FORWARD:
        if chapter_number < TOTAL_CHAPTERS:
            return chapter_number + 1, 0
        return TOTAL_CHAPTERS, chapter.verse_count
    if chapter_number > 1:
        return chapter_number - 1, 0
    return 1, chapter.verse_count


def get_position(conn, student_id: int) -> Optional[CurriculumPosition]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT direction, current_chapter, current_verse, juz_memorized
        FROM students
        WHERE id = ?
        """,
        (student_id,),
    )
    row = cursor.fetchone()
    if not row:
        return None
    return CurriculumPosition(
        direction=row["direction"],
        current_chapter=int(row["current_chapter"]),
        current_verse=int(row["current_verse"]),
        juz_memorized=float(row["juz_memorized"]),
    )


def apply_progress(
    conn,
    student_id: int,
    category: ProgressCategory,
    chapter_number: int,
    to_verse: int,
) -> Optional[CurriculumPosition]:
    position = get_position(conn, student_id)
    if position is None or ProgressCategory(category) != ProgressCategory.MEMORIZATION:
        return position
    next_chapter, next_verse = advance(position.direction, chapter_number, to_verse)
    juz = juz_memorized(position.direction, next_chapter, next_verse)
    conn.execute(
        """
        UPDATE students
        SET current_chapter = ?, current_verse = ?, juz_memorized = ?
        WHERE id = ?
        """,
        (next_chapter, next_verse, juz, student_id),
    )
    return CurriculumPosition(
        direction=position.direction,
        current_chapter=next_chapter,
        current_verse=next_verse,
        juz_memorized=juz,
    )
