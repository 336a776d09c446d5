import math

import pytest

from utils.curriculum import (
    TOTAL_CHAPTERS,
    Direction,
    all_chapters,
    chapter_by_name,
    chapter_by_number,
    chapter_number_for_name,
    curriculum_fraction,
    juz_memorized,
)
from utils.position import advance


def test_chapter_table_covers_curriculum():
    chapters = all_chapters()
    assert len(chapters) == TOTAL_CHAPTERS
    assert [c.number for c in chapters] == list(range(1, 115))
    assert math.isclose(sum(c.weight for c in chapters), 1.0, abs_tol=1e-3)
    assert chapter_by_number(2).verse_count == 286
    assert chapter_by_number(0) is None
    assert chapter_by_number(115) is None


def test_chapter_name_lookup_strips_prefix():
    assert chapter_number_for_name("البقرة") == 2
    assert chapter_number_for_name("سورة البقرة") == 2
    assert chapter_number_for_name("  الناس  ") == 114
    assert chapter_number_for_name("تبارك") == 67
    assert chapter_number_for_name("") is None
    assert chapter_number_for_name("unknown") is None
    assert chapter_by_name("سورة الفاتحة").verse_count == 7


@pytest.mark.parametrize("direction", [Direction.FORWARD, Direction.BACKWARD])
def test_fraction_bounds(direction):
    start = 1 if direction == Direction.FORWARD else 114
    end = 114 if direction == Direction.FORWARD else 1
    assert curriculum_fraction(direction, start, 0) == 0.0
    assert curriculum_fraction(direction, end, chapter_by_number(end).verse_count) == 1.0
    assert juz_memorized(direction, end, chapter_by_number(end).verse_count) == 30.0


def test_fraction_is_monotonic_forward():
    previous = -1.0
    for chapter in all_chapters():
        for verse in (0, chapter.verse_count // 2, chapter.verse_count):
            value = curriculum_fraction(Direction.FORWARD, chapter.number, verse)
            assert value >= previous
            previous = value


def test_fraction_clamps_verse_and_rejects_unknown_chapter():
    full = curriculum_fraction(Direction.FORWARD, 1, 7)
    assert curriculum_fraction(Direction.FORWARD, 1, 500) == full
    assert curriculum_fraction(Direction.FORWARD, 1, -3) == 0.0
    assert curriculum_fraction(Direction.FORWARD, 200, 1) == 0.0


def test_backward_counts_later_chapters():
    # Finishing chapters 114..112 backward is the same share as their weights.
    expected = sum(chapter_by_number(n).weight for n in (112, 113, 114))
    assert math.isclose(curriculum_fraction(Direction.BACKWARD, 111, 0), expected, rel_tol=1e-3)


def test_advance_moves_to_next_chapter_on_completion():
    assert advance(Direction.FORWARD, 1, 3) == (1, 3)
    assert advance(Direction.FORWARD, 1, 7) == (2, 0)
    assert advance(Direction.BACKWARD, 114, 6) == (113, 0)
    assert advance(Direction.BACKWARD, 50, 10) == (50, 10)


def test_advance_stops_at_curriculum_ends():
    assert advance(Direction.FORWARD, 114, 6) == (114, 6)
    assert advance(Direction.BACKWARD, 1, 7) == (1, 7)
