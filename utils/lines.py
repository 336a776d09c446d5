from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from config import get_config_value
from utils.curriculum import CHAPTERS, TOTAL_CHAPTERS, chapter_by_number, chapter_number_for_name

logger = logging.getLogger(__name__)

DEFAULT_LINES_PER_VERSE = 1.0

_TABLE: Optional["LineTable"] = None
_TABLE_LOCK = threading.Lock()


def _parse_key(key: str) -> Optional[Tuple[int, int]]:
    try:
        chapter, verse = key.split(":", 1)
        return int(chapter), int(verse)
    except (AttributeError, ValueError):
        return None


def load_verse_lines(path: Path) -> Dict[Tuple[int, int], float]:
    """Read the "chapter:verse" -> lines JSON file; problems yield an empty table."""
    path = Path(path)
    if not path.exists():
        logger.warning(
            "Verse lines data file not found at %s; using %.1f line per verse.",
            path,
            DEFAULT_LINES_PER_VERSE,
        )
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read verse lines data from %s: %s", path, exc)
        return {}
    if not isinstance(payload, dict) or not payload:
        logger.warning("Verse lines data in %s is empty; using fallback density.", path)
        return {}
    densities: Dict[Tuple[int, int], float] = {}
    for key, value in payload.items():
        parsed = _parse_key(key)
        try:
            lines = float(value)
        except (TypeError, ValueError):
            parsed = None
        if parsed is None or lines <= 0:
            logger.debug("Skipping malformed verse lines entry %r=%r", key, value)
            continue
        densities[parsed] = lines
    logger.info("Loaded %d verse line mappings from %s.", len(densities), path)
    return densities


class LineTable:
    """Verse line densities with per-chapter running sums.

    Built once; every query afterwards is a read of immutable tuples, so a
    single instance is shared freely between threads.
    """

    def __init__(self, densities: Optional[Mapping[Tuple[int, int], float]] = None):
        densities = densities or {}
        per_chapter = []
        cumulative = []
        missing = 0
        for chapter in CHAPTERS:
            values = []
            sums = [0.0]
            running = 0.0
            for verse in range(1, chapter.verse_count + 1):
                lines = densities.get((chapter.number, verse))
                if lines is None:
                    missing += 1
                    lines = DEFAULT_LINES_PER_VERSE
                values.append(lines)
                running += lines
                sums.append(running)
            per_chapter.append(tuple(values))
            cumulative.append(tuple(sums))
        self._densities = tuple(per_chapter)
        self._cumulative = tuple(cumulative)
        self.missing_verses = missing
        if missing:
            logger.warning(
                "Line data missing for %d verses; assuming %.1f line per verse for them.",
                missing,
                DEFAULT_LINES_PER_VERSE,
            )
        logger.debug("Built cumulative line sums for %d chapters.", len(self._cumulative))

    @classmethod
    def from_file(cls, path: Path) -> "LineTable":
        return cls(load_verse_lines(path))

    def verse_line(self, chapter_number: int, verse: int) -> float:
        if chapter_number < 1 or chapter_number > TOTAL_CHAPTERS or verse < 1:
            return DEFAULT_LINES_PER_VERSE
        densities = self._densities[chapter_number - 1]
        if verse > len(densities):
            return DEFAULT_LINES_PER_VERSE
        return densities[verse - 1]

    def _cumulative_at(self, chapter_number: int, verse: int) -> Optional[float]:
        sums = self._cumulative[chapter_number - 1]
        if verse >= len(sums):
            return None
        return sums[verse]

    def _sum_range(self, chapter_number: int, from_verse: int, to_verse: int) -> float:
        return sum(
            self.verse_line(chapter_number, verse)
            for verse in range(from_verse, to_verse + 1)
        )

    def lines(self, chapter_number: int, from_verse: int, to_verse: int) -> float:
        if chapter_number < 1 or chapter_number > TOTAL_CHAPTERS:
            logger.warning("Invalid chapter number %s; estimating one line per verse.", chapter_number)
            return DEFAULT_LINES_PER_VERSE * max(0, to_verse - from_verse + 1)
        if from_verse < 1 or to_verse < from_verse:
            logger.warning("Invalid verse range: from %s to %s.", from_verse, to_verse)
            return 0.0
        end = self._cumulative_at(chapter_number, to_verse)
        start = self._cumulative_at(chapter_number, from_verse - 1)
        if end is None or start is None:
            return self._sum_range(chapter_number, from_verse, to_verse)
        result = end - start
        if result <= 0:
            return self._sum_range(chapter_number, from_verse, to_verse)
        return result

    def lines_by_name(self, chapter_name: Optional[str], from_verse: int, to_verse: int) -> float:
        estimate = DEFAULT_LINES_PER_VERSE * max(0, to_verse - from_verse + 1)
        if not chapter_name or not chapter_name.strip():
            return estimate
        number = chapter_number_for_name(chapter_name)
        if number is None:
            logger.debug("Chapter name %r not recognized; using fallback estimate.", chapter_name)
            return estimate
        return self.lines(number, from_verse, to_verse)

    def chapter_lines(self, chapter_number: int) -> float:
        chapter = chapter_by_number(chapter_number)
        if chapter is None:
            return 0.0
        return self.lines(chapter_number, 1, chapter.verse_count)


def init_line_table(path: Optional[Path] = None) -> LineTable:
    """Build the process-wide table; called once at startup."""
    global _TABLE
    if path is None:
        path = get_config_value("lines", "data_path")
    table = LineTable.from_file(path)
    with _TABLE_LOCK:
        _TABLE = table
    return table


def get_line_table() -> LineTable:
    table = _TABLE
    if table is None:
        table = init_line_table()
    return table


def reset_line_table(table: Optional[LineTable] = None) -> None:
    global _TABLE
    with _TABLE_LOCK:
        _TABLE = table
