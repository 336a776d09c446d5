from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Optional, Tuple

TOTAL_CHAPTERS = 114
TOTAL_JUZ = 30


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class Chapter:
    number: int
    name: str
    verse_count: int
    juz_portion: float

    @property
    def weight(self) -> float:
        """Fraction of the whole curriculum this chapter represents."""
        return self.juz_portion / TOTAL_JUZ


# (number, name, verses, juz portion); juz portions sum to 30.
_CHAPTER_ROWS = (
    (1, "الفاتحة", 7, 0.034), (2, "البقرة", 286, 1.376), (3, "آل عمران", 200, 0.962),
    (4, "النساء", 176, 0.847), (5, "المائدة", 120, 0.577), (6, "الأنعام", 165, 0.794),
    (7, "الأعراف", 206, 0.991), (8, "الأنفال", 75, 0.361), (9, "التوبة", 129, 0.621),
    (10, "يونس", 109, 0.524), (11, "هود", 123, 0.592), (12, "يوسف", 111, 0.534),
    (13, "الرعد", 43, 0.207), (14, "إبراهيم", 52, 0.250), (15, "الحجر", 99, 0.476),
    (16, "النحل", 128, 0.616), (17, "الإسراء", 111, 0.534), (18, "الكهف", 110, 0.529),
    (19, "مريم", 98, 0.472), (20, "طه", 135, 0.650), (21, "الأنبياء", 112, 0.539),
    (22, "الحج", 78, 0.375), (23, "المؤمنون", 118, 0.568), (24, "النور", 64, 0.308),
    (25, "الفرقان", 77, 0.370), (26, "الشعراء", 227, 1.092), (27, "النمل", 93, 0.448),
    (28, "القصص", 88, 0.423), (29, "العنكبوت", 69, 0.332), (30, "الروم", 60, 0.289),
    (31, "لقمان", 34, 0.164), (32, "السجدة", 30, 0.144), (33, "الأحزاب", 73, 0.351),
    (34, "سبأ", 54, 0.260), (35, "فاطر", 45, 0.217), (36, "يس", 83, 0.399),
    (37, "الصافات", 182, 0.876), (38, "ص", 88, 0.423), (39, "الزمر", 75, 0.361),
    (40, "غافر", 85, 0.409), (41, "فصلت", 54, 0.260), (42, "الشورى", 53, 0.255),
    (43, "الزخرف", 89, 0.428), (44, "الدخان", 59, 0.284), (45, "الجاثية", 37, 0.178),
    (46, "الأحقاف", 35, 0.168), (47, "محمد", 38, 0.183), (48, "الفتح", 29, 0.140),
    (49, "الحجرات", 18, 0.087), (50, "ق", 45, 0.217), (51, "الذاريات", 60, 0.289),
    (52, "الطور", 49, 0.236), (53, "النجم", 62, 0.298), (54, "القمر", 55, 0.265),
    (55, "الرحمن", 78, 0.375), (56, "الواقعة", 96, 0.462), (57, "الحديد", 29, 0.140),
    (58, "المجادلة", 22, 0.106), (59, "الحشر", 24, 0.115), (60, "الممتحنة", 13, 0.063),
    (61, "الصف", 14, 0.067), (62, "الجمعة", 11, 0.053), (63, "المنافقون", 11, 0.053),
    (64, "التغابن", 18, 0.087), (65, "الطلاق", 12, 0.058), (66, "التحريم", 12, 0.058),
    (67, "الملك", 30, 0.144), (68, "القلم", 52, 0.250), (69, "الحاقة", 52, 0.250),
    (70, "المعارج", 44, 0.212), (71, "نوح", 28, 0.135), (72, "الجن", 28, 0.135),
    (73, "المزمل", 20, 0.096), (74, "المدثر", 56, 0.269), (75, "القيامة", 40, 0.192),
    (76, "الإنسان", 31, 0.149), (77, "المرسلات", 50, 0.241), (78, "النبأ", 40, 0.192),
    (79, "النازعات", 46, 0.221), (80, "عبس", 42, 0.202), (81, "التكوير", 29, 0.140),
    (82, "الانفطار", 19, 0.091), (83, "المطففين", 36, 0.173), (84, "الانشقاق", 25, 0.120),
    (85, "البروج", 22, 0.106), (86, "الطارق", 17, 0.082), (87, "الأعلى", 19, 0.091),
    (88, "الغاشية", 26, 0.125), (89, "الفجر", 30, 0.144), (90, "البلد", 20, 0.096),
    (91, "الشمس", 15, 0.072), (92, "الليل", 21, 0.101), (93, "الضحى", 11, 0.053),
    (94, "الشرح", 8, 0.038), (95, "التين", 8, 0.038), (96, "العلق", 19, 0.091),
    (97, "القدر", 5, 0.024), (98, "البينة", 8, 0.038), (99, "الزلزلة", 8, 0.038),
    (100, "العاديات", 11, 0.053), (101, "القارعة", 11, 0.053), (102, "التكاثر", 8, 0.038),
    (103, "العصر", 3, 0.014), (104, "الهمزة", 9, 0.043), (105, "الفيل", 5, 0.024),
    (106, "قريش", 4, 0.019), (107, "الماعون", 7, 0.034), (108, "الكوثر", 3, 0.014),
    (109, "الكافرون", 6, 0.029), (110, "النصر", 3, 0.014), (111, "المسد", 5, 0.024),
    (112, "الإخلاص", 4, 0.019), (113, "الفلق", 5, 0.024), (114, "الناس", 6, 0.029),
)

_ALIASES = {
    "فاتحة": 1, "بقرة": 2, "نساء": 4, "مائدة": 5, "أنعام": 6, "أعراف": 7,
    "أنفال": 8, "توبة": 9, "الاسراء": 17, "تبارك": 67,
}

_NAME_PREFIXES = ("سورة ", "سورة", "سوره ", "سوره", "Surah ", "Sura ")

CHAPTERS: Tuple[Chapter, ...] = tuple(
    Chapter(number, name, verses, portion) for number, name, verses, portion in _CHAPTER_ROWS
)

_TOTAL_PORTION = math.fsum(chapter.juz_portion for chapter in CHAPTERS)


def _build_name_index() -> Dict[str, int]:
    index = {chapter.name: chapter.number for chapter in CHAPTERS}
    index.update(_ALIASES)
    return index


_NAME_INDEX = MappingProxyType(_build_name_index())


def all_chapters() -> Tuple[Chapter, ...]:
    return CHAPTERS


def chapter_by_number(number: int) -> Optional[Chapter]:
    if 1 <= number <= TOTAL_CHAPTERS:
        return CHAPTERS[number - 1]
    return None


def normalize_chapter_name(name: str) -> str:
    result = name.strip()
    for prefix in _NAME_PREFIXES:
        if result.startswith(prefix):
            result = result[len(prefix):]
            break
    return result.strip()


def chapter_number_for_name(name: Optional[str]) -> Optional[int]:
    """Resolve a chapter name to its number.

    Exact names and aliases win; otherwise the "سورة"/"Surah" prefix is
    stripped and the lookup retried. Returns None when nothing matches.
    """
    if not name or not name.strip():
        return None
    trimmed = name.strip()
    number = _NAME_INDEX.get(trimmed)
    if number is None:
        number = _NAME_INDEX.get(normalize_chapter_name(trimmed))
    return number


def chapter_by_name(name: Optional[str]) -> Optional[Chapter]:
    number = chapter_number_for_name(name)
    return chapter_by_number(number) if number is not None else None


def curriculum_fraction(direction: Direction, chapter_number: int, verse: int) -> float:
    """Share of the curriculum covered at a position, in [0, 1].

    Chapters already passed in the traversal direction count in full, the
    current chapter counts pro rata by verse.
    """
    chapter = chapter_by_number(chapter_number)
    if chapter is None:
        return 0.0
    verse = min(max(verse, 0), chapter.verse_count)
    if Direction(direction) == Direction.FORWARD:
        behind = [c.juz_portion for c in CHAPTERS if c.number < chapter_number]
    else:
        behind = [c.juz_portion for c in CHAPTERS if c.number > chapter_number]
    partial = verse / chapter.verse_count * chapter.juz_portion
    covered = math.fsum(behind + [partial])
    return min(1.0, covered / _TOTAL_PORTION)


def juz_memorized(direction: Direction, chapter_number: int, verse: int) -> float:
    return round(curriculum_fraction(direction, chapter_number, verse) * TOTAL_JUZ, 3)
