from fastapi import APIRouter, HTTPException, Query

from utils.achievement import lines_to_pages
from utils.curriculum import Direction, all_chapters, chapter_by_name, chapter_by_number, juz_memorized
from utils.lines import get_line_table

router = APIRouter()


@router.get("/")
async def list_chapters():
    """All 114 chapters in curriculum order."""
    return [
        {
            "number": chapter.number,
            "name": chapter.name,
            "verse_count": chapter.verse_count,
            "juz_portion": chapter.juz_portion,
        }
        for chapter in all_chapters()
    ]


@router.get("/lines")
async def count_lines(
    chapter: str = Query(..., min_length=1, description="Chapter number or name"),
    from_verse: int = Query(..., ge=1),
    to_verse: int = Query(..., ge=1),
):
    if from_verse > to_verse:
        raise HTTPException(status_code=400, detail="from_verse must be <= to_verse")
    found = chapter_by_number(int(chapter)) if chapter.isdigit() else chapter_by_name(chapter)
    if found is None:
        raise HTTPException(status_code=404, detail="Chapter not found")
    lines = get_line_table().lines(found.number, from_verse, to_verse)
    return {
        "chapter_number": found.number,
        "chapter_name": found.name,
        "from_verse": from_verse,
        "to_verse": to_verse,
        "lines": round(lines, 2),
        "pages": round(lines_to_pages(lines), 2),
    }


@router.get("/juz")
async def juz_for_position(
    chapter_number: int = Query(..., ge=1, le=114),
    verse: int = Query(0, ge=0),
    direction: Direction = Direction.FORWARD,
):
    return {
        "direction": direction,
        "chapter_number": chapter_number,
        "verse": verse,
        "juz_memorized": juz_memorized(direction, chapter_number, verse),
    }
