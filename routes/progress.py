import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from db.database import get_db
from models.progress import ProgressCategory, ProgressCreate
from utils.cache import get_cache
from utils.errors import NotFoundError, ValidationError
from utils.progress import (
    create_progress_record,
    delete_progress_record,
    get_progress_record,
    last_progress_by_category,
    list_progress_by_date,
    list_student_progress,
    student_progress_summary,
)

router = APIRouter()

STATS_CACHE_PREFIX = "stats:"


@router.post("/", status_code=status.HTTP_201_CREATED)
async def record_progress(record: ProgressCreate, conn = Depends(get_db)):
    """Record a session; updates position and streak for the student."""
    try:
        entry = create_progress_record(conn, record)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    get_cache().invalidate_prefix(STATS_CACHE_PREFIX)
    return entry


@router.get("/by-date")
async def progress_for_day(
    day: datetime.date = Query(..., alias="date"),
    teacher_id: Optional[int] = None,
    halaqa_id: List[int] = Query(default=[]),
    conn = Depends(get_db),
):
    return list_progress_by_date(conn, day, teacher_id=teacher_id, halaqa_ids=halaqa_id or None)


@router.get("/students/{student_id}")
async def progress_for_student(
    student_id: int,
    from_date: Optional[datetime.date] = None,
    conn = Depends(get_db),
):
    return list_student_progress(conn, student_id, from_date)


@router.get("/students/{student_id}/summary")
async def progress_summary(student_id: int, conn = Depends(get_db)):
    try:
        return student_progress_summary(conn, student_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.get("/students/{student_id}/last")
async def last_progress(student_id: int, category: ProgressCategory, conn = Depends(get_db)):
    entry = last_progress_by_category(conn, student_id, category)
    if entry is None:
        raise HTTPException(status_code=404, detail="No progress recorded for this category")
    return entry


@router.get("/{record_id}")
async def read_progress(record_id: int, conn = Depends(get_db)):
    try:
        return get_progress_record(conn, record_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_progress(record_id: int, conn = Depends(get_db)):
    if not delete_progress_record(conn, record_id):
        raise HTTPException(status_code=404, detail="Progress record not found")
    get_cache().invalidate_prefix(STATS_CACHE_PREFIX)
