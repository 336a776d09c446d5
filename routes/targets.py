import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from db.database import get_db
from models.target import BulkTargetSet, TargetSet
from utils.cache import get_cache
from utils.errors import NotFoundError, ValidationError
from utils.history import MAX_HISTORY_DAYS, achievement_history
from utils.targets import bulk_set_targets, get_target, set_target

router = APIRouter()

STATS_CACHE_PREFIX = "stats:"


@router.post("/bulk")
async def set_targets_in_bulk(request: BulkTargetSet, conn = Depends(get_db)):
    try:
        updated = bulk_set_targets(conn, request)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    get_cache().invalidate_prefix(STATS_CACHE_PREFIX)
    return {"updated": updated}


@router.get("/{student_id}")
async def read_target(student_id: int, conn = Depends(get_db)):
    target = get_target(conn, student_id)
    if target is None:
        raise HTTPException(status_code=404, detail="No target set for this student")
    return target


@router.put("/{student_id}")
async def update_target(student_id: int, target: TargetSet, conn = Depends(get_db)):
    try:
        result = set_target(conn, student_id, target)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    get_cache().invalidate_prefix(STATS_CACHE_PREFIX)
    return result


@router.get("/{student_id}/history")
async def read_history(
    student_id: int,
    from_date: Optional[datetime.date] = None,
    to_date: Optional[datetime.date] = None,
    conn = Depends(get_db),
):
    """Day-by-day achievement; defaults to the last 30 days."""
    to_date = to_date or datetime.date.today()
    from_date = from_date or to_date - datetime.timedelta(days=29)
    try:
        return achievement_history(conn, student_id, from_date, to_date)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"{exc} (max {MAX_HISTORY_DAYS} days)")
