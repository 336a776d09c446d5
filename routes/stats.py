import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from db.database import get_db
from utils.cache import get_cache
from utils.cohort import (
    CohortScope,
    clamp_limit,
    daily_achievement_stats,
    streak_leaderboard,
    target_adoption_overview,
)
from utils.errors import ValidationError

router = APIRouter()


def _scope(
    teacher_id: Optional[int] = None,
    halaqa_id: Optional[int] = None,
    halaqa_ids: List[int] = Query(default=[]),
) -> CohortScope:
    return CohortScope(
        teacher_id=teacher_id,
        halaqa_id=halaqa_id,
        halaqa_ids=tuple(sorted(set(halaqa_ids))) or None,
    )


@router.get("/streaks/leaderboard")
async def leaderboard(
    limit: Optional[int] = None,
    scope: CohortScope = Depends(_scope),
    conn = Depends(get_db),
):
    """Students ranked by current streak, then longest, then name."""
    today = datetime.date.today()
    limit = clamp_limit(limit)
    key = f"stats:leaderboard:{scope.cache_key()}|limit={limit}|{today.isoformat()}"
    return get_cache().get_or_create(key, lambda: streak_leaderboard(conn, scope, limit, today))


@router.get("/targets/adoption")
async def adoption(
    include_halaqa_breakdown: bool = False,
    scope: CohortScope = Depends(_scope),
    conn = Depends(get_db),
):
    today = datetime.date.today()
    key = f"stats:adoption:{scope.cache_key()}|breakdown={include_halaqa_breakdown}|{today.isoformat()}"
    return get_cache().get_or_create(
        key, lambda: target_adoption_overview(conn, scope, include_halaqa_breakdown, today)
    )


@router.get("/achievement/daily")
async def daily_achievement(
    from_date: Optional[datetime.date] = None,
    to_date: Optional[datetime.date] = None,
    scope: CohortScope = Depends(_scope),
    conn = Depends(get_db),
):
    """Cohort achievement against targets; defaults to the last 7 days."""
    to_date = to_date or datetime.date.today()
    from_date = from_date or to_date - datetime.timedelta(days=6)
    key = f"stats:daily:{scope.cache_key()}|{from_date.isoformat()}|{to_date.isoformat()}"
    try:
        return get_cache().get_or_create(
            key, lambda: daily_achievement_stats(conn, scope, from_date, to_date)
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
