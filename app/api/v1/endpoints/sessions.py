"""
Session endpoints: day and week conflict resolution.
"""

from fastapi import APIRouter

from app.engine.ownership import ResolverConfig, resolve_day, resolve_week
from app.schemas.guards import GuardedResult
from app.schemas.resolution import DayResolution, ResolveDayRequest, ResolveWeekRequest, WeekResolution

router = APIRouter()


@router.post("/resolve-day", summary="Bring one day within its load budget.",
             response_model=GuardedResult[DayResolution], )
def resolve_one_day(data: ResolveDayRequest):
    """Sessions are scaled or (ADAPTIVE only) removed; protected sessions always survive."""
    config = ResolverConfig.from_settings(budget=data.budget, guard_mode=data.guard_mode)
    return resolve_day(data.day, config)


@router.post("/resolve-week", summary="Resolve every day of a week and summarise remaining conflicts.",
             response_model=GuardedResult[WeekResolution], )
def resolve_one_week(data: ResolveWeekRequest):
    config = ResolverConfig.from_settings(budget=data.budget, guard_mode=data.guard_mode)
    return resolve_week(data.week, config)
