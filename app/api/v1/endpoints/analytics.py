"""
Analytics endpoints: ACWR zones, trends and weekly metrics.
"""

from fastapi import APIRouter

from app.engine.metrics import compute_weekly_metrics
from app.engine.zones import assess_sustainability, assess_zone, trend_direction
from app.schemas.metrics import WeeklyMetricsRequest, WeeklyMetricsResponse
from app.schemas.zones import TrendRequest, TrendResponse, ZoneAssessment, ZoneRequest

router = APIRouter()


@router.post("/zone", summary="Classify an ACWR reading into a risk zone.", response_model=ZoneAssessment, )
def classify(data: ZoneRequest):
    return assess_zone(data.acwr, data.history, data.weekly_km, data.bounds)


@router.post("/trend", summary="Trend and sustainability of an ACWR series.", response_model=TrendResponse, )
def trend(data: TrendRequest):
    return TrendResponse(trend=trend_direction(data.values), sustainability=assess_sustainability(data.values))


@router.post("/weekly-metrics", summary="Aggregate activities into ISO-week metrics.",
             response_model=WeeklyMetricsResponse, )
def weekly_metrics(data: WeeklyMetricsRequest):
    """Weeks between the first and last activity; empty weeks are zero-filled."""
    weeks = compute_weekly_metrics(data.activities)
    return WeeklyMetricsResponse(weeks=weeks, acwr_series=[w.acwr for w in weeks if w.acwr is not None])
