"""
Weekly aggregate schemas.

Weekly metrics are always re-derived from the activity history and are
never stored as authoritative data.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.activity import Activity


class WeeklyMetric(BaseModel):
    """Aggregate of one ISO week (Monday to Sunday)."""

    week_key: str = Field(..., description="ISO week key, e.g. '2024-W07'")
    week_start: datetime.date = Field(..., description="Monday of the ISO week")
    total_distance_km: float = 0.0
    total_duration_min: float = 0.0
    avg_hr: Optional[float] = None
    avg_pace: Optional[float] = Field(None, description="Mean pace in min/km (None outside 0-15)")
    long_run_km: float = 0.0
    acute_load: float = Field(0.0, description="Week distance (km)")
    chronic_load: Optional[float] = Field(None, description="Mean of the 4 previous weeks (None before week 5)")
    acwr: Optional[float] = None
    fatigue_index: Optional[float] = Field(None, ge=0.0, le=1.0)
    monotony: float = 1.0
    strain: float = 0.0
    efficiency_score: Optional[float] = Field(None, description="avg_hr / avg_pace")
    elevation_gain_m: float = 0.0
    run_count: int = 0
    quality_sessions: int = Field(0, description="Runs with avg HR > 160 and >= 5 km")


class WeeklyKm(BaseModel):
    week_key: str
    week_start: datetime.date
    km: float


class WeeklyACWR(BaseModel):
    week_key: str
    km: float
    chronic_km: float
    acwr: float


class WeeklyMetricsRequest(BaseModel):
    activities: list[Activity] = Field(default_factory=list)


class WeeklyMetricsResponse(BaseModel):
    weeks: list[WeeklyMetric]
    acwr_series: list[float] = Field(default_factory=list, description="Non-null ACWR values, oldest first")
