"""
Taper and weekly plan schemas.

A :class:`PlanWeek` is a pure function output: seven :class:`PlanDay`
objects (Sunday to Saturday) holding human-readable plan sessions.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.race import RacePriority, RaceSurface


class TaperInputs(BaseModel):
    fatigue_score: float = Field(..., description="0..1 from the weekly reasoner (clamped before use)")
    chronic_km: float = Field(..., description="4-week average distance")
    this_week_plan_km_base: float = Field(..., description="Nominal planned km before taper / scaling")
    weeks_to_race: Optional[int] = Field(None, description="0 = race week, 1 = week before, None = no race")
    priority: RacePriority = RacePriority.B
    surface: RaceSurface = RaceSurface.ROAD


class TargetKmResponse(BaseModel):
    target_km: int
    fatigue_scale: float
    taper_factor: float
    trail_trim: float


class WeekSkeleton(BaseModel):
    long_km: int
    mid_km: int
    ez_km: int
    keep_quality: bool


class PlanSession(BaseModel):
    title: str
    km: Optional[int] = None
    notes: Optional[str] = None


class PlanDay(BaseModel):
    date: datetime.date
    sessions: list[PlanSession] = Field(default_factory=list)


class PlanWeek(BaseModel):
    days: list[PlanDay] = Field(..., min_length=7, max_length=7)

    @property
    def total_km(self) -> int:
        return sum(s.km or 0 for day in self.days for s in day.sessions)


class PlanWeekRequest(BaseModel):
    start_date: datetime.date = Field(..., description="First day (Sunday) of the plan week")
    target_km: int = Field(..., ge=0)
    fatigue_score: float = 0.5
    weeks_to_race: Optional[int] = None


class PlanWeekResponse(BaseModel):
    skeleton: WeekSkeleton
    week: PlanWeek
