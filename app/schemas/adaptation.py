"""
Adaptation state and weekly-run schemas.

:class:`AdaptationState` is everything the engine carries from one weekly
run to the next.  It is passed in and handed back explicitly; the caller
persists it.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.activity import Activity, HealthState, RunFeedback
from app.schemas.guards import ValidationWarning
from app.schemas.load_profile import DailyLoadBudget
from app.schemas.plan import PlanWeek, TargetKmResponse, WeekSkeleton
from app.schemas.race import ActiveRace, RaceSurface
from app.schemas.reasoning import RaceLesson, Reasoning, Weights
from app.schemas.resolution import WeekResolution
from app.schemas.session import TrainingSession


class AdaptationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    weights: Weights = Field(default_factory=Weights)
    health: HealthState = HealthState.OK
    race_weeks: Optional[int] = Field(None, description="Last known weeks-to-race")
    last_run_week: Optional[str] = Field(None, description="ISO week key of the last adaptive run")


class WeeklyRunRequest(BaseModel):
    recent_activities: list[Activity] = Field(default_factory=list)
    last_4_weeks_km: Optional[list[float]] = Field(None, description="Derived from the activities when omitted")
    this_week_plan_km_base: float = Field(..., description="Nominal planned km before taper / scaling")
    health: Optional[HealthState] = Field(None, description="Overrides the carried health state")
    active_race: Optional[ActiveRace] = None
    surface: RaceSurface = RaceSurface.ROAD
    feedback: list[RunFeedback] = Field(default_factory=list)
    lessons: list[RaceLesson] = Field(default_factory=list, description="Lessons from past races")
    extra_sessions: dict[datetime.date, list[TrainingSession]] = Field(default_factory=dict)
    budget: DailyLoadBudget = Field(default_factory=DailyLoadBudget)
    week_start: Optional[datetime.date] = Field(None, description="Sunday the plan starts on")


class WeeklyRunResponse(BaseModel):
    skipped: bool
    week_key: str
    state: AdaptationState
    reasoning: Optional[Reasoning] = None
    target: Optional[TargetKmResponse] = None
    skeleton: Optional[WeekSkeleton] = None
    plan_week: Optional[PlanWeek] = None
    resolution: Optional[WeekResolution] = None
    warnings: list[ValidationWarning] = Field(default_factory=list)
