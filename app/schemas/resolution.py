"""
Conflict detection and resolution schemas.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.guards import GuardMode
from app.schemas.load_profile import DailyLoadBudget
from app.schemas.session import DayAdaptation, TrainingDay, TrainingWeek


class ConflictType(str, Enum):
    EXCESSIVE_LOAD = "EXCESSIVE_LOAD"
    OVERLOAD = "OVERLOAD"
    CONTRADICTORY_GOALS = "CONTRADICTORY_GOALS"
    DURATION_OVERFLOW = "DURATION_OVERFLOW"
    SCHEDULING_VIOLATION = "SCHEDULING_VIOLATION"


class ConflictSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SessionConflict(BaseModel):
    type: ConflictType
    severity: ConflictSeverity
    date: Optional[datetime.date] = None
    session_ids: list[str] = Field(default_factory=list)
    reason: str


class ConflictSummary(BaseModel):
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    by_type: dict[ConflictType, int] = Field(default_factory=lambda: { t: 0 for t in ConflictType })
    conflicts: list[SessionConflict] = Field(default_factory=list)


class DayResolution(BaseModel):
    day: TrainingDay
    adaptation: DayAdaptation


class WeekResolution(BaseModel):
    week: TrainingWeek
    adaptations: list[DayAdaptation] = Field(default_factory=list)
    conflicts: ConflictSummary = Field(default_factory=ConflictSummary)


class ResolveDayRequest(BaseModel):
    day: TrainingDay
    budget: DailyLoadBudget = Field(default_factory=DailyLoadBudget)
    guard_mode: Optional[GuardMode] = Field(None, description="Defaults to the server's GUARD_MODE")


class ResolveWeekRequest(BaseModel):
    week: TrainingWeek
    budget: DailyLoadBudget = Field(default_factory=DailyLoadBudget)
    guard_mode: Optional[GuardMode] = None
