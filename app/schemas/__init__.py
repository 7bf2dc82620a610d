"""Pydantic schemas for request/response validation."""

from app.schemas.activity import Activity, HealthState, RunFeedback
from app.schemas.load_profile import DailyLoadBudget, LoadProfile, LoadTotals
from app.schemas.race import ActiveRace, RacePriority, RaceSurface
from app.schemas.zones import ACWRZone, Trend, ZoneAssessment
from app.schemas.metrics import WeeklyMetric
from app.schemas.reasoning import Adjustments, RaceLesson, Reasoning, WeeklyReasoningInput, Weights
from app.schemas.plan import PlanDay, PlanSession, PlanWeek, TaperInputs, WeekSkeleton
from app.schemas.session import (
    SessionIntensity,
    SessionOrigin,
    SessionPriority,
    SessionRole,
    SessionType,
    TrainingDay,
    TrainingSession,
    TrainingWeek,
)
from app.schemas.guards import GuardedResult, GuardMode, ValidationWarning, WarningCode
from app.schemas.resolution import ConflictSummary, DayResolution, SessionConflict, WeekResolution
from app.schemas.adaptation import AdaptationState, WeeklyRunRequest, WeeklyRunResponse

__all__ = [
    "Activity",
    "HealthState",
    "RunFeedback",
    "DailyLoadBudget",
    "LoadProfile",
    "LoadTotals",
    "ActiveRace",
    "RacePriority",
    "RaceSurface",
    "ACWRZone",
    "Trend",
    "ZoneAssessment",
    "WeeklyMetric",
    "Adjustments",
    "RaceLesson",
    "Reasoning",
    "WeeklyReasoningInput",
    "Weights",
    "PlanDay",
    "PlanSession",
    "PlanWeek",
    "TaperInputs",
    "WeekSkeleton",
    "SessionIntensity",
    "SessionOrigin",
    "SessionPriority",
    "SessionRole",
    "SessionType",
    "TrainingDay",
    "TrainingSession",
    "TrainingWeek",
    "GuardedResult",
    "GuardMode",
    "ValidationWarning",
    "WarningCode",
    "ConflictSummary",
    "DayResolution",
    "SessionConflict",
    "WeekResolution",
    "AdaptationState",
    "WeeklyRunRequest",
    "WeeklyRunResponse",
]
