"""
Weekly reasoning schemas.

:class:`Weights` is the only learned state of the reasoner.  It is handed
in by the caller and a new instance comes back with every run.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.activity import Activity, HealthState, RunFeedback
from app.schemas.race import ActiveRace

WEIGHT_MIN = 0.2
WEIGHT_MAX = 1.0


class Weights(BaseModel):
    """Signal coefficients of the fatigue score, each in [0.2, 1.0]."""

    model_config = ConfigDict(frozen=True)

    sleep: float = Field(0.8, ge=WEIGHT_MIN, le=WEIGHT_MAX)
    hrv: float = Field(0.7, ge=WEIGHT_MIN, le=WEIGHT_MAX)
    rpe: float = Field(0.6, ge=WEIGHT_MIN, le=WEIGHT_MAX)
    race_proximity: float = Field(0.9, ge=WEIGHT_MIN, le=WEIGHT_MAX)


DEFAULT_WEIGHTS = Weights()


# Lesson keys that bias the plan adjustments
LESSON_TAPER_BIAS_UP = "taper_bias_up"
LESSON_HEAT_ACCLIMATION = "heat_acclimation"
LESSON_HILLS_SPECIFICITY = "hills_specificity"
LESSON_FUELING_FOCUS = "fueling_focus"


class RaceLesson(BaseModel):
    """A lesson learned from past race feedback."""

    key: str = Field(..., description="e.g. 'taper_bias_up', 'heat_acclimation'")
    weight: float = Field(0.0, ge=0.0, le=1.0, description="Strength of the lesson; 0 disables it")
    summary: str = ""


class WeeklyReasoningInput(BaseModel):
    recent_activities: list[Activity] = Field(default_factory=list)
    health: HealthState = HealthState.OK
    weights: Weights = Field(default_factory=Weights)
    race_proximity_weeks: float = Field(8, description="Used when no active race is given")
    last_4_weeks_km: list[float] = Field(default_factory=list)
    this_week_planned_km: float = 0.0
    active_race: Optional[ActiveRace] = None
    feedback: list[RunFeedback] = Field(default_factory=list, description="Post-run feedback entries")
    as_of: Optional[datetime.date] = Field(None, description="Reference date for the 7-day feedback window")
    lessons: list[RaceLesson] = Field(default_factory=list, description="Race lessons biasing the adjustments")


class Adjustments(BaseModel):
    """Plan adjustments suggested by the fatigue score.

    Unset fields mean "no change".
    """

    volume_cut_pct: Optional[float] = None
    intensity_down: bool = False
    add_rest_day: bool = False
    volume_boost_pct: Optional[float] = None
    add_hill_session: bool = False
    quality_sessions: int = Field(2, ge=0, description="Quality sessions allowed this week")
    taper_cut_pct: Optional[float] = Field(None, ge=0.0, le=1.0, description="Extra taper cut from race lessons")
    heat_prep: bool = False
    hills_specificity: bool = False
    fueling_rehearsal: bool = False


class FeedbackBias(BaseModel):
    fatigue_bump: float = 0.0
    quality_cap: Optional[int] = None


class ReasoningDebug(BaseModel):
    sleep_avg: float
    hrv_avg: float
    rpe_avg: float
    acwr: float
    race_weeks: Optional[float] = None
    raw_score: float
    feedback_bump: float = 0.0
    outcome_score: float
    lessons: list[str] = Field(default_factory=list, description="Summaries of the lessons applied")


class Reasoning(BaseModel):
    fatigue_score: float = Field(..., ge=0.0, le=1.0)
    updated_weights: Weights
    adjustments: Adjustments
    reason: str
    debug: ReasoningDebug
