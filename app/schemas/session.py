"""
Multi-session training model.

Days are containers only: a :class:`TrainingDay` has no type of its own and
is never reduced to its first session.  Sessions are atomic and are never
merged.  Each carries a typed prescription, a 5-dimension load profile and
ownership metadata (``origin``, ``locked``) fixed at creation.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.schemas.load_profile import LoadProfile, LoadTotals

# Estimated running pace used when a run has a distance but no duration.
RUN_PACE_MIN_PER_KM = 6.0
# Duration assumed for a session that states neither duration nor distance.
DEFAULT_SESSION_MIN = 60.0


class SessionType(str, Enum):
    RUN = "RUN"
    STRENGTH = "STRENGTH"
    CORE = "CORE"
    HEAT = "HEAT"
    ALTITUDE = "ALTITUDE"
    MOBILITY = "MOBILITY"


class SessionRole(str, Enum):
    AEROBIC_DEVELOPMENT = "AEROBIC_DEVELOPMENT"
    MUSCULAR_ENDURANCE = "MUSCULAR_ENDURANCE"
    THERMOREGULATION = "THERMOREGULATION"
    RECOVERY_SUPPORT = "RECOVERY_SUPPORT"


class SessionPriority(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUPPORT = "support"


class SessionOrigin(str, Enum):
    """Authorities allowed to create sessions."""
    BASE_PLAN = "BASE_PLAN"
    USER = "USER"
    STRENGTH = "STRENGTH"
    HEAT = "HEAT"
    ALTITUDE = "ALTITUDE"
    ADAPTIVE = "ADAPTIVE"


class SessionIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ======================================================================
# Prescriptions (tagged on ``kind``)
# ======================================================================


def _scale(value: Optional[float], factor: float) -> Optional[float]:
    return None if value is None else round(value * factor, 2)


class RunPrescription(BaseModel):
    kind: Literal["run"] = "run"
    distance_km: Optional[float] = Field(None, ge=0)
    duration_min: Optional[float] = Field(None, ge=0)
    target_zone: Optional[str] = Field(None, description="e.g. 'Z2'")
    vertical_m: Optional[float] = Field(None, ge=0)

    def scaled(self, factor: float) -> RunPrescription:
        return self.model_copy(update={ "distance_km": _scale(self.distance_km, factor),
                                        "duration_min": _scale(self.duration_min, factor),
                                        "vertical_m": _scale(self.vertical_m, factor), })


class StrengthPrescription(BaseModel):
    kind: Literal["strength"] = "strength"
    exercises: list[str] = Field(default_factory=list)
    sets: int = Field(3, ge=0)
    reps: int = Field(10, ge=0)
    load_kg: Optional[float] = Field(None, ge=0)
    duration_min: Optional[float] = Field(None, ge=0)

    def scaled(self, factor: float) -> StrengthPrescription:
        sets = max(1, int(self.sets * factor + 0.5)) if self.sets else 0
        return self.model_copy(update={ "sets": sets, "duration_min": _scale(self.duration_min, factor) })


class HeatPrescription(BaseModel):
    kind: Literal["heat"] = "heat"
    duration_min: float = Field(30.0, ge=0)
    temperature_c: Optional[float] = None
    protocol: Optional[str] = Field(None, description="e.g. 'sauna', 'hot bath', 'overdressed run'")

    def scaled(self, factor: float) -> HeatPrescription:
        return self.model_copy(update={ "duration_min": _scale(self.duration_min, factor) })


class AltitudePrescription(BaseModel):
    kind: Literal["altitude"] = "altitude"
    duration_min: float = Field(60.0, ge=0)
    altitude_m: Optional[float] = Field(None, ge=0)

    def scaled(self, factor: float) -> AltitudePrescription:
        return self.model_copy(update={ "duration_min": _scale(self.duration_min, factor) })


class MobilityPrescription(BaseModel):
    kind: Literal["mobility"] = "mobility"
    duration_min: float = Field(20.0, ge=0)
    focus: Optional[str] = None

    def scaled(self, factor: float) -> MobilityPrescription:
        return self.model_copy(update={ "duration_min": _scale(self.duration_min, factor) })


Prescription = Annotated[Union[RunPrescription, StrengthPrescription, HeatPrescription, AltitudePrescription,
                               MobilityPrescription], Field(discriminator="kind"), ]

# Prescription kind each session type is expected to carry.
EXPECTED_PRESCRIPTION: dict[SessionType, str] = {
    SessionType.RUN: "run",
    SessionType.STRENGTH: "strength",
    SessionType.CORE: "strength",
    SessionType.HEAT: "heat",
    SessionType.ALTITUDE: "altitude",
    SessionType.MOBILITY: "mobility",
}


# ======================================================================
# Sessions, days, weeks
# ======================================================================


class TrainingSession(BaseModel):
    """Atomic schedulable unit.  Frozen: adaptation produces copies."""

    model_config = ConfigDict(frozen=True)

    id: str = Field("", description="Stable identity; never derived from position")
    type: SessionType
    role: SessionRole
    priority: SessionPriority
    load_profile: LoadProfile = Field(default_factory=LoadProfile)
    prescription: Prescription
    origin: SessionOrigin
    locked: bool = False
    lock_reason: Optional[str] = None
    intensity: SessionIntensity = SessionIntensity.MEDIUM
    title: Optional[str] = None
    notes: Optional[str] = None

    @property
    def distance_km(self) -> float:
        if isinstance(self.prescription, RunPrescription):
            return self.prescription.distance_km or 0.0
        return 0.0

    @property
    def duration_min(self) -> float:
        if self.prescription.duration_min is not None:
            return self.prescription.duration_min
        if self.distance_km:
            return self.distance_km * RUN_PACE_MIN_PER_KM
        return DEFAULT_SESSION_MIN

    @property
    def is_hard(self) -> bool:
        return self.intensity == SessionIntensity.HIGH

    @property
    def is_protected(self) -> bool:
        """Sessions the adaptive engine may never delete."""
        return self.origin != SessionOrigin.ADAPTIVE or self.locked or self.priority == SessionPriority.PRIMARY


class TrainingDay(BaseModel):
    date: datetime.date
    sessions: list[TrainingSession] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_load(self) -> LoadTotals:
        return LoadTotals.sum_of([s.load_profile for s in self.sessions])

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_distance_km(self) -> float:
        return round(sum(s.distance_km for s in self.sessions), 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration_min(self) -> float:
        return round(sum(s.duration_min for s in self.sessions), 2)

    def session_ids(self) -> list[str]:
        return [s.id for s in self.sessions]

    def find(self, session_id: str) -> Optional[TrainingSession]:
        return next((s for s in self.sessions if s.id == session_id), None)


class TrainingWeek(BaseModel):
    days: list[TrainingDay] = Field(..., min_length=7, max_length=7)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def start_date(self) -> datetime.date:
        return self.days[0].date

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_load(self) -> LoadTotals:
        return LoadTotals.sum_of([d.total_load for d in self.days])

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_distance_km(self) -> float:
        return round(sum(d.total_distance_km for d in self.days), 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_duration_min(self) -> float:
        return round(sum(d.total_duration_min for d in self.days), 2)

    @property
    def session_count(self) -> int:
        return sum(len(d.sessions) for d in self.days)


# ======================================================================
# Adaptation records
# ======================================================================


class SessionAdaptation(BaseModel):
    session_id: str
    original_prescription: Prescription
    adapted_prescription: Prescription
    scale_factor: float
    reason: str
    factors: list[str] = Field(default_factory=list, description="Dimensions that drove the change")


class DayAdaptation(BaseModel):
    date: datetime.date
    session_adaptations: list[SessionAdaptation] = Field(default_factory=list)
    conflicts_resolved: list[str] = Field(default_factory=list)
    sessions_removed: list[str] = Field(default_factory=list, description="Only ever ADAPTIVE-origin ids")
    over_budget_after: list[str] = Field(default_factory=list, description="Dimensions still over budget")
