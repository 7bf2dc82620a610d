"""
Activity and feedback schemas.

An :class:`Activity` is one logged run.  Activities are created by import
or manual entry upstream and are only ever *read* by the engine.

Numeric sanity (negative distances, NaN) is checked by the engine entry
points so that it surfaces as :class:`~app.core.errors.InvalidInputError`
rather than as a schema error.
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.numeric import require_optional_non_negative


class HealthState(str, Enum):
    """Self-reported health signal carried across weekly runs."""
    OK = "ok"
    RETURNING = "returning"
    SICK = "sick"


class Activity(BaseModel):
    """One logged run.  Immutable once created."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    distance_km: Optional[float] = Field(None, description="Distance run (None if not recorded)")
    duration_min: Optional[float] = Field(None, description="Moving time in minutes")
    rpe: Optional[float] = Field(None, ge=1, le=10, description="Session RPE (1-10)")
    sleep_hours: Optional[float] = Field(None, description="Sleep the night before")
    hrv: Optional[float] = Field(None, description="Morning HRV (ms)")
    hr_avg: Optional[float] = Field(None, description="Average heart rate (bpm)")
    elevation_gain_m: Optional[float] = Field(None, description="Positive elevation gain (m)")

    def validate_numbers(self) -> "Activity":
        """Raise ``InvalidInputError`` on negative or NaN measurements."""
        for name in ("distance_km", "duration_min", "sleep_hours", "hrv", "hr_avg", "elevation_gain_m"):
            require_optional_non_negative(f"activity.{name}", getattr(self, name))
        return self

    @property
    def pace_min_per_km(self) -> Optional[float]:
        if not self.distance_km or not self.duration_min:
            return None
        return self.duration_min / self.distance_km


class RunFeedback(BaseModel):
    """Post-run feedback (perceived effort + soreness)."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    rpe: float = Field(0.0, ge=0, le=10)
    soreness: float = Field(0.0, ge=0, le=10)
