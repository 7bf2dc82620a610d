"""
ACWR zone schemas.

Zones are *risk buckets*, not diagnoses:

- ``underload``    : ACWR < lower bound (default 0.8)
- ``sweet-spot``   : lower <= ACWR <= upper (default 1.3)
- ``caution``      : upper < ACWR <= 1.5
- ``high-risk``    : 1.5 < ACWR <= 1.8
- ``extreme-risk`` : ACWR > 1.8
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ACWRZone(str, Enum):
    UNDERLOAD = "underload"
    SWEET_SPOT = "sweet-spot"
    CAUTION = "caution"
    HIGH_RISK = "high-risk"
    EXTREME_RISK = "extreme-risk"


class Trend(str, Enum):
    RISING = "rising"
    STABLE = "stable"
    FALLING = "falling"


class ZoneBounds(BaseModel):
    """Personalised sweet-spot bounds (defaults 0.8 / 1.3)."""

    lower: Optional[float] = Field(None, description="Lower sweet-spot bound (default 0.8)")
    upper: Optional[float] = Field(None, description="Upper sweet-spot bound (default 1.3)")


class SustainabilityAssessment(BaseModel):
    is_sustainable: bool
    reason: str


class ZoneAssessment(BaseModel):
    """Zone, trend and coaching copy for one ACWR reading."""

    acwr: Optional[float] = Field(None, description="ACWR ratio (None if insufficient history)")
    zone: ACWRZone
    trend: Trend
    feedback: str = Field(..., description="Human-readable interpretation of the current value")
    recommendation: str = Field(..., description="Suggested action given zone and trend")
    sustainability: SustainabilityAssessment


class ZoneRequest(BaseModel):
    acwr: Optional[float] = None
    history: list[float] = Field(default_factory=list, description="Previous ACWR values, oldest first")
    weekly_km: float = Field(0.0, description="Distance of the week the ACWR refers to")
    bounds: ZoneBounds = Field(default_factory=ZoneBounds)


class TrendRequest(BaseModel):
    values: list[float] = Field(default_factory=list, description="ACWR series, oldest first")


class TrendResponse(BaseModel):
    trend: Trend
    sustainability: SustainabilityAssessment
