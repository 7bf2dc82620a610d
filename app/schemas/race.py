"""Race context supplied by the caller's race registry."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class RacePriority(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class RaceSurface(str, Enum):
    ROAD = "road"
    TRAIL = "trail"
    TRACK = "track"


class ActiveRace(BaseModel):
    name: str = "Race"
    priority: RacePriority = RacePriority.B
    weeks_to: int = Field(..., description="Weeks until race day (negative once it has passed)")
    surface: Optional[RaceSurface] = None
