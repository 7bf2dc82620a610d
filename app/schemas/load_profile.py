"""
5-dimension session load profile.

Every training session contributes load across five independent systems:

- Cardiovascular: heart-rate stress, duration
- Muscular: strength / eccentric load
- Neuromuscular: coordination, high-speed work
- Thermal: heat / cold stress
- Mechanical: impact, ground contact forces

A single session's profile is normalised 0.0–1.0 per dimension.  Day and
week totals are sums of session profiles and are therefore unclamped
(:class:`LoadTotals`).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

LOAD_DIMENSIONS = ["cardiovascular", "muscular", "neuromuscular", "thermal", "mechanical", ]


class LoadProfile(BaseModel):
    """Per-session load profile.  Values normalised 0.0–1.0."""

    model_config = ConfigDict(frozen=True)

    cardiovascular: float = Field(0.0, ge=0.0, le=1.0, description="HR stress, duration")
    muscular: float = Field(0.0, ge=0.0, le=1.0, description="Strength / eccentric load")
    neuromuscular: float = Field(0.0, ge=0.0, le=1.0, description="Coordination, high-speed work")
    thermal: float = Field(0.0, ge=0.0, le=1.0, description="Heat / cold stress")
    mechanical: float = Field(0.0, ge=0.0, le=1.0, description="Impact, ground contact forces")

    # ------------------------------------------------------------------
    # Arithmetic helpers
    # ------------------------------------------------------------------

    def scaled(self, factor: float) -> LoadProfile:
        """Return a new profile with all components multiplied by *factor*.

        Components are clamped to [0.0, 1.0].
        """
        return LoadProfile(**{ name: min(max(getattr(self, name) * factor, 0.0), 1.0) for name in LOAD_DIMENSIONS })

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    def as_dict(self) -> dict[str, float]:
        return { name: getattr(self, name) for name in LOAD_DIMENSIONS }

    def magnitude(self) -> float:
        """Sum of all five dimensions.  Used to rank sessions by load."""
        return sum(self.as_dict().values())


class LoadTotals(BaseModel):
    """Unclamped version of :class:`LoadProfile` used for accumulated
    day and week loads.  Individual dimensions **can** exceed 1.0.
    """

    cardiovascular: float = Field(0.0, ge=0.0)
    muscular: float = Field(0.0, ge=0.0)
    neuromuscular: float = Field(0.0, ge=0.0)
    thermal: float = Field(0.0, ge=0.0)
    mechanical: float = Field(0.0, ge=0.0)

    def add(self, other: LoadProfile | LoadTotals) -> LoadTotals:
        """Element-wise addition (for day / week accumulation)."""
        return LoadTotals(**{ name: getattr(self, name) + getattr(other, name) for name in LOAD_DIMENSIONS })

    def as_dict(self) -> dict[str, float]:
        return { name: getattr(self, name) for name in LOAD_DIMENSIONS }

    @classmethod
    def zero(cls) -> LoadTotals:
        return cls()

    @classmethod
    def sum_of(cls, profiles: list[LoadProfile] | list[LoadTotals]) -> LoadTotals:
        total = cls.zero()
        for profile in profiles:
            total = total.add(profile)
        return total


class DailyLoadBudget(BaseModel):
    """Per-dimension ceiling on a day's accumulated load."""

    cardiovascular: float = Field(1.0, gt=0.0)
    muscular: float = Field(1.0, gt=0.0)
    neuromuscular: float = Field(1.0, gt=0.0)
    thermal: float = Field(1.0, gt=0.0)
    mechanical: float = Field(1.0, gt=0.0)

    def exceeded(self, totals: LoadTotals, tolerance: float = 1e-9) -> dict[str, float]:
        """Return ``{dimension: excess}`` for every dimension over budget."""
        return { name: getattr(totals, name) - getattr(self, name) for name in LOAD_DIMENSIONS if
                 getattr(totals, name) > getattr(self, name) + tolerance }
