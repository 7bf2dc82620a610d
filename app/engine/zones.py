"""
ACWR zone classification and trend direction.

The ACWR is an *attention signal* on load context.  The classifier maps a
single ratio onto one of five risk buckets; only the sweet-spot bounds are
personalisable, the 1.5 and 1.8 breakpoints are fixed.

All functions here are pure.  Insufficient data never raises: a missing
ACWR classifies as ``sweet-spot`` and a short series trends ``stable``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from app.core.errors import InvalidInputError
from app.core.logging_config import get_logger
from app.core.numeric import mean, pstdev, require_finite, require_non_negative
from app.schemas.zones import (ACWRZone, SustainabilityAssessment, Trend, ZoneAssessment, ZoneBounds, )

logger = get_logger(__name__)

DEFAULT_LOWER_BOUND = 0.8
DEFAULT_UPPER_BOUND = 1.3

# ======================================================================
# Breakpoint tables
# ======================================================================

# Fixed upper breakpoints above the personalised sweet-spot.  Each entry is
# (zone, inclusive upper limit); anything above the last limit is extreme.
_FIXED_BREAKPOINTS: list[tuple[ACWRZone, float]] = [(ACWRZone.CAUTION, 1.5), (ACWRZone.HIGH_RISK, 1.8), ]

_TREND_WINDOW = 4
_TREND_THRESHOLD = 0.15

_SUSTAINABILITY_WINDOW = 3
_SUSTAINED_SPIKE_VALUE = 1.5
_SUSTAINED_SPIKE_WEEKS = 2
_MAX_VOLATILITY = 0.35


def classify_zone(acwr: Optional[float], lower_bound: Optional[float] = None,
                  upper_bound: Optional[float] = None, ) -> ACWRZone:
    """Map an ACWR value onto its risk zone.

    ``acwr == upper_bound`` is still ``sweet-spot``; every real value lands
    in exactly one zone.
    """
    lower = DEFAULT_LOWER_BOUND if lower_bound is None else require_non_negative("lower_bound", lower_bound)
    upper = DEFAULT_UPPER_BOUND if upper_bound is None else require_non_negative("upper_bound", upper_bound)
    if lower > upper:
        raise InvalidInputError("lower_bound", lower, f"must not exceed upper_bound {upper}")

    if acwr is None:
        return ACWRZone.SWEET_SPOT
    require_non_negative("acwr", acwr)

    if acwr < lower:
        return ACWRZone.UNDERLOAD
    if acwr <= upper:
        return ACWRZone.SWEET_SPOT
    for zone, limit in _FIXED_BREAKPOINTS:
        if acwr <= limit:
            return zone
    return ACWRZone.EXTREME_RISK


def trend_direction(values: Sequence[float]) -> Trend:
    """Compare the mean of the last two values with the two before them."""
    if len(values) < _TREND_WINDOW:
        return Trend.STABLE

    window = [require_finite(f"values[{i}]", v) for i, v in enumerate(values[-_TREND_WINDOW:])]
    difference = mean(window[2:]) - mean(window[:2])

    if difference > _TREND_THRESHOLD:
        return Trend.RISING
    if difference < -_TREND_THRESHOLD:
        return Trend.FALLING
    return Trend.STABLE


# ======================================================================
# Sustainability and trail-adjusted ratio
# ======================================================================


def assess_sustainability(values: Sequence[float]) -> SustainabilityAssessment:
    if len(values) < _SUSTAINABILITY_WINDOW:
        return SustainabilityAssessment(is_sustainable=True, reason="Insufficient data to assess pattern.")

    recent = list(values[-_SUSTAINABILITY_WINDOW:])
    if sum(1 for v in recent if v > _SUSTAINED_SPIKE_VALUE) >= _SUSTAINED_SPIKE_WEEKS:
        return SustainabilityAssessment(is_sustainable=False, reason=(
            "You have sustained high ACWR (>1.5) for multiple weeks. This pattern significantly "
            "increases injury risk and may lead to overtraining."), )

    if pstdev(recent) > _MAX_VOLATILITY:
        return SustainabilityAssessment(is_sustainable=False, reason=(
            "Your training load is fluctuating significantly week-to-week. More consistent "
            "progression reduces injury risk."), )

    return SustainabilityAssessment(is_sustainable=True, reason="Your load progression pattern appears sustainable.")


def acwr_with_trail_load(acute_km: float, chronic_km: float, acute_vertical_m: float = 0.0,
                         chronic_vertical_m: float = 0.0, vertical_to_km_ratio: float = 100.0, ) -> float:
    """ACWR on combined load, counting every ``vertical_to_km_ratio`` metres of
    climbing as one extra kilometre.  Returns 0 without chronic load.
    """
    for name, value in (("acute_km", acute_km), ("chronic_km", chronic_km), ("acute_vertical_m", acute_vertical_m),
                        ("chronic_vertical_m", chronic_vertical_m), ):
        require_non_negative(name, value)
    if not vertical_to_km_ratio or vertical_to_km_ratio <= 0:
        raise InvalidInputError("vertical_to_km_ratio", vertical_to_km_ratio, "must be positive")

    acute = acute_km + acute_vertical_m / vertical_to_km_ratio
    chronic = chronic_km + chronic_vertical_m / vertical_to_km_ratio
    if chronic == 0:
        return 0.0
    return acute / chronic


# ======================================================================
# Coaching copy
# ======================================================================


def zone_feedback(acwr: float, zone: ACWRZone, weekly_km: float) -> str:
    ratio = f"{acwr:.2f}"
    km = f"{weekly_km:.1f}"
    if zone == ACWRZone.UNDERLOAD:
        return (f"Your ACWR is {ratio}, indicating a recovery or deload week ({km} km). This is good for "
                f"regeneration, but extended periods below 0.8 may lead to detraining. Consider gradually "
                f"increasing volume if this wasn't planned.")
    if zone == ACWRZone.SWEET_SPOT:
        return (f"Your ACWR is {ratio}, within the optimal zone. Your current load ({km} km) promotes "
                f"adaptation while minimizing injury risk. Continue your progressive training approach.")
    if zone == ACWRZone.CAUTION:
        return (f"Your ACWR is {ratio}, slightly elevated at {km} km this week. Monitor fatigue levels closely "
                f"and ensure you're prioritizing recovery (sleep, nutrition, easy runs). Occasional spikes are "
                f"okay, but avoid sustaining this level for multiple consecutive weeks.")
    if zone == ACWRZone.HIGH_RISK:
        return (f"Your ACWR is {ratio}, a significant load spike ({km} km). This zone substantially increases "
                f"injury risk. Consider reducing your planned volume by 15-20% or adding an extra rest day this "
                f"week. Focus on easy-pace runs and active recovery.")
    return (f"Your ACWR is {ratio}, an extreme load increase ({km} km) that rarely occurs in well-managed "
            f"training. This level poses very high injury and illness risk. Cut volume immediately, take extra "
            f"rest days, and consult a coach or sports medicine professional if you have any pain or excessive "
            f"fatigue.")


def zone_recommendation(zone: ACWRZone, trend: Trend) -> str:
    if zone == ACWRZone.UNDERLOAD:
        if trend == Trend.FALLING:
            return "Consider adding 1-2 additional runs or extending existing runs by 10-15% to maintain fitness."
        return "Gradual volume increases of 5-10% per week are safe for progression."
    if zone == ACWRZone.SWEET_SPOT:
        if trend == Trend.RISING:
            return "Your progression is well-managed. Maintain this approach while monitoring recovery."
        return "Continue current training load. Consider adding a quality session if feeling strong."
    if zone == ACWRZone.CAUTION:
        if trend == Trend.RISING:
            return "Load is increasing too quickly. Cap this week at current volume and add extra recovery time."
        return "Hold current volume steady for 1-2 weeks before further increases. Focus on recovery quality."
    return ("Immediate action required: reduce planned volume by 20-30%, add rest days, and prioritize sleep and "
            "nutrition. Resume progression only after 1-2 weeks of lower, stable load.")


def assess_zone(acwr: Optional[float], history: Sequence[float] = (), weekly_km: float = 0.0,
                bounds: Optional[ZoneBounds] = None, ) -> ZoneAssessment:
    """Bundle zone, trend, copy and sustainability for one reading.

    *history* holds the previous ACWR values, oldest first; the current
    value is appended before trend and sustainability are evaluated.
    """
    bounds = bounds or ZoneBounds()
    zone = classify_zone(acwr, bounds.lower, bounds.upper)
    series = list(history) + ([acwr] if acwr is not None else [])
    trend = trend_direction(series)

    if acwr is None:
        feedback = "Not enough training history to compute an ACWR yet."
    else:
        feedback = zone_feedback(acwr, zone, require_non_negative("weekly_km", weekly_km))

    logger.debug("Zone assessed", extra={ "ctx_acwr": acwr, "ctx_zone": zone.value, "ctx_trend": trend.value })
    return ZoneAssessment(acwr=acwr, zone=zone, trend=trend, feedback=feedback,
                          recommendation=zone_recommendation(zone, trend),
                          sustainability=assess_sustainability(series), )
