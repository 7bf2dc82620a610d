"""
Taper and weekly volume planner.

Turns a fatigue score and race context into a weekly km target, splits the
target into a long / mid / easy skeleton and fills a fixed Sunday-to-Saturday
template with prescriptive notes.

The taper tables are the specified behaviour, kept as literal data rather
than re-derived formulas.  All rounding is half-up (``22.5 -> 23``).
"""

from __future__ import annotations

import datetime
from typing import Optional

from app.core.errors import InvalidInputError
from app.core.logging_config import get_logger
from app.core.numeric import clamp, require_finite, require_non_negative, round_int
from app.schemas.plan import PlanDay, PlanSession, PlanWeek, TaperInputs, TargetKmResponse, WeekSkeleton
from app.schemas.race import RacePriority, RaceSurface

logger = get_logger(__name__)

# ======================================================================
# Tables
# ======================================================================

# (weeks-to-race key, multiplicative factor), highest key first.
TAPER_TABLES: dict[RacePriority, list[tuple[int, float]]] = {
    RacePriority.A: [(3, 0.85), (2, 0.80), (1, 0.70), (0, 0.55)],
    RacePriority.B: [(2, 0.85), (1, 0.75), (0, 0.60)],
    RacePriority.C: [(1, 0.90), (0, 0.70)],
}
_TAPER_HORIZON_WEEKS = 6

# (exclusive lower fatigue bound, scale); checked in order.
_FATIGUE_SCALE_HIGH: list[tuple[float, float]] = [(0.75, 0.80), (0.60, 0.90)]
_FATIGUE_SCALE_LOW = (0.25, 1.10)

_TRAIL_TRIM = 0.96

_MIN_CAP_RATIO = 0.45
_MAX_CAP_RATIO = 1.25
_ABSOLUTE_FLOOR_KM = 20
_MIN_CAP_SPAN_KM = 10

# Long-run cap by weeks-to-race; None and > 3 weeks keep the full long run.
_LONG_RUN_CAP: dict[int, float] = { 1: 0.60, 2: 0.75, 3: 0.85 }
_LONG_RUN_CAP_RACE_WEEK = 0.40

_LONG_SHARE = 0.28
_MID_SHARE_QUALITY = 0.16
_MID_SHARE_EASY = 0.14
_EASY_DAYS = 4
_MIN_LONG_KM = 10
_MIN_MID_KM = 6
_MIN_EASY_KM = 4
_SHAKE_OUT_KM = 4
_HIGH_FATIGUE = 0.70


# ======================================================================
# Factors
# ======================================================================


def taper_factor(weeks_to_race: Optional[int], priority: RacePriority) -> float:
    """Factor of the largest table key not above *weeks_to_race*.

    Outside the 6-week horizon, or with no key qualifying, returns 1.0.
    """
    if weeks_to_race is None or weeks_to_race > _TAPER_HORIZON_WEEKS:
        return 1.0
    for key, factor in TAPER_TABLES[RacePriority(priority)]:
        if key <= weeks_to_race:
            return factor
    return 1.0


def fatigue_scale(fatigue_score: float) -> float:
    for bound, scale in _FATIGUE_SCALE_HIGH:
        if fatigue_score > bound:
            return scale
    bound, scale = _FATIGUE_SCALE_LOW
    if fatigue_score < bound:
        return scale
    return 1.0


def trail_trim(surface: RaceSurface) -> float:
    return _TRAIL_TRIM if surface == RaceSurface.TRAIL else 1.0


def chronic_caps(chronic_km: float) -> tuple[int, int]:
    """Safety window ``(lower, upper)`` around the chronic load.

    The lower bound wins if it ever exceeds the upper bound.
    """
    min_cap = round_int(chronic_km * _MIN_CAP_RATIO)
    max_cap = round_int(chronic_km * _MAX_CAP_RATIO)
    return max(_ABSOLUTE_FLOOR_KM, min_cap), max(min_cap + _MIN_CAP_SPAN_KM, max_cap)


# ======================================================================
# Target km
# ======================================================================


def explain_target_km(inputs: TaperInputs) -> TargetKmResponse:
    """Compute the weekly target along with the factors that produced it."""
    base = require_non_negative("this_week_plan_km_base", inputs.this_week_plan_km_base)
    chronic = require_non_negative("chronic_km", inputs.chronic_km)
    fatigue = clamp(require_finite("fatigue_score", inputs.fatigue_score), 0.0, 1.0)
    if inputs.weeks_to_race is not None and inputs.weeks_to_race < 0:
        raise InvalidInputError("weeks_to_race", inputs.weeks_to_race)

    scale = fatigue_scale(fatigue)
    taper = taper_factor(inputs.weeks_to_race, inputs.priority)
    trim = trail_trim(inputs.surface)
    km = round_int(base * scale * taper * trim)

    if chronic > 0:
        lower, upper = chronic_caps(chronic)
        km = max(lower, min(upper, km))

    logger.debug("Target km computed",
                 extra={ "ctx_target_km": km, "ctx_fatigue_scale": scale, "ctx_taper": taper, "ctx_trim": trim,
                         "ctx_chronic_km": chronic, })
    return TargetKmResponse(target_km=km, fatigue_scale=scale, taper_factor=taper, trail_trim=trim)


def compute_target_km(inputs: TaperInputs) -> int:
    return explain_target_km(inputs).target_km


# ======================================================================
# Skeleton and plan week
# ======================================================================


def _long_run_cap(weeks_to_race: Optional[int]) -> float:
    if weeks_to_race is None:
        return 1.0
    if weeks_to_race <= 0:
        return _LONG_RUN_CAP_RACE_WEEK
    return _LONG_RUN_CAP.get(weeks_to_race, 1.0)


def build_week_skeleton(target_km: float, fatigue_score: float, weeks_to_race: Optional[int]) -> WeekSkeleton:
    """Split *target_km* into one long run, one mid session and four easy days."""
    require_non_negative("target_km", target_km)
    fatigue_score = clamp(require_finite("fatigue_score", fatigue_score), 0.0, 1.0)
    keep_quality = fatigue_score <= _HIGH_FATIGUE and (weeks_to_race is None or weeks_to_race > 0)

    long_km = max(_MIN_LONG_KM, round_int(round_int(target_km * _LONG_SHARE) * _long_run_cap(weeks_to_race)))
    mid_km = max(_MIN_MID_KM, round_int(target_km * (_MID_SHARE_QUALITY if keep_quality else _MID_SHARE_EASY)))
    ez_km = max(_MIN_EASY_KM, round_int(max(0.0, target_km - long_km - mid_km) / _EASY_DAYS))

    return WeekSkeleton(long_km=long_km, mid_km=mid_km, ez_km=ez_km, keep_quality=keep_quality)


def make_empty_week(start_date: datetime.date) -> PlanWeek:
    return PlanWeek(days=[PlanDay(date=start_date + datetime.timedelta(days=i)) for i in range(7)])


def _quality_note(weeks_to_race: Optional[int]) -> str:
    if weeks_to_race == 1:
        return "Short race-pace touches: 5–6 × 30–60″ with full recovery. WU/CD."
    return "Controlled tempo or short hill reps. RPE ≤ 7/10. WU/CD."


def _long_run_note(weeks_to_race: Optional[int]) -> str:
    if weeks_to_race is not None and weeks_to_race <= 3:
        if weeks_to_race <= 1:
            return "Shortened taper long-run. Relaxed. Fuel as on race day."
        return "Taper long-run. Keep it easy. Rehearse fueling."
    return "Time-on-feet. Add climbs if trail specific."


def build_plan_week(start_date: datetime.date, target_km: float, fatigue_score: float,
                    weeks_to_race: Optional[int]) -> PlanWeek:
    """Fill the fixed Sunday-to-Saturday template."""
    week = make_empty_week(start_date)
    sk = build_week_skeleton(target_km, fatigue_score, weeks_to_race)
    tired = fatigue_score > _HIGH_FATIGUE
    sunday, monday, tuesday, wednesday, thursday, friday, saturday = (day.sessions for day in week.days)

    sunday.append(PlanSession(title="Easy", km=sk.ez_km, notes="Z2. Strides optional."))

    if tired:
        monday.append(PlanSession(title="Rest / Mobility", notes="Light walk + mobility 15–20’"))
    else:
        monday.append(PlanSession(title="Easy", km=sk.ez_km, notes="Z2. Optional strides."))

    if sk.keep_quality:
        tuesday.append(PlanSession(title="Quality", km=sk.mid_km, notes=_quality_note(weeks_to_race)))
    else:
        tuesday.append(PlanSession(title="Easy", km=sk.ez_km, notes="Z2 only."))

    wednesday.append(PlanSession(title="Easy", km=sk.ez_km, notes="Z2. Cadence & form focus."))

    if sk.keep_quality:
        thursday.append(PlanSession(title="Moderate", km=sk.mid_km, notes="Progression to steady. Don’t force."))
    else:
        thursday.append(PlanSession(title="Easy", km=sk.ez_km, notes="Keep easy."))

    if tired:
        friday.append(PlanSession(title="Rest", notes="Extra recovery day."))
    else:
        friday.append(PlanSession(title="Shake-out", km=_SHAKE_OUT_KM, notes="Very easy with 4 × 20″ strides."))

    saturday.append(PlanSession(title="Long Run", km=sk.long_km, notes=_long_run_note(weeks_to_race)))

    logger.debug("Plan week built", extra={ "ctx_start": start_date.isoformat(), "ctx_target_km": target_km,
                                            "ctx_keep_quality": sk.keep_quality, })
    return week
