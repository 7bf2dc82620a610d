"""
Weekly fatigue / load reasoner.

Combines recent activity signals (sleep, HRV, RPE), the planned load spike,
health state and race proximity into a single fatigue score in [0, 1],
then derives plan adjustments and one learning step on the signal weights.
Lessons from past races can deepen the taper cut and switch on heat, hill
or fueling preparation.

Scoring
-------

Each signal contributes its weight when it crosses a fixed threshold::

    raw = [sleep < 7]·w.sleep + [hrv < 50]·w.hrv + [rpe > 6]·w.rpe
        + [acwr > 1.2]·0.5 + sickness + race_factor·w.race_proximity

    fatigue = clamp(raw / 4, 0, 1)

Recent post-run feedback (last 7 days) can add at most 0.15 on top.

Weight learning
---------------

An *outcome score* in [-1, 1] blends completion and perceived effort.
Every weight moves 10% toward it and is clamped to [0.2, 1.0].  The input
weights are never mutated: the caller persists ``updated_weights``.
"""

from __future__ import annotations

import datetime
from typing import Optional, Sequence

from app.core.logging_config import get_logger
from app.core.numeric import (clamp, mean, require_all_non_negative, require_finite, require_non_negative,
                              round_half_up, )
from app.schemas.activity import Activity, HealthState, RunFeedback
from app.schemas.reasoning import (LESSON_FUELING_FOCUS, LESSON_HEAT_ACCLIMATION, LESSON_HILLS_SPECIFICITY,
                                   LESSON_TAPER_BIAS_UP, WEIGHT_MAX, WEIGHT_MIN, Adjustments, FeedbackBias, RaceLesson,
                                   Reasoning, ReasoningDebug, WeeklyReasoningInput, Weights, )

logger = get_logger(__name__)

# ======================================================================
# Thresholds
# ======================================================================

# Neutral values used when a signal is missing on an activity.
_DEFAULT_SLEEP = 7.0
_DEFAULT_HRV = 60.0
_DEFAULT_RPE = 5.0

_SLEEP_THRESHOLD = 7.0
_HRV_THRESHOLD = 50.0
_RPE_THRESHOLD = 6.0
_ACWR_SPIKE = 1.2
_ACWR_SPIKE_WEIGHT = 0.5
_RAW_DIVISOR = 4.0
_RACE_HORIZON_WEEKS = 12.0

_SICKNESS_IMPACT: dict[HealthState, float] = { HealthState.SICK: 1.0, HealthState.RETURNING: 0.5,
                                               HealthState.OK: 0.0, }

_HIGH_FATIGUE = 0.7
_LOW_FATIGUE = 0.3
_BASE_QUALITY_SESSIONS = 2

_FEEDBACK_WINDOW_DAYS = 7
_MAX_FEEDBACK_BUMP = 0.15

_WEIGHT_PRIOR = 0.9
_WEIGHT_UPDATE = 0.1

_BASE_TAPER_CUT = 0.2
_TAPER_LESSON_SCALE = 0.2


# ======================================================================
# Helpers
# ======================================================================


def compute_acwr(last_4_weeks_km: Sequence[float], this_week_km: float) -> float:
    """Planned-week ACWR rounded to two decimals (chronic defaults to 1)."""
    chronic = mean(last_4_weeks_km) or 1.0
    return round_half_up(this_week_km / chronic, 2)


def feedback_bias(feedback: Sequence[RunFeedback], as_of: Optional[datetime.date] = None) -> FeedbackBias:
    """Fatigue bump and quality cap from the last seven days of feedback.

    Without *as_of* the window ends on the most recent feedback entry.
    """
    if not feedback:
        return FeedbackBias()

    anchor = as_of or max(f.date for f in feedback)
    recent = [f for f in feedback if 0 <= (anchor - f.date).days <= _FEEDBACK_WINDOW_DAYS]
    if not recent:
        return FeedbackBias()

    avg_rpe = mean([f.rpe for f in recent])
    avg_soreness = mean([f.soreness for f in recent])
    bump = min(_MAX_FEEDBACK_BUMP, max(0.0, avg_rpe - 6) * 0.02 + max(0.0, avg_soreness - 5) * 0.02)
    cap = 1 if avg_rpe >= 7 or avg_soreness >= 6 else None
    return FeedbackBias(fatigue_bump=bump, quality_cap=cap)


def _completion(activities: Sequence[Activity]) -> float:
    def score(activity: Activity) -> float:
        # Zero distance counts as "not logged"
        return 1.0 if activity.distance_km else 0.7

    return mean([score(a) for a in activities])


def outcome_score(activities: Sequence[Activity], rpe_avg: float) -> float:
    perceived = (10 - (rpe_avg or _DEFAULT_RPE)) / 10
    return clamp((_completion(activities) * 0.6 + perceived * 0.4) * 2 - 1, -1.0, 1.0)


def update_weights(weights: Weights, outcome: float) -> Weights:
    """Return new weights moved 10% toward *outcome*."""

    def bump(old: float) -> float:
        return clamp(old * _WEIGHT_PRIOR + outcome * _WEIGHT_UPDATE, WEIGHT_MIN, WEIGHT_MAX)

    return Weights(sleep=bump(weights.sleep), hrv=bump(weights.hrv), rpe=bump(weights.rpe),
                   race_proximity=bump(weights.race_proximity), )


def _adjustments(fatigue: float, quality_cap: Optional[int]) -> tuple[Adjustments, str]:
    quality = _BASE_QUALITY_SESSIONS if quality_cap is None else min(_BASE_QUALITY_SESSIONS, quality_cap)
    if fatigue > _HIGH_FATIGUE:
        return (Adjustments(volume_cut_pct=20, intensity_down=True, add_rest_day=True, quality_sessions=quality),
                "High fatigue detected (sleep/HRV/RPE signals). Reducing volume to protect adaptation.")
    if fatigue < _LOW_FATIGUE:
        return (Adjustments(volume_boost_pct=10, add_hill_session=True, quality_sessions=quality),
                "Strong readiness (recovery looks good). Safe to add specificity.")
    return (Adjustments(quality_sessions=quality),
            "Balanced state; maintain plan and bias toward specificity near race.")


def _lesson_weight(lessons: Sequence[RaceLesson], key: str) -> float:
    return next((lesson.weight for lesson in lessons if lesson.key == key), 0.0)


def apply_race_lessons(adjustments: Adjustments, lessons: Sequence[RaceLesson]) -> Adjustments:
    """Bias *adjustments* with lessons from past races.

    A ``taper_bias_up`` lesson deepens the taper cut (base 20%) by a fifth of
    its weight and adds it to ``volume_cut_pct``; the other known lessons
    switch on their preparation flag.  Unknown keys are ignored.
    """
    update = {}
    taper_up = _lesson_weight(lessons, LESSON_TAPER_BIAS_UP)
    if taper_up > 0:
        taper_cut = clamp(_BASE_TAPER_CUT + round_half_up(taper_up, 2) * _TAPER_LESSON_SCALE, 0.0, 1.0)
        update["taper_cut_pct"] = round_half_up(taper_cut, 4)
        update["volume_cut_pct"] = round_half_up((adjustments.volume_cut_pct or 0) + taper_cut * 100, 2)
    if _lesson_weight(lessons, LESSON_HEAT_ACCLIMATION) > 0:
        update["heat_prep"] = True
    if _lesson_weight(lessons, LESSON_HILLS_SPECIFICITY) > 0:
        update["hills_specificity"] = True
    if _lesson_weight(lessons, LESSON_FUELING_FOCUS) > 0:
        update["fueling_rehearsal"] = True
    return adjustments.model_copy(update=update)


# ======================================================================
# Main entry point
# ======================================================================


def reason_weekly(inputs: WeeklyReasoningInput) -> Reasoning:
    """Score this week's fatigue and learn one step on the weights.

    Deterministic: identical inputs always produce identical output.
    """
    activities = [a.validate_numbers() for a in inputs.recent_activities]
    last_4 = require_all_non_negative("last_4_weeks_km", inputs.last_4_weeks_km)
    planned = require_non_negative("this_week_planned_km", inputs.this_week_planned_km)
    race = inputs.active_race
    if race:
        race_weeks = max(0.0, require_finite("active_race.weeks_to", race.weeks_to))
    else:
        race_weeks = require_non_negative("race_proximity_weeks", inputs.race_proximity_weeks)

    # 1. Signal averages (neutral defaults for missing values / no activities)
    if activities:
        sleep_avg = mean([a.sleep_hours if a.sleep_hours is not None else _DEFAULT_SLEEP for a in activities])
        hrv_avg = mean([a.hrv if a.hrv is not None else _DEFAULT_HRV for a in activities])
        rpe_avg = mean([a.rpe if a.rpe is not None else _DEFAULT_RPE for a in activities])
    else:
        sleep_avg, hrv_avg, rpe_avg = _DEFAULT_SLEEP, _DEFAULT_HRV, _DEFAULT_RPE

    acwr = compute_acwr(last_4, planned)
    race_factor = max(0.0, 1 - race_weeks / _RACE_HORIZON_WEEKS)
    weights = inputs.weights

    # 2. Raw score
    raw = ((sleep_avg < _SLEEP_THRESHOLD) * weights.sleep
           + (hrv_avg < _HRV_THRESHOLD) * weights.hrv
           + (rpe_avg > _RPE_THRESHOLD) * weights.rpe
           + (acwr > _ACWR_SPIKE) * _ACWR_SPIKE_WEIGHT
           + _SICKNESS_IMPACT[inputs.health]
           + race_factor * weights.race_proximity)
    fatigue = clamp(raw / _RAW_DIVISOR, 0.0, 1.0)

    # 3. Feedback bias
    bias = feedback_bias(inputs.feedback, inputs.as_of)
    fatigue = clamp(fatigue + bias.fatigue_bump, 0.0, 1.0)

    # 4. Adjustments, then the race-lesson bias
    adjustments, reason = _adjustments(fatigue, bias.quality_cap)
    adjustments = apply_race_lessons(adjustments, inputs.lessons)

    # 5. Outcome → weight update
    outcome = outcome_score(activities, rpe_avg)
    updated = update_weights(weights, outcome)

    logger.debug("Weekly reasoning complete",
                 extra={ "ctx_fatigue": round(fatigue, 3), "ctx_acwr": acwr, "ctx_outcome": round(outcome, 3),
                         "ctx_health": inputs.health.value, })

    return Reasoning(fatigue_score=fatigue, updated_weights=updated, adjustments=adjustments, reason=reason,
                     debug=ReasoningDebug(sleep_avg=sleep_avg, hrv_avg=hrv_avg, rpe_avg=rpe_avg, acwr=acwr,
                                          race_weeks=race_weeks if race else None, raw_score=raw,
                                          feedback_bump=bias.fatigue_bump, outcome_score=outcome,
                                          lessons=[lesson.summary for lesson in inputs.lessons], ), )
