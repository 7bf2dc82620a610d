"""
Adaptation state and the weekly adaptive pipeline.

``run_weekly_adaptation`` runs at most once per ISO week per state: the
state's ``last_run_week`` key is compared with the week of ``as_of``.  This
is a last-write-wins idempotency marker, not a lock: two callers that read
the same state concurrently can both run the week.

Pipeline::

    reason_weekly -> compute_target_km -> build_week_skeleton
        -> build_plan_week -> sessions_from_plan_week -> merge_sessions
        -> resolve_week
"""

from __future__ import annotations

import datetime

from app.core.logging_config import get_logger
from app.engine.metrics import chronic_km, iso_week_key, weekly_km_series
from app.engine.ownership import DEFAULT_CONFIG, ResolverConfig, resolve_week
from app.engine.reasoner import reason_weekly
from app.engine.sessions import merge_sessions, sessions_from_plan_week
from app.engine.taper import build_plan_week, build_week_skeleton, explain_target_km
from app.schemas.adaptation import AdaptationState, WeeklyRunRequest, WeeklyRunResponse
from app.schemas.plan import TaperInputs
from app.schemas.race import RacePriority
from app.schemas.reasoning import WeeklyReasoningInput

logger = get_logger(__name__)

DEFAULT_RACE_PROXIMITY_WEEKS = 8


def has_run_for_week(state: AdaptationState, as_of: datetime.date) -> bool:
    return state.last_run_week == iso_week_key(as_of)


def mark_week(state: AdaptationState, as_of: datetime.date) -> AdaptationState:
    return state.model_copy(update={ "last_run_week": iso_week_key(as_of) })


def plan_week_start(as_of: datetime.date) -> datetime.date:
    """Sunday on or before *as_of* (plan weeks run Sunday to Saturday)."""
    return as_of - datetime.timedelta(days=(as_of.weekday() + 1) % 7)


def _last_4_weeks_km(request: WeeklyRunRequest, as_of: datetime.date) -> list[float]:
    if request.last_4_weeks_km is not None:
        return list(request.last_4_weeks_km)
    # The four complete weeks before the week of as_of
    series = weekly_km_series(request.recent_activities, as_of, weeks_back=5)
    return [w.km for w in series[:-1]]


def run_weekly_adaptation(state: AdaptationState, request: WeeklyRunRequest, as_of: datetime.date,
                          force: bool = False, config: ResolverConfig = DEFAULT_CONFIG, ) -> WeeklyRunResponse:
    """Run the full weekly pipeline and return the next state.

    When the week already ran and *force* is False, nothing is computed and
    the state comes back unchanged with ``skipped=True``.
    """
    week_key = iso_week_key(as_of)
    if has_run_for_week(state, as_of) and not force:
        logger.info("Weekly adaptation already ran", extra={ "ctx_week": week_key })
        return WeeklyRunResponse(skipped=True, week_key=week_key, state=state)

    health = request.health or state.health
    race = request.active_race
    race_weeks = race.weeks_to if race else state.race_weeks
    last_4 = _last_4_weeks_km(request, as_of)

    # 1. Fatigue + weight learning
    reasoning = reason_weekly(WeeklyReasoningInput(
        recent_activities=request.recent_activities, health=health, weights=state.weights,
        race_proximity_weeks=max(0, race_weeks) if race_weeks is not None else DEFAULT_RACE_PROXIMITY_WEEKS,
        last_4_weeks_km=last_4, this_week_planned_km=request.this_week_plan_km_base, active_race=race,
        feedback=request.feedback, as_of=as_of, lessons=request.lessons, ))

    # 2. Volume target (taper only applies for a known upcoming race)
    taper_weeks = race.weeks_to if race and race.weeks_to >= 0 else None
    surface = race.surface if race and race.surface else request.surface
    target = explain_target_km(TaperInputs(
        fatigue_score=reasoning.fatigue_score, chronic_km=chronic_km(last_4),
        this_week_plan_km_base=request.this_week_plan_km_base, weeks_to_race=taper_weeks,
        priority=race.priority if race else RacePriority.B, surface=surface, ))

    # 3. Skeleton + plan week + sessions
    start = request.week_start or plan_week_start(as_of)
    skeleton = build_week_skeleton(target.target_km, reasoning.fatigue_score, taper_weeks)
    plan_week = build_plan_week(start, target.target_km, reasoning.fatigue_score, taper_weeks)
    merged = merge_sessions(sessions_from_plan_week(plan_week, config), request.extra_sessions)

    # 4. Conflict resolution
    resolver_config = config.model_copy(update={ "budget": request.budget })
    resolution = resolve_week(merged.value, resolver_config)
    warnings = merged.warnings + resolution.warnings

    next_state = mark_week(state.model_copy(update={ "weights": reasoning.updated_weights, "health": health,
                                                     "race_weeks": race_weeks, }), as_of)
    logger.info("Weekly adaptation complete",
                extra={ "ctx_week": week_key, "ctx_fatigue": round(reasoning.fatigue_score, 3),
                        "ctx_target_km": target.target_km, "ctx_forced": force,
                        "ctx_warnings": len(warnings), })
    return WeeklyRunResponse(skipped=False, week_key=week_key, state=next_state, reasoning=reasoning, target=target,
                             skeleton=skeleton, plan_week=plan_week, resolution=resolution.value,
                             warnings=warnings, )
