"""
Session ownership and conflict resolution.

Ownership rules
---------------

1. Sessions are created only by a known authority: ``BASE_PLAN``, ``USER``,
   ``STRENGTH``, ``HEAT``, ``ALTITUDE`` or ``ADAPTIVE``.
2. ``ADAPTIVE`` may only create recovery / compensation sessions
   (role ``RECOVERY_SUPPORT``, never primary).
3. Only the adaptive engine deletes, and only sessions it created itself
   that are neither locked nor primary.

Resolution order
----------------

When a day's accumulated load exceeds the :class:`DailyLoadBudget` on any
dimension, tiers are processed ``support`` → ``secondary`` → ``primary``:

- deletable ADAPTIVE sessions of the tier go first, highest load first;
- remaining unlocked sessions of the tier that load an over-budget
  dimension are scaled down, never below the tier floor;
- primary sessions are only ever scaled; locked sessions are never touched.

Sessions are never merged: a resolved day holds the same sessions minus the
ADAPTIVE ones removed above.
"""

from __future__ import annotations

import uuid
from typing import Optional, Union

from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.logging_config import get_logger
from app.engine.guards import (DEFAULT_SESSION_SOFT_CAP, GuardCollector, as_origin, can_create, check_day,
                               guard_locked_delete, guard_session_type, guard_unique_ids, illegal_create_message,
                               origin_label, ownership_preserved, )
from app.schemas.guards import GuardedResult, GuardMode, WarningCode
from app.schemas.load_profile import DailyLoadBudget, LoadProfile, LoadTotals
from app.schemas.resolution import (ConflictSeverity, ConflictSummary, ConflictType, DayResolution, SessionConflict,
                                    WeekResolution, )
from app.schemas.session import (DayAdaptation, Prescription, SessionAdaptation, SessionIntensity, SessionOrigin,
                                 SessionPriority, SessionRole, SessionType, TrainingDay, TrainingSession,
                                 TrainingWeek, )

logger = get_logger(__name__)

# ======================================================================
# Configuration
# ======================================================================

_DEFAULT_TIER_FLOORS: dict[SessionPriority, float] = { SessionPriority.SUPPORT: 0.3, SessionPriority.SECONDARY: 0.5,
                                                       SessionPriority.PRIMARY: 0.7, }

TIER_ORDER: list[SessionPriority] = [SessionPriority.SUPPORT, SessionPriority.SECONDARY, SessionPriority.PRIMARY]


class ResolverConfig(BaseModel):
    """Tunables of the ownership guards and the conflict resolver."""

    budget: DailyLoadBudget = Field(default_factory=DailyLoadBudget)
    tier_floors: dict[SessionPriority, float] = Field(default_factory=lambda: dict(_DEFAULT_TIER_FLOORS))
    guard_mode: GuardMode = GuardMode.SOFT
    session_soft_cap: int = Field(DEFAULT_SESSION_SOFT_CAP, ge=1)
    max_daily_duration_min: float = Field(300.0, gt=0)
    long_run_km: float = Field(20.0, gt=0, description="Runs above this distance count as long runs")
    excessive_load_high_ratio: float = Field(1.25, description="Total / budget ratio rated as high severity")

    @classmethod
    def from_settings(cls, **overrides) -> ResolverConfig:
        values = { "guard_mode": GuardMode(settings.GUARD_MODE), "session_soft_cap": settings.SESSION_SOFT_CAP }
        values.update({ k: v for k, v in overrides.items() if v is not None })
        return cls(**values)


DEFAULT_CONFIG = ResolverConfig()


# ======================================================================
# Deletion and creation
# ======================================================================


def can_delete(session: TrainingSession, actor: Union[str, SessionOrigin]) -> bool:
    """Only ADAPTIVE deletes, and only its own unlocked, non-primary sessions."""
    return (as_origin(actor) == SessionOrigin.ADAPTIVE and session.origin == SessionOrigin.ADAPTIVE
            and not session.locked and session.priority != SessionPriority.PRIMARY)


def create_session(origin: Union[str, SessionOrigin], *, type: SessionType, role: SessionRole,
                   priority: SessionPriority, prescription: Prescription, load_profile: Optional[LoadProfile] = None,
                   session_id: Optional[str] = None, locked: bool = False, lock_reason: Optional[str] = None,
                   intensity: SessionIntensity = SessionIntensity.MEDIUM, title: Optional[str] = None,
                   notes: Optional[str] = None,
                   config: ResolverConfig = DEFAULT_CONFIG, ) -> GuardedResult[Optional[TrainingSession]]:
    """The only place where ``origin`` and ``locked`` are assigned."""
    guards = GuardCollector(config.guard_mode, module="create_session")
    authority = as_origin(origin)

    if not can_create(origin, role, priority):
        guards.violation(WarningCode.ILLEGAL_CREATE, illegal_create_message(origin, role, priority),
                         session_id=session_id, origin=origin_label(origin), role=role.value, priority=priority.value, )
        return GuardedResult(value=None, warnings=guards.warnings)

    session = TrainingSession(id=session_id or f"{authority.value.lower()}-{uuid.uuid4().hex[:12]}", type=type,
                              role=role, priority=priority, load_profile=load_profile or LoadProfile(),
                              prescription=prescription, origin=authority, locked=locked, lock_reason=lock_reason,
                              intensity=intensity, title=title, notes=notes, )
    guard_session_type(session, guards)
    logger.debug("Session created", extra={ "ctx_session_id": session.id, "ctx_origin": authority.value,
                                            "ctx_type": type.value, "ctx_locked": locked, })
    return GuardedResult(value=session, warnings=guards.warnings)


def delete_session(day: TrainingDay, session_id: str, actor: Union[str, SessionOrigin],
                   config: ResolverConfig = DEFAULT_CONFIG, ) -> GuardedResult[TrainingDay]:
    """Remove one session if *actor* is allowed to; otherwise the day is unchanged."""
    guards = GuardCollector(config.guard_mode, module="delete_session")
    session = day.find(session_id)
    if session is None:
        guards.warn_if(True, WarningCode.SESSION_NOT_FOUND, f"No session '{session_id}' on {day.date.isoformat()}",
                       session_id=session_id, )
        return GuardedResult(value=day, warnings=guards.warnings)

    guard_locked_delete(session, guards)
    if not can_delete(session, actor):
        guards.violation(WarningCode.ILLEGAL_DELETE,
                         f"{origin_label(actor)} may not delete session '{session_id}' (origin {session.origin.value}, "
                         f"locked={session.locked}, priority {session.priority.value})", session_id=session_id,
                         actor=origin_label(actor), )
        return GuardedResult(value=day, warnings=guards.warnings)

    logger.info("Session removed", extra={ "ctx_session_id": session_id, "ctx_date": day.date.isoformat(),
                                           "ctx_actor": origin_label(actor), })
    remaining = [s for s in day.sessions if s is not session]
    return GuardedResult(value=TrainingDay(date=day.date, sessions=remaining), warnings=guards.warnings)


# ======================================================================
# Day resolution
# ======================================================================


def _totals(sessions: list[TrainingSession]) -> LoadTotals:
    return LoadTotals.sum_of([s.load_profile for s in sessions])


def scale_session(session: TrainingSession, factor: float) -> TrainingSession:
    """Copy of *session* with load and prescription scaled; identity and ownership kept."""
    return session.model_copy(update={ "load_profile": session.load_profile.scaled(factor),
                                       "prescription": session.prescription.scaled(factor), })


def _remove_adaptive(sessions: list[TrainingSession], tier: SessionPriority, budget: DailyLoadBudget,
                     date_label: str, ) -> tuple[list[TrainingSession], list[str]]:
    """Drop deletable ADAPTIVE sessions of *tier*, highest load first, until within budget."""
    removable = sorted((s for s in sessions if s.priority == tier and can_delete(s, SessionOrigin.ADAPTIVE)),
                       key=lambda s: s.load_profile.magnitude(), reverse=True, )
    removed: list[str] = []
    for candidate in removable:
        if not budget.exceeded(_totals(sessions)):
            break
        sessions = [s for s in sessions if s is not candidate]
        removed.append(candidate.id)
        logger.info("Session removed", extra={ "ctx_session_id": candidate.id, "ctx_date": date_label,
                                               "ctx_tier": tier.value, "ctx_actor": SessionOrigin.ADAPTIVE.value, })
    return sessions, removed


def _scale_tier(sessions: list[TrainingSession], tier: SessionPriority, over: dict[str, float],
                config: ResolverConfig, ) -> tuple[list[TrainingSession], list[SessionAdaptation]]:
    """Scale the unlocked sessions of *tier* that load an over-budget dimension."""
    targets = [i for i, s in enumerate(sessions) if s.priority == tier and not s.locked and any(
        getattr(s.load_profile, name) > 0 for name in over)]
    if not targets:
        return sessions, []

    fixed = _totals([s for i, s in enumerate(sessions) if i not in targets])
    tier_totals = _totals([sessions[i] for i in targets])

    factor = 1.0
    drivers = []
    for name in over:
        tier_load = getattr(tier_totals, name)
        if tier_load <= 0:
            continue
        drivers.append(name)
        factor = min(factor, (getattr(config.budget, name) - getattr(fixed, name)) / tier_load)

    factor = max(config.tier_floors[tier], min(1.0, factor))
    if factor >= 1.0:
        return sessions, []

    changes = []
    result = list(sessions)
    for i in targets:
        original = sessions[i]
        result[i] = scale_session(original, factor)
        changes.append(SessionAdaptation(session_id=original.id, original_prescription=original.prescription,
                                         adapted_prescription=result[i].prescription, scale_factor=round(factor, 4),
                                         reason=f"Day over budget: reduced {tier.value} session", factors=drivers, ))
        logger.debug("Session scaled", extra={ "ctx_session_id": original.id, "ctx_factor": round(factor, 4),
                                               "ctx_tier": tier.value, "ctx_drivers": drivers, })
    return result, changes


def resolve_day(day: TrainingDay, config: ResolverConfig = DEFAULT_CONFIG) -> GuardedResult[DayResolution]:
    """Bring a day back within its load budget without breaking ownership."""
    guards = GuardCollector(config.guard_mode, module="resolve_day")
    check_day(day, guards, config.session_soft_cap)
    adaptation = DayAdaptation(date=day.date)

    initial_over = config.budget.exceeded(day.total_load)
    if not initial_over:
        return GuardedResult(value=DayResolution(day=day, adaptation=adaptation), warnings=guards.warnings)

    sessions = list(day.sessions)
    over = initial_over
    for tier in TIER_ORDER:
        if not over:
            break
        if tier != SessionPriority.PRIMARY:
            sessions, removed = _remove_adaptive(sessions, tier, config.budget, day.date.isoformat())
            adaptation.sessions_removed.extend(removed)
            over = config.budget.exceeded(_totals(sessions))
            if not over:
                break
        sessions, changes = _scale_tier(sessions, tier, over, config)
        adaptation.session_adaptations.extend(changes)
        over = config.budget.exceeded(_totals(sessions))

    if not ownership_preserved(day.sessions, sessions, guards):
        # Soft mode: refuse the whole resolution rather than lose a protected session.
        return GuardedResult(value=DayResolution(day=day, adaptation=DayAdaptation(date=day.date)),
                             warnings=guards.warnings)

    adaptation.conflicts_resolved = [f"{ConflictType.EXCESSIVE_LOAD.value}:{name}" for name in initial_over if
                                     name not in over]
    adaptation.over_budget_after = list(over)
    if over:
        logger.info("Day still over budget after resolution",
                    extra={ "ctx_date": day.date.isoformat(), "ctx_dimensions": list(over) })

    resolved = TrainingDay(date=day.date, sessions=sessions)
    return GuardedResult(value=DayResolution(day=resolved, adaptation=adaptation), warnings=guards.warnings)


def resolve_week(week: TrainingWeek, config: ResolverConfig = DEFAULT_CONFIG) -> GuardedResult[WeekResolution]:
    guards = GuardCollector(config.guard_mode, module="resolve_week")
    guard_unique_ids([s for d in week.days for s in d.sessions], guards)

    days = []
    adaptations = []
    for day in week.days:
        result = resolve_day(day, config)
        guards.extend(result.warnings)
        days.append(result.value.day)
        adaptations.append(result.value.adaptation)

    resolved = TrainingWeek(days=days)
    return GuardedResult(value=WeekResolution(week=resolved, adaptations=adaptations,
                                              conflicts=conflict_summary(resolved, config)),
                         warnings=guards.warnings, )


# ======================================================================
# Conflict detection
# ======================================================================


def _is_long_run(session: TrainingSession, config: ResolverConfig) -> bool:
    return session.type == SessionType.RUN and session.distance_km > config.long_run_km


def detect_day_conflicts(day: TrainingDay, config: ResolverConfig = DEFAULT_CONFIG) -> list[SessionConflict]:
    """Conflicts between the sessions of one day (none for single-session days)."""
    if len(day.sessions) <= 1:
        return []

    conflicts = []
    totals = day.total_load
    over = config.budget.exceeded(totals)
    if over:
        worst = max(getattr(totals, n) / getattr(config.budget, n) for n in over)
        loaded = [s.id for s in day.sessions if any(getattr(s.load_profile, n) > 0 for n in over)]
        conflicts.append(SessionConflict(type=ConflictType.EXCESSIVE_LOAD, date=day.date, session_ids=loaded,
                                         severity=ConflictSeverity.HIGH if worst > config.excessive_load_high_ratio
                                         else ConflictSeverity.MEDIUM,
                                         reason=f"Daily load over budget on {', '.join(over)}", ))

    hard = [s for s in day.sessions if s.is_hard]
    if len(hard) > 1:
        conflicts.append(SessionConflict(type=ConflictType.OVERLOAD, severity=ConflictSeverity.HIGH, date=day.date,
                                         session_ids=[s.id for s in hard],
                                         reason="Multiple high-intensity sessions on same day", ))

    strength = [s for s in day.sessions if s.type == SessionType.STRENGTH]
    long_runs = [s for s in day.sessions if _is_long_run(s, config)]
    if strength and long_runs:
        conflicts.append(SessionConflict(type=ConflictType.CONTRADICTORY_GOALS, severity=ConflictSeverity.HIGH,
                                         date=day.date, session_ids=[s.id for s in strength + long_runs],
                                         reason="Strength session conflicts with long run (excessive neuromuscular "
                                                "fatigue)", ))

    heat = [s for s in day.sessions if s.type == SessionType.HEAT]
    hard_runs = [s for s in hard if s.type == SessionType.RUN]
    if heat and hard_runs:
        conflicts.append(SessionConflict(type=ConflictType.CONTRADICTORY_GOALS, severity=ConflictSeverity.MEDIUM,
                                         date=day.date, session_ids=[s.id for s in heat + hard_runs],
                                         reason="Heat adaptation conflicts with intensity (contradictory stress)", ))

    duration = day.total_duration_min
    if duration > config.max_daily_duration_min:
        conflicts.append(SessionConflict(type=ConflictType.DURATION_OVERFLOW, severity=ConflictSeverity.MEDIUM,
                                         date=day.date, session_ids=day.session_ids(),
                                         reason=f"Total duration ({duration:g} min) exceeds daily time budget", ))
    return conflicts


def detect_scheduling_conflicts(week: TrainingWeek) -> list[SessionConflict]:
    """Back-to-back days that both hold a high-intensity session."""
    conflicts = []
    for today, tomorrow in zip(week.days, week.days[1:]):
        hard_today = [s.id for s in today.sessions if s.is_hard]
        hard_tomorrow = [s.id for s in tomorrow.sessions if s.is_hard]
        if hard_today and hard_tomorrow:
            conflicts.append(SessionConflict(type=ConflictType.SCHEDULING_VIOLATION, severity=ConflictSeverity.MEDIUM,
                                             date=today.date, session_ids=hard_today + hard_tomorrow,
                                             reason=f"Back-to-back hard days ({today.date.isoformat()} → "
                                                    f"{tomorrow.date.isoformat()})", ))
    return conflicts


def conflict_summary(week: TrainingWeek, config: ResolverConfig = DEFAULT_CONFIG) -> ConflictSummary:
    conflicts = [c for day in week.days for c in detect_day_conflicts(day, config)]
    conflicts += detect_scheduling_conflicts(week)

    summary = ConflictSummary(total=len(conflicts), conflicts=conflicts)
    for conflict in conflicts:
        summary.by_type[conflict.type] += 1
        if conflict.severity == ConflictSeverity.HIGH:
            summary.high += 1
        elif conflict.severity == ConflictSeverity.MEDIUM:
            summary.medium += 1
        else:
            summary.low += 1
    return summary


def is_day_safe(day: TrainingDay, config: ResolverConfig = DEFAULT_CONFIG) -> bool:
    return not any(c.severity == ConflictSeverity.HIGH for c in detect_day_conflicts(day, config))

