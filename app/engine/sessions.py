"""
Plan week → training sessions.

Every plan slot becomes one ``BASE_PLAN`` session.  The plan title selects
type, role, priority, intensity and a reference load profile from a closed
table; extra sessions supplied by the caller (user, strength, heat,
altitude, adaptive) are appended onto their day, never merged.  Extra
sessions dated outside the week come back as warnings.
"""

from __future__ import annotations

import datetime
from typing import Mapping, Sequence

from app.core.logging_config import get_logger
from app.engine.guards import GuardCollector
from app.engine.ownership import DEFAULT_CONFIG, ResolverConfig, create_session
from app.schemas.guards import GuardedResult, WarningCode
from app.schemas.load_profile import LoadProfile
from app.schemas.plan import PlanSession, PlanWeek
from app.schemas.session import (RUN_PACE_MIN_PER_KM, MobilityPrescription, RunPrescription, SessionIntensity,
                                 SessionOrigin, SessionPriority, SessionRole, SessionType, TrainingDay,
                                 TrainingSession, TrainingWeek, )

logger = get_logger(__name__)

_MOBILITY_MIN = 20.0

# title -> (type, role, priority, intensity, zone, load profile)
_PLAN_TITLES: dict[str, tuple[SessionType, SessionRole, SessionPriority, SessionIntensity, str, LoadProfile]] = {
    "Long Run": (SessionType.RUN, SessionRole.AEROBIC_DEVELOPMENT, SessionPriority.PRIMARY, SessionIntensity.MEDIUM,
                 "Z2", LoadProfile(cardiovascular=0.7, muscular=0.3, neuromuscular=0.2, mechanical=0.7), ),
    "Quality": (SessionType.RUN, SessionRole.AEROBIC_DEVELOPMENT, SessionPriority.PRIMARY, SessionIntensity.HIGH,
                "Z4", LoadProfile(cardiovascular=0.8, muscular=0.3, neuromuscular=0.6, mechanical=0.5), ),
    "Moderate": (SessionType.RUN, SessionRole.AEROBIC_DEVELOPMENT, SessionPriority.SECONDARY,
                 SessionIntensity.MEDIUM, "Z3",
                 LoadProfile(cardiovascular=0.55, muscular=0.2, neuromuscular=0.3, mechanical=0.45), ),
    "Easy": (SessionType.RUN, SessionRole.AEROBIC_DEVELOPMENT, SessionPriority.SECONDARY, SessionIntensity.LOW, "Z2",
             LoadProfile(cardiovascular=0.35, muscular=0.1, neuromuscular=0.1, mechanical=0.3), ),
    "Shake-out": (SessionType.RUN, SessionRole.RECOVERY_SUPPORT, SessionPriority.SUPPORT, SessionIntensity.LOW, "Z1",
                  LoadProfile(cardiovascular=0.15, muscular=0.05, neuromuscular=0.15, mechanical=0.1), ),
    "Rest / Mobility": (SessionType.MOBILITY, SessionRole.RECOVERY_SUPPORT, SessionPriority.SUPPORT,
                        SessionIntensity.LOW, "", LoadProfile(cardiovascular=0.05, muscular=0.05), ),
    "Rest": (SessionType.MOBILITY, SessionRole.RECOVERY_SUPPORT, SessionPriority.SUPPORT, SessionIntensity.LOW, "",
             LoadProfile(), ),
}
_FALLBACK_TITLE = "Easy"


def _prescription(session_type: SessionType, title: str, plan: PlanSession, zone: str):
    if session_type == SessionType.MOBILITY:
        return MobilityPrescription(duration_min=0.0 if title == "Rest" else _MOBILITY_MIN)
    km = float(plan.km or 0)
    return RunPrescription(distance_km=km, duration_min=km * RUN_PACE_MIN_PER_KM, target_zone=zone or None)


def session_from_plan(plan: PlanSession, date: datetime.date, index: int,
                      config: ResolverConfig = DEFAULT_CONFIG, ) -> GuardedResult[TrainingSession]:
    """Materialise one plan slot as a ``BASE_PLAN`` session with id ``{date}-base-{index}``."""
    title = plan.title
    if title not in _PLAN_TITLES:
        logger.warning("Unknown plan title, treating as easy run", extra={ "ctx_title": title })
        title = _FALLBACK_TITLE
    session_type, role, priority, intensity, zone, profile = _PLAN_TITLES[title]

    return create_session(SessionOrigin.BASE_PLAN, type=session_type, role=role, priority=priority,
                          prescription=_prescription(session_type, title, plan, zone), load_profile=profile,
                          session_id=f"{date.isoformat()}-base-{index}", intensity=intensity, title=plan.title,
                          notes=plan.notes, config=config, )


def sessions_from_plan_week(plan_week: PlanWeek, config: ResolverConfig = DEFAULT_CONFIG) -> TrainingWeek:
    days = []
    for plan_day in plan_week.days:
        sessions = []
        for index, plan in enumerate(plan_day.sessions):
            result = session_from_plan(plan, plan_day.date, index, config)
            if result.value is not None:
                sessions.append(result.value)
        days.append(TrainingDay(date=plan_day.date, sessions=sessions))
    return TrainingWeek(days=days)


def merge_sessions(week: TrainingWeek, extra_sessions_by_date: Mapping[datetime.date, Sequence[TrainingSession]],
                   ) -> GuardedResult[TrainingWeek]:
    """Append caller-supplied sessions to the matching days.

    Sessions dated outside the week are left out; each such date is reported
    as a ``SESSION_OUTSIDE_WEEK`` warning listing the dropped ids.
    """
    guards = GuardCollector(module="merge_sessions")
    known = {day.date for day in week.days}
    for date in sorted(extra_sessions_by_date):
        dropped = [s.id for s in extra_sessions_by_date[date]]
        guards.warn_if(date not in known and bool(dropped), WarningCode.SESSION_OUTSIDE_WEEK,
                       f"Sessions on {date.isoformat()} fall outside the week starting "
                       f"{week.start_date.isoformat()} and were not added", date=date.isoformat(),
                       week_start=week.start_date.isoformat(), dropped=dropped, )

    days = [TrainingDay(date=day.date, sessions=list(day.sessions) + list(extra_sessions_by_date.get(day.date, [])))
            for day in week.days]
    return GuardedResult(value=TrainingWeek(days=days), warnings=guards.warnings)
