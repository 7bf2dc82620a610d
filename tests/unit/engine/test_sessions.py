"""Tests for plan-week to session materialisation."""

import datetime

from app.engine.sessions import merge_sessions, session_from_plan, sessions_from_plan_week
from app.engine.taper import build_plan_week
from app.schemas.guards import WarningCode
from app.schemas.load_profile import LoadProfile
from app.schemas.plan import PlanSession
from app.schemas.session import (
    MobilityPrescription,
    RunPrescription,
    SessionIntensity,
    SessionOrigin,
    SessionPriority,
    SessionRole,
    SessionType,
    StrengthPrescription,
    TrainingSession,
)

SUNDAY = datetime.date(2026, 3, 8)


def _strength(session_id: str) -> TrainingSession:
    return TrainingSession(id=session_id, type=SessionType.STRENGTH, role=SessionRole.MUSCULAR_ENDURANCE,
                           priority=SessionPriority.SECONDARY, origin=SessionOrigin.STRENGTH,
                           prescription=StrengthPrescription(exercises=["squat"], duration_min=45),
                           load_profile=LoadProfile(muscular=0.6))


class TestSessionFromPlan:
    def test_long_run(self):
        result = session_from_plan(PlanSession(title="Long Run", km=18, notes="n"), SUNDAY, 0)
        session = result.value
        assert result.ok
        assert session.id == "2026-03-08-base-0"
        assert session.origin == SessionOrigin.BASE_PLAN
        assert session.priority == SessionPriority.PRIMARY
        assert isinstance(session.prescription, RunPrescription)
        assert session.distance_km == 18
        assert session.duration_min == 108
        assert session.notes == "n"

    def test_quality_is_hard(self):
        session = session_from_plan(PlanSession(title="Quality", km=8), SUNDAY, 1).value
        assert session.intensity == SessionIntensity.HIGH
        assert session.is_hard

    def test_rest_is_mobility_support(self):
        session = session_from_plan(PlanSession(title="Rest"), SUNDAY, 0).value
        assert session.type == SessionType.MOBILITY
        assert session.priority == SessionPriority.SUPPORT
        assert isinstance(session.prescription, MobilityPrescription)
        assert session.duration_min == 0

    def test_rest_mobility_has_twenty_minutes(self):
        session = session_from_plan(PlanSession(title="Rest / Mobility"), SUNDAY, 0).value
        assert session.duration_min == 20

    def test_unknown_title_falls_back_to_easy(self):
        session = session_from_plan(PlanSession(title="Fartlek", km=9), SUNDAY, 0).value
        assert session.title == "Fartlek"
        assert session.priority == SessionPriority.SECONDARY
        assert session.intensity == SessionIntensity.LOW


class TestSessionsFromPlanWeek:
    def test_one_session_per_slot(self):
        plan = build_plan_week(SUNDAY, 50, 0.5, None)
        week = sessions_from_plan_week(plan)
        assert week.start_date == SUNDAY
        assert week.session_count == 7
        assert week.total_distance_km == plan.total_km
        assert all(s.origin == SessionOrigin.BASE_PLAN for d in week.days for s in d.sessions)

    def test_ids_are_stable(self):
        plan = build_plan_week(SUNDAY, 50, 0.5, None)
        first = [s.id for d in sessions_from_plan_week(plan).days for s in d.sessions]
        second = [s.id for d in sessions_from_plan_week(plan).days for s in d.sessions]
        assert first == second
        assert len(set(first)) == 7


class TestMergeSessions:
    def test_extras_are_appended_not_merged(self):
        week = sessions_from_plan_week(build_plan_week(SUNDAY, 50, 0.5, None))
        tuesday = SUNDAY + datetime.timedelta(days=2)
        merged = merge_sessions(week, { tuesday: [_strength("s-1"), _strength("s-2")] })
        assert merged.warnings == []
        assert merged.value.session_count == 9
        assert merged.value.days[2].session_ids()[1:] == ["s-1", "s-2"]
        assert week.session_count == 7

    def test_out_of_week_sessions_are_reported(self):
        week = sessions_from_plan_week(build_plan_week(SUNDAY, 50, 0.5, None))
        saturday_before = SUNDAY - datetime.timedelta(days=1)
        merged = merge_sessions(week, { saturday_before: [_strength("s-1"), _strength("s-2")] })
        assert merged.value.session_count == 7
        [warning] = merged.warnings
        assert warning.code == WarningCode.SESSION_OUTSIDE_WEEK
        assert warning.context["dropped"] == ["s-1", "s-2"]
        assert warning.context["date"] == saturday_before.isoformat()

    def test_empty_out_of_week_entry_is_not_reported(self):
        week = sessions_from_plan_week(build_plan_week(SUNDAY, 50, 0.5, None))
        assert merge_sessions(week, { SUNDAY + datetime.timedelta(days=30): [] }).warnings == []
