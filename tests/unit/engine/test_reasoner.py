"""Tests for the weekly fatigue reasoner and weight learning."""

import datetime
import math
import random

import pytest

from app.core.errors import InvalidInputError
from app.engine.reasoner import (
    apply_race_lessons,
    compute_acwr,
    feedback_bias,
    outcome_score,
    reason_weekly,
    update_weights,
)
from app.schemas.activity import Activity, HealthState, RunFeedback
from app.schemas.race import ActiveRace, RacePriority
from app.schemas.reasoning import WEIGHT_MAX, WEIGHT_MIN, Adjustments, RaceLesson, WeeklyReasoningInput, Weights

AS_OF = datetime.date(2026, 3, 10)


def _tired_run(day: int = 1) -> Activity:
    return Activity(date=AS_OF - datetime.timedelta(days=day), distance_km=12, duration_min=70, rpe=8,
                    sleep_hours=6, hrv=45)


# ======================================================================
# Helpers
# ======================================================================


class TestComputeACWR:
    def test_ratio_to_four_week_mean(self):
        assert compute_acwr([40, 40, 40, 40], 60) == 1.5

    def test_chronic_defaults_to_one(self):
        assert compute_acwr([], 12) == 12.0

    def test_rounds_half_up(self):
        assert compute_acwr([8], 1) == 0.13


class TestFeedbackBias:
    def test_no_feedback(self):
        bias = feedback_bias([])
        assert bias.fatigue_bump == 0.0
        assert bias.quality_cap is None

    def test_hard_recent_feedback(self):
        bias = feedback_bias([RunFeedback(date=AS_OF, rpe=8, soreness=7)], as_of=AS_OF)
        assert bias.fatigue_bump == pytest.approx(0.08)
        assert bias.quality_cap == 1

    def test_bump_is_capped(self):
        bias = feedback_bias([RunFeedback(date=AS_OF, rpe=10, soreness=10)], as_of=AS_OF)
        assert bias.fatigue_bump == pytest.approx(0.15)

    def test_old_feedback_ignored(self):
        old = RunFeedback(date=AS_OF - datetime.timedelta(days=8), rpe=10, soreness=10)
        assert feedback_bias([old], as_of=AS_OF).fatigue_bump == 0.0

    def test_future_feedback_ignored(self):
        future = RunFeedback(date=AS_OF + datetime.timedelta(days=1), rpe=10, soreness=10)
        assert feedback_bias([future], as_of=AS_OF).quality_cap is None

    def test_window_anchors_on_latest_entry_without_as_of(self):
        entries = [RunFeedback(date=AS_OF - datetime.timedelta(days=30), rpe=10, soreness=10),
                   RunFeedback(date=AS_OF, rpe=5, soreness=3)]
        bias = feedback_bias(entries)
        assert bias.fatigue_bump == 0.0
        assert bias.quality_cap is None


class TestOutcomeAndWeights:
    @pytest.mark.parametrize(
        "km, expected_completion",
        [(10.0, 1.0), (0.0, 0.7), (None, 0.7)],
    )
    def test_completion_scores(self, km, expected_completion):
        activity = Activity(date=AS_OF, distance_km=km)
        expected = (expected_completion * 0.6 + 0.5 * 0.4) * 2 - 1
        assert outcome_score([activity], 5.0) == pytest.approx(expected)

    def test_zero_km_activity_gives_positive_outcome(self):
        activity = Activity(date=AS_OF, distance_km=0.0)
        assert outcome_score([activity], 5.0) == pytest.approx(0.24)
        assert update_weights(Weights(), outcome_score([activity], 5.0)).sleep > 0.72

    def test_update_moves_toward_outcome(self):
        updated = update_weights(Weights(), 1.0)
        assert updated.sleep == pytest.approx(0.82)
        assert updated.race_proximity == pytest.approx(0.91)

    def test_update_returns_new_instance(self):
        weights = Weights()
        updated = update_weights(weights, -1.0)
        assert updated is not weights
        assert weights.sleep == 0.8

    def test_weights_stay_in_bounds_fuzz(self):
        rng = random.Random(42)
        weights = Weights()
        for _ in range(300):
            weights = update_weights(weights, rng.uniform(-1.0, 1.0))
            for value in weights.model_dump().values():
                assert WEIGHT_MIN <= value <= WEIGHT_MAX

    def test_repeated_bad_outcomes_hit_floor(self):
        weights = Weights()
        for _ in range(100):
            weights = update_weights(weights, -1.0)
        assert weights.sleep == WEIGHT_MIN


# ======================================================================
# reason_weekly
# ======================================================================


class TestRaceLessons:
    def test_no_lessons_leave_adjustments_alone(self):
        adjustments = Adjustments(volume_boost_pct=10)
        assert apply_race_lessons(adjustments, []) == adjustments

    def test_taper_bias_deepens_cut(self):
        result = apply_race_lessons(Adjustments(), [RaceLesson(key="taper_bias_up", weight=0.3)])
        assert result.taper_cut_pct == pytest.approx(0.26)
        assert result.volume_cut_pct == pytest.approx(26.0)

    def test_taper_bias_adds_to_fatigue_cut(self):
        result = apply_race_lessons(Adjustments(volume_cut_pct=20), [RaceLesson(key="taper_bias_up", weight=0.5)])
        assert result.volume_cut_pct == pytest.approx(50.0)

    @pytest.mark.parametrize("key, flag", [
        ("heat_acclimation", "heat_prep"),
        ("hills_specificity", "hills_specificity"),
        ("fueling_focus", "fueling_rehearsal"),
    ])
    def test_lesson_switches_on_flag(self, key, flag):
        result = apply_race_lessons(Adjustments(), [RaceLesson(key=key, weight=0.2)])
        assert getattr(result, flag) is True
        assert result.volume_cut_pct is None

    def test_zero_weight_and_unknown_keys_ignored(self):
        lessons = [RaceLesson(key="heat_acclimation", weight=0.0), RaceLesson(key="pacing_conservative", weight=0.3)]
        assert apply_race_lessons(Adjustments(), lessons) == Adjustments()

    def test_first_lesson_of_a_key_wins(self):
        lessons = [RaceLesson(key="taper_bias_up", weight=0.0), RaceLesson(key="taper_bias_up", weight=0.5)]
        assert apply_race_lessons(Adjustments(), lessons).taper_cut_pct is None

    def test_reason_weekly_applies_and_reports_lessons(self):
        lessons = [RaceLesson(key="taper_bias_up", weight=0.3, summary="Taper a little deeper."),
                   RaceLesson(key="heat_acclimation", weight=0.25, summary="Heat-acclimate before hot races.")]
        result = reason_weekly(WeeklyReasoningInput(last_4_weeks_km=[50] * 4, this_week_planned_km=50,
                                                    lessons=lessons))
        assert result.adjustments.volume_cut_pct == pytest.approx(26.0)
        assert result.adjustments.heat_prep is True
        assert result.debug.lessons == ["Taper a little deeper.", "Heat-acclimate before hot races."]


class TestReasonWeekly:
    def test_empty_week_uses_neutral_defaults(self):
        result = reason_weekly(WeeklyReasoningInput())
        assert result.debug.sleep_avg == 7.0
        assert result.debug.hrv_avg == 60.0
        assert result.debug.rpe_avg == 5.0
        assert result.debug.race_weeks is None
        # only race proximity contributes: (1 - 8/12) * 0.9 / 4
        assert result.fatigue_score == pytest.approx(0.075)
        assert result.adjustments.volume_boost_pct == 10
        assert result.adjustments.add_hill_session is True
        assert result.updated_weights.sleep == pytest.approx(0.66)

    def test_high_fatigue(self):
        inputs = WeeklyReasoningInput(recent_activities=[_tired_run(1), _tired_run(3)], health=HealthState.SICK,
                                      last_4_weeks_km=[40, 40, 40, 40], this_week_planned_km=60,
                                      active_race=ActiveRace(priority=RacePriority.A, weeks_to=0), as_of=AS_OF)
        result = reason_weekly(inputs)
        assert result.fatigue_score == 1.0
        assert result.debug.acwr == 1.5
        assert result.debug.race_weeks == 0
        assert result.adjustments.volume_cut_pct == 20
        assert result.adjustments.intensity_down is True
        assert result.adjustments.add_rest_day is True
        assert "High fatigue" in result.reason

    def test_balanced_state(self):
        inputs = WeeklyReasoningInput(recent_activities=[_tired_run()], last_4_weeks_km=[50] * 4,
                                      this_week_planned_km=50, race_proximity_weeks=12)
        result = reason_weekly(inputs)
        # sleep + hrv + rpe flags: (0.8 + 0.7 + 0.6) / 4
        assert result.fatigue_score == pytest.approx(0.525)
        assert result.adjustments.volume_cut_pct is None
        assert result.adjustments.volume_boost_pct is None
        assert result.adjustments.quality_sessions == 2

    def test_past_race_counts_as_race_week(self):
        inputs = WeeklyReasoningInput(active_race=ActiveRace(weeks_to=-2))
        assert reason_weekly(inputs).debug.race_weeks == 0

    def test_feedback_caps_quality_and_bumps_fatigue(self):
        base = WeeklyReasoningInput(race_proximity_weeks=12, as_of=AS_OF)
        with_feedback = base.model_copy(update={ "feedback": [RunFeedback(date=AS_OF, rpe=8, soreness=7)] })
        plain = reason_weekly(base)
        bumped = reason_weekly(with_feedback)
        assert bumped.fatigue_score == pytest.approx(plain.fatigue_score + 0.08)
        assert bumped.adjustments.quality_sessions == 1
        assert bumped.debug.feedback_bump == pytest.approx(0.08)

    def test_deterministic(self):
        inputs = WeeklyReasoningInput(recent_activities=[_tired_run()], last_4_weeks_km=[30, 35, 40, 45],
                                      this_week_planned_km=48, as_of=AS_OF)
        assert reason_weekly(inputs) == reason_weekly(inputs)

    def test_input_weights_not_mutated(self):
        weights = Weights(sleep=0.5)
        reason_weekly(WeeklyReasoningInput(weights=weights))
        assert weights.sleep == 0.5

    @pytest.mark.parametrize(
        "overrides",
        [
            { "last_4_weeks_km": [40, -1, 40, 40] },
            { "this_week_planned_km": -5 },
            { "this_week_planned_km": math.nan },
            { "race_proximity_weeks": -1 },
            { "recent_activities": [Activity(date=AS_OF, distance_km=-2)] },
        ],
    )
    def test_invalid_inputs_raise(self, overrides):
        with pytest.raises(InvalidInputError):
            reason_weekly(WeeklyReasoningInput(**overrides))
