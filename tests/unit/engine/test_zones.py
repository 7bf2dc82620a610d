"""Tests for ACWR zone classification, trend and sustainability."""

import math
import random

import pytest

from app.core.errors import InvalidInputError
from app.engine.zones import (
    DEFAULT_LOWER_BOUND,
    DEFAULT_UPPER_BOUND,
    acwr_with_trail_load,
    assess_sustainability,
    assess_zone,
    classify_zone,
    trend_direction,
    zone_recommendation,
)
from app.schemas.zones import ACWRZone, Trend, ZoneBounds


# ======================================================================
# classify_zone
# ======================================================================


class TestClassifyZone:
    @pytest.mark.parametrize(
        "acwr, expected",
        [
            (0.0, ACWRZone.UNDERLOAD),
            (0.79, ACWRZone.UNDERLOAD),
            (0.8, ACWRZone.SWEET_SPOT),
            (1.0, ACWRZone.SWEET_SPOT),
            (1.3, ACWRZone.SWEET_SPOT),
            (1.31, ACWRZone.CAUTION),
            (1.5, ACWRZone.CAUTION),
            (1.51, ACWRZone.HIGH_RISK),
            (1.8, ACWRZone.HIGH_RISK),
            (1.81, ACWRZone.EXTREME_RISK),
            (4.0, ACWRZone.EXTREME_RISK),
        ],
    )
    def test_default_bounds(self, acwr, expected):
        assert classify_zone(acwr) == expected

    def test_missing_acwr_is_sweet_spot(self):
        assert classify_zone(None) == ACWRZone.SWEET_SPOT

    def test_personalised_bounds(self):
        assert classify_zone(0.85, lower_bound=0.9, upper_bound=1.2) == ACWRZone.UNDERLOAD
        assert classify_zone(1.2, lower_bound=0.9, upper_bound=1.2) == ACWRZone.SWEET_SPOT
        assert classify_zone(1.25, lower_bound=0.9, upper_bound=1.2) == ACWRZone.CAUTION

    def test_fixed_breakpoints_ignore_personal_bounds(self):
        assert classify_zone(1.6, lower_bound=0.7, upper_bound=1.4) == ACWRZone.HIGH_RISK
        assert classify_zone(1.9, lower_bound=0.7, upper_bound=1.4) == ACWRZone.EXTREME_RISK

    @pytest.mark.parametrize("value", [-0.1, float("nan")])
    def test_invalid_acwr_raises(self, value):
        with pytest.raises(InvalidInputError):
            classify_zone(value)

    def test_inverted_bounds_raise(self):
        with pytest.raises(InvalidInputError):
            classify_zone(1.0, lower_bound=1.4, upper_bound=1.0)

    def test_total_function_fuzz(self):
        """Every value lands in exactly one zone consistent with the breakpoints."""
        rng = random.Random(1234)
        for _ in range(500):
            lower = rng.uniform(0.5, 1.0)
            upper = rng.uniform(lower, 1.5)
            acwr = rng.uniform(0.0, 3.0)
            zone = classify_zone(acwr, lower, upper)
            if acwr < lower:
                assert zone == ACWRZone.UNDERLOAD
            elif acwr <= upper:
                assert zone == ACWRZone.SWEET_SPOT
            elif acwr <= 1.5:
                assert zone == ACWRZone.CAUTION
            elif acwr <= 1.8:
                assert zone == ACWRZone.HIGH_RISK
            else:
                assert zone == ACWRZone.EXTREME_RISK

    def test_default_bound_constants(self):
        assert DEFAULT_LOWER_BOUND == 0.8
        assert DEFAULT_UPPER_BOUND == 1.3


# ======================================================================
# trend_direction
# ======================================================================


class TestTrendDirection:
    @pytest.mark.parametrize(
        "values, expected",
        [
            ([1.0, 1.0, 1.3, 1.3], Trend.RISING),
            ([1.0, 1.1, 1.05, 1.0], Trend.STABLE),
            ([1.4, 1.3, 1.0, 1.0], Trend.FALLING),
            ([0.9, 1.0, 1.1], Trend.STABLE),
            ([], Trend.STABLE),
        ],
    )
    def test_scenarios(self, values, expected):
        assert trend_direction(values) == expected

    def test_only_last_four_points_count(self):
        assert trend_direction([3.0, 3.0, 1.0, 1.0, 1.3, 1.3]) == Trend.RISING

    def test_threshold_is_exclusive(self):
        assert trend_direction([1.0, 1.0, 1.1, 1.1]) == Trend.STABLE

    def test_nan_in_window_raises(self):
        with pytest.raises(InvalidInputError):
            trend_direction([1.0, math.nan, 1.0, 1.0])


# ======================================================================
# Sustainability / trail ratio
# ======================================================================


class TestSustainability:
    def test_short_series_is_sustainable(self):
        result = assess_sustainability([1.6, 1.7])
        assert result.is_sustainable is True
        assert "Insufficient" in result.reason

    def test_sustained_spike(self):
        result = assess_sustainability([1.0, 1.6, 1.55])
        assert result.is_sustainable is False
        assert "sustained" in result.reason

    def test_volatility(self):
        result = assess_sustainability([0.5, 1.4, 0.6])
        assert result.is_sustainable is False
        assert "fluctuating" in result.reason

    def test_steady_progression(self):
        assert assess_sustainability([1.0, 1.05, 1.1, 1.12]).is_sustainable is True


class TestTrailLoad:
    def test_vertical_counts_as_distance(self):
        assert acwr_with_trail_load(40, 40, acute_vertical_m=1000, chronic_vertical_m=0) == pytest.approx(50 / 40)

    def test_zero_chronic_returns_zero(self):
        assert acwr_with_trail_load(10, 0) == 0.0

    def test_negative_input_raises(self):
        with pytest.raises(InvalidInputError):
            acwr_with_trail_load(-1, 10)

    def test_non_positive_ratio_raises(self):
        with pytest.raises(InvalidInputError):
            acwr_with_trail_load(10, 10, vertical_to_km_ratio=0)


# ======================================================================
# assess_zone
# ======================================================================


class TestAssessZone:
    def test_bundles_history_and_current_value(self):
        result = assess_zone(1.3, history=[1.0, 1.0, 1.3], weekly_km=52.0)
        assert result.zone == ACWRZone.SWEET_SPOT
        assert result.trend == Trend.RISING
        assert "1.30" in result.feedback
        assert "52.0 km" in result.feedback

    def test_missing_acwr(self):
        result = assess_zone(None)
        assert result.zone == ACWRZone.SWEET_SPOT
        assert result.trend == Trend.STABLE
        assert "Not enough" in result.feedback

    def test_custom_bounds(self):
        result = assess_zone(1.25, bounds=ZoneBounds(lower=0.9, upper=1.2))
        assert result.zone == ACWRZone.CAUTION

    def test_negative_weekly_km_raises(self):
        with pytest.raises(InvalidInputError):
            assess_zone(1.0, weekly_km=-5)

    @pytest.mark.parametrize("zone", list(ACWRZone))
    @pytest.mark.parametrize("trend", list(Trend))
    def test_every_zone_trend_pair_has_copy(self, zone, trend):
        assert zone_recommendation(zone, trend)
