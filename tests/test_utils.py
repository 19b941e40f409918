"""
Unit tests for rounding and validation utilities.
"""

import math

import numpy as np
import pandas as pd
import pytest

from dualcost.utils import (
    PerformanceTimer,
    calculate_efficiency_score,
    convert_bytes_to_gibibytes,
    convert_bytes_to_kilobytes,
    efficiency_series,
    float_equals,
    format_duration,
    is_finite_number,
    round_financial,
    round_percentage,
    round_series,
    round_to_precision,
)


class TestRounding:
    """Test suite for financial and percentage rounding."""

    def test_round_financial_two_decimals(self):
        assert round_financial(1000.504) == 1000.5
        assert round_financial(12.345678) == 12.35

    def test_round_half_away_from_zero(self):
        """Halves round away from zero, not to even."""
        assert round_financial(0.125) == 0.13
        assert round_financial(2.5) == 2.5
        assert round_to_precision(2.5, 0) == 3.0
        assert round_to_precision(-2.5, 0) == -3.0

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), None])
    def test_non_finite_becomes_zero(self, value):
        assert round_financial(value) == 0.0
        assert round_percentage(value) == 0.0

    def test_round_percentage_does_not_clamp(self):
        """Clamping to [0, 100] is the caller's job."""
        assert round_percentage(150.456) == 150.46
        assert round_percentage(-3.333) == -3.33

    def test_round_series_matches_scalar(self):
        series = pd.Series([1.005, 2.675, -0.125, np.nan, np.inf])
        rounded = round_series(series)
        expected = [round_financial(v) for v in series]
        assert rounded.tolist() == pytest.approx(expected)
        assert rounded.iloc[3] == 0.0
        assert rounded.iloc[4] == 0.0


class TestEfficiencyScore:
    """Test suite for calculate_efficiency_score."""

    def test_basic_ratio(self):
        assert calculate_efficiency_score(200.0, 50.0) == pytest.approx(25.0)

    def test_usage_capped_at_billable(self):
        """Noisy P95 overshoot never exceeds 100%."""
        assert calculate_efficiency_score(100.0, 130.0) == 100.0

    @pytest.mark.parametrize("billable,usage", [(0.0, 10.0), (-5.0, 1.0), (10.0, -1.0)])
    def test_degenerate_inputs_return_zero(self, billable, usage):
        assert calculate_efficiency_score(billable, usage) == 0.0

    def test_nan_billable_returns_zero(self):
        assert calculate_efficiency_score(float("nan"), 1.0) == 0.0

    def test_series_matches_scalar(self):
        billable = pd.Series([100.0, 0.0, 50.0, 10.0])
        usage = pd.Series([25.0, 5.0, 80.0, -1.0])
        scores = efficiency_series(billable, usage)
        expected = [calculate_efficiency_score(b, u) for b, u in zip(billable, usage)]
        assert scores.tolist() == pytest.approx(expected)


class TestHelpers:
    """Test suite for small helpers."""

    def test_is_finite_number(self):
        assert is_finite_number(1)
        assert is_finite_number(0.5)
        assert is_finite_number(np.float64(2.0))
        assert not is_finite_number(float("nan"))
        assert not is_finite_number(math.inf)
        assert not is_finite_number("1.0")
        assert not is_finite_number(None)
        assert not is_finite_number(True)

    def test_float_equals(self):
        assert float_equals(100.0, 100.05, 0.1)
        assert not float_equals(100.0, 100.2, 0.1)

    def test_unit_conversions(self):
        assert convert_bytes_to_gibibytes(2 * 1024 ** 3) == 2.0
        assert convert_bytes_to_kilobytes(2048) == 2.0

    def test_format_duration(self):
        assert format_duration(2.34) == "2.3s"
        assert format_duration(90) == "1m 30s"
        assert format_duration(4500) == "1h 15m"

    def test_performance_timer_records_duration(self):
        with PerformanceTimer("unit test") as timer:
            sum(range(100))
        assert timer.duration_seconds is not None
        assert timer.duration_seconds >= 0

    def test_performance_timer_propagates_errors(self):
        with pytest.raises(RuntimeError):
            with PerformanceTimer("failing step"):
                raise RuntimeError("boom")
