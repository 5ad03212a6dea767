"""
Tick generation and the profit/loss gradient split for money charts.
"""

import math

import pytest

from trade_journal.journal.chart_axis import (
    axis_scale,
    generate_ticks,
    gradient_offset,
    pick_step,
    series_bounds,
)
from trade_journal.utils.exceptions import AnalyticsInputError


class TestGenerateTicks:

    def test_mixed_sign_range(self):
        ticks = generate_ticks(-150, 320)
        assert ticks == [-150, -100, -50, 0, 50, 100, 150, 200, 250, 300, 350]

    def test_smallest_step_that_fits(self):
        assert pick_step(0, 95) == 10
        assert generate_ticks(0, 95) == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
        assert pick_step(0, 101) == 25

    def test_large_range_falls_back_to_ten_thousands(self):
        assert pick_step(0, 250000) == 30000
        ticks = generate_ticks(0, 250000)
        assert ticks[0] == 0 and ticks[-1] == 270000
        assert len(ticks) == 10

    def test_never_more_than_ten_intervals(self):
        for lo, hi in [(-3, 7), (-999, 12345), (0.5, 2499.5), (-80000, 5)]:
            assert len(generate_ticks(lo, hi)) - 1 <= 10

    def test_covers_the_data(self):
        ticks = generate_ticks(-37.5, 412)
        assert ticks[0] <= -37.5 and ticks[-1] >= 412

    def test_flat_range(self):
        assert generate_ticks(0, 0) == [0]
        assert generate_ticks(42.0, 42.0) == [42.0]

    @pytest.mark.parametrize("lo,hi", [(math.nan, 10), (0, math.inf), (10, 5)])
    def test_bad_bounds(self, lo, hi):
        with pytest.raises(AnalyticsInputError):
            generate_ticks(lo, hi)


class TestGradientOffset:

    def test_split(self):
        assert gradient_offset(-50, 150) == 0.75

    def test_all_profit_or_all_loss(self):
        assert gradient_offset(0, 100) == 1.0
        assert gradient_offset(-100, 0) == 0.0
        assert gradient_offset(0, 0) == 0.0


class TestAxisScale:

    def test_series_includes_zero(self):
        assert series_bounds([10, 45]) == (0.0, 45)
        assert series_bounds([-5, -20]) == (-20, 0.0)

    def test_scale(self):
        scale = axis_scale([10, -20, 45])
        assert scale.ticks == [-20, -10, 0, 10, 20, 30, 40, 50]
        assert scale.domain == (-20, 50)
        assert scale.gradient_offset == pytest.approx(45 / 65)

    def test_empty_series(self):
        scale = axis_scale([])
        assert scale.ticks == [0.0]
        assert scale.to_dict() == {"ticks": [0.0], "domain": [0.0, 0.0], "gradient_offset": 0.0}

    def test_non_finite_value(self):
        with pytest.raises(AnalyticsInputError):
            axis_scale([1.0, math.nan])
