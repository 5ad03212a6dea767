"""
Axis ticks for money charts.

generate_ticks() picks the smallest "nice" step that spans the data with at
most MAX_GRID_INTERVALS intervals; the tick list runs from the floored
minimum to the ceiled maximum inclusive.
"""

from __future__ import annotations
import math
from typing import Iterable, List, Tuple

from trade_journal.journal.journal_models import AxisScale
from trade_journal.utils.exceptions import AnalyticsInputError

CANDIDATE_STEPS = (10, 25, 50, 100, 200, 500, 1000, 2000, 2500, 5000, 10000)
MAX_GRID_INTERVALS = 10
LARGE_STEP_UNIT = 10000


def _check_bounds(min_value: float, max_value: float) -> None:
    if not (math.isfinite(min_value) and math.isfinite(max_value)):
        raise AnalyticsInputError(f"axis bounds must be finite, got ({min_value}, {max_value})", field="bounds")
    if min_value > max_value:
        raise AnalyticsInputError(f"axis min {min_value} is greater than max {max_value}", field="bounds")


def _intervals(min_value: float, max_value: float, step: float) -> int:
    return math.ceil(max_value / step) - math.floor(min_value / step)


def pick_step(min_value: float, max_value: float) -> float:
    for step in CANDIDATE_STEPS:
        if _intervals(min_value, max_value, step) <= MAX_GRID_INTERVALS:
            return step
    # past the table: a multiple of 10000 sized for ~10 lines
    raw = (max_value - min_value) / MAX_GRID_INTERVALS
    return math.ceil(raw / LARGE_STEP_UNIT) * LARGE_STEP_UNIT


def generate_ticks(min_value: float, max_value: float) -> List[float]:
    """(-150, 320) → step 50 → [-150, -100, ..., 350]. min == max → [min]."""
    _check_bounds(min_value, max_value)
    if min_value == max_value:
        return [min_value]
    step = pick_step(min_value, max_value)
    lo = math.floor(min_value / step)
    hi = math.ceil(max_value / step)
    return [i * step for i in range(lo, hi + 1)]


def gradient_offset(min_value: float, max_value: float) -> float:
    """Fraction of the axis (from the top) where the fill turns from profit to loss colour."""
    _check_bounds(min_value, max_value)
    if max_value <= 0:
        return 0.0
    if min_value >= 0:
        return 1.0
    return max_value / (max_value - min_value)


def series_bounds(values: Iterable[float]) -> Tuple[float, float]:
    """(min, max) of the series widened to include 0. Empty series → (0, 0)."""
    lo = hi = 0.0
    for v in values:
        if not math.isfinite(v):
            raise AnalyticsInputError(f"series value must be finite, got {v!r}", field="values")
        lo = min(lo, v)
        hi = max(hi, v)
    return lo, hi


def axis_scale(values: Iterable[float]) -> AxisScale:
    lo, hi = series_bounds(values)
    ticks = generate_ticks(lo, hi)
    return AxisScale(ticks=ticks, domain=(ticks[0], ticks[-1]), gradient_offset=gradient_offset(lo, hi))
