"""
Drawdown Tracker — peak-to-trough equity decline
================================================

One primitive, DrawdownTracker, scans a chronological P&L sequence with the
high-water mark starting at 0. The same tracker serves the whole portfolio,
a single calendar day and a single week: callers decide which sub-sequence
to feed it. Drawdown is always reported as a non-negative magnitude.
"""

from __future__ import annotations
from typing import Iterable, List, Mapping, Optional, Sequence

from trade_journal.journal.journal_models import DrawdownPeriod, Trade
from trade_journal.journal.trade_metrics import PolicyLike, evaluate_trades, pnls_of


class DrawdownTracker:
    """Running equity / high-water mark / max drawdown over a P&L stream."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self._equity = 0.0
        self._peak = 0.0
        self._max_drawdown = 0.0

    def update(self, pnl: float) -> float:
        """Feed one P&L; returns the drawdown at this point (>= 0)."""
        self._equity += pnl
        if self._equity > self._peak:
            self._peak = self._equity
        dd = self._peak - self._equity
        if dd > self._max_drawdown:
            self._max_drawdown = dd
        return dd

    @property
    def equity(self) -> float:
        return self._equity

    @property
    def peak(self) -> float:
        return self._peak

    @property
    def max_drawdown(self) -> float:
        return self._max_drawdown


def max_drawdown(pnls: Iterable[float]) -> float:
    tracker = DrawdownTracker()
    for p in pnls:
        tracker.update(p)
    return tracker.max_drawdown


def drawdown_curve(pnls: Iterable[float]) -> List[float]:
    """Drawdown at every point of the sequence."""
    tracker = DrawdownTracker()
    return [tracker.update(p) for p in pnls]


def calculate_max_drawdown(trades: Iterable[Trade], policy: PolicyLike = None, timezone: str = "UTC",
                           multipliers: Optional[Mapping[str, float]] = None) -> float:
    """Global max drawdown over closed trades in entry-time order."""
    return max_drawdown(pnls_of(evaluate_trades(trades, policy, timezone, multipliers=multipliers)))


def recovery_factor(total_pnl: float, max_dd: float) -> float:
    """Total net P&L / max drawdown. Without a drawdown: 10 if profitable, else 0."""
    max_dd = abs(max_dd)
    if max_dd == 0:
        return 10.0 if total_pnl > 0 else 0.0
    return total_pnl / max_dd


def average_loss_run(pnls: Iterable[float]) -> float:
    """
    Mean of the sums of consecutive losing trades (negative, 0 if none).
    Any non-negative trade closes a run; a run still open at the end counts.
    """
    total = 0.0
    runs = 0
    current = 0.0
    in_run = False
    for p in pnls:
        if p < 0:
            current += p
            in_run = True
        elif in_run:
            total += current
            runs += 1
            current = 0.0
            in_run = False
    if in_run:
        total += current
        runs += 1
    return total / runs if runs else 0.0


def drawdown_periods(pnls: Sequence[float]) -> List[DrawdownPeriod]:
    """
    Under-water episodes: from the first point below the high-water mark to
    the point equity gets back to it. An episode still open at the end has
    recovery_trades=None and still_active=True.
    """
    periods: List[DrawdownPeriod] = []
    tracker = DrawdownTracker()
    start: Optional[int] = None
    depth = 0.0

    for i, p in enumerate(pnls):
        dd = tracker.update(p)
        if dd == 0:
            if start is not None:
                periods.append(DrawdownPeriod(
                    start_index=start,
                    end_index=i,
                    max_depth=depth,
                    recovery_trades=i - start,
                ))
                start = None
                depth = 0.0
        else:
            if start is None:
                start = i
            depth = max(depth, dd)

    # still under water
    if start is not None:
        periods.append(DrawdownPeriod(
            start_index=start,
            end_index=len(pnls) - 1,
            max_depth=depth,
            recovery_trades=None,
            still_active=True,
        ))
    return periods
