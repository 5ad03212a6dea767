"""
Composite Quality Score — weighted blend of six 0-100 sub-scores
================================================================

  Win %           0.15   status win rate, 60% counts as perfect
  Profit Factor   0.25   piecewise-linear ratio table
  RR              0.20   same table, |avg win / avg loss|
  Recovery        0.10   interpolated bucket table on total P&L / max DD
  Max DD          0.20   concave penalty against the drawdown goal
  Consistency     0.10   100 − stddev / total P&L × 100

Every sub-score is rounded to 1 decimal on its own; the composite is the
weighted sum of the unrounded sub-scores, rounded to 1 decimal.

Piecewise mappings are ordered band tables (first matching band wins,
outside every band scores the table default) so a bucket can be added or
tested without touching the others.
"""

from __future__ import annotations
import math
import numbers
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from trade_journal.journal.drawdown import max_drawdown, recovery_factor
from trade_journal.journal.journal_models import EvaluatedTrade, ScoreDetail, Trade, ZellaScore
from trade_journal.journal.trade_metrics import PolicyLike, evaluate_trades, pnls_of, round_half_up
from trade_journal.journal.trade_stats import calculate_win_rate, summarize_pnls
from trade_journal.utils.exceptions import AnalyticsInputError


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BAND TABLES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class LinearBand:
    """lower <= v < upper  →  slope·v + intercept"""
    lower: float
    upper: float
    slope: float
    intercept: float

    def contains(self, value: float) -> bool:
        return self.lower <= value < self.upper

    def score(self, value: float) -> float:
        return self.slope * value + self.intercept


@dataclass(frozen=True)
class InterpolatedBand:
    """
    lower <= v <= upper  →  linear from score_low to score_high. Bucket edges
    are 2-decimal (3.0 - 3.49, 3.5 - ...), so values in the gap between two
    bands match neither and take the table default.
    """
    lower: float
    upper: float
    score_low: float
    score_high: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def score(self, value: float) -> float:
        span = self.upper - self.lower
        if span == 0 or math.isinf(span):
            return self.score_high
        progress = (value - self.lower) / span
        return self.score_low + progress * (self.score_high - self.score_low)


Band = Union[LinearBand, InterpolatedBand]


@dataclass(frozen=True)
class ScoreTable:
    bands: Tuple[Band, ...]
    default: float = 0.0

    def score(self, value: float) -> float:
        for band in self.bands:
            if band.contains(value):
                return band.score(value)
        return self.default


_INF = float("inf")

RATIO_SCORE_TABLE = ScoreTable(bands=(
    LinearBand(2.6, _INF, 0.0, 100.0),
    LinearBand(2.0, 2.6, 100 / 3, 40 / 3),
    LinearBand(1.0, 2.0, 50.0, -20.0),
    LinearBand(0.5, 1.0, 60.0, -30.0),
))

RECOVERY_SCORE_TABLE = ScoreTable(bands=(
    InterpolatedBand(3.5, _INF, 100.0, 100.0),
    InterpolatedBand(3.0, 3.49, 70.0, 99.0),
    InterpolatedBand(2.5, 2.99, 60.0, 69.0),
    InterpolatedBand(2.0, 2.49, 50.0, 59.0),
    InterpolatedBand(1.5, 1.99, 30.0, 49.0),
    InterpolatedBand(1.0, 1.49, 1.0, 29.0),
))

# radar order
SCORE_WEIGHTS: Dict[str, float] = {
    "Win %": 0.15,
    "Profit Factor": 0.25,
    "RR": 0.20,
    "Recovery": 0.10,
    "Max DD": 0.20,
    "Consistency": 0.10,
}

FULL_MARK = 100.0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SUB-SCORES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def win_rate_score(win_rate_pct: float) -> float:
    return min(100.0, win_rate_pct / 60 * 100)


def profit_factor_score(pf: float) -> float:
    return RATIO_SCORE_TABLE.score(pf)


def reward_risk_score(rr: float) -> float:
    return RATIO_SCORE_TABLE.score(rr)


def recovery_score(recovery: float) -> float:
    return RECOVERY_SCORE_TABLE.score(recovery)


def drawdown_score(max_dd: float, max_drawdown_goal: float = 0.0) -> float:
    """
    max(0, 100 − 25x − 125x²) with x = |max_dd| / goal.
    Without a goal there is no partial credit: 100 only for zero drawdown.
    """
    goal = check_drawdown_goal(max_drawdown_goal)
    dd = abs(max_dd)
    if goal > 0:
        x = dd / goal
        return max(0.0, 100 - 25 * x - 125 * x ** 2)
    return 100.0 if dd == 0 else 0.0


def consistency_score(pnls: Sequence[float], total_pnl: float) -> float:
    """Population stddev of the non-zero P&Ls, relative to total profit."""
    if total_pnl <= 0:
        return 0.0
    relevant = [p for p in pnls if p != 0]
    if not relevant:
        return 0.0
    std = float(np.std(relevant))
    return max(0.0, 100 - std / total_pnl * 100)


def check_drawdown_goal(goal) -> float:
    if goal is None:
        return 0.0
    if isinstance(goal, bool) or not isinstance(goal, numbers.Real) or not math.isfinite(goal):
        raise AnalyticsInputError(f"max_drawdown_goal must be a finite number, got {goal!r}",
                                  field="max_drawdown_goal")
    if goal < 0:
        raise AnalyticsInputError("max_drawdown_goal cannot be negative", field="max_drawdown_goal")
    return float(goal)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# COMPOSITE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def empty_score() -> ZellaScore:
    return ZellaScore(score=0.0, details=[ScoreDetail(subject, 0.0, FULL_MARK) for subject in SCORE_WEIGHTS])


def score_from_metrics(win_rate_pct: float, profit_factor: float, reward_risk: float,
                       recovery: float, max_dd: float, pnls: Sequence[float], total_pnl: float,
                       max_drawdown_goal: float = 0.0) -> ZellaScore:
    """Blend precomputed aggregates into the composite score."""
    raw = {
        "Win %": win_rate_score(win_rate_pct),
        "Profit Factor": profit_factor_score(profit_factor),
        "RR": reward_risk_score(reward_risk),
        "Recovery": recovery_score(recovery),
        "Max DD": drawdown_score(max_dd, max_drawdown_goal),
        "Consistency": consistency_score(pnls, total_pnl),
    }
    weighted = sum(raw[subject] * weight for subject, weight in SCORE_WEIGHTS.items())
    return ZellaScore(
        score=round_half_up(weighted, 1),
        details=[ScoreDetail(subject, round_half_up(raw[subject], 1), FULL_MARK) for subject in SCORE_WEIGHTS],
    )


def score_from_evaluated(evaluated: Sequence[EvaluatedTrade], max_drawdown_goal: float = 0.0) -> ZellaScore:
    """Score over an already evaluated (closed, chronological) trade list."""
    check_drawdown_goal(max_drawdown_goal)
    if not evaluated:
        return empty_score()
    pnls = pnls_of(evaluated)
    summary = summarize_pnls(pnls)
    dd = max_drawdown(pnls)
    return score_from_metrics(
        win_rate_pct=calculate_win_rate(e.trade for e in evaluated),
        profit_factor=summary.profit_factor,
        reward_risk=summary.reward_risk,
        recovery=recovery_factor(summary.total_pnl, dd),
        max_dd=dd,
        pnls=pnls,
        total_pnl=summary.total_pnl,
        max_drawdown_goal=max_drawdown_goal,
    )


def calculate_zella_score(trades: Iterable[Trade], policy: PolicyLike = None,
                          max_drawdown_goal: float = 0.0, timezone: str = "UTC",
                          multipliers: Optional[Mapping[str, float]] = None) -> ZellaScore:
    """Composite score over the closed trades. No closed trades → 0 everywhere."""
    evaluated = evaluate_trades(trades, policy, timezone, multipliers=multipliers)
    return score_from_evaluated(evaluated, max_drawdown_goal)
