"""
Aggregate Statistics — win rate, profit factor, averages, expectancy
====================================================================

Two definitions of "winner" live side by side here:
  - calculate_win_rate() is STATUS-driven (the trader's own Win/Loss label,
    break-even excluded from the base);
  - everything built on summarize_pnls() is P&L-driven (net P&L > 0 / < 0).

They can disagree on edge trades (a "Break Even" trade that lost its
commission) and are kept apart on purpose.
"""

from __future__ import annotations
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from trade_journal.journal.journal_models import (
    LOSING_STATUSES,
    WINNING_STATUSES,
    PnLSummary,
    Trade,
)
from trade_journal.journal.trade_metrics import PolicyLike, net_pnl


def _closed_pnls(trades: Iterable[Trade], policy: PolicyLike = None,
                 multipliers: Optional[Mapping[str, float]] = None) -> List[float]:
    return [net_pnl(t, policy, multipliers) for t in trades if t.is_closed]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# STATUS-DRIVEN
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def calculate_win_rate(trades: Iterable[Trade]) -> int:
    """
    winners / (winners + losers) as an integer percent, by trade status.
    Break-even and unlabelled trades are outside the base. 0 when nothing is decisive.
    """
    winners = losers = 0
    for t in trades:
        if not t.is_closed:
            continue
        if t.status in WINNING_STATUSES:
            winners += 1
        elif t.status in LOSING_STATUSES:
            losers += 1
    decisive = winners + losers
    if decisive == 0:
        return 0
    return int(math.floor(winners / decisive * 100 + 0.5))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# P&L-DRIVEN
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def summarize_pnls(pnls: Sequence[float]) -> PnLSummary:
    """One pass over already-rounded net P&Ls. Sums are never re-rounded."""
    s = PnLSummary(trades=len(pnls))
    total_win = total_loss = 0.0
    for p in pnls:
        s.total_pnl += p
        if p > 0:
            s.winners += 1
            s.gross_profit += p
            total_win += p
            s.largest_win = max(s.largest_win, p)
        elif p < 0:
            s.losers += 1
            s.gross_loss += abs(p)
            total_loss += p
            s.largest_loss = min(s.largest_loss, p)
        else:
            s.break_even += 1
    s.avg_win = total_win / s.winners if s.winners else 0.0
    s.avg_loss = total_loss / s.losers if s.losers else 0.0
    return s


def gross_stats(trades: Iterable[Trade], policy: PolicyLike = None,
                multipliers: Optional[Mapping[str, float]] = None) -> Tuple[float, float]:
    """(gross_profit, gross_loss) with gross_loss as a positive magnitude."""
    s = summarize_pnls(_closed_pnls(trades, policy, multipliers))
    return s.gross_profit, s.gross_loss


def profit_factor(trades: Iterable[Trade], policy: PolicyLike = None,
                  multipliers: Optional[Mapping[str, float]] = None) -> float:
    """Gross profit / gross loss, 2 decimals. No losses: 100 if anything was made, else 0."""
    return summarize_pnls(_closed_pnls(trades, policy, multipliers)).profit_factor


def avg_win_loss(trades: Iterable[Trade], policy: PolicyLike = None,
                 multipliers: Optional[Mapping[str, float]] = None) -> Tuple[float, float]:
    """(avg_win, avg_loss) over strictly positive / strictly negative net P&L. avg_loss <= 0."""
    s = summarize_pnls(_closed_pnls(trades, policy, multipliers))
    return s.avg_win, s.avg_loss


def extremes(trades: Iterable[Trade], policy: PolicyLike = None,
             multipliers: Optional[Mapping[str, float]] = None) -> Tuple[float, float]:
    """(largest_win, largest_loss); 0 where there is none."""
    s = summarize_pnls(_closed_pnls(trades, policy, multipliers))
    return s.largest_win, s.largest_loss


def total_net_pnl(trades: Iterable[Trade], policy: PolicyLike = None,
                  multipliers: Optional[Mapping[str, float]] = None) -> float:
    total = 0.0
    for p in _closed_pnls(trades, policy, multipliers):
        total += p
    return total


# ── Expectancy ──

def expectancy(win_rate_pct: float, avg_win: float, avg_loss: float) -> float:
    """win% × avg_win + (1 − win%) × avg_loss, with avg_loss already negative."""
    w = win_rate_pct / 100.0
    return w * avg_win + (1 - w) * avg_loss


def calculate_expectancy(trades: Sequence[Trade], policy: PolicyLike = None,
                         multipliers: Optional[Mapping[str, float]] = None) -> float:
    trades = list(trades)
    avg_win, avg_loss = avg_win_loss(trades, policy, multipliers)
    return expectancy(calculate_win_rate(trades), avg_win, avg_loss)
