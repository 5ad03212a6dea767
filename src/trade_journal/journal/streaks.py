"""
Streak Detector — current / max winning & losing runs, per trade and per day.

Outcome sequences are chronological (oldest first). The current streak is
signed: +N means N wins ending now, -N means N losses ending now. Zero
outcomes stop the current-streak walk and reset both max counters.
"""

from __future__ import annotations
from collections import OrderedDict
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from trade_journal.journal.journal_models import (
    LOSING_STATUSES,
    WINNING_STATUSES,
    EvaluatedTrade,
    StatusStreaks,
    StreakStats,
    Trade,
)
from trade_journal.journal.trade_metrics import PolicyLike, evaluate_trades, pnls_of


def current_streak(outcomes: Sequence[float]) -> int:
    """Walk back from the most recent outcome while the sign holds."""
    if not outcomes:
        return 0
    last = outcomes[-1]
    if last == 0:
        return 0
    positive = last > 0
    n = 0
    for value in reversed(outcomes):
        if (value > 0) if positive else (value < 0):
            n += 1
        else:
            break
    return n if positive else -n


def max_streaks(outcomes: Iterable[float]) -> Tuple[int, int]:
    """(max_win_streak, max_loss_streak) over a chronological scan."""
    max_win = max_loss = 0
    wins = losses = 0
    for value in outcomes:
        if value > 0:
            wins += 1
            losses = 0
            max_win = max(max_win, wins)
        elif value < 0:
            losses += 1
            wins = 0
            max_loss = max(max_loss, losses)
        else:
            wins = losses = 0
    return max_win, max_loss


def _day_outcomes(evaluated: Sequence[EvaluatedTrade]) -> List[float]:
    # evaluated is sorted by entry_at, so insertion order is chronological
    days: "OrderedDict[object, float]" = OrderedDict()
    for e in evaluated:
        key = e.entry_at.date()
        days[key] = days.get(key, 0.0) + e.net_pnl
    return list(days.values())


def streaks_from_evaluated(evaluated: Sequence[EvaluatedTrade]) -> StreakStats:
    trade_pnls = pnls_of(evaluated)
    day_pnls = _day_outcomes(evaluated)
    max_trade_win, max_trade_loss = max_streaks(trade_pnls)
    max_day_win, max_day_loss = max_streaks(day_pnls)
    return StreakStats(
        current_trade_streak=current_streak(trade_pnls),
        max_trade_win_streak=max_trade_win,
        max_trade_loss_streak=max_trade_loss,
        current_day_streak=current_streak(day_pnls),
        max_day_win_streak=max_day_win,
        max_day_loss_streak=max_day_loss,
    )


def calculate_streaks(trades: Iterable[Trade], policy: PolicyLike = None, timezone: str = "UTC",
                      multipliers: Optional[Mapping[str, float]] = None) -> StreakStats:
    """Trade-level and calendar-day-level streaks over closed trades (P&L-driven)."""
    return streaks_from_evaluated(evaluate_trades(trades, policy, timezone, multipliers=multipliers))


def status_streaks_from_evaluated(evaluated: Sequence[EvaluatedTrade]) -> StatusStreaks:
    """
    Longest consecutive Win/Small Win and Loss/Small Loss runs by trade status,
    in the order of the evaluated list. Break-even or unlabelled trades reset
    both runs.
    """
    outcomes = []
    for e in evaluated:
        if e.trade.status in WINNING_STATUSES:
            outcomes.append(1)
        elif e.trade.status in LOSING_STATUSES:
            outcomes.append(-1)
        else:
            outcomes.append(0)
    max_wins, max_losses = max_streaks(outcomes)
    return StatusStreaks(max_consecutive_wins=max_wins, max_consecutive_losses=max_losses)


def status_streaks(trades: Iterable[Trade], timezone: str = "UTC") -> StatusStreaks:
    """Status-driven consecutive counts over closed trades in entry-time order."""
    return status_streaks_from_evaluated(evaluate_trades(trades, timezone=timezone))
