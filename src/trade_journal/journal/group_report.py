"""
Group Report — performance rows by weekday, month, entry hour or hold time.

Rows are padded so every label of the grouping appears even without trades
(weekends only when something was traded on them). Calendar labels use the
entry time in the reporting timezone.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from trade_journal.journal.drawdown import average_loss_run, max_drawdown
from trade_journal.journal.journal_models import EvaluatedTrade, GroupRow, Trade
from trade_journal.journal.trade_metrics import PolicyLike, evaluate_trades, pnls_of
from trade_journal.journal.trade_stats import calculate_win_rate, summarize_pnls
from trade_journal.utils.exceptions import ConfigurationError


class GroupBy(str, Enum):
    WEEKDAY = "day"
    MONTH = "month"
    HOUR = "time"
    DURATION = "duration"


WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
WEEKEND = ("Saturday", "Sunday")
MONTHS = ["January", "February", "March", "April", "May", "June", "July",
          "August", "September", "October", "November", "December"]
HOURS = [f"{h:02d}:00" for h in range(24)]

# (upper bound in minutes, inclusive except the first, label)
DURATION_BUCKETS = [
    (1, "< 1m"),
    (2, "1m - 2m"),
    (5, "2m - 5m"),
    (10, "5m - 10m"),
    (30, "10m - 30m"),
    (60, "30m - 1h"),
    (120, "1h - 2h"),
    (240, "2h - 4h"),
]
LONG_HOLD = "> 4h"
UNKNOWN_DURATION = "Unknown"
DURATIONS = [label for _, label in DURATION_BUCKETS] + [LONG_HOLD]


def duration_label(hold_seconds: Optional[float]) -> str:
    if hold_seconds is None:
        return UNKNOWN_DURATION
    minutes = hold_seconds / 60
    if minutes < 1:
        return DURATION_BUCKETS[0][1]
    for upper, label in DURATION_BUCKETS[1:]:
        if minutes <= upper:
            return label
    return LONG_HOLD


def _label_for(e: EvaluatedTrade, group_by: GroupBy) -> str:
    if group_by is GroupBy.WEEKDAY:
        return WEEKDAYS[e.entry_at.weekday()]
    if group_by is GroupBy.MONTH:
        return MONTHS[e.entry_at.month - 1]
    if group_by is GroupBy.HOUR:
        return HOURS[e.entry_at.hour]
    return duration_label(e.trade.hold_seconds)


def _labels(group_by: GroupBy, present: Iterable[str]) -> List[str]:
    present = set(present)
    if group_by is GroupBy.WEEKDAY:
        return [d for d in WEEKDAYS if d not in WEEKEND or d in present]
    if group_by is GroupBy.MONTH:
        return list(MONTHS)
    if group_by is GroupBy.HOUR:
        return list(HOURS)
    return DURATIONS + ([UNKNOWN_DURATION] if UNKNOWN_DURATION in present else [])


def _coerce_group(value: Union[GroupBy, str]) -> GroupBy:
    if isinstance(value, GroupBy):
        return value
    key = str(value).strip().lower()
    for member in GroupBy:
        if key in (member.value, member.name.lower()):
            return member
    raise ConfigurationError(f"unknown group key {value!r}", field="group_by")


def build_row(label: str, sort_index: int, members: Sequence[EvaluatedTrade]) -> GroupRow:
    row = GroupRow(label=label, sort_index=sort_index, count=len(members))
    if not members:
        return row
    pnls = pnls_of(members)
    summary = summarize_pnls(pnls)
    total_r = 0.0
    for e in members:
        total_r += e.r_multiple or 0.0
    risk_samples = [e.metrics.actual_risk_pct for e in members if e.metrics.actual_risk_pct is not None]

    row.net_pnl = summary.total_pnl
    row.win_rate = calculate_win_rate(e.trade for e in members)
    row.profit_factor = summary.profit_factor
    row.avg_win = summary.avg_win
    row.avg_loss = summary.avg_loss
    row.total_r = total_r
    row.avg_r = total_r / len(members)
    row.max_drawdown = max_drawdown(pnls)
    row.avg_drawdown = average_loss_run(pnls)
    row.avg_win_loss_ratio = summary.reward_risk
    row.avg_actual_risk_pct = sum(risk_samples) / len(risk_samples) if risk_samples else 0.0
    return row


def report_from_evaluated(evaluated: Sequence[EvaluatedTrade],
                          group_by: Union[GroupBy, str] = GroupBy.WEEKDAY) -> List[GroupRow]:
    group = _coerce_group(group_by)
    members: Dict[str, List[EvaluatedTrade]] = {}
    for e in evaluated:
        members.setdefault(_label_for(e, group), []).append(e)
    return [build_row(label, i, members.get(label, []))
            for i, label in enumerate(_labels(group, members))]


def group_report(trades: Iterable[Trade], group_by: Union[GroupBy, str] = GroupBy.WEEKDAY,
                 policy: PolicyLike = None, timezone: str = "UTC",
                 multipliers: Optional[Mapping[str, float]] = None) -> List[GroupRow]:
    """One padded row per label of `group_by`, over closed trades."""
    evaluated = evaluate_trades(trades, policy, timezone, multipliers=multipliers)
    return report_from_evaluated(evaluated, group_by)
