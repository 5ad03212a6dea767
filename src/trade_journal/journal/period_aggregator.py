"""
Time-Bucketed Aggregator — day / week / month buckets and equity series
=======================================================================

Bucket keys come from the entry time in the reporting timezone, never the
host's local zone:
  day    "YYYY-MM-DD"
  week   "YYYY-MM-DD" of the Monday starting the week
  month  "YYYY-MM"

Calendar arithmetic (week starts, gap filling) goes through pandas Periods;
money sums stay sequential Python additions over the cent-rounded P&Ls so
totals match the per-trade figures exactly.
"""

from __future__ import annotations
from collections import OrderedDict
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from trade_journal.journal.drawdown import DrawdownTracker, max_drawdown
from trade_journal.journal.journal_models import (
    EvaluatedTrade,
    PeriodBucket,
    SeriesPoint,
    Timeframe,
    Trade,
    localize,
    resolve_timezone,
)
from trade_journal.journal.trade_metrics import PolicyLike, evaluate_trades, pnls_of
from trade_journal.utils.exceptions import AnalyticsInputError, ConfigurationError

__all__ = [
    "resolve_timezone",
    "coerce_timeframe",
    "period_key",
    "group_by_period",
    "aggregate_evaluated",
    "aggregate_periods",
    "period_max_drawdowns",
    "daily_totals",
    "series_from_buckets",
    "equity_curve",
]

_PANDAS_FREQ = {
    Timeframe.DAY: "D",
    Timeframe.WEEK: "W-SUN",    # weeks ending Sunday, i.e. starting Monday
    Timeframe.MONTH: "M",
}

_KEY_FORMAT = {
    Timeframe.DAY: "%Y-%m-%d",
    Timeframe.WEEK: "%Y-%m-%d",
    Timeframe.MONTH: "%Y-%m",
}

DateLike = Union[datetime, str, pd.Timestamp]


def coerce_timeframe(value: Union[Timeframe, str]) -> Timeframe:
    if isinstance(value, Timeframe):
        return value
    try:
        return Timeframe(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(f"unknown timeframe {value!r}", field="timeframe") from None


def _to_period(ts: DateLike, timeframe: Timeframe, tz: tzinfo) -> pd.Period:
    """Aware stamps are converted to `tz` first; naive ones are taken as wall-clock time."""
    stamp = pd.Timestamp(ts)
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(tz).tz_localize(None)
    return stamp.to_period(_PANDAS_FREQ[timeframe])


def _format_period(period: pd.Period, timeframe: Timeframe) -> str:
    return period.start_time.strftime(_KEY_FORMAT[timeframe])


def period_key(dt: datetime, timeframe: Union[Timeframe, str] = Timeframe.DAY,
               timezone: Union[str, tzinfo, None] = "UTC") -> str:
    """Calendar bucket key of `dt` in `timezone`. Naive datetimes are already wall-clock there."""
    tf = coerce_timeframe(timeframe)
    tz = resolve_timezone(timezone)
    return _format_period(_to_period(localize(dt, tz).replace(tzinfo=None), tf, tz), tf)


def group_by_period(evaluated: Sequence[EvaluatedTrade],
                    timeframe: Union[Timeframe, str] = Timeframe.DAY) -> "OrderedDict[str, List[EvaluatedTrade]]":
    """Chronological buckets of evaluated trades; each bucket keeps entry order."""
    tf = coerce_timeframe(timeframe)
    groups: Dict[str, List[EvaluatedTrade]] = {}
    for e in evaluated:
        key = _format_period(_to_period(e.entry_at.replace(tzinfo=None), tf, e.entry_at.tzinfo), tf)
        groups.setdefault(key, []).append(e)
    return OrderedDict(sorted(groups.items()))


def aggregate_evaluated(evaluated: Sequence[EvaluatedTrade],
                        timeframe: Union[Timeframe, str] = Timeframe.DAY) -> List[PeriodBucket]:
    """Per-period rollups plus the running cumulative / high-water / drawdown across periods."""
    running = DrawdownTracker()
    buckets: List[PeriodBucket] = []
    for key, members in group_by_period(evaluated, timeframe).items():
        pnls = pnls_of(members)
        bucket = PeriodBucket(period_key=key, trades=len(members))
        for e in members:
            bucket.pnl += e.net_pnl
            bucket.r_sum += e.r_multiple or 0.0
            if e.net_pnl > 0:
                bucket.wins += 1
            elif e.net_pnl < 0:
                bucket.losses += 1
        bucket.drawdown = max_drawdown(pnls)
        bucket.cumulative_drawdown = running.update(bucket.pnl)
        bucket.cumulative_pnl = running.equity
        bucket.peak_equity = running.peak
        buckets.append(bucket)
    return buckets


def aggregate_periods(trades: Iterable[Trade], policy: PolicyLike = None,
                      timeframe: Union[Timeframe, str] = Timeframe.DAY, timezone: str = "UTC",
                      multipliers: Optional[Mapping[str, float]] = None) -> List[PeriodBucket]:
    evaluated = evaluate_trades(trades, policy, timezone, multipliers=multipliers)
    return aggregate_evaluated(evaluated, timeframe)


def period_max_drawdowns(trades: Iterable[Trade], policy: PolicyLike = None,
                         timeframe: Union[Timeframe, str] = Timeframe.DAY, timezone: str = "UTC",
                         multipliers: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
    """Peak-to-trough inside each period, the peak reset at every period start."""
    return {b.period_key: b.drawdown
            for b in aggregate_periods(trades, policy, timeframe, timezone, multipliers)}


def daily_totals(trades: Iterable[Trade], policy: PolicyLike = None, timezone: str = "UTC",
                 multipliers: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
    return {b.period_key: b.pnl
            for b in aggregate_periods(trades, policy, Timeframe.DAY, timezone, multipliers)}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONTINUOUS SERIES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def series_from_buckets(buckets: Sequence[PeriodBucket], timeframe: Union[Timeframe, str] = Timeframe.DAY,
                        start: Optional[DateLike] = None, end: Optional[DateLike] = None,
                        timezone: Union[str, tzinfo, None] = "UTC") -> List[SeriesPoint]:
    """
    Every period from the first to the last bucket, gaps included with value 0
    and the cumulative carried forward. start / end only widen the range.
    """
    tf = coerce_timeframe(timeframe)
    tz = resolve_timezone(timezone)
    freq = _PANDAS_FREQ[tf]
    by_key = {b.period_key: b for b in buckets}

    bounds = [pd.Period(b.period_key, freq=freq) for b in (buckets[0], buckets[-1])] if buckets else []
    if start is not None:
        bounds.append(_to_period(start, tf, tz))
    if end is not None:
        bounds.append(_to_period(end, tf, tz))
    if start is not None and end is not None and bounds[-2] > bounds[-1]:
        raise AnalyticsInputError("series start is after series end", field="start")
    if not bounds:
        return []

    running = DrawdownTracker()
    series: List[SeriesPoint] = []
    for period in pd.period_range(min(bounds), max(bounds), freq=freq):
        key = _format_period(period, tf)
        bucket = by_key.get(key)
        value = bucket.pnl if bucket else 0.0
        dd = running.update(value)
        series.append(SeriesPoint(
            period_key=key,
            value=value,
            cumulative=running.equity,
            drawdown=dd,
            has_trades=bucket is not None,
            trades=bucket.trades if bucket else 0,
        ))
    return series


def equity_curve(trades: Iterable[Trade], policy: PolicyLike = None,
                 timeframe: Union[Timeframe, str] = Timeframe.DAY, timezone: str = "UTC",
                 start: Optional[DateLike] = None, end: Optional[DateLike] = None,
                 multipliers: Optional[Mapping[str, float]] = None) -> List[SeriesPoint]:
    """Continuous cumulative net P&L series over closed trades."""
    buckets = aggregate_periods(trades, policy, timeframe, timezone, multipliers)
    return series_from_buckets(buckets, timeframe, start, end, timezone)
