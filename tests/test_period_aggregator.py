"""
Calendar bucketing, period drawdowns and the continuous equity series.
"""

from datetime import datetime, timezone

import pytest

from conftest import make_trade
from trade_journal.journal.period_aggregator import (
    aggregate_periods,
    daily_totals,
    equity_curve,
    period_key,
    period_max_drawdowns,
)
from trade_journal.utils.exceptions import AnalyticsInputError, ConfigurationError


class TestPeriodKey:

    def test_day_week_month(self):
        wednesday = datetime(2024, 3, 6, 15, 0)
        assert period_key(wednesday, "day") == "2024-03-06"
        assert period_key(wednesday, "week") == "2024-03-04"
        assert period_key(wednesday, "month") == "2024-03"

    def test_week_starts_monday(self):
        assert period_key(datetime(2024, 3, 10, 12), "week") == "2024-03-04"   # Sunday
        assert period_key(datetime(2024, 3, 11, 0, 1), "week") == "2024-03-11"  # Monday

    def test_week_across_month_boundary(self):
        assert period_key(datetime(2024, 3, 1, 10), "week") == "2024-02-26"

    def test_aware_timestamps_use_reporting_zone(self):
        late = datetime(2024, 3, 5, 3, 30, tzinfo=timezone.utc)
        assert period_key(late, "day", "UTC") == "2024-03-05"
        assert period_key(late, "day", "America/New_York") == "2024-03-04"

    def test_naive_is_wall_clock(self):
        assert period_key(datetime(2024, 3, 4, 23, 50), "day", "Asia/Tokyo") == "2024-03-04"

    def test_unknown_timeframe(self):
        with pytest.raises(ConfigurationError):
            period_key(datetime(2024, 3, 4), "quarter")

    def test_unknown_timezone(self):
        with pytest.raises(ConfigurationError):
            period_key(datetime(2024, 3, 4), "day", "Mars/Olympus")


class TestAggregatePeriods:

    def test_daily_buckets(self, mes_trades):
        buckets = aggregate_periods(mes_trades)
        assert [b.period_key for b in buckets] == ["2024-03-04", "2024-03-05", "2024-03-06"]
        assert [b.pnl for b in buckets] == [25.0, -5.0, 5.0]
        assert [b.cumulative_pnl for b in buckets] == [25.0, 20.0, 25.0]
        assert [b.cumulative_drawdown for b in buckets] == [0.0, 5.0, 0.0]
        assert [b.peak_equity for b in buckets] == [25.0, 25.0, 25.0]

    def test_weekly_bucket_rollup(self, mes_trades):
        (week,) = aggregate_periods(mes_trades, timeframe="week")
        assert week.period_key == "2024-03-04"
        assert week.trades == 3
        assert week.pnl == 25.0
        assert (week.wins, week.losses) == (2, 1)
        assert week.win_rate == 67
        assert week.drawdown == 5.0

    def test_r_sum(self):
        trades = [
            make_trade(100, 104, initial_stop_loss=98),                       # 2R
            make_trade(100, 99, initial_stop_loss=98, entry_time="2024-03-04T11:00:00"),  # -0.5R
            make_trade(100, 101, entry_time="2024-03-04T12:00:00"),            # no stop
        ]
        (day,) = aggregate_periods(trades)
        assert day.r_sum == pytest.approx(1.5)

    def test_intraday_drawdown_resets_each_day(self):
        trades = [
            make_trade(100, 104, entry_time="2024-03-04T09:30:00"),   # +20
            make_trade(100, 97, entry_time="2024-03-04T10:00:00"),    # -15
            make_trade(100, 98, entry_time="2024-03-05T09:30:00"),    # -10
            make_trade(100, 103, entry_time="2024-03-05T10:00:00"),   # +15
        ]
        assert period_max_drawdowns(trades) == {"2024-03-04": 15.0, "2024-03-05": 10.0}
        assert period_max_drawdowns(trades, timeframe="week") == {"2024-03-04": 25.0}

    def test_daily_totals(self, mes_trades, open_trade):
        assert daily_totals(mes_trades + [open_trade]) == {
            "2024-03-04": 25.0, "2024-03-05": -5.0, "2024-03-06": 5.0,
        }

    def test_commission_policy_applies(self, mes_trades):
        assert [b.pnl for b in aggregate_periods(mes_trades, policy=1.0)] == [24.0, -6.0, 4.0]

    def test_empty(self):
        assert aggregate_periods([]) == []


class TestEquityCurve:

    def test_gap_days_carry_forward(self):
        trades = [
            make_trade(100, 104, entry_time="2024-03-04T09:30:00"),   # Mon +20
            make_trade(100, 98, entry_time="2024-03-07T09:30:00"),    # Thu -10
        ]
        series = equity_curve(trades)
        assert [p.period_key for p in series] == ["2024-03-04", "2024-03-05", "2024-03-06", "2024-03-07"]
        assert [p.value for p in series] == [20.0, 0.0, 0.0, -10.0]
        assert [p.cumulative for p in series] == [20.0, 20.0, 20.0, 10.0]
        assert [p.has_trades for p in series] == [True, False, False, True]
        assert series[-1].drawdown == 10.0

    def test_weekly_gaps(self):
        trades = [
            make_trade(100, 104, entry_time="2024-03-04T09:30:00"),
            make_trade(100, 101, entry_time="2024-03-20T09:30:00"),
        ]
        series = equity_curve(trades, timeframe="week")
        assert [p.period_key for p in series] == ["2024-03-04", "2024-03-11", "2024-03-18"]
        assert [p.cumulative for p in series] == [20.0, 20.0, 25.0]

    def test_monthly_gaps(self):
        trades = [
            make_trade(100, 104, entry_time="2024-01-15T09:30:00"),
            make_trade(100, 101, entry_time="2024-03-20T09:30:00"),
        ]
        series = equity_curve(trades, timeframe="month")
        assert [p.period_key for p in series] == ["2024-01", "2024-02", "2024-03"]
        assert series[1].trades == 0

    def test_start_and_end_widen_range(self, mes_trades):
        series = equity_curve(mes_trades, start="2024-03-01", end="2024-03-08")
        assert series[0].period_key == "2024-03-01"
        assert series[-1].period_key == "2024-03-08"
        assert series[0].cumulative == 0.0
        assert series[-1].cumulative == 25.0
        assert len(series) == 8

    def test_start_after_end(self, mes_trades):
        with pytest.raises(AnalyticsInputError):
            equity_curve(mes_trades, start="2024-03-08", end="2024-03-01")

    def test_single_trade_single_point(self):
        series = equity_curve([make_trade(100, 101)])
        assert len(series) == 1
        assert series[0].to_dict() == {
            "period_key": "2024-03-04", "value": 5.0, "cumulative": 5.0,
            "drawdown": 0.0, "has_trades": True, "trades": 1,
        }

    def test_empty(self, open_trade):
        assert equity_curve([]) == []
        assert equity_curve([open_trade]) == []
