"""
Trade Journal Analytics Engine
==============================

Turns a list of logged trades into per-trade, per-period and portfolio
statistics. Pure and synchronous: no I/O, no state between calls.

Architecture:
  journal_models.py     — Trade input, CommissionPolicy, result dataclasses
  contracts.py          — Futures contract multipliers
  trade_metrics.py      — Net P&L, R-multiple, MFE/MAE, risk profile
  trade_stats.py        — Win rate, profit factor, averages, expectancy
  streaks.py            — Trade / day streaks
  drawdown.py           — Peak-to-trough drawdown, recovery
  zella_score.py        — Composite 0-100 quality score
  period_aggregator.py  — Day / week / month buckets, equity curve
  chart_axis.py         — Axis ticks and gradient split
  group_report.py       — Weekday / month / hour / hold-time reports
  journal_analytics.py  — Single-pass facade over all of the above
"""

from trade_journal.journal.journal_models import (
    # Input
    Trade,
    TradeDirection,
    TradeStatus,
    Timeframe,
    CommissionPolicy,
    # Results
    DerivedTradeMetrics,
    EvaluatedTrade,
    PnLSummary,
    StreakStats,
    StatusStreaks,
    DrawdownPeriod,
    ScoreDetail,
    ZellaScore,
    PeriodBucket,
    SeriesPoint,
    AxisScale,
    GroupRow,
)

from trade_journal.journal.contracts import contract_multiplier
from trade_journal.journal.trade_metrics import (
    net_pnl, r_multiple, net_mfe, net_mae, derive_metrics, evaluate_trades,
)
from trade_journal.journal.trade_stats import (
    calculate_win_rate, profit_factor, avg_win_loss, gross_stats, calculate_expectancy,
)
from trade_journal.journal.streaks import calculate_streaks, status_streaks
from trade_journal.journal.drawdown import DrawdownTracker, calculate_max_drawdown
from trade_journal.journal.zella_score import calculate_zella_score
from trade_journal.journal.period_aggregator import aggregate_periods, equity_curve
from trade_journal.journal.chart_axis import generate_ticks, axis_scale
from trade_journal.journal.group_report import GroupBy, group_report
from trade_journal.journal.journal_analytics import JournalAnalytics

__all__ = [
    # Models
    "Trade", "TradeDirection", "TradeStatus", "Timeframe", "CommissionPolicy",
    "DerivedTradeMetrics", "EvaluatedTrade", "PnLSummary", "StreakStats", "StatusStreaks",
    "DrawdownPeriod", "ScoreDetail", "ZellaScore", "PeriodBucket", "SeriesPoint",
    "AxisScale", "GroupRow",
    # Functions
    "contract_multiplier", "net_pnl", "r_multiple", "net_mfe", "net_mae",
    "derive_metrics", "evaluate_trades",
    "calculate_win_rate", "profit_factor", "avg_win_loss", "gross_stats", "calculate_expectancy",
    "calculate_streaks", "status_streaks", "DrawdownTracker", "calculate_max_drawdown",
    "calculate_zella_score", "aggregate_periods", "equity_curve",
    "generate_ticks", "axis_scale", "GroupBy", "group_report",
    # Engine
    "JournalAnalytics",
]
