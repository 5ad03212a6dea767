"""
Journal Analytics Engine — single-pass dashboard & report analytics
===================================================================

Computes everything the dashboard and report screens show from one list of
trades:
  - Core profitability (win rate, profit factor, expectancy, extremes)
  - Streaks (P&L-driven trade/day streaks, status-driven consecutive counts)
  - Drawdown & recovery analysis
  - Composite quality score (radar breakdown)
  - Period buckets and the continuous equity curve
  - Overview report (days, hold times, best/worst day/month/strategy/tag)
  - Group reports (weekday / month / hour / hold time)

Trades are filtered, priced and sorted ONCE per call (evaluate_trades); every
section below works off that shared list. Nothing is cached between calls.
"""

from __future__ import annotations
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from trade_journal.journal.drawdown import (
    DrawdownTracker,
    average_loss_run,
    drawdown_periods,
    max_drawdown,
    recovery_factor,
)
from trade_journal.journal.group_report import GroupBy, report_from_evaluated
from trade_journal.journal.journal_models import (
    CommissionPolicy,
    EvaluatedTrade,
    GroupRow,
    PeriodBucket,
    SeriesPoint,
    Timeframe,
    Trade,
    ZellaScore,
    resolve_timezone,
)
from trade_journal.journal.period_aggregator import (
    aggregate_evaluated,
    coerce_timeframe,
    series_from_buckets,
)
from trade_journal.journal.streaks import status_streaks_from_evaluated, streaks_from_evaluated
from trade_journal.journal.trade_metrics import PolicyLike, evaluate_trades, pnls_of, round_half_up
from trade_journal.journal.trade_stats import calculate_win_rate, expectancy, summarize_pnls
from trade_journal.journal.zella_score import check_drawdown_goal, score_from_evaluated
from trade_journal.utils.config import Settings, get_settings
from trade_journal.utils.logger import get_logger

logger = get_logger(__name__)


class JournalAnalytics:
    """
    Analytics over a materialised trade list under one commission policy,
    drawdown goal and reporting timezone. Stateless between calls: call it
    again whenever the trades or the settings change.
    """

    def __init__(self, policy: PolicyLike = None, max_drawdown_goal: float = 0.0,
                 timezone: str = "America/New_York", timeframe: Union[Timeframe, str] = Timeframe.DAY,
                 multipliers: Optional[Mapping[str, float]] = None):
        self.policy = CommissionPolicy.coerce(policy)
        self.max_drawdown_goal = check_drawdown_goal(max_drawdown_goal)
        self.timezone = resolve_timezone(timezone)
        self.timeframe = coerce_timeframe(timeframe)
        self.multipliers = dict(multipliers or {})

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "JournalAnalytics":
        settings = settings or get_settings()
        return cls(
            policy=CommissionPolicy(settings.commission_per_unit),
            max_drawdown_goal=settings.max_drawdown_goal,
            timezone=settings.timezone,
            timeframe=settings.default_timeframe,
            multipliers=settings.contract_multipliers,
        )

    def evaluate(self, trades: Iterable[Trade]) -> List[EvaluatedTrade]:
        return evaluate_trades(trades, self.policy, self.timezone, multipliers=self.multipliers)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # FULL REPORT
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def compute_full_analytics(self, trades: Iterable[Trade]) -> Dict[str, Any]:
        """
        Comprehensive analytics report — the main entry point.
        Empty or all-open input yields zeros, never an error.
        """
        started = time.perf_counter()
        trades = list(trades)
        evaluated = self.evaluate(trades)
        buckets = aggregate_evaluated(evaluated, self.timeframe)

        result: Dict[str, Any] = {}
        result["total_trades"] = len(evaluated)
        result["open_trades"] = len(trades) - len(evaluated)
        result["core_metrics"] = self._core_metrics(evaluated)
        result["drawdown_analysis"] = self._drawdown_analysis(evaluated)
        result["zella_score"] = score_from_evaluated(evaluated, self.max_drawdown_goal).to_dict()
        result["overview"] = self._overview(trades, evaluated)
        result["period_report"] = [b.to_dict() for b in buckets]
        result["equity_curve"] = [p.to_dict() for p in
                                  series_from_buckets(buckets, self.timeframe, timezone=self.timezone)]

        logger.debug(
            "full_analytics_computed",
            trades=len(trades),
            closed=len(evaluated),
            periods=len(buckets),
            timeframe=self.timeframe.value,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return result

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # PUBLIC SECTIONS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def core_metrics(self, trades: Iterable[Trade]) -> Dict[str, Any]:
        return self._core_metrics(self.evaluate(trades))

    def overview(self, trades: Iterable[Trade]) -> Dict[str, Any]:
        trades = list(trades)
        return self._overview(trades, self.evaluate(trades))

    def zella_score(self, trades: Iterable[Trade]) -> ZellaScore:
        return score_from_evaluated(self.evaluate(trades), self.max_drawdown_goal)

    def period_report(self, trades: Iterable[Trade],
                      timeframe: Union[Timeframe, str, None] = None) -> List[PeriodBucket]:
        return aggregate_evaluated(self.evaluate(trades), timeframe or self.timeframe)

    def equity_curve(self, trades: Iterable[Trade], timeframe: Union[Timeframe, str, None] = None,
                     start=None, end=None) -> List[SeriesPoint]:
        tf = coerce_timeframe(timeframe or self.timeframe)
        buckets = aggregate_evaluated(self.evaluate(trades), tf)
        return series_from_buckets(buckets, tf, start, end, self.timezone)

    def group_report(self, trades: Iterable[Trade],
                     group_by: Union[GroupBy, str] = GroupBy.WEEKDAY) -> List[GroupRow]:
        return report_from_evaluated(self.evaluate(trades), group_by)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # SECTIONS OVER THE SHARED EVALUATED LIST
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def _core_metrics(self, evaluated: Sequence[EvaluatedTrade]) -> Dict[str, Any]:
        pnls = pnls_of(evaluated)
        summary = summarize_pnls(pnls)
        win_rate = calculate_win_rate(e.trade for e in evaluated)
        max_dd = max_drawdown(pnls)
        risk_samples = [e.metrics.actual_risk_pct for e in evaluated if e.metrics.actual_risk_pct is not None]

        return {
            **summary.to_dict(),
            "win_rate": win_rate,
            # ── Expectancy: status win rate against P&L-driven averages ──
            "expectancy": expectancy(win_rate, summary.avg_win, summary.avg_loss),
            "max_drawdown": max_dd,
            "recovery_factor": round(recovery_factor(summary.total_pnl, max_dd), 2),
            "avg_loss_run": average_loss_run(pnls),
            "avg_actual_risk_pct": sum(risk_samples) / len(risk_samples) if risk_samples else 0.0,
            "streaks": streaks_from_evaluated(evaluated).to_dict(),
            "status_streaks": status_streaks_from_evaluated(evaluated).to_dict(),
        }

    def _drawdown_analysis(self, evaluated: Sequence[EvaluatedTrade]) -> Dict[str, Any]:
        """
        Drawdown recovery analysis.
        How long until equity makes a new high? Long recoveries mean risk.
        """
        pnls = pnls_of(evaluated)
        periods = drawdown_periods(pnls)
        recovered = [p.recovery_trades for p in periods if p.recovery_trades]

        tracker = DrawdownTracker()
        cumulative = []
        for p in pnls:
            tracker.update(p)
            cumulative.append(tracker.equity)

        return {
            "max_drawdown": tracker.max_drawdown,
            "total_drawdown_periods": len(periods),
            "avg_recovery_trades": round(sum(recovered) / len(recovered), 1) if recovered else 0,
            "longest_recovery": max(recovered, default=0),
            "deepest_drawdown": round(max((p.max_depth for p in periods), default=0), 2),
            "currently_in_drawdown": bool(periods and periods[-1].still_active),
            "drawdown_periods": [p.to_dict() for p in periods[-10:]],  # last 10
            "equity_curve": [round_half_up(c, 2) for c in cumulative],
        }

    def _overview(self, trades: Sequence[Trade], evaluated: Sequence[EvaluatedTrade]) -> Dict[str, Any]:
        """Report-page overview: trade, day and month level figures."""
        total_pnl = 0.0
        volume = 0.0
        commissions = 0.0
        hold: Dict[str, List[float]] = {"all": [], "win": [], "loss": []}
        r_values: List[float] = []
        daily: Dict[str, float] = {}
        monthly: Dict[str, float] = {}
        by_strategy: Dict[str, float] = {}
        by_tag: Dict[str, float] = {}

        for e in evaluated:
            pnl = e.net_pnl
            total_pnl += pnl
            volume += e.trade.quantity
            commissions += e.metrics.commission

            day = e.entry_at.strftime("%Y-%m-%d")
            month = e.entry_at.strftime("%Y-%m")
            daily[day] = daily.get(day, 0.0) + pnl
            monthly[month] = monthly.get(month, 0.0) + pnl
            if e.trade.strategy_id:
                by_strategy[e.trade.strategy_id] = by_strategy.get(e.trade.strategy_id, 0.0) + pnl
            for tag in e.trade.tags:
                by_tag[tag] = by_tag.get(tag, 0.0) + pnl

            seconds = e.trade.hold_seconds
            if seconds is not None:
                hold["all"].append(seconds)
                if pnl > 0:
                    hold["win"].append(seconds)
                elif pnl < 0:
                    hold["loss"].append(seconds)
            if e.r_multiple is not None:
                r_values.append(e.r_multiple)

        summary = summarize_pnls(pnls_of(evaluated))
        day_pnls = list(daily.values())
        winning_days = [p for p in day_pnls if p > 0]
        losing_days = [p for p in day_pnls if p < 0]

        def mean(values: Sequence[float]) -> float:
            return sum(values) / len(values) if values else 0.0

        return {
            "total_trades": len(evaluated),
            "open_trades": sum(1 for t in trades if not t.is_closed),
            "total_pnl": total_pnl,
            "winning_trades": summary.winners,
            "losing_trades": summary.losers,
            "break_even_trades": summary.break_even,
            "avg_trade_pnl": total_pnl / len(evaluated) if evaluated else 0.0,
            "total_commissions": commissions,
            "total_volume": volume,
            "avg_daily_volume": volume / len(daily) if daily else 0.0,
            "avg_hold_seconds": mean(hold["all"]),
            "avg_win_hold_seconds": mean(hold["win"]),
            "avg_loss_hold_seconds": mean(hold["loss"]),
            "avg_realized_r": mean(r_values),
            # ── Day level ──
            "trading_days": len(daily),
            "winning_days": len(winning_days),
            "losing_days": len(losing_days),
            "break_even_days": sum(1 for p in day_pnls if p == 0),
            "avg_daily_pnl": total_pnl / len(daily) if daily else 0.0,
            "avg_winning_day": mean(winning_days),
            "avg_losing_day": mean(losing_days),
            "largest_profit_day": max(day_pnls) if day_pnls else 0.0,
            "largest_loss_day": min(day_pnls) if day_pnls else 0.0,
            "avg_month_pnl": total_pnl / len(monthly) if monthly else 0.0,
            # ── Best / worst ──
            "day": _best_and_worst(daily),
            "month": _best_and_worst(monthly),
            "strategy": _best_and_worst(by_strategy),
            "tag": _best_and_worst(by_tag),
        }


def _best_and_worst(totals: Mapping[str, float]) -> Dict[str, Any]:
    """Highest and lowest key by net P&L; first key wins ties."""
    if not totals:
        return {"best": None, "best_value": 0.0, "worst": None, "worst_value": 0.0}
    best = worst = None
    for key, value in totals.items():
        if best is None or value > totals[best]:
            best = key
        if worst is None or value < totals[worst]:
            worst = key
    return {"best": best, "best_value": totals[best], "worst": worst, "worst_value": totals[worst]}
