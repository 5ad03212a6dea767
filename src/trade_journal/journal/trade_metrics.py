"""
Per-Trade Metrics — net P&L, R-multiple, MFE/MAE, risk profile
===============================================================

Every money figure is price distance × quantity × contract multiplier, net of
the commission chosen by the CommissionPolicy. Net P&L is rounded to cents
here and only here; aggregates sum the rounded values.
"""

from __future__ import annotations
import math
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from trade_journal.journal.contracts import contract_multiplier
from trade_journal.journal.journal_models import (
    CommissionPolicy,
    DerivedTradeMetrics,
    EvaluatedTrade,
    Trade,
    localize,
    resolve_timezone,
)

PolicyLike = Union[CommissionPolicy, float, int, None]


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half toward +inf, matching the journal's display rounding."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def total_commission(trade: Trade, policy: PolicyLike = None) -> float:
    return CommissionPolicy.coerce(policy).commission_for(trade)


def _signed_move(trade: Trade, price: float) -> float:
    """Price distance from entry, positive when favourable to the position."""
    diff = price - trade.entry_price
    return diff if trade.is_long else -diff


def gross_pnl(trade: Trade, multipliers: Optional[Mapping[str, float]] = None) -> float:
    if not trade.is_closed:
        return 0.0
    mult = contract_multiplier(trade.symbol, multipliers)
    return _signed_move(trade, trade.exit_price) * trade.quantity * mult


def net_pnl(trade: Trade, policy: PolicyLike = None,
            multipliers: Optional[Mapping[str, float]] = None) -> float:
    """Net P&L rounded to cents. Open trades are 0."""
    if not trade.is_closed:
        return 0.0
    return round_half_up(gross_pnl(trade, multipliers) - total_commission(trade, policy), 2)


def r_multiple(trade: Trade, policy: PolicyLike = None,
               multipliers: Optional[Mapping[str, float]] = None) -> Optional[float]:
    """
    Net P&L as a multiple of planned risk (stop distance money + commission).
    None without an exit or a stop; 0 when the stop sits on the entry.
    """
    if not trade.is_closed or not trade.initial_stop_loss:
        return None
    risk_per_unit = abs(trade.entry_price - trade.initial_stop_loss)
    if risk_per_unit == 0:
        return 0.0
    mult = contract_multiplier(trade.symbol, multipliers)
    total_risk = risk_per_unit * trade.quantity * mult + total_commission(trade, policy)
    if total_risk == 0:
        return 0.0
    return round_half_up(net_pnl(trade, policy, multipliers) / total_risk, 2)


def net_mfe(trade: Trade, policy: PolicyLike = None,
            multipliers: Optional[Mapping[str, float]] = None) -> float:
    """Best unrealised P&L (favourable extreme), less commission."""
    favourable = trade.highest_price_reached if trade.is_long else trade.lowest_price_reached
    if favourable is None:
        favourable = trade.entry_price
    mult = contract_multiplier(trade.symbol, multipliers)
    gross = _signed_move(trade, favourable) * trade.quantity * mult
    return round_half_up(gross - total_commission(trade, policy), 2)


def net_mae(trade: Trade, policy: PolicyLike = None,
            multipliers: Optional[Mapping[str, float]] = None) -> float:
    """P&L at the adverse extreme (usually negative), less commission."""
    adverse = trade.lowest_price_reached if trade.is_long else trade.highest_price_reached
    if adverse is None:
        adverse = trade.entry_price
    mult = contract_multiplier(trade.symbol, multipliers)
    gross = _signed_move(trade, adverse) * trade.quantity * mult
    return round_half_up(gross - total_commission(trade, policy), 2)


def derive_metrics(trade: Trade, policy: PolicyLike = None,
                   multipliers: Optional[Mapping[str, float]] = None) -> DerivedTradeMetrics:
    """All derived numbers for one trade under one commission policy."""
    policy = CommissionPolicy.coerce(policy)
    mult = contract_multiplier(trade.symbol, multipliers)
    comm = policy.commission_for(trade)
    qty = trade.quantity
    entry = trade.entry_price

    initial_risk = 0.0
    if trade.initial_stop_loss:
        initial_risk = abs(entry - trade.initial_stop_loss) * qty * mult + comm

    # adverse excursion as a positive magnitude, floored at 0
    if trade.is_long:
        low = trade.lowest_price_reached if trade.lowest_price_reached is not None else entry
        gross_actual = max(0.0, (entry - low) * qty * mult)
        best_exit = _first_present(trade.best_exit_price, trade.highest_price_reached, entry)
    else:
        high = trade.highest_price_reached if trade.highest_price_reached is not None else entry
        gross_actual = max(0.0, (high - entry) * qty * mult)
        best_exit = _first_present(trade.best_exit_price, trade.lowest_price_reached, entry)
    actual_risk = gross_actual + comm
    best_pnl = _signed_move(trade, best_exit) * qty * mult - comm

    return DerivedTradeMetrics(
        gross_pnl=gross_pnl(trade, multipliers),
        net_pnl=net_pnl(trade, policy, multipliers),
        commission=comm,
        multiplier=mult,
        mfe=net_mfe(trade, policy, multipliers),
        mae=net_mae(trade, policy, multipliers),
        r_multiple=r_multiple(trade, policy, multipliers),
        initial_risk=initial_risk,
        actual_risk=actual_risk,
        best_pnl=best_pnl,
        actual_risk_pct=(actual_risk / initial_risk * 100) if initial_risk > 0 else None,
        best_rr=(best_pnl / initial_risk) if initial_risk > 0 else None,
    )


def _first_present(*values: Optional[float]) -> float:
    for v in values:
        if v is not None:
            return v
    raise ValueError("no value present")


def average_actual_risk_pct(trades: Iterable[Trade], policy: PolicyLike = None,
                            multipliers: Optional[Mapping[str, float]] = None) -> float:
    """Mean actual-risk % over trades that have a planned risk; others are skipped, not zeros."""
    samples = [
        m.actual_risk_pct
        for m in (derive_metrics(t, policy, multipliers) for t in trades)
        if m.actual_risk_pct is not None
    ]
    return sum(samples) / len(samples) if samples else 0.0


def evaluate_trades(trades: Iterable[Trade], policy: PolicyLike = None, timezone: str = "UTC",
                    include_open: bool = False,
                    multipliers: Optional[Mapping[str, float]] = None) -> List[EvaluatedTrade]:
    """
    The shared analytics pass: filter to closed trades, derive metrics once,
    localise entry times and sort chronologically (stable for ties).
    """
    tz = resolve_timezone(timezone)
    policy = CommissionPolicy.coerce(policy)
    evaluated = [
        EvaluatedTrade(trade=t, metrics=derive_metrics(t, policy, multipliers),
                       entry_at=localize(t.entry_time, tz))
        for t in trades
        if include_open or t.is_closed
    ]
    evaluated.sort(key=lambda e: e.entry_at)
    return evaluated


def pnls_of(evaluated: Sequence[EvaluatedTrade]) -> List[float]:
    return [e.net_pnl for e in evaluated]
