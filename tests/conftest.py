"""
Shared fixtures and trade factories for the journal analytics tests.

Trades default to one MES contract (multiplier 5), Long, no commission, with
naive entry times (wall-clock in whatever timezone the test evaluates in).
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta
from typing import Any, List, Optional

import pytest

from trade_journal.journal.journal_models import Trade
from trade_journal.utils import config
from trade_journal.utils.config import reload_settings


# ─────────────────────────────────────────────────────────
# Trade factory
# ─────────────────────────────────────────────────────────

def make_trade(
    entry: float = 100.0,
    exit: Optional[float] = 105.0,
    *,
    symbol: str = "MES",
    direction: str = "Long",
    quantity: float = 1,
    entry_time: Any = "2024-03-04T09:30:00",
    hold_minutes: Optional[float] = None,
    status: Optional[str] = None,
    **extra: Any,
) -> Trade:
    """One trade; exit_time is entry + hold_minutes when given."""
    if isinstance(entry_time, str):
        entry_time = datetime.fromisoformat(entry_time)
    exit_time = entry_time + timedelta(minutes=hold_minutes) if hold_minutes is not None else None
    return Trade(
        symbol=symbol,
        direction=direction,
        quantity=quantity,
        entry_price=entry,
        exit_price=exit,
        entry_time=entry_time,
        exit_time=exit_time,
        status=status,
        **extra,
    )


def pnl_trades(pnls: List[float], start: str = "2024-03-04T09:30:00", per_day: bool = False) -> List[Trade]:
    """Closed MES longs whose net P&L equals each value (price move = pnl / 5)."""
    base = datetime.fromisoformat(start)
    step = timedelta(days=1) if per_day else timedelta(minutes=10)
    return [make_trade(100.0, 100.0 + p / 5, entry_time=base + i * step) for i, p in enumerate(pnls)]


# ─────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────

@pytest.fixture
def mes_trades() -> List[Trade]:
    """Three MES longs on Mon/Tue/Wed → net P&L 25, -5, 5."""
    return [
        make_trade(100, 105, entry_time="2024-03-04T09:30:00", hold_minutes=3, status="Win"),
        make_trade(102, 101, entry_time="2024-03-05T10:00:00", hold_minutes=45, status="Loss"),
        make_trade(98, 99, entry_time="2024-03-06T11:00:00", hold_minutes=0.5, status="Small Win"),
    ]


@pytest.fixture
def open_trade() -> Trade:
    return make_trade(100, None, entry_time="2024-03-07T09:30:00", initial_stop_loss=98)


@pytest.fixture
def clean_settings(monkeypatch):
    """Settings rebuilt from a JOURNAL_-free environment."""
    for key in list(os.environ):
        if key.startswith("JOURNAL_"):
            monkeypatch.delenv(key, raising=False)
    yield reload_settings()
    config._settings = None
