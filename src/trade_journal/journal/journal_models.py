"""
Journal Data Models — Trades, commission policy and analytics results
=====================================================================

Input:   Trade             — one logged round-trip (open or closed)
Policy:  CommissionPolicy  — global commission-per-unit override
Output:  DerivedTradeMetrics, PnLSummary, StreakStats, ZellaScore,
         PeriodBucket, SeriesPoint, AxisScale, GroupRow ...

All result models are plain dataclasses with to_dict() for dashboard / API
consumption. Nothing here holds state beyond a single computation call.
"""

from __future__ import annotations
import math
import numbers
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, tzinfo
from enum import Enum
from typing import Optional, Any, List, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from trade_journal.utils.exceptions import InvalidTradeError, AnalyticsInputError, ConfigurationError


# ── Enums ────────────────────────────────────────────────────

class TradeDirection(str, Enum):
    LONG = "Long"
    SHORT = "Short"


class TradeStatus(str, Enum):
    WIN = "Win"
    SMALL_WIN = "Small Win"
    BREAK_EVEN = "Break Even"
    SMALL_LOSS = "Small Loss"
    LOSS = "Loss"


WINNING_STATUSES = frozenset({TradeStatus.WIN, TradeStatus.SMALL_WIN})
LOSING_STATUSES = frozenset({TradeStatus.LOSS, TradeStatus.SMALL_LOSS})


class Timeframe(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# ── Timestamp helpers ────────────────────────────────────────

def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """ISO-8601 string (trailing 'Z' allowed) or datetime → datetime. Empty → None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    raise TypeError(f"unsupported timestamp type: {type(value).__name__}")


def localize(dt: datetime, tz: tzinfo) -> datetime:
    """Naive timestamps are wall-clock time in `tz`; aware ones are converted to it."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def resolve_timezone(name: Union[str, tzinfo, None]) -> tzinfo:
    """IANA name (or tzinfo) → tzinfo. None means UTC."""
    if name is None:
        return ZoneInfo("UTC")
    if isinstance(name, tzinfo):
        return name
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"unknown timezone {name!r}", field="timezone") from None


def _require_finite(value: Any, name: str, optional: bool = True) -> Optional[float]:
    if value is None:
        if optional:
            return None
        raise InvalidTradeError(f"{name} is required", field=name)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidTradeError(f"{name} must be a number, got {value!r}", field=name)
    if not math.isfinite(value):
        raise InvalidTradeError(f"{name} must be finite, got {value!r}", field=name)
    return float(value)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# INPUT: TRADE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

# camelCase keys used by the journal's stored records
_RECORD_ALIASES = {
    "id": "trade_id",
    "entryDate": "entry_time",
    "exitDate": "exit_time",
    "entryPrice": "entry_price",
    "exitPrice": "exit_price",
    "initialStopLoss": "initial_stop_loss",
    "takeProfitTarget": "take_profit_target",
    "highestPriceReached": "highest_price_reached",
    "lowestPriceReached": "lowest_price_reached",
    "bestExitPrice": "best_exit_price",
    "playbookId": "strategy_id",
}


@dataclass(frozen=True)
class Trade:
    """
    One journal trade. Closed iff exit_price is present.

    Price and quantity fields must be finite numbers, quantity positive; direction
    must be Long/Short. A bare string tag is one tag.
    Timestamps accept ISO strings or datetimes and are stored as datetimes.
    """
    symbol: str
    direction: TradeDirection
    quantity: float
    entry_price: float
    entry_time: datetime
    exit_price: Optional[float] = None
    exit_time: Optional[datetime] = None
    status: Optional[TradeStatus] = None

    # ── Risk & excursion ──
    initial_stop_loss: Optional[float] = None
    take_profit_target: Optional[float] = None
    highest_price_reached: Optional[float] = None
    lowest_price_reached: Optional[float] = None
    best_exit_price: Optional[float] = None
    commission: float = 0.0

    # ── Pass-through grouping keys ──
    trade_id: str = field(default_factory=lambda: str(uuid.uuid4())[:12])
    strategy_id: str = ""
    tags: Tuple[str, ...] = ()
    notes: str = ""

    def __post_init__(self):
        set_ = object.__setattr__

        try:
            set_(self, "direction", TradeDirection(_match_enum(TradeDirection, self.direction)))
        except ValueError:
            raise InvalidTradeError(f"unknown direction {self.direction!r}", field="direction") from None

        try:
            set_(self, "status", TradeStatus(_match_enum(TradeStatus, self.status)))
        except ValueError:
            set_(self, "status", None)

        set_(self, "quantity", _require_finite(self.quantity, "quantity", optional=False))
        if self.quantity <= 0:
            raise InvalidTradeError(f"quantity must be positive, got {self.quantity}", field="quantity")
        set_(self, "entry_price", _require_finite(self.entry_price, "entry_price", optional=False))
        for name in ("exit_price", "initial_stop_loss", "take_profit_target",
                     "highest_price_reached", "lowest_price_reached", "best_exit_price"):
            set_(self, name, _require_finite(getattr(self, name), name))
        set_(self, "commission", _require_finite(self.commission, "commission") or 0.0)

        for name, optional in (("entry_time", False), ("exit_time", True)):
            try:
                parsed = parse_timestamp(getattr(self, name))
            except (ValueError, TypeError) as exc:
                raise InvalidTradeError(f"{name} is not a valid timestamp: {exc}", field=name) from None
            if parsed is None and not optional:
                raise InvalidTradeError(f"{name} is required", field=name)
            set_(self, name, parsed)

        tags = self.tags or ()
        set_(self, "tags", (tags,) if isinstance(tags, str) else tuple(tags))

    @property
    def is_closed(self) -> bool:
        return self.exit_price is not None

    @property
    def is_long(self) -> bool:
        return self.direction is TradeDirection.LONG

    @property
    def hold_seconds(self) -> Optional[float]:
        if self.exit_time is None:
            return None
        try:
            return (self.exit_time - self.entry_time).total_seconds()
        except TypeError:
            # naive vs aware mix: compare wall clocks
            return (self.exit_time.replace(tzinfo=None) - self.entry_time.replace(tzinfo=None)).total_seconds()

    def to_dict(self) -> dict:
        d = asdict(self)
        d["direction"] = self.direction.value
        d["status"] = self.status.value if self.status else None
        d["entry_time"] = self.entry_time.isoformat()
        d["exit_time"] = self.exit_time.isoformat() if self.exit_time else None
        d["tags"] = list(self.tags)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Trade":
        renamed = {_RECORD_ALIASES.get(k, k): v for k, v in d.items()}
        valid = {k: v for k, v in renamed.items() if k in cls.__dataclass_fields__}
        return cls(**valid)


def _match_enum(enum_cls, value):
    """Case-insensitive lookup of an enum value; returns the value unchanged if no match."""
    if isinstance(value, enum_cls) or not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == lowered or member.name.lower() == lowered:
            return member
    return value


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# COMMISSION POLICY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class CommissionPolicy:
    """
    commission_per_unit > 0 → quantity × commission_per_unit for every trade,
    overriding the stored value. 0 → each trade's own commission field.
    """
    commission_per_unit: float = 0.0

    def __post_init__(self):
        value = self.commission_per_unit
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise AnalyticsInputError(f"commission_per_unit must be a finite number, got {value!r}",
                                      field="commission_per_unit")
        if value < 0:
            raise AnalyticsInputError("commission_per_unit cannot be negative", field="commission_per_unit")
        object.__setattr__(self, "commission_per_unit", float(value))

    @property
    def overrides_trade_commission(self) -> bool:
        return self.commission_per_unit > 0

    def commission_for(self, trade: Trade) -> float:
        if self.overrides_trade_commission:
            return trade.quantity * self.commission_per_unit
        return trade.commission or 0.0

    @classmethod
    def coerce(cls, value: Union["CommissionPolicy", float, int, None]) -> "CommissionPolicy":
        if isinstance(value, CommissionPolicy):
            return value
        return cls(commission_per_unit=0.0 if value is None else value)


NO_COMMISSION_OVERRIDE = CommissionPolicy()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PER-TRADE DERIVED METRICS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class DerivedTradeMetrics:
    """Computed on demand from Trade + CommissionPolicy. Never stored."""
    gross_pnl: float = 0.0
    net_pnl: float = 0.0
    commission: float = 0.0
    multiplier: float = 1.0
    mfe: float = 0.0                 # net of commission
    mae: float = 0.0                 # P&L at worst point, net of commission (usually negative)
    r_multiple: Optional[float] = None
    initial_risk: float = 0.0        # stop distance money + commission
    actual_risk: float = 0.0         # adverse excursion money + commission
    best_pnl: float = 0.0            # best-exit P&L, net of commission
    actual_risk_pct: Optional[float] = None
    best_rr: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EvaluatedTrade:
    """A trade with its derived metrics and its entry time in the reporting timezone."""
    trade: Trade
    metrics: DerivedTradeMetrics
    entry_at: datetime

    @property
    def net_pnl(self) -> float:
        return self.metrics.net_pnl

    @property
    def r_multiple(self) -> Optional[float]:
        return self.metrics.r_multiple


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# AGGREGATE RESULTS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class PnLSummary:
    """P&L-driven aggregates of a net P&L sequence (one pass)."""
    trades: int = 0
    total_pnl: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0          # positive magnitude
    winners: int = 0
    losers: int = 0
    break_even: int = 0
    avg_win: float = 0.0
    avg_loss: float = 0.0            # negative
    largest_win: float = 0.0
    largest_loss: float = 0.0        # negative

    @property
    def profit_factor(self) -> float:
        if self.gross_loss == 0:
            return 100.0 if self.gross_profit > 0 else 0.0
        return round(self.gross_profit / self.gross_loss, 2)

    @property
    def reward_risk(self) -> float:
        return abs(self.avg_win / self.avg_loss) if self.avg_loss else 0.0

    def to_dict(self) -> dict:
        d = asdict(self)
        d["profit_factor"] = self.profit_factor
        d["reward_risk"] = round(self.reward_risk, 4)
        return d


@dataclass
class StreakStats:
    """Signed current streaks (+N wins / -N losses ending now) and historical maxima."""
    current_trade_streak: int = 0
    max_trade_win_streak: int = 0
    max_trade_loss_streak: int = 0
    current_day_streak: int = 0
    max_day_win_streak: int = 0
    max_day_loss_streak: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StatusStreaks:
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DrawdownPeriod:
    start_index: int
    end_index: int
    max_depth: float
    recovery_trades: Optional[int] = None    # None while still under water
    still_active: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ScoreDetail:
    subject: str
    value: float
    full_mark: float = 100.0

    def to_dict(self) -> dict:
        return {"subject": self.subject, "A": self.value, "fullMark": self.full_mark}


@dataclass
class ZellaScore:
    """Composite 0-100 score plus the six rounded component scores (radar order)."""
    score: float = 0.0
    details: List[ScoreDetail] = field(default_factory=list)

    def component(self, subject: str) -> float:
        for d in self.details:
            if d.subject == subject:
                return d.value
        raise KeyError(subject)

    def to_dict(self) -> dict:
        return {"score": self.score, "details": [d.to_dict() for d in self.details]}


@dataclass
class PeriodBucket:
    """One calendar period (day / week / month) in the reporting timezone."""
    period_key: str
    trades: int = 0
    pnl: float = 0.0
    r_sum: float = 0.0
    wins: int = 0
    losses: int = 0
    drawdown: float = 0.0            # peak-to-trough inside the period, >= 0
    cumulative_pnl: float = 0.0
    peak_equity: float = 0.0         # running high-water mark across periods
    cumulative_drawdown: float = 0.0

    @property
    def win_rate(self) -> int:
        decisive = self.wins + self.losses
        return int(math.floor(self.wins / decisive * 100 + 0.5)) if decisive else 0

    def to_dict(self) -> dict:
        d = asdict(self)
        d["win_rate"] = self.win_rate
        return d


@dataclass
class SeriesPoint:
    """Continuous equity-curve point; gap periods carry the cumulative value forward."""
    period_key: str
    value: float = 0.0
    cumulative: float = 0.0
    drawdown: float = 0.0
    has_trades: bool = False
    trades: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AxisScale:
    ticks: List[float] = field(default_factory=list)
    domain: Tuple[float, float] = (0.0, 0.0)
    gradient_offset: float = 0.0

    def to_dict(self) -> dict:
        return {"ticks": list(self.ticks), "domain": list(self.domain), "gradient_offset": self.gradient_offset}


@dataclass
class GroupRow:
    label: str
    sort_index: int
    count: int = 0
    net_pnl: float = 0.0
    win_rate: int = 0
    profit_factor: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    total_r: float = 0.0
    avg_r: float = 0.0
    max_drawdown: float = 0.0
    avg_drawdown: float = 0.0
    avg_win_loss_ratio: float = 0.0
    avg_actual_risk_pct: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)
