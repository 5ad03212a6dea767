"""
Per-trade metrics: net P&L, commission policy, R-multiple, MFE/MAE,
risk profile, and the shared evaluate_trades pass.
"""

import math

import pytest

from conftest import make_trade
from trade_journal.journal.journal_models import CommissionPolicy, Trade, TradeDirection, TradeStatus
from trade_journal.journal.trade_metrics import (
    average_actual_risk_pct,
    derive_metrics,
    evaluate_trades,
    gross_pnl,
    net_mae,
    net_mfe,
    net_pnl,
    pnls_of,
    r_multiple,
    round_half_up,
    total_commission,
)
from trade_journal.utils.exceptions import AnalyticsInputError, ErrorCategory, InvalidTradeError


class TestRounding:

    def test_half_rounds_toward_positive_infinity(self):
        assert round_half_up(2.5, 0) == 3.0
        assert round_half_up(-2.5, 0) == -2.0
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(-0.125, 2) == -0.12

    def test_one_decimal(self):
        assert round_half_up(75.0111, 1) == 75.0
        assert round_half_up(94.6986, 1) == 94.7


class TestNetPnL:

    def test_open_trade_is_zero(self, open_trade):
        assert net_pnl(open_trade) == 0.0
        assert gross_pnl(open_trade) == 0.0
        assert r_multiple(open_trade) is None

    def test_mes_long(self):
        assert net_pnl(make_trade(100, 105)) == 25.0
        assert net_pnl(make_trade(102, 101)) == -5.0
        assert net_pnl(make_trade(98, 99)) == 5.0

    def test_short_mirrors_long(self):
        long_trade = make_trade(100, 104, direction="Long", commission=1.5)
        short_trade = make_trade(100, 96, direction="Short", commission=1.5)
        assert net_pnl(long_trade) == net_pnl(short_trade) == 18.5

    def test_short_losing_when_price_rises(self):
        assert net_pnl(make_trade(100, 105, direction="Short")) == -25.0

    def test_unmapped_symbol_uses_multiplier_one(self):
        assert net_pnl(make_trade(50, 52, symbol="AAPL", quantity=10)) == 20.0

    def test_trade_commission_used_without_policy(self):
        trade = make_trade(4000, 4001, symbol="ES", quantity=2, commission=10)
        assert net_pnl(trade) == 90.0

    def test_policy_overrides_trade_commission(self):
        trade = make_trade(4000, 4001, symbol="ES", quantity=2, commission=10)
        assert total_commission(trade, 2.0) == 4.0
        assert net_pnl(trade, CommissionPolicy(2.0)) == 96.0

    def test_zero_policy_falls_back_to_trade(self):
        trade = make_trade(4000, 4001, symbol="ES", quantity=2, commission=10)
        assert net_pnl(trade, CommissionPolicy(0.0)) == 90.0

    def test_rounded_to_cents(self):
        trade = make_trade(100, 100.3333, symbol="AAPL", quantity=3)
        assert net_pnl(trade) == 1.0

    def test_recomputing_is_identical(self, mes_trades):
        first = [net_pnl(t, 0.62) for t in mes_trades]
        second = [net_pnl(t, 0.62) for t in mes_trades]
        assert first == second


class TestCommissionPolicy:

    def test_coerce(self):
        assert CommissionPolicy.coerce(None).commission_per_unit == 0.0
        assert CommissionPolicy.coerce(1.25).commission_per_unit == 1.25
        policy = CommissionPolicy(0.5)
        assert CommissionPolicy.coerce(policy) is policy

    @pytest.mark.parametrize("bad", [-1.0, float("nan"), float("inf")])
    def test_rejects_bad_values(self, bad):
        with pytest.raises(AnalyticsInputError):
            CommissionPolicy(bad)


class TestRMultiple:

    def test_basic(self):
        trade = make_trade(100, 104, initial_stop_loss=98)
        assert r_multiple(trade) == 2.0

    def test_commission_in_risk(self):
        trade = make_trade(100, 104, initial_stop_loss=98)
        # net 19 over risk 10 + 1
        assert r_multiple(trade, 1.0) == 1.73

    def test_no_stop_is_undefined(self):
        assert r_multiple(make_trade(100, 104)) is None
        assert r_multiple(make_trade(100, 104, initial_stop_loss=0)) is None

    def test_stop_at_entry_is_zero(self):
        assert r_multiple(make_trade(100, 104, initial_stop_loss=100)) == 0.0

    def test_short_losing_trade(self):
        trade = make_trade(100, 103, direction="Short", initial_stop_loss=102)
        assert r_multiple(trade) == -1.5


class TestExcursions:

    def test_long_mfe_mae(self):
        trade = make_trade(100, 104, highest_price_reached=106, lowest_price_reached=97)
        assert net_mfe(trade) == 30.0
        assert net_mae(trade) == -15.0

    def test_short_orientation(self):
        trade = make_trade(100, 96, direction="Short", highest_price_reached=101, lowest_price_reached=95)
        assert net_mfe(trade) == 25.0
        assert net_mae(trade) == -5.0

    def test_commission_reduces_both(self):
        trade = make_trade(100, 104, highest_price_reached=106, lowest_price_reached=97, commission=2)
        assert net_mfe(trade) == 28.0
        assert net_mae(trade) == -17.0

    def test_missing_excursion_defaults_to_entry(self):
        trade = make_trade(100, 104, commission=1)
        assert net_mfe(trade) == -1.0
        assert net_mae(trade) == -1.0


class TestRiskProfile:

    def test_long_profile(self):
        trade = make_trade(100, 104, initial_stop_loss=98, highest_price_reached=106, lowest_price_reached=99)
        m = derive_metrics(trade)
        assert m.multiplier == 5.0
        assert m.initial_risk == 10.0
        assert m.actual_risk == 5.0
        assert m.actual_risk_pct == pytest.approx(50.0)
        assert m.best_pnl == 30.0
        assert m.best_rr == pytest.approx(3.0)

    def test_best_exit_price_preferred(self):
        trade = make_trade(100, 104, initial_stop_loss=98, highest_price_reached=106, best_exit_price=105)
        assert derive_metrics(trade).best_pnl == 25.0

    def test_favourable_low_floors_actual_risk(self):
        trade = make_trade(100, 104, initial_stop_loss=98, lowest_price_reached=101, commission=1)
        m = derive_metrics(trade)
        assert m.actual_risk == 1.0

    def test_no_stop_has_no_ratios(self):
        m = derive_metrics(make_trade(100, 104))
        assert m.initial_risk == 0.0
        assert m.actual_risk_pct is None
        assert m.best_rr is None

    def test_average_skips_trades_without_risk(self):
        trades = [
            make_trade(100, 104, initial_stop_loss=98, lowest_price_reached=99),   # 50%
            make_trade(100, 104, initial_stop_loss=98, lowest_price_reached=98),   # 100%
            make_trade(100, 104),                                                  # skipped
        ]
        assert average_actual_risk_pct(trades) == pytest.approx(75.0)
        assert average_actual_risk_pct([make_trade(100, 104)]) == 0.0


class TestEvaluateTrades:

    def test_filters_open_and_sorts(self, mes_trades, open_trade):
        shuffled = [mes_trades[2], open_trade, mes_trades[0], mes_trades[1]]
        evaluated = evaluate_trades(shuffled)
        assert pnls_of(evaluated) == [25.0, -5.0, 5.0]

    def test_include_open(self, mes_trades, open_trade):
        evaluated = evaluate_trades(mes_trades + [open_trade], include_open=True)
        assert len(evaluated) == 4
        assert evaluated[-1].net_pnl == 0.0

    def test_mixed_naive_and_aware_in_reporting_zone(self):
        aware = make_trade(100, 101, entry_time="2024-03-04T14:00:00+00:00")   # 09:00 New York
        naive = make_trade(100, 102, entry_time="2024-03-04T09:30:00")          # 09:30 New York
        evaluated = evaluate_trades([naive, aware], timezone="America/New_York")
        assert [e.trade for e in evaluated] == [aware, naive]
        assert evaluated[0].entry_at.hour == 9

    def test_empty(self):
        assert evaluate_trades([]) == []


class TestTradeModel:

    def test_case_insensitive_enums(self):
        trade = make_trade(direction="short", status="small win")
        assert trade.direction is TradeDirection.SHORT
        assert trade.status is TradeStatus.SMALL_WIN

    def test_unknown_status_is_not_decisive(self):
        assert make_trade(status="Scratch").status is None

    def test_unknown_direction_raises(self):
        with pytest.raises(InvalidTradeError) as exc:
            make_trade(direction="Sideways")
        assert exc.value.category is ErrorCategory.VALIDATION
        assert exc.value.field == "direction"

    @pytest.mark.parametrize("field", ["entry_price", "exit_price", "quantity"])
    def test_non_finite_numbers_raise(self, field):
        kwargs = {"entry": 100.0, "exit": 105.0, "quantity": 1}
        key = {"entry_price": "entry", "exit_price": "exit"}.get(field, field)
        kwargs[key] = math.nan
        with pytest.raises(InvalidTradeError):
            make_trade(**kwargs)

    def test_infinite_commission_raises(self):
        with pytest.raises(InvalidTradeError):
            make_trade(commission=math.inf)

    @pytest.mark.parametrize("quantity", [0, -1, -0.5])
    def test_non_positive_quantity_raises(self, quantity):
        with pytest.raises(InvalidTradeError) as exc:
            make_trade(quantity=quantity)
        assert exc.value.field == "quantity"

    def test_single_string_tag(self):
        assert make_trade(tags="scalp").tags == ("scalp",)
        assert make_trade(tags=["scalp", "orb"]).tags == ("scalp", "orb")
        assert make_trade(tags=None).tags == ()

    def test_unparseable_entry_time_raises(self):
        with pytest.raises(InvalidTradeError):
            Trade(symbol="MES", direction="Long", quantity=1, entry_price=100, entry_time="not a date")

    def test_from_dict_accepts_record_keys(self):
        trade = Trade.from_dict({
            "id": "t-1",
            "symbol": "MNQ",
            "direction": "Long",
            "quantity": 2,
            "entryPrice": 18000,
            "exitPrice": 18010,
            "entryDate": "2024-03-04T09:30:00Z",
            "exitDate": "2024-03-04T09:45:00Z",
            "initialStopLoss": 17990,
            "playbookId": "orb",
            "status": "Win",
            "unknownField": 1,
        })
        assert trade.trade_id == "t-1"
        assert trade.strategy_id == "orb"
        assert trade.hold_seconds == 900
        assert net_pnl(trade) == 40.0

    def test_to_dict_round_trips_timestamps(self):
        trade = make_trade(hold_minutes=5, tags=("orb", "a+"))
        d = trade.to_dict()
        assert d["direction"] == "Long"
        assert d["entry_time"] == "2024-03-04T09:30:00"
        assert d["tags"] == ["orb", "a+"]
        assert Trade.from_dict(d) == trade
