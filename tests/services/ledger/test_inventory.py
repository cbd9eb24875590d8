# tests/services/ledger/test_inventory.py
"""
Unit tests for the WAC inventory engine.

Test Coverage:
- Weighted average cost on buys
- Cost of sale and realized profit on sells
- Overselling (warning, reset to zero)
- Chronological replay and determinism
- Profit series and date-range totals
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import buy, make_movement, sell
from exchange_ledger.models import Operation
from exchange_ledger.services.exceptions import InvalidIntervalError
from exchange_ledger.services.ledger.inventory import InventoryEngine
from exchange_ledger.services.ledger.types import WarningCode


@pytest.fixture
def engine() -> InventoryEngine:
    return InventoryEngine(default_profit_currency="PESO")


class TestBuys:
    """Tests for BUY handling."""

    def test_single_buy(self, engine):
        result = engine.calculate([buy(date(2024, 1, 1), "100", "1000")])

        position = result.positions["USD"]
        assert position.quantity == Decimal("100")
        assert position.total_cost == Decimal("1000")
        assert position.average_cost == Decimal("10")
        assert position.associated_quote_currency == "PESO"

    def test_weighted_average(self, engine):
        """100 @ 10 then 100 @ 12 averages to 11."""
        result = engine.calculate([
            buy(date(2024, 1, 1), "100", "1000"),
            buy(date(2024, 1, 2), "100", "1200"),
        ])

        assert result.positions["USD"].average_cost == Decimal("11")

    def test_latest_buy_sets_quote_currency(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "10", "100", quote_currency="PESO"),
            buy(date(2024, 1, 2), "10", "100", quote_currency="EURO"),
        ])

        assert result.positions["USD"].associated_quote_currency == "EURO"


class TestSells:
    """Tests for SELL handling."""

    def test_profit_on_partial_sale(self, engine):
        """BUY 100 @ 1000 total, SELL 40 for 500: cost 400, profit 100."""
        result = engine.calculate([
            buy(date(2024, 1, 1), "100", "1000"),
            sell(date(2024, 1, 2), "40", "500"),
        ])

        position = result.positions["USD"]
        assert position.quantity == Decimal("60")
        assert position.total_cost == Decimal("600")
        assert position.average_cost == Decimal("10")
        assert position.realized_profit == {"PESO": Decimal("100")}

        sale = result.sales[0]
        assert sale.unit_cost == Decimal("10")
        assert sale.cost_of_sale == Decimal("400")
        assert sale.profit == Decimal("100")
        assert result.warnings == []

    def test_sale_keeps_average_cost(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "30", "100"),
            sell(date(2024, 1, 2), "10", "50"),
        ])

        position = result.positions["USD"]
        assert position.total_cost == Decimal("100") - Decimal("10") * (Decimal("100") / Decimal("30"))
        assert position.quantity == Decimal("20")

    def test_loss_is_negative_profit(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "10", "100"),
            sell(date(2024, 1, 2), "10", "80"),
        ])

        assert result.realized_profit_totals() == {"PESO": Decimal("-20")}

    def test_sale_without_quote_currency_uses_default(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "10", "100"),
            sell(date(2024, 1, 2), "10", "150", quote_currency=None),
        ])

        assert result.sales[0].quote_currency == "PESO"
        assert result.realized_profit_totals() == {"PESO": Decimal("50")}

    def test_zero_profit_not_banked(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "10", "100"),
            sell(date(2024, 1, 2), "5", "50"),
        ])

        assert result.positions["USD"].realized_profit == {}
        assert result.sales[0].profit == Decimal("0")


class TestOverselling:
    """Selling more than the stock held."""

    def test_oversell_warns_and_resets(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "10", "100"),
            sell(date(2024, 1, 2), "15", "180"),
        ])

        position = result.positions["USD"]
        assert position.quantity == Decimal("0")
        assert position.total_cost == Decimal("0")
        assert result.sales[0].profit == Decimal("30")
        assert [w.code for w in result.warnings] == [WarningCode.INSUFFICIENT_STOCK]
        assert result.warnings[0].movement_date == date(2024, 1, 2)

    def test_sell_with_no_stock_has_zero_cost(self, engine):
        result = engine.calculate([sell(date(2024, 1, 2), "5", "60")])

        assert result.sales[0].cost_of_sale == Decimal("0")
        assert result.sales[0].profit == Decimal("60")
        assert result.positions["USD"].quantity == Decimal("0")
        assert len(result.warnings) == 1

    def test_quantity_never_negative(self, engine):
        movements = [
            sell(date(2024, 1, 1), "5", "10"),
            buy(date(2024, 1, 2), "3", "30"),
            sell(date(2024, 1, 3), "7", "70"),
            buy(date(2024, 1, 4), "2", "22"),
        ]

        position = engine.calculate(movements).positions["USD"]

        assert position.quantity == Decimal("2")
        assert position.average_cost == Decimal("11")


class TestReplay:
    """Ordering and filtering of the replay."""

    def test_replay_is_chronological(self, engine):
        """Collection order does not matter across different dates."""
        movements = [
            sell(date(2024, 1, 2), "40", "500"),
            buy(date(2024, 1, 1), "100", "1000"),
        ]

        result = engine.calculate(movements)

        assert result.sales[0].profit == Decimal("100")
        assert result.warnings == []

    def test_same_day_keeps_collection_order(self, engine):
        """A same-day SELL listed before its BUY is an oversell."""
        movements = [
            sell(date(2024, 1, 1), "10", "120"),
            buy(date(2024, 1, 1), "10", "100"),
        ]

        result = engine.calculate(movements)

        assert len(result.warnings) == 1
        assert result.positions["USD"].quantity == Decimal("10")

    def test_deterministic(self, engine):
        movements = [
            buy(date(2024, 1, 1), "100", "1000"),
            sell(date(2024, 1, 5), "33", "400"),
            buy(date(2024, 1, 7), "7", "90"),
        ]

        first = engine.calculate(movements)
        second = engine.calculate(movements)

        assert first.positions == second.positions
        assert first.sales == second.sales

    def test_other_movements_ignored(self, engine):
        movements = [
            make_movement(Operation.TRANSACTIONS, "ARBITRAGE", amount="100", total="100", currency="USD"),
            make_movement(Operation.PARTNERS, "BUY", amount="100", total="100", currency="USD"),
        ]

        result = engine.calculate(movements)

        assert result.positions == {}
        assert result.sales == []

    def test_currencies_are_independent(self, engine):
        result = engine.calculate([
            buy(date(2024, 1, 1), "10", "100", currency="USD"),
            buy(date(2024, 1, 1), "10", "300", currency="EURO"),
            sell(date(2024, 1, 2), "10", "350", currency="EURO"),
        ])

        assert result.positions["USD"].quantity == Decimal("10")
        assert result.positions["EURO"].realized_profit == {"PESO": Decimal("50")}


class TestProfitSeries:
    """Tests for profit bucketing."""

    @pytest.fixture
    def result(self, engine):
        return engine.calculate([
            buy(date(2024, 1, 1), "100", "1000"),
            sell(date(2024, 1, 10), "10", "120"),
            sell(date(2024, 1, 10), "10", "130"),
            sell(date(2024, 2, 3), "10", "100"),
            sell(date(2024, 2, 4), "10", "90", quote_currency="EURO"),
        ])

    def test_monthly(self, result):
        assert result.profit_series("monthly") == {
            "2024-01": {"PESO": Decimal("50")},
            "2024-02": {"EURO": Decimal("-10")},
        }

    def test_daily(self, result):
        """Zero-profit sales do not create buckets."""
        assert result.profit_series("daily") == {
            "2024-01-10": {"PESO": Decimal("50")},
            "2024-02-04": {"EURO": Decimal("-10")},
        }

    def test_invalid_interval(self, result):
        with pytest.raises(InvalidIntervalError) as exc_info:
            result.profit_series("weekly")

        assert exc_info.value.interval == "weekly"

    def test_profit_between(self, result):
        assert result.profit_between(date(2024, 2, 1), None) == {"EURO": Decimal("-10")}
        assert result.profit_between(None, date(2024, 1, 31)) == {"PESO": Decimal("50")}
        assert result.profit_between(date(2024, 3, 1), date(2024, 3, 31)) == {}
