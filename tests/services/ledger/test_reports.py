# tests/services/ledger/test_reports.py
"""
Unit tests for the operational report calculators.

Test Coverage:
- CommissionCalculator: totals, buckets, providers, arbitrage exclusion
- ArbitrageCalculator: profit currency fallback, counts, clients
- CurrentAccountCalculator: provider/currency gating, owed direction
- CashRegisterCalculator: daily flows, opening/counted overlay
- pending_movements: status filtering and ordering
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_movement
from exchange_ledger.models import Medium, Operation
from exchange_ledger.services.exceptions import InvalidFilterError
from exchange_ledger.services.ledger.reports import (
    ArbitrageCalculator,
    CashRegisterCalculator,
    CommissionCalculator,
    CurrentAccountCalculator,
    arbitrage_currency,
    parse_register_key,
    pending_movements,
)


# =============================================================================
# COMMISSIONS
# =============================================================================

class TestCommissionCalculator:
    """Tests for CommissionCalculator."""

    def test_totals_and_buckets(self):
        movements = [
            make_movement(Operation.TRANSACTIONS, "BUY", date(2024, 1, 5), currency="USD", commission="2"),
            make_movement(Operation.TRANSACTIONS, "SELL", date(2024, 1, 5), currency="USD", commission="3"),
            make_movement(Operation.TRANSACTIONS, "SELL", date(2024, 2, 1), currency="USD",
                          commission="10", commission_currency="PESO"),
        ]

        report = CommissionCalculator().calculate(movements)

        assert report.totals == {"USD": Decimal("5"), "PESO": Decimal("10")}
        assert report.monthly == {
            "2024-01": {"USD": Decimal("5")},
            "2024-02": {"PESO": Decimal("10")},
        }
        assert report.daily["2024-01-05"] == {"USD": Decimal("5")}
        assert report.movement_count == 3

    def test_arbitrage_and_zero_commissions_excluded(self):
        movements = [
            make_movement(Operation.TRANSACTIONS, "ARBITRAGE", currency="USD", commission="50"),
            make_movement(Operation.TRANSACTIONS, "BUY", currency="USD", commission="0"),
        ]

        report = CommissionCalculator().calculate(movements)

        assert report.totals == {}
        assert report.movement_count == 0

    def test_by_provider_and_current_accounts(self):
        movements = [
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", currency="USD", commission="4", provider="SS"),
            make_movement(Operation.TRANSACTIONS, "BUY", currency="USD", commission="1"),
        ]

        report = CommissionCalculator().calculate(movements)

        assert report.by_provider == {"SS": {"USD": Decimal("4")}, "DIRECT": {"USD": Decimal("1")}}
        assert report.current_account_totals == {"USD": Decimal("4")}


# =============================================================================
# ARBITRAGE
# =============================================================================

class TestArbitrageCalculator:
    """Tests for ArbitrageCalculator."""

    def test_currency_fallback(self):
        m = make_movement(Operation.TRANSACTIONS, "ARBITRAGE", quote_currency="EURO")

        assert arbitrage_currency(m, "PESO") == "EURO"
        assert arbitrage_currency(make_movement(sale_quote_currency="USD", quote_currency="EURO"), "PESO") == "USD"
        assert arbitrage_currency(make_movement(), "PESO") == "PESO"

    def test_totals_and_counts(self):
        movements = [
            make_movement(Operation.TRANSACTIONS, "ARBITRAGE", date(2024, 3, 1),
                          commission="100", sale_quote_currency="USD", client_name="Ana"),
            make_movement(Operation.TRANSACTIONS, "ARBITRAGE", date(2024, 3, 2),
                          commission="-20", client_name="Ana"),
            make_movement(Operation.TRANSACTIONS, "ARBITRAGE", date(2024, 4, 1), commission="0"),
            make_movement(Operation.TRANSACTIONS, "SELL", commission="999"),
        ]

        report = ArbitrageCalculator(default_profit_currency="PESO").calculate(movements)

        assert report.operation_count == 3
        assert report.profitable_count == 1
        assert report.totals == {"USD": Decimal("100"), "PESO": Decimal("-20")}
        assert report.monthly == {"2024-03": {"USD": Decimal("100"), "PESO": Decimal("-20")}}
        assert report.by_client == {"Ana": {"USD": Decimal("100"), "PESO": Decimal("-20")}}


# =============================================================================
# CURRENT ACCOUNTS
# =============================================================================

class TestCurrentAccountCalculator:
    """Tests for CurrentAccountCalculator."""

    @pytest.fixture
    def calculator(self):
        return CurrentAccountCalculator({"SS": ["USD", "PESO"], "ME": ["USD"]})

    def test_balances_and_owed_direction(self, calculator):
        movements = [
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", amount="500", currency="USD", provider="SS"),
            make_movement(Operation.CURRENT_ACCOUNTS, "WITHDRAWAL", amount="200", currency="USD", provider="SS"),
            make_movement(Operation.CURRENT_ACCOUNTS, "WITHDRAWAL", amount="70", currency="USD", provider="ME"),
        ]

        report = calculator.calculate(movements)

        ss = report.for_provider("SS")[0]
        assert ss.balance == Decimal("300")
        assert ss.owed_by_provider == Decimal("300")
        assert ss.owed_to_provider == Decimal("0")

        me = report.for_provider("ME")[0]
        assert me.balance == Decimal("-70")
        assert me.owed_by_provider == Decimal("0")
        assert me.owed_to_provider == Decimal("70")

    def test_only_active_accounts_listed(self, calculator):
        movements = [
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", amount="5", currency="PESO", provider="SS"),
        ]

        report = calculator.calculate(movements)

        assert [(a.provider, a.currency) for a in report.accounts] == [("SS", "PESO")]

    def test_unknown_provider_or_currency_skipped(self, calculator):
        movements = [
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", amount="5", currency="PESO", provider="ME"),
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", amount="5", currency="USD", provider="XX"),
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", amount="5", currency="USD"),
            make_movement(Operation.TRANSACTIONS, "SELL", amount="5", currency="USD", provider="SS"),
        ]

        assert calculator.calculate(movements).accounts == []

    def test_provider_totals(self, calculator):
        movements = [
            make_movement(Operation.CURRENT_ACCOUNTS, "DEPOSIT", amount="100", currency="USD", provider="SS"),
            make_movement(Operation.CURRENT_ACCOUNTS, "WITHDRAWAL", amount="40", currency="PESO", provider="SS"),
        ]

        totals = calculator.calculate(movements).provider_totals()

        assert totals == {
            "SS": {"owed_by_provider": Decimal("100"), "owed_to_provider": Decimal("40")},
        }


# =============================================================================
# CASH REGISTER
# =============================================================================

class TestCashRegisterCalculator:
    """Tests for CashRegisterCalculator."""

    DAY = date(2024, 5, 10)

    def test_parse_register_key(self):
        assert parse_register_key("USD-cash") == ("USD", Medium.CASH)
        assert parse_register_key("usd-Digital") == ("USD", Medium.DIGITAL)
        assert parse_register_key("USD") is None
        assert parse_register_key("USD-vault") is None
        assert parse_register_key("-cash") is None

    def test_flows_summed_across_partners(self):
        movements = [
            make_movement(Operation.TRANSACTIONS, "SELL", self.DAY, amount="100", currency="USD", account="partner1_cash"),
            make_movement(Operation.TRANSACTIONS, "SELL", self.DAY, amount="50", currency="USD", account="partner2_cash"),
            make_movement(Operation.TRANSACTIONS, "BUY", self.DAY, amount="30", currency="USD", account="pooled_cash"),
            make_movement(Operation.TRANSACTIONS, "SELL", date(2024, 5, 9), amount="999", currency="USD", account="pooled_cash"),
        ]

        register = CashRegisterCalculator().calculate(movements, self.DAY)

        assert len(register.lines) == 1
        line = register.lines[0]
        assert (line.currency, line.medium) == ("USD", Medium.CASH)
        assert line.inflow == Decimal("150")
        assert line.outflow == Decimal("30")
        assert line.expected == Decimal("120")

    def test_opening_and_counted(self):
        movements = [
            make_movement(Operation.TRANSACTIONS, "SELL", self.DAY, amount="100", currency="USD", account="pooled_cash"),
        ]

        register = CashRegisterCalculator().calculate(
            movements, self.DAY,
            counted={"USD-cash": "1100", "PESO-digital": "5"},
            opening={"USD-cash": "1000"},
        )

        usd, peso = sorted(register.lines, key=lambda line: line.currency, reverse=True)
        assert usd.expected == Decimal("1100")
        assert usd.difference == Decimal("0")
        assert usd.is_balanced is True
        assert peso.difference == Decimal("5")
        assert peso.is_balanced is False
        assert register.is_balanced is False

    def test_lines_sorted(self):
        movements = [
            make_movement(Operation.TRANSACTIONS, "SELL", self.DAY, amount="1", currency="USD", account="pooled_digital"),
            make_movement(Operation.TRANSACTIONS, "SELL", self.DAY, amount="1", currency="USD", account="pooled_cash"),
            make_movement(Operation.TRANSACTIONS, "SELL", self.DAY, amount="1", currency="EURO", account="pooled_cash"),
        ]

        register = CashRegisterCalculator().calculate(movements, self.DAY)

        assert [(l.currency, l.medium.value) for l in register.lines] == [
            ("EURO", "cash"), ("USD", "cash"), ("USD", "digital"),
        ]

    def test_empty_day_is_balanced(self):
        register = CashRegisterCalculator().calculate([], self.DAY)

        assert register.lines == []
        assert register.is_balanced is True


# =============================================================================
# PENDING
# =============================================================================

class TestPendingMovements:
    """Tests for pending_movements."""

    @pytest.fixture
    def movements(self):
        return [
            make_movement(on=date(2024, 1, 1), status="pending_withdrawal", movement_id="a"),
            make_movement(on=date(2024, 1, 3), status="pending_delivery", movement_id="b"),
            make_movement(on=date(2024, 1, 2), status="done", movement_id="c"),
            make_movement(on=date(2024, 1, 4), movement_id="d"),
        ]

    def test_all_pending_newest_first(self, movements):
        assert [m.movement_id for m in pending_movements(movements)] == ["b", "a"]

    def test_filter_by_status(self, movements):
        result = pending_movements(movements, "pending_withdrawal")

        assert [m.movement_id for m in result] == ["a"]

    def test_invalid_status(self, movements):
        with pytest.raises(InvalidFilterError) as exc_info:
            pending_movements(movements, "done")

        assert exc_info.value.field == "status"
