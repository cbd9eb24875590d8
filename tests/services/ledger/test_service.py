# tests/services/ledger/test_service.py
"""
Tests for the LedgerService orchestrator.

The engines are covered by their own tests; these verify the service
boundary: filter validation, lender lookup, size limits and memoization.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import buy, lender_movement, make_movement, sell
from exchange_ledger.models import Client, Operation
from exchange_ledger.services.exceptions import (
    InvalidFilterError,
    LenderNotFoundError,
    TooManyMovementsError,
)
from exchange_ledger.services.ledger import LedgerService


@pytest.fixture
def service() -> LedgerService:
    return LedgerService(max_movements=10)


@pytest.fixture
def movements():
    return (
        make_movement(Operation.TRANSACTIONS, "SELL", amount="100", currency="USD", account="pooled_cash"),
        make_movement(Operation.TRANSACTIONS, "SELL", amount="40", currency="USD", account="partner1_digital"),
    )


class TestGetBalances:
    """Tests for get_balances."""

    def test_filters_and_totals(self, service, movements):
        view = service.get_balances(movements, partner="pooled", active_only=True)

        assert [(e.account.key, e.currency) for e in view.entries] == [("pooled_cash", "USD")]
        assert view.totals == {"USD": Decimal("100")}

    def test_filter_values_are_case_insensitive(self, service, movements):
        view = service.get_balances(movements, partner="PARTNER1", medium=" Digital ", active_only=True)

        assert view.totals == {"USD": Decimal("40")}

    def test_invalid_partner(self, service, movements):
        with pytest.raises(InvalidFilterError) as exc_info:
            service.get_balances(movements, partner="partner3")

        assert exc_info.value.field == "partner"
        assert exc_info.value.valid_options == ["partner1", "partner2", "pooled"]

    def test_invalid_medium(self, service, movements):
        with pytest.raises(InvalidFilterError):
            service.get_balances(movements, medium="bank")

    def test_initial_balances_applied(self, service, movements):
        view = service.get_balances(movements, {"pooled_cash-USD": "10"}, partner="pooled", active_only=True)

        assert view.totals == {"USD": Decimal("110")}


class TestMemoization:
    """The last result is reused only for the very same collection."""

    def test_same_collection_hits(self, service, movements):
        first = service.derive_balances(movements)
        second = service.derive_balances(movements)

        assert first is second

    def test_equal_but_new_collection_recomputes(self, service, movements):
        first = service.derive_balances(movements)
        second = service.derive_balances(list(movements))

        assert second is not first
        assert second.balances == first.balances

    def test_different_overlay_recomputes(self, service, movements):
        first = service.derive_balances(movements, {"pooled_cash-USD": "1"})
        second = service.derive_balances(movements, {"pooled_cash-USD": "1"})

        assert first is not second

    def test_inventory_memo(self, service):
        trades = [buy(date(2024, 1, 1), "10", "100"), sell(date(2024, 1, 2), "5", "60")]

        assert service.get_inventory(trades) is service.get_inventory(trades)
        assert service.get_inventory(trades) is not service.get_inventory(list(trades))


class TestLenders:
    """Tests for lender lookup."""

    def test_lender_ledger(self, service, lender):
        movements = [lender_movement("LOAN", date(2024, 1, 1), "1000", interest_rate="36.5")]

        ledger = service.get_lender_ledger(movements, [lender], "7", now=date(2024, 1, 11))

        assert ledger.balance_for("USD").net_balance == Decimal("1010")

    def test_unknown_lender(self, service, lender):
        with pytest.raises(LenderNotFoundError) as exc_info:
            service.get_lender_ledger([], [lender], "99")

        assert exc_info.value.resource_id == "99"
        assert str(exc_info.value) == "Lender 99 not found"

    def test_non_lender_client_not_found(self, service, regular_client):
        with pytest.raises(LenderNotFoundError):
            service.get_lender_ledger([], [regular_client], regular_client.id)

    def test_now_defaults_to_current_time(self, service, lender):
        ledger = service.get_lender_ledger([], [lender], "7")

        assert isinstance(ledger.as_of, datetime)
        assert ledger.as_of.tzinfo is not None

    def test_summaries(self, service, lender, regular_client):
        other = Client(id="9", first_name="Carla", client_type="lender")

        summaries = service.get_lender_summaries([], [lender, regular_client, other], now=date(2024, 1, 1))

        assert list(summaries) == ["7", "9"]


class TestSizeLimit:
    """Every derivation rejects oversized collections."""

    def test_too_many_movements(self, service):
        movements = [make_movement() for _ in range(11)]

        for call in (
            lambda: service.get_balances(movements),
            lambda: service.get_inventory(movements),
            lambda: service.get_commissions(movements),
            lambda: service.get_arbitrage(movements),
            lambda: service.get_current_accounts(movements),
            lambda: service.get_cash_register(movements, date(2024, 1, 15)),
            lambda: service.get_pending(movements),
            lambda: service.get_lender_summaries(movements, []),
        ):
            with pytest.raises(TooManyMovementsError) as exc_info:
                call()
            assert exc_info.value.count == 11
            assert exc_info.value.limit == 10

    def test_at_limit_is_accepted(self, service):
        movements = [make_movement() for _ in range(10)]

        assert service.get_commissions(movements).movement_count == 0


class TestReports:
    """Smoke tests for the report pass-throughs."""

    def test_pending_invalid_status(self, service):
        with pytest.raises(InvalidFilterError):
            service.get_pending([], status="lost")

    def test_cash_register(self, service, movements):
        register = service.get_cash_register(movements, date(2024, 1, 15), counted={"USD-cash": "100"})

        cash = next(line for line in register.lines if line.medium.value == "cash")
        assert cash.is_balanced is True
