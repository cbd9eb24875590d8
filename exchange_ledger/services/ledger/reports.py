# exchange_ledger/services/ledger/reports.py
"""
Operational reports derived from the movement collection.

Each calculator is stateless and returns a structured result:
- CommissionCalculator: Commissions on non-arbitrage operations
- ArbitrageCalculator: Arbitrage profit (the arbitrage commission)
- CurrentAccountCalculator: Balances with current-account providers
- CashRegisterCalculator: Daily cash close per currency and medium
- pending_movements: Movements still waiting to be withdrawn or delivered

Arbitrage amounts are attributed to the sale quote currency, falling back to
the quote currency and then to the default profit currency. The same rule is
used everywhere an arbitrage figure is reported.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from exchange_ledger.config import settings
from exchange_ledger.models import Medium, Movement, Operation, SubOperation
from exchange_ledger.services.constants import DIRECT_OPERATIONS_PROVIDER, PENDING_STATUSES
from exchange_ledger.services.exceptions import InvalidFilterError
from exchange_ledger.services.ledger.classifier import classify
from exchange_ledger.services.ledger.types import (
    ArbitrageReport,
    CashRegister,
    CashRegisterLine,
    CommissionReport,
    CurrentAccountReport,
    ProviderBalance,
)
from exchange_ledger.utils.date_utils import day_key, month_key
from exchange_ledger.utils.parsing import parse_code, parse_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _add(bucket: dict[str, Decimal], currency: str, amount: Decimal) -> None:
    bucket[currency] = bucket.get(currency, ZERO) + amount


def arbitrage_currency(movement: Movement, default_currency: str) -> str:
    """Currency an arbitrage's profit and commission are booked in."""
    return movement.sale_quote_currency or movement.quote_currency or default_currency


# =============================================================================
# COMMISSIONS
# =============================================================================

class CommissionCalculator:
    """
    Totals commissions charged on every operation except arbitrage.

    Arbitrage commissions are profit, reported by ArbitrageCalculator.
    """

    def calculate(self, movements: Iterable[Movement]) -> CommissionReport:
        report = CommissionReport()

        for movement in movements:
            if movement.is_arbitrage or movement.commission <= ZERO:
                continue

            currency = movement.commission_currency or movement.currency
            if not currency:
                logger.debug(f"Skipping commission on {movement.date}: no currency")
                continue

            amount = movement.commission
            provider = movement.provider or DIRECT_OPERATIONS_PROVIDER

            _add(report.totals, currency, amount)
            _add(report.monthly.setdefault(month_key(movement.date), {}), currency, amount)
            _add(report.daily.setdefault(day_key(movement.date), {}), currency, amount)
            _add(report.by_provider.setdefault(provider, {}), currency, amount)
            if movement.operation == Operation.CURRENT_ACCOUNTS:
                _add(report.current_account_totals, currency, amount)
            report.movement_count += 1

        report.monthly = dict(sorted(report.monthly.items()))
        report.daily = dict(sorted(report.daily.items()))
        return report


# =============================================================================
# ARBITRAGE
# =============================================================================

class ArbitrageCalculator:
    """
    Reports arbitrage profit, which is the commission of each arbitrage.

    Args:
        default_profit_currency: Used when an arbitrage carries no quote currency
    """

    def __init__(self, default_profit_currency: str | None = None) -> None:
        self.default_profit_currency = (
            default_profit_currency or settings.ledger_default_profit_currency
        )

    def calculate(self, movements: Iterable[Movement]) -> ArbitrageReport:
        report = ArbitrageReport()

        for movement in movements:
            if not movement.is_arbitrage:
                continue
            report.operation_count += 1

            profit = movement.commission
            if profit == ZERO:
                continue
            if profit > ZERO:
                report.profitable_count += 1

            currency = arbitrage_currency(movement, self.default_profit_currency)
            _add(report.totals, currency, profit)
            _add(report.monthly.setdefault(month_key(movement.date), {}), currency, profit)

            client = movement.client_name or movement.client_id
            if client:
                _add(report.by_client.setdefault(client, {}), currency, profit)

        report.monthly = dict(sorted(report.monthly.items()))
        return report


# =============================================================================
# CURRENT ACCOUNTS
# =============================================================================

class CurrentAccountCalculator:
    """
    Balances held with current-account providers.

    Each provider has a fixed list of allowed currencies. Movements for an
    unknown provider or a currency the provider does not allow are skipped.

    Args:
        provider_currencies: Allowed currencies per provider (default: settings)
    """

    def __init__(self, provider_currencies: Mapping[str, list[str]] | None = None) -> None:
        self.provider_currencies = dict(
            provider_currencies
            if provider_currencies is not None
            else settings.ledger_provider_currencies
        )

    def calculate(self, movements: Iterable[Movement]) -> CurrentAccountReport:
        accounts: dict[tuple[str, str], ProviderBalance] = {
            (provider, currency): ProviderBalance(provider=provider, currency=currency)
            for provider, currencies in self.provider_currencies.items()
            for currency in currencies
        }

        for movement in movements:
            if movement.operation != Operation.CURRENT_ACCOUNTS:
                continue
            if not movement.provider or not movement.currency or movement.amount == ZERO:
                continue

            account = accounts.get((movement.provider, movement.currency))
            if account is None:
                logger.debug(
                    f"Skipping current-account movement: {movement.provider}/{movement.currency} "
                    f"is not a configured account"
                )
                continue

            account.movement_count += 1
            if movement.sub_operation == SubOperation.DEPOSIT.value:
                account.inflow += movement.amount
            elif movement.sub_operation == SubOperation.WITHDRAWAL.value:
                account.outflow += movement.amount

        return CurrentAccountReport(
            accounts=[a for a in accounts.values() if a.is_active]
        )


# =============================================================================
# CASH REGISTER
# =============================================================================

def parse_register_key(key: object) -> tuple[str, Medium] | None:
    """Split a cash register key "CURRENCY-medium"."""
    if not isinstance(key, str) or "-" not in key:
        return None
    currency_code, medium_value = key.rsplit("-", 1)
    currency = parse_code(currency_code)
    try:
        medium = Medium(medium_value.strip().lower())
    except ValueError:
        return None
    if currency is None:
        return None
    return currency, medium


class CashRegisterCalculator:
    """
    Daily cash close: what each (currency, medium) should hold at day end.

    Flows come from the same classifier postings as the balance sheet,
    summed across partners, so arbitrage legs and transfers are included.
    Opening amounts and counted amounts are supplied by the caller, keyed
    "CURRENCY-medium" (e.g. "USD-cash").
    """

    def calculate(
            self,
            movements: Iterable[Movement],
            on: date,
            counted: Mapping[str, Any] | None = None,
            opening: Mapping[str, Any] | None = None,
    ) -> CashRegister:
        lines: dict[tuple[str, Medium], CashRegisterLine] = {}

        def line_for(currency: str, medium: Medium) -> CashRegisterLine:
            line = lines.get((currency, medium))
            if line is None:
                line = CashRegisterLine(currency=currency, medium=medium)
                lines[(currency, medium)] = line
            return line

        for movement in movements:
            if movement.date != on:
                continue
            for posting in classify(movement):
                line = line_for(posting.currency, posting.account.medium)
                if posting.amount > ZERO:
                    line.inflow += posting.amount
                else:
                    line.outflow += -posting.amount

        for values, attribute in ((opening, "opening"), (counted, "counted")):
            for key, raw_amount in (values or {}).items():
                parsed = parse_register_key(key)
                amount = parse_decimal(raw_amount, None)
                if parsed is None or amount is None:
                    logger.debug(f"Skipping cash register {attribute} {key!r}={raw_amount!r}")
                    continue
                line = line_for(*parsed)
                setattr(line, attribute, getattr(line, attribute) + amount)

        active = [line for line in lines.values() if line.is_active]
        active.sort(key=lambda line: (line.currency, line.medium.value))
        return CashRegister(date=on, lines=active)


# =============================================================================
# PENDING
# =============================================================================

def pending_movements(
        movements: Iterable[Movement],
        status: str | None = None,
) -> list[Movement]:
    """
    Movements waiting to be withdrawn or delivered, newest first.

    Args:
        movements: Movement collection
        status: Restrict to one pending status (None = both)

    Raises:
        InvalidFilterError: If status is not a pending status
    """
    if status is not None and status not in PENDING_STATUSES:
        raise InvalidFilterError("status", status, list(PENDING_STATUSES))

    wanted = (status,) if status is not None else PENDING_STATUSES
    pending = [m for m in movements if m.status in wanted]
    return sorted(pending, key=lambda m: m.date, reverse=True)
