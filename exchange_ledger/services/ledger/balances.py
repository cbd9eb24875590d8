# exchange_ledger/services/ledger/balances.py
"""
Balance aggregator: folds classifier postings into account balances.

Every valid (partner, medium, currency) combination of the configured
currencies starts empty, so zero balances are reported too. Postings are
summed, which makes the result independent of movement order.

Initial-balance overlay:
    Keys look like "partner1_cash-USD". The amount is added to `initial`,
    `inflow` and the balance, never to `outflow`. Malformed keys and
    unparseable amounts are skipped.

Usage:
    aggregator = BalanceAggregator()
    sheet = aggregator.calculate(movements, {"pooled_cash-PESO": "1500"})
    sheet.filter(partner=Partner.POOLED, active_only=True)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from exchange_ledger.config import settings
from exchange_ledger.models import AccountRef, Medium, Movement, Partner
from exchange_ledger.services.ledger.classifier import classify
from exchange_ledger.services.ledger.types import AccountBalance, BalanceSheet, Posting
from exchange_ledger.utils.parsing import parse_code, parse_decimal

logger = logging.getLogger(__name__)


def parse_overlay_key(key: object) -> tuple[AccountRef, str] | None:
    """
    Split an overlay key "partner_medium-CURRENCY".

    Returns:
        (AccountRef, currency) or None when the key is malformed
    """
    if not isinstance(key, str) or "-" not in key:
        return None
    account_key, currency_code = key.split("-", 1)
    account = AccountRef.parse(account_key)
    currency = parse_code(currency_code)
    if account is None or currency is None:
        return None
    return account, currency


class BalanceAggregator:
    """
    Computes the balance sheet for a movement collection.

    Args:
        currencies: Currencies initialized up front (default: settings)
        digital_only_currencies: Currencies that never get a cash key
    """

    def __init__(
            self,
            currencies: Iterable[str] | None = None,
            digital_only_currencies: Iterable[str] | None = None,
    ) -> None:
        self.currencies = tuple(
            currencies if currencies is not None else settings.ledger_currencies
        )
        self.digital_only_currencies = frozenset(
            digital_only_currencies
            if digital_only_currencies is not None
            else settings.ledger_digital_only_currencies
        )

    def calculate(
            self,
            movements: Iterable[Movement],
            initial_balances: Mapping[str, Any] | None = None,
    ) -> BalanceSheet:
        """
        Derive all account balances.

        Args:
            movements: Movement collection (order does not matter)
            initial_balances: Optional overlay keyed by "partner_medium-CURRENCY"

        Returns:
            BalanceSheet with one entry per valid key
        """
        sheet = BalanceSheet(balances=self._empty_balances())

        if initial_balances:
            self._apply_initial_balances(sheet, initial_balances)

        movement_count = 0
        posting_count = 0
        for movement in movements:
            movement_count += 1
            postings = classify(movement)
            if not postings:
                sheet.skipped_movements += 1
                continue
            for posting in postings:
                if self._apply(sheet, posting):
                    posting_count += 1

        logger.debug(
            f"Balances derived: {movement_count} movements, {posting_count} postings, "
            f"{sheet.skipped_movements} skipped"
        )
        return sheet

    def _empty_balances(self) -> dict[tuple[AccountRef, str], AccountBalance]:
        balances: dict[tuple[AccountRef, str], AccountBalance] = {}
        for partner in Partner:
            for medium in Medium:
                account = AccountRef(partner, medium)
                for currency in self.currencies:
                    if self._allowed(account, currency):
                        balances[(account, currency)] = AccountBalance(account, currency)
        return balances

    def _allowed(self, account: AccountRef, currency: str) -> bool:
        return not (account.medium == Medium.CASH and currency in self.digital_only_currencies)

    def _entry(self, sheet: BalanceSheet, account: AccountRef, currency: str) -> AccountBalance | None:
        """Existing entry, or a lazily created one for an unconfigured currency."""
        if not self._allowed(account, currency):
            logger.debug(f"Skipping {currency} on {account.key}: currency is digital-only")
            return None
        key = (account, currency)
        entry = sheet.balances.get(key)
        if entry is None:
            entry = AccountBalance(account, currency)
            sheet.balances[key] = entry
        return entry

    def _apply(self, sheet: BalanceSheet, posting: Posting) -> bool:
        entry = self._entry(sheet, posting.account, posting.currency)
        if entry is None:
            return False
        entry.apply(posting)
        return True

    def _apply_initial_balances(self, sheet: BalanceSheet, overlay: Mapping[str, Any]) -> None:
        for key, raw_amount in overlay.items():
            parsed = parse_overlay_key(key)
            amount = parse_decimal(raw_amount, None)
            if parsed is None or amount is None:
                logger.debug(f"Skipping initial balance {key!r}={raw_amount!r}")
                continue

            account, currency = parsed
            entry = self._entry(sheet, account, currency)
            if entry is None:
                continue
            entry.initial += amount
            entry.inflow += amount
