# exchange_ledger/services/ledger/service.py
"""
Ledger Service - Main orchestrator for ledger derivations.

This is the single entry point for all derived views:
- get_balances(): Account balances, optionally filtered
- get_inventory(): WAC stock positions and realized profit
- get_lender_ledger() / get_lender_summaries(): Lender balances with interest
- get_commissions(), get_arbitrage(), get_current_accounts(),
  get_cash_register(), get_pending(): Operational reports

Design Principles:
- Stateless derivations: every call recomputes from the movements it is given
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- Composable: Uses one engine/calculator per view
- "now" is resolved here, at the outer boundary, and passed down explicitly

Memoization:
    The last balance sheet and inventory are cached by the identity of the
    movement collection (and overlay). Callers must pass a new collection
    when the movement set changes; mutating a collection in place after a
    call is not supported.

Usage:
    from exchange_ledger.services.ledger import LedgerService

    service = LedgerService()
    view = service.get_balances(movements, partner="pooled", active_only=True)
    inventory = service.get_inventory(movements)
    ledger = service.get_lender_ledger(movements, lenders, lender_id="7")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any

from exchange_ledger.config import settings
from exchange_ledger.models import Client, Medium, Movement, Partner
from exchange_ledger.services.constants import LENDER_CLIENT_TYPE
from exchange_ledger.services.exceptions import (
    InvalidFilterError,
    LenderNotFoundError,
    TooManyMovementsError,
)
from exchange_ledger.services.ledger.balances import BalanceAggregator
from exchange_ledger.services.ledger.inventory import InventoryEngine
from exchange_ledger.services.ledger.lenders import LenderAccrualEngine
from exchange_ledger.services.ledger.reports import (
    ArbitrageCalculator,
    CashRegisterCalculator,
    CommissionCalculator,
    CurrentAccountCalculator,
    pending_movements,
)
from exchange_ledger.services.ledger.types import (
    ArbitrageReport,
    BalanceSheet,
    BalanceView,
    CashRegister,
    CommissionReport,
    CurrentAccountReport,
    InventoryResult,
    LenderLedger,
)

logger = logging.getLogger(__name__)


class _IdentityMemo:
    """
    Holds the most recent result for one derivation.

    A hit requires the very same argument objects (identity, not equality).
    References to the arguments are kept so their ids cannot be reused.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._args: tuple[Any, ...] | None = None
        self._result: Any = None

    def get(self, *args: Any) -> Any | None:
        with self._lock:
            if self._args is None or len(self._args) != len(args):
                return None
            if all(a is b for a, b in zip(self._args, args)):
                return self._result
            return None

    def put(self, result: Any, *args: Any) -> None:
        with self._lock:
            self._args = args
            self._result = result


class LedgerService:
    """
    Main service for ledger derivations.

    Attributes:
        _balances: Balance aggregator
        _inventory: WAC inventory engine
        _lenders: Lender accrual engine
        _commissions / _arbitrage / _current_accounts / _cash_register: Report calculators
        _max_movements: Upper bound on movements per call
    """

    def __init__(
            self,
            balances: BalanceAggregator | None = None,
            inventory: InventoryEngine | None = None,
            lenders: LenderAccrualEngine | None = None,
            max_movements: int | None = None,
    ) -> None:
        self._balances = balances or BalanceAggregator()
        self._inventory = inventory or InventoryEngine()
        self._lenders = lenders or LenderAccrualEngine()
        self._commissions = CommissionCalculator()
        self._arbitrage = ArbitrageCalculator()
        self._current_accounts = CurrentAccountCalculator()
        self._cash_register = CashRegisterCalculator()
        self._max_movements = (
            max_movements if max_movements is not None else settings.max_movements_per_request
        )

        self._balance_memo = _IdentityMemo()
        self._inventory_memo = _IdentityMemo()

        logger.info("LedgerService initialized")

    # =========================================================================
    # BALANCES
    # =========================================================================

    def derive_balances(
            self,
            movements: Sequence[Movement],
            initial_balances: Mapping[str, Any] | None = None,
    ) -> BalanceSheet:
        """Full balance sheet, memoized on the identity of the inputs."""
        self._check_size(movements)

        cached = self._balance_memo.get(movements, initial_balances)
        if cached is not None:
            logger.debug("Balance sheet served from memo")
            return cached

        sheet = self._balances.calculate(movements, initial_balances)
        self._balance_memo.put(sheet, movements, initial_balances)
        return sheet

    def get_balances(
            self,
            movements: Sequence[Movement],
            initial_balances: Mapping[str, Any] | None = None,
            partner: str | None = None,
            medium: str | None = None,
            active_only: bool = False,
    ) -> BalanceView:
        """
        Account balances filtered by partner/medium, with totals per currency.

        Args:
            movements: Movement collection
            initial_balances: Optional overlay keyed by "partner_medium-CURRENCY"
            partner: partner1, partner2 or pooled (None = all)
            medium: cash or digital (None = all)
            active_only: Hide keys that never saw any flow

        Returns:
            BalanceView with the selected entries and their totals

        Raises:
            InvalidFilterError: If partner or medium is unknown
            TooManyMovementsError: If the collection exceeds the configured bound
        """
        partner_filter = self._parse_enum(Partner, "partner", partner)
        medium_filter = self._parse_enum(Medium, "medium", medium)

        sheet = self.derive_balances(movements, initial_balances)
        entries = sheet.filter(
            partner=partner_filter,
            medium=medium_filter,
            active_only=active_only,
        )
        return BalanceView(
            entries=entries,
            totals=sheet.totals_by_currency(entries),
            skipped_movements=sheet.skipped_movements,
        )

    # =========================================================================
    # INVENTORY
    # =========================================================================

    def get_inventory(self, movements: Sequence[Movement]) -> InventoryResult:
        """WAC positions and realized profit, memoized on the movement collection."""
        self._check_size(movements)

        cached = self._inventory_memo.get(movements)
        if cached is not None:
            logger.debug("Inventory served from memo")
            return cached

        result = self._inventory.calculate(movements)
        self._inventory_memo.put(result, movements)
        return result

    # =========================================================================
    # LENDERS
    # =========================================================================

    def get_lender_ledger(
            self,
            movements: Sequence[Movement],
            lenders: Sequence[Client],
            lender_id: str,
            now: date | datetime | None = None,
    ) -> LenderLedger:
        """
        Ledger for one lender.

        Raises:
            LenderNotFoundError: If lender_id is not among the lender clients
        """
        self._check_size(movements)

        lender = next(
            (c for c in lenders if c.id == lender_id and c.client_type == LENDER_CLIENT_TYPE),
            None,
        )
        if lender is None:
            raise LenderNotFoundError(lender_id)

        return self._lenders.calculate(movements, lender, self._resolve_now(now))

    def get_lender_summaries(
            self,
            movements: Sequence[Movement],
            lenders: Sequence[Client],
            now: date | datetime | None = None,
    ) -> dict[str, LenderLedger]:
        """Ledgers for every lender client, keyed by client id."""
        self._check_size(movements)
        summaries = self._lenders.summarize(movements, lenders, self._resolve_now(now))
        logger.info(f"Derived {len(summaries)} lender ledgers from {len(movements)} movements")
        return summaries

    # =========================================================================
    # REPORTS
    # =========================================================================

    def get_commissions(self, movements: Sequence[Movement]) -> CommissionReport:
        self._check_size(movements)
        return self._commissions.calculate(movements)

    def get_arbitrage(self, movements: Sequence[Movement]) -> ArbitrageReport:
        self._check_size(movements)
        return self._arbitrage.calculate(movements)

    def get_current_accounts(self, movements: Sequence[Movement]) -> CurrentAccountReport:
        self._check_size(movements)
        return self._current_accounts.calculate(movements)

    def get_cash_register(
            self,
            movements: Sequence[Movement],
            on: date,
            counted: Mapping[str, Any] | None = None,
            opening: Mapping[str, Any] | None = None,
    ) -> CashRegister:
        """Cash close for one date; counted/opening keyed "CURRENCY-medium"."""
        self._check_size(movements)
        return self._cash_register.calculate(movements, on, counted=counted, opening=opening)

    def get_pending(
            self,
            movements: Sequence[Movement],
            status: str | None = None,
    ) -> list[Movement]:
        self._check_size(movements)
        return pending_movements(movements, status)

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _check_size(self, movements: Sequence[Movement]) -> None:
        if len(movements) > self._max_movements:
            raise TooManyMovementsError(len(movements), self._max_movements)

    @staticmethod
    def _resolve_now(now: date | datetime | None) -> date | datetime:
        return now if now is not None else datetime.now(timezone.utc)

    @staticmethod
    def _parse_enum(enum_cls, field: str, value: str | None):
        if value is None:
            return None
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            raise InvalidFilterError(field, value, [member.value for member in enum_cls]) from None
