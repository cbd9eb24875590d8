# exchange_ledger/services/ledger/lenders.py
"""
Lender accrual engine: principal + simple interest owed to each lender.

A lender's LENDERS movements are replayed chronologically, independently
per currency. For each movement:

    1. Accrue interest since the last accrual date:
           principal × rate / 100 / days_per_year × ceil(elapsed days)
       (only when principal > 0, rate > 0 and days > 0)
    2. LOAN adds to principal and, when the movement carries a rate,
       replaces the effective rate.
       WITHDRAWAL is taken from accrued interest first, then from
       principal; principal never goes below zero.
    3. The movement date becomes the last accrual date.
    4. A snapshot of the post-movement state is recorded.

After the last movement, interest is accrued once more up to `now`.
A positive net balance means the business owes the lender.

"now" is always an explicit argument, which keeps the engine
deterministic.

Usage:
    engine = LenderAccrualEngine()
    ledger = engine.calculate(movements, lender, now=date(2024, 6, 30))
    ledger.balance_for("USD").net_balance
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal

from exchange_ledger.config import settings
from exchange_ledger.models import Client, Movement, Operation, SubOperation
from exchange_ledger.services.constants import LENDER_CLIENT_TYPE
from exchange_ledger.services.ledger.types import (
    DerivationWarning,
    LenderBalance,
    LenderLedger,
    LenderSnapshot,
    WarningCode,
)
from exchange_ledger.utils.date_utils import elapsed_days_ceil

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class LenderAccrualEngine:
    """
    Computes per-currency lender balances with accrued interest.

    Args:
        days_per_year: Day-count denominator for the annual rate (default: settings)
    """

    def __init__(self, days_per_year: int | None = None) -> None:
        self.days_per_year = Decimal(
            days_per_year if days_per_year is not None else settings.ledger_days_per_year
        )

    def calculate(
            self,
            movements: Iterable[Movement],
            lender: Client,
            now: date | datetime,
    ) -> LenderLedger:
        """
        Derive the ledger for one lender.

        Args:
            movements: Full movement collection (non-lender movements are ignored)
            lender: Lender client to match movements against
            now: Instant to accrue interest up to

        Returns:
            LenderLedger; empty (all zero balances) when nothing matches
        """
        ledger = LenderLedger(lender=lender, as_of=now)

        matched = [
            m for m in movements
            if m.operation == Operation.LENDERS and lender.matches(m)
        ]
        matched.sort(key=lambda m: m.date)

        for movement in matched:
            if not movement.currency:
                logger.debug(f"Skipping lender movement on {movement.date}: missing currency")
                continue

            balance = ledger.balances.get(movement.currency)
            if balance is None:
                balance = LenderBalance(currency=movement.currency)
                ledger.balances[movement.currency] = balance

            interest_accrued = self._accrue(balance, movement.date)

            if movement.sub_operation == SubOperation.LOAN.value:
                self._apply_loan(balance, movement, ledger)
            elif movement.sub_operation == SubOperation.WITHDRAWAL.value:
                self._apply_withdrawal(balance, movement, ledger)

            balance.last_accrual_date = movement.date
            ledger.movement_count += 1
            ledger.snapshots.append(
                LenderSnapshot(
                    movement=movement,
                    currency=movement.currency,
                    interest_accrued=interest_accrued,
                    principal_after=balance.principal,
                    interest_after=balance.accrued_interest,
                    net_balance_after=balance.net_balance,
                )
            )

        for balance in ledger.balances.values():
            self._accrue(balance, now)

        logger.debug(
            f"Lender {lender.id} derived: {ledger.movement_count} movements, "
            f"{len(ledger.balances)} currencies"
        )
        return ledger

    def summarize(
            self,
            movements: Iterable[Movement],
            lenders: Iterable[Client],
            now: date | datetime,
    ) -> dict[str, LenderLedger]:
        """
        Derive ledgers for every lender client.

        Clients whose client_type is not "lender" are ignored.

        Returns:
            LenderLedger keyed by client id, in input order
        """
        movement_list = list(movements)
        return {
            lender.id: self.calculate(movement_list, lender, now)
            for lender in lenders
            if lender.client_type == LENDER_CLIENT_TYPE
        }

    def _accrue(self, balance: LenderBalance, until: date | datetime) -> Decimal:
        """Add interest from last_accrual_date to `until`; returns the amount added."""
        if balance.last_accrual_date is None:
            return ZERO
        if balance.principal <= ZERO or balance.effective_rate <= ZERO:
            return ZERO

        days = elapsed_days_ceil(balance.last_accrual_date, until)
        if days <= 0:
            return ZERO

        interest = balance.principal * balance.effective_rate / HUNDRED / self.days_per_year * days
        balance.accrued_interest += interest
        return interest

    def _apply_loan(self, balance: LenderBalance, movement: Movement, ledger: LenderLedger) -> None:
        balance.principal += movement.amount
        if movement.interest_rate is not None:
            balance.effective_rate = movement.interest_rate
        ledger.total_lent[balance.currency] = (
            ledger.total_lent.get(balance.currency, ZERO) + movement.amount
        )

    def _apply_withdrawal(
            self,
            balance: LenderBalance,
            movement: Movement,
            ledger: LenderLedger,
    ) -> None:
        amount = movement.amount
        ledger.total_withdrawn[balance.currency] = (
            ledger.total_withdrawn.get(balance.currency, ZERO) + amount
        )

        if amount > balance.net_balance:
            warning = DerivationWarning(
                code=WarningCode.OVER_WITHDRAWAL,
                message=(
                    f"Withdrew {amount} {balance.currency} from lender {ledger.lender.id} "
                    f"with only {balance.net_balance} owed"
                ),
                movement_date=movement.date,
                currency=balance.currency,
            )
            ledger.warnings.append(warning)
            logger.warning(f"{warning.code} on {movement.date}: {warning.message}")

        # Interest first, remainder from principal
        if balance.accrued_interest >= amount:
            balance.accrued_interest -= amount
            return

        remaining = amount - balance.accrued_interest
        balance.accrued_interest = ZERO
        balance.principal = max(ZERO, balance.principal - remaining)
