# exchange_ledger/services/ledger/classifier.py
"""
Movement classifier: turns one movement into signed account postings.

Rules, in priority order:
1. TRANSACTIONS/ARBITRAGE posts its four legs and nothing on `account`.
   Mixed payments are ignored for arbitrage.
2. A movement with mixed payments posts one outflow per entry instead of
   any single-account posting.
3. Everything else goes through POSTING_RULES, keyed by
   (operation, sub_operation), with a per-operation default.

Malformed account keys, a missing currency, or a zero/unparseable amount
skip that single posting. classify() never raises and has no side effects.

Usage:
    postings = classify(movement)
    for posting in postings:
        print(posting.account.key, posting.currency, posting.amount)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal

from exchange_ledger.models import AccountRef, Movement, Operation, SubOperation
from exchange_ledger.services.ledger.types import Posting

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

PostingRule = Callable[[Movement], list[Posting]]


# =============================================================================
# POSTING HELPERS
# =============================================================================

def _post(
        account_key: str | None,
        currency: str | None,
        magnitude: Decimal | None,
        inflow: bool,
) -> list[Posting]:
    """
    Build zero or one posting.

    The magnitude's own sign is ignored; `inflow` decides the direction.
    """
    account = AccountRef.parse(account_key)
    if account is None:
        logger.debug(f"Skipping posting: malformed account key {account_key!r}")
        return []
    if not currency:
        logger.debug(f"Skipping posting on {account.key}: missing currency")
        return []
    if magnitude is None or magnitude == ZERO:
        return []

    amount = abs(magnitude)
    return [Posting(account=account, currency=currency, amount=amount if inflow else -amount)]


def _inflow(movement: Movement) -> list[Posting]:
    return _post(movement.account, movement.currency, movement.amount, inflow=True)


def _outflow(movement: Movement) -> list[Posting]:
    return _post(movement.account, movement.currency, movement.amount, inflow=False)


def _adjustment(movement: Movement) -> list[Posting]:
    """Signed adjustment: positive credits the account, negative debits |amount|."""
    return _post(
        movement.account,
        movement.currency,
        movement.amount,
        inflow=movement.amount > ZERO,
    )


def _transfer(movement: Movement) -> list[Posting]:
    """Outflow on the source account, same magnitude inflow on the destination."""
    return (
        _post(movement.account, movement.currency, movement.amount, inflow=False)
        + _post(movement.destination_account, movement.currency, movement.amount, inflow=True)
    )


def _arbitrage(movement: Movement) -> list[Posting]:
    """
    Four independent legs; each is emitted only if its account parses.

    receive  +amount          in currency
    pay      -purchase_total  in quote_currency
    deliver  -sale_amount     in quote_currency
    collect  +sale_total      in currency
    """
    legs = movement.legs
    return (
        _post(legs.receive, movement.currency, movement.amount, inflow=True)
        + _post(legs.pay, movement.quote_currency, movement.purchase_total, inflow=False)
        + _post(legs.deliver, movement.quote_currency, movement.sale_amount, inflow=False)
        + _post(legs.collect, movement.currency, movement.sale_total, inflow=True)
    )


def _mixed_payments(movement: Movement) -> list[Posting]:
    """One outflow per split entry, in quote_currency (falling back to currency)."""
    currency = movement.quote_currency or movement.currency
    postings: list[Posting] = []

    for entry in movement.mixed_payments:
        if entry.amount <= ZERO:
            continue
        account = AccountRef.from_parts(entry.partner, entry.medium)
        if account is None:
            logger.debug(
                f"Skipping mixed payment entry: unknown account "
                f"{entry.partner!r}/{entry.medium!r}"
            )
            continue
        postings.extend(_post(account.key, currency, entry.amount, inflow=False))

    return postings


# =============================================================================
# DISPATCH TABLE
# =============================================================================

POSTING_RULES: dict[tuple[Operation, str], PostingRule] = {
    (Operation.TRANSACTIONS, SubOperation.SELL.value): _inflow,
    (Operation.TRANSACTIONS, SubOperation.BUY.value): _outflow,
    (Operation.TRANSACTIONS, SubOperation.ARBITRAGE.value): _arbitrage,
    (Operation.CURRENT_ACCOUNTS, SubOperation.DEPOSIT.value): _inflow,
    (Operation.CURRENT_ACCOUNTS, SubOperation.WITHDRAWAL.value): _outflow,
    (Operation.PARTNERS, SubOperation.DEPOSIT.value): _inflow,
    (Operation.PARTNERS, SubOperation.LOAN.value): _inflow,
    (Operation.ADMINISTRATIVE, SubOperation.ADJUSTMENT.value): _adjustment,
    (Operation.ADMINISTRATIVE, SubOperation.EXPENSE.value): _outflow,
    (Operation.LENDERS, SubOperation.LOAN.value): _inflow,
    (Operation.INTERNAL, SubOperation.TRANSFER.value): _transfer,
}

# Unlisted sub-operations of every operation are outflows on `account`
DEFAULT_RULES: dict[Operation, PostingRule] = {operation: _outflow for operation in Operation}


def classify(movement: Movement) -> list[Posting]:
    """
    Classify a movement into signed postings.

    Args:
        movement: Movement to classify

    Returns:
        Postings in emission order (may be empty)
    """
    if movement.is_arbitrage:
        return _arbitrage(movement)

    if movement.has_mixed_payments:
        return _mixed_payments(movement)

    rule = POSTING_RULES.get((movement.operation, movement.sub_operation))
    if rule is None:
        rule = DEFAULT_RULES.get(movement.operation, _outflow)
    return rule(movement)
