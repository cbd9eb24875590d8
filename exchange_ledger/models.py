# exchange_ledger/models.py
"""
Domain model for movement records.

Movements are the only input of the ledger engines. They are immutable
value objects built from already-fetched records (see
exchange_ledger/schemas/movements.py for the lenient JSON parser).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal


# Enums are str-based so they compare equal to the raw record values
class Operation(str, enum.Enum):
    TRANSACTIONS = "TRANSACTIONS"
    CURRENT_ACCOUNTS = "CURRENT_ACCOUNTS"
    PARTNERS = "PARTNERS"
    ADMINISTRATIVE = "ADMINISTRATIVE"
    LENDERS = "LENDERS"
    INTERNAL = "INTERNAL"


class SubOperation(str, enum.Enum):
    """
    Known sub-operation tags.

    Movement.sub_operation is a plain string: tags outside this enum are
    kept as-is and fall through to the per-operation default rule.
    """
    BUY = "BUY"
    SELL = "SELL"
    ARBITRAGE = "ARBITRAGE"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    LOAN = "LOAN"
    REPAYMENT = "REPAYMENT"
    ADJUSTMENT = "ADJUSTMENT"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class Partner(str, enum.Enum):
    PARTNER1 = "partner1"
    PARTNER2 = "partner2"
    POOLED = "pooled"


class Medium(str, enum.Enum):
    CASH = "cash"
    DIGITAL = "digital"


class EntryStatus(str, enum.Enum):
    PENDING_WITHDRAWAL = "pending_withdrawal"
    PENDING_DELIVERY = "pending_delivery"
    DONE = "done"


# =============================================================================
# ACCOUNTS
# =============================================================================

@dataclass(frozen=True, order=True)
class AccountRef:
    """
    A (partner, medium) pair, written as the key 'partner_medium'.

    Example:
        >>> AccountRef.parse("partner1_cash")
        AccountRef(partner=<Partner.PARTNER1: 'partner1'>, medium=<Medium.CASH: 'cash'>)
        >>> AccountRef.parse("partner1") is None
        True
    """

    partner: Partner
    medium: Medium

    @property
    def key(self) -> str:
        return f"{self.partner.value}_{self.medium.value}"

    @classmethod
    def parse(cls, value: object) -> AccountRef | None:
        """Parse an account key; None unless it is exactly a known partner and medium."""
        if not isinstance(value, str):
            return None
        parts = value.strip().lower().split("_")
        if len(parts) != 2:
            return None
        return cls.from_parts(parts[0], parts[1])

    @classmethod
    def from_parts(cls, partner: object, medium: object) -> AccountRef | None:
        """Build from separate partner/medium values; None when either is unknown."""
        if not isinstance(partner, str) or not isinstance(medium, str):
            return None
        try:
            return cls(Partner(partner.strip().lower()), Medium(medium.strip().lower()))
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.key


# =============================================================================
# MOVEMENT
# =============================================================================

@dataclass(frozen=True)
class LegAccounts:
    """
    Account keys used by the four legs of an arbitrage.

    Attributes:
        receive: Account receiving the bought amount
        pay: Account paying the purchase total
        deliver: Account delivering the sold amount
        collect: Account collecting the sale total
    """

    receive: str | None = None
    pay: str | None = None
    deliver: str | None = None
    collect: str | None = None


@dataclass(frozen=True)
class MixedPayment:
    """One slice of a payment split across several accounts."""

    partner: str
    medium: str
    amount: Decimal


@dataclass(frozen=True)
class Movement:
    """
    A single recorded business event.

    Magnitudes are non-negative Decimals (ADMINISTRATIVE/ADJUSTMENT is the
    only record allowed to carry a signed amount). Optional fields default
    to None / zero so partial records stay representable.

    Attributes:
        date: Calendar date of the event
        operation: Top-level category
        sub_operation: Tag within the category (SubOperation value or free text)
        amount: Base magnitude, in `currency`
        currency: Base currency code
        account: 'partner_medium' account key
        total: Counter-value magnitude, in `quote_currency`
        quote_currency: Counter-value currency code
        destination_account: Target account for INTERNAL/TRANSFER
        legs: Arbitrage leg accounts
        purchase_total: Arbitrage amount paid, in `quote_currency`
        sale_amount: Arbitrage amount delivered, in `quote_currency`
        sale_total: Arbitrage amount collected, in `currency`
        sale_quote_currency: Currency the arbitrage profit is booked in
        mixed_payments: Split payment entries
        commission: Commission charged on the operation
        commission_currency: Currency of the commission
        provider: Current-account provider code
        interest_rate: Annual interest rate in percent (lender loans)
        lapse_days: Loan term in days (informational)
        client_id: Client identifier
        client_name: Client display name
        status: Delivery status
        movement_id: Record identifier, if any
        detail: Free-text description
    """

    date: date
    operation: Operation
    sub_operation: str
    amount: Decimal = Decimal("0")
    currency: str | None = None
    account: str | None = None
    total: Decimal = Decimal("0")
    quote_currency: str | None = None
    destination_account: str | None = None
    legs: LegAccounts = field(default_factory=LegAccounts)
    purchase_total: Decimal = Decimal("0")
    sale_amount: Decimal = Decimal("0")
    sale_total: Decimal = Decimal("0")
    sale_quote_currency: str | None = None
    mixed_payments: tuple[MixedPayment, ...] = ()
    commission: Decimal = Decimal("0")
    commission_currency: str | None = None
    provider: str | None = None
    interest_rate: Decimal | None = None
    lapse_days: int | None = None
    client_id: str | None = None
    client_name: str | None = None
    status: str | None = None
    movement_id: str | None = None
    detail: str | None = None

    def is_a(self, operation: Operation, sub_operation: SubOperation) -> bool:
        return self.operation == operation and self.sub_operation == sub_operation.value

    @property
    def is_arbitrage(self) -> bool:
        return self.is_a(Operation.TRANSACTIONS, SubOperation.ARBITRAGE)

    @property
    def has_mixed_payments(self) -> bool:
        return len(self.mixed_payments) > 0

    @property
    def due_date(self) -> date | None:
        """Loan due date (date + lapse_days), if a term was recorded."""
        if self.lapse_days is None:
            return None
        return self.date + timedelta(days=self.lapse_days)


# =============================================================================
# CLIENTS
# =============================================================================

@dataclass(frozen=True)
class Client:
    """
    A client as seen by the lender engine.

    Attributes:
        id: Client identifier
        first_name: Given name (movements usually store this as client_name)
        last_name: Family name, optional
        client_type: "lender" marks the client as a lender
    """

    id: str
    first_name: str
    last_name: str = ""
    client_type: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def matches(self, movement: Movement) -> bool:
        """True if the movement names this client by id, first name or full name."""
        if movement.client_id is not None and movement.client_id == self.id:
            return True
        name = (movement.client_name or "").strip()
        if not name:
            return False
        return name == self.first_name.strip() or name == self.full_name
