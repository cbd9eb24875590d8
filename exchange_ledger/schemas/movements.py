# exchange_ledger/schemas/movements.py
"""
Pydantic schemas for movement records sent to the ledger endpoints.

Movement records come from data entry forms, so numeric fields are parsed
leniently: strings with either decimal separator are accepted and an
unparseable value becomes 0 instead of failing the whole request. Only the
fields every engine depends on (date, operation) are strict.

Each record converts into the immutable domain object with to_movement().
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from exchange_ledger.models import Client, LegAccounts, MixedPayment, Movement, Operation
from exchange_ledger.services.constants import LENDER_CLIENT_TYPE, MAX_LAPSE_DAYS
from exchange_ledger.utils.parsing import parse_code, parse_decimal


def _optional_text(value: Any) -> str | None:
    """Ids and names may arrive as numbers; blanks become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# =============================================================================
# NESTED RECORDS
# =============================================================================

class LegAccountsRecord(BaseModel):
    """Account keys of the four arbitrage legs."""

    model_config = ConfigDict(extra="ignore")

    receive: str | None = Field(default=None, examples=["partner1_digital"])
    pay: str | None = Field(default=None, examples=["pooled_cash"])
    deliver: str | None = Field(default=None)
    collect: str | None = Field(default=None)

    def to_legs(self) -> LegAccounts:
        return LegAccounts(
            receive=self.receive,
            pay=self.pay,
            deliver=self.deliver,
            collect=self.collect,
        )


class MixedPaymentRecord(BaseModel):
    """One slice of a split payment."""

    model_config = ConfigDict(extra="ignore")

    partner: str = Field(default="", examples=["partner1"])
    medium: str = Field(default="", examples=["cash"])
    amount: Decimal = Field(default=Decimal("0"), examples=["120"])

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> Decimal:
        return parse_decimal(v)

    def to_mixed_payment(self) -> MixedPayment:
        return MixedPayment(partner=self.partner, medium=self.medium, amount=self.amount)


# =============================================================================
# MOVEMENT RECORD
# =============================================================================

class MovementRecord(BaseModel):
    """
    A movement as submitted by the client.

    Unknown fields are ignored so the full stored document can be posted
    as-is.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, description="Record identifier")
    date: dt.date = Field(..., description="Calendar date", examples=["2024-03-15"])
    operation: Operation = Field(..., examples=["TRANSACTIONS"])
    sub_operation: str = Field(default="", examples=["BUY", "SELL", "ARBITRAGE"])

    amount: Decimal = Field(default=Decimal("0"), examples=["1000", "1.234,50"])
    currency: str | None = Field(default=None, examples=["USD"])
    account: str | None = Field(default=None, examples=["partner1_cash"])
    total: Decimal = Field(default=Decimal("0"))
    quote_currency: str | None = Field(default=None, examples=["PESO"])
    destination_account: str | None = Field(default=None)

    legs: LegAccountsRecord | None = Field(default=None)
    purchase_total: Decimal = Field(default=Decimal("0"))
    sale_amount: Decimal = Field(default=Decimal("0"))
    sale_total: Decimal = Field(default=Decimal("0"))
    sale_quote_currency: str | None = Field(default=None)

    mixed_payments: list[MixedPaymentRecord] = Field(default_factory=list)

    commission: Decimal = Field(default=Decimal("0"))
    commission_currency: str | None = Field(default=None)
    provider: str | None = Field(default=None, examples=["SS"])

    interest_rate: Decimal | None = Field(
        default=None,
        description="Annual rate in percent; omitted or unparseable keeps the lender's current rate"
    )
    lapse_days: int | None = Field(default=None)

    client_id: str | None = Field(default=None)
    client_name: str | None = Field(default=None)
    status: str | None = Field(default=None, examples=["pending_withdrawal"])
    detail: str | None = Field(default=None)

    # =========================================================================
    # FIELD VALIDATORS (lenient normalization)
    # =========================================================================

    @field_validator("date", mode="before")
    @classmethod
    def truncate_timestamp(cls, v: Any) -> Any:
        """Accept full ISO timestamps; only the calendar date is kept."""
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10 and v[10] in ("T", " "):
            return v[:10]
        return v

    @field_validator("operation", mode="before")
    @classmethod
    def normalize_operation(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("sub_operation", mode="before")
    @classmethod
    def normalize_sub_operation(cls, v: Any) -> str:
        return v.strip().upper() if isinstance(v, str) else ""

    @field_validator(
        "amount", "total", "purchase_total", "sale_amount", "sale_total", "commission",
        mode="before",
    )
    @classmethod
    def parse_amount(cls, v: Any) -> Decimal:
        return parse_decimal(v)

    @field_validator("interest_rate", mode="before")
    @classmethod
    def parse_rate(cls, v: Any) -> Decimal | None:
        return parse_decimal(v, None)

    @field_validator("lapse_days", mode="before")
    @classmethod
    def parse_lapse_days(cls, v: Any) -> int | None:
        parsed = parse_decimal(v, None)
        if parsed is None or not 0 <= parsed <= MAX_LAPSE_DAYS:
            return None
        return int(parsed)

    @field_validator(
        "currency", "quote_currency", "sale_quote_currency", "commission_currency", "provider",
        mode="before",
    )
    @classmethod
    def normalize_code(cls, v: Any) -> str | None:
        return parse_code(v)

    @field_validator("account", "destination_account", mode="before")
    @classmethod
    def normalize_account(cls, v: Any) -> str | None:
        return v.strip().lower() if isinstance(v, str) and v.strip() else None

    @field_validator("id", "client_id", "client_name", "status", "detail", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> str | None:
        return _optional_text(v)

    @field_validator("mixed_payments", mode="before")
    @classmethod
    def default_mixed_payments(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    def to_movement(self) -> Movement:
        """Convert into the immutable domain Movement."""
        return Movement(
            date=self.date,
            operation=self.operation,
            sub_operation=self.sub_operation,
            amount=self.amount,
            currency=self.currency,
            account=self.account,
            total=self.total,
            quote_currency=self.quote_currency,
            destination_account=self.destination_account,
            legs=self.legs.to_legs() if self.legs is not None else LegAccounts(),
            purchase_total=self.purchase_total,
            sale_amount=self.sale_amount,
            sale_total=self.sale_total,
            sale_quote_currency=self.sale_quote_currency,
            mixed_payments=tuple(p.to_mixed_payment() for p in self.mixed_payments),
            commission=self.commission,
            commission_currency=self.commission_currency,
            provider=self.provider,
            interest_rate=self.interest_rate,
            lapse_days=self.lapse_days,
            client_id=self.client_id,
            client_name=self.client_name,
            status=self.status,
            movement_id=self.id,
            detail=self.detail,
        )


# =============================================================================
# CLIENTS
# =============================================================================

class LenderRecord(BaseModel):
    """A lender client."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., examples=["7"])
    first_name: str = Field(..., min_length=1, examples=["Ana"])
    last_name: str = Field(default="", examples=["Pérez"])
    client_type: str = Field(default=LENDER_CLIENT_TYPE)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v).strip() if isinstance(v, int) else v

    def to_client(self) -> Client:
        return Client(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            client_type=self.client_type,
        )


# =============================================================================
# REQUEST BODIES
# =============================================================================

class MovementsRequest(BaseModel):
    """Body shared by every ledger endpoint."""

    movements: list[MovementRecord] = Field(default_factory=list)

    def to_movements(self) -> tuple[Movement, ...]:
        return tuple(record.to_movement() for record in self.movements)


class BalancesRequest(MovementsRequest):
    initial_balances: dict[str, Any] = Field(
        default_factory=dict,
        description='Opening amounts keyed "partner_medium-CURRENCY"',
        examples=[{"pooled_cash-PESO": "1500"}],
    )


class LendersRequest(MovementsRequest):
    lenders: list[LenderRecord] = Field(default_factory=list)
    now: dt.datetime | None = Field(
        default=None,
        description="Accrue interest up to this instant (default: current time)"
    )

    def to_clients(self) -> list[Client]:
        return [record.to_client() for record in self.lenders]


class CashRegisterRequest(MovementsRequest):
    counted: dict[str, Any] = Field(
        default_factory=dict,
        description='Counted amounts keyed "CURRENCY-medium"',
        examples=[{"USD-cash": "1200"}],
    )
    opening: dict[str, Any] = Field(
        default_factory=dict,
        description='Opening amounts keyed "CURRENCY-medium"',
    )
