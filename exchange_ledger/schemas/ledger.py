# exchange_ledger/schemas/ledger.py
"""
Pydantic schemas for ledger responses.

These schemas handle:
- Account balances and per-currency totals
- WAC inventory, per-sale results and profit series
- Lender balances and movement history
- Commission, arbitrage, current-account and cash register reports

Monetary values are rounded to cents at the router; unit costs keep
8 decimal places.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field


# =============================================================================
# SHARED
# =============================================================================

class WarningResponse(BaseModel):
    """A recoverable business-rule violation found during derivation."""

    code: str = Field(..., examples=["INSUFFICIENT_STOCK"])
    message: str
    movement_date: dt.date | None = None
    currency: str | None = None


# =============================================================================
# BALANCES
# =============================================================================

class AccountBalanceResponse(BaseModel):
    """Balance of one (partner, medium, currency) key."""

    account: str = Field(..., examples=["partner1_cash"])
    partner: str
    medium: str
    currency: str
    initial: Decimal
    inflow: Decimal = Field(..., description="Includes the initial balance")
    outflow: Decimal
    balance: Decimal = Field(..., description="inflow - outflow")
    movement_count: int


class BalancesResponse(BaseModel):
    balances: list[AccountBalanceResponse]
    totals: dict[str, Decimal] = Field(..., description="Sum of the listed balances per currency")
    skipped_movements: int = Field(..., description="Movements that produced no posting")


# =============================================================================
# INVENTORY
# =============================================================================

class StockPositionResponse(BaseModel):
    """Weighted-average-cost stock of one currency."""

    currency: str
    quantity: Decimal
    total_cost: Decimal
    average_cost: Decimal
    total_valuation: Decimal
    associated_quote_currency: str | None
    realized_profit: dict[str, Decimal]


class SaleResponse(BaseModel):
    date: dt.date
    currency: str
    quote_currency: str
    amount: Decimal
    total: Decimal
    unit_cost: Decimal
    cost_of_sale: Decimal
    profit: Decimal
    movement_id: str | None = None


class InventoryResponse(BaseModel):
    positions: list[StockPositionResponse]
    sales: list[SaleResponse]
    realized_profit_totals: dict[str, Decimal]
    interval: str = Field(..., examples=["monthly"])
    profit_series: dict[str, dict[str, Decimal]] = Field(
        ...,
        description="{bucket: {quote_currency: profit}}"
    )
    warnings: list[WarningResponse]


# =============================================================================
# LENDERS
# =============================================================================

class LenderBalanceResponse(BaseModel):
    currency: str
    principal: Decimal
    accrued_interest: Decimal
    net_balance: Decimal = Field(..., description="Positive means the business owes the lender")
    effective_rate: Decimal = Field(..., description="Annual rate in percent")
    last_accrual_date: dt.date | None


class LenderSnapshotResponse(BaseModel):
    """Lender state right after one movement."""

    date: dt.date
    sub_operation: str
    currency: str
    amount: Decimal
    interest_accrued: Decimal
    principal_after: Decimal
    interest_after: Decimal
    net_balance_after: Decimal
    due_date: dt.date | None = Field(default=None, description="Loan date plus its term, when a term was recorded")
    movement_id: str | None = None


class LenderSummaryResponse(BaseModel):
    lender_id: str
    name: str
    balances: list[LenderBalanceResponse]
    total_lent: dict[str, Decimal]
    total_withdrawn: dict[str, Decimal]
    movement_count: int
    warnings: list[WarningResponse]


class LenderLedgerResponse(LenderSummaryResponse):
    as_of: dt.datetime | dt.date
    history: list[LenderSnapshotResponse] = Field(..., description="Newest first")


class LendersResponse(BaseModel):
    as_of: dt.datetime | dt.date
    lenders: list[LenderSummaryResponse]


# =============================================================================
# REPORTS
# =============================================================================

class CommissionReportResponse(BaseModel):
    totals: dict[str, Decimal]
    monthly: dict[str, dict[str, Decimal]]
    daily: dict[str, dict[str, Decimal]]
    by_provider: dict[str, dict[str, Decimal]]
    current_account_totals: dict[str, Decimal]
    movement_count: int


class ArbitrageReportResponse(BaseModel):
    totals: dict[str, Decimal]
    monthly: dict[str, dict[str, Decimal]]
    by_client: dict[str, dict[str, Decimal]]
    operation_count: int
    profitable_count: int


class ProviderBalanceResponse(BaseModel):
    provider: str
    currency: str
    inflow: Decimal
    outflow: Decimal
    balance: Decimal
    owed_by_provider: Decimal
    owed_to_provider: Decimal
    movement_count: int


class CurrentAccountsResponse(BaseModel):
    accounts: list[ProviderBalanceResponse]
    provider_totals: dict[str, dict[str, Decimal]]


class CashRegisterLineResponse(BaseModel):
    currency: str
    medium: str
    opening: Decimal
    inflow: Decimal
    outflow: Decimal
    expected: Decimal
    counted: Decimal
    difference: Decimal
    is_balanced: bool


class CashRegisterResponse(BaseModel):
    date: dt.date
    lines: list[CashRegisterLineResponse]
    is_balanced: bool


class PendingMovementResponse(BaseModel):
    id: str | None
    date: dt.date
    operation: str
    sub_operation: str
    amount: Decimal
    currency: str | None
    client_name: str | None
    status: str


class PendingResponse(BaseModel):
    movements: list[PendingMovementResponse]
    count: int
