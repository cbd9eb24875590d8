# exchange_ledger/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- errors: Error response formats
- movements: Lenient movement/lender records and request bodies
- ledger: Derived view responses

Usage:
    from exchange_ledger.schemas import MovementRecord, BalancesResponse
"""

from exchange_ledger.schemas.errors import ErrorDetail, ValidationErrorDetail
from exchange_ledger.schemas.ledger import (
    AccountBalanceResponse,
    ArbitrageReportResponse,
    BalancesResponse,
    CashRegisterLineResponse,
    CashRegisterResponse,
    CommissionReportResponse,
    CurrentAccountsResponse,
    InventoryResponse,
    LenderBalanceResponse,
    LenderLedgerResponse,
    LenderSnapshotResponse,
    LenderSummaryResponse,
    LendersResponse,
    PendingMovementResponse,
    PendingResponse,
    ProviderBalanceResponse,
    SaleResponse,
    StockPositionResponse,
    WarningResponse,
)
from exchange_ledger.schemas.movements import (
    BalancesRequest,
    CashRegisterRequest,
    LegAccountsRecord,
    LenderRecord,
    LendersRequest,
    MixedPaymentRecord,
    MovementRecord,
    MovementsRequest,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Requests
    "MovementRecord",
    "LegAccountsRecord",
    "MixedPaymentRecord",
    "LenderRecord",
    "MovementsRequest",
    "BalancesRequest",
    "LendersRequest",
    "CashRegisterRequest",
    # Responses
    "WarningResponse",
    "AccountBalanceResponse",
    "BalancesResponse",
    "StockPositionResponse",
    "SaleResponse",
    "InventoryResponse",
    "LenderBalanceResponse",
    "LenderSnapshotResponse",
    "LenderSummaryResponse",
    "LenderLedgerResponse",
    "LendersResponse",
    "CommissionReportResponse",
    "ArbitrageReportResponse",
    "ProviderBalanceResponse",
    "CurrentAccountsResponse",
    "CashRegisterLineResponse",
    "CashRegisterResponse",
    "PendingMovementResponse",
    "PendingResponse",
]
