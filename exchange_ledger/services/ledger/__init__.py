"""
Ledger Service Package.

This package derives every view of the business from the movement
collection:
- Account balances per partner, medium and currency
- WAC currency inventory and realized profit
- Lender principal and accrued interest
- Commission, arbitrage, current-account and cash register reports

Usage:
    from exchange_ledger.services.ledger import LedgerService

    service = LedgerService()

    view = service.get_balances(movements, initial_balances={"pooled_cash-PESO": "1500"})
    inventory = service.get_inventory(movements)
    inventory.profit_series("monthly")
    ledger = service.get_lender_ledger(movements, lenders, lender_id="7", now=date(2024, 6, 30))

Architecture:
    ledger/
    ├── __init__.py       # This file - package exports
    ├── types.py          # Internal data classes
    ├── classifier.py     # Movement → signed postings
    ├── balances.py       # BalanceAggregator
    ├── inventory.py      # InventoryEngine (WAC)
    ├── lenders.py        # LenderAccrualEngine
    ├── reports.py        # Commission / arbitrage / current account / cash register
    └── service.py        # LedgerService (orchestrator)

Data Flow:
    Movements → classify → Postings → BalanceAggregator → BalanceSheet
    Movements → InventoryEngine → InventoryResult
    Movements + Lender → LenderAccrualEngine → LenderLedger
"""

# Engines (for testing / direct usage)
from exchange_ledger.services.ledger.balances import BalanceAggregator
from exchange_ledger.services.ledger.classifier import classify
from exchange_ledger.services.ledger.inventory import InventoryEngine
from exchange_ledger.services.ledger.lenders import LenderAccrualEngine
from exchange_ledger.services.ledger.reports import (
    ArbitrageCalculator,
    CashRegisterCalculator,
    CommissionCalculator,
    CurrentAccountCalculator,
    pending_movements,
)
# Main service
from exchange_ledger.services.ledger.service import LedgerService
# Internal types
from exchange_ledger.services.ledger.types import (
    AccountBalance,
    ArbitrageReport,
    BalanceSheet,
    BalanceView,
    CashRegister,
    CashRegisterLine,
    CommissionReport,
    CurrentAccountReport,
    DerivationWarning,
    InventoryResult,
    LenderBalance,
    LenderLedger,
    LenderSnapshot,
    Posting,
    ProviderBalance,
    SaleResult,
    StockPosition,
    WarningCode,
)

__all__ = [
    # Main service
    "LedgerService",

    # Data types
    "Posting",
    "DerivationWarning",
    "WarningCode",
    "AccountBalance",
    "BalanceSheet",
    "BalanceView",
    "StockPosition",
    "SaleResult",
    "InventoryResult",
    "LenderBalance",
    "LenderSnapshot",
    "LenderLedger",
    "CommissionReport",
    "ArbitrageReport",
    "ProviderBalance",
    "CurrentAccountReport",
    "CashRegisterLine",
    "CashRegister",

    # Engines (for testing)
    "classify",
    "BalanceAggregator",
    "InventoryEngine",
    "LenderAccrualEngine",
    "CommissionCalculator",
    "ArbitrageCalculator",
    "CurrentAccountCalculator",
    "CashRegisterCalculator",
    "pending_movements",
]
