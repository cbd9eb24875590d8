# exchange_ledger/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions for caller mistakes only
- Receive the movement collection as a parameter and store nothing

Usage:
    from exchange_ledger.services import LedgerService
    from exchange_ledger.services import (
        InvalidIntervalError,
        LenderNotFoundError,
    )

Architecture:
    services/
    ├── __init__.py      # This file - main exports
    ├── exceptions.py    # Domain exceptions
    ├── constants.py     # Business constants and limits
    └── ledger/          # Ledger derivation engines
        ├── service.py   # Main ledger orchestrator
        ├── types.py     # Ledger data types
        └── ...
"""

from exchange_ledger.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidIntervalError,
    InvalidFilterError,
    TooManyMovementsError,
    NotFoundError,
    LenderNotFoundError,
)
from exchange_ledger.services.ledger import LedgerService

__all__ = [
    # Services
    "LedgerService",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidIntervalError",
    "InvalidFilterError",
    "TooManyMovementsError",
    "NotFoundError",
    "LenderNotFoundError",
]
