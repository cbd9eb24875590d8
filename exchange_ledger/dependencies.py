# exchange_ledger/dependencies.py
"""
Dependency injection for FastAPI routers.

The ledger service holds no per-request state, so one instance is shared by
all requests. It is created lazily on first use.

Usage in routers:
    from exchange_ledger.dependencies import get_ledger_service

    @router.post("/balances")
    def get_balances(service: LedgerService = Depends(get_ledger_service)):
        ...

Tests can override it:
    app.dependency_overrides[get_ledger_service] = lambda: LedgerService(max_movements=2)
"""

from functools import lru_cache

from exchange_ledger.services.ledger import LedgerService


@lru_cache(maxsize=1)
def get_ledger_service() -> LedgerService:
    """Get the singleton LedgerService instance."""
    return LedgerService()
