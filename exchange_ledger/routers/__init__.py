# exchange_ledger/routers/__init__.py
"""
API routers for the Exchange Ledger.

- ledger: Stateless derivations over a posted movement collection
"""

from exchange_ledger.routers.ledger import router as ledger_router

__all__ = [
    "ledger_router",
]
