# exchange_ledger/middleware/__init__.py
"""
Middleware components for the Exchange Ledger API.

- Correlation ID tracking for request tracing
- Rate limiting (slowapi)

Usage:
    from exchange_ledger.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from exchange_ledger.middleware.correlation import CorrelationIdMiddleware
from exchange_ledger.middleware.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_LEDGER,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_LEDGER",
]
