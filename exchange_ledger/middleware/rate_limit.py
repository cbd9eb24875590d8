# exchange_ledger/middleware/rate_limit.py
"""
Rate limiting for the ledger API, using slowapi.

Every derivation endpoint replays the whole movement collection it
receives, so the ledger endpoints get a tighter limit than the default.

Key by: Client IP address (X-Forwarded-For only when TRUST_PROXY_HEADERS is set)
Storage: In-memory
Disabled when RATE_LIMIT_ENABLED is false or ENVIRONMENT=test.

Usage:
    from exchange_ledger.middleware.rate_limit import limiter, RATE_LIMIT_LEDGER

    @router.post("/balances")
    @limiter.limit(RATE_LIMIT_LEDGER)
    def get_balances(request: Request, body: BalancesRequest):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from exchange_ledger.config import settings
from exchange_ledger.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_LEDGER,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """Client IP; the first X-Forwarded-For hop is used only behind a trusted proxy."""
    if settings.trust_proxy_headers:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


# =============================================================================
# LIMITER INSTANCE
# =============================================================================

limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


# =============================================================================
# RATE LIMIT EXCEEDED HANDLER
# =============================================================================

async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """
    Return a 429 in the same shape as every other API error.

    Args:
        request: The request that exceeded the rate limit
        exc: The RateLimitExceeded exception

    Returns:
        JSONResponse with 429 status and a Retry-After header
    """
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"

    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_LEDGER",
]
