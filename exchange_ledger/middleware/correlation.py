# exchange_ledger/middleware/correlation.py
"""
Correlation ID middleware.

Every request gets an id that is attached to all log records emitted while
it is handled and echoed back in the X-Correlation-ID response header.

Sources, in order:
1. X-Correlation-ID request header
2. X-Request-ID request header
3. A fresh UUID4

Header values longer than MAX_CORRELATION_ID_LENGTH or containing
non-printable characters are replaced by a fresh id, so a client cannot
inject arbitrary text into the logs.
"""

import logging
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from exchange_ledger.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"
MAX_CORRELATION_ID_LENGTH = 128


def _is_usable(value: str | None) -> bool:
    return bool(value) and len(value) <= MAX_CORRELATION_ID_LENGTH and value.isprintable()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds a correlation id to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = self._resolve(request)
        set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    @staticmethod
    def _resolve(request: Request) -> str:
        for header in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER):
            value = request.headers.get(header)
            if _is_usable(value):
                return value
            if value:
                logger.debug(f"Ignoring unusable {header} header")
        return str(uuid.uuid4())
