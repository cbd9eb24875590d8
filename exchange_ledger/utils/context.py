# exchange_ledger/utils/context.py
"""
Request context management.

Holds the correlation ID for the current request in a ContextVar so it
propagates through async/await calls and shows up in every log line.

Usage:
    from exchange_ledger.utils.context import get_correlation_id, set_correlation_id

    # In middleware
    set_correlation_id("abc-123")

    # Anywhere else
    correlation_id = get_correlation_id()  # Returns "abc-123"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """
    Get the current request's correlation ID.

    Returns:
        The correlation ID for the current request, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current request.

    Args:
        correlation_id: Unique identifier for this request
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of a request."""
    _correlation_id_var.set(None)
