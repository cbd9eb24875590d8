# exchange_ledger/utils/__init__.py
"""
Utility modules for the Exchange Ledger.

This package contains cross-cutting utilities:
- logging: Logging configuration with correlation ID support
- context: Request context management for correlation IDs
- parsing: Lenient numeric/code parsing for raw movement fields
- date_utils: Day counting and bucket keys

Usage:
    from exchange_ledger.utils import setup_logging
    from exchange_ledger.utils.parsing import parse_decimal
"""

from exchange_ledger.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from exchange_ledger.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
