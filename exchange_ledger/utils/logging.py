# exchange_ledger/utils/logging.py
"""
Logging configuration for the Exchange Ledger.

This module provides centralized logging setup with:
- Environment-based log levels
- Correlation ID on every record
- JSON format option for log aggregation

Usage:
    from exchange_ledger.utils import setup_logging

    # In main.py, before creating the FastAPI app
    setup_logging()

Log Levels used by the ledger engines:
    DEBUG   - Skipped postings, malformed keys, per-derivation counts
    INFO    - Derivation summaries
    WARNING - Recoverable business-rule violations (overselling, over-withdrawal)
    ERROR   - Unexpected failures
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from exchange_ledger.config import settings
from exchange_ledger.utils.context import get_correlation_id

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "no-correlation-id"

NOISY_LOGGERS = [
    "uvicorn.access",
    "httpx",
    "httpcore",
    "asyncio",
]

# Standard LogRecord attributes, excluded from the JSON "extra" block
_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "correlation_id", "message", "taskName",
}


# =============================================================================
# CORRELATION ID FILTER
# =============================================================================

class CorrelationIdFilter(logging.Filter):
    """Adds the current correlation ID to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


# =============================================================================
# JSON FORMATTER
# =============================================================================

class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.123Z",
        "level": "WARNING",
        "logger": "exchange_ledger.services.ledger.inventory",
        "correlation_id": "abc-123-def",
        "message": "Insufficient stock selling 50 USD on 2024-01-15",
        "extra": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", NO_CORRELATION_ID)

        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": correlation_id,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {}
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                try:
                    json.dumps(value)
                    extra[key] = value
                except (TypeError, ValueError):
                    extra[key] = str(value)

        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry)


# =============================================================================
# SETUP FUNCTION
# =============================================================================

def setup_logging(
        level: str | None = None,
        log_format: str | None = None,
        suppress_noisy_loggers: bool = True,
) -> None:
    """
    Configure application-wide logging with correlation ID support.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to settings.log_level.
        log_format: Output format ('text' or 'json').
                    Defaults to settings.log_format.
        suppress_noisy_loggers: If True, set third-party loggers to WARNING.

    Example:
        setup_logging(level="DEBUG", log_format="text")
    """
    log_level_str = level or settings.log_level
    log_level = _get_log_level(log_level_str)

    format_type = (log_format or settings.log_format).lower()

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt=DEFAULT_TEXT_FORMAT,
            datefmt=DEFAULT_DATE_FORMAT,
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy_loggers:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={log_level_str}, format={format_type}",
        extra={"config": {"level": log_level_str, "format": format_type}},
    )


def _get_log_level(level_str: str) -> int:
    """
    Convert string log level to logging constant.

    Raises:
        ValueError: If level_str is not a valid log level
    """
    level_str = level_str.upper().strip()

    level_mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    if level_str not in level_mapping:
        valid_levels = ", ".join(level_mapping.keys())
        raise ValueError(
            f"Invalid log level: '{level_str}'. "
            f"Valid levels are: {valid_levels}"
        )

    return level_mapping[level_str]
