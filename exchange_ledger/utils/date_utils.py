# exchange_ledger/utils/date_utils.py
"""
Date utility functions shared by the ledger engines.

Usage:
    from exchange_ledger.utils.date_utils import elapsed_days_ceil, month_key

    days = elapsed_days_ceil(date(2024, 1, 1), datetime(2024, 1, 2, 6, 0))  # 2
"""

import math
from datetime import date, datetime, time, timedelta, timezone


def as_datetime(value: date | datetime) -> datetime:
    """
    Promote a date to a naive datetime at midnight.

    Timezone-aware datetimes are converted to naive UTC so they can be
    compared with movement dates, which carry no timezone.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime.combine(value, time.min)


def elapsed_days_ceil(start: date | datetime, end: date | datetime) -> int:
    """
    Whole days between two instants, rounding any partial day up.

    Args:
        start: Earlier instant
        end: Later instant

    Returns:
        ceil((end - start) / 1 day); zero or negative when end <= start

    Example:
        >>> elapsed_days_ceil(date(2024, 1, 1), date(2024, 1, 31))
        30
        >>> elapsed_days_ceil(date(2024, 1, 1), datetime(2024, 1, 1, 0, 1))
        1
    """
    delta = as_datetime(end) - as_datetime(start)
    return math.ceil(delta / timedelta(days=1))


def day_key(d: date) -> str:
    """Bucket key for daily aggregates: 'YYYY-MM-DD'."""
    return d.isoformat()


def month_key(d: date) -> str:
    """Bucket key for monthly aggregates: 'YYYY-MM'."""
    return f"{d.year:04d}-{d.month:02d}"


def in_range(d: date, start: date | None, end: date | None) -> bool:
    """True if d lies within [start, end]; open bounds are unbounded."""
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True
