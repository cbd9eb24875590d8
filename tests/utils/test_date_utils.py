# tests/utils/test_date_utils.py
"""
Tests for date utility functions.
"""

from datetime import date, datetime, timedelta, timezone

from exchange_ledger.utils.date_utils import (
    as_datetime,
    day_key,
    elapsed_days_ceil,
    in_range,
    month_key,
)


class TestElapsedDaysCeil:
    """Tests for elapsed_days_ceil function."""

    def test_whole_days(self):
        assert elapsed_days_ceil(date(2024, 1, 1), date(2024, 1, 31)) == 30

    def test_partial_day_rounds_up(self):
        assert elapsed_days_ceil(date(2024, 1, 1), datetime(2024, 1, 1, 0, 1)) == 1
        assert elapsed_days_ceil(date(2024, 1, 1), datetime(2024, 1, 2, 6, 0)) == 2

    def test_same_instant(self):
        assert elapsed_days_ceil(date(2024, 1, 1), date(2024, 1, 1)) == 0

    def test_end_before_start(self):
        assert elapsed_days_ceil(date(2024, 1, 10), date(2024, 1, 1)) == -9

    def test_aware_end(self):
        end = datetime(2024, 1, 2, 3, 0, tzinfo=timezone(timedelta(hours=3)))

        assert elapsed_days_ceil(date(2024, 1, 1), end) == 1


class TestAsDatetime:
    """Tests for as_datetime function."""

    def test_date_becomes_midnight(self):
        assert as_datetime(date(2024, 5, 1)) == datetime(2024, 5, 1)

    def test_aware_converted_to_naive_utc(self):
        aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=-3)))

        assert as_datetime(aware) == datetime(2024, 5, 1, 15, 0)


class TestBucketKeys:
    """Tests for day_key, month_key and in_range."""

    def test_keys(self):
        assert day_key(date(2024, 3, 7)) == "2024-03-07"
        assert month_key(date(2024, 3, 7)) == "2024-03"

    def test_in_range(self):
        d = date(2024, 3, 7)

        assert in_range(d, None, None) is True
        assert in_range(d, date(2024, 3, 7), date(2024, 3, 7)) is True
        assert in_range(d, date(2024, 3, 8), None) is False
        assert in_range(d, None, date(2024, 3, 6)) is False
