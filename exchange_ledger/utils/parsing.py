# exchange_ledger/utils/parsing.py
"""
Lenient parsing helpers for raw movement fields.

Movement records come from forms and a document store, so numeric fields
can arrive as Decimal, int, float, numeric strings (with either decimal
separator), empty strings or None. A single bad field must never abort
a derivation, so every parser here falls back to a default instead of
raising.

Magnitudes are bounded: values of 1e16 or more, and non-zero values
below 1e-12, are treated as unparseable. That keeps sums of a large
movement set, and the quotients behind unit costs, inside the default
28-digit decimal context.

Usage:
    from exchange_ledger.utils.parsing import parse_decimal

    parse_decimal("1.234,50")   # Decimal("1234.50")
    parse_decimal("abc")        # Decimal("0")
    parse_decimal(None, None)   # None
"""

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# Bounds on Decimal.adjusted(), the exponent of the most significant digit
MAX_ADJUSTED_EXPONENT = 15
MIN_ADJUSTED_EXPONENT = -12


def parse_decimal(value: Any, default: Decimal | None = ZERO) -> Decimal | None:
    """
    Parse a numeric value into Decimal, falling back to `default`.

    Accepts "1234.5", "1234,5", "1.234,50" and "1,234.50". Floats go
    through str() so 0.1 becomes Decimal("0.1") rather than its binary
    expansion. NaN, infinities and out-of-range magnitudes are rejected.

    Args:
        value: Raw value
        default: Returned when the value is missing or unparseable

    Returns:
        Parsed Decimal, or default
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, Decimal):
        return value if _within_bounds(value) else default

    if isinstance(value, int):
        parsed = Decimal(value)
        return parsed if _within_bounds(parsed) else default

    if isinstance(value, float):
        value = str(value)

    if not isinstance(value, str):
        return default

    text = value.strip().replace(" ", "")
    if not text:
        return default

    text = _normalize_separators(text)

    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return default

    return parsed if _within_bounds(parsed) else default


def _within_bounds(value: Decimal) -> bool:
    if not value.is_finite():
        return False
    if value.is_zero():
        return True
    return MIN_ADJUSTED_EXPONENT <= value.adjusted() <= MAX_ADJUSTED_EXPONENT


def _normalize_separators(text: str) -> str:
    """Turn a locale-formatted number into a plain dotted decimal string."""
    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        # Whichever separator appears last is the decimal separator
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")

    if has_comma:
        return text.replace(",", ".")

    return text


def parse_code(value: Any) -> str | None:
    """
    Normalize a currency or provider code.

    Returns:
        Upper-case trimmed code, or None when blank / not a string
    """
    if not isinstance(value, str):
        return None
    code = value.strip().upper()
    return code or None
