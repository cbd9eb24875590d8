# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Test environment (rate limiting off) set before the app is imported
- Movement and client factories
- A TestClient for the API
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from exchange_ledger.models import Client, LegAccounts, MixedPayment, Movement, Operation


# =============================================================================
# FACTORIES
# =============================================================================

def make_movement(
        operation: Operation = Operation.TRANSACTIONS,
        sub_operation: str = "BUY",
        on: date = date(2024, 1, 15),
        **fields: Any,
) -> Movement:
    """
    Build a Movement with sensible defaults.

    Amount-like fields given as str/int are converted to Decimal.
    """
    for name in ("amount", "total", "purchase_total", "sale_amount", "sale_total", "commission"):
        if name in fields and not isinstance(fields[name], Decimal):
            fields[name] = Decimal(str(fields[name]))
    if "interest_rate" in fields and fields["interest_rate"] is not None:
        fields["interest_rate"] = Decimal(str(fields["interest_rate"]))
    if isinstance(fields.get("legs"), dict):
        fields["legs"] = LegAccounts(**fields["legs"])
    if "mixed_payments" in fields:
        fields["mixed_payments"] = tuple(
            p if isinstance(p, MixedPayment)
            else MixedPayment(p[0], p[1], Decimal(str(p[2])))
            for p in fields["mixed_payments"]
        )
    return Movement(date=on, operation=operation, sub_operation=sub_operation, **fields)


def buy(on: date, amount, total, currency: str = "USD", quote_currency: str = "PESO", **kw) -> Movement:
    return make_movement(
        Operation.TRANSACTIONS, "BUY", on,
        amount=amount, total=total, currency=currency, quote_currency=quote_currency,
        account=kw.pop("account", "pooled_cash"), **kw,
    )


def sell(on: date, amount, total, currency: str = "USD", quote_currency: str = "PESO", **kw) -> Movement:
    return make_movement(
        Operation.TRANSACTIONS, "SELL", on,
        amount=amount, total=total, currency=currency, quote_currency=quote_currency,
        account=kw.pop("account", "pooled_cash"), **kw,
    )


def lender_movement(sub_operation: str, on: date, amount, currency: str = "USD", **kw) -> Movement:
    kw.setdefault("client_name", "Ana")
    return make_movement(
        Operation.LENDERS, sub_operation, on,
        amount=amount, currency=currency, account=kw.pop("account", "pooled_digital"), **kw,
    )


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def lender() -> Client:
    """A lender client referenced by first name in movements."""
    return Client(id="7", first_name="Ana", last_name="Pérez", client_type="lender")


@pytest.fixture
def regular_client() -> Client:
    """A client that is not a lender."""
    return Client(id="8", first_name="Bruno", last_name="Gómez", client_type="regular")


@pytest.fixture
def client():
    """TestClient for the FastAPI app."""
    from fastapi.testclient import TestClient

    from exchange_ledger.main import app

    with TestClient(app) as test_client:
        yield test_client
