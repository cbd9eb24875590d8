# tests/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

import logging
import uuid

from exchange_ledger.utils.context import get_correlation_id, set_correlation_id, clear_correlation_id
from exchange_ledger.utils.logging import NO_CORRELATION_ID, CorrelationIdFilter


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_filter_adds_correlation_id(self):
        """Log records carry the current id, or a placeholder."""
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
        log_filter = CorrelationIdFilter()

        clear_correlation_id()
        log_filter.filter(record)
        assert record.correlation_id == NO_CORRELATION_ID

        set_correlation_id("abc")
        log_filter.filter(record)
        assert record.correlation_id == "abc"
        clear_correlation_id()


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    def test_generates_id_when_missing(self, client):
        """Should return a fresh UUID when the request carries none."""
        response = client.get("/health")

        correlation_id = response.headers["X-Correlation-ID"]
        assert str(uuid.UUID(correlation_id)) == correlation_id

    def test_echoes_client_id(self, client):
        """Should echo X-Correlation-ID back."""
        response = client.get("/health", headers={"X-Correlation-ID": "client-123"})

        assert response.headers["X-Correlation-ID"] == "client-123"

    def test_falls_back_to_request_id(self, client):
        """Should use X-Request-ID when X-Correlation-ID is absent."""
        response = client.get("/health", headers={"X-Request-ID": "req-456"})

        assert response.headers["X-Correlation-ID"] == "req-456"

    def test_oversized_id_replaced(self, client):
        """Should not echo ids longer than the allowed maximum."""
        response = client.get("/health", headers={"X-Correlation-ID": "x" * 500})

        assert response.headers["X-Correlation-ID"] != "x" * 500

    def test_error_responses_carry_id(self, client):
        """Should add the header to error responses too."""
        response = client.post(
            "/ledger/inventory?interval=weekly",
            json={"movements": []},
            headers={"X-Correlation-ID": "err-789"},
        )

        assert response.status_code == 400
        assert response.headers["X-Correlation-ID"] == "err-789"
