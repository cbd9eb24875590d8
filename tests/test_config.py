# tests/test_config.py
"""
Tests for settings validation and logging setup.
"""

import json
import logging

import pytest
from pydantic import ValidationError

from exchange_ledger.config import Settings, settings
from exchange_ledger.utils.logging import JsonFormatter, _get_log_level, setup_logging


class TestSettings:
    """Tests for Settings validation."""

    def test_test_environment_disables_rate_limiting(self):
        assert settings.environment == "test"
        assert settings.rate_limit_enabled is False

    def test_defaults(self):
        s = Settings(environment="development")

        assert s.ledger_default_profit_currency == "PESO"
        assert s.ledger_digital_only_currencies == ["USDT"]
        assert s.ledger_provider_currencies["SS"] == ["USD", "EURO", "PESO"]
        assert s.rate_limit_enabled is True

    def test_currency_codes_normalized(self):
        s = Settings(
            ledger_currencies=[" usd", "USD", "peso "],
            ledger_digital_only_currencies=[],
            ledger_default_profit_currency="peso",
        )

        assert s.ledger_currencies == ["USD", "PESO"]
        assert s.ledger_default_profit_currency == "PESO"

    def test_profit_currency_must_be_configured(self):
        with pytest.raises(ValidationError, match="LEDGER_DEFAULT_PROFIT_CURRENCY"):
            Settings(ledger_currencies=["USD"], ledger_digital_only_currencies=[])

    def test_digital_only_must_be_configured(self):
        with pytest.raises(ValidationError, match="LEDGER_DIGITAL_ONLY_CURRENCIES"):
            Settings(ledger_currencies=["PESO"], ledger_digital_only_currencies=["USDT"])

    def test_empty_currencies_rejected(self):
        with pytest.raises(ValidationError):
            Settings(ledger_currencies=[], ledger_digital_only_currencies=[])

    def test_day_count_bounds(self):
        with pytest.raises(ValidationError):
            Settings(ledger_days_per_year=100)


class TestLogging:
    """Tests for logging configuration."""

    def test_log_level_mapping(self):
        assert _get_log_level(" warn ") == logging.WARNING

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            _get_log_level("LOUD")

    def test_json_formatter(self):
        record = logging.LogRecord("exchange_ledger.test", logging.WARNING, __file__, 1, "stock %s", ("low",), None)
        record.correlation_id = "abc"

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["message"] == "stock low"
        assert entry["correlation_id"] == "abc"

    def test_setup_logging_installs_single_handler(self):
        setup_logging(level="DEBUG", log_format="json")
        setup_logging(level="INFO", log_format="text")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO
