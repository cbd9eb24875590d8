# exchange_ledger/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging setup
- LEDGER_*: Bookkeeping parameters (currencies, profit currency, day count)

Environment-specific behavior:
- test: Rate limiting is disabled so test suites can hammer the API
- development/production: Rate limiting enabled unless explicitly turned off

Configuration is validated on import. Invalid configuration raises a
ValueError with a descriptive message.

Usage:
    from exchange_ledger.config import settings

    for currency in settings.ledger_currencies:
        ...
"""
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name (default: "Exchange Ledger")
        - DEBUG: Enable debug mode (default: False)
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")
        - HOST / PORT: Bind address for `python -m exchange_ledger`
        - MAX_MOVEMENTS_PER_REQUEST, RATE_LIMIT_ENABLED, TRUST_PROXY_HEADERS: API limits

    Ledger settings:
        - LEDGER_CURRENCIES: Currencies pre-created in every balance sheet
        - LEDGER_DIGITAL_ONLY_CURRENCIES: Currencies that never exist in cash
        - LEDGER_DEFAULT_PROFIT_CURRENCY: Currency used when a sale has no quote currency
        - LEDGER_DAYS_PER_YEAR: Day count for simple interest accrual
        - LEDGER_PROVIDER_CURRENCIES: Current-account providers and their currencies
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    app_name: str = "Exchange Ledger"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)

    # =========================================================================
    # LEDGER
    # =========================================================================
    ledger_currencies: list[str] = Field(
        default=["PESO", "USD", "EURO", "USDT", "REAL", "LIBRA", "CLP"],
        description="Currencies initialized for every partner/medium combination"
    )
    ledger_digital_only_currencies: list[str] = Field(
        default=["USDT"],
        description="Currencies that are only held in digital accounts"
    )
    ledger_default_profit_currency: str = Field(
        default="PESO",
        description="Currency used for profit when a movement has no quote currency"
    )
    ledger_days_per_year: int = Field(
        default=365,
        ge=360,
        le=366,
        description="Day count convention for lender interest accrual"
    )
    ledger_provider_currencies: dict[str, list[str]] = Field(
        default={
            "ALL": ["PESO", "USD", "EURO", "USDT", "REAL", "LIBRA", "CLP"],
            "ME": ["USD"],
            "SS": ["USD", "EURO", "PESO"],
            "AL": ["PESO", "USDT", "USD"],
        },
        description="Current-account providers and the currencies they hold"
    )

    # =========================================================================
    # API LIMITS
    # =========================================================================
    max_movements_per_request: int = Field(
        default=50_000,
        ge=1,
        description="Upper bound on movements accepted by a single API request"
    )
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable slowapi rate limiting (forced off in test)"
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Key rate limits on X-Forwarded-For (only behind a trusted proxy)"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("ledger_currencies", "ledger_digital_only_currencies")
    @classmethod
    def normalize_currency_list(cls, v: list[str]) -> list[str]:
        """Uppercase, trim and de-duplicate currency codes (order preserved)."""
        seen: list[str] = []
        for code in v:
            normalized = code.strip().upper()
            if normalized and normalized not in seen:
                seen.append(normalized)
        return seen

    @field_validator("ledger_default_profit_currency")
    @classmethod
    def normalize_profit_currency(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("ledger_provider_currencies")
    @classmethod
    def normalize_provider_currencies(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        return {
            provider.strip().upper(): [c.strip().upper() for c in currencies if c.strip()]
            for provider, currencies in v.items()
            if provider.strip()
        }

    @model_validator(mode="after")
    def validate_ledger_config(self) -> "Settings":
        """
        Validate cross-field ledger configuration.

        Rules:
        - ledger_currencies must not be empty
        - every digital-only currency must be a configured currency
        - the default profit currency must be a configured currency
        - test environment disables rate limiting
        """
        if not self.ledger_currencies:
            raise ValueError("LEDGER_CURRENCIES must contain at least one currency code")

        unknown = [c for c in self.ledger_digital_only_currencies if c not in self.ledger_currencies]
        if unknown:
            raise ValueError(
                f"LEDGER_DIGITAL_ONLY_CURRENCIES contains currencies not in LEDGER_CURRENCIES: {unknown}"
            )

        if self.ledger_default_profit_currency not in self.ledger_currencies:
            raise ValueError(
                f"LEDGER_DEFAULT_PROFIT_CURRENCY '{self.ledger_default_profit_currency}' "
                f"is not one of LEDGER_CURRENCIES {self.ledger_currencies}"
            )

        if self.is_test:
            object.__setattr__(self, "rate_limit_enabled", False)

        return self

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
