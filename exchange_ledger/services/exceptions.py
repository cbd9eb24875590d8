# exchange_ledger/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent caller mistakes at the service boundary and
contain NO HTTP knowledge. The router layer maps them to HTTP responses.

The ledger engines themselves never raise for bad movement data: malformed
records are skipped and business-rule violations become warnings on the
result objects.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidIntervalError
    │   ├── InvalidFilterError
    │   └── TooManyMovementsError
    └── NotFoundError
        └── LenderNotFoundError
"""

from exchange_ledger.services.constants import PROFIT_INTERVALS


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a service parameter is invalid.

    This is for programmatic validation (bad interval, bad filter value),
    NOT for request body validation which is handled by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidIntervalError(ValidationError):
    """
    Raised when an invalid bucket interval is requested for a profit series.

    Valid intervals are: daily, monthly
    """

    VALID_OPTIONS = PROFIT_INTERVALS

    def __init__(self, interval: str) -> None:
        self.interval = interval
        super().__init__(
            f"Invalid interval: '{interval}'. Valid options: {', '.join(self.VALID_OPTIONS)}",
            field="interval"
        )


class InvalidFilterError(ValidationError):
    """
    Raised when a balance filter names an unknown partner or medium.

    Attributes:
        value: The rejected filter value
        valid_options: Accepted values for the filter
    """

    def __init__(self, field: str, value: str, valid_options: list[str]) -> None:
        self.value = value
        self.valid_options = valid_options
        super().__init__(
            f"Invalid {field}: '{value}'. Valid options: {', '.join(valid_options)}",
            field=field,
        )


class TooManyMovementsError(ValidationError):
    """Raised when a request carries more movements than the configured bound."""

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(
            f"Request contains {count} movements; the limit is {limit}",
            field="movements",
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Lender")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class LenderNotFoundError(NotFoundError):
    """
    Raised when a lender id is not among the supplied lender clients.

    Attributes:
        lender_id: ID of the lender that was not found
    """

    def __init__(self, lender_id: str) -> None:
        self.lender_id = lender_id
        super().__init__(
            f"Lender {lender_id} not found",
            resource_type="Lender",
            resource_id=lender_id,
        )
