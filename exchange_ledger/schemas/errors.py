# exchange_ledger/schemas/errors.py
"""
Pydantic schemas for error responses.

Every error returned by the API has the same shape. Used by the global
exception handlers in main.py and by the rate limit handler.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error response format."""

    error: str = Field(
        ...,
        description="Error type (e.g., 'LenderNotFoundError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context (optional)"
    )


class ValidationErrorDetail(BaseModel):
    """Request body/query validation failure (422)."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="One entry per invalid field"
    )
