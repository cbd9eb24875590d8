# exchange_ledger/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers the ledger router
- Defines global endpoints (health checks)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from exchange_ledger import __version__
from exchange_ledger.config import settings
from exchange_ledger.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    RATE_LIMIT_HEALTH,
)
from exchange_ledger.routers import ledger_router
from exchange_ledger.schemas.errors import ErrorDetail, ValidationErrorDetail
from exchange_ledger.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidIntervalError,
    InvalidFilterError,
    TooManyMovementsError,
    NotFoundError,
)
from exchange_ledger.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Balances, WAC inventory and lender interest derived from exchange-desk movements",
    version=__version__,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service exceptions carry no HTTP knowledge; they are mapped to status codes
# here. The most specific handler registered for an exception's class wins.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InvalidIntervalError)
async def invalid_interval_handler(
    request: Request, exc: InvalidIntervalError
) -> JSONResponse:
    """Handle invalid interval errors (400)."""
    logger.warning(f"Invalid interval: {exc.interval}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidIntervalError",
            message=str(exc),
            details={"interval": exc.interval, "valid_options": list(exc.VALID_OPTIONS)},
        ).model_dump(),
    )


@app.exception_handler(InvalidFilterError)
async def invalid_filter_handler(
    request: Request, exc: InvalidFilterError
) -> JSONResponse:
    """Handle unknown partner/medium/status filters (400)."""
    logger.warning(f"Invalid filter {exc.field}={exc.value!r}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidFilterError",
            message=str(exc),
            details={"field": exc.field, "value": exc.value, "valid_options": exc.valid_options},
        ).model_dump(),
    )


@app.exception_handler(TooManyMovementsError)
async def too_many_movements_handler(
    request: Request, exc: TooManyMovementsError
) -> JSONResponse:
    """Handle oversized movement collections (413)."""
    logger.warning(f"Rejected request with {exc.count} movements (limit {exc.limit})")
    return JSONResponse(
        status_code=413,
        content=ErrorDetail(
            error="TooManyMovementsError",
            message=str(exc),
            details={"count": exc.count, "limit": exc.limit},
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle missing resources such as unknown lenders (404)."""
    logger.warning(f"{exc.resource_type or 'Resource'} not found: {exc.resource_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Convert {"detail": ...} responses (including unknown routes) to ErrorDetail."""
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        413: "PayloadTooLargeError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert the default 422 body to ValidationErrorDetail."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=errors).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(ledger_router)  # /ledger/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health check endpoint.

    The service is stateless and has no external dependencies, so it is
    healthy whenever the process can answer. The ledger configuration in
    use is echoed for operators.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.environment,
        "currencies": settings.ledger_currencies,
        "default_profit_currency": settings.ledger_default_profit_currency,
    }
