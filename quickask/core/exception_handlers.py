"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → status from STATUS_BY_ERROR (400, 404, 408, 429, 500)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from quickask.core.config import settings
from quickask.core.errors import (
    ApiRequestError,
    AppError,
    LLMAppError,
    ModerationAppError,
    NotFoundAppError,
    ProxyAppError,
    RateLimitAppError,
    ServiceUnavailableAppError,
    UpstreamTimeoutAppError,
    ValidationAppError,
)
from quickask.core.logging import get_request_id

logger = logging.getLogger(__name__)


# Most specific classes first; the first isinstance match wins.
STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (ModerationAppError, 400),
    (NotFoundAppError, 404),
    (UpstreamTimeoutAppError, 408),
    (RateLimitAppError, 429),
    (LLMAppError, 500),
    (ServiceUnavailableAppError, 500),
    (ProxyAppError, 500),
)


def status_code_for(exc: AppError) -> int:
    """Resolve the HTTP status code for a domain error.

    ApiRequestError carries the status of the failed call in its details.
    Unknown AppError subclasses default to 400 (client error).
    """
    if isinstance(exc, ApiRequestError):
        return int((exc.details or {}).get("http_status", 500))
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _rate_limit_headers(exc: RateLimitAppError) -> dict[str, str]:
    details = exc.details or {}
    headers: dict[str, str] = {}
    if "retry_after" in details:
        headers["Retry-After"] = str(details["retry_after"])
    if not settings.app.rate_limit_include_headers:
        return headers
    if "limit" in details:
        headers["X-RateLimit-Limit"] = str(details["limit"])
    if "remaining" in details:
        headers["X-RateLimit-Remaining"] = str(details["remaining"])
    if "reset_at" in details:
        headers["X-RateLimit-Reset"] = str(details["reset_at"])
    return headers


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    if exc.details:
        error_content["details"] = exc.details

    headers = _rate_limit_headers(exc) if isinstance(exc, RateLimitAppError) else None

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Order matters: specific handlers registered before general fallback.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
