"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    max_length: int
    actual_length: int
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    categories: list[str]
    target: str
    timeout_seconds: float
    http_status: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class ModerationAppError(AppError):
    """Raised when the moderation check flags the submitted text."""


class RateLimitAppError(AppError):
    """Raised when a client exhausted its request quota."""


class NotFoundAppError(AppError):
    """Raised when a requested resource (e.g. proxy target) is not configured."""


class UpstreamTimeoutAppError(AppError):
    """Raised when an outbound call exceeded its timeout."""


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""


class ServiceUnavailableAppError(AppError):
    """Raised when a required upstream is not configured.

    The message is generic by contract; the cause is only logged.
    """


class ProxyAppError(AppError):
    """Raised when forwarding to a proxy target fails unexpectedly."""


class ApiRequestError(AppError):
    """Raised by the HTTP client when the server answers with a non-2xx status."""
