"""Async HTTP client used by widgets and scripts talking to the API.

Wraps ``httpx.AsyncClient`` with JSON defaults, a per-request timeout and
error normalization into the application's error types.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from quickask.core.errors import ApiRequestError, AppError, UpstreamTimeoutAppError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


def _error_message_from_body(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    if isinstance(body.get("message"), str):
        return body["message"]
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    return None


def format_api_error(error: Any) -> str:
    """Best-effort extraction of a human-readable message from a failure.

    Examples:
        >>> format_api_error("boom")
        'boom'
        >>> format_api_error({"error": "Rate limit exceeded"})
        'Rate limit exceeded'
        >>> format_api_error(None)
        'An unexpected error occurred'
    """
    if isinstance(error, str):
        return error
    if isinstance(error, AppError):
        return error.message
    if isinstance(error, Mapping):
        if isinstance(error.get("message"), str):
            return error["message"]
        nested = error.get("error")
        if isinstance(nested, Mapping) and isinstance(nested.get("message"), str):
            return nested["message"]
        if isinstance(nested, str):
            return nested
        return DEFAULT_ERROR_MESSAGE
    if isinstance(error, BaseException) and str(error):
        return str(error)
    return DEFAULT_ERROR_MESSAGE


def is_valid_api_response(payload: Any) -> bool:
    """True for a JSON object that does not carry an ``error`` field."""
    return isinstance(payload, Mapping) and bool(payload) and not payload.get("error")


class ApiClient:
    """JSON HTTP client with a default timeout and normalized errors.

    Usage:
        async with ApiClient("http://localhost:8000") as client:
            data = await client.post("/v1/responses", {"input": "How big is the earth?"})
    """

    def __init__(
        self,
        base_url: str,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json", **dict(headers or {})},
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiRequestError: Non-2xx response (message taken from the body when
                possible), transport failure, or a body that is not JSON.
            UpstreamTimeoutAppError: The request exceeded its timeout.
        """
        timeout = timeout_seconds or self.timeout_seconds
        try:
            response = await self._http.request(
                method,
                endpoint,
                json=json,
                headers=dict(headers or {}),
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutAppError(
                code="client_timeout",
                message=f"Request timeout after {int(timeout * 1000)}ms",
                details={"timeout_seconds": timeout},
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "api_client.transport_failed",
                extra={"method": method, "endpoint": endpoint, "error_type": type(exc).__name__},
            )
            raise ApiRequestError(
                code="network_error",
                message=f"Network error: {exc}" if str(exc) else "Network error",
            ) from exc

        if not response.is_success:
            message = _error_message_from_body(response) or (
                f"HTTP {response.status_code}: {response.reason_phrase}"
            )
            logger.info(
                "api_client.request_failed",
                extra={"method": method, "endpoint": endpoint, "status": response.status_code},
            )
            raise ApiRequestError(
                code="http_error",
                message=message,
                details={"http_status": response.status_code},
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiRequestError(
                code="invalid_response",
                message="Invalid JSON in response body",
                details={"http_status": 502},
            ) from exc

    async def get(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", endpoint, json=data, **kwargs)

    async def put(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", endpoint, json=data, **kwargs)

    async def patch(self, endpoint: str, data: Any = None, **kwargs: Any) -> Any:
        return await self.request("PATCH", endpoint, json=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)
