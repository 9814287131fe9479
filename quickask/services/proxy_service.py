"""Generic REST proxy with read caching.

Forwards requests to named upstream targets:
- Target resolution by the first path segment (unknown name → 404)
- Allowlisted request headers plus the target's own headers
- GET responses cached by path and canonical query (when enabled)
- Response body classified by content type (JSON, text, or raw bytes)
- Timeouts reported distinctly from other transport failures

No retries happen here; retrying is a caller-level concern.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import parse_qsl

import httpx

from quickask.core.config import ProxySettings
from quickask.core.errors import NotFoundAppError, ProxyAppError, UpstreamTimeoutAppError
from quickask.schemas.proxy import ProxyResult, ProxyTarget
from quickask.utils.simple_cache import SimpleTTLCache, build_cache_key

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("content-type", "accept", "user-agent", "cache-control")
BODYLESS_METHODS = {"GET", "HEAD"}


def build_proxy_targets(proxy_settings: ProxySettings) -> dict[str, ProxyTarget]:
    """Build the target table from configuration."""
    return {
        "users": ProxyTarget(
            target=proxy_settings.user_api_url,
            timeout_seconds=proxy_settings.timeout_seconds,
        ),
        "products": ProxyTarget(
            target=proxy_settings.product_api_url,
            timeout_seconds=proxy_settings.timeout_seconds,
        ),
    }


def _split_path(path: str) -> tuple[str, str]:
    """Split ``"users/1/posts"`` into ``("users", "1/posts")``."""
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not segments:
        return "", ""
    return segments[0], "/".join(segments[1:])


def _classify_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        if not response.content:
            return None
        return response.json()
    if "text/" in content_type:
        return response.text
    return response.content


class ProxyService:
    """Forwards requests to configured targets, caching successful reads.

    Attributes:
        targets: Mapping of target name to ProxyTarget.
        http_client: Shared async HTTP client.
        cache: Response cache (only used when cache_enabled).
    """

    def __init__(
        self,
        targets: Mapping[str, ProxyTarget],
        http_client: httpx.AsyncClient,
        cache: SimpleTTLCache,
        *,
        cache_enabled: bool = False,
        cache_ttl_seconds: float = 300,
    ) -> None:
        self.targets = dict(targets)
        self.http_client = http_client
        self.cache = cache
        self.cache_enabled = cache_enabled
        self.cache_ttl_seconds = cache_ttl_seconds

    def _resolve(self, path: str) -> tuple[str, ProxyTarget, str]:
        name, rest = _split_path(path)
        target = self.targets.get(name)
        if target is None:
            logger.info("proxy.unknown_target", extra={"target": name})
            raise NotFoundAppError(
                code="proxy_target_not_found",
                message=f"API endpoint '{name}' not configured",
                details={"target": name},
            )
        url = target.target.rstrip("/")
        if rest:
            url = f"{url}/{rest}"
        return name, target, url

    @staticmethod
    def _forward_headers(
        incoming: Mapping[str, str] | None, target: ProxyTarget
    ) -> dict[str, str]:
        headers: dict[str, str] = {}
        lowered = {k.lower(): v for k, v in (incoming or {}).items()}
        for name in FORWARDED_HEADERS:
            value = lowered.get(name)
            if value:
                headers[name] = value
        headers.update(target.headers)
        return headers

    @staticmethod
    def _cache_key(path: str, query: str) -> str:
        # Query pairs are sorted so ?a=1&b=2 and ?b=2&a=1 share an entry.
        params = sorted(parse_qsl(query, keep_blank_values=True))
        return build_cache_key(path.strip("/"), params or None)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        query: str,
        headers: dict[str, str],
        body: bytes | None,
        target_name: str,
        target: ProxyTarget,
    ) -> httpx.Response:
        if query:
            url = f"{url}?{query}"
        try:
            response = await self.http_client.request(
                method,
                url,
                headers=headers,
                content=body,
                timeout=target.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            logger.warning(
                "proxy.timeout",
                extra={"target": target_name, "method": method, "timeout_s": target.timeout_seconds},
            )
            raise UpstreamTimeoutAppError(
                code="proxy_timeout",
                message="Request timeout",
                details={"target": target_name, "timeout_seconds": target.timeout_seconds},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "proxy.forward_failed",
                extra={"target": target_name, "method": method, "error_type": type(exc).__name__},
            )
            raise ProxyAppError(
                code="proxy_error",
                message="Internal server error",
            ) from exc

        logger.info(
            "proxy.forward",
            extra={"target": target_name, "method": method, "status": response.status_code},
        )
        return response

    async def handle(
        self,
        path: str,
        method: str,
        *,
        query: str = "",
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> ProxyResult:
        """Forward one request to the target named by the first path segment.

        Args:
            path: Path below the proxy prefix, e.g. ``"users/1"``.
            method: HTTP method.
            query: Raw query string without the leading ``?``.
            headers: Incoming request headers (filtered by allowlist).
            body: Raw request body; ignored for GET/HEAD.

        Returns:
            ProxyResult with the upstream status, classified body and cache status.

        Raises:
            NotFoundAppError: Unknown target.
            UpstreamTimeoutAppError: Upstream did not answer in time.
            ProxyAppError: Any other transport failure.
        """
        method = method.upper()
        target_name, target, url = self._resolve(path)
        is_read = method == "GET"
        use_cache = is_read and self.cache_enabled
        cache_key = self._cache_key(path, query) if use_cache else None

        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return ProxyResult(**cached, cache_status="HIT")

        response = await self._send(
            method,
            url,
            query=query,
            headers=self._forward_headers(headers, target),
            body=None if method in BODYLESS_METHODS else body,
            target_name=target_name,
            target=target,
        )

        content_type = response.headers.get("content-type") or "application/json"
        try:
            data = _classify_body(response)
        except ValueError as exc:
            logger.error("proxy.invalid_json", extra={"target": target_name})
            raise ProxyAppError(code="proxy_error", message="Internal server error") from exc

        payload = {
            "status_code": response.status_code,
            "data": data,
            "content_type": content_type,
        }

        if cache_key is not None and response.is_success:
            self.cache.set(cache_key, payload, ttl=self.cache_ttl_seconds)

        return ProxyResult(**payload, cache_status="MISS" if is_read else "N/A")
