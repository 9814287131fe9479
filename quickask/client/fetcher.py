"""Cached, retrying fetcher with supersede-on-refetch semantics.

A fetch first consults the cache (GET only), then calls the API through the
retry wrapper and caches the result. Starting a new fetch cancels the one
still in flight; the superseded call resolves to None instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from quickask.client.api_client import ApiClient
from quickask.utils.retry import retry_async
from quickask.utils.simple_cache import SimpleTTLCache, build_cache_key

logger = logging.getLogger(__name__)


class CachedFetcher:
    """Fetches API resources with caching, retries and cancellation.

    Attributes:
        api_client: Client used for the underlying HTTP calls.
        cache: Cache for GET results.
        retries: Total attempts per fetch.
        retry_delay: Base backoff delay in seconds.
        cache_ttl: Lifetime of cached results in seconds.
    """

    def __init__(
        self,
        api_client: ApiClient,
        cache: SimpleTTLCache,
        *,
        retries: int = 3,
        retry_delay: float = 1.0,
        cache_ttl: float = 300,
    ) -> None:
        self.api_client = api_client
        self.cache = cache
        self.retries = retries
        self.retry_delay = retry_delay
        self.cache_ttl = cache_ttl
        self._in_flight: asyncio.Task[Any] | None = None
        self._superseded: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    def cancel(self) -> None:
        """Abort the fetch currently in flight, if any.

        The aborted fetch resolves to None; only fetches cancelled here (or
        by a newer fetch) are treated that way.
        """
        task = self._in_flight
        if task is None or task.done():
            return
        self._superseded.add(task)
        task.cancel()

    async def _perform(self, endpoint: str, method: str, body: Any, use_cache: bool) -> Any:
        cacheable = use_cache and method == "GET"
        cache_key = build_cache_key(endpoint, body) if cacheable else None

        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        result = await retry_async(
            lambda: self.api_client.request(method, endpoint, json=body),
            max_attempts=self.retries,
            base_delay=self.retry_delay,
        )

        if cache_key is not None:
            self.cache.set(cache_key, result, ttl=self.cache_ttl)
        return result

    async def fetch(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        *,
        use_cache: bool = True,
    ) -> Any | None:
        """Fetch endpoint, superseding any fetch still in flight.

        Returns:
            The decoded response, or None if a newer fetch or cancel() aborted it.

        Raises:
            AppError: The last failure once every retry has failed.
            asyncio.CancelledError: The calling task itself was cancelled.
        """
        self.cancel()
        task = asyncio.create_task(self._perform(endpoint, method.upper(), body, use_cache))
        self._in_flight = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task not in self._superseded or (current is not None and current.cancelling()):
                # The caller itself was cancelled; awaiting propagated it inward.
                raise
            logger.debug("fetcher.superseded", extra={"endpoint": endpoint})
            return None
        finally:
            self._superseded.discard(task)
            if self._in_flight is task:
                self._in_flight = None

    def mutate(self, endpoint: str, data: Any, body: Any = None) -> None:
        """Replace the cached value for a GET endpoint with local data."""
        self.cache.set(build_cache_key(endpoint, body), data, ttl=self.cache_ttl)
