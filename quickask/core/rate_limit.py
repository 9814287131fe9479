"""Rate limiting wiring for the HTTP layer.

Design goals:
- Minimal coupling: routes receive the client identity and the limiter
  through dependencies, never through module-level state.
- Swap-friendly: the storage backend can be replaced (e.g., Redis) behind
  AbstractRateLimiter without changing the check/get_remaining contract.
- One policy: server and client limiters are built from the same settings.

Client identity:
- First hop of X-Forwarded-For, then X-Real-IP, then the socket peer,
  then the sentinel "unknown". Headers are trusted as given (spoofable).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import Request

from quickask.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from quickask.adapters.rate_limit.storage import KeyValueStorage
from quickask.adapters.rate_limit.timestamp_log import TimestampLogRateLimiter
from quickask.core.config import AppSettings, settings

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def build_rate_limiter(app_settings: AppSettings | None = None) -> InMemoryFixedWindowRateLimiter:
    """Build the server-side limiter from configuration."""
    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
    )


def build_client_rate_limiter(
    storage: KeyValueStorage,
    app_settings: AppSettings | None = None,
) -> TimestampLogRateLimiter:
    """Build the client-side limiter enforcing the server's policy."""
    cfg = app_settings or settings.app
    return TimestampLogRateLimiter(
        storage,
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
    )


def resolve_client_id(request: Request) -> str:
    """Resolve the identity a request is rate limited under.

    Args:
        request: FastAPI request.

    Returns:
        Client address string, or "unknown".
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


class RateLimitSweeper:
    """Background task deleting expired limiter entries at a fixed interval.

    Housekeeping only: expired entries are also detected lazily on access,
    so a stopped or failing sweeper never affects limiter decisions.
    """

    def __init__(self, limiter: InMemoryFixedWindowRateLimiter, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        removed = self._limiter.sweep()
        if removed:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": removed, "remaining_entries": len(self._limiter)},
            )
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:
                logger.exception("rate_limit.sweep_failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rate-limit-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
