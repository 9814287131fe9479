"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around every check-then-mutate sequence.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from quickask.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    count: int
    reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed window that opens on a key's first request.

    The window for a key starts with its first request and lasts
    ``window_seconds``; once it has elapsed the next request replaces the
    entry with a fresh window (the old count is discarded, not merged).

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Length of the window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        super().__init__(limit=limit, window_seconds=window_seconds)
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _live_state(self, key: str, now: float) -> _WindowState | None:
        """Return the entry for key if its window has not elapsed."""
        state = self._state_by_key.get(key)
        if state is None or now >= state.reset_at:
            return None
        return state

    def _build_allowed_result(self, *, remaining: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, remaining: int, reset_at: float) -> RateLimitResult:
        retry_after = max(0, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=retry_after,
        )

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        A denied request leaves the stored state untouched.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        self._validate_consume_args(key, cost)

        now = self._clock()

        with self._lock:
            state = self._live_state(key, now)

            if state is None:
                if cost > self._limit:
                    return self._build_blocked_result(
                        now=now, remaining=self._limit, reset_at=now + self._window_seconds
                    )
                state = _WindowState(count=cost, reset_at=now + self._window_seconds)
                self._state_by_key[key] = state
                return self._build_allowed_result(
                    remaining=self._limit - state.count, reset_at=state.reset_at
                )

            if state.count + cost <= self._limit:
                state.count += cost
                return self._build_allowed_result(
                    remaining=max(0, self._limit - state.count), reset_at=state.reset_at
                )

            remaining = max(0, self._limit - state.count)
            return self._build_blocked_result(now=now, remaining=remaining, reset_at=state.reset_at)

    def get_remaining(self, key: str) -> int:
        """Return remaining quota for key; the full limit if its window elapsed."""
        with self._lock:
            state = self._live_state(key, self._clock())
            if state is None:
                return self._limit
            return max(0, self._limit - state.count)

    def sweep(self) -> int:
        """Delete every entry whose window has elapsed.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [k for k, state in self._state_by_key.items() if now >= state.reset_at]
            for key in expired:
                del self._state_by_key[key]
        return len(expired)
