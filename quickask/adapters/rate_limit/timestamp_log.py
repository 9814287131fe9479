"""Storage-backed rate limiter keeping a log of request timestamps.

Used on the client side, where the quota must be enforced before a request
ever leaves the device. Each identity key maps to a JSON array of request
timestamps in a KeyValueStorage; the array is pruned to the current window
on every check.
"""

from __future__ import annotations

import json
import logging
import math
import threading
import time
from typing import Callable

from quickask.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from quickask.adapters.rate_limit.storage import KeyValueStorage
from quickask.core.logging import hash_identifier

logger = logging.getLogger(__name__)


class TimestampLogRateLimiter(AbstractRateLimiter):
    """Rate limiter persisting request timestamps per key in a storage.

    Enforces the same numeric policy (``limit`` requests per
    ``window_seconds``) as the server-side limiter so that a client never
    sends a request the server would reject for quota reasons.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(limit=limit, window_seconds=window_seconds)
        self._storage = storage
        self._clock = clock
        self._lock = threading.RLock()

    def _load_timestamps(self, key: str) -> list[float]:
        raw = self._storage.get_item(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("client_rate_limit.corrupt_log", extra={"key_hash": hash_identifier(key)})
            return []
        if not isinstance(data, list):
            return []
        return [float(ts) for ts in data if isinstance(ts, (int, float))]

    def _window_timestamps(self, key: str, now: float) -> list[float]:
        return [ts for ts in self._load_timestamps(key) if now - ts < self._window_seconds]

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Record ``cost`` requests for key if the window has room for them."""
        self._validate_consume_args(key, cost)

        with self._lock:
            return self._consume_locked(key, cost)

    def _consume_locked(self, key: str, cost: int) -> RateLimitResult:
        now = self._clock()
        timestamps = self._window_timestamps(key, now)
        reset_at = (min(timestamps) if timestamps else now) + self._window_seconds

        if len(timestamps) + cost > self._limit:
            logger.info(
                "client_rate_limit.exceeded",
                extra={"key_hash": hash_identifier(key), "limit": self._limit},
            )
            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=max(0, self._limit - len(timestamps)),
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
            )

        timestamps.extend([now] * cost)
        self._storage.set_item(key, json.dumps(timestamps))
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - len(timestamps)),
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None,
        )

    def get_remaining(self, key: str) -> int:
        with self._lock:
            return max(0, self._limit - len(self._window_timestamps(key, self._clock())))

    def reset(self, key: str) -> None:
        """Forget every recorded request for key."""
        with self._lock:
            self._storage.remove_item(key)
