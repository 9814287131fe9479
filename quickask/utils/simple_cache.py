"""In-memory TTL cache used to avoid redundant upstream calls.

Thread-safe, bounded by an LRU policy, and easy to swap for Redis while
keeping the same interface and behaviors. Expiry is lazy: stale entries are
dropped when read, and opportunistically when new entries are written.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheItem:
    """Cached value with the metadata needed to decide its validity."""

    data: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class SimpleTTLCache:
    """Thread-safe, in-memory TTL cache with LRU eviction.

    Attributes:
        ttl_seconds: Default time-to-live for entries set without an explicit ttl.
        max_entries: Maximum number of cached items (None for unlimited).
    """

    def __init__(self, ttl_seconds: float = 300, max_entries: int | None = 1024) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1 or None")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._store: OrderedDict[str, CacheItem] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"SimpleTTLCache(ttl_seconds={self._ttl}, max_entries={self._max_entries}, "
            f"size={len(self._store)}, hits={self._hits}, misses={self._misses}, "
            f"evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            item = self._store.get(key)
            return item is not None and not item.is_expired(time.time())

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if it exists and is not expired.

        An expired entry is deleted before reporting the miss, so a later
        read cannot resurrect it.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found/expired.
        """

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:64], "reason": "not_found"})
                return None

            if item.is_expired(time.time()):
                self._evict_single(key)
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:64], "reason": "expired"})
                return None

            self._hits += 1
            self._store.move_to_end(key)  # mark as recently used
            logger.debug("cache.hit", extra={"cache_key": key[:64]})
            return item.data

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        """Store a value, overwriting any existing entry for key.

        Args:
            key: Cache key.
            data: Value to store.
            ttl: Lifetime of this entry in seconds; the cache default if omitted.
        """

        entry_ttl = self._ttl if ttl is None else ttl
        if entry_ttl < 0:
            raise ValueError("ttl must be >= 0")

        with self._lock:
            self._evict_expired_locked()
            self._store[key] = CacheItem(data=data, timestamp=time.time(), ttl=entry_ttl)
            self._store.move_to_end(key)
            self._evict_if_over_capacity_locked()

            logger.debug(
                "cache.set",
                extra={
                    "cache_key": key[:64],
                    "size": len(self._store),
                    "ttl_s": entry_ttl,
                },
            )

    def delete(self, key: str) -> bool:
        """Remove key from the cache.

        Returns:
            True if an entry was removed.
        """

        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int | float | None]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _evict_single(self, key: str) -> None:
        if self._store.pop(key, None) is not None:
            self._evictions += 1

    def _evict_expired_locked(self) -> None:
        now = time.time()
        expired_keys = [k for k, item in self._store.items() if item.is_expired(now)]
        for key in expired_keys:
            self._evict_single(key)

    def _evict_if_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return

        while len(self._store) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1


def build_cache_key(endpoint: str, params: Any = None) -> str:
    """Build a cache key from an endpoint identifier and its parameters.

    Parameters are serialized canonically (sorted keys, fixed separators) so
    that logically identical requests share a key regardless of the order in
    which their parameters were supplied.

    Args:
        endpoint: Endpoint or target identifier.
        params: JSON-serializable parameters, or None.

    Returns:
        ``"{endpoint}:{canonical_params}"``.

    Examples:
        >>> build_cache_key("users", {"b": 2, "a": 1})
        'users:{"a":1,"b":2}'
        >>> build_cache_key("users")
        'users:'
    """

    if params is None:
        return f"{endpoint}:"
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    return f"{endpoint}:{canonical}"
