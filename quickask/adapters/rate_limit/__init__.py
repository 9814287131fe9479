"""Rate limiting adapters.

Two variants share one contract: a map-backed fixed-window limiter for the
server and a storage-backed timestamp log for clients. Callers depend on
AbstractRateLimiter so either store can later be replaced by a shared one.
"""

from quickask.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from quickask.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from quickask.adapters.rate_limit.storage import InMemoryStorage, JsonFileStorage, KeyValueStorage
from quickask.adapters.rate_limit.timestamp_log import TimestampLogRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "RateLimitResult",
    "TimestampLogRateLimiter",
]
