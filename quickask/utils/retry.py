"""Bounded exponential-backoff retry for async operations.

Delays follow ``base_delay * 2 ** (attempt - 1)`` without jitter, so the
waits between attempts are ``base_delay, 2 * base_delay, 4 * base_delay, ...``.
Caller cancellation (``asyncio.CancelledError``) is never retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Return the wait after the given (1-based) failed attempt.

    Examples:
        >>> [backoff_delay(1.0, n) for n in (1, 2, 3)]
        [1.0, 2.0, 4.0]
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return base_delay * 2 ** (attempt - 1)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` until it succeeds or ``max_attempts`` is exhausted.

    Timeouts are ordinary failures here and are retried like any other.
    Exceptions outside ``retry_on`` propagate immediately.

    Args:
        operation: Zero-argument callable returning an awaitable.
        max_attempts: Total number of attempts, including the first.
        base_delay: Wait in seconds after the first failure.
        retry_on: Exception types that trigger another attempt.
        sleep: Awaitable sleep function (injectable for tests).

    Returns:
        The operation's result from the first successful attempt.

    Raises:
        ValueError: If max_attempts < 1 or base_delay < 0.
        Exception: The last failure once every attempt has failed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if base_delay < 0:
        raise ValueError("base_delay must be >= 0")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except retry_on as exc:
            if attempt >= max_attempts:
                logger.warning(
                    "retry.exhausted",
                    extra={
                        "attempts": attempt,
                        "error_type": type(exc).__name__,
                    },
                )
                raise

            delay = backoff_delay(base_delay, attempt)
            logger.warning(
                "retry.attempt",
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_s": delay,
                    "error_type": type(exc).__name__,
                },
            )
            await sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
