"""Tests for the exponential-backoff retry helper."""

import asyncio

import pytest

from quickask.core.errors import UpstreamTimeoutAppError
from quickask.utils.retry import backoff_delay, retry_async


class RecordingSleep:
    """Sleep replacement that records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyOperation:
    """Fails ``failures`` times, then returns ``result``."""

    def __init__(self, failures: int, result: str = "ok", error: Exception | None = None) -> None:
        self.failures = failures
        self.result = result
        self.error = error or RuntimeError("boom")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


def test_backoff_delay_doubles() -> None:
    assert [backoff_delay(0.5, n) for n in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 4.0]

    with pytest.raises(ValueError):
        backoff_delay(1.0, 0)


@pytest.mark.asyncio
async def test_succeeds_after_n_minus_one_failures() -> None:
    sleep = RecordingSleep()
    operation = FlakyOperation(failures=2)

    result = await retry_async(operation, max_attempts=3, base_delay=1.0, sleep=sleep)

    assert result == "ok"
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_raises_last_error_when_exhausted() -> None:
    sleep = RecordingSleep()
    operation = FlakyOperation(failures=10, error=ValueError("last"))

    with pytest.raises(ValueError, match="last"):
        await retry_async(operation, max_attempts=3, base_delay=0.5, sleep=sleep)

    assert operation.calls == 3
    assert sleep.delays == [0.5, 1.0]


@pytest.mark.asyncio
async def test_timeouts_are_retried() -> None:
    sleep = RecordingSleep()
    operation = FlakyOperation(
        failures=1,
        error=UpstreamTimeoutAppError(code="client_timeout", message="Request timeout after 10ms"),
    )

    assert await retry_async(operation, sleep=sleep) == "ok"
    assert operation.calls == 2


@pytest.mark.asyncio
async def test_errors_outside_retry_on_propagate_immediately() -> None:
    sleep = RecordingSleep()
    operation = FlakyOperation(failures=1, error=KeyError("nope"))

    with pytest.raises(KeyError):
        await retry_async(operation, retry_on=(ValueError,), sleep=sleep)

    assert operation.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_cancellation_is_not_retried() -> None:
    sleep = RecordingSleep()
    operation = FlakyOperation(failures=1, error=asyncio.CancelledError())

    with pytest.raises(asyncio.CancelledError):
        await retry_async(operation, sleep=sleep)

    assert operation.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"max_attempts": 0}, {"base_delay": -1.0}])
async def test_invalid_arguments(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        await retry_async(FlakyOperation(failures=0), **kwargs)
