"""Tests for the question answering pipeline."""

from unittest.mock import AsyncMock, Mock

import pytest

from quickask.adapters.llm.base import ModerationResult
from quickask.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from quickask.core.errors import (
    LLMAppError,
    ModerationAppError,
    RateLimitAppError,
    ServiceUnavailableAppError,
    ValidationAppError,
)
from quickask.services.question_service import (
    EMPTY_RESPONSE_FALLBACK,
    INSTRUCTIONS,
    QuestionService,
)


@pytest.fixture
def limiter(fake_clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(limit=3, window_seconds=3600, clock=fake_clock)


@pytest.fixture
def service(llm: AsyncMock, limiter: InMemoryFixedWindowRateLimiter) -> QuestionService:
    return QuestionService(llm, limiter, max_input_chars=50)


class TestAsk:
    """Happy path and response envelope."""

    @pytest.mark.asyncio
    async def test_returns_answer_input_and_remaining(self, service, llm) -> None:
        result = await service.ask("How big is the earth?", "10.0.0.1")

        assert result.response == "The Earth is about 12,742 km in diameter."
        assert result.original_input == "How big is the earth?"
        assert result.remaining_requests == 2
        llm.complete.assert_awaited_once_with("How big is the earth?", instructions=INSTRUCTIONS)

    @pytest.mark.asyncio
    async def test_empty_answer_uses_fallback(self, service, llm) -> None:
        llm.complete.return_value = ""

        result = await service.ask("hello", "10.0.0.1")

        assert result.response == EMPTY_RESPONSE_FALLBACK

    @pytest.mark.asyncio
    async def test_remaining_is_per_client(self, service) -> None:
        await service.ask("hello", "10.0.0.1")
        await service.ask("hello", "10.0.0.1")

        result = await service.ask("hello", "10.0.0.2")

        assert result.remaining_requests == 2


class TestGates:
    """Every gate short-circuits before the upstream completion call."""

    @pytest.mark.asyncio
    async def test_rate_limit_blocks_after_quota(self, service, llm) -> None:
        for _ in range(3):
            await service.ask("hello", "10.0.0.1")

        with pytest.raises(RateLimitAppError) as exc:
            await service.ask("hello", "10.0.0.1")

        assert exc.value.details["limit"] == 3
        assert exc.value.details["remaining"] == 0
        assert exc.value.details["retry_after"] == 3600
        assert llm.complete.await_count == 3

    @pytest.mark.asyncio
    async def test_rate_limit_checked_before_validation(self, llm, fake_clock) -> None:
        limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=fake_clock)
        service = QuestionService(llm, limiter)
        limiter.consume("10.0.0.1")

        with pytest.raises(RateLimitAppError):
            await service.ask("", "10.0.0.1")

    @pytest.mark.asyncio
    async def test_disabled_rate_limit_never_blocks(self, llm, limiter) -> None:
        service = QuestionService(llm, limiter, rate_limit_enabled=False)

        for _ in range(5):
            result = await service.ask("hello", "10.0.0.1")

        assert result.remaining_requests == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_blank_input_is_rejected(self, service, llm, text) -> None:
        with pytest.raises(ValidationAppError) as exc:
            await service.ask(text, "10.0.0.1")

        assert exc.value.message == "Please enter some text."
        llm.moderate.assert_not_awaited()
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_too_long_input_is_rejected(self, service, llm) -> None:
        with pytest.raises(ValidationAppError) as exc:
            await service.ask("a" * 51, "10.0.0.1")

        assert exc.value.message == "Text too long. Maximum 50 characters allowed."
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_llm_reports_generic_unavailable(self, limiter) -> None:
        service = QuestionService(None, limiter)

        with pytest.raises(ServiceUnavailableAppError) as exc:
            await service.ask("hello", "10.0.0.1")

        assert "key" not in exc.value.message.lower()

    @pytest.mark.asyncio
    async def test_flagged_content_never_reaches_completion(self, service, llm) -> None:
        llm.moderate.return_value = ModerationResult(
            flagged=True, categories=["harassment", "violence"]
        )

        with pytest.raises(ModerationAppError) as exc:
            await service.ask("something nasty", "10.0.0.1")

        assert exc.value.message == "Content flagged as inappropriate: harassment, violence"
        assert exc.value.details["categories"] == ["harassment", "violence"]
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(self, service, llm) -> None:
        llm.complete.side_effect = LLMAppError(
            code="llm_response_incomplete", message="Responses API error: incomplete"
        )

        with pytest.raises(LLMAppError, match="incomplete"):
            await service.ask("hello", "10.0.0.1")
