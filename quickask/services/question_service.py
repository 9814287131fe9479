"""Question answering service guarding the paid upstream model.

Runs a linear pipeline where every step can short-circuit with a typed
error:
- Per-client rate limiting
- Input validation (length and content heuristics)
- Upstream availability (credential configured)
- Content moderation
- Answer generation with a fixed, length-constraining instruction
"""

from __future__ import annotations

import logging

from quickask.adapters.llm.base import AbstractLLMClient
from quickask.adapters.rate_limit.base import AbstractRateLimiter
from quickask.core.errors import (
    ModerationAppError,
    RateLimitAppError,
    ServiceUnavailableAppError,
    ValidationAppError,
)
from quickask.core.logging import hash_identifier
from quickask.schemas.question import QuestionResponse
from quickask.utils.input_validator import InputValidator

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "You are a helpful assistant who knows general knowledge about the world. "
    "Keep your responses to one or two sentences, maximum."
)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
UNAVAILABLE_MESSAGE = "Question service temporarily unavailable"
EMPTY_RESPONSE_FALLBACK = "Response received"


class QuestionService:
    """Answers short general-knowledge questions.

    Attributes:
        llm: Upstream client, or None when no credential is configured.
        limiter: Per-client rate limiter.
        rate_limit_enabled: When False the quota is reported but not enforced.
        max_input_chars: Maximum accepted question length.
    """

    def __init__(
        self,
        llm: AbstractLLMClient | None,
        limiter: AbstractRateLimiter,
        *,
        rate_limit_enabled: bool = True,
        max_input_chars: int = 2000,
        instructions: str = INSTRUCTIONS,
    ) -> None:
        self.llm = llm
        self.limiter = limiter
        self.rate_limit_enabled = rate_limit_enabled
        self.max_input_chars = max_input_chars
        self.instructions = instructions

    def _enforce_rate_limit(self, client_id: str) -> None:
        if not self.rate_limit_enabled:
            return

        result = self.limiter.consume(client_id)
        if result.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "client_hash": hash_identifier(client_id),
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "client_hash": hash_identifier(client_id),
                "limit": result.limit,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=RATE_LIMIT_MESSAGE,
            details={
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
                "retry_after": result.retry_after_seconds or 0,
            },
        )

    def _validate_input(self, text: str | None) -> str:
        validation = InputValidator.validate_text(text, self.max_input_chars)
        if not validation.is_valid or text is None:
            raise ValidationAppError(
                code="invalid_input",
                message=validation.error or "Invalid input",
            )
        return text

    def _require_llm(self) -> AbstractLLMClient:
        if self.llm is None:
            # The cause stays in the logs; callers only see a generic message.
            logger.error("question.llm_not_configured", extra={"hint": "set LLM_API_KEY"})
            raise ServiceUnavailableAppError(
                code="service_unavailable",
                message=UNAVAILABLE_MESSAGE,
            )
        return self.llm

    async def _moderate(self, llm: AbstractLLMClient, text: str) -> None:
        moderation = await llm.moderate(text)
        if not moderation.flagged:
            return

        logger.warning(
            "question.moderation_flagged",
            extra={"categories": moderation.categories},
        )
        raise ModerationAppError(
            code="content_flagged",
            message=f"Content flagged as inappropriate: {', '.join(moderation.categories)}",
            details={"categories": moderation.categories},
        )

    def remaining_for(self, client_id: str) -> int:
        return self.limiter.get_remaining(client_id)

    async def ask(self, text: str | None, client_id: str) -> QuestionResponse:
        """Answer a question on behalf of a client.

        Args:
            text: Submitted question (None is treated as empty).
            client_id: Identity the rate limit is keyed on.

        Returns:
            QuestionResponse with the answer, the echoed input and the
            client's remaining quota.

        Raises:
            RateLimitAppError: Client exceeded its quota.
            ValidationAppError: Text is blank, too long, or matches a filter.
            ServiceUnavailableAppError: No upstream credential configured.
            ModerationAppError: Text was flagged by moderation.
            LLMAppError: Upstream call failed or did not complete.
            UpstreamTimeoutAppError: Upstream call timed out.
        """
        # Step 1: Rate limit (before any parsing work or upstream spend)
        self._enforce_rate_limit(client_id)

        # Step 2: Validate input
        question = self._validate_input(text)

        # Step 3: Upstream must be configured
        llm = self._require_llm()

        # Step 4: Moderation gate; no completion call when flagged
        await self._moderate(llm, question)

        # Step 5: Generate the answer
        answer = await llm.complete(question, instructions=self.instructions)

        logger.info(
            "question.answered",
            extra={
                "client_hash": hash_identifier(client_id),
                "input_chars": len(question),
                "answer_chars": len(answer),
            },
        )

        return QuestionResponse(
            response=answer or EMPTY_RESPONSE_FALLBACK,
            original_input=question,
            remaining_requests=self.remaining_for(client_id),
        )
