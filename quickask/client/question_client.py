"""Client-side flow of the question widget.

Checks the device-local quota before any network call, then posts the
question to the API and returns the parsed answer envelope.
"""

from __future__ import annotations

import logging

from quickask.adapters.rate_limit.base import AbstractRateLimiter
from quickask.client.api_client import ApiClient
from quickask.core.errors import RateLimitAppError, ValidationAppError
from quickask.schemas.question import QuestionResponse
from quickask.services.question_service import RATE_LIMIT_MESSAGE
from quickask.utils.input_validator import EMPTY_TEXT_MESSAGE

logger = logging.getLogger(__name__)

QUESTION_ENDPOINT = "/v1/responses"
DEFAULT_IDENTITY = "question_requests"


class QuestionClient:
    """Asks questions on behalf of one device.

    Attributes:
        api_client: HTTP client pointed at the API.
        limiter: Client-side limiter (usually a TimestampLogRateLimiter).
        identity: Storage key the device's request log is kept under.
    """

    def __init__(
        self,
        api_client: ApiClient,
        limiter: AbstractRateLimiter,
        identity: str = DEFAULT_IDENTITY,
    ) -> None:
        self.api_client = api_client
        self.limiter = limiter
        self.identity = identity

    def remaining(self) -> int:
        return self.limiter.get_remaining(self.identity)

    async def ask(self, text: str) -> QuestionResponse:
        """Submit a question.

        Raises:
            ValidationAppError: Blank text (no request is sent).
            RateLimitAppError: Device quota exhausted (no request is sent).
            AppError: Server-side failure, with the server's message.
        """
        if not text or not text.strip():
            raise ValidationAppError(code="invalid_input", message=EMPTY_TEXT_MESSAGE)

        result = self.limiter.consume(self.identity)
        if not result.allowed:
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message=RATE_LIMIT_MESSAGE,
                details={
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "retry_after": result.retry_after_seconds or 0,
                },
            )

        payload = await self.api_client.post(QUESTION_ENDPOINT, {"input": text})
        return QuestionResponse.model_validate(payload)
