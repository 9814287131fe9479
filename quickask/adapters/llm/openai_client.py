"""OpenAI LLM client adapter."""

import logging
from typing import Any

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from quickask.adapters.llm.base import AbstractLLMClient, ModerationResult
from quickask.core.errors import LLMAppError, UpstreamTimeoutAppError

logger = logging.getLogger(__name__)


def _flagged_categories(categories: Any) -> list[str]:
    """Extract the names of flagged categories from a moderation result.

    The SDK returns a pydantic model whose aliases carry the public category
    names (e.g. ``harassment/threatening``).
    """
    if hasattr(categories, "model_dump"):
        categories = categories.model_dump(by_alias=True)
    return [name for name, flagged in dict(categories).items() if flagged]


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI moderation and Responses API calls.

    Uses the official OpenAI Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Model name used for completions (e.g., "gpt-4.1-mini").
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for each request in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def moderate(self, text: str) -> ModerationResult:
        try:
            response = await self.client.moderations.create(input=text)
        except APITimeoutError as exc:
            raise UpstreamTimeoutAppError(
                code="llm_timeout",
                message="Request timeout",
            ) from exc
        except OpenAIError as exc:
            raise LLMAppError(
                code="llm_moderation_failed",
                message=f"OpenAI API error: {exc}",
            ) from exc

        if not response.results:
            raise LLMAppError(
                code="llm_moderation_failed",
                message="OpenAI API error: moderation returned no results",
            )

        result = response.results[0]
        categories = _flagged_categories(result.categories) if result.flagged else []
        return ModerationResult(flagged=bool(result.flagged), categories=categories)

    async def complete(self, text: str, *, instructions: str) -> str:
        """Generate an answer with the Responses API.

        Raises:
            LLMAppError: If the call fails or the response status is not "completed".
            UpstreamTimeoutAppError: If the call times out.
        """
        try:
            response = await self.client.responses.create(
                model=self.model,
                instructions=instructions,
                input=text,
            )
        except APITimeoutError as exc:
            raise UpstreamTimeoutAppError(
                code="llm_timeout",
                message="Request timeout",
            ) from exc
        except OpenAIError as exc:
            raise LLMAppError(
                code="llm_completion_failed",
                message=f"OpenAI API error: {exc}",
            ) from exc

        if response.status != "completed":
            logger.warning(
                "llm.response_incomplete",
                extra={"status": response.status, "model": self.model},
            )
            raise LLMAppError(
                code="llm_response_incomplete",
                message=f"Responses API error: {response.status}",
            )

        return response.output_text or ""
