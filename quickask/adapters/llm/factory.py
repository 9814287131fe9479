"""Factory pattern for creating LLM client instances."""

import logging

from quickask.adapters.llm.base import AbstractLLMClient
from quickask.adapters.llm.openai_client import OpenAIClient
from quickask.core.config import LLMSettings, settings
from quickask.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient | None:
    """Instantiate the configured LLM client.

    A missing API key is not an error at construction time: the app must
    start without it, and the question endpoint reports the service as
    unavailable instead.

    Args:
        llm_settings: Settings to use; the global settings if omitted.

    Returns:
        Configured client, or None when no API key is configured.

    Raises:
        ValidationAppError: If the provider is unknown.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    if provider == "openai":
        if not cfg.api_key:
            logger.warning("llm.client_not_configured", extra={"provider": provider})
            return None
        return OpenAIClient(
            api_key=cfg.api_key,
            model=cfg.model,
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ValidationAppError(
        code="llm_unknown_provider",
        message=(
            f"Unknown LLM provider: '{provider}'. Supported providers: openai"
        ),
    )
