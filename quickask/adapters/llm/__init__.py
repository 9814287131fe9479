"""LLM adapter layer - abstracts over the upstream model provider."""

from quickask.adapters.llm.base import AbstractLLMClient, ModerationResult
from quickask.adapters.llm.factory import create_llm_client
from quickask.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "ModerationResult",
    "OpenAIClient",
    "create_llm_client",
]
