"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment so that no local .env file changes test behavior.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4.1-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "10")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_SECONDS", "3600")
os.environ.setdefault("CACHE_ENABLED", "false")

from unittest.mock import AsyncMock, Mock

import pytest

from quickask.adapters.llm.base import AbstractLLMClient, ModerationResult


@pytest.fixture
def fake_clock() -> Mock:
    """Clock returning a fixed UNIX time; set ``return_value`` to advance."""
    return Mock(return_value=1000.0)


@pytest.fixture
def llm() -> AsyncMock:
    """LLM client double that passes moderation and answers briefly."""
    client = AsyncMock(spec=AbstractLLMClient)
    client.moderate.return_value = ModerationResult(flagged=False, categories=[])
    client.complete.return_value = "The Earth is about 12,742 km in diameter."
    return client
