"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LLMSettings(BaseSettings):
    """Upstream language-model configuration.

    The API key is optional on purpose: a missing key must not prevent the
    app from starting, the question endpoint reports it as unavailable.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (only 'openai' is supported)",
    )
    model: str = Field(
        "gpt-4.1-mini",
        description="Model used for question completions",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (OpenAI-compatible gateways)",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Per-call timeout in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_input_chars: int = Field(
        2000,
        description="Maximum question length in characters",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on the question endpoint",
    )
    rate_limit_requests: int = Field(
        10,
        description="Maximum number of requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: float = Field(
        300.0,
        description="Interval between background sweeps of expired limiter entries",
        gt=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """Response cache configuration for the proxy endpoint."""

    enabled: bool = Field(
        False,
        description="Cache successful GET responses from proxy targets",
    )
    ttl_seconds: int = Field(
        300,
        description="Time-to-live for cached responses in seconds",
        ge=1,
    )
    max_entries: int | None = Field(
        1024,
        description="Maximum number of cached responses (unset for unlimited)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class ProxySettings(BaseSettings):
    """Upstream targets reachable through the generic proxy endpoint."""

    user_api_url: str = Field(
        "https://jsonplaceholder.typicode.com/users",
        description="Base URL for the 'users' proxy target",
    )
    product_api_url: str = Field(
        "https://dummyjson.com/products",
        description="Base URL for the 'products' proxy target",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Timeout applied to proxied requests in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="PROXY_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("info", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field("logs/app.log", description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate the log file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and return the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=LLMSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
