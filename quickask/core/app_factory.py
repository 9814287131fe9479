from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the process-lifetime stores: the rate limiter, the response cache and
the outbound HTTP client are built here and handed to the services.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from quickask.adapters.llm.factory import create_llm_client
from quickask.api.routes import health_router, proxy_router, questions_router
from quickask.core.config import Settings, settings as default_settings
from quickask.core.exception_handlers import setup_exception_handlers
from quickask.core.logging import configure_logging
from quickask.core.middleware import request_id_middleware
from quickask.core.openapi import apply_openapi_customizations
from quickask.core.rate_limit import RateLimitSweeper, build_rate_limiter
from quickask.services.proxy_service import ProxyService, build_proxy_targets
from quickask.services.question_service import QuestionService
from quickask.utils.simple_cache import SimpleTTLCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    sweeper: RateLimitSweeper = app.state.rate_limit_sweeper
    sweeper.start()
    logger.info("app.startup")
    try:
        yield
    finally:
        await sweeper.stop()
        await app.state.http_client.aclose()
        logger.info("app.shutdown")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build from; the global settings if omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, debug=cfg.app.debug)

    app = FastAPI(
        title="QuickAsk API",
        description=(
            "Answers short general-knowledge questions through a rate-limited, "
            "moderated proxy to a hosted language model, and forwards generic "
            "REST calls to configured upstream targets with read caching."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=_lifespan,
    )

    # Process-lifetime stores
    rate_limiter = build_rate_limiter(cfg.app)
    response_cache = SimpleTTLCache(
        ttl_seconds=cfg.cache.ttl_seconds,
        max_entries=cfg.cache.max_entries,
    )
    http_client = httpx.AsyncClient(follow_redirects=True)

    app.state.rate_limiter = rate_limiter
    app.state.rate_limit_sweeper = RateLimitSweeper(
        rate_limiter, cfg.app.rate_limit_sweep_interval_seconds
    )
    app.state.response_cache = response_cache
    app.state.http_client = http_client
    app.state.question_service = QuestionService(
        llm=create_llm_client(cfg.llm),
        limiter=rate_limiter,
        rate_limit_enabled=cfg.app.rate_limit_enabled,
        max_input_chars=cfg.app.max_input_chars,
    )
    app.state.proxy_service = ProxyService(
        build_proxy_targets(cfg.proxy),
        http_client,
        response_cache,
        cache_enabled=cfg.cache.enabled,
        cache_ttl_seconds=cfg.cache.ttl_seconds,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(questions_router, prefix="/v1")
    app.include_router(proxy_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
