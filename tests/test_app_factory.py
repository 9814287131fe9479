"""Tests for application construction and lifecycle."""

from fastapi.testclient import TestClient

from quickask.core.app_factory import create_app
from quickask.core.config import AppSettings, CacheSettings, LLMSettings, Settings
from quickask.services.proxy_service import ProxyService
from quickask.services.question_service import QuestionService


def _settings(**overrides) -> Settings:
    return Settings(
        llm=overrides.get("llm", LLMSettings(api_key="test-key")),
        app=AppSettings(rate_limit_requests=5, rate_limit_sweep_interval_seconds=60),
        cache=CacheSettings(enabled=True, ttl_seconds=30),
    )


def test_services_are_built_from_settings() -> None:
    app = create_app(_settings())

    question_service = app.state.question_service
    proxy_service = app.state.proxy_service

    assert isinstance(question_service, QuestionService)
    assert question_service.llm is not None
    assert question_service.limiter.limit == 5
    assert isinstance(proxy_service, ProxyService)
    assert proxy_service.cache_enabled is True
    assert proxy_service.cache_ttl_seconds == 30
    assert set(proxy_service.targets) == {"users", "products"}


def test_app_starts_without_llm_credential() -> None:
    app = create_app(_settings(llm=LLMSettings(api_key=None)))

    assert app.state.question_service.llm is None
    assert TestClient(app).get("/health").status_code == 200


def test_each_app_owns_its_stores() -> None:
    first = create_app(_settings())
    second = create_app(_settings())

    assert first.state.rate_limiter is not second.state.rate_limiter
    assert first.state.response_cache is not second.state.response_cache


def test_lifespan_runs_sweeper() -> None:
    app = create_app(_settings())

    with TestClient(app) as client:
        assert app.state.rate_limit_sweeper.running is True
        assert client.get("/health").status_code == 200

    assert app.state.rate_limit_sweeper.running is False
    assert app.state.http_client.is_closed is True


def test_openapi_documents_error_envelope_and_tags() -> None:
    schema = TestClient(create_app(_settings())).get("/openapi.json").json()

    assert "ErrorEnvelope" in schema["components"]["schemas"]
    assert {"Questions", "Proxy", "Health"} <= {tag["name"] for tag in schema["tags"]}
    assert "/v1/responses" in schema["paths"]
    assert "/v1/proxy/{path}" in schema["paths"]
