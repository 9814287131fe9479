"""HTTP-level tests for POST /v1/responses."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from quickask.adapters.llm.base import ModerationResult
from quickask.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from quickask.api.dependencies import get_question_service
from quickask.core.app_factory import create_app
from quickask.core.errors import UpstreamTimeoutAppError
from quickask.services.question_service import QuestionService


@pytest.fixture
def limiter(fake_clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(limit=2, window_seconds=3600, clock=fake_clock)


@pytest.fixture
def app(llm: AsyncMock, limiter: InMemoryFixedWindowRateLimiter) -> FastAPI:
    application = create_app()
    service = QuestionService(llm, limiter)
    application.dependency_overrides[get_question_service] = lambda: service
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


class TestQuestionEndpoint:
    def test_success_returns_answer_envelope(self, client: TestClient) -> None:
        response = client.post("/v1/responses", json={"input": "How big is the earth?"})

        assert response.status_code == 200
        assert response.json() == {
            "response": "The Earth is about 12,742 km in diameter.",
            "original_input": "How big is the earth?",
            "remaining_requests": 1,
        }

    @pytest.mark.parametrize("payload", [{"input": ""}, {"input": "   "}, {}, {"input": None}])
    def test_empty_input_returns_400_without_upstream_call(
        self, client: TestClient, llm: AsyncMock, payload: dict
    ) -> None:
        response = client.post("/v1/responses", json=payload)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_input"
        assert error["message"] == "Please enter some text."
        llm.moderate.assert_not_awaited()
        llm.complete.assert_not_awaited()

    def test_flagged_input_returns_400(self, client: TestClient, llm: AsyncMock) -> None:
        llm.moderate.return_value = ModerationResult(flagged=True, categories=["hate"])

        response = client.post("/v1/responses", json={"input": "bad words"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Content flagged as inappropriate: hate"

    def test_rate_limited_client_gets_429_with_headers(self, client: TestClient) -> None:
        for _ in range(2):
            assert client.post("/v1/responses", json={"input": "hello"}).status_code == 200

        response = client.post("/v1/responses", json={"input": "hello"})

        assert response.status_code == 429
        assert response.json()["error"]["message"] == "Rate limit exceeded. Please try again later."
        assert response.headers["Retry-After"] == "3600"
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == "4600"

    def test_forwarded_clients_are_limited_separately(self, client: TestClient) -> None:
        for _ in range(2):
            client.post(
                "/v1/responses", json={"input": "hello"}, headers={"X-Forwarded-For": "1.1.1.1"}
            )

        blocked = client.post(
            "/v1/responses", json={"input": "hello"}, headers={"X-Forwarded-For": "1.1.1.1, 10.0.0.1"}
        )
        other = client.post(
            "/v1/responses", json={"input": "hello"}, headers={"X-Forwarded-For": "2.2.2.2"}
        )

        assert blocked.status_code == 429
        assert other.status_code == 200

    def test_upstream_timeout_returns_408(self, client: TestClient, llm: AsyncMock) -> None:
        llm.complete.side_effect = UpstreamTimeoutAppError(code="llm_timeout", message="Request timeout")

        response = client.post("/v1/responses", json={"input": "hello"})

        assert response.status_code == 408
        assert response.json()["error"]["message"] == "Request timeout"

    def test_missing_credential_returns_generic_500(self, limiter) -> None:
        application = create_app()
        service = QuestionService(None, limiter)
        application.dependency_overrides[get_question_service] = lambda: service

        response = TestClient(application).post("/v1/responses", json={"input": "hello"})

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "Question service temporarily unavailable"

    def test_wrong_method_is_rejected(self, client: TestClient) -> None:
        assert client.get("/v1/responses").status_code == 405
