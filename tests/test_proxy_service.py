"""Tests for the generic REST proxy service."""

import httpx
import pytest

from quickask.core.config import ProxySettings
from quickask.core.errors import NotFoundAppError, ProxyAppError, UpstreamTimeoutAppError
from quickask.schemas.proxy import ProxyTarget
from quickask.services.proxy_service import ProxyService, build_proxy_targets
from quickask.utils.simple_cache import SimpleTTLCache

TARGETS = {
    "users": ProxyTarget(target="https://users.test/users", headers={"X-Api-Version": "2"}),
    "products": ProxyTarget(target="https://products.test/products/"),
}


class UpstreamRecorder:
    """MockTransport handler recording requests and replaying a fixed response."""

    def __init__(self, response: httpx.Response | None = None, error: Exception | None = None) -> None:
        self.response = response or httpx.Response(200, json=[{"id": 1, "name": "Leanne"}])
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


def _service(upstream: UpstreamRecorder, *, cache_enabled: bool = True) -> ProxyService:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return ProxyService(
        TARGETS,
        http_client,
        SimpleTTLCache(ttl_seconds=60),
        cache_enabled=cache_enabled,
        cache_ttl_seconds=60,
    )


class TestForwarding:
    @pytest.mark.asyncio
    async def test_get_forwards_to_target_with_subpath_and_query(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream)

        result = await service.handle("users/1/posts", "GET", query="limit=5")

        assert result.status_code == 200
        assert result.data == [{"id": 1, "name": "Leanne"}]
        assert str(upstream.requests[0].url) == "https://users.test/users/1/posts?limit=5"

    @pytest.mark.asyncio
    async def test_trailing_slash_on_target_is_normalized(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream)

        await service.handle("products", "GET")

        assert str(upstream.requests[0].url) == "https://products.test/products"

    @pytest.mark.asyncio
    async def test_only_allowlisted_headers_plus_target_headers_are_sent(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream)

        await service.handle(
            "users",
            "GET",
            headers={"Accept": "application/json", "Cookie": "session=1", "Authorization": "Bearer x"},
        )

        sent = upstream.requests[0].headers
        assert sent["accept"] == "application/json"
        assert sent["x-api-version"] == "2"
        assert "cookie" not in sent
        assert "authorization" not in sent

    @pytest.mark.asyncio
    async def test_post_forwards_body_and_upstream_status(self) -> None:
        upstream = UpstreamRecorder(httpx.Response(201, json={"id": 11}))
        service = _service(upstream)

        result = await service.handle("users", "POST", body=b'{"name": "Ervin"}')

        assert result.status_code == 201
        assert result.cache_status == "N/A"
        assert upstream.requests[0].content == b'{"name": "Ervin"}'

    @pytest.mark.asyncio
    async def test_upstream_error_status_is_passed_through(self) -> None:
        upstream = UpstreamRecorder(httpx.Response(404, json={"message": "not found"}))
        service = _service(upstream)

        result = await service.handle("users/999", "GET")

        assert result.status_code == 404
        assert result.data == {"message": "not found"}


class TestBodyClassification:
    @pytest.mark.asyncio
    async def test_text_body_is_decoded(self) -> None:
        upstream = UpstreamRecorder(
            httpx.Response(200, text="plain body", headers={"content-type": "text/plain"})
        )

        result = await _service(upstream).handle("users", "GET")

        assert result.data == "plain body"
        assert result.content_type.startswith("text/plain")

    @pytest.mark.asyncio
    async def test_binary_body_is_kept_raw(self) -> None:
        upstream = UpstreamRecorder(
            httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})
        )

        result = await _service(upstream).handle("products/1/image", "GET")

        assert result.data == b"\x89PNG"
        assert result.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_invalid_json_is_a_proxy_error(self) -> None:
        upstream = UpstreamRecorder(
            httpx.Response(200, content=b"{oops", headers={"content-type": "application/json"})
        )

        with pytest.raises(ProxyAppError):
            await _service(upstream).handle("users", "GET")


class TestCaching:
    @pytest.mark.asyncio
    async def test_second_get_is_a_hit_without_upstream_call(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream)

        first = await service.handle("users", "GET", query="a=1&b=2")
        second = await service.handle("users", "GET", query="b=2&a=1")

        assert first.cache_status == "MISS"
        assert second.cache_status == "HIT"
        assert second.data == first.data
        assert len(upstream.requests) == 1

    @pytest.mark.asyncio
    async def test_different_query_is_a_separate_entry(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream)

        await service.handle("users", "GET", query="page=1")
        result = await service.handle("users", "GET", query="page=2")

        assert result.cache_status == "MISS"
        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_failed_get_is_not_cached(self) -> None:
        upstream = UpstreamRecorder(httpx.Response(500, json={"error": "down"}))
        service = _service(upstream)

        await service.handle("users", "GET")
        result = await service.handle("users", "GET")

        assert result.cache_status == "MISS"
        assert len(upstream.requests) == 2

    @pytest.mark.asyncio
    async def test_writes_are_never_cached(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream)

        await service.handle("users", "PUT", body=b"{}")
        await service.handle("users", "PUT", body=b"{}")

        assert len(upstream.requests) == 2
        assert len(service.cache) == 0

    @pytest.mark.asyncio
    async def test_disabled_cache_always_misses(self) -> None:
        upstream = UpstreamRecorder()
        service = _service(upstream, cache_enabled=False)

        await service.handle("users", "GET")
        result = await service.handle("users", "GET")

        assert result.cache_status == "MISS"
        assert len(upstream.requests) == 2


class TestFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["orders", "", "/"])
    async def test_unknown_target_is_not_found(self, path: str) -> None:
        upstream = UpstreamRecorder()

        with pytest.raises(NotFoundAppError) as exc:
            await _service(upstream).handle(path, "GET")

        assert "not configured" in exc.value.message
        assert upstream.requests == []

    @pytest.mark.asyncio
    async def test_timeout_is_reported_distinctly(self) -> None:
        upstream = UpstreamRecorder(error=httpx.ReadTimeout("slow"))

        with pytest.raises(UpstreamTimeoutAppError) as exc:
            await _service(upstream).handle("users", "GET")

        assert exc.value.message == "Request timeout"

    @pytest.mark.asyncio
    async def test_transport_error_is_generic(self) -> None:
        upstream = UpstreamRecorder(error=httpx.ConnectError("refused"))

        with pytest.raises(ProxyAppError) as exc:
            await _service(upstream).handle("users", "GET")

        assert exc.value.message == "Internal server error"


def test_targets_built_from_settings() -> None:
    targets = build_proxy_targets(
        ProxySettings(
            user_api_url="https://u.test",
            product_api_url="https://p.test",
            timeout_seconds=3,
        )
    )

    assert set(targets) == {"users", "products"}
    assert targets["users"].target == "https://u.test"
    assert targets["products"].timeout_seconds == 3
