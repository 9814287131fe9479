from __future__ import annotations

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from quickask.api.dependencies import get_proxy_service
from quickask.schemas.proxy import ProxyResult
from quickask.services.proxy_service import ProxyService

router = APIRouter(tags=["Proxy"])

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _render(result: ProxyResult, method: str, cache_ttl_seconds: float) -> Response:
    """Turn a ProxyResult into a response echoing the upstream content type."""
    if isinstance(result.data, bytes):
        body = result.data
    elif isinstance(result.data, str) and not result.content_type.startswith("application/json"):
        body = result.data.encode()
    else:
        body = json.dumps(result.data).encode()

    headers = {"X-Proxy-Cache": result.cache_status}
    if method == "GET":
        headers["Cache-Control"] = f"public, max-age={int(cache_ttl_seconds)}"

    return Response(
        content=body,
        status_code=result.status_code,
        media_type=result.content_type,
        headers=headers,
    )


@router.api_route("/proxy/{path:path}", methods=PROXY_METHODS)
async def proxy_request(
    path: str,
    request: Request,
    service: Annotated[ProxyService, Depends(get_proxy_service)],
) -> Response:
    """Forward a request to the upstream target named by the first path segment.

    Successful GET responses are cached when caching is enabled; the
    ``X-Proxy-Cache`` header reports HIT, MISS, or N/A.
    """
    body = await request.body() if request.method not in ("GET", "HEAD") else None
    result = await service.handle(
        path,
        request.method,
        query=request.url.query,
        headers=dict(request.headers),
        body=body,
    )
    return _render(result, request.method, service.cache_ttl_seconds)
