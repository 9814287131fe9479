"""Schemas describing proxy targets and proxied responses."""

from __future__ import annotations

from typing import Any, Dict, Literal

from pydantic import BaseModel, Field

CacheStatus = Literal["HIT", "MISS", "N/A"]


class ProxyTarget(BaseModel):
    """A named upstream reachable through the proxy endpoint."""

    target: str = Field(..., description="Base URL requests are forwarded to.")
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers added to every forwarded request.",
    )
    timeout_seconds: float = Field(10.0, gt=0, description="Per-request timeout.")


class ProxyResult(BaseModel):
    """Upstream response as returned by the proxy service."""

    status_code: int = Field(..., description="Upstream HTTP status.")
    data: Any = Field(
        None,
        description="Parsed JSON, decoded text, or raw bytes depending on content type.",
    )
    content_type: str = Field("application/json", description="Upstream content type.")
    cache_status: CacheStatus = Field(..., description="HIT, MISS, or N/A for non-GET.")
