from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers.

    Reports process liveness only; upstream credentials and proxy targets
    are not checked.
    """

    return {"status": "ok"}
