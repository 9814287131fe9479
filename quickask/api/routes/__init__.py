from __future__ import annotations

from quickask.api.routes.health import router as health_router
from quickask.api.routes.proxy import router as proxy_router
from quickask.api.routes.questions import router as questions_router

__all__ = ["health_router", "proxy_router", "questions_router"]
