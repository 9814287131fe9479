"""FastAPI dependencies exposing the services built by the app factory.

Services live on ``app.state`` so each app instance owns its own stores;
tests swap them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from quickask.core.rate_limit import resolve_client_id
from quickask.services.proxy_service import ProxyService
from quickask.services.question_service import QuestionService


def get_question_service(request: Request) -> QuestionService:
    return request.app.state.question_service


def get_proxy_service(request: Request) -> ProxyService:
    return request.app.state.proxy_service


def get_client_id(request: Request) -> str:
    return resolve_client_id(request)
