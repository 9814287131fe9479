from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from quickask.api.dependencies import get_client_id, get_question_service
from quickask.schemas.question import QuestionRequest, QuestionResponse
from quickask.services.question_service import QuestionService

router = APIRouter(tags=["Questions"])


@router.post("/responses", response_model=QuestionResponse)
async def create_response(
    payload: QuestionRequest,
    client_id: Annotated[str, Depends(get_client_id)],
    service: Annotated[QuestionService, Depends(get_question_service)],
) -> QuestionResponse:
    """Answer a short general-knowledge question.

    The request is rate limited per client address, validated, checked by
    the upstream moderation endpoint, and only then sent for completion.

    Returns:
        QuestionResponse: Answer, echoed input and remaining quota.

    Raises:
        AppError: Rendered by the global handlers (400, 408, 429, 500).
    """
    return await service.ask(payload.input, client_id)
