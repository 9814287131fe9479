"""Pydantic schemas for the question endpoint."""

from pydantic import BaseModel, Field


class QuestionRequest(BaseModel):
    """Question submitted by the widget.

    ``input`` is optional at the schema level so that a missing or null
    value reaches the validator and gets the same message as blank text.
    """

    input: str | None = Field(
        default=None,
        description="Question text. Must be non-blank and within the configured length limit.",
        examples=["How big is the earth?"],
    )


class QuestionResponse(BaseModel):
    """Answer envelope returned to the widget."""

    response: str = Field(
        ...,
        description="Generated answer text (one or two sentences).",
    )
    original_input: str = Field(
        ...,
        description="The submitted question, echoed back.",
    )
    remaining_requests: int = Field(
        ...,
        ge=0,
        description="Requests left for this client in the current rate-limit window.",
    )
