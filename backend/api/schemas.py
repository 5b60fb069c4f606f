"""Pydantic models for the API layer.

Defines the conversation turn contract and the response bodies.
"""

from typing import Literal

from pydantic import BaseModel, Field


class Turn(BaseModel):
    """Single client-visible conversation turn."""
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)


class ChatReply(BaseModel):
    """Successful chat response."""
    reply: str


class ErrorBody(BaseModel):
    """Error response. `details` is omitted in production."""
    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    ok: bool = True
