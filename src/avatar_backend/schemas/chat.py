"""Pydantic models for the chat and transcription endpoints."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FacialExpression = Literal["smile", "serious", "thoughtful", "surprised", "default"]
Animation = Literal["Talking_0", "Talking_1", "Idle", "Agreeing_0", "Agreeing_1"]

MAX_REPLY_FRAGMENTS = 3


class ReplyFragment(BaseModel):
    """One part of a multi-part avatar reply.

    ``audio`` and ``lipsync`` stay empty until the fragment has been assembled.
    """

    text: str = Field(min_length=1)
    facialExpression: FacialExpression
    animation: Animation
    audio: Optional[str] = None
    lipsync: Optional[Any] = None

    model_config = ConfigDict(extra="ignore")


class ChatRequest(BaseModel):
    """Incoming chat payload. An empty message asks for the introduction."""

    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ChatResponse(BaseModel):
    messages: List[ReplyFragment]


class TranscriptionResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    fragments: Optional[List[str]] = None


__all__ = [
    "Animation",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "FacialExpression",
    "MAX_REPLY_FRAGMENTS",
    "ReplyFragment",
    "TranscriptionResponse",
]
