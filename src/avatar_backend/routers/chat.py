"""Chat route: dialogue generation with synthesized speech and lip sync."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..schemas.chat import ChatRequest, ChatResponse, ErrorResponse
from ..services.assembler import AssemblyError, ResponseAssembler
from ..services.dialogue import DialogueError, DialogueGenerator
from ..services.intro import IntroductionError, IntroductionLoader

logger = logging.getLogger(__name__)
router = APIRouter(tags=["chat"])

CHAT_FAILURE_MESSAGE = "Failed to generate response"


def get_dialogue_generator(request: Request) -> DialogueGenerator:
    generator = getattr(request.app.state, "dialogue_generator", None)
    if generator is None:
        raise HTTPException(status_code=500, detail="Dialogue generator unavailable")
    return generator


def get_response_assembler(request: Request) -> ResponseAssembler:
    assembler = getattr(request.app.state, "response_assembler", None)
    if assembler is None:
        raise HTTPException(status_code=500, detail="Response assembler unavailable")
    return assembler


def get_introduction_loader(request: Request) -> IntroductionLoader:
    loader = getattr(request.app.state, "introduction_loader", None)
    if loader is None:
        raise HTTPException(status_code=500, detail="Introduction loader unavailable")
    return loader


def _failure(fragments: list[str] | None = None) -> JSONResponse:
    body = ErrorResponse(error=CHAT_FAILURE_MESSAGE, fragments=fragments)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    payload: Optional[ChatRequest] = None,
    generator: DialogueGenerator = Depends(get_dialogue_generator),
    assembler: ResponseAssembler = Depends(get_response_assembler),
    intro: IntroductionLoader = Depends(get_introduction_loader),
) -> ChatResponse | JSONResponse:
    """Reply to ``message`` with up to three spoken, lip-synced fragments."""

    user_message = payload.message if payload is not None else None

    if not user_message:
        try:
            return ChatResponse(messages=await intro.load())
        except IntroductionError:
            return _failure()

    try:
        fragments = await generator.generate_replies(user_message)
        messages = await assembler.assemble(fragments)
    except AssemblyError as exc:
        logger.error(
            "Chat Route Error: %s (completed fragments: %s)", exc, exc.completed
        )
        return _failure([state.value for state in exc.states])
    except DialogueError as exc:
        logger.error("Chat Route Error: %s", exc)
        return _failure()
    except Exception:
        logger.exception("Chat Route Error: unexpected failure")
        return _failure()

    return ChatResponse(messages=messages)


__all__ = [
    "get_dialogue_generator",
    "get_introduction_loader",
    "get_response_assembler",
    "router",
]
