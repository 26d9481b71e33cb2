"""Speech-to-text route: stage an uploaded recording and transcribe it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..schemas.chat import ErrorResponse, TranscriptionResponse
from ..services.stt_service import TranscriptionClient, TranscriptionError
from ..services.uploads import UploadError, UploadTooLarge, discard_upload, stage_upload

logger = logging.getLogger(__name__)
router = APIRouter(tags=["stt"])

STT_FAILURE_MESSAGE = "Error in Speech-to-Text conversion"


def get_transcription_client(request: Request) -> TranscriptionClient:
    client = getattr(request.app.state, "transcription_client", None)
    if client is None:
        raise HTTPException(status_code=500, detail="Transcription client unavailable")
    return client


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump(exclude_none=True)
    )


@router.post(
    "/stt",
    response_model=TranscriptionResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def speech_to_text(
    audio: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(get_settings),
    transcriber: TranscriptionClient = Depends(get_transcription_client),
) -> TranscriptionResponse | JSONResponse:
    if audio is None:
        return _error(status.HTTP_400_BAD_REQUEST, "No audio file uploaded")

    try:
        staged = await stage_upload(
            audio, Path(settings.uploads_dir), max_bytes=settings.max_upload_bytes
        )
    except UploadTooLarge as exc:
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc))
    except UploadError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except OSError as exc:
        logger.error("Failed to stage upload: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, STT_FAILURE_MESSAGE)

    try:
        text = await transcriber.transcribe(staged)
    except TranscriptionError as exc:
        logger.error("STT Error: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, STT_FAILURE_MESSAGE)
    finally:
        discard_upload(staged)

    return TranscriptionResponse(text=text)


__all__ = ["get_transcription_client", "router"]
