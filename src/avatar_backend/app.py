"""Application factory for the FastAPI service."""

from __future__ import annotations

import logging
import os
import shutil
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
import openai
from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import get_settings
from .routers.chat import router as chat_router
from .routers.stt import router as stt_router
from .services.assembler import ResponseAssembler
from .services.dialogue import DialogueGenerator
from .services.intro import IntroductionLoader
from .services.lipsync import VisemePipeline
from .services.stt_service import TranscriptionClient
from .services.tts_service import SpeechSynthesisClient

GREETING = "Hello World!"
INVALID_REQUEST_MESSAGE = "Invalid request body"

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure logging based on LOG_LEVEL environment variable."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Always add console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logging.getLogger("avatar_backend").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Quiet noisy HTTP client libraries unless debugging
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(
            log_level if log_level <= logging.DEBUG else logging.WARNING
        )


def create_app() -> FastAPI:
    _configure_logging()

    settings = get_settings()
    api_key = settings.openai_api_key.get_secret_value()
    audio_dir = settings.audio_dir.resolve()

    openai_client = openai.AsyncOpenAI(
        api_key=api_key,
        base_url=settings.openai_base,
        timeout=settings.request_timeout,
        max_retries=0,
    )
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout, connect=10.0)
    )

    synthesizer = SpeechSynthesisClient(
        openai_client, voice=settings.tts_voice, model=settings.tts_model
    )
    pipeline = VisemePipeline(
        ffmpeg_path=settings.ffmpeg_path,
        rhubarb_path=settings.rhubarb_path,
        timeout=settings.process_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        audio_dir.mkdir(parents=True, exist_ok=True)
        settings.uploads_dir.mkdir(parents=True, exist_ok=True)
        for tool in (settings.ffmpeg_path, settings.rhubarb_path):
            if shutil.which(tool) is None:
                logger.warning("External tool %s not found on PATH", tool)
        try:
            yield
        finally:
            await http_client.aclose()
            await openai_client.close()

    app = FastAPI(
        title="Virtual Consultant Backend",
        version="0.1.0",
        description="Avatar replies with OpenAI speech and Rhubarb lip sync.",
        lifespan=lifespan,
    )

    app.state.transcription_client = TranscriptionClient(
        http_client,
        api_key=api_key,
        base_url=settings.openai_base,
        model=settings.stt_model,
    )
    app.state.dialogue_generator = DialogueGenerator(
        openai_client,
        model=settings.chat_model,
        temperature=settings.chat_temperature,
        max_tokens=settings.chat_max_tokens,
    )
    app.state.response_assembler = ResponseAssembler(
        synthesizer,
        pipeline,
        audio_dir=audio_dir,
        keep_files=settings.keep_generated_audio,
    )
    app.state.introduction_loader = IntroductionLoader(audio_dir)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "Rejected %s %s: %s", request.method, request.url.path, exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": INVALID_REQUEST_MESSAGE},
        )

    app.include_router(chat_router)
    app.include_router(stt_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return GREETING

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, Any]:
        return {
            "status": "ok",
            "chat_model": settings.chat_model,
            "tools": {
                "ffmpeg": shutil.which(settings.ffmpeg_path) is not None,
                "rhubarb": shutil.which(settings.rhubarb_path) is not None,
            },
        }

    return app


__all__ = ["GREETING", "INVALID_REQUEST_MESSAGE", "create_app"]
