"""OpenAI Whisper transcription client."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "whisper-1"


class TranscriptionError(RuntimeError):
    """Raised when an audio file could not be transcribed."""


class TranscriptionClient:
    """Post uploaded audio to the transcription endpoint and return the text."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = DEFAULT_MODEL,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/audio/transcriptions"

    async def transcribe(self, file_path: Path, *, model: str | None = None) -> str:
        data = await asyncio.to_thread(Path(file_path).read_bytes)
        # The endpoint sniffs the container, so the part is always labelled MP3.
        files = {"file": ("audio.mp3", data, "audio/mpeg")}
        form = {"model": model or self._model}
        headers = {"Authorization": f"Bearer {self._api_key}"}

        logger.debug("Transcribing %s (%d bytes)", file_path, len(data))
        try:
            response = await self._http.post(
                self.endpoint, headers=headers, data=form, files=files
            )
        except httpx.HTTPError as exc:
            logger.error("STT transport error: %s", exc)
            raise TranscriptionError("Failed to transcribe audio") from exc

        if response.status_code >= 400:
            logger.error(
                "STT request failed (%s): %s", response.status_code, response.text
            )
            raise TranscriptionError("Failed to transcribe audio")

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("STT response was not JSON: %s", response.text[:200])
            raise TranscriptionError("Failed to transcribe audio") from exc

        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str):
            logger.error("STT response missing 'text' field: %s", body)
            raise TranscriptionError("Failed to transcribe audio")
        return text


__all__ = ["TranscriptionClient", "TranscriptionError"]
