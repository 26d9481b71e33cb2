"""OpenAI text-to-speech client."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import openai

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "alloy"
DEFAULT_MODEL = "tts-1"


class SynthesisError(RuntimeError):
    """Raised when the speech API cannot produce audio."""


class SpeechSynthesisClient:
    """Turn reply text into MP3 audio using OpenAI's speech endpoint."""

    def __init__(
        self,
        client: openai.AsyncOpenAI,
        *,
        voice: str = DEFAULT_VOICE,
        model: str = DEFAULT_MODEL,
    ) -> None:
        self._client = client
        self._voice = voice
        self._model = model

    async def synthesize(
        self,
        text: str,
        *,
        voice: str | None = None,
        model: str | None = None,
    ) -> bytes:
        """Return the raw audio bytes for ``text``."""

        voice = voice or self._voice
        model = model or self._model
        logger.info(
            "Synthesizing %d chars (model=%s, voice=%s)", len(text), model, voice
        )
        try:
            response = await self._client.audio.speech.create(
                model=model,
                voice=voice,
                input=text,
            )
        except openai.OpenAIError as exc:
            logger.error("OpenAI TTS API error: %s", exc)
            raise SynthesisError("Failed to generate TTS") from exc

        audio = response.content
        if not audio:
            logger.error("OpenAI TTS returned an empty body")
            raise SynthesisError("Failed to generate TTS")
        return audio

    async def synthesize_to_file(self, text: str, output_path: Path) -> Path:
        """Synthesize ``text`` and write the audio to ``output_path``, replacing it."""

        audio = await self.synthesize(text)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(output_path.write_bytes, audio)
        logger.info("TTS file saved as %s", output_path)
        return output_path


__all__ = ["SpeechSynthesisClient", "SynthesisError"]
