"""Canned introduction returned when the user sends no message."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from ..schemas.chat import Animation, FacialExpression, ReplyFragment
from .assembler import audio_file_to_base64, read_json_transcript

logger = logging.getLogger(__name__)


class IntroductionError(RuntimeError):
    """Raised when a pre-baked introduction asset is missing or unreadable."""


@dataclass(frozen=True)
class IntroLine:
    text: str
    asset: str
    facial_expression: FacialExpression
    animation: Animation


INTRO_LINES: tuple[IntroLine, ...] = (
    IntroLine(
        text="Hello! How can I assist you today?",
        asset="intro_0",
        facial_expression="default",
        animation="Talking_0",
    ),
    IntroLine(
        text="I am here to help with professional advice and guidance.",
        asset="intro_1",
        facial_expression="smile",
        animation="Talking_1",
    ),
)


class IntroductionLoader:
    """Read the pre-recorded intro audio and lip-sync files from disk."""

    def __init__(self, audio_dir: Path, lines: tuple[IntroLine, ...] = INTRO_LINES):
        self._audio_dir = Path(audio_dir)
        self._lines = lines

    async def load(self) -> list[ReplyFragment]:
        fragments: list[ReplyFragment] = []
        for line in self._lines:
            audio_path = self._audio_dir / f"{line.asset}.wav"
            transcript_path = self._audio_dir / f"{line.asset}.json"
            try:
                audio = await audio_file_to_base64(audio_path)
                lipsync = await read_json_transcript(transcript_path)
            except (OSError, json.JSONDecodeError) as exc:
                logger.error("Failed to load intro asset %s: %s", line.asset, exc)
                raise IntroductionError(f"Intro asset {line.asset} unavailable") from exc
            fragments.append(
                ReplyFragment(
                    text=line.text,
                    facialExpression=line.facial_expression,
                    animation=line.animation,
                    audio=audio,
                    lipsync=lipsync,
                )
            )
        return fragments


__all__ = ["INTRO_LINES", "IntroLine", "IntroductionError", "IntroductionLoader"]
