"""Attach synthesized audio and lip-sync data to reply fragments."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from ..schemas.chat import ReplyFragment
from .lipsync import VisemePipeline
from .tts_service import SpeechSynthesisClient
from .workspace import RequestWorkspace

logger = logging.getLogger(__name__)


class FragmentState(str, Enum):
    PENDING = "pending"
    SYNTHESIZED = "synthesized"
    LIP_SYNCED = "lip_synced"
    ENCODED = "encoded"


class AssemblyError(RuntimeError):
    """Raised when any fragment fails to assemble.

    ``states`` records how far every fragment got before the failure.
    """

    def __init__(
        self, message: str, *, index: int, states: Sequence[FragmentState]
    ) -> None:
        super().__init__(message)
        self.index = index
        self.states = list(states)

    @property
    def completed(self) -> list[int]:
        return [i for i, state in enumerate(self.states) if state is FragmentState.ENCODED]


async def audio_file_to_base64(path: Path) -> str:
    data = await asyncio.to_thread(path.read_bytes)
    return base64.b64encode(data).decode("ascii")


async def read_json_transcript(path: Path) -> Any:
    text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    return json.loads(text)


class ResponseAssembler:
    """Run every fragment through speech synthesis and the viseme pipeline in turn."""

    def __init__(
        self,
        synthesizer: SpeechSynthesisClient,
        pipeline: VisemePipeline,
        *,
        audio_dir: Path,
        keep_files: bool = False,
    ) -> None:
        self._synthesizer = synthesizer
        self._pipeline = pipeline
        self._audio_dir = Path(audio_dir)
        self._keep_files = keep_files

    async def assemble(self, fragments: list[ReplyFragment]) -> list[ReplyFragment]:
        states = [FragmentState.PENDING] * len(fragments)
        workspace = RequestWorkspace(self._audio_dir, keep=self._keep_files)
        logger.info(
            "Assembling %d fragment(s) in workspace %s",
            len(fragments),
            workspace.request_id,
        )

        with workspace:
            for index, fragment in enumerate(fragments):
                try:
                    await self._assemble_one(workspace, index, fragment, states)
                except Exception as exc:
                    logger.error(
                        "Assembly failed at fragment %d (%s): %s",
                        index,
                        ", ".join(state.value for state in states),
                        exc,
                    )
                    raise AssemblyError(
                        f"Failed to assemble fragment {index}",
                        index=index,
                        states=states,
                    ) from exc
        return fragments

    async def _assemble_one(
        self,
        workspace: RequestWorkspace,
        index: int,
        fragment: ReplyFragment,
        states: list[FragmentState],
    ) -> None:
        mp3_path = workspace.mp3_path(index)
        await self._synthesizer.synthesize_to_file(fragment.text, mp3_path)
        states[index] = FragmentState.SYNTHESIZED

        transcript_path = await self._pipeline.lip_sync(workspace, index)
        states[index] = FragmentState.LIP_SYNCED

        fragment.audio = await audio_file_to_base64(mp3_path)
        fragment.lipsync = await read_json_transcript(transcript_path)
        states[index] = FragmentState.ENCODED


__all__ = [
    "AssemblyError",
    "FragmentState",
    "ResponseAssembler",
    "audio_file_to_base64",
    "read_json_transcript",
]
