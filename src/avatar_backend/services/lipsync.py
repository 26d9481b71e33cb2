"""Convert synthesized speech into Rhubarb viseme transcripts."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Sequence

from .process_runner import ProcessError, run_command
from .workspace import RequestWorkspace

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable[str]]


class VisemePipeline:
    """Run ffmpeg then rhubarb over ``message_<index>.mp3``.

    Both steps block on an external process and run strictly in order. A
    failing step raises :class:`ProcessError` and leaves whatever the earlier
    step produced in the workspace.
    """

    def __init__(
        self,
        *,
        ffmpeg_path: str = "ffmpeg",
        rhubarb_path: str = "rhubarb",
        timeout: float | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self._ffmpeg = ffmpeg_path
        self._rhubarb = rhubarb_path
        self._timeout = timeout
        self._run = runner

    def transcode_command(self, source: Path, target: Path) -> list[str]:
        return [self._ffmpeg, "-y", "-i", str(source), str(target)]

    def lipsync_command(self, source: Path, target: Path) -> list[str]:
        return [
            self._rhubarb,
            "-f",
            "json",
            "-o",
            str(target),
            str(source),
            "-r",
            "phonetic",
        ]

    async def lip_sync(self, workspace: RequestWorkspace, index: int) -> Path:
        """Produce ``message_<index>.json`` and return its path."""

        mp3_path = workspace.mp3_path(index)
        wav_path = workspace.wav_path(index)
        transcript_path = workspace.transcript_path(index)

        started = time.perf_counter()
        logger.info("Starting conversion for message %d", index)
        await self._step(self.transcode_command(mp3_path, wav_path))
        logger.info(
            "Conversion done in %dms", (time.perf_counter() - started) * 1000
        )
        await self._step(self.lipsync_command(wav_path, transcript_path))
        logger.info("Lip sync done in %dms", (time.perf_counter() - started) * 1000)

        if not transcript_path.exists():
            raise ProcessError(
                f"Lip sync produced no transcript for message {index}",
                command=self.lipsync_command(wav_path, transcript_path),
            )
        return transcript_path

    async def _step(self, command: Sequence[str]) -> str:
        try:
            return await self._run(command, timeout=self._timeout)
        except ProcessError as exc:
            logger.error("%s (stderr: %s)", exc, exc.stderr.strip() or "<empty>")
            raise


__all__ = ["VisemePipeline"]
