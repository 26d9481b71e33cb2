import json
import pathlib
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Sequence
from unittest.mock import AsyncMock

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from avatar_backend.services.process_runner import ProcessError  # noqa: E402
from avatar_backend.services.tts_service import SynthesisError  # noqa: E402

SAMPLE_TRANSCRIPT = {
    "metadata": {"soundFile": "message_0.wav", "duration": 0.52},
    "mouthCues": [
        {"start": 0.0, "end": 0.12, "value": "X"},
        {"start": 0.12, "end": 0.52, "value": "B"},
    ],
}


class FakeToolRunner:
    """Stand-in for ``run_command`` that emulates ffmpeg and rhubarb outputs."""

    def __init__(self, *, fail_on: str | None = None, transcript: Any = None) -> None:
        self.fail_on = fail_on
        self.transcript = SAMPLE_TRANSCRIPT if transcript is None else transcript
        self.commands: list[list[str]] = []
        self.timeouts: list[float | None] = []

    async def __call__(self, args: Sequence[str], *, timeout: float | None = None) -> str:
        command = [str(arg) for arg in args]
        self.commands.append(command)
        self.timeouts.append(timeout)
        tool = Path(command[0]).name
        if tool == self.fail_on:
            raise ProcessError(
                f"{tool} exited with status 1",
                command=command,
                returncode=1,
                stderr="simulated failure",
            )
        if tool == "ffmpeg":
            Path(command[-1]).write_bytes(b"RIFF\x00\x00\x00\x00WAVEfmt ")
        elif tool == "rhubarb":
            target = Path(command[command.index("-o") + 1])
            target.write_text(json.dumps(self.transcript), encoding="utf-8")
        return ""


class FakeSynthesizer:
    """Writes deterministic bytes instead of calling the speech API."""

    def __init__(self, *, fail_at: int | None = None) -> None:
        self.fail_at = fail_at
        self.texts: list[str] = []

    async def synthesize_to_file(self, text: str, output_path: Path) -> Path:
        if self.fail_at is not None and len(self.texts) == self.fail_at:
            raise SynthesisError("Failed to generate TTS")
        self.texts.append(text)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(f"mp3:{text}".encode())
        return output_path


def make_completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def make_openai_stub(
    *, completion: Any = None, speech: Any = None, side_effect: Any = None
) -> SimpleNamespace:
    """Build an object shaped like ``openai.AsyncOpenAI`` for the calls we make."""

    return SimpleNamespace(
        chat=SimpleNamespace(
            completions=SimpleNamespace(
                create=AsyncMock(return_value=completion, side_effect=side_effect)
            )
        ),
        audio=SimpleNamespace(
            speech=SimpleNamespace(
                create=AsyncMock(return_value=speech, side_effect=side_effect)
            )
        ),
    )


@pytest.fixture
def tool_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest.fixture
def intro_assets(tmp_path: Path) -> Path:
    audio_dir = tmp_path / "audios"
    audio_dir.mkdir()
    for index in range(2):
        (audio_dir / f"intro_{index}.wav").write_bytes(f"wav-{index}".encode())
        (audio_dir / f"intro_{index}.json").write_text(
            json.dumps({"mouthCues": [{"start": 0, "end": 1, "value": str(index)}]}),
            encoding="utf-8",
        )
    return audio_dir
