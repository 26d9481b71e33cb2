from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import httpx
import openai
import pytest

from avatar_backend.services.tts_service import SpeechSynthesisClient, SynthesisError

from conftest import make_openai_stub


@pytest.mark.asyncio
async def test_synthesize_uses_default_voice_and_model() -> None:
    stub = make_openai_stub(speech=SimpleNamespace(content=b"ID3audio"))
    client = SpeechSynthesisClient(stub)

    audio = await client.synthesize("Hello there")

    assert audio == b"ID3audio"
    stub.audio.speech.create.assert_awaited_once_with(
        model="tts-1", voice="alloy", input="Hello there"
    )


@pytest.mark.asyncio
async def test_synthesize_allows_per_call_overrides() -> None:
    stub = make_openai_stub(speech=SimpleNamespace(content=b"x"))
    client = SpeechSynthesisClient(stub, voice="nova")

    await client.synthesize("Hi", model="tts-1-hd")

    kwargs = stub.audio.speech.create.await_args.kwargs
    assert kwargs["voice"] == "nova"
    assert kwargs["model"] == "tts-1-hd"


@pytest.mark.asyncio
async def test_synthesize_to_file_overwrites_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "req" / "message_0.mp3"
    target.parent.mkdir()
    target.write_bytes(b"stale audio from an earlier run")
    stub = make_openai_stub(speech=SimpleNamespace(content=b"fresh"))

    result = await SpeechSynthesisClient(stub).synthesize_to_file("Hi", target)

    assert result == target
    assert target.read_bytes() == b"fresh"


@pytest.mark.asyncio
async def test_synthesize_wraps_api_errors(tmp_path: Path) -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/speech")
    stub = make_openai_stub(side_effect=openai.APIConnectionError(request=request))
    target = tmp_path / "message_0.mp3"

    with pytest.raises(SynthesisError, match="Failed to generate TTS"):
        await SpeechSynthesisClient(stub).synthesize_to_file("Hi", target)

    assert not target.exists()


@pytest.mark.asyncio
async def test_synthesize_rejects_empty_audio() -> None:
    stub = make_openai_stub(speech=SimpleNamespace(content=b""))

    with pytest.raises(SynthesisError):
        await SpeechSynthesisClient(stub).synthesize("Hi")
