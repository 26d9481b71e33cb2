"""Transcription client tests using httpx's mock transport."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from avatar_backend.services.stt_service import TranscriptionClient, TranscriptionError


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> TranscriptionClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TranscriptionClient(
        http_client, api_key="sk-test", base_url="https://example.com/v1/"
    )


@pytest.fixture
def recording(tmp_path: Path) -> Path:
    path = tmp_path / "upload.webm"
    path.write_bytes(b"\x1aE\xdf\xa3 webm bytes")
    return path


@pytest.mark.asyncio
async def test_transcribe_posts_multipart_audio(recording: Path) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"text": "What should I study?"})

    client = make_client(handler)

    text = await client.transcribe(recording)

    assert text == "What should I study?"
    request = seen[0]
    assert str(request.url) == "https://example.com/v1/audio/transcriptions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="file"; filename="audio.mp3"' in body
    assert b"Content-Type: audio/mpeg" in body
    assert b"webm bytes" in body
    assert b'name="model"' in body
    assert b"whisper-1" in body


@pytest.mark.asyncio
async def test_transcribe_raises_on_error_status(recording: Path) -> None:
    client = make_client(
        lambda request: httpx.Response(401, json={"error": {"message": "bad key"}})
    )

    with pytest.raises(TranscriptionError):
        await client.transcribe(recording)


@pytest.mark.asyncio
async def test_transcribe_raises_when_text_missing(recording: Path) -> None:
    client = make_client(lambda request: httpx.Response(200, json={"language": "en"}))

    with pytest.raises(TranscriptionError):
        await client.transcribe(recording)


@pytest.mark.asyncio
async def test_transcribe_raises_on_non_json_body(recording: Path) -> None:
    client = make_client(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(TranscriptionError):
        await client.transcribe(recording)


@pytest.mark.asyncio
async def test_transcribe_wraps_transport_errors(recording: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(TranscriptionError):
        await client.transcribe(recording)
