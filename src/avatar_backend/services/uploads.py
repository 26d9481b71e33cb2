"""Stage multipart uploads on disk for processing."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

logger = logging.getLogger(__name__)


class UploadError(RuntimeError):
    """Base error raised for upload failures."""


class UploadTooLarge(UploadError):
    """Raised when an uploaded file exceeds the configured limit."""


def _suffix_for(upload: UploadFile) -> str:
    suffix = Path(upload.filename or "").suffix.lower()
    if suffix and suffix[1:].isalnum() and len(suffix) <= 6:
        return suffix
    return ".bin"


async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    chunk_size = 1024 * 1024  # 1 MiB
    size = 0
    chunks: list[bytes] = []
    try:
        while True:
            chunk = await upload.read(chunk_size)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                raise UploadTooLarge(f"Upload exceeded {max_bytes} bytes limit")
            chunks.append(chunk)
    finally:
        await upload.close()
    return b"".join(chunks)


async def stage_upload(upload: UploadFile, directory: Path, *, max_bytes: int) -> Path:
    """Write ``upload`` to a uniquely named file under ``directory``."""

    data = await _read_upload(upload, max_bytes)
    if not data:
        raise UploadError("Uploaded file was empty")

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{uuid4().hex}{_suffix_for(upload)}"
    await asyncio.to_thread(path.write_bytes, data)
    logger.info("Staged upload %s (%d bytes) at %s", upload.filename, len(data), path)
    return path


def discard_upload(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to remove staged upload %s: %s", path, exc)


__all__ = ["UploadError", "UploadTooLarge", "discard_upload", "stage_upload"]
