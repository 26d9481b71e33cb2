"""Per-request directories for intermediate audio and lip-sync files."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from types import TracebackType
from uuid import uuid4

logger = logging.getLogger(__name__)


class RequestWorkspace:
    """A uniquely named directory that holds one chat request's files.

    Files follow the ``message_<index>.<ext>`` naming scheme inside the
    directory. The directory is removed on exit unless ``keep`` is set.
    """

    def __init__(
        self,
        root: Path,
        *,
        request_id: str | None = None,
        keep: bool = False,
    ) -> None:
        self.request_id = request_id or uuid4().hex
        self.path = Path(root) / self.request_id
        self.keep = keep

    def message_file(self, index: int, extension: str) -> Path:
        return self.path / f"message_{index}.{extension.lstrip('.')}"

    def mp3_path(self, index: int) -> Path:
        return self.message_file(index, "mp3")

    def wav_path(self, index: int) -> Path:
        return self.message_file(index, "wav")

    def transcript_path(self, index: int) -> Path:
        return self.message_file(index, "json")

    def __enter__(self) -> RequestWorkspace:
        self.path.mkdir(parents=True, exist_ok=False)
        logger.debug("Created workspace %s", self.path)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.keep:
            logger.info("Keeping generated files in %s", self.path)
            return
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as cleanup_exc:
            logger.warning("Failed to remove workspace %s: %s", self.path, cleanup_exc)


__all__ = ["RequestWorkspace"]
