"""Run external command-line tools and capture their output."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


class ProcessError(RuntimeError):
    """Raised when an external program fails to start, exits non-zero, or times out."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr


async def run_command(
    args: Sequence[str],
    *,
    timeout: float | None = None,
    cwd: str | Path | None = None,
) -> str:
    """Execute ``args`` and return its decoded standard output.

    The program runs without a shell. When ``timeout`` elapses the child is
    killed and reaped before :class:`ProcessError` is raised.
    """

    command = [str(arg) for arg in args]
    if not command:
        raise ProcessError("Empty command line")

    logger.debug("Running command: %s", " ".join(command))
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd) if cwd is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ProcessError(
            f"Failed to start {command[0]}: {exc}", command=command
        ) from exc

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise ProcessError(
            f"{command[0]} timed out after {timeout}s", command=command
        ) from exc
    except asyncio.CancelledError:
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise

    stderr_text = stderr.decode("utf-8", errors="replace")
    if process.returncode != 0:
        raise ProcessError(
            f"{command[0]} exited with status {process.returncode}",
            command=command,
            returncode=process.returncode,
            stderr=stderr_text,
        )
    return stdout.decode("utf-8", errors="replace")


__all__ = ["ProcessError", "run_command"]
