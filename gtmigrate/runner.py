"""Process execution for extracted step commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from typing import Mapping, Optional, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Captured outcome of one shell command."""

    command: str
    exit_code: Optional[int] = None
    output: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0


class ProcessRunner(Protocol):
    """Executes a command string as a shell script."""

    async def run(
        self, command: str, cwd: str, env: Mapping[str, str]
    ) -> CommandResult:
        """Run ``command`` in ``cwd`` and return its combined output."""


async def _collect(stream: asyncio.StreamReader, chunks: list[bytes]) -> None:
    """Append everything read from ``stream`` to ``chunks`` until EOF."""
    while True:
        chunk = await stream.read(65536)
        if not chunk:
            return
        chunks.append(chunk)


class ShellRunner(ProcessRunner):
    """Run commands through ``<shell> -c`` with stderr merged into stdout."""

    def __init__(self, shell: str = "bash", timeout: Optional[float] = None) -> None:
        self.shell = shell
        self.timeout = timeout

    async def run(
        self, command: str, cwd: str, env: Mapping[str, str]
    ) -> CommandResult:
        proc = await asyncio.create_subprocess_exec(
            self.shell,
            "-c",
            command,
            cwd=cwd,
            env={**os.environ, **env},
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
        )
        chunks: list[bytes] = []
        reader = asyncio.ensure_future(_collect(proc.stdout, chunks))
        try:
            # shielded so a timeout does not discard what was already read
            await asyncio.wait_for(asyncio.shield(reader), self.timeout)
            await proc.wait()
        except asyncio.TimeoutError:
            # kill the whole group so children holding the pipe exit too
            with contextlib.suppress(ProcessLookupError):
                os.killpg(proc.pid, signal.SIGKILL)
            await reader
            await proc.wait()
            output = b"".join(chunks).decode("utf-8", errors="replace")
            logger.warning(f"Command timed out after {self.timeout}s in {cwd}")
            return CommandResult(
                command=command,
                exit_code=proc.returncode,
                output=output,
                error=f"timed out after {self.timeout}s",
            )

        output = b"".join(chunks).decode("utf-8", errors="replace")
        if proc.returncode != 0:
            return CommandResult(
                command=command,
                exit_code=proc.returncode,
                output=output,
                error=f"exit status {proc.returncode}",
            )
        return CommandResult(command=command, exit_code=0, output=output)
