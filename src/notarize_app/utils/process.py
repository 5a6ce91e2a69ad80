"""Asynchronous subprocess execution.

Two modes are offered:

- ``run``: stream output line by line (optionally through a PTY so tools keep
  their colors) and return the exit code. Used for ditto, stapler and spctl.
- ``capture``: collect stdout and stderr separately. Used for the notary tools,
  whose JSON output has to be parsed.

A process that cannot be spawned at all raises ToolInvocationError; a process
that ran and exited non-zero is reported through its exit code.
"""

import asyncio
import fcntl
import os
import pty
import struct
import sys
import termios
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from notarize_app.exceptions import ToolInvocationError

MASK = "********"


def mask_command(cmd: Sequence[str], secrets: Iterable[str | None] = ()) -> list[str]:
    """Return a copy of cmd with every secret replaced by a mask.

    Args:
        cmd: Command and arguments
        secrets: Values that must never be printed

    Returns:
        Command safe for logging
    """
    hidden = {secret for secret in secrets if secret}
    return [MASK if arg in hidden else arg for arg in cmd]


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a finished process."""

    exit_code: int
    stdout: str
    stderr: str


class ProcessRunner:
    """Async subprocess runner.

    When use_pty=True and stdout is a TTY, streamed commands run through a
    pseudo-terminal so they keep emitting ANSI colors.
    """

    def __init__(self, use_pty: bool = True) -> None:
        """Initialize the process runner.

        Args:
            use_pty: Whether to use a PTY for streamed commands
        """
        self.use_pty = use_pty and sys.stdout.isatty()

    async def run(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        on_output: Callable[[str], Awaitable[None]] | None = None,
    ) -> int:
        """Run a command, streaming its combined output.

        Args:
            cmd: Command and arguments to run
            cwd: Working directory (current directory if None)
            on_output: Async callback for output chunks

        Returns:
            Process exit code

        Raises:
            ToolInvocationError: If the command could not be started
        """
        if self.use_pty:
            return await self._run_with_pty(cmd, cwd, on_output)
        return await self._run_piped(cmd, cwd, on_output)

    async def capture(self, cmd: list[str], cwd: Path | None = None) -> ProcessResult:
        """Run a command and collect its output.

        Args:
            cmd: Command and arguments to run
            cwd: Working directory (current directory if None)

        Returns:
            Exit code with decoded stdout and stderr

        Raises:
            ToolInvocationError: If the command could not be started
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except OSError as e:
            raise ToolInvocationError(cmd[:1], str(e)) from e

        stdout, stderr = await process.communicate()
        if process.returncode is None:
            raise ToolInvocationError(cmd[:1], "process did not report an exit status")
        return ProcessResult(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def _run_piped(
        self,
        cmd: list[str],
        cwd: Path | None,
        on_output: Callable[[str], Awaitable[None]] | None,
    ) -> int:
        """Stream output through a plain pipe."""
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=cwd,
            )
        except OSError as e:
            raise ToolInvocationError(cmd[:1], str(e)) from e

        if process.stdout is not None:
            async for line in process.stdout:
                if on_output:
                    await on_output(line.decode("utf-8", errors="replace"))

        return await process.wait()

    async def _run_with_pty(
        self,
        cmd: list[str],
        cwd: Path | None,
        on_output: Callable[[str], Awaitable[None]] | None,
    ) -> int:
        """Stream output through a PTY so the child sees a terminal."""
        master_fd, slave_fd = pty.openpty()
        # rows, cols, xpixel, ypixel
        fcntl.ioctl(master_fd, termios.TIOCSWINSZ, struct.pack("HHHH", 24, 120, 0, 0))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                cwd=cwd,
            )
        except OSError as e:
            os.close(master_fd)
            raise ToolInvocationError(cmd[:1], str(e)) from e
        finally:
            os.close(slave_fd)

        loop = asyncio.get_running_loop()
        try:
            while True:
                try:
                    data = await loop.run_in_executor(None, os.read, master_fd, 4096)
                except OSError:
                    # EIO once the child closes its side
                    break
                if not data:
                    break
                if on_output:
                    await on_output(data.decode("utf-8", errors="replace"))
        finally:
            os.close(master_fd)

        return await process.wait()
