"""Ownership of a single external stage process."""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from .errors import LaunchError

logger = logging.getLogger(__name__)

PIPE = asyncio.subprocess.PIPE
DEVNULL = asyncio.subprocess.DEVNULL

# How long close() waits for a killed child before giving up on reaping it
KILL_TIMEOUT_S = 2.0


class StageHandle:
    """Runs one external program for one pipeline stage.

    Used as an async context manager: entering launches the process and
    leaving makes sure it is no longer running, killing and reaping it if
    the caller bailed out before it exited.
    """

    def __init__(
        self,
        name: str,
        command: Sequence[str],
        stdin: Optional[int] = None,
        stdout: Optional[int] = None,
        stderr: Optional[int] = None,
    ):
        """Initialize the stage handle.

        Args:
            name: Stage name used in logs and errors (capture, transcription...).
            command: Program and arguments.
            stdin: stdin disposition for the child (PIPE, DEVNULL or None).
            stdout: stdout disposition for the child.
            stderr: stderr disposition for the child.
        """
        self.name = name
        self.command: List[str] = [str(part) for part in command]
        self._stdin = stdin
        self._stdout = stdout
        self._stderr = stderr
        self.process: Optional[asyncio.subprocess.Process] = None

    @property
    def program(self) -> str:
        return self.command[0]

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode if self.process else None

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def start(self) -> None:
        """Launch the process.

        Raises:
            LaunchError: If the program is missing or cannot be executed.
        """
        if self.process is not None:
            logger.warning(f"{self.name} stage already started")
            return

        logger.debug(f"Launching {self.name} stage: {' '.join(self.command)}")
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=self._stdin,
                stdout=self._stdout,
                stderr=self._stderr,
            )
        except FileNotFoundError as e:
            raise LaunchError(self.name, self.program, "command not found") from e
        except PermissionError as e:
            raise LaunchError(self.name, self.program, "permission denied") from e
        except OSError as e:
            raise LaunchError(self.name, self.program, str(e)) from e

        logger.info(f"Started {self.program} ({self.name}) with PID: {self.process.pid}")

    def send_signal(self, sig: int) -> bool:
        """Send a signal to the process if it is still running.

        Returns:
            True if the signal was delivered, False if the process had
            already exited.
        """
        if not self.running:
            return False
        try:
            self.process.send_signal(sig)
        except ProcessLookupError:
            return False
        return True

    async def wait(self) -> int:
        """Block until the process exits and return its return code."""
        if self.process is None:
            raise RuntimeError(f"{self.name} stage was never started")
        return await self.process.wait()

    async def communicate(self, data: Optional[bytes] = None) -> Tuple[bytes, bytes]:
        """Feed stdin, read stdout/stderr to EOF and wait for exit."""
        if self.process is None:
            raise RuntimeError(f"{self.name} stage was never started")
        stdout, stderr = await self.process.communicate(data)
        return stdout or b"", stderr or b""

    async def write_input(self, data: bytes) -> None:
        """Write all of data to stdin and close it.

        Raises:
            BrokenPipeError, ConnectionResetError: If the process stopped
                reading before everything was written.
        """
        if self.process is None or self.process.stdin is None:
            raise RuntimeError(f"{self.name} stage has no stdin pipe")
        stdin = self.process.stdin
        try:
            stdin.write(data)
            await stdin.drain()
        finally:
            stdin.close()
        await stdin.wait_closed()

    async def close(self) -> None:
        """Make sure the process is gone, killing it if needed."""
        if not self.running:
            return

        logger.warning(f"{self.name} stage still running, killing PID {self.pid}")
        try:
            self.process.kill()
        except ProcessLookupError:
            pass  # Exited in the meantime

        try:
            await asyncio.wait_for(self.process.wait(), timeout=KILL_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.error(f"Timeout waiting for killed {self.name} stage to exit")

    async def __aenter__(self) -> "StageHandle":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
