"""Shared fakes for tests that run pipeline stages."""

import asyncio
import signal
from typing import Dict, List, Optional, Union
from unittest.mock import patch

import pytest


class FakeStream:
    """Stands in for an asyncio.StreamReader that already holds all its data."""

    def __init__(self, data: bytes = b"", error: Optional[BaseException] = None):
        self.data = data
        self.error = error
        self._offset = 0

    async def read(self, n: int = -1) -> bytes:
        if self.error:
            raise self.error
        end = len(self.data) if n < 0 else self._offset + n
        chunk = self.data[self._offset:end]
        self._offset += len(chunk)
        return chunk


class FakeStdin:
    """Stands in for an asyncio.StreamWriter connected to a child's stdin."""

    def __init__(self, error: Optional[BaseException] = None):
        self.buffer = bytearray()
        self.closed = False
        self.error = error

    def write(self, data: bytes) -> None:
        self.buffer.extend(data)

    async def drain(self) -> None:
        if self.error:
            raise self.error

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass


class FakeProcess:
    """Stands in for asyncio.subprocess.Process.

    With signal_returncode set, the process keeps running until it gets a
    signal (or is killed) and then exits with that code. Otherwise it exits
    with returncode as soon as someone waits for it.
    """

    def __init__(
        self,
        returncode: int = 0,
        stdout: bytes = b"",
        stderr: bytes = b"",
        signal_returncode: Optional[int] = None,
        stdin_error: Optional[BaseException] = None,
        pid: int = 4242,
    ):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.stdin = FakeStdin(stdin_error)
        self.stdout = FakeStream(stdout)
        self.stderr = FakeStream(stderr)
        self.signals: List[int] = []
        self.killed = False

        self._exit_code = returncode
        self._signal_returncode = signal_returncode
        self._exited = asyncio.Event()

    def _finish(self, code: int) -> None:
        if self.returncode is None:
            self.returncode = code
        self._exited.set()

    def send_signal(self, sig: int) -> None:
        self.signals.append(sig)
        if self._signal_returncode is not None:
            self._finish(self._signal_returncode)

    def kill(self) -> None:
        self.killed = True
        self._finish(-signal.SIGKILL)

    async def wait(self) -> int:
        if self._signal_returncode is None:
            self._finish(self._exit_code)
        await self._exited.wait()
        return self.returncode

    async def communicate(self, input: Optional[bytes] = None):
        if input is not None:
            self.stdin.write(input)
        self.stdin.close()
        await self.wait()
        return self.stdout.data, self.stderr.data


class FakeExec:
    """Patched asyncio.create_subprocess_exec handing out fake processes by program."""

    def __init__(self):
        self.processes: Dict[str, Union[FakeProcess, BaseException]] = {}
        self.launched: List[List[str]] = []
        self.mock = None

    def spawn(self, *args, **kwargs):
        self.launched.append(list(args))
        process = self.processes[args[0]]
        if isinstance(process, BaseException):
            raise process
        return process

    @property
    def programs(self) -> List[str]:
        return [command[0] for command in self.launched]

    def command_for(self, program: str) -> List[str]:
        for command in self.launched:
            if command[0] == program:
                return command
        raise KeyError(program)


@pytest.fixture
def fake_exec():
    """Patch subprocess creation; register fakes in fake_exec.processes."""
    fakes = FakeExec()
    with patch("asyncio.create_subprocess_exec", side_effect=fakes.spawn) as mock_exec:
        fakes.mock = mock_exec
        yield fakes
