"""Audio capture module."""

import asyncio
import logging
import re
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional

from .config import AppConfig
from .errors import CaptureError
from .exit_status import (
    GRACEFUL_STOP_SIGNAL,
    ExitOutcome,
    classify_exit,
    describe_exit,
    is_graceful_exit,
)
from .stage import DEVNULL, PIPE, StageHandle

logger = logging.getLogger(__name__)

# Number of ffmpeg stderr lines kept for error reports
STDERR_TAIL_LINES = 20

# Size of each read from ffmpeg's stderr
BUFFER_SIZE = 4096

LINE_BREAK = re.compile(rb"[\r\n]")


def build_capture_command(config: AppConfig, output_path: Path) -> List[str]:
    """Build the ffmpeg command line for a recording.

    Args:
        config: The merged application configuration.
        output_path: Where the WAV file is written.

    Returns:
        The argv list, program first.
    """
    return [
        config.capture.program,
        "-y",  # Overwrite output file without prompting
        "-f",
        config.capture.input_format,
        "-i",
        config.device,
        "-filter:a",
        f"volume={config.volume}",
        "-t",
        str(config.duration),
        str(output_path),
    ]


class FFmpegCapture:
    """Records audio to a file using an ffmpeg subprocess."""

    def __init__(self, config: AppConfig, output_path: Path):
        """Initialize audio capture.

        Args:
            config: The application configuration.
            output_path: Path of the WAV file to record to.
        """
        self.output_path = output_path
        self._stage = StageHandle(
            "capture",
            build_capture_command(config, output_path),
            stdin=DEVNULL,
            stderr=PIPE,
        )

        # Internal state
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)

    @property
    def command(self) -> List[str]:
        return self._stage.command

    @property
    def running(self) -> bool:
        return self._stage.running

    @property
    def stderr_tail(self) -> str:
        return "\n".join(self._stderr_tail)

    def _append_stderr_line(self, line: bytes) -> None:
        text = line.decode("utf-8", errors="replace").strip()
        if text:
            self._stderr_tail.append(text)

    async def _read_stderr(self) -> None:
        """Drain ffmpeg's stderr so the process never blocks on a full pipe.

        ffmpeg ends its progress lines with a carriage return, so the stream
        is read in fixed-size chunks and split on both line endings.
        """
        process = self._stage.process
        if not process or not process.stderr:
            logger.error("Capture process or stderr not available for reading.")
            return

        pending = b""
        try:
            while True:
                data = await process.stderr.read(BUFFER_SIZE)
                if not data:
                    break
                *lines, pending = LINE_BREAK.split(pending + data)
                for line in lines:
                    self._append_stderr_line(line)
                # A line with no break at all is only kept up to one buffer
                pending = pending[-BUFFER_SIZE:]
            self._append_stderr_line(pending)
        except asyncio.CancelledError:
            logger.debug("Capture stderr reader cancelled.")
            raise
        except Exception as e:
            logger.exception(f"Error in capture stderr reader: {e}")
        finally:
            logger.debug("Capture stderr reader finished.")

    async def start(self) -> None:
        """Start recording.

        Raises:
            LaunchError: If ffmpeg could not be started.
        """
        if self._stage.process is not None:
            logger.warning("Audio capture is already running.")
            return

        logger.info(f"Starting audio capture to {self.output_path}")
        await self._stage.start()
        self._reader_task = asyncio.create_task(self._read_stderr())

    async def wait(self) -> int:
        """Wait for the recording process to exit on its own."""
        return await self._stage.wait()

    async def stop(self) -> int:
        """Stop recording gracefully and validate how the process ended.

        The process is sent SIGINT so ffmpeg can finalize the WAV header. If
        it already exited (maximum duration reached) its exit status is
        validated the same way.

        Returns:
            The process return code.

        Raises:
            CaptureError: If the process did not end with a graceful exit.
        """
        if self._stage.send_signal(GRACEFUL_STOP_SIGNAL):
            logger.info(f"Sent SIGINT to capture process (PID {self._stage.pid})")
        else:
            logger.info("Capture process already exited, not signalling it")

        returncode = await self._stage.wait()
        await self._finish_reader()

        outcome = classify_exit(returncode)
        logger.info(f"Capture process ended: {describe_exit(returncode)}")

        if is_graceful_exit(returncode):
            return returncode

        if self._stderr_tail:
            logger.error(f"ffmpeg output:\n{self.stderr_tail}")
        if outcome == ExitOutcome.UNKNOWN:
            signal_number = -returncode if returncode is not None else None
            raise CaptureError(None, signal_number=signal_number, stderr=self.stderr_tail)
        raise CaptureError(returncode, stderr=self.stderr_tail)

    async def _finish_reader(self) -> None:
        if not self._reader_task:
            return
        try:
            await asyncio.wait_for(self._reader_task, timeout=1.0)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for capture stderr to close")
            self._reader_task.cancel()
        self._reader_task = None

    async def close(self) -> None:
        """Release the recording process on any exit path."""
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
        self._reader_task = None
        await self._stage.close()

    async def __aenter__(self) -> "FFmpegCapture":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
