"""Exception types for pipeline stage failures.

Every error here is fatal to the session: the orchestrator stops at the
first one and reports its message.
"""

import signal
from typing import Optional


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return f"signal {signum}"


class PipelineError(Exception):
    """Base class for errors that end a session."""

    stage = "pipeline"


class LaunchError(PipelineError):
    """Raised when a stage process cannot be started."""

    def __init__(self, stage: str, program: str, reason: str):
        self.stage = stage
        self.program = program
        self.reason = reason
        super().__init__(f"Failed to start {stage} stage ({program}): {reason}")


class CaptureError(PipelineError):
    """Raised when the recording process ends abnormally."""

    stage = "capture"

    def __init__(
        self,
        code: Optional[int],
        signal_number: Optional[int] = None,
        stderr: str = "",
    ):
        self.code = code
        self.signal_number = signal_number
        self.stderr = stderr
        if code is not None:
            message = f"Failed to record audio. Exit code: {code}"
        elif signal_number is not None:
            message = (
                "Recording process terminated by "
                f"{_signal_name(signal_number)} without an exit code"
            )
        else:
            message = "Recording process terminated without an exit code"
        super().__init__(message)


class TranscriptionError(PipelineError):
    """Raised when the transcription process exits unsuccessfully."""

    stage = "transcription"

    def __init__(self, code: Optional[int], stderr: str = ""):
        self.code = code
        self.stderr = stderr
        super().__init__(f"Whisper transcription failed. Exit code: {code}")


class EncodingError(PipelineError):
    """Raised when the transcription output is not valid UTF-8 text."""

    stage = "transcription"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Transcription output is not valid UTF-8: {reason}")


class DeliveryWriteError(PipelineError):
    """Raised when the transcript cannot be written to the clipboard command."""

    stage = "delivery"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to write transcription to clipboard: {reason}")


class DeliveryError(PipelineError):
    """Raised when the clipboard command exits unsuccessfully."""

    stage = "delivery"

    def __init__(self, code: Optional[int]):
        self.code = code
        super().__init__(f"Failed to copy transcription to clipboard. Exit code: {code}")
