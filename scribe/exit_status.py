"""Decision table for how the recording process reports a graceful stop.

Hosts disagree on how a child killed by SIGINT looks to its parent: asyncio
reports a negative signal number, shells and wrappers use 128 + N, and
ffmpeg itself exits with 255 after it has handled the interrupt and
finalized its output. All of these count as a successful recording.
"""

import signal
from enum import Enum
from typing import Dict, Optional

GRACEFUL_STOP_SIGNAL = signal.SIGINT

# Offset POSIX shells add to a signal number to build an exit code
SHELL_SIGNAL_EXIT_BASE = 128

# ffmpeg's exit status after a handled interrupt
FFMPEG_INTERRUPTED_EXIT = 255


class ExitOutcome(str, Enum):
    """Classification of a recording process exit."""

    CLEAN = "clean"
    INTERRUPTED = "interrupted"
    FAILED = "failed"
    UNKNOWN = "unknown"


GRACEFUL_EXIT_CODES: Dict[int, str] = {
    0: "clean exit",
    -GRACEFUL_STOP_SIGNAL: "terminated by SIGINT",
    SHELL_SIGNAL_EXIT_BASE + GRACEFUL_STOP_SIGNAL: "exit code 130 (128 + SIGINT)",
    FFMPEG_INTERRUPTED_EXIT: "exit code 255 (ffmpeg interrupted)",
}


def classify_exit(returncode: Optional[int]) -> ExitOutcome:
    """Classify a recording process return code.

    Args:
        returncode: Return code as reported by asyncio (negative for a
            signal-terminated child, None if it could not be determined).

    Returns:
        ExitOutcome for the given return code.
    """
    if returncode is None:
        return ExitOutcome.UNKNOWN
    if returncode == 0:
        return ExitOutcome.CLEAN
    if returncode in GRACEFUL_EXIT_CODES:
        return ExitOutcome.INTERRUPTED
    if returncode < 0:
        # Killed by some other signal, there is no exit code to report
        return ExitOutcome.UNKNOWN
    return ExitOutcome.FAILED


def is_graceful_exit(returncode: Optional[int]) -> bool:
    """Whether the return code counts as a successful recording."""
    return classify_exit(returncode) in (ExitOutcome.CLEAN, ExitOutcome.INTERRUPTED)


def describe_exit(returncode: Optional[int]) -> str:
    """Human readable description of a return code, for logging."""
    if returncode in GRACEFUL_EXIT_CODES:
        return GRACEFUL_EXIT_CODES[returncode]
    if returncode is None:
        return "no exit status"
    if returncode < 0:
        try:
            return f"terminated by {signal.Signals(-returncode).name}"
        except ValueError:
            return f"terminated by signal {-returncode}"
    return f"exit code {returncode}"
