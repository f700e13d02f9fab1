"""Status lines printed to the terminal while a session runs."""

import os
import sys
from typing import Dict, Optional, TextIO

from .state import SessionStateEnum

BOLD_CYAN = "\033[1;36m"
RESET = "\033[0m"
CLEAR_LINE = "\r\033[2K"

STATE_MESSAGES: Dict[SessionStateEnum, str] = {
    SessionStateEnum.RECORDING: "Recording in progress... Press any key to stop.",
    SessionStateEnum.STOPPING: "Stopping recording...",
    SessionStateEnum.TRANSCRIBING: "Transcribing audio...",
    SessionStateEnum.DELIVERING: "Copying transcription to clipboard...",
    SessionStateEnum.COMPLETED: "Process completed successfully.",
}

# Steps inside a state, reported by the pipeline rather than by a state change
RECORDING_STOPPED_MESSAGE = "Recording stopped via SIGINT (desired behavior)."
TRANSCRIPTION_COMPLETE_MESSAGE = "Transcription complete."
COPIED_MESSAGE = "\u2714 Copied transcription to clipboard."


def colors_enabled(stream: TextIO) -> bool:
    """Check if ANSI styling should be used for the given stream."""
    # Respect NO_COLOR standard (https://no-color.org/)
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


class StatusPrinter:
    """Writes one ``> message`` line per pipeline step."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self._styled = colors_enabled(self.stream)

    def print_step(self, message: str) -> None:
        """Clear the current line and print a styled status message."""
        if self._styled:
            self.stream.write(f"{CLEAR_LINE}> {BOLD_CYAN}{message}{RESET}\n")
        else:
            self.stream.write(f"> {message}\n")
        self.stream.flush()

    def on_state_change(
        self, new_state: SessionStateEnum, error: Optional[str]
    ) -> None:
        """State observer callback; failures are reported by the caller."""
        message = STATE_MESSAGES.get(new_state)
        if message:
            self.print_step(message)
