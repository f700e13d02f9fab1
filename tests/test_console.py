"""Tests for console status lines."""

import io

from scribe.console import StatusPrinter
from scribe.state import SessionStateEnum, SessionStateManager


class TTYStream(io.StringIO):
    def isatty(self) -> bool:
        return True


def test_plain_output_when_not_a_tty():
    stream = io.StringIO()
    StatusPrinter(stream).print_step("Transcribing audio...")
    assert stream.getvalue() == "> Transcribing audio...\n"


def test_styled_output_on_tty(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    stream = TTYStream()
    StatusPrinter(stream).print_step("Stopping recording...")
    assert stream.getvalue() == "\r\033[2K> \033[1;36mStopping recording...\033[0m\n"


def test_no_color_disables_styling(monkeypatch):
    monkeypatch.setenv("NO_COLOR", "1")
    stream = TTYStream()
    StatusPrinter(stream).print_step("Stopping recording...")
    assert stream.getvalue() == "> Stopping recording...\n"


def test_prints_one_line_per_state():
    """Test the printer follows a session through the pipeline."""
    stream = io.StringIO()
    printer = StatusPrinter(stream)
    manager = SessionStateManager()
    manager.add_observer(printer.on_state_change)

    for state in (
        SessionStateEnum.RECORDING,
        SessionStateEnum.STOPPING,
        SessionStateEnum.TRANSCRIBING,
        SessionStateEnum.DELIVERING,
        SessionStateEnum.COMPLETED,
    ):
        manager.set_state(state)

    assert stream.getvalue().splitlines() == [
        "> Recording in progress... Press any key to stop.",
        "> Stopping recording...",
        "> Transcribing audio...",
        "> Copying transcription to clipboard...",
        "> Process completed successfully.",
    ]


def test_failure_prints_nothing():
    """Test failures are left to the caller to report."""
    stream = io.StringIO()
    printer = StatusPrinter(stream)
    printer.on_state_change(SessionStateEnum.FAILED, "boom")
    assert stream.getvalue() == ""
