"""Single key press stop request for an interactive terminal."""

import asyncio
import logging
import os
import sys
import termios
import tty
from typing import Any, List, Optional, TextIO

logger = logging.getLogger(__name__)


class KeypressListener:
    """Sets a stop event on the first key pressed in the terminal.

    The terminal is switched to cbreak mode while listening so a single key
    (no Enter needed) is enough, and restored on stop(). When the stream is
    not a terminal nothing is armed and the stop has to come from a signal
    or from the recorder's own duration limit.
    """

    def __init__(self, stop_event: asyncio.Event, stream: Optional[TextIO] = None):
        self.stop_event = stop_event
        self.stream = stream if stream is not None else sys.stdin

        self._fd: Optional[int] = None
        self._saved_attrs: Optional[List[Any]] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def active(self) -> bool:
        return self._fd is not None

    def start(self) -> bool:
        """Start listening for a key press.

        Returns:
            True if the listener is armed, False if the stream can't be used.
        """
        if self.active:
            logger.warning("Key press listener already running")
            return True

        try:
            fd = self.stream.fileno()
        except (AttributeError, OSError, ValueError):
            logger.info("No usable stdin, key press stop disabled")
            return False

        if not os.isatty(fd):
            logger.info("stdin is not a terminal, key press stop disabled")
            return False

        try:
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error as e:
            logger.warning(f"Could not switch terminal to cbreak mode: {e}")
            self._saved_attrs = None

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(fd, self._on_key)
        self._fd = fd
        logger.debug(f"Listening for a key press on fd {fd}")
        return True

    def _on_key(self) -> None:
        try:
            os.read(self._fd, 1)  # Consume the key so it doesn't leak to the shell
        except OSError as e:
            logger.warning(f"Error reading key press: {e}")

        logger.info("Key press received, requesting stop")
        self.stop_event.set()
        self.stop()

    def stop(self) -> None:
        """Stop listening and restore the terminal."""
        if self._fd is None:
            return

        self._loop.remove_reader(self._fd)
        if self._saved_attrs is not None:
            try:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
            except termios.error as e:
                logger.warning(f"Could not restore terminal settings: {e}")

        self._fd = None
        self._saved_attrs = None
        self._loop = None
