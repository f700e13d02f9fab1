"""Output execution module for transcribed text."""

import logging

from .config import ClipboardConfig
from .errors import DeliveryError, DeliveryWriteError
from .stage import PIPE, StageHandle

logger = logging.getLogger(__name__)


class ClipboardOutput:
    """Copies transcribed text to the clipboard via an external command."""

    def __init__(self, config: ClipboardConfig):
        """Initialize clipboard output.

        Args:
            config: Clipboard configuration containing the command
        """
        self.config = config

    async def deliver(self, text: str) -> None:
        """Pipe text into the clipboard command and wait for it to finish.

        Empty text is still delivered, which clears the clipboard.

        Args:
            text: The transcript to copy.

        Raises:
            LaunchError: If the command could not be started.
            DeliveryWriteError: If the command stopped reading stdin early.
            DeliveryError: If the command exited non-zero.
        """
        data = text.encode("utf-8")
        logger.debug(f"Executing clipboard command: {self.config.command}")
        logger.debug(f"Text length: {len(text)} chars")

        async with StageHandle("delivery", self.config.argv, stdin=PIPE) as stage:
            try:
                await stage.write_input(data)
            except (BrokenPipeError, ConnectionResetError) as e:
                raise DeliveryWriteError(str(e) or type(e).__name__) from e

            returncode = await stage.wait()

        if returncode != 0:
            logger.error(
                f"Command failed with code {returncode}:\n"
                f"Command: {self.config.command}"
            )
            raise DeliveryError(returncode)

        logger.info("Copied transcription to clipboard")
