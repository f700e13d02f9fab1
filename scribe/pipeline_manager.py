"""Sequencing of the record, transcribe and copy stages."""

import asyncio
import logging
from typing import Callable, Optional

from .audio_capture import FFmpegCapture
from .config import AppConfig
from .console import (
    COPIED_MESSAGE,
    RECORDING_STOPPED_MESSAGE,
    TRANSCRIPTION_COMPLETE_MESSAGE,
)
from .errors import PipelineError
from .exit_status import ExitOutcome, classify_exit
from .interrupt import KeypressListener
from .output_handler import ClipboardOutput
from .session import Session
from .state import SessionStateEnum
from .transcriber import WhisperTranscriber

logger = logging.getLogger(__name__)


class PipelineManager:
    """Runs one session through capture, transcription and delivery.

    Stages run one after the other and each only starts once the previous
    one has been validated. The first PipelineError ends the session in the
    Failed state; nothing is retried or rolled back.
    """

    def __init__(
        self,
        config: AppConfig,
        session: Session,
        stop_event: asyncio.Event,
        keypress: Optional[KeypressListener] = None,
        status: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the pipeline manager.

        Args:
            config: Merged configuration for this run.
            session: The session to drive.
            stop_event: Set once by a key press or signal to end recording.
            keypress: Optional key listener armed only while recording.
            status: Optional callback for console status lines.
        """
        self.config = config
        self.session = session
        self.stop_event = stop_event
        self.keypress = keypress
        self.status = status

        # Create component instances
        self.audio_capture = FFmpegCapture(config, session.audio_path)
        self.transcriber = WhisperTranscriber(config.whisper)
        self.output = ClipboardOutput(config.clipboard)

    async def run(self) -> Session:
        """Run the whole pipeline.

        Returns:
            The session, in the Completed or Failed state.
        """
        state = self.session.state
        try:
            await self._record()

            state.set_state(SessionStateEnum.TRANSCRIBING)
            transcript = await self.transcriber.transcribe(self.session.audio_path)
            self.session.transcript = transcript
            self._report(TRANSCRIPTION_COMPLETE_MESSAGE)

            state.set_state(SessionStateEnum.DELIVERING)
            await self.output.deliver(transcript)
            self._report(COPIED_MESSAGE)

            state.set_state(SessionStateEnum.COMPLETED)
            logger.info(f"Session {self.session.session_id} completed")

        except PipelineError as e:
            logger.error(f"Session {self.session.session_id} failed in {e.stage} stage: {e}")
            self.session.fail(e)

        return self.session

    def _report(self, message: str) -> None:
        if self.status:
            self.status(message)

    async def _record(self) -> None:
        """Record until stopped, then validate the recorder's exit."""
        async with self.audio_capture as capture:
            self.session.state.set_state(SessionStateEnum.RECORDING)

            try:
                await self._wait_for_stop()
            finally:
                if self.keypress:
                    self.keypress.stop()

            self.session.state.set_state(SessionStateEnum.STOPPING)
            returncode = await capture.stop()
            if classify_exit(returncode) == ExitOutcome.INTERRUPTED:
                self._report(RECORDING_STOPPED_MESSAGE)

    async def _wait_for_stop(self) -> None:
        """Wait for a stop request or for the recorder to exit by itself."""
        if self.keypress:
            self.keypress.start()

        stop_task = asyncio.create_task(self.stop_event.wait())
        exit_task = asyncio.create_task(self.audio_capture.wait())
        try:
            done, _ = await asyncio.wait(
                {stop_task, exit_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (stop_task, exit_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(stop_task, exit_task, return_exceptions=True)

        if stop_task in done:
            logger.info("Stop requested, ending recording")
        else:
            logger.info("Recording process exited before a stop was requested")
