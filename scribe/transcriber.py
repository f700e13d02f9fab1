"""Audio transcription module using the whisper command line."""

import logging
import time
from pathlib import Path
from typing import List

from .config import WhisperConfig
from .errors import EncodingError, TranscriptionError
from .stage import DEVNULL, PIPE, StageHandle

logger = logging.getLogger(__name__)


def build_whisper_command(config: WhisperConfig, audio_path: Path) -> List[str]:
    """Build the whisper command line for one audio file."""
    return [
        config.program,
        "--model",
        config.model,
        "--device",
        config.device,
        "--language",
        config.language,
        str(audio_path),
    ]


def check_audio_artifact(audio_path: Path) -> None:
    """Log a warning if the recording looks unusable.

    A successful capture exit is trusted; this never stops the session.
    """
    try:
        size = audio_path.stat().st_size
    except OSError:
        logger.warning(f"Recorded audio file not found: {audio_path}")
        return
    if size == 0:
        logger.warning(f"Recorded audio file is empty: {audio_path}")
    else:
        logger.debug(f"Recorded audio file {audio_path}: {size} bytes")


class WhisperTranscriber:
    """Handles audio transcription by running whisper on a recorded file."""

    def __init__(self, config: WhisperConfig):
        """Initialize the transcriber.

        Args:
            config: Whisper configuration.
        """
        self.whisper_config = config

    async def transcribe(self, audio_path: Path) -> str:
        """Transcribe an audio file.

        Blocks until whisper exits. Its whole stdout is the transcript.

        Args:
            audio_path: The recorded audio file.

        Returns:
            The transcript text, exactly as whisper printed it.

        Raises:
            LaunchError: If whisper could not be started.
            TranscriptionError: If whisper exited non-zero.
            EncodingError: If the output is not valid UTF-8.
        """
        check_audio_artifact(audio_path)

        logger.info(
            f"Transcribing {audio_path} with Whisper model '{self.whisper_config.model}' "
            f"(Device: {self.whisper_config.device}, "
            f"Language: {self.whisper_config.language})"
        )
        command = build_whisper_command(self.whisper_config, audio_path)
        started = time.monotonic()

        async with StageHandle(
            "transcription", command, stdin=DEVNULL, stdout=PIPE, stderr=PIPE
        ) as stage:
            stdout, stderr = await stage.communicate()
            returncode = stage.returncode

        if returncode != 0:
            error_output = stderr.decode("utf-8", errors="replace").strip()
            if error_output:
                logger.error(f"whisper stderr:\n{error_output}")
            raise TranscriptionError(returncode, stderr=error_output)

        try:
            text = stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(str(e)) from e

        logger.info(
            f"Transcribed {len(text)} chars in {time.monotonic() - started:.1f}s: "
            f"{text.strip()[:100]}..."
        )
        return text
