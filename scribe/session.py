"""Session data for one run of the pipeline."""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import PipelineError
from .state import SessionStateEnum, SessionStateManager


def audio_filename(session_id: int) -> str:
    return f"output_{session_id}.wav"


@dataclass
class Session:
    """One record/transcribe/copy run.

    The id is the UNIX timestamp at start and names the recorded file.
    """

    session_id: int
    audio_path: Path
    state: SessionStateManager = field(default_factory=SessionStateManager)
    transcript: Optional[str] = None
    error: Optional[PipelineError] = None

    @classmethod
    def create(cls, output_dir: Path, now: Optional[float] = None) -> "Session":
        session_id = int(now if now is not None else time.time())
        return cls(session_id=session_id, audio_path=output_dir / audio_filename(session_id))

    @property
    def current_state(self) -> SessionStateEnum:
        return self.state.current_state

    @property
    def succeeded(self) -> bool:
        return self.state.current_state == SessionStateEnum.COMPLETED

    def fail(self, error: PipelineError) -> None:
        """Record the error that ended the session."""
        self.error = error
        self.state.set_error(str(error))
