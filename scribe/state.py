"""State management for a scribe session."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class SessionStateEnum(str, Enum):
    """Possible states for a session."""

    IDLE = "Idle"
    RECORDING = "Recording"
    STOPPING = "Stopping"
    TRANSCRIBING = "Transcribing"
    DELIVERING = "Delivering"
    COMPLETED = "Completed"
    FAILED = "Failed"


# The only forward step allowed out of each state. FAILED is reachable from
# any state that is not terminal.
NEXT_STATE: Dict[SessionStateEnum, SessionStateEnum] = {
    SessionStateEnum.IDLE: SessionStateEnum.RECORDING,
    SessionStateEnum.RECORDING: SessionStateEnum.STOPPING,
    SessionStateEnum.STOPPING: SessionStateEnum.TRANSCRIBING,
    SessionStateEnum.TRANSCRIBING: SessionStateEnum.DELIVERING,
    SessionStateEnum.DELIVERING: SessionStateEnum.COMPLETED,
}

TERMINAL_STATES = frozenset({SessionStateEnum.COMPLETED, SessionStateEnum.FAILED})


class InvalidTransitionError(ValueError):
    """Raised when a state change would skip or reverse a pipeline step."""


class SessionStateManager:
    """Tracks the state of a session and enforces the linear pipeline order."""

    def __init__(self):
        """Initialize state manager with IDLE state."""
        self._state: SessionStateEnum = SessionStateEnum.IDLE
        self._last_error: Optional[str] = None
        self._observers: List[Callable[[SessionStateEnum, Optional[str]], Any]] = []

    @property
    def current_state(self) -> SessionStateEnum:
        """Get the current state of the session."""
        return self._state

    @property
    def last_error(self) -> Optional[str]:
        """Get the error message that failed the session, if any."""
        return self._last_error

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def add_observer(
        self, observer: Callable[[SessionStateEnum, Optional[str]], Any]
    ) -> None:
        """Add an observer callback for state changes.

        The callback receives the new state and optional error message.
        """
        self._observers.append(observer)

    def _notify_observers(self) -> None:
        """Notify all observers of the current state."""
        for observer in self._observers:
            try:
                observer(self._state, self._last_error)
            except Exception:
                # Don't let observer errors break state management
                logger.exception("State observer failed")

    def set_state(self, new_state: SessionStateEnum) -> None:
        """Advance the session to the next pipeline state.

        Args:
            new_state: The new state to set.

        Raises:
            TypeError: If the provided state is not a valid SessionStateEnum.
            InvalidTransitionError: If new_state is not the next step.
        """
        if not isinstance(new_state, SessionStateEnum):
            raise TypeError(f"State must be a SessionStateEnum, got {type(new_state)}")

        if new_state == SessionStateEnum.FAILED:
            raise InvalidTransitionError("Use set_error() to fail a session")

        expected = NEXT_STATE.get(self._state)
        if new_state != expected:
            raise InvalidTransitionError(
                f"Cannot move from {self._state.value} to {new_state.value}"
            )

        logger.debug(f"Session state: {self._state.value} -> {new_state.value}")
        self._state = new_state
        self._notify_observers()

    def set_error(self, message: str) -> None:
        """Fail the session with the provided message.

        Args:
            message: The error message to store.

        Raises:
            InvalidTransitionError: If the session already finished.
        """
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Cannot fail a session that is already {self._state.value}"
            )

        logger.debug(f"Session state: {self._state.value} -> Failed ({message})")
        self._last_error = message
        self._state = SessionStateEnum.FAILED
        self._notify_observers()

    def get_status(self) -> Tuple[str, Optional[str]]:
        """Get the current status and last error message.

        Returns:
            A tuple containing the current state value (as a string) and the last error
            message (if any).
        """
        return self.current_state.value, self.last_error
