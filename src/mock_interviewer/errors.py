"""
Exception hierarchy for the interview engine.

Every failure the engine reports derives from InterviewError so callers
can present one encoding-safe message for any aborted step.
"""

from typing import Any


class InterviewError(Exception):
    """Base exception for all interview engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Single-line, encoding-safe text suitable for display."""
        from mock_interviewer.documents.sanitizer import sanitize_error_message

        return sanitize_error_message(self)


class IngestionError(InterviewError):
    """Raised when text could not be extracted from an uploaded document."""


class ValidationError(InterviewError):
    """Raised when a mandatory input is missing or invalid."""


class SessionNotFoundError(ValidationError):
    """Raised when an operation names a session that does not exist."""

    def __init__(self, session_id: int) -> None:
        super().__init__(f"Interview session {session_id} not found", {"session_id": session_id})
        self.session_id = session_id


class SessionEndedError(ValidationError):
    """Raised when a model turn is requested for an ended session."""

    def __init__(self, session_id: int) -> None:
        super().__init__(f"Interview session {session_id} has already ended", {"session_id": session_id})
        self.session_id = session_id


class TurnInProgressError(ValidationError):
    """Raised when a turn is submitted while another is still being processed."""

    def __init__(self, session_id: int) -> None:
        super().__init__(
            f"Interview session {session_id} is already processing a turn",
            {"session_id": session_id},
        )
        self.session_id = session_id


class ModelInvocationError(InterviewError):
    """Raised when the language model call fails or returns nothing usable."""


class ModelTimeoutError(ModelInvocationError):
    """Raised when the language model call exceeds its time budget."""


class BroadcastError(InterviewError):
    """Raised when an event could not be delivered to an observer."""


class InterviewStartError(InterviewError):
    """
    Aggregated failure of the start-interview workflow.

    Attributes:
        stage: Workflow stage that failed (ingestion, session, model, persist).
        session_id: Id of the session if it was committed before the failure.
    """

    def __init__(self, stage: str, session_id: int | None = None, message: str = "") -> None:
        super().__init__(
            message or f"Failed to start interview during {stage}",
            {"stage": stage, "session_id": session_id},
        )
        self.stage = stage
        self.session_id = session_id
