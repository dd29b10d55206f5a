"""
Pydantic schemas for the interview engine.

Defines the records handed between components: documents, sessions,
messages and broadcast events.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class DocumentType(str, Enum):
    """Role a document plays in an interview."""

    JD = "jd"
    CV = "cv"
    QUESTIONS = "questions"


class SessionStatus(str, Enum):
    """Lifecycle status of an interview session."""

    ACTIVE = "active"
    ENDED = "ended"


class MessageRole(str, Enum):
    """Role of the author of a conversation message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class DocumentRecord(BaseModel):
    """An ingested document with its normalized text."""

    id: int = Field(..., description="Document identifier")
    type: DocumentType = Field(..., description="Role of the document")
    name: str = Field(..., description="Original filename")
    content: str = Field(default="", description="Sanitized extracted text")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Open key/value metadata")
    created_at: datetime = Field(default_factory=_now_utc, description="When the document was ingested")


class InterviewSessionRecord(BaseModel):
    """One interview conversation and its document references."""

    id: int = Field(..., description="Session identifier")
    status: SessionStatus = Field(default=SessionStatus.ACTIVE, description="Lifecycle status")
    cv_id: int = Field(..., description="Mandatory CV document reference")
    jd_id: int | None = Field(default=None, description="Optional job description reference")
    questions_id: int | None = Field(default=None, description="Optional question list reference")
    created_at: datetime = Field(default_factory=_now_utc, description="When the session was created")
    updated_at: datetime = Field(default_factory=_now_utc, description="When the session last changed")

    @property
    def is_active(self) -> bool:
        """Check whether the session still accepts model turns."""
        return self.status == SessionStatus.ACTIVE


class MessageRecord(BaseModel):
    """A persisted conversation message."""

    id: int = Field(..., description="Message identifier")
    session_id: int = Field(..., description="Owning session")
    role: MessageRole = Field(..., description="Author role")
    content: str = Field(..., description="Message text")
    created_at: datetime = Field(default_factory=_now_utc, description="When the message was persisted")


class SessionDocuments(BaseModel):
    """The documents referenced by a session, as used for prompt composition."""

    cv: DocumentRecord = Field(..., description="Candidate CV")
    jd: DocumentRecord | None = Field(default=None, description="Job description, if uploaded")
    questions: DocumentRecord | None = Field(default=None, description="Suggested questions, if uploaded")


class SessionSummary(BaseModel):
    """Compact listing entry for the interview history."""

    id: int = Field(..., description="Session identifier")
    status: SessionStatus = Field(..., description="Lifecycle status")
    created_at: datetime = Field(..., description="When the session was created")
    cv_name: str | None = Field(default=None, description="Filename of the CV")
    jd_name: str | None = Field(default=None, description="Filename of the job description")


class MessageEvent(BaseModel):
    """Payload delivered to observers when a message is created."""

    id: int = Field(..., description="Message identifier")
    session_id: int = Field(..., description="Owning session")
    role: MessageRole = Field(..., description="Author role")
    content: str = Field(..., description="Message text")
    created_at: datetime = Field(..., description="When the message was persisted")

    @classmethod
    def from_message(cls, message: MessageRecord) -> "MessageEvent":
        """Build an event from a persisted message."""
        return cls(
            id=message.id,
            session_id=message.session_id,
            role=message.role,
            content=message.content,
            created_at=message.created_at,
        )
