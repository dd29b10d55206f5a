"""
Database module for persistence.

Provides SQLAlchemy models, the repository pattern and the session store
for interview data persistence.
"""

from mock_interviewer.db.database import Database
from mock_interviewer.db.models import (
    Base,
    DocumentModel,
    InterviewSessionModel,
    MessageModel,
)
from mock_interviewer.db.repository import (
    DocumentRepository,
    InterviewSessionRepository,
    MessageRepository,
)
from mock_interviewer.db.session_store import SessionStore

__all__ = [
    "Base",
    "Database",
    "DocumentModel",
    "InterviewSessionModel",
    "MessageModel",
    "DocumentRepository",
    "InterviewSessionRepository",
    "MessageRepository",
    "SessionStore",
]
