"""
Session store.

Lifecycle operations for interview sessions, their message history and the
documents they reference. Every operation runs in its own transaction and
returns pydantic records, never live ORM objects.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any

from mock_interviewer.db.database import Database
from mock_interviewer.db.models import InterviewSessionModel, MessageModel
from mock_interviewer.db.repository import (
    DocumentRepository,
    InterviewSessionRepository,
    MessageRepository,
)
from mock_interviewer.errors import SessionNotFoundError, ValidationError
from mock_interviewer.orchestrator.schemas import (
    DocumentRecord,
    DocumentType,
    InterviewSessionRecord,
    MessageRecord,
    MessageRole,
    SessionDocuments,
    SessionStatus,
    SessionSummary,
)

logger = logging.getLogger(__name__)


class SessionStore:
    """
    CRUD lifecycle for interview sessions and their messages.

    Appends to the same session are serialized with a per-session lock so the
    persisted order always matches the order in which appends were submitted.
    """

    def __init__(self, database: Database) -> None:
        """
        Initialize the session store.

        Args:
            database: Database providing transactional sessions.
        """
        self._database = database
        # Entries disappear once no append for the session holds or awaits the lock.
        self._append_locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: int) -> asyncio.Lock:
        lock = self._append_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._append_locks[session_id] = lock
        return lock

    async def save_document(
        self,
        document_type: DocumentType,
        name: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> DocumentRecord:
        """
        Persist a new immutable document.

        Args:
            document_type: Role of the document.
            name: Original filename.
            content: Sanitized document text.
            metadata: Optional metadata map.

        Returns:
            The persisted document.
        """
        async with self._database.transaction() as db:
            model = await DocumentRepository(db).create_document(
                document_type, name, content, metadata
            )
            return DocumentRepository.to_record(model)

    async def create_session(
        self,
        cv_document_id: int | None,
        jd_document_id: int | None = None,
        questions_document_id: int | None = None,
    ) -> InterviewSessionRecord:
        """
        Create a new active interview session.

        Args:
            cv_document_id: Mandatory CV document id.
            jd_document_id: Optional job description document id.
            questions_document_id: Optional question list document id.

        Returns:
            The created session.

        Raises:
            ValidationError: If no CV document id is given, or a document id
                is unknown or refers to a document of another type.
        """
        if cv_document_id is None:
            raise ValidationError("A CV document is required to create an interview session")

        async with self._database.transaction() as db:
            documents = DocumentRepository(db)
            await self._check_document(documents, cv_document_id, DocumentType.CV)
            await self._check_document(documents, jd_document_id, DocumentType.JD)
            await self._check_document(documents, questions_document_id, DocumentType.QUESTIONS)

            model = await InterviewSessionRepository(db).create(
                InterviewSessionModel(
                    status=SessionStatus.ACTIVE.value,
                    cv_id=cv_document_id,
                    jd_id=jd_document_id,
                    questions_id=questions_document_id,
                )
            )
            record = InterviewSessionRepository.to_record(model)

        logger.info(f"Created interview session {record.id} (cv={cv_document_id})")
        return record

    @staticmethod
    async def _check_document(
        documents: DocumentRepository,
        document_id: int | None,
        expected_type: DocumentType,
    ) -> None:
        """Ensure a referenced document exists and fills the slot it is given for."""
        if document_id is None:
            return
        document = await documents.get_by_id(document_id)
        if document is None:
            raise ValidationError(
                f"Document {document_id} not found",
                {"document_id": document_id, "expected_type": expected_type.value},
            )
        if document.type != expected_type.value:
            raise ValidationError(
                f"Document {document_id} is a {document.type} document, expected {expected_type.value}",
                {"document_id": document_id, "expected_type": expected_type.value},
            )

    async def get_session(self, session_id: int) -> InterviewSessionRecord | None:
        """
        Get a session by id.

        Args:
            session_id: Session identifier.

        Returns:
            The session if found, None otherwise.
        """
        async with self._database.transaction() as db:
            model = await InterviewSessionRepository(db).get_by_id(session_id)
            return InterviewSessionRepository.to_record(model) if model else None

    async def require_session(self, session_id: int) -> InterviewSessionRecord:
        """
        Get a session by id, failing if it does not exist.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        session = await self.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def get_documents(self, session_id: int) -> SessionDocuments:
        """
        Get the documents referenced by a session.

        Args:
            session_id: Session identifier.

        Returns:
            The session's cv and, if present, jd and questions documents.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        async with self._database.transaction() as db:
            model = await InterviewSessionRepository(db).get_with_documents(session_id)
            if model is None:
                raise SessionNotFoundError(session_id)
            return SessionDocuments(
                cv=DocumentRepository.to_record(model.cv),
                jd=DocumentRepository.to_record(model.jd) if model.jd else None,
                questions=DocumentRepository.to_record(model.questions) if model.questions else None,
            )

    async def append_message(
        self,
        session_id: int,
        role: MessageRole | str,
        content: str,
    ) -> MessageRecord:
        """
        Append a message to a session's history.

        Args:
            session_id: Owning session identifier.
            role: Author role.
            content: Message text.

        Returns:
            The persisted message.

        Raises:
            SessionNotFoundError: If the session does not exist.
            ValidationError: If the role is unknown.
        """
        try:
            role = MessageRole(role)
        except ValueError as e:
            raise ValidationError(f"Unknown message role: {role!r}", {"session_id": session_id}) from e

        async with self._lock_for(session_id):
            async with self._database.transaction() as db:
                if await InterviewSessionRepository(db).get_by_id(session_id) is None:
                    raise SessionNotFoundError(session_id)
                model = await MessageRepository(db).create(
                    MessageModel(session_id=session_id, role=role.value, content=content)
                )
                record = MessageRepository.to_record(model)

        logger.debug(f"Appended {role.value} message {record.id} to session {session_id}")
        return record

    async def get_messages(self, session_id: int) -> list[MessageRecord]:
        """
        Get a session's messages in ascending creation order.

        Args:
            session_id: Session identifier.

        Returns:
            Ordered list of messages.
        """
        async with self._database.transaction() as db:
            models = await MessageRepository(db).get_by_session(session_id)
            return [MessageRepository.to_record(m) for m in models]

    async def end_session(self, session_id: int) -> InterviewSessionRecord:
        """
        Mark a session as ended.

        Args:
            session_id: Session identifier.

        Returns:
            The updated session.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        async with self._database.transaction() as db:
            repository = InterviewSessionRepository(db)
            model = await repository.get_by_id(session_id)
            if model is None:
                raise SessionNotFoundError(session_id)
            model.status = SessionStatus.ENDED.value
            model = await repository.update(model)
            record = InterviewSessionRepository.to_record(model)

        logger.info(f"Ended interview session {session_id}")
        return record

    async def list_sessions(self, limit: int = 50) -> list[SessionSummary]:
        """
        List recent sessions for the interview history.

        Args:
            limit: Maximum number to return.

        Returns:
            Session summaries, newest first.
        """
        async with self._database.transaction() as db:
            models = await InterviewSessionRepository(db).list_recent(limit)
            return [InterviewSessionRepository.to_summary(m) for m in models]
