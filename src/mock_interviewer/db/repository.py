"""
Repository pattern for database operations.

Provides a clean abstraction over SQLAlchemy for CRUD operations.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mock_interviewer.db.models import (
    Base,
    DocumentModel,
    InterviewSessionModel,
    MessageModel,
)
from mock_interviewer.orchestrator.schemas import (
    DocumentRecord,
    DocumentType,
    InterviewSessionRecord,
    MessageRecord,
    MessageRole,
    SessionStatus,
    SessionSummary,
)

T = TypeVar("T", bound=Base)


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository with common CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    @property
    @abstractmethod
    def _model_class(self) -> type[T]:
        """Get the model class for this repository."""
        ...

    async def get_by_id(self, entity_id: int) -> T | None:
        """
        Get an entity by its ID.

        Args:
            entity_id: The entity's primary key.

        Returns:
            The entity if found, None otherwise.
        """
        return await self._session.get(self._model_class, entity_id)

    async def create(self, entity: T) -> T:
        """
        Create a new entity.

        Args:
            entity: The entity to create.

        Returns:
            The created entity.
        """
        self._session.add(entity)
        await self._session.flush()
        await self._session.refresh(entity)
        return entity

    async def update(self, entity: T) -> T:
        """
        Update an existing entity.

        Args:
            entity: The entity to update.

        Returns:
            The updated entity.
        """
        await self._session.flush()
        await self._session.refresh(entity)
        return entity


class DocumentRepository(BaseRepository[DocumentModel]):
    """Repository for document operations."""

    @property
    def _model_class(self) -> type[DocumentModel]:
        """Get the model class."""
        return DocumentModel

    async def create_document(
        self,
        document_type: DocumentType,
        name: str,
        content: str,
        metadata: dict | None = None,
    ) -> DocumentModel:
        """
        Persist a new document.

        Args:
            document_type: Role of the document.
            name: Original filename.
            content: Sanitized text.
            metadata: Optional metadata map.

        Returns:
            The created document model.
        """
        document = DocumentModel(
            type=document_type.value,
            name=name,
            content=content,
            metadata_=metadata or {},
        )
        return await self.create(document)

    @staticmethod
    def to_record(model: DocumentModel) -> DocumentRecord:
        """
        Convert a DocumentModel to a DocumentRecord schema.

        Args:
            model: Database document model.

        Returns:
            DocumentRecord schema.
        """
        return DocumentRecord(
            id=model.id,
            type=DocumentType(model.type),
            name=model.name,
            content=model.content,
            metadata=model.metadata_ or {},
            created_at=model.created_at,
        )


class InterviewSessionRepository(BaseRepository[InterviewSessionModel]):
    """Repository for interview session operations."""

    @property
    def _model_class(self) -> type[InterviewSessionModel]:
        """Get the model class."""
        return InterviewSessionModel

    async def get_with_documents(self, session_id: int) -> InterviewSessionModel | None:
        """
        Get a session with its cv, jd and questions documents loaded.

        Args:
            session_id: Session primary key.

        Returns:
            The session if found, None otherwise.
        """
        stmt = (
            select(InterviewSessionModel)
            .where(InterviewSessionModel.id == session_id)
            .options(
                selectinload(InterviewSessionModel.cv),
                selectinload(InterviewSessionModel.jd),
                selectinload(InterviewSessionModel.questions),
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 50) -> list[InterviewSessionModel]:
        """
        List sessions, newest first, with cv and jd loaded.

        Args:
            limit: Maximum number to return.

        Returns:
            List of sessions.
        """
        stmt = (
            select(InterviewSessionModel)
            .options(
                selectinload(InterviewSessionModel.cv),
                selectinload(InterviewSessionModel.jd),
            )
            .order_by(InterviewSessionModel.created_at.desc(), InterviewSessionModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def to_record(model: InterviewSessionModel) -> InterviewSessionRecord:
        """Convert an InterviewSessionModel to an InterviewSessionRecord schema."""
        return InterviewSessionRecord(
            id=model.id,
            status=SessionStatus(model.status),
            cv_id=model.cv_id,
            jd_id=model.jd_id,
            questions_id=model.questions_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def to_summary(model: InterviewSessionModel) -> SessionSummary:
        """Convert a session with loaded documents to a history entry."""
        return SessionSummary(
            id=model.id,
            status=SessionStatus(model.status),
            created_at=model.created_at,
            cv_name=model.cv.name if model.cv else None,
            jd_name=model.jd.name if model.jd else None,
        )


class MessageRepository(BaseRepository[MessageModel]):
    """Repository for conversation message operations."""

    @property
    def _model_class(self) -> type[MessageModel]:
        """Get the model class."""
        return MessageModel

    async def get_by_session(self, session_id: int) -> list[MessageModel]:
        """
        Get all messages of a session in creation order.

        Args:
            session_id: Owning session primary key.

        Returns:
            Messages ordered by creation time, ties broken by id.
        """
        stmt = (
            select(MessageModel)
            .where(MessageModel.session_id == session_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def to_record(model: MessageModel) -> MessageRecord:
        """Convert a MessageModel to a MessageRecord schema."""
        return MessageRecord(
            id=model.id,
            session_id=model.session_id,
            role=MessageRole(model.role),
            content=model.content,
            created_at=model.created_at,
        )
