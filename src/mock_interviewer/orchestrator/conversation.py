"""
Conversation orchestrator.

Owns the interview turn-taking protocol: persists each turn, invokes the
language model with the full conversation and fans new messages out to the
session's observers.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from mock_interviewer.config import get_settings
from mock_interviewer.errors import (
    InterviewError,
    InterviewStartError,
    ModelInvocationError,
    ModelTimeoutError,
    SessionEndedError,
    TurnInProgressError,
)
from mock_interviewer.models.llm_client import ChatMessage, LLMClient, LLMClientBase
from mock_interviewer.orchestrator.broadcast import BroadcastPublisher, Subscription
from mock_interviewer.orchestrator.prompt_composer import PromptComposer
from mock_interviewer.orchestrator.schemas import (
    DocumentRecord,
    DocumentType,
    InterviewSessionRecord,
    MessageRecord,
    MessageRole,
)

if TYPE_CHECKING:
    from mock_interviewer.db.session_store import SessionStore
    from mock_interviewer.documents.ingestor import DocumentIngestor


class ConversationOrchestrator:
    """
    Orchestrates interview conversations.

    Every operation names its session explicitly. At most one model call is
    in flight per session; a concurrent submission for the same session is
    rejected with TurnInProgressError rather than interleaved.
    """

    def __init__(
        self,
        store: SessionStore,
        llm_client: LLMClientBase | None = None,
        publisher: BroadcastPublisher | None = None,
        composer: PromptComposer | None = None,
        ingestor: DocumentIngestor | None = None,
        model_timeout: float | None = None,
    ) -> None:
        """
        Initialize the conversation orchestrator.

        Args:
            store: Session store for sessions and messages.
            llm_client: Language model client. Creates default if None.
            publisher: Broadcast publisher. Creates default if None.
            composer: System prompt composer. Creates default if None.
            ingestor: Document ingestor, required for start_from_uploads.
            model_timeout: Time budget in seconds per model call. Defaults to settings.
        """
        self._logger = logging.getLogger(__name__)
        self._store = store
        self._llm_client = llm_client or LLMClient()
        self._publisher = publisher or BroadcastPublisher()
        self._composer = composer or PromptComposer()
        self._ingestor = ingestor
        self._model_timeout = model_timeout or get_settings().llm_timeout

        # Sessions with a model call in flight
        self._processing: set[int] = set()

    @property
    def publisher(self) -> BroadcastPublisher:
        """Get the broadcast publisher."""
        return self._publisher

    def is_processing(self, session_id: int) -> bool:
        """Check whether a turn is currently being processed for a session."""
        return session_id in self._processing

    def _claim(self, session_id: int) -> None:
        if session_id in self._processing:
            raise TurnInProgressError(session_id)
        self._processing.add(session_id)

    def _release(self, session_id: int) -> None:
        self._processing.discard(session_id)

    async def start_from_uploads(
        self,
        cv_path: str | Path,
        jd_path: str | Path | None = None,
        questions_path: str | Path | None = None,
        origin: Subscription | None = None,
    ) -> tuple[InterviewSessionRecord, MessageRecord]:
        """
        Ingest uploaded documents and start an interview on them.

        Args:
            cv_path: Path to the candidate CV (mandatory).
            jd_path: Path to the job description, if any.
            questions_path: Path to the suggested question list, if any.
            origin: Subscription of the initiator, excluded from broadcast.

        Returns:
            The new session and its opening assistant message.

        Raises:
            InterviewStartError: If any stage fails; the original error is chained.
        """
        if self._ingestor is None:
            raise RuntimeError("No document ingestor configured.")
        if not cv_path:
            raise InterviewStartError("ingestion", message="A CV is required to start an interview")

        try:
            jd = await self._ingestor.ingest(jd_path, DocumentType.JD) if jd_path else None
            cv = await self._ingestor.ingest(cv_path, DocumentType.CV)
            questions = (
                await self._ingestor.ingest(questions_path, DocumentType.QUESTIONS)
                if questions_path
                else None
            )
        except InterviewError as e:
            self._logger.error(f"Document ingestion failed: {e}")
            raise InterviewStartError(
                "ingestion", message=f"Failed to process uploaded documents: {e.message}"
            ) from e

        return await self.start_interview(cv, jd, questions, origin=origin)

    async def start_interview(
        self,
        cv: DocumentRecord | None,
        jd: DocumentRecord | None = None,
        questions: DocumentRecord | None = None,
        origin: Subscription | None = None,
    ) -> tuple[InterviewSessionRecord, MessageRecord]:
        """
        Start a new interview session and produce the opening turn.

        Args:
            cv: Ingested candidate CV (mandatory).
            jd: Ingested job description, if any.
            questions: Ingested suggested question list, if any.
            origin: Subscription of the initiator, excluded from broadcast.

        Returns:
            The new session and its opening assistant message.

        Raises:
            InterviewStartError: If any stage fails. session_id is set when the
                session was committed before the failure; resume_interview()
                can then produce the missing opening turn.
        """
        stage = "session"
        session: InterviewSessionRecord | None = None
        try:
            session = await self._store.create_session(
                cv.id if cv else None,
                jd.id if jd else None,
                questions.id if questions else None,
            )
            self._logger.info(f"Starting interview for session {session.id}")

            stage = "model"
            self._claim(session.id)
            try:
                message = await self._respond(session.id, origin)
            finally:
                self._release(session.id)
        except InterviewError as e:
            session_id = session.id if session else None
            self._logger.error(f"Failed to start interview during {stage}: {e}")
            raise InterviewStartError(
                stage,
                session_id=session_id,
                message=f"Failed to start interview: {e.message}",
            ) from e
        except SQLAlchemyError as e:
            session_id = session.id if session else None
            self._logger.error(f"Database error while starting interview during {stage}: {e}", exc_info=True)
            raise InterviewStartError(
                stage,
                session_id=session_id,
                message="Failed to start interview: the interview could not be stored",
            ) from e

        return session, message

    async def submit_user_turn(
        self,
        session_id: int | None,
        user_text: str,
        origin: Subscription | None = None,
    ) -> MessageRecord | None:
        """
        Record a candidate turn and produce the interviewer's reply.

        The user message is persisted and broadcast before the model is
        called, so a failed model call never loses the candidate's input.

        Args:
            session_id: Session to continue.
            user_text: The candidate's message.
            origin: Subscription of the initiator, excluded from broadcast.

        Returns:
            The assistant reply, or None when the input was empty or no
            session was given.

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionEndedError: If the session has ended.
            TurnInProgressError: If another turn is still being processed.
            ModelInvocationError: If the model call fails (the user message stays).
            ModelTimeoutError: If the model call exceeds its time budget.
        """
        if session_id is None or not user_text or not user_text.strip():
            return None

        session = await self._store.require_session(session_id)
        if not session.is_active:
            raise SessionEndedError(session_id)

        self._claim(session_id)
        try:
            user_message = await self._store.append_message(session_id, MessageRole.USER, user_text)
            self._publisher.publish(user_message, origin)
            return await self._respond(session_id, origin)
        finally:
            self._release(session_id)

    async def resume_interview(
        self,
        session_id: int,
        origin: Subscription | None = None,
    ) -> MessageRecord | None:
        """
        Produce the reply a session is still waiting for.

        Covers a failed opening turn (no messages yet) and a failed reply to
        the last candidate turn. Does nothing if the last message is already
        an assistant reply.

        Args:
            session_id: Session to resume.
            origin: Subscription of the initiator, excluded from broadcast.

        Returns:
            The new assistant message, or None if nothing was pending.

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionEndedError: If the session has ended.
            TurnInProgressError: If another turn is still being processed.
            ModelInvocationError: If the model call fails.
        """
        session = await self._store.require_session(session_id)
        if not session.is_active:
            raise SessionEndedError(session_id)

        self._claim(session_id)
        try:
            messages = await self._store.get_messages(session_id)
            if messages and messages[-1].role == MessageRole.ASSISTANT:
                return None
            self._logger.info(f"Resuming session {session_id} with {len(messages)} message(s)")
            return await self._respond(session_id, origin)
        finally:
            self._release(session_id)

    async def end_interview(self, session_id: int) -> InterviewSessionRecord:
        """
        End an interview and tear down its broadcast channel.

        Args:
            session_id: Session to end.

        Returns:
            The ended session.
        """
        session = await self._store.end_session(session_id)
        self._publisher.close_channel(session_id)
        return session

    async def build_chat_context(self, session_id: int) -> list[ChatMessage]:
        """
        Rebuild the full model context for a session.

        Args:
            session_id: Session identifier.

        Returns:
            The freshly composed system prompt followed by every persisted
            message in order.
        """
        documents = await self._store.get_documents(session_id)
        system_prompt = self._composer.compose(documents)
        history = await self._store.get_messages(session_id)

        context = [ChatMessage(role=MessageRole.SYSTEM.value, content=system_prompt)]
        context.extend(ChatMessage(role=m.role.value, content=m.content) for m in history)
        return context

    async def _respond(self, session_id: int, origin: Subscription | None) -> MessageRecord:
        """Call the model on the full history, then persist and publish its reply."""
        context = await self.build_chat_context(session_id)
        reply = await self._invoke_model(session_id, context)

        message = await self._store.append_message(session_id, MessageRole.ASSISTANT, reply)
        self._publisher.publish(message, origin)
        return message

    async def _invoke_model(self, session_id: int, context: list[ChatMessage]) -> str:
        """
        Invoke the language model once within the time budget.

        Raises:
            ModelTimeoutError: If the call exceeds the time budget.
            ModelInvocationError: If the call fails or returns no text.
        """
        self._logger.debug(f"Invoking model for session {session_id} with {len(context)} message(s)")
        try:
            response = await asyncio.wait_for(
                self._llm_client.chat(context, timeout=self._model_timeout),
                timeout=self._model_timeout,
            )
        except asyncio.TimeoutError as e:
            self._logger.error(f"Model call for session {session_id} timed out after {self._model_timeout}s")
            raise ModelTimeoutError(
                f"Language model did not answer within {self._model_timeout} seconds",
                {"session_id": session_id},
            ) from e
        except ModelInvocationError as e:
            self._logger.error(f"Model call for session {session_id} failed: {e}")
            raise
        except Exception as e:
            self._logger.error(f"Model call for session {session_id} failed: {e}", exc_info=True)
            raise ModelInvocationError(
                f"Language model call failed: {e}",
                {"session_id": session_id},
            ) from e

        content = (response.content or "").strip()
        if not content:
            raise ModelInvocationError(
                "Language model returned an empty response",
                {"session_id": session_id},
            )
        return content
