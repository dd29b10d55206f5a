"""
Text-based interview interface.

Provides a command-line interface for conducting interviews
via text input/output.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from mock_interviewer.db.session_store import SessionStore
from mock_interviewer.documents.ingestor import validate_upload
from mock_interviewer.errors import InterviewError, InterviewStartError
from mock_interviewer.orchestrator.conversation import ConversationOrchestrator
from mock_interviewer.orchestrator.schemas import MessageRecord, MessageRole

EXIT_COMMANDS = ("quit", "exit", "end")


class InterviewInterface(ABC):
    """Abstract base class for interview interfaces."""

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a message to the user.

        Args:
            message: Message to display.
        """
        ...

    @abstractmethod
    async def receive_input(self) -> str:
        """
        Receive input from the user.

        Returns:
            User's input string.
        """
        ...


class TextInterface(InterviewInterface):
    """
    Command-line text interface for interviews.

    Provides a simple REPL for conducting interviews via terminal.
    """

    def __init__(
        self,
        orchestrator: ConversationOrchestrator,
        store: SessionStore,
    ) -> None:
        """
        Initialize the text interface.

        Args:
            orchestrator: Conversation orchestrator to use.
            store: Session store for transcripts and history.
        """
        self._orchestrator = orchestrator
        self._store = store

    async def run_new(
        self,
        cv_path: str | Path,
        jd_path: str | Path | None = None,
        questions_path: str | Path | None = None,
    ) -> None:
        """Upload documents, start a new interview and run the conversation loop."""
        print("\n" + "=" * 60)
        print("Welcome to the Mock Interviewer")
        print("=" * 60 + "\n")

        try:
            for path in (jd_path, cv_path, questions_path):
                if path:
                    validate_upload(path)
            print("Processing documents...")
            session, opening = await self._orchestrator.start_from_uploads(
                cv_path, jd_path, questions_path
            )
        except InterviewStartError as e:
            print(f"Could not start the interview: {e.user_message}")
            if e.session_id is not None:
                print(f"Retry later with: resume {e.session_id}")
            return
        except InterviewError as e:
            print(f"Could not start the interview: {e.user_message}")
            return

        print(f"Session #{session.id} started.")
        await self._show(opening)
        await self._loop(session.id)

    async def run_resume(self, session_id: int) -> None:
        """Reload an existing interview, answer any pending turn and continue."""
        session = await self._store.get_session(session_id)
        if session is None:
            print(f"No interview session #{session_id}.")
            return

        for message in await self._store.get_messages(session_id):
            await self._show(message)

        if not session.is_active:
            print(f"Session #{session_id} has ended.")
            return

        try:
            pending = await self._orchestrator.resume_interview(session_id)
        except InterviewError as e:
            print(f"Could not resume the interview: {e.user_message}")
            return
        if pending:
            await self._show(pending)
        await self._loop(session_id)

    async def show_history(self, limit: int = 20) -> None:
        """Print the most recent interview sessions."""
        sessions = await self._store.list_sessions(limit)
        if not sessions:
            print("No interviews yet.")
            return

        print("\nInterview history:")
        for summary in sessions:
            jd = f" / JD: {summary.jd_name}" if summary.jd_name else ""
            print(
                f"  #{summary.id} [{summary.status.value}] {summary.created_at:%Y-%m-%d %H:%M} "
                f"CV: {summary.cv_name or '-'}{jd}"
            )

    async def _loop(self, session_id: int) -> None:
        """Conversation loop until the candidate ends the interview."""
        while True:
            candidate_input = await self.receive_input()

            if candidate_input.strip().lower() in EXIT_COMMANDS:
                print("\nEnding interview...")
                await self._orchestrator.end_interview(session_id)
                print(f"Session #{session_id} ended.")
                break

            try:
                reply = await self._orchestrator.submit_user_turn(session_id, candidate_input)
            except InterviewError as e:
                print(f"\n[error] {e.user_message}")
                print("Your answer was saved. Send another message to retry.\n")
                continue

            if reply:
                await self._show(reply)

    async def _show(self, message: MessageRecord) -> None:
        speaker = "Interviewer" if message.role == MessageRole.ASSISTANT else "You"
        await self.send_message(f"{speaker}: {message.content}")

    async def send_message(self, message: str) -> None:
        """
        Display a message to the terminal.

        Args:
            message: Message to display.
        """
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        """
        Get input from the terminal.

        Returns:
            User's input string.
        """
        return await self._get_input("You: ")

    async def _get_input(self, prompt: str) -> str:
        """
        Get input with a specific prompt.

        Args:
            prompt: Prompt to display.

        Returns:
            User's input.
        """
        # Using input() for simplicity; in production, could use aioconsole
        try:
            return input(prompt)
        except EOFError:
            return "exit"
