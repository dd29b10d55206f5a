"""
Main entry point for the Mock Interviewer application.
"""

import argparse
import asyncio
import logging
import sys

from mock_interviewer.config import get_settings
from mock_interviewer.db.database import Database
from mock_interviewer.db.session_store import SessionStore
from mock_interviewer.documents.ingestor import DocumentIngestor
from mock_interviewer.io.text_interface import TextInterface
from mock_interviewer.models.llm_client import LLMClient
from mock_interviewer.orchestrator.broadcast import BroadcastPublisher
from mock_interviewer.orchestrator.conversation import ConversationOrchestrator


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(prog="mock-interviewer")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the database schema before running",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Start a new interview from uploaded documents")
    start.add_argument("--cv", required=True, help="Path to the candidate CV (pdf, docx, doc, txt)")
    start.add_argument("--jd", help="Path to the job description")
    start.add_argument("--questions", help="Path to a suggested question list")

    resume = subparsers.add_parser("resume", help="Continue an existing interview")
    resume.add_argument("session_id", type=int, help="Interview session id")

    history = subparsers.add_parser("history", help="List recent interviews")
    history.add_argument("--limit", type=int, default=20, help="Number of sessions to list")

    return parser


async def run_interview(argv: list[str] | None = None) -> None:
    """
    Run the requested interview command.

    This is the main async entry point that initializes all components
    and dispatches to the text interface.
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logger = logging.getLogger(__name__)

    logger.info("Initializing Mock Interviewer...")
    logger.debug(f"Using LLM model: {settings.llm_model_name}")

    database = Database(settings.database_url, echo=settings.debug)
    if args.create_tables:
        await database.create_all()

    store = SessionStore(database)
    llm_client = LLMClient(
        model=settings.llm_model_name,
        timeout=settings.llm_timeout,
    )
    orchestrator = ConversationOrchestrator(
        store=store,
        llm_client=llm_client,
        publisher=BroadcastPublisher(),
        ingestor=DocumentIngestor(store),
    )
    interface = TextInterface(orchestrator, store)

    try:
        if args.command == "start":
            await interface.run_new(args.cv, args.jd, args.questions)
        elif args.command == "resume":
            await interface.run_resume(args.session_id)
        else:
            await interface.show_history(args.limit)
    finally:
        await llm_client.close()
        await database.dispose()


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        asyncio.run(run_interview(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nInterview session terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
