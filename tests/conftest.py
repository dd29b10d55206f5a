"""
Shared fixtures: a throwaway SQLite database and the store on top of it.
"""

import pytest

from mock_interviewer.db.database import Database
from mock_interviewer.db.session_store import SessionStore
from mock_interviewer.orchestrator.schemas import DocumentRecord, DocumentType


@pytest.fixture
async def database(tmp_path) -> Database:
    """Create a fresh SQLite database with the schema in place."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'interviews.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def store(database: Database) -> SessionStore:
    """Create a SessionStore over the test database."""
    return SessionStore(database)


@pytest.fixture
async def cv_document(store: SessionStore) -> DocumentRecord:
    """A stored CV document."""
    return await store.save_document(
        DocumentType.CV,
        "jane_doe_cv.pdf",
        "Jane Doe\nSenior Python developer, 8 years of experience with Django and PostgreSQL.",
    )


@pytest.fixture
async def jd_document(store: SessionStore) -> DocumentRecord:
    """A stored job description document."""
    return await store.save_document(
        DocumentType.JD,
        "backend_engineer.docx",
        "Backend Engineer at Acme. Build REST APIs in Python. Kubernetes is a plus.",
    )


@pytest.fixture
async def questions_document(store: SessionStore) -> DocumentRecord:
    """A stored suggested question list."""
    return await store.save_document(
        DocumentType.QUESTIONS,
        "questions.txt",
        "1. Describe a difficult production incident.\n2. How do you design database migrations?",
    )
