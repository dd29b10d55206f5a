"""
Tests for document extraction and ingestion.
"""

from pathlib import Path

import pytest
from docx import Document as WordDocument
from sqlalchemy import func, select

from mock_interviewer.db.database import Database
from mock_interviewer.db.models import DocumentModel
from mock_interviewer.db.session_store import SessionStore
from mock_interviewer.documents.extractors import DocumentExtractor, extension_of
from mock_interviewer.documents.ingestor import DocumentIngestor, validate_upload
from mock_interviewer.errors import IngestionError, ValidationError
from mock_interviewer.orchestrator.schemas import DocumentType


async def _document_count(database: Database) -> int:
    async with database.transaction() as db:
        result = await db.execute(select(func.count()).select_from(DocumentModel))
        return result.scalar_one()


class RecordingExtractor(DocumentExtractor):
    """Extractor that records the kind it was asked to dispatch on."""

    def __init__(self, result: str | bytes) -> None:
        self.result = result
        self.calls: list[tuple[Path, str | None]] = []

    def extract(self, path, kind=None):
        self.calls.append((Path(path), kind))
        return self.result


class FailingExtractor(DocumentExtractor):
    def extract(self, path, kind=None):
        raise ValueError("Invalid object stream \x00\x01 at offset 1234")


class TestExtractors:
    """Tests for the format dispatching extractor."""

    def test_extension_of(self) -> None:
        assert extension_of("cv.PDF") == "pdf"
        assert extension_of(Path("/tmp/jd.docx")) == "docx"
        assert extension_of("notes") == ""

    def test_plain_text_returns_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.txt"
        path.write_bytes(b"Q1\nQ2\n")

        assert DocumentExtractor().extract(path) == b"Q1\nQ2\n"

    def test_unknown_extension_is_plain_text(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.md"
        path.write_bytes(b"# Notes")

        assert DocumentExtractor().extract(path) == b"# Notes"

    def test_docx_flattens_paragraphs_and_tables(self, tmp_path: Path) -> None:
        doc = WordDocument()
        doc.add_paragraph("Jane Doe")
        table = doc.add_table(rows=1, cols=2)
        table.cell(0, 0).text = "Skills"
        table.cell(0, 1).text = "Python"
        doc.add_paragraph("References available on request")
        path = tmp_path / "cv.docx"
        doc.save(str(path))

        text = DocumentExtractor().extract(path)

        lines = [line for line in text.splitlines() if line.strip()]
        assert lines == ["Jane Doe", "Skills", "Python", "References available on request"]
        # Each cell and the table itself end with a newline.
        assert "Skills\n\nPython\n\n\n" in text

    def test_malformed_pdf_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "cv.pdf"
        path.write_bytes(b"this is not a pdf")

        with pytest.raises(Exception):
            DocumentExtractor().extract(path)


class TestDocumentIngestor:
    """Tests for DocumentIngestor."""

    @pytest.mark.asyncio
    async def test_txt_with_null_byte(self, store: SessionStore, tmp_path: Path) -> None:
        path = tmp_path / "cv.txt"
        path.write_bytes(b"Name: Jane\x00Doe")

        document = await DocumentIngestor(store).ingest(path, DocumentType.CV)

        assert document.content == "Name: JaneDoe"
        assert document.type == DocumentType.CV
        assert document.name == "cv.txt"
        assert document.metadata == {}

    @pytest.mark.asyncio
    async def test_invalid_encoding_is_repaired(self, store: SessionStore, tmp_path: Path) -> None:
        path = tmp_path / "jd.txt"
        path.write_bytes(b"Backend \xff\xfeEngineer\x07\r\nRemote")

        document = await DocumentIngestor(store).ingest(path, "jd")

        assert document.content == "Backend Engineer\nRemote"
        assert document.type == DocumentType.JD

    @pytest.mark.asyncio
    async def test_docx_document(self, store: SessionStore, tmp_path: Path) -> None:
        doc = WordDocument()
        doc.add_paragraph("1. Tell me about yourself.")
        doc.add_paragraph("2. Why this company?")
        path = tmp_path / "questions.docx"
        doc.save(str(path))

        document = await DocumentIngestor(store).ingest(path, DocumentType.QUESTIONS)

        assert "1. Tell me about yourself.\n2. Why this company?\n" in document.content

    @pytest.mark.asyncio
    async def test_dispatches_on_original_name(self, store: SessionStore, tmp_path: Path) -> None:
        # Uploaded files usually live under a temporary name without extension.
        path = tmp_path / "upload-8f3a"
        path.write_bytes(b"%PDF")
        extractor = RecordingExtractor("Extracted CV text")

        document = await DocumentIngestor(store, extractor=extractor).ingest(
            path, DocumentType.CV, original_name="Jane Doe CV.pdf"
        )

        assert extractor.calls == [(path, "pdf")]
        assert document.name == "Jane Doe CV.pdf"
        assert document.content == "Extracted CV text"

    @pytest.mark.asyncio
    async def test_extraction_failure_raises_ingestion_error(
        self,
        store: SessionStore,
        database: Database,
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "cv.pdf"
        path.write_bytes(b"%PDF-1.7 truncated")

        with pytest.raises(IngestionError) as exc_info:
            await DocumentIngestor(store, extractor=FailingExtractor()).ingest(path, DocumentType.CV)

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert "\x00" not in exc_info.value.user_message
        assert await _document_count(database) == 0

    @pytest.mark.asyncio
    async def test_malformed_word_file(self, store: SessionStore, database: Database, tmp_path: Path) -> None:
        path = tmp_path / "cv.doc"
        path.write_bytes(b"\xd0\xcf\x11\xe0 legacy binary word file")

        with pytest.raises(IngestionError):
            await DocumentIngestor(store).ingest(path, DocumentType.CV)

        assert await _document_count(database) == 0

    @pytest.mark.asyncio
    async def test_missing_file(self, store: SessionStore, tmp_path: Path) -> None:
        with pytest.raises(IngestionError) as exc_info:
            await DocumentIngestor(store).ingest(tmp_path / "missing.txt", DocumentType.CV)

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_unknown_type(self, store: SessionStore, database: Database, tmp_path: Path) -> None:
        path = tmp_path / "cover_letter.txt"
        path.write_text("Dear hiring manager")

        with pytest.raises(ValidationError, match="Unknown document type"):
            await DocumentIngestor(store).ingest(path, "cover_letter")

        assert await _document_count(database) == 0

    @pytest.mark.asyncio
    async def test_persists_one_document_per_call(
        self,
        store: SessionStore,
        database: Database,
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "cv.txt"
        path.write_text("Jane Doe")
        ingestor = DocumentIngestor(store)

        first = await ingestor.ingest(path, DocumentType.CV)
        second = await ingestor.ingest(path, DocumentType.CV)

        assert first.id != second.id
        assert await _document_count(database) == 2


class TestValidateUpload:
    """Tests for upload validation."""

    def test_accepts_supported_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cv.pdf"
        path.write_bytes(b"%PDF")

        assert validate_upload(path) == path

    def test_rejects_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "cv.exe"
        path.write_bytes(b"MZ")

        with pytest.raises(ValidationError, match="Unsupported file type"):
            validate_upload(path)

    def test_rejects_oversized(self, tmp_path: Path) -> None:
        path = tmp_path / "cv.txt"
        path.write_bytes(b"x" * 2048)

        with pytest.raises(ValidationError, match="limit is 1024"):
            validate_upload(path, max_bytes=1024)

    def test_rejects_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError, match="not found"):
            validate_upload(tmp_path / "nope.txt")
