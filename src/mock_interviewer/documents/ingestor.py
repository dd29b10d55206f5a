"""
Document ingestion.

Turns an uploaded file into a persisted Document: extracts its text with the
format-specific extractor, sanitizes it and stores exactly one record.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from mock_interviewer.config import get_settings
from mock_interviewer.documents.extractors import DocumentExtractor, extension_of
from mock_interviewer.documents.sanitizer import sanitize
from mock_interviewer.errors import IngestionError, ValidationError
from mock_interviewer.orchestrator.schemas import DocumentRecord, DocumentType

if TYPE_CHECKING:
    from mock_interviewer.db.session_store import SessionStore

logger = logging.getLogger(__name__)


def validate_upload(
    file_path: str | Path,
    allowed_extensions: list[str] | None = None,
    max_bytes: int | None = None,
) -> Path:
    """
    Check an upload against the accepted extensions and size limit.

    Args:
        file_path: Path to the uploaded file.
        allowed_extensions: Accepted extensions. Defaults to settings.
        max_bytes: Maximum size in bytes. Defaults to settings.

    Returns:
        The upload path.

    Raises:
        ValidationError: If the file is missing, of an unsupported type or too large.
    """
    settings = get_settings()
    allowed = allowed_extensions or settings.allowed_extensions
    limit = max_bytes or settings.max_upload_bytes
    path = Path(file_path)

    if not path.is_file():
        raise ValidationError(f"Upload not found: {path}", {"path": str(path)})

    extension = extension_of(path)
    if extension not in allowed:
        raise ValidationError(
            f"Unsupported file type '.{extension}' (accepted: {', '.join(allowed)})",
            {"path": str(path), "extension": extension},
        )

    size = path.stat().st_size
    if size > limit:
        raise ValidationError(
            f"Upload {path.name} is {size} bytes, limit is {limit}",
            {"path": str(path), "size": size},
        )
    return path


class DocumentIngestor:
    """
    Service for ingesting uploaded documents.

    Dispatches on file extension, repairs the extracted text and persists one
    Document per successful call. Extraction failures are never retried.
    """

    def __init__(
        self,
        store: SessionStore,
        extractor: DocumentExtractor | None = None,
    ) -> None:
        """
        Initialize the document ingestor.

        Args:
            store: Store used to persist documents.
            extractor: Text extractor. Creates default if None.
        """
        self._store = store
        self._extractor = extractor or DocumentExtractor()

    async def ingest(
        self,
        file_path: str | Path,
        declared_type: DocumentType | str,
        original_name: str | None = None,
    ) -> DocumentRecord:
        """
        Ingest an uploaded file as a Document.

        Args:
            file_path: Path to the uploaded file.
            declared_type: Role of the document (jd, cv or questions).
            original_name: Client-side filename. Defaults to the path's name.

        Returns:
            The persisted document.

        Raises:
            ValidationError: If the declared type is unknown.
            IngestionError: If text could not be extracted.
        """
        try:
            document_type = DocumentType(declared_type)
        except ValueError as e:
            raise ValidationError(f"Unknown document type: {declared_type!r}") from e

        path = Path(file_path)
        name = original_name or path.name
        extension = extension_of(original_name or path)

        logger.info(f"Ingesting {document_type.value} document: {name}")

        # Parsing blocks on file I/O and CPU, keep it off the event loop.
        loop = asyncio.get_running_loop()
        try:
            raw = await loop.run_in_executor(
                None,
                lambda: self._extractor.extract(path, extension),
            )
        except Exception as e:
            logger.error(f"Extraction failed for {name}: {e}")
            raise IngestionError(
                f"Could not extract text from {name}: {e}",
                {"name": name, "type": document_type.value},
            ) from e

        content = sanitize(raw)
        if not content.strip():
            logger.warning(f"No text extracted from {name}")

        document = await self._store.save_document(document_type, name, content)
        logger.info(f"Stored document {document.id} ({len(content)} chars)")
        return document
