"""
Format-specific text extraction.

Lifts raw text out of PDF, Word and plain text uploads. Results are raw:
the caller is expected to pass them through the sanitizer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from docx.table import Table
    from docx.text.paragraph import Paragraph

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = frozenset({"pdf"})
WORD_EXTENSIONS = frozenset({"docx", "doc"})


def extension_of(path: str | Path) -> str:
    """Return the lower-cased extension of a path without the leading dot."""
    return Path(path).suffix.lower().lstrip(".")


def _read_pdf(file_path: Path) -> str:
    """
    Read text content from a PDF file.

    Args:
        file_path: Path to the PDF file.

    Returns:
        Page texts joined by newlines.
    """
    import pypdf

    with open(file_path, "rb") as file:
        reader = pypdf.PdfReader(file)
        text_parts = [page.extract_text() or "" for page in reader.pages]

    logger.debug(f"Extracted {len(reader.pages)} pages from {file_path.name}")
    return "\n".join(text_parts)


def _flatten_blocks(blocks: Iterable[Paragraph | Table]) -> str:
    """
    Recursively flatten Word block content into text.

    Every paragraph is followed by a newline; tables are walked cell by cell
    and each cell and each table is followed by a newline as well.
    """
    from docx.text.paragraph import Paragraph

    text = ""
    for block in blocks:
        if isinstance(block, Paragraph):
            text += block.text + "\n"
            continue

        for row in block.rows:
            for cell in row.cells:
                text += _flatten_blocks(cell.iter_inner_content())
                text += "\n"
        text += "\n"
    return text


def _read_docx(file_path: Path) -> str:
    """
    Read text content from a Word file.

    Args:
        file_path: Path to the .docx file.

    Returns:
        Extracted text content.
    """
    from docx import Document

    doc = Document(str(file_path))
    return _flatten_blocks(doc.iter_inner_content())


class DocumentExtractor:
    """
    Dispatches text extraction on file extension.

    pdf goes through pypdf, docx/doc through python-docx and anything else
    is returned as raw bytes to be decoded as plain text.
    """

    def extract(self, path: str | Path, kind: str | None = None) -> str | bytes:
        """
        Extract raw text from a file.

        Args:
            path: Path to the uploaded file.
            kind: Extension to dispatch on. Derived from the path if None.

        Returns:
            Extracted text, or raw bytes for plain text files.

        Raises:
            Any parser-specific exception on malformed input.
        """
        file_path = Path(path)
        kind = (kind or extension_of(file_path)).lower().lstrip(".")

        if kind in PDF_EXTENSIONS:
            return _read_pdf(file_path)
        if kind in WORD_EXTENSIONS:
            return _read_docx(file_path)
        return file_path.read_bytes()
