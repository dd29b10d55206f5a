"""
Documents module for upload ingestion.

Extracts, sanitizes and persists the text of uploaded job descriptions,
CVs and question lists.
"""

from mock_interviewer.documents.extractors import DocumentExtractor, extension_of
from mock_interviewer.documents.ingestor import DocumentIngestor, validate_upload
from mock_interviewer.documents.sanitizer import sanitize, sanitize_error_message

__all__ = [
    "DocumentExtractor",
    "DocumentIngestor",
    "extension_of",
    "sanitize",
    "sanitize_error_message",
    "validate_upload",
]
