"""
Text sanitization for extracted document content.

PDF and Word parsers regularly emit invalid UTF-8, embedded null bytes and
stray control characters. Everything persisted or sent to the model passes
through sanitize() first.
"""

import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

# Control characters below space except \t and \n, plus DEL.
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_LINE_BREAKS = re.compile(r"\r\n?")


def _decode(raw: str | bytes) -> str:
    """Decode bytes as UTF-8 and drop anything that cannot be represented."""
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            logger.debug(f"Discarding invalid UTF-8 sequences: {e}")
            text = raw.decode("utf-8", errors="ignore")
            return text[1:] if text.startswith("\ufeff") else text

    # Lone surrogates (e.g. from surrogateescape) cannot be stored or serialized.
    return raw.encode("utf-8", errors="ignore").decode("utf-8")


def sanitize(raw: str | bytes | None) -> str:
    """
    Repair raw extracted text into clean, printable text.

    Removes null bytes, discards undecodable byte sequences, normalizes line
    endings to \\n, strips control characters other than newline and tab and
    applies NFC normalization. Never raises for str or bytes input and is
    idempotent.

    Args:
        raw: Text or bytes as produced by an extractor.

    Returns:
        Sanitized text.
    """
    if not raw:
        return ""

    text = _decode(raw)
    text = text.replace("\0", "")
    text = _LINE_BREAKS.sub("\n", text)
    text = _CONTROL_CHARS.sub("", text)
    return unicodedata.normalize("NFC", text)


def sanitize_error_message(exc: BaseException, max_length: int = 500) -> str:
    """
    Render an exception as a single encoding-safe line for display.

    Underlying parser exceptions frequently carry binary fragments in their
    message; those are cleaned the same way as document text.

    Args:
        exc: Exception to render.
        max_length: Maximum length of the returned text.

    Returns:
        Sanitized single-line message.
    """
    text = str(exc)
    if not text:
        text = type(exc).__name__

    cleaned = " ".join(sanitize(text).split())
    if len(cleaned) > max_length:
        cleaned = cleaned[: max_length - 3].rstrip() + "..."
    return cleaned
