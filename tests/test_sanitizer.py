import pytest

from mock_interviewer.documents.sanitizer import sanitize, sanitize_error_message
from mock_interviewer.errors import IngestionError

DISALLOWED = {chr(c) for c in range(0x20) if c not in (0x09, 0x0A)} | {"\x7f"}

SAMPLES = [
    "Name: Jane\0Doe",
    b"Name: Jane\x00Doe",
    b"Invalid \xff\xfe bytes \xc3\x28 here",
    b"\xef\xbb\xbfBOM prefixed",
    "Tab\tand newline\nkept, bell\x07 and escape\x1b removed",
    "Windows\r\nline\rendings",
    "Lone surrogate \udcff dropped",
    "Decomposed é and control between e\x01́",
    b"\x00\x01\x02\x03",
    "",
]


class TestSanitize:
    """Tests for sanitize()."""

    def test_strips_null_bytes(self) -> None:
        assert sanitize("Name: Jane\0Doe") == "Name: JaneDoe"
        assert sanitize(b"Name: Jane\x00Doe") == "Name: JaneDoe"

    def test_discards_invalid_utf8(self) -> None:
        result = sanitize(b"Invalid \xff\xfe bytes here")
        assert result == "Invalid  bytes here"

    def test_keeps_valid_multibyte_text(self) -> None:
        assert sanitize("Phỏng vấn thử".encode("utf-8")) == "Phỏng vấn thử"

    def test_drops_utf8_bom(self) -> None:
        assert sanitize(b"\xef\xbb\xbfhello") == "hello"

    def test_keeps_tab_and_newline(self) -> None:
        assert sanitize("a\tb\nc") == "a\tb\nc"

    def test_normalizes_line_endings(self) -> None:
        assert sanitize("one\r\ntwo\rthree") == "one\ntwo\nthree"

    def test_strips_control_characters(self) -> None:
        assert sanitize("bell\x07 esc\x1b del\x7f form\x0c") == "bell esc del form"

    def test_empty_and_none(self) -> None:
        assert sanitize("") == ""
        assert sanitize(b"") == ""
        assert sanitize(None) == ""

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_output_has_no_disallowed_characters(self, raw) -> None:
        result = sanitize(raw)
        assert "\0" not in result
        assert not DISALLOWED.intersection(result)
        result.encode("utf-8")  # must be encodable

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw) -> None:
        once = sanitize(raw)
        assert sanitize(once) == once


class TestSanitizeErrorMessage:
    """Tests for sanitize_error_message()."""

    def test_cleans_binary_garbage(self) -> None:
        exc = ValueError("bad header \x00\x01%PDF\udcff\nline two")
        assert sanitize_error_message(exc) == "bad header %PDF line two"

    def test_falls_back_to_type_name(self) -> None:
        assert sanitize_error_message(RuntimeError()) == "RuntimeError"

    def test_truncates(self) -> None:
        message = sanitize_error_message(ValueError("x" * 1000), max_length=50)
        assert len(message) == 50
        assert message.endswith("...")

    def test_interview_error_user_message(self) -> None:
        error = IngestionError("Could not read cv.pdf: \x00\x1fstream\x07 broken")
        assert error.user_message == "Could not read cv.pdf: stream broken"
