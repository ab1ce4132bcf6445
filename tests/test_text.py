import pytest

from research_tool.services.text import is_weak, normalize_extracted_text, signal_length


class TestSignalLength:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("", 0),
            ("   \n\t  ", 0),
            ("abc", 3),
            ("a b\tc\nd", 4),
            ("  revenue  up 5%  ", 11),
            (" x y", 2),
        ],
    )
    def test_counts_non_whitespace(self, text: str, expected: int) -> None:
        assert signal_length(text) == expected

    @pytest.mark.parametrize("text", ["", "word", "two words", " lead", "tab\tand\nnewline  "])
    def test_equals_length_minus_whitespace(self, text: str) -> None:
        whitespace = sum(1 for ch in text if ch.isspace())
        assert signal_length(text) == len(text) - whitespace
        assert signal_length(text) <= len(text)

    def test_none_is_zero(self) -> None:
        assert signal_length(None) == 0

    def test_is_weak_uses_threshold(self) -> None:
        assert is_weak("x" * 39, 40)
        assert not is_weak("x" * 40, 40)


class TestNormalizeExtractedText:
    def test_crlf_to_lf(self) -> None:
        assert normalize_extracted_text("a\r\nb") == "a\nb"

    def test_collapses_horizontal_whitespace(self) -> None:
        assert normalize_extracted_text("a  \t  b") == "a b"

    def test_collapses_blank_lines_to_one(self) -> None:
        assert normalize_extracted_text("a\n\n\n\n\nb") == "a\n\nb"

    def test_keeps_single_blank_line(self) -> None:
        assert normalize_extracted_text("a\n\nb") == "a\n\nb"

    def test_trims(self) -> None:
        assert normalize_extracted_text("  \n hello \n  ") == "hello"

    def test_empty(self) -> None:
        assert normalize_extracted_text("") == ""
