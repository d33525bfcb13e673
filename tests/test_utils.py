"""Tests for lms.tui.utils."""

from __future__ import annotations

from lms.tui.utils import (
    extract_ansi_code,
    grapheme_at,
    is_whitespace_char,
    strip_ansi,
    truncate_to_width,
    visible_width,
)


class TestVisibleWidth:
    def test_ascii(self) -> None:
        assert visible_width("hello") == 5

    def test_empty(self) -> None:
        assert visible_width("") == 0

    def test_ignores_ansi(self) -> None:
        assert visible_width("\x1b[31mred\x1b[0m") == 3

    def test_wide_characters(self) -> None:
        assert visible_width("日本") == 4

    def test_combining_marks(self) -> None:
        assert visible_width("e\u0301") == 1

    def test_emoji(self) -> None:
        assert visible_width("👍") == 2


class TestAnsi:
    def test_strip(self) -> None:
        assert strip_ansi("\x1b[7ma\x1b[27m\x1b[34mb\x1b[39m") == "ab"

    def test_extract(self) -> None:
        assert extract_ansi_code("x\x1b[1;34my", 1) == ("\x1b[1;34m", 7)
        assert extract_ansi_code("xy", 0) is None


class TestGraphemeAt:
    def test_combining_sequence(self) -> None:
        assert grapheme_at("e\u0301x", 0) == "e\u0301"

    def test_past_end(self) -> None:
        assert grapheme_at("ab", 2) == ""


class TestTruncateToWidth:
    def test_fits(self) -> None:
        assert truncate_to_width("hello", 10) == "hello"

    def test_truncates_with_ellipsis(self) -> None:
        result = truncate_to_width("hello world", 8)
        assert result == "hello\x1b[0m..."
        assert visible_width(result) == 8

    def test_keeps_ansi_codes(self) -> None:
        result = truncate_to_width("\x1b[34mhello world\x1b[39m", 8)
        assert result.startswith("\x1b[34mhello")

    def test_wide_characters_are_not_split(self) -> None:
        result = truncate_to_width("日本語テキスト", 8)
        assert visible_width(result) <= 8
        assert strip_ansi(result) == "日本..."

    def test_zero_width(self) -> None:
        assert truncate_to_width("hello", 0) == ""

    def test_narrower_than_ellipsis(self) -> None:
        assert truncate_to_width("hello", 2) == ".."


class TestWhitespace:
    def test_whitespace(self) -> None:
        for ch in (" ", "\t", "\n", "　"):
            assert is_whitespace_char(ch)

    def test_non_whitespace(self) -> None:
        for ch in ("a", "-", "日"):
            assert not is_whitespace_char(ch)
