"""Tests for lms.tui.keys -- keyboard input parsing and matching."""

from __future__ import annotations

import pytest

from lms.tui.keys import (
    MODIFIERS,
    is_kitty_protocol_active,
    is_printable_input,
    key_ids_for,
    matches_key,
    normalize_key_id,
    parse_key,
    parse_key_id,
    set_kitty_protocol_active,
)


# ---------------------------------------------------------------------------
# Key identifiers
# ---------------------------------------------------------------------------


class TestParseKeyId:
    def test_plain_key(self) -> None:
        parsed = parse_key_id("a")
        assert parsed is not None
        assert parsed.key == "a"
        assert parsed.modifiers == 0

    def test_modifiers(self) -> None:
        parsed = parse_key_id("ctrl+shift+left")
        assert parsed is not None
        assert parsed.key == "left"
        assert parsed.modifiers == MODIFIERS["ctrl"] | MODIFIERS["shift"]

    def test_plus_key(self) -> None:
        parsed = parse_key_id("ctrl++")
        assert parsed is not None
        assert parsed.key == "+"
        assert parsed.modifiers == MODIFIERS["ctrl"]

    @pytest.mark.parametrize("key_id", ["", "ctrl", "a+b"])
    def test_invalid(self, key_id: str) -> None:
        assert parse_key_id(key_id) is None

    def test_normalize_orders_modifiers(self) -> None:
        assert normalize_key_id("alt+ctrl+x") == "ctrl+alt+x"
        assert normalize_key_id("Ctrl+Esc") == "ctrl+escape"
        assert normalize_key_id("Return") == "enter"


# ---------------------------------------------------------------------------
# Legacy sequences
# ---------------------------------------------------------------------------


class TestLegacySequences:
    @pytest.mark.parametrize(
        "data,expected",
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1b[C", "right"),
            ("\x1b[D", "left"),
            ("\x1b[H", "home"),
            ("\x1b[F", "end"),
            ("\x1bOH", "home"),
            ("\x1b[1~", "home"),
            ("\x1b[4~", "end"),
            ("\x1b[3~", "delete"),
            ("\x1b[Z", "shift+tab"),
            ("\x1b[1;5D", "ctrl+left"),
            ("\x1b[1;3C", "alt+right"),
            ("\x1b[3;3~", "alt+delete"),
        ],
    )
    def test_escape_sequences(self, data: str, expected: str) -> None:
        assert parse_key(data) == expected

    @pytest.mark.parametrize(
        "data,expected",
        [
            ("\r", "enter"),
            ("\t", "tab"),
            ("\x7f", "backspace"),
            ("\x1b", "escape"),
            ("\x01", "ctrl+a"),
            ("\x17", "ctrl+w"),
            ("\x03", "ctrl+c"),
        ],
    )
    def test_control_characters(self, data: str, expected: str) -> None:
        assert parse_key(data) == expected

    def test_esc_prefix_is_alt(self) -> None:
        assert parse_key("\x1bb") == "alt+b"
        assert parse_key("\x1b\x7f") == "alt+backspace"
        assert parse_key("\x1b\r") == "alt+enter"

    def test_backspace_byte_is_ambiguous(self) -> None:
        assert matches_key("\x08", "backspace")
        assert matches_key("\x08", "ctrl+h")

    def test_uppercase_is_shifted(self) -> None:
        assert parse_key("A") == "A"
        assert matches_key("A", "shift+a")

    def test_unknown_tilde_sequence(self) -> None:
        assert parse_key("\x1b[15~") is None


# ---------------------------------------------------------------------------
# Kitty and modifyOtherKeys
# ---------------------------------------------------------------------------


class TestExtendedProtocols:
    def test_csi_u_with_modifier(self) -> None:
        assert parse_key("\x1b[97;5u") == "ctrl+a"
        assert parse_key("\x1b[13;2u") == "shift+enter"

    def test_csi_u_release_is_ignored(self) -> None:
        assert key_ids_for("\x1b[97;5:3u") == []

    def test_csi_u_base_layout_key(self) -> None:
        # Cyrillic "ц" with base layout key "w"
        assert matches_key("\x1b[1094::119;5u", "ctrl+w")

    def test_lock_bits_are_ignored(self) -> None:
        # ctrl with caps lock (64) set
        assert parse_key("\x1b[97;69u") == "ctrl+a"

    def test_modify_other_keys(self) -> None:
        assert parse_key("\x1b[27;5;13~") == "ctrl+enter"

    def test_kitty_flag(self) -> None:
        assert is_kitty_protocol_active() is False
        set_kitty_protocol_active(True)
        try:
            assert is_kitty_protocol_active() is True
        finally:
            set_kitty_protocol_active(False)


class TestMatchesKey:
    def test_modifier_order_does_not_matter(self) -> None:
        assert matches_key("\x1b[1;7D", "alt+ctrl+left")

    def test_wrong_modifier(self) -> None:
        assert not matches_key("\x1b[1;5D", "alt+left")

    def test_invalid_key_id(self) -> None:
        assert not matches_key("a", "")


class TestPrintable:
    def test_text(self) -> None:
        assert is_printable_input("hello world")
        assert is_printable_input("日本")

    def test_control(self) -> None:
        assert not is_printable_input("")
        assert not is_printable_input("\x1b[A")
        assert not is_printable_input("a\n")
