"""Keyboard input parsing and matching for terminal applications.

Recognises legacy xterm sequences (CSI and SS3, with or without modifier
parameters), ESC-prefixed alt combinations, raw control characters, the
xterm ``modifyOtherKeys`` form and the kitty keyboard protocol (CSI u).

Key identifiers look like ``"a"``, ``"ctrl+w"``, ``"alt+left"`` or
``"shift+enter"``. :func:`matches_key` checks raw input against one of them;
:func:`parse_key` returns the canonical identifier for raw input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

KeyId = str

# ---------------------------------------------------------------------------
# Global state: kitty keyboard protocol
# ---------------------------------------------------------------------------

_kitty_protocol_active: bool = False


def set_kitty_protocol_active(active: bool) -> None:
    global _kitty_protocol_active
    _kitty_protocol_active = active


def is_kitty_protocol_active() -> bool:
    return _kitty_protocol_active


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

# Caps lock and num lock bits reported by kitty
LOCK_MASK = 64 + 128

_MODIFIER_ORDER = ("ctrl", "shift", "alt")

_KEY_ALIASES: dict[str, str] = {
    "esc": "escape",
    "return": "enter",
}

# Codepoints with a name in kitty CSI u / modifyOtherKeys encodings
_NAMED_CODEPOINTS: dict[int, str] = {
    8: "backspace",
    9: "tab",
    13: "enter",
    27: "escape",
    32: "space",
    127: "backspace",
    57414: "enter",  # keypad enter
}

# Final byte of CSI / SS3 cursor-key sequences
_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

# Number in CSI <n> ~ sequences
_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    7: "home",
    8: "end",
}

# Raw control characters that name a key in their own right
_CONTROL_CHAR_KEYS: dict[str, tuple[str, ...]] = {
    "\x00": ("ctrl+space",),
    "\x08": ("backspace", "ctrl+backspace", "ctrl+h"),
    "\t": ("tab", "ctrl+i"),
    "\n": ("enter", "ctrl+j"),
    "\r": ("enter", "ctrl+m"),
    "\x1b": ("escape",),
    "\x7f": ("backspace",),
}

_CSI_U_RE = re.compile(r"^\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$")
_CSI_LETTER_RE = re.compile(r"^\x1b\[(?:1;(\d+)(?::(\d+))?)?([ABCDHF])$")
_SS3_LETTER_RE = re.compile(r"^\x1bO([ABCDHF])$")
_CSI_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+)(?::(\d+))?)?~$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")

# Kitty event types
_EVENT_RELEASE = 3


# ---------------------------------------------------------------------------
# Key id helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedKeyId:
    key: str
    modifiers: int


def parse_key_id(key_id: str) -> ParsedKeyId | None:
    """Split a key identifier like ``"ctrl+shift+a"`` into key and modifier bits.

    Returns ``None`` for an empty identifier or one with no base key.
    """
    if not key_id:
        return None
    # A trailing "+" is the plus key itself
    parts = key_id[:-1].split("+") + ["+"] if key_id.endswith("+") else key_id.split("+")

    modifiers = 0
    keys: list[str] = []
    for part in parts:
        lower = part.lower()
        if lower in MODIFIERS:
            modifiers |= MODIFIERS[lower]
        elif part:
            keys.append(part)

    if len(keys) != 1:
        return None
    key = keys[0]
    key = _KEY_ALIASES.get(key.lower(), key)
    if len(key) == 1:
        key = key.lower()
    return ParsedKeyId(key=key, modifiers=modifiers)


def format_key_id(key: str, modifiers: int) -> KeyId:
    prefix = "".join(f"{name}+" for name in _MODIFIER_ORDER if modifiers & MODIFIERS[name])
    return prefix + key


def normalize_key_id(key_id: str) -> KeyId | None:
    """Return *key_id* with modifiers in canonical ``ctrl+shift+alt+`` order."""
    parsed = parse_key_id(key_id)
    if parsed is None:
        return None
    return format_key_id(parsed.key, parsed.modifiers)


def _decode_modifier(raw: str | None) -> int:
    if not raw:
        return 0
    return (int(raw) - 1) & ~LOCK_MASK


# ---------------------------------------------------------------------------
# Sequence decoding
# ---------------------------------------------------------------------------


def _codepoint_key_ids(codepoint: int, modifiers: int) -> list[KeyId]:
    name = _NAMED_CODEPOINTS.get(codepoint)
    if name is not None:
        return [format_key_id(name, modifiers)]
    if codepoint <= 0 or codepoint > 0x10FFFF:
        return []
    ch = chr(codepoint)
    if not ch.isprintable():
        return []
    if ch.isupper():
        return [format_key_id(ch.lower(), modifiers | MODIFIERS["shift"])]
    return [format_key_id(ch, modifiers)]


def _decode_escape_sequence(data: str) -> list[KeyId] | None:
    """Decode a CSI / SS3 sequence. Returns ``None`` when *data* is not one."""
    m = _CSI_U_RE.match(data)
    if m:
        if m.group(5) and int(m.group(5)) == _EVENT_RELEASE:
            return []
        modifiers = _decode_modifier(m.group(4))
        ids = _codepoint_key_ids(int(m.group(1)), modifiers)
        if m.group(3):
            # Base layout key: lets ctrl+w match on non-latin layouts
            ids += _codepoint_key_ids(int(m.group(3)), modifiers)
        return ids

    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        return _codepoint_key_ids(int(m.group(2)), _decode_modifier(m.group(1)))

    m = _CSI_LETTER_RE.match(data)
    if m:
        if m.group(2) and int(m.group(2)) == _EVENT_RELEASE:
            return []
        return [format_key_id(_LETTER_KEYS[m.group(3)], _decode_modifier(m.group(1)))]

    m = _SS3_LETTER_RE.match(data)
    if m:
        return [_LETTER_KEYS[m.group(1)]]

    m = _CSI_TILDE_RE.match(data)
    if m:
        if m.group(3) and int(m.group(3)) == _EVENT_RELEASE:
            return []
        name = _TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return []
        return [format_key_id(name, _decode_modifier(m.group(2)))]

    if data == "\x1b[Z":
        return ["shift+tab"]

    return None


def _decode_single(ch: str) -> list[KeyId]:
    named = _CONTROL_CHAR_KEYS.get(ch)
    if named is not None:
        return list(named)
    code = ord(ch)
    if 1 <= code <= 26:
        return [f"ctrl+{chr(code + ord('a') - 1)}"]
    if ch.isprintable():
        if ch.isupper():
            return [ch, f"shift+{ch.lower()}"]
        return [ch]
    return []


def key_ids_for(data: str) -> list[KeyId]:
    """Return every key identifier *data* can stand for, most specific first.

    Some raw bytes are ambiguous in legacy terminals (``\\x08`` is both
    backspace and ctrl+h), so more than one identifier may be returned.
    """
    if not data:
        return []

    decoded = _decode_escape_sequence(data)
    if decoded is not None:
        return decoded

    if len(data) == 1:
        return _decode_single(data)

    # ESC-prefixed key: alt + key
    if len(data) == 2 and data[0] == "\x1b":
        ids: list[KeyId] = []
        for key_id in _decode_single(data[1]):
            parsed = parse_key_id(key_id)
            if parsed is not None:
                ids.append(format_key_id(parsed.key, parsed.modifiers | MODIFIERS["alt"]))
        return ids

    return []


def parse_key(data: str) -> KeyId | None:
    """Parse raw terminal input and return its key identifier, or ``None``."""
    ids = key_ids_for(data)
    return ids[0] if ids else None


def matches_key(data: str, key_id: str) -> bool:
    """Return ``True`` if *data* (raw terminal input) matches *key_id*."""
    expected = normalize_key_id(key_id)
    if expected is None:
        return False
    return expected in key_ids_for(data)


def is_printable_input(data: str) -> bool:
    """Return ``True`` if *data* is plain text with no control characters."""
    return bool(data) and all(ch.isprintable() for ch in data)
