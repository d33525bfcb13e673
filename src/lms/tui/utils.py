"""Terminal text utilities: display width, ANSI-aware truncation, character classes."""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# ANSI escape handling
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"        # CSI
    r"|\x1b\]8;;[^\x07]*\x07"       # OSC 8
)


def strip_ansi(text: str) -> str:
    return _STRIP_RE.sub("", text)


def extract_ansi_code(text: str, pos: int) -> tuple[str, int] | None:
    """Extract a CSI escape sequence starting at *pos* in *text*.

    Returns ``(code, length)`` or ``None`` if no sequence starts at *pos*.
    """
    if pos + 1 >= len(text) or text[pos] != "\x1b" or text[pos + 1] != "[":
        return None

    i = pos + 2
    while i < len(text):
        ch = text[i]
        if ch in "mGKHJ":
            code = text[pos : i + 1]
            return (code, len(code))
        if ch.isdigit() or ch == ";":
            i += 1
            continue
        break
    return None


# ---------------------------------------------------------------------------
# Width measurement
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers and regional indicators render as emoji
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000:
        return 2
    if unicodedata.category(first) in ("Mn", "Me", "Mc", "Cf"):
        return 0
    return max(_wcwidth.wcswidth(g), 0)


def visible_width(text: str) -> int:
    """Calculate the visible terminal width of *text*, ignoring ANSI escapes."""
    if not text:
        return 0

    stripped = strip_ansi(text).replace("\t", "   ")
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def grapheme_at(text: str, index: int) -> str:
    """Return the grapheme cluster starting at code point *index*, or ``""``."""
    if index >= len(text):
        return ""
    return next(grapheme.graphemes(text[index:]), "")


# ---------------------------------------------------------------------------
# Truncation
# ---------------------------------------------------------------------------


def _take_columns(text: str, max_cols: int) -> str:
    """Return a prefix of *text* that fits within *max_cols* columns.

    ANSI codes are kept; the text is cut at grapheme boundaries.
    """
    result: list[str] = []
    cols = 0
    i = 0

    while i < len(text):
        extracted = extract_ansi_code(text, i)
        if extracted is not None:
            code, length = extracted
            result.append(code)
            i += length
            continue

        g = grapheme_at(text, i)
        w = _grapheme_width(g)
        if cols + w > max_cols:
            break
        result.append(g)
        cols += w
        i += len(g)

    return "".join(result)


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """Truncate *text* to fit within *max_width* visible columns.

    The ellipsis counts towards the width. A reset sequence is appended after
    a cut so styling never leaks past the truncated line.
    """
    if max_width <= 0:
        return ""

    if visible_width(text) <= max_width:
        return text

    target_width = max_width - visible_width(ellipsis)
    if target_width <= 0:
        return _take_columns(ellipsis, max_width)

    return _take_columns(text, target_width) + "\x1b[0m" + ellipsis


# ---------------------------------------------------------------------------
# Character classification
# ---------------------------------------------------------------------------


def is_whitespace_char(char: str) -> bool:
    """Return ``True`` if *char* is a whitespace character."""
    return char.isspace()
