"""Flattening and terminal rendering of the chat input buffer.

Text segments are shown verbatim; each paste is replaced by a fixed-format
placeholder such as ``[Pasted 1200 characters]``. The flattened cursor
column and the placeholder spans are derived from the segment list.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lms.chat.input_state import ChatUserInputState, LargePasteSegment, TextSegment
from lms.tui.utils import grapheme_at, truncate_to_width

PROMPT = "› "
CONTINUATION_PREFIX = "  "
EMPTY_INPUT_HINT = "Type a message or use / to use commands"

_INVERSE = "\x1b[7m"
_INVERSE_OFF = "\x1b[27m"
_PASTE_COLOR = "\x1b[34m"
_PROMPT_COLOR = "\x1b[36m"
_DEFAULT_COLOR = "\x1b[39m"
_DIM = "\x1b[2m"
_DIM_OFF = "\x1b[22m"


def large_paste_placeholder(segment: LargePasteSegment) -> str:
    return f"[Pasted {len(segment.content)} characters]"


def segment_display_text(segment: TextSegment | LargePasteSegment) -> str:
    if isinstance(segment, LargePasteSegment):
        return large_paste_placeholder(segment)
    return segment.content


@dataclass(frozen=True)
class PasteRange:
    """Half-open span ``[start, end)`` of a placeholder in the flattened text."""

    start: int
    end: int


@dataclass
class FlattenedChatInput:
    full_text: str
    cursor_position: int
    paste_ranges: list[PasteRange] = field(default_factory=list)


def flatten_chat_input(state: ChatUserInputState) -> FlattenedChatInput:
    """Flatten *state* into display text, a cursor column and paste spans.

    A cursor on a paste counts as 0 columns into it at the start boundary and
    the full placeholder width otherwise.
    """
    parts: list[str] = []
    paste_ranges: list[PasteRange] = []
    cursor_position = 0
    position = 0

    for index, segment in enumerate(state.segments):
        display = segment_display_text(segment)
        if isinstance(segment, LargePasteSegment):
            paste_ranges.append(PasteRange(position, position + len(display)))

        if index < state.cursor_on_segment_index:
            cursor_position += len(display)
        elif index == state.cursor_on_segment_index:
            offset = state.cursor_in_segment_offset
            if isinstance(segment, TextSegment):
                cursor_position += max(0, min(offset, len(display)))
            elif offset != 0:
                cursor_position += len(display)

        parts.append(display)
        position += len(display)

    return FlattenedChatInput(
        full_text="".join(parts),
        cursor_position=cursor_position,
        paste_ranges=paste_ranges,
    )


def _cursor_span(
    state: ChatUserInputState, flat: FlattenedChatInput
) -> tuple[int, int] | None:
    """Return the span drawn in inverse video, or ``None`` for an end-of-line cursor."""
    index = state.cursor_on_segment_index
    if 0 <= index < len(state.segments):
        segment = state.segments[index]
        if isinstance(segment, LargePasteSegment) and state.cursor_in_segment_offset == 0:
            start = flat.cursor_position
            return (start, start + len(large_paste_placeholder(segment)))

    position = flat.cursor_position
    if position >= len(flat.full_text) or flat.full_text[position] == "\n":
        return None
    return (position, position + len(grapheme_at(flat.full_text, position)))


def _in_paste(position: int, paste_ranges: list[PasteRange]) -> bool:
    return any(r.start <= position < r.end for r in paste_ranges)


def _style_line(
    flat: FlattenedChatInput,
    start: int,
    end: int,
    cursor_span: tuple[int, int] | None,
) -> str:
    stops = {end}
    for r in flat.paste_ranges:
        stops.update((r.start, r.end))
    if cursor_span is not None:
        stops.update(cursor_span)

    out: list[str] = []
    i = start
    while i < end:
        if cursor_span is not None and i == cursor_span[0]:
            chunk_end = min(cursor_span[1], end)
            chunk = flat.full_text[i:chunk_end]
            if _in_paste(i, flat.paste_ranges):
                chunk = f"{_PASTE_COLOR}{chunk}{_DEFAULT_COLOR}"
            out.append(f"{_INVERSE}{chunk}{_INVERSE_OFF}")
            i = chunk_end
            continue

        next_stop = min(s for s in stops if s > i)
        chunk = flat.full_text[i:next_stop]
        if _in_paste(i, flat.paste_ranges):
            chunk = f"{_PASTE_COLOR}{chunk}{_DEFAULT_COLOR}"
        out.append(chunk)
        i = next_stop

    return "".join(out)


def render_chat_input_lines(
    state: ChatUserInputState,
    width: int,
    *,
    focused: bool = True,
    prompt: str = PROMPT,
    hint: str = EMPTY_INPUT_HINT,
) -> list[str]:
    """Render *state* as ANSI-styled terminal lines no wider than *width*.

    Embedded newlines in text start a new line indented under the prompt.
    Lines wider than *width* are truncated rather than wrapped.
    """
    prompt_prefix = f"{_PROMPT_COLOR}{prompt}{_DEFAULT_COLOR}"
    flat = flatten_chat_input(state)

    if not flat.full_text:
        cursor = f"{_INVERSE} {_INVERSE_OFF}" if focused else ""
        return [truncate_to_width(f"{prompt_prefix}{cursor}{_DIM}{hint}{_DIM_OFF}", width)]

    cursor_span = _cursor_span(state, flat) if focused else None

    lines: list[str] = []
    line_start = 0
    for line_no, line in enumerate(flat.full_text.split("\n")):
        line_end = line_start + len(line)
        body = _style_line(flat, line_start, line_end, cursor_span)
        if focused and cursor_span is None and flat.cursor_position == line_end:
            body += f"{_INVERSE} {_INVERSE_OFF}"
        prefix = prompt_prefix if line_no == 0 else CONTINUATION_PREFIX
        lines.append(truncate_to_width(prefix + body, width))
        line_start = line_end + 1

    return lines
