"""Segmented chat input buffer: segment types, buffer state, and the sanitizer.

The buffer is an ordered list of segments. ``TextSegment`` holds ordinary
editable text; ``LargePasteSegment`` holds a pasted block that is only ever
inserted or removed as a whole. The cursor is addressed as a
``(segment index, offset within segment)`` pair so it can never point into
the middle of a paste.

States are immutable values. Operators in :mod:`lms.chat.input_reducer`
edit a private mutable draft, then run :func:`sanitize_draft` and freeze the
result back into a :class:`ChatUserInputState`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

# ---------------------------------------------------------------------------
# Segment model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextSegment:
    """Ordinary editable text."""

    content: str
    type: Literal["text"] = field(default="text", init=False)


@dataclass(frozen=True)
class LargePasteSegment:
    """Pasted content above the large-paste threshold, addressed atomically."""

    content: str
    type: Literal["largePaste"] = field(default="largePaste", init=False)


ChatInputSegment = Union[TextSegment, LargePasteSegment]


@dataclass(frozen=True)
class ChatUserInputState:
    segments: tuple[ChatInputSegment, ...]
    cursor_on_segment_index: int
    cursor_in_segment_offset: int


def empty_chat_input_state() -> ChatUserInputState:
    """Return the canonical empty buffer: one empty text segment, cursor at (0, 0)."""
    return ChatUserInputState(
        segments=(TextSegment(""),),
        cursor_on_segment_index=0,
        cursor_in_segment_offset=0,
    )


# ---------------------------------------------------------------------------
# Mutable draft used by operators
# ---------------------------------------------------------------------------


@dataclass
class ChatInputDraft:
    segments: list[ChatInputSegment]
    cursor_on_segment_index: int
    cursor_in_segment_offset: int

    @classmethod
    def from_state(cls, state: ChatUserInputState) -> ChatInputDraft:
        return cls(
            segments=list(state.segments),
            cursor_on_segment_index=state.cursor_on_segment_index,
            cursor_in_segment_offset=state.cursor_in_segment_offset,
        )

    def freeze(self) -> ChatUserInputState:
        return ChatUserInputState(
            segments=tuple(self.segments),
            cursor_on_segment_index=self.cursor_on_segment_index,
            cursor_in_segment_offset=self.cursor_in_segment_offset,
        )

    def segment_at(self, index: int) -> ChatInputSegment | None:
        """Return the segment at *index*, or ``None`` when out of range.

        Negative indexes never wrap around.
        """
        if 0 <= index < len(self.segments):
            return self.segments[index]
        return None

    def set_cursor(self, index: int, offset: int) -> None:
        self.cursor_on_segment_index = index
        self.cursor_in_segment_offset = offset


# ---------------------------------------------------------------------------
# Sanitizer
# ---------------------------------------------------------------------------


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _is_trailing_placeholder(segments: list[ChatInputSegment], index: int) -> bool:
    return (
        index == len(segments) - 1
        and index > 0
        and isinstance(segments[index - 1], LargePasteSegment)
    )


def _merge_text_runs(draft: ChatInputDraft) -> None:
    segments = draft.segments
    i = 0
    while i < len(segments) - 1:
        current = segments[i]
        following = segments[i + 1]
        if not (isinstance(current, TextSegment) and isinstance(following, TextSegment)):
            i += 1
            continue

        head_length = len(current.content)
        if draft.cursor_on_segment_index == i:
            # Keep an out-of-range offset from spilling into the merged-in text
            draft.cursor_in_segment_offset = _clamp(
                draft.cursor_in_segment_offset, 0, head_length
            )
        elif draft.cursor_on_segment_index == i + 1:
            draft.set_cursor(
                i,
                head_length
                + _clamp(draft.cursor_in_segment_offset, 0, len(following.content)),
            )
        elif draft.cursor_on_segment_index > i + 1:
            draft.cursor_on_segment_index -= 1

        segments[i] = TextSegment(current.content + following.content)
        del segments[i + 1]


def _remove_empty_text(draft: ChatInputDraft) -> None:
    segments = draft.segments
    for i in range(len(segments) - 1, -1, -1):
        segment = segments[i]
        if not isinstance(segment, TextSegment) or segment.content:
            continue
        if _is_trailing_placeholder(segments, i):
            continue

        del segments[i]
        if draft.cursor_on_segment_index > i:
            draft.cursor_on_segment_index -= 1
        elif draft.cursor_on_segment_index == i:
            if i < len(segments):
                draft.set_cursor(i, 0)
            elif i > 0:
                previous = segments[i - 1]
                draft.set_cursor(
                    i - 1,
                    len(previous.content) if isinstance(previous, TextSegment) else 0,
                )
            else:
                draft.set_cursor(0, 0)


def _clamp_cursor(draft: ChatInputDraft) -> None:
    segments = draft.segments
    index = _clamp(draft.cursor_on_segment_index, 0, len(segments) - 1)
    segment = segments[index]
    offset = _clamp(draft.cursor_in_segment_offset, 0, len(segment.content))

    if isinstance(segment, LargePasteSegment) and offset > 0:
        # A paste's end boundary is the start of whatever follows it
        if index + 1 < len(segments):
            index, offset = index + 1, 0
        else:
            offset = 0

    draft.set_cursor(index, offset)


def sanitize_draft(draft: ChatInputDraft) -> None:
    """Restore the buffer invariants on *draft* in place.

    1. Merge runs of adjacent text segments, carrying the cursor along.
    2. Drop empty text segments, except a trailing one right after a paste.
    3. Reset an empty segment list to a single empty text segment.
    4. Clamp the cursor index, then the offset; a cursor past a paste's start
       is moved onto the adjacent boundary.
    """
    _merge_text_runs(draft)
    _remove_empty_text(draft)

    if not draft.segments:
        draft.segments.append(TextSegment(""))
        draft.set_cursor(0, 0)
        return

    _clamp_cursor(draft)


def sanitize_chat_user_input_state(state: ChatUserInputState) -> ChatUserInputState:
    """Return a copy of *state* with all buffer invariants restored.

    Idempotent: sanitizing an already valid state returns an equal state.
    """
    draft = ChatInputDraft.from_state(state)
    sanitize_draft(draft)
    return draft.freeze()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def get_raw_text(state: ChatUserInputState) -> str:
    """Concatenate every segment's content, with pastes expanded."""
    return "".join(segment.content for segment in state.segments)


def has_large_paste(state: ChatUserInputState) -> bool:
    return any(isinstance(segment, LargePasteSegment) for segment in state.segments)


def is_chat_input_empty(state: ChatUserInputState) -> bool:
    return not get_raw_text(state)


PASTE_PREVIEW_LENGTH = 50


def paste_preview(content: str) -> str:
    """Short single-line description of a paste for transcripts."""
    preview = content[:PASTE_PREVIEW_LENGTH].replace("\r", "").replace("\n", "")
    suffix = "..." if len(content) > PASTE_PREVIEW_LENGTH else ""
    return f"[Pasted {preview}{suffix}]"


def to_user_message_parts(state: ChatUserInputState) -> list[dict[str, str]]:
    """Convert a submitted buffer into message parts.

    Text segments become ``{"type": "text"}`` parts (whitespace-only text is
    dropped); pastes become ``{"type": "largePaste"}`` parts carrying both the
    full content and a short preview.
    """
    parts: list[dict[str, str]] = []
    for segment in state.segments:
        if isinstance(segment, TextSegment):
            if segment.content.strip():
                parts.append({"type": "text", "text": segment.content})
        elif isinstance(segment, LargePasteSegment):
            parts.append(
                {
                    "type": "largePaste",
                    "text": segment.content,
                    "preview": paste_preview(segment.content),
                }
            )
    return parts
