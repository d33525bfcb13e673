"""Cursor-motion and mutation operators for the chat input buffer.

Every public function takes a :class:`ChatUserInputState` and returns a new,
sanitized one; the argument is never modified. No operator raises: cursor
coordinates that are out of range are treated as no-ops for the edit itself
and then corrected by the sanitizer.

A cursor sitting on a paste at a non-zero offset is treated as being at the
paste's end boundary.
"""

from __future__ import annotations

import logging
from typing import Callable

from lms.chat.input_state import (
    ChatInputDraft,
    ChatUserInputState,
    LargePasteSegment,
    TextSegment,
    sanitize_draft,
)
from lms.tui.utils import is_whitespace_char

logger = logging.getLogger(__name__)

DEFAULT_LARGE_PASTE_THRESHOLD = 1000


def _produce(
    state: ChatUserInputState, recipe: Callable[[ChatInputDraft], None]
) -> ChatUserInputState:
    draft = ChatInputDraft.from_state(state)
    recipe(draft)
    sanitize_draft(draft)
    return draft.freeze()


# ---------------------------------------------------------------------------
# Draft helpers
# ---------------------------------------------------------------------------


def _text_offset(draft: ChatInputDraft, segment: TextSegment) -> int:
    return max(0, min(draft.cursor_in_segment_offset, len(segment.content)))


def _at_paste_end(draft: ChatInputDraft) -> bool:
    segment = draft.segment_at(draft.cursor_on_segment_index)
    return isinstance(segment, LargePasteSegment) and draft.cursor_in_segment_offset != 0


def _step_off_paste_end(draft: ChatInputDraft) -> bool:
    """Move a cursor at a paste's end boundary to the start of the next segment.

    Returns ``False`` when the paste is the last segment and the cursor is
    therefore at the end of the buffer.
    """
    if not _at_paste_end(draft):
        return True
    following = draft.cursor_on_segment_index + 1
    if draft.segment_at(following) is None:
        return False
    draft.set_cursor(following, 0)
    return True


def _park_at_gap(draft: ChatInputDraft, index: int) -> None:
    """Place the cursor where segments were just removed at *index*."""
    previous = draft.segment_at(index - 1)
    if isinstance(previous, TextSegment):
        draft.set_cursor(index - 1, len(previous.content))
    elif draft.segment_at(index) is not None:
        draft.set_cursor(index, 0)
    elif previous is not None:
        draft.set_cursor(index - 1, 0)
    else:
        draft.set_cursor(0, 0)


def _remove_segment(draft: ChatInputDraft, index: int) -> None:
    removed = draft.segments.pop(index)
    logger.debug("Removed %s segment at %d", removed.type, index)
    _park_at_gap(draft, index)


def _previous_word_boundary(text: str, offset: int) -> int:
    i = offset
    while i > 0 and is_whitespace_char(text[i - 1]):
        i -= 1
    while i > 0 and not is_whitespace_char(text[i - 1]):
        i -= 1
    return i


def _next_word_boundary(text: str, offset: int) -> int:
    i = offset
    while i < len(text) and is_whitespace_char(text[i]):
        i += 1
    while i < len(text) and not is_whitespace_char(text[i]):
        i += 1
    return i


# ---------------------------------------------------------------------------
# Character motion
# ---------------------------------------------------------------------------


def _move_left(draft: ChatInputDraft) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return
    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        if offset > 0:
            draft.set_cursor(index, offset - 1)
            return
    elif draft.cursor_in_segment_offset != 0:
        draft.set_cursor(index, 0)
        return

    previous = draft.segment_at(index - 1)
    if isinstance(previous, TextSegment):
        draft.set_cursor(index - 1, len(previous.content))
    elif isinstance(previous, LargePasteSegment):
        draft.set_cursor(index - 1, 0)


def _move_right(draft: ChatInputDraft) -> None:
    if not _step_off_paste_end(draft):
        return
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return
    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        if offset < len(segment.content):
            draft.set_cursor(index, offset + 1)
            return

    if draft.segment_at(index + 1) is not None:
        draft.set_cursor(index + 1, 0)


def move_cursor_left(state: ChatUserInputState) -> ChatUserInputState:
    return _produce(state, _move_left)


def move_cursor_right(state: ChatUserInputState) -> ChatUserInputState:
    return _produce(state, _move_right)


# ---------------------------------------------------------------------------
# Word motion
# ---------------------------------------------------------------------------


def _move_word_left(draft: ChatInputDraft) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return
    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        if offset > 0:
            draft.set_cursor(index, _previous_word_boundary(segment.content, offset))
            return
    elif draft.cursor_in_segment_offset != 0:
        draft.set_cursor(index, 0)
        return

    previous = draft.segment_at(index - 1)
    if isinstance(previous, TextSegment):
        draft.set_cursor(
            index - 1,
            _previous_word_boundary(previous.content, len(previous.content)),
        )
    elif isinstance(previous, LargePasteSegment):
        draft.set_cursor(index - 1, 0)


def _move_word_right(draft: ChatInputDraft) -> None:
    if not _step_off_paste_end(draft):
        return
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return
    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        if offset < len(segment.content):
            draft.set_cursor(index, _next_word_boundary(segment.content, offset))
            return
        following = draft.segment_at(index + 1)
        if isinstance(following, TextSegment):
            draft.set_cursor(index + 1, _next_word_boundary(following.content, 0))
        elif isinstance(following, LargePasteSegment):
            draft.set_cursor(index + 1, 0)
        return

    # Hop over the whole paste
    if draft.segment_at(index + 1) is not None:
        draft.set_cursor(index + 1, 0)


def move_cursor_word_left(state: ChatUserInputState) -> ChatUserInputState:
    return _produce(state, _move_word_left)


def move_cursor_word_right(state: ChatUserInputState) -> ChatUserInputState:
    return _produce(state, _move_word_right)


# ---------------------------------------------------------------------------
# Line motion
# ---------------------------------------------------------------------------


def _move_to_line_start(draft: ChatInputDraft) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return
    if isinstance(segment, TextSegment):
        newline = segment.content.rfind("\n", 0, _text_offset(draft, segment))
        if newline != -1:
            draft.set_cursor(index, newline + 1)
            return

    for i in range(index - 1, -1, -1):
        candidate = draft.segments[i]
        if isinstance(candidate, TextSegment):
            newline = candidate.content.rfind("\n")
            if newline != -1:
                draft.set_cursor(i, newline + 1)
                return

    draft.set_cursor(0, 0)


def _move_to_line_end(draft: ChatInputDraft) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return
    if isinstance(segment, TextSegment):
        newline = segment.content.find("\n", _text_offset(draft, segment))
        if newline != -1:
            draft.set_cursor(index, newline)
            return

    for i in range(index + 1, len(draft.segments)):
        candidate = draft.segments[i]
        if isinstance(candidate, TextSegment):
            newline = candidate.content.find("\n")
            if newline != -1:
                draft.set_cursor(i, newline)
                return

    for i in range(len(draft.segments) - 1, -1, -1):
        candidate = draft.segments[i]
        if isinstance(candidate, TextSegment):
            draft.set_cursor(i, len(candidate.content))
            return
    draft.set_cursor(len(draft.segments) - 1, 0)


def move_cursor_to_line_start(state: ChatUserInputState) -> ChatUserInputState:
    """Move to just after the previous newline, ignoring newlines inside pastes."""
    return _produce(state, _move_to_line_start)


def move_cursor_to_line_end(state: ChatUserInputState) -> ChatUserInputState:
    """Move to just before the next newline, ignoring newlines inside pastes."""
    return _produce(state, _move_to_line_end)


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------


def _insert_text(draft: ChatInputDraft, text: str) -> None:
    if not text:
        return
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)

    if segment is None:
        return

    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        content = segment.content
        draft.segments[index] = TextSegment(content[:offset] + text + content[offset:])
        draft.set_cursor(index, offset + len(text))
        return

    if draft.cursor_in_segment_offset != 0:
        draft.segments.insert(index + 1, TextSegment(text))
        draft.set_cursor(index + 1, len(text))
        return

    previous = draft.segment_at(index - 1)
    if isinstance(previous, TextSegment):
        draft.segments[index - 1] = TextSegment(previous.content + text)
        draft.set_cursor(index - 1, len(previous.content) + len(text))
    else:
        draft.segments.insert(index, TextSegment(text))
        draft.set_cursor(index, len(text))


def _insert_large_paste(draft: ChatInputDraft, content: str) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    paste = LargePasteSegment(content)

    if segment is None:
        return

    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        left, right = segment.content[:offset], segment.content[offset:]
        # Empty remainders are dropped by the sanitizer; an empty right
        # remainder that ends the buffer becomes the trailing placeholder
        draft.segments[index : index + 1] = [TextSegment(left), paste, TextSegment(right)]
        draft.set_cursor(index + 2, 0)
        return

    insert_at = index if draft.cursor_in_segment_offset == 0 else index + 1
    draft.segments.insert(insert_at, paste)
    if draft.segment_at(insert_at + 1) is None:
        draft.segments.append(TextSegment(""))
    draft.set_cursor(insert_at + 1, 0)


def insert_text_at_cursor(state: ChatUserInputState, text: str) -> ChatUserInputState:
    """Insert typed *text* at the cursor and advance past it.

    On a paste's start boundary the text joins the preceding text segment,
    or becomes a new text segment before the paste.
    """
    return _produce(state, lambda draft: _insert_text(draft, text))


def insert_paste_at_cursor(
    state: ChatUserInputState,
    content: str,
    large_paste_threshold: int = DEFAULT_LARGE_PASTE_THRESHOLD,
) -> ChatUserInputState:
    """Insert pasted *content* at the cursor.

    Content shorter than *large_paste_threshold* is inserted as ordinary
    text. Longer content becomes a :class:`LargePasteSegment`, splitting the
    text segment under the cursor, and the cursor is left just after it.
    Empty content is a no-op.
    """

    def recipe(draft: ChatInputDraft) -> None:
        if not content:
            return
        if len(content) < large_paste_threshold:
            _insert_text(draft, content)
            return
        logger.debug(
            "Inserting large paste of %d characters (threshold %d)",
            len(content),
            large_paste_threshold,
        )
        _insert_large_paste(draft, content)

    return _produce(state, recipe)


def insert_suggestion_at_cursor(
    state: ChatUserInputState, suggestion_text: str
) -> ChatUserInputState:
    """Replace the last text segment with an accepted suggestion.

    When the buffer ends with a paste, the suggestion is appended as a new
    trailing text segment instead.
    """

    def recipe(draft: ChatInputDraft) -> None:
        last = draft.segment_at(len(draft.segments) - 1)
        if last is None:
            return
        if isinstance(last, TextSegment):
            draft.segments[-1] = TextSegment(suggestion_text)
        else:
            draft.segments.append(TextSegment(suggestion_text))
        draft.set_cursor(len(draft.segments) - 1, len(suggestion_text))

    return _produce(state, recipe)


# ---------------------------------------------------------------------------
# Character deletion
# ---------------------------------------------------------------------------


def _delete_before(draft: ChatInputDraft) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return

    if isinstance(segment, LargePasteSegment) and draft.cursor_in_segment_offset != 0:
        _remove_segment(draft, index)
        return

    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        if offset > 0:
            content = segment.content
            draft.segments[index] = TextSegment(content[: offset - 1] + content[offset:])
            draft.set_cursor(index, offset - 1)
            return

    previous = draft.segment_at(index - 1)
    if isinstance(previous, LargePasteSegment):
        _remove_segment(draft, index - 1)
    elif isinstance(previous, TextSegment):
        if isinstance(segment, TextSegment):
            # Adjacent text merges in the sanitizer; land on the old boundary
            draft.set_cursor(index - 1, len(previous.content))
        elif previous.content:
            draft.segments[index - 1] = TextSegment(previous.content[:-1])
            draft.set_cursor(index - 1, len(previous.content) - 1)
        else:
            draft.segments.pop(index - 1)
            draft.set_cursor(index - 1, 0)


def _delete_after(draft: ChatInputDraft) -> None:
    if not _step_off_paste_end(draft):
        return
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return

    if isinstance(segment, LargePasteSegment):
        _remove_segment(draft, index)
        return

    offset = _text_offset(draft, segment)
    if offset < len(segment.content):
        content = segment.content
        draft.segments[index] = TextSegment(content[:offset] + content[offset + 1 :])
        draft.set_cursor(index, offset)
        return

    following = draft.segment_at(index + 1)
    if isinstance(following, LargePasteSegment):
        draft.segments.pop(index + 1)
        draft.set_cursor(index, offset)
    elif isinstance(following, TextSegment):
        draft.segments[index + 1] = TextSegment(following.content[1:])
        draft.set_cursor(index, offset)


def delete_before_cursor(state: ChatUserInputState) -> ChatUserInputState:
    """Backspace. A paste directly before the cursor is removed whole."""
    return _produce(state, _delete_before)


def delete_after_cursor(state: ChatUserInputState) -> ChatUserInputState:
    """Forward delete. A paste directly after the cursor is removed whole."""
    return _produce(state, _delete_after)


# ---------------------------------------------------------------------------
# Word deletion
# ---------------------------------------------------------------------------


def _delete_word_backward(draft: ChatInputDraft) -> None:
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return

    if isinstance(segment, LargePasteSegment) and draft.cursor_in_segment_offset != 0:
        _remove_segment(draft, index)
        return

    if isinstance(segment, TextSegment):
        offset = _text_offset(draft, segment)
        if offset > 0:
            target = _previous_word_boundary(segment.content, offset)
            content = segment.content
            draft.segments[index] = TextSegment(content[:target] + content[offset:])
            draft.set_cursor(index, target)
            return

    previous = draft.segment_at(index - 1)
    if isinstance(previous, LargePasteSegment):
        _remove_segment(draft, index - 1)
    elif isinstance(previous, TextSegment):
        target = _previous_word_boundary(previous.content, len(previous.content))
        draft.segments[index - 1] = TextSegment(previous.content[:target])
        draft.set_cursor(index - 1, target)


def _delete_word_forward(draft: ChatInputDraft) -> None:
    if not _step_off_paste_end(draft):
        return
    index = draft.cursor_on_segment_index
    segment = draft.segment_at(index)
    if segment is None:
        return

    if isinstance(segment, LargePasteSegment):
        _remove_segment(draft, index)
        return

    offset = _text_offset(draft, segment)
    content = segment.content
    if offset < len(content):
        target = _next_word_boundary(content, offset)
        draft.segments[index] = TextSegment(content[:offset] + content[target:])
        draft.set_cursor(index, offset)
        return

    following = draft.segment_at(index + 1)
    if isinstance(following, LargePasteSegment):
        draft.segments.pop(index + 1)
        draft.set_cursor(index, offset)
    elif isinstance(following, TextSegment):
        target = _next_word_boundary(following.content, 0)
        draft.segments[index + 1] = TextSegment(following.content[target:])
        draft.set_cursor(index, offset)


def delete_word_backward(state: ChatUserInputState) -> ChatUserInputState:
    """Delete back to the previous word boundary; a paste counts as one word."""
    return _produce(state, _delete_word_backward)


def delete_word_forward(state: ChatUserInputState) -> ChatUserInputState:
    """Delete up to the next word boundary; a paste counts as one word."""
    return _produce(state, _delete_word_forward)
