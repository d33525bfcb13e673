"""ChatInput component - the paste-aware text box used while chatting.

Owns one :class:`ChatUserInputState` for the duration of a chat turn and
translates raw terminal input (keys, bracketed pastes) into buffer
operators. Nothing else mutates the buffer.
"""

from __future__ import annotations

import logging
from typing import Callable

from lms.chat.input_reducer import (
    DEFAULT_LARGE_PASTE_THRESHOLD,
    delete_after_cursor,
    delete_before_cursor,
    delete_word_backward,
    delete_word_forward,
    insert_paste_at_cursor,
    insert_suggestion_at_cursor,
    insert_text_at_cursor,
    move_cursor_left,
    move_cursor_right,
    move_cursor_to_line_end,
    move_cursor_to_line_start,
    move_cursor_word_left,
    move_cursor_word_right,
)
from lms.chat.input_rendering import render_chat_input_lines
from lms.chat.input_state import (
    ChatUserInputState,
    empty_chat_input_state,
    get_raw_text,
    has_large_paste,
    is_chat_input_empty,
    sanitize_chat_user_input_state,
)
from lms.chat.slash_commands import SlashCommandHandler, Suggestion, suggestion_label
from lms.tui.keybindings import (
    ChatInputAction,
    ChatInputKeybindingsManager,
    get_chat_input_keybindings,
)
from lms.tui.keys import is_printable_input
from lms.tui.stdin_buffer import (
    BRACKETED_PASTE_END,
    BRACKETED_PASTE_START,
    normalize_line_endings,
)
from lms.tui.utils import truncate_to_width

logger = logging.getLogger(__name__)

MAX_VISIBLE_SUGGESTIONS = 5

_SELECTED_COLOR = "\x1b[36m"
_DIM = "\x1b[2m"
_RESET = "\x1b[0m"

# Operators reachable from a single keybinding
_KEY_OPERATORS: list[tuple[ChatInputAction, Callable[[ChatUserInputState], ChatUserInputState]]] = [
    ("deleteCharBackward", delete_before_cursor),
    ("deleteCharForward", delete_after_cursor),
    ("deleteWordBackward", delete_word_backward),
    ("deleteWordForward", delete_word_forward),
    ("cursorLeft", move_cursor_left),
    ("cursorRight", move_cursor_right),
    ("cursorWordLeft", move_cursor_word_left),
    ("cursorWordRight", move_cursor_word_right),
    ("cursorLineStart", move_cursor_to_line_start),
    ("cursorLineEnd", move_cursor_to_line_end),
]


class ChatInput:
    """Chat input box with atomic large pastes and slash-command suggestions."""

    def __init__(
        self,
        *,
        large_paste_threshold: int = DEFAULT_LARGE_PASTE_THRESHOLD,
        slash_commands: SlashCommandHandler | None = None,
        keybindings: ChatInputKeybindingsManager | None = None,
    ) -> None:
        self._state: ChatUserInputState = empty_chat_input_state()
        self.large_paste_threshold = large_paste_threshold
        self.slash_commands = slash_commands
        self._keybindings = keybindings

        self.on_submit: Callable[[ChatUserInputState], None] | None = None
        self.on_exit: Callable[[], None] | None = None

        self.focused: bool = True

        # Bracketed paste mode
        self._paste_buffer: str = ""
        self._is_in_paste: bool = False

        self._selected_suggestion: int = 0
        self._suggestions_dismissed: bool = False

    # -- state --------------------------------------------------------------

    @property
    def state(self) -> ChatUserInputState:
        return self._state

    def set_state(self, state: ChatUserInputState) -> None:
        """Replace the buffer, e.g. when restoring a draft."""
        self._state = sanitize_chat_user_input_state(state)
        self._reset_suggestions()

    def get_text(self) -> str:
        return get_raw_text(self._state)

    def is_empty(self) -> bool:
        return is_chat_input_empty(self._state)

    def clear(self) -> None:
        self._state = empty_chat_input_state()
        self._reset_suggestions()

    def _apply(self, operator: Callable[[ChatUserInputState], ChatUserInputState]) -> None:
        new_state = operator(self._state)
        if new_state.segments != self._state.segments:
            self._reset_suggestions()
        self._state = new_state

    def _reset_suggestions(self) -> None:
        self._selected_suggestion = 0
        self._suggestions_dismissed = False

    # -- suggestions --------------------------------------------------------

    @property
    def suggestions(self) -> list[Suggestion]:
        if self.slash_commands is None or self._suggestions_dismissed:
            return []
        if has_large_paste(self._state):
            return []
        text = get_raw_text(self._state)
        if not text.startswith("/"):
            return []
        return self.slash_commands.get_suggestions(text)

    @property
    def selected_suggestion_index(self) -> int:
        return self._selected_suggestion

    def accept_suggestion(self, suggestion: Suggestion | None = None) -> bool:
        """Replace the typed command with *suggestion* (default: the selected one)."""
        if suggestion is None:
            suggestions = self.suggestions
            if not suggestions:
                return False
            suggestion = suggestions[self._selected_suggestion % len(suggestions)]
        logger.debug("Accepting suggestion %r", suggestion.text)
        self._apply(lambda state: insert_suggestion_at_cursor(state, suggestion.text))
        return True

    # -- editing entry points ----------------------------------------------

    def insert_text(self, text: str) -> None:
        self._apply(lambda state: insert_text_at_cursor(state, text))

    def handle_paste(self, content: str) -> None:
        """Insert a fully assembled paste payload."""
        content = normalize_line_endings(content)
        logger.debug(
            "Paste of %d characters (threshold %d)", len(content), self.large_paste_threshold
        )
        self._apply(
            lambda state: insert_paste_at_cursor(state, content, self.large_paste_threshold)
        )

    def submit(self) -> None:
        if not get_raw_text(self._state).strip():
            return
        submitted = self._state
        self.clear()
        logger.debug("Submitting %d segment(s)", len(submitted.segments))
        if self.on_submit:
            self.on_submit(submitted)

    # -- key handling -------------------------------------------------------

    def handle_input(self, data: str) -> None:
        if BRACKETED_PASTE_START in data:
            before, _, data = data.partition(BRACKETED_PASTE_START)
            if before:
                self.handle_input(before)
            self._is_in_paste = True
            self._paste_buffer = ""

        if self._is_in_paste:
            self._paste_buffer += data
            end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
            if end_index != -1:
                paste_content = self._paste_buffer[:end_index]
                remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END) :]
                self._is_in_paste = False
                self._paste_buffer = ""
                self.handle_paste(paste_content)
                if remaining:
                    self.handle_input(remaining)
            return

        kb = self._keybindings or get_chat_input_keybindings()

        if self._handle_suggestion_keys(data, kb):
            return

        if kb.matches(data, "interrupt"):
            if self.is_empty():
                if self.on_exit:
                    self.on_exit()
            else:
                self.clear()
            return

        if kb.matches(data, "newLine"):
            self.insert_text("\n")
            return

        if kb.matches(data, "submit"):
            self.submit()
            return

        for action, operator in _KEY_OPERATORS:
            if kb.matches(data, action):
                self._apply(operator)
                return

        if is_printable_input(data):
            self.insert_text(data)
        else:
            logger.debug("Ignoring unbound input %r", data)

    def _handle_suggestion_keys(self, data: str, kb: ChatInputKeybindingsManager) -> bool:
        suggestions = self.suggestions
        if not suggestions:
            return False

        if kb.matches(data, "selectUp"):
            self._selected_suggestion = (self._selected_suggestion - 1) % len(suggestions)
            return True
        if kb.matches(data, "selectDown"):
            self._selected_suggestion = (self._selected_suggestion + 1) % len(suggestions)
            return True
        if kb.matches(data, "acceptSuggestion"):
            return self.accept_suggestion()
        if kb.matches(data, "dismissSuggestions"):
            self._suggestions_dismissed = True
            return True
        return False

    # -- rendering ----------------------------------------------------------

    def render(self, width: int) -> list[str]:
        lines = render_chat_input_lines(self._state, width, focused=self.focused)

        suggestions = self.suggestions
        if not suggestions:
            return lines

        selected = self._selected_suggestion % len(suggestions)
        # Keep the selected entry inside the visible window
        start = max(0, min(selected - MAX_VISIBLE_SUGGESTIONS + 1, len(suggestions)))
        for i, suggestion in enumerate(
            suggestions[start : start + MAX_VISIBLE_SUGGESTIONS], start=start
        ):
            label = suggestion_label(suggestion)
            if i == selected:
                line = f"{_SELECTED_COLOR}› {label}{_RESET}"
            else:
                line = f"{_DIM}  {label}{_RESET}"
            lines.append(truncate_to_width(line, width))
        return lines
