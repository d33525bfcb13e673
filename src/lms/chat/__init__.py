"""lms.chat: the segmented chat input buffer and its input component."""

from lms.chat.chat_input import ChatInput
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
from lms.chat.input_rendering import (
    FlattenedChatInput,
    PasteRange,
    flatten_chat_input,
    large_paste_placeholder,
    render_chat_input_lines,
)
from lms.chat.input_state import (
    ChatInputSegment,
    ChatUserInputState,
    LargePasteSegment,
    TextSegment,
    empty_chat_input_state,
    get_raw_text,
    sanitize_chat_user_input_state,
    to_user_message_parts,
)
from lms.chat.slash_commands import (
    SlashCommand,
    SlashCommandHandler,
    Suggestion,
    parse_slash_command,
)

__all__ = [
    # Component
    "ChatInput",
    # State
    "ChatInputSegment",
    "ChatUserInputState",
    "LargePasteSegment",
    "TextSegment",
    "empty_chat_input_state",
    "get_raw_text",
    "sanitize_chat_user_input_state",
    "to_user_message_parts",
    # Operators
    "DEFAULT_LARGE_PASTE_THRESHOLD",
    "delete_after_cursor",
    "delete_before_cursor",
    "delete_word_backward",
    "delete_word_forward",
    "insert_paste_at_cursor",
    "insert_suggestion_at_cursor",
    "insert_text_at_cursor",
    "move_cursor_left",
    "move_cursor_right",
    "move_cursor_to_line_end",
    "move_cursor_to_line_start",
    "move_cursor_word_left",
    "move_cursor_word_right",
    # Rendering
    "FlattenedChatInput",
    "PasteRange",
    "flatten_chat_input",
    "large_paste_placeholder",
    "render_chat_input_lines",
    # Slash commands
    "SlashCommand",
    "SlashCommandHandler",
    "Suggestion",
    "parse_slash_command",
]
