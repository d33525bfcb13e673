"""lms.tui: terminal input handling for the chat session."""

# Fuzzy matching
from lms.tui.fuzzy import FuzzyMatch, fuzzy_filter, fuzzy_match

# Keybindings
from lms.tui.keybindings import (
    DEFAULT_CHAT_INPUT_KEYBINDINGS,
    ChatInputAction,
    ChatInputKeybindingsManager,
    get_chat_input_keybindings,
    set_chat_input_keybindings,
)

# Keyboard input handling
from lms.tui.keys import (
    KeyId,
    is_kitty_protocol_active,
    is_printable_input,
    matches_key,
    parse_key,
    set_kitty_protocol_active,
)

# Input buffering
from lms.tui.stdin_buffer import StdinBuffer

# Terminal
from lms.tui.terminal import ProcessTerminal, Terminal

# Utilities
from lms.tui.utils import is_whitespace_char, truncate_to_width, visible_width

__all__ = [
    # Fuzzy
    "FuzzyMatch",
    "fuzzy_filter",
    "fuzzy_match",
    # Keybindings
    "DEFAULT_CHAT_INPUT_KEYBINDINGS",
    "ChatInputAction",
    "ChatInputKeybindingsManager",
    "get_chat_input_keybindings",
    "set_chat_input_keybindings",
    # Keys
    "KeyId",
    "is_kitty_protocol_active",
    "is_printable_input",
    "matches_key",
    "parse_key",
    "set_kitty_protocol_active",
    # Input buffering
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Utils
    "is_whitespace_char",
    "truncate_to_width",
    "visible_width",
]
