"""Chat input keybindings manager."""

from __future__ import annotations

import logging
from typing import Literal, Mapping, get_args

from lms.tui.keys import KeyId, matches_key

logger = logging.getLogger(__name__)

ChatInputAction = Literal[
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteWordForward",
    # Text input
    "newLine",
    "submit",
    "interrupt",
    # Suggestions
    "selectUp",
    "selectDown",
    "acceptSuggestion",
    "dismissSuggestions",
]

CHAT_INPUT_ACTIONS: tuple[str, ...] = get_args(ChatInputAction)

ChatInputKeybindingsConfig = Mapping[str, KeyId | list[KeyId]]

DEFAULT_CHAT_INPUT_KEYBINDINGS: dict[ChatInputAction, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorWordLeft": ["alt+left", "ctrl+left", "alt+b"],
    "cursorWordRight": ["alt+right", "ctrl+right", "alt+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    # Deletion
    "deleteCharBackward": "backspace",
    "deleteCharForward": ["delete", "ctrl+d"],
    "deleteWordBackward": ["ctrl+w", "alt+backspace"],
    "deleteWordForward": ["alt+d", "alt+delete"],
    # Text input
    "newLine": ["shift+enter", "alt+enter"],
    "submit": "enter",
    "interrupt": "ctrl+c",
    # Suggestions
    "selectUp": "up",
    "selectDown": "down",
    "acceptSuggestion": "tab",
    "dismissSuggestions": "escape",
}


class ChatInputKeybindingsManager:
    """Maps chat input actions to key identifiers, with user overrides."""

    def __init__(self, config: ChatInputKeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[str, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: ChatInputKeybindingsConfig) -> None:
        self._action_to_keys.clear()

        for action, keys in DEFAULT_CHAT_INPUT_KEYBINDINGS.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        # User config replaces the whole key list for an action
        for action, keys in config.items():
            if action not in CHAT_INPUT_ACTIONS:
                logger.warning("Ignoring keybinding for unknown action %r", action)
                continue
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

    def matches(self, data: str, action: ChatInputAction) -> bool:
        """Check if input matches a specific action."""
        return any(matches_key(data, key) for key in self._action_to_keys.get(action, []))

    def get_keys(self, action: ChatInputAction) -> list[KeyId]:
        return self._action_to_keys.get(action, [])

    def set_config(self, config: ChatInputKeybindingsConfig) -> None:
        self._build_maps(config)


_global_chat_input_keybindings: ChatInputKeybindingsManager | None = None


def get_chat_input_keybindings() -> ChatInputKeybindingsManager:
    global _global_chat_input_keybindings
    if _global_chat_input_keybindings is None:
        _global_chat_input_keybindings = ChatInputKeybindingsManager()
    return _global_chat_input_keybindings


def set_chat_input_keybindings(manager: ChatInputKeybindingsManager) -> None:
    global _global_chat_input_keybindings
    _global_chat_input_keybindings = manager
