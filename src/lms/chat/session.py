"""Interactive chat session: terminal, input box, slash commands and transcript."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Literal, Optional

from lms.chat.chat_input import ChatInput
from lms.chat.input_state import (
    ChatUserInputState,
    get_raw_text,
    has_large_paste,
    to_user_message_parts,
)
from lms.chat.slash_commands import SlashCommand, SlashCommandHandler, Suggestion
from lms.config import CliPreferences
from lms.tui.keybindings import ChatInputKeybindingsManager
from lms.tui.terminal import Terminal

logger = logging.getLogger(__name__)

NO_MODEL_NOTICE = "(no model loaded)"
THRESHOLD_PRESETS = (500, 1000, 2000, 5000)

_DIM = "\x1b[2m"
_BOLD = "\x1b[1m"
_RED = "\x1b[31m"
_RESET = "\x1b[0m"


@dataclass
class TranscriptEntry:
    role: Literal["user", "system", "error"]
    parts: list[dict[str, str]] = field(default_factory=list)
    model: Optional[str] = None

    def display_text(self) -> str:
        texts = [part.get("preview", part["text"]) for part in self.parts]
        return " ".join(texts)


class ChatSession:
    """Runs the chat input loop until the user exits.

    Submitted messages are recorded in :attr:`transcript`; generating a
    response is left to the model client, which is not part of this session.
    """

    def __init__(
        self,
        terminal: Terminal,
        prefs: CliPreferences,
        *,
        model: Optional[str] = None,
        large_paste_threshold: Optional[int] = None,
    ) -> None:
        self.terminal = terminal
        self.model = model
        self.transcript: list[TranscriptEntry] = []

        self.slash_commands = SlashCommandHandler()
        self.slash_commands.set_commands(self._builtin_commands())

        self.input = ChatInput(
            large_paste_threshold=large_paste_threshold or prefs.large_paste_threshold,
            slash_commands=self.slash_commands,
            keybindings=ChatInputKeybindingsManager(prefs.keybindings),
        )
        self.input.on_submit = self._on_submit
        self.input.on_exit = self.request_exit

        self._rendered_lines = 0
        self._exit_requested = False
        self._exit_event: asyncio.Event | None = None

    # -- lifecycle ----------------------------------------------------------

    async def run(self) -> None:
        self._exit_event = asyncio.Event()
        if self._exit_requested:
            return
        self.terminal.start(self.handle_input, self.render)
        try:
            self.terminal.hide_cursor()
            self.render()
            await self._exit_event.wait()
        finally:
            self.terminal.write("\r\n")
            self.terminal.show_cursor()
            self.terminal.stop()
            logger.info("Chat session ended with %d transcript entries", len(self.transcript))

    def request_exit(self) -> None:
        logger.debug("Exit requested")
        self._exit_requested = True
        if self._exit_event is not None:
            self._exit_event.set()

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested

    # -- input --------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        self.input.handle_input(data)
        if not self._exit_requested:
            self.render()

    def _on_submit(self, state: ChatUserInputState) -> None:
        text = get_raw_text(state).strip()
        if text.startswith("/") and not has_large_paste(state):
            self._run_slash_command(text)
            return

        entry = TranscriptEntry(role="user", parts=to_user_message_parts(state), model=self.model)
        self.transcript.append(entry)
        logger.info("User message with %d part(s)", len(entry.parts))
        self._print(f"{_BOLD}You:{_RESET} {entry.display_text()}")
        if self.model is None:
            self._print(f"{_DIM}{NO_MODEL_NOTICE}{_RESET}")
        else:
            self._print(f"{_DIM}(sent to {self.model}){_RESET}")

    def _run_slash_command(self, text: str) -> None:
        try:
            handled, output = self.slash_commands.execute(text)
        except Exception as e:
            logger.exception("Slash command %r failed", text)
            self._notice(f"Error: {e}", role="error")
            return
        if output:
            self._notice(output, role="system" if handled else "error")

    def _notice(self, text: str, *, role: Literal["system", "error"]) -> None:
        self.transcript.append(TranscriptEntry(role=role, parts=[{"type": "text", "text": text}]))
        color = _RED if role == "error" else _DIM
        self._print(f"{color}{text.rstrip()}{_RESET}")

    # -- built-in commands --------------------------------------------------

    def _builtin_commands(self) -> list[SlashCommand]:
        return [
            SlashCommand(
                name="help",
                description="Show available commands",
                handler=lambda args: self.slash_commands.generate_help_text(),
            ),
            SlashCommand(
                name="clear",
                description="Clear the chat transcript",
                handler=self._clear_command,
            ),
            SlashCommand(
                name="exit",
                description="Exit the chat",
                handler=self._exit_command,
            ),
            SlashCommand(
                name="paste-threshold",
                description="Show or set the large paste threshold",
                handler=self._paste_threshold_command,
                build_suggestions=self._paste_threshold_suggestions,
            ),
        ]

    def _clear_command(self, args: list[str]) -> Optional[str]:
        self.transcript.clear()
        return "Chat cleared."

    def _exit_command(self, args: list[str]) -> Optional[str]:
        self.request_exit()
        return None

    def _paste_threshold_command(self, args: list[str]) -> Optional[str]:
        if not args:
            return f"Large paste threshold: {self.input.large_paste_threshold} characters"
        try:
            value = int(args[0])
        except ValueError:
            return f"Invalid threshold: {args[0]}"
        if value < 1:
            return f"Invalid threshold: {args[0]}"
        self.input.large_paste_threshold = value
        logger.info("Large paste threshold set to %d", value)
        return f"Large paste threshold set to {value} characters"

    def _paste_threshold_suggestions(self, args_text: str) -> list[Suggestion]:
        return [
            Suggestion(command="paste-threshold", args=(str(n),))
            for n in THRESHOLD_PRESETS
            if str(n).startswith(args_text.strip())
        ]

    # -- rendering ----------------------------------------------------------

    def _erase_input_area(self) -> None:
        if self._rendered_lines == 0:
            return
        self.terminal.move_by(-(self._rendered_lines - 1))
        self.terminal.write("\r")
        self.terminal.clear_from_cursor()
        self._rendered_lines = 0

    def _print(self, text: str) -> None:
        """Write transcript text above the input box."""
        self._erase_input_area()
        # Raw mode: every line needs an explicit carriage return
        self.terminal.write(text.replace("\n", "\r\n") + "\r\n")

    def render(self) -> None:
        self._erase_input_area()
        lines = self.input.render(self.terminal.columns)
        self.terminal.write("\r\n".join(lines))
        self._rendered_lines = len(lines)
