"""Slash commands typed into the chat input (``/help``, ``/clear``, ...)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from lms.tui.fuzzy import fuzzy_filter

logger = logging.getLogger(__name__)

COMMAND_SUGGESTION_PRIORITY = 0


@dataclass(frozen=True)
class Suggestion:
    command: str
    args: tuple[str, ...] = ()
    priority: int = 0
    label: Optional[str] = field(default=None, compare=False)

    @property
    def text(self) -> str:
        """Input text this suggestion expands to when accepted."""
        if self.args:
            return f"/{self.command} {' '.join(self.args)}"
        return f"/{self.command} "


SuggestionBuilder = Callable[[str], list[Suggestion]]


@dataclass
class SlashCommand:
    name: str
    description: str
    handler: Callable[[list[str]], Optional[str]]
    build_suggestions: Optional[SuggestionBuilder] = None


@dataclass(frozen=True)
class ParsedSlashCommand:
    command: str
    arguments_text: Optional[str]

    @property
    def arguments(self) -> list[str]:
        if self.arguments_text is None:
            return []
        return [arg for arg in self.arguments_text.split(" ") if arg]


def parse_slash_command(text: str) -> ParsedSlashCommand | None:
    """Split ``"/name some args"`` into a lowercased name and argument text.

    Returns ``None`` when *text* is not a slash command.
    """
    trimmed = text.strip()
    if not trimmed.startswith("/"):
        return None

    name, _, rest = trimmed[1:].partition(" ")
    if not name:
        return None
    rest = rest.strip()
    return ParsedSlashCommand(command=name.lower(), arguments_text=rest or None)


def sort_suggestions(suggestions: list[Suggestion]) -> list[Suggestion]:
    """Order by priority (highest first), then command, then arguments."""
    return sorted(suggestions, key=lambda s: (-s.priority, s.command, " ".join(s.args)))


def suggestion_label(suggestion: Suggestion) -> str:
    if suggestion.label is not None:
        return suggestion.label
    args_text = f" {' '.join(suggestion.args)}" if suggestion.args else ""
    return f"/{suggestion.command}{args_text}"


class SlashCommandHandler:
    """Registry of slash commands with help text and autocomplete."""

    def __init__(self) -> None:
        self._commands: dict[str, SlashCommand] = {}
        self._ignored: set[str] = set()

    def register(self, command: SlashCommand) -> None:
        self._commands[command.name.lower()] = command

    def unregister(self, name: str) -> None:
        self._commands.pop(name.lower(), None)

    def set_commands(self, commands: list[SlashCommand]) -> None:
        self._commands.clear()
        for command in commands:
            self.register(command)

    def ignore(self, *names: str) -> None:
        """Hide commands from help and suggestions; they still execute."""
        self._ignored.update(name.lower() for name in names)

    def is_ignored(self, name: str) -> bool:
        return name.lower() in self._ignored

    def get(self, name: str) -> SlashCommand | None:
        return self._commands.get(name.lower())

    def list_commands(self) -> list[SlashCommand]:
        return [c for c in self._commands.values() if not self.is_ignored(c.name)]

    def execute(self, text: str) -> tuple[bool, Optional[str]]:
        """Run the command in *text*.

        Returns ``(handled, output)``; an unknown command is not handled and
        its output explains why.
        """
        parsed = parse_slash_command(text)
        if parsed is None:
            return False, None

        command = self._commands.get(parsed.command)
        if command is None:
            logger.debug("Unknown slash command %r", parsed.command)
            return (
                False,
                f"Unknown command: /{parsed.command}. Type /help for available commands.",
            )

        logger.debug("Executing /%s with %r", command.name, parsed.arguments)
        return True, command.handler(parsed.arguments)

    def generate_help_text(self) -> str:
        commands = sorted(self.list_commands(), key=lambda c: c.name)
        lines = [f"/{c.name} - {c.description}" for c in commands]
        return "Available commands:\n" + "\n".join(lines) + "\n"

    def get_suggestions(self, text: str) -> list[Suggestion]:
        """Suggest completions for a partially typed slash command.

        Before the first space, command names are fuzzy-matched against the
        typed prefix. After it, the command's own suggestion builder (if
        any) receives the argument text.
        """
        trimmed = text.lstrip()
        if not trimmed.startswith("/"):
            return []

        name, space, args_text = trimmed[1:].partition(" ")
        if not space:
            suggestions = [
                Suggestion(
                    command=c.name,
                    priority=COMMAND_SUGGESTION_PRIORITY,
                    label=f"/{c.name} - {c.description}",
                )
                for c in fuzzy_filter(self.list_commands(), name, lambda c: c.name)
            ]
            # Fuzzy ranking already orders typed prefixes; a bare "/" lists all
            return suggestions if name else sort_suggestions(suggestions)

        command = self._commands.get(name.lower())
        if command is None or command.build_suggestions is None:
            return []
        return sort_suggestions(command.build_suggestions(args_text))
