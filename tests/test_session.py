"""Tests for the interactive chat session against a virtual terminal."""

from __future__ import annotations

import asyncio

from lms.chat.session import NO_MODEL_NOTICE, ChatSession
from lms.chat.slash_commands import SlashCommand
from lms.config import CliPreferences
from lms.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from lms.tui.utils import strip_ansi

from .virtual_terminal import VirtualTerminal

KEY_ENTER = "\r"
KEY_CTRL_C = "\x03"


def make_session(prefs: CliPreferences | None = None, **kwargs) -> tuple[ChatSession, VirtualTerminal]:
    terminal = VirtualTerminal(columns=80)
    session = ChatSession(terminal, prefs or CliPreferences(), **kwargs)
    return session, terminal


def submit(session: ChatSession, text: str) -> None:
    session.handle_input(text)
    session.handle_input(KEY_ENTER)


def paste(content: str) -> str:
    return f"{BRACKETED_PASTE_START}{content}{BRACKETED_PASTE_END}"


class TestMessages:
    def test_message_is_recorded(self) -> None:
        session, terminal = make_session()
        submit(session, "hello")
        assert len(session.transcript) == 1
        entry = session.transcript[0]
        assert entry.role == "user"
        assert entry.parts == [{"type": "text", "text": "hello"}]
        output = strip_ansi(terminal.output)
        assert "You: hello" in output
        assert NO_MODEL_NOTICE in output

    def test_message_with_model(self) -> None:
        session, terminal = make_session(model="qwen-7b")
        submit(session, "hello")
        assert session.transcript[0].model == "qwen-7b"
        assert "(sent to qwen-7b)" in strip_ansi(terminal.output)

    def test_large_paste_is_sent_as_part(self) -> None:
        session, terminal = make_session(CliPreferences(large_paste_threshold=10))
        session.handle_input("see ")
        session.handle_input(paste("x" * 20))
        session.handle_input(KEY_ENTER)
        parts = session.transcript[0].parts
        assert [p["type"] for p in parts] == ["text", "largePaste"]
        assert parts[1]["text"] == "x" * 20
        assert session.transcript[0].display_text() == f"see  [Pasted {'x' * 20}]"

    def test_input_shows_placeholder_before_submit(self) -> None:
        session, terminal = make_session(CliPreferences(large_paste_threshold=10))
        session.handle_input(paste("y" * 30))
        assert "[Pasted 30 characters]" in strip_ansi(terminal.output)
        assert "y" * 30 not in terminal.output

    def test_threshold_argument_overrides_preferences(self) -> None:
        session, _ = make_session(CliPreferences(large_paste_threshold=10), large_paste_threshold=50)
        assert session.input.large_paste_threshold == 50

    def test_keybindings_from_preferences(self) -> None:
        session, _ = make_session(CliPreferences(keybindings={"submit": ["ctrl+s"]}))
        submit(session, "hello")
        assert session.transcript == []
        session.handle_input("\x13")
        assert len(session.transcript) == 1


class TestSlashCommands:
    def test_help(self) -> None:
        session, terminal = make_session()
        submit(session, "/help")
        assert session.transcript[0].role == "system"
        output = strip_ansi(terminal.output)
        assert "Available commands:" in output
        assert "/paste-threshold - Show or set the large paste threshold" in output

    def test_unknown_command(self) -> None:
        session, terminal = make_session()
        submit(session, "/nope")
        assert session.transcript[0].role == "error"
        assert "Unknown command: /nope" in strip_ansi(terminal.output)

    def test_clear(self) -> None:
        session, _ = make_session()
        submit(session, "one")
        submit(session, "two")
        submit(session, "/clear")
        assert [e.display_text() for e in session.transcript] == ["Chat cleared."]

    def test_exit(self) -> None:
        session, _ = make_session()
        submit(session, "/exit")
        assert session.exit_requested

    def test_paste_threshold_show_and_set(self) -> None:
        session, terminal = make_session()
        submit(session, "/paste-threshold")
        assert "Large paste threshold: 1000 characters" in strip_ansi(terminal.output)
        submit(session, "/paste-threshold 5")
        assert session.input.large_paste_threshold == 5
        session.handle_input(paste("abcdefgh"))
        assert "[Pasted 8 characters]" in strip_ansi(terminal.output)

    def test_paste_threshold_rejects_invalid(self) -> None:
        session, terminal = make_session()
        submit(session, "/paste-threshold abc")
        submit(session, "/paste-threshold 0")
        assert session.input.large_paste_threshold == 1000
        output = strip_ansi(terminal.output)
        assert "Invalid threshold: abc" in output
        assert "Invalid threshold: 0" in output

    def test_paste_threshold_suggestions(self) -> None:
        session, _ = make_session()
        suggestions = session.slash_commands.get_suggestions("/paste-threshold 1")
        assert [s.text for s in suggestions] == ["/paste-threshold 1000"]

    def test_failing_command_is_reported(self) -> None:
        def explode(args: list[str]) -> str:
            raise RuntimeError("kaboom")

        session, terminal = make_session()
        session.slash_commands.register(SlashCommand("boom", "Explode", explode))
        submit(session, "/boom")
        assert session.transcript[0].role == "error"
        assert "Error: kaboom" in strip_ansi(terminal.output)

    def test_slash_text_with_paste_is_a_message(self) -> None:
        session, _ = make_session(CliPreferences(large_paste_threshold=10))
        session.handle_input("/help ")
        session.handle_input(paste("z" * 20))
        session.handle_input(KEY_ENTER)
        assert session.transcript[0].role == "user"


class TestLifecycle:
    def test_run_until_ctrl_c(self) -> None:
        session, terminal = make_session()

        async def scenario() -> None:
            task = asyncio.create_task(session.run())
            await asyncio.sleep(0)
            assert terminal.started
            assert not terminal.cursor_visible
            terminal.simulate_input("hi")
            terminal.simulate_input(KEY_ENTER)
            terminal.simulate_input(KEY_CTRL_C)
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(scenario())
        assert session.exit_requested
        assert not terminal.started
        assert terminal.cursor_visible
        assert len(session.transcript) == 1

    def test_exit_before_run_returns_immediately(self) -> None:
        session, terminal = make_session()
        session.request_exit()
        asyncio.run(session.run())
        assert not terminal.started

    def test_resize_rerenders(self) -> None:
        session, terminal = make_session()

        async def scenario() -> None:
            task = asyncio.create_task(session.run())
            await asyncio.sleep(0)
            terminal.clear_buffer()
            terminal.simulate_resize(columns=40)
            assert "›" in terminal.output
            session.request_exit()
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(scenario())
