"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` that
manages raw mode, bracketed paste, the kitty keyboard protocol, cursor
visibility and screen clearing via ANSI escape sequences.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import re
import signal
import sys
import termios
import tty
from typing import Callable, Protocol

from lms.tui.keys import set_kitty_protocol_active
from lms.tui.stdin_buffer import (
    BRACKETED_PASTE_END,
    BRACKETED_PASTE_START,
    DEFAULT_PASTE_CHUNK_THRESHOLD,
    StdinBuffer,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_KITTY_QUERY = "\x1b[?u"
_KITTY_ENABLE = "\x1b[>1u"
_KITTY_DISABLE = "\x1b[<u"

_KITTY_RESPONSE_RE = re.compile(r"^\x1b\[\?(\d+)u$")

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_LINE = "\x1b[2K\r"
_CLEAR_FROM_CURSOR = "\x1b[0J"
_CURSOR_UP_FMT = "\x1b[{}A"
_CURSOR_DOWN_FMT = "\x1b[{}B"


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def move_by(self, lines: int) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_line(self) -> None: ...

    def clear_from_cursor(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by ``sys.stdin``/``sys.stdout``.

    Manages raw mode via :mod:`tty` and :mod:`termios`, the kitty keyboard
    protocol, bracketed paste mode and SIGWINCH-based resize detection.
    Must be started from inside a running asyncio event loop.
    """

    def __init__(self, *, paste_chunk_threshold: int = DEFAULT_PASTE_CHUNK_THRESHOLD) -> None:
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._kitty_protocol_active: bool = False
        self._paste_chunk_threshold = paste_chunk_threshold
        self._stdin_buffer: StdinBuffer | None = None
        self._stdin_reader_active: bool = False
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    # -- properties ---------------------------------------------------------

    @property
    def kitty_protocol_active(self) -> bool:
        return self._kitty_protocol_active

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enable raw mode and bracketed paste, then begin reading stdin."""
        self._input_handler = on_input
        self._resize_handler = on_resize

        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

        self._raw_write(_BRACKETED_PASTE_ENABLE)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self._setup_stdin_buffer()
        self._start_stdin_reader()
        self._raw_write(_KITTY_QUERY)
        logger.debug("Terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        self._raw_write(_BRACKETED_PASTE_DISABLE)

        if self._kitty_protocol_active:
            self._raw_write(_KITTY_DISABLE)
            self._kitty_protocol_active = False
            set_kitty_protocol_active(False)

        if self._stdin_buffer is not None:
            self._stdin_buffer.destroy()
            self._stdin_buffer = None

        self._remove_stdin_reader()

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        if self._original_termios is not None:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._input_handler = None
        self._resize_handler = None
        logger.debug("Terminal stopped")

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        self._raw_write(data)

    # -- cursor / screen manipulation --------------------------------------

    def move_by(self, lines: int) -> None:
        """Move the cursor up (negative) or down (positive) by *lines*."""
        if lines < 0:
            self._raw_write(_CURSOR_UP_FMT.format(-lines))
        elif lines > 0:
            self._raw_write(_CURSOR_DOWN_FMT.format(lines))

    def hide_cursor(self) -> None:
        self._raw_write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._raw_write(_SHOW_CURSOR)

    def clear_line(self) -> None:
        self._raw_write(_CLEAR_LINE)

    def clear_from_cursor(self) -> None:
        self._raw_write(_CLEAR_FROM_CURSOR)

    # -- private: stdin buffer ---------------------------------------------

    def _setup_stdin_buffer(self) -> None:
        self._stdin_buffer = StdinBuffer(
            timeout=0.01, paste_chunk_threshold=self._paste_chunk_threshold
        )

        def _on_buffer_data(data: str) -> None:
            if _KITTY_RESPONSE_RE.match(data):
                self._kitty_protocol_active = True
                set_kitty_protocol_active(True)
                self._raw_write(_KITTY_ENABLE)
                return
            if self._input_handler is not None:
                self._input_handler(data)

        def _on_buffer_paste(data: str) -> None:
            # Re-wrap so the input component sees one bracketed payload
            if self._input_handler is not None:
                self._input_handler(BRACKETED_PASTE_START + data + BRACKETED_PASTE_END)

        self._stdin_buffer.on_data(_on_buffer_data)
        self._stdin_buffer.on_paste(_on_buffer_paste)

    def _start_stdin_reader(self) -> None:
        if self._stdin_reader_active:
            return
        loop = asyncio.get_running_loop()
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        self._stdin_reader_active = True

    def _remove_stdin_reader(self) -> None:
        if not self._stdin_reader_active:
            return
        try:
            asyncio.get_running_loop().remove_reader(sys.stdin.fileno())
        except (RuntimeError, ValueError):
            pass
        self._stdin_reader_active = False

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError:
            return

        if not raw:
            return

        # A multi-byte character may straddle two reads
        data = self._decoder.decode(raw)
        if not data:
            return
        if self._stdin_buffer is not None:
            self._stdin_buffer.process(data)
        elif self._input_handler is not None:
            self._input_handler(data)

    # -- private: SIGWINCH -------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass
