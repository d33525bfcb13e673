"""Virtual terminal for testing -- implements the Terminal protocol in-memory.

``VirtualTerminal`` satisfies ``lms.tui.terminal.Terminal`` without any
real I/O. Everything written is captured for assertions.
"""

from __future__ import annotations

from typing import Callable


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection."""

    def __init__(self, rows: int = 24, columns: int = 80) -> None:
        self._rows = rows
        self._columns = columns
        self._buffer: list[str] = []
        self._started = False
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._cursor_visible = True

    # -- Terminal protocol: properties --------------------------------------

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def started(self) -> bool:
        return self._started

    @property
    def cursor_visible(self) -> bool:
        return self._cursor_visible

    # -- Terminal protocol: lifecycle ---------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._started = True

    def stop(self) -> None:
        self._started = False
        self._input_handler = None
        self._resize_handler = None

    # -- Terminal protocol: output ------------------------------------------

    def write(self, data: str) -> None:
        self._buffer.append(data)

    # -- Terminal protocol: cursor/screen manipulation ----------------------

    def move_by(self, lines: int) -> None:
        if lines < 0:
            self.write(f"\x1b[{-lines}A")
        elif lines > 0:
            self.write(f"\x1b[{lines}B")

    def hide_cursor(self) -> None:
        self._cursor_visible = False
        self.write("\x1b[?25l")

    def show_cursor(self) -> None:
        self._cursor_visible = True
        self.write("\x1b[?25h")

    def clear_line(self) -> None:
        self.write("\x1b[2K\r")

    def clear_from_cursor(self) -> None:
        self.write("\x1b[0J")

    # -- Test helpers -------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    def clear_buffer(self) -> None:
        self._buffer.clear()

    def simulate_input(self, data: str) -> None:
        """Feed *data* into the registered input handler.

        Raises ``RuntimeError`` if ``start`` was not called.
        """
        if self._input_handler is None:
            raise RuntimeError("No input handler registered -- call start() first")
        self._input_handler(data)

    def simulate_resize(self, columns: int | None = None) -> None:
        if columns is not None:
            self._columns = columns
        if self._resize_handler is not None:
            self._resize_handler()
