"""StdinBuffer buffers raw input and emits complete sequences and pastes.

Stdin data can arrive in partial chunks, so escape sequences are held back
until complete; otherwise half a sequence would be read as keypresses.

Pastes are recognised two ways:

* bracketed paste (``ESC[200~ ... ESC[201~``), emitted once the end marker
  arrives, however many chunks it spans;
* buffered detection for terminals without bracketed paste: a plain chunk
  longer than ``paste_chunk_threshold`` starts a paste, later chunks are
  appended, and the whole payload is emitted once input goes quiet.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable

logger = logging.getLogger(__name__)

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

DEFAULT_PASTE_CHUNK_THRESHOLD = 1000

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def paste_settle_delay(chunk_length: int) -> float:
    """Seconds of silence after which a buffered paste is considered complete."""
    return min(1000.0, 20 + chunk_length * 0.1) / 1000.0


def _is_complete_sequence(data: str) -> str:
    """Return 'complete', 'incomplete', or 'not-escape' for *data*."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    if after_esc.startswith("["):
        if after_esc.startswith("[M"):
            # X10 mouse report: three raw bytes follow
            return "complete" if len(data) >= 6 else "incomplete"
        return _is_complete_csi_sequence(data)

    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key: ESC followed by a single character
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]
    if not 0x40 <= ord(payload[-1]) <= 0x7E:
        return "incomplete"
    if payload.startswith("<") and not _SGR_MOUSE_RE.match(payload):
        return "incomplete"
    return "complete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            candidate = remaining[:seq_end]
            if _is_complete_sequence(candidate) == "incomplete":
                seq_end += 1
                continue
            sequences.append(candidate)
            pos += seq_end
            break
        else:
            return sequences, remaining

    return sequences, ""


class StdinBuffer:
    """Buffers stdin input and emits complete sequences and pastes.

    *timeout* (seconds) is how long an incomplete escape sequence is held
    before being flushed as-is.
    """

    def __init__(
        self,
        *,
        timeout: float = 0.01,
        paste_chunk_threshold: int = DEFAULT_PASTE_CHUNK_THRESHOLD,
    ) -> None:
        self._buffer: str = ""
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._timeout: float = timeout
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._paste_chunk_threshold = paste_chunk_threshold
        self._chunk_paste: str | None = None
        self._chunk_paste_handle: asyncio.TimerHandle | None = None

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    @property
    def is_collecting_paste(self) -> bool:
        return self._paste_mode or self._chunk_paste is not None

    # -- processing ---------------------------------------------------------

    def process(self, data: str) -> None:
        """Feed input data into the buffer."""
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

        if self._chunk_paste is not None or self._starts_chunk_paste(data):
            self._collect_chunk_paste(data)
            return

        self._buffer += data

        if self._paste_mode:
            self._paste_buffer += self._buffer
            self._buffer = ""
            self._finish_bracketed_paste()
            return

        start_index = self._buffer.find(BRACKETED_PASTE_START)
        if start_index != -1:
            sequences, _ = _extract_complete_sequences(self._buffer[:start_index])
            for sequence in sequences:
                self._emit_data(sequence)

            self._paste_mode = True
            self._paste_buffer = self._buffer[start_index + len(BRACKETED_PASTE_START) :]
            self._buffer = ""
            self._finish_bracketed_paste()
            return

        sequences, remainder = _extract_complete_sequences(self._buffer)
        self._buffer = remainder

        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No event loop - flush immediately
                for sequence in self.flush():
                    self._emit_data(sequence)
            else:
                self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _finish_bracketed_paste(self) -> None:
        end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end_index == -1:
            return

        pasted_content = self._paste_buffer[:end_index]
        remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END) :]
        self._paste_mode = False
        self._paste_buffer = ""

        logger.debug("Bracketed paste of %d characters", len(pasted_content))
        self._emit_paste(pasted_content)

        if remaining:
            self.process(remaining)

    # -- buffered paste detection --------------------------------------------

    def _starts_chunk_paste(self, data: str) -> bool:
        return (
            not self._paste_mode
            and len(data) > self._paste_chunk_threshold
            and not data.startswith(ESC)
            and BRACKETED_PASTE_START not in data
        )

    def _collect_chunk_paste(self, data: str) -> None:
        self._chunk_paste = (self._chunk_paste or "") + data
        if self._chunk_paste_handle is not None:
            self._chunk_paste_handle.cancel()
            self._chunk_paste_handle = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._flush_chunk_paste()
            return
        self._chunk_paste_handle = loop.call_later(
            paste_settle_delay(len(data)), self._flush_chunk_paste
        )

    def _flush_chunk_paste(self) -> None:
        self._chunk_paste_handle = None
        content, self._chunk_paste = self._chunk_paste, None
        if content:
            logger.debug("Detected unbracketed paste of %d characters", len(content))
            self._emit_paste(normalize_line_endings(content))

    # -- flushing -----------------------------------------------------------

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def flush(self) -> list[str]:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

        if not self._buffer:
            return []

        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        if self._chunk_paste_handle is not None:
            self._chunk_paste_handle.cancel()
            self._chunk_paste_handle = None
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""
        self._chunk_paste = None

    def get_buffer(self) -> str:
        return self._buffer

    def destroy(self) -> None:
        self.clear()
