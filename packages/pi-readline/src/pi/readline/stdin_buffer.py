"""Reassemble raw terminal input into complete key sequences.

Reads from a terminal can end in the middle of an escape sequence (``ESC``
in one read, ``[A`` in the next). ``StdinBuffer`` holds such fragments until
they complete or until the escape timeout expires, at which point the
fragment is flushed as-is (a lone ``ESC`` becomes the escape key).
Bracketed pastes are collected whole and reported separately.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

# GNU readline's keyseq-timeout default
DEFAULT_ESCAPE_TIMEOUT = 0.5

SequenceStatus = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def is_complete_sequence(data: str) -> SequenceStatus:
    """Classify *data* as a whole escape sequence, a prefix of one, or text."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    introducer = data[1]
    if introducer == ESC:
        # Meta-prefixed escape sequence (``ESC ESC [ A`` is Alt+Up)
        return is_complete_sequence(data[1:])
    if introducer == "[":
        if data.startswith("\x1b[M"):
            # X10 mouse: three payload bytes follow
            return "complete" if len(data) >= 6 else "incomplete"
        return _csi_status(data)
    if introducer == "]":
        return _string_status(data, allow_bel=True)
    if introducer in "P_":
        return _string_status(data, allow_bel=False)
    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"
    # Meta chord: ESC followed by one character
    return "complete"


def _csi_status(data: str) -> SequenceStatus:
    if len(data) < 3:
        return "incomplete"
    payload = data[2:]
    if not 0x40 <= ord(payload[-1]) <= 0x7E:
        return "incomplete"
    if payload.startswith("<") and not _SGR_MOUSE_RE.match(payload):
        return "incomplete"
    return "complete"


def _string_status(data: str, *, allow_bel: bool) -> SequenceStatus:
    if data.endswith(f"{ESC}\\") or (allow_bel and data.endswith("\x07")):
        return "complete"
    return "incomplete"


def _is_text_char(ch: str) -> bool:
    cp = ord(ch)
    return cp >= 0x20 and cp != 0x7F


def extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences plus an unfinished remainder.

    Control bytes and escape sequences come out one per entry; consecutive
    printable characters are kept together as one run.
    """
    sequences: list[str] = []
    pos = 0
    length = len(buffer)

    while pos < length:
        if buffer[pos] == ESC:
            end = pos + 1
            while True:
                status = is_complete_sequence(buffer[pos:end])
                if status != "incomplete":
                    break
                if end >= length:
                    return sequences, buffer[pos:]
                end += 1
            sequences.append(buffer[pos:end])
            pos = end
        elif _is_text_char(buffer[pos]):
            end = pos + 1
            while end < length and _is_text_char(buffer[end]):
                end += 1
            sequences.append(buffer[pos:end])
            pos = end
        else:
            sequences.append(buffer[pos])
            pos += 1

    return sequences, ""


class StdinBuffer:
    """Accumulates terminal input and emits complete sequences.

    ``timeout`` is in seconds. Without a running event loop an unfinished
    fragment is flushed immediately.
    """

    def __init__(self, *, timeout: float = DEFAULT_ESCAPE_TIMEOUT) -> None:
        self._buffer: str = ""
        self._timeout: float = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def process(self, data: str) -> None:
        """Feed a chunk of decoded input."""
        self._cancel_timeout()
        self._buffer += data

        while self._buffer:
            if self._paste_mode:
                self._paste_buffer += self._buffer
                self._buffer = ""
                end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
                if end_index == -1:
                    return
                content = self._paste_buffer[:end_index]
                self._buffer = self._paste_buffer[end_index + len(BRACKETED_PASTE_END) :]
                self._paste_buffer = ""
                self._paste_mode = False
                self._emit_paste(content)
                continue

            start_index = self._buffer.find(BRACKETED_PASTE_START)
            if start_index != -1:
                sequences, _ = extract_complete_sequences(self._buffer[:start_index])
                for sequence in sequences:
                    self._emit_data(sequence)
                self._buffer = self._buffer[start_index + len(BRACKETED_PASTE_START) :]
                self._paste_mode = True
                continue

            sequences, remainder = extract_complete_sequences(self._buffer)
            self._buffer = remainder
            for sequence in sequences:
                self._emit_data(sequence)
            break

        if self._buffer:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            for sequence in self.flush():
                self._emit_data(sequence)
            return
        self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def flush(self) -> list[str]:
        """Return and drop whatever fragment is buffered."""
        self._cancel_timeout()
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    def get_buffer(self) -> str:
        return self._buffer
