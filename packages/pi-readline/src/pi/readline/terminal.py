"""Terminal device abstraction for the line editor.

Provides a ``Terminal`` protocol and ``ProcessTerminal``, which drives the
process's stdin/stdout: raw mode via :mod:`tty` / :mod:`termios`, bracketed
paste, SIGWINCH resize notifications, and an asyncio reader that feeds input
through a :class:`~pi.readline.stdin_buffer.StdinBuffer`.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Protocol, TextIO

from pi.readline.ansi import BRACKETED_PASTE_DISABLE, BRACKETED_PASTE_ENABLE
from pi.readline.stdin_buffer import DEFAULT_ESCAPE_TIMEOUT, ESC, StdinBuffer

logger = logging.getLogger(__name__)

_READ_SIZE = 4096


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface the editor uses for all terminal I/O."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
        on_end: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def is_tty(self) -> bool: ...

    def set_raw_mode(self, enabled: bool) -> None: ...

    def pause_input(self) -> None: ...

    def resume_input(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin and stdout.

    When stdin is not a TTY (piped input) raw mode, bracketed paste and
    escape-sequence buffering are skipped and decoded chunks are forwarded
    as they arrive.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        *,
        escape_timeout: float = DEFAULT_ESCAPE_TIMEOUT,
    ) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._escape_timeout = escape_timeout
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._end_handler: Callable[[], None] | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._reader_active: bool = False
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._write_log_path: str = os.environ.get("PI_READLINE_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def is_tty(self) -> bool:
        try:
            return os.isatty(self._stdin.fileno())
        except (ValueError, OSError):
            return False

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
        on_end: Callable[[], None],
    ) -> None:
        """Enter raw mode (TTY only) and begin reading stdin."""
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._end_handler = on_end

        if self.is_tty:
            fd = self._stdin.fileno()
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
            self._raw_write(BRACKETED_PASTE_ENABLE)
            self._setup_stdin_buffer()

        if hasattr(signal, "SIGWINCH"):
            self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
            signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self.resume_input()

    def stop(self) -> None:
        """Restore terminal state and drop all handlers."""
        self.pause_input()

        if self._stdin_buffer is not None:
            self._stdin_buffer.clear()
            self._stdin_buffer = None

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        if self._original_termios is not None:
            self._raw_write(BRACKETED_PASTE_DISABLE)
            termios.tcsetattr(
                self._stdin.fileno(), termios.TCSADRAIN, self._original_termios
            )
            self._original_termios = None

        self._input_handler = None
        self._resize_handler = None
        self._end_handler = None

    def set_raw_mode(self, enabled: bool) -> None:
        """Toggle raw mode without tearing down the reader (used by Ctrl-Z)."""
        if self._original_termios is None:
            return
        fd = self._stdin.fileno()
        if enabled:
            tty.setraw(fd)
        else:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write to stdout, mirroring to ``PI_READLINE_WRITE_LOG`` if set."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                logger.debug("could not append to %s", self._write_log_path)

    # -- input flow control ------------------------------------------------

    def pause_input(self) -> None:
        """Stop reading stdin until :meth:`resume_input`."""
        if not self._reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
            loop.remove_reader(self._stdin.fileno())
        except (RuntimeError, ValueError):
            pass
        self._reader_active = False

    def resume_input(self) -> None:
        if self._reader_active:
            return
        try:
            loop = asyncio.get_running_loop()
            loop.add_reader(self._stdin.fileno(), self._on_stdin_readable)
            self._reader_active = True
        except RuntimeError:
            logger.debug("no running event loop; stdin reader not registered")

    # -- private ------------------------------------------------------------

    def _setup_stdin_buffer(self) -> None:
        self._stdin_buffer = StdinBuffer(timeout=self._escape_timeout)
        self._stdin_buffer.on_data(self._forward)
        # Pasted text is never interpreted as escape sequences
        self._stdin_buffer.on_paste(lambda text: self._forward(text.replace(ESC, "")))

    def _forward(self, data: str) -> None:
        if self._input_handler is not None and data:
            self._input_handler(data)

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(self._stdin.fileno(), _READ_SIZE)
        except OSError:
            logger.debug("stdin read failed", exc_info=True)
            return

        if not raw:
            self.pause_input()
            tail = self._decoder.decode(b"", final=True)
            if tail:
                self._deliver(tail)
            if self._end_handler is not None:
                self._end_handler()
            return

        self._deliver(self._decoder.decode(raw))

    def _deliver(self, data: str) -> None:
        if self._stdin_buffer is not None:
            self._stdin_buffer.process(data)
        else:
            self._forward(data)

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    def _raw_write(self, data: str) -> None:
        try:
            self._stdout.write(data)
            self._stdout.flush()
        except OSError:
            logger.debug("stdout write failed", exc_info=True)
