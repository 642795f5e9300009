"""ReadlineSession: the public line-editor object.

Wires a :class:`~pi.readline.terminal.Terminal` to the key dispatcher and
exposes an event surface (``line``, ``close``, ``pause``, ``resume``,
``SIGINT``, ``SIGTSTP``, ``SIGCONT``, ``history``).

Usage::

    async with ReadlineSession(options=ReadlineOptions(prompt="$ ")) as rl:
        rl.on("line", handle_line)
        rl.prompt()
        ...
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import signal
import sys
import time
from typing import Any, Callable

from pi.readline.completion import CompletionCoordinator
from pi.readline.config import ReadlineOptions
from pi.readline.dispatcher import DispatcherState, KeyDispatcher
from pi.readline.history import HistoryRing
from pi.readline.keybindings import DEFAULT_BINDINGS, DUMB_BINDINGS, KeyBindings
from pi.readline.keys import KeyEvent, decode_key
from pi.readline.render import RenderPlanner
from pi.readline.stdin_buffer import extract_complete_sequences
from pi.readline.terminal import ProcessTerminal, Terminal

logger = logging.getLogger(__name__)

_LINE_ENDING_RE = re.compile(r"\r?\n|\r(?!\n)")

Handler = Callable[..., Any]


class ReadlineSession:
    """Interactive line editor bound to one terminal.

    In terminal mode keystrokes are decoded and edited in place; otherwise
    (piped input) chunks are split into lines as they arrive.
    """

    def __init__(
        self,
        terminal: Terminal | None = None,
        options: ReadlineOptions | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.options = options or ReadlineOptions.from_env()
        self.terminal: Terminal = terminal or ProcessTerminal(
            escape_timeout=self.options.escape_code_timeout
        )
        self.is_terminal = (
            self.terminal.is_tty if self.options.terminal is None else self.options.terminal
        )
        self.dumb = bool(self.options.dumb)
        self._clock = clock
        self._prompt = self.options.prompt

        self._handlers: dict[str, list[Handler]] = {}
        self._started = False
        self._closed = False
        self._paused = False

        self._question_future: asyncio.Future[str] | None = None
        self._old_prompt: str | None = None

        # Non-terminal mode
        self._line_buffer: str | None = None
        self._saw_return_at: float | None = None

        self.planner = RenderPlanner(self.terminal)
        self.history = HistoryRing(
            self.options.history_size,
            remove_duplicates=self.options.remove_history_duplicates,
            entries=self.options.history,
        )
        completion = (
            CompletionCoordinator(
                self.options.completer, enabled=self.options.completion_enabled
            )
            if self.options.completer is not None
            else None
        )
        bindings = KeyBindings(
            self.options.keybindings,
            base=DUMB_BINDINGS if self.dumb else DEFAULT_BINDINGS,
        )
        self.dispatcher = KeyDispatcher(
            self,
            self.planner,
            history=self.history,
            completion=completion,
            bindings=bindings,
            dumb=self.dumb,
            crlf_delay=self.options.crlf_delay,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register *handler* for *event*. Returns an unsubscribe function."""
        self._handlers.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def line(self) -> str:
        return self.dispatcher.buffer.text

    @property
    def cursor(self) -> int:
        return self.dispatcher.buffer.cursor

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def pending_completion(self) -> asyncio.Task[None] | None:
        return self.dispatcher.pending_completion

    def get_cursor_pos(self) -> tuple[int, int]:
        return self.dispatcher.get_cursor_pos()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Enter raw mode (when applicable) and start reading input."""
        if self._started or self._closed:
            return
        self._started = True
        self.terminal.start(self._on_input, self._on_resize, self._on_end)

    def close(self) -> None:
        """Stop reading, restore the terminal and emit ``close``. Idempotent."""
        if self._closed:
            return
        self.pause()
        self._closed = True
        self.dispatcher.shutdown()
        if self._started:
            self.terminal.stop()
        if self._question_future is not None and not self._question_future.done():
            self._question_future.cancel()
        self._question_future = None
        logger.debug("session closed")
        self.emit("close")

    def pause(self) -> None:
        if self._paused or self._closed:
            return
        self.terminal.pause_input()
        self._paused = True
        self.emit("pause")

    def resume(self) -> None:
        if not self._paused or self._closed:
            return
        self.terminal.resume_input()
        self._paused = False
        self.emit("resume")

    def __enter__(self) -> ReadlineSession:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> ReadlineSession:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Prompting
    # ------------------------------------------------------------------

    def get_prompt(self) -> str:
        return self._prompt

    def set_prompt(self, prompt: str) -> None:
        self._prompt = prompt

    def prompt(self, preserve_cursor: bool = False) -> None:
        """Show the prompt and current line, resuming input if paused."""
        self.start()
        if self._paused:
            self.resume()
        if self.is_terminal:
            self.dispatcher.prompt(preserve_cursor)
        else:
            self.planner.write(self._prompt)

    async def question(self, query: str) -> str:
        """Prompt with *query* and return the next committed line.

        The line is delivered here instead of through the ``line`` event.
        Raises :class:`asyncio.CancelledError` if the session closes first.
        """
        if self._question_future is not None and not self._question_future.done():
            self.prompt()
            return await asyncio.shield(self._question_future)

        self._question_future = asyncio.get_running_loop().create_future()
        self._old_prompt = self._prompt
        self.set_prompt(query)
        self.prompt()
        return await self._question_future

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def write(self, data: str) -> None:
        """Process *data* as if it had been typed."""
        if self._closed:
            return
        # Input stays paused at the source until a pending completion finishes
        if self._paused and self.dispatcher.state is not DispatcherState.AWAITING_COMPLETION:
            self.resume()
        self._on_input(data)

    def feed(self, data: str) -> None:
        """Decode *data* into key events and dispatch them in order."""
        sequences, remainder = extract_complete_sequences(data)
        if remainder:
            sequences.append(remainder)
        for sequence in sequences:
            if self._closed:
                break
            self.dispatch_key(decode_key(sequence))

    def dispatch_key(self, event: KeyEvent) -> None:
        self.dispatcher.dispatch(event)

    def _on_input(self, data: str) -> None:
        if self._closed:
            return
        if self.is_terminal:
            self.feed(data)
        else:
            self._normal_write(data)

    def _normal_write(self, data: str) -> None:
        if (
            self._saw_return_at is not None
            and self._clock() - self._saw_return_at <= self.options.crlf_delay
        ):
            if data.startswith("\n"):
                data = data[1:]
            self._saw_return_at = None

        has_ending = _LINE_ENDING_RE.search(data) is not None
        if self._line_buffer:
            data = self._line_buffer + data
            self._line_buffer = None

        if has_ending:
            self._saw_return_at = self._clock() if data.endswith("\r") else None
            lines = _LINE_ENDING_RE.split(data)
            self._line_buffer = lines.pop()
            for line in lines:
                if self._closed:
                    break
                self.on_line(line)
        elif data:
            self._line_buffer = data

    # ------------------------------------------------------------------
    # Terminal callbacks
    # ------------------------------------------------------------------

    def _on_resize(self) -> None:
        if self.is_terminal and not self._closed:
            self.dispatcher.refresh()

    def _on_end(self) -> None:
        if self.is_terminal:
            pending = self.dispatcher.buffer.text
        else:
            pending = self._line_buffer or ""
            self._line_buffer = None
        if pending:
            self.on_line(pending)
        self.close()

    # ------------------------------------------------------------------
    # Dispatcher host
    # ------------------------------------------------------------------

    def on_line(self, line: str) -> None:
        if self.is_terminal:
            self.emit("history", self.history.entries)
        if self._question_future is not None and not self._question_future.done():
            future = self._question_future
            self._question_future = None
            if self._old_prompt is not None:
                self.set_prompt(self._old_prompt)
                self._old_prompt = None
            future.set_result(line)
            return
        self.emit("line", line)

    def interrupt(self) -> None:
        if self.listener_count("SIGINT") > 0:
            self.emit("SIGINT")
        else:
            self.close()

    def suspend(self) -> None:
        """Ctrl-Z: stop the process, leaving raw mode while stopped."""
        if sys.platform == "win32":
            return
        if self.listener_count("SIGTSTP") > 0:
            self.emit("SIGTSTP")
            return

        previous = signal.getsignal(signal.SIGCONT)

        def on_sigcont(signum: int, frame: object) -> None:
            signal.signal(signal.SIGCONT, previous if previous is not None else signal.SIG_DFL)
            self._on_sigcont()

        signal.signal(signal.SIGCONT, on_sigcont)
        logger.debug("suspending on SIGTSTP")
        self.terminal.set_raw_mode(False)
        os.kill(os.getpid(), signal.SIGTSTP)

    def _on_sigcont(self) -> None:
        if self._closed:
            return
        logger.debug("resumed on SIGCONT")
        # Cycle the reader so input stalled while stopped is picked up again
        self.pause()
        self.emit("SIGCONT")
        self.terminal.set_raw_mode(True)
        self.resume()
        self.dispatcher.refresh()
