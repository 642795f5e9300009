"""Key dispatcher: the editing state machine.

Consumes decoded :class:`~pi.readline.keys.KeyEvent` values one at a time,
applies the bound action to the line buffer / history / kill ring, and asks
the render planner to bring the screen up to date.

Two states: ``IDLE`` processes keys as they arrive; ``AWAITING_COMPLETION``
holds them in arrival order until the outstanding completer call finishes,
then replays them.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
import time
from collections import deque
from enum import Enum
from typing import Callable, Protocol

from pi.readline.completion import CompletionCoordinator, CompletionResult
from pi.readline.errors import CompletionError
from pi.readline.history import HistoryRing
from pi.readline.keybindings import DUMB_BINDINGS, KeyBindings, ModifierClass, modifier_class
from pi.readline.keys import KeyEvent
from pi.readline.kill_ring import KillRing
from pi.readline.line_buffer import LineBuffer
from pi.readline.render import RenderPlanner, get_cursor_pos

logger = logging.getLogger(__name__)

_LINE_SPLIT_RE = re.compile(r"\r\n|\n|\r")


class DispatcherState(Enum):
    IDLE = "idle"
    AWAITING_COMPLETION = "awaiting-completion"


class DispatchHost(Protocol):
    """Session-level operations the dispatcher delegates."""

    def get_prompt(self) -> str: ...

    def on_line(self, line: str) -> None: ...

    def interrupt(self) -> None: ...

    def close(self) -> None: ...

    def suspend(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...


class KeyDispatcher:
    """Maps key events to editing actions through a ``(modifier, key)`` table."""

    def __init__(
        self,
        host: DispatchHost,
        planner: RenderPlanner,
        *,
        history: HistoryRing | None = None,
        completion: CompletionCoordinator | None = None,
        bindings: KeyBindings | None = None,
        dumb: bool = False,
        crlf_delay: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.planner = planner
        self.buffer = LineBuffer()
        self.history = history if history is not None else HistoryRing()
        self.kill_ring = KillRing()
        self.completion = completion
        self.dumb = dumb
        self.bindings = bindings or (
            KeyBindings(base=DUMB_BINDINGS) if dumb else KeyBindings()
        )
        self.crlf_delay = crlf_delay
        self.clock = clock

        self.state = DispatcherState.IDLE
        self._pending: deque[KeyEvent] = deque()
        self._completion_task: asyncio.Task[None] | None = None
        self._closed = False

        self._prior_event: KeyEvent | None = None
        self._last_event: KeyEvent | None = None
        self._saw_return_at: float | None = None
        # "kill" / "yank" bookkeeping for kill-ring accumulation and yank-pop
        self._prior_kind: str | None = None
        self._last_kind: str | None = None

        self._handlers: dict[str, Callable[[], None]] = {
            "carriageReturn": self._carriage_return,
            "lineFeed": self._line_feed,
            "cursorLeft": lambda: self._move(self.buffer.move_left),
            "cursorRight": lambda: self._move(self.buffer.move_right),
            "cursorWordLeft": self._word_left,
            "cursorWordRight": self._word_right,
            "cursorLineStart": lambda: self._move(lambda: self.buffer.move_cursor(-math.inf)),
            "cursorLineEnd": lambda: self._move(lambda: self.buffer.move_cursor(math.inf)),
            "deleteCharBackward": self._delete_left,
            "deleteCharForward": self._delete_right,
            "deleteCharForwardOrEof": self._delete_right_or_eof,
            "deleteWordBackward": self._delete_word_left,
            "deleteWordForward": self._delete_word_right,
            "deleteToLineStart": self._delete_line_left,
            "deleteToLineEnd": self._delete_line_right,
            "yank": self._yank,
            "yankPop": self._yank_pop,
            "historyPrev": self._history_prev,
            "historyNext": self._history_next,
            "complete": self._begin_completion,
            "clearScreen": self._clear_screen,
            "interrupt": self.host.interrupt,
            "suspend": self.host.suspend,
        }

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def pending_completion(self) -> asyncio.Task[None] | None:
        """The in-flight completion task, if any."""
        return self._completion_task

    @property
    def queued_events(self) -> int:
        return len(self._pending)

    def dispatch(self, event: KeyEvent) -> None:
        """Process *event* now, or queue it while a completion is outstanding."""
        if self._closed:
            return
        if self.state is DispatcherState.AWAITING_COMPLETION:
            self._pending.append(event)
            return
        self._process(event)

    def refresh(self) -> None:
        if self.dumb or self._closed:
            return
        self.planner.refresh_line(self.host.get_prompt(), self.buffer.text, self.buffer.cursor)

    def prompt(self, preserve_cursor: bool = False) -> None:
        if self.dumb:
            self.planner.write(self.host.get_prompt())
            return
        if not preserve_cursor:
            self.buffer.move_cursor(-math.inf)
        self.refresh()

    def clear_line(self) -> None:
        """Abandon the current line, leaving it on screen."""
        if not self.dumb:
            self.planner.commit_line(self.host.get_prompt(), self.buffer.text, self.buffer.cursor)
        self.buffer.clear()

    def get_cursor_pos(self) -> tuple[int, int]:
        """``(cols, rows)`` of the cursor relative to the prompt start."""
        pos = get_cursor_pos(
            self.host.get_prompt(),
            self.buffer.text,
            self.buffer.cursor,
            self.planner.terminal.columns,
        )
        return pos.cols, pos.rows

    def shutdown(self) -> None:
        """Stop processing: drop queued keys and cancel any completion."""
        self._closed = True
        self._pending.clear()
        if self._completion_task is not None and not self._completion_task.done():
            self._completion_task.cancel()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _process(self, event: KeyEvent) -> None:
        self._prior_event, self._last_event = self._last_event, event
        self._prior_kind, self._last_kind = self._last_kind, None

        # A bare escape is a fragment of a split sequence, never text
        if event.name == "escape":
            return

        try:
            self._run_action(event)
        except Exception:
            logger.exception("key handler failed for %r", event)

        seq = event.sequence
        if seq and 0xD800 <= ord(seq[0]) <= 0xDFFF:
            # Half of a surrogate pair arrived on its own; redraw once paired
            self.refresh()

    def _run_action(self, event: KeyEvent) -> None:
        cls = modifier_class(event)
        # CR bookkeeping only matters if LF comes right after
        if (
            cls is ModifierClass.PLAIN
            and self._saw_return_at is not None
            and event.name != "enter"
        ):
            self._saw_return_at = None

        action = self.bindings.resolve(event)
        if action == "complete" and not self._completion_ready():
            action = None

        if action is None:
            if cls is ModifierClass.PLAIN:
                self._insert_text(event.text)
            return

        handler = self._handlers.get(action)
        if handler is None:
            logger.debug("no handler for action %r", action)
            return
        handler()

    # ------------------------------------------------------------------
    # Text insertion and line commit
    # ------------------------------------------------------------------

    def _insert_text(self, text: str) -> None:
        if not text:
            return
        for i, part in enumerate(_LINE_SPLIT_RE.split(text)):
            if i > 0:
                self._commit()
            self._insert(part)

    def _insert(self, s: str) -> None:
        if not s:
            return
        at_end = self.buffer.cursor == len(self.buffer)
        self.buffer.insert(s)
        if self.dumb:
            self.planner.write(s)
        elif at_end:
            self.planner.append(self.host.get_prompt(), self.buffer.text, self.buffer.cursor, s)
        else:
            self.refresh()

    def _commit(self) -> None:
        line = self.history.commit(self.buffer.text)
        if self.dumb:
            self.planner.write("\r\n")
            self.buffer.clear()
        else:
            self.clear_line()
        self.host.on_line(line)

    def _carriage_return(self) -> None:
        self._saw_return_at = self.clock()
        self._commit()

    def _line_feed(self) -> None:
        # \r\n within the delay window is one newline, not two
        saw = self._saw_return_at
        if saw is None or self.clock() - saw > self.crlf_delay:
            self._commit()
        self._saw_return_at = None

    # ------------------------------------------------------------------
    # Cursor movement
    # ------------------------------------------------------------------

    def _move(self, step: Callable[[], int]) -> None:
        old = step()
        if old != self.buffer.cursor:
            self.planner.move_cursor(
                self.host.get_prompt(), self.buffer.text, old, self.buffer.cursor
            )

    def _word_left(self) -> None:
        target = self.buffer.word_left_offset()
        self._move(lambda: self.buffer.move_cursor(target - self.buffer.cursor))

    def _word_right(self) -> None:
        target = self.buffer.word_right_offset()
        self._move(lambda: self.buffer.move_cursor(target - self.buffer.cursor))

    # ------------------------------------------------------------------
    # Deletion and the kill ring
    # ------------------------------------------------------------------

    def _delete_left(self) -> None:
        if self.buffer.delete_left():
            self.refresh()

    def _delete_right(self) -> None:
        if self.buffer.delete_right():
            self.refresh()

    def _delete_right_or_eof(self) -> None:
        if self.buffer.cursor == 0 and len(self.buffer) == 0:
            self.host.close()
        elif self.buffer.cursor < len(self.buffer):
            self._delete_right()

    def _kill(self, text: str, *, prepend: bool) -> None:
        self.kill_ring.push(text, prepend=prepend, accumulate=self._prior_kind == "kill")
        self._last_kind = "kill"
        self.refresh()

    def _delete_word_left(self) -> None:
        removed = self.buffer.delete_word_left()
        if removed:
            self._kill(removed, prepend=True)

    def _delete_word_right(self) -> None:
        removed = self.buffer.delete_word_right()
        if removed:
            self._kill(removed, prepend=False)

    def _delete_line_left(self) -> None:
        self._kill(self.buffer.delete_line_left(), prepend=True)

    def _delete_line_right(self) -> None:
        self._kill(self.buffer.delete_line_right(), prepend=False)

    def _yank(self) -> None:
        text = self.kill_ring.peek()
        if not text:
            return
        self._insert(text)
        self._last_kind = "yank"

    def _yank_pop(self) -> None:
        if self._prior_kind != "yank" or len(self.kill_ring) <= 1:
            return
        previous = self.kill_ring.peek() or ""
        replacement = self.kill_ring.rotate() or ""
        end = self.buffer.cursor
        self.buffer.replace_range(end - len(previous), end, replacement)
        self._last_kind = "yank"
        self.refresh()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _history_prev(self) -> None:
        entry = self.history.navigate_prev()
        if entry is not None:
            self.buffer.set(entry)
            self.refresh()

    def _history_next(self) -> None:
        entry = self.history.navigate_next()
        if entry is not None:
            self.buffer.set(entry)
            self.refresh()

    # ------------------------------------------------------------------
    # Screen
    # ------------------------------------------------------------------

    def _clear_screen(self) -> None:
        self.planner.clear_screen()
        self.refresh()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _completion_ready(self) -> bool:
        return (
            not self.dumb
            and self.completion is not None
            and self.completion.enabled
        )

    def _begin_completion(self) -> None:
        prior = self._prior_event
        double_tab = (
            prior is not None
            and prior.name == "tab"
            and modifier_class(prior) is ModifierClass.PLAIN
        )
        prefix = self.buffer.before_cursor()

        self.state = DispatcherState.AWAITING_COMPLETION
        self.host.pause()
        logger.debug("completion started for %r (double_tab=%s)", prefix, double_tab)

        coro = self._run_completion(prefix, double_tab)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return
        self._completion_task = loop.create_task(coro)

    async def _run_completion(self, prefix: str, double_tab: bool) -> None:
        assert self.completion is not None
        result: CompletionResult | None = None
        try:
            result = await self.completion.complete(
                prefix, double_tab=double_tab, columns=self.planner.terminal.columns
            )
        except CompletionError as exc:
            logger.debug("completion failed: %s", exc)
            self.planner.print_above(f"tab completion error {exc.cause!r}\r\n")
        except Exception:
            logger.exception("completion failed for %r", prefix)
        finally:
            self.state = DispatcherState.IDLE
            self._completion_task = None

        if self._closed:
            return

        try:
            if result is not None:
                if result.listing:
                    self.planner.print_above(result.listing)
                if result.insert:
                    self.buffer.insert(result.insert)
        except Exception:
            logger.exception("applying completion failed for %r", prefix)
        finally:
            # Input resumes whether or not the result applied
            self.host.resume()
            self.refresh()
            logger.debug("completion finished, replaying %d queued keys", len(self._pending))
            self._drain_pending()

    def _drain_pending(self) -> None:
        while (
            self._pending
            and self.state is DispatcherState.IDLE
            and not self._closed
        ):
            self._process(self._pending.popleft())
