"""Render planner: screen geometry of the prompt line and differential redraw.

All output for the edited line goes through :class:`RenderPlanner`, which
remembers what it last put on screen (:class:`RenderState`) so the next
redraw can return to the first row of the prompt before repainting.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from pi.readline import ansi
from pi.readline.terminal import Terminal
from pi.readline.width import (
    code_point_at,
    is_full_width_code_point,
    iter_code_points,
    strip_vt_control_characters,
    width_of,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DisplayPos:
    """Zero-based column and row relative to the start of the prompt."""

    cols: int
    rows: int


def get_display_pos(text: str, columns: int) -> DisplayPos:
    """Position the terminal cursor ends at after writing *text*.

    Escape sequences are ignored. A newline always advances at least one row.
    A full-width character that would start in the last column is pushed to
    the next row, as terminals do.
    """
    columns = max(columns, 1)
    offset = 0
    row = 0
    for cp in iter_code_points(strip_vt_control_characters(text)):
        if cp == 0x0A:
            row += math.ceil(offset / columns) or 1
            offset = 0
            continue
        width = width_of(cp)
        if width == 2:
            if (offset + 1) % columns == 0:
                offset += 1
            offset += 2
        else:
            offset += width
    cols = offset % columns
    rows = row + (offset - cols) // columns
    return DisplayPos(cols, rows)


def get_cursor_pos(prompt: str, line: str, cursor: int, columns: int) -> DisplayPos:
    """Screen position of the editing cursor within ``prompt + line``."""
    pos = get_display_pos(prompt + line[:cursor], columns)
    # A full-width character under the cursor in the last column is drawn at
    # the start of the next row, and so is the cursor.
    if (
        pos.cols + 1 == columns
        and cursor < len(line)
        and is_full_width_code_point(code_point_at(line, cursor))
    ):
        return DisplayPos(0, pos.rows + 1)
    return pos


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


@dataclass
class RenderState:
    """What the planner last drew."""

    prompt: str = ""
    line: str = ""
    cursor: int = 0
    prev_rows: int = 0
    columns: int | None = None


class RenderPlanner:
    """Owns terminal output for the edited line.

    Every method writes its escape sequences in a single ``Terminal.write``
    and updates :attr:`state` to match the screen.
    """

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self.state = RenderState()
        self._full_redraw_count = 0

    @property
    def prev_rows(self) -> int:
        return self.state.prev_rows

    @property
    def full_redraws(self) -> int:
        """Redraws forced by a width change or a screen clear."""
        return self._full_redraw_count

    def _columns(self) -> int:
        return max(self.terminal.columns, 1)

    def _geometry_changed(self, columns: int) -> bool:
        return self.state.columns is not None and self.state.columns != columns

    def _resync(self, columns: int) -> None:
        """Recompute the remembered cursor row under a new terminal width."""
        old = self.state.columns
        st = self.state
        st.prev_rows = get_cursor_pos(st.prompt, st.line, st.cursor, columns).rows
        self._full_redraw_count += 1
        logger.debug("terminal width %s -> %s, forcing full redraw", old, columns)

    # -- full redraw --------------------------------------------------------

    def refresh_line(self, prompt: str, line: str, cursor: int) -> str:
        """Repaint prompt and line from the prompt's first row."""
        columns = self._columns()
        if self._geometry_changed(columns):
            self._resync(columns)

        text = prompt + line
        line_pos = get_display_pos(text, columns)
        cursor_pos = get_cursor_pos(prompt, line, cursor, columns)

        out: list[str] = []
        if self.state.prev_rows > 0:
            out.append(ansi.move_cursor(0, -self.state.prev_rows))
        out.append(ansi.cursor_to(0))
        out.append(ansi.CLEAR_SCREEN_DOWN)
        out.append(text)
        # A line that exactly fills its last row leaves the terminal in
        # pending-wrap state; force it onto the next row.
        if line_pos.cols == 0:
            out.append(" ")
        out.append(ansi.cursor_to(cursor_pos.cols))
        diff = line_pos.rows - cursor_pos.rows
        if diff > 0:
            out.append(ansi.move_cursor(0, -diff))

        self.state = RenderState(
            prompt=prompt,
            line=line,
            cursor=cursor,
            prev_rows=cursor_pos.rows,
            columns=columns,
        )
        data = "".join(out)
        self.terminal.write(data)
        return data

    # -- incremental paths --------------------------------------------------

    def append(self, prompt: str, line: str, cursor: int, inserted: str) -> str:
        """Echo *inserted*, already appended at the end of *line*.

        Falls back to a full redraw when the cursor lands in column 0 or the
        terminal width changed.
        """
        columns = self._columns()
        cursor_pos = get_cursor_pos(prompt, line, cursor, columns)
        if (
            cursor_pos.cols == 0
            or self._geometry_changed(columns)
            or self.state.line + inserted != line
            or self.state.cursor != len(self.state.line)
            or self.state.prompt != prompt
        ):
            return self.refresh_line(prompt, line, cursor)

        self.state = RenderState(
            prompt=prompt,
            line=line,
            cursor=cursor,
            prev_rows=cursor_pos.rows,
            columns=columns,
        )
        self.terminal.write(inserted)
        return inserted

    def move_cursor(self, prompt: str, line: str, old_cursor: int, new_cursor: int) -> str:
        """Move the cursor within an unchanged line.

        A same-row move is one relative horizontal step; anything else is a
        full redraw.
        """
        columns = self._columns()
        if self._geometry_changed(columns) or self.state.line != line:
            return self.refresh_line(prompt, line, new_cursor)

        old_pos = get_cursor_pos(prompt, line, old_cursor, columns)
        new_pos = get_cursor_pos(prompt, line, new_cursor, columns)
        if old_pos.rows != new_pos.rows:
            return self.refresh_line(prompt, line, new_cursor)

        self.state.cursor = new_cursor
        self.state.prev_rows = new_pos.rows
        data = ansi.move_cursor(new_pos.cols - old_pos.cols, 0)
        if data:
            self.terminal.write(data)
        return data

    # -- line and screen transitions ---------------------------------------

    def commit_line(self, prompt: str, line: str, cursor: int) -> None:
        """Leave the finished line on screen and start a fresh row below it."""
        self.move_cursor(prompt, line, cursor, len(line))
        self.terminal.write("\r\n")
        self.state = RenderState(columns=self.state.columns)

    def clear_screen(self) -> None:
        self._full_redraw_count += 1
        self.terminal.write(ansi.cursor_to(0, 0) + ansi.CLEAR_SCREEN_DOWN)
        self.state.prev_rows = 0

    def print_above(self, text: str) -> None:
        """Write *text* on fresh rows below the line; the next refresh draws
        the prompt again underneath it."""
        st = self.state
        if st.columns is not None:
            line_rows = get_display_pos(st.prompt + st.line, st.columns).rows
            down = line_rows - st.prev_rows
            if down > 0:
                self.terminal.write(ansi.move_cursor(0, down))
        self.terminal.write("\r\n" + text)
        self.state = RenderState(columns=st.columns)

    def write(self, data: str) -> None:
        """Unmanaged output (dumb terminals and notices)."""
        self.terminal.write(data)
