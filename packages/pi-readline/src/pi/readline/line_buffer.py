"""In-progress line text and cursor."""

from __future__ import annotations

import math
import re

from pi.readline.errors import CursorInvariantError
from pi.readline.width import char_length_at, char_length_left

# Matched against the reversed text left of the cursor.
_WORD_LEFT_RE = re.compile(r"^\s*(?:[^\w\s]+|\w+)?")
_WORD_RIGHT_RE = re.compile(r"^(?:\s+|[^\w\s]+|\w+)\s*")
_DELETE_WORD_RIGHT_RE = re.compile(r"^(?:\s+|\W+|\w+)\s*")


class LineBuffer:
    """Text of the line being edited plus a cursor offset into it.

    Offsets count string units (code points, or surrogate halves when the
    text carries UTF-16 pairs). Every mutation re-checks
    ``0 <= cursor <= len(text)``.

    Deleting methods return the removed text so the caller can feed a kill
    ring.
    """

    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        self._text = text
        self._cursor = len(text) if cursor is None else cursor
        self._check()

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"LineBuffer(text={self._text!r}, cursor={self._cursor})"

    # -- whole-line -------------------------------------------------------

    def set(self, text: str) -> None:
        """Replace the text and put the cursor at its end."""
        self._text = text
        self._cursor = len(text)
        self._check()

    def clear(self) -> None:
        self._text = ""
        self._cursor = 0

    def before_cursor(self) -> str:
        return self._text[: self._cursor]

    # -- insertion --------------------------------------------------------

    def insert(self, s: str, at: int | None = None) -> None:
        """Splice *s* into the text at *at* (default: the cursor).

        The cursor advances by ``len(s)`` when it sits at or after *at*.
        """
        pos = self._cursor if at is None else at
        if pos < 0 or pos > len(self._text):
            raise CursorInvariantError(pos, len(self._text))
        self._text = self._text[:pos] + s + self._text[pos:]
        if self._cursor >= pos:
            self._cursor += len(s)
        self._check()

    def replace_range(self, start: int, end: int, s: str) -> None:
        """Replace ``text[start:end]`` with *s*; the cursor ends after *s*."""
        if not 0 <= start <= end <= len(self._text):
            raise CursorInvariantError(end, len(self._text))
        self._text = self._text[:start] + s + self._text[end:]
        self._cursor = start + len(s)
        self._check()

    # -- character deletion ----------------------------------------------

    def delete_left(self) -> str:
        if self._cursor <= 0 or not self._text:
            return ""
        size = char_length_left(self._text, self._cursor)
        removed = self._text[self._cursor - size : self._cursor]
        self._text = self._text[: self._cursor - size] + self._text[self._cursor :]
        self._cursor -= size
        self._check()
        return removed

    def delete_right(self) -> str:
        if self._cursor >= len(self._text):
            return ""
        size = char_length_at(self._text, self._cursor)
        removed = self._text[self._cursor : self._cursor + size]
        self._text = self._text[: self._cursor] + self._text[self._cursor + size :]
        self._check()
        return removed

    # -- word motion and deletion ----------------------------------------

    def word_left_offset(self) -> int:
        """Cursor offset of the start of the word left of the cursor."""
        if self._cursor <= 0:
            return 0
        reversed_leading = self._text[: self._cursor][::-1]
        match = _WORD_LEFT_RE.match(reversed_leading)
        return self._cursor - (len(match.group(0)) if match else 0)

    def word_right_offset(self) -> int:
        """Cursor offset just past the word right of the cursor."""
        if self._cursor >= len(self._text):
            return len(self._text)
        match = _WORD_RIGHT_RE.match(self._text[self._cursor :])
        return self._cursor + (len(match.group(0)) if match else 0)

    def delete_word_left(self) -> str:
        if self._cursor <= 0:
            return ""
        start = self.word_left_offset()
        removed = self._text[start : self._cursor]
        self._text = self._text[:start] + self._text[self._cursor :]
        self._cursor = start
        self._check()
        return removed

    def delete_word_right(self) -> str:
        if self._cursor >= len(self._text):
            return ""
        trailing = self._text[self._cursor :]
        match = _DELETE_WORD_RIGHT_RE.match(trailing)
        size = len(match.group(0)) if match else 0
        removed = trailing[:size]
        self._text = self._text[: self._cursor] + trailing[size:]
        self._check()
        return removed

    # -- line deletion ----------------------------------------------------

    def delete_line_left(self) -> str:
        removed = self._text[: self._cursor]
        self._text = self._text[self._cursor :]
        self._cursor = 0
        self._check()
        return removed

    def delete_line_right(self) -> str:
        removed = self._text[self._cursor :]
        self._text = self._text[: self._cursor]
        self._check()
        return removed

    # -- cursor motion ----------------------------------------------------

    def move_cursor(self, delta: float) -> int:
        """Move the cursor by *delta*, clamped to the line.

        ``-math.inf`` / ``math.inf`` jump to the start / end. Returns the
        previous cursor offset.
        """
        old = self._cursor
        if delta == -math.inf:
            target = 0
        elif delta == math.inf:
            target = len(self._text)
        else:
            target = old + int(delta)
        self._cursor = min(max(target, 0), len(self._text))
        self._check()
        return old

    def move_left(self) -> int:
        return self.move_cursor(-char_length_left(self._text, self._cursor))

    def move_right(self) -> int:
        return self.move_cursor(char_length_at(self._text, self._cursor))

    def _check(self) -> None:
        if not 0 <= self._cursor <= len(self._text):
            raise CursorInvariantError(self._cursor, len(self._text))
