"""Bounded in-memory history of committed lines."""

from __future__ import annotations

from typing import Iterable

DEFAULT_HISTORY_SIZE = 30


class HistoryRing:
    """Most-recent-first list of committed lines with a browse cursor.

    ``index`` is -1 while the user edits a fresh line, otherwise it points at
    the entry currently loaded into the line buffer.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_HISTORY_SIZE,
        *,
        remove_duplicates: bool = False,
        entries: Iterable[str] | None = None,
    ) -> None:
        if capacity < 0:
            raise ValueError("history capacity must be >= 0")
        self.capacity = capacity
        self.remove_duplicates = remove_duplicates
        self._entries: list[str] = list(entries or [])[:capacity]
        self._index = -1

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def browsing(self) -> bool:
        return self._index != -1

    def __len__(self) -> int:
        return len(self._entries)

    def commit(self, line: str) -> str:
        """Record *line* and return the line the caller should emit."""
        if not line:
            return ""
        if self.capacity == 0:
            return line
        if not line.strip():
            return line

        if not self._entries or self._entries[0] != line:
            if self.remove_duplicates and line in self._entries:
                self._entries.remove(line)
            self._entries.insert(0, line)
            if len(self._entries) > self.capacity:
                self._entries.pop()

        self._index = -1
        return self._entries[0]

    def navigate_prev(self) -> str | None:
        """Step to an older entry; ``None`` when already at the oldest."""
        if self._index + 1 >= len(self._entries):
            return None
        self._index += 1
        return self._entries[self._index]

    def navigate_next(self) -> str | None:
        """Step to a newer entry; ``""`` when leaving history mode.

        ``None`` means there was nothing to do (not browsing).
        """
        if self._index > 0:
            self._index -= 1
            return self._entries[self._index]
        if self._index == 0:
            self._index = -1
            return ""
        return None

    def reset_index(self) -> None:
        self._index = -1
