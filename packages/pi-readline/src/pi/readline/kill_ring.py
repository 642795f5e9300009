"""Kill ring backing Ctrl-Y / Meta-Y."""

from __future__ import annotations

from collections import deque

DEFAULT_KILL_RING_SIZE = 10


class KillRing:
    """Bounded store of killed text, most recent last.

    Consecutive kills in the same direction merge into one entry, so
    ``Ctrl-W Ctrl-W`` yanks back both words at once.
    """

    def __init__(self, capacity: int = DEFAULT_KILL_RING_SIZE) -> None:
        self._ring: deque[str] = deque(maxlen=max(capacity, 1))

    def push(self, text: str, *, prepend: bool, accumulate: bool = False) -> None:
        """Record killed *text*.

        Args:
            text: The deleted text.
            prepend: Merge in front of the last entry (backward kills) rather
                than after it (forward kills).
            accumulate: Merge with the last entry instead of adding a new one.
        """
        if not text:
            return
        if accumulate and self._ring:
            last = self._ring.pop()
            text = text + last if prepend else last + text
        self._ring.append(text)

    def peek(self) -> str | None:
        return self._ring[-1] if self._ring else None

    def rotate(self) -> str | None:
        """Bring the previous entry to the top and return it."""
        if len(self._ring) > 1:
            self._ring.rotate(1)
        return self.peek()

    def __len__(self) -> int:
        return len(self._ring)
