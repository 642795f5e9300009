"""Exception types raised inside the line editor."""

from __future__ import annotations


class ReadlineError(Exception):
    """Base class for line-editor errors."""


class CompletionError(ReadlineError):
    """The configured completer failed for a single Tab request.

    Reported on the output stream; the session keeps running.
    """

    def __init__(self, prefix: str, cause: BaseException) -> None:
        super().__init__(f"completion failed for {prefix!r}: {cause!r}")
        self.prefix = prefix
        self.cause = cause


class CursorInvariantError(ReadlineError):
    """A line-buffer mutation left the cursor outside ``[0, len(text)]``."""

    def __init__(self, cursor: int, length: int) -> None:
        super().__init__(f"cursor {cursor} outside line of length {length}")
        self.cursor = cursor
        self.length = length
