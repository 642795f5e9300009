"""Tab completion: calling the completer and laying out its candidates."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence, Union

from pi.readline.errors import CompletionError
from pi.readline.width import string_width

logger = logging.getLogger(__name__)

CompletionReturn = tuple[Sequence[str], str]
Completer = Callable[[str], Union[CompletionReturn, Awaitable[CompletionReturn]]]
"""``completer(prefix) -> (candidates, matched_prefix)``, sync or async.

An empty string among the candidates separates display groups.
"""

_CELL_PADDING = 2


@dataclass
class CompletionResult:
    candidates: list[str] = field(default_factory=list)
    matched: str = ""
    listing: str = ""
    insert: str = ""


def common_prefix(strings: Sequence[str]) -> str:
    """Longest prefix shared by all *strings*."""
    if not strings:
        return ""
    if len(strings) == 1:
        return strings[0]
    lo = min(strings)
    hi = max(strings)
    for i, ch in enumerate(lo):
        if ch != hi[i]:
            return lo[:i]
    return lo


def layout_candidates(candidates: Sequence[str], columns: int) -> str:
    """Format *candidates* as column-aligned rows, ``\\r\\n`` terminated.

    Each cell is as wide as the longest candidate plus two spaces. Empty
    strings split the candidates into groups; each group is followed by a
    blank row.
    """
    if not candidates:
        return ""
    width = max(string_width(c) for c in candidates) + _CELL_PADDING
    max_columns = max(columns // width, 1)

    out: list[str] = []
    group: list[str] = []
    for candidate in candidates:
        if candidate == "":
            _layout_group(out, group, width, max_columns)
            group = []
        else:
            group.append(candidate)
    _layout_group(out, group, width, max_columns)
    return "".join(out)


def _layout_group(out: list[str], group: list[str], width: int, max_columns: int) -> None:
    if not group:
        return
    rows = -(-len(group) // max_columns)
    for row in range(rows):
        cells = group[row * max_columns : (row + 1) * max_columns]
        for col, item in enumerate(cells):
            out.append(item)
            if col < max_columns - 1:
                out.append(" " * (width - string_width(item)))
        out.append("\r\n")
    out.append("\r\n")


class CompletionCoordinator:
    """Runs one completer call per Tab press and decides what to show/insert."""

    def __init__(self, completer: Completer, *, enabled: bool = True) -> None:
        self.completer = completer
        self.enabled = enabled

    async def complete(self, prefix: str, *, double_tab: bool, columns: int) -> CompletionResult:
        """Complete *prefix*.

        Raises:
            CompletionError: The completer raised or returned something that is
                not a ``(candidates, matched_prefix)`` pair.
        """
        try:
            result = self.completer(prefix)
            if inspect.isawaitable(result):
                result = await result
            raw_candidates, matched = result
            if not isinstance(matched, str):
                raise TypeError(
                    f"matched prefix must be a str, not {type(matched).__name__}"
                )
            candidates = [str(c) for c in raw_candidates or []]
        except Exception as exc:
            raise CompletionError(prefix, exc) from exc

        logger.debug("completer returned %d candidates for %r", len(candidates), prefix)
        if not candidates:
            return CompletionResult(matched=matched)

        listing = layout_candidates(candidates, columns) if double_tab else ""
        shared = common_prefix([c for c in candidates if c])
        insert = shared[len(matched) :] if len(shared) > len(matched) else ""
        return CompletionResult(
            candidates=candidates, matched=matched, listing=listing, insert=insert
        )
