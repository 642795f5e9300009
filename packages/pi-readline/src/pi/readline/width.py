"""Unicode width oracle: display columns and logical-character boundaries.

Widths come from :mod:`wcwidth`; grapheme boundaries from :mod:`grapheme`.
Strings may carry UTF-16 surrogate pairs (for example text decoded with
``surrogatepass``), so every scanner here pairs a high surrogate with the low
surrogate that follows it and treats the two units as one character.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterator

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HIGH_SURROGATE_START = 0xD800
HIGH_SURROGATE_END = 0xDBFF
LOW_SURROGATE_START = 0xDC00
LOW_SURROGATE_END = 0xDFFF
UTF16_SURROGATE_THRESHOLD = 0x10000

# CSI / OSC / single-character escapes, including the 8-bit CSI introducer.
_VT_CONTROL_RE = re.compile(
    r"[\x1b\x9b][\[\]()#;?]*"
    r"(?:"
    r"(?:(?:[a-zA-Z\d]*(?:;[-a-zA-Z\d/#&.:=?%@~_]*)*)?\x07)"
    r"|(?:(?:\d{1,4}(?:;\d{0,4})*)?[\dA-PR-TZcf-ntqry=><~])"
    r")"
)


# ---------------------------------------------------------------------------
# Per-code-point width
# ---------------------------------------------------------------------------


@lru_cache(maxsize=4096)
def width_of(code_point: int) -> int:
    """Return the number of terminal columns *code_point* occupies (0, 1, 2).

    Control characters and zero-width marks give 0. A lone surrogate is shown
    by terminals as a replacement glyph and counts as 1.
    """
    if code_point < 0x20 or 0x7F <= code_point < 0xA0:
        return 0
    if 0x20 <= code_point < 0x7F:
        return 1
    if HIGH_SURROGATE_START <= code_point <= LOW_SURROGATE_END:
        return 1
    w = _wcwidth.wcwidth(chr(code_point))
    if w < 0:
        return 0
    return min(w, 2)


def is_full_width_code_point(code_point: int) -> bool:
    return width_of(code_point) == 2


# ---------------------------------------------------------------------------
# Surrogate handling
# ---------------------------------------------------------------------------


def _is_high_surrogate(unit: int) -> bool:
    return HIGH_SURROGATE_START <= unit <= HIGH_SURROGATE_END


def _is_low_surrogate(unit: int) -> bool:
    return LOW_SURROGATE_START <= unit <= LOW_SURROGATE_END


def is_surrogate_pair_at(text: str, index: int) -> bool:
    """True when ``text[index:index + 2]`` is a high/low surrogate pair."""
    if index < 0 or index + 1 >= len(text):
        return False
    return _is_high_surrogate(ord(text[index])) and _is_low_surrogate(
        ord(text[index + 1])
    )


def code_point_at(text: str, index: int) -> int:
    """Return the code point starting at *index*, combining surrogate pairs."""
    unit = ord(text[index])
    if is_surrogate_pair_at(text, index):
        low = ord(text[index + 1])
        return (
            (unit - HIGH_SURROGATE_START) * 0x400
            + (low - LOW_SURROGATE_START)
            + UTF16_SURROGATE_THRESHOLD
        )
    return unit


def iter_code_points(text: str) -> Iterator[int]:
    """Yield the code points of *text*, advancing two units over a pair."""
    i = 0
    length = len(text)
    while i < length:
        cp = code_point_at(text, i)
        yield cp
        i += 2 if is_surrogate_pair_at(text, i) else 1


# ---------------------------------------------------------------------------
# Logical-character boundaries
# ---------------------------------------------------------------------------


def char_length_at(text: str, index: int) -> int:
    """Number of string units of the logical character starting at *index*.

    Returns 0 at or past the end of *text*.
    """
    if index >= len(text):
        return 0
    if is_surrogate_pair_at(text, index):
        return 2
    first = next(grapheme.graphemes(text[index:]), None)
    return len(first) if first else 1


def char_length_left(text: str, index: int) -> int:
    """Number of string units of the logical character ending at *index*.

    Returns 0 at or before the start of *text*.
    """
    if index <= 0:
        return 0
    if index > 1 and is_surrogate_pair_at(text, index - 2):
        return 2
    clusters = list(grapheme.graphemes(text[:index]))
    return len(clusters[-1]) if clusters else 1


# ---------------------------------------------------------------------------
# Whole-string helpers
# ---------------------------------------------------------------------------


def strip_vt_control_characters(text: str) -> str:
    """Remove ANSI escape sequences from *text*."""
    return _VT_CONTROL_RE.sub("", text)


def string_width(text: str) -> int:
    """Visible width of *text* in columns, ignoring escape sequences."""
    if not text:
        return 0
    stripped = strip_vt_control_characters(text)
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)
    return sum(width_of(cp) for cp in iter_code_points(stripped))
