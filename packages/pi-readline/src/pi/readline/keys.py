"""Decode complete terminal input sequences into :class:`KeyEvent` values.

Input arrives from :class:`~pi.readline.stdin_buffer.StdinBuffer` already
split into whole escape sequences, control bytes, or runs of printable text.
Key names follow the conventional readline vocabulary: ``"return"`` is a
carriage return, ``"enter"`` a bare line feed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

ESC = "\x1b"

# ---------------------------------------------------------------------------
# Key event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """A decoded key press.

    ``name`` is empty for runs of plain text (for example a paste delivered
    in one read); ``sequence`` always carries the raw input.
    """

    name: str = ""
    sequence: str = ""
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def text(self) -> str:
        """The text this event inserts when it has no binding, or ``""``."""
        seq = self.sequence
        if not seq or seq.startswith(ESC) or self.ctrl or self.meta:
            return ""
        for ch in seq:
            cp = ord(ch)
            if (cp < 0x20 and ch not in "\t\r\n") or cp == 0x7F:
                return ""
        return seq


# ---------------------------------------------------------------------------
# Escape-sequence tables
# ---------------------------------------------------------------------------

# Final byte of ``CSI [1;mod] X`` / ``SS3 X`` sequences.
_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "E": "clear",
    "F": "end",
    "H": "home",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
    "Z": "tab",
}

# Numeric parameter of ``CSI n [;mod] ~`` sequences.
_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageup",
    6: "pagedown",
    7: "home",
    8: "end",
    11: "f1",
    12: "f2",
    13: "f3",
    14: "f4",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

# Codepoints that carry a name of their own in CSI-u / modifyOtherKeys.
_CODEPOINT_KEYS: dict[int, str] = {
    8: "backspace",
    9: "tab",
    13: "return",
    27: "escape",
    32: "space",
    127: "backspace",
}

_CSI_RE = re.compile(r"^\x1b(?:\[|O)(\d*)(?:;(\d*))?([A-Za-z~^$@])$")
_CSI_U_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+))?u$")
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")


def _modifiers(param: str | None) -> dict[str, bool]:
    """Decode an xterm modifier parameter (``1 + bitmask``)."""
    if not param:
        return {"shift": False, "meta": False, "ctrl": False}
    bits = max(int(param) - 1, 0)
    return {
        "shift": bool(bits & 1),
        "meta": bool(bits & (2 | 8)),
        "ctrl": bool(bits & 4),
    }


def _from_codepoint(sequence: str, codepoint: int, mod: str | None) -> KeyEvent:
    flags = _modifiers(mod)
    name = _CODEPOINT_KEYS.get(codepoint)
    if name is None:
        ch = chr(codepoint)
        name = ch.lower()
        if ch.isupper():
            flags["shift"] = True
    return KeyEvent(name=name, sequence=sequence, **flags)


def _decode_escape(sequence: str) -> KeyEvent:
    match = _MODIFY_OTHER_KEYS_RE.match(sequence)
    if match:
        return _from_codepoint(sequence, int(match.group(2)), match.group(1))

    match = _CSI_U_RE.match(sequence)
    if match:
        return _from_codepoint(sequence, int(match.group(1)), match.group(2))

    match = _CSI_RE.match(sequence)
    if match:
        number, mod, final = match.groups()
        flags = _modifiers(mod)
        if final in "~^$@":
            name = _TILDE_KEYS.get(int(number)) if number else None
            # rxvt encodes modifiers in the final byte
            if final == "^":
                flags["ctrl"] = True
            elif final == "$":
                flags["shift"] = True
            elif final == "@":
                flags["ctrl"] = flags["shift"] = True
        else:
            name = _LETTER_KEYS.get(final)
            if final == "Z":
                flags["shift"] = True
            elif number and not mod:
                # ``CSI 5 D`` style: the lone number is the modifier
                flags = _modifiers(number)
        return KeyEvent(name=name or "undefined", sequence=sequence, **flags)

    if len(sequence) > 2 and sequence[1] == ESC:
        inner = _decode_escape(sequence[1:])
        return KeyEvent(
            name=inner.name,
            sequence=sequence,
            ctrl=inner.ctrl,
            meta=True,
            shift=inner.shift,
        )

    if len(sequence) == 2:
        inner = decode_key(sequence[1])
        if inner.name == "escape":
            return KeyEvent(name="escape", sequence=sequence, meta=True)
        return KeyEvent(
            name=inner.name,
            sequence=sequence,
            ctrl=inner.ctrl,
            meta=True,
            shift=inner.shift,
        )

    return KeyEvent(name="undefined", sequence=sequence)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode_key(sequence: str) -> KeyEvent:
    """Decode one complete input sequence.

    Unknown escape sequences decode to ``name="undefined"`` so the dispatcher
    can drop them without echoing their bytes.
    """
    if not sequence:
        return KeyEvent()

    if sequence == ESC:
        return KeyEvent(name="escape", sequence=sequence)
    if sequence.startswith(ESC):
        return _decode_escape(sequence)

    if len(sequence) > 1:
        # A run of text delivered in one read
        return KeyEvent(sequence=sequence)

    ch = sequence
    cp = ord(ch)
    if ch == "\r":
        return KeyEvent(name="return", sequence=ch)
    if ch == "\n":
        return KeyEvent(name="enter", sequence=ch)
    if ch == "\t":
        return KeyEvent(name="tab", sequence=ch)
    if ch == "\x7f":
        return KeyEvent(name="backspace", sequence=ch)
    if ch == " ":
        return KeyEvent(name="space", sequence=ch)
    if cp == 0:
        return KeyEvent(name="space", sequence=ch, ctrl=True)
    if cp <= 0x1A:
        return KeyEvent(name=chr(cp + ord("a") - 1), sequence=ch, ctrl=True)
    if cp < 0x20:
        return KeyEvent(name="undefined", sequence=ch, ctrl=True)
    if ch.isalpha() and ch.isupper():
        return KeyEvent(name=ch.lower(), sequence=ch, shift=True)
    if ch.isalnum():
        return KeyEvent(name=ch.lower(), sequence=ch)
    return KeyEvent(sequence=ch)
