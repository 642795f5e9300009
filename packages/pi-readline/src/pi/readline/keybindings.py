"""Key-to-action table for the line editor.

Bindings are keyed by ``(ModifierClass, key_name)`` so that lookup is a
single dict access instead of nested conditionals over key identity.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Mapping

from pi.readline.keys import KeyEvent

EditorAction = Literal[
    # Line submission
    "carriageReturn",
    "lineFeed",
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteCharForwardOrEof",
    "deleteWordBackward",
    "deleteWordForward",
    "deleteToLineStart",
    "deleteToLineEnd",
    # Kill ring
    "yank",
    "yankPop",
    # History
    "historyPrev",
    "historyNext",
    # Completion
    "complete",
    # Screen and process
    "clearScreen",
    "interrupt",
    "suspend",
]


class ModifierClass(Enum):
    PLAIN = "plain"
    CTRL = "ctrl"
    CTRL_SHIFT = "ctrl+shift"
    META = "meta"


BindingKey = tuple[ModifierClass, str]


def modifier_class(event: KeyEvent) -> ModifierClass:
    """Ctrl wins over meta; shift only matters together with ctrl."""
    if event.ctrl and event.shift:
        return ModifierClass.CTRL_SHIFT
    if event.ctrl:
        return ModifierClass.CTRL
    if event.meta:
        return ModifierClass.META
    return ModifierClass.PLAIN


_P = ModifierClass.PLAIN
_C = ModifierClass.CTRL
_CS = ModifierClass.CTRL_SHIFT
_M = ModifierClass.META

DEFAULT_BINDINGS: dict[BindingKey, EditorAction] = {
    # Plain keys
    (_P, "return"): "carriageReturn",
    (_P, "enter"): "lineFeed",
    (_P, "backspace"): "deleteCharBackward",
    (_P, "delete"): "deleteCharForward",
    (_P, "left"): "cursorLeft",
    (_P, "right"): "cursorRight",
    (_P, "home"): "cursorLineStart",
    (_P, "end"): "cursorLineEnd",
    (_P, "up"): "historyPrev",
    (_P, "down"): "historyNext",
    (_P, "tab"): "complete",
    # Control chords
    (_C, "c"): "interrupt",
    (_C, "h"): "deleteCharBackward",
    (_C, "d"): "deleteCharForwardOrEof",
    (_C, "u"): "deleteToLineStart",
    (_C, "k"): "deleteToLineEnd",
    (_C, "a"): "cursorLineStart",
    (_C, "e"): "cursorLineEnd",
    (_C, "b"): "cursorLeft",
    (_C, "f"): "cursorRight",
    (_C, "l"): "clearScreen",
    (_C, "n"): "historyNext",
    (_C, "p"): "historyPrev",
    (_C, "z"): "suspend",
    (_C, "w"): "deleteWordBackward",
    (_C, "backspace"): "deleteWordBackward",
    (_C, "delete"): "deleteWordForward",
    (_C, "left"): "cursorWordLeft",
    (_C, "right"): "cursorWordRight",
    (_C, "y"): "yank",
    # Control + shift
    (_CS, "backspace"): "deleteToLineStart",
    (_CS, "delete"): "deleteToLineEnd",
    # Meta chords
    (_M, "b"): "cursorWordLeft",
    (_M, "f"): "cursorWordRight",
    (_M, "d"): "deleteWordForward",
    (_M, "delete"): "deleteWordForward",
    (_M, "backspace"): "deleteWordBackward",
    (_M, "y"): "yankPop",
}

# Reduced table used when TERM=dumb: no cursor addressing is available.
DUMB_BINDINGS: dict[BindingKey, EditorAction] = {
    (_P, "return"): "carriageReturn",
    (_P, "enter"): "lineFeed",
    (_C, "c"): "interrupt",
}

_PREFIXES: dict[str, ModifierClass] = {
    "ctrl+shift+": ModifierClass.CTRL_SHIFT,
    "ctrl+": ModifierClass.CTRL,
    "meta+": ModifierClass.META,
    "alt+": ModifierClass.META,
}


def parse_binding(key_id: str) -> BindingKey:
    """Parse ``"ctrl+x"``, ``"meta+b"``, ``"ctrl+shift+delete"`` or ``"left"``."""
    key_id = key_id.strip().lower()
    for prefix, cls in _PREFIXES.items():
        if key_id.startswith(prefix):
            return cls, key_id[len(prefix) :]
    return ModifierClass.PLAIN, key_id


class KeyBindings:
    """Resolves key events to editor actions.

    *overrides* maps key ids (see :func:`parse_binding`) to action names and
    is layered over *base*.
    """

    def __init__(
        self,
        overrides: Mapping[str, str] | None = None,
        *,
        base: Mapping[BindingKey, EditorAction] = DEFAULT_BINDINGS,
    ) -> None:
        self._table: dict[BindingKey, str] = dict(base)
        for key_id, action in (overrides or {}).items():
            self._table[parse_binding(key_id)] = action

    def resolve(self, event: KeyEvent) -> str | None:
        """Action bound to *event*, or ``None`` when the key is unbound."""
        return self._table.get((modifier_class(event), event.name))

    def keys_for(self, action: str) -> list[BindingKey]:
        return [key for key, bound in self._table.items() if bound == action]
