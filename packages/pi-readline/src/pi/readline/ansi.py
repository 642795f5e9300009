"""ANSI escape sequences for cursor movement and clearing."""

from __future__ import annotations

CSI = "\x1b["

CLEAR_SCREEN_DOWN = f"{CSI}0J"

BRACKETED_PASTE_ENABLE = f"{CSI}?2004h"
BRACKETED_PASTE_DISABLE = f"{CSI}?2004l"


def cursor_to(x: int, y: int | None = None) -> str:
    """Absolute move to column *x* (and row *y*, both zero-based)."""
    if y is None:
        return f"{CSI}{x + 1}G"
    return f"{CSI}{y + 1};{x + 1}H"


def move_cursor(dx: int, dy: int) -> str:
    """Relative move; negative values go left / up."""
    data = ""
    if dx < 0:
        data += f"{CSI}{-dx}D"
    elif dx > 0:
        data += f"{CSI}{dx}C"
    if dy < 0:
        data += f"{CSI}{-dy}A"
    elif dy > 0:
        data += f"{CSI}{dy}B"
    return data
