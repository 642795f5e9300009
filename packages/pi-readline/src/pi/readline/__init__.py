"""pi-readline: interactive terminal line editing with differential redraw."""

# Completion
from pi.readline.completion import (
    CompletionCoordinator,
    CompletionResult,
    Completer,
    common_prefix,
    layout_candidates,
)

# Configuration
from pi.readline.config import DEFAULT_PROMPT, ReadlineOptions

# Key dispatch
from pi.readline.dispatcher import DispatcherState, KeyDispatcher

# Errors
from pi.readline.errors import CompletionError, CursorInvariantError, ReadlineError

# History
from pi.readline.history import DEFAULT_HISTORY_SIZE, HistoryRing

# Keybindings
from pi.readline.keybindings import (
    DEFAULT_BINDINGS,
    DUMB_BINDINGS,
    EditorAction,
    KeyBindings,
    ModifierClass,
    modifier_class,
    parse_binding,
)

# Keyboard input decoding
from pi.readline.keys import KeyEvent, decode_key

# Editing primitives
from pi.readline.kill_ring import KillRing
from pi.readline.line_buffer import LineBuffer

# Rendering
from pi.readline.render import (
    DisplayPos,
    RenderPlanner,
    RenderState,
    get_cursor_pos,
    get_display_pos,
)

# Session
from pi.readline.session import ReadlineSession

# Input buffering
from pi.readline.stdin_buffer import StdinBuffer

# Terminal interface and implementations
from pi.readline.terminal import ProcessTerminal, Terminal

# Width oracle
from pi.readline.width import is_full_width_code_point, string_width, width_of

__all__ = [
    # Completion
    "CompletionCoordinator",
    "CompletionResult",
    "Completer",
    "common_prefix",
    "layout_candidates",
    # Configuration
    "DEFAULT_PROMPT",
    "ReadlineOptions",
    # Key dispatch
    "DispatcherState",
    "KeyDispatcher",
    # Errors
    "CompletionError",
    "CursorInvariantError",
    "ReadlineError",
    # History
    "DEFAULT_HISTORY_SIZE",
    "HistoryRing",
    # Keybindings
    "DEFAULT_BINDINGS",
    "DUMB_BINDINGS",
    "EditorAction",
    "KeyBindings",
    "ModifierClass",
    "modifier_class",
    "parse_binding",
    # Keys
    "KeyEvent",
    "decode_key",
    # Editing primitives
    "KillRing",
    "LineBuffer",
    # Rendering
    "DisplayPos",
    "RenderPlanner",
    "RenderState",
    "get_cursor_pos",
    "get_display_pos",
    # Session
    "ReadlineSession",
    # Input buffering
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Width
    "is_full_width_code_point",
    "string_width",
    "width_of",
]
