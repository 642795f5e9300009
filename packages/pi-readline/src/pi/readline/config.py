"""Line-editor options."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from pi.readline.history import DEFAULT_HISTORY_SIZE
from pi.readline.stdin_buffer import DEFAULT_ESCAPE_TIMEOUT

if TYPE_CHECKING:
    from pi.readline.completion import Completer

DEFAULT_PROMPT = "> "
# Lower bound for the CR/LF coalescing window, in milliseconds
MIN_CRLF_DELAY_MS = 100


@dataclass
class ReadlineOptions:
    """Options for a :class:`~pi.readline.session.ReadlineSession`.

    ``terminal`` and ``dumb`` default to ``None``, meaning "detect": the
    session treats input as a terminal when stdin is a TTY, and switches to
    the reduced dumb-terminal key table when ``TERM=dumb``.
    """

    prompt: str = DEFAULT_PROMPT
    history_size: int = DEFAULT_HISTORY_SIZE
    remove_history_duplicates: bool = False
    history: list[str] | None = None
    crlf_delay_ms: int = MIN_CRLF_DELAY_MS
    escape_code_timeout_ms: int = int(DEFAULT_ESCAPE_TIMEOUT * 1000)
    completer: Completer | None = None
    completion_enabled: bool = True
    terminal: bool | None = None
    dumb: bool | None = None
    keybindings: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.history_size < 0:
            raise ValueError("history_size must be >= 0")
        self.crlf_delay_ms = max(self.crlf_delay_ms, MIN_CRLF_DELAY_MS)

    @property
    def crlf_delay(self) -> float:
        """CR/LF coalescing window in seconds."""
        return self.crlf_delay_ms / 1000.0

    @property
    def escape_code_timeout(self) -> float:
        return self.escape_code_timeout_ms / 1000.0

    @classmethod
    def from_env(cls, base: ReadlineOptions | None = None) -> ReadlineOptions:
        """Apply ``TERM`` and ``PI_READLINE_*`` environment overrides."""
        opts = base or cls()
        overrides: dict[str, object] = {}
        if opts.dumb is None and os.environ.get("TERM") == "dumb":
            overrides["dumb"] = True
        history_size = os.environ.get("PI_READLINE_HISTORY_SIZE")
        if history_size:
            overrides["history_size"] = int(history_size)
        crlf_delay = os.environ.get("PI_READLINE_CRLF_DELAY")
        if crlf_delay:
            overrides["crlf_delay_ms"] = int(crlf_delay)
        return replace(opts, **overrides) if overrides else opts
