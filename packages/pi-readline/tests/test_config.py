"""Tests for pi.readline.config.ReadlineOptions."""

from __future__ import annotations

import pytest

from pi.readline.config import DEFAULT_PROMPT, ReadlineOptions


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("TERM", "PI_READLINE_HISTORY_SIZE", "PI_READLINE_CRLF_DELAY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_defaults(self) -> None:
        opts = ReadlineOptions()
        assert opts.prompt == DEFAULT_PROMPT
        assert opts.history_size == 30
        assert opts.crlf_delay == pytest.approx(0.1)
        assert opts.escape_code_timeout == pytest.approx(0.5)
        assert opts.terminal is None
        assert opts.dumb is None

    def test_crlf_delay_has_floor(self) -> None:
        assert ReadlineOptions(crlf_delay_ms=10).crlf_delay_ms == 100
        assert ReadlineOptions(crlf_delay_ms=250).crlf_delay == pytest.approx(0.25)

    def test_negative_history_rejected(self) -> None:
        with pytest.raises(ValueError):
            ReadlineOptions(history_size=-1)


class TestFromEnv:
    def test_no_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        opts = ReadlineOptions.from_env()
        assert opts.dumb is None
        assert opts.history_size == 30

    def test_dumb_terminal(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("TERM", "dumb")
        assert ReadlineOptions.from_env().dumb is True

    def test_explicit_dumb_wins(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("TERM", "dumb")
        assert ReadlineOptions.from_env(ReadlineOptions(dumb=False)).dumb is False

    def test_history_size(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PI_READLINE_HISTORY_SIZE", "5")
        assert ReadlineOptions.from_env().history_size == 5

    def test_crlf_delay_clamped(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PI_READLINE_CRLF_DELAY", "20")
        assert ReadlineOptions.from_env().crlf_delay_ms == 100

    def test_base_preserved(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PI_READLINE_HISTORY_SIZE", "7")
        opts = ReadlineOptions.from_env(ReadlineOptions(prompt="$ "))
        assert opts.prompt == "$ "
        assert opts.history_size == 7
