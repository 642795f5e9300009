"""Tests for pi.readline.terminal.ProcessTerminal using pipes instead of a TTY."""

from __future__ import annotations

import asyncio
import io
import os
import signal
from pathlib import Path
from typing import Iterator

import pytest

from pi.readline.terminal import ProcessTerminal


class PipeTerminal:
    """A ProcessTerminal reading from an os.pipe and writing to a StringIO."""

    def __init__(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        self.stdin = open(self.read_fd, "rb", buffering=0)
        self.stdout = io.StringIO()
        self.terminal = ProcessTerminal(self.stdin, self.stdout)  # type: ignore[arg-type]
        self.received: list[str] = []
        self.resizes = 0
        self.ended = False

    def start(self) -> None:
        self.terminal.start(self.received.append, self._on_resize, self._on_end)

    def _on_resize(self) -> None:
        self.resizes += 1

    def _on_end(self) -> None:
        self.ended = True

    def send(self, data: bytes) -> None:
        os.write(self.write_fd, data)

    def close_writer(self) -> None:
        if self.write_fd != -1:
            os.close(self.write_fd)
            self.write_fd = -1

    def cleanup(self) -> None:
        self.terminal.stop()
        self.close_writer()
        self.stdin.close()


@pytest.fixture
def pipe_terminal() -> Iterator[PipeTerminal]:
    pt = PipeTerminal()
    yield pt
    pt.cleanup()


class TestProperties:
    def test_pipe_is_not_tty(self, pipe_terminal: PipeTerminal) -> None:
        assert pipe_terminal.terminal.is_tty is False

    def test_columns_default_without_tty(self, pipe_terminal: PipeTerminal) -> None:
        assert pipe_terminal.terminal.columns == 80


class TestOutput:
    def test_write(self, pipe_terminal: PipeTerminal) -> None:
        pipe_terminal.terminal.write("hello")
        assert pipe_terminal.stdout.getvalue() == "hello"

    def test_write_log(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        log = tmp_path / "writes.log"
        monkeypatch.setenv("PI_READLINE_WRITE_LOG", str(log))
        stdout = io.StringIO()
        terminal = ProcessTerminal(io.StringIO(), stdout)  # type: ignore[arg-type]
        terminal.write("abc")
        terminal.write("def")
        assert stdout.getvalue() == "abcdef"
        assert log.read_text(encoding="utf-8") == "abcdef"


class TestInput:
    @pytest.mark.asyncio
    async def test_reads_chunks(self, pipe_terminal: PipeTerminal) -> None:
        pipe_terminal.start()
        pipe_terminal.send(b"hi\n")
        await asyncio.sleep(0.05)
        assert "".join(pipe_terminal.received) == "hi\n"
        pipe_terminal.terminal.stop()

    @pytest.mark.asyncio
    async def test_utf8_split_across_reads(self, pipe_terminal: PipeTerminal) -> None:
        pipe_terminal.start()
        encoded = "é".encode("utf-8")
        pipe_terminal.send(encoded[:1])
        await asyncio.sleep(0.02)
        pipe_terminal.send(encoded[1:])
        await asyncio.sleep(0.05)
        assert "".join(pipe_terminal.received) == "é"
        pipe_terminal.terminal.stop()

    @pytest.mark.asyncio
    async def test_end_of_input(self, pipe_terminal: PipeTerminal) -> None:
        pipe_terminal.start()
        pipe_terminal.close_writer()
        await asyncio.sleep(0.05)
        assert pipe_terminal.ended

    @pytest.mark.asyncio
    async def test_paused_input_not_delivered(self, pipe_terminal: PipeTerminal) -> None:
        pipe_terminal.start()
        pipe_terminal.terminal.pause_input()
        pipe_terminal.send(b"x")
        await asyncio.sleep(0.05)
        assert pipe_terminal.received == []
        pipe_terminal.terminal.resume_input()
        await asyncio.sleep(0.05)
        assert pipe_terminal.received == ["x"]
        pipe_terminal.terminal.stop()


class TestResize:
    @pytest.mark.skipif(not hasattr(signal, "SIGWINCH"), reason="no SIGWINCH")
    @pytest.mark.asyncio
    async def test_sigwinch_handler_installed_and_restored(
        self, pipe_terminal: PipeTerminal
    ) -> None:
        previous = signal.getsignal(signal.SIGWINCH)
        pipe_terminal.start()
        handler = signal.getsignal(signal.SIGWINCH)
        assert callable(handler)
        handler(signal.SIGWINCH, None)
        assert pipe_terminal.resizes == 1
        pipe_terminal.terminal.stop()
        assert signal.getsignal(signal.SIGWINCH) == previous
