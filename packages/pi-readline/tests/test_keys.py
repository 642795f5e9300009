"""Tests for pi.readline.keys.decode_key."""

from __future__ import annotations

import pytest

from pi.readline.keys import KeyEvent, decode_key


class TestControlCharacters:
    @pytest.mark.parametrize(
        "sequence, name",
        [
            ("\r", "return"),
            ("\n", "enter"),
            ("\t", "tab"),
            ("\x7f", "backspace"),
        ],
    )
    def test_named_controls(self, sequence: str, name: str) -> None:
        event = decode_key(sequence)
        assert event.name == name
        assert not event.ctrl

    def test_ctrl_letters(self) -> None:
        assert decode_key("\x01") == KeyEvent(name="a", sequence="\x01", ctrl=True)
        assert decode_key("\x17").name == "w"

    def test_ctrl_h_is_not_backspace(self) -> None:
        event = decode_key("\x08")
        assert event.name == "h"
        assert event.ctrl

    def test_lone_escape(self) -> None:
        assert decode_key("\x1b").name == "escape"


class TestPrintable:
    def test_lowercase(self) -> None:
        event = decode_key("a")
        assert event.name == "a"
        assert event.text == "a"

    def test_uppercase_sets_shift(self) -> None:
        event = decode_key("A")
        assert event.name == "a"
        assert event.shift
        assert event.text == "A"

    def test_text_run(self) -> None:
        event = decode_key("hello")
        assert event.name == ""
        assert event.text == "hello"

    def test_punctuation(self) -> None:
        assert decode_key(".").text == "."

    def test_wide_character(self) -> None:
        assert decode_key("日").text == "日"


class TestEscapeSequences:
    @pytest.mark.parametrize(
        "sequence, name",
        [
            ("\x1b[A", "up"),
            ("\x1b[B", "down"),
            ("\x1b[C", "right"),
            ("\x1b[D", "left"),
            ("\x1bOA", "up"),
            ("\x1b[H", "home"),
            ("\x1b[F", "end"),
            ("\x1b[1~", "home"),
            ("\x1b[4~", "end"),
            ("\x1b[3~", "delete"),
            ("\x1b[15~", "f5"),
        ],
    )
    def test_plain_keys(self, sequence: str, name: str) -> None:
        event = decode_key(sequence)
        assert event.name == name
        assert not (event.ctrl or event.meta or event.shift)
        assert event.text == ""

    def test_ctrl_arrow(self) -> None:
        event = decode_key("\x1b[1;5D")
        assert event.name == "left"
        assert event.ctrl

    def test_ctrl_delete(self) -> None:
        event = decode_key("\x1b[3;5~")
        assert event.name == "delete"
        assert event.ctrl

    def test_shift_delete(self) -> None:
        event = decode_key("\x1b[3;2~")
        assert event.name == "delete"
        assert event.shift

    def test_rxvt_ctrl_suffix(self) -> None:
        event = decode_key("\x1b[3^")
        assert event.name == "delete"
        assert event.ctrl

    def test_shift_tab(self) -> None:
        event = decode_key("\x1b[Z")
        assert event.name == "tab"
        assert event.shift

    def test_csi_u(self) -> None:
        event = decode_key("\x1b[97;5u")
        assert event.name == "a"
        assert event.ctrl

    def test_modify_other_keys(self) -> None:
        event = decode_key("\x1b[27;5;97~")
        assert event.name == "a"
        assert event.ctrl

    def test_unknown_sequence(self) -> None:
        event = decode_key("\x1b[99~")
        assert event.name == "undefined"
        assert event.text == ""


class TestMeta:
    def test_meta_letter(self) -> None:
        event = decode_key("\x1bb")
        assert event.name == "b"
        assert event.meta
        assert event.text == ""

    def test_meta_backspace(self) -> None:
        event = decode_key("\x1b\x7f")
        assert event.name == "backspace"
        assert event.meta

    def test_meta_prefixed_arrow(self) -> None:
        event = decode_key("\x1b\x1b[A")
        assert event.name == "up"
        assert event.meta
        assert not event.ctrl
        assert event.sequence == "\x1b\x1b[A"
        assert event.text == ""

    def test_meta_prefixed_ss3_and_modified_csi(self) -> None:
        assert decode_key("\x1b\x1bOD").name == "left"
        event = decode_key("\x1b\x1b[1;5C")
        assert event.name == "right"
        assert event.meta
        assert event.ctrl

    def test_double_escape(self) -> None:
        event = decode_key("\x1b\x1b")
        assert event.name == "escape"
        assert event.meta
