"""Tests for pi.readline.line_buffer.LineBuffer."""

from __future__ import annotations

import math
import random

import pytest

from pi.readline.errors import CursorInvariantError
from pi.readline.line_buffer import LineBuffer


class TestInsert:
    def test_insert_at_end(self) -> None:
        buf = LineBuffer()
        buf.insert("abc")
        assert buf.text == "abc"
        assert buf.cursor == 3

    def test_insert_in_middle(self) -> None:
        buf = LineBuffer("ac", cursor=1)
        buf.insert("b")
        assert buf.text == "abc"
        assert buf.cursor == 2

    def test_insert_before_cursor_shifts_cursor(self) -> None:
        buf = LineBuffer("bc")
        buf.insert("a", at=0)
        assert buf.text == "abc"
        assert buf.cursor == 3

    def test_insert_out_of_range_raises(self) -> None:
        buf = LineBuffer("ab")
        with pytest.raises(CursorInvariantError):
            buf.insert("x", at=5)

    def test_constructor_validates_cursor(self) -> None:
        with pytest.raises(CursorInvariantError):
            LineBuffer("ab", cursor=5)

    def test_set_puts_cursor_at_end(self) -> None:
        buf = LineBuffer("old", cursor=0)
        buf.set("newer")
        assert buf.text == "newer"
        assert buf.cursor == 5

    def test_replace_range(self) -> None:
        buf = LineBuffer("hello world")
        buf.replace_range(6, 11, "there")
        assert buf.text == "hello there"
        assert buf.cursor == 11


class TestCharacterDeletion:
    def test_delete_left_returns_removed(self) -> None:
        buf = LineBuffer("abc")
        assert buf.delete_left() == "c"
        assert buf.text == "ab"
        assert buf.cursor == 2

    def test_delete_left_at_start_is_noop(self) -> None:
        buf = LineBuffer("abc", cursor=0)
        assert buf.delete_left() == ""
        assert buf.text == "abc"

    def test_delete_right_at_end_is_noop(self) -> None:
        buf = LineBuffer("abc")
        assert buf.delete_right() == ""
        assert buf.text == "abc"

    def test_move_left_twice_then_delete_right_twice(self) -> None:
        buf = LineBuffer("ab")
        buf.move_left()
        buf.move_left()
        buf.delete_right()
        buf.delete_right()
        assert buf.text == ""
        assert buf.cursor == 0

    def test_surrogate_pair_deleted_whole(self) -> None:
        buf = LineBuffer("a\ud83d\ude00")
        assert buf.delete_left() == "\ud83d\ude00"
        assert buf.text == "a"

    def test_combining_mark_moves_with_base(self) -> None:
        buf = LineBuffer("e\u0301")
        buf.move_left()
        assert buf.cursor == 0


class TestWords:
    def test_word_left_offset(self) -> None:
        assert LineBuffer("hello world").word_left_offset() == 6
        assert LineBuffer("hello world", cursor=6).word_left_offset() == 0

    def test_word_right_offset(self) -> None:
        assert LineBuffer("hello world", cursor=0).word_right_offset() == 6
        assert LineBuffer("hello world", cursor=6).word_right_offset() == 11

    def test_punctuation_is_its_own_word(self) -> None:
        assert LineBuffer("foo.bar", cursor=0).word_right_offset() == 3
        assert LineBuffer("foo..", cursor=5).word_left_offset() == 3

    def test_delete_word_left(self) -> None:
        buf = LineBuffer("foo bar")
        assert buf.delete_word_left() == "bar"
        assert buf.text == "foo "
        assert buf.cursor == 4

    def test_delete_word_right(self) -> None:
        buf = LineBuffer("foo bar", cursor=0)
        assert buf.delete_word_right() == "foo "
        assert buf.text == "bar"
        assert buf.cursor == 0


class TestLineDeletion:
    def test_delete_line_left(self) -> None:
        buf = LineBuffer("hello world", cursor=6)
        assert buf.delete_line_left() == "hello "
        assert buf.text == "world"
        assert buf.cursor == 0

    def test_delete_line_right(self) -> None:
        buf = LineBuffer("hello world", cursor=5)
        assert buf.delete_line_right() == " world"
        assert buf.text == "hello"
        assert buf.cursor == 5


class TestMoveCursor:
    def test_infinite_sentinels(self) -> None:
        buf = LineBuffer("hello")
        assert buf.move_cursor(-math.inf) == 5
        assert buf.cursor == 0
        buf.move_cursor(math.inf)
        assert buf.cursor == 5

    def test_clamped(self) -> None:
        buf = LineBuffer("hi", cursor=1)
        buf.move_cursor(100)
        assert buf.cursor == 2
        buf.move_cursor(-100)
        assert buf.cursor == 0


class TestCursorInvariant:
    """Arbitrary edit sequences never leave the cursor out of range."""

    def test_random_edit_sequences(self) -> None:
        rng = random.Random(1234)
        ops = [
            lambda b: b.insert(rng.choice(["a", " ", "日", "\ud83d\ude00", "xy"])),
            lambda b: b.delete_left(),
            lambda b: b.delete_right(),
            lambda b: b.delete_word_left(),
            lambda b: b.delete_word_right(),
            lambda b: b.delete_line_left(),
            lambda b: b.delete_line_right(),
            lambda b: b.move_left(),
            lambda b: b.move_right(),
            lambda b: b.move_cursor(rng.randint(-5, 5)),
            lambda b: b.move_cursor(rng.choice([-math.inf, math.inf])),
        ]
        buf = LineBuffer()
        for _ in range(2000):
            rng.choice(ops)(buf)
            assert 0 <= buf.cursor <= len(buf.text)
