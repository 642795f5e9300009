"""Tests for pi.readline.width -- display widths and character boundaries."""

from __future__ import annotations

from pi.readline.width import (
    char_length_at,
    char_length_left,
    code_point_at,
    is_full_width_code_point,
    is_surrogate_pair_at,
    iter_code_points,
    string_width,
    strip_vt_control_characters,
    width_of,
)

GRINNING = "\ud83d\ude00"  # U+1F600 as a UTF-16 surrogate pair


class TestWidthOf:
    """Per-code-point column widths."""

    def test_ascii_is_one_column(self) -> None:
        for ch in "az09 ~":
            assert width_of(ord(ch)) == 1

    def test_cjk_is_two_columns(self) -> None:
        assert width_of(ord("一")) == 2
        assert is_full_width_code_point(ord("日"))

    def test_combining_mark_is_zero(self) -> None:
        assert width_of(0x0301) == 0

    def test_control_characters_are_zero(self) -> None:
        assert width_of(0x07) == 0
        assert width_of(0x1B) == 0
        assert width_of(0x7F) == 0

    def test_lone_surrogate_is_one(self) -> None:
        assert width_of(0xD800) == 1

    def test_emoji_is_two(self) -> None:
        assert width_of(0x1F600) == 2


class TestSurrogates:
    def test_pair_detected(self) -> None:
        assert is_surrogate_pair_at(GRINNING, 0)
        assert not is_surrogate_pair_at(GRINNING, 1)
        assert not is_surrogate_pair_at("ab", 0)

    def test_code_point_at_combines_pair(self) -> None:
        assert code_point_at(GRINNING, 0) == 0x1F600
        assert code_point_at("a" + GRINNING, 0) == ord("a")

    def test_iter_code_points_steps_over_pairs(self) -> None:
        assert list(iter_code_points("a" + GRINNING + "b")) == [
            ord("a"),
            0x1F600,
            ord("b"),
        ]


class TestCharLength:
    """Logical-character boundaries used for cursor motion and deletion."""

    def test_plain_characters(self) -> None:
        assert char_length_at("abc", 1) == 1
        assert char_length_left("abc", 2) == 1

    def test_boundaries_return_zero(self) -> None:
        assert char_length_at("ab", 2) == 0
        assert char_length_left("ab", 0) == 0

    def test_surrogate_pair_counts_two(self) -> None:
        text = "a" + GRINNING + "b"
        assert char_length_at(text, 1) == 2
        assert char_length_left(text, 3) == 2

    def test_combining_sequence_travels_with_base(self) -> None:
        text = "e\u0301x"
        assert char_length_at(text, 0) == 2
        assert char_length_left(text, 2) == 2


class TestStringWidth:
    def test_ascii(self) -> None:
        assert string_width("hello") == 5

    def test_empty(self) -> None:
        assert string_width("") == 0

    def test_wide_characters(self) -> None:
        assert string_width("日本") == 4

    def test_escape_sequences_ignored(self) -> None:
        assert string_width("\x1b[31mred\x1b[0m") == 3

    def test_strip_vt_control_characters(self) -> None:
        assert strip_vt_control_characters("\x1b[1;31mX\x1b[0m") == "X"
        assert strip_vt_control_characters("\x1b]0;title\x07ok") == "ok"
