"""Tests for the Color value type."""

from __future__ import annotations

import pytest

from spritely.color import Color
from spritely.errors import InvalidColor


class TestColorFromHex:
    def test_six_digits_defaults_alpha(self):
        color = Color.from_hex("#EEEEEE")
        assert color.rgba == (0xEE, 0xEE, 0xEE, 255)
        assert color.rgba_hex == "eeeeeeff"

    def test_eight_digits(self):
        color = Color.from_hex("11223344")
        assert color.rgba == (0x11, 0x22, 0x33, 0x44)
        assert color.rgb_hex == "112233"

    def test_hex_round_trip_is_lowercase(self):
        assert Color.from_hex(Color.from_hex("AbCdEf80").rgba_hex).rgba_hex == "abcdef80"

    @pytest.mark.parametrize("value", ["ff", "#12345", "gggggg", "1234567", ""])
    def test_invalid_hex_rejected(self, value):
        with pytest.raises(InvalidColor):
            Color.from_hex(value)


class TestColorFromValues:
    def test_tuple_defaults_alpha(self):
        assert Color.from_tuple((1, 2, 3)).alpha == 255

    def test_out_of_range_rejected(self):
        with pytest.raises(InvalidColor):
            Color(256, 0, 0)

    def test_non_integer_rejected(self):
        with pytest.raises(InvalidColor):
            Color(1.5, 0, 0)

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidColor):
            Color.from_tuple((1, 2))

    def test_equality_helpers(self):
        a = Color(1, 2, 3, 4)
        b = Color(1, 2, 3, 200)
        assert a.equals_rgb(b)
        assert not a.equals_rgba(b)
        assert a.to_dict() == {"red": 1, "green": 2, "blue": 3, "alpha": 4}
        assert str(a) == "#01020304"
