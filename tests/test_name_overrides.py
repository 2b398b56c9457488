"""Tests for folder-name override suffixes."""

from __future__ import annotations

import pytest

from spritely.errors import UnknownOverrideToken
from spritely.models import FixMethod
from spritely.name_overrides import Override, parse_name_overrides, tokenize


class TestTokenize:
    def test_plain_name(self):
        assert tokenize("hero") == ("hero", [])

    @pytest.mark.parametrize(
        "token,override",
        [
            ("c", Override.CROP),
            ("crop", Override.CROP),
            ("nc", Override.NO_CROP),
            ("no-crop", Override.NO_CROP),
            ("b", Override.BLEED),
            ("bleed", Override.BLEED),
            ("nb", Override.NO_BLEED),
            ("no-bleed", Override.NO_BLEED),
        ],
    )
    def test_single_tokens(self, token, override):
        assert tokenize(f"hero--{token}") == ("hero", [override])

    def test_chained_tokens(self):
        name, overrides = tokenize("hero-walk--nc--b")
        assert name == "hero-walk"
        assert overrides == [Override.BLEED, Override.NO_CROP]

    def test_unknown_token(self):
        with pytest.raises(UnknownOverrideToken) as info:
            tokenize("hero--shiny--c")
        assert info.value.token == "shiny"

    def test_leading_separator_is_part_of_name(self):
        assert tokenize("--c") == ("--c", [])


class TestResolve:
    def test_add_and_remove(self):
        overrides = parse_name_overrides("hero--b--no-crop")
        assert overrides.name == "hero"
        assert overrides.add == {FixMethod.BLEED}
        assert overrides.remove == {FixMethod.CROP}
        assert overrides.resolve([FixMethod.CROP]) == [FixMethod.BLEED]

    def test_crop_always_before_bleed(self):
        overrides = parse_name_overrides("hero--c")
        assert overrides.resolve([FixMethod.BLEED]) == [FixMethod.CROP, FixMethod.BLEED]

    def test_deduplicates(self):
        overrides = parse_name_overrides("hero--crop--c")
        assert overrides.resolve([FixMethod.CROP, FixMethod.CROP]) == [FixMethod.CROP]

    def test_remove_wins_over_add(self):
        overrides = parse_name_overrides("hero--nb--b")
        assert overrides.resolve([]) == []

    def test_no_overrides(self):
        overrides = parse_name_overrides("hero")
        assert not overrides.has_overrides
        assert overrides.resolve([FixMethod.CROP, FixMethod.BLEED]) == [
            FixMethod.CROP,
            FixMethod.BLEED,
        ]
