"""
Unit tests for the shared text and numeric helpers.
"""

import pytest

from statblock_converter.text_utils import (
    ability_modifier,
    average_damage,
    dice_range,
    find_dice,
    normalize,
    parse_cr,
    slugify,
    split_list,
    to_int,
)


class TestNormalize:
    """Tests for pasted-text canonicalization."""

    def test_line_endings_and_tabs(self):
        assert normalize("Ogre\r\nLarge\tgiant\rSpeed") == "Ogre\nLarge giant\nSpeed"

    def test_dashes_and_quotes(self):
        text = "Hit Points 5 — ‘rare’ “quoted” − 1–2"
        assert normalize(text) == "Hit Points 5 - 'rare' \"quoted\" - 1-2"

    def test_collapses_spaces_and_strips(self):
        assert normalize("   Armor   Class  15   ") == "Armor Class 15"

    def test_non_string_input(self):
        assert normalize(None) == ""
        assert normalize(42) == ""
        assert normalize("") == ""


class TestAbilityModifier:

    @pytest.mark.parametrize("score,expected", [
        (1, -5), (8, -1), (9, -1), (10, 0), (11, 0), (12, 1), (19, 4), (30, 10),
    ])
    def test_floor_division(self, score, expected):
        assert ability_modifier(score) == expected


class TestDiceRange:

    def test_with_bonus(self):
        assert dice_range("2d6+3") == (5, 15, 10)

    def test_with_penalty(self):
        rng = dice_range("1d4 - 1")
        assert (rng.min, rng.max, rng.avg) == (0, 3, 1)

    def test_plain_dice(self):
        assert dice_range("1d10") == (1, 10, 5)

    def test_spaces_inside_expression(self):
        assert dice_range("7d10 + 21") == (28, 91, 59)

    def test_no_dice(self):
        assert dice_range("none") is None
        assert dice_range("") is None
        assert dice_range(None) is None

    def test_average_damage_default(self):
        assert average_damage("2d8 + 4") == 13
        assert average_damage("special", default=3) == 3


class TestFindDice:

    def test_first_expression_as_written(self):
        assert find_dice("Greatclub +8 melee (2d8+7)") == "2d8+7"

    def test_none_found(self):
        assert find_dice("no dice here") is None
        assert find_dice(None) is None


class TestParseCr:
    """Tests for challenge rating resolution."""

    @pytest.mark.parametrize("value,string,numeric", [
        ("1/8", "1/8", 0.125),
        ("1/4", "1/4", 0.25),
        ("1/2", "1/2", 0.5),
        ("0", "0", 0.0),
        ("17", "17", 17.0),
        ("5 (1,800 XP)", "5", 5.0),
    ])
    def test_table_values(self, value, string, numeric):
        cr = parse_cr(value)
        assert cr.string == string
        assert cr.numeric == numeric

    def test_numbers(self):
        assert parse_cr(3).numeric == 3.0
        assert parse_cr(0.25).string == "1/4"
        assert parse_cr(1.5).string == "1.5"

    def test_unusual_fraction(self):
        cr = parse_cr("3/4")
        assert cr.numeric == 0.75

    @pytest.mark.parametrize("value", [None, "", "abc", "1/0", True, float("nan")])
    def test_falls_back_to_one(self, value):
        cr = parse_cr(value)
        assert cr.string == "1"
        assert cr.numeric == 1.0


class TestSplitList:

    def test_commas_and_semicolons(self):
        assert split_list("fire; cold, poison") == ["fire", "cold", "poison"]

    def test_drops_conjunctions_and_trailing_period(self):
        assert split_list("Common, Giant, and Orc.") == ["Common", "Giant", "Orc"]

    @pytest.mark.parametrize("value", ["-", "none", "", None, 5])
    def test_empty(self, value):
        assert split_list(value) == []

    def test_list_passthrough(self):
        assert split_list(["a", " b ", ""]) == ["a", "b"]


class TestToInt:

    def test_leading_integer(self):
        assert to_int("84hp (8d10+40)", 10) == 84
        assert to_int("+6", 0) == 6

    def test_defaults(self):
        assert to_int("abc", 10) == 10
        assert to_int(None, 7) == 7
        assert to_int(True, 3) == 3
        assert to_int(float("inf"), 2) == 2

    def test_float_truncates(self):
        assert to_int(4.9, 0) == 4


class TestSlugify:

    def test_slug(self):
        assert slugify("Adult Red Dragon") == "adult-red-dragon"
        assert slugify("Goblin Boss (Elite)") == "goblin-boss-elite-"
