"""
Tests for the ability sub-parser and section tokenizer.
"""

import pytest

from statblock_converter.abilities import (
    is_attack,
    make_ability,
    make_attack,
    parse_abilities,
    parse_attack_info,
    split_sections,
    strip_legendary_boilerplate,
    tokenize_sections,
)


GREATCLUB = (
    "Melee Weapon Attack: +6 to hit, reach 5 ft., one target. "
    "Hit: 13 (2d8 + 4) bludgeoning damage."
)
LONGBOW = (
    "Ranged Weapon Attack: +4 to hit, range 150/600 ft., one target. "
    "Hit: 6 (1d8 + 2) piercing damage."
)
JAVELIN = (
    "Melee or Ranged Weapon Attack: +6 to hit, reach 5 ft. or range 30/120 ft., "
    "one target. Hit: 11 (2d6 + 4) piercing damage."
)
SCIMITAR_2024 = "Melee Attack Roll: +4, reach 5 ft. Hit: 5 (1d6 + 2) Slashing damage."

SAMPLE_BLOCK = """Sample
Medium humanoid, neutral
Challenge 1 (200 XP)
Keen Hearing. The sample hears well.

Actions
Club. Melee Weapon Attack: +2 to hit, reach 5 ft., one target. Hit: 3 (1d4 + 1) bludgeoning damage.

Reactions
Parry. The sample adds 2 to its AC.

Legendary Actions
The sample can take 2 legendary actions, choosing from the options below.
Move. The sample moves."""


class TestAttackClassification:
    """Tests for is_attack and parse_attack_info."""

    def test_melee_weapon_attack(self):
        info = parse_attack_info(GREATCLUB)
        assert info.type == "melee"
        assert info.to_hit == 6
        assert info.range == "5"
        assert info.avg_damage == 13
        assert info.damage_dice == "2d8 + 4"
        assert info.damage_type == "bludgeoning"

    def test_ranged_attack_keeps_full_range(self):
        info = parse_attack_info(LONGBOW)
        assert info.type == "ranged"
        assert info.range == "150/600"

    def test_melee_or_ranged_is_melee(self):
        info = parse_attack_info(JAVELIN)
        assert info.type == "melee"
        assert info.range == "5"
        assert info.avg_damage == 11

    def test_2024_attack_roll_wording(self):
        assert is_attack(SCIMITAR_2024)
        info = parse_attack_info(SCIMITAR_2024)
        assert info.to_hit == 4
        assert info.damage_type == "slashing"

    def test_not_an_attack(self):
        text = "Each creature must succeed on a DC 13 saving throw."
        assert not is_attack(text)
        assert parse_attack_info(text) is None
        assert not is_attack("")

    def test_make_ability_collapses_whitespace(self):
        ability = make_ability("  Bite ", "Melee Weapon Attack:   +3 to hit,\n reach 5 ft.")
        assert ability.name == "Bite"
        assert ability.description == "Melee Weapon Attack: +3 to hit, reach 5 ft."
        assert ability.is_attack
        assert ability.attack_info.avg_damage == 0

    def test_make_ability_unnamed(self):
        assert make_ability("", "text").name == "Unnamed Ability"

    def test_make_attack_computes_average(self):
        attack = make_attack("Claw", "Claw", "melee", 5, "5", "2d6+3", "Slashing")
        assert attack.is_attack
        assert attack.attack_info.avg_damage == 10
        assert attack.attack_info.damage_type == "slashing"


class TestParseAbilities:
    """Tests for Name. Description splitting."""

    def test_entries_and_continuations(self):
        section = (
            "Keen Smell. The troll has advantage.\n"
            "Regeneration. The troll regains 10 hit points.\n"
            "If the troll takes fire damage, this trait stops."
        )
        abilities = parse_abilities(section)
        assert [a.name for a in abilities] == ["Keen Smell", "Regeneration"]
        assert abilities[1].description.endswith("this trait stops.")

    def test_hit_lines_continue_previous_entry(self):
        section = "Bite. Melee Weapon Attack: +4 to hit, reach 5 ft., one target.\nHit: 7 (1d10 + 2) piercing damage."
        (bite,) = parse_abilities(section)
        assert bite.is_attack
        assert bite.attack_info.avg_damage == 7

    def test_text_before_first_entry_is_dropped(self):
        section = "this line has no name\nClaw. Something."
        assert [a.name for a in parse_abilities(section)] == ["Claw"]

    def test_long_names_do_not_start_entries(self):
        section = "Bite. Hits.\nThis is a very long sentence that has far too many words to be a name."
        abilities = parse_abilities(section)
        assert len(abilities) == 1

    def test_empty(self):
        assert parse_abilities("") == []


class TestLegendaryBoilerplate:

    def test_removes_preamble(self):
        text = (
            "The dragon can take 3 legendary actions, choosing from the options below. "
            "Only one legendary action option can be used at a time and only at the end of another creature's turn. "
            "The dragon regains spent legendary actions at the start of its turn.\n"
            "Detect. The dragon makes a Wisdom (Perception) check."
        )
        assert strip_legendary_boilerplate(text) == "Detect. The dragon makes a Wisdom (Perception) check."

    def test_2024_wording(self):
        text = (
            "Legendary Action Uses: 3 (4 in Lair). Immediately after another creature's turn, "
            "the dragon can expend a use to take one of the following actions. "
            "The dragon regains all expended uses at the start of each of its turns.\n"
            "Pounce. The dragon moves."
        )
        assert strip_legendary_boilerplate(text) == "Pounce. The dragon moves."


class TestSections:
    """Tests for the section tokenizer."""

    def test_spans_are_ordered_and_contiguous(self):
        header_end = SAMPLE_BLOCK.index("\n", SAMPLE_BLOCK.index("Challenge"))
        spans = tokenize_sections(SAMPLE_BLOCK, header_end)
        assert [s.name for s in spans] == ["traits", "actions", "reactions", "legendary_actions"]
        for current, following in zip(spans, spans[1:]):
            assert current.end == following.start
        assert spans[-1].end == len(SAMPLE_BLOCK)

    def test_split_sections_strips_headers(self):
        header_end = SAMPLE_BLOCK.index("\n", SAMPLE_BLOCK.index("Challenge"))
        sections = split_sections(SAMPLE_BLOCK, header_end)
        assert sections["traits"] == "Keen Hearing. The sample hears well."
        assert sections["actions"].startswith("Club.")
        assert sections["reactions"] == "Parry. The sample adds 2 to its AC."
        assert sections["legendary_actions"].endswith("Move. The sample moves.")
        assert sections["bonus_actions"] == ""
        assert sections["lair_actions"] == ""

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_text(self, text):
        assert tokenize_sections(text) == []
