"""
Tests for the D&D 5e text extractor (2014 and 2024 layouts).
"""

import pytest

from statblock_converter.extractors.dnd5e import Dnd5eExtractor, legendary_action_count
from statblock_converter.extractors.fields import find_cr, find_header_end


@pytest.fixture
def extractor():
    return Dnd5eExtractor()


class TestOgre:
    """SRD ogre with the tabular ability score layout."""

    def test_header(self, ogre):
        assert ogre.name == "Ogre"
        assert ogre.type_info.size == "Large"
        assert ogre.type_info.type == "giant"
        assert ogre.type_info.alignment == "chaotic evil"

    def test_defenses_and_movement(self, ogre):
        assert ogre.ac.value == 11
        assert ogre.ac.type == "hide armor"
        assert ogre.hp.value == 59
        assert ogre.hp.formula == "7d10 + 21"
        assert ogre.speed.walk == 40

    def test_ability_scores(self, ogre):
        assert ogre.ability_scores.strength == 19
        assert ogre.modifiers["str"] == 4

    def test_senses_languages_cr(self, ogre):
        assert ogre.senses["darkvision"] == 60
        assert ogre.senses["passive_perception"] == 8
        assert ogre.languages == ["Common", "Giant"]
        assert ogre.cr.string == "2"
        assert ogre.cr.numeric == 2.0

    def test_primary_attack(self, ogre):
        assert [a.name for a in ogre.actions] == ["Greatclub", "Javelin"]
        assert ogre.primary_attack.name == "Greatclub"
        assert ogre.primary_attack.attack_info.avg_damage == 13
        javelin = ogre.actions[1]
        assert javelin.attack_info.type == "melee"
        assert javelin.attack_info.range == "5"
        assert not ogre.has_multiattack

    def test_meta(self, ogre):
        assert ogre.meta.system == "dnd5e"
        assert ogre.meta.confidence == pytest.approx(0.75)
        assert ogre.meta.json_format is None


class TestWight:

    def test_skills_and_damage(self, wight):
        assert wight.skills == {"perception": 3, "stealth": 4}
        assert wight.damage_info.immunities == ["poison"]
        assert wight.damage_info.condition_immunities == ["exhaustion", "poisoned"]
        assert wight.damage_info.resistances[0] == "necrotic"

    def test_traits_and_actions(self, wight):
        assert [t.name for t in wight.traits] == ["Sunlight Sensitivity"]
        assert [a.name for a in wight.actions] == ["Multiattack", "Life Drain", "Longsword", "Longbow"]
        assert wight.has_multiattack
        assert wight.multiattack_desc.startswith("The wight makes two longsword attacks")

    def test_attacks(self, wight):
        life_drain, longsword, longbow = wight.actions[1:]
        assert life_drain.attack_info.avg_damage == 5
        assert life_drain.attack_info.damage_type == "necrotic"
        assert longsword.attack_info.avg_damage == 6
        assert longbow.attack_info.type == "ranged"
        assert longbow.attack_info.range == "150/600"
        # Ties keep the first attack found
        assert wight.primary_attack.name == "Longsword"


class TestAdultRedDragon:

    def test_legendary(self, dragon):
        assert dragon.cr.numeric == 17.0
        assert dragon.legendary_action_count == 3
        assert [a.name for a in dragon.legendary_actions] == ["Detect", "Tail Attack", "Wing Attack (Costs 2 Actions)"]

    def test_flight(self, dragon):
        assert dragon.speed.fly == 80

    def test_primary_attack_is_bite(self, dragon):
        assert dragon.primary_attack.name == "Bite"
        assert dragon.has_multiattack


class TestGoblinWarrior2024:
    """The 2024 layout: 'AC', 'HP', per-ability rows and 'CR x (XP n; PB +n)'."""

    @pytest.fixture
    def goblin(self, extractor, load_fixture):
        return extractor.parse(load_fixture("goblin_warrior_2024.txt"))

    def test_header(self, goblin):
        assert goblin.name == "Goblin Warrior"
        assert goblin.type_info.size == "Small"
        assert goblin.type_info.type == "fey"
        assert goblin.type_info.subtype == "Goblinoid"
        assert goblin.type_info.alignment == "Chaotic Neutral"

    def test_stats(self, goblin):
        assert goblin.ac.value == 15
        assert goblin.hp.value == 10
        assert goblin.hp.formula == "3d6"
        assert goblin.ability_scores.dexterity == 15
        assert goblin.skills["stealth"] == 6
        assert goblin.senses["darkvision"] == 60
        assert goblin.senses["passive_perception"] == 9
        assert goblin.cr.string == "1/4"

    def test_system_data(self, goblin):
        assert goblin.system_data["proficiency_bonus"] == 2
        assert goblin.system_data["initiative"] == 2

    def test_actions(self, goblin):
        assert goblin.primary_attack.name == "Scimitar"
        assert goblin.primary_attack.attack_info.damage_type == "slashing"
        assert [a.name for a in goblin.bonus_actions] == ["Nimble Escape"]


class TestMissingChallenge:
    """Blocks pasted without a Challenge line."""

    TEXT = "\n".join([
        "Goblin Scout",
        "Small humanoid (goblinoid), neutral evil",
        "Armor Class 15 (leather armor)",
        "Hit Points 7 (2d6)",
        "Speed 40 ft.",
        "STR DEX CON INT WIS CHA",
        "8 (-1) 14 (+2) 10 (+0) 10 (+0) 8 (-1) 8 (-1)",
        "Skills Stealth +6",
        "Senses darkvision 60 ft., passive Perception 9",
        "Languages Common, Goblin",
        "Nimble Escape. The goblin can take the Disengage or Hide action as a bonus action.",
        "Actions",
        "Scimitar. Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 5 (1d6 + 2) slashing damage.",
    ])

    def test_header_lines_are_not_traits(self, extractor):
        creature = extractor.parse(self.TEXT)
        assert [t.name for t in creature.traits] == ["Nimble Escape"]
        assert [a.name for a in creature.actions] == ["Scimitar"]
        assert creature.speed.walk == 40
        assert creature.cr.numeric == 1.0

    def test_header_end_stops_before_sections(self):
        end = find_header_end(self.TEXT)
        assert self.TEXT[:end].endswith("Languages Common, Goblin")
        assert find_cr(self.TEXT) == (None, end)
        assert find_header_end("Nimble Escape. Hides.") == 0


class TestDegenerateInput:

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input_yields_defaults(self, extractor, raw):
        creature = extractor.parse(raw)
        assert creature.name == "Unknown Creature"
        assert creature.ac.value == 10
        assert creature.hp.value == 10
        assert creature.cr.numeric == 1.0
        assert creature.actions == []
        assert creature.primary_attack is None

    def test_legendary_action_count(self):
        assert legendary_action_count("The lich can take 3 legendary actions") == 3
        assert legendary_action_count("Legendary Action Uses: 4 (5 in Lair)") == 4
        assert legendary_action_count("nothing") == 0
