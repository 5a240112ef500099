"""
Tests for the JSON export decoders.

Each dialect is exercised through the registry so that detection and
decoding are checked together.
"""

import json

import pytest

from statblock_converter.extractors.json_formats import (
    DECODERS,
    FiveToolsDecoder,
    JsonExtractor,
    JsonFormat,
    decoder_for,
)
from statblock_converter.extractors.json_formats.base import (
    as_text,
    dig,
    legendary_count,
    size_word,
    text_items,
)


@pytest.fixture
def parse_fixture(registry, load_fixture):
    def _parse(name):
        return registry.parse(load_fixture(name))
    return _parse


class TestFiveTools:

    @pytest.fixture
    def goblin(self, parse_fixture):
        return parse_fixture("fivetools_goblin.json")

    def test_meta(self, goblin):
        assert goblin.meta.system == "json-fivetools"
        assert goblin.meta.json_format == "fivetools"
        assert goblin.meta.confidence == pytest.approx(1.0)

    def test_header(self, goblin):
        assert goblin.name == "Goblin"
        assert goblin.type_info.size == "Small"
        assert goblin.type_info.subtype == "goblinoid"
        assert goblin.type_info.alignment == "neutral evil"
        assert goblin.source == "MM"
        assert goblin.system_data["page"] == 166

    def test_stats(self, goblin):
        assert goblin.ac.value == 15
        assert goblin.ac.type == "leather armor, shield"
        assert goblin.hp.value == 7
        assert goblin.hp.formula == "2d6"
        assert goblin.skills["stealth"] == 6
        assert goblin.senses["passive_perception"] == 9
        assert goblin.cr.string == "1/4"

    def test_markup_is_converted(self, goblin):
        scimitar = goblin.actions[0]
        assert "{@" not in scimitar.description
        assert scimitar.is_attack
        assert scimitar.attack_info.avg_damage == 5


class TestOpen5e:

    @pytest.fixture
    def unicorn(self, parse_fixture):
        return parse_fixture("open5e_unicorn.json")

    def test_header(self, unicorn):
        assert unicorn.meta.json_format == "open5e"
        assert unicorn.type_info.size == "Large"
        assert unicorn.type_info.type == "celestial"
        assert unicorn.type_info.alignment == "lawful good"
        assert unicorn.hp.value == 67
        assert unicorn.hp.formula == "9d10 + 18"
        assert unicorn.cr.numeric == 5.0

    def test_abilities(self, unicorn):
        assert [t.name for t in unicorn.traits] == ["Charge", "Magic Resistance"]
        assert [a.name for a in unicorn.actions] == ["Multiattack", "Hooves", "Horn", "Healing Touch (3/Day)"]
        assert unicorn.primary_attack.name == "Hooves"
        assert unicorn.primary_attack.attack_info.avg_damage == 11

    def test_legendary(self, unicorn):
        assert [a.name for a in unicorn.legendary_actions] == [
            "Hooves", "Shimmering Shield (Costs 2 Actions)",
        ]
        assert unicorn.legendary_action_count == 3


class TestWorldAnvil:

    @pytest.fixture
    def troll(self, parse_fixture):
        return parse_fixture("worldanvil_troll.json")

    def test_bbcode_is_stripped(self, troll):
        assert troll.meta.json_format == "worldanvil"
        assert troll.description == "Trolls are fearsome green-skinned giants."
        assert [t.name for t in troll.traits] == ["Keen Smell", "Regeneration"]

    def test_stats(self, troll):
        assert troll.hp.value == 84
        assert troll.hp.formula == "8d10+40"
        assert troll.speed.climb == 30
        assert troll.type_info.type == "giant"

    def test_actions(self, troll):
        assert [a.name for a in troll.actions] == ["Multiattack", "Bite", "Claw"]
        assert troll.primary_attack.name == "Claw"
        assert troll.primary_attack.attack_info.avg_damage == 11


class TestNonFiniteNumbers:

    SRD = '{{"Armor Class": {ac}, "Hit Points": {hp}, "STR": 10, "meta": "Large beast", "Challenge": "1"}}'
    ANVIL = '{{"name": "Boar", "armor_class": 11, "hit_points": {hp}, "strength": 13, "challenge_rating": "1/4", "types": "Beast"}}'

    @pytest.mark.parametrize("bad", ["NaN", "Infinity", "-Infinity"])
    @pytest.mark.parametrize("system", [None, "json", "json-open5e"])
    def test_srd_stats_default(self, registry, bad, system):
        for raw in (self.SRD.format(ac=bad, hp='"10"'), self.SRD.format(ac=12, hp=bad)):
            creature = registry.parse(raw, system)
            assert creature.meta.json_format == "open5e"
            assert creature.ac.value in (10, 12)
            assert creature.hp.value == 10

    @pytest.mark.parametrize("bad", ["NaN", "Infinity"])
    @pytest.mark.parametrize("system", [None, "json", "json-worldanvil"])
    def test_worldanvil_hit_points_default(self, registry, bad, system):
        creature = registry.parse(self.ANVIL.format(hp=bad), system)
        assert creature.meta.json_format == "worldanvil"
        assert creature.hp.value == 10
        assert creature.ac.value == 11


class TestCritterDb:

    def test_decode(self, parse_fixture):
        captain = parse_fixture("critterdb_bandit_captain.json")
        assert captain.meta.json_format == "critterdb"
        assert captain.cr.numeric == 2.0
        assert captain.hp.value == 65
        assert captain.hp.formula == "10d8+20"
        assert captain.ac.value == 15
        assert captain.ac.type == "studded leather"
        assert captain.primary_attack.name == "Scimitar"
        assert captain.has_multiattack
        assert [r.name for r in captain.reactions] == ["Parry"]
        assert captain.description == "A charismatic leader of outlaws."


class TestFoundry:

    @pytest.fixture
    def boss(self, parse_fixture):
        return parse_fixture("foundry_goblin_boss.json")

    def test_header(self, boss):
        assert boss.meta.json_format == "foundry"
        assert boss.ac.value == 17
        assert boss.ac.type == "natural"
        assert boss.type_info.size == "Small"
        assert boss.type_info.type == "humanoid"
        assert boss.type_info.subtype == "goblinoid"
        assert boss.hp.value == 21
        assert boss.hp.formula == "6d6"
        assert boss.senses["darkvision"] == 60
        assert boss.languages == ["common", "goblin"]
        assert boss.source == "MM pg. 166"

    def test_weapon_items(self, boss):
        scimitar = next(a for a in boss.actions if a.name == "Scimitar")
        javelin = next(a for a in boss.actions if a.name == "Javelin")
        assert scimitar.attack_info.to_hit == 4
        assert scimitar.attack_info.damage_dice == "1d6+2"
        assert scimitar.attack_info.avg_damage == 5
        assert scimitar.attack_info.range == "5"
        assert javelin.attack_info.type == "ranged"
        assert javelin.attack_info.to_hit == 2
        assert javelin.attack_info.damage_dice == "1d6+0"
        assert javelin.attack_info.avg_damage == 3
        assert javelin.attack_info.range == "30/120"

    def test_activation_groups(self, boss):
        assert [a.name for a in boss.bonus_actions] == ["Nimble Escape"]
        assert [a.name for a in boss.reactions] == ["Redirect Attack"]


class TestImprovedInitiative:

    def test_decode(self, parse_fixture):
        orc = parse_fixture("improvedinitiative_orc.json")
        assert orc.meta.json_format == "improvedinitiative"
        assert orc.type_info.type == "humanoid"
        assert orc.type_info.subtype == "orc"
        assert orc.type_info.alignment == "chaotic evil"
        assert orc.hp.value == 15
        assert orc.hp.formula == "2d8+6"
        assert orc.ac.value == 13
        assert orc.ac.type == "hide armor"
        assert orc.skills == {"intimidation": 2}
        assert orc.cr.string == "1/2"
        assert orc.primary_attack.name == "Greataxe"
        assert orc.primary_attack.attack_info.avg_damage == 9
        assert orc.system_data["initiative"] == 1


class TestDecoderRouting:

    def test_every_format_has_a_decoder(self):
        assert set(DECODERS) == set(JsonFormat) - {JsonFormat.UNKNOWN}

    def test_unknown_format_uses_fallback(self):
        assert isinstance(decoder_for(JsonFormat.UNKNOWN), FiveToolsDecoder)

    def test_auto_extractor_records_format(self, load_json_fixture):
        creature = JsonExtractor().parse(load_json_fixture("critterdb_bandit_captain.json"))
        assert creature.meta.system == "json-critterdb"
        assert creature.meta.system_name == "CritterDB JSON"

    def test_unrecognized_json_still_parses(self):
        creature = JsonExtractor().parse(json.dumps({"name": "Blob"}))
        assert creature.name == "Blob"
        assert creature.meta.json_format == "unknown"
        assert creature.meta.system == "json"

    def test_arrays_use_first_object(self, load_json_fixture):
        data = load_json_fixture("fivetools_goblin.json")
        assert FiveToolsDecoder().parse([data, {"name": "Other"}]).name == "Goblin"


class TestValueHelpers:

    def test_as_text(self):
        assert as_text(" a ") == "a"
        assert as_text(5) == "5"
        assert as_text(None) == ""
        assert as_text(True) == ""
        assert as_text({"x": 1}) == ""

    def test_dig(self):
        assert dig({"a": {"b": 2}}, "a", "b") == 2
        assert dig({"a": 1}, "a", "b") is None

    def test_size_word(self):
        assert size_word(["L"]) == "Large"
        assert size_word("med") == "Medium"
        assert size_word(None) == "Medium"

    def test_text_items(self):
        value = ["fire", {"resist": ["cold", "lightning"], "note": "x"}, {"special": "magic"}]
        assert text_items(value, ("resist",)) == ["fire", "cold", "lightning", "magic"]
        assert text_items("acid, poison") == ["acid", "poison"]

    def test_legendary_count(self):
        assert legendary_count([]) == 0
