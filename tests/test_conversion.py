"""
Tests for the Daggerheart conversion engine.
"""

import pytest

from statblock_converter.abilities import make_ability
from statblock_converter.conversion import (
    TIER_STATS,
    convert,
    convert_damage,
    convert_damage_type,
    convert_range,
    detect_fear_cost,
    find_template,
    infer_role,
    load_feature_templates,
    locate_primary,
    rewrite_description,
    tier_from_cr,
    translate_ability,
)
from statblock_converter.conversion.features import infer_feature_type
from statblock_converter.models import (
    Ability,
    AdversaryType,
    AttackInfo,
    CanonicalCreature,
    ChallengeRating,
    FeatureType,
    HitPoints,
)


def make_creature(cr: float = 1.0, **fields) -> CanonicalCreature:
    return CanonicalCreature(name="Test Creature", cr=ChallengeRating(string=str(cr), numeric=cr), **fields)


class TestOgreConversion:
    """CR 2 Bruiser with a heavy melee weapon."""

    @pytest.fixture
    def adversary(self, ogre):
        return convert(ogre)

    def test_tier_and_role(self, adversary):
        assert adversary.id == "adv-ogre"
        assert adversary.tier == 1
        assert adversary.adv_type is AdversaryType.BRUISER

    def test_stats(self, adversary):
        assert adversary.difficulty == 11
        assert adversary.hp == 6
        assert adversary.stress == 3
        assert adversary.major_thresh == 8
        assert adversary.severe_thresh == 14
        assert adversary.atk_mod == 1
        assert adversary.atk_mod_display == "+1"

    def test_attack(self, adversary):
        assert adversary.weapon == "Greatclub"
        assert adversary.range == "Melee"
        assert adversary.damage == "1d10+4"
        assert adversary.dmg_type == "phy"

    def test_secondary_attack_feature(self, adversary):
        assert [f.name for f in adversary.features] == ["Javelin"]
        javelin = adversary.features[0]
        assert javelin.type is FeatureType.ACTION
        assert javelin.desc == "Melee attack. 1d10+4 phy damage."
        assert javelin.attack.damage == "1d10+4"

    def test_narrative(self, adversary):
        assert adversary.description == "A large giant."
        assert adversary.motives == "Achieve objectives, eliminate threats, cause chaos"
        assert adversary.tactics == "Close to melee range quickly."
        assert adversary.experience == "Perception +1"
        assert adversary.tags == ["giant", "humanoid", "darkvision"]

    def test_source_metadata(self, adversary):
        assert adversary.source_cr == "2"
        assert adversary.source_hp == 59


class TestWightConversion:

    @pytest.fixture
    def adversary(self, wight):
        return convert(wight)

    def test_stealthy_undead_is_skulk(self, adversary):
        assert adversary.tier == 2
        assert adversary.adv_type is AdversaryType.SKULK
        assert adversary.hp == 5
        assert adversary.stress == 4
        assert adversary.major_thresh == 9
        assert adversary.severe_thresh == 18
        assert adversary.atk_mod == 2

    def test_features_in_order(self, adversary):
        names = [f.name for f in adversary.features]
        assert names == ["Sunlight Sensitivity", "Relentless", "Life Drain", "Longbow"]

    def test_secondary_attacks(self, adversary):
        life_drain = adversary.features[2]
        longbow = adversary.features[3]
        assert life_drain.desc == "Melee attack. 2d6+2 mag damage."
        assert longbow.desc == "Very Far attack. 2d8+3 phy damage."

    def test_narrative(self, adversary):
        assert adversary.experience == "Stealth +2"
        assert adversary.description == "A medium undead animated by dark magic."
        assert adversary.tags == ["undead", "horror", "darkvision", "damage-immune"]


class TestDragonConversion:
    """Legendary creatures become tier 4 Solos with a legendary pool."""

    @pytest.fixture
    def adversary(self, dragon):
        return convert(dragon)

    def test_stats(self, adversary):
        assert adversary.tier == 4
        assert adversary.adv_type is AdversaryType.SOLO
        assert adversary.hp == 17
        assert adversary.stress == 8
        assert adversary.major_thresh == 38
        assert adversary.severe_thresh == 68
        assert adversary.atk_mod == 5
        assert adversary.weapon == "Bite"
        assert adversary.range == "Very Close"
        assert adversary.damage == "4d10+10"

    def test_feature_order(self, adversary):
        names = [f.name for f in adversary.features]
        assert names == [
            "Indomitable",
            "Relentless",
            "Frightful Presence",
            "Fire Breath (Recharge 5-6)",
            "Legendary Actions (3)",
            "Detect",
            "Tail Attack",
            "Wing Attack",
            "Claw",
            "Tail",
        ]

    def test_fear_costs(self, adversary):
        features = {f.name: f for f in adversary.features}
        assert features["Indomitable"].type is FeatureType.REACTION
        assert features["Indomitable"].fear_cost == 1
        assert features["Detect"].fear_cost == 1
        assert features["Detect"].is_legendary
        assert features["Wing Attack"].fear_cost == 2
        assert features["Legendary Actions (3)"].fear_cost == 0

    def test_dcs_rewritten(self, adversary):
        breath = next(f for f in adversary.features if f.name.startswith("Fire Breath"))
        assert breath.type is FeatureType.PASSIVE
        assert "makes a DC 20 Dexterity save" in breath.desc
        wing = next(f for f in adversary.features if f.name == "Wing Attack")
        assert "must succeed on a DC 20 Dexterity save" in wing.desc
        text = " ".join(f.desc for f in adversary.features)
        for stale in ("DC 19", "DC 21", "DC 22"):
            assert stale not in text

    def test_secondary_attacks(self, adversary):
        claw, tail = adversary.features[-2:]
        assert (claw.attack.range, claw.attack.damage) == ("Melee", "4d10+10")
        assert (tail.attack.range, tail.attack.damage) == ("Close", "4d10+10")

    def test_narrative(self, adversary):
        assert "Open with breath weapon on grouped enemies" in adversary.tactics
        assert "Use flight to stay out of reach" in adversary.tactics
        assert adversary.tags == ["dragon", "legendary", "flying", "darkvision", "blindsight", "damage-immune"]


class TestOptions:

    def test_overrides(self, ogre):
        adversary = convert(ogre, {
            "tier": 3,
            "type": "solo",
            "description": "Big.",
            "motives": "Smash",
            "tactics": "Charge.",
            "imageUrl": "http://example.com/ogre.png",
        })
        assert adversary.tier == 3
        assert adversary.adv_type is AdversaryType.SOLO
        assert adversary.description == "Big."
        assert adversary.motives == "Smash"
        assert adversary.tactics == "Charge."
        assert adversary.image_url == "http://example.com/ogre.png"

    @pytest.mark.parametrize("tier", [0, 5, -1])
    def test_invalid_tier_uses_default(self, ogre, tier):
        assert convert(ogre, {"tier": tier}).tier == 2

    def test_non_numeric_tier_is_ignored(self, ogre):
        assert convert(ogre, {"tier": "high"}).tier == 1

    def test_unknown_role_is_standard(self, ogre):
        assert convert(ogre, {"type": "Wizard"}).adv_type is AdversaryType.STANDARD

    @pytest.mark.parametrize("tier", [1, 2, 3, 4])
    def test_minion_has_one_hp(self, ogre, tier):
        adversary = convert(ogre, {"tier": tier, "type": "Minion"})
        assert adversary.hp == 1
        assert adversary.atk_mod == TIER_STATS[tier].atk_mod - 1

    @pytest.mark.parametrize("tier", sorted(TIER_STATS))
    @pytest.mark.parametrize("role", list(AdversaryType))
    def test_stats_stay_in_bounds(self, ogre, tier, role):
        adversary = convert(ogre, {"tier": tier, "type": role.value})
        assert adversary.adv_type is role
        assert adversary.hp >= 1
        assert adversary.stress >= 1
        assert 1 <= adversary.major_thresh < adversary.severe_thresh

    def test_deterministic(self, dragon):
        assert convert(dragon) == convert(dragon)


class TestTiers:

    @pytest.mark.parametrize("cr,tier", [(0, 1), (0.25, 1), (2, 1), (3, 2), (4, 2), (6, 3), (17, 4), (30, 4)])
    def test_known_bands(self, cr, tier):
        assert tier_from_cr(cr) == tier

    def test_monotonic(self):
        crs = [0, 0.125, 0.25, 0.5, 1, 2, 3, 4, 5, 7, 10, 12, 15, 20, 25, 30]
        tiers = [tier_from_cr(cr) for cr in crs]
        assert tiers == sorted(tiers)

    def test_stats_grow_with_tier(self):
        for lower, upper in zip((1, 2, 3), (2, 3, 4)):
            assert TIER_STATS[upper].difficulty > TIER_STATS[lower].difficulty
            assert TIER_STATS[upper].hp > TIER_STATS[lower].hp


class TestRoles:
    """Tests for the ordered role rules."""

    def test_legendary_is_solo(self):
        creature = make_creature(1, legendary_action_count=3)
        assert infer_role(creature) is AdversaryType.SOLO

    def test_ranged_primary(self):
        bow = Ability(name="Bow", is_attack=True, attack_info=AttackInfo(type="ranged", range="80/320", avg_damage=5))
        creature = make_creature(1, actions=[bow], primary_attack=bow)
        assert infer_role(creature) is AdversaryType.RANGED

    def test_support_wording(self):
        trait = Ability(name="Aura", description="Allies within 10 feet heal 5 hit points.")
        assert infer_role(make_creature(2, traits=[trait])) is AdversaryType.SUPPORT

    def test_tough_creature(self):
        creature = make_creature(2, hp=HitPoints(value=80))
        assert infer_role(creature) is AdversaryType.BRUISER

    @pytest.mark.parametrize("cr,role", [
        (0.125, AdversaryType.MINION),
        (1, AdversaryType.STANDARD),
        (3, AdversaryType.BRUISER),
        (5, AdversaryType.LEADER),
        (9, AdversaryType.SOLO),
    ])
    def test_cr_bands(self, cr, role):
        assert infer_role(make_creature(cr)) is role


class TestFear:
    """Tests for Fear cost precedence."""

    def test_explicit_beats_skulls(self):
        result = detect_fear_cost("\U0001F480 Crushing Blow (Fear 3)")
        assert result.cost == 3
        assert result.rule == "explicit"
        assert result.name == "Crushing Blow"

    def test_skulls_counted(self):
        assert detect_fear_cost("\U0001F480\U0001F480 Doom").cost == 2

    def test_prefix_and_phrasing(self):
        assert detect_fear_cost("Roar", "Fear Feature: All PCs mark Stress.").cost == 1
        assert detect_fear_cost("Roar", "Spend 2 Fear to roar.").cost == 2
        assert detect_fear_cost("Roar", "Spend a Fear to roar.").cost == 1

    def test_action_costs(self):
        assert detect_fear_cost("Wing Attack (Costs 2 Actions)").cost == 2
        assert detect_fear_cost("Healing Touch (1/Day)").cost == 2
        assert detect_fear_cost("Healing Touch (3/Day)").cost == 1

    def test_no_cost(self):
        result = detect_fear_cost("Bite", "A plain bite.")
        assert result.cost == 0
        assert result.rule is None

    def test_recharge_is_kept_in_name(self):
        assert detect_fear_cost("Fire Breath (Recharge 5-6)").name == "Fire Breath (Recharge 5-6)"


class TestFeatures:

    def test_templates_load_in_order(self):
        keys = [t.key for t in load_feature_templates()]
        assert keys.index("magic resistance") < keys.index("multiattack")
        assert "legendary resistance" in keys

    def test_find_template(self):
        assert find_template("Legendary Resistance (3/Day)").name == "Indomitable"
        assert find_template("Multiattack").name == "Relentless"
        assert find_template("Bite") is None

    def test_rewrite_description(self):
        text = "The target must make a DC 15 Constitution saving throw.  The target falls."
        assert rewrite_description(text, 14) == "target makes a DC 14 Constitution save. target falls."

    def test_must_succeed_is_kept(self):
        text = "must succeed on a DC 13 Wisdom saving throw"
        assert rewrite_description(text, 11) == "must succeed on a DC 11 Wisdom save"

    def test_reaction_section_forces_reaction(self):
        parry = Ability(name="Parry", description="Adds 2 to its AC.")
        assert translate_ability(parry, 11, reaction=True).type is FeatureType.REACTION

    @pytest.mark.parametrize("desc", [
        "Whenever a creature within 5 feet hits it, it takes 3 fire damage.",
        "When the creature dies, it explodes.",
        "Until it rests, or when bloodied, it doubles its speed.",
    ])
    def test_trigger_words_make_reactions(self, desc):
        assert infer_feature_type(desc) is FeatureType.REACTION

    def test_words_containing_when_are_not_triggers(self):
        assert infer_feature_type("Its hide is somewhen-touched and glows.") is FeatureType.PASSIVE

    def test_legendary_default_fear(self):
        detect = Ability(name="Detect", description="Makes a Perception check.")
        feature = translate_ability(detect, 11, legendary=True)
        assert feature.fear_cost == 1
        assert feature.is_legendary


class TestAttackConversion:

    @pytest.mark.parametrize("feet,band", [
        ("5", "Melee"), ("10", "Very Close"), ("30", "Close"), ("60", "Far"), ("150/600", "Very Far"),
    ])
    def test_range_bands(self, feet, band):
        assert convert_range(feet) == band

    def test_damage_bands(self):
        assert convert_damage(5, 1) == "1d6+2"
        assert convert_damage(10, 1) == "1d8+3"
        assert convert_damage(20, 1) == "1d10+4"
        assert convert_damage(21, 1) == "1d12+5"
        assert convert_damage(15, 4) == "4d10+10"

    def test_damage_types(self):
        assert convert_damage_type("fire") == "mag"
        assert convert_damage_type("Slashing") == "phy"
        assert convert_damage_type(None) == "phy"

    def test_creature_without_attacks(self):
        adversary = convert(make_creature(1))
        assert adversary.weapon == "Natural Weapon"
        assert adversary.range == "Melee"
        assert adversary.damage == TIER_STATS[1].base_damage

    @pytest.fixture
    def bonus_biter(self):
        scimitar = make_ability(
            "Scimitar",
            "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 5 (1d6 + 2) slashing damage.",
        )
        bite = make_ability(
            "Savage Bite",
            "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 10 (2d6 + 3) piercing damage.",
        )
        dash = make_ability("Dash", "The creature moves up to its speed.")
        return make_creature(1, actions=[scimitar], bonus_actions=[bite, dash], primary_attack=bite)

    def test_bonus_action_primary_is_not_a_feature(self, bonus_biter):
        adversary = convert(bonus_biter)
        assert adversary.weapon == "Savage Bite"
        assert [f.name for f in adversary.features] == ["Dash", "Scimitar"]

    def test_primary_matched_by_value_after_reload(self, bonus_biter):
        reloaded = CanonicalCreature.model_validate(bonus_biter.model_dump())
        assert reloaded.primary_attack is not reloaded.bonus_actions[0]
        assert [f.name for f in convert(reloaded).features] == ["Dash", "Scimitar"]

    def test_locate_primary(self, bonus_biter):
        bite = bonus_biter.bonus_actions[0]
        assert locate_primary(bite, bonus_biter.actions, bonus_biter.bonus_actions) == (1, 0)
        assert locate_primary(None, bonus_biter.actions) is None
