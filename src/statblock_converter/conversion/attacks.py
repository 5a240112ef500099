"""
Attack conversion: range bands, damage dice and damage type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import Ability, Feature, FeatureAttack, FeatureType
from .tables import (
    DAMAGE_BANDS,
    DAMAGE_BY_TIER,
    DEFAULT_TIER,
    FARTHEST_RANGE,
    MAGIC_DAMAGE,
    RANGE_BANDS,
    tier_stats,
)

NATURAL_WEAPON = "Natural Weapon"


@dataclass(frozen=True)
class ConvertedAttack:
    """Daggerheart attack line for one source attack."""
    weapon: str
    range: str
    damage: str
    damage_type: str
    to_hit: int = 0


def convert_range(range_ft: str | int | None) -> str:
    """Feet ("80/320" uses its first number) to a Daggerheart range."""
    if range_ft is None or range_ft == "":
        return "Melee"
    match = re.match(r"\s*(\d+)", str(range_ft))
    if not match:
        return "Melee"
    feet = int(match.group(1))
    for max_ft, band in RANGE_BANDS:
        if feet <= max_ft:
            return band
    return FARTHEST_RANGE


def damage_band(avg_damage: int | None) -> str:
    if not avg_damage:
        return "low"
    for max_avg, band in DAMAGE_BANDS:
        if avg_damage <= max_avg:
            return band
    return "max"


def convert_damage(avg_damage: int | None, tier: int) -> str:
    """Tier-appropriate dice for a source attack's average damage."""
    dice = DAMAGE_BY_TIER.get(tier, DAMAGE_BY_TIER[DEFAULT_TIER])
    return dice[damage_band(avg_damage)]


def convert_damage_type(damage_type: str | None) -> str:
    """'mag' for elemental and magical damage, 'phy' for everything else."""
    if damage_type and damage_type.strip().lower() in MAGIC_DAMAGE:
        return "mag"
    return "phy"


def convert_attack(attack: Ability | None, tier: int) -> ConvertedAttack:
    """Convert a source attack; no attack yields the tier's natural weapon."""
    if attack is None or attack.attack_info is None:
        return ConvertedAttack(
            weapon=NATURAL_WEAPON,
            range="Melee",
            damage=tier_stats(tier).base_damage,
            damage_type="phy",
        )
    info = attack.attack_info
    return ConvertedAttack(
        weapon=attack.name,
        range=convert_range(info.range),
        damage=convert_damage(info.avg_damage, tier),
        damage_type=convert_damage_type(info.damage_type),
        to_hit=info.to_hit,
    )


def locate_primary(primary: Ability | None, *groups: list[Ability]) -> tuple[int, int] | None:
    """Position of the primary attack as ``(group, index)``.

    Identity is tried across every group before equality.
    """
    if primary is None:
        return None
    for same in (lambda a: a is primary, lambda a: a == primary):
        for group_index, group in enumerate(groups):
            for index, ability in enumerate(group):
                if same(ability):
                    return group_index, index
    return None


def secondary_attack_features(
    actions: list[Ability],
    primary: Ability | None,
    tier: int,
    bonus_actions: list[Ability] | None = None,
) -> list[Feature]:
    """Action features for every attack action other than the primary one.

    The primary may come from ``bonus_actions``; it is then not looked for
    among ``actions``.
    """
    position = locate_primary(primary, actions, bonus_actions or [])

    features = []
    for index, action in enumerate(actions):
        if position == (0, index) or not action.is_attack or action.attack_info is None:
            continue
        converted = convert_attack(action, tier)
        features.append(Feature(
            name=action.name,
            type=FeatureType.ACTION,
            desc=f"{converted.range} attack. {converted.damage} {converted.damage_type} damage.",
            attack=FeatureAttack(
                range=converted.range,
                damage=converted.damage,
                damage_type=converted.damage_type,
                to_hit=converted.to_hit,
            ),
        ))
    return features


__all__ = [
    "NATURAL_WEAPON",
    "ConvertedAttack",
    "convert_range",
    "damage_band",
    "convert_damage",
    "convert_damage_type",
    "convert_attack",
    "locate_primary",
    "secondary_attack_features",
]
