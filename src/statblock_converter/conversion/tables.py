"""
Static balance tables for Daggerheart conversion.

Every number the engine uses lives here: per-tier base statistics, role
modifiers, damage dice bands, range bands and the damage-type map.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..models import AdversaryType

DEFAULT_TIER = 2


@dataclass(frozen=True)
class TierStats:
    """Base adversary statistics for one tier."""
    difficulty: int
    major_thresh: int
    severe_thresh: int
    atk_mod: int
    base_damage: str
    hp: int
    stress: int


@dataclass(frozen=True)
class RoleModifier:
    """Adjustments a role applies on top of the tier statistics.

    ``fixed_hp`` replaces the computed HP outright (Minions always have 1).
    """
    hp: int = 0
    stress: int = 0
    thresh_mult: float = 1.0
    atk_mod: int = 0
    fixed_hp: int | None = None


TIER_STATS: dict[int, TierStats] = {
    1: TierStats(difficulty=11, major_thresh=7, severe_thresh=12, atk_mod=1, base_damage="1d8+2", hp=3, stress=2),
    2: TierStats(difficulty=14, major_thresh=10, severe_thresh=20, atk_mod=2, base_damage="2d8+3", hp=5, stress=3),
    3: TierStats(difficulty=17, major_thresh=20, severe_thresh=32, atk_mod=3, base_damage="3d8+4", hp=8, stress=4),
    4: TierStats(difficulty=20, major_thresh=25, severe_thresh=45, atk_mod=4, base_damage="4d8+6", hp=12, stress=5),
}

ROLE_MODIFIERS: dict[AdversaryType, RoleModifier] = {
    AdversaryType.BRUISER: RoleModifier(hp=3, stress=1, thresh_mult=1.2),
    AdversaryType.HORDE: RoleModifier(hp=-1, thresh_mult=0.8),
    AdversaryType.LEADER: RoleModifier(hp=1, stress=2, thresh_mult=1.1, atk_mod=1),
    AdversaryType.MINION: RoleModifier(thresh_mult=0.5, atk_mod=-1, fixed_hp=1),
    AdversaryType.RANGED: RoleModifier(hp=-1, thresh_mult=0.9, atk_mod=1),
    AdversaryType.SKULK: RoleModifier(stress=1, thresh_mult=0.9),
    AdversaryType.SOCIAL: RoleModifier(hp=-1, stress=2, thresh_mult=0.7, atk_mod=-1),
    AdversaryType.SOLO: RoleModifier(hp=5, stress=3, thresh_mult=1.5, atk_mod=1),
    AdversaryType.STANDARD: RoleModifier(),
    AdversaryType.SUPPORT: RoleModifier(hp=-1, stress=1, thresh_mult=0.8),
}

# Upper CR bound (inclusive) -> tier
CR_TIER_BANDS: list[tuple[float, int]] = [
    (2, 1),
    (4, 2),
    (10, 3),
]

# Upper CR bound (inclusive) -> default role
CR_ROLE_BANDS: list[tuple[float, AdversaryType]] = [
    (0.25, AdversaryType.MINION),
    (1, AdversaryType.STANDARD),
    (3, AdversaryType.BRUISER),
    (6, AdversaryType.LEADER),
]

DAMAGE_BY_TIER: dict[int, dict[str, str]] = {
    1: {"low": "1d6+2", "mid": "1d8+3", "high": "1d10+4", "max": "1d12+5"},
    2: {"low": "2d6+2", "mid": "2d8+3", "high": "2d10+4", "max": "2d12+5"},
    3: {"low": "3d6+3", "mid": "3d8+4", "high": "3d10+5", "max": "3d12+6"},
    4: {"low": "4d6+5", "mid": "4d8+8", "high": "4d10+10", "max": "4d12+15"},
}

# Upper average-damage bound (inclusive) -> band
DAMAGE_BANDS: list[tuple[int, str]] = [
    (5, "low"),
    (10, "mid"),
    (20, "high"),
]

# Upper distance in feet (inclusive) -> Daggerheart range
RANGE_BANDS: list[tuple[int, str]] = [
    (5, "Melee"),
    (10, "Very Close"),
    (30, "Close"),
    (60, "Far"),
]
FARTHEST_RANGE = "Very Far"

PHYSICAL_DAMAGE = frozenset({"slashing", "piercing", "bludgeoning"})
MAGIC_DAMAGE = frozenset({
    "fire", "cold", "lightning", "acid", "poison",
    "necrotic", "radiant", "force", "psychic", "thunder",
})


def tier_from_cr(cr: float) -> int:
    """Map a challenge rating onto a tier (1-4); monotonic in ``cr``."""
    if isinstance(cr, float) and math.isnan(cr):
        return DEFAULT_TIER
    for max_cr, tier in CR_TIER_BANDS:
        if cr <= max_cr:
            return tier
    return 4


def tier_stats(tier: int) -> TierStats:
    return TIER_STATS.get(tier, TIER_STATS[DEFAULT_TIER])


def role_modifier(role: AdversaryType | None) -> RoleModifier:
    return ROLE_MODIFIERS.get(role, ROLE_MODIFIERS[AdversaryType.STANDARD])


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


__all__ = [
    "DEFAULT_TIER",
    "TierStats",
    "RoleModifier",
    "TIER_STATS",
    "ROLE_MODIFIERS",
    "CR_TIER_BANDS",
    "CR_ROLE_BANDS",
    "DAMAGE_BY_TIER",
    "DAMAGE_BANDS",
    "RANGE_BANDS",
    "FARTHEST_RANGE",
    "PHYSICAL_DAMAGE",
    "MAGIC_DAMAGE",
    "tier_from_cr",
    "tier_stats",
    "role_modifier",
    "round_half_up",
]
