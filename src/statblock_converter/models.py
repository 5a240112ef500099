"""
Data models for parsed creatures and converted adversaries.

``CanonicalCreature`` is the source-agnostic representation produced by
every extractor. ``TargetStatBlock`` is the Daggerheart adversary produced
by the conversion engine. Both are frozen once built; every field has a
type-correct default so downstream code never has to guard against
missing data.

Fields are snake_case in Python and serialize to camelCase with
``model_dump(by_alias=True)``.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class StatblockModel(BaseModel):
    """Base model: camelCase aliases, populate by name, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# Canonical creature
# =============================================================================

ABILITY_KEYS = ("str", "dex", "con", "int", "wis", "cha")


class TypeInfo(StatblockModel):
    """Size, creature type, subtype and alignment."""
    size: str = Field(default="Medium", description="Size category, e.g. 'Large'")
    type: str = Field(default="creature", description="Creature type, e.g. 'giant'")
    subtype: str | None = Field(default=None, description="Parenthesized subtype or tags")
    alignment: str | None = Field(default=None)


class ArmorClass(StatblockModel):
    value: int = Field(default=10)
    type: str | None = Field(default=None, description="Armor description, e.g. 'hide armor'")


class HitPoints(StatblockModel):
    value: int = Field(default=10)
    formula: str | None = Field(default=None, description="Hit dice formula, e.g. '7d10 + 21'")


class Speed(StatblockModel):
    """Movement speeds in feet. ``walk`` is always present."""
    walk: int = Field(default=30)
    fly: int | None = Field(default=None)
    swim: int | None = Field(default=None)
    climb: int | None = Field(default=None)
    burrow: int | None = Field(default=None)


class AbilityScores(StatblockModel):
    """The six ability scores.

    Accepts either the long field names or the short ``str``/``dex``/...
    keys. Modifiers are always derived from the scores.
    """
    strength: int = Field(default=10, alias="str")
    dexterity: int = Field(default=10, alias="dex")
    constitution: int = Field(default=10, alias="con")
    intelligence: int = Field(default=10, alias="int")
    wisdom: int = Field(default=10, alias="wis")
    charisma: int = Field(default=10, alias="cha")

    def as_dict(self) -> dict[str, int]:
        """Return the scores keyed by their short names."""
        return dict(zip(ABILITY_KEYS, (
            self.strength, self.dexterity, self.constitution,
            self.intelligence, self.wisdom, self.charisma,
        )))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def modifiers(self) -> dict[str, int]:
        return {key: math.floor((score - 10) / 2) for key, score in self.as_dict().items()}


class ChallengeRating(StatblockModel):
    string: str = Field(default="1", description="CR as written in the source, e.g. '1/4'")
    numeric: float = Field(default=1.0, description="CR as a float; drives every balance decision")


class DamageInfo(StatblockModel):
    resistances: list[str] = Field(default_factory=list)
    immunities: list[str] = Field(default_factory=list)
    vulnerabilities: list[str] = Field(default_factory=list)
    condition_immunities: list[str] = Field(default_factory=list)


class AttackInfo(StatblockModel):
    """Structured data pulled out of an attack description."""
    type: Literal["melee", "ranged"] = Field(default="melee")
    to_hit: int = Field(default=0)
    range: str = Field(default="5", description="Reach or range in feet, e.g. '5' or '80/320'")
    damage_dice: str = Field(default="", description="Dice expression, empty if none was found")
    damage_type: str = Field(default="", description="Lower-case damage type, empty if unknown")
    avg_damage: int = Field(default=0)


class Ability(StatblockModel):
    """A named trait, action, reaction or legendary action."""
    name: str
    description: str = Field(default="")
    is_attack: bool = Field(default=False)
    attack_info: AttackInfo | None = Field(default=None)


class ParseMeta(StatblockModel):
    """How a creature was parsed."""
    system: str = Field(default="", description="Registry id of the extractor used")
    system_name: str = Field(default="")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    json_format: str | None = Field(default=None)


class CanonicalCreature(StatblockModel):
    """Source-agnostic creature produced by every extractor."""

    name: str = Field(default="Unknown Creature", min_length=1)
    type_info: TypeInfo = Field(default_factory=TypeInfo)
    ac: ArmorClass = Field(default_factory=ArmorClass)
    hp: HitPoints = Field(default_factory=HitPoints)
    speed: Speed = Field(default_factory=Speed)
    ability_scores: AbilityScores = Field(default_factory=AbilityScores)
    cr: ChallengeRating = Field(default_factory=ChallengeRating)
    skills: dict[str, int] = Field(default_factory=dict)
    damage_info: DamageInfo = Field(default_factory=DamageInfo)
    senses: dict[str, bool | int] = Field(default_factory=dict)
    languages: list[str] = Field(default_factory=list)

    # Ability collections
    traits: list[Ability] = Field(default_factory=list)
    actions: list[Ability] = Field(default_factory=list)
    bonus_actions: list[Ability] = Field(default_factory=list)
    reactions: list[Ability] = Field(default_factory=list)
    legendary_actions: list[Ability] = Field(default_factory=list)
    lair_actions: list[Ability] = Field(default_factory=list)

    # Derived
    primary_attack: Ability | None = Field(default=None)
    has_multiattack: bool = Field(default=False)
    multiattack_desc: str | None = Field(default=None)
    legendary_action_count: int = Field(default=0, ge=0)
    has_spellcasting: bool = Field(default=False)

    # Source extras
    description: str | None = Field(default=None, description="Flavor text from the source")
    source: str | None = Field(default=None, description="Source book or tool")
    system_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Dialect-specific values with no canonical slot (saves, morale, level...)",
    )
    meta: ParseMeta = Field(default_factory=ParseMeta)

    @property
    def modifiers(self) -> dict[str, int]:
        return self.ability_scores.modifiers

    def all_abilities(self) -> list[Ability]:
        return [
            *self.traits, *self.actions, *self.bonus_actions,
            *self.reactions, *self.legendary_actions, *self.lair_actions,
        ]


# =============================================================================
# Daggerheart adversary
# =============================================================================

class AdversaryType(str, Enum):
    """Daggerheart adversary roles."""
    BRUISER = "Bruiser"
    HORDE = "Horde"
    LEADER = "Leader"
    MINION = "Minion"
    RANGED = "Ranged"
    SKULK = "Skulk"
    SOCIAL = "Social"
    SOLO = "Solo"
    STANDARD = "Standard"
    SUPPORT = "Support"

    @classmethod
    def lookup(cls, value: str | None) -> "AdversaryType | None":
        """Case-insensitive lookup by value; None for unknown roles."""
        if not value:
            return None
        wanted = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


class FeatureType(str, Enum):
    PASSIVE = "Passive"
    ACTION = "Action"
    REACTION = "Reaction"


class FeatureAttack(StatblockModel):
    """Attack line attached to a secondary-attack feature."""
    range: str
    damage: str
    damage_type: str
    to_hit: int = Field(default=0)


class Feature(StatblockModel):
    name: str
    type: FeatureType = Field(default=FeatureType.PASSIVE)
    desc: str = Field(default="")
    fear_cost: int = Field(default=0, ge=0)
    is_legendary: bool = Field(default=False)
    attack: FeatureAttack | None = Field(default=None)


class TargetStatBlock(StatblockModel):
    """A converted Daggerheart adversary."""

    id: str
    category: str = Field(default="adversary")
    name: str
    tier: int = Field(ge=1, le=4)
    adv_type: AdversaryType
    description: str = Field(default="")
    image_url: str = Field(default="")

    difficulty: int
    major_thresh: int = Field(ge=1)
    severe_thresh: int = Field(ge=1)
    hp: int = Field(ge=1)
    stress: int = Field(ge=1)
    atk_mod: int

    weapon: str = Field(default="Natural Weapon")
    range: str = Field(default="Melee")
    damage: str
    dmg_type: Literal["phy", "mag"] = Field(default="phy")

    motives: str = Field(default="")
    tactics: str = Field(default="")
    experience: str = Field(default="")
    tags: list[str] = Field(default_factory=list)
    features: list[Feature] = Field(default_factory=list)

    source_cr: str = Field(default="1")
    source_hp: int = Field(default=10)

    @property
    def atk_mod_display(self) -> str:
        return f"{self.atk_mod:+d}"


__all__ = [
    "ABILITY_KEYS",
    "StatblockModel",
    "TypeInfo",
    "ArmorClass",
    "HitPoints",
    "Speed",
    "AbilityScores",
    "ChallengeRating",
    "DamageInfo",
    "AttackInfo",
    "Ability",
    "ParseMeta",
    "CanonicalCreature",
    "AdversaryType",
    "FeatureType",
    "FeatureAttack",
    "Feature",
    "TargetStatBlock",
]
