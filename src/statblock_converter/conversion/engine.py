"""
Daggerheart conversion engine.

``convert`` maps a CanonicalCreature onto a TargetStatBlock. It is total:
bad options are logged and replaced by defaults, and every creature a
parser can produce converts without raising.
"""

from __future__ import annotations

import logging

from ..config import ConversionOptions
from ..models import AdversaryType, CanonicalCreature, Feature, TargetStatBlock
from ..text_utils import slugify
from .attacks import convert_attack, locate_primary, secondary_attack_features
from .features import legendary_pool_feature, translate_ability
from .narrative import (
    determine_experience,
    generate_description,
    generate_motives,
    generate_tactics,
    generate_tags,
)
from .roles import infer_role
from .tables import DEFAULT_TIER, role_modifier, round_half_up, tier_from_cr, tier_stats

logger = logging.getLogger("statblock-converter.conversion")


def select_tier(creature: CanonicalCreature, requested: int | None) -> int:
    """The requested tier when valid, else the CR-derived tier.

    A requested tier outside 1-4 falls back to the default tier.
    """
    if requested is None:
        return tier_from_cr(creature.cr.numeric)
    if 1 <= requested <= 4:
        return requested
    logger.warning(f"Invalid tier option {requested}; using tier {DEFAULT_TIER}")
    return DEFAULT_TIER


def select_role(creature: CanonicalCreature, requested: str | None) -> AdversaryType:
    """The requested role when known, else the inferred role.

    An unrecognized role name falls back to Standard.
    """
    if not requested:
        return infer_role(creature)
    role = AdversaryType.lookup(requested)
    if role is None:
        logger.warning(f"Unknown adversary type option '{requested}'; using Standard")
        return AdversaryType.STANDARD
    return role


def build_features(creature: CanonicalCreature, difficulty: int) -> list[Feature]:
    """Translate every non-attack ability, in source order.

    Traits, non-attack actions, bonus actions other than the primary
    attack, and reactions come first, then the legendary pool feature
    followed by each legendary action.
    """
    features = [translate_ability(trait, difficulty) for trait in creature.traits]
    features += [
        translate_ability(action, difficulty)
        for action in creature.actions
        if not action.is_attack
    ]
    primary = locate_primary(creature.primary_attack, creature.actions, creature.bonus_actions)
    features += [
        translate_ability(bonus, difficulty)
        for index, bonus in enumerate(creature.bonus_actions)
        if primary != (1, index)
    ]
    features += [
        translate_ability(reaction, difficulty, reaction=True)
        for reaction in creature.reactions
    ]
    if creature.legendary_actions or creature.legendary_action_count > 0:
        count = creature.legendary_action_count or len(creature.legendary_actions)
        features.append(legendary_pool_feature(count))
        features += [
            translate_ability(action, difficulty, legendary=True)
            for action in creature.legendary_actions
        ]
    return features


def convert(
    creature: CanonicalCreature,
    options: ConversionOptions | dict | None = None,
) -> TargetStatBlock:
    """Convert a parsed creature into a Daggerheart adversary.

    Args:
        creature: The parsed creature
        options: Caller overrides (tier, type, description, motives,
            tactics, image_url); a dict is accepted too

    Returns:
        The adversary stat block
    """
    opts = ConversionOptions.coerce(options)

    tier = select_tier(creature, opts.tier)
    role = select_role(creature, opts.adv_type)
    stats = tier_stats(tier)
    modifier = role_modifier(role)
    logger.debug(f"Converting '{creature.name}' (CR {creature.cr.string}) as tier {tier} {role.value}")

    hp = modifier.fixed_hp if modifier.fixed_hp is not None else stats.hp + modifier.hp
    hp = max(1, hp)
    stress = max(1, stats.stress + modifier.stress)
    major = max(1, round_half_up(stats.major_thresh * modifier.thresh_mult))
    severe = max(1, round_half_up(stats.severe_thresh * modifier.thresh_mult))

    primary = convert_attack(creature.primary_attack, tier)
    features = build_features(creature, stats.difficulty)
    features += secondary_attack_features(
        creature.actions, creature.primary_attack, tier, creature.bonus_actions,
    )

    return TargetStatBlock(
        id=f"adv-{slugify(creature.name)}",
        name=creature.name,
        tier=tier,
        adv_type=role,
        description=opts.description or generate_description(creature),
        image_url=opts.image_url or "",
        difficulty=stats.difficulty,
        major_thresh=major,
        severe_thresh=severe,
        hp=hp,
        stress=stress,
        atk_mod=stats.atk_mod + modifier.atk_mod,
        weapon=primary.weapon,
        range=primary.range,
        damage=primary.damage,
        dmg_type=primary.damage_type,
        motives=opts.motives or generate_motives(creature),
        tactics=opts.tactics or generate_tactics(creature),
        experience=determine_experience(creature),
        tags=generate_tags(creature),
        features=features,
        source_cr=creature.cr.string,
        source_hp=creature.hp.value,
    )


__all__ = [
    "select_tier",
    "select_role",
    "build_features",
    "convert",
]
