"""
Adversary role inference.

Roles are chosen by an ordered list of (name, predicate, role) rules; the
first predicate that holds wins. When none holds, the role comes from the
creature's CR band.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, NamedTuple

from ..models import AdversaryType, CanonicalCreature
from .tables import CR_ROLE_BANDS

logger = logging.getLogger("statblock-converter.conversion.roles")

# Word stems, so "healing", "blessed" and "aids" count too
SUPPORT_RE = re.compile(r"\b(?:heal|buff|aid|bless|protection)", re.IGNORECASE)
SKULK_WORDS = ("stealth", "sneak", "ambush", "surprise", "hidden")


class RoleRule(NamedTuple):
    name: str
    applies: Callable[[CanonicalCreature], bool]
    role: AdversaryType


def _is_legendary(creature: CanonicalCreature) -> bool:
    return creature.legendary_action_count > 0


def _leads(creature: CanonicalCreature) -> bool:
    return creature.has_multiattack and creature.cr.numeric >= 4


def _fights_at_range(creature: CanonicalCreature) -> bool:
    attack = creature.primary_attack
    return attack is not None and attack.attack_info is not None and attack.attack_info.type == "ranged"


def _supports(creature: CanonicalCreature) -> bool:
    if creature.cr.numeric > 3:
        return False
    return any(
        SUPPORT_RE.search(ability.description)
        for ability in (*creature.traits, *creature.actions)
    )


def _lurks(creature: CanonicalCreature) -> bool:
    if "stealth" in creature.skills:
        return True
    return any(
        word in trait.name.lower() for trait in creature.traits for word in SKULK_WORDS
    )


def _is_tough(creature: CanonicalCreature) -> bool:
    return creature.hp.value > 50 and creature.cr.numeric >= 2


ROLE_RULES: list[RoleRule] = [
    RoleRule("legendary actions", _is_legendary, AdversaryType.SOLO),
    RoleRule("multiattack at CR 4+", _leads, AdversaryType.LEADER),
    RoleRule("ranged primary attack", _fights_at_range, AdversaryType.RANGED),
    RoleRule("support abilities", _supports, AdversaryType.SUPPORT),
    RoleRule("stealth", _lurks, AdversaryType.SKULK),
    RoleRule("high HP", _is_tough, AdversaryType.BRUISER),
]


def role_from_cr(cr: float) -> AdversaryType:
    for max_cr, role in CR_ROLE_BANDS:
        if cr <= max_cr:
            return role
    return AdversaryType.SOLO


def infer_role(creature: CanonicalCreature) -> AdversaryType:
    """Pick the adversary role for a creature.

    Args:
        creature: The parsed creature

    Returns:
        The role of the first matching rule, else the CR-band default
    """
    for rule in ROLE_RULES:
        if rule.applies(creature):
            logger.debug(f"Role {rule.role.value} for '{creature.name}' ({rule.name})")
            return rule.role
    role = role_from_cr(creature.cr.numeric)
    logger.debug(f"Role {role.value} for '{creature.name}' (CR {creature.cr.string} band)")
    return role


__all__ = [
    "RoleRule",
    "ROLE_RULES",
    "SUPPORT_RE",
    "SKULK_WORDS",
    "role_from_cr",
    "infer_role",
]
