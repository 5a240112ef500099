"""
Abstract base class for stat block extractors.

Every dialect (text or JSON) is handled by a stateless extractor that
turns raw input into a ``CanonicalCreature``. Extractors never raise on
malformed input: each field falls back to a typed default.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ..models import Ability, CanonicalCreature


@dataclass(frozen=True)
class SystemInfo:
    """Registry listing entry for one extractor."""
    id: str
    name: str
    short_name: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"id": self.id, "name": self.name, "shortName": self.short_name}


class StatblockExtractor(ABC):
    """Interface implemented by every dialect extractor.

    Subclasses set the three class attributes and implement ``parse``.
    """

    system_id: str = ""
    display_name: str = ""
    short_name: str = ""

    @abstractmethod
    def parse(self, raw: Any) -> CanonicalCreature:
        """Extract a canonical creature from raw input.

        Args:
            raw: Stat block text, or a decoded JSON object for JSON
                dialects

        Returns:
            A fully-populated creature; missing fields carry defaults.
        """

    @property
    def info(self) -> SystemInfo:
        return SystemInfo(self.system_id, self.display_name, self.short_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(system_id={self.system_id!r})"


def find_primary_attack(*groups: list[Ability]) -> Ability | None:
    """Return the attack with the highest average damage.

    Groups are scanned in order; on a tie the first attack wins.
    """
    best: Ability | None = None
    for group in groups:
        for ability in group:
            if not ability.is_attack or ability.attack_info is None:
                continue
            if best is None or ability.attack_info.avg_damage > best.attack_info.avg_damage:
                best = ability
    return best


def finalize_creature(
    fields: dict[str, Any],
    *,
    has_multiattack: bool | None = None,
    multiattack_desc: str | None = None,
    has_spellcasting: bool | None = None,
    primary_attack: Ability | None = None,
) -> CanonicalCreature:
    """Compute the derived fields and build the creature.

    Defaults:
        - primary attack: highest-average attack among actions, then
          bonus actions
        - multiattack: an action named "Multiattack"
        - spellcasting: a trait whose name contains "spellcasting"

    Any keyword argument that is not None overrides its default.
    """
    data = dict(fields)
    actions: list[Ability] = data.get("actions") or []
    bonus_actions: list[Ability] = data.get("bonus_actions") or []
    traits: list[Ability] = data.get("traits") or []

    name = str(data.get("name") or "").strip()
    data["name"] = name or "Unknown Creature"

    multiattack = next((a for a in actions if a.name.lower() == "multiattack"), None)
    if has_multiattack is None:
        has_multiattack = multiattack is not None
    if multiattack_desc is None and multiattack is not None:
        multiattack_desc = multiattack.description
    if has_spellcasting is None:
        has_spellcasting = any("spellcasting" in t.name.lower() for t in traits)
    if primary_attack is None:
        primary_attack = find_primary_attack(actions, bonus_actions)

    data.update(
        primary_attack=primary_attack,
        has_multiattack=has_multiattack,
        multiattack_desc=multiattack_desc,
        has_spellcasting=has_spellcasting,
    )
    return CanonicalCreature(**data)


__all__ = [
    "SystemInfo",
    "StatblockExtractor",
    "find_primary_attack",
    "finalize_creature",
]
