"""
Improved Initiative creature JSON decoder.

Improved Initiative uses PascalCase keys, keeps the type and alignment in
one "Large giant, chaotic evil" string and lists abilities as
``{Name, Content}`` objects.
"""

from __future__ import annotations

import re
from typing import Any

from ...models import AbilityScores, ArmorClass, CanonicalCreature, DamageInfo, HitPoints, TypeInfo
from ...text_utils import parse_cr, to_int
from ..base import finalize_creature
from ..fields import TYPE_LINE_RE, parse_senses_text, parse_skills_text, parse_speed_text, parse_type_line
from .base import (
    JsonDecoder,
    as_dict,
    as_list,
    as_text,
    legendary_count,
    named_abilities,
    score_value,
    size_word,
    text_items,
)
from .scoring import JsonFormat


def _joined(value: Any) -> str:
    """Join a list of strings or ``{Name, Modifier}`` pairs into prose.

    ``[{"Name": "Stealth", "Modifier": 6}]`` becomes "Stealth +6", so the
    text parsers can read either shape.
    """
    if isinstance(value, str):
        return value
    parts = []
    for item in as_list(value):
        if isinstance(item, dict):
            name = as_text(item.get("Name"))
            modifier = to_int(item.get("Modifier"), 0)
            if name:
                parts.append(f"{name} {modifier:+d}")
        elif as_text(item):
            parts.append(as_text(item))
    return ", ".join(parts)


def _value_notes(value: Any) -> tuple[int, str | None]:
    """``{"Value": 15, "Notes": "(2d10+4)"}`` -> (15, "2d10+4")."""
    if not isinstance(value, dict):
        return score_value(value, 10), None
    notes = as_text(value.get("Notes")).strip("() ")
    return score_value(value.get("Value"), 10), notes or None


def _type_info(obj: dict[str, Any]) -> TypeInfo:
    type_text = as_text(obj.get("Type"))
    if TYPE_LINE_RE.search(type_text):
        info = parse_type_line(type_text)
    else:
        # A bare creature type with no size word in front of it
        creature_type, _, alignment = type_text.partition(",")
        info = TypeInfo(
            size=size_word(obj.get("Size")),
            type=(creature_type.strip() or "creature").lower(),
            alignment=alignment.strip() or None,
        )
    if obj.get("Alignment") and not info.alignment:
        info = info.model_copy(update={"alignment": as_text(obj.get("Alignment"))})
    return info


class ImprovedInitiativeDecoder(JsonDecoder):
    """Decodes Improved Initiative creature exports."""

    system_id = "json-improvedinitiative"
    display_name = "Improved Initiative JSON"
    json_format = JsonFormat.IMPROVED_INITIATIVE

    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        abilities = as_dict(obj.get("Abilities"))
        ac_value, ac_notes = _value_notes(obj.get("AC"))
        hp_value, hp_notes = _value_notes(obj.get("HP"))

        def section(key: str):
            return named_abilities(obj.get(key), name_key="Name", desc_key="Content")

        legendary = section("LegendaryActions")
        speed_text = re.sub(r"^\s*walk\s+", "", _joined(obj.get("Speed")), flags=re.IGNORECASE)
        system_data: dict[str, Any] = {}
        saves = parse_skills_text(_joined(obj.get("Saves")))
        if saves:
            system_data["saving_throws"] = saves
        if obj.get("InitiativeModifier") is not None:
            system_data["initiative"] = to_int(obj.get("InitiativeModifier"), 0)

        fields = {
            "name": as_text(obj.get("Name")),
            "type_info": _type_info(obj),
            "ac": ArmorClass(value=ac_value, type=ac_notes),
            "hp": HitPoints(
                value=hp_value,
                formula=re.sub(r"\s", "", hp_notes) if hp_notes else None,
            ),
            "speed": parse_speed_text(speed_text or None),
            "ability_scores": AbilityScores(**{
                key.lower(): score_value(abilities.get(key))
                for key in ("Str", "Dex", "Con", "Int", "Wis", "Cha")
            }),
            "cr": parse_cr(as_text(obj.get("Challenge")) or None),
            "skills": parse_skills_text(_joined(obj.get("Skills"))),
            "damage_info": DamageInfo(
                resistances=text_items(obj.get("DamageResistances")),
                immunities=text_items(obj.get("DamageImmunities")),
                vulnerabilities=text_items(obj.get("DamageVulnerabilities")),
                condition_immunities=text_items(obj.get("ConditionImmunities")),
            ),
            "senses": parse_senses_text(_joined(obj.get("Senses"))),
            "languages": text_items(obj.get("Languages")),
            "traits": section("Traits"),
            "actions": section("Actions"),
            "reactions": section("Reactions"),
            "legendary_actions": legendary,
            "legendary_action_count": legendary_count(legendary),
            "description": as_text(obj.get("Description")) or None,
            "source": as_text(obj.get("Source")) or None,
            "system_data": system_data,
        }
        return finalize_creature(fields)


__all__ = ["ImprovedInitiativeDecoder"]
