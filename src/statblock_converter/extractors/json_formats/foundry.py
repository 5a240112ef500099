"""
Foundry VTT actor JSON decoder.

Foundry nests the numbers under ``system`` (``data`` in exports from
before v10) and stores every action, trait and spell as an embedded item.
Weapon items carry structured attack data; feat items are sorted into
sections by their activation type.
"""

from __future__ import annotations

import math
import re
from typing import Any

from ...abilities import make_ability, make_attack
from ...markup import strip_html
from ...models import (
    Ability,
    AbilityScores,
    ArmorClass,
    CanonicalCreature,
    DamageInfo,
    HitPoints,
    Speed,
    TypeInfo,
)
from ...text_utils import parse_cr, split_list, to_int
from ..base import finalize_creature
from ..fields import parse_senses_text
from .base import JsonDecoder, as_dict, as_list, as_text, dig, score_value, size_word
from .scoring import JsonFormat

# Foundry action types for ranged weapon and spell attacks
RANGED_ACTION_TYPES = ("rwak", "rsak")

# activation.type -> canonical section
ACTIVATION_SECTIONS = {
    "action": "actions",
    "bonus": "bonus_actions",
    "reaction": "reactions",
    "legendary": "legendary_actions",
    "lair": "lair_actions",
}

SENSE_KEYS = ("darkvision", "blindsight", "tremorsense", "truesight")


def proficiency_bonus(cr: float) -> int:
    """5e proficiency bonus for a challenge rating (+2 through +9)."""
    return 2 + max(0, math.ceil(cr) - 1) // 4


def _type_info(system: dict[str, Any]) -> TypeInfo:
    details = as_dict(system.get("details"))
    raw_type = details.get("type")
    if isinstance(raw_type, dict):
        creature_type = as_text(raw_type.get("value")) or as_text(raw_type.get("custom"))
        subtype = as_text(raw_type.get("subtype")) or None
        size = raw_type.get("size")
    else:
        creature_type = as_text(raw_type)
        subtype = None
        size = None
    return TypeInfo(
        size=size_word(size or dig(system, "traits", "size")),
        type=(creature_type or "creature").lower(),
        subtype=subtype,
        alignment=as_text(details.get("alignment")) or None,
    )


def _armor_class(attributes: dict[str, Any]) -> ArmorClass:
    ac = as_dict(attributes.get("ac"))
    value = to_int(ac.get("value"), 0) or to_int(ac.get("flat"), 0)
    calc = as_text(ac.get("calc"))
    return ArmorClass(
        value=value or 10,
        type=None if calc in ("", "flat", "default") else calc,
    )


def _speed(attributes: dict[str, Any]) -> Speed:
    movement = as_dict(attributes.get("movement"))
    speeds = {
        mode: to_int(movement.get(mode), 0)
        for mode in ("walk", "fly", "swim", "climb", "burrow")
        if to_int(movement.get(mode), 0)
    }
    return Speed(**speeds)


def _trait_list(traits: dict[str, Any], key: str) -> list[str]:
    """``traits.dr`` style ``{value: [...], custom: "a; b"}`` lists."""
    entry = traits.get(key)
    if isinstance(entry, list):
        return [as_text(v) for v in entry if as_text(v)]
    entry = as_dict(entry)
    items = [as_text(v) for v in as_list(entry.get("value")) if as_text(v)]
    return items + split_list(entry.get("custom"))


def _senses(system: dict[str, Any]) -> dict[str, bool | int]:
    raw = dig(system, "traits", "senses")
    if isinstance(raw, str):
        return parse_senses_text(raw)
    structured = as_dict(dig(system, "attributes", "senses")) or as_dict(raw)
    senses: dict[str, bool | int] = {}
    for key in SENSE_KEYS:
        if to_int(structured.get(key), 0):
            senses[key] = to_int(structured.get(key), 0)
    senses.update(parse_senses_text(as_text(structured.get("special"))))
    return senses


def _item_description(item_system: dict[str, Any]) -> str:
    description = item_system.get("description")
    if isinstance(description, dict):
        description = description.get("value")
    return strip_html(as_text(description))


def weapon_to_ability(
    item: dict[str, Any],
    modifiers: dict[str, int],
    proficiency: int,
) -> Ability:
    """Build an attack from a weapon item.

    A description that already reads like a 5e attack line wins; the
    structured ``actionType``/``damage.parts``/``range`` fields are the
    fallback.
    """
    name = as_text(item.get("name"))
    item_system = as_dict(item.get("system") or item.get("data"))
    description = _item_description(item_system)
    parsed = make_ability(name, description)
    if parsed.is_attack and parsed.attack_info is not None:
        return parsed

    action_type = as_text(item_system.get("actionType"))
    ranged = action_type in RANGED_ACTION_TYPES
    ability_key = as_text(item_system.get("ability"))[:3].lower()
    if ability_key not in modifiers:
        ability_key = "dex" if ranged else "str"
    mod = modifiers[ability_key]
    to_hit = mod + proficiency + to_int(item_system.get("attackBonus"), 0)

    parts = as_list(dig(item_system, "damage", "parts"))
    first = as_list(parts[0]) if parts else []
    formula = as_text(first[0]) if first else ""
    formula = re.sub(r"@mod\b", str(mod), formula)
    formula = re.sub(r"\s+", "", formula).replace("+-", "-")
    damage_type = as_text(first[1]) if len(first) > 1 else ""

    range_data = as_dict(item_system.get("range"))
    reach = as_text(range_data.get("value")) or ("30" if ranged else "5")
    if ranged and as_text(range_data.get("long")):
        reach = f"{reach}/{as_text(range_data.get('long'))}"

    return make_attack(
        name,
        description,
        "ranged" if ranged else "melee",
        to_hit,
        reach,
        formula,
        damage_type,
    )


class FoundryDecoder(JsonDecoder):
    """Decodes Foundry VTT dnd5e actor exports."""

    system_id = "json-foundry"
    display_name = "Foundry VTT JSON"
    json_format = JsonFormat.FOUNDRY

    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        system = as_dict(obj.get("system") or obj.get("data"))
        details = as_dict(system.get("details"))
        attributes = as_dict(system.get("attributes"))
        traits_data = as_dict(system.get("traits"))
        hp = as_dict(attributes.get("hp"))

        scores = AbilityScores(**{
            key: score_value(dig(system, "abilities", key, "value"))
            for key in ("str", "dex", "con", "int", "wis", "cha")
        })
        cr = parse_cr(details.get("cr") if isinstance(details.get("cr"), (str, int, float)) else None)
        proficiency = proficiency_bonus(cr.numeric)

        sections: dict[str, list[Ability]] = {
            "traits": [], "actions": [], "bonus_actions": [],
            "reactions": [], "legendary_actions": [], "lair_actions": [],
        }
        has_spellcasting = False
        for item in as_list(obj.get("items")):
            if not isinstance(item, dict):
                continue
            item_type = as_text(item.get("type"))
            item_system = as_dict(item.get("system") or item.get("data"))
            if item_type == "spell":
                has_spellcasting = True
                continue
            if item_type == "weapon":
                ability = weapon_to_ability(item, scores.modifiers, proficiency)
                section = ACTIVATION_SECTIONS.get(
                    as_text(dig(item_system, "activation", "type")), "actions"
                )
                sections[section].append(ability)
            elif item_type == "feat":
                ability = make_ability(as_text(item.get("name")), _item_description(item_system))
                section = ACTIVATION_SECTIONS.get(
                    as_text(dig(item_system, "activation", "type")), "traits"
                )
                sections[section].append(ability)

        languages = as_dict(traits_data.get("languages"))
        legendary_max = to_int(dig(system, "resources", "legact", "max"), 0)

        fields = {
            "name": as_text(obj.get("name")),
            "type_info": _type_info(system),
            "ac": _armor_class(attributes),
            "hp": HitPoints(
                value=to_int(hp.get("value"), 0) or to_int(hp.get("max"), 0) or 10,
                formula=as_text(hp.get("formula")) or None,
            ),
            "speed": _speed(attributes),
            "ability_scores": scores,
            "cr": cr,
            "damage_info": DamageInfo(
                resistances=_trait_list(traits_data, "dr"),
                immunities=_trait_list(traits_data, "di"),
                vulnerabilities=_trait_list(traits_data, "dv"),
                condition_immunities=_trait_list(traits_data, "ci"),
            ),
            "senses": _senses(system),
            "languages": [as_text(v) for v in as_list(languages.get("value")) if as_text(v)]
            + split_list(languages.get("custom")),
            **sections,
            "legendary_action_count": (legendary_max or 3) if sections["legendary_actions"] else legendary_max,
            "description": strip_html(as_text(dig(details, "biography", "value"))) or None,
            "source": as_text(details.get("source")) or None,
        }
        has_spellcasting = has_spellcasting or any(
            "spellcasting" in t.name.lower() for t in sections["traits"]
        )
        return finalize_creature(fields, has_spellcasting=has_spellcasting)


__all__ = ["FoundryDecoder", "proficiency_bonus", "weapon_to_ability"]
