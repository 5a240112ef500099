"""
World Anvil statblock JSON decoder.

World Anvil exports snake_case fields, movement as ``*_movement_in_ft``
and ability blocks as BBCode, one ``[h3]Name[/h3]`` header per ability.
"""

from __future__ import annotations

import re
from typing import Any

from ...abilities import make_ability
from ...markup import strip_bbcode
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
from ..fields import parse_senses_text, parse_skills_text
from .base import JsonDecoder, as_text, legendary_count, named_abilities, score_value, size_word
from .scoring import JsonFormat

_H3_SPLIT_RE = re.compile(r"\[h3\]", re.IGNORECASE)
_H3_END = "[/h3]"


def abilities_from_bbcode(value: Any) -> list[Ability]:
    """Split ``[h3]Name[/h3] description`` blocks into abilities.

    Lists of ``{name, desc}`` objects are accepted as well, since some
    exports carry the Open5e API layout under the same keys.
    """
    if isinstance(value, list):
        return named_abilities(value, clean=lambda d: strip_bbcode(as_text(d)))
    if not isinstance(value, str):
        return []
    abilities = []
    for part in _H3_SPLIT_RE.split(value):
        end = part.lower().find(_H3_END)
        if end < 0:
            continue
        name = strip_bbcode(part[:end]).strip()
        description = strip_bbcode(part[end + len(_H3_END):])
        if name and description:
            abilities.append(make_ability(name, description))
    return abilities


def _hit_points(value: Any) -> HitPoints:
    """Parse "32hp (5d6+15) [roll:5d6+15]"."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return HitPoints(value=to_int(value, 10) or 10)
    text = as_text(value)
    formula = re.search(r"\(([^)]+)\)", text)
    return HitPoints(
        value=score_value(text, 10),
        formula=re.sub(r"\s", "", formula.group(1)) if formula else None,
    )


def _speed(obj: dict[str, Any]) -> Speed:
    speeds = {"walk": score_value(obj.get("base_movement_in_ft"), 30)}
    for mode in ("fly", "swim", "climb", "burrow"):
        number = to_int(obj.get(f"{mode}_movement_in_ft"), 0)
        if number:
            speeds[mode] = number
    return Speed(**speeds)


class WorldAnvilDecoder(JsonDecoder):
    """Decodes World Anvil statblock exports."""

    system_id = "json-worldanvil"
    display_name = "World Anvil JSON"
    json_format = JsonFormat.WORLDANVIL

    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        traits = abilities_from_bbcode(obj.get("special_abilities"))
        legendary = abilities_from_bbcode(obj.get("legendary_actions"))
        description = strip_bbcode(as_text(obj.get("description")))

        fields = {
            "name": as_text(obj.get("name")),
            "type_info": TypeInfo(
                size=size_word(obj.get("size") or obj.get("sizer")),
                type=(as_text(obj.get("types") or obj.get("type")) or "creature").lower(),
                alignment=as_text(obj.get("alignment")) or None,
            ),
            "ac": ArmorClass(value=score_value(obj.get("armor_class"), 10)),
            "hp": _hit_points(obj.get("hit_points")),
            "speed": _speed(obj),
            "ability_scores": AbilityScores(**{
                key: score_value(obj.get(key)) for key in (
                    "strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma",
                )
            }),
            "cr": parse_cr(as_text(obj.get("challenge_rating")) or None),
            "skills": parse_skills_text(as_text(obj.get("skills"))),
            "damage_info": DamageInfo(
                resistances=split_list(obj.get("damage_resistances")),
                immunities=split_list(obj.get("damage_immunities")),
                vulnerabilities=split_list(obj.get("damage_vulnerabilities")),
                condition_immunities=split_list(obj.get("condition_immunities")),
            ),
            "senses": parse_senses_text(as_text(obj.get("senses"))),
            "languages": split_list(obj.get("languages")),
            "traits": traits,
            "actions": abilities_from_bbcode(obj.get("actions")),
            "bonus_actions": abilities_from_bbcode(obj.get("bonus_actions")),
            "reactions": abilities_from_bbcode(obj.get("reactions")),
            "legendary_actions": legendary,
            "lair_actions": abilities_from_bbcode(obj.get("lair_actions")),
            "legendary_action_count": legendary_count(legendary),
            "description": description or None,
            "source": as_text(obj.get("source")) or None,
        }
        has_spellcasting = bool(obj.get("spellcasting")) or any(
            "spellcasting" in t.name.lower() for t in traits
        )
        return finalize_creature(fields, has_spellcasting=has_spellcasting)


__all__ = ["WorldAnvilDecoder", "abilities_from_bbcode"]
