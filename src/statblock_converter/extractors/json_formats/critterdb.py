"""
CritterDB JSON decoder.

CritterDB keeps the numbers under ``stats`` (either flat or nested in
``stats.abilityScores``) and lists abilities as ``{name, description}``
objects whose descriptions may contain HTML.
"""

from __future__ import annotations

from typing import Any

from ...markup import strip_html
from ...models import AbilityScores, ArmorClass, CanonicalCreature, DamageInfo, HitPoints, Speed, TypeInfo
from ...text_utils import parse_cr, to_int
from ..base import finalize_creature
from ..fields import parse_senses_text, parse_speed_text
from .base import (
    JsonDecoder,
    as_dict,
    as_list,
    as_text,
    legendary_count,
    named_abilities,
    score_value,
    size_word,
    skills_from_pairs,
    text_items,
)
from .scoring import JsonFormat

SCORE_NAMES = ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma")


def _clean(description: Any) -> str:
    return strip_html(as_text(description))


def _speed(value: Any) -> Speed:
    if isinstance(value, dict):
        speeds = {
            mode: to_int(value.get(mode), 0)
            for mode in ("walk", "fly", "swim", "climb", "burrow")
            if to_int(value.get(mode), 0)
        }
        return Speed(**speeds)
    return parse_speed_text(as_text(value) or None)


def _skills(value: Any) -> dict[str, int]:
    if isinstance(value, dict):
        return {str(k).lower(): to_int(v, 0) for k, v in value.items()}
    skills = skills_from_pairs(value, "name", "value")
    for item in as_list(value):
        if isinstance(item, dict) and "modifier" in item:
            skills[as_text(item.get("name")).lower()] = to_int(item.get("modifier"), 0)
    return {k: v for k, v in skills.items() if k}


class CritterDbDecoder(JsonDecoder):
    """Decodes CritterDB creature exports."""

    system_id = "json-critterdb"
    display_name = "CritterDB JSON"
    json_format = JsonFormat.CRITTERDB

    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        stats = as_dict(obj.get("stats"))
        scores = as_dict(stats.get("abilityScores")) or stats
        armor = as_dict(obj.get("armor"))
        hit_points = obj.get("hitPoints", stats.get("hitPoints"))

        def pick(key: str) -> Any:
            """Top-level value, falling back to the copy under ``stats``."""
            return obj[key] if obj.get(key) not in (None, "", []) else stats.get(key)

        legendary = named_abilities(pick("legendaryActions"), desc_key="description", clean=_clean)
        traits = named_abilities(
            pick("abilities") or stats.get("additionalAbilities"),
            desc_key="description",
            clean=_clean,
        )
        senses = pick("senses")
        if isinstance(senses, list):
            senses = ", ".join(s for s in senses if isinstance(s, str))

        fields = {
            "name": as_text(obj.get("name")),
            "type_info": TypeInfo(
                size=size_word(pick("size")),
                type=(as_text(pick("type") or stats.get("race")) or "creature").lower(),
                subtype=as_text(pick("subtype")) or None,
                alignment=as_text(pick("alignment")) or None,
            ),
            "ac": ArmorClass(
                value=score_value(armor.get("value", obj.get("armorClass", stats.get("armorClass"))), 10),
                type=as_text(armor.get("type") or stats.get("armorType")) or None,
            ),
            "hp": HitPoints(
                value=score_value(
                    hit_points.get("average") if isinstance(hit_points, dict) else hit_points, 10
                ),
                formula=as_text(dig_formula(hit_points, stats)) or None,
            ),
            "speed": _speed(pick("speed")),
            "ability_scores": AbilityScores(**{key: score_value(scores.get(key)) for key in SCORE_NAMES}),
            "cr": parse_cr(as_text(obj.get("challenge", stats.get("challengeRating"))) or None),
            "skills": _skills(pick("skills")),
            "damage_info": DamageInfo(
                resistances=text_items(pick("damageResistances")),
                immunities=text_items(pick("damageImmunities")),
                vulnerabilities=text_items(pick("damageVulnerabilities")),
                condition_immunities=text_items(pick("conditionImmunities")),
            ),
            "senses": parse_senses_text(as_text(senses)),
            "languages": text_items(pick("languages")),
            "traits": traits,
            "actions": named_abilities(pick("actions"), desc_key="description", clean=_clean),
            "reactions": named_abilities(pick("reactions"), desc_key="description", clean=_clean),
            "legendary_actions": legendary,
            "legendary_action_count": legendary_count(legendary),
            "description": _clean(as_dict(obj.get("flavor")).get("description")) or None,
        }
        return finalize_creature(fields)


def dig_formula(hit_points: Any, stats: dict[str, Any]) -> Any:
    """Hit dice formula from ``hitPoints.formula`` or ``stats.hitDice``."""
    if isinstance(hit_points, dict) and hit_points.get("formula"):
        return hit_points["formula"]
    return stats.get("hitDice")


__all__ = ["CritterDbDecoder"]
