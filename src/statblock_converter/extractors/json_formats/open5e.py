"""
Open5e / SRD JSON decoder.

Two shapes are accepted:

- the SRD export with Title Case keys ("Armor Class": "17 (Natural
  Armor)", "STR": "21") and HTML ability blocks;
- the lowercase Open5e API shape (``armor_class``, ``strength``,
  ``actions`` as a list of ``{name, desc}``).
"""

from __future__ import annotations

import re
from typing import Any

from ...abilities import make_ability
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
from ..dnd5e import legendary_action_count
from ..fields import parse_senses_text, parse_skills_text, parse_speed_text, parse_type_line
from .base import (
    JsonDecoder,
    as_dict,
    as_text,
    dig,
    named_abilities,
    score_value,
    size_word,
)
from .scoring import JsonFormat

_PARAGRAPH_RE = re.compile(r"<p>(.*?)</p>", re.IGNORECASE | re.DOTALL)
_NAMED_PARAGRAPH_RE = re.compile(
    r"^\s*(?:<em>\s*)?<strong>\s*(?:<em>\s*)?([^<]+?)\.?\s*(?:</em>\s*)?</strong>(?:\s*</em>)?\s*(.*)$",
    re.IGNORECASE | re.DOTALL,
)
_VALUE_RE = re.compile(r"(\d+)(?:\s*\(([^)]+)\))?")


def abilities_from_html(html_text: Any) -> tuple[list[Ability], str]:
    """Split ``<p><em><strong>Name.</strong></em> desc</p>`` blocks.

    Returns:
        The abilities, plus the text of any unnamed paragraphs that came
        before the first named one (the legendary-action preamble).
    """
    if not isinstance(html_text, str):
        return [], ""
    paragraphs = _PARAGRAPH_RE.findall(html_text) or [html_text]
    entries: list[list[str]] = []
    preamble: list[str] = []
    for paragraph in paragraphs:
        named = _NAMED_PARAGRAPH_RE.match(paragraph)
        if named:
            entries.append([strip_html(named.group(1)), strip_html(named.group(2))])
        elif entries:
            entries[-1][1] = f"{entries[-1][1]} {strip_html(paragraph)}".strip()
        else:
            preamble.append(strip_html(paragraph))
    abilities = [make_ability(name, desc) for name, desc in entries if name and desc]
    return abilities, " ".join(preamble)


def _value_with_note(value: Any) -> tuple[int | None, str | None]:
    """Parse "17 (natural armor)" or a bare number."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return to_int(value, 0) or None, None
    match = _VALUE_RE.search(as_text(value))
    if not match:
        return None, None
    return int(match.group(1)), match.group(2) or None


class Open5eDecoder(JsonDecoder):
    """Decodes Open5e and SRD monster JSON."""

    system_id = "json-open5e"
    display_name = "Open5e/SRD JSON"
    json_format = JsonFormat.OPEN5E

    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        if "Armor Class" in obj or "meta" in obj or "Actions" in obj:
            fields, preamble = self._srd_fields(obj)
        else:
            fields, preamble = self._api_fields(obj)

        legendary = fields["legendary_actions"]
        count = legendary_action_count(preamble) if legendary else 0
        fields["legendary_action_count"] = count or (3 if legendary else 0)
        fields["name"] = as_text(obj.get("name") or obj.get("Name"))
        return finalize_creature(fields)

    def _srd_fields(self, obj: dict[str, Any]) -> tuple[dict[str, Any], str]:
        ac_value, ac_type = _value_with_note(obj.get("Armor Class"))
        hp_value, hp_formula = _value_with_note(obj.get("Hit Points"))
        traits, _ = abilities_from_html(obj.get("Traits"))
        actions, _ = abilities_from_html(obj.get("Actions"))
        reactions, _ = abilities_from_html(obj.get("Reactions"))
        legendary, preamble = abilities_from_html(obj.get("Legendary Actions"))

        fields = {
            "type_info": parse_type_line(as_text(obj.get("meta"))),
            "ac": ArmorClass(value=ac_value or 10, type=ac_type),
            "hp": HitPoints(value=hp_value or 10, formula=hp_formula),
            "speed": parse_speed_text(as_text(obj.get("Speed")) or None),
            "ability_scores": AbilityScores(**{
                key.lower(): score_value(obj.get(key)) for key in ("STR", "DEX", "CON", "INT", "WIS", "CHA")
            }),
            "cr": parse_cr(as_text(obj.get("Challenge")) or None),
            "skills": parse_skills_text(as_text(obj.get("Skills"))),
            "damage_info": DamageInfo(
                resistances=split_list(obj.get("Damage Resistances")),
                immunities=split_list(obj.get("Damage Immunities")),
                vulnerabilities=split_list(obj.get("Damage Vulnerabilities")),
                condition_immunities=split_list(obj.get("Condition Immunities")),
            ),
            "senses": parse_senses_text(as_text(obj.get("Senses"))),
            "languages": split_list(obj.get("Languages")),
            "traits": traits,
            "actions": actions,
            "reactions": reactions,
            "legendary_actions": legendary,
            "system_data": {"saving_throws": parse_skills_text(as_text(obj.get("Saving Throws")))}
            if obj.get("Saving Throws") else {},
        }
        return fields, preamble

    def _api_fields(self, obj: dict[str, Any]) -> tuple[dict[str, Any], str]:
        speed = obj.get("speed")
        if isinstance(speed, dict):
            speed_model = Speed(**{
                mode: to_int(value, 0) for mode, value in speed.items()
                if mode in ("walk", "fly", "swim", "climb", "burrow") and to_int(value, 0)
            })
        else:
            speed_model = parse_speed_text(as_text(speed) or None)

        skills = {
            str(name).lower(): to_int(bonus, 0) for name, bonus in as_dict(obj.get("skills")).items()
        }
        alignment = as_text(obj.get("alignment")) or None
        cr_value = obj.get("challenge_rating", obj.get("cr"))

        fields = {
            "type_info": TypeInfo(
                size=size_word(obj.get("size")),
                type=(as_text(obj.get("type")) or "creature").lower(),
                subtype=as_text(obj.get("subtype")) or None,
                alignment=alignment,
            ),
            "ac": ArmorClass(
                value=score_value(obj.get("armor_class"), 10),
                type=as_text(obj.get("armor_desc")) or None,
            ),
            "hp": HitPoints(
                value=score_value(obj.get("hit_points"), 10),
                formula=as_text(obj.get("hit_dice")) or None,
            ),
            "speed": speed_model,
            "ability_scores": AbilityScores(**{
                key: score_value(obj.get(key)) for key in (
                    "strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma",
                )
            }),
            "cr": parse_cr(cr_value if isinstance(cr_value, (str, int, float)) else None),
            "skills": skills,
            "damage_info": DamageInfo(
                resistances=split_list(obj.get("damage_resistances")),
                immunities=split_list(obj.get("damage_immunities")),
                vulnerabilities=split_list(obj.get("damage_vulnerabilities")),
                condition_immunities=split_list(obj.get("condition_immunities")),
            ),
            "senses": parse_senses_text(as_text(obj.get("senses"))),
            "languages": split_list(obj.get("languages")),
            "traits": named_abilities(obj.get("special_abilities")),
            "actions": named_abilities(obj.get("actions")),
            "bonus_actions": named_abilities(obj.get("bonus_actions")),
            "reactions": named_abilities(obj.get("reactions")),
            "legendary_actions": named_abilities(obj.get("legendary_actions")),
            "description": as_text(obj.get("desc")) or None,
            "source": as_text(obj.get("document__title") or dig(obj, "document", "name")) or None,
        }
        return fields, as_text(obj.get("legendary_desc"))


__all__ = ["Open5eDecoder", "abilities_from_html"]
