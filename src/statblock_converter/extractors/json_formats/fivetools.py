"""
5etools bestiary / homebrew JSON decoder.

5etools stores everything in short lowercase keys (``ac``, ``hp``,
``str``...) with ``{@tag ...}`` inline markup in entry strings. This
decoder is also the last-resort decoder for unrecognized JSON, since it
reads the most common key names.
"""

from __future__ import annotations

from typing import Any

from ...abilities import make_ability
from ...markup import convert_5etools_markup, entries_to_text
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
from ...text_utils import parse_cr, to_int
from ..base import finalize_creature
from ..fields import parse_senses_text
from .base import (
    JsonDecoder,
    as_dict,
    as_list,
    as_text,
    legendary_count,
    score_value,
    size_word,
    text_items,
)
from .scoring import JsonFormat

ALIGNMENT_LETTERS = {
    "L": "lawful",
    "N": "neutral",
    "NX": "neutral",
    "NY": "neutral",
    "C": "chaotic",
    "G": "good",
    "E": "evil",
    "U": "unaligned",
    "A": "any alignment",
}


def _type_info(obj: dict[str, Any]) -> TypeInfo:
    raw_type = obj.get("type")
    creature_type = "creature"
    subtype = None
    if isinstance(raw_type, str):
        creature_type = raw_type
    elif isinstance(raw_type, dict):
        inner = raw_type.get("type")
        if isinstance(inner, dict):
            # {"choose": ["celestial", "fiend"]}
            choices = as_list(inner.get("choose"))
            inner = choices[0] if choices else None
        creature_type = as_text(inner) or "creature"
        tags = []
        for tag in as_list(raw_type.get("tags")):
            if isinstance(tag, dict):
                tag = " ".join(t for t in (as_text(tag.get("prefix")), as_text(tag.get("tag"))) if t)
            if as_text(tag):
                tags.append(as_text(tag))
        subtype = ", ".join(tags) or None

    alignment = obj.get("alignment")
    if isinstance(alignment, list):
        words = [
            ALIGNMENT_LETTERS.get(a.upper(), a.lower())
            for a in alignment if isinstance(a, str)
        ]
        alignment_text = " ".join(words) or None
    else:
        alignment_text = as_text(alignment) or None

    return TypeInfo(
        size=size_word(obj.get("size")),
        type=creature_type.lower(),
        subtype=subtype,
        alignment=alignment_text,
    )


def _armor_class(value: Any) -> ArmorClass:
    if isinstance(value, list):
        entry = value[0] if value else None
        if isinstance(entry, dict):
            sources = [convert_5etools_markup(s) for s in as_list(entry.get("from")) if isinstance(s, str)]
            return ArmorClass(
                value=score_value(entry.get("ac"), 10),
                type=", ".join(sources) or None,
            )
        return ArmorClass(value=score_value(entry, 10))
    return ArmorClass(value=score_value(value, 10))


def _hit_points(value: Any) -> HitPoints:
    if isinstance(value, dict):
        return HitPoints(
            value=score_value(value.get("average", value.get("special")), 10),
            formula=as_text(value.get("formula")) or None,
        )
    return HitPoints(value=score_value(value, 10))


def _speed_value(value: Any) -> int | None:
    if isinstance(value, dict):
        value = value.get("number")
    number = to_int(value, 0)
    return number or None


def _speed(value: Any) -> Speed:
    if not isinstance(value, dict):
        return Speed(walk=score_value(value, 30))
    speeds: dict[str, int] = {"walk": _speed_value(value.get("walk")) or 30}
    for mode in ("fly", "swim", "climb", "burrow"):
        number = _speed_value(value.get(mode))
        if number:
            speeds[mode] = number
    return Speed(**speeds)


def _entries(value: Any) -> list[Ability]:
    abilities = []
    for entry in as_list(value):
        if not isinstance(entry, dict):
            continue
        name = convert_5etools_markup(as_text(entry.get("name")))
        description = entries_to_text(entry.get("entries"))
        if not name and not description:
            continue
        abilities.append(make_ability(name, description))
    return abilities


def _spellcasting(value: Any) -> list[Ability]:
    traits = []
    for block in as_list(value):
        if isinstance(block, dict):
            name = convert_5etools_markup(as_text(block.get("name"))) or "Spellcasting"
            traits.append(make_ability(name, entries_to_text(block.get("headerEntries"))))
    return traits


class FiveToolsDecoder(JsonDecoder):
    """Decodes 5etools bestiary entries."""

    system_id = "json-fivetools"
    display_name = "5e.tools JSON"
    json_format = JsonFormat.FIVETOOLS

    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        senses_text = ", ".join(
            convert_5etools_markup(s) for s in as_list(obj.get("senses")) if isinstance(s, str)
        )
        if isinstance(obj.get("senses"), str):
            senses_text = obj["senses"]
        senses = parse_senses_text(senses_text)
        if obj.get("passive") is not None:
            senses["passive_perception"] = to_int(obj.get("passive"), 10)

        skills = {
            str(name).lower(): to_int(bonus, 0)
            for name, bonus in as_dict(obj.get("skill")).items()
            if not isinstance(bonus, (dict, list))
        }
        saves = {
            str(name).lower(): to_int(bonus, 0)
            for name, bonus in as_dict(obj.get("save")).items()
        }

        spellcasting = _spellcasting(obj.get("spellcasting"))
        traits = _entries(obj.get("trait")) + spellcasting
        legendary = _entries(obj.get("legendary"))

        system_data: dict[str, Any] = {}
        if saves:
            system_data["saving_throws"] = saves
        if obj.get("page") is not None:
            system_data["page"] = obj.get("page")

        raw_cr = obj.get("cr")
        if isinstance(raw_cr, dict):
            raw_cr = raw_cr.get("cr")

        fields = {
            "name": as_text(obj.get("name")),
            "type_info": _type_info(obj),
            "ac": _armor_class(obj.get("ac")),
            "hp": _hit_points(obj.get("hp")),
            "speed": _speed(obj.get("speed")),
            "ability_scores": AbilityScores(**{
                key: score_value(obj.get(key)) for key in ("str", "dex", "con", "int", "wis", "cha")
            }),
            "cr": parse_cr(raw_cr if isinstance(raw_cr, (str, int, float)) else None),
            "skills": skills,
            "damage_info": DamageInfo(
                resistances=text_items(obj.get("resist"), ("resist",)),
                immunities=text_items(obj.get("immune"), ("immune",)),
                vulnerabilities=text_items(obj.get("vulnerable"), ("vulnerable",)),
                condition_immunities=text_items(obj.get("conditionImmune"), ("conditionImmune",)),
            ),
            "senses": senses,
            "languages": text_items(obj.get("languages")),
            "traits": traits,
            "actions": _entries(obj.get("action")),
            "bonus_actions": _entries(obj.get("bonus")),
            "reactions": _entries(obj.get("reaction")),
            "legendary_actions": legendary,
            "lair_actions": _entries(obj.get("lair")),
            "legendary_action_count": legendary_count(legendary, obj.get("legendaryActions")),
            "source": as_text(obj.get("source")) or None,
            "system_data": system_data,
        }
        return finalize_creature(
            fields,
            has_spellcasting=bool(spellcasting) or any("spellcasting" in t.name.lower() for t in traits),
        )


__all__ = ["FiveToolsDecoder", "ALIGNMENT_LETTERS"]
