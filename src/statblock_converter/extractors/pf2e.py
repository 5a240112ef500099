"""
Pathfinder 2nd edition text extractor (Archives of Nethys and PDF text).

PF2e blocks are line-oriented: a trait line, the Perception / Skills /
ability lines, the defense lines (AC, HP), then Speed, Strikes and the
remaining abilities. Action icons appear either as bracketed words
("[one-action]") or as the glyphs used by the books.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from ..abilities import make_attack
from ..models import (
    Ability,
    AbilityScores,
    ArmorClass,
    CanonicalCreature,
    ChallengeRating,
    DamageInfo,
    HitPoints,
    TypeInfo,
)
from ..text_utils import normalize, split_list
from .base import StatblockExtractor, finalize_creature
from .fields import ALIGNMENT_ABBREVIATIONS, SIZES, parse_skills_text, parse_speed_text, split_immunities

logger = logging.getLogger("statblock-converter.extractors.pf2e")

# Level -1 and 0 creatures sit below CR 1
LEVEL_TO_CR: dict[int, float] = {-1: 0.25, 0: 0.5}

RARITIES = ("common", "uncommon", "rare", "unique")
ALIGNMENT_TRAITS = ("lawful", "chaotic", "neutral", "good", "evil")

CREATURE_TYPES = (
    "aberration", "animal", "astral", "beast", "celestial", "construct",
    "dragon", "elemental", "ethereal", "fey", "fiend", "giant", "humanoid",
    "monitor", "ooze", "plant", "spirit", "undead",
)
# Traits that imply a broader creature type
TYPE_ALIASES = {"devil": "fiend", "demon": "fiend", "daemon": "fiend", "animal": "beast"}

# Action icon glyphs: action, free action, reaction (two variants)
_ICON_GLYPHS = "◆◇⬲↺"
_ICON = r"(\[[\w-]+\]|[" + _ICON_GLYPHS + r"]+)"
ICON_KINDS = {
    "◇": "free-action",
    "⬲": "reaction",
    "↺": "reaction",
}

MAX_NAME_WORDS = 6

# Lines continuing the previous ability even when they carry parentheses
_CONTINUATION_RE = re.compile(
    r"^(?:Trigger|Effect|Requirements?|Frequency|Critical Success|Critical Failure|"
    r"Success|Failure|Saving Throw|Stage \d|Maximum Duration|Onset)\b"
)

PATTERNS: dict[str, re.Pattern] = {
    "level": re.compile(r"\b(?:Creature|Level)\s+(-?\d+)", re.IGNORECASE),
    "trait_line": re.compile(r"^(?:\[[\w\s-]+\]\s*)+$", re.MULTILINE),
    "bracket": re.compile(r"\[([\w\s-]+)\]"),
    "perception": re.compile(r"^Perception\s*\+(\d+)(?:[;,]\s*(.+))?$", re.IGNORECASE | re.MULTILINE),
    "languages": re.compile(r"^Languages\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "skills": re.compile(r"^Skills\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "ability_mods": re.compile(
        r"\bStr\s*([+-]\d+),?\s*Dex\s*([+-]\d+),?\s*Con\s*([+-]\d+),?\s*"
        r"Int\s*([+-]\d+),?\s*Wis\s*([+-]\d+),?\s*Cha\s*([+-]\d+)",
        re.IGNORECASE,
    ),
    "ac_saves": re.compile(
        r"\bAC\s+(\d+)(?:\s*\(([^)]+)\))?[;,]\s*Fort\s*([+-]\d+),?\s*"
        r"Ref\s*([+-]\d+),?\s*Will\s*([+-]\d+)",
        re.IGNORECASE,
    ),
    "hp": re.compile(r"^HP\s+(\d+)(?:\s*\(([^)]+)\))?", re.MULTILINE),
    "immunities": re.compile(r"\bImmunities\s+([^;\n]+)", re.IGNORECASE),
    "resistances": re.compile(r"\bResistances?\s+([^;\n]+)", re.IGNORECASE),
    "weaknesses": re.compile(r"\bWeaknesses?\s+([^;\n]+)", re.IGNORECASE),
    "speed": re.compile(r"^Speed\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "strike": re.compile(
        r"^(Melee|Ranged)\s*" + _ICON + r"?\s*([^+\n]+?)\s*\+(\d+)\s*(?:\[[^\]]*\]\s*)?"
        r"(?:\(([^)]+)\))?,?\s*(?:Damage\s*)?(\d+d\d+(?:\s*[+-]\s*\d+)?)\s*(\w+)",
        re.MULTILINE,
    ),
    "ability": re.compile(
        r"^([A-Z][A-Za-z' -]{0,60}?)\s*(?=[\[(" + _ICON_GLYPHS + r"])" + _ICON + r"?\s*(?:\(([^)]+)\))?\s*(.*)$"
    ),
}

# Lines that belong to the header/defense block, never abilities
_STAT_LINE_RE = re.compile(
    r"^(?:Melee|Ranged|Speed|AC|HP|Fort|Str|Skills|Languages|Perception|Items|"
    r"Immunities|Resistances|Weaknesses|Creature|Level)\b",
    re.IGNORECASE,
)


def level_to_cr(level: int) -> float:
    return LEVEL_TO_CR.get(level, float(max(0, level)))


def mod_to_score(mod: int) -> int:
    return mod * 2 + 10


def _extract_name(text: str) -> str:
    for line in text.split("\n"):
        line = line.strip()
        if not line or line.startswith("[") or re.match(r"^Creature\s+-?\d+", line, re.IGNORECASE):
            continue
        return re.sub(r"\s+Creature\s+-?\d+$", "", line, flags=re.IGNORECASE).strip() or line
    return "Unknown Creature"


def _extract_traits(text: str) -> list[str]:
    """Trait words from bracketed trait lines, excluding action icons."""
    lines = PATTERNS["trait_line"].findall(text)
    source = "\n".join(lines) if lines else text
    return [
        t.strip() for t in PATTERNS["bracket"].findall(source)
        if not re.search(r"action|reaction|free", t, re.IGNORECASE)
    ]


def _type_info(traits: list[str]) -> TypeInfo:
    size = "Medium"
    creature_type = "creature"
    alignment_parts: list[str] = []
    subtypes: list[str] = []
    for trait in traits:
        lowered = trait.lower()
        if lowered in (s.lower() for s in SIZES):
            size = trait.title()
        elif trait.upper() in ALIGNMENT_ABBREVIATIONS:
            alignment_parts.append(ALIGNMENT_ABBREVIATIONS[trait.upper()])
        elif lowered in ALIGNMENT_TRAITS:
            alignment_parts.append(lowered)
        elif lowered in CREATURE_TYPES:
            creature_type = TYPE_ALIASES.get(lowered, lowered)
        elif lowered in TYPE_ALIASES:
            if creature_type == "creature":
                creature_type = TYPE_ALIASES[lowered]
            subtypes.append(lowered)
        elif lowered not in RARITIES:
            subtypes.append(lowered)
    return TypeInfo(
        size=size,
        type=creature_type,
        subtype=", ".join(subtypes) or None,
        alignment=" ".join(alignment_parts) or None,
    )


def _senses(text: str) -> tuple[int, dict[str, bool | int]]:
    match = PATTERNS["perception"].search(text)
    bonus = int(match.group(1)) if match else 0
    senses: dict[str, bool | int] = {}
    sense_text = match.group(2) if match and match.group(2) else ""
    dark = re.search(r"(greater\s+)?darkvision", sense_text, re.IGNORECASE)
    if dark:
        senses["darkvision"] = 120 if dark.group(1) else 60
    if re.search(r"low-light vision", sense_text, re.IGNORECASE):
        senses["low_light_vision"] = True
    tremor = re.search(r"tremorsense\s*\(?(?:imprecise\s*)?\)?\s*(\d+)", sense_text, re.IGNORECASE)
    if tremor:
        senses["tremorsense"] = int(tremor.group(1))
    scent = re.search(r"scent\s*\(?(?:imprecise\s*)?\)?\s*(\d+)", sense_text, re.IGNORECASE)
    if scent:
        senses["scent"] = int(scent.group(1))
    senses["passive_perception"] = 10 + bonus
    return bonus, senses


def _languages(text: str) -> list[str]:
    match = PATTERNS["languages"].search(text)
    if not match:
        return []
    return split_list(re.sub(r";\s*telepathy.*", "", match.group(1), flags=re.IGNORECASE))


def _strike_range(kind: str, strike_traits: list[str]) -> str:
    for trait in strike_traits:
        found = re.search(r"(?:reach|range(?: increment)?)\s+(\d+)", trait, re.IGNORECASE)
        if found:
            return found.group(1)
    return "5" if kind == "melee" else "30"


def parse_strikes(text: str) -> list[Ability]:
    """Melee and Ranged strike lines as attack abilities."""
    strikes: list[Ability] = []
    for match in PATTERNS["strike"].finditer(text):
        kind = match.group(1).lower()
        strike_traits = [t.strip() for t in (match.group(5) or "").split(",") if t.strip()]
        strikes.append(make_attack(
            name=match.group(3).strip(),
            description=match.group(0).strip(),
            kind=kind,
            to_hit=int(match.group(4)),
            reach=_strike_range(kind, strike_traits),
            damage_dice=match.group(6),
            damage_type=match.group(7),
        ))
    return strikes


def _icon_kind(icon: str | None) -> str | None:
    if not icon:
        return None
    if icon.startswith("["):
        return icon.strip("[]").lower()
    return ICON_KINDS.get(icon[0], "action")


def parse_ability_lines(text: str) -> tuple[list[Ability], list[Ability], list[Ability]]:
    """Split the lines after the HP line into traits, actions and reactions.

    An ability starts on a capitalized line whose name is followed by an
    action icon or a parenthesized trait list; other lines continue the
    previous ability (Trigger, Effect, degrees of success).
    """
    hp_line = PATTERNS["hp"].search(text)
    body = text[hp_line.end():] if hp_line else text

    entries: list[tuple[str, str | None, list[str]]] = []
    for raw_line in body.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if _STAT_LINE_RE.match(line):
            continue
        match = None if _CONTINUATION_RE.match(line) else PATTERNS["ability"].match(line)
        if match and len(match.group(1).split()) <= MAX_NAME_WORDS:
            entries.append((match.group(1).strip(), _icon_kind(match.group(2)), [match.group(4)]))
        elif entries:
            entries[-1][2].append(line)

    traits: list[Ability] = []
    actions: list[Ability] = []
    reactions: list[Ability] = []
    for name, kind, parts in entries:
        ability = Ability(name=name, description=" ".join(p for p in parts if p).strip())
        if kind == "reaction":
            reactions.append(ability)
        elif kind is not None:
            actions.append(ability)
        else:
            traits.append(ability)
    return traits, actions, reactions


class Pf2eExtractor(StatblockExtractor):
    """Parses Pathfinder 2e creature blocks."""

    system_id = "pf2e"
    display_name = "Pathfinder 2nd Edition"
    short_name = "PF2e"

    def parse(self, raw: Any) -> CanonicalCreature:
        text = normalize(raw)

        level_match = PATTERNS["level"].search(text)
        level = int(level_match.group(1)) if level_match else 1
        traits_list = _extract_traits(text)
        perception, senses = _senses(text)

        defenses = PATTERNS["ac_saves"].search(text)
        ac = (
            ArmorClass(value=int(defenses.group(1)), type=defenses.group(2) or None)
            if defenses else ArmorClass()
        )
        hp_match = PATTERNS["hp"].search(text)
        hp = (
            HitPoints(value=int(hp_match.group(1)), formula=hp_match.group(2) or None)
            if hp_match else HitPoints()
        )

        mods = PATTERNS["ability_mods"].search(text)
        if mods:
            keys = ("str", "dex", "con", "int", "wis", "cha")
            scores = AbilityScores(**{
                key: mod_to_score(int(value)) for key, value in zip(keys, mods.groups())
            })
        else:
            scores = AbilityScores()

        immune = PATTERNS["immunities"].search(text)
        resist = PATTERNS["resistances"].search(text)
        weak = PATTERNS["weaknesses"].search(text)
        immunities, condition_immunities = split_immunities(
            split_list(immune.group(1)) if immune else []
        )
        damage_info = DamageInfo(
            immunities=immunities,
            condition_immunities=condition_immunities,
            resistances=split_list(resist.group(1)) if resist else [],
            vulnerabilities=split_list(weak.group(1)) if weak else [],
        )

        speed = PATTERNS["speed"].search(text)
        skills = PATTERNS["skills"].search(text)
        strikes = parse_strikes(text)
        ability_traits, ability_actions, reactions = parse_ability_lines(text)

        system_data: dict[str, Any] = {
            "level": level,
            "perception": perception,
            "traits": traits_list,
            "saves": {
                "fort": int(defenses.group(3)) if defenses else 0,
                "ref": int(defenses.group(4)) if defenses else 0,
                "will": int(defenses.group(5)) if defenses else 0,
            },
        }

        lowered = text.lower()
        fields = {
            "name": _extract_name(text),
            "type_info": _type_info(traits_list),
            "ac": ac,
            "hp": hp,
            "speed": parse_speed_text(speed.group(1) if speed else None, default_walk=25),
            "ability_scores": scores,
            "cr": ChallengeRating(string=str(level), numeric=level_to_cr(level)),
            "skills": parse_skills_text(skills.group(1) if skills else None),
            "damage_info": damage_info,
            "senses": senses,
            "languages": _languages(text),
            "traits": ability_traits,
            "actions": [*strikes, *ability_actions],
            "reactions": reactions,
            "system_data": system_data,
        }
        creature = finalize_creature(
            fields,
            has_multiattack=len(strikes) > 1,
            has_spellcasting=any(
                marker in lowered for marker in ("spellcasting", "innate spells", "focus spells")
            ),
        )
        logger.debug(
            f"Parsed PF2e creature '{creature.name}': level {level}, "
            f"{len(strikes)} strikes, {len(reactions)} reactions"
        )
        return creature
