"""
D&D 4th edition text extractor.

Handles both the Monster Manual 1-2 layout, where each power line reads
"Name (standard; at-will)", and the Monster Vault layout, where powers
sit under "Standard Actions" / "Triggered Actions" headers. Distances
are given in squares and converted to feet (one square is 5 ft.).
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
    Speed,
    TypeInfo,
)
from ..text_utils import normalize, split_list
from .base import StatblockExtractor, finalize_creature
from .fields import SIZES, parse_skills_text

logger = logging.getLogger("statblock-converter.extractors.dnd4e")

FEET_PER_SQUARE = 5

ORIGINS = ("aberrant", "elemental", "fey", "immortal", "natural", "shadow")
TYPE_ALIASES = {"magical beast": "beast", "animate": "construct"}

PATTERNS: dict[str, re.Pattern] = {
    "level": re.compile(
        r"\bLevel\s+(\d+)\s+(?:(Elite|Solo|Minion)\s+)?([A-Za-z]+)(?:\s*\((Leader)\))?",
        re.IGNORECASE,
    ),
    "type": re.compile(
        rf"^({'|'.join(SIZES)})\s+({'|'.join(ORIGINS)})\s+(magical beast|[a-z]+)"
        r"(?:\s*\(([^)]+)\))?",
        re.IGNORECASE | re.MULTILINE,
    ),
    "xp": re.compile(r"\bXP\s+([\d,]+)"),
    "hp": re.compile(r"\bHP\s+(\d+)(?:;\s*Bloodied\s+(\d+))?", re.IGNORECASE),
    "defenses": re.compile(
        r"\bAC\s+(\d+)[;,]\s*Fortitude\s+(\d+),\s*Reflex\s+(\d+),\s*Will\s+(\d+)",
        re.IGNORECASE,
    ),
    "ac": re.compile(r"\bAC\s+(\d+)"),
    "speed": re.compile(r"\bSpeed\s+(\d+)([^\n]*)", re.IGNORECASE),
    "initiative": re.compile(r"\bInitiative\s*([+-]\d+)", re.IGNORECASE),
    "perception": re.compile(r"\bPerception\s*([+-]\d+)", re.IGNORECASE),
    "skills": re.compile(r"^Skills\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "alignment": re.compile(
        r"\bAlignment\s+((?:chaotic\s+|lawful\s+)?(?:evil|good)|unaligned)", re.IGNORECASE
    ),
    "languages": re.compile(r"\bLanguages\s+([^\n]+)", re.IGNORECASE),
    "immune": re.compile(r"\bImmune\s+([^;\n]+)", re.IGNORECASE),
    "resist": re.compile(r"\bResist\s+([^;\n]+)", re.IGNORECASE),
    "vulnerable": re.compile(r"\bVulnerable\s+([^;\n]+)", re.IGNORECASE),
}

_ABILITY_RES = {
    key: re.compile(rf"\b{key}\s+(\d+)\s*\([+-]\d+\)", re.IGNORECASE)
    for key in ("str", "dex", "con", "int", "wis", "cha")
}

# "m Greataxe (standard; at-will) * Weapon"
POWER_RE = re.compile(
    r"^(?:([mrcaMRCA])\s+)?([A-Z][A-Za-z' -]*?)\s*"
    r"\((?i:((?:standard|minor|move|free|no action|opportunity|immediate\s+(?:reaction|interrupt))[^)]*))\)"
    r"\s*(.*)$",
)
AURA_RE = re.compile(r"^([A-Z][A-Za-z' -]*?)(?:\s*\([^)]*\))?\s+(?i:aura)\s+(\d+)[;:]?\s*(.*)$")
SECTION_RE = re.compile(
    r"^(Traits|Standard Actions|Move Actions|Minor Actions|Triggered Actions|Free Actions)$",
    re.IGNORECASE,
)
# Monster Vault power names: "Battleaxe (weapon) * At-Will"
_NAMED_POWER_RE = re.compile(r"^([A-Z][A-Za-z' -]{0,40}?)(?:\s*\([^)]*\))?(?:\s*[•·*]\s*.+)?$")
_CONTINUATION_RE = re.compile(
    r"^(?:Attack|Hit|Miss|Effect|Trigger|Aftereffect|Special|Requirements?|Sustain|"
    r"Secondary Attack|Keywords?|Failed Saving Throw|First Failed|Second Failed|"
    r"Level \d+|[+-]\d+ vs)\b",
    re.IGNORECASE,
)
_STAT_LINE_RE = re.compile(
    r"^(?:Str|Con|Dex|Int|Wis|Cha|Alignment|Languages|Skills|Equipment|HP|AC|Speed|"
    r"Initiative|Perception|Immune|Resist|Vulnerable|Saving Throws|Action Points)\b",
    re.IGNORECASE,
)

VS_RE = re.compile(r"([+-]\d+)\s+vs\.?\s+(AC|Fortitude|Reflex|Will)", re.IGNORECASE)
HIT_RE = re.compile(
    r"(\d+d\d+(?:\s*[+-]\s*\d+)?)\s*(?:([a-z]+)(?:\s+and\s+[a-z]+)?\s+)?damage",
    re.IGNORECASE,
)
RANGE_RE = re.compile(
    r"\b(Ranged|Area\s+(?:burst|wall)\s+\d+\s+within|Close\s+(?:blast|burst))\s+(\d+)",
    re.IGNORECASE,
)
_NOT_DAMAGE_TYPES = {"ongoing", "extra", "additional", "weapon", "half"}


def level_to_cr(level: int) -> ChallengeRating:
    numeric = max(0.25, level / 2)
    string = {0.25: "1/4", 0.5: "1/2"}.get(numeric, f"{numeric:g}")
    return ChallengeRating(string=string, numeric=numeric)


def squares_to_feet(squares: int | str) -> int:
    return int(squares) * FEET_PER_SQUARE


def _extract_name(text: str) -> str:
    for line in text.split("\n"):
        line = line.strip()
        if line:
            return re.sub(r"\s+Level\s+\d+.*$", "", line, flags=re.IGNORECASE).strip() or line
    return "Unknown Creature"


def _type_info(text: str) -> tuple[TypeInfo, str | None]:
    match = PATTERNS["type"].search(text)
    alignment = PATTERNS["alignment"].search(text)
    aligned = alignment.group(1).lower() if alignment else None
    if not match:
        return TypeInfo(alignment=aligned), None
    creature_type = match.group(3).lower()
    return TypeInfo(
        size=match.group(1).title(),
        type=TYPE_ALIASES.get(creature_type, creature_type),
        subtype=match.group(4).strip() if match.group(4) else None,
        alignment=aligned,
    ), match.group(2).lower()


def _speed(text: str) -> Speed:
    match = PATTERNS["speed"].search(text)
    if not match:
        return Speed(walk=squares_to_feet(6))
    speeds = {"walk": squares_to_feet(match.group(1))}
    for mode in ("fly", "swim", "climb", "burrow"):
        found = re.search(rf"\b{mode}\s+(\d+)", match.group(2), re.IGNORECASE)
        if found:
            speeds[mode] = squares_to_feet(found.group(1))
    return Speed(**speeds)


def _ability_scores(text: str) -> AbilityScores:
    found = {}
    for key, pattern in _ABILITY_RES.items():
        match = pattern.search(text)
        if match:
            found[key] = int(match.group(1))
    return AbilityScores(**found)


def _damage_list(pattern: re.Pattern, text: str) -> list[str]:
    match = pattern.search(text)
    if not match:
        return []
    # "Resist 10 fire" lists an amount before the damage type
    return [re.sub(r"^\d+\s+", "", item) for item in split_list(match.group(1))]


def _senses(text: str, perception: int | None) -> dict[str, bool | int]:
    senses: dict[str, bool | int] = {}
    lowered = text.lower()
    if "darkvision" in lowered:
        senses["darkvision"] = True
    if "low-light vision" in lowered:
        senses["low_light_vision"] = True
    for sense in ("blindsight", "tremorsense", "truesight"):
        found = re.search(rf"{sense}\s+(\d+)", text, re.IGNORECASE)
        if found:
            senses[sense] = squares_to_feet(found.group(1))
    if perception is not None:
        senses["passive_perception"] = 10 + perception
    return senses


# =============================================================================
# Powers
# =============================================================================

def power_to_ability(name: str, description: str, marker: str | None = None) -> Ability:
    """Build an Ability from a power, with attack info when it rolls vs a defense."""
    description = re.sub(r"\s+", " ", description).strip()
    vs = VS_RE.search(description)
    if not vs:
        return Ability(name=name, description=description)

    hit_clause = description.split("Hit:", 1)[1] if "Hit:" in description else description
    hit = HIT_RE.search(hit_clause)
    dice = re.sub(r"\s+", " ", hit.group(1)) if hit else ""
    damage_type = "physical"
    if hit and hit.group(2) and hit.group(2).lower() not in _NOT_DAMAGE_TYPES:
        damage_type = hit.group(2)

    kind, reach = "melee", "5"
    ranged = RANGE_RE.search(description)
    if ranged and not ranged.group(1).lower().startswith("close"):
        kind, reach = "ranged", str(squares_to_feet(ranged.group(2)))
    elif ranged:
        reach = str(squares_to_feet(ranged.group(2)))
    elif marker and marker.lower() in ("r", "a"):
        kind, reach = "ranged", str(squares_to_feet(10))

    attack = make_attack(name, description, kind, int(vs.group(1)), reach, dice, damage_type)
    if dice and not attack.attack_info.avg_damage:
        logger.debug(f"Power '{name}' has unparseable damage dice '{dice}'")
    return attack


def parse_powers(text: str) -> tuple[list[Ability], list[Ability], list[Ability]]:
    """Split 4e power entries into traits, actions and reactions."""
    entries: list[dict[str, Any]] = []
    section: str | None = None
    header_done = False

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if not header_done:
            # Powers never appear before the HP line
            header_done = bool(PATTERNS["hp"].search(line))
            continue
        header = SECTION_RE.match(line)
        if header:
            section = header.group(1).lower()
            continue
        if _STAT_LINE_RE.match(line) and not entries:
            continue

        power = POWER_RE.match(line)
        aura = AURA_RE.match(line)
        if power:
            usage = power.group(3).lower()
            kind = "reaction" if usage.startswith(("immediate", "opportunity")) else "action"
            entries.append({
                "name": power.group(2).strip(),
                "kind": kind,
                "marker": power.group(1),
                "parts": [power.group(3), power.group(4)],
            })
        elif aura:
            entries.append({
                "name": aura.group(1).strip(),
                "kind": "trait",
                "marker": None,
                "parts": [f"Aura {aura.group(2)}", aura.group(3)],
            })
        elif _CONTINUATION_RE.match(line) or _STAT_LINE_RE.match(line):
            if entries and not _STAT_LINE_RE.match(line):
                entries[-1]["parts"].append(line)
        elif section and _NAMED_POWER_RE.match(line) and len(line.split("(")[0].split()) <= 6:
            kind = {"traits": "trait", "triggered actions": "reaction"}.get(section, "action")
            entries.append({"name": _NAMED_POWER_RE.match(line).group(1).strip(),
                            "kind": kind, "marker": None, "parts": []})
        elif entries:
            entries[-1]["parts"].append(line)

    traits: list[Ability] = []
    actions: list[Ability] = []
    reactions: list[Ability] = []
    target = {"trait": traits, "action": actions, "reaction": reactions}
    for entry in entries:
        description = " ".join(p for p in entry["parts"] if p)
        target[entry["kind"]].append(power_to_ability(entry["name"], description, entry["marker"]))
    return traits, actions, reactions


class Dnd4eExtractor(StatblockExtractor):
    """Parses D&D 4th edition monster blocks."""

    system_id = "dnd4e"
    display_name = "D&D 4th Edition"
    short_name = "4e"

    def parse(self, raw: Any) -> CanonicalCreature:
        text = normalize(raw)

        level_match = PATTERNS["level"].search(text)
        level = int(level_match.group(1)) if level_match else 1
        rank = level_match.group(2).lower() if level_match and level_match.group(2) else "standard"
        role = level_match.group(3).lower() if level_match else None

        type_info, origin = _type_info(text)
        hp_match = PATTERNS["hp"].search(text)
        defenses = PATTERNS["defenses"].search(text)
        ac_match = defenses or PATTERNS["ac"].search(text)
        initiative = PATTERNS["initiative"].search(text)
        perception = PATTERNS["perception"].search(text)
        perception_bonus = int(perception.group(1)) if perception else None

        skills_match = PATTERNS["skills"].search(text)
        skills = parse_skills_text(skills_match.group(1) if skills_match else None)
        if perception_bonus is not None:
            skills.setdefault("perception", perception_bonus)

        languages = PATTERNS["languages"].search(text)
        traits, actions, reactions = parse_powers(text)

        system_data: dict[str, Any] = {"level": level, "rank": rank}
        if role:
            system_data["role"] = role
        if level_match and level_match.group(4):
            system_data["leader"] = True
        if origin:
            system_data["origin"] = origin
        if hp_match and hp_match.group(2):
            system_data["bloodied"] = int(hp_match.group(2))
        if defenses:
            system_data["defenses"] = {
                "fortitude": int(defenses.group(2)),
                "reflex": int(defenses.group(3)),
                "will": int(defenses.group(4)),
            }
        if initiative:
            system_data["initiative"] = int(initiative.group(1))
        xp = PATTERNS["xp"].search(text)
        if xp:
            system_data["xp"] = int(xp.group(1).replace(",", ""))

        fields = {
            "name": _extract_name(text),
            "type_info": type_info,
            "ac": ArmorClass(value=int(ac_match.group(1))) if ac_match else ArmorClass(),
            "hp": HitPoints(value=int(hp_match.group(1))) if hp_match else HitPoints(),
            "speed": _speed(text),
            "ability_scores": _ability_scores(text),
            "cr": level_to_cr(level),
            "skills": skills,
            "damage_info": DamageInfo(
                immunities=_damage_list(PATTERNS["immune"], text),
                resistances=_damage_list(PATTERNS["resist"], text),
                vulnerabilities=_damage_list(PATTERNS["vulnerable"], text),
            ),
            "senses": _senses(text, perception_bonus),
            "languages": split_list(languages.group(1)) if languages else [],
            "traits": traits,
            "actions": actions,
            "reactions": reactions,
            "legendary_action_count": 3 if rank == "solo" else 0,
            "system_data": system_data,
        }
        attack_count = sum(1 for a in actions if a.is_attack)
        creature = finalize_creature(
            fields,
            has_multiattack=rank == "elite" or None,
            has_spellcasting=bool(re.search(r"\b(?:arcane|spells?)\b", text, re.IGNORECASE)),
        )
        logger.debug(
            f"Parsed 4e creature '{creature.name}': level {level} {rank} {role}, "
            f"{attack_count} attack powers, {len(reactions)} triggered"
        )
        return creature


__all__ = [
    "Dnd4eExtractor",
    "level_to_cr",
    "parse_powers",
    "power_to_ability",
]
