"""
Field extractors shared by the 5e-style dialects.

Each extractor matches one primary pattern against normalized text and
returns a typed default when the pattern fails. The ``parse_*_text``
variants work on an already isolated value ("40 ft., fly 80 ft.") and
are reused by the JSON decoders, which receive these values as strings.
"""

from __future__ import annotations

import re

from ..abilities import SECTION_HEADER_PATTERNS
from ..models import AbilityScores, ArmorClass, DamageInfo, HitPoints, Speed, TypeInfo
from ..text_utils import split_list, to_int

SIZES = ("Tiny", "Small", "Medium", "Large", "Huge", "Gargantuan")

CONDITIONS = frozenset({
    "blinded", "charmed", "deafened", "exhaustion", "frightened", "grappled",
    "incapacitated", "invisible", "paralyzed", "petrified", "poisoned",
    "prone", "restrained", "stunned", "unconscious",
})

ALIGNMENT_ABBREVIATIONS = {
    "LG": "lawful good", "NG": "neutral good", "CG": "chaotic good",
    "LN": "lawful neutral", "N": "neutral", "CN": "chaotic neutral",
    "LE": "lawful evil", "NE": "neutral evil", "CE": "chaotic evil",
}

_SIZE_ALT = "|".join(SIZES)

TYPE_LINE_RE = re.compile(
    rf"^({_SIZE_ALT})(?:\s+or\s+(?:{_SIZE_ALT}))?\s+([A-Za-z]+)"
    r"(?:\s*\(([^)]+)\))?(?:,\s*(.+))?$",
    re.IGNORECASE | re.MULTILINE,
)
AC_RE = re.compile(r"\b(?:Armor Class|AC)\s*(\d+)(?:\s*\(([^)]+)\))?", re.IGNORECASE)
HP_RE = re.compile(r"\b(?:Hit Points|HP)\s*(\d+)(?:\s*\(([^)]+)\))?", re.IGNORECASE)
SPEED_RE = re.compile(r"^Speed\s+(.+)$", re.IGNORECASE | re.MULTILINE)
SKILLS_RE = re.compile(r"^Skills\s+(.+)$", re.IGNORECASE | re.MULTILINE)
SENSES_RE = re.compile(r"^Senses\s+(.+)$", re.IGNORECASE | re.MULTILINE)
LANGUAGES_RE = re.compile(r"^Languages\s+(.+)$", re.IGNORECASE | re.MULTILINE)
CR_RE = re.compile(r"\b(?:Challenge|CR)\s*([\d/]+)", re.IGNORECASE)

# Stat header lines that can precede the traits when a block has no CR line
HEADER_LINE_RE = re.compile(
    r"^(?:Armor Class|AC|Hit Points|HP|Speed|Initiative|STR|DEX|CON|INT|WIS|CHA|"
    r"Saving Throws|Skills|Damage (?:Resistances|Immunities|Vulnerabilities)|Resistances|"
    r"Immunities|Vulnerabilities|Condition Immunities|Gear|Senses|Languages|Proficiency Bonus)\b.*$",
    re.MULTILINE,
)

DAMAGE_RESIST_RE = re.compile(r"^(?:Damage\s+)?Resistances?\s+(.+)$", re.IGNORECASE | re.MULTILINE)
DAMAGE_IMMUNE_RE = re.compile(r"^(?:Damage\s+)?Immunit(?:y|ies)\s+(.+)$", re.IGNORECASE | re.MULTILINE)
DAMAGE_VULN_RE = re.compile(r"^(?:Damage\s+)?Vulnerabilit(?:y|ies)\s+(.+)$", re.IGNORECASE | re.MULTILINE)
CONDITION_IMMUNE_RE = re.compile(r"^Condition Immunit(?:y|ies)\s+(.+)$", re.IGNORECASE | re.MULTILINE)

_SCORE = r"(\d+)\s*(?:\([+-]?\d+\))?\s*"
ABILITY_INLINE_RE = re.compile(
    r"STR\s+" + _SCORE + r"DEX\s+" + _SCORE + r"CON\s+" + _SCORE
    + r"INT\s+" + _SCORE + r"WIS\s+" + _SCORE + r"CHA\s+(\d+)",
    re.IGNORECASE,
)
ABILITY_TABULAR_RE = re.compile(
    r"STR\s+DEX\s+CON\s+INT\s+WIS\s+CHA\s*\n\s*"
    + _SCORE * 5 + r"(\d+)",
    re.IGNORECASE,
)
# 2024 layout: "Str 18 +4 +4" (score, modifier, save)
_ABILITY_2024 = {
    key: re.compile(rf"\b{key}\s+(\d+)\s+[+-]\d+\s+[+-]\d+", re.IGNORECASE)
    for key in ("str", "dex", "con", "int", "wis", "cha")
}

SENSE_NAMES = ("darkvision", "blindsight", "truesight", "tremorsense")


# =============================================================================
# Header fields
# =============================================================================

def extract_name(text: str) -> str:
    """First non-empty line, or 'Unknown Creature'."""
    for line in text.split("\n"):
        if line.strip():
            return line.strip()
    return "Unknown Creature"


def type_info_from_match(match: re.Match | None) -> TypeInfo:
    if not match:
        return TypeInfo()
    alignment = match.group(4).strip() if match.group(4) else None
    return TypeInfo(
        size=match.group(1).title(),
        type=match.group(2).lower(),
        subtype=match.group(3).strip() if match.group(3) else None,
        alignment=alignment or None,
    )


def extract_type_info(text: str) -> TypeInfo:
    """Parse "Large giant, chaotic evil" style lines anywhere in the text."""
    return type_info_from_match(TYPE_LINE_RE.search(text or ""))


def parse_type_line(line: str | None) -> TypeInfo:
    """Parse a single type line, e.g. an Open5e ``meta`` value."""
    if not line:
        return TypeInfo()
    return type_info_from_match(TYPE_LINE_RE.match(line.strip()))


def extract_ac(text: str) -> ArmorClass:
    match = AC_RE.search(text or "")
    if not match:
        return ArmorClass()
    return ArmorClass(value=int(match.group(1)), type=match.group(2) or None)


def extract_hp(text: str) -> HitPoints:
    match = HP_RE.search(text or "")
    if not match:
        return HitPoints()
    return HitPoints(value=int(match.group(1)), formula=match.group(2) or None)


def parse_speed_text(speed_text: str | None, default_walk: int = 30) -> Speed:
    """Parse "40 ft., fly 80 ft., swim 40 ft." into a Speed."""
    if not speed_text:
        return Speed(walk=default_walk)
    speeds: dict[str, int] = {}
    walk = re.match(r"\s*(\d+)\s*(?:ft|feet)", speed_text, re.IGNORECASE)
    speeds["walk"] = int(walk.group(1)) if walk else default_walk
    for mode in ("fly", "swim", "climb", "burrow"):
        match = re.search(rf"{mode}\s+(\d+)\s*(?:ft|feet)", speed_text, re.IGNORECASE)
        if match:
            speeds[mode] = int(match.group(1))
    return Speed(**speeds)


def extract_speed(text: str, default_walk: int = 30) -> Speed:
    match = SPEED_RE.search(text or "")
    return parse_speed_text(match.group(1) if match else None, default_walk)


def parse_skills_text(skill_text: str | None) -> dict[str, int]:
    """Parse "Perception +5, Stealth +4"; keys are lower-case."""
    skills: dict[str, int] = {}
    if not skill_text:
        return skills
    for item in re.split(r"[,;]", skill_text):
        match = re.search(r"([A-Za-z][A-Za-z'() ]*?)\s*([+-]\d+)", item)
        if match:
            skills[match.group(1).strip().lower()] = int(match.group(2))
    return skills


def extract_skills(text: str) -> dict[str, int]:
    match = SKILLS_RE.search(text or "")
    return parse_skills_text(match.group(1) if match else None)


def parse_senses_text(sense_text: str | None) -> dict[str, bool | int]:
    """Parse "darkvision 60 ft., passive Perception 15"."""
    senses: dict[str, bool | int] = {}
    if not sense_text:
        return senses
    for sense in SENSE_NAMES:
        match = re.search(rf"{sense}\s+(\d+)\s*(?:ft|feet)?", sense_text, re.IGNORECASE)
        if match:
            senses[sense] = int(match.group(1))
    passive = re.search(r"passive\s+Perception\s+(\d+)", sense_text, re.IGNORECASE)
    if passive:
        senses["passive_perception"] = int(passive.group(1))
    return senses


def extract_senses(text: str) -> dict[str, bool | int]:
    match = SENSES_RE.search(text or "")
    return parse_senses_text(match.group(1) if match else None)


def extract_languages(text: str) -> list[str]:
    match = LANGUAGES_RE.search(text or "")
    return split_list(match.group(1)) if match else []


def split_immunities(items: list[str]) -> tuple[list[str], list[str]]:
    """Separate a combined immunity list into damage and condition parts.

    The 2024 layout lists both on one "Immunities" line.
    """
    damage: list[str] = []
    conditions: list[str] = []
    for item in items:
        (conditions if item.strip().lower() in CONDITIONS else damage).append(item)
    return damage, conditions


def extract_damage_info(text: str) -> DamageInfo:
    text = text or ""

    def _list(pattern: re.Pattern) -> list[str]:
        match = pattern.search(text)
        return split_list(match.group(1)) if match else []

    immunities, conditions = split_immunities(_list(DAMAGE_IMMUNE_RE))
    explicit = _list(CONDITION_IMMUNE_RE)
    conditions = explicit + [c for c in conditions if c not in explicit]
    return DamageInfo(
        resistances=_list(DAMAGE_RESIST_RE),
        immunities=immunities,
        vulnerabilities=_list(DAMAGE_VULN_RE),
        condition_immunities=conditions,
    )


# =============================================================================
# Ability scores
# =============================================================================

def scores_from_values(values: list[int | str]) -> AbilityScores:
    """Build AbilityScores from six values in STR..CHA order."""
    keys = ("str", "dex", "con", "int", "wis", "cha")
    return AbilityScores(**{key: to_int(v, 10) for key, v in zip(keys, values)})


def extract_ability_scores(text: str) -> AbilityScores:
    """Inline, then tabular, then 2024 per-ability lines, then all 10."""
    text = text or ""
    match = ABILITY_INLINE_RE.search(text) or ABILITY_TABULAR_RE.search(text)
    if match:
        return scores_from_values(list(match.groups()))
    if _ABILITY_2024["str"].search(text):
        found = {}
        for key, pattern in _ABILITY_2024.items():
            line = pattern.search(text)
            found[key] = int(line.group(1)) if line else 10
        return AbilityScores(**found)
    return AbilityScores()


# =============================================================================
# Challenge rating
# =============================================================================

def find_header_end(text: str) -> int:
    """End of the last stat header line before the first section header.

    Zero when no header keyword line is found.
    """
    limit = min(
        (match.start() for match in (p.search(text) for p in SECTION_HEADER_PATTERNS.values()) if match),
        default=len(text),
    )
    end = 0
    for match in HEADER_LINE_RE.finditer(text, 0, limit):
        end = match.end()
    return end


def find_cr(text: str) -> tuple[str | None, int]:
    """Locate the challenge rating.

    Returns:
        The CR token (None if absent) and the offset of the end of the
        line holding it; that offset is where the traits section starts.
        Without a CR line the offset is ``find_header_end(text)``.
    """
    match = CR_RE.search(text or "")
    if not match:
        return None, find_header_end(text or "")
    line_end = text.find("\n", match.end())
    return match.group(1), len(text) if line_end < 0 else line_end


__all__ = [
    "SIZES",
    "CONDITIONS",
    "ALIGNMENT_ABBREVIATIONS",
    "TYPE_LINE_RE",
    "extract_name",
    "extract_type_info",
    "parse_type_line",
    "type_info_from_match",
    "extract_ac",
    "extract_hp",
    "parse_speed_text",
    "extract_speed",
    "parse_skills_text",
    "extract_skills",
    "parse_senses_text",
    "extract_senses",
    "extract_languages",
    "split_immunities",
    "extract_damage_info",
    "scores_from_values",
    "extract_ability_scores",
    "find_header_end",
    "find_cr",
]
