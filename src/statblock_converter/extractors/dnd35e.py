"""
D&D 3.5e / Pathfinder 1e text extractor.

Handles both the SRD layout ("Hit Dice: 4d8+8 (26 hp)", "Full Attack:")
and the Paizo layout ("hp 26 (4d8+8)", "Melee 2 claws +6 (1d4+3)").
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
    DamageInfo,
    HitPoints,
    TypeInfo,
)
from ..text_utils import find_dice, normalize, parse_cr, split_list
from .base import StatblockExtractor, finalize_creature
from .fields import ALIGNMENT_ABBREVIATIONS, parse_skills_text, parse_speed_text

logger = logging.getLogger("statblock-converter.extractors.dnd35e")

SIZES_35E = (
    "Fine", "Diminutive", "Tiny", "Small", "Medium",
    "Large", "Huge", "Gargantuan", "Colossal",
)

ALIGNMENT_WORDS = ("lawful", "chaotic", "neutral", "good", "evil")

ENERGY_TYPES = ("fire", "cold", "acid", "electricity", "sonic")

DAMAGE_TYPE_WORDS = re.compile(
    r"(slashing|piercing|bludgeoning|fire|cold|acid|electricity|sonic)", re.IGNORECASE
)

PATTERNS: dict[str, re.Pattern] = {
    "cr": re.compile(r"\b(?:CR|Challenge Rating):?\s*([\d/]+)", re.IGNORECASE),
    "type_info": re.compile(
        r"^(?:(LG|NG|CG|LN|N|CN|LE|NE|CE)\s+)?(%s)\s+([A-Za-z]+(?:\s+[A-Za-z]+)?)"
        r"(?:\s*\(([^)]+)\))?$" % "|".join(SIZES_35E),
        re.IGNORECASE | re.MULTILINE,
    ),
    "alignment": re.compile(r"^Alignment:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "hit_dice": re.compile(
        r"Hit Dice:?\s*(\d+d\d+(?:\s*[+-]\s*\d+)?)\s*\((\d+)\s*hp\)", re.IGNORECASE
    ),
    "hp": re.compile(r"\b(?:hp|Hit Points)\s*(\d+)\s*(?:\(([^)]+)\))?", re.IGNORECASE),
    "initiative": re.compile(r"\bInit(?:iative)?:?\s*([+-]\d+)", re.IGNORECASE),
    "speed": re.compile(r"^Speed:?\s*(.+)$", re.IGNORECASE | re.MULTILINE),
    "ac": re.compile(
        r"\b(?:Armor Class|AC):?\s*(\d+)(?:\s*\(([^)]+)\))?"
        r"(?:[,;]\s*touch\s*(\d+))?(?:[,;]\s*flat-footed\s*(\d+))?(?:\s*\(([^)]+)\))?",
        re.IGNORECASE,
    ),
    "bab": re.compile(
        r"Base Atk:?\s*\+(\d+)[;,]\s*(?:Grp|Grapple|CMB):?\s*\+(\d+)", re.IGNORECASE
    ),
    "cmd": re.compile(r"\bCMD\s*(\d+)", re.IGNORECASE),
    "space_reach": re.compile(
        r"Space/Reach:?\s*(\d+)\s*ft\.?\s*/\s*(\d+)\s*ft", re.IGNORECASE
    ),
    "attack": re.compile(r"^Attack:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "full_attack": re.compile(r"^Full Attack:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "melee_line": re.compile(r"^Melee\s+(.+)$", re.MULTILINE),
    "ranged_line": re.compile(r"^Ranged\s+(.+)$", re.MULTILINE),
    "special_attacks": re.compile(r"^Special Attacks?:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "special_qualities": re.compile(
        r"^(?:Special Qualit(?:y|ies)|SQ):?\s+(.+)$", re.IGNORECASE | re.MULTILINE
    ),
    "saves": re.compile(
        r"Fort\s*([+-]\d+)[,;]\s*Ref\s*([+-]\d+)[,;]\s*Will\s*([+-]\d+)", re.IGNORECASE
    ),
    "abilities": re.compile(
        r"\bStr\s*(\d+|-)[,;]\s*Dex\s*(\d+|-)[,;]\s*Con\s*(\d+|-)[,;]\s*"
        r"Int\s*(\d+|-)[,;]\s*Wis\s*(\d+|-)[,;]\s*Cha\s*(\d+|-)",
        re.IGNORECASE,
    ),
    "skills": re.compile(r"^Skills:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "feats": re.compile(r"^Feats:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "senses": re.compile(r"^Senses:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "immune": re.compile(r"(?:^|;\s*)Immune\s+([^;\n]+)", re.MULTILINE),
    "languages": re.compile(r"^Languages?:?\s+(.+)$", re.IGNORECASE | re.MULTILINE),
    "dr": re.compile(r"\b(?:DR|Damage Reduction)\s*(\d+)/([^,;\n]+)", re.IGNORECASE),
    "sr": re.compile(r"\b(?:SR|Spell Resistance)\s*(\d+)", re.IGNORECASE),
    "attack_entry": re.compile(
        r"(\d+\s+)?([^+,()]+?)\s*\+(\d+)(?:/\+\d+)*\s*(melee|ranged)?\s*\(([^)]+)\)",
        re.IGNORECASE,
    ),
}


def _extract_name(text: str) -> str:
    for line in text.split("\n"):
        line = line.strip()
        if not line or re.match(r"^CR\s", line, re.IGNORECASE) or re.match(r"^\d+$", line):
            continue
        return re.sub(r"\s+CR\s+[\d/]+$", "", line, flags=re.IGNORECASE).strip() or line
    return "Unknown Creature"


def _extract_type_info(text: str) -> TypeInfo:
    match = PATTERNS["type_info"].search(text)
    if not match:
        return TypeInfo()
    parts = [p.strip() for p in (match.group(4) or "").split(",") if p.strip()]
    alignment_parts = [p for p in parts if any(w in p.lower() for w in ALIGNMENT_WORDS)]
    subtypes = [p for p in parts if p not in alignment_parts]

    alignment = " ".join(alignment_parts).lower() or None
    if match.group(1):
        alignment = ALIGNMENT_ABBREVIATIONS.get(match.group(1).upper(), alignment)
    explicit = PATTERNS["alignment"].search(text)
    if explicit:
        alignment = explicit.group(1).strip().lower()

    return TypeInfo(
        size=match.group(2).title(),
        type=match.group(3).lower(),
        subtype=", ".join(subtypes) or None,
        alignment=alignment,
    )


def _extract_hp(text: str) -> HitPoints:
    match = PATTERNS["hit_dice"].search(text)
    if match:
        return HitPoints(value=int(match.group(2)), formula=match.group(1))
    match = PATTERNS["hp"].search(text)
    if match:
        return HitPoints(value=int(match.group(1)), formula=match.group(2) or None)
    return HitPoints()


def _extract_ability_scores(text: str) -> AbilityScores:
    match = PATTERNS["abilities"].search(text)
    if not match:
        return AbilityScores()
    keys = ("str", "dex", "con", "int", "wis", "cha")
    # A nonability ("-") counts as 10
    return AbilityScores(**{
        key: 10 if value == "-" else int(value)
        for key, value in zip(keys, match.groups())
    })


def _special_lists(text: str) -> tuple[list[str], list[str]]:
    attacks = PATTERNS["special_attacks"].search(text)
    qualities = PATTERNS["special_qualities"].search(text)
    return (
        split_list(attacks.group(1)) if attacks else [],
        split_list(qualities.group(1)) if qualities else [],
    )


def _extract_damage_info(text: str, qualities_text: str) -> DamageInfo:
    resistances: list[str] = []
    immunities: list[str] = []
    for energy in ENERGY_TYPES:
        match = re.search(
            rf"(?:{energy} resistance|resistance to {energy})\s*(\d+)", qualities_text
        )
        if match:
            resistances.append(f"{energy} {match.group(1)}")
    for damage_type in (*ENERGY_TYPES, "poison"):
        if f"immunity to {damage_type}" in qualities_text:
            immunities.append(damage_type)
    immune_line = PATTERNS["immune"].search(text)
    if immune_line:
        for item in split_list(immune_line.group(1)):
            if item.lower() not in immunities:
                immunities.append(item.lower())
    return DamageInfo(resistances=resistances, immunities=immunities)


def _extract_senses(senses_text: str) -> dict[str, bool | int]:
    senses: dict[str, bool | int] = {}
    ranged_senses = {"darkvision": 60, "blindsense": 30, "blindsight": 30, "tremorsense": 60}
    for sense, default in ranged_senses.items():
        if sense in senses_text:
            match = re.search(rf"{sense}\s*(\d+)", senses_text)
            senses[sense] = int(match.group(1)) if match else default
    if "low-light vision" in senses_text:
        senses["low_light_vision"] = True
    if "scent" in senses_text:
        senses["scent"] = True
    return senses


def parse_attack_line(attack_text: str, default_kind: str = "melee") -> list[Ability]:
    """Parse '2 claws +12 melee (1d6+4) and bite +10 melee (1d8+2)'.

    Melee attacks get a reach of 5 ft., ranged attacks 30 ft. The damage
    type is the first recognized damage word, else "physical".
    """
    attacks: list[Ability] = []
    if not attack_text:
        return attacks
    for match in PATTERNS["attack_entry"].finditer(attack_text):
        count = int(match.group(1)) if match.group(1) else 1
        name = re.sub(r"^(?:and|or)\s+", "", match.group(2).strip(), flags=re.IGNORECASE)
        to_hit = int(match.group(3))
        kind = (match.group(4) or default_kind).lower()
        damage_text = match.group(5)

        damage_dice = find_dice(damage_text) or "1d4"
        damage_type = DAMAGE_TYPE_WORDS.search(damage_text)
        description = f"{kind.title()} attack: +{to_hit} to hit, {damage_text}"
        if count > 1:
            description = f"{count} attacks. {description}"
        attacks.append(make_attack(
            name=name,
            description=description,
            kind=kind,
            to_hit=to_hit,
            reach="5" if kind == "melee" else "30",
            damage_dice=damage_dice,
            damage_type=damage_type.group(1) if damage_type else "physical",
        ))
    return attacks


class Dnd35eExtractor(StatblockExtractor):
    """Parses D&D 3.5e and Pathfinder 1e stat blocks."""

    system_id = "dnd35e"
    display_name = "D&D 3.5e / Pathfinder 1e"
    short_name = "3.5e"

    def parse(self, raw: Any) -> CanonicalCreature:
        text = normalize(raw)
        system_data: dict[str, Any] = {}

        full_attack = PATTERNS["full_attack"].search(text)
        attack = PATTERNS["attack"].search(text)
        if full_attack:
            actions = parse_attack_line(full_attack.group(1))
        elif attack:
            actions = parse_attack_line(attack.group(1))
        else:
            melee = PATTERNS["melee_line"].search(text)
            ranged = PATTERNS["ranged_line"].search(text)
            actions = [
                *(parse_attack_line(melee.group(1), "melee") if melee else []),
                *(parse_attack_line(ranged.group(1), "ranged") if ranged else []),
            ]

        ac_match = PATTERNS["ac"].search(text)
        if ac_match:
            ac = ArmorClass(
                value=int(ac_match.group(1)),
                type=ac_match.group(2) or ac_match.group(5) or None,
            )
            if ac_match.group(3):
                system_data["touch_ac"] = int(ac_match.group(3))
            if ac_match.group(4):
                system_data["flat_footed_ac"] = int(ac_match.group(4))
        else:
            ac = ArmorClass()

        saves = PATTERNS["saves"].search(text)
        system_data["saves"] = {
            "fort": int(saves.group(1)) if saves else 0,
            "ref": int(saves.group(2)) if saves else 0,
            "will": int(saves.group(3)) if saves else 0,
        }
        bab = PATTERNS["bab"].search(text)
        if bab:
            system_data["base_attack"] = int(bab.group(1))
            system_data["grapple"] = int(bab.group(2))
        cmd = PATTERNS["cmd"].search(text)
        if cmd:
            system_data["cmd"] = int(cmd.group(1))
        space_reach = PATTERNS["space_reach"].search(text)
        if space_reach:
            system_data["space"] = int(space_reach.group(1))
            system_data["reach"] = int(space_reach.group(2))
        initiative = PATTERNS["initiative"].search(text)
        if initiative:
            system_data["initiative"] = int(initiative.group(1))
        dr = PATTERNS["dr"].search(text)
        if dr:
            system_data["damage_reduction"] = {
                "value": int(dr.group(1)),
                "bypass": dr.group(2).strip(),
            }
        sr = PATTERNS["sr"].search(text)
        if sr:
            system_data["spell_resistance"] = int(sr.group(1))
        feats = PATTERNS["feats"].search(text)
        if feats:
            system_data["feats"] = split_list(feats.group(1))

        special_attacks, special_qualities = _special_lists(text)
        qualities_text = " ".join(special_qualities).lower()
        senses_line = PATTERNS["senses"].search(text)
        senses_text = " ".join(
            [qualities_text, senses_line.group(1).lower() if senses_line else ""]
        )
        traits = [
            Ability(name=item, description=item)
            for item in (*special_attacks, *special_qualities)
            if len(item) > 2
        ]

        speed = PATTERNS["speed"].search(text)
        skills = PATTERNS["skills"].search(text)
        languages = PATTERNS["languages"].search(text)
        cr = PATTERNS["cr"].search(text)
        lowered = text.lower()

        fields = {
            "name": _extract_name(text),
            "type_info": _extract_type_info(text),
            "ac": ac,
            "hp": _extract_hp(text),
            "speed": parse_speed_text(speed.group(1) if speed else None),
            "ability_scores": _extract_ability_scores(text),
            "cr": parse_cr(cr.group(1) if cr else None),
            "skills": parse_skills_text(skills.group(1) if skills else None),
            "damage_info": _extract_damage_info(text, qualities_text),
            "senses": _extract_senses(senses_text),
            "languages": split_list(languages.group(1)) if languages else [],
            "traits": traits,
            "actions": actions,
            "system_data": system_data,
        }
        creature = finalize_creature(
            fields,
            has_multiattack=full_attack is not None,
            multiattack_desc=full_attack.group(1).strip() if full_attack else None,
            has_spellcasting=(
                "spells" in lowered or "spell-like" in lowered or "caster level" in lowered
            ),
        )
        logger.debug(
            f"Parsed 3.5e creature '{creature.name}': CR {creature.cr.string}, "
            f"{len(actions)} attacks, {len(traits)} special abilities"
        )
        return creature
