"""
OSR text extractor (B/X, BECMI, OSE, Labyrinth Lord, Swords & Wizardry,
AD&D 1e/2e).

Old-school blocks carry far less data than modern ones: no ability
scores, no damage types, often only hit dice and an attack list. Missing
values are generated from hit dice and creature type.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from ..abilities import make_attack
from ..models import (
    Ability,
    AbilityScores,
    ArmorClass,
    CanonicalCreature,
    ChallengeRating,
    HitPoints,
    Speed,
    TypeInfo,
)
from ..text_utils import find_dice, normalize
from .base import StatblockExtractor, finalize_creature
from .fields import extract_name

logger = logging.getLogger("statblock-converter.extractors.osr")

PATTERNS: dict[str, re.Pattern] = {
    "hd": re.compile(r"\b(?:HD|Hit Dice):?\s*(\d+)(?:\s*\+\s*(\d+))?", re.IGNORECASE),
    "hp": re.compile(r"\b(?:hp|Hit Points):?\s*(\d+)|\((\d+)\s*hp\)", re.IGNORECASE),
    "ac": re.compile(r"\b(?:AC|Armor Class):?\s*(-?\d+)(?:\s*\[(\d+)\])?", re.IGNORECASE),
    "thac0": re.compile(r"\bTHAC0:?\s*(\d+)(?:\s*\[\+?(\d+)\])?", re.IGNORECASE),
    "attack_bonus": re.compile(r"\b(?:Atk|AB|Attack Bonus):?\s*\+(\d+)", re.IGNORECASE),
    "movement": re.compile(r"\b(?:MV|Move(?:ment)?):?\s*(\d+)'?(?:\s*\((\d+)'?\))?", re.IGNORECASE),
    "attacks": re.compile(
        r"(?:\b(?:Att(?:acks?)?)(?!\s+Bonus)|#AT)\b:?\s*(.+?)(?=\n|\bDmg\b|\bDamage\b|$)",
        re.IGNORECASE,
    ),
    "damage": re.compile(r"\b(?:Dmg|Damage):?\s*(.+?)(?=\n|\bSave\b|\bSV\b|$)", re.IGNORECASE),
    "save": re.compile(r"\b(?:SV|Saves?(?:\s+As)?):?\s*([A-Za-z]+)\s*(\d+)?", re.IGNORECASE),
    "morale": re.compile(r"\b(?:ML|Morale):?\s*(\d+)", re.IGNORECASE),
    "alignment": re.compile(r"\b(?:Alignment|AL):?\s*([A-Za-z]+)", re.IGNORECASE),
    "xp": re.compile(r"\b(?:XP Value|XP|Experience):?\s*([\d,]+)", re.IGNORECASE),
    "treasure": re.compile(r"\b(?:TT|Treasure(?: Type)?):?\s*([A-Za-z]+)", re.IGNORECASE),
    "appearing": re.compile(r"\b(?:NA|No\.?\s*Appearing):?\s*(.+?)(?=\n|$)", re.IGNORECASE),
    "size": re.compile(r"\bSize:?\s*(Tiny|Small|Medium|Large|Huge|Gargantuan)", re.IGNORECASE),
    "type": re.compile(r"(?:^|[,;]\s*)Type:?\s*([A-Za-z]+)", re.IGNORECASE | re.MULTILINE),
    "special": re.compile(
        r"^(?:Special Abilities|Special|SA):?\s+(.+?)(?=\n\n|\Z)",
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    ),
}

# Checked in order; the first keyword found decides the type.
TYPE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("undead", ("undead", "skeleton", "zombie", "ghost")),
    ("dragon", ("dragon",)),
    ("fiend", ("demon", "devil")),
    ("elemental", ("elemental",)),
    ("giant", ("giant", "ogre", "troll")),
    ("humanoid", ("goblin", "orc", "kobold", "human")),
    ("beast", ("animal", "beast", "bear", "wolf")),
]


def hit_point_average(dice: int, bonus: int = 0) -> int:
    """Average HP for ``dice`` d8 hit dice plus a flat bonus."""
    return math.floor(dice * 4.5) + bonus


def descending_to_ascending(ac: int) -> int:
    return 19 - ac


def infer_type(text: str) -> str:
    lowered = text.lower()
    for creature_type, keywords in TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return creature_type
    return "creature"


def generate_ability_scores(hit_dice: int, creature_type: str) -> AbilityScores:
    """Approximate ability scores from hit dice and type."""
    base = 10 + min(hit_dice, 10)
    scores = {"str": base, "dex": 10, "con": base, "int": 10, "wis": 10, "cha": 10}
    if creature_type == "undead":
        scores.update(con=10, cha=8)
    elif creature_type == "beast":
        scores.update(int=2, wis=12)
    elif creature_type == "dragon":
        scores.update(str=base + 4, int=14, cha=14)
    return AbilityScores(**scores)


def _parse_ac(text: str) -> ArmorClass:
    match = PATTERNS["ac"].search(text)
    if not match:
        return ArmorClass()
    listed = int(match.group(1))
    if match.group(2):
        return ArmorClass(value=int(match.group(2)), type="ascending")
    if listed <= 9:
        return ArmorClass(value=descending_to_ascending(listed), type="converted from descending")
    return ArmorClass(value=listed, type="ascending")


def _attack_bonus(text: str, hit_dice: int) -> int:
    explicit = PATTERNS["attack_bonus"].search(text)
    if explicit:
        return int(explicit.group(1))
    thac0 = PATTERNS["thac0"].search(text)
    if thac0:
        if thac0.group(2):
            return int(thac0.group(2))
        return 20 - int(thac0.group(1))
    return hit_dice // 2


def _parse_attacks(text: str, to_hit: int) -> list[Ability]:
    attacks_match = PATTERNS["attacks"].search(text)
    damage_match = PATTERNS["damage"].search(text)
    if not attacks_match and not damage_match:
        return [make_attack("Attack", "Melee attack", "melee", to_hit, "5", "1d6", "physical")]

    attack_parts = [
        p.strip() for p in re.split(r"[/,]", attacks_match.group(1) if attacks_match else "")
        if p.strip()
    ]
    damage_parts = [
        p.strip() for p in re.split(r"[/,]", damage_match.group(1) if damage_match else "")
        if p.strip()
    ]

    attacks: list[Ability] = []
    for i in range(max(len(attack_parts), 1)):
        attack_part = attack_parts[i] if i < len(attack_parts) else "attack"
        damage_part = (
            damage_parts[i] if i < len(damage_parts)
            else damage_parts[0] if damage_parts
            else ""
        )

        count_match = re.match(r"^(\d+)\s*[x×]?\s*(.+)", attack_part)
        count = int(count_match.group(1)) if count_match else 1
        name = count_match.group(2) if count_match else attack_part
        # OSE style: "2 x claw (1d3)" carries its damage inline
        inline_dice = find_dice(name)
        name = re.sub(r"\([^)]*\)", "", name).replace("(", "").replace(")", "").strip()
        name = name or "Attack"
        damage_dice = inline_dice or find_dice(damage_part) or "1d6"

        prefix = f"{count}x " if count > 1 else ""
        attacks.append(make_attack(
            name=name[0].upper() + name[1:],
            description=f"{prefix}{name}: {damage_part or damage_dice}",
            kind="melee",
            to_hit=to_hit,
            reach="5",
            damage_dice=damage_dice,
            damage_type="physical",
        ))
    return attacks


def _parse_special(text: str) -> list[Ability]:
    match = PATTERNS["special"].search(text)
    if not match:
        return []
    parts = [p.strip() for p in re.split(r"[,;]", match.group(1)) if p.strip()]
    return [Ability(name=p, description=p) for p in parts if len(p) > 2]


class OsrExtractor(StatblockExtractor):
    """Parses old-school D&D and retroclone stat blocks."""

    system_id = "osr"
    display_name = "OSR / Old-School D&D"
    short_name = "OSR"

    def parse(self, raw: Any) -> CanonicalCreature:
        text = normalize(raw)

        hd_match = PATTERNS["hd"].search(text)
        hit_dice = int(hd_match.group(1)) if hd_match else 1
        hd_bonus = int(hd_match.group(2)) if hd_match and hd_match.group(2) else 0
        hd_string = f"{hit_dice}+{hd_bonus}" if hd_bonus else str(hit_dice)

        hp_value = hit_point_average(hit_dice, hd_bonus) if hd_match else 4
        hp_match = PATTERNS["hp"].search(text)
        if hp_match:
            hp_value = int(hp_match.group(1) or hp_match.group(2))
        formula = f"{hit_dice}d8" + (f"+{hd_bonus}" if hd_bonus else "")

        cr_value = max(0.25, min(20.0, float(hit_dice)))
        cr_string = "1/4" if cr_value == 0.25 else str(math.floor(cr_value))

        alignment_match = PATTERNS["alignment"].search(text)
        alignment = "neutral"
        if alignment_match:
            first = alignment_match.group(1).lower()[:1]
            alignment = {"l": "lawful", "c": "chaotic"}.get(first, "neutral")

        explicit_type = PATTERNS["type"].search(text)
        creature_type = explicit_type.group(1).lower() if explicit_type else infer_type(text)
        size = PATTERNS["size"].search(text)
        type_info = TypeInfo(
            size=size.group(1).title() if size else "Medium",
            type=creature_type,
            alignment=alignment,
        )

        movement = PATTERNS["movement"].search(text)
        walk = int(movement.group(1)) if movement else 30
        if walk > 100:
            # feet per turn to feet per round
            walk = walk // 3

        system_data: dict[str, Any] = {"hit_dice": hd_string}
        morale = PATTERNS["morale"].search(text)
        system_data["morale"] = int(morale.group(1)) if morale else 7
        xp = PATTERNS["xp"].search(text)
        system_data["xp"] = int(xp.group(1).replace(",", "")) if xp else 0
        thac0 = PATTERNS["thac0"].search(text)
        if thac0:
            system_data["thac0"] = int(thac0.group(1))
        treasure = PATTERNS["treasure"].search(text)
        if treasure:
            system_data["treasure_type"] = treasure.group(1)
        appearing = PATTERNS["appearing"].search(text)
        if appearing:
            system_data["number_appearing"] = appearing.group(1).strip()
        save = PATTERNS["save"].search(text)
        if save:
            system_data["save_as"] = " ".join(g for g in save.groups() if g)

        to_hit = _attack_bonus(text, hit_dice)
        actions = _parse_attacks(text, to_hit)
        lowered = text.lower()

        fields = {
            "name": extract_name(text),
            "type_info": type_info,
            "ac": _parse_ac(text),
            "hp": HitPoints(value=hp_value, formula=formula),
            "speed": Speed(walk=walk),
            "ability_scores": generate_ability_scores(hit_dice, creature_type),
            "cr": ChallengeRating(string=cr_string, numeric=cr_value),
            "traits": _parse_special(text),
            "actions": actions,
            "system_data": system_data,
        }
        creature = finalize_creature(
            fields,
            has_multiattack=len(actions) > 1,
            has_spellcasting="spell" in lowered or "magic" in lowered,
        )
        logger.debug(
            f"Parsed OSR creature '{creature.name}': HD {hd_string}, "
            f"AC {creature.ac.value}, {len(actions)} attacks at +{to_hit}"
        )
        return creature
