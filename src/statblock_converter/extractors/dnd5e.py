"""
D&D 5th edition text extractor (2014 and 2024 stat block layouts).
"""

from __future__ import annotations

import logging
import re
from typing import Any

from ..abilities import parse_abilities, split_sections, strip_legendary_boilerplate
from ..models import CanonicalCreature
from ..text_utils import normalize, parse_cr
from .base import StatblockExtractor, finalize_creature
from .fields import (
    extract_ability_scores,
    extract_ac,
    extract_damage_info,
    extract_hp,
    extract_languages,
    extract_name,
    extract_senses,
    extract_skills,
    extract_speed,
    extract_type_info,
    find_cr,
    parse_skills_text,
)

logger = logging.getLogger("statblock-converter.extractors.dnd5e")

LEGENDARY_COUNT_PATTERNS = [
    re.compile(r"can take (\d+) legendary actions?", re.IGNORECASE),
    re.compile(r"Legendary Action Uses:\s*(\d+)", re.IGNORECASE),
]
PROFICIENCY_RE = re.compile(r"\b(?:Proficiency Bonus|PB)\s*\+?(\d+)", re.IGNORECASE)
SAVES_RE = re.compile(r"^Saving Throws\s+(.+)$", re.IGNORECASE | re.MULTILINE)
INITIATIVE_RE = re.compile(r"^Initiative\s+([+-]\d+)", re.IGNORECASE | re.MULTILINE)


def legendary_action_count(text: str) -> int:
    for pattern in LEGENDARY_COUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return 0


class Dnd5eExtractor(StatblockExtractor):
    """Parses pasted 5e stat blocks from books, PDFs and D&D Beyond."""

    system_id = "dnd5e"
    display_name = "D&D 5th Edition"
    short_name = "5e"

    def parse(self, raw: Any) -> CanonicalCreature:
        text = normalize(raw)
        cr_token, header_end = find_cr(text)
        sections = split_sections(text, header_end)

        traits = parse_abilities(sections["traits"])
        actions = parse_abilities(sections["actions"])

        system_data: dict[str, Any] = {}
        pb = PROFICIENCY_RE.search(text)
        if pb:
            system_data["proficiency_bonus"] = int(pb.group(1))
        saves = SAVES_RE.search(text)
        if saves:
            system_data["saving_throws"] = parse_skills_text(saves.group(1))
        initiative = INITIATIVE_RE.search(text)
        if initiative:
            system_data["initiative"] = int(initiative.group(1))

        fields = {
            "name": extract_name(text),
            "type_info": extract_type_info(text),
            "ac": extract_ac(text),
            "hp": extract_hp(text),
            "speed": extract_speed(text),
            "ability_scores": extract_ability_scores(text),
            "cr": parse_cr(cr_token),
            "skills": extract_skills(text),
            "damage_info": extract_damage_info(text),
            "senses": extract_senses(text),
            "languages": extract_languages(text),
            "traits": traits,
            "actions": actions,
            "bonus_actions": parse_abilities(sections["bonus_actions"]),
            "reactions": parse_abilities(sections["reactions"]),
            "legendary_actions": parse_abilities(
                strip_legendary_boilerplate(sections["legendary_actions"])
            ),
            "lair_actions": parse_abilities(sections["lair_actions"]),
            "legendary_action_count": legendary_action_count(text),
            "system_data": system_data,
        }

        # 2024 blocks list Spellcasting as an action rather than a trait
        has_spellcasting = any(
            "spellcasting" in a.name.lower() for a in (*traits, *actions)
        )
        creature = finalize_creature(fields, has_spellcasting=has_spellcasting)
        logger.debug(
            f"Parsed 5e creature '{creature.name}': CR {creature.cr.string}, "
            f"{len(creature.actions)} actions, {len(creature.traits)} traits"
        )
        return creature
