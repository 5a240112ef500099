"""
Ability and attack sub-parser shared by the extractors.

Two layers live here:

- ``tokenize_sections`` / ``split_sections`` cut a 5e-style stat block
  into its trait and action sections. The tokenizer returns ordered
  ``(name, start, end)`` spans and knows nothing about abilities.
- ``parse_abilities`` splits one section into "Name. Description"
  entries and classifies each as an attack or a plain ability.

Entries that do not start on a recognizable boundary are dropped; this
is best-effort prose parsing, not a grammar.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from .models import Ability, AttackInfo
from .text_utils import average_damage

logger = logging.getLogger("statblock-converter.abilities")


# =============================================================================
# Attack classification
# =============================================================================

# 2014 "Melee Weapon Attack:" and 2024 "Melee Attack Roll:" wording
ATTACK_MARKER_RE = re.compile(
    r"(?:Melee|Ranged)\s+(?:(?:Weapon|Spell)\s+Attack|Attack\s+Roll)",
    re.IGNORECASE,
)
ATTACK_RE = re.compile(
    r"(Melee\s+or\s+Ranged|Melee|Ranged)\s+(?:(?:Weapon|Spell)\s+Attack|Attack\s+Roll):\s*"
    r"([+-]?\d+)(?:\s+to\s+hit)?,\s*(?:reach|range)\s*([\d/]+)\s*(?:ft|feet)",
    re.IGNORECASE,
)
DAMAGE_RE = re.compile(r"Hit:\s*(\d+)\s*\(([^)]+)\)\s*(\w+)\s*damage", re.IGNORECASE)


def is_attack(description: str) -> bool:
    """True if the description carries a melee/ranged attack marker."""
    return bool(description) and bool(ATTACK_MARKER_RE.search(description))


def parse_attack_info(description: str) -> AttackInfo | None:
    """Extract to-hit, reach/range and the Hit: damage clause.

    Returns None when no attack line is present. A "Melee or Ranged"
    attack is recorded as melee with its reach.
    """
    if not description:
        return None
    attack = ATTACK_RE.search(description)
    if not attack:
        return None
    kind = attack.group(1).lower()
    damage = DAMAGE_RE.search(description)
    return AttackInfo(
        type="ranged" if kind == "ranged" else "melee",
        to_hit=int(attack.group(2)),
        range=attack.group(3),
        avg_damage=int(damage.group(1)) if damage else 0,
        damage_dice=damage.group(2).strip() if damage else "",
        damage_type=damage.group(3).lower() if damage else "",
    )


def make_ability(name: str, description: str) -> Ability:
    """Build an Ability, classifying the description as attack or not."""
    desc = re.sub(r"\s+", " ", description or "").strip()
    return Ability(
        name=(name or "").strip() or "Unnamed Ability",
        description=desc,
        is_attack=is_attack(desc),
        attack_info=parse_attack_info(desc),
    )


def make_attack(
    name: str,
    description: str,
    kind: str,
    to_hit: int,
    reach: str,
    damage_dice: str,
    damage_type: str,
) -> Ability:
    """Build an attack Ability from already-separated fields.

    Used by dialects whose attack lines do not follow the 5e prose
    layout (3.5e full attacks, OSR attack lists, PF2e strikes).
    """
    return Ability(
        name=(name or "").strip() or "Attack",
        description=description,
        is_attack=True,
        attack_info=AttackInfo(
            type="ranged" if kind == "ranged" else "melee",
            to_hit=to_hit,
            range=reach,
            damage_dice=damage_dice,
            damage_type=damage_type.lower(),
            avg_damage=average_damage(damage_dice),
        ),
    )


# =============================================================================
# Ability splitting
# =============================================================================

MAX_NAME_WORDS = 8

# Lines starting with these words continue the previous entry.
_CONTINUATION_WORDS = (
    "Hit", "Miss", "Melee", "Ranged", "Trigger", "Response", "Failure",
    "Success", "Each", "The", "This", "It", "Its", "If", "When", "While",
    "A", "An", "On", "Until", "After",
)
_ENTRY_START_RE = re.compile(
    r"^(?!(?:%s)\b)([A-Z][^.\n]*?)\.(?:\s+(.*))?$" % "|".join(_CONTINUATION_WORDS)
)


def parse_abilities(section_text: str) -> list[Ability]:
    """Split a section into "Name. Description" entries.

    A new entry starts on a line beginning with a capitalized name of at
    most eight words followed by a period. Following lines that do not
    start a new entry are joined onto the current description. Text
    before the first entry is discarded.
    """
    if not section_text:
        return []

    entries: list[tuple[str, list[str]]] = []
    for raw_line in section_text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        match = _ENTRY_START_RE.match(line)
        if match and len(match.group(1).split()) <= MAX_NAME_WORDS:
            entries.append((match.group(1).strip(), [match.group(2) or ""]))
        elif entries:
            entries[-1][1].append(line)

    return [make_ability(name, " ".join(parts)) for name, parts in entries]


# =============================================================================
# Legendary boilerplate
# =============================================================================

_LEGENDARY_BOILERPLATE = [
    re.compile(r"[^.]*can take \d+ legendary action[^.]*\.\s*", re.IGNORECASE),
    re.compile(r"[^.]*only one legendary action[^.]*\.\s*", re.IGNORECASE),
    re.compile(r"[^.]*regains spent legendary action[^.]*\.\s*", re.IGNORECASE),
    re.compile(r"[^.]*choosing from the options[^.]*\.\s*", re.IGNORECASE),
    # 2024 layout
    re.compile(r"[^.]*Legendary Action Uses:[^.]*\.\s*", re.IGNORECASE),
    re.compile(r"[^.]*can expend a use to take one of the following[^.]*\.\s*", re.IGNORECASE),
    re.compile(r"[^.]*regains all expended uses[^.]*\.\s*", re.IGNORECASE),
]


def strip_legendary_boilerplate(text: str) -> str:
    """Remove the introductory legendary-action sentences.

    These sentences explain the legendary action economy and would
    otherwise be parsed as abilities of their own.
    """
    if not text:
        return ""
    cleaned = text
    for pattern in _LEGENDARY_BOILERPLATE:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


# =============================================================================
# Section tokenizer
# =============================================================================

SECTION_NAMES = (
    "traits",
    "actions",
    "bonus_actions",
    "reactions",
    "legendary_actions",
    "lair_actions",
)

# Header lines, searched independently. Traits start where the stat header
# ends, or at an explicit "Traits" line (2024 layout) after it.
_TRAITS_HEADER_RE = re.compile(r"\n\s*(?:Traits?|Special Abilities)\s*\n", re.IGNORECASE)

SECTION_HEADER_PATTERNS: dict[str, re.Pattern] = {
    "actions": re.compile(r"\n\s*Actions?\s*\n", re.IGNORECASE),
    "bonus_actions": re.compile(r"\n\s*Bonus Actions?\s*\n", re.IGNORECASE),
    "reactions": re.compile(r"\n\s*Reactions?\s*\n", re.IGNORECASE),
    "legendary_actions": re.compile(r"\n\s*Legendary Actions?\s*\n", re.IGNORECASE),
    "lair_actions": re.compile(r"\n\s*Lair Actions?\s*\n", re.IGNORECASE),
}

_HEADER_WORD_RE = re.compile(
    r"^(?:Traits?|Special Abilities|Actions?|Bonus Actions?|Reactions?|"
    r"Legendary Actions?|Lair Actions?)\s*(?:\n|$)",
    re.IGNORECASE,
)


class SectionSpan(NamedTuple):
    name: str
    start: int
    end: int


def tokenize_sections(text: str, header_end: int = 0) -> list[SectionSpan]:
    """Locate the ability sections of a stat block.

    Args:
        text: Normalized stat block text
        header_end: Offset where the stat header ends; the traits span
            starts here

    Returns:
        Spans ordered by start offset. Each span ends where the next one
        begins; the last ends at the end of the text. Sections whose
        header is absent are omitted.
    """
    if not text:
        return []
    traits_start = max(0, min(header_end, len(text)))
    traits_header = _TRAITS_HEADER_RE.search(text, traits_start)
    if traits_header:
        traits_start = traits_header.start()
    starts: list[tuple[str, int]] = [("traits", traits_start)]
    for name, pattern in SECTION_HEADER_PATTERNS.items():
        match = pattern.search(text)
        if match:
            starts.append((name, match.start()))
    starts.sort(key=lambda item: item[1])

    spans: list[SectionSpan] = []
    for i, (name, start) in enumerate(starts):
        end = starts[i + 1][1] if i + 1 < len(starts) else len(text)
        spans.append(SectionSpan(name, start, end))
    return spans


def split_sections(text: str, header_end: int = 0) -> dict[str, str]:
    """Slice a stat block into its six sections, header words removed."""
    sections = {name: "" for name in SECTION_NAMES}
    for span in tokenize_sections(text, header_end):
        content = text[span.start:span.end].strip()
        content = _HEADER_WORD_RE.sub("", content, count=1)
        sections[span.name] = content.strip()
    logger.debug(
        "Sections found: %s",
        ", ".join(name for name, content in sections.items() if content) or "none",
    )
    return sections


__all__ = [
    "ATTACK_MARKER_RE",
    "is_attack",
    "parse_attack_info",
    "make_ability",
    "make_attack",
    "parse_abilities",
    "strip_legendary_boilerplate",
    "SECTION_NAMES",
    "SectionSpan",
    "tokenize_sections",
    "split_sections",
]
