"""
Structural scoring of JSON stat block exports.

Each supported tool names its fields differently, so the dialect is
recognized purely from structure: every scorer counts the dialect's
characteristic keys and adds weight for its distinctive shapes. Scorers
are pure functions of one decoded object and never raise.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from ...markup import has_bbcode

logger = logging.getLogger("statblock-converter.detection.json")

DEFAULT_FORMAT_THRESHOLD = 0.3


class JsonFormat(str, Enum):
    """Known JSON export dialects, in scoring priority order."""
    FIVETOOLS = "fivetools"
    OPEN5E = "open5e"
    WORLDANVIL = "worldanvil"
    CRITTERDB = "critterdb"
    FOUNDRY = "foundry"
    IMPROVED_INITIATIVE = "improvedinitiative"
    UNKNOWN = "unknown"

    @property
    def system_id(self) -> str:
        """Registry id of the decoder for this format."""
        if self is JsonFormat.UNKNOWN:
            return "json"
        return f"json-{self.value}"

    @property
    def display_name(self) -> str:
        return FORMAT_NAMES[self]


FORMAT_NAMES: dict[JsonFormat, str] = {
    JsonFormat.FIVETOOLS: "5e.tools JSON",
    JsonFormat.OPEN5E: "Open5e/SRD JSON",
    JsonFormat.WORLDANVIL: "World Anvil JSON",
    JsonFormat.CRITTERDB: "CritterDB JSON",
    JsonFormat.FOUNDRY: "Foundry VTT JSON",
    JsonFormat.IMPROVED_INITIATIVE: "Improved Initiative JSON",
    JsonFormat.UNKNOWN: "Unknown JSON",
}


@dataclass(frozen=True)
class FormatDetection:
    """Outcome of JSON dialect scoring."""
    format: JsonFormat
    confidence: float
    all_scores: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "format": self.format.value,
            "confidence": self.confidence,
            "allScores": dict(self.all_scores),
        }


# =============================================================================
# Input helpers
# =============================================================================

def looks_like_json(raw: Any) -> bool:
    """True for decoded containers and for strings bracketed like JSON."""
    if isinstance(raw, (dict, list)):
        return True
    if not isinstance(raw, str):
        return False
    stripped = raw.strip()
    return (stripped.startswith("{") and stripped.endswith("}")) or (
        stripped.startswith("[") and stripped.endswith("]")
    )


def try_decode(raw: Any) -> tuple[bool, Any]:
    """Decode JSON-looking input.

    Returns:
        ``(True, data)`` when ``raw`` is already a container or decodes
        cleanly, ``(False, None)`` otherwise.
    """
    if isinstance(raw, (dict, list)):
        return True, raw
    if not looks_like_json(raw):
        return False, None
    try:
        return True, json.loads(raw)
    except ValueError:
        return False, None


def first_object(data: Any) -> dict[str, Any] | None:
    """The object to score or decode: arrays contribute their first element."""
    if isinstance(data, list):
        data = data[0] if data else None
    return data if isinstance(data, dict) else None


# =============================================================================
# Scorers
# =============================================================================

FIVETOOLS_KEYS = (
    "source", "size", "type", "ac", "hp", "speed", "str", "dex", "con",
    "int", "wis", "cha", "cr", "trait", "action",
)
OPEN5E_KEYS = (
    "Armor Class", "Hit Points", "Speed", "STR", "DEX", "CON", "INT", "WIS",
    "CHA", "Challenge", "Actions", "Traits",
)
WORLDANVIL_KEYS = (
    "challenge_rating", "armor_class", "hit_points", "special_abilities",
    "base_movement_in_ft", "strength", "dexterity", "constitution",
)
CRITTERDB_KEYS = ("stats", "armor", "hitPoints", "challenge", "abilities")
IMPROVED_INITIATIVE_KEYS = (
    "HP", "AC", "InitiativeModifier", "Abilities", "DamageVulnerabilities",
    "DamageResistances", "DamageImmunities",
)


def _key_share(obj: dict, keys: tuple[str, ...], weight: float) -> float:
    return sum(1 for key in keys if key in obj) / len(keys) * weight


def _has_key(value: Any, key: str) -> bool:
    return isinstance(value, dict) and key in value


def score_fivetools(obj: dict) -> float:
    score = _key_share(obj, FIVETOOLS_KEYS, 0.5)
    if _has_key(obj.get("hp"), "average"):
        score += 0.2
    if isinstance(obj.get("ac"), list):
        score += 0.15
    if _has_key(obj.get("speed"), "walk"):
        score += 0.1
    if isinstance(obj.get("source"), str):
        score += 0.1
    if isinstance(obj.get("trait"), list):
        score += 0.1
    return min(1.0, score)


def score_open5e(obj: dict) -> float:
    score = _key_share(obj, OPEN5E_KEYS, 0.6)
    if isinstance(obj.get("meta"), str):
        score += 0.2
    if "STR_mod" in obj or "DEX_mod" in obj:
        score += 0.15
    actions = obj.get("Actions")
    if isinstance(actions, str) and "<p>" in actions:
        score += 0.1
    if "img_url" in obj:
        score += 0.05
    return min(1.0, score)


def score_worldanvil(obj: dict) -> float:
    score = _key_share(obj, WORLDANVIL_KEYS, 0.6)
    if isinstance(obj.get("types"), str):
        score += 0.15
    if "templateId" in obj or "blockId" in obj:
        score += 0.2
    if any(has_bbcode(obj.get(key)) for key in ("special_abilities", "actions", "description")):
        score += 0.2
    return min(1.0, score)


def score_critterdb(obj: dict) -> float:
    score = _key_share(obj, CRITTERDB_KEYS, 0.5)
    if _has_key(obj.get("stats"), "strength"):
        score += 0.25
    if _has_key(obj.get("armor"), "value"):
        score += 0.15
    if "flavor" in obj:
        score += 0.1
    return min(1.0, score)


def score_foundry(obj: dict) -> float:
    score = 0.0
    if obj.get("system") or obj.get("data"):
        score += 0.3
    if obj.get("type") in ("npc", "character"):
        score += 0.2
    if obj.get("prototypeToken") or obj.get("token"):
        score += 0.15
    if isinstance(obj.get("items"), list):
        score += 0.15
    if obj.get("flags"):
        score += 0.1
    if isinstance(obj.get("_id"), str):
        score += 0.1
    return min(1.0, score)


def score_improved_initiative(obj: dict) -> float:
    score = _key_share(obj, IMPROVED_INITIATIVE_KEYS, 0.5)
    if _has_key(obj.get("Abilities"), "Str"):
        score += 0.25
    if "InitiativeModifier" in obj:
        score += 0.15
    if "Player" in obj:
        score += 0.1
    if _has_key(obj.get("HP"), "Value"):
        score += 0.1
    return min(1.0, score)


SCORERS: dict[JsonFormat, Callable[[dict], float]] = {
    JsonFormat.FIVETOOLS: score_fivetools,
    JsonFormat.OPEN5E: score_open5e,
    JsonFormat.WORLDANVIL: score_worldanvil,
    JsonFormat.CRITTERDB: score_critterdb,
    JsonFormat.FOUNDRY: score_foundry,
    JsonFormat.IMPROVED_INITIATIVE: score_improved_initiative,
}


def score_formats(data: Any) -> dict[JsonFormat, float]:
    """Score every dialect; all zero for empty or non-object input."""
    obj = first_object(data)
    if obj is None:
        return {fmt: 0.0 for fmt in SCORERS}
    return {fmt: round(scorer(obj), 4) for fmt, scorer in SCORERS.items()}


def detect_json_format(data: Any, threshold: float = DEFAULT_FORMAT_THRESHOLD) -> FormatDetection:
    """Pick the best-scoring dialect.

    The highest score wins with strict ``>``, so ties go to the dialect
    listed first. Below ``threshold`` the format is ``UNKNOWN``.
    """
    scores = score_formats(data)
    best, best_score = JsonFormat.UNKNOWN, 0.0
    for fmt, score in scores.items():
        if score > best_score:
            best, best_score = fmt, score

    all_scores = {fmt.value: score for fmt, score in scores.items()}
    if best_score < threshold:
        logger.warning(f"Unrecognized JSON format (best score {best_score:.2f})")
        return FormatDetection(JsonFormat.UNKNOWN, best_score, all_scores)

    logger.debug(f"JSON format scores: {all_scores}; chose {best.value}")
    return FormatDetection(best, best_score, all_scores)


__all__ = [
    "DEFAULT_FORMAT_THRESHOLD",
    "JsonFormat",
    "FORMAT_NAMES",
    "FormatDetection",
    "looks_like_json",
    "try_decode",
    "first_object",
    "score_fivetools",
    "score_open5e",
    "score_worldanvil",
    "score_critterdb",
    "score_foundry",
    "score_improved_initiative",
    "SCORERS",
    "score_formats",
    "detect_json_format",
]
