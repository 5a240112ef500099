"""
System and format detection for raw stat block input.

Text input is scored by signature density: for every rules system, the
share of its characteristic regexes that match the normalized text. JSON
input is scored structurally by ``extractors.json_formats.scoring``.
Confidence values are advisory and never gate conversion.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from .config import ConverterSettings
from .extractors.json_formats.scoring import (
    JsonFormat,
    detect_json_format,
    looks_like_json,
    try_decode,
)
from .text_utils import normalize

logger = logging.getLogger("statblock-converter.detection")

_I = re.IGNORECASE

# Evaluation order doubles as tie-break priority: the earlier system wins.
SYSTEM_PATTERNS: dict[str, list[re.Pattern]] = {
    "pf2e": [
        re.compile(r"Perception\s*\+\d+[;,]", _I),
        re.compile(r"^Level\s+\d+$", re.MULTILINE),
        re.compile(r"\[one-action\]|\[two-actions?\]|\[three-actions?\]|\[reaction\]|\[free-action\]", _I),
        re.compile(r"AC\s+\d+[;,]\s*Fort\s*\+\d+", _I),
        re.compile(r"HP\s+\d+[;,]", _I),
    ],
    "dnd35e": [
        re.compile(r"Hit Dice:\s*\d+d\d+", _I),
        re.compile(r"Full Attack:", _I),
        re.compile(r"Base Atk\s*\+\d+", _I),
        re.compile(r"Grapple\s*\+\d+", _I),
        re.compile(r"Space/Reach:", _I),
        re.compile(r"Fort\s*\+\d+,\s*Ref\s*\+\d+,\s*Will\s*\+\d+", _I),
    ],
    "osr": [
        re.compile(r"THAC0:?\s*\d+", _I),
        re.compile(r"Morale:\s*\d+", _I),
        re.compile(r"No\.\s*Appearing:", _I),
        re.compile(r"Treasure Type:", _I),
        re.compile(r"HD:\s*\d+", _I),
        re.compile(r"XP Value:\s*\d+", _I),
        re.compile(r"Movement:\s*\d+", _I),
    ],
    "dnd4e": [
        # Grouped so the alternation stays inside the parenthesis
        re.compile(r"\((?:Standard|Minor|Move|Free|Immediate\s+\w+)", _I),
        re.compile(r"At-Will|Encounter|Daily|Recharge", _I),
        re.compile(r"Level\s+\d+\s+\w+\s+\w+", _I),
        re.compile(r"HP\s+\d+;\s*Bloodied\s+\d+", _I),
        re.compile(r"Initiative\s*\+\d+", _I),
    ],
    "dnd5e": [
        re.compile(r"Challenge\s*[\d/]+\s*\([\d,]+\s*XP\)", _I),
        re.compile(r"^(?:Armor Class|AC)\s+\d+", _I | re.MULTILINE),
        re.compile(r"^(?:Hit Points|HP)\s+\d+\s*\(\d+d", _I | re.MULTILINE),
        re.compile(r"STR\s+\d+\s*\([+-]?\d+\)", _I),
    ],
}

SYSTEM_INFO: dict[str, dict[str, str]] = {
    "dnd5e": {"name": "D&D 5th Edition", "short_name": "5e"},
    "pf2e": {"name": "Pathfinder 2nd Edition", "short_name": "PF2e"},
    "dnd35e": {"name": "D&D 3.5e / Pathfinder 1e", "short_name": "3.5e/PF1e"},
    "osr": {"name": "OSR / B/X / Old-School", "short_name": "OSR"},
    "dnd4e": {"name": "D&D 4th Edition", "short_name": "4e"},
}


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of system detection.

    ``system`` is a registry id: a text system, ``json`` for unrecognized
    JSON or ``json-<format>`` for a recognized export dialect.
    """
    system: str
    confidence: float
    all_scores: dict[str, float] = field(default_factory=dict)
    json_format: str | None = None

    @property
    def is_json(self) -> bool:
        return self.json_format is not None

    @property
    def system_name(self) -> str:
        if self.json_format is not None:
            return JsonFormat(self.json_format).display_name
        return SYSTEM_INFO.get(self.system, {}).get("name", self.system)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "system": self.system,
            "systemName": self.system_name,
            "confidence": self.confidence,
            "allScores": dict(self.all_scores),
        }
        if self.json_format is not None:
            result["jsonFormat"] = self.json_format
        return result


def score_text(text: str) -> dict[str, float]:
    """Signature density per system for already-normalized text."""
    scores = {}
    for system, patterns in SYSTEM_PATTERNS.items():
        matches = sum(1 for pattern in patterns if pattern.search(text))
        scores[system] = matches / len(patterns)
    return scores


def detect_text(raw: Any, settings: ConverterSettings | None = None) -> DetectionResult:
    """Detect the rules system of a plain-text stat block.

    The best score wins with strict ``>``, so ties go to the system
    evaluated first. Below ``settings.detection_floor`` the result is
    the default system at ``settings.fallback_confidence``.
    """
    settings = settings or ConverterSettings()
    scores = score_text(normalize(raw))

    best_system, best_score = settings.default_system, 0.0
    for system, score in scores.items():
        if score > best_score:
            best_system, best_score = system, score

    if best_score < settings.detection_floor:
        logger.warning(
            f"No system reached {settings.detection_floor:.2f} (best {best_score:.2f}); "
            f"defaulting to {settings.default_system}"
        )
        return DetectionResult(settings.default_system, settings.fallback_confidence, scores)

    logger.debug(f"Detected {best_system} with confidence {best_score:.2f}; scores: {scores}")
    return DetectionResult(best_system, best_score, scores)


def detect(raw: Any, settings: ConverterSettings | None = None) -> DetectionResult:
    """Detect the system or JSON dialect of raw input.

    Args:
        raw: Stat block text, a JSON string, or decoded JSON (dict/list)
        settings: Detection thresholds (defaults to ``ConverterSettings()``)

    Returns:
        The detection result. JSON-looking strings that fail to decode
        are treated as text; this function never raises.
    """
    settings = settings or ConverterSettings()
    if looks_like_json(raw):
        ok, data = try_decode(raw)
        if ok:
            detection = detect_json_format(data, settings.json_format_threshold)
            return DetectionResult(
                system=detection.format.system_id,
                confidence=detection.confidence,
                all_scores=dict(detection.all_scores),
                json_format=detection.format.value,
            )
        logger.debug("Input looks like JSON but does not decode; scoring it as text")
    return detect_text(raw, settings)


__all__ = [
    "SYSTEM_PATTERNS",
    "SYSTEM_INFO",
    "DetectionResult",
    "score_text",
    "detect_text",
    "detect",
]
