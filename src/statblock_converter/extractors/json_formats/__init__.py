"""
JSON stat block decoders.

Decoding is two steps: ``detect_json_format`` scores the object against
every known export dialect, then the ``DECODERS`` table maps the winning
``JsonFormat`` to its decoder. ``JsonExtractor`` combines both and is
registered under the plain ``json`` id.
"""

from __future__ import annotations

import logging
from typing import Any

from ...models import CanonicalCreature
from ..base import StatblockExtractor
from .base import JsonDecoder, load_json
from .critterdb import CritterDbDecoder
from .fivetools import FiveToolsDecoder
from .foundry import FoundryDecoder
from .improved_initiative import ImprovedInitiativeDecoder
from .open5e import Open5eDecoder
from .scoring import (
    DEFAULT_FORMAT_THRESHOLD,
    FormatDetection,
    JsonFormat,
    detect_json_format,
    first_object,
    looks_like_json,
    score_formats,
    try_decode,
)
from .worldanvil import WorldAnvilDecoder

logger = logging.getLogger("statblock-converter.extractors.json")

DECODERS: dict[JsonFormat, type[JsonDecoder]] = {
    JsonFormat.FIVETOOLS: FiveToolsDecoder,
    JsonFormat.OPEN5E: Open5eDecoder,
    JsonFormat.WORLDANVIL: WorldAnvilDecoder,
    JsonFormat.CRITTERDB: CritterDbDecoder,
    JsonFormat.FOUNDRY: FoundryDecoder,
    JsonFormat.IMPROVED_INITIATIVE: ImprovedInitiativeDecoder,
}

# Unrecognized JSON goes to the decoder that reads the most common key names
FALLBACK_FORMAT = JsonFormat.FIVETOOLS


def decoder_for(fmt: JsonFormat) -> JsonDecoder:
    """Instantiate the decoder for a format (UNKNOWN gets the fallback)."""
    return DECODERS.get(fmt, DECODERS[FALLBACK_FORMAT])()


class JsonExtractor(StatblockExtractor):
    """Auto-detecting JSON extractor.

    Scores the input against every dialect and hands it to the winning
    decoder. The detected format is recorded in ``meta.json_format``.
    """

    system_id = "json"
    display_name = "JSON (auto-detected)"
    short_name = "JSON"

    def __init__(self, threshold: float = DEFAULT_FORMAT_THRESHOLD):
        self.threshold = threshold

    def detect(self, raw: Any) -> FormatDetection:
        return detect_json_format(load_json(raw), self.threshold)

    def parse(self, raw: Any) -> CanonicalCreature:
        data = load_json(raw)
        detection = detect_json_format(data, self.threshold)
        decoder = decoder_for(detection.format)
        if detection.format is JsonFormat.UNKNOWN:
            logger.info(f"Falling back to {decoder.display_name} for unrecognized JSON")
        creature = decoder.parse(data)
        return creature.model_copy(update={
            "meta": creature.meta.model_copy(update={
                "system": detection.format.system_id,
                "system_name": detection.format.display_name,
                "confidence": detection.confidence,
                "json_format": detection.format.value,
            }),
        })


__all__ = [
    "DECODERS",
    "FALLBACK_FORMAT",
    "JsonFormat",
    "FormatDetection",
    "JsonDecoder",
    "JsonExtractor",
    "decoder_for",
    "detect_json_format",
    "score_formats",
    "looks_like_json",
    "try_decode",
    "first_object",
    "load_json",
    "FiveToolsDecoder",
    "Open5eDecoder",
    "WorldAnvilDecoder",
    "CritterDbDecoder",
    "FoundryDecoder",
    "ImprovedInitiativeDecoder",
]
