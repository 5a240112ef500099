"""
statblock-converter - Parse tabletop RPG monster stat blocks and convert them
to Daggerheart adversaries.

Typical use::

    from statblock_converter import parse, convert, render_markdown

    creature = parse(text)            # system auto-detected
    adversary = convert(creature)     # tier and role inferred
    print(render_markdown(adversary))
"""

from __future__ import annotations

from threading import Lock
from typing import Any

from .batch import BatchResult, parse_batch, split_blocks
from .config import ConversionOptions, ConverterSettings, ParseOptions
from .conversion import convert, infer_role, tier_from_cr
from .detection import DetectionResult
from .exceptions import InvalidJSONError, ParseError, StatblockError, UnknownSystemError
from .extractors import StatblockExtractor, SystemInfo
from .models import (
    Ability,
    AbilityScores,
    AdversaryType,
    ArmorClass,
    AttackInfo,
    CanonicalCreature,
    ChallengeRating,
    DamageInfo,
    Feature,
    FeatureAttack,
    FeatureType,
    HitPoints,
    ParseMeta,
    Speed,
    TargetStatBlock,
    TypeInfo,
)
from .registry import ParserRegistry, build_default_registry
from .rendering import render_markdown, render_text, to_export_dict

try:
    from importlib.metadata import PackageNotFoundError, version as _get_version
    __version__ = _get_version("statblock-converter")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Running from a source checkout

_default_registry: ParserRegistry | None = None
_registry_lock = Lock()


def default_registry() -> ParserRegistry:
    """The shared registry, built on first use from ``ConverterSettings.from_env()``."""
    global _default_registry
    if _default_registry is None:
        with _registry_lock:
            if _default_registry is None:
                _default_registry = build_default_registry(ConverterSettings.from_env())
    return _default_registry


def parse(raw: Any, options: ParseOptions | dict | str | None = None) -> CanonicalCreature:
    """Parse a stat block (text, JSON string, or decoded JSON) with the default registry."""
    return default_registry().parse(raw, options)


def detect(raw: Any) -> DetectionResult:
    """Detect the system or JSON dialect of raw input."""
    return default_registry().detect(raw)


def get_parser(system_id: str | None) -> StatblockExtractor:
    """Extractor for ``system_id``; unknown ids yield the default system's extractor."""
    return default_registry().get_parser(system_id)


def systems() -> list[SystemInfo]:
    return default_registry().systems()


__all__ = [
    # Entry points
    "parse",
    "convert",
    "detect",
    "get_parser",
    "systems",
    "default_registry",
    "parse_batch",
    "split_blocks",
    "render_markdown",
    "render_text",
    "to_export_dict",
    "infer_role",
    "tier_from_cr",
    # Registry and configuration
    "ParserRegistry",
    "build_default_registry",
    "ConverterSettings",
    "ParseOptions",
    "ConversionOptions",
    "DetectionResult",
    "BatchResult",
    "StatblockExtractor",
    "SystemInfo",
    # Models
    "Ability",
    "AbilityScores",
    "AdversaryType",
    "ArmorClass",
    "AttackInfo",
    "CanonicalCreature",
    "ChallengeRating",
    "DamageInfo",
    "Feature",
    "FeatureAttack",
    "FeatureType",
    "HitPoints",
    "ParseMeta",
    "Speed",
    "TargetStatBlock",
    "TypeInfo",
    # Exceptions
    "StatblockError",
    "ParseError",
    "InvalidJSONError",
    "UnknownSystemError",
]
