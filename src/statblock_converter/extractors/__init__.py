"""
Stat block extractors.

One stateless extractor per input dialect, each turning raw input into a
``CanonicalCreature``:

- Text: ``dnd5e``, ``dnd35e``, ``osr``, ``pf2e``, ``dnd4e``
- JSON: ``json`` (auto-detected) and one ``json-<format>`` decoder per
  export tool
"""

from .base import StatblockExtractor, SystemInfo, finalize_creature, find_primary_attack
from .dnd35e import Dnd35eExtractor
from .dnd4e import Dnd4eExtractor
from .dnd5e import Dnd5eExtractor
from .json_formats import (
    DECODERS,
    CritterDbDecoder,
    FiveToolsDecoder,
    FoundryDecoder,
    ImprovedInitiativeDecoder,
    JsonDecoder,
    JsonExtractor,
    JsonFormat,
    Open5eDecoder,
    WorldAnvilDecoder,
)
from .osr import OsrExtractor
from .pf2e import Pf2eExtractor

TEXT_EXTRACTORS: tuple[type[StatblockExtractor], ...] = (
    Dnd5eExtractor,
    Dnd35eExtractor,
    OsrExtractor,
    Pf2eExtractor,
    Dnd4eExtractor,
)

__all__ = [
    "StatblockExtractor",
    "SystemInfo",
    "finalize_creature",
    "find_primary_attack",
    "TEXT_EXTRACTORS",
    "Dnd5eExtractor",
    "Dnd35eExtractor",
    "OsrExtractor",
    "Pf2eExtractor",
    "Dnd4eExtractor",
    "DECODERS",
    "JsonFormat",
    "JsonDecoder",
    "JsonExtractor",
    "FiveToolsDecoder",
    "Open5eDecoder",
    "WorldAnvilDecoder",
    "CritterDbDecoder",
    "FoundryDecoder",
    "ImprovedInitiativeDecoder",
]
