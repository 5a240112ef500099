"""
Parser registry and dispatch.

``ParserRegistry`` is an explicit, read-only map from system id to
extractor. It is built once (``build_default_registry``) and passed to
whoever needs to parse; nothing registers itself at import time.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping

from .config import ConverterSettings, ParseOptions
from .detection import DetectionResult, detect
from .exceptions import InvalidJSONError, UnknownSystemError
from .extractors import (
    DECODERS,
    TEXT_EXTRACTORS,
    JsonDecoder,
    JsonExtractor,
    StatblockExtractor,
    SystemInfo,
    WorldAnvilDecoder,
)
from .models import CanonicalCreature, ParseMeta

logger = logging.getLogger("statblock-converter.registry")

AUTO = "auto"


class ParserRegistry:
    """Read-only mapping of system ids to extractors.

    Args:
        extractors: System id -> extractor instance
        default_system: Id used when an unknown id is looked up with
            ``get_parser``; must be registered
        settings: Detection thresholds used by ``detect`` and ``parse``
    """

    def __init__(
        self,
        extractors: Mapping[str, StatblockExtractor],
        default_system: str | None = None,
        settings: ConverterSettings | None = None,
    ):
        self.settings = settings or ConverterSettings()
        self.default_system = default_system or self.settings.default_system
        self._extractors: Mapping[str, StatblockExtractor] = MappingProxyType(dict(extractors))
        if self.default_system not in self._extractors:
            raise UnknownSystemError(self.default_system, self.ids())

    def __contains__(self, system_id: object) -> bool:
        return system_id in self._extractors

    def __len__(self) -> int:
        return len(self._extractors)

    def ids(self) -> list[str]:
        return list(self._extractors)

    @property
    def extractors(self) -> Mapping[str, StatblockExtractor]:
        return self._extractors

    def get_parser(self, system_id: str | None) -> StatblockExtractor:
        """Return the extractor for ``system_id``, or the default extractor.

        Never fails: an unknown id logs a warning and yields the default.
        """
        key = (system_id or "").strip().lower()
        extractor = self._extractors.get(key)
        if extractor is None:
            logger.warning(f"Unknown system '{system_id}'; using {self.default_system}")
            return self._extractors[self.default_system]
        return extractor

    def systems(self) -> list[SystemInfo]:
        """Listing entries for every registered id, in registration order."""
        entries = []
        for system_id, extractor in self._extractors.items():
            info = extractor.info
            entries.append(SystemInfo(system_id, info.name, info.short_name))
        return entries

    def detect(self, raw: Any) -> DetectionResult:
        return detect(raw, self.settings)

    def parse(
        self,
        raw: Any,
        options: ParseOptions | dict | str | None = None,
    ) -> CanonicalCreature:
        """Parse raw input into a CanonicalCreature.

        With ``options.system`` left at "auto" the input is detected
        first; any other value is used as-is and skips detection.

        Args:
            raw: Stat block text, a JSON string, or decoded JSON
            options: ``ParseOptions``, a dict, a bare system id, or None

        Returns:
            The creature, with ``meta`` describing how it was parsed

        Raises:
            UnknownSystemError: If an explicit system id is not registered
            InvalidJSONError: If an explicit JSON system is given a string
                that is not valid JSON
        """
        opts = ParseOptions.coerce(options)

        if opts.system == AUTO:
            detection = self.detect(raw)
            system_id, confidence = detection.system, detection.confidence
            extractor = self.get_parser(system_id)
            logger.debug(f"Auto-detected {system_id} ({confidence:.2f}); using {extractor!r}")
        else:
            system_id, confidence = opts.system, 1.0
            extractor = self._extractors.get(system_id)
            if extractor is None:
                error = UnknownSystemError(system_id, self.ids())
                logger.error(error.message)
                raise error

        try:
            creature = extractor.parse(raw)
        except InvalidJSONError as e:
            logger.error(f"Cannot parse input as {system_id}: {e.message}")
            raise

        if isinstance(extractor, JsonExtractor):
            # The auto-detecting extractor records its own format and score
            return creature
        return creature.model_copy(update={"meta": ParseMeta(
            system=system_id,
            system_name=extractor.display_name,
            confidence=confidence,
            json_format=extractor.json_format.value if isinstance(extractor, JsonDecoder) else None,
        )})


def build_default_registry(settings: ConverterSettings | None = None) -> ParserRegistry:
    """Registry with every built-in extractor.

    Registered ids: the five text systems, ``json``, one ``json-<format>``
    id per export dialect, and ``worldanvil`` as an alias for the World
    Anvil decoder.
    """
    settings = settings or ConverterSettings()
    extractors: dict[str, StatblockExtractor] = {}
    for extractor_cls in TEXT_EXTRACTORS:
        extractors[extractor_cls.system_id] = extractor_cls()
    extractors["json"] = JsonExtractor(settings.json_format_threshold)
    for fmt, decoder_cls in DECODERS.items():
        extractors[fmt.system_id] = decoder_cls()
    extractors["worldanvil"] = extractors[WorldAnvilDecoder.system_id]
    return ParserRegistry(extractors, settings.default_system, settings)


__all__ = [
    "AUTO",
    "ParserRegistry",
    "build_default_registry",
]
