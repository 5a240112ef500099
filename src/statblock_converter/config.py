"""
Configuration models for the stat block converter.

``ConverterSettings`` holds the tunable thresholds of the detection
pipeline. ``ParseOptions`` and ``ConversionOptions`` are the per-call
option objects accepted by ``parse`` and ``convert``.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger("statblock-converter.config")

TEXT_SYSTEMS = ("pf2e", "dnd35e", "osr", "dnd4e", "dnd5e")

ENV_PREFIX = "STATBLOCK_"


class ConverterSettings(BaseModel):
    """Tunable thresholds for system and format detection.

    The defaults reproduce the behaviour every caller expects; override
    them only when experimenting with detection quality.
    """

    model_config = ConfigDict(frozen=True)

    detection_floor: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Minimum text detection score before falling back to the default system",
    )
    fallback_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confidence reported when detection falls back to the default system",
    )
    json_format_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum JSON dialect score; below it the format is 'unknown'",
    )
    default_system: str = Field(
        default="dnd5e",
        description="Text system used when detection is inconclusive or a system id is unknown",
    )
    max_input_chars: int = Field(
        default=100_000,
        gt=0,
        description="Upper bound on a single stat block's length in batch mode",
    )

    @field_validator("default_system")
    @classmethod
    def validate_default_system(cls, v: str) -> str:
        """Validate that the default system is a known text system."""
        v = v.strip().lower()
        if v not in TEXT_SYSTEMS:
            raise ValueError(
                f"default_system must be one of {', '.join(TEXT_SYSTEMS)}, got '{v}'"
            )
        return v

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ConverterSettings":
        """Build settings from ``STATBLOCK_*`` environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings with any provided overrides applied
        """
        env = os.environ if environ is None else environ
        mapping = {
            "detection_floor": "DETECTION_FLOOR",
            "fallback_confidence": "FALLBACK_CONFIDENCE",
            "json_format_threshold": "JSON_THRESHOLD",
            "default_system": "DEFAULT_SYSTEM",
            "max_input_chars": "MAX_INPUT_CHARS",
        }
        values: dict[str, Any] = {}
        for field_name, suffix in mapping.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        if values:
            logger.debug(f"Settings overrides from environment: {sorted(values)}")
        return cls(**values)


class ParseOptions(BaseModel):
    """Options accepted by ``parse``."""

    system: str = Field(
        default="auto",
        description="System id to parse with, or 'auto' to run detection first",
    )

    @field_validator("system", mode="before")
    @classmethod
    def normalize_system(cls, v: Any) -> str:
        if v is None:
            return "auto"
        return str(v).strip().lower() or "auto"

    @classmethod
    def coerce(cls, options: "ParseOptions | dict | str | None") -> "ParseOptions":
        """Accept an options object, a plain dict, a bare system id, or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, str):
            return cls(system=options)
        return cls(**options)


_FIELD_ALIASES = {
    "type": "adv_type",
    "adv_type": "type",
    "imageUrl": "image_url",
    "image_url": "imageUrl",
}


class ConversionOptions(BaseModel):
    """Caller overrides for ``convert``.

    Every field is optional. Values that cannot be honoured (a tier
    outside 1-4, an unknown role) are replaced by defaults during
    conversion rather than rejected here, so building options never
    fails either.
    """

    model_config = ConfigDict(populate_by_name=True)

    tier: int | None = Field(default=None, description="Force a tier (1-4)")
    adv_type: str | None = Field(
        default=None,
        alias="type",
        description="Force an adversary role, e.g. 'Solo' or 'Minion'",
    )
    description: str | None = Field(default=None, description="Override generated description")
    motives: str | None = Field(default=None, description="Override generated motives")
    tactics: str | None = Field(default=None, description="Override generated tactics")
    image_url: str | None = Field(
        default=None,
        alias="imageUrl",
        description="Image URL attached to the adversary",
    )

    @field_validator("tier", mode="before")
    @classmethod
    def coerce_tier(cls, v: Any) -> int | None:
        if v is None or v == "":
            return None
        try:
            return int(v)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric tier option: {v!r}")
            return None

    @classmethod
    def coerce(cls, options: "ConversionOptions | dict | None") -> "ConversionOptions":
        """Accept an options object, a plain dict, or None.

        Fields that fail validation are dropped with a warning so that a
        bad override never prevents conversion.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        data = dict(options)
        try:
            return cls(**data)
        except ValidationError as exc:
            bad = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
            bad |= {_FIELD_ALIASES[b] for b in bad if b in _FIELD_ALIASES}
            logger.warning(f"Ignoring invalid conversion options: {sorted(bad)}")
            return cls(**{k: v for k, v in data.items() if k not in bad})


__all__ = [
    "TEXT_SYSTEMS",
    "ConverterSettings",
    "ParseOptions",
    "ConversionOptions",
]
