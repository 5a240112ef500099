"""
Base class and value helpers shared by the JSON decoders.

Exported JSON is loosely typed: a field documented as an object may be a
string, a number may arrive quoted, a list may be missing. The helpers
here read such values defensively so that every decoder stays total.
"""

from __future__ import annotations

import json
import logging
from abc import abstractmethod
from typing import Any, Callable, Iterable

from ...abilities import make_ability
from ...exceptions import InvalidJSONError
from ...models import Ability, CanonicalCreature
from ...text_utils import split_list, to_int
from ..base import StatblockExtractor
from .scoring import JsonFormat, first_object

logger = logging.getLogger("statblock-converter.extractors.json")

SIZE_WORDS = ("Tiny", "Small", "Medium", "Large", "Huge", "Gargantuan")
SIZE_CODES = {
    "t": "Tiny", "tiny": "Tiny",
    "s": "Small", "sm": "Small", "small": "Small",
    "m": "Medium", "med": "Medium", "medium": "Medium",
    "l": "Large", "lg": "Large", "large": "Large",
    "h": "Huge", "huge": "Huge",
    "g": "Gargantuan", "grg": "Gargantuan", "gargantuan": "Gargantuan",
}


class JsonDecoder(StatblockExtractor):
    """A decoder for one JSON dialect.

    ``parse`` accepts a decoded object, a list (its first element is
    used) or a JSON string; subclasses implement ``decode`` for a single
    object.
    """

    json_format: JsonFormat = JsonFormat.UNKNOWN
    short_name = "JSON"

    def parse(self, raw: Any) -> CanonicalCreature:
        obj = first_object(load_json(raw)) or {}
        creature = self.decode(obj)
        logger.debug(
            f"Decoded {self.json_format.value} creature '{creature.name}': "
            f"{len(creature.actions)} actions, {len(creature.traits)} traits"
        )
        return creature

    @abstractmethod
    def decode(self, obj: dict[str, Any]) -> CanonicalCreature:
        """Map one exported object onto a CanonicalCreature."""


def load_json(raw: Any) -> Any:
    """Decode a JSON string; containers pass through unchanged.

    Raises:
        InvalidJSONError: If ``raw`` is a string that is not valid JSON
    """
    if not isinstance(raw, (str, bytes, bytearray)):
        return raw
    try:
        return json.loads(raw)
    except ValueError as e:
        position = getattr(e, "pos", None)
        raise InvalidJSONError(f"Invalid JSON: {e}", position=position) from e


# =============================================================================
# Value helpers
# =============================================================================

def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def as_text(value: Any) -> str:
    """Strings pass through, numbers are formatted, anything else is ''."""
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value).strip()
    return ""


def dig(obj: Any, *path: str) -> Any:
    """Follow nested keys, returning None at the first non-object step."""
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def score_value(value: Any, default: int = 10) -> int:
    """An ability score or other positive stat; zero and junk mean default."""
    return to_int(value, default) or default


def size_word(value: Any, default: str = "Medium") -> str:
    if isinstance(value, list):
        value = value[0] if value else None
    text = as_text(value)
    if not text:
        return default
    return SIZE_CODES.get(text.lower(), text[:1].upper() + text[1:].lower())


def text_items(value: Any, nested_keys: Iterable[str] = ()) -> list[str]:
    """Flatten a damage or language list.

    Accepts a comma separated string, a list of strings, or 5etools
    style nested objects such as ``{"resist": [...], "note": "..."}``
    and ``{"special": "..."}``.
    """
    if isinstance(value, str):
        return split_list(value)
    items: list[str] = []
    for item in as_list(value):
        if isinstance(item, str):
            items.extend(split_list(item))
        elif isinstance(item, dict):
            for key in nested_keys:
                if key in item:
                    items.extend(text_items(item[key], nested_keys))
            if isinstance(item.get("special"), str):
                items.append(item["special"].strip())
    return [i for i in items if i]


def named_abilities(
    value: Any,
    name_key: str = "name",
    desc_key: str = "desc",
    clean: Callable[[Any], str] | None = None,
) -> list[Ability]:
    """Build abilities from a list of ``{name, desc}`` style objects.

    Args:
        value: The exported list (anything else yields no abilities)
        name_key: Key holding the ability name
        desc_key: Key holding the description
        clean: Converts the raw description to plain text

    Returns:
        Abilities in source order; entries with neither name nor
        description are skipped.
    """
    abilities: list[Ability] = []
    for item in as_list(value):
        if not isinstance(item, dict):
            continue
        name = as_text(item.get(name_key))
        raw_desc = item.get(desc_key)
        desc = clean(raw_desc) if clean else as_text(raw_desc)
        if not name and not desc:
            continue
        abilities.append(make_ability(name, desc))
    return abilities


def skills_from_pairs(value: Any, name_key: str, value_key: str) -> dict[str, int]:
    """Skills given as ``[{"Name": "Stealth", "Modifier": 6}]``."""
    skills: dict[str, int] = {}
    for item in as_list(value):
        if isinstance(item, dict):
            name = as_text(item.get(name_key)).lower()
            if name:
                skills[name] = to_int(item.get(value_key), 0)
    return skills


def legendary_count(abilities: list[Ability], explicit: Any = None) -> int:
    """The explicit count when given, else 3 for any legendary list."""
    if not abilities:
        return 0
    return to_int(explicit, 0) or 3


__all__ = [
    "SIZE_WORDS",
    "SIZE_CODES",
    "JsonDecoder",
    "load_json",
    "as_dict",
    "as_list",
    "as_text",
    "dig",
    "score_value",
    "size_word",
    "text_items",
    "named_abilities",
    "skills_from_pairs",
    "legendary_count",
]
