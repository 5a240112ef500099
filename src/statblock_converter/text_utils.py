"""
Shared text and numeric helpers used by every extractor.

Everything here is total: bad input yields a default, never an exception.
"""

from __future__ import annotations

import math
import re
from typing import Any, NamedTuple

from .models import ChallengeRating

# Challenge rating strings to numeric values.
CR_VALUES: dict[str, float] = {
    "0": 0.0,
    "1/8": 0.125,
    "1/4": 0.25,
    "1/2": 0.5,
    **{str(n): float(n) for n in range(1, 31)},
}

DEFAULT_CR = ChallengeRating(string="1", numeric=1.0)
_CR_FRACTIONS = {value: key for key, value in CR_VALUES.items() if "/" in key}

_CRLF_RE = re.compile(r"\r\n?")
_SPACES_RE = re.compile(r" {2,}")
_DICE_RE = re.compile(r"(\d+)\s*d\s*(\d+)(?:\s*([+-])\s*(\d+))?", re.IGNORECASE)
_CR_TOKEN_RE = re.compile(r"^\s*([\d/.]+)")
_LIST_SPLIT_RE = re.compile(r"\s*[,;]\s*")

_CHAR_MAP = str.maketrans({
    "\t": " ",
    "\u2014": "-",
    "\u2013": "-",
    "\u2212": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u00a0": " ",
})


def normalize(text: Any) -> str:
    """Canonicalize pasted stat block text.

    Unifies line endings, turns tabs into spaces, collapses runs of
    spaces, replaces em/en dashes with hyphens and smart quotes with
    plain ones, then strips surrounding whitespace.
    """
    if not isinstance(text, str) or not text:
        return ""
    text = _CRLF_RE.sub("\n", text)
    text = text.translate(_CHAR_MAP)
    text = _SPACES_RE.sub(" ", text)
    return text.strip()


def ability_modifier(score: int) -> int:
    """Standard ability modifier: floor((score - 10) / 2)."""
    return math.floor((score - 10) / 2)


class DiceRange(NamedTuple):
    min: int
    max: int
    avg: int


def dice_range(expr: str | None) -> DiceRange | None:
    """Compute min/max/average for an ``NdM[+/-K]`` expression.

    Returns None when the expression contains no dice term.

    Example:
        >>> dice_range("2d6+3")
        DiceRange(min=5, max=15, avg=10)
    """
    if not expr:
        return None
    match = _DICE_RE.search(str(expr))
    if not match:
        return None
    count, sides = int(match.group(1)), int(match.group(2))
    bonus = int(match.group(4)) if match.group(4) else 0
    if match.group(3) == "-":
        bonus = -bonus
    low = count + bonus
    high = count * sides + bonus
    return DiceRange(min=low, max=high, avg=math.floor((low + high) / 2))


def average_damage(expr: str | None, default: int = 0) -> int:
    """Average of a dice expression, or ``default`` if it has no dice."""
    rng = dice_range(expr)
    return rng.avg if rng else default


def find_dice(text: str | None) -> str | None:
    """Return the first dice expression found in ``text``, as written."""
    if not text:
        return None
    match = _DICE_RE.search(text)
    return match.group(0).strip() if match else None


def parse_cr(value: Any) -> ChallengeRating:
    """Resolve a challenge rating from a string, number or None.

    Uses the fixed CR table first (so '1/8' is exactly 0.125), then a
    plain float conversion, then falls back to CR 1.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_CR
    if isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            return DEFAULT_CR
        text = _CR_FRACTIONS.get(float(value), f"{value:g}")
        return ChallengeRating(string=text, numeric=float(value))
    text = str(value).strip()
    match = _CR_TOKEN_RE.match(text)
    token = match.group(1) if match else text
    if not token:
        return DEFAULT_CR
    if token in CR_VALUES:
        return ChallengeRating(string=token, numeric=CR_VALUES[token])
    try:
        numeric = float(token)
    except ValueError:
        if "/" in token:
            numerator, _, denominator = token.partition("/")
            try:
                numeric = float(numerator) / float(denominator)
            except (ValueError, ZeroDivisionError):
                return DEFAULT_CR
        else:
            return DEFAULT_CR
    if math.isnan(numeric) or math.isinf(numeric):
        return DEFAULT_CR
    return ChallengeRating(string=token, numeric=numeric)


def split_list(text: Any) -> list[str]:
    """Split a comma/semicolon separated list, dropping filler.

    A bare '-' or 'none' means an empty list.
    """
    if isinstance(text, (list, tuple)):
        return [str(item).strip() for item in text if str(item).strip()]
    if not isinstance(text, str):
        return []
    cleaned = text.strip().rstrip(".")
    if cleaned.lower() in ("", "-", "none", "--"):
        return []
    items = []
    for item in _LIST_SPLIT_RE.split(cleaned):
        item = re.sub(r"^(?:and|or)\s+", "", item.strip(), flags=re.IGNORECASE)
        if item:
            items.append(item)
    return items


def to_int(value: Any, default: int) -> int:
    """Lenient int conversion for loose JSON values.

    Strings contribute their leading integer ("32hp" -> 32); anything
    unusable yields ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return default if math.isnan(value) or math.isinf(value) else int(value)
    if isinstance(value, str):
        match = re.match(r"\s*([+-]?\d+)", value)
        if match:
            return int(match.group(1))
    return default


def slugify(name: str) -> str:
    """Lower-case slug with runs of non-alphanumerics collapsed to '-'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower())


__all__ = [
    "CR_VALUES",
    "DEFAULT_CR",
    "DiceRange",
    "normalize",
    "ability_modifier",
    "dice_range",
    "average_damage",
    "find_dice",
    "parse_cr",
    "split_list",
    "to_int",
    "slugify",
]
