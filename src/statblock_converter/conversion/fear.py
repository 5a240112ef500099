"""
Fear cost detection.

A feature's Fear cost is resolved by an ordered rule list; the first rule
that yields a cost wins, so an explicit "(Fear 3)" always beats skull
glyphs, which beat description phrasing, which beats the action-cost and
per-day markers carried over from 5e.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, NamedTuple

EXPLICIT_FEAR_RE = re.compile(r"[(\[]\s*Fear\s*(\d+)\s*[)\]]", re.IGNORECASE)
SKULL_RE = re.compile("(?:\U0001F480|\u2620)\uFE0F?")
FEAR_PREFIX_RE = re.compile(r"^\s*Fear Feature\s*:\s*", re.IGNORECASE)
COSTS_ACTIONS_RE = re.compile(r"\(\s*Costs\s+(\d+)\s+Actions?\s*\)", re.IGNORECASE)
PER_DAY_RE = re.compile(r"\(\s*(\d+)\s*/\s*Day(?:\s+each)?\s*\)", re.IGNORECASE)

# (pattern, cost); a None cost means "use the captured number"
DESCRIPTION_PHRASES: list[tuple[re.Pattern, int | None]] = [
    (re.compile(r"Fear\s+Cost\s*:\s*(\d+)", re.IGNORECASE), None),
    (re.compile(r"\bcosts?\s+(\d+)\s+Fear\b", re.IGNORECASE), None),
    (re.compile(r"\bspend\s+(\d+)\s+Fear\b", re.IGNORECASE), None),
    (re.compile(r"\bspend\s+a\s+Fear\b", re.IGNORECASE), 1),
]


@dataclass(frozen=True)
class FearResult:
    """Detected cost plus the feature name with cost markers removed."""
    cost: int
    name: str
    rule: str | None = None


class FearRule(NamedTuple):
    name: str
    cost: Callable[[str, str], int | None]


def _explicit(name: str, description: str) -> int | None:
    match = EXPLICIT_FEAR_RE.search(name) or EXPLICIT_FEAR_RE.search(description)
    return int(match.group(1)) if match else None


def _skulls(name: str, description: str) -> int | None:
    count = len(SKULL_RE.findall(name))
    return count or None


def _prefix(name: str, description: str) -> int | None:
    if FEAR_PREFIX_RE.match(name) or FEAR_PREFIX_RE.match(description):
        return 1
    return None


def _phrasing(name: str, description: str) -> int | None:
    for pattern, fixed in DESCRIPTION_PHRASES:
        match = pattern.search(description)
        if match:
            return fixed if fixed is not None else int(match.group(1))
    return None


def _action_cost(name: str, description: str) -> int | None:
    costs = COSTS_ACTIONS_RE.search(name)
    if costs:
        return int(costs.group(1))
    per_day = PER_DAY_RE.search(name)
    if per_day:
        return 2 if int(per_day.group(1)) == 1 else 1
    return None


FEAR_RULES: list[FearRule] = [
    FearRule("explicit", _explicit),
    FearRule("skull glyphs", _skulls),
    FearRule("fear feature prefix", _prefix),
    FearRule("description", _phrasing),
    FearRule("action cost", _action_cost),
]


def clean_feature_name(name: str) -> str:
    """Strip Fear markers, skull glyphs, the prefix and cost markers."""
    for pattern in (EXPLICIT_FEAR_RE, SKULL_RE, FEAR_PREFIX_RE, COSTS_ACTIONS_RE, PER_DAY_RE):
        name = pattern.sub("", name)
    return re.sub(r"\s+", " ", name).strip() or "Feature"


def detect_fear_cost(name: str, description: str = "") -> FearResult:
    """Resolve the Fear cost of an ability.

    Args:
        name: Ability name as parsed
        description: Ability description

    Returns:
        The cost (0 when no rule applies), the cleaned name and the rule
        that decided it
    """
    name = name or ""
    description = description or ""
    for rule in FEAR_RULES:
        cost = rule.cost(name, description)
        if cost is not None and cost > 0:
            return FearResult(cost, clean_feature_name(name), rule.name)
    return FearResult(0, clean_feature_name(name))


def strip_fear_prefix(description: str) -> str:
    return FEAR_PREFIX_RE.sub("", description or "")


__all__ = [
    "FearResult",
    "FearRule",
    "FEAR_RULES",
    "clean_feature_name",
    "detect_fear_cost",
    "strip_fear_prefix",
]
