"""
Ability to Feature translation.

Known abilities are replaced by curated templates loaded from
``data/feature_templates.yaml``. Everything else keeps its own text,
rewritten into Daggerheart terms, with its Fear cost and feature type
inferred by ordered rules.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, NamedTuple

import yaml
from pydantic import BaseModel, Field

from ..abilities import is_attack
from ..models import Ability, Feature, FeatureType
from .fear import detect_fear_cost, strip_fear_prefix

logger = logging.getLogger("statblock-converter.conversion.features")

TEMPLATES_PATH = Path(__file__).parent / "data" / "feature_templates.yaml"

DEFAULT_LEGENDARY_FEAR = 1


class FeatureTemplate(BaseModel):
    """A curated replacement for a common ability."""
    key: str = Field(description="Lower-case substring matched against ability names")
    name: str
    type: FeatureType
    desc: str


@lru_cache(maxsize=None)
def load_feature_templates(path: Path = TEMPLATES_PATH) -> tuple[FeatureTemplate, ...]:
    """Load the template table, in file order.

    Raises:
        FileNotFoundError: If the YAML file doesn't exist
        yaml.YAMLError: If the YAML is malformed
        ValueError: If the file has no 'templates' list
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or not isinstance(data.get("templates"), list):
        raise ValueError(f"{path} must contain a 'templates' list")

    templates = tuple(FeatureTemplate(**entry) for entry in data["templates"])
    logger.debug(f"Loaded {len(templates)} feature templates from {path.name}")
    return templates


def find_template(name: str) -> FeatureTemplate | None:
    """First template whose key occurs in ``name`` (case-insensitive)."""
    lowered = (name or "").lower()
    for template in load_feature_templates():
        if template.key in lowered:
            return template
    return None


# =============================================================================
# Feature type
# =============================================================================

REACTION_RE = re.compile(r"reaction|\bwhen(?:ever)?\b|in response", re.IGNORECASE)
USAGE_RE = re.compile(r"can use|as an action", re.IGNORECASE)


class TypeRule(NamedTuple):
    applies: Callable[[str, int], bool]
    type: FeatureType


FEATURE_TYPE_RULES: list[TypeRule] = [
    TypeRule(lambda desc, fear: fear > 0, FeatureType.ACTION),
    TypeRule(lambda desc, fear: bool(REACTION_RE.search(desc)), FeatureType.REACTION),
    TypeRule(lambda desc, fear: bool(USAGE_RE.search(desc)) or is_attack(desc), FeatureType.ACTION),
]


def infer_feature_type(description: str, fear_cost: int = 0) -> FeatureType:
    for rule in FEATURE_TYPE_RULES:
        if rule.applies(description or "", fear_cost):
            return rule.type
    return FeatureType.PASSIVE


# =============================================================================
# Description rewrite
# =============================================================================

DC_RE = re.compile(r"\bDC\s*\d+", re.IGNORECASE)
SAVE_VERB_RE = re.compile(r"\b(?:must make a|succeeds on a|makes a)\b", re.IGNORECASE)
SAVING_THROW_RE = re.compile(r"\bsaving throw", re.IGNORECASE)
THE_TARGET_RE = re.compile(r"\bthe target\b", re.IGNORECASE)


def rewrite_description(description: str, difficulty: int) -> str:
    """Rewrite 5e phrasing into Daggerheart terms.

    Every DC becomes the tier difficulty, save phrasing is simplified and
    whitespace is collapsed.
    """
    text = DC_RE.sub(f"DC {difficulty}", description or "")
    text = SAVE_VERB_RE.sub("makes a", text)
    text = SAVING_THROW_RE.sub("save", text)
    text = THE_TARGET_RE.sub("target", text)
    return re.sub(r"\s+", " ", text).strip()


# =============================================================================
# Translation
# =============================================================================

def translate_ability(
    ability: Ability,
    difficulty: int,
    *,
    reaction: bool = False,
    legendary: bool = False,
) -> Feature:
    """Translate one parsed ability into a Feature.

    Args:
        ability: The parsed ability
        difficulty: Tier difficulty substituted for every DC
        reaction: The ability came from a Reactions section
        legendary: The ability came from a Legendary Actions section

    Returns:
        The templated or rewritten feature
    """
    fear = detect_fear_cost(ability.name, ability.description)
    fear_cost = fear.cost
    if legendary and fear_cost == 0:
        fear_cost = DEFAULT_LEGENDARY_FEAR

    template = find_template(fear.name)
    if template is not None:
        logger.debug(f"Template '{template.key}' replaces '{ability.name}'")
        return Feature(
            name=template.name,
            type=template.type,
            desc=template.desc,
            fear_cost=fear_cost,
            is_legendary=legendary,
        )

    description = strip_fear_prefix(ability.description)
    if reaction:
        feature_type = FeatureType.REACTION
    else:
        feature_type = infer_feature_type(description, fear_cost)
    return Feature(
        name=fear.name,
        type=feature_type,
        desc=rewrite_description(description, difficulty),
        fear_cost=fear_cost,
        is_legendary=legendary,
    )


def legendary_pool_feature(count: int) -> Feature:
    """The Passive feature that wraps a creature's legendary actions."""
    return Feature(
        name=f"Legendary Actions ({count})",
        type=FeatureType.PASSIVE,
        desc=(
            f"Gains {count} bonus Fear each round, spendable only on its legendary "
            "actions. Use them at the end of a PC's turn, one at a time."
        ),
    )


__all__ = [
    "TEMPLATES_PATH",
    "DEFAULT_LEGENDARY_FEAR",
    "FeatureTemplate",
    "load_feature_templates",
    "find_template",
    "FEATURE_TYPE_RULES",
    "infer_feature_type",
    "rewrite_description",
    "translate_ability",
    "legendary_pool_feature",
]
