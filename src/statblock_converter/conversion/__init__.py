"""
Daggerheart conversion of parsed creatures.

- ``tables``: tier statistics, role modifiers and banding tables
- ``roles``: adversary role inference
- ``fear``: Fear cost detection
- ``features``: ability to Feature translation and templates
- ``attacks``: range, damage and damage-type conversion
- ``narrative``: description, motives, tactics, experience and tags
- ``engine``: ``convert``
"""

from .attacks import convert_attack, convert_damage, convert_damage_type, convert_range, locate_primary
from .engine import build_features, convert, select_role, select_tier
from .fear import FearResult, detect_fear_cost
from .features import (
    FeatureTemplate,
    find_template,
    load_feature_templates,
    rewrite_description,
    translate_ability,
)
from .roles import infer_role
from .tables import ROLE_MODIFIERS, TIER_STATS, tier_from_cr

__all__ = [
    "convert",
    "locate_primary",
    "build_features",
    "select_tier",
    "select_role",
    "tier_from_cr",
    "infer_role",
    "TIER_STATS",
    "ROLE_MODIFIERS",
    "FearResult",
    "detect_fear_cost",
    "FeatureTemplate",
    "load_feature_templates",
    "find_template",
    "rewrite_description",
    "translate_ability",
    "convert_attack",
    "convert_range",
    "convert_damage",
    "convert_damage_type",
]
