"""
Markdown and plain-text renderings of a converted adversary.
"""

from __future__ import annotations

from typing import Any

from .models import Feature, TargetStatBlock

EXPORT_EXCLUDE = {"source_cr", "source_hp"}


def _feature_type(feature: Feature) -> str:
    label = feature.type.value
    if feature.fear_cost:
        label += f" (Fear {feature.fear_cost})"
    return label


def render_markdown(block: TargetStatBlock) -> str:
    """Render an adversary as a Markdown stat block.

    Args:
        block: The converted adversary

    Returns:
        Markdown text ending in a newline
    """
    lines = [
        f"# {block.name}",
        f"*Tier {block.tier} {block.adv_type.value}*",
        "",
    ]
    if block.image_url:
        lines += [f"![{block.name}]({block.image_url})", ""]
    if block.description:
        lines += [block.description, ""]
    lines += [
        f"**Motives:** {block.motives}",
        f"**Tactics:** {block.tactics}",
        "",
        "| Difficulty | Thresholds | HP | Stress | Attack | Damage |",
        "|---|---|---|---|---|---|",
        (
            f"| {block.difficulty} | {block.major_thresh}/{block.severe_thresh} | {block.hp} "
            f"| {block.stress} | {block.atk_mod_display} | {block.damage} {block.dmg_type} |"
        ),
        "",
        f"**Weapon:** {block.weapon} ({block.range})",
        f"**Experience:** {block.experience}",
    ]

    if block.features:
        lines += ["", "## Features", ""]
        for feature in block.features:
            lines.append(f"- **{feature.name}** *({_feature_type(feature)})*: {feature.desc}")

    if block.tags:
        lines += ["", "---", f"*Tags: {', '.join(block.tags)}*"]

    return "\n".join(lines) + "\n"


def render_text(block: TargetStatBlock) -> str:
    """Render an adversary as plain text, one section per line group."""
    lines = [
        block.name.upper(),
        f"Tier {block.tier} {block.adv_type.value}",
    ]
    if block.description:
        lines.append(block.description)
    lines += [
        "",
        f"Motives & Tactics: {block.motives.rstrip('.')}. {block.tactics}",
        "",
        (
            f"Difficulty: {block.difficulty} | Thresholds: {block.major_thresh}/{block.severe_thresh} "
            f"| HP: {block.hp} | Stress: {block.stress}"
        ),
        f"ATK: {block.atk_mod_display} | {block.weapon}: {block.range} | {block.damage} {block.dmg_type}",
        f"Experience: {block.experience}",
    ]

    if block.features:
        lines += ["", "FEATURES"]
        for feature in block.features:
            lines.append(f"{feature.name} - {_feature_type(feature)}: {feature.desc}")

    if block.tags:
        lines += ["", f"Tags: {', '.join(block.tags)}"]

    return "\n".join(lines) + "\n"


def to_export_dict(block: TargetStatBlock) -> dict[str, Any]:
    """camelCase export of an adversary, without the source metadata."""
    return block.model_dump(by_alias=True, exclude=EXPORT_EXCLUDE, mode="json")


__all__ = [
    "render_markdown",
    "render_text",
    "to_export_dict",
]
