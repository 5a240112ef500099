"""
Markup stripping for stat block descriptions.

JSON exports embed presentation markup in their description strings:
5etools uses ``{@tag ...}`` inline tags and nested entry objects, Open5e
and Foundry ship HTML, and World Anvil uses BBCode. These helpers reduce
all of them to the plain prose the ability sub-parser understands.
"""

from __future__ import annotations

import html
import re


# =============================================================================
# 5etools markup
# =============================================================================

_ATTACK_KINDS = {
    "mw": "Melee Weapon Attack:",
    "rw": "Ranged Weapon Attack:",
    "ms": "Melee Spell Attack:",
    "rs": "Ranged Spell Attack:",
    "mw,rw": "Melee or Ranged Weapon Attack:",
    "ms,rs": "Melee or Ranged Spell Attack:",
    # 2024 "attack roll" wording
    "m": "Melee Attack Roll:",
    "r": "Ranged Attack Roll:",
    "m,r": "Melee or Ranged Attack Roll:",
}

_MARKUP_ATK_RE = re.compile(r"\{@atkr?\s+([a-z,]+)\}")
_MARKUP_HIT_LABEL_RE = re.compile(r"\{@h\}\s*")
_MARKUP_RECHARGE_RE = re.compile(r"\{@recharge(?:\s+(\d))?\}")
_MARKUP_DC_RE = re.compile(r"\{@dc\s+(\d+)\}")
_MARKUP_HIT_RE = re.compile(r"\{@hit\s+([+-]?\d+)\}")
_MARKUP_GENERIC_RE = re.compile(r"\{@\w+\s+([^}|]+?)(?:\|[^}]*)?\}")
_MARKUP_EMPTY_RE = re.compile(r"\{@\w+\}")


def _attack_label(match: re.Match) -> str:
    return _ATTACK_KINDS.get(match.group(1), "Melee Weapon Attack:")


def _recharge_label(match: re.Match) -> str:
    low = match.group(1)
    if not low or low == "6":
        return "(Recharge 6)"
    return f"(Recharge {low}-6)"


def _hit_bonus(match: re.Match) -> str:
    value = int(match.group(1))
    return f"{value:+d}"


def convert_5etools_markup(text: str) -> str:
    """Convert 5etools markup tags to stat block prose.

    ``{@atk mw}`` becomes "Melee Weapon Attack:", ``{@hit 5}`` becomes
    "+5", ``{@h}`` becomes "Hit: " and ``{@dc 15}`` becomes "DC 15";
    any other ``{@tag content|source}`` collapses to its content.
    """
    if not text:
        return ""
    text = _MARKUP_ATK_RE.sub(_attack_label, text)
    text = _MARKUP_HIT_LABEL_RE.sub("Hit: ", text)
    text = _MARKUP_RECHARGE_RE.sub(_recharge_label, text)
    text = _MARKUP_DC_RE.sub(r"DC \1", text)
    text = _MARKUP_HIT_RE.sub(_hit_bonus, text)
    text = _MARKUP_GENERIC_RE.sub(r"\1", text)
    text = _MARKUP_EMPTY_RE.sub("", text)
    return text


def render_entries(entries: list | str | None) -> list[str]:
    """Render a 5etools entries array to a list of plain text paragraphs.

    Entries can be strings or nested objects with sub-entries; this
    flattens them recursively. Lists become "- item" lines and tables
    become a caption placeholder.
    """
    if not entries:
        return []
    if isinstance(entries, str):
        return [convert_5etools_markup(entries)]
    if not isinstance(entries, list):
        return []
    result: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            result.append(convert_5etools_markup(entry))
        elif isinstance(entry, dict):
            entry_type = entry.get("type", "")
            if entry_type == "list":
                for item in entry.get("items", []):
                    if isinstance(item, str):
                        result.append(f"- {convert_5etools_markup(item)}")
                    elif isinstance(item, dict):
                        for line in _render_list_item(item):
                            result.append(f"- {line}")
            elif entry_type == "table":
                caption = entry.get("caption", "")
                if caption:
                    result.append(f"[Table: {caption}]")
            else:
                name = entry.get("name", "")
                sub = render_entries(entry.get("entries", []))
                if name and sub:
                    result.append(f"{name}. {sub[0]}")
                    result.extend(sub[1:])
                elif name:
                    result.append(name)
                else:
                    result.extend(sub)
    return result


def _render_list_item(item: dict) -> list[str]:
    name = item.get("name", "")
    if "entry" in item:
        body = render_entries([item["entry"]])
    else:
        body = render_entries(item.get("entries", []))
    if name and body:
        return [f"{name} {body[0]}", *body[1:]]
    return [name] if name else body


def entries_to_text(entries: list | str | None) -> str:
    """Render entries and join the paragraphs into one description."""
    return " ".join(p.strip() for p in render_entries(entries) if p.strip())


# =============================================================================
# HTML and BBCode
# =============================================================================

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

_BBCODE_WRAPPERS = [
    re.compile(r"\[h[1-6]\](.*?)\[/h[1-6]\]", re.IGNORECASE | re.DOTALL),
    re.compile(r"\[b\](.*?)\[/b\]", re.IGNORECASE | re.DOTALL),
    re.compile(r"\[i\](.*?)\[/i\]", re.IGNORECASE | re.DOTALL),
    re.compile(r"\[u\](.*?)\[/u\]", re.IGNORECASE | re.DOTALL),
    re.compile(r"\[url=[^\]]*\](.*?)\[/url\]", re.IGNORECASE | re.DOTALL),
]
_BBCODE_TABLE_RE = re.compile(r"\[table\].*?\[/table\]", re.IGNORECASE | re.DOTALL)
_BBCODE_TABLE_TAG_RE = re.compile(r"\[/?(?:table|tr|td|th)\]", re.IGNORECASE)
_BBCODE_ROLL_RE = re.compile(r"\[roll:[^\]]*\]", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")
BBCODE_MARKER_RE = re.compile(r"\[h[1-6]\]|\[b\]|\[table\]", re.IGNORECASE)


def strip_html(text: str | None) -> str:
    """Remove HTML tags, decode entities and collapse whitespace."""
    if not text:
        return ""
    text = _HTML_TAG_RE.sub(" ", str(text))
    text = html.unescape(text)
    text = _WHITESPACE_RE.sub(" ", text)
    # Tag removal leaves a space before punctuation: "<b>Bite</b>." -> "Bite ."
    text = re.sub(r" ([.,;:])", r"\1", text)
    return text.strip()


def strip_bbcode(text: str | None) -> str:
    """Remove World Anvil BBCode wrappers, tables and roll tags."""
    if not text:
        return ""
    text = str(text)
    for pattern in _BBCODE_WRAPPERS:
        text = pattern.sub(r"\1", text)
    text = _BBCODE_TABLE_RE.sub("", text)
    text = _BBCODE_TABLE_TAG_RE.sub("", text)
    text = _BBCODE_ROLL_RE.sub("", text)
    text = text.replace("\r\n", "\n")
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def has_bbcode(text: object) -> bool:
    return isinstance(text, str) and bool(BBCODE_MARKER_RE.search(text))


__all__ = [
    "convert_5etools_markup",
    "render_entries",
    "entries_to_text",
    "strip_html",
    "strip_bbcode",
    "has_bbcode",
    "BBCODE_MARKER_RE",
]
