"""
Narrative fields of a converted adversary: description, motives,
tactics, experience and tags.
"""

from __future__ import annotations

from ..models import CanonicalCreature

# =============================================================================
# Per-type tables
# =============================================================================

TYPE_FLAVOR = {
    "fiend": " radiating malevolent energy.",
    "celestial": " glowing with divine light.",
    "undead": " animated by dark magic.",
    "dragon": " ancient and powerful.",
    "aberration": " defying natural law.",
    "construct": " crafted for a singular purpose.",
    "fey": " with an otherworldly presence.",
    "elemental": " formed of pure elemental essence.",
}

TYPE_MOTIVES = {
    "fiend": "Corrupt souls, spread suffering, fulfill dark contracts",
    "celestial": "Protect the innocent, uphold justice, serve divine will",
    "undead": "Feed on the living, spread death, serve dark masters",
    "dragon": "Hoard treasure, dominate territory, display power",
    "aberration": "Consume, corrupt, spread madness",
    "construct": "Follow directives, protect location, eliminate threats",
    "fey": "Pursue amusement, make deals, protect wild places",
    "elemental": "Embody element, destroy opposition, follow summoner",
    "beast": "Hunt prey, protect territory, survive",
    "humanoid": "Achieve goals, protect allies, gain power",
    "monstrosity": "Hunt, feed, protect lair",
}
DEFAULT_MOTIVES = "Achieve objectives, eliminate threats"

TYPE_EXPERIENCE = {
    "fiend": "Intimidation +2",
    "celestial": "Insight +2",
    "undead": "Intimidation +1",
    "dragon": "Intimidation +3",
    "aberration": "Arcana +2",
    "beast": "Survival +1",
    "humanoid": "Perception +1",
}
DEFAULT_EXPERIENCE = "Perception +1"

KNOWN_SKILLS = (
    "perception", "stealth", "intimidation", "deception", "persuasion",
    "insight", "athletics", "acrobatics", "arcana", "history",
    "investigation", "nature", "religion", "survival",
)

TYPE_TO_TAGS = {
    "aberration": ["aberration", "horror"],
    "beast": ["beast", "animal"],
    "celestial": ["celestial", "divine"],
    "construct": ["construct", "artificial"],
    "dragon": ["dragon", "legendary"],
    "elemental": ["elemental", "planar"],
    "fey": ["fey", "trickster"],
    "fiend": ["fiend", "infernal"],
    "giant": ["giant", "humanoid"],
    "humanoid": ["humanoid"],
    "monstrosity": ["monstrosity", "monster"],
    "ooze": ["ooze", "mindless"],
    "plant": ["plant", "nature"],
    "undead": ["undead", "horror"],
}

DEFAULT_TACTICS = ["Engage the nearest threat", "Retreat if badly wounded"]


def _type_key(creature: CanonicalCreature) -> str:
    return creature.type_info.type.strip().lower()


# =============================================================================
# Generators
# =============================================================================

def generate_description(creature: CanonicalCreature) -> str:
    """Description such as "A large giant.", with per-type flavor."""
    info = creature.type_info
    description = f"A {info.size.lower()} {_type_key(creature)}"
    if info.subtype:
        description += f" ({info.subtype})"
    return description + TYPE_FLAVOR.get(_type_key(creature), ".")


def generate_motives(creature: CanonicalCreature) -> str:
    motives = TYPE_MOTIVES.get(_type_key(creature), DEFAULT_MOTIVES)
    alignment = (creature.type_info.alignment or "").lower()
    if "evil" in alignment:
        motives = motives.replace("protect", "dominate", 1)
    if "chaotic" in alignment:
        motives += ", cause chaos"
    return motives


def generate_tactics(creature: CanonicalCreature) -> str:
    """Tactics sentence built from the creature's attacks and movement."""
    tactics = []
    attack = creature.primary_attack
    if attack is not None:
        if attack.attack_info is not None and attack.attack_info.type == "ranged":
            tactics += ["Keep distance from enemies", "Use cover when available"]
        else:
            tactics.append("Close to melee range quickly")
    if creature.has_multiattack:
        tactics.append("Focus attacks on single targets")
    if any("breath" in action.name.lower() for action in creature.actions):
        tactics.append("Open with breath weapon on grouped enemies")
    if creature.speed.fly:
        tactics.append("Use flight to stay out of reach")
    return ". ".join(tactics or DEFAULT_TACTICS) + "."


def determine_experience(creature: CanonicalCreature) -> str:
    """The creature's best skill at half its bonus, or a per-type default."""
    best_skill, best_value = None, 0
    for skill, value in creature.skills.items():
        if value > best_value:
            best_skill, best_value = skill, value
    if best_skill is not None:
        name = best_skill.lower()
        label = name.title() if name in KNOWN_SKILLS else best_skill
        return f"{label} +{max(1, best_value // 2)}"
    return TYPE_EXPERIENCE.get(_type_key(creature), DEFAULT_EXPERIENCE)


def generate_tags(creature: CanonicalCreature) -> list[str]:
    """Type tags, subtype and capability tags, without duplicates."""
    tags = list(TYPE_TO_TAGS.get(_type_key(creature), []))
    if creature.type_info.subtype:
        tags.append(creature.type_info.subtype.lower())

    capabilities = [
        ("flying", bool(creature.speed.fly)),
        ("aquatic", bool(creature.speed.swim)),
        ("burrowing", bool(creature.speed.burrow)),
        ("darkvision", bool(creature.senses.get("darkvision"))),
        ("blindsight", bool(creature.senses.get("blindsight"))),
        ("spellcaster", creature.has_spellcasting),
        ("legendary", creature.legendary_action_count > 0),
        ("damage-immune", bool(creature.damage_info.immunities)),
    ]
    tags += [tag for tag, present in capabilities if present]
    return list(dict.fromkeys(tags))


__all__ = [
    "TYPE_FLAVOR",
    "TYPE_MOTIVES",
    "TYPE_EXPERIENCE",
    "TYPE_TO_TAGS",
    "KNOWN_SKILLS",
    "generate_description",
    "generate_motives",
    "generate_tactics",
    "determine_experience",
    "generate_tags",
]
