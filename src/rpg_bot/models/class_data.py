"""Per-class rules data.

This module holds the static tables that differ by character class:
- Attribute baselines seeded when a class is chosen
- Skills each class may hold
- Primary attribute used for class bonuses
- Recommended minimum attributes (advisory)
- Item types each class is trained to equip

All lookups are total: an unknown class yields an empty result instead of
raising, so rendering paths never fail on bad input.
"""

from __future__ import annotations

from rpg_bot.models.components import Attributes
from rpg_bot.models.enums import Ability, CharacterClass, ItemType, Skill

# =============================================================================
# Attribute Baselines
# =============================================================================

# strength, dexterity, constitution, intelligence, wisdom, charisma
_BASELINES: dict[CharacterClass, tuple[int, int, int, int, int, int]] = {
    CharacterClass.WARRIOR: (15, 12, 14, 8, 10, 10),
    CharacterClass.RANGER: (12, 15, 12, 10, 14, 8),
    CharacterClass.MAGE: (8, 12, 10, 15, 14, 12),
    CharacterClass.PALADIN: (14, 10, 13, 8, 12, 14),
    CharacterClass.DRUID: (10, 12, 12, 10, 15, 12),
    CharacterClass.CLERIC: (12, 10, 12, 10, 15, 12),
    CharacterClass.BARD: (8, 12, 10, 12, 10, 15),
    CharacterClass.WARLOCK: (8, 12, 12, 13, 10, 15),
    CharacterClass.SORCERER: (8, 12, 12, 12, 10, 15),
    CharacterClass.ROGUE: (10, 15, 12, 12, 10, 12),
    CharacterClass.MONK: (12, 15, 12, 10, 13, 8),
    CharacterClass.BARBARIAN: (15, 12, 14, 8, 10, 8),
}


def get_base_attributes(character_class: CharacterClass | str) -> Attributes:
    """Get the attribute baseline seeded when a class is chosen.

    Every baseline stays within the point-buy ceiling and budget, so the
    player starts the allocation step with zero or more points left.

    Args:
        character_class: The chosen class.

    Returns:
        The class baseline, or all-10 attributes for an unknown class.
    """
    scores = _BASELINES.get(_coerce_class(character_class))
    if scores is None:
        return Attributes()
    return Attributes(**dict(zip((a.value for a in Ability), scores)))


# =============================================================================
# Class Skills
# =============================================================================

CLASS_SKILLS: dict[CharacterClass, tuple[Skill, ...]] = {
    CharacterClass.WARRIOR: (Skill.ATHLETICS, Skill.INTIMIDATION, Skill.PERCEPTION, Skill.SURVIVAL),
    CharacterClass.MAGE: (Skill.ARCANA, Skill.HISTORY, Skill.INVESTIGATION, Skill.MEDICINE),
    CharacterClass.RANGER: (
        Skill.ANIMAL_HANDLING,
        Skill.ATHLETICS,
        Skill.NATURE,
        Skill.STEALTH,
        Skill.SURVIVAL,
    ),
    CharacterClass.CLERIC: (Skill.INSIGHT, Skill.MEDICINE, Skill.PERSUASION, Skill.RELIGION),
    CharacterClass.PALADIN: (Skill.ATHLETICS, Skill.INTIMIDATION, Skill.MEDICINE, Skill.PERSUASION),
    CharacterClass.DRUID: (Skill.ANIMAL_HANDLING, Skill.NATURE, Skill.MEDICINE, Skill.SURVIVAL),
    CharacterClass.BARBARIAN: (Skill.ATHLETICS, Skill.INTIMIDATION, Skill.NATURE, Skill.SURVIVAL),
    CharacterClass.MONK: (Skill.ACROBATICS, Skill.ATHLETICS, Skill.STEALTH, Skill.INSIGHT),
    CharacterClass.BARD: (Skill.DECEPTION, Skill.PERFORMANCE, Skill.PERSUASION, Skill.SLEIGHT_OF_HAND),
    CharacterClass.WARLOCK: (Skill.ARCANA, Skill.DECEPTION, Skill.INTIMIDATION, Skill.PERSUASION),
    CharacterClass.SORCERER: (Skill.ARCANA, Skill.DECEPTION, Skill.INTIMIDATION, Skill.PERSUASION),
    CharacterClass.ROGUE: (Skill.ACROBATICS, Skill.DECEPTION, Skill.SLEIGHT_OF_HAND, Skill.STEALTH),
}


def get_class_skills(character_class: CharacterClass | str) -> tuple[Skill, ...]:
    """Get the skills a class may hold. Empty for an unknown class."""
    return CLASS_SKILLS.get(_coerce_class(character_class), ())


def is_class_skill(character_class: CharacterClass | str, skill: Skill | str) -> bool:
    """Check whether a skill belongs to the class's allowed set."""
    try:
        return Skill(skill) in get_class_skills(character_class)
    except ValueError:
        return False


# =============================================================================
# Primary Attributes
# =============================================================================

PRIMARY_ATTRIBUTE: dict[CharacterClass, Ability] = {
    CharacterClass.WARRIOR: Ability.STR,
    CharacterClass.BARBARIAN: Ability.STR,
    CharacterClass.RANGER: Ability.DEX,
    CharacterClass.MONK: Ability.DEX,
    CharacterClass.ROGUE: Ability.DEX,
    CharacterClass.MAGE: Ability.INT,
    CharacterClass.CLERIC: Ability.WIS,
    CharacterClass.DRUID: Ability.WIS,
    CharacterClass.PALADIN: Ability.CHA,
    CharacterClass.BARD: Ability.CHA,
    CharacterClass.WARLOCK: Ability.CHA,
    CharacterClass.SORCERER: Ability.CHA,
}


def get_primary_attribute(character_class: CharacterClass | str) -> Ability | None:
    """Get the primary attribute of a class, or None if unknown."""
    return PRIMARY_ATTRIBUTE.get(_coerce_class(character_class))


# =============================================================================
# Recommended Attributes (advisory)
# =============================================================================

CLASS_REQUIREMENTS: dict[CharacterClass, dict[Ability, int]] = {
    CharacterClass.WARRIOR: {Ability.STR: 13, Ability.CON: 12},
    CharacterClass.MAGE: {Ability.INT: 13, Ability.WIS: 12},
    CharacterClass.RANGER: {Ability.DEX: 13, Ability.CON: 12},
    CharacterClass.CLERIC: {Ability.WIS: 13, Ability.CON: 12},
    CharacterClass.PALADIN: {Ability.STR: 12, Ability.CHA: 13},
    CharacterClass.DRUID: {Ability.WIS: 13, Ability.INT: 12},
    CharacterClass.BARBARIAN: {Ability.STR: 13, Ability.CON: 13},
    CharacterClass.MONK: {Ability.DEX: 13, Ability.WIS: 12},
    CharacterClass.BARD: {Ability.CHA: 13, Ability.DEX: 12},
    CharacterClass.WARLOCK: {Ability.CHA: 13, Ability.INT: 12},
    CharacterClass.SORCERER: {Ability.CHA: 13, Ability.CON: 12},
    CharacterClass.ROGUE: {Ability.DEX: 13, Ability.INT: 12},
}


def unmet_requirements(
    character_class: CharacterClass | str,
    attributes: Attributes,
) -> dict[Ability, int]:
    """List the recommended minimums an attribute spread falls short of.

    Args:
        character_class: The class whose recommendations apply.
        attributes: The attribute spread to check.

    Returns:
        Mapping of ability to recommended minimum for each unmet entry.
        Empty when all are met or the class is unknown.
    """
    requirements = CLASS_REQUIREMENTS.get(_coerce_class(character_class), {})
    return {
        ability: minimum
        for ability, minimum in requirements.items()
        if attributes.get_score(ability) < minimum
    }


# =============================================================================
# Item Type Proficiencies
# =============================================================================

_MARTIAL = frozenset({ItemType.WEAPON, ItemType.ARMOR})
_ARCANE = frozenset({ItemType.WEAPON, ItemType.ACCESSORY})

CLASS_ITEM_TYPES: dict[CharacterClass, frozenset[ItemType]] = {
    CharacterClass.WARRIOR: _MARTIAL,
    CharacterClass.RANGER: _MARTIAL,
    CharacterClass.CLERIC: _MARTIAL,
    CharacterClass.PALADIN: _MARTIAL,
    CharacterClass.BARBARIAN: _MARTIAL,
    CharacterClass.ROGUE: _MARTIAL,
    CharacterClass.MAGE: _ARCANE,
    CharacterClass.DRUID: _ARCANE,
    CharacterClass.MONK: _ARCANE,
    CharacterClass.BARD: _ARCANE,
    CharacterClass.WARLOCK: _ARCANE,
    CharacterClass.SORCERER: _ARCANE,
}


def get_class_item_types(character_class: CharacterClass | str) -> frozenset[ItemType]:
    """Get the item types a class is trained to equip."""
    return CLASS_ITEM_TYPES.get(_coerce_class(character_class), frozenset())


def _coerce_class(character_class: CharacterClass | str) -> CharacterClass | None:
    try:
        return CharacterClass(character_class)
    except ValueError:
        return None


__all__ = [
    "get_base_attributes",
    "CLASS_SKILLS",
    "get_class_skills",
    "is_class_skill",
    "PRIMARY_ATTRIBUTE",
    "get_primary_attribute",
    "CLASS_REQUIREMENTS",
    "unmet_requirements",
    "CLASS_ITEM_TYPES",
    "get_class_item_types",
]
