"""Level progression and derived-stat formulas.

This module contains the pure formulas that turn a character's level,
attributes and skill records into numbers:
- Experience curve (closed form: 100 * 1.5 ** (level - 1))
- Maximum health
- Proficiency bonus by level
- Skill, class and attack modifiers
- Armor and initiative

Every function is side-effect free. Invalid class or skill input returns a
zero result instead of raising so rendering paths stay total.
"""

from __future__ import annotations

from collections.abc import Iterable

from rpg_bot.core.constants import (
    BASE_ARMOR,
    BASE_EXPERIENCE,
    EXPERIENCE_MULTIPLIER,
    HEALTH_BASE,
    MAX_LEVEL,
    STARTING_LEVEL,
)
from rpg_bot.models.class_data import get_primary_attribute
from rpg_bot.models.components import Attributes, SkillProficiency, calculate_modifier
from rpg_bot.models.enums import Ability, CharacterClass, Skill

# =============================================================================
# Experience Curve
# =============================================================================


def exp_for_level(level: int) -> int | None:
    """Experience required to reach ``level``.

    Args:
        level: The level being reached.

    Returns:
        0 for level 1 or below, the curve value up to MAX_LEVEL, and None
        when ``level`` is beyond MAX_LEVEL (there is no next level).
    """
    if level <= STARTING_LEVEL:
        return 0
    if level > MAX_LEVEL:
        return None
    return int(BASE_EXPERIENCE * EXPERIENCE_MULTIPLIER ** (level - 1))


def exp_for_next_level(current_level: int) -> int | None:
    """Get XP needed for the next level. Returns None at MAX_LEVEL."""
    return exp_for_level(current_level + 1)


def level_for_experience(experience: int) -> int:
    """Determine the level an experience total corresponds to."""
    for level in range(MAX_LEVEL, STARTING_LEVEL, -1):
        threshold = exp_for_level(level)
        if threshold is not None and experience >= threshold:
            return level
    return STARTING_LEVEL


# =============================================================================
# Health & Proficiency
# =============================================================================


def max_health(level: int, constitution: int) -> int:
    """Maximum health for a level and constitution score.

    ``(HEALTH_BASE + constitution modifier) * level``, floored at 1. Levels
    outside 1..MAX_LEVEL are clamped into range.

    Example:
        >>> max_health(1, 10)
        10
        >>> max_health(3, 14)
        36
    """
    level = min(max(level, STARTING_LEVEL), MAX_LEVEL)
    return max(1, (HEALTH_BASE + calculate_modifier(constitution)) * level)


def proficiency_bonus(level: int) -> int:
    """Proficiency bonus for a character level.

    Levels 1-4: +2, 5-8: +3, 9-12: +4, 13-16: +5, 17+: +6.
    """
    level = min(max(level, STARTING_LEVEL), MAX_LEVEL)
    return 2 + (level - 1) // 4


# =============================================================================
# Modifiers
# =============================================================================


def skill_modifier(
    skill: Skill | str,
    attributes: Attributes,
    proficiency: SkillProficiency | None,
    level: int,
) -> int:
    """Total modifier for a skill check.

    Args:
        skill: The skill being checked.
        attributes: The character's attributes.
        proficiency: The character's record for this skill, if any.
        level: The character's level.

    Returns:
        Governing ability modifier, plus the proficiency bonus when
        proficient, plus the record's flat bonus. Zero for an unknown skill.
    """
    try:
        skill = Skill(skill)
    except ValueError:
        return 0

    modifier = attributes.get_modifier(skill.ability)
    if proficiency is not None and proficiency.skill == skill:
        if proficiency.is_proficient:
            modifier += proficiency_bonus(level)
        modifier += proficiency.bonus
    return modifier


# Flat class addends layered on top of the primary attribute modifier
_CLASS_ADDENDS: dict[CharacterClass, int] = {
    CharacterClass.WARRIOR: 2,
    CharacterClass.MAGE: 1,
}


def class_bonus(character_class: CharacterClass | str, attributes: Attributes) -> int:
    """Class-specific bonus for attacks and class abilities.

    Primary attribute modifier plus a small addend: Warrior +2, Mage +1,
    Ranger +1 with dexterity 15+, Barbarian +1 with constitution 15+.
    Zero for an unknown class.
    """
    primary = get_primary_attribute(character_class)
    if primary is None:
        return 0
    character_class = CharacterClass(character_class)

    bonus = attributes.get_modifier(primary) + _CLASS_ADDENDS.get(character_class, 0)
    if character_class is CharacterClass.RANGER and attributes.dexterity >= 15:
        bonus += 1
    elif character_class is CharacterClass.BARBARIAN and attributes.constitution >= 15:
        bonus += 1
    return bonus


def attack_bonus(character_class: CharacterClass | str, level: int, attributes: Attributes) -> int:
    """Attack bonus: proficiency bonus plus class bonus."""
    return proficiency_bonus(level) + class_bonus(character_class, attributes)


def armor_class(level: int, attributes: Attributes, equipped_defense: Iterable[int] = ()) -> int:
    """Armor: base 10 + dexterity modifier + level // 5 + equipped defense."""
    return (
        BASE_ARMOR
        + attributes.get_modifier(Ability.DEX)
        + level // 5
        + sum(equipped_defense)
    )


def initiative(level: int, attributes: Attributes) -> int:
    """Initiative: dexterity modifier + level // 4."""
    return attributes.get_modifier(Ability.DEX) + level // 4


__all__ = [
    "exp_for_level",
    "exp_for_next_level",
    "level_for_experience",
    "max_health",
    "proficiency_bonus",
    "skill_modifier",
    "class_bonus",
    "attack_bonus",
    "armor_class",
    "initiative",
]
