"""Enumeration types for the RPG bot rules engine.

This module defines the closed vocabularies used throughout the application:
abilities, skills, character classes, backgrounds and item classifications.
Values are lowercase snake_case so they double as event-id targets.
"""

from __future__ import annotations

from enum import StrEnum


class Ability(StrEnum):
    """The six core abilities that define a character."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def full_name(self) -> str:
        """Get the full name of the ability.

        Returns:
            Full ability name (e.g., 'Strength' for STR).
        """
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the lowercase three-letter abbreviation used in event ids.

        Returns:
            Abbreviation (e.g., 'str').
        """
        return self.name.lower()

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> Ability | None:
        """Look up an ability by its three-letter abbreviation.

        Args:
            abbreviation: Case-insensitive abbreviation such as 'con'.

        Returns:
            The matching Ability or None.
        """
        return cls.__members__.get(abbreviation.upper())


class Skill(StrEnum):
    """Skills and their governing abilities."""

    # Strength skills
    ATHLETICS = "athletics"

    # Dexterity skills
    ACROBATICS = "acrobatics"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"

    # Intelligence skills
    ARCANA = "arcana"
    HISTORY = "history"
    INVESTIGATION = "investigation"
    NATURE = "nature"
    RELIGION = "religion"

    # Wisdom skills
    ANIMAL_HANDLING = "animal_handling"
    INSIGHT = "insight"
    MEDICINE = "medicine"
    PERCEPTION = "perception"
    SURVIVAL = "survival"

    # Charisma skills
    DECEPTION = "deception"
    INTIMIDATION = "intimidation"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"

    @property
    def ability(self) -> Ability:
        """Get the governing ability for this skill.

        Returns:
            The Ability enum value associated with this skill.
        """
        return _SKILL_ABILITIES[self]

    @property
    def display_name(self) -> str:
        """Get human-readable skill name.

        Returns:
            Formatted name (e.g., 'Sleight Of Hand').
        """
        return self.value.replace("_", " ").title()


_SKILL_ABILITIES: dict[Skill, Ability] = {
    # Strength
    Skill.ATHLETICS: Ability.STR,
    # Dexterity
    Skill.ACROBATICS: Ability.DEX,
    Skill.SLEIGHT_OF_HAND: Ability.DEX,
    Skill.STEALTH: Ability.DEX,
    # Intelligence
    Skill.ARCANA: Ability.INT,
    Skill.HISTORY: Ability.INT,
    Skill.INVESTIGATION: Ability.INT,
    Skill.NATURE: Ability.INT,
    Skill.RELIGION: Ability.INT,
    # Wisdom
    Skill.ANIMAL_HANDLING: Ability.WIS,
    Skill.INSIGHT: Ability.WIS,
    Skill.MEDICINE: Ability.WIS,
    Skill.PERCEPTION: Ability.WIS,
    Skill.SURVIVAL: Ability.WIS,
    # Charisma
    Skill.DECEPTION: Ability.CHA,
    Skill.INTIMIDATION: Ability.CHA,
    Skill.PERFORMANCE: Ability.CHA,
    Skill.PERSUASION: Ability.CHA,
}


class CharacterClass(StrEnum):
    """Playable character classes."""

    WARRIOR = "warrior"
    MAGE = "mage"
    RANGER = "ranger"
    CLERIC = "cleric"
    PALADIN = "paladin"
    DRUID = "druid"
    BARBARIAN = "barbarian"
    MONK = "monk"
    BARD = "bard"
    WARLOCK = "warlock"
    SORCERER = "sorcerer"
    ROGUE = "rogue"

    @property
    def display_name(self) -> str:
        """Get human-readable class name.

        Returns:
            Capitalized class name (e.g., 'Warrior').
        """
        return self.value.capitalize()


class Background(StrEnum):
    """Character backgrounds offered by the creation wizard."""

    NOBLE = "noble"
    COMMONER = "commoner"
    WILD = "wild"

    @property
    def display_name(self) -> str:
        """Get human-readable background name."""
        return self.value.capitalize()


class ItemType(StrEnum):
    """Item classifications."""

    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"
    CONSUMABLE = "consumable"
    QUEST = "quest"

    @property
    def is_equippable(self) -> bool:
        """Check whether items of this type can occupy an equipment slot.

        Returns:
            True for weapons, armor and accessories.
        """
        return self in EQUIPPABLE_ITEM_TYPES


EQUIPPABLE_ITEM_TYPES: frozenset[ItemType] = frozenset(
    {ItemType.WEAPON, ItemType.ARMOR, ItemType.ACCESSORY}
)


class ItemRarity(StrEnum):
    """Item rarity tiers, lowest first."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHICAL = "mythical"


class EquipmentSlot(StrEnum):
    """Named equipment positions, each holding at most one item."""

    HEAD = "head"
    NECK = "neck"
    CHEST = "chest"
    LEGS = "legs"
    FEET = "feet"
    MAIN_HAND = "main_hand"
    OFF_HAND = "off_hand"
    RING1 = "ring1"
    RING2 = "ring2"
    TRINKET1 = "trinket1"
    TRINKET2 = "trinket2"


__all__ = [
    "Ability",
    "Skill",
    "CharacterClass",
    "Background",
    "ItemType",
    "EQUIPPABLE_ITEM_TYPES",
    "ItemRarity",
    "EquipmentSlot",
]
