"""Component models composed into the Character aggregate.

Components:
    Attributes: The six ability scores with computed modifiers.
    SkillProficiency: One skill record (proficiency flag and flat bonus).
    CombatStats: Current/max health, armor and initiative.
    ItemStats: Stat block carried by an item.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, computed_field

from rpg_bot.core.constants import (
    DEFAULT_ATTRIBUTE_VALUE,
    MAX_ATTRIBUTE_VALUE,
    MIN_ATTRIBUTE_VALUE,
)
from rpg_bot.models.enums import Ability, Skill


# =============================================================================
# Validators and Type Definitions
# =============================================================================


def calculate_modifier(score: int) -> int:
    """Calculate the ability modifier from an ability score.

    The modifier is (score - 10) / 2, truncated toward zero, so a score
    of 9 gives 0 rather than -1.

    Args:
        score: The ability score.

    Returns:
        The ability modifier.

    Example:
        >>> calculate_modifier(10)
        0
        >>> calculate_modifier(15)
        2
        >>> calculate_modifier(9)
        0
        >>> calculate_modifier(8)
        -1
    """
    return int((score - 10) / 2)


# Type alias for validated play-time ability scores
AttributeScore = Annotated[
    int,
    Field(
        ge=MIN_ATTRIBUTE_VALUE,
        le=MAX_ATTRIBUTE_VALUE,
        description=f"Ability score ({MIN_ATTRIBUTE_VALUE}-{MAX_ATTRIBUTE_VALUE})",
    ),
]


# =============================================================================
# Attributes
# =============================================================================


class Attributes(BaseModel):
    """The six ability scores with computed modifiers.

    The model is frozen; adjustments produce a new instance through
    :meth:`with_score`, which re-runs validation.

    Attributes:
        strength: Physical power.
        dexterity: Agility and reflexes.
        constitution: Health and stamina.
        intelligence: Reasoning and memory.
        wisdom: Awareness and intuition.
        charisma: Force of personality.

    Example:
        >>> attrs = Attributes(strength=15, constitution=14)
        >>> attrs.strength_modifier
        2
    """

    model_config = ConfigDict(frozen=True)

    strength: AttributeScore = DEFAULT_ATTRIBUTE_VALUE
    dexterity: AttributeScore = DEFAULT_ATTRIBUTE_VALUE
    constitution: AttributeScore = DEFAULT_ATTRIBUTE_VALUE
    intelligence: AttributeScore = DEFAULT_ATTRIBUTE_VALUE
    wisdom: AttributeScore = DEFAULT_ATTRIBUTE_VALUE
    charisma: AttributeScore = DEFAULT_ATTRIBUTE_VALUE

    @classmethod
    def floor(cls) -> Attributes:
        """Create attributes with every score at the floor value.

        Returns:
            Attributes with all six scores at 8.
        """
        return cls(**{ability.value: MIN_ATTRIBUTE_VALUE for ability in Ability})

    @computed_field(description="Strength modifier: (STR - 10) / 2, truncated")
    @property
    def strength_modifier(self) -> int:
        """Calculate Strength modifier."""
        return calculate_modifier(self.strength)

    @computed_field(description="Dexterity modifier: (DEX - 10) / 2, truncated")
    @property
    def dexterity_modifier(self) -> int:
        """Calculate Dexterity modifier."""
        return calculate_modifier(self.dexterity)

    @computed_field(description="Constitution modifier: (CON - 10) / 2, truncated")
    @property
    def constitution_modifier(self) -> int:
        """Calculate Constitution modifier."""
        return calculate_modifier(self.constitution)

    def get_score(self, ability: Ability) -> int:
        """Get the score for a specific ability.

        Args:
            ability: The ability to get the score for.

        Returns:
            The ability score value.
        """
        return getattr(self, ability.value)

    def get_modifier(self, ability: Ability) -> int:
        """Get the modifier for a specific ability.

        Args:
            ability: The ability to get the modifier for.

        Returns:
            The calculated modifier.
        """
        return calculate_modifier(self.get_score(ability))

    def with_score(self, ability: Ability, value: int) -> Attributes:
        """Return a copy with one ability score replaced.

        Args:
            ability: The ability to change.
            value: The new score.

        Returns:
            A new validated Attributes instance.

        Raises:
            pydantic.ValidationError: If value is outside the play-time bounds.
        """
        data = self.as_dict()
        data[ability.value] = value
        return Attributes(**data)

    def as_dict(self) -> dict[str, int]:
        """Return the six scores keyed by ability value."""
        return {ability.value: self.get_score(ability) for ability in Ability}


# =============================================================================
# Skills
# =============================================================================


class SkillProficiency(BaseModel):
    """A skill record held by a character.

    Attributes:
        skill: The skill this record applies to.
        is_proficient: Whether the proficiency bonus applies.
        bonus: Flat bonus added to every check with this skill.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    skill: Skill
    is_proficient: bool = False
    bonus: int = 0


# =============================================================================
# Combat
# =============================================================================


class CombatStats(BaseModel):
    """Derived combat block.

    ``max_health``, ``armor`` and ``initiative`` are always recomputed from
    the owning character; only ``current_health`` carries state of its own.
    """

    model_config = ConfigDict(validate_assignment=True)

    current_health: int = Field(ge=0)
    max_health: int = Field(ge=1)
    armor: int = 0
    initiative: int = 0

    @computed_field(description="Whether the character has been reduced to zero health")
    @property
    def is_defeated(self) -> bool:
        """Check if current health is zero."""
        return self.current_health == 0


class ItemStats(BaseModel):
    """Stat block granted by an item while equipped."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    attack: int = 0
    defense: int = 0
    magic_power: int = 0


__all__ = [
    "calculate_modifier",
    "AttributeScore",
    "Attributes",
    "SkillProficiency",
    "CombatStats",
    "ItemStats",
]
