"""Dice rolling mechanics.

This module provides dice rolling using the d20 library, with support
for advantage and disadvantage, plus skill checks against a difficulty
class.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import d20

from rpg_bot.core.constants import DEFAULT_SKILL_CHECK_DC
from rpg_bot.core.exceptions import DiceRollError
from rpg_bot.core.logging import get_logger


logger = get_logger(__name__)


class RollType(StrEnum):
    """Types of dice rolls."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


@dataclass(frozen=True)
class DiceExpression:
    """A rolled dice expression.

    Attributes:
        expression: The original dice expression string.
        total: The total result of the roll.
        dice: Individual kept dice results.
        modifier: Static modifier applied.
        is_critical: Whether a natural 20 was rolled.
        is_fumble: Whether a natural 1 was rolled.
        roll_type: The type of roll performed.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int
    is_critical: bool
    is_fumble: bool
    roll_type: RollType


@dataclass(frozen=True)
class SkillCheckResult:
    """Outcome of a skill check.

    Attributes:
        skill: The skill that was checked.
        roll: The natural d20 result.
        modifier: Total skill modifier added to the roll.
        total: roll + modifier.
        dc: Difficulty class the total was compared against.
        success: Whether total met or beat the DC.
        is_natural_20: Whether the d20 showed 20.
        is_natural_1: Whether the d20 showed 1.
    """

    skill: str
    roll: int
    modifier: int
    total: int
    dc: int
    success: bool
    is_natural_20: bool
    is_natural_1: bool


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller()
        >>> result = roller.roll("1d20+5")
        >>> print(f"Total: {result.total}")
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(
        self,
        expression: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression (e.g., '1d20+5', '2d6+3').
            roll_type: Type of roll (normal, advantage, disadvantage).

        Returns:
            DiceExpression containing roll results.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        logger.debug("Rolling dice", expression=expression, roll_type=roll_type)

        modified_expression = expression
        if "d20" in expression.lower() and roll_type != RollType.NORMAL:
            keep = "kh1" if roll_type == RollType.ADVANTAGE else "kl1"
            modified_expression = expression.replace("1d20", f"2d20{keep}")

        try:
            result: d20.RollResult = d20.roll(modified_expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        dice_values = self._extract_dice_values(result.expr)
        modifier = result.total - sum(dice_values)

        is_critical = False
        is_fumble = False
        if "d20" in expression.lower() and dice_values:
            is_critical = dice_values[0] == 20
            is_fumble = dice_values[0] == 1

        logger.debug(
            "Dice rolled",
            expression=expression,
            total=result.total,
            is_critical=is_critical,
        )

        return DiceExpression(
            expression=expression,
            total=result.total,
            dice=dice_values,
            modifier=modifier,
            is_critical=is_critical,
            is_fumble=is_fumble,
            roll_type=roll_type,
        )

    def _extract_dice_values(self, expr: Any) -> list[int]:
        """Extract kept dice values from a d20 expression tree."""
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append(die.number)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values

    def roll_ability_check(
        self,
        modifier: int,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll 1d20 plus a modifier.

        Args:
            modifier: The modifier to apply.
            roll_type: Type of roll (normal, advantage, disadvantage).

        Returns:
            DiceExpression containing roll results.
        """
        sign = "+" if modifier >= 0 else ""
        return self.roll(f"1d20{sign}{modifier}", roll_type=roll_type)

    def roll_skill_check(
        self,
        skill: str,
        modifier: int,
        *,
        dc: int = DEFAULT_SKILL_CHECK_DC,
        roll_type: RollType = RollType.NORMAL,
    ) -> SkillCheckResult:
        """Roll a skill check against a difficulty class.

        Args:
            skill: Name of the skill being checked.
            modifier: Total skill modifier.
            dc: Difficulty class to meet or beat.
            roll_type: Type of roll (normal, advantage, disadvantage).

        Returns:
            SkillCheckResult describing the outcome.
        """
        result = self.roll_ability_check(modifier, roll_type=roll_type)
        natural = result.dice[0] if result.dice else result.total - modifier
        check = SkillCheckResult(
            skill=skill,
            roll=natural,
            modifier=modifier,
            total=result.total,
            dc=dc,
            success=result.total >= dc,
            is_natural_20=result.is_critical,
            is_natural_1=result.is_fumble,
        )
        logger.info(
            "Skill check rolled",
            skill=skill,
            roll=check.roll,
            total=check.total,
            dc=dc,
            success=check.success,
        )
        return check


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def get_default_roller() -> DiceRoller:
    """Get the shared module-level roller, creating it on first use."""
    global _default_roller  # noqa: PLW0603
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller


def roll(
    expression: str,
    *,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Convenience function to roll dice.

    Example:
        >>> result = roll("1d20+5")
        >>> print(result.total)
    """
    return get_default_roller().roll(expression, roll_type=roll_type)


__all__ = [
    "RollType",
    "DiceExpression",
    "SkillCheckResult",
    "DiceRoller",
    "get_default_roller",
    "roll",
]
