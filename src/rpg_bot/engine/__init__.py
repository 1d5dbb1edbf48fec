"""Dice mechanics.

Random numbers never come from anywhere else: every roll in the rules
engine goes through :class:`DiceRoller`, which wraps the ``d20`` library.
"""

from __future__ import annotations

from rpg_bot.engine.dice import (
    DiceExpression,
    DiceRoller,
    RollType,
    SkillCheckResult,
    get_default_roller,
    roll,
)


__all__ = [
    "DiceExpression",
    "DiceRoller",
    "RollType",
    "SkillCheckResult",
    "get_default_roller",
    "roll",
]
