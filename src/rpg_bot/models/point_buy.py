"""Point-buy attribute allocation.

Raising an attribute from the floor costs a non-linear number of points
depending on the target value. :class:`AttributeBudget` is immutable: every
adjustment returns a new budget, which lets the creation wizard copy its
draft cheaply and discard rejected changes.

Example:
    >>> budget = AttributeBudget.from_attributes(Attributes.floor())
    >>> budget = budget.increase(Ability.CON)
    >>> budget.remaining()
    26
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rpg_bot.core.constants import POINT_BUY_MAX, POINT_BUY_MIN, POINT_BUY_TOTAL
from rpg_bot.core.exceptions import AttributeBudgetError
from rpg_bot.models.components import Attributes
from rpg_bot.models.enums import Ability


def step_cost(target_value: int) -> int:
    """Points needed to raise an attribute by one to ``target_value``.

    Args:
        target_value: The value being reached.

    Returns:
        1 up to 13, 2 for 14, 3 for 15. Zero at or below the floor.
    """
    if target_value <= POINT_BUY_MIN:
        return 0
    if target_value <= 13:
        return 1
    if target_value == 14:
        return 2
    return 3


def total_cost(value: int) -> int:
    """Cumulative points spent to raise an attribute from the floor to ``value``."""
    return sum(step_cost(v) for v in range(POINT_BUY_MIN + 1, value + 1))


class AttributeBudget(BaseModel):
    """Running point-buy allocation over the six attributes.

    Attributes:
        total: Points available for the whole allocation.
        attributes: Current attribute values, each within [8, 15].
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total: int = Field(default=POINT_BUY_TOTAL, ge=0)
    attributes: Attributes = Field(default_factory=Attributes.floor)

    @model_validator(mode="after")
    def validate_allocation(self) -> "AttributeBudget":
        """Reject spreads outside the creation bounds or over budget."""
        for ability in Ability:
            value = self.attributes.get_score(ability)
            if not POINT_BUY_MIN <= value <= POINT_BUY_MAX:
                raise AttributeBudgetError(
                    f"{ability.full_name} must be between {POINT_BUY_MIN} and "
                    f"{POINT_BUY_MAX} during creation, got {value}",
                    ability=ability.value,
                )
        if self.spent() > self.total:
            raise AttributeBudgetError(
                f"Allocation costs {self.spent()} points but only {self.total} are available",
                remaining=self.total - self.spent(),
            )
        return self

    @classmethod
    def from_attributes(cls, attributes: Attributes, total: int = POINT_BUY_TOTAL) -> AttributeBudget:
        """Start a budget from an existing spread (e.g. a class baseline)."""
        return cls(total=total, attributes=attributes)

    @staticmethod
    def cost(target_value: int) -> int:
        """Points needed to reach ``target_value`` from one below it."""
        return step_cost(target_value)

    def spent(self) -> int:
        """Points already spent across all six attributes."""
        return sum(total_cost(self.attributes.get_score(a)) for a in Ability)

    def remaining(self) -> int:
        """Points still available. Never negative."""
        return self.total - self.spent()

    def can_increase(self, ability: Ability) -> bool:
        """Check whether ``ability`` can be raised by one."""
        value = self.attributes.get_score(ability)
        return value < POINT_BUY_MAX and self.cost(value + 1) <= self.remaining()

    def can_decrease(self, ability: Ability) -> bool:
        """Check whether ``ability`` can be lowered by one."""
        return self.attributes.get_score(ability) > POINT_BUY_MIN

    def increase(self, ability: Ability) -> AttributeBudget:
        """Raise one attribute by a single point.

        Args:
            ability: The attribute to raise.

        Returns:
            A new budget with the attribute raised.

        Raises:
            AttributeBudgetError: If the attribute is at the creation ceiling
                or the step costs more than the points remaining.
        """
        value = self.attributes.get_score(ability)
        if value >= POINT_BUY_MAX:
            raise AttributeBudgetError(
                f"{ability.full_name} is already at the creation maximum of {POINT_BUY_MAX}",
                ability=ability.value,
                remaining=self.remaining(),
            )
        step = self.cost(value + 1)
        if step > self.remaining():
            raise AttributeBudgetError(
                f"Raising {ability.full_name} to {value + 1} costs {step} points, "
                f"only {self.remaining()} left",
                ability=ability.value,
                remaining=self.remaining(),
            )
        return self.model_copy(update={"attributes": self.attributes.with_score(ability, value + 1)})

    def decrease(self, ability: Ability) -> AttributeBudget:
        """Lower one attribute by a single point, refunding its cost.

        Raises:
            AttributeBudgetError: If the attribute is already at the floor.
        """
        value = self.attributes.get_score(ability)
        if value <= POINT_BUY_MIN:
            raise AttributeBudgetError(
                f"{ability.full_name} is already at the minimum of {POINT_BUY_MIN}",
                ability=ability.value,
                remaining=self.remaining(),
            )
        return self.model_copy(update={"attributes": self.attributes.with_score(ability, value - 1)})

    def is_complete(self) -> bool:
        """True once every point has been spent."""
        return self.remaining() == 0


__all__ = [
    "step_cost",
    "total_cost",
    "AttributeBudget",
]
