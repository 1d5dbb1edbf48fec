"""Tests for point-buy attribute allocation."""

from __future__ import annotations

import pytest

from rpg_bot.core.exceptions import AttributeBudgetError
from rpg_bot.models.class_data import get_base_attributes
from rpg_bot.models.components import Attributes
from rpg_bot.models.enums import Ability, CharacterClass
from rpg_bot.models.point_buy import AttributeBudget, step_cost, total_cost


def _raise(budget: AttributeBudget, ability: Ability, to: int) -> AttributeBudget:
    while budget.attributes.get_score(ability) < to:
        budget = budget.increase(ability)
    return budget


class TestCosts:
    """Tests for the point cost table."""

    @pytest.mark.parametrize(
        ("target", "cost"),
        [(8, 0), (9, 1), (13, 1), (14, 2), (15, 3)],
    )
    def test_step_cost(self, target: int, cost: int) -> None:
        """Test the cost of reaching each value."""
        assert step_cost(target) == cost

    def test_total_cost(self) -> None:
        """Test cumulative cost from the floor."""
        assert total_cost(8) == 0
        assert total_cost(13) == 5
        assert total_cost(14) == 7
        assert total_cost(15) == 10


class TestAttributeBudget:
    """Tests for the AttributeBudget model."""

    def test_floor_budget(self) -> None:
        """Test a fresh budget has every point available."""
        budget = AttributeBudget.from_attributes(Attributes.floor())
        assert budget.spent() == 0
        assert budget.remaining() == 27
        assert not budget.is_complete()

    def test_remaining_after_raises(self) -> None:
        """Test CON to 14 and STR to 13 leaves 15 points."""
        budget = AttributeBudget.from_attributes(Attributes.floor())
        budget = _raise(budget, Ability.CON, 14)
        budget = _raise(budget, Ability.STR, 13)
        assert budget.attributes.constitution == 14
        assert budget.attributes.strength == 13
        assert budget.remaining() == 15

    def test_increase_returns_new_budget(self) -> None:
        """Test budgets are immutable."""
        budget = AttributeBudget.from_attributes(Attributes.floor())
        raised = budget.increase(Ability.DEX)
        assert budget.attributes.dexterity == 8
        assert raised.attributes.dexterity == 9

    def test_decrease_refunds(self) -> None:
        """Test lowering a value refunds its step cost."""
        budget = _raise(AttributeBudget.from_attributes(Attributes.floor()), Ability.WIS, 15)
        assert budget.remaining() == 17
        budget = budget.decrease(Ability.WIS)
        assert budget.remaining() == 20

    def test_cannot_exceed_ceiling(self) -> None:
        """Test values stop at 15 during creation."""
        budget = _raise(AttributeBudget.from_attributes(Attributes.floor()), Ability.INT, 15)
        assert not budget.can_increase(Ability.INT)
        with pytest.raises(AttributeBudgetError):
            budget.increase(Ability.INT)

    def test_cannot_go_below_floor(self) -> None:
        """Test values stop at 8."""
        budget = AttributeBudget.from_attributes(Attributes.floor())
        assert not budget.can_decrease(Ability.CHA)
        with pytest.raises(AttributeBudgetError):
            budget.decrease(Ability.CHA)

    def test_cannot_overspend(self) -> None:
        """Test a step costing more than remaining points is rejected."""
        budget = AttributeBudget.from_attributes(Attributes.floor())
        budget = _raise(budget, Ability.STR, 15)
        budget = _raise(budget, Ability.DEX, 15)
        budget = _raise(budget, Ability.CON, 13)
        budget = _raise(budget, Ability.INT, 9)
        assert budget.remaining() == 1
        budget = budget.increase(Ability.WIS)
        assert budget.remaining() == 0
        assert budget.is_complete()
        assert not budget.can_increase(Ability.CHA)
        with pytest.raises(AttributeBudgetError) as exc_info:
            budget.increase(Ability.CHA)
        assert exc_info.value.details["remaining"] == 0

    def test_rejects_out_of_range_spread(self) -> None:
        """Test constructing a budget outside creation bounds fails."""
        with pytest.raises(AttributeBudgetError):
            AttributeBudget(attributes=Attributes(strength=16))

    def test_rejects_overspent_spread(self) -> None:
        """Test constructing a budget that costs too much fails."""
        spread = Attributes(
            strength=15,
            dexterity=15,
            constitution=15,
            intelligence=8,
            wisdom=8,
            charisma=8,
        )
        with pytest.raises(AttributeBudgetError):
            AttributeBudget.from_attributes(spread)

    @pytest.mark.parametrize("character_class", list(CharacterClass))
    def test_class_baselines_fit_budget(self, character_class: CharacterClass) -> None:
        """Test every class baseline is a valid starting allocation."""
        budget = AttributeBudget.from_attributes(get_base_attributes(character_class))
        assert budget.remaining() >= 0
