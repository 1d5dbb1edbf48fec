"""Tests for the creation transition function and sessions."""

from __future__ import annotations

import pytest

from rpg_bot.core.config import GameSettings
from rpg_bot.core.exceptions import (
    AttributeBudgetError,
    CharacterAlreadyExistsError,
    InvalidChoiceError,
    InvalidTransitionError,
    PersistenceError,
)
from rpg_bot.creation.events import (
    AttributeAdjusted,
    AttributesConfirmed,
    BackgroundChosen,
    ClassChosen,
    Direction,
    Finalize,
    SkillsConfirmed,
    SkillToggled,
)
from rpg_bot.creation.session import (
    CreationDraft,
    CreationSession,
    CreationStep,
    DraftSeed,
    PersistCharacter,
    transition,
)
from rpg_bot.models.enums import Ability, Background, CharacterClass, Skill


def _draft() -> CreationDraft:
    return CreationDraft.from_seed(DraftSeed(owner_id="user-1", guild_id="guild-1", name="Aria"))


def _walk_to_confirm(step: CreationStep, draft: CreationDraft) -> tuple[CreationStep, CreationDraft]:
    """Drive a mage draft (baseline spends every point) to CONFIRM."""
    for event in (
        ClassChosen(character_class=CharacterClass.MAGE),
        AttributesConfirmed(),
        BackgroundChosen(background=Background.NOBLE),
        SkillToggled(skill=Skill.ARCANA),
        SkillsConfirmed(),
    ):
        result = transition(step, draft, event)
        step, draft = result.step, result.draft
    return step, draft


class TestDraftSeed:
    """Tests for wizard seeds."""

    def test_name_trimmed(self) -> None:
        """Test names are stripped."""
        assert DraftSeed(owner_id="1", guild_id="2", name="  Aria ").name == "Aria"

    @pytest.mark.parametrize("name", ["Al", "A" * 21, "   "])
    def test_name_length(self, name: str) -> None:
        """Test names must be 3 to 20 characters."""
        with pytest.raises(ValueError):
            DraftSeed(owner_id="1", guild_id="2", name=name)


class TestTransition:
    """Tests for the pure transition function."""

    def test_class_seeds_budget(self) -> None:
        """Test choosing a class seeds the class baseline."""
        result = transition(
            CreationStep.CLASS_SELECT,
            _draft(),
            ClassChosen(character_class=CharacterClass.WARRIOR),
        )
        assert result.step is CreationStep.ATTRIBUTE_ALLOCATE
        assert result.draft.character_class is CharacterClass.WARRIOR
        assert result.draft.budget.attributes.strength == 15
        assert result.draft.budget.remaining() == 2

    def test_inputs_not_mutated(self) -> None:
        """Test the draft passed in is left as it was."""
        draft = _draft()
        transition(CreationStep.CLASS_SELECT, draft, ClassChosen(character_class=CharacterClass.MAGE))
        assert draft.character_class is None
        assert draft.budget is None

    def test_wrong_event_for_step(self) -> None:
        """Test events the step does not accept are refused."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            transition(CreationStep.CLASS_SELECT, _draft(), Finalize())
        assert exc_info.value.details["current_step"] == "class_select"
        assert exc_info.value.details["expected_events"] == ["class_chosen"]

    def test_complete_accepts_nothing(self) -> None:
        """Test a completed wizard refuses every event."""
        with pytest.raises(InvalidTransitionError):
            transition(CreationStep.COMPLETE, _draft(), Finalize())

    def test_adjust_attribute(self) -> None:
        """Test point-buy adjustments stay on the step."""
        step = CreationStep.CLASS_SELECT
        draft = transition(step, _draft(), ClassChosen(character_class=CharacterClass.WARRIOR)).draft
        result = transition(
            CreationStep.ATTRIBUTE_ALLOCATE,
            draft,
            AttributeAdjusted(ability=Ability.CHA, direction=Direction.UP),
        )
        assert result.step is CreationStep.ATTRIBUTE_ALLOCATE
        assert result.draft.budget.attributes.charisma == 11
        assert result.draft.budget.remaining() == 1

    def test_adjust_over_budget(self) -> None:
        """Test an unaffordable raise is rejected."""
        draft = transition(
            CreationStep.CLASS_SELECT, _draft(), ClassChosen(character_class=CharacterClass.MAGE)
        ).draft
        with pytest.raises(AttributeBudgetError):
            transition(
                CreationStep.ATTRIBUTE_ALLOCATE,
                draft,
                AttributeAdjusted(ability=Ability.STR, direction=Direction.UP),
            )

    def test_confirm_requires_all_points_spent(self) -> None:
        """Test attributes cannot be confirmed with points left."""
        draft = transition(
            CreationStep.CLASS_SELECT, _draft(), ClassChosen(character_class=CharacterClass.WARRIOR)
        ).draft
        with pytest.raises(AttributeBudgetError) as exc_info:
            transition(CreationStep.ATTRIBUTE_ALLOCATE, draft, AttributesConfirmed())
        assert exc_info.value.details["remaining"] == 2

    def test_background_seeds_class_skills(self) -> None:
        """Test choosing a background lists every class skill unselected."""
        draft = transition(
            CreationStep.CLASS_SELECT, _draft(), ClassChosen(character_class=CharacterClass.MAGE)
        ).draft
        result = transition(
            CreationStep.BACKGROUND_SELECT, draft, BackgroundChosen(background=Background.WILD)
        )
        assert result.step is CreationStep.SKILL_SELECT
        assert [record.skill for record in result.draft.skills] == [
            Skill.ARCANA,
            Skill.HISTORY,
            Skill.INVESTIGATION,
            Skill.MEDICINE,
        ]
        assert result.draft.proficient_skills == []

    def test_toggle_skill_twice(self) -> None:
        """Test toggling flips proficiency on and off."""
        step, draft = CreationStep.CLASS_SELECT, _draft()
        for event in (
            ClassChosen(character_class=CharacterClass.MAGE),
            AttributesConfirmed(),
            BackgroundChosen(background=Background.NOBLE),
        ):
            result = transition(step, draft, event)
            step, draft = result.step, result.draft

        draft = transition(step, draft, SkillToggled(skill=Skill.HISTORY)).draft
        assert draft.proficient_skills == ["history"]
        draft = transition(step, draft, SkillToggled(skill=Skill.HISTORY)).draft
        assert draft.proficient_skills == []

    def test_toggle_foreign_skill(self) -> None:
        """Test skills outside the class set are rejected."""
        step, draft = CreationStep.CLASS_SELECT, _draft()
        for event in (
            ClassChosen(character_class=CharacterClass.MAGE),
            AttributesConfirmed(),
            BackgroundChosen(background=Background.NOBLE),
        ):
            result = transition(step, draft, event)
            step, draft = result.step, result.draft
        with pytest.raises(InvalidChoiceError):
            transition(step, draft, SkillToggled(skill=Skill.STEALTH))

    def test_finalize_emits_persist_effect(self) -> None:
        """Test finalize builds the character as an effect."""
        step, draft = _walk_to_confirm(CreationStep.CLASS_SELECT, _draft())
        assert step is CreationStep.CONFIRM

        result = transition(step, draft, Finalize())
        assert result.step is CreationStep.COMPLETE
        (effect,) = result.effects
        assert isinstance(effect, PersistCharacter)
        character = effect.character
        assert character.name == "Aria"
        assert character.character_class is CharacterClass.MAGE
        assert character.creation_token == draft.session_id
        assert character.gold == 100
        assert [item.name for item in character.inventory] == [
            "Oak Staff",
            "Apprentice Amulet",
            "Health Potion",
        ]
        assert character.get_skill(Skill.ARCANA).is_proficient

    def test_finalize_respects_game_settings(self) -> None:
        """Test gold and starting kit follow the game settings."""
        step, draft = _walk_to_confirm(CreationStep.CLASS_SELECT, _draft())
        game = GameSettings(starting_gold=5, grant_starting_kit=False)
        character = transition(step, draft, Finalize(), game=game).effects[0].character
        assert character.gold == 5
        assert character.inventory == []


class TestCreationSession:
    """Tests for a single actor's session."""

    async def _confirmed_session(self, gateway, clock=None) -> CreationSession:
        kwargs = {"clock": clock} if clock else {}
        session = CreationSession(_draft(), gateway, **kwargs)
        for event in (
            ClassChosen(character_class=CharacterClass.MAGE),
            AttributesConfirmed(),
            BackgroundChosen(background=Background.NOBLE),
            SkillsConfirmed(),
        ):
            await session.apply(event)
        assert session.step is CreationStep.CONFIRM
        return session

    @pytest.mark.asyncio
    async def test_finalize_persists(self, repository) -> None:
        """Test finalize stores the character and completes."""
        session = await self._confirmed_session(repository)
        snapshot = await session.apply(Finalize())

        assert snapshot.is_complete
        assert snapshot.character.id is not None
        stored = await repository.find_active("user-1", "guild-1")
        assert stored.id == snapshot.character.id

    @pytest.mark.asyncio
    async def test_rejected_event_changes_nothing(self, repository) -> None:
        """Test a rejected event leaves step and draft in place."""
        session = CreationSession(_draft(), repository)
        before = session.snapshot()
        with pytest.raises(InvalidTransitionError):
            await session.apply(SkillsConfirmed())
        assert session.snapshot() == before

    @pytest.mark.asyncio
    async def test_persistence_failure_stays_in_confirm(self, flaky_repository) -> None:
        """Test a failed store keeps the session retryable."""
        session = await self._confirmed_session(flaky_repository)
        flaky_repository.failures = 1

        with pytest.raises(PersistenceError):
            await session.apply(Finalize())
        assert session.step is CreationStep.CONFIRM
        assert session.character is None

        snapshot = await session.apply(Finalize())
        assert snapshot.is_complete
        assert len(flaky_repository.inner) == 1

    @pytest.mark.asyncio
    async def test_retry_after_lost_acknowledgement(self, flaky_repository) -> None:
        """Test a retry adopts a character an earlier attempt already stored."""
        session = await self._confirmed_session(flaky_repository)
        flaky_repository.failures = 1
        flaky_repository.store_before_failing = True

        with pytest.raises(PersistenceError):
            await session.apply(Finalize())
        snapshot = await session.apply(Finalize())

        assert snapshot.is_complete
        assert snapshot.character.creation_token == session.session_id
        assert len(flaky_repository.inner) == 1
        assert flaky_repository.create_calls == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, flaky_repository) -> None:
        """Test driver errors surface as PersistenceError."""
        session = await self._confirmed_session(flaky_repository)
        flaky_repository.failures = 1
        flaky_repository.error = OSError("disk full")

        with pytest.raises(PersistenceError):
            await session.apply(Finalize())
        assert session.step is CreationStep.CONFIRM

    @pytest.mark.asyncio
    async def test_other_active_character(self, repository, warrior) -> None:
        """Test finalize refuses when another character became active."""
        session = await self._confirmed_session(repository)
        await repository.create_character(warrior)

        with pytest.raises(CharacterAlreadyExistsError):
            await session.apply(Finalize())
        assert session.step is CreationStep.CONFIRM

    @pytest.mark.asyncio
    async def test_activity_tracking(self, repository, clock) -> None:
        """Test accepted events refresh the activity time."""
        session = CreationSession(_draft(), repository, clock=clock)
        clock.advance(30)
        assert session.idle_for() == 30
        await session.apply(ClassChosen(character_class=CharacterClass.BARD))
        assert session.idle_for() == 0
