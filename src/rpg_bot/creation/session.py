"""The character creation wizard.

The wizard walks a draft through ordered steps::

    CLASS_SELECT -> ATTRIBUTE_ALLOCATE -> BACKGROUND_SELECT
        -> SKILL_SELECT -> CONFIRM -> COMPLETE

:func:`transition` is a pure function from ``(step, draft, event)`` to the
next step, the next draft and any side effects to perform. It never touches
storage and never mutates its inputs, so a rejected event leaves nothing
behind. :class:`CreationSession` owns one actor's wizard state, performs the
effects (persisting the finished character) and only advances once they
succeed.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rpg_bot.core.config import GameSettings
from rpg_bot.core.constants import MAX_NAME_LENGTH, MIN_NAME_LENGTH
from rpg_bot.core.exceptions import (
    AttributeBudgetError,
    CharacterAlreadyExistsError,
    InvalidChoiceError,
    InvalidTransitionError,
    PersistenceError,
    RpgBotError,
)
from rpg_bot.core.logging import get_logger
from rpg_bot.creation.events import (
    AttributeAdjusted,
    AttributesConfirmed,
    BackgroundChosen,
    ClassChosen,
    Direction,
    Finalize,
    SkillsConfirmed,
    SkillToggled,
    WizardEvent,
)
from rpg_bot.models.character import Character
from rpg_bot.models.class_data import get_base_attributes, get_class_skills, is_class_skill
from rpg_bot.models.components import SkillProficiency
from rpg_bot.models.enums import Background, CharacterClass
from rpg_bot.models.equipment import get_starting_kit
from rpg_bot.models.point_buy import AttributeBudget
from rpg_bot.storage.repository import CharacterGateway


logger = get_logger(__name__)


class CreationStep(StrEnum):
    """Steps of the creation wizard, in order."""

    CLASS_SELECT = "class_select"
    ATTRIBUTE_ALLOCATE = "attribute_allocate"
    BACKGROUND_SELECT = "background_select"
    SKILL_SELECT = "skill_select"
    CONFIRM = "confirm"
    COMPLETE = "complete"


# Event kinds each step accepts
ACCEPTED_EVENTS: dict[CreationStep, tuple[str, ...]] = {
    CreationStep.CLASS_SELECT: ("class_chosen",),
    CreationStep.ATTRIBUTE_ALLOCATE: ("attribute_adjusted", "attributes_confirmed"),
    CreationStep.BACKGROUND_SELECT: ("background_chosen",),
    CreationStep.SKILL_SELECT: ("skill_toggled", "skills_confirmed"),
    CreationStep.CONFIRM: ("finalize",),
    CreationStep.COMPLETE: (),
}


# =============================================================================
# Draft
# =============================================================================


class DraftSeed(BaseModel):
    """What the transport knows when an actor starts creating a character.

    Attributes:
        owner_id: The actor starting the wizard.
        guild_id: The scope the character will live in.
        name: The requested character name.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner_id: str = Field(min_length=1)
    guild_id: str = Field(min_length=1)
    name: str = Field(min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: object) -> object:
        """Trim surrounding whitespace before the length check."""
        return value.strip() if isinstance(value, str) else value


class CreationDraft(BaseModel):
    """The in-progress, not yet persisted character.

    Immutable: every accepted event produces a new draft.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    owner_id: str
    guild_id: str
    name: str
    character_class: CharacterClass | None = None
    budget: AttributeBudget | None = None
    background: Background | None = None
    skills: tuple[SkillProficiency, ...] = ()

    @classmethod
    def from_seed(cls, seed: DraftSeed) -> CreationDraft:
        """Start an empty draft for a seed."""
        return cls(owner_id=seed.owner_id, guild_id=seed.guild_id, name=seed.name)

    @property
    def proficient_skills(self) -> list[str]:
        """Values of the skills currently marked proficient."""
        return [record.skill.value for record in self.skills if record.is_proficient]


# =============================================================================
# Transition Function
# =============================================================================


@dataclass(frozen=True)
class PersistCharacter:
    """Effect: store the finished character, then complete the wizard."""

    character: Character


@dataclass(frozen=True)
class Transition:
    """Result of applying an event.

    Attributes:
        step: The step the wizard moves to once effects succeed.
        draft: The draft after the event.
        effects: Side effects the session must perform first.
    """

    step: CreationStep
    draft: CreationDraft
    effects: tuple[PersistCharacter, ...] = ()


def build_character(draft: CreationDraft, game: GameSettings) -> Character:
    """Turn a confirmed draft into a level-1 character."""
    if draft.character_class is None or draft.budget is None or draft.background is None:
        raise InvalidTransitionError(
            "The draft is incomplete",
            current_step=CreationStep.CONFIRM.value,
        )
    inventory = get_starting_kit(draft.character_class) if game.grant_starting_kit else []
    return Character.create(
        owner_id=draft.owner_id,
        guild_id=draft.guild_id,
        name=draft.name,
        character_class=draft.character_class,
        background=draft.background,
        attributes=draft.budget.attributes,
        skills=[record.model_copy() for record in draft.skills],
        gold=game.starting_gold,
        inventory=inventory,
        creation_token=draft.session_id,
    )


def transition(
    step: CreationStep,
    draft: CreationDraft,
    event: WizardEvent,
    *,
    game: GameSettings | None = None,
) -> Transition:
    """Apply one wizard event.

    Args:
        step: The current step.
        draft: The current draft. Never mutated.
        event: The event to apply.
        game: Game settings used when building the finished character.

    Returns:
        The next step, draft and effects.

    Raises:
        InvalidTransitionError: If the step does not accept this event.
        AttributeBudgetError: If a point-buy change or confirmation breaks
            the budget.
        InvalidChoiceError: If a skill is not valid for the class.
    """
    if event.kind not in ACCEPTED_EVENTS[step]:
        raise InvalidTransitionError(
            f"Cannot {event.kind.replace('_', ' ')} during {step.value.replace('_', ' ')}",
            current_step=step.value,
            event_kind=event.kind,
            expected_events=list(ACCEPTED_EVENTS[step]),
        )

    match event:
        case ClassChosen(character_class=character_class):
            budget = AttributeBudget.from_attributes(get_base_attributes(character_class))
            return Transition(
                CreationStep.ATTRIBUTE_ALLOCATE,
                draft.model_copy(update={"character_class": character_class, "budget": budget}),
            )

        case AttributeAdjusted(ability=ability, direction=direction):
            budget = draft.budget or AttributeBudget()
            if direction is Direction.UP:
                budget = budget.increase(ability)
            else:
                budget = budget.decrease(ability)
            return Transition(step, draft.model_copy(update={"budget": budget}))

        case AttributesConfirmed():
            remaining = draft.budget.remaining() if draft.budget else None
            if remaining != 0:
                raise AttributeBudgetError(
                    f"Spend all points before continuing ({remaining} left)",
                    remaining=remaining,
                )
            return Transition(CreationStep.BACKGROUND_SELECT, draft)

        case BackgroundChosen(background=background):
            skills = tuple(
                SkillProficiency(skill=skill) for skill in get_class_skills(draft.character_class)
            )
            return Transition(
                CreationStep.SKILL_SELECT,
                draft.model_copy(update={"background": background, "skills": skills}),
            )

        case SkillToggled(skill=skill):
            if draft.character_class is None or not is_class_skill(draft.character_class, skill):
                raise InvalidChoiceError(
                    f"{skill.display_name} is not available to this class",
                    field_name="skill",
                    invalid_value=skill.value,
                )
            skills = list(draft.skills)
            for index, record in enumerate(skills):
                if record.skill == skill:
                    skills[index] = record.model_copy(
                        update={"is_proficient": not record.is_proficient}
                    )
                    break
            else:
                skills.append(SkillProficiency(skill=skill, is_proficient=True))
            return Transition(step, draft.model_copy(update={"skills": tuple(skills)}))

        case SkillsConfirmed():
            return Transition(CreationStep.CONFIRM, draft)

        case Finalize():
            character = build_character(draft, game or GameSettings())
            return Transition(CreationStep.COMPLETE, draft, (PersistCharacter(character),))

    raise InvalidTransitionError(f"Unhandled event: {event.kind}", current_step=step.value)


# =============================================================================
# Session
# =============================================================================


class SessionSnapshot(BaseModel):
    """Read-only view of a session, handed to renderers."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    step: CreationStep
    draft: CreationDraft
    character: Character | None = None

    @property
    def is_complete(self) -> bool:
        return self.step is CreationStep.COMPLETE


class CreationSession:
    """One actor's creation wizard.

    The session is not safe for concurrent use on its own; the registry
    holds :attr:`lock` around every :meth:`apply`.

    Attributes:
        session_id: Unique id, also stamped on the finished character.
        step: Current step.
        draft: Current draft.
        character: The persisted character once complete.
        lock: Serializes check-and-transition for this session.
        last_activity: Monotonic time of the last event, accepted or not.
    """

    def __init__(
        self,
        draft: CreationDraft,
        gateway: CharacterGateway,
        *,
        game: GameSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_id = draft.session_id
        self.step = CreationStep.CLASS_SELECT
        self.draft = draft
        self.character: Character | None = None
        self.lock = asyncio.Lock()
        self._gateway = gateway
        self._game = game or GameSettings()
        self._clock = clock
        self.last_activity = clock()

    @property
    def owner_id(self) -> str:
        return self.draft.owner_id

    @property
    def is_complete(self) -> bool:
        return self.step is CreationStep.COMPLETE

    def snapshot(self) -> SessionSnapshot:
        """Capture the current state for rendering."""
        return SessionSnapshot(
            session_id=self.session_id,
            step=self.step,
            draft=self.draft,
            character=self.character,
        )

    def idle_for(self, now: float | None = None) -> float:
        """Seconds since the last event."""
        return (self._clock() if now is None else now) - self.last_activity

    async def apply(self, event: WizardEvent) -> SessionSnapshot:
        """Apply an event, performing its effects before advancing.

        Raises:
            ValidationError: If a rule rejects the event. Nothing changes.
            ProtocolError: If the step does not accept the event, or the
                actor already owns another active character.
            PersistenceError: If storing the finished character fails. The
                session stays in CONFIRM so finalize can be retried.
        """
        self.last_activity = self._clock()
        result = transition(self.step, self.draft, event, game=self._game)

        for effect in result.effects:
            self.character = await self._persist(effect.character)

        previous = self.step
        self.step = result.step
        self.draft = result.draft
        logger.info(
            "Creation step applied",
            session_id=self.session_id,
            event_kind=event.kind,
            from_step=previous.value,
            to_step=self.step.value,
        )
        return self.snapshot()

    async def _persist(self, character: Character) -> Character:
        """Store the character exactly once.

        A retried finalize first looks for an active character; one stamped
        with this session's id means an earlier attempt already succeeded.
        """
        try:
            existing = await self._gateway.find_active(character.owner_id, character.guild_id)
            if existing is not None:
                if existing.creation_token == self.session_id:
                    logger.info(
                        "Character already stored by an earlier finalize",
                        session_id=self.session_id,
                        character_id=existing.id,
                    )
                    return existing
                raise CharacterAlreadyExistsError(
                    "You already have an active character in this server",
                    details={"owner_id": character.owner_id, "guild_id": character.guild_id},
                )
            character_id = await self._gateway.create_character(character)
        except RpgBotError as exc:
            if isinstance(exc, PersistenceError):
                logger.error(
                    "Failed to store character",
                    session_id=self.session_id,
                    error=str(exc),
                )
            raise
        except Exception as exc:
            logger.exception("Failed to store character", session_id=self.session_id)
            raise PersistenceError(
                f"Could not save character: {exc}",
                operation="create_character",
            ) from exc

        return character.model_copy(update={"id": character_id})


__all__ = [
    "CreationStep",
    "ACCEPTED_EVENTS",
    "DraftSeed",
    "CreationDraft",
    "PersistCharacter",
    "Transition",
    "build_character",
    "transition",
    "SessionSnapshot",
    "CreationSession",
]
