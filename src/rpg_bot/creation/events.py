"""Wizard events.

The creation wizard reacts to a closed set of typed events. Transports
deliver button ids following the ``category_action[_target]`` convention
(``class_warrior``, ``attr_str_up``, ``attr_confirm``, ``background_noble``,
``skill_stealth``, ``skills_confirm``, ``confirm``); :func:`decode_event`
turns those ids into events and each event can render its own id back.

Example:
    >>> decode_event("attr_con_up")
    AttributeAdjusted(kind='attribute_adjusted', ability=<Ability.CON: 'constitution'>, direction=<Direction.UP: 'up'>)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from rpg_bot.core.exceptions import InvalidChoiceError, MalformedEventError
from rpg_bot.models.enums import Ability, Background, CharacterClass, Skill


class Direction(StrEnum):
    """Direction of a point-buy adjustment."""

    UP = "up"
    DOWN = "down"


# =============================================================================
# Event Types
# =============================================================================


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ClassChosen(_Event):
    """The actor picked a class."""

    kind: Literal["class_chosen"] = "class_chosen"
    character_class: CharacterClass

    @property
    def event_id(self) -> str:
        return f"class_{self.character_class.value}"


class AttributeAdjusted(_Event):
    """The actor raised or lowered one attribute."""

    kind: Literal["attribute_adjusted"] = "attribute_adjusted"
    ability: Ability
    direction: Direction

    @property
    def event_id(self) -> str:
        return f"attr_{self.ability.abbreviation}_{self.direction.value}"


class AttributesConfirmed(_Event):
    """The actor finished allocating points."""

    kind: Literal["attributes_confirmed"] = "attributes_confirmed"

    @property
    def event_id(self) -> str:
        return "attr_confirm"


class BackgroundChosen(_Event):
    """The actor picked a background."""

    kind: Literal["background_chosen"] = "background_chosen"
    background: Background

    @property
    def event_id(self) -> str:
        return f"background_{self.background.value}"


class SkillToggled(_Event):
    """The actor flipped proficiency in one skill."""

    kind: Literal["skill_toggled"] = "skill_toggled"
    skill: Skill

    @property
    def event_id(self) -> str:
        return f"skill_{self.skill.value}"


class SkillsConfirmed(_Event):
    """The actor finished choosing skills."""

    kind: Literal["skills_confirmed"] = "skills_confirmed"

    @property
    def event_id(self) -> str:
        return "skills_confirm"


class Finalize(_Event):
    """The actor confirmed the finished character."""

    kind: Literal["finalize"] = "finalize"

    @property
    def event_id(self) -> str:
        return "confirm"


WizardEvent = Annotated[
    Union[
        ClassChosen,
        AttributeAdjusted,
        AttributesConfirmed,
        BackgroundChosen,
        SkillToggled,
        SkillsConfirmed,
        Finalize,
    ],
    Field(discriminator="kind"),
]

_event_adapter: TypeAdapter[WizardEvent] = TypeAdapter(WizardEvent)


# =============================================================================
# Event Id Parsing
# =============================================================================


@dataclass(frozen=True)
class EventId:
    """A transport event id split into its parts.

    Attributes:
        category: Which step family the id belongs to.
        action: What to do (choose, up, down, toggle, confirm).
        target: What the action applies to, if anything.
    """

    category: str
    action: str
    target: str | None = None


def parse_event_id(raw: str) -> EventId:
    """Split a ``category_action[_target]`` id into an :class:`EventId`.

    Targets that contain underscores themselves (``skill_sleight_of_hand``)
    stay whole.

    Raises:
        MalformedEventError: If the id does not follow the convention.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedEventError("Empty event id", event_id=raw)
    raw = raw.strip().lower()

    if raw in ("confirm", "finalize"):
        return EventId(category="confirm", action="finalize")

    category, sep, rest = raw.partition("_")
    if not sep or not rest:
        raise MalformedEventError(f"Unrecognised event id: {raw}", event_id=raw)

    if category in ("class", "background"):
        return EventId(category=category, action="choose", target=rest)
    if category == "skill":
        return EventId(category=category, action="toggle", target=rest)
    if category == "skills" and rest == "confirm":
        return EventId(category=category, action="confirm")
    if category == "attr":
        if rest == "confirm":
            return EventId(category=category, action="confirm")
        target, sep, action = rest.rpartition("_")
        if sep and target and action in (Direction.UP, Direction.DOWN):
            return EventId(category=category, action=action, target=target)

    raise MalformedEventError(f"Unrecognised event id: {raw}", event_id=raw)


def event_from_id(event_id: EventId) -> WizardEvent:
    """Build a typed event from a parsed id.

    Raises:
        InvalidChoiceError: If the target names an unknown class,
            background, ability or skill.
        MalformedEventError: If the category/action pair is not an event.
    """
    category, action, target = event_id.category, event_id.action, event_id.target

    if category == "confirm":
        return Finalize()
    if category == "attr" and action == "confirm":
        return AttributesConfirmed()
    if category == "skills":
        return SkillsConfirmed()
    if target is None:
        raise MalformedEventError(f"Event {category}_{action} needs a target")

    if category == "class":
        return ClassChosen(character_class=_choice(CharacterClass, target, "class"))
    if category == "background":
        return BackgroundChosen(background=_choice(Background, target, "background"))
    if category == "skill":
        return SkillToggled(skill=_choice(Skill, target, "skill"))
    if category == "attr":
        ability = Ability.from_abbreviation(target)
        if ability is None:
            raise InvalidChoiceError(
                f"Unknown attribute: {target}",
                field_name="ability",
                invalid_value=target,
            )
        return AttributeAdjusted(ability=ability, direction=Direction(action))

    raise MalformedEventError(f"Unknown event category: {category}")


def _choice(enum_type: type[StrEnum], value: str, field_name: str) -> Any:
    try:
        return enum_type(value)
    except ValueError as exc:
        raise InvalidChoiceError(
            f"Unknown {field_name}: {value}",
            field_name=field_name,
            invalid_value=value,
        ) from exc


def decode_event(raw: str) -> WizardEvent:
    """Decode a transport event id into a typed wizard event.

    Args:
        raw: Button id such as ``attr_str_up``.

    Returns:
        The matching wizard event.

    Raises:
        MalformedEventError: If the id is not a wizard event id.
        InvalidChoiceError: If it names an unknown class, background,
            ability or skill.
    """
    return event_from_id(parse_event_id(raw))


def decode_payload(payload: dict[str, Any]) -> WizardEvent:
    """Validate a structured event payload (``{"kind": ..., ...}``).

    Raises:
        MalformedEventError: If the payload is not a valid wizard event.
    """
    try:
        return _event_adapter.validate_python(payload)
    except PydanticValidationError as exc:
        raise MalformedEventError(
            "Invalid event payload",
            details={"errors": exc.error_count(), "payload": payload},
        ) from exc


__all__ = [
    "Direction",
    "ClassChosen",
    "AttributeAdjusted",
    "AttributesConfirmed",
    "BackgroundChosen",
    "SkillToggled",
    "SkillsConfirmed",
    "Finalize",
    "WizardEvent",
    "EventId",
    "parse_event_id",
    "event_from_id",
    "decode_event",
    "decode_payload",
]
