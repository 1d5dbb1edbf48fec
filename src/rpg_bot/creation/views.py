"""Transport-neutral rendering of wizard steps.

:func:`render_view` maps a :class:`~rpg_bot.creation.session.SessionSnapshot`
to a :class:`WizardView`: a title, a description, display fields and
buttons. Button ids are the event ids the wizard accepts, so a transport can
send a pressed button straight back to
:meth:`~rpg_bot.creation.registry.SessionRegistry.dispatch`.

Nothing here changes session state.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

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
from rpg_bot.creation.session import CreationStep, SessionSnapshot
from rpg_bot.models.class_data import get_class_skills, get_primary_attribute, unmet_requirements
from rpg_bot.models.components import calculate_modifier
from rpg_bot.models.enums import Ability, Background, CharacterClass


class WizardField(BaseModel):
    """One name/value pair shown in a view."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    inline: bool = True


class WizardButton(BaseModel):
    """A pressable action; ``id`` is the event id it sends."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    disabled: bool = False
    selected: bool = False


class WizardView(BaseModel):
    """Everything a transport needs to draw one wizard step."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    fields: list[WizardField] = Field(default_factory=list)
    buttons: list[WizardButton] = Field(default_factory=list)

    def button(self, button_id: str) -> WizardButton | None:
        """Find a button by id."""
        for candidate in self.buttons:
            if candidate.id == button_id:
                return candidate
        return None


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def _render_class_select(snapshot: SessionSnapshot) -> WizardView:
    fields = []
    for character_class in CharacterClass:
        primary = get_primary_attribute(character_class)
        skills = ", ".join(s.display_name for s in get_class_skills(character_class))
        fields.append(
            WizardField(
                name=character_class.display_name,
                value=f"Primary: {primary.full_name if primary else '-'}\nSkills: {skills}",
            )
        )
    return WizardView(
        title="Choose your class",
        description=f"Welcome, {snapshot.draft.name}! Pick the class for your character.",
        fields=fields,
        buttons=[
            WizardButton(id=ClassChosen(character_class=c).event_id, label=c.display_name)
            for c in CharacterClass
        ],
    )


def _render_attribute_allocate(snapshot: SessionSnapshot) -> WizardView:
    budget = snapshot.draft.budget
    assert budget is not None
    remaining = budget.remaining()

    fields = [
        WizardField(
            name=ability.full_name,
            value=(
                f"{budget.attributes.get_score(ability)} "
                f"({_signed(calculate_modifier(budget.attributes.get_score(ability)))})"
            ),
        )
        for ability in Ability
    ]

    buttons: list[WizardButton] = []
    for ability in Ability:
        buttons.append(
            WizardButton(
                id=AttributeAdjusted(ability=ability, direction=Direction.UP).event_id,
                label=f"{ability.abbreviation.upper()} +",
                disabled=not budget.can_increase(ability),
            )
        )
        buttons.append(
            WizardButton(
                id=AttributeAdjusted(ability=ability, direction=Direction.DOWN).event_id,
                label=f"{ability.abbreviation.upper()} -",
                disabled=not budget.can_decrease(ability),
            )
        )
    if remaining == 0:
        buttons.append(WizardButton(id=AttributesConfirmed().event_id, label="Confirm attributes"))

    return WizardView(
        title="Allocate attributes",
        description=f"Points remaining: {remaining} of {budget.total}",
        fields=fields,
        buttons=buttons,
    )


def _render_background_select(snapshot: SessionSnapshot) -> WizardView:
    return WizardView(
        title="Choose your background",
        description="Where does your character come from?",
        buttons=[
            WizardButton(id=BackgroundChosen(background=b).event_id, label=b.display_name)
            for b in Background
        ],
    )


def _render_skill_select(snapshot: SessionSnapshot) -> WizardView:
    draft = snapshot.draft
    proficient = set(draft.proficient_skills)
    skills = get_class_skills(draft.character_class) if draft.character_class else ()

    by_ability: dict[Ability, list[str]] = {}
    for skill in skills:
        mark = "[x]" if skill.value in proficient else "[ ]"
        by_ability.setdefault(skill.ability, []).append(f"{mark} {skill.display_name}")

    return WizardView(
        title="Choose your skills",
        description="Toggle the skills your character is proficient in.",
        fields=[
            WizardField(name=ability.full_name, value="\n".join(lines))
            for ability, lines in by_ability.items()
        ],
        buttons=[
            WizardButton(
                id=SkillToggled(skill=skill).event_id,
                label=skill.display_name,
                selected=skill.value in proficient,
            )
            for skill in skills
        ]
        + [WizardButton(id=SkillsConfirmed().event_id, label="Confirm skills")],
    )


def _render_confirm(snapshot: SessionSnapshot) -> WizardView:
    draft = snapshot.draft
    assert draft.character_class is not None and draft.budget is not None
    attributes = draft.budget.attributes
    unmet = unmet_requirements(draft.character_class, attributes)

    if unmet:
        requirements = "Below recommended: " + ", ".join(
            f"{ability.full_name} {minimum}" for ability, minimum in unmet.items()
        )
    else:
        requirements = "All recommended attributes met"

    return WizardView(
        title="Confirm your character",
        description=f"{draft.name} is ready. Confirm to create the character.",
        fields=[
            WizardField(name="Class", value=draft.character_class.display_name),
            WizardField(
                name="Background",
                value=draft.background.display_name if draft.background else "-",
            ),
            WizardField(
                name="Attributes",
                value="\n".join(
                    f"{a.abbreviation.upper()} {attributes.get_score(a)}" for a in Ability
                ),
                inline=False,
            ),
            WizardField(
                name="Skills",
                value=", ".join(draft.proficient_skills) or "None",
                inline=False,
            ),
            WizardField(name="Requirements", value=requirements, inline=False),
        ],
        buttons=[WizardButton(id=Finalize().event_id, label="Create character")],
    )


def _render_complete(snapshot: SessionSnapshot) -> WizardView:
    character = snapshot.character
    if character is None:
        return WizardView(title="Character created", description=f"{snapshot.draft.name} is ready.")
    return WizardView(
        title="Character created",
        description=(
            f"{character.name}, level {character.level} "
            f"{character.character_class.display_name}, is ready for adventure."
        ),
        fields=[
            WizardField(
                name="Health",
                value=f"{character.combat.current_health}/{character.combat.max_health}",
            ),
            WizardField(name="Armor", value=str(character.combat.armor)),
            WizardField(name="Gold", value=str(character.gold)),
        ],
    )


_RENDERERS = {
    CreationStep.CLASS_SELECT: _render_class_select,
    CreationStep.ATTRIBUTE_ALLOCATE: _render_attribute_allocate,
    CreationStep.BACKGROUND_SELECT: _render_background_select,
    CreationStep.SKILL_SELECT: _render_skill_select,
    CreationStep.CONFIRM: _render_confirm,
    CreationStep.COMPLETE: _render_complete,
}


def render_view(snapshot: SessionSnapshot) -> WizardView:
    """Build the view for the snapshot's current step.

    Args:
        snapshot: Session state to render.

    Returns:
        The view for that step.
    """
    return _RENDERERS[snapshot.step](snapshot)


__all__ = [
    "WizardField",
    "WizardButton",
    "WizardView",
    "render_view",
]
