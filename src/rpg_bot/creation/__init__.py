"""The character creation wizard.

Submodules:
    events: Typed wizard events and the ``category_action[_target]`` id codec.
    session: Creation steps, the pure transition function and sessions.
    registry: The process-wide table of active sessions.
    views: Transport-neutral rendering of each step.
"""

from __future__ import annotations

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
    decode_event,
    decode_payload,
)
from rpg_bot.creation.registry import SessionRegistry
from rpg_bot.creation.session import (
    CreationDraft,
    CreationSession,
    CreationStep,
    DraftSeed,
    SessionSnapshot,
    transition,
)
from rpg_bot.creation.views import WizardButton, WizardField, WizardView, render_view


__all__ = [
    # Events
    "Direction",
    "ClassChosen",
    "AttributeAdjusted",
    "AttributesConfirmed",
    "BackgroundChosen",
    "SkillToggled",
    "SkillsConfirmed",
    "Finalize",
    "WizardEvent",
    "decode_event",
    "decode_payload",
    # Sessions
    "CreationStep",
    "DraftSeed",
    "CreationDraft",
    "CreationSession",
    "SessionSnapshot",
    "transition",
    "SessionRegistry",
    # Views
    "WizardField",
    "WizardButton",
    "WizardView",
    "render_view",
]
