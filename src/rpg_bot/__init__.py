"""RPG Bot - Rules engine for a chat-based role-playing game.

The engine owns every rule; chat transports only render views and forward
button presses.

- Characters are created through a step-by-step wizard (class, point-buy
  attributes, background, skills, confirm) with one session per player.
- The Character aggregate re-checks all of its invariants after every
  mutation, so an invalid character is never saved.
- Dice come from the ``d20`` library; nothing else generates randomness.

Example:
    >>> from rpg_bot import DraftSeed, InMemoryCharacterRepository, SessionRegistry
    >>>
    >>> registry = SessionRegistry(InMemoryCharacterRepository())
    >>> await registry.start(DraftSeed(owner_id="1", guild_id="9", name="Aria"))
    >>> await registry.dispatch("1", "class_mage")

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas, formulas and the Character aggregate.
    engine: Dice rolling.
    creation: The character creation wizard and session registry.
    storage: Character persistence gateways.
    services: Gameplay operations on stored characters.
"""

from __future__ import annotations

# Core
from rpg_bot.core.config import Settings, get_settings
from rpg_bot.core.exceptions import PersistenceError, ProtocolError, RpgBotError, ValidationError
from rpg_bot.core.logging import configure_logging, get_logger

# Models
from rpg_bot.models.character import Character
from rpg_bot.models.equipment import EquipmentValidator, Item
from rpg_bot.models.point_buy import AttributeBudget

# Creation
from rpg_bot.creation.registry import SessionRegistry
from rpg_bot.creation.session import CreationStep, DraftSeed, SessionSnapshot
from rpg_bot.creation.views import WizardView, render_view

# Storage & Services
from rpg_bot.services.character_service import CharacterService
from rpg_bot.storage.database import SQLiteCharacterRepository
from rpg_bot.storage.repository import CharacterGateway, InMemoryCharacterRepository


__version__ = "0.1.0"
__author__ = "RPG Bot Team"
__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Core
    "RpgBotError",
    "ValidationError",
    "ProtocolError",
    "PersistenceError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Character",
    "Item",
    "EquipmentValidator",
    "AttributeBudget",
    # Creation
    "SessionRegistry",
    "CreationStep",
    "DraftSeed",
    "SessionSnapshot",
    "WizardView",
    "render_view",
    # Storage & Services
    "CharacterGateway",
    "InMemoryCharacterRepository",
    "SQLiteCharacterRepository",
    "CharacterService",
]
