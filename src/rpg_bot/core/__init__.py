"""Core module providing configuration, logging, and base exceptions.

This module is the foundation of the RPG bot rules engine and holds the
infrastructure every other package depends on.

Exports:
    Exceptions:
        RpgBotError: Base exception for all application errors.
        ValidationError: A rule rejected a request.
        ProtocolError: A request arrived at the wrong time.
        PersistenceError: The storage layer failed.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
        log_context: Scoped logging context.
"""

from __future__ import annotations

from rpg_bot.core.config import (
    GameSettings,
    SessionSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from rpg_bot.core.exceptions import (
    AttributeBudgetError,
    CharacterAlreadyExistsError,
    CharacterNotFoundError,
    ConfigurationError,
    DiceRollError,
    EquipFailure,
    EquipmentError,
    InsufficientGoldError,
    InvalidAmountError,
    InvalidChoiceError,
    InvalidTransitionError,
    InvariantViolationError,
    InventoryError,
    MalformedEventError,
    NoActiveSessionError,
    PersistenceError,
    ProtocolError,
    RpgBotError,
    SessionAlreadyActiveError,
    ValidationError,
)
from rpg_bot.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
)


__all__ = [
    # Exceptions
    "RpgBotError",
    "ValidationError",
    "AttributeBudgetError",
    "InvalidChoiceError",
    "InventoryError",
    "EquipFailure",
    "EquipmentError",
    "InsufficientGoldError",
    "InvalidAmountError",
    "ProtocolError",
    "InvalidTransitionError",
    "NoActiveSessionError",
    "SessionAlreadyActiveError",
    "CharacterAlreadyExistsError",
    "CharacterNotFoundError",
    "PersistenceError",
    "MalformedEventError",
    "InvariantViolationError",
    "DiceRollError",
    "ConfigurationError",
    # Configuration
    "GameSettings",
    "SessionSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "log_context",
]
