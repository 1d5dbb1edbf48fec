"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the RPG bot test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator

    from rpg_bot.core.config import Settings
    from rpg_bot.engine.dice import DiceRoller
    from rpg_bot.models.character import Character
    from rpg_bot.models.components import Attributes
    from rpg_bot.storage.repository import InMemoryCharacterRepository


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from rpg_bot.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "RPG_BOT_DEBUG": "true",
        "RPG_BOT_LOG_LEVEL": "DEBUG",
        "RPG_BOT_GAME__STARTING_GOLD": "250",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Provide settings pointing storage at a temporary directory."""
    from rpg_bot.core.config import Settings, StorageSettings

    return Settings(storage=StorageSettings(database_path=tmp_path / "rpg_bot.db"))


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def warrior_attributes() -> Attributes:
    """Provide a typical warrior spread with CON 10."""
    from rpg_bot.models.components import Attributes

    return Attributes(
        strength=15,
        dexterity=12,
        constitution=10,
        intelligence=8,
        wisdom=10,
        charisma=10,
    )


@pytest.fixture
def warrior(warrior_attributes: Attributes) -> Character:
    """Provide a level-1 warrior with an empty inventory."""
    from rpg_bot.models.character import Character
    from rpg_bot.models.enums import Background, CharacterClass

    return Character.create(
        owner_id="user-1",
        guild_id="guild-1",
        name="Brom",
        character_class=CharacterClass.WARRIOR,
        background=Background.COMMONER,
        attributes=warrior_attributes,
    )


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a seeded dice roller."""
    from rpg_bot.engine.dice import DiceRoller

    return DiceRoller(seed=42)


@pytest.fixture
def repository() -> InMemoryCharacterRepository:
    """Provide an empty in-memory character repository."""
    from rpg_bot.storage.repository import InMemoryCharacterRepository

    return InMemoryCharacterRepository()


# =============================================================================
# Gateway Doubles
# =============================================================================


class FlakyRepository:
    """In-memory gateway whose ``create_character`` fails on demand.

    Attributes:
        failures: Number of upcoming create calls that should fail.
        store_before_failing: Store the character before raising, as if
            the write landed but the acknowledgement was lost.
        error: Exception raised on a failing call.
    """

    def __init__(self) -> None:
        from rpg_bot.storage.repository import InMemoryCharacterRepository

        self.inner = InMemoryCharacterRepository()
        self.failures = 0
        self.store_before_failing = False
        self.error: Exception | None = None
        self.create_calls = 0

    async def create_character(self, character):
        from rpg_bot.core.exceptions import PersistenceError

        self.create_calls += 1
        if self.failures > 0:
            self.failures -= 1
            if self.store_before_failing:
                await self.inner.create_character(character)
            raise self.error or PersistenceError("Storage unavailable", operation="create_character")
        return await self.inner.create_character(character)

    async def find_active(self, owner_id, guild_id):
        return await self.inner.find_active(owner_id, guild_id)

    async def save(self, character):
        await self.inner.save(character)


@pytest.fixture
def flaky_repository() -> FlakyRepository:
    """Provide a gateway that can be told to fail character creation."""
    return FlakyRepository()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a manually advanced clock."""
    return FakeClock()
