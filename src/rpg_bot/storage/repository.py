"""Character persistence gateway.

The rules engine only talks to storage through :class:`CharacterGateway`,
an async protocol with three operations. Calls are fallible and may be
slow; implementations report every failure as
:class:`~rpg_bot.core.exceptions.PersistenceError`.

:class:`InMemoryCharacterRepository` keeps characters in a dict and is used
for tests and single-process deployments.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable
from uuid import uuid4

from rpg_bot.core.exceptions import PersistenceError
from rpg_bot.core.logging import get_logger
from rpg_bot.models.character import Character


logger = get_logger(__name__)


@runtime_checkable
class CharacterGateway(Protocol):
    """Storage operations the rules engine depends on."""

    async def create_character(self, character: Character) -> str:
        """Store a new character and return its id."""
        ...

    async def find_active(self, owner_id: str, guild_id: str) -> Character | None:
        """Get the active character of an actor in a guild, if any."""
        ...

    async def save(self, character: Character) -> None:
        """Persist changes to an existing character."""
        ...


class InMemoryCharacterRepository:
    """Dict-backed :class:`CharacterGateway`.

    Stored characters are deep copies, so callers never share state with
    the repository.
    """

    def __init__(self) -> None:
        self._characters: dict[str, Character] = {}
        self._lock = asyncio.Lock()

    async def create_character(self, character: Character) -> str:
        async with self._lock:
            if self._active_for(character.owner_id, character.guild_id) is not None:
                raise PersistenceError(
                    "Actor already has an active character in this guild",
                    operation="create_character",
                    details={"owner_id": character.owner_id, "guild_id": character.guild_id},
                )
            character_id = character.id or uuid4().hex
            self._characters[character_id] = character.model_copy(
                update={"id": character_id}, deep=True
            )
        logger.info(
            "Character created",
            character_id=character_id,
            owner_id=character.owner_id,
            guild_id=character.guild_id,
        )
        return character_id

    async def find_active(self, owner_id: str, guild_id: str) -> Character | None:
        async with self._lock:
            found = self._active_for(owner_id, guild_id)
            return found.model_copy(deep=True) if found else None

    async def save(self, character: Character) -> None:
        if character.id is None or character.id not in self._characters:
            raise PersistenceError(
                f"Character {character.name!r} has not been created",
                operation="save",
            )
        async with self._lock:
            self._characters[character.id] = character.model_copy(deep=True)

    async def get(self, character_id: str) -> Character | None:
        """Get a character by id, active or not."""
        async with self._lock:
            found = self._characters.get(character_id)
            return found.model_copy(deep=True) if found else None

    def __len__(self) -> int:
        return len(self._characters)

    def _active_for(self, owner_id: str, guild_id: str) -> Character | None:
        for character in self._characters.values():
            if character.owner_id == owner_id and character.guild_id == guild_id and character.is_active:
                return character
        return None


__all__ = [
    "CharacterGateway",
    "InMemoryCharacterRepository",
]
