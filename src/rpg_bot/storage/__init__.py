"""Character persistence.

Everything that stores characters implements :class:`CharacterGateway`:
an in-memory repository for tests and single-process use, and a SQLite
repository for real deployments.
"""

from __future__ import annotations

from rpg_bot.storage.database import SQLiteCharacterRepository
from rpg_bot.storage.repository import CharacterGateway, InMemoryCharacterRepository


__all__ = [
    "CharacterGateway",
    "InMemoryCharacterRepository",
    "SQLiteCharacterRepository",
]
