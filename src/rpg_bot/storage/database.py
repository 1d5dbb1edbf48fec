"""SQLite persistence for characters.

Characters are stored as JSON documents next to indexed owner, guild and
active columns. A partial unique index allows at most one active character
per (owner, guild), so a racing second insert fails in the database even if
two processes get past the lookup at the same time.

Blocking sqlite3 calls run in a worker thread via ``asyncio.to_thread``.
"database is locked" errors are retried with exponential backoff.

Storage location: ``StorageSettings.database_path`` (data/rpg_bot.db).
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar
from uuid import uuid4

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from rpg_bot.core.config import get_settings
from rpg_bot.core.exceptions import PersistenceError
from rpg_bot.core.logging import get_logger
from rpg_bot.models.character import Character


logger = get_logger(__name__)

T = TypeVar("T")


def _is_busy(exc: BaseException) -> bool:
    """True for transient lock contention."""
    return isinstance(exc, sqlite3.OperationalError) and "locked" in str(exc).lower()


class SQLiteCharacterRepository:
    """SQLite-backed character gateway.

    Implements :class:`~rpg_bot.storage.repository.CharacterGateway`.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path | None = None, *, busy_retries: int | None = None) -> None:
        """Initialize the repository and create the schema.

        Args:
            db_path: Path to database file. If None, uses the configured path.
            busy_retries: Attempts when the database is locked. If None,
                uses the configured value.
        """
        storage = get_settings().storage
        self.db_path = Path(db_path) if db_path is not None else storage.database_path
        self.busy_retries = busy_retries if busy_retries is not None else storage.busy_retries

        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

        logger.info("Character database initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path), timeout=1.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS characters (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    guild_id TEXT NOT NULL,
                    is_active INTEGER NOT NULL,
                    document TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_characters_owner_guild
                ON characters(owner_id, guild_id)
            """)
            cursor.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_characters_one_active
                ON characters(owner_id, guild_id) WHERE is_active = 1
            """)

            cursor.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    # =========================================================================
    # Execution Helpers
    # =========================================================================

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking call in a thread, retrying while the database is busy.

        Raises:
            PersistenceError: On any sqlite3 failure, including exhausted retries.
        """

        @retry(
            retry=retry_if_exception(_is_busy),
            stop=stop_after_attempt(self.busy_retries),
            wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
            reraise=True,
        )
        def _call() -> T:
            return func(*args)

        try:
            return await asyncio.to_thread(_call)
        except sqlite3.Error as exc:
            logger.exception("Character storage failed", operation=operation)
            raise PersistenceError(
                f"Character storage failed: {exc}",
                operation=operation,
            ) from exc

    # =========================================================================
    # Gateway Operations
    # =========================================================================

    async def create_character(self, character: Character) -> str:
        """Insert a new character and return its id.

        Raises:
            PersistenceError: If the actor already has an active character
                in the guild, or on any storage failure.
        """
        character_id = character.id or uuid4().hex
        stored = character.model_copy(update={"id": character_id})
        await self._run("create_character", self._insert, stored)
        logger.info(
            "Character created",
            character_id=character_id,
            owner_id=character.owner_id,
            guild_id=character.guild_id,
        )
        return character_id

    async def find_active(self, owner_id: str, guild_id: str) -> Character | None:
        """Get the active character of an actor in a guild, if any."""
        document = await self._run("find_active", self._select_active, owner_id, guild_id)
        if document is None:
            return None
        return Character.model_validate_json(document)

    async def save(self, character: Character) -> None:
        """Persist changes to an existing character.

        Raises:
            PersistenceError: If the character has not been created or on any
                storage failure.
        """
        if character.id is None:
            raise PersistenceError(
                f"Character {character.name!r} has not been created",
                operation="save",
            )
        updated = await self._run("save", self._update, character)
        if not updated:
            raise PersistenceError(
                f"Character {character.id} not found",
                operation="save",
            )
        logger.debug("Character saved", character_id=character.id)

    async def get(self, character_id: str) -> Character | None:
        """Get a character by id, active or not."""
        document = await self._run("get", self._select_by_id, character_id)
        if document is None:
            return None
        return Character.model_validate_json(document)

    async def count(self) -> int:
        """Get the total number of stored characters."""
        return await self._run("count", self._count)

    # =========================================================================
    # Blocking Statements
    # =========================================================================

    def _insert(self, character: Character) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO characters (id, owner_id, guild_id, is_active, document, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    character.id,
                    character.owner_id,
                    character.guild_id,
                    int(character.is_active),
                    character.model_dump_json(),
                    character.created_at.isoformat(),
                    character.updated_at.isoformat(),
                ),
            )

    def _update(self, character: Character) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE characters
                SET is_active = ?, document = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    int(character.is_active),
                    character.model_dump_json(),
                    character.updated_at.isoformat(),
                    character.id,
                ),
            )
            return cursor.rowcount > 0

    def _select_active(self, owner_id: str, guild_id: str) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT document FROM characters
                WHERE owner_id = ? AND guild_id = ? AND is_active = 1
                """,
                (owner_id, guild_id),
            ).fetchone()
            return row["document"] if row else None

    def _select_by_id(self, character_id: str) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT document FROM characters WHERE id = ?",
                (character_id,),
            ).fetchone()
            return row["document"] if row else None

    def _count(self) -> int:
        with self._get_connection() as conn:
            return conn.execute("SELECT COUNT(*) FROM characters").fetchone()[0]


__all__ = [
    "SQLiteCharacterRepository",
]
