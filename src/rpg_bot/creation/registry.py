"""Process-wide table of active creation sessions.

:class:`SessionRegistry` is the only entry point transports use for the
creation wizard. It guarantees at most one session per actor and makes
``start``, ``dispatch`` and removal-on-completion atomic:

* A table lock guards the ``actor -> session`` mapping.
* Each session carries its own lock, held for the whole
  check-and-transition (including persistence), so two events for the same
  actor can never both pass a guard.
* ``start`` looks up existing characters while holding the table lock, so
  it cannot miss a character whose session completed concurrently.

Locks are always taken session first, then table, never the reverse.
Sessions live in memory only and are lost on restart.

Example:
    >>> registry = SessionRegistry(InMemoryCharacterRepository())
    >>> await registry.start(DraftSeed(owner_id="1", guild_id="9", name="Aria"))
    >>> await registry.dispatch("1", "class_mage")
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable

from rpg_bot.core.config import Settings, get_settings
from rpg_bot.core.exceptions import (
    CharacterAlreadyExistsError,
    NoActiveSessionError,
    PersistenceError,
    ProtocolError,
    RpgBotError,
    SessionAlreadyActiveError,
    ValidationError,
)
from rpg_bot.core.logging import get_logger, log_context
from rpg_bot.creation.events import WizardEvent, decode_event
from rpg_bot.creation.session import CreationDraft, CreationSession, DraftSeed, SessionSnapshot
from rpg_bot.models.character import Character
from rpg_bot.storage.repository import CharacterGateway


logger = get_logger(__name__)


class SessionRegistry:
    """One active creation session per actor.

    Args:
        gateway: Persistence gateway used to check for existing characters
            and to store finished ones.
        settings: Application settings; the cached settings when omitted.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        gateway: CharacterGateway,
        *,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._settings = settings or get_settings()
        self._clock = clock
        self._sessions: dict[str, CreationSession] = {}
        self._lock = asyncio.Lock()
        self._sweeper: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, actor_id: object) -> bool:
        return actor_id in self._sessions

    # =========================================================================
    # Entry Points
    # =========================================================================

    async def start(self, seed: DraftSeed) -> SessionSnapshot:
        """Open a creation session for an actor.

        Args:
            seed: Owner, guild and requested name.

        Returns:
            Snapshot of the new session at CLASS_SELECT.

        Raises:
            CharacterAlreadyExistsError: If the actor already has an active
                character in the guild.
            SessionAlreadyActiveError: If the actor already has a session.
            PersistenceError: If the existing-character lookup fails.
        """
        async with self._lock:
            if seed.owner_id in self._sessions:
                raise SessionAlreadyActiveError(
                    "You are already creating a character",
                    details={"owner_id": seed.owner_id},
                )
            # A completing session is removed under this lock only after its
            # character is stored, so the lookup must happen here.
            existing = await self._find_active(seed.owner_id, seed.guild_id)
            if existing is not None:
                raise CharacterAlreadyExistsError(
                    f"You already have a character: {existing.name}",
                    details={"owner_id": seed.owner_id, "guild_id": seed.guild_id},
                )
            session = CreationSession(
                CreationDraft.from_seed(seed),
                self._gateway,
                game=self._settings.game,
                clock=self._clock,
            )
            self._sessions[seed.owner_id] = session

        logger.info(
            "Creation session started",
            session_id=session.session_id,
            owner_id=seed.owner_id,
            guild_id=seed.guild_id,
        )
        return session.snapshot()

    async def dispatch(self, actor_id: str, event: WizardEvent | str) -> SessionSnapshot:
        """Forward an event to the actor's session.

        Raw event ids are decoded first; a malformed id is rejected before
        any lookup. When the event completes the wizard, the session is
        removed in the same operation.

        Args:
            actor_id: The actor the event came from.
            event: A typed event or a raw ``category_action[_target]`` id.

        Returns:
            Snapshot after the event.

        Raises:
            NoActiveSessionError: If the actor has no session, or it
                completed or was discarded while this event waited.
            MalformedEventError: If a raw id cannot be decoded.
            ValidationError: If a rule rejects the event.
            ProtocolError: If the step does not accept the event.
            PersistenceError: If finalize could not store the character.
        """
        if isinstance(event, str):
            event = decode_event(event)

        async with self._lock:
            session = self._sessions.get(actor_id)
        if session is None:
            raise NoActiveSessionError(
                "You are not creating a character",
                details={"actor_id": actor_id},
            )

        async with session.lock:
            if session.is_complete or self._sessions.get(actor_id) is not session:
                raise NoActiveSessionError(
                    "You are not creating a character",
                    details={"actor_id": actor_id},
                )

            with log_context(actor_id=actor_id, guild_id=session.draft.guild_id):
                try:
                    snapshot = await session.apply(event)
                except ValidationError as exc:
                    logger.info("Creation event rejected", event_kind=event.kind, reason=exc.message)
                    raise
                except ProtocolError as exc:
                    logger.warning("Creation event refused", event_kind=event.kind, reason=exc.message)
                    raise
                except PersistenceError:
                    logger.error("Creation finalize failed", session_id=session.session_id)
                    raise

            if snapshot.is_complete:
                async with self._lock:
                    if self._sessions.get(actor_id) is session:
                        del self._sessions[actor_id]
                logger.info(
                    "Creation session completed",
                    session_id=session.session_id,
                    character_id=snapshot.character.id if snapshot.character else None,
                )
        return snapshot

    async def abandon(self, actor_id: str) -> bool:
        """Discard an actor's session without persisting anything.

        Waits for an in-flight event on that session to finish first.

        Returns:
            True if a session was discarded.
        """
        async with self._lock:
            session = self._sessions.get(actor_id)
        if session is None:
            return False

        async with session.lock:
            async with self._lock:
                if self._sessions.get(actor_id) is not session or session.is_complete:
                    return False
                del self._sessions[actor_id]

        logger.info("Creation session abandoned", session_id=session.session_id, owner_id=actor_id)
        return True

    async def get_snapshot(self, actor_id: str) -> SessionSnapshot:
        """Get the current state of an actor's session.

        Raises:
            NoActiveSessionError: If the actor has no session.
        """
        session = self._sessions.get(actor_id)
        if session is None:
            raise NoActiveSessionError(
                "You are not creating a character",
                details={"actor_id": actor_id},
            )
        return session.snapshot()

    # =========================================================================
    # Idle Eviction
    # =========================================================================

    async def evict_idle(self, now: float | None = None) -> list[str]:
        """Drop sessions idle for longer than the configured timeout.

        Sessions with an event in flight are skipped.

        Returns:
            Actor ids whose sessions were evicted.
        """
        timeout = self._settings.sessions.idle_timeout_seconds
        now = self._clock() if now is None else now
        evicted: list[str] = []

        async with self._lock:
            for actor_id, session in list(self._sessions.items()):
                if session.lock.locked():
                    continue
                if session.idle_for(now) >= timeout:
                    del self._sessions[actor_id]
                    evicted.append(actor_id)

        if evicted:
            logger.info("Idle creation sessions evicted", count=len(evicted), actor_ids=evicted)
        return evicted

    def start_sweeper(self) -> None:
        """Run :meth:`evict_idle` periodically in a background task."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._stop_event = asyncio.Event()
        self._sweeper = asyncio.create_task(self._sweep_forever(self._stop_event))

    async def stop_sweeper(self) -> None:
        """Stop the background sweep and wait for it to finish."""
        if self._sweeper is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
        self._stop_event = None

    async def _sweep_forever(self, stop_event: asyncio.Event) -> None:
        interval = self._settings.sessions.sweep_interval_seconds
        logger.info("Session sweeper started", interval_seconds=interval)
        try:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=interval)
                except TimeoutError:
                    await self.evict_idle()
        finally:
            logger.info("Session sweeper stopped")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _find_active(self, owner_id: str, guild_id: str) -> Character | None:
        try:
            return await self._gateway.find_active(owner_id, guild_id)
        except RpgBotError:
            raise
        except Exception as exc:
            logger.exception("Character lookup failed", owner_id=owner_id, guild_id=guild_id)
            raise PersistenceError(
                f"Could not look up characters: {exc}",
                operation="find_active",
            ) from exc


__all__ = [
    "SessionRegistry",
]
