"""Tests for the session registry."""

from __future__ import annotations

import asyncio

import pytest

from rpg_bot.core.config import SessionSettings, Settings
from rpg_bot.core.exceptions import (
    AttributeBudgetError,
    CharacterAlreadyExistsError,
    InvalidTransitionError,
    MalformedEventError,
    NoActiveSessionError,
    PersistenceError,
    SessionAlreadyActiveError,
)
from rpg_bot.creation.events import ClassChosen
from rpg_bot.creation.registry import SessionRegistry
from rpg_bot.creation.session import CreationStep, DraftSeed
from rpg_bot.models.enums import CharacterClass


SEED = DraftSeed(owner_id="user-1", guild_id="guild-1", name="Aria")
TO_CONFIRM = ["class_mage", "attr_confirm", "background_noble", "skill_arcana", "skills_confirm"]


def _settings(timeout: float = 900.0, interval: float = 60.0) -> Settings:
    return Settings(
        sessions=SessionSettings(idle_timeout_seconds=timeout, sweep_interval_seconds=interval)
    )


async def _to_confirm(registry: SessionRegistry, actor_id: str = "user-1") -> None:
    for raw in TO_CONFIRM:
        await registry.dispatch(actor_id, raw)


class SlowLookupRepository:
    """In-memory gateway that can delay its next ``find_active``.

    The delayed call reads the stored state first and returns that read
    after sleeping, like a lookup whose reply arrives late.
    """

    def __init__(self, inner, delay: float = 0.05) -> None:
        self.inner = inner
        self.delay = delay
        self.armed = False

    async def create_character(self, character):
        return await self.inner.create_character(character)

    async def find_active(self, owner_id, guild_id):
        result = await self.inner.find_active(owner_id, guild_id)
        if self.armed:
            self.armed = False
            await asyncio.sleep(self.delay)
        return result

    async def save(self, character):
        await self.inner.save(character)


class TestStart:
    """Tests for opening sessions."""

    @pytest.mark.asyncio
    async def test_start(self, repository) -> None:
        """Test a new session starts at class selection."""
        registry = SessionRegistry(repository, settings=_settings())
        snapshot = await registry.start(SEED)

        assert snapshot.step is CreationStep.CLASS_SELECT
        assert snapshot.draft.name == "Aria"
        assert "user-1" in registry
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_double_start(self, repository) -> None:
        """Test a second start for the same actor is refused."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        with pytest.raises(SessionAlreadyActiveError):
            await registry.start(SEED)
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_concurrent_starts(self, repository) -> None:
        """Test racing starts create exactly one session."""
        registry = SessionRegistry(repository, settings=_settings())
        results = await asyncio.gather(
            registry.start(SEED),
            registry.start(SEED),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], SessionAlreadyActiveError)
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_existing_character(self, repository, warrior) -> None:
        """Test actors with an active character cannot start."""
        await repository.create_character(warrior)
        registry = SessionRegistry(repository, settings=_settings())
        with pytest.raises(CharacterAlreadyExistsError):
            await registry.start(SEED)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_start_racing_completion(self, repository) -> None:
        """Test a start racing the same actor's finalize never opens a second session."""
        gateway = SlowLookupRepository(repository)
        registry = SessionRegistry(gateway, settings=_settings())
        await registry.start(SEED)
        await _to_confirm(registry)

        gateway.armed = True
        second_start = asyncio.create_task(registry.start(SEED))
        await asyncio.sleep(0)
        snapshot = await registry.dispatch("user-1", "confirm")

        with pytest.raises((CharacterAlreadyExistsError, SessionAlreadyActiveError)):
            await second_start
        assert snapshot.is_complete
        assert "user-1" not in registry
        assert len(registry) == 0
        assert len(repository) == 1

    @pytest.mark.asyncio
    async def test_start_after_completion(self, repository) -> None:
        """Test starting again once the wizard finished is refused."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await _to_confirm(registry)
        await registry.dispatch("user-1", "confirm")

        with pytest.raises(CharacterAlreadyExistsError):
            await registry.start(SEED)
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_other_guild_allowed(self, repository, warrior) -> None:
        """Test the one-character rule is per guild."""
        await repository.create_character(warrior)
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(DraftSeed(owner_id="user-1", guild_id="guild-2", name="Aria"))
        assert "user-1" in registry


class TestDispatch:
    """Tests for routing events."""

    @pytest.mark.asyncio
    async def test_no_session(self, repository) -> None:
        """Test events from actors without a session."""
        registry = SessionRegistry(repository, settings=_settings())
        with pytest.raises(NoActiveSessionError):
            await registry.dispatch("user-1", "class_mage")

    @pytest.mark.asyncio
    async def test_typed_and_raw_events(self, repository) -> None:
        """Test both typed events and raw ids are accepted."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        snapshot = await registry.dispatch(
            "user-1", ClassChosen(character_class=CharacterClass.WARRIOR)
        )
        assert snapshot.step is CreationStep.ATTRIBUTE_ALLOCATE
        snapshot = await registry.dispatch("user-1", "attr_cha_up")
        assert snapshot.draft.budget.attributes.charisma == 11

    @pytest.mark.asyncio
    async def test_malformed_id(self, repository) -> None:
        """Test malformed ids are rejected without touching the session."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        with pytest.raises(MalformedEventError):
            await registry.dispatch("user-1", "launch_rockets")
        assert (await registry.get_snapshot("user-1")).step is CreationStep.CLASS_SELECT

    @pytest.mark.asyncio
    async def test_rule_rejection_keeps_session(self, repository) -> None:
        """Test rejected events keep the session at its step."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await registry.dispatch("user-1", "class_warrior")
        with pytest.raises(AttributeBudgetError):
            await registry.dispatch("user-1", "attr_confirm")
        with pytest.raises(InvalidTransitionError):
            await registry.dispatch("user-1", "confirm")
        assert (await registry.get_snapshot("user-1")).step is CreationStep.ATTRIBUTE_ALLOCATE

    @pytest.mark.asyncio
    async def test_completion_removes_session(self, repository) -> None:
        """Test the session is gone once the character is stored."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await _to_confirm(registry)
        snapshot = await registry.dispatch("user-1", "confirm")

        assert snapshot.is_complete
        assert snapshot.character.id is not None
        assert "user-1" not in registry
        with pytest.raises(NoActiveSessionError):
            await registry.dispatch("user-1", "confirm")

    @pytest.mark.asyncio
    async def test_concurrent_finalize(self, repository) -> None:
        """Test racing finalize events store exactly one character."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await _to_confirm(registry)

        results = await asyncio.gather(
            registry.dispatch("user-1", "confirm"),
            registry.dispatch("user-1", "confirm"),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], NoActiveSessionError)
        assert len(repository) == 1

    @pytest.mark.asyncio
    async def test_persistence_failure_then_retry(self, flaky_repository) -> None:
        """Test a failed finalize keeps the session registered for a retry."""
        registry = SessionRegistry(flaky_repository, settings=_settings())
        await registry.start(SEED)
        await _to_confirm(registry)
        flaky_repository.failures = 1

        with pytest.raises(PersistenceError):
            await registry.dispatch("user-1", "confirm")
        assert (await registry.get_snapshot("user-1")).step is CreationStep.CONFIRM

        snapshot = await registry.dispatch("user-1", "confirm")
        assert snapshot.is_complete
        assert "user-1" not in registry

    @pytest.mark.asyncio
    async def test_can_start_again_after_deactivation(self, repository) -> None:
        """Test a deactivated character frees the actor to create another."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await _to_confirm(registry)
        await registry.dispatch("user-1", "confirm")

        character = await repository.find_active("user-1", "guild-1")
        character.deactivate()
        await repository.save(character)

        snapshot = await registry.start(SEED)
        assert snapshot.step is CreationStep.CLASS_SELECT


class TestAbandon:
    """Tests for discarding sessions."""

    @pytest.mark.asyncio
    async def test_abandon(self, repository) -> None:
        """Test abandoning removes the session without storing anything."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await registry.dispatch("user-1", "class_mage")

        assert await registry.abandon("user-1") is True
        assert "user-1" not in registry
        assert len(repository) == 0
        assert await registry.abandon("user-1") is False

    @pytest.mark.asyncio
    async def test_snapshot_after_abandon(self, repository) -> None:
        """Test abandoned sessions cannot be inspected."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.start(SEED)
        await registry.abandon("user-1")
        with pytest.raises(NoActiveSessionError):
            await registry.get_snapshot("user-1")


class TestIdleEviction:
    """Tests for idle session eviction."""

    @pytest.mark.asyncio
    async def test_evicts_only_idle(self, repository, clock) -> None:
        """Test sessions idle past the timeout are dropped."""
        registry = SessionRegistry(repository, settings=_settings(timeout=60, interval=10), clock=clock)
        await registry.start(SEED)
        clock.advance(45)
        await registry.start(DraftSeed(owner_id="user-2", guild_id="guild-1", name="Brom"))
        clock.advance(20)

        assert await registry.evict_idle() == ["user-1"]
        assert "user-2" in registry

    @pytest.mark.asyncio
    async def test_activity_postpones_eviction(self, repository, clock) -> None:
        """Test accepted events reset the idle timer."""
        registry = SessionRegistry(repository, settings=_settings(timeout=60, interval=10), clock=clock)
        await registry.start(SEED)
        clock.advance(50)
        await registry.dispatch("user-1", "class_mage")
        clock.advance(50)
        assert await registry.evict_idle() == []

    @pytest.mark.asyncio
    async def test_rejected_events_postpone_eviction(self, repository, clock) -> None:
        """Test rejected events also reset the idle timer."""
        registry = SessionRegistry(repository, settings=_settings(timeout=60, interval=10), clock=clock)
        await registry.start(SEED)
        clock.advance(50)
        with pytest.raises(InvalidTransitionError):
            await registry.dispatch("user-1", "attr_confirm")
        clock.advance(50)

        assert await registry.evict_idle() == []
        assert (await registry.get_snapshot("user-1")).step is CreationStep.CLASS_SELECT

    @pytest.mark.asyncio
    async def test_busy_session_skipped(self, repository, clock) -> None:
        """Test a session with an event in flight is not evicted."""
        registry = SessionRegistry(repository, settings=_settings(timeout=60, interval=10), clock=clock)
        await registry.start(SEED)
        clock.advance(120)
        session = registry._sessions["user-1"]
        async with session.lock:
            assert await registry.evict_idle() == []
        assert await registry.evict_idle() == ["user-1"]

    @pytest.mark.asyncio
    async def test_sweeper(self, repository, clock) -> None:
        """Test the background sweep evicts idle sessions."""
        registry = SessionRegistry(
            repository, settings=_settings(timeout=60, interval=0.01), clock=clock
        )
        await registry.start(SEED)
        clock.advance(61)

        registry.start_sweeper()
        for _ in range(100):
            if "user-1" not in registry:
                break
            await asyncio.sleep(0.01)
        await registry.stop_sweeper()

        assert "user-1" not in registry

    @pytest.mark.asyncio
    async def test_stop_without_start(self, repository) -> None:
        """Test stopping a sweeper that never ran is harmless."""
        registry = SessionRegistry(repository, settings=_settings())
        await registry.stop_sweeper()
