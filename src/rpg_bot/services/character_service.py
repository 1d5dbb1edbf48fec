"""Gameplay operations on stored characters.

Each operation loads the actor's active character, applies one aggregate
method (which re-checks every invariant), saves the result and returns
either the updated character or the operation's own result. A rejected
operation raises before anything is saved.

Operations on the same (owner, guild) are serialized, so two rapid clicks
both land instead of one overwriting the other.

Example:
    >>> service = CharacterService(repository)
    >>> character, levels = await service.add_experience("123", "456", 250)
"""

from __future__ import annotations

import asyncio

from rpg_bot.core.config import GameSettings, get_settings
from rpg_bot.core.constants import DEFAULT_SKILL_CHECK_DC
from rpg_bot.core.exceptions import CharacterNotFoundError
from rpg_bot.core.logging import get_logger
from rpg_bot.engine.dice import DiceRoller, RollType, SkillCheckResult
from rpg_bot.models.character import Character
from rpg_bot.models.components import SkillProficiency
from rpg_bot.models.enums import Skill
from rpg_bot.models.equipment import EquipmentValidator, Item
from rpg_bot.storage.repository import CharacterGateway


logger = get_logger(__name__)


class CharacterService:
    """Load-mutate-save wrapper over the persistence gateway.

    Args:
        gateway: Where characters are stored.
        game: Game settings; the cached settings when omitted.
        roller: Dice roller for skill checks.
    """

    def __init__(
        self,
        gateway: CharacterGateway,
        *,
        game: GameSettings | None = None,
        roller: DiceRoller | None = None,
    ) -> None:
        self._gateway = gateway
        self._game = game or get_settings().game
        self._validator = EquipmentValidator(
            enforce_class_item_types=self._game.enforce_class_item_types
        )
        self._roller = roller or DiceRoller()
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    async def get_character(self, owner_id: str, guild_id: str) -> Character:
        """Load the actor's active character.

        Raises:
            CharacterNotFoundError: If the actor has none in this guild.
        """
        character = await self._gateway.find_active(owner_id, guild_id)
        if character is None:
            raise CharacterNotFoundError(
                "You don't have a character yet. Use the create command first.",
                details={"owner_id": owner_id, "guild_id": guild_id},
            )
        return character

    def _lock_for(self, owner_id: str, guild_id: str) -> asyncio.Lock:
        """Lock serializing load-mutate-save for one actor in one guild."""
        return self._locks.setdefault((owner_id, guild_id), asyncio.Lock())

    async def _save(self, character: Character, operation: str, **fields: object) -> None:
        await self._gateway.save(character)
        logger.info(
            "Character updated",
            operation=operation,
            character_id=character.id,
            **fields,
        )

    # =========================================================================
    # Progression & Gold
    # =========================================================================

    async def add_experience(self, owner_id: str, guild_id: str, amount: int) -> tuple[Character, int]:
        """Add experience. Returns the character and the levels gained."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            levels = character.add_experience(amount)
            await self._save(character, "add_experience", amount=amount, levels_gained=levels)
        return character, levels

    async def add_gold(self, owner_id: str, guild_id: str, amount: int) -> Character:
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            character.add_gold(amount)
            await self._save(character, "add_gold", amount=amount)
        return character

    async def spend_gold(self, owner_id: str, guild_id: str, amount: int) -> Character:
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            character.spend_gold(amount)
            await self._save(character, "spend_gold", amount=amount)
        return character

    # =========================================================================
    # Items
    # =========================================================================

    async def add_item(self, owner_id: str, guild_id: str, item: Item) -> Character:
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            character.add_item(item)
            await self._save(character, "add_item", item=item.name, quantity=item.quantity)
        return character

    async def remove_item(self, owner_id: str, guild_id: str, name: str, quantity: int = 1) -> Character:
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            character.remove_item(name, quantity)
            await self._save(character, "remove_item", item=name, quantity=quantity)
        return character

    async def equip_item(self, owner_id: str, guild_id: str, name: str) -> tuple[Character, Item | None]:
        """Equip an item. Returns the character and the replaced item, if any."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            replaced = character.equip(name, self._validator)
            await self._save(character, "equip_item", item=name)
        return character, replaced

    async def unequip_item(self, owner_id: str, guild_id: str, name: str) -> Character:
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            character.unequip(name)
            await self._save(character, "unequip_item", item=name)
        return character

    # =========================================================================
    # Combat & Status
    # =========================================================================

    async def take_damage(self, owner_id: str, guild_id: str, amount: int) -> tuple[Character, bool]:
        """Apply damage. Returns the character and whether it was defeated."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            defeated = character.take_damage(amount)
            await self._save(character, "take_damage", amount=amount, defeated=defeated)
        return character, defeated

    async def heal(self, owner_id: str, guild_id: str, amount: int) -> tuple[Character, int]:
        """Heal. Returns the character and the health actually restored."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            healed = character.heal(amount)
            await self._save(character, "heal", amount=healed)
        return character, healed

    async def add_status(self, owner_id: str, guild_id: str, status: str) -> bool:
        """Add a status effect. Returns False if it was already present."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            added = character.add_status(status)
            if added:
                await self._save(character, "add_status", status=status)
        return added

    async def remove_status(self, owner_id: str, guild_id: str, status: str) -> bool:
        """Remove a status effect. Returns False if it was not present."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            removed = character.remove_status(status)
            if removed:
                await self._save(character, "remove_status", status=status)
        return removed

    # =========================================================================
    # Skills
    # =========================================================================

    async def adjust_skill_bonus(
        self,
        owner_id: str,
        guild_id: str,
        skill: Skill | str,
        delta: int,
    ) -> SkillProficiency:
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            record = character.adjust_skill_bonus(skill, delta)
            await self._save(character, "adjust_skill_bonus", skill=str(skill), delta=delta)
        return record

    async def roll_skill_check(
        self,
        owner_id: str,
        guild_id: str,
        skill: Skill | str,
        dc: int = DEFAULT_SKILL_CHECK_DC,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> SkillCheckResult:
        """Roll a skill check. Nothing is saved."""
        character = await self.get_character(owner_id, guild_id)
        return character.roll_skill_check(skill, dc, self._roller, roll_type=roll_type)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def deactivate(self, owner_id: str, guild_id: str) -> Character:
        """Logically delete the actor's active character."""
        async with self._lock_for(owner_id, guild_id):
            character = await self.get_character(owner_id, guild_id)
            character.deactivate()
            await self._save(character, "deactivate")
        return character


__all__ = [
    "CharacterService",
]
