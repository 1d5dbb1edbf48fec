"""The Character aggregate.

A character owns its attributes, skills, inventory, equipment and combat
block. Every gameplay mutation goes through a method on :class:`Character`,
which consults the progression formulas and the equipment validator and
re-checks the aggregate invariants before returning. Failed operations
leave the character exactly as it was.

Characters are created by the creation wizard (see
:mod:`rpg_bot.creation.session`) and are only ever deactivated, never
erased.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from rpg_bot.core.constants import (
    DEFAULT_SKILL_CHECK_DC,
    MAX_EQUIPMENT_SIZE,
    MAX_INVENTORY_SIZE,
    MAX_ITEM_QUANTITY,
    MAX_LEVEL,
    MAX_NAME_LENGTH,
    MIN_NAME_LENGTH,
    STARTING_GOLD,
    STARTING_LEVEL,
)
from rpg_bot.core.exceptions import (
    EquipFailure,
    EquipmentError,
    InsufficientGoldError,
    InvalidAmountError,
    InvalidChoiceError,
    InvariantViolationError,
    InventoryError,
)
from rpg_bot.core.logging import get_logger
from rpg_bot.engine.dice import DiceRoller, RollType, SkillCheckResult, get_default_roller
from rpg_bot.models.class_data import get_class_skills, is_class_skill
from rpg_bot.models.components import Attributes, CombatStats, ItemStats, SkillProficiency
from rpg_bot.models.enums import Background, CharacterClass, EquipmentSlot, Skill
from rpg_bot.models.equipment import EquipmentValidator, Item
from rpg_bot.models.progression import (
    armor_class,
    attack_bonus,
    exp_for_next_level,
    initiative,
    max_health,
    skill_modifier,
)


logger = get_logger(__name__)


def utcnow() -> datetime:
    """Timezone-aware current time used for timestamps."""
    return datetime.now(UTC)


def _stash(inventory: list[Item], item: Item) -> bool:
    """Put an unequipped single unit into ``inventory`` in place.

    Merges into a matching stack with room, otherwise appends a new stack.

    Returns:
        False if neither is possible; ``inventory`` is then unchanged.
    """
    for index, stack in enumerate(inventory):
        if stack.stacks_with(item) and stack.quantity + item.quantity <= MAX_ITEM_QUANTITY:
            inventory[index] = stack.model_copy(update={"quantity": stack.quantity + item.quantity})
            return True
    if len(inventory) >= MAX_INVENTORY_SIZE:
        return False
    inventory.append(item)
    return True


class Character(BaseModel):
    """A player character.

    Attributes:
        id: Storage identifier, assigned by the persistence gateway.
        owner_id: Actor (user) that owns the character.
        guild_id: Scope (guild) the character lives in.
        name: Character name.
        character_class: Chosen class.
        background: Chosen background.
        level: Current level (1..MAX_LEVEL).
        experience: Total experience earned, never decreasing.
        gold: Gold carried.
        attributes: Ability scores.
        skills: Skill records, all from the class's allowed set.
        inventory: Unequipped item stacks.
        equipment: Equipped items, at most one per slot.
        combat: Health, armor and initiative.
        status_effects: Active status names, unique.
        is_active: False once the character has been deactivated.
        creation_token: Id of the creation session that produced it.
        created_at: Creation timestamp.
        updated_at: Last mutation timestamp.
    """

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    owner_id: str = Field(min_length=1)
    guild_id: str = Field(min_length=1)
    name: str = Field(min_length=MIN_NAME_LENGTH, max_length=MAX_NAME_LENGTH)
    character_class: CharacterClass
    background: Background
    level: int = Field(default=STARTING_LEVEL, ge=STARTING_LEVEL, le=MAX_LEVEL)
    experience: int = Field(default=0, ge=0)
    gold: int = Field(default=STARTING_GOLD, ge=0)
    attributes: Attributes
    skills: list[SkillProficiency] = Field(default_factory=list)
    inventory: list[Item] = Field(default_factory=list)
    equipment: list[Item] = Field(default_factory=list)
    combat: CombatStats
    status_effects: list[str] = Field(default_factory=list)
    is_active: bool = True
    creation_token: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value: object) -> object:
        """Trim surrounding whitespace before the length check."""
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_invariants(self) -> "Character":
        """Reject loaded or constructed characters that break an invariant."""
        self.validate_invariants()
        return self

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def create(
        cls,
        *,
        owner_id: str,
        guild_id: str,
        name: str,
        character_class: CharacterClass,
        background: Background,
        attributes: Attributes,
        skills: list[SkillProficiency] | None = None,
        gold: int = STARTING_GOLD,
        inventory: list[Item] | None = None,
        creation_token: str | None = None,
    ) -> Character:
        """Build a level-1 character at full health with derived combat stats."""
        health = max_health(STARTING_LEVEL, attributes.constitution)
        return cls(
            owner_id=owner_id,
            guild_id=guild_id,
            name=name,
            character_class=character_class,
            background=background,
            attributes=attributes,
            skills=skills or [],
            gold=gold,
            inventory=inventory or [],
            combat=CombatStats(
                current_health=health,
                max_health=health,
                armor=armor_class(STARTING_LEVEL, attributes),
                initiative=initiative(STARTING_LEVEL, attributes),
            ),
            creation_token=creation_token,
        )

    # =========================================================================
    # Invariants
    # =========================================================================

    def validate_invariants(self) -> None:
        """Check every aggregate invariant.

        Raises:
            InvariantViolationError: Naming the first invariant that fails.
        """
        if not STARTING_LEVEL <= self.level <= MAX_LEVEL:
            self._violation(f"level {self.level} outside 1..{MAX_LEVEL}")

        expected_health = max_health(self.level, self.attributes.constitution)
        if self.combat.max_health != expected_health:
            self._violation(
                f"max health {self.combat.max_health} does not match formula value {expected_health}"
            )
        if not 0 <= self.combat.current_health <= self.combat.max_health:
            self._violation(
                f"current health {self.combat.current_health} outside 0..{self.combat.max_health}"
            )

        if len(self.inventory) > MAX_INVENTORY_SIZE:
            self._violation(f"inventory holds {len(self.inventory)} stacks")
        if any(item.quantity > MAX_ITEM_QUANTITY for item in self.inventory):
            self._violation("inventory stack above the quantity cap")

        if len(self.equipment) > MAX_EQUIPMENT_SIZE:
            self._violation(f"equipment holds {len(self.equipment)} items")
        slots = [item.slot for item in self.equipment]
        if len(slots) != len(set(slots)):
            self._violation("equipment slot occupied more than once")

        if any(item.equipped for item in self.inventory):
            self._violation("equipped item found in inventory")
        if any(not item.equipped for item in self.equipment):
            self._violation("unequipped item found in equipment")

        allowed = set(get_class_skills(self.character_class))
        held = [record.skill for record in self.skills]
        if any(skill not in allowed for skill in held):
            self._violation(f"skill outside the {self.character_class.value} skill set")
        if len(held) != len(set(held)):
            self._violation("duplicate skill record")

        if len(self.status_effects) != len(set(self.status_effects)):
            self._violation("duplicate status effect")

    def _violation(self, reason: str) -> None:
        raise InvariantViolationError(
            f"Character invariant violated: {reason}",
            details={"character": self.name, "owner_id": self.owner_id},
        )

    def _commit(self) -> None:
        """Re-check invariants and stamp the mutation time."""
        self.validate_invariants()
        self.updated_at = utcnow()

    def _recompute_combat(self, *, restore_health: bool = False) -> None:
        new_max = max_health(self.level, self.attributes.constitution)
        current = new_max if restore_health else min(self.combat.current_health, new_max)
        self.combat = CombatStats(
            current_health=current,
            max_health=new_max,
            armor=armor_class(self.level, self.attributes, (item.stats.defense for item in self.equipment)),
            initiative=initiative(self.level, self.attributes),
        )

    # =========================================================================
    # Derived Values
    # =========================================================================

    @property
    def equipment_stats(self) -> ItemStats:
        """Total stats granted by equipped items."""
        return ItemStats(
            attack=sum(item.stats.attack for item in self.equipment),
            defense=sum(item.stats.defense for item in self.equipment),
            magic_power=sum(item.stats.magic_power for item in self.equipment),
        )

    @property
    def attack_bonus(self) -> int:
        """Attack bonus before item stats."""
        return attack_bonus(self.character_class, self.level, self.attributes)

    @property
    def experience_to_next_level(self) -> int | None:
        """Experience still needed for the next level, or None at the cap."""
        threshold = exp_for_next_level(self.level)
        if threshold is None:
            return None
        return max(0, threshold - self.experience)

    def get_skill(self, skill: Skill) -> SkillProficiency | None:
        """Get the character's record for a skill, if any."""
        for record in self.skills:
            if record.skill == skill:
                return record
        return None

    def skill_modifier(self, skill: Skill | str) -> int:
        """Total modifier for a skill check. Zero for an unknown skill."""
        try:
            record = self.get_skill(Skill(skill))
        except ValueError:
            return 0
        return skill_modifier(skill, self.attributes, record, self.level)

    # =========================================================================
    # Progression
    # =========================================================================

    def add_experience(self, amount: int) -> int:
        """Add experience and promote the level as far as it reaches.

        Each promotion recomputes combat stats and restores health to full.

        Args:
            amount: Experience to add.

        Returns:
            Number of levels gained.

        Raises:
            InvalidAmountError: If amount is negative.
        """
        if amount < 0:
            raise InvalidAmountError("Experience amount cannot be negative", invalid_value=amount)

        self.experience += amount
        gained = 0
        while self.level < MAX_LEVEL:
            threshold = exp_for_next_level(self.level)
            if threshold is None or self.experience < threshold:
                break
            self.level += 1
            gained += 1
            self._recompute_combat(restore_health=True)

        self._commit()
        if gained:
            logger.info(
                "Character leveled up",
                character=self.name,
                level=self.level,
                levels_gained=gained,
            )
        return gained

    # =========================================================================
    # Gold
    # =========================================================================

    def add_gold(self, amount: int) -> int:
        """Add gold and return the new balance."""
        if amount < 0:
            raise InvalidAmountError("Gold amount cannot be negative", invalid_value=amount)
        self.gold += amount
        self._commit()
        return self.gold

    def spend_gold(self, amount: int) -> int:
        """Spend gold and return the new balance.

        Raises:
            InvalidAmountError: If amount is negative.
            InsufficientGoldError: If the character cannot afford it.
        """
        if amount < 0:
            raise InvalidAmountError("Gold amount cannot be negative", invalid_value=amount)
        if amount > self.gold:
            raise InsufficientGoldError(
                f"Not enough gold: need {amount}, have {self.gold}",
                details={"required": amount, "available": self.gold},
            )
        self.gold -= amount
        self._commit()
        return self.gold

    # =========================================================================
    # Inventory
    # =========================================================================

    def _find_stack(self, name: str) -> int | None:
        key = name.strip().lower()
        for index, item in enumerate(self.inventory):
            if item.name.lower() == key:
                return index
        return None

    def _find_equipped(self, name: str) -> int | None:
        key = name.strip().lower()
        for index, item in enumerate(self.equipment):
            if item.name.lower() == key:
                return index
        return None

    def _find_slot(self, slot: EquipmentSlot | None) -> int | None:
        for index, item in enumerate(self.equipment):
            if item.slot == slot:
                return index
        return None

    def add_item(self, item: Item) -> Item:
        """Add an item stack to the inventory.

        Merges into an existing stack of the same name, otherwise starts a
        new stack. Nothing changes when the merge would overflow the stack
        cap or a new stack would overflow the inventory.

        Args:
            item: The stack to add. Its equipped flag is ignored.

        Returns:
            The resulting inventory stack.

        Raises:
            InventoryError: If the stack or the inventory is full.
        """
        incoming = item.model_copy(update={"equipped": False}, deep=True)
        index = self._find_stack(incoming.name)

        if index is not None:
            stack = self.inventory[index]
            total = stack.quantity + incoming.quantity
            if total > MAX_ITEM_QUANTITY:
                raise InventoryError(
                    f"Cannot carry more than {MAX_ITEM_QUANTITY} {stack.name} "
                    f"(have {stack.quantity}, adding {incoming.quantity})",
                    item_name=stack.name,
                )
            self.inventory[index] = stack.model_copy(update={"quantity": total})
            result = self.inventory[index]
        else:
            if len(self.inventory) >= MAX_INVENTORY_SIZE:
                raise InventoryError(
                    f"Inventory is full ({MAX_INVENTORY_SIZE} stacks)",
                    item_name=incoming.name,
                )
            self.inventory.append(incoming)
            result = incoming

        self._commit()
        return result

    def remove_item(self, name: str, quantity: int = 1) -> Item:
        """Remove units from an unequipped stack.

        Args:
            name: Stack name (case-insensitive).
            quantity: Units to remove.

        Returns:
            The removed units as a new stack.

        Raises:
            InvalidAmountError: If quantity is below 1.
            InventoryError: If the stack is missing or too small.
        """
        if quantity < 1:
            raise InvalidAmountError("Quantity must be at least 1", invalid_value=quantity)
        index = self._find_stack(name)
        if index is None:
            raise InventoryError(f"{name} is not in your inventory", item_name=name)

        stack = self.inventory[index]
        if stack.quantity < quantity:
            raise InventoryError(
                f"Only {stack.quantity} {stack.name} in your inventory",
                item_name=stack.name,
            )
        if stack.quantity == quantity:
            del self.inventory[index]
        else:
            self.inventory[index] = stack.model_copy(update={"quantity": stack.quantity - quantity})

        self._commit()
        return stack.split(quantity)

    # =========================================================================
    # Equipment
    # =========================================================================

    def equip(self, name: str, validator: EquipmentValidator | None = None) -> Item | None:
        """Equip one unit of an inventory stack.

        When the item's slot is already taken, the previous occupant goes
        back to the inventory and the new item takes its place in the same
        position, so a slot never holds two items.

        Args:
            name: Inventory stack name (case-insensitive).
            validator: Eligibility rules; a default validator when omitted.

        Returns:
            The previous occupant of the slot, now unequipped, or None.

        Raises:
            EquipmentError: With the reason the item cannot be equipped.
        """
        validator = validator or EquipmentValidator()
        if self._find_equipped(name) is not None:
            raise EquipmentError(
                f"{name} is already equipped",
                reason=EquipFailure.ALREADY_EQUIPPED,
                item_name=name,
            )
        index = self._find_stack(name)
        if index is None:
            raise EquipmentError(
                f"{name} is not in your inventory",
                reason=EquipFailure.NOT_IN_INVENTORY,
                item_name=name,
            )

        stack = self.inventory[index]
        validator.validate(self.level, self.character_class, stack)

        occupant_index = self._find_slot(stack.slot)
        if occupant_index is None and len(self.equipment) >= MAX_EQUIPMENT_SIZE:
            raise EquipmentError(
                f"All {MAX_EQUIPMENT_SIZE} equipment slots are in use",
                reason=EquipFailure.EQUIPMENT_FULL,
                item_name=stack.name,
            )

        inventory = list(self.inventory)
        if stack.quantity == 1:
            del inventory[index]
        else:
            inventory[index] = stack.model_copy(update={"quantity": stack.quantity - 1})

        previous: Item | None = None
        if occupant_index is not None:
            previous = self.equipment[occupant_index].model_copy(update={"equipped": False})
            if not _stash(inventory, previous):
                raise EquipmentError(
                    f"No room in your inventory for {previous.name}",
                    reason=EquipFailure.INVENTORY_FULL,
                    item_name=previous.name,
                )

        equipped = stack.model_copy(update={"quantity": 1, "equipped": True}, deep=True)
        equipment = list(self.equipment)
        if occupant_index is None:
            equipment.append(equipped)
        else:
            equipment[occupant_index] = equipped

        self.inventory = inventory
        self.equipment = equipment
        self._recompute_combat()
        self._commit()
        logger.debug(
            "Item equipped",
            character=self.name,
            item=equipped.name,
            slot=equipped.slot,
            replaced=previous.name if previous else None,
        )
        return previous

    def unequip(self, name: str) -> Item:
        """Move an equipped item back to the inventory.

        Returns:
            The item as it now sits in the inventory (unequipped).

        Raises:
            EquipmentError: If the item is not equipped or there is no room.
        """
        index = self._find_equipped(name)
        if index is None:
            raise EquipmentError(
                f"{name} is not equipped",
                reason=EquipFailure.NOT_EQUIPPED,
                item_name=name,
            )

        returned = self.equipment[index].model_copy(update={"equipped": False})
        inventory = list(self.inventory)
        if not _stash(inventory, returned):
            raise EquipmentError(
                f"No room in your inventory for {returned.name}",
                reason=EquipFailure.INVENTORY_FULL,
                item_name=returned.name,
            )

        equipment = list(self.equipment)
        del equipment[index]
        self.inventory = inventory
        self.equipment = equipment
        self._recompute_combat()
        self._commit()
        return returned

    # =========================================================================
    # Combat
    # =========================================================================

    def take_damage(self, amount: int) -> bool:
        """Apply damage, clamping health at zero.

        Returns:
            True if the character is now at zero health.
        """
        if amount < 0:
            raise InvalidAmountError("Damage amount cannot be negative", invalid_value=amount)
        self.combat = self.combat.model_copy(
            update={"current_health": max(0, self.combat.current_health - amount)}
        )
        self._commit()
        return self.combat.current_health == 0

    def heal(self, amount: int) -> int:
        """Restore health up to the maximum.

        Returns:
            Health actually restored.
        """
        if amount < 0:
            raise InvalidAmountError("Healing amount cannot be negative", invalid_value=amount)
        before = self.combat.current_health
        self.combat = self.combat.model_copy(
            update={"current_health": min(self.combat.max_health, before + amount)}
        )
        self._commit()
        return self.combat.current_health - before

    def add_status(self, status: str) -> bool:
        """Add a status effect. Returns False if it was already present."""
        status = status.strip().lower()
        if status in self.status_effects:
            return False
        self.status_effects.append(status)
        self._commit()
        return True

    def remove_status(self, status: str) -> bool:
        """Remove a status effect. Returns False if it was not present."""
        status = status.strip().lower()
        if status not in self.status_effects:
            return False
        self.status_effects.remove(status)
        self._commit()
        return True

    # =========================================================================
    # Skills
    # =========================================================================

    def _class_skill(self, skill: Skill | str) -> Skill:
        if not is_class_skill(self.character_class, skill):
            raise InvalidChoiceError(
                f"{skill} is not a {self.character_class.display_name} skill",
                field_name="skill",
                invalid_value=str(skill),
            )
        return Skill(skill)

    def adjust_skill_bonus(self, skill: Skill | str, delta: int) -> SkillProficiency:
        """Change the flat bonus of a class skill.

        A non-proficient record is added when the character has none yet.

        Raises:
            InvalidChoiceError: If the skill is not in the class's set.
        """
        skill = self._class_skill(skill)
        record = self.get_skill(skill)
        if record is None:
            record = SkillProficiency(skill=skill, is_proficient=False, bonus=delta)
            self.skills.append(record)
        else:
            record.bonus += delta
        self._commit()
        return record

    def roll_skill_check(
        self,
        skill: Skill | str,
        dc: int = DEFAULT_SKILL_CHECK_DC,
        roller: DiceRoller | None = None,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> SkillCheckResult:
        """Roll 1d20 plus the skill modifier against a difficulty class.

        Any skill may be checked; only held records add proficiency and
        flat bonuses.

        Raises:
            InvalidChoiceError: If ``skill`` is not a known skill.
        """
        try:
            skill = Skill(skill)
        except ValueError as exc:
            raise InvalidChoiceError(
                f"Unknown skill: {skill}",
                field_name="skill",
                invalid_value=str(skill),
            ) from exc
        roller = roller or get_default_roller()
        return roller.roll_skill_check(
            skill.value,
            self.skill_modifier(skill),
            dc=dc,
            roll_type=roll_type,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def deactivate(self) -> None:
        """Logically delete the character."""
        self.is_active = False
        self._commit()


__all__ = [
    "utcnow",
    "Character",
]
