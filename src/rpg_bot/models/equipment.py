"""Items, the item catalogue and equip eligibility.

Contains the ``Item`` model, a small catalogue of common items with the
starting kit granted to each class, and :class:`EquipmentValidator`, the
pure predicate consulted before an item is equipped.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rpg_bot.core.constants import MAX_ITEM_QUANTITY, MAX_LEVEL, STARTING_LEVEL
from rpg_bot.core.exceptions import EquipFailure, EquipmentError
from rpg_bot.models.class_data import get_class_item_types
from rpg_bot.models.components import ItemStats
from rpg_bot.models.enums import CharacterClass, EquipmentSlot, ItemRarity, ItemType


# =============================================================================
# Item Model
# =============================================================================


class Item(BaseModel):
    """An item stack owned by a character.

    Stacks are identified by name; an equipped item always has quantity 1.

    Attributes:
        name: Display name, also the stacking key.
        item_type: Item classification.
        rarity: Rarity tier.
        required_level: Minimum character level to equip.
        required_classes: Classes allowed to equip (empty means any).
        slot: Equipment slot for equippable items.
        stats: Stat block applied while equipped.
        quantity: Units in this stack.
        equipped: Whether this stack sits in an equipment slot.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = Field(min_length=1)
    item_type: ItemType
    rarity: ItemRarity = ItemRarity.COMMON
    required_level: int = Field(default=STARTING_LEVEL, ge=STARTING_LEVEL, le=MAX_LEVEL)
    required_classes: list[CharacterClass] = Field(default_factory=list)
    slot: EquipmentSlot | None = None
    stats: ItemStats = Field(default_factory=ItemStats)
    quantity: int = Field(default=1, ge=1, le=MAX_ITEM_QUANTITY)
    equipped: bool = False

    @model_validator(mode="after")
    def validate_slot(self) -> "Item":
        """Equippable items need a slot; equipped stacks hold a single unit."""
        if self.item_type.is_equippable and self.slot is None:
            raise ValueError(f"{self.item_type.value} item {self.name!r} needs an equipment slot")
        if self.equipped and self.quantity != 1:
            raise ValueError(f"Equipped item {self.name!r} must have quantity 1")
        return self

    def stacks_with(self, other: Item) -> bool:
        """Check whether two stacks share a name and can be merged."""
        return self.name.lower() == other.name.lower()

    def split(self, quantity: int = 1) -> Item:
        """Return a copy of this stack holding ``quantity`` units."""
        return self.model_copy(update={"quantity": quantity}, deep=True)


# =============================================================================
# Item Catalogue
# =============================================================================

ITEMS: dict[str, dict] = {
    # Weapons
    "iron_sword": {
        "name": "Iron Sword",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"attack": 3},
    },
    "hunting_bow": {
        "name": "Hunting Bow",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"attack": 3},
        "required_classes": [CharacterClass.RANGER, CharacterClass.ROGUE, CharacterClass.WARRIOR],
    },
    "dagger": {
        "name": "Dagger",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.OFF_HAND,
        "stats": {"attack": 1},
    },
    "war_axe": {
        "name": "War Axe",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"attack": 4},
        "required_classes": [CharacterClass.WARRIOR, CharacterClass.BARBARIAN],
    },
    "oak_staff": {
        "name": "Oak Staff",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"attack": 1, "magic_power": 3},
    },
    "holy_mace": {
        "name": "Holy Mace",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"attack": 2, "magic_power": 1},
        "required_classes": [CharacterClass.CLERIC, CharacterClass.PALADIN],
    },
    "lute": {
        "name": "Lute",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"magic_power": 2},
        "required_classes": [CharacterClass.BARD],
    },
    "hand_wraps": {
        "name": "Hand Wraps",
        "item_type": ItemType.WEAPON,
        "slot": EquipmentSlot.MAIN_HAND,
        "stats": {"attack": 2},
        "required_classes": [CharacterClass.MONK],
    },
    # Armor
    "leather_armor": {
        "name": "Leather Armor",
        "item_type": ItemType.ARMOR,
        "slot": EquipmentSlot.CHEST,
        "stats": {"defense": 2},
    },
    "chain_mail": {
        "name": "Chain Mail",
        "item_type": ItemType.ARMOR,
        "rarity": ItemRarity.UNCOMMON,
        "required_level": 3,
        "slot": EquipmentSlot.CHEST,
        "stats": {"defense": 4},
        "required_classes": [CharacterClass.WARRIOR, CharacterClass.PALADIN, CharacterClass.CLERIC],
    },
    "plate_armor": {
        "name": "Plate Armor",
        "item_type": ItemType.ARMOR,
        "rarity": ItemRarity.RARE,
        "required_level": 5,
        "slot": EquipmentSlot.CHEST,
        "stats": {"defense": 6},
        "required_classes": [CharacterClass.WARRIOR, CharacterClass.PALADIN],
    },
    "iron_helm": {
        "name": "Iron Helm",
        "item_type": ItemType.ARMOR,
        "slot": EquipmentSlot.HEAD,
        "stats": {"defense": 1},
    },
    # Accessories
    "apprentice_amulet": {
        "name": "Apprentice Amulet",
        "item_type": ItemType.ACCESSORY,
        "slot": EquipmentSlot.NECK,
        "stats": {"magic_power": 2},
    },
    "copper_ring": {
        "name": "Copper Ring",
        "item_type": ItemType.ACCESSORY,
        "slot": EquipmentSlot.RING1,
        "stats": {"defense": 1},
    },
    "lucky_charm": {
        "name": "Lucky Charm",
        "item_type": ItemType.ACCESSORY,
        "rarity": ItemRarity.UNCOMMON,
        "slot": EquipmentSlot.TRINKET1,
        "stats": {"attack": 1, "defense": 1},
    },
    # Consumables & quest items
    "health_potion": {
        "name": "Health Potion",
        "item_type": ItemType.CONSUMABLE,
    },
    "rations": {
        "name": "Rations",
        "item_type": ItemType.CONSUMABLE,
    },
    "old_map": {
        "name": "Old Map",
        "item_type": ItemType.QUEST,
    },
}


# =============================================================================
# Starting Kits
# =============================================================================

CLASS_STARTING_KITS: dict[CharacterClass, list[tuple[str, int]]] = {
    CharacterClass.WARRIOR: [("iron_sword", 1), ("leather_armor", 1), ("health_potion", 3)],
    CharacterClass.BARBARIAN: [("war_axe", 1), ("leather_armor", 1), ("health_potion", 3)],
    CharacterClass.PALADIN: [("holy_mace", 1), ("leather_armor", 1), ("health_potion", 3)],
    CharacterClass.CLERIC: [("holy_mace", 1), ("leather_armor", 1), ("health_potion", 3)],
    CharacterClass.RANGER: [("hunting_bow", 1), ("leather_armor", 1), ("rations", 5)],
    CharacterClass.ROGUE: [("dagger", 1), ("leather_armor", 1), ("health_potion", 2)],
    CharacterClass.MAGE: [("oak_staff", 1), ("apprentice_amulet", 1), ("health_potion", 2)],
    CharacterClass.SORCERER: [("oak_staff", 1), ("apprentice_amulet", 1), ("health_potion", 2)],
    CharacterClass.WARLOCK: [("oak_staff", 1), ("apprentice_amulet", 1), ("health_potion", 2)],
    CharacterClass.DRUID: [("oak_staff", 1), ("copper_ring", 1), ("rations", 5)],
    CharacterClass.MONK: [("hand_wraps", 1), ("copper_ring", 1), ("rations", 5)],
    CharacterClass.BARD: [("lute", 1), ("lucky_charm", 1), ("health_potion", 2)],
}


# =============================================================================
# Factory Functions
# =============================================================================


def create_item(item_id: str, quantity: int = 1) -> Item | None:
    """Create an Item from a catalogue id.

    Args:
        item_id: The catalogue id (e.g., 'iron_sword').
        quantity: Units in the new stack.

    Returns:
        Item or None if the id is not in the catalogue.
    """
    item_data = ITEMS.get(item_id)
    if item_data is None:
        return None
    return Item(quantity=quantity, **item_data)


def get_starting_kit(character_class: CharacterClass | str) -> list[Item]:
    """Get the unequipped starting items for a class.

    Args:
        character_class: Character class.

    Returns:
        List of items; empty for an unknown class.
    """
    try:
        kit = CLASS_STARTING_KITS.get(CharacterClass(character_class), [])
    except ValueError:
        return []
    items = []
    for item_id, quantity in kit:
        item = create_item(item_id, quantity)
        if item:
            items.append(item)
    return items


# =============================================================================
# Equip Eligibility
# =============================================================================


class EquipmentValidator:
    """Decide whether a character may equip an item.

    Checks run in order and the first failure wins:

    1. The item type is equippable.
    2. The character meets the item's required level.
    3. The character's class is listed in the item's required classes,
       when that list is non-empty.
    4. Optionally, the class is trained with the item's type.

    The validator never mutates anything.

    Example:
        >>> validator = EquipmentValidator()
        >>> validator.can_equip(3, CharacterClass.WARRIOR, plate) is EquipFailure.LEVEL_TOO_LOW
        True
    """

    def __init__(self, *, enforce_class_item_types: bool = False) -> None:
        self.enforce_class_item_types = enforce_class_item_types

    def can_equip(
        self,
        character_level: int,
        character_class: CharacterClass,
        item: Item,
    ) -> EquipFailure | None:
        """Return the first failing reason, or None if the item may be equipped."""
        if not item.item_type.is_equippable:
            return EquipFailure.NOT_EQUIPPABLE
        if item.required_level > character_level:
            return EquipFailure.LEVEL_TOO_LOW
        if item.required_classes and character_class not in item.required_classes:
            return EquipFailure.CLASS_NOT_ALLOWED
        if self.enforce_class_item_types and item.item_type not in get_class_item_types(
            character_class
        ):
            return EquipFailure.ITEM_TYPE_NOT_ALLOWED
        return None

    def validate(self, character_level: int, character_class: CharacterClass, item: Item) -> None:
        """Raise if the item may not be equipped.

        Raises:
            EquipmentError: Carrying the failing reason code.
        """
        reason = self.can_equip(character_level, character_class, item)
        if reason is None:
            return
        messages = {
            EquipFailure.NOT_EQUIPPABLE: f"{item.name} cannot be equipped",
            EquipFailure.LEVEL_TOO_LOW: (
                f"{item.name} requires level {item.required_level} "
                f"(you are level {character_level})"
            ),
            EquipFailure.CLASS_NOT_ALLOWED: (
                f"{item.name} can only be equipped by "
                f"{', '.join(c.display_name for c in item.required_classes)}"
            ),
            EquipFailure.ITEM_TYPE_NOT_ALLOWED: (
                f"{character_class.display_name} is not trained with {item.item_type.value} items"
            ),
        }
        raise EquipmentError(messages[reason], reason=reason, item_name=item.name)


__all__ = [
    "Item",
    "ITEMS",
    "CLASS_STARTING_KITS",
    "create_item",
    "get_starting_kit",
    "EquipmentValidator",
]
