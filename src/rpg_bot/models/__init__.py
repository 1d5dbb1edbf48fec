"""Pydantic V2 schemas and rules for the RPG bot.

Submodules:
    enums: Abilities, skills, classes, backgrounds and item enumerations.
    components: Attributes, skill records, combat stats and item stats.
    class_data: Per-class baselines, skills, requirements and item types.
    point_buy: The attribute budget used during character creation.
    progression: Level, health, proficiency and armor formulas.
    equipment: Items, the item catalogue and equip rules.
    character: The Character aggregate.

Example:
    >>> from rpg_bot.models import Attributes, AttributeBudget, Ability
    >>> budget = AttributeBudget.from_attributes(Attributes.floor())
    >>> budget.increase(Ability.STR).remaining()
    26
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from rpg_bot.models.enums import (
    EQUIPPABLE_ITEM_TYPES,
    Ability,
    Background,
    CharacterClass,
    EquipmentSlot,
    ItemRarity,
    ItemType,
    Skill,
)

# =============================================================================
# Components
# =============================================================================
from rpg_bot.models.components import (
    Attributes,
    AttributeScore,
    CombatStats,
    ItemStats,
    SkillProficiency,
    calculate_modifier,
)

# =============================================================================
# Rules
# =============================================================================
from rpg_bot.models.class_data import (
    get_base_attributes,
    get_class_item_types,
    get_class_skills,
    get_primary_attribute,
    is_class_skill,
    unmet_requirements,
)
from rpg_bot.models.point_buy import AttributeBudget, step_cost, total_cost
from rpg_bot.models import progression
from rpg_bot.models.equipment import (
    ITEMS,
    EquipmentValidator,
    Item,
    create_item,
    get_starting_kit,
)

# =============================================================================
# Aggregate
# =============================================================================
from rpg_bot.models.character import Character


__all__ = [
    # === Enumerations ===
    "Ability",
    "Skill",
    "CharacterClass",
    "Background",
    "ItemType",
    "EQUIPPABLE_ITEM_TYPES",
    "ItemRarity",
    "EquipmentSlot",
    # === Components ===
    "AttributeScore",
    "calculate_modifier",
    "Attributes",
    "SkillProficiency",
    "CombatStats",
    "ItemStats",
    # === Rules ===
    "get_base_attributes",
    "get_class_skills",
    "is_class_skill",
    "get_primary_attribute",
    "unmet_requirements",
    "get_class_item_types",
    "AttributeBudget",
    "step_cost",
    "total_cost",
    "progression",
    "ITEMS",
    "Item",
    "EquipmentValidator",
    "create_item",
    "get_starting_kit",
    # === Aggregate ===
    "Character",
]
