"""Application-wide constants for the RPG bot rules engine.

This module defines constants used throughout the application, including
character limits, point-buy parameters and inventory capacities.
"""

from __future__ import annotations

# =============================================================================
# Character Limits
# =============================================================================

MIN_NAME_LENGTH = 3
"""Minimum character name length."""

MAX_NAME_LENGTH = 20
"""Maximum character name length."""

STARTING_LEVEL = 1
"""Level every new character starts at."""

MAX_LEVEL = 20
"""Maximum character level."""

STARTING_GOLD = 100
"""Gold granted to a freshly created character."""

# =============================================================================
# Attribute Limits
# =============================================================================

MIN_ATTRIBUTE_VALUE = 8
"""Attribute floor, both during point buy and at play time."""

MAX_ATTRIBUTE_VALUE = 20
"""Attribute ceiling at play time."""

DEFAULT_ATTRIBUTE_VALUE = 10
"""Average attribute score (modifier +0)."""

# =============================================================================
# Point Buy Constants
# =============================================================================

POINT_BUY_TOTAL = 27
"""Total points available for point buy character creation."""

POINT_BUY_MIN = MIN_ATTRIBUTE_VALUE
"""Minimum attribute score in point buy."""

POINT_BUY_MAX = 15
"""Maximum attribute score in point buy (stricter than the play ceiling)."""

# =============================================================================
# Progression Constants
# =============================================================================

BASE_EXPERIENCE = 100
"""Experience needed to reach level 2 is derived from this base."""

EXPERIENCE_MULTIPLIER = 1.5
"""Growth factor of the experience curve per level."""

HEALTH_BASE = 10
"""Health per level for a character with an average constitution."""

BASE_ARMOR = 10
"""Armor of an unarmoured character with average dexterity."""

DEFAULT_SKILL_CHECK_DC = 10
"""Difficulty class used when a skill check does not name one."""

# =============================================================================
# Inventory Limits
# =============================================================================

MAX_INVENTORY_SIZE = 50
"""Maximum number of distinct stacks carried (unequipped)."""

MAX_ITEM_QUANTITY = 99
"""Maximum quantity in a single stack."""

MAX_EQUIPMENT_SIZE = 11
"""Total number of equipment slots."""


__all__ = [
    # Character
    "MIN_NAME_LENGTH",
    "MAX_NAME_LENGTH",
    "STARTING_LEVEL",
    "MAX_LEVEL",
    "STARTING_GOLD",
    # Attributes
    "MIN_ATTRIBUTE_VALUE",
    "MAX_ATTRIBUTE_VALUE",
    "DEFAULT_ATTRIBUTE_VALUE",
    # Point Buy
    "POINT_BUY_TOTAL",
    "POINT_BUY_MIN",
    "POINT_BUY_MAX",
    # Progression
    "BASE_EXPERIENCE",
    "EXPERIENCE_MULTIPLIER",
    "HEALTH_BASE",
    "BASE_ARMOR",
    "DEFAULT_SKILL_CHECK_DC",
    # Inventory
    "MAX_INVENTORY_SIZE",
    "MAX_ITEM_QUANTITY",
    "MAX_EQUIPMENT_SIZE",
]
