"""Gameplay operations on stored characters."""

from __future__ import annotations

from rpg_bot.services.character_service import CharacterService


__all__ = [
    "CharacterService",
]
