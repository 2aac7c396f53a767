"""Core data structures and definitions.

This package contains fundamental data types shared across the simulation:
- data_structures.py: Entity handles, Id records and the EntityArray snapshot
- game_enums.py: Centralized enums for combat outcomes, destruction reasons and log levels
"""

from .data_structures import Entity, Id, EntityArray
from .game_enums import (
    ArmorOutcome,
    WeaponOutcome,
    DestroyReason,
    ARMOR_OUTCOME_NAMES,
    WEAPON_OUTCOME_NAMES,
    DEFAULT_MAX_INHERITANCE_DEPTH,
    LogLevel,
)

__all__ = [
    "Entity",
    "Id",
    "EntityArray",
    "ArmorOutcome",
    "WeaponOutcome",
    "DestroyReason",
    "ARMOR_OUTCOME_NAMES",
    "WEAPON_OUTCOME_NAMES",
    "DEFAULT_MAX_INHERITANCE_DEPTH",
    "LogLevel",
]
