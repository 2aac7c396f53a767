"""Centralized simulation enums and constants.

This module contains the enums shared by the inventory and combat modules,
providing a single source of truth for outcome reporting.
"""

from enum import Enum, auto


class ArmorOutcome(Enum):
    """What the defender's armor did during one attack."""
    NOT_EQUIPPED = auto()  # No active armor in the defender's inventory
    DUD = auto()           # Armor found but it has no Health
    ABSORBED = auto()      # Armor took the whole hit and survived
    BROKEN = auto()        # Armor reached zero health and was destroyed


class WeaponOutcome(Enum):
    """What happened to the attacking weapon during one attack."""
    DUD = auto()            # Weapon has no Attack, nothing was resolved
    WORN = auto()           # Durability decremented, weapon survives
    BROKEN = auto()         # Durability reached zero, weapon destroyed
    NO_DURABILITY = auto()  # Weapon has no Health to wear down


class DestroyReason(Enum):
    """Why an entity was removed from the world."""
    MERGED = auto()
    ARMOR_BROKEN = auto()
    WEAPON_BROKEN = auto()
    DEFENDER_KILLED = auto()


ARMOR_OUTCOME_NAMES = {
    ArmorOutcome.NOT_EQUIPPED: "Not equipped",
    ArmorOutcome.DUD: "Dud",
    ArmorOutcome.ABSORBED: "Absorbed",
    ArmorOutcome.BROKEN: "Broken",
}

WEAPON_OUTCOME_NAMES = {
    WeaponOutcome.DUD: "Dud",
    WeaponOutcome.WORN: "Worn",
    WeaponOutcome.BROKEN: "Broken",
    WeaponOutcome.NO_DURABILITY: "No durability",
}

# Default limit on prototype chain length walked when resolving item kinds
DEFAULT_MAX_INHERITANCE_DEPTH = 32


class LogLevel(Enum):
    """Log levels for filtering."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
