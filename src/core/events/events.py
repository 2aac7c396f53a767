"""Simulation events and context.

This module defines all events that managers publish and subscribe to.

Event Design Principles:
- Events are immutable dataclasses
- All events carry the simulation step they were raised in
- Events carry entity handles plus the names needed to describe them,
  since a destroyed entity can no longer be asked for its name
- Events use proper enums instead of magic strings where a set is closed
"""

from abc import ABC
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, TYPE_CHECKING

from ..data import DestroyReason

if TYPE_CHECKING:
    from ..data import Entity, LogLevel
    from ...game.combat.combat_resolver import AttackOutcome


class EventType(Enum):
    """Types of simulation events that managers can subscribe to."""
    # Inventory Events
    ITEM_TRANSFERRED = auto()
    ITEMS_MERGED = auto()
    TRANSFER_COMPLETED = auto()
    ITEM_EQUIPPED = auto()
    ITEM_UNEQUIPPED = auto()

    # Entity Events
    ENTITY_DESTROYED = auto()

    # Combat Events
    ATTACK_RESOLVED = auto()

    # Logging Events
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()

    # System Events
    MANAGER_INITIALIZED = auto()
    LOG_SAVE_REQUESTED = auto()


@dataclass(frozen=True)
class SimulationEvent(ABC):
    """Base class for all simulation events."""
    step: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class ItemTransferred(SimulationEvent):
    """Event emitted when an item's container relation is reassigned."""
    item: "Entity"
    item_name: str
    source: Optional["Entity"]
    destination: "Entity"

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.ITEM_TRANSFERRED)


@dataclass(frozen=True)
class ItemsMerged(SimulationEvent):
    """Event emitted when a stack is folded into a stack of the same kind."""
    source_item: "Entity"
    target_item: "Entity"
    item_name: str
    amount: int
    new_total: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ITEMS_MERGED)


@dataclass(frozen=True)
class TransferCompleted(SimulationEvent):
    """Event emitted after every item of a container has been transferred."""
    source: "Entity"
    destination: "Entity"
    moved: int
    merged: int

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TRANSFER_COMPLETED)


@dataclass(frozen=True)
class ItemEquipped(SimulationEvent):
    """Event emitted when an item is marked active."""
    item: "Entity"
    item_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ITEM_EQUIPPED)


@dataclass(frozen=True)
class ItemUnequipped(SimulationEvent):
    """Event emitted when an item loses its active marker."""
    item: "Entity"
    item_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ITEM_UNEQUIPPED)


@dataclass(frozen=True)
class EntityDestroyed(SimulationEvent):
    """Event emitted when an entity is removed from the world."""
    entity: "Entity"
    name: str
    reason: DestroyReason

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ENTITY_DESTROYED)


@dataclass(frozen=True)
class AttackResolved(SimulationEvent):
    """Event emitted after an attack has been fully resolved."""
    outcome: "AttackOutcome"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ATTACK_RESOLVED)


@dataclass(frozen=True)
class LogMessage(SimulationEvent):
    """Event emitted when a log message is created."""
    message: str
    category: str
    level: "LogLevel"
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(SimulationEvent):
    """Event emitted for debug-specific messages."""
    message: str
    source: str
    context: Optional[dict] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)


@dataclass(frozen=True)
class ManagerInitialized(SimulationEvent):
    """Event emitted when a manager is initialized."""
    manager_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.MANAGER_INITIALIZED)


@dataclass(frozen=True)
class LogSaveRequested(SimulationEvent):
    """Event emitted when the driver requests to save the log to file."""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_SAVE_REQUESTED)
