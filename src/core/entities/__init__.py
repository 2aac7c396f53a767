"""Entity store foundation.

This package contains the entity/component/relationship store:
- world.py: In-memory World holding entities, tags, pairs and data components
- errors.py: Store boundary exceptions
"""

from .world import World, NO_TARGET
from .errors import (
    StoreError,
    DeadEntityError,
    MissingComponentError,
    ExclusiveRelationError,
    NotAContainerError,
)

__all__ = [
    "World",
    "NO_TARGET",
    "StoreError",
    "DeadEntityError",
    "MissingComponentError",
    "ExclusiveRelationError",
    "NotAContainerError",
]
