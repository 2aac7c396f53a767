"""Shared data structures for the entity store and its callers.

This module provides the small value types that cross module boundaries:
- Id: one entry of an entity's type (tag, pair or data component)
- EntityArray: numpy-backed snapshot of entity handles for safe iteration
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

import numpy as np
from numpy.typing import NDArray


# Entity handles are plain integers allocated by the World. 0 is never a live entity.
Entity = int


@dataclass(frozen=True)
class Id:
    """One id attached to an entity.

    An id is either a tag entity (``first`` only), a relationship pair
    (``first`` is the relation, ``second`` the target), or a data component
    class (``component``).
    """
    first: Optional[Entity] = None
    second: Optional[Entity] = None
    component: Optional[type] = None

    def is_entity(self) -> bool:
        """Check if this id is a plain tag entity."""
        return self.first is not None and self.second is None

    def is_pair(self) -> bool:
        """Check if this id is a (relation, target) pair."""
        return self.first is not None and self.second is not None

    def is_component(self) -> bool:
        """Check if this id is a data component class."""
        return self.component is not None

    def __repr__(self) -> str:
        if self.is_pair():
            return f"Id({self.first}, {self.second})"
        if self.is_component():
            return f"Id({self.component.__name__})"
        return f"Id({self.first})"


class EntityArray:
    """Immutable snapshot of entity handles backed by an int64 numpy array.

    Query results are materialized into an EntityArray before any caller
    logic runs, so callers may move or destroy the entities they visit
    without disturbing the rest of the traversal.
    """

    def __init__(self, entities: Optional[Union[Iterable[Entity], NDArray[np.int64]]] = None):
        """Initialize from an iterable of handles or an int64 numpy array.

        Args:
            entities: Entity handles. If None, creates an empty EntityArray.
        """
        if entities is None:
            data = np.empty(0, dtype=np.int64)
        elif isinstance(entities, np.ndarray):
            if entities.ndim != 1:
                raise ValueError("Numpy array must have shape (N,)")
            data = entities.astype(np.int64, copy=True)
        else:
            data = np.fromiter((int(e) for e in entities), dtype=np.int64)
        data.flags.writeable = False
        self._data = data

    @property
    def data(self) -> NDArray[np.int64]:
        """Get the underlying read-only numpy array."""
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, index: int) -> Entity:
        if index >= len(self._data) or index < -len(self._data):
            raise IndexError("EntityArray index out of range")
        return int(self._data[index])

    def __iter__(self) -> Iterator[Entity]:
        for value in self._data:
            yield int(value)

    def __contains__(self, entity: object) -> bool:
        if not isinstance(entity, (int, np.integer)):
            return False
        return bool(np.any(self._data == entity))

    def __repr__(self) -> str:
        return f"EntityArray({self.to_list()})"

    def to_list(self) -> list[Entity]:
        """Convert to a list of entity handles."""
        return [int(value) for value in self._data]

    def filter(self, mask: NDArray[np.bool_]) -> "EntityArray":
        """Return a new EntityArray keeping the entries where mask is True."""
        if mask.shape != self._data.shape:
            raise ValueError("Mask shape must match EntityArray shape")
        return EntityArray(self._data[mask])
