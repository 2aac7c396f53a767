"""
Inventory management system for container lookup, enumeration and search.

This module normalizes holder references (agents or containers) into
containers, enumerates the items a container holds and searches them by
kind. Enumeration works on a snapshot of the container's contents so the
caller may move or destroy items while iterating.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from ...core.data import Entity, EntityArray
from ...core.entities import DeadEntityError, NotAContainerError
from ...core.events import ManagerInitialized
from ..entities.components import Amount

if TYPE_CHECKING:
    from ...core.entities import World
    from ...core.events import EventManager
    from ..entities.components import InventorySchema
    from ..entities.kind_resolver import KindResolver

# Kind slot for entities in a container that are not items
NO_KIND = -1


@dataclass(frozen=True)
class InventorySnapshot:
    """Point-in-time view of a container's contents.

    The arrays are aligned with ``items``: ``kinds[i]`` is the kind entity
    of ``items[i]`` (NO_KIND if it has none) and ``units[i]`` how many
    logical units it represents (its Amount, or 1).
    """
    owner: Entity
    owner_name: str
    container: Entity
    items: EntityArray
    names: tuple[str, ...]
    kind_names: tuple[str, ...]
    kinds: NDArray[np.int64]
    units: NDArray[np.int64]

    def __len__(self) -> int:
        return len(self.items)

    def is_empty(self) -> bool:
        """Check if the container holds nothing."""
        return len(self.items) == 0

    def total_units(self) -> int:
        """Sum of units across all items."""
        return int(self.units.sum())

    def units_of(self, kind: Entity) -> int:
        """Sum of units held of one kind."""
        return int(self.units[self.kinds == kind].sum())

    def format_lines(self) -> list[str]:
        """Render the inventory as printable lines.

        Example:
            -- Player's inventory:
             - 50 Coins (Coin)
             - 1 IronSword (Sword)
        """
        lines = [f"-- {self.owner_name}'s inventory:"]
        for name, kind_name, units in zip(self.names, self.kind_names, self.units):
            plural = "s" if units > 1 else ""
            lines.append(f" - {int(units)} {name}{plural} ({kind_name})")
        if self.is_empty():
            lines.append(" - << empty >>")
        return lines


class InventoryManager:
    """Resolves containers and queries the items they hold."""

    def __init__(
        self,
        world: "World",
        schema: "InventorySchema",
        kind_resolver: "KindResolver",
        event_manager: "EventManager"
    ):
        self.world = world
        self.schema = schema
        self.kinds = kind_resolver
        self.event_manager = event_manager

        self.event_manager.publish(
            ManagerInitialized(step=0, manager_name="InventoryManager"),
            source="InventoryManager"
        )

    # =========================================================================
    # Containers
    # =========================================================================

    def normalize_container(self, ref: Entity) -> Entity:
        """Get the container behind a holder reference.

        A container is returned unchanged; an agent is mapped to the
        container its Inventory relation points at.

        Raises:
            DeadEntityError: If the reference is not alive
            NotAContainerError: If the reference is neither a container nor
                an inventory owner
        """
        if not self.world.is_alive(ref):
            raise DeadEntityError(ref, "normalize_container")
        if self.world.has(ref, self.schema.container):
            return ref

        container = self.world.target(ref, self.schema.owns_inventory)
        if container is None:
            raise NotAContainerError(ref, self.world.describe(ref))
        return container

    def has_inventory(self, ref: Entity) -> bool:
        """Check if a reference is a container or owns one."""
        if not self.world.is_alive(ref):
            return False
        return (
            self.world.has(ref, self.schema.container)
            or self.world.target(ref, self.schema.owns_inventory) is not None
        )

    def container_of(self, item: Entity) -> Optional[Entity]:
        """Get the container currently holding an item, or None."""
        return self.world.target(item, self.schema.contained_by)

    # =========================================================================
    # Enumeration
    # =========================================================================

    def iter_items(self, container: Entity) -> Iterator[Entity]:
        """Iterate the items contained by a container.

        Membership is captured before the first item is yielded. Items the
        caller destroys along the way are skipped; items it moves elsewhere
        are still visited once, as of the snapshot.
        """
        snapshot = self.world.query_pair(self.schema.contained_by, container)
        for item in snapshot:
            if self.world.is_alive(item):
                yield item

    def for_each_item(self, container: Entity, visit: Callable[[Entity], None]) -> int:
        """Call ``visit`` for each item in a container.

        Returns:
            Number of items visited
        """
        visited = 0
        for item in self.iter_items(container):
            visit(item)
            visited += 1
        return visited

    def list_items(self, ref: Entity) -> EntityArray:
        """Get the items held by a container or inventory owner."""
        container = self.normalize_container(ref)
        return self.world.query_pair(self.schema.contained_by, container)

    def count_items(self, ref: Entity) -> int:
        """Number of item slots held by a container or inventory owner."""
        return len(self.list_items(ref))

    # =========================================================================
    # Search
    # =========================================================================

    def find_item(
        self,
        ref: Entity,
        kind: Optional[Entity],
        active_required: bool = False
    ) -> Optional[Entity]:
        """Find the first item of a kind in a container or inventory owner.

        Args:
            ref: Container or inventory owner to search
            kind: Kind entity to look for
            active_required: Only consider equipped items

        Returns:
            The first matching item in enumeration order, or None
        """
        if kind is None:
            return None

        container = self.normalize_container(ref)
        for item in self.iter_items(container):
            if active_required and not self.world.has(item, self.schema.active):
                continue
            if self.kinds.kind_of(item) == kind:
                return item
        return None

    def units_of(self, item: Entity) -> int:
        """How many logical units an item represents."""
        amount = self.world.get(item, Amount)
        return amount.value if amount is not None else 1

    def snapshot(self, ref: Entity) -> InventorySnapshot:
        """Capture a printable view of a holder's inventory."""
        container = self.normalize_container(ref)
        items = self.list_items(container)

        names = []
        kind_names = []
        kinds = np.full(len(items), NO_KIND, dtype=np.int64)
        units = np.ones(len(items), dtype=np.int64)

        for index, item in enumerate(items):
            resolved = self.kinds.resolve(item)
            names.append(self.kinds.display_name(item))
            if resolved is not None:
                kinds[index] = resolved.kind
                kind_names.append(self.world.name_of(resolved.kind))
            else:
                kind_names.append("?")
            units[index] = self.units_of(item)

        return InventorySnapshot(
            owner=ref,
            owner_name=self.world.describe(ref),
            container=container,
            items=items,
            names=tuple(names),
            kind_names=tuple(kind_names),
            kinds=kinds,
            units=units,
        )
