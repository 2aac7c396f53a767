"""
Transfer system for moving items between containers.

This module moves single items or whole inventories from one container to
another. Stackable items (those carrying an Amount) are merged into an
existing stack of the same kind at the destination instead of taking a new
slot; everything else has its containment relation reassigned.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from ...core.data import Entity, DestroyReason, LogLevel
from ...core.events import (
    EntityDestroyed, ItemsMerged, ItemTransferred, LogMessage, ManagerInitialized, TransferCompleted
)
from ..entities.components import Amount

if TYPE_CHECKING:
    from ...core.entities import World
    from ...core.events import EventManager
    from ..entities.components import InventorySchema
    from .inventory_manager import InventoryManager


@dataclass
class TransferSummary:
    """Counts for one container-to-container transfer."""
    source: Entity
    destination: Entity
    moved: int = 0
    merged: int = 0
    units: int = 0

    @property
    def items_transferred(self) -> int:
        """Number of source items handled, moved or merged."""
        return self.moved + self.merged


class TransferManager:
    """Moves and merges items between containers."""

    def __init__(
        self,
        world: "World",
        schema: "InventorySchema",
        inventory: "InventoryManager",
        event_manager: "EventManager",
        step_source: Optional[Callable[[], int]] = None
    ):
        self.world = world
        self.schema = schema
        self.inventory = inventory
        self.event_manager = event_manager
        self._step_source = step_source or (lambda: 0)

        self.event_manager.publish(
            ManagerInitialized(step=0, manager_name="TransferManager"),
            source="TransferManager"
        )

    def transfer_item(self, destination: Entity, item: Entity) -> Entity:
        """Move one item into a container, merging stacks of the same kind.

        Args:
            destination: Container or inventory owner receiving the item
            item: Item to move

        Returns:
            The entity now holding the item's units: the destination stack it
            was merged into, or the item itself
        """
        container = self.inventory.normalize_container(destination)
        return self._transfer_one(container, item, source=self.inventory.container_of(item))

    def transfer_all(self, destination: Entity, source: Entity) -> TransferSummary:
        """Move every item of one container into another.

        Args:
            destination: Container or inventory owner receiving the items
            source: Container or inventory owner giving up its items

        Returns:
            TransferSummary with moved and merged counts
        """
        dst = self.inventory.normalize_container(destination)
        src = self.inventory.normalize_container(source)
        summary = TransferSummary(source=src, destination=dst)

        self._emit_log(
            f">> Transfer items from {self.world.describe(source)} to {self.world.describe(destination)}",
            "INVENTORY"
        )

        if dst == src:
            return summary

        # Membership is captured up front; merged items are destroyed mid-pass
        for item in self.inventory.iter_items(src):
            units = self.inventory.units_of(item)
            holder = self._transfer_one(dst, item, source=src)
            if holder == item:
                summary.moved += 1
            else:
                summary.merged += 1
            summary.units += units

        self.event_manager.publish(
            TransferCompleted(
                step=self._step_source(),
                source=src,
                destination=dst,
                moved=summary.moved,
                merged=summary.merged
            ),
            source="TransferManager"
        )
        return summary

    def _transfer_one(self, container: Entity, item: Entity, source: Optional[Entity]) -> Entity:
        amount = self.world.get(item, Amount)

        if amount is not None and self.inventory.container_of(item) != container:
            target = self._find_stack(container, item)
            if target is not None:
                return self._merge(target, item, amount.value)
            # No stack of this kind at the destination: move it like any item

        item_name = self.inventory.kinds.display_name(item)
        # ContainedBy is exclusive: this replaces the previous container
        self.world.add_pair(item, self.schema.contained_by, container)

        self.event_manager.publish(
            ItemTransferred(
                step=self._step_source(),
                item=item,
                item_name=item_name,
                source=source,
                destination=container
            ),
            source="TransferManager"
        )
        return item

    def _find_stack(self, container: Entity, item: Entity) -> Optional[Entity]:
        """Find the first other item of the same kind that carries an Amount.

        Same-kind items without an Amount are single units and never absorb
        a stack.
        """
        kind = self.inventory.kinds.kind_of(item)
        if kind is None:
            return None
        for candidate in self.inventory.iter_items(container):
            if candidate == item or self.inventory.kinds.kind_of(candidate) != kind:
                continue
            if self.world.get(candidate, Amount) is not None:
                return candidate
        return None

    def _merge(self, target: Entity, item: Entity, units: int) -> Entity:
        item_name = self.inventory.kinds.display_name(item)

        target_amount = self.world.get_mut(target, Amount)
        target_amount.value += units
        self.world.destroy(item)

        step = self._step_source()
        self.event_manager.publish(
            ItemsMerged(
                step=step,
                source_item=item,
                target_item=target,
                item_name=item_name,
                amount=units,
                new_total=target_amount.value
            ),
            source="TransferManager"
        )
        self.event_manager.publish(
            EntityDestroyed(step=step, entity=item, name=item_name, reason=DestroyReason.MERGED),
            source="TransferManager"
        )
        self._emit_log(f" - merged {units} {item_name} into a stack of {target_amount.value}", "DEBUG", LogLevel.DEBUG)
        return target

    def _emit_log(self, message: str, category: str = "INVENTORY", level: LogLevel = LogLevel.INFO) -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                step=self._step_source(),
                message=message,
                category=category,
                level=level,
                source="TransferManager"
            ),
            source="TransferManager"
        )
