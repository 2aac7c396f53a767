"""Item and agent components for the inventory simulation.

This module contains the data components stored on entities (Amount, Health,
Attack) and the InventorySchema, which registers the tags and relations the
inventory and combat managers rely on.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.data import Entity
    from ...core.entities import World


@dataclass
class Amount:
    """Number of logical units a single stackable item entity represents."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 1:
            raise ValueError(f"Amount must be a positive integer, got {self.value!r}")


@dataclass
class Health:
    """Remaining structural integrity of an armor piece, weapon or agent.

    Values are signed; an entity whose health drops to zero or below is
    destroyed by the combat resolver.
    """
    value: int

    def is_depleted(self) -> bool:
        """Check if the health has dropped to zero or below."""
        return self.value <= 0


@dataclass
class Attack:
    """Damage dealt per use of a weapon."""
    value: int


# Component classes addressable by name from item template files
COMPONENT_TYPES: dict[str, type] = {
    "amount": Amount,
    "health": Health,
    "attack": Attack,
}


@dataclass(frozen=True)
class InventorySchema:
    """Handles of the built-in inventory tags and relations of one world.

    Attributes:
        item: Base item capability. Kinds are tags that inherit from it.
        container: Tag marking an entity that holds items.
        active: Tag marking an equipped or worn item.
        contained_by: Exclusive relation from an item to its container.
        owns_inventory: Relation from an agent to its container.
    """
    item: "Entity"
    container: "Entity"
    active: "Entity"
    contained_by: "Entity"
    owns_inventory: "Entity"

    @classmethod
    def register(cls, world: "World") -> "InventorySchema":
        """Create (or fetch) the inventory tags and relations in a world."""
        return cls(
            item=world.entity("Item"),
            container=world.entity("Container"),
            active=world.entity("Active"),
            # An item can only be contained by one container
            contained_by=world.relation("ContainedBy", exclusive=True),
            owns_inventory=world.relation("Inventory", exclusive=True),
        )

    def register_kind(self, world: "World", name: str) -> "Entity":
        """Create (or fetch) an item kind: a named tag inheriting from Item."""
        kind = world.entity(name)
        world.is_a(kind, self.item)
        return kind

    def is_kind(self, world: "World", entity: "Entity") -> bool:
        """Check if an entity is an item kind."""
        return world.has_pair(entity, world.IS_A, self.item)
