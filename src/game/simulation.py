"""
Simulation orchestration class.

This module wires the entity store, the item catalog and the inventory,
transfer and combat managers into one world, and exposes the operations a
driver or presentation layer calls: kind resolution, container lookup,
item listing and search, transfers and attacks.
"""

from typing import Optional, Union

from ..core.config_loader import SimulationConfig, load_simulation_config
from ..core.data import Entity, EntityArray
from ..core.entities import World
from ..core.events import EventManager, ItemEquipped, ItemUnequipped, LogSaveRequested
from .combat.combat_resolver import AttackOutcome, CombatResolver
from .entities.components import Amount, Health, InventorySchema
from .entities.item_templates import ItemCatalog, load_item_catalog, register_item_catalog
from .entities.kind_resolver import ItemKind, KindResolver
from .managers.inventory_manager import InventoryManager, InventorySnapshot
from .managers.log_manager import LogManager
from .managers.transfer_manager import TransferManager, TransferSummary

KindRef = Union[Entity, str]


class Simulation:
    """One single-threaded simulation world and its managers.

    Every operation runs to completion before returning and processes the
    events it published, so the log is current when the call returns.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        catalog: Optional[ItemCatalog] = None
    ):
        self.config = config or load_simulation_config()
        self.step = 0

        # Event system
        self.event_manager = EventManager(enable_debug_logging=self.config.debug_events)
        self.log_manager = LogManager(
            self.event_manager,
            max_messages=self.config.max_messages,
            default_level=self.config.log_level
        )
        self.event_manager.set_debug_callback(self.log_manager.debug)

        # Store and item catalog
        self.world = World()
        self.schema = InventorySchema.register(self.world)
        self.catalog = catalog or load_item_catalog(self.config.catalog_path)
        self.registry = register_item_catalog(self.world, self.schema, self.catalog)

        # Managers
        self.kind_resolver = KindResolver(
            self.world,
            self.schema,
            self.event_manager,
            max_depth=self.config.max_inheritance_depth
        )
        self.inventory = InventoryManager(self.world, self.schema, self.kind_resolver, self.event_manager)
        self.transfers = TransferManager(
            self.world, self.schema, self.inventory, self.event_manager, step_source=self._current_step
        )

        armor_kind = self.registry.get(self.config.armor_kind)
        if armor_kind is not None and not self.schema.is_kind(self.world, armor_kind):
            armor_kind = None
        if armor_kind is None:
            self.config.warnings.append(
                f"Armor kind '{self.config.armor_kind}' is not in the item catalog, armor is ignored"
            )
        self.combat = CombatResolver(
            self.world, self.inventory, self.event_manager, armor_kind=armor_kind, step_source=self._current_step
        )

        for warning in self.config.warnings:
            self.log_manager.warning(warning)
        self.log_manager.system(
            f"Loaded {len(self.catalog.kinds)} item kinds and {len(self.catalog.templates)} templates"
        )
        self.event_manager.process_events()

    def _current_step(self) -> int:
        return self.step

    def _finish_step(self) -> None:
        self.step += 1
        self.event_manager.process_events()

    # =========================================================================
    # World setup
    # =========================================================================

    def kind(self, name: str) -> Entity:
        """Get an item kind entity by name.

        Raises:
            KeyError: If no item kind has this name
        """
        entity = self.registry.get(name)
        if entity is None or not self.schema.is_kind(self.world, entity):
            raise KeyError(f"Unknown item kind: {name}")
        return entity

    def prefab(self, name: str) -> Entity:
        """Get an item prefab entity by template name.

        Raises:
            KeyError: If no template has this name
        """
        self.catalog.get_template(name)
        return self.registry[name]

    def _claim_name(self, name: Optional[str]) -> None:
        # World.entity(name) hands back the existing entity for a taken name
        if name is not None and self.world.lookup(name) is not None:
            raise ValueError(f"Name already in use: {name}")

    def create_container(self, name: Optional[str] = None) -> Entity:
        """Create an empty container.

        Raises:
            ValueError: If another entity (kind, prefab, holder) has this name
        """
        self._claim_name(name)
        container = self.world.entity(name)
        self.world.add(container, self.schema.container)
        return container

    def create_inventory_owner(self, name: Optional[str] = None, health: Optional[int] = None) -> Entity:
        """Create an agent with its own (unnamed) inventory container.

        Raises:
            ValueError: If another entity has this name
        """
        self._claim_name(name)
        owner = self.world.entity(name)
        if health is not None:
            self.world.set(owner, Health(health))
        self.world.add_pair(owner, self.schema.owns_inventory, self.create_container())
        return owner

    def spawn_item(
        self,
        template: Optional[str] = None,
        container: Optional[Entity] = None,
        amount: Optional[int] = None,
        kind: Optional[str] = None,
        name: Optional[str] = None
    ) -> Entity:
        """Create an item from a prefab template, or from scratch with a kind.

        Args:
            template: Prefab template name ("IronSword")
            container: Container or inventory owner to place the item in
            amount: Stack size, for stackable items
            kind: Kind name for an item created without a prefab ("Coin")
            name: Optional entity name

        Raises:
            ValueError: If neither template nor kind is given, or the name is taken
            KeyError: If the template or kind is unknown
        """
        if template is None and kind is None:
            raise ValueError("spawn_item needs a template or a kind")
        self._claim_name(name)

        item = self.world.entity(name)
        if template is not None:
            self.world.is_a(item, self.prefab(template))
        if kind is not None:
            self.world.add(item, self.kind(kind))
        if amount is not None:
            self.world.set(item, Amount(amount))
        if container is not None:
            self.world.add_pair(item, self.schema.contained_by, self.inventory.normalize_container(container))
        return item

    def equip(self, item: Entity) -> None:
        """Mark an item as active (worn or wielded)."""
        self.world.add(item, self.schema.active)
        self.event_manager.publish(
            ItemEquipped(step=self.step, item=item, item_name=self.kind_resolver.display_name(item)),
            source="Simulation"
        )
        self.log_manager.inventory(f"{self.kind_resolver.display_name(item)} equipped")
        self.event_manager.process_events()

    def unequip(self, item: Entity) -> None:
        """Remove an item's active marker."""
        if self.world.remove(item, self.schema.active):
            self.event_manager.publish(
                ItemUnequipped(step=self.step, item=item, item_name=self.kind_resolver.display_name(item)),
                source="Simulation"
            )
            self.event_manager.process_events()

    def is_equipped(self, item: Entity) -> bool:
        """Check if an item is active."""
        return self.world.has(item, self.schema.active)

    # =========================================================================
    # Queries
    # =========================================================================

    def resolve_kind(self, item: Entity) -> Optional[ItemKind]:
        """Resolve an item's kind and display name, or None if it is not an item."""
        return self.kind_resolver.resolve(item)

    def normalize_container(self, ref: Entity) -> Entity:
        """Get the container behind a container or inventory owner."""
        return self.inventory.normalize_container(ref)

    def list_items(self, ref: Entity) -> EntityArray:
        """Get the items held by a container or inventory owner."""
        return self.inventory.list_items(ref)

    def find_item(self, ref: Entity, kind: KindRef, active_required: bool = False) -> Optional[Entity]:
        """Find the first item of a kind held by a container or inventory owner."""
        kind_entity = self.kind(kind) if isinstance(kind, str) else kind
        return self.inventory.find_item(ref, kind_entity, active_required)

    def amount_of(self, item: Entity) -> Optional[int]:
        """Get an item's stack size, or None if it is not stackable."""
        amount = self.world.get(item, Amount)
        return amount.value if amount is not None else None

    def health_of(self, entity: Entity) -> Optional[int]:
        """Get an entity's health, or None if it has none."""
        health = self.world.get(entity, Health)
        return health.value if health is not None else None

    def is_alive(self, entity: Entity) -> bool:
        return self.world.is_alive(entity)

    def snapshot(self, ref: Entity) -> InventorySnapshot:
        return self.inventory.snapshot(ref)

    def describe_inventory(self, ref: Entity) -> list[str]:
        """Render a holder's inventory as printable lines."""
        return self.inventory.snapshot(ref).format_lines()

    # =========================================================================
    # Simulation steps
    # =========================================================================

    def transfer_item(self, destination: Entity, item: Entity) -> Entity:
        """Move one item into a container, merging stacks of the same kind."""
        holder = self.transfers.transfer_item(destination, item)
        self._finish_step()
        return holder

    def transfer_all(self, destination: Entity, source: Entity) -> TransferSummary:
        """Move every item from one container into another."""
        summary = self.transfers.transfer_all(destination, source)
        self._finish_step()
        return summary

    def resolve_attack(self, defender: Entity, weapon: Entity) -> AttackOutcome:
        """Resolve one attack of ``weapon`` against ``defender``."""
        outcome = self.combat.resolve_attack(defender, weapon)
        self._finish_step()
        return outcome

    def request_log_save(self) -> None:
        """Ask the log manager to write the log to disk."""
        self.event_manager.publish(LogSaveRequested(step=self.step), source="Simulation")
        self.event_manager.process_events()
