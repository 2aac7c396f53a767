"""
Basic test fixtures for the inventory simulation test suite.

Provides a fresh world, schema, event bus and a small in-memory item catalog
so each test builds exactly the entities it needs.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from src.core.config_loader import SimulationConfig
from src.core.entities import World
from src.core.events import EventManager
from src.game.entities import InventorySchema, KindResolver, parse_item_catalog, register_item_catalog
from src.game.entities.components import Amount, Health
from src.game.managers import InventoryManager, TransferManager, LogManager
from src.game.combat import CombatResolver
from src.game.simulation import Simulation


CATALOG_DATA = {
    "item_kinds": ["Sword", "Armor", "Coin"],
    "item_templates": {
        "WoodenSword": {"kind": "Sword", "components": {"attack": 1}, "overrides": {"health": 5}},
        "IronSword": {"kind": "Sword", "components": {"attack": 2}, "overrides": {"health": 10}},
        "RustyIronSword": {"base": "IronSword", "overrides": {"health": 3}},
        "WoodenArmor": {"kind": "Armor", "overrides": {"health": 10}},
        "IronArmor": {"kind": "Armor", "overrides": {"health": 20}},
    },
}


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def world():
    """Create an empty world."""
    return World()


@pytest.fixture
def schema(world):
    """Register the inventory tags and relations in the world."""
    return InventorySchema.register(world)


@pytest.fixture
def catalog():
    """Parse the test item catalog."""
    return parse_item_catalog(CATALOG_DATA, "test-catalog")


@pytest.fixture
def registry(world, schema, catalog):
    """Register the test catalog's kinds and prefabs."""
    return register_item_catalog(world, schema, catalog)


@pytest.fixture
def kind_resolver(world, schema, event_manager):
    return KindResolver(world, schema, event_manager)


@pytest.fixture
def inventory(world, schema, kind_resolver, event_manager):
    return InventoryManager(world, schema, kind_resolver, event_manager)


@pytest.fixture
def transfers(world, schema, inventory, event_manager):
    return TransferManager(world, schema, inventory, event_manager)


@pytest.fixture
def combat(world, inventory, event_manager, registry):
    return CombatResolver(world, inventory, event_manager, armor_kind=registry["Armor"])


@pytest.fixture
def log_manager(event_manager):
    return LogManager(event_manager)


@pytest.fixture
def builder(world, schema, registry):
    """Helper for building containers, agents and items."""
    return WorldBuilder(world, schema, registry)


@pytest.fixture
def simulation(catalog):
    """Create a simulation with default settings and the test catalog."""
    return Simulation(SimulationConfig(), catalog=catalog)


@pytest.fixture
def chest_scenario(simulation):
    """Chest with IronSword, WoodenArmor and 30 coins; Player with 20 coins and 10 health."""
    chest = simulation.create_container("Chest")
    sword = simulation.spawn_item("IronSword", container=chest)
    armor = simulation.spawn_item("WoodenArmor", container=chest)
    chest_coins = simulation.spawn_item(kind="Coin", amount=30, container=chest)

    player = simulation.create_inventory_owner("Player", health=10)
    player_coins = simulation.spawn_item(kind="Coin", amount=20, container=player)

    return {
        "sim": simulation,
        "chest": chest,
        "player": player,
        "sword": sword,
        "armor": armor,
        "chest_coins": chest_coins,
        "player_coins": player_coins,
    }


class WorldBuilder:
    """Builds test entities directly on the world, without the simulation facade."""

    def __init__(self, world, schema, registry):
        self.world = world
        self.schema = schema
        self.registry = registry

    def container(self, name=None):
        container = self.world.entity(name)
        self.world.add(container, self.schema.container)
        return container

    def agent(self, name=None, health=None):
        agent = self.world.entity(name)
        if health is not None:
            self.world.set(agent, Health(health))
        self.world.add_pair(agent, self.schema.owns_inventory, self.container())
        return agent

    def item(self, template=None, container=None, kind=None, amount=None, health=None, active=False):
        item = self.world.entity()
        if template is not None:
            self.world.is_a(item, self.registry[template])
        if kind is not None:
            self.world.add(item, self.registry[kind])
        if amount is not None:
            self.world.set(item, Amount(amount))
        if health is not None:
            self.world.set(item, Health(health))
        if container is not None:
            holder = container
            if not self.world.has(container, self.schema.container):
                holder = self.world.target(container, self.schema.owns_inventory)
            self.world.add_pair(item, self.schema.contained_by, holder)
        if active:
            self.world.add(item, self.schema.active)
        return item
