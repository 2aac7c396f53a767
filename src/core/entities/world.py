"""In-memory entity/component/relationship store.

Entities are integer handles. Each entity carries an ordered set of ids:
tag entities, (relation, target) pairs and data component classes. The
store supports prototype inheritance through the built-in IsA relation,
exclusive relations (setting a new target replaces the old one) and
snapshot queries over relationship targets.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any, Iterator, Optional, TypeVar

import numpy as np
from numpy.typing import NDArray

from ..data.data_structures import Entity, EntityArray, Id
from .errors import DeadEntityError, ExclusiveRelationError, MissingComponentError

T = TypeVar("T")

# Marks an empty slot in an exclusive relation index
NO_TARGET = -1


class World:
    """Central store for entities, their components and relationships.

    The world is an explicit value handed to every manager; nothing in the
    simulation reaches it through module globals. Three built-in entities
    are created on construction: ``IS_A`` (prototype inheritance),
    ``EXCLUSIVE`` (relation trait) and ``PREFAB`` (template marker).
    """

    def __init__(self, initial_capacity: int = 64):
        """Initialize an empty world.

        Args:
            initial_capacity: Starting size of the dense relation indexes
        """
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be positive")

        self._next_entity: Entity = 1
        self._capacity = initial_capacity
        self._alive: set[Entity] = set()
        self._names: dict[Entity, str] = {}
        self._by_name: dict[str, Entity] = {}

        # entity -> ordered set of attached ids (dict keys keep attachment order)
        self._ids: dict[Entity, dict[Id, None]] = {}
        # entity -> component class -> value
        self._components: dict[Entity, dict[type, Any]] = {}
        # prefab -> component classes copied onto instances on instantiation
        self._overrides: dict[Entity, set[type]] = defaultdict(set)
        self._prefabs: set[Entity] = set()

        # (relation, target) -> ordered set of source entities
        self._pair_sources: dict[tuple[Entity, Entity], dict[Entity, None]] = defaultdict(dict)
        # exclusive relation -> dense array of target per entity (NO_TARGET when unset)
        self._exclusive_index: dict[Entity, NDArray[np.int64]] = {}

        # Bumped on every structural change, used by caches to invalidate
        self.version = 0

        self.IS_A = self.entity("IsA")
        self.EXCLUSIVE = self.entity("Exclusive")
        self.PREFAB = self.entity("Prefab")

    # =========================================================================
    # Entity lifecycle
    # =========================================================================

    def entity(self, name: Optional[str] = None) -> Entity:
        """Create an entity, or return the live entity already using this name."""
        if name is not None and name in self._by_name:
            return self._by_name[name]

        entity = self._next_entity
        self._next_entity += 1
        self._alive.add(entity)
        self._ids[entity] = {}
        self._components[entity] = {}
        self._ensure_capacity(entity)

        if name is not None:
            self._names[entity] = name
            self._by_name[name] = entity

        self.version += 1
        return entity

    def prefab(self, name: Optional[str] = None) -> Entity:
        """Create (or fetch) a prefab entity. Prefabs never show up in queries."""
        entity = self.entity(name)
        if entity not in self._prefabs:
            self.add(entity, self.PREFAB)
        return entity

    def instantiate(self, prefab: Entity, name: Optional[str] = None) -> Entity:
        """Create a new entity inheriting from ``prefab``."""
        entity = self.entity(name)
        self.is_a(entity, prefab)
        return entity

    def is_alive(self, entity: Optional[Entity]) -> bool:
        """Check if a handle refers to a live entity."""
        return entity is not None and entity in self._alive

    def is_prefab(self, entity: Entity) -> bool:
        """Check if an entity is a prefab."""
        return entity in self._prefabs

    def lookup(self, name: str) -> Optional[Entity]:
        """Find a live entity by name."""
        return self._by_name.get(name)

    def name_of(self, entity: Entity) -> str:
        """Get an entity's name, or an empty string if it has none."""
        return self._names.get(entity, "")

    def describe(self, entity: Entity) -> str:
        """Get a printable label for an entity: its name, or ``#id``."""
        return self._names.get(entity) or f"#{entity}"

    def count(self) -> int:
        """Number of live entities, built-ins included."""
        return len(self._alive)

    def destroy(self, entity: Optional[Entity]) -> bool:
        """Remove an entity and every pair or tag that refers to it.

        Destroying an entity that is already gone is a no-op.

        Returns:
            True if the entity was alive and has been destroyed
        """
        if not self.is_alive(entity):
            return False

        # Drop the entity's own pairs from the reverse and exclusive indexes
        for entry in list(self._ids[entity]):
            if entry.is_pair():
                self._unlink_pair(entity, entry.first, entry.second)

        # Drop pairs and tags on other entities that point at this entity
        for key in [k for k in self._pair_sources if entity in k]:
            relation, target = key
            for source in list(self._pair_sources.get(key, {})):
                self._ids[source].pop(Id(relation, target), None)
                self._unlink_pair(source, relation, target)
            self._pair_sources.pop(key, None)
        for other, entries in self._ids.items():
            entries.pop(Id(entity), None)

        self._exclusive_index.pop(entity, None)
        self._alive.discard(entity)
        self._prefabs.discard(entity)
        self._overrides.pop(entity, None)
        del self._ids[entity]
        del self._components[entity]

        name = self._names.pop(entity, None)
        if name is not None:
            self._by_name.pop(name, None)

        self.version += 1
        return True

    # =========================================================================
    # Tags
    # =========================================================================

    def add(self, entity: Entity, tag: Entity) -> None:
        """Attach a tag entity."""
        self._require_alive(entity, "add")
        self._require_alive(tag, "add")

        key = Id(tag)
        if key in self._ids[entity]:
            return

        if tag == self.EXCLUSIVE:
            self._build_exclusive_index(entity)
        elif tag == self.PREFAB:
            self._prefabs.add(entity)

        self._ids[entity][key] = None
        self.version += 1

    def remove(self, entity: Entity, tag: Entity) -> bool:
        """Detach a tag entity. Returns True if it was attached."""
        if not self.is_alive(entity):
            return False
        if self._ids[entity].pop(Id(tag), "missing") == "missing":
            return False

        if tag == self.PREFAB:
            self._prefabs.discard(entity)
        self.version += 1
        return True

    def has(self, entity: Entity, tag: Entity) -> bool:
        """Check if an entity carries a tag directly."""
        return self.is_alive(entity) and Id(tag) in self._ids[entity]

    # =========================================================================
    # Data components
    # =========================================================================

    def set(self, entity: Entity, value: Any, override: bool = False) -> None:
        """Attach or replace a data component, keyed by its class.

        Args:
            entity: Entity to attach to
            value: Component instance
            override: On a prefab, copy the value onto each instance instead of sharing it
        """
        self._require_alive(entity, "set")
        component_type = type(value)
        owned = self._components[entity]

        if component_type not in owned:
            self._ids[entity][Id(component=component_type)] = None
            self.version += 1
        owned[component_type] = value

        if override:
            self._overrides[entity].add(component_type)

    def get(self, entity: Entity, component_type: type[T]) -> Optional[T]:
        """Read a component, falling back to the IsA bases when not owned.

        Inherited values are shared with the base; use ``get_mut`` to write.
        """
        if not self.is_alive(entity):
            return None
        return self._find_component(entity, component_type, set())

    def get_mut(self, entity: Entity, component_type: type[T]) -> Optional[T]:
        """Get a writable component owned by the entity.

        An inherited component is copied onto the entity first, so writes never
        leak into the prototype.
        """
        self._require_alive(entity, "get_mut")
        owned = self._components[entity]
        if component_type in owned:
            return owned[component_type]

        inherited = self._find_component(entity, component_type, set())
        if inherited is None:
            return None

        value = copy.deepcopy(inherited)
        owned[component_type] = value
        self._ids[entity][Id(component=component_type)] = None
        self.version += 1
        return value

    def require(self, entity: Entity, component_type: type[T]) -> T:
        """Read a component, raising if neither the entity nor its bases have it."""
        value = self.get(entity, component_type)
        if value is None:
            raise MissingComponentError(entity, component_type)
        return value

    def has_component(self, entity: Entity, component_type: type) -> bool:
        """Check for a component, owned or inherited."""
        return self.get(entity, component_type) is not None

    def owns_component(self, entity: Entity, component_type: type) -> bool:
        """Check for a component stored on the entity itself."""
        return self.is_alive(entity) and component_type in self._components[entity]

    def remove_component(self, entity: Entity, component_type: type) -> Optional[Any]:
        """Remove an owned component, returning it if it existed."""
        if not self.is_alive(entity):
            return None
        value = self._components[entity].pop(component_type, None)
        if value is not None:
            self._ids[entity].pop(Id(component=component_type), None)
            self._overrides.get(entity, set()).discard(component_type)
            self.version += 1
        return value

    # =========================================================================
    # Relationships
    # =========================================================================

    def relation(self, name: str, exclusive: bool = False) -> Entity:
        """Create (or fetch) a relation entity, optionally exclusive."""
        relation = self.entity(name)
        if exclusive:
            self.add(relation, self.EXCLUSIVE)
        return relation

    def is_exclusive(self, relation: Entity) -> bool:
        """Check if a relation keeps at most one target per entity."""
        return relation in self._exclusive_index

    def add_pair(self, entity: Entity, relation: Entity, target: Entity) -> None:
        """Attach a (relation, target) pair.

        For exclusive relations any previous target is replaced in the same step.
        """
        self._require_alive(entity, "add_pair")
        self._require_alive(relation, "add_pair")
        self._require_alive(target, "add_pair")

        key = Id(relation, target)
        if key in self._ids[entity]:
            return

        index = self._exclusive_index.get(relation)
        if index is not None:
            previous = int(index[entity])
            if previous != NO_TARGET:
                self._ids[entity].pop(Id(relation, previous), None)
                self._unlink_pair(entity, relation, previous)
            index[entity] = target

        self._ids[entity][key] = None
        self._pair_sources[(relation, target)][entity] = None

        if relation == self.IS_A:
            self._copy_overrides(entity, target)

        self.version += 1

    def remove_pair(self, entity: Entity, relation: Entity, target: Entity) -> bool:
        """Detach a pair. Returns True if it was attached."""
        if not self.is_alive(entity):
            return False
        if self._ids[entity].pop(Id(relation, target), "missing") == "missing":
            return False
        self._unlink_pair(entity, relation, target)
        self.version += 1
        return True

    def has_pair(self, entity: Entity, relation: Entity, target: Entity) -> bool:
        """Check if an entity holds a specific pair."""
        return self.is_alive(entity) and Id(relation, target) in self._ids[entity]

    def target(self, entity: Entity, relation: Entity) -> Optional[Entity]:
        """Get the first target of a relation on an entity, or None."""
        for target in self.targets(entity, relation):
            return target
        return None

    def targets(self, entity: Entity, relation: Entity) -> Iterator[Entity]:
        """Iterate targets of a relation on an entity in attachment order."""
        if not self.is_alive(entity):
            return
        for entry in list(self._ids[entity]):
            if entry.is_pair() and entry.first == relation:
                yield entry.second

    def is_a(self, entity: Entity, base: Entity) -> None:
        """Make ``entity`` inherit from ``base`` (IsA pair)."""
        self.add_pair(entity, self.IS_A, base)

    def inherits_from(self, entity: Entity, base: Entity) -> bool:
        """Check if ``base`` is reachable from ``entity`` through IsA pairs."""
        pending = [entity]
        visited: set[Entity] = set()
        while pending:
            current = pending.pop()
            if current in visited:
                continue
            visited.add(current)
            for parent in self.targets(current, self.IS_A):
                if parent == base:
                    return True
                pending.append(parent)
        return False

    def ids(self, entity: Entity) -> list[Id]:
        """Get every id attached to an entity, in attachment order."""
        if not self.is_alive(entity):
            return []
        return list(self._ids[entity])

    # =========================================================================
    # Queries
    # =========================================================================

    def query_pair(self, relation: Entity, target: Entity) -> EntityArray:
        """Snapshot live, non-prefab entities holding ``(relation, target)``.

        Results are in ascending entity order and are materialized before
        return, so the caller may restructure the world while iterating.
        """
        index = self._exclusive_index.get(relation)
        if index is not None:
            candidates = np.flatnonzero(index[: self._next_entity] == target)
        else:
            sources = self._pair_sources.get((relation, target), {})
            candidates = np.array(sorted(sources), dtype=np.int64)

        if self._prefabs and len(candidates):
            prefabs = np.fromiter(self._prefabs, dtype=np.int64)
            candidates = candidates[~np.isin(candidates, prefabs)]

        return EntityArray(candidates)

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_alive(self, entity: Entity, operation: str) -> None:
        if not self.is_alive(entity):
            raise DeadEntityError(entity, operation)

    def _ensure_capacity(self, entity: Entity) -> None:
        if entity < self._capacity:
            return
        new_capacity = self._capacity
        while new_capacity <= entity:
            new_capacity *= 2
        for relation, index in self._exclusive_index.items():
            grown = np.full(new_capacity, NO_TARGET, dtype=np.int64)
            grown[: len(index)] = index
            self._exclusive_index[relation] = grown
        self._capacity = new_capacity

    def _build_exclusive_index(self, relation: Entity) -> None:
        index = np.full(self._capacity, NO_TARGET, dtype=np.int64)
        for (pair_relation, target), sources in self._pair_sources.items():
            if pair_relation != relation:
                continue
            for source in sources:
                if index[source] != NO_TARGET:
                    raise ExclusiveRelationError(relation, source)
                index[source] = target
        self._exclusive_index[relation] = index

    def _unlink_pair(self, entity: Entity, relation: Entity, target: Entity) -> None:
        sources = self._pair_sources.get((relation, target))
        if sources is not None:
            sources.pop(entity, None)
            if not sources:
                del self._pair_sources[(relation, target)]

        index = self._exclusive_index.get(relation)
        if index is not None and index[entity] == target:
            index[entity] = NO_TARGET

    def _find_component(self, entity: Entity, component_type: type, visited: set[Entity]) -> Optional[Any]:
        if entity in visited:
            return None
        visited.add(entity)

        owned = self._components.get(entity, {})
        if component_type in owned:
            return owned[component_type]

        for base in self.targets(entity, self.IS_A):
            value = self._find_component(base, component_type, visited)
            if value is not None:
                return value
        return None

    def _copy_overrides(self, entity: Entity, base: Entity) -> None:
        """Copy override components from the base chain, nearest base first."""
        pending = [base]
        visited: set[Entity] = set()
        owned = self._components[entity]
        while pending:
            current = pending.pop(0)
            if current in visited or not self.is_alive(current):
                continue
            visited.add(current)
            for component_type in self._overrides.get(current, set()):
                if component_type in owned:
                    continue
                value = self._components[current].get(component_type)
                if value is None:
                    continue
                owned[component_type] = copy.deepcopy(value)
                self._ids[entity][Id(component=component_type)] = None
            pending.extend(self.targets(current, self.IS_A))
