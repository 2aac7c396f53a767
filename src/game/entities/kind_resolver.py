"""Item kind resolution over the prototype inheritance graph.

An item's kind is a tag entity inheriting from Item (Sword, Armor, Coin).
It is either attached to the item directly or reached through one or more
IsA edges to prototypes. The resolver walks that graph and memoizes the
result per item until the world's structure changes.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ...core.data import Entity, LogLevel, DEFAULT_MAX_INHERITANCE_DEPTH
from ...core.events import LogMessage

if TYPE_CHECKING:
    from ...core.entities import World
    from ...core.events import EventManager
    from .components import InventorySchema


@dataclass(frozen=True)
class ItemKind:
    """Resolved kind of an item.

    Attributes:
        kind: The kind tag entity
        display_name: Most specific prototype name reached ("IronSword"),
            or the kind's own name when the kind is attached directly
    """
    kind: Entity
    display_name: str


class KindResolver:
    """Resolves and caches the effective kind of item entities.

    Tie-break when an item carries several kind sources: a kind tag attached
    directly to the item wins over any inherited kind; among IsA bases the
    first one (in attachment order) that resolves to a kind wins.
    """

    def __init__(
        self,
        world: "World",
        schema: "InventorySchema",
        event_manager: Optional["EventManager"] = None,
        max_depth: int = DEFAULT_MAX_INHERITANCE_DEPTH
    ):
        if max_depth < 1:
            raise ValueError("max_depth must be positive")

        self.world = world
        self.schema = schema
        self.event_manager = event_manager
        self.max_depth = max_depth

        self._cache: dict[Entity, Optional[ItemKind]] = {}
        self._cache_version = world.version
        self.cache_hits = 0
        self.cache_misses = 0

    def resolve(self, item: Entity) -> Optional[ItemKind]:
        """Resolve an item's kind and display name.

        Returns:
            ItemKind, or None when the entity is not an item
        """
        self._sync_cache()

        if item in self._cache:
            self.cache_hits += 1
            return self._cache[item]

        self.cache_misses += 1
        result = self._resolve(item, depth=0, path=set())
        self._cache[item] = result
        return result

    def kind_of(self, item: Entity) -> Optional[Entity]:
        """Get an item's kind entity, or None."""
        resolved = self.resolve(item)
        return resolved.kind if resolved else None

    def display_name(self, item: Entity) -> str:
        """Get the name to show for an item.

        Falls back to the entity's own label when it is not an item.
        """
        resolved = self.resolve(item)
        if resolved is not None:
            return resolved.display_name
        return self.world.describe(item)

    def invalidate(self) -> None:
        """Drop every memoized resolution."""
        self._cache.clear()
        self._cache_version = self.world.version

    def _sync_cache(self) -> None:
        # Any structural change may have rewired an IsA edge or a kind tag
        if self.world.version != self._cache_version:
            self.invalidate()

    def _resolve(self, entity: Entity, depth: int, path: set[Entity]) -> Optional[ItemKind]:
        if entity in path:
            self._warn(f"Inheritance cycle through {self.world.describe(entity)} ignored")
            return None
        if depth > self.max_depth:
            self._warn(
                f"Inheritance chain of {self.world.describe(entity)} exceeds {self.max_depth} levels"
            )
            return None

        path.add(entity)
        try:
            return self._resolve_ids(entity, depth, path)
        finally:
            path.discard(entity)

    def _resolve_ids(self, entity: Entity, depth: int, path: set[Entity]) -> Optional[ItemKind]:
        world = self.world
        inherited: Optional[ItemKind] = None

        for entry in world.ids(entity):
            if entry.is_entity():
                # Direct kind tag: most derived, nothing can beat it
                if self.schema.is_kind(world, entry.first):
                    return ItemKind(entry.first, world.name_of(entry.first))
            elif entry.is_pair() and entry.first == world.IS_A and inherited is None:
                base = entry.second
                if self.schema.is_kind(world, base):
                    inherited = ItemKind(base, world.name_of(base))
                    continue
                base_kind = self._resolve(base, depth + 1, path)
                if base_kind is not None:
                    # Prefer the prototype's name ("IronSword") over the kind's ("Sword")
                    name = world.name_of(base) or base_kind.display_name
                    inherited = ItemKind(base_kind.kind, name)

        return inherited

    def _warn(self, message: str) -> None:
        if self.event_manager is None:
            return
        self.event_manager.publish(
            LogMessage(
                step=0,
                message=message,
                category="WARNING",
                level=LogLevel.WARNING,
                source="KindResolver"
            ),
            source="KindResolver"
        )
