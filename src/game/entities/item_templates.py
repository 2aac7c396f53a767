"""Item kind and prefab templates.

This module defines the item catalog: which item kinds exist (Sword, Armor,
Coin) and which prefabs instantiate them (IronSword, WoodenArmor) with what
component values. Templates are loaded from YAML and registered in a world
as kind tags and prefab entities.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

import yaml

from ...core.config_loader import DEFAULT_CATALOG_PATH, resolve_path
from .components import COMPONENT_TYPES

if TYPE_CHECKING:
    from ...core.data import Entity
    from ...core.entities import World
    from .components import InventorySchema


@dataclass
class ItemTemplate:
    """Template for one item prefab.

    ``components`` are shared by every instance through the IsA edge;
    ``overrides`` are copied onto each instance so it can change them
    independently (a sword's durability, an armor's health).
    """
    name: str
    kind: Optional[str] = None
    base: Optional[str] = None
    components: dict[str, int] = field(default_factory=dict)
    overrides: dict[str, int] = field(default_factory=dict)


@dataclass
class ItemCatalog:
    """Item kinds and prefab templates loaded from one file."""
    kinds: list[str]
    templates: dict[str, ItemTemplate]
    source: str = "<memory>"

    def get_template(self, name: str) -> ItemTemplate:
        """Get a prefab template by name.

        Raises:
            KeyError: If the template is not in the catalog
        """
        if name not in self.templates:
            raise KeyError(f"No item template named '{name}' in {self.source}")
        return self.templates[name]


def load_item_catalog(path: Optional[Union[str, Path]] = None) -> ItemCatalog:
    """Load the item catalog from a YAML file.

    Args:
        path: File path, absolute or relative to the project root

    Returns:
        ItemCatalog with kinds and templates

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a required section is missing
        ValueError: If an entry is malformed
    """
    yaml_path = resolve_path(str(path or DEFAULT_CATALOG_PATH))

    try:
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Item templates file not found: {yaml_path}")

    return parse_item_catalog(data, str(yaml_path))


def parse_item_catalog(data: Any, source: str = "<memory>") -> ItemCatalog:
    """Build an ItemCatalog from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise ValueError(f"Invalid item catalog in {source}: expected a mapping")

    try:
        kinds = [str(kind) for kind in data["item_kinds"]]
        templates_data = data["item_templates"] or {}
    except KeyError as e:
        raise KeyError(f"Invalid item catalog structure in {source}: missing {e}")

    templates = {}
    for name, entry in templates_data.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid template '{name}' in {source}: expected a mapping")

        template = ItemTemplate(
            name=str(name),
            kind=entry.get("kind"),
            base=entry.get("base"),
            components=dict(entry.get("components") or {}),
            overrides=dict(entry.get("overrides") or {}),
        )
        _validate_template(template, kinds, templates_data, source)
        templates[template.name] = template

    return ItemCatalog(kinds=kinds, templates=templates, source=source)


def _validate_template(
    template: ItemTemplate,
    kinds: list[str],
    templates_data: dict,
    source: str
) -> None:
    if template.name in kinds:
        raise ValueError(f"Template '{template.name}' in {source} reuses the name of an item kind")
    if template.kind is None and template.base is None:
        raise ValueError(f"Template '{template.name}' in {source} needs a kind or a base")
    if template.kind is not None and template.kind not in kinds:
        raise KeyError(f"Template '{template.name}' in {source} uses unknown kind '{template.kind}'")
    if template.base is not None and template.base not in templates_data:
        raise KeyError(f"Template '{template.name}' in {source} uses unknown base '{template.base}'")

    for component_name, value in {**template.components, **template.overrides}.items():
        if component_name not in COMPONENT_TYPES:
            raise ValueError(
                f"Template '{template.name}' in {source} uses unknown component '{component_name}'"
            )
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(
                f"Template '{template.name}' in {source}: {component_name} must be an integer"
            )


def register_item_catalog(
    world: "World",
    schema: "InventorySchema",
    catalog: ItemCatalog
) -> dict[str, "Entity"]:
    """Create the catalog's kinds and prefabs in a world.

    Bases are registered before the prefabs that inherit from them.

    Returns:
        Mapping of kind and template names to their entities

    Raises:
        ValueError: If templates inherit from each other in a cycle
    """
    registered: dict[str, "Entity"] = {}

    for kind_name in catalog.kinds:
        registered[kind_name] = schema.register_kind(world, kind_name)

    in_progress: set[str] = set()

    def register(name: str) -> "Entity":
        if name in registered:
            return registered[name]
        if name in in_progress:
            raise ValueError(f"Item template '{name}' in {catalog.source} inherits from itself")
        in_progress.add(name)

        template = catalog.get_template(name)
        prefab = world.prefab(name)
        if template.base is not None:
            world.is_a(prefab, register(template.base))
        if template.kind is not None:
            world.add(prefab, registered[template.kind])

        for component_name, value in template.components.items():
            world.set(prefab, COMPONENT_TYPES[component_name](value))
        for component_name, value in template.overrides.items():
            world.set(prefab, COMPONENT_TYPES[component_name](value), override=True)

        in_progress.discard(name)
        registered[name] = prefab
        return prefab

    for template_name in catalog.templates:
        register(template_name)

    return registered
