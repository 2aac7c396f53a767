"""Item entity definitions.

This package contains the item-side building blocks:
- components.py: Data components (Amount, Health, Attack) and the inventory schema
- kind_resolver.py: Kind and display name resolution over prototype inheritance
- item_templates.py: Item kind and prefab catalog loaded from YAML
"""

from .components import Amount, Health, Attack, COMPONENT_TYPES, InventorySchema
from .kind_resolver import ItemKind, KindResolver
from .item_templates import (
    ItemTemplate,
    ItemCatalog,
    load_item_catalog,
    parse_item_catalog,
    register_item_catalog,
)

__all__ = [
    "Amount",
    "Health",
    "Attack",
    "COMPONENT_TYPES",
    "InventorySchema",
    "ItemKind",
    "KindResolver",
    "ItemTemplate",
    "ItemCatalog",
    "load_item_catalog",
    "parse_item_catalog",
    "register_item_catalog",
]
