"""Exceptions raised by the entity store.

These represent contract violations at the store boundary. Recoverable
domain outcomes (no item found, no armor equipped) are never exceptions.
"""

from typing import Optional


class StoreError(Exception):
    """Base exception for entity store errors."""
    pass


class DeadEntityError(StoreError):
    """Raised when a live entity is required but the handle is destroyed or unknown."""

    def __init__(self, entity: int, operation: Optional[str] = None):
        suffix = f" during {operation}" if operation else ""
        super().__init__(f"Entity {entity} is not alive{suffix}")
        self.entity = entity
        self.operation = operation


class MissingComponentError(StoreError):
    """Raised when trying to access a component that doesn't exist."""

    def __init__(self, entity: int, component_type: type):
        super().__init__(f"Entity {entity} missing component: {component_type.__name__}")
        self.entity = entity
        self.component_type = component_type


class ExclusiveRelationError(StoreError):
    """Raised when a relation cannot be made exclusive because an entity already has several targets."""

    def __init__(self, relation: int, entity: int):
        super().__init__(f"Relation {relation} has multiple targets on entity {entity}")
        self.relation = relation
        self.entity = entity


class NotAContainerError(StoreError):
    """Raised when a holder reference is neither a container nor an inventory owner."""

    def __init__(self, entity: int, label: Optional[str] = None):
        super().__init__(f"Entity {label or entity} is not a container and owns no inventory")
        self.entity = entity
        self.label = label
