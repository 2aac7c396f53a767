"""Manager systems for simulation logic coordination.

This package contains the manager classes that coordinate inventory,
transfers and logging through the event-driven architecture.
"""

from .inventory_manager import InventoryManager, InventorySnapshot, NO_KIND
from .log_manager import LogManager, LogCategory, LogLevel
from .transfer_manager import TransferManager, TransferSummary

__all__ = [
    "InventoryManager",
    "InventorySnapshot",
    "NO_KIND",
    "LogManager",
    "LogCategory",
    "LogLevel",
    "TransferManager",
    "TransferSummary",
]
