"""Persistence adapters (slot storage, application state blob)."""

from stockroom.shared.infrastructure.persistence.slot_storage import (
    SlotStorage,
    MemorySlotStorage,
    DuckDBSlotStorage,
)
from stockroom.shared.infrastructure.persistence.state_persistence import (
    DEFAULT_SLOT_KEY,
    StatePersistence,
    serialize_state,
    restore_state,
)

__all__ = [
    "SlotStorage",
    "MemorySlotStorage",
    "DuckDBSlotStorage",
    "DEFAULT_SLOT_KEY",
    "StatePersistence",
    "serialize_state",
    "restore_state",
]
