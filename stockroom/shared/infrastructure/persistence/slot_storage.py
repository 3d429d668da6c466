"""Durable key-value slots.

The state persistence layer only ever talks to a ``SlotStorage``; the medium
behind it (a DuckDB file, process memory) is interchangeable.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import duckdb

logger = logging.getLogger(__name__)


class SlotStorage(ABC):
    """Named text slots in local persistent storage."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the slot's contents, or None when the slot is empty."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Replace the slot's contents."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Empty the slot (no error if it is already empty)."""

    def close(self) -> None:
        """Release the underlying medium."""


class MemorySlotStorage(SlotStorage):
    """Process-local slots; nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._slots: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def write(self, key: str, value: str) -> None:
        self._slots[key] = value

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)


class DuckDBSlotStorage(SlotStorage):
    """Slots stored as rows of a ``kv_slots`` table in a local DuckDB file."""

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self.conn: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.Lock()

    def _connection(self) -> duckdb.DuckDBPyConnection:
        if self.conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = duckdb.connect(self.db_path)
            self._create_schema()
            logger.info(f"Slot database initialized: {self.db_path}")
        return self.conn

    def _create_schema(self) -> None:
        """Create the slot table."""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_slots (
                key VARCHAR PRIMARY KEY,
                value VARCHAR NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._connection().execute(
                "SELECT value FROM kv_slots WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._connection().execute("""
                INSERT INTO kv_slots (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT (key) DO UPDATE
                SET value = excluded.value, updated_at = excluded.updated_at
            """, (key, value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._connection().execute("DELETE FROM kv_slots WHERE key = ?", (key,))

    def close(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logger.info(f"Closed slot database {self.db_path}")
