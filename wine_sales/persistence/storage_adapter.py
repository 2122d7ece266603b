"""
Storage Adapter Layer - Routes between JSON, SQLite and in-memory backends

- Sole I/O boundary of the application: repositories only call save/load
- Routes operations based on the configured storage backend
- Error tolerant: save() reports False and load() reports None instead of
  raising, and every failure is logged
- Graceful fallback to JSON files if SQLite cannot be initialised

Usage:
    storage = StorageAdapter()                       # backend from settings.json
    storage = StorageAdapter(force_backend='memory') # throw-away store (tests)
    storage.save('customers', [...])
    customers = storage.load('customers') or []
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import config
from ..db import (
    open_connection, close_connection, apply_migrations,
    read_payload, write_payload, delete_payload, list_names,
)
from .json_layer import JSONLayer, validate_collection_name

logger = logging.getLogger(__name__)


class StorageAdapter:
    """
    Key-value store for named JSON-serializable values.

    Each value is serialized to a JSON document on save and deserialized on
    load, so callers always receive a fresh copy and never share state with
    the store. Each adapter instance is an independent store; pass one into
    the repositories instead of relying on module-level state.
    """

    def __init__(self, data_dir: Optional[Path] = None, force_backend: Optional[str] = None):
        """
        Initialize storage adapter.

        Args:
            data_dir: Data directory (default: config.DATA_DIR)
            force_backend: Force specific backend ('json', 'sqlite' or 'memory'),
                          overrides settings.json (useful for testing)
        """
        self.data_dir = Path(data_dir) if data_dir else config.DATA_DIR

        if force_backend:
            self.backend = force_backend if force_backend in config.VALID_BACKENDS else 'json'
        else:
            self.backend = config.get_storage_backend(self.data_dir / config.SETTINGS_FILENAME)

        self.conn: Optional[sqlite3.Connection] = None
        self.json_layer: Optional[JSONLayer] = None
        self._memory: Dict[str, str] = {}

        if self.backend == 'sqlite':
            try:
                self.conn = open_connection(self.data_dir / config.DATABASE_FILENAME)
                apply_migrations(self.conn)
            except (sqlite3.Error, OSError) as e:
                logger.warning(f"SQLite init failed, falling back to JSON files: {e}")
                close_connection(self.conn)
                self.conn = None
                self.backend = 'json'

        if self.backend == 'json':
            self.json_layer = JSONLayer(self.data_dir)

        logger.debug(f"Storage adapter ready (backend={self.backend}, data_dir={self.data_dir})")

    def get_backend(self) -> str:
        """Get current backend ('json', 'sqlite' or 'memory')"""
        return self.backend

    def is_sqlite_mode(self) -> bool:
        return self.backend == 'sqlite' and self.conn is not None

    def close(self):
        """Close database connection (if open)"""
        if self.conn:
            close_connection(self.conn)
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ============================================================
    # Public contract
    # ============================================================

    def save(self, name: str, value: Any) -> bool:
        """
        Serialize and persist *value* under *name*.

        Returns:
            True on success, False (logged) on serialization or write failure
        """
        try:
            validate_collection_name(name)
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize {name!r}: {e}")
            return False

        try:
            self._write(name, payload)
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to save {name!r} ({self.backend}): {e}")
            return False
        return True

    def load(self, name: str) -> Any:
        """
        Load and deserialize the value stored under *name*.

        Returns:
            The stored value, or None if missing, unreadable or not valid JSON
        """
        try:
            validate_collection_name(name)
            payload = self._read(name)
        except (ValueError, OSError, sqlite3.Error) as e:
            logger.error(f"Failed to load {name!r} ({self.backend}): {e}")
            return None

        if payload is None:
            return None

        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored value for {name!r} is not valid JSON, ignoring it: {e}")
            return None

    def delete_key(self, name: str) -> bool:
        """Remove the value stored under *name*. Returns True if something was removed."""
        try:
            validate_collection_name(name)
            if self.backend == 'sqlite':
                return delete_payload(self._connection(), name)
            if self.backend == 'memory':
                return self._memory.pop(name, None) is not None
            return self.json_layer.delete(name)
        except (ValueError, OSError, sqlite3.Error) as e:
            logger.error(f"Failed to delete {name!r} ({self.backend}): {e}")
            return False

    def keys(self) -> List[str]:
        """Names of all stored values, sorted."""
        if self.backend == 'sqlite':
            return list_names(self._connection())
        if self.backend == 'memory':
            return sorted(self._memory)
        return self.json_layer.names()

    # ============================================================
    # Backend routing
    # ============================================================

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise sqlite3.ProgrammingError("Storage adapter is closed")
        return self.conn

    def _read(self, name: str) -> Optional[str]:
        if self.backend == 'sqlite':
            return read_payload(self._connection(), name)
        if self.backend == 'memory':
            return self._memory.get(name)
        return self.json_layer.read_text(name)

    def _write(self, name: str, payload: str) -> None:
        if self.backend == 'sqlite':
            write_payload(self._connection(), name, payload)
        elif self.backend == 'memory':
            self._memory[name] = payload
        else:
            self.json_layer.write_text(name, payload)
