"""
Database connection manager and migration utilities for SQLite storage.

The SQLite backend keeps the same layout as the JSON backend: one row per
collection name holding the serialized JSON array of records.

Design Principles:
- WAL journal mode, busy timeout for lock handling
- Every write wrapped in a transaction (commit or rollback)
- Idempotent migration application tracked in schema_version
"""

import sqlite3
import logging
from pathlib import Path
from contextlib import contextmanager
from typing import Optional, List, Tuple

logger = logging.getLogger(__name__)


# ============================================================
# Configuration Constants
# ============================================================

# Connection PRAGMAs
PRAGMA_CONFIG = {
    "journal_mode": "WAL",          # Write-Ahead Logging
    "synchronous": "NORMAL",        # Balance safety/performance
    "temp_store": "MEMORY",
    "busy_timeout": 5000,           # Wait 5s for lock (milliseconds)
}

# (version, description, statements)
MIGRATIONS: List[Tuple[int, str, Tuple[str, ...]]] = [
    (
        1,
        "collections key-value table",
        (
            """
            CREATE TABLE IF NOT EXISTS collections (
                name TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """,
        ),
    ),
]


# ============================================================
# Connection Management
# ============================================================

def open_connection(db_path: Path) -> sqlite3.Connection:
    """
    Open SQLite connection with PRAGMA configuration.

    Args:
        db_path: Path to database file (parent directory is created)

    Returns:
        Configured sqlite3.Connection with row factory enabled

    Raises:
        sqlite3.OperationalError: Database locked or inaccessible
        sqlite3.DatabaseError: Corrupted database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(str(db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        # Explicit BEGIN in transaction() controls transactions
        conn.isolation_level = None

        cursor = conn.cursor()
        for pragma, value in PRAGMA_CONFIG.items():
            cursor.execute(f"PRAGMA {pragma}={value}")
        return conn

    except sqlite3.OperationalError as e:
        if "locked" in str(e).lower():
            raise sqlite3.OperationalError(
                f"Database {db_path} is locked. "
                f"Close other instances of the application and retry."
            ) from e
        raise

    except sqlite3.DatabaseError as e:
        raise sqlite3.DatabaseError(
            f"Database {db_path} is corrupted. "
            f"Switch to the json backend or restore the file from a backup."
        ) from e


def close_connection(conn: Optional[sqlite3.Connection]) -> None:
    """Close database connection (no-op for None)."""
    if conn:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection, isolation_level: str = "IMMEDIATE"):
    """
    Transaction context manager with automatic commit/rollback.

    Args:
        conn: SQLite connection
        isolation_level: DEFERRED, IMMEDIATE (default) or EXCLUSIVE

    Yields:
        sqlite3.Cursor: Cursor for executing queries

    Usage:
        >>> with transaction(conn) as cur:
        ...     cur.execute("DELETE FROM collections WHERE name = ?", ("orders",))
    """
    cursor = conn.cursor()
    cursor.execute(f"BEGIN {isolation_level}")
    try:
        yield cursor
    except BaseException:
        cursor.execute("ROLLBACK")
        raise
    else:
        cursor.execute("COMMIT")


# ============================================================
# Migration Management
# ============================================================

def get_current_schema_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 for a fresh database)."""
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'")
    if cursor.fetchone() is None:
        return 0
    cursor.execute("SELECT MAX(version) FROM schema_version")
    row = cursor.fetchone()
    return row[0] or 0


def apply_migrations(conn: sqlite3.Connection) -> int:
    """
    Apply pending migrations in version order.

    Returns:
        Number of migrations applied (0 when the schema is current)
    """
    with transaction(conn) as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)

    current = get_current_schema_version(conn)
    applied = 0
    for version, description, statements in sorted(MIGRATIONS):
        if version <= current:
            continue
        with transaction(conn) as cur:
            for statement in statements:
                cur.execute(statement)
            cur.execute(
                "INSERT INTO schema_version (version, description) VALUES (?, ?)",
                (version, description),
            )
        logger.info(f"Applied migration {version}: {description}")
        applied += 1
    return applied


# ============================================================
# Collection Payload Access
# ============================================================

def read_payload(conn: sqlite3.Connection, name: str) -> Optional[str]:
    """Return the serialized payload stored under *name*, or None."""
    cursor = conn.cursor()
    cursor.execute("SELECT payload FROM collections WHERE name = ?", (name,))
    row = cursor.fetchone()
    return row["payload"] if row else None


def write_payload(conn: sqlite3.Connection, name: str, payload: str) -> None:
    """Insert or replace the payload stored under *name*."""
    with transaction(conn) as cur:
        cur.execute("""
            INSERT INTO collections (name, payload, updated_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(name) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
        """, (name, payload))


def delete_payload(conn: sqlite3.Connection, name: str) -> bool:
    """Delete the payload stored under *name*. Returns True if a row was removed."""
    with transaction(conn) as cur:
        cur.execute("DELETE FROM collections WHERE name = ?", (name,))
        return cur.rowcount > 0


def list_names(conn: sqlite3.Connection) -> List[str]:
    """Return all stored collection names, sorted."""
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM collections ORDER BY name")
    return [row["name"] for row in cursor.fetchall()]
