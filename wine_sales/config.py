"""
Project configuration and constants.
"""
from pathlib import Path
import json
import logging
import sqlite3
from typing import Literal, Optional

from .utils.paths import get_data_dir

logger = logging.getLogger(__name__)

StorageBackend = Literal['json', 'sqlite', 'memory']
VALID_BACKENDS = ('json', 'sqlite', 'memory')

# Data directory - $WINE_SALES_DATA_DIR, <checkout>/data, else per-user WineSales/data
DATA_DIR = get_data_dir()

# Storage backend configuration
STORAGE_BACKEND: StorageBackend = 'json'  # Default: one JSON file per collection
DATABASE_FILENAME = "app.db"
SETTINGS_FILENAME = "settings.json"
DATABASE_PATH = DATA_DIR / DATABASE_FILENAME
SETTINGS_FILE = DATA_DIR / SETTINGS_FILENAME

# UI / export constants
ITEMS_PER_PAGE = 20
PAGINATION_MAX_BUTTONS = 5
CURRENCY_SYMBOL = "¥"


# ============================================================
# Storage Backend Management
# ============================================================

def _read_settings(settings_file: Path) -> dict:
    if not settings_file.exists():
        return {}
    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            settings = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Ignoring unreadable settings file {settings_file}: {e}")
        return {}
    return settings if isinstance(settings, dict) else {}


def get_storage_backend(settings_file: Optional[Path] = None) -> StorageBackend:
    """
    Get current storage backend from settings.json.

    Args:
        settings_file: Settings file to read (default: SETTINGS_FILE)

    Returns:
        'json', 'sqlite' or 'memory'
    """
    settings = _read_settings(settings_file or SETTINGS_FILE)
    backend = settings.get('storage_backend', STORAGE_BACKEND)
    if backend in VALID_BACKENDS:
        return backend
    logger.warning(f"Unknown storage backend {backend!r} in settings, using {STORAGE_BACKEND!r}")
    return STORAGE_BACKEND


def set_storage_backend(backend: str, settings_file: Optional[Path] = None) -> bool:
    """
    Set storage backend in settings.json.

    Other keys already present in the settings file are preserved.

    Args:
        backend: 'json', 'sqlite' or 'memory'
        settings_file: Settings file to write (default: SETTINGS_FILE)

    Returns:
        True if successful, False otherwise
    """
    if backend not in VALID_BACKENDS:
        return False

    settings_file = settings_file or SETTINGS_FILE
    settings = _read_settings(settings_file)
    settings['storage_backend'] = backend

    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_file, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        return True
    except OSError as e:
        logger.error(f"Failed to write settings file {settings_file}: {e}")
        return False


def is_sqlite_available(db_path: Optional[Path] = None) -> bool:
    """
    Check if the SQLite database is initialized and accessible.

    Returns:
        True if database exists and carries the schema_version table
    """
    db_path = db_path or DATABASE_PATH
    if not db_path.exists():
        return False

    try:
        conn = sqlite3.connect(str(db_path), timeout=1.0)
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'")
            return cursor.fetchone() is not None
        finally:
            conn.close()
    except sqlite3.Error:
        return False
