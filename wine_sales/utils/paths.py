"""
Path resolver for the wine sales manager.

Rules
-----
* source checkout → directory holding pyproject.toml and main.py next to
                    the wine_sales package (running ``python main.py``)
* data_dir        → $WINE_SALES_DATA_DIR if set, else <checkout>/data,
                    else the per-user directory %APPDATA%/WineSales/data
                    (~/WineSales/data where APPDATA is unset)
* logs_dir        → <checkout>/logs, else the per-user WineSales/logs

Resolving a path never creates it; the storage and logging layers create
their directories on first use.
"""

import os
from pathlib import Path
from typing import Optional

DATA_DIR_ENV = "WINE_SALES_DATA_DIR"
APP_FOLDER = "WineSales"
CHECKOUT_MARKERS = ("pyproject.toml", "main.py")


def _package_parent() -> Path:
    """Directory containing the wine_sales package."""
    return Path(__file__).resolve().parent.parent.parent


def get_source_root() -> Optional[Path]:
    """
    Root of the source checkout, or None for an installed package.

    An installed package sits in site-packages, where the checkout
    markers are absent.
    """
    root = _package_parent()
    if all((root / marker).is_file() for marker in CHECKOUT_MARKERS):
        return root
    return None


def get_user_dir(sub: str) -> Path:
    """Return %APPDATA%/WineSales/<sub> (Windows) or ~/WineSales/<sub>."""
    appdata = os.environ.get("APPDATA") or str(Path.home())
    return Path(appdata) / APP_FOLDER / sub


def get_data_dir() -> Path:
    """
    Data directory.

    Priority:
      1. $WINE_SALES_DATA_DIR
      2. <checkout>/data
      3. per-user WineSales/data
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override)
    root = get_source_root()
    if root is not None:
        return root / "data"
    return get_user_dir("data")


def get_logs_dir() -> Path:
    """Log directory: <checkout>/logs, else per-user WineSales/logs."""
    root = get_source_root()
    if root is not None:
        return root / "logs"
    return get_user_dir("logs")
