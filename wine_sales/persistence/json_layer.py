"""
JSON file persistence layer.

One ``<collection>.json`` file per collection name inside the data
directory. Payloads are written to a temporary file first and moved into
place, so an interrupted write never leaves a truncated collection behind.
"""
import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional

COLLECTION_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
# settings.json shares the data directory
RESERVED_NAMES = frozenset({"settings"})


def validate_collection_name(name: str) -> str:
    """Reject names that could escape the data directory."""
    if not isinstance(name, str) or not COLLECTION_NAME_RE.match(name) or name in RESERVED_NAMES:
        raise ValueError(f"Invalid collection name: {name!r}")
    return name


class JSONLayer:
    """Reads and writes serialized collections as files in a data directory."""

    SUFFIX = ".json"

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{validate_collection_name(name)}{self.SUFFIX}"

    def read_text(self, name: str) -> Optional[str]:
        """Return the raw payload for *name*, or None if the file is missing."""
        filepath = self.path_for(name)
        if not filepath.exists():
            return None
        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()

    def write_text(self, name: str, payload: str) -> None:
        """Atomically replace the payload for *name*."""
        filepath = self.path_for(name)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, filepath)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def delete(self, name: str) -> bool:
        filepath = self.path_for(name)
        if not filepath.exists():
            return False
        filepath.unlink()
        return True

    def names(self) -> List[str]:
        """Collection names present on disk, sorted."""
        return sorted(
            p.stem for p in self.data_dir.glob(f"*{self.SUFFIX}")
            if COLLECTION_NAME_RE.match(p.stem) and p.stem not in RESERVED_NAMES
        )
