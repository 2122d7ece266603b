"""
Shared fixtures: temporary data directories, stores and repositories.
"""
import os
import shutil
import sys
import tempfile
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep config from probing the source tree for a data directory
os.environ.setdefault("WINE_SALES_DATA_DIR", tempfile.mkdtemp(prefix="wine_sales_data_"))

from wine_sales.persistence.storage_adapter import StorageAdapter  # noqa: E402
from wine_sales.repositories import RepositoryFactory  # noqa: E402
from wine_sales.seed import seed_demo_data  # noqa: E402

TODAY = date(2024, 5, 1)


@pytest.fixture
def temp_data_dir():
    """Create temporary data directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def memory_storage():
    """Throw-away in-memory store"""
    storage = StorageAdapter(force_backend='memory')
    yield storage
    storage.close()


@pytest.fixture
def repos(memory_storage):
    """Repositories over an empty store, clock fixed to 2024-05-01"""
    return RepositoryFactory(memory_storage, today=lambda: TODAY)


@pytest.fixture
def seeded_repos(memory_storage):
    """Repositories over the demo data set"""
    assert seed_demo_data(memory_storage)
    return RepositoryFactory(memory_storage, today=lambda: TODAY)
