"""
Test Suite: StorageAdapter

Tests:
1. Adapter initialization and backend selection (forced, settings.json)
2. Save/load contract on every backend
3. Failure paths (unserializable values, corrupt payloads, failed writes)
4. Fallback behavior (SQLite → JSON on init error)
"""

import logging
import sqlite3

import pytest

from wine_sales import config
from wine_sales.db import write_payload
from wine_sales.persistence.storage_adapter import StorageAdapter


@pytest.fixture(params=['json', 'sqlite', 'memory'])
def adapter(request, temp_data_dir):
    """Adapter for each backend"""
    storage = StorageAdapter(data_dir=temp_data_dir, force_backend=request.param)
    yield storage
    storage.close()


class TestAdapterInitialization:
    """Test adapter initialization and backend detection"""

    def test_json_mode_initialization(self, temp_data_dir):
        """Forced json backend"""
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='json')

        assert adapter.get_backend() == 'json'
        assert not adapter.is_sqlite_mode()

        adapter.close()

    def test_sqlite_mode_initialization(self, temp_data_dir):
        """Forced sqlite backend creates and migrates app.db"""
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='sqlite')

        assert adapter.get_backend() == 'sqlite'
        assert adapter.is_sqlite_mode()
        assert (temp_data_dir / config.DATABASE_FILENAME).exists()

        adapter.close()
        assert config.is_sqlite_available(temp_data_dir / config.DATABASE_FILENAME)

    def test_unknown_forced_backend_uses_json(self, temp_data_dir):
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='csv')
        assert adapter.get_backend() == 'json'

    def test_backend_read_from_settings_file(self, temp_data_dir):
        """Without force_backend, settings.json in the data dir decides"""
        assert config.set_storage_backend('sqlite', temp_data_dir / config.SETTINGS_FILENAME)

        with StorageAdapter(data_dir=temp_data_dir) as adapter:
            assert adapter.get_backend() == 'sqlite'

    def test_missing_settings_defaults_to_json(self, temp_data_dir):
        with StorageAdapter(data_dir=temp_data_dir) as adapter:
            assert adapter.get_backend() == 'json'

    def test_sqlite_init_failure_falls_back_to_json(self, temp_data_dir, caplog):
        """A database path that cannot be opened falls back to JSON files"""
        (temp_data_dir / config.DATABASE_FILENAME).mkdir()

        with caplog.at_level(logging.WARNING):
            adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='sqlite')

        assert adapter.get_backend() == 'json'
        assert not adapter.is_sqlite_mode()
        assert "falling back" in caplog.text
        assert adapter.save('customers', [{"id": "C001"}])
        assert adapter.load('customers') == [{"id": "C001"}]

    def test_context_manager_closes_connection(self, temp_data_dir):
        with StorageAdapter(data_dir=temp_data_dir, force_backend='sqlite') as adapter:
            assert adapter.conn is not None
        assert adapter.conn is None


class TestSaveLoad:
    """Save/load contract, identical on every backend"""

    def test_round_trip(self, adapter):
        records = [{"id": "C001", "name": "Yamada Trading Co.", "tags": ["vip"], "limit": None}]

        assert adapter.save('customers', records) is True
        assert adapter.load('customers') == records

    def test_missing_key_loads_none(self, adapter):
        assert adapter.load('orders') is None

    def test_load_returns_fresh_copy(self, adapter):
        """Mutating a loaded value does not change the store"""
        adapter.save('products', [{"id": "P001", "stock": 15}])

        loaded = adapter.load('products')
        loaded[0]["stock"] = 0
        loaded.append({"id": "P002"})

        assert adapter.load('products') == [{"id": "P001", "stock": 15}]

    def test_save_replaces_previous_value(self, adapter):
        adapter.save('notices', [{"id": "N001"}])
        adapter.save('notices', [])

        assert adapter.load('notices') == []

    def test_non_ascii_text_survives(self, adapter):
        adapter.save('customers', [{"id": "C001", "name": "山田商事"}])
        assert adapter.load('customers')[0]["name"] == "山田商事"

    def test_unserializable_value_is_rejected(self, adapter, caplog):
        with caplog.at_level(logging.ERROR):
            assert adapter.save('customers', [{"id": "C001", "when": object()}]) is False
        assert "Failed to serialize" in caplog.text
        assert adapter.load('customers') is None

    @pytest.mark.parametrize("name", ["", "../customers", "a/b", "settings", "1orders"])
    def test_invalid_names_are_rejected(self, adapter, name):
        assert adapter.save(name, []) is False
        assert adapter.load(name) is None

    def test_delete_key(self, adapter):
        adapter.save('customers', [])

        assert adapter.delete_key('customers') is True
        assert adapter.load('customers') is None
        assert adapter.delete_key('customers') is False

    def test_keys_lists_saved_names(self, adapter):
        adapter.save('orders', [])
        adapter.save('customers', [])

        assert adapter.keys() == ['customers', 'orders']


class TestPersistence:
    """Values survive a new adapter on the same data directory"""

    @pytest.mark.parametrize("backend", ['json', 'sqlite'])
    def test_values_survive_reopen(self, temp_data_dir, backend):
        with StorageAdapter(data_dir=temp_data_dir, force_backend=backend) as first:
            first.save('customers', [{"id": "C001"}])

        with StorageAdapter(data_dir=temp_data_dir, force_backend=backend) as second:
            assert second.load('customers') == [{"id": "C001"}]

    def test_memory_stores_are_independent(self):
        first = StorageAdapter(force_backend='memory')
        second = StorageAdapter(force_backend='memory')

        first.save('customers', [{"id": "C001"}])

        assert second.load('customers') is None

    def test_json_backend_writes_one_file_per_collection(self, temp_data_dir):
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='json')
        adapter.save('deliveryLocations', [])

        assert (temp_data_dir / "deliveryLocations.json").exists()


class TestFailurePaths:
    """Errors are logged and reported through the return value"""

    def test_corrupt_json_file_loads_none(self, temp_data_dir, caplog):
        (temp_data_dir / "customers.json").write_text("{not json", encoding="utf-8")
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='json')

        with caplog.at_level(logging.WARNING):
            assert adapter.load('customers') is None
        assert "not valid JSON" in caplog.text

    def test_corrupt_sqlite_payload_loads_none(self, temp_data_dir):
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='sqlite')
        write_payload(adapter.conn, 'customers', "[{broken")

        assert adapter.load('customers') is None
        adapter.close()

    def test_failed_json_write_returns_false(self, temp_data_dir, caplog):
        """A directory in place of the collection file makes the write fail"""
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='json')
        (temp_data_dir / "customers.json").mkdir()

        with caplog.at_level(logging.ERROR):
            assert adapter.save('customers', []) is False
        assert "Failed to save" in caplog.text
        assert not list(temp_data_dir.glob(".customers.*.tmp"))

    def test_unreadable_json_file_loads_none(self, temp_data_dir):
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='json')
        (temp_data_dir / "customers.json").mkdir()

        assert adapter.load('customers') is None

    def test_closed_sqlite_adapter_reports_failures(self, temp_data_dir):
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='sqlite')
        adapter.save('customers', [])
        adapter.close()

        assert adapter.save('customers', [{"id": "C001"}]) is False
        assert adapter.load('customers') is None
        assert adapter.delete_key('customers') is False

    def test_closed_sqlite_adapter_keys_raises(self, temp_data_dir):
        adapter = StorageAdapter(data_dir=temp_data_dir, force_backend='sqlite')
        adapter.close()

        with pytest.raises(sqlite3.ProgrammingError):
            adapter.keys()
