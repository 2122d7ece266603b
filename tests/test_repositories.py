"""
Test Suite: Repository Layer

Tests:
1. Create/read/update for each entity (ids, defaults, field filtering)
2. Search semantics (text, exact, date range, ignored and unknown keys)
3. Delete guards and the sentinel vs. raising delete variants
4. Storage failures surfacing as None/False or StorageError
"""

import pytest

from wine_sales.domain.models import CUSTOMERS
from wine_sales.repositories import (
    RepositoryFactory,
    NotFoundError,
    ForeignKeyError,
    StorageError,
    InvalidFilterError,
)


def _fail_writes(storage, monkeypatch):
    monkeypatch.setattr(storage, "save", lambda name, value: False)


# ============================================================
# Create / Read / Update
# ============================================================

class TestCreate:
    """Record creation"""

    def test_sequential_ids(self, repos):
        first = repos.customers().create({"name": "Yamada Trading Co."})
        second = repos.customers().create({"name": "Sato Industries Ltd."})

        assert first["id"] == "C001"
        assert second["id"] == "C002"
        assert [c["id"] for c in repos.customers().get_all()] == ["C001", "C002"]

    def test_missing_fields_are_none(self, repos):
        customer = repos.customers().create({"name": "Yamada Trading Co."})

        assert customer == {
            "id": "C001", "name": "Yamada Trading Co.", "contactPerson": None,
            "email": None, "phone": None, "address": None,
        }

    def test_unrecognized_fields_dropped(self, repos):
        customer = repos.customers().create({"name": "Yamada", "nickname": "Y", "id": "C999"})

        assert customer["id"] == "C001"
        assert "nickname" not in customer

    def test_create_without_data(self, repos):
        assert repos.notices().create()["id"] == "N001"

    def test_delivery_location_default_sales_type(self, repos):
        location = repos.delivery_locations().create({"customerId": "C001", "name": "Tokyo Head Office"})

        assert location["id"] == "D001"
        assert location["defaultSalesType"] == "Standard"

    def test_explicit_sales_type_kept(self, repos):
        location = repos.delivery_locations().create({"customerId": "C001", "defaultSalesType": "Cellar"})
        assert location["defaultSalesType"] == "Cellar"

    def test_status_defaults(self, repos):
        usage = repos.usage_records().create({"deliveryLocationId": "D002", "productId": "P001", "quantity": 1})
        invoice = repos.invoices().create({"customerId": "C001", "amount": 1000})

        assert usage["id"] == "U-2024001"
        assert usage["status"] == "unbilled"
        assert invoice["id"] == "INV-2024001"
        assert invoice["status"] == "unpaid"
        assert invoice["items"] == []

    def test_item_defaults_not_shared(self, repos):
        first = repos.invoices().create()
        first["items"].append({"orderId": "O-2024001"})

        assert repos.invoices().create()["items"] == []

    def test_ids_continue_after_seeded_data(self, seeded_repos):
        assert seeded_repos.customers().create({"name": "New"})["id"] == "C004"
        assert seeded_repos.activities().create({"type": "visit"})["id"] == "A-2024005"
        assert seeded_repos.cellar_stock().create({"productId": "P001"})["id"] == "CS005"

    def test_create_returns_none_when_write_fails(self, repos, memory_storage, monkeypatch):
        _fail_writes(memory_storage, monkeypatch)

        assert repos.customers().create({"name": "Yamada"}) is None
        assert repos.customers().get_all() == []


class TestRead:
    """Lookups"""

    def test_empty_collection(self, repos):
        assert repos.customers().get_all() == []

    def test_get_by_id(self, seeded_repos):
        customer = seeded_repos.customers().get_by_id("C002")
        assert customer["name"] == "Sato Industries Ltd."

    def test_get_by_id_unknown(self, seeded_repos):
        assert seeded_repos.customers().get_by_id("C999") is None
        assert not seeded_repos.customers().exists("C999")

    def test_non_list_collection_treated_as_empty(self, repos, memory_storage, caplog):
        memory_storage.save(CUSTOMERS, {"C001": {"name": "Yamada"}})

        assert repos.customers().get_all() == []
        assert "does not hold a list" in caplog.text

    def test_get_delivery_locations(self, seeded_repos):
        locations = seeded_repos.customers().get_delivery_locations("C001")
        assert [loc["id"] for loc in locations] == ["D001", "D002"]

    def test_get_cellar_stock(self, seeded_repos):
        stock = seeded_repos.delivery_locations().get_cellar_stock("D003")
        assert [s["id"] for s in stock] == ["CS003", "CS004"]
        assert seeded_repos.delivery_locations().get_cellar_stock("D001") == []


class TestUpdate:
    """Patch merging"""

    def test_merges_patch(self, seeded_repos):
        updated = seeded_repos.customers().update("C001", {"phone": "03-0000-0000"})

        assert updated["phone"] == "03-0000-0000"
        assert updated["name"] == "Yamada Trading Co."
        assert seeded_repos.customers().get_by_id("C001")["phone"] == "03-0000-0000"

    def test_unknown_id_returns_none(self, seeded_repos):
        before = seeded_repos.customers().get_all()

        assert seeded_repos.customers().update("C999", {"name": "X"}) is None
        assert seeded_repos.customers().get_all() == before

    def test_id_in_patch_ignored(self, seeded_repos):
        updated = seeded_repos.customers().update("C001", {"id": "C777", "name": "Renamed"})

        assert updated["id"] == "C001"
        assert seeded_repos.customers().get_by_id("C777") is None

    def test_keeps_stored_order(self, seeded_repos):
        seeded_repos.products().update("P001", {"stock": 3})
        assert [p["id"] for p in seeded_repos.products().get_all()] == ["P001", "P002", "P003", "P004", "P005"]

    def test_returns_none_when_write_fails(self, seeded_repos, memory_storage, monkeypatch):
        _fail_writes(memory_storage, monkeypatch)
        assert seeded_repos.customers().update("C001", {"name": "X"}) is None


# ============================================================
# Search
# ============================================================

class TestSearch:
    """Filter semantics"""

    def test_no_filters_returns_all(self, seeded_repos):
        assert len(seeded_repos.customers().search()) == 3
        assert len(seeded_repos.customers().search({})) == 3

    def test_text_filter_is_case_insensitive_substring(self, seeded_repos):
        results = seeded_repos.customers().search({"name": "yamada"})
        assert [c["id"] for c in results] == ["C001"]

    def test_unmatched_filter_returns_empty(self, seeded_repos):
        assert seeded_repos.customers().search({"name": "Nonexistent"}) == []

    def test_empty_values_ignored(self, seeded_repos):
        results = seeded_repos.customers().search({"name": "", "contactPerson": None, "address": "Osaka"})
        assert [c["id"] for c in results] == ["C002"]

    def test_filters_combine(self, seeded_repos):
        results = seeded_repos.customers().search({"address": "Tokyo", "contactPerson": "Sato"})
        assert results == []

    def test_unknown_filter_key_raises(self, seeded_repos):
        with pytest.raises(InvalidFilterError, match="nmae"):
            seeded_repos.customers().search({"nmae": "Yamada"})

    def test_filter_error_is_a_value_error(self):
        assert issubclass(InvalidFilterError, ValueError)

    def test_exact_filter(self, seeded_repos):
        results = seeded_repos.delivery_locations().search({"customerId": "C001", "defaultSalesType": "Cellar"})
        assert [d["id"] for d in results] == ["D002"]

    def test_exact_filter_is_not_substring(self, seeded_repos):
        assert seeded_repos.delivery_locations().search({"customerId": "C00"}) == []

    def test_date_range_is_inclusive(self, seeded_repos):
        results = seeded_repos.activities().search({"startDate": "2024-04-05", "endDate": "2024-04-18"})
        assert [a["id"] for a in results] == ["A-2024001", "A-2024002", "A-2024003"]

    def test_single_date_bound(self, seeded_repos):
        results = seeded_repos.usage_records().search({"startDate": "2024-04-10"})
        assert [u["id"] for u in results] == ["U-2024002", "U-2024003"]

    def test_invalid_date_bound_raises(self, seeded_repos):
        with pytest.raises(InvalidFilterError):
            seeded_repos.activities().search({"startDate": "04/05/2024"})

    def test_product_search(self, seeded_repos):
        results = seeded_repos.products().search({"category": "White", "name": "chablis"})
        assert [p["id"] for p in results] == ["P003"]


# ============================================================
# Delete
# ============================================================

class TestDelete:
    """Delete guards and variants"""

    def test_delete_unreferenced(self, seeded_repos):
        assert seeded_repos.notices().delete("N002") is True
        assert [n["id"] for n in seeded_repos.notices().get_all()] == ["N001", "N003"]

    def test_delete_unknown_returns_false(self, seeded_repos):
        assert seeded_repos.notices().delete("N999") is False
        assert len(seeded_repos.notices().get_all()) == 3

    def test_delete_or_raise_unknown(self, seeded_repos):
        with pytest.raises(NotFoundError):
            seeded_repos.notices().delete_or_raise("N999")

    def test_location_with_orders_is_kept(self, seeded_repos):
        before = seeded_repos.storage.load("deliveryLocations")

        assert seeded_repos.delivery_locations().delete("D001") is False
        assert seeded_repos.storage.load("deliveryLocations") == before
        assert seeded_repos.delivery_locations().exists("D001")

    def test_location_without_orders_is_deleted(self, seeded_repos):
        assert seeded_repos.delivery_locations().delete("D002") is True
        assert not seeded_repos.delivery_locations().exists("D002")

    def test_check_delete_reports_reason(self, seeded_repos):
        ok, reason = seeded_repos.delivery_locations().check_delete("D001")
        assert ok is False
        assert "1 order(s)" in reason

        assert seeded_repos.delivery_locations().check_delete("D002") == (True, "")

        ok, reason = seeded_repos.delivery_locations().check_delete("D999")
        assert ok is False
        assert "not found" in reason

    def test_delete_or_raise_blocked(self, seeded_repos):
        with pytest.raises(ForeignKeyError):
            seeded_repos.delivery_locations().delete_or_raise("D001")

    def test_customer_with_locations_is_kept(self, seeded_repos):
        ok, reason = seeded_repos.customers().check_delete("C001")
        assert ok is False
        assert "delivery location" in reason
        assert seeded_repos.customers().delete("C001") is False

    def test_customer_without_references_is_deleted(self, repos):
        repos.customers().create({"name": "Yamada"})
        assert repos.customers().delete("C001") is True

    def test_product_in_orders_is_kept(self, seeded_repos):
        ok, reason = seeded_repos.products().check_delete("P004")
        assert ok is False
        assert "order" in reason

    def test_product_in_cellar_stock_is_kept(self, repos):
        repos.products().create({"name": "Chablis"})
        repos.cellar_stock().create({"deliveryLocationId": "D001", "productId": "P001"})

        ok, reason = repos.products().check_delete("P001")
        assert ok is False
        assert "cellar stock" in reason

    def test_ids_not_reused_after_delete(self, repos):
        repos.customers().create({"name": "A"})
        repos.customers().create({"name": "B"})
        repos.customers().delete("C001")

        assert repos.customers().create({"name": "C"})["id"] == "C003"

    def test_failed_write(self, seeded_repos, memory_storage, monkeypatch):
        _fail_writes(memory_storage, monkeypatch)

        assert seeded_repos.notices().delete("N001") is False
        with pytest.raises(StorageError):
            seeded_repos.notices().delete_or_raise("N001")


class TestRepositoryFactory:
    """Repositories share one store"""

    def test_shared_storage(self, memory_storage):
        repos = RepositoryFactory(memory_storage)
        repos.customers().create({"name": "Yamada"})

        assert RepositoryFactory(memory_storage).customers().get_by_id("C001")["name"] == "Yamada"

    def test_independent_stores(self, memory_storage):
        from wine_sales.persistence.storage_adapter import StorageAdapter

        RepositoryFactory(memory_storage).customers().create({"name": "Yamada"})
        other = RepositoryFactory(StorageAdapter(force_backend='memory'))

        assert other.customers().get_all() == []
