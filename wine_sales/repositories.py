"""
Repository/DAL Layer over the key-value storage adapter

- CollectionRepository: generic CRUD + search over one collection
- One subclass per entity: collection name, id format, defaults, filters
  and delete guards are declared, the CRUD logic lives in the base class
- RepositoryFactory: repositories sharing one storage adapter

Design Principles:
- Every operation loads the whole collection, works in memory and writes
  the whole collection back (last write wins)
- Sentinel contract: get_by_id/update return None and delete returns False
  for unknown ids, refused deletes and failed writes; they never raise
- check_delete() and delete_or_raise() tell "not found" apart from
  "blocked by a reference" for callers that need the reason
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from .domain import identifiers
from .domain.identifiers import IdFormat
from .domain.models import (
    Record, SCHEMAS, CUSTOMERS, DELIVERY_LOCATIONS, ORDERS, PRODUCTS, DELIVERIES,
    CELLAR_STOCK, USAGE_RECORDS, ACTIVITIES, DISCOUNT_RULES, INVOICES, NOTICES,
    OrderStatus, SalesType, InvoiceStatus, UsageStatus, parse_iso_date,
)
from .domain.orders import calculate_total_amount, has_sufficient_stock, sort_by_date_desc
from .persistence.storage_adapter import StorageAdapter

logger = logging.getLogger(__name__)


# ============================================================
# Custom Exceptions
# ============================================================

class RepositoryError(Exception):
    """Base exception for repository operations"""
    pass


class NotFoundError(RepositoryError):
    """Raised when entity not found"""
    pass


class ForeignKeyError(RepositoryError):
    """Raised when a delete is blocked by records that reference the entity"""
    pass


class BusinessRuleError(RepositoryError):
    """Raised when an operation is not allowed in the entity's current state"""
    pass


class StorageError(RepositoryError):
    """Raised when the storage adapter reports a failed write"""
    pass


class InvalidFilterError(ValueError):
    """Raised when search() gets an unknown filter key or an unparsable date bound"""
    pass


# ============================================================
# Search filters
# ============================================================

TEXT = "text"
EXACT = "exact"
DATE_FROM = "date_from"
DATE_TO = "date_to"


@dataclass(frozen=True)
class SearchFilter:
    """One named search criterion applied to a record field."""
    name: str
    field: str
    kind: str

    def matches(self, record: Record, value: Any) -> bool:
        actual = record.get(self.field)

        if self.kind == TEXT:
            if not isinstance(actual, str):
                return False
            return str(value).lower() in actual.lower()

        if self.kind == EXACT:
            return actual == value

        bound = parse_iso_date(value)
        if bound is None:
            raise InvalidFilterError(f"Filter {self.name!r} expects a YYYY-MM-DD date, got {value!r}")
        actual_date = parse_iso_date(actual)
        if actual_date is None:
            return False
        if self.kind == DATE_FROM:
            return actual_date >= bound
        return actual_date <= bound


def text(name: str, field: Optional[str] = None) -> Tuple[SearchFilter, ...]:
    return (SearchFilter(name, field or name, TEXT),)


def exact(*names: str) -> Tuple[SearchFilter, ...]:
    return tuple(SearchFilter(name, name, EXACT) for name in names)


def date_range(field: str, start: str = "startDate", end: str = "endDate") -> Tuple[SearchFilter, ...]:
    """Inclusive range on *field*; either bound may be omitted."""
    return (SearchFilter(start, field, DATE_FROM), SearchFilter(end, field, DATE_TO))


# ============================================================
# Generic Repository
# ============================================================

class CollectionRepository:
    """
    CRUD and search over one collection of records.

    Subclasses declare:
        COLLECTION: storage name of the collection
        ID_FORMAT: id layout used by create()
        DEFAULTS: values for recognized fields missing from create() data
        FILTERS: accepted search() keys
        READ_ONLY_FIELDS: fields an update patch may not change
        LABEL: human readable entity name for messages
    """

    COLLECTION: str = ""
    ID_FORMAT: IdFormat = IdFormat("X")
    DEFAULTS: Dict[str, Any] = {}
    FILTERS: Tuple[SearchFilter, ...] = ()
    READ_ONLY_FIELDS: Tuple[str, ...] = ("id",)
    LABEL: str = "Record"

    def __init__(self, storage: StorageAdapter, today: Optional[Callable[[], date]] = None):
        """
        Args:
            storage: Storage adapter holding the collections
            today: Clock used for id years and date defaults (default: date.today)
        """
        self.storage = storage
        self._today = today or date.today

    @property
    def fields(self) -> List[str]:
        return SCHEMAS[self.COLLECTION]

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    def _load(self, collection: str) -> List[Record]:
        value = self.storage.load(collection)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning(f"Collection {collection!r} does not hold a list, treating it as empty")
            return []
        return value

    def get_all(self) -> List[Record]:
        """All records in stored order (empty list if the collection is absent)."""
        return self._load(self.COLLECTION)

    def get_by_id(self, record_id: str) -> Optional[Record]:
        for record in self.get_all():
            if record.get("id") == record_id:
                return record
        return None

    def exists(self, record_id: str) -> bool:
        return self.get_by_id(record_id) is not None

    def search(self, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        """
        Records matching every given filter.

        Filters whose value is None or "" are ignored, so an empty form can
        be passed straight through. Text filters are case-insensitive
        substring matches, the others are equality or inclusive date bounds.

        Raises:
            InvalidFilterError: Unknown filter key or unparsable date bound
        """
        records = self.get_all()
        if not filters:
            return records

        available = {f.name: f for f in self.FILTERS}
        unknown = sorted(set(filters) - set(available))
        if unknown:
            raise InvalidFilterError(
                f"Unknown {self.LABEL} filter(s): {', '.join(unknown)}. "
                f"Available: {', '.join(available) or 'none'}"
            )

        for key, value in filters.items():
            if value is None or value == "":
                continue
            criterion = available[key]
            records = [r for r in records if criterion.matches(r, value)]
        return records

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    def _persist(self, records: List[Record]) -> bool:
        return self.storage.save(self.COLLECTION, records)

    def _build_record(self, record_id: str, data: Record) -> Record:
        """Copy recognized fields from *data*, falling back to DEFAULTS."""
        record: Record = {"id": record_id}
        for name in self.fields[1:]:
            if name in data and data[name] is not None:
                record[name] = data[name]
            else:
                default = self.DEFAULTS.get(name)
                record[name] = default() if callable(default) else default
        return record

    def _apply_patch(self, record: Record, patch: Record) -> Record:
        """Shallow merge; subclasses recompute derived fields here."""
        changes = {k: v for k, v in patch.items() if k not in self.READ_ONLY_FIELDS}
        return {**record, **changes}

    def create(self, data: Optional[Record] = None) -> Optional[Record]:
        """
        Create a record with the next id.

        Unrecognized fields in *data* are dropped, missing ones take their
        default.

        Returns:
            The new record, or None if it could not be persisted
        """
        records = self.get_all()
        new_id = self.ID_FORMAT.next_id((r.get("id") for r in records), self._today())
        record = self._build_record(new_id, dict(data or {}))
        records.append(record)
        if not self._persist(records):
            logger.error(f"{self.LABEL} {new_id} was not created: storage write failed")
            return None
        logger.info(f"Created {self.LABEL} {new_id}")
        return record

    def update(self, record_id: str, patch: Optional[Record] = None) -> Optional[Record]:
        """
        Merge *patch* over the stored record.

        The id (and any other read-only field) in the patch is ignored.

        Returns:
            The merged record, or None if the id is unknown or the write failed
        """
        records = self.get_all()
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                break
        else:
            logger.debug(f"Update skipped: {self.LABEL} {record_id} not found")
            return None

        updated = self._apply_patch(record, dict(patch or {}))
        records[index] = updated
        if not self._persist(records):
            logger.error(f"{self.LABEL} {record_id} was not updated: storage write failed")
            return None
        logger.debug(f"Updated {self.LABEL} {record_id}: {sorted(patch or {})}")
        return updated

    # ------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------

    def _delete_blocker(self, record: Record) -> Optional[str]:
        """Reason the record may not be deleted, or None."""
        return None

    def _apply_delete(self, records: List[Record], record: Record) -> List[Record]:
        return [r for r in records if r.get("id") != record.get("id")]

    def check_delete(self, record_id: str) -> Tuple[bool, str]:
        """
        Check if a record can be deleted.

        Returns:
            (True, "") or (False, reason)
        """
        record = self.get_by_id(record_id)
        if record is None:
            return False, f"{self.LABEL} {record_id} not found"
        blocker = self._delete_blocker(record)
        if blocker:
            return False, blocker
        return True, ""

    def delete_or_raise(self, record_id: str) -> None:
        """
        Delete a record, raising on failure.

        Raises:
            NotFoundError: Unknown id
            ForeignKeyError: Other records still reference this one
            StorageError: The write failed
        """
        records = self.get_all()
        record = next((r for r in records if r.get("id") == record_id), None)
        if record is None:
            raise NotFoundError(f"{self.LABEL} {record_id} not found")

        blocker = self._delete_blocker(record)
        if blocker:
            raise ForeignKeyError(blocker)

        if not self._persist(self._apply_delete(records, record)):
            raise StorageError(f"{self.LABEL} {record_id} was not deleted: storage write failed")
        logger.info(f"Deleted {self.LABEL} {record_id}")

    def delete(self, record_id: str) -> bool:
        """
        Delete a record.

        Returns:
            True if deleted, False if not found, refused or not persisted
        """
        try:
            self.delete_or_raise(record_id)
        except RepositoryError as e:
            logger.info(f"Delete refused: {e}")
            return False
        return True


# ============================================================
# Entity Repositories
# ============================================================

class CustomerRepository(CollectionRepository):
    COLLECTION = CUSTOMERS
    ID_FORMAT = identifiers.CUSTOMER_ID
    FILTERS = text("name") + text("contactPerson") + text("address")
    LABEL = "Customer"

    def get_delivery_locations(self, customer_id: str) -> List[Record]:
        return [loc for loc in self._load(DELIVERY_LOCATIONS) if loc.get("customerId") == customer_id]

    def get_transaction_history(self, customer_id: str):
        """Orders, invoices, usage records and activities of one customer."""
        from .workflows.history import TransactionHistoryWorkflow  # noqa: PLC0415
        return TransactionHistoryWorkflow(RepositoryFactory(self.storage, self._today)).for_customer(customer_id)

    def _delete_blocker(self, record: Record) -> Optional[str]:
        customer_id = record["id"]
        for collection, label in ((DELIVERY_LOCATIONS, "delivery location"), (ORDERS, "order"),
                                  (INVOICES, "invoice")):
            count = sum(1 for r in self._load(collection) if r.get("customerId") == customer_id)
            if count:
                return f"Cannot delete customer {customer_id}: referenced by {count} {label}(s)"
        return None


class DeliveryLocationRepository(CollectionRepository):
    COLLECTION = DELIVERY_LOCATIONS
    ID_FORMAT = identifiers.DELIVERY_LOCATION_ID
    DEFAULTS = {"defaultSalesType": SalesType.STANDARD.value}
    FILTERS = exact("customerId") + text("name") + text("address") + exact("defaultSalesType")
    LABEL = "Delivery location"

    def get_cellar_stock(self, location_id: str) -> List[Record]:
        return [s for s in self._load(CELLAR_STOCK) if s.get("deliveryLocationId") == location_id]

    def get_transaction_history(self, location_id: str):
        """Orders, invoices, usage records and activities of one delivery location."""
        from .workflows.history import TransactionHistoryWorkflow  # noqa: PLC0415
        return TransactionHistoryWorkflow(RepositoryFactory(self.storage, self._today)).for_delivery_location(
            location_id
        )

    def _delete_blocker(self, record: Record) -> Optional[str]:
        location_id = record["id"]
        count = sum(1 for o in self._load(ORDERS) if o.get("deliveryLocationId") == location_id)
        if count:
            return f"Cannot delete delivery location {location_id}: referenced by {count} order(s)"
        return None


class OrderRepository(CollectionRepository):
    """
    Orders and their line items.

    totalAmount is derived from the items and cannot be written directly.
    Deleting a pending order removes it; deleting any other order cancels it.
    """

    COLLECTION = ORDERS
    ID_FORMAT = identifiers.ORDER_ID
    DEFAULTS = {
        "status": OrderStatus.PENDING.value,
        "salesType": SalesType.STANDARD.value,
        "items": list,
    }
    FILTERS = (
        exact("customerId", "deliveryLocationId", "status", "salesType", "assignedTo")
        + date_range("orderDate")
    )
    READ_ONLY_FIELDS = ("id", "totalAmount")
    LABEL = "Order"

    def _build_record(self, record_id: str, data: Record) -> Record:
        record = super()._build_record(record_id, data)
        if not record.get("orderDate"):
            record["orderDate"] = self._today().isoformat()
        record["totalAmount"] = calculate_total_amount(record["items"])
        return record

    def _apply_patch(self, record: Record, patch: Record) -> Record:
        updated = super()._apply_patch(record, patch)
        if "items" in patch:
            updated["totalAmount"] = calculate_total_amount(patch["items"])
        return updated

    def _apply_delete(self, records: List[Record], record: Record) -> List[Record]:
        if record.get("status") == OrderStatus.PENDING.value:
            return super()._apply_delete(records, record)
        return [
            {**r, "status": OrderStatus.CANCELLED.value} if r.get("id") == record["id"] else r
            for r in records
        ]

    def confirm_order(self, order_id: str) -> Optional[Record]:
        """
        Move a pending order to confirmed.

        Returns:
            The updated order, or None if unknown or not pending
        """
        order = self.get_by_id(order_id)
        if not order or order.get("status") != OrderStatus.PENDING.value:
            return None
        return self.update(order_id, {"status": OrderStatus.CONFIRMED.value})

    def confirm_order_or_raise(self, order_id: str) -> Record:
        """
        Raises:
            NotFoundError: Unknown order
            BusinessRuleError: Order is not pending
            StorageError: The write failed
        """
        order = self.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        if order.get("status") != OrderStatus.PENDING.value:
            raise BusinessRuleError(
                f"Order {order_id} cannot be confirmed from status {order.get('status')!r}"
            )
        updated = self.update(order_id, {"status": OrderStatus.CONFIRMED.value})
        if updated is None:
            raise StorageError(f"Order {order_id} was not confirmed: storage write failed")
        return updated

    def check_stock(self, product_id: str, quantity: float) -> bool:
        """True iff the product exists and has at least *quantity* in stock."""
        return has_sufficient_stock(ProductRepository(self.storage).get_by_id(product_id), quantity)

    def check_order_stock(self, items: List[Record]) -> List[str]:
        """Product ids of the line items the warehouse cannot cover."""
        products = {p.get("id"): p for p in self._load(PRODUCTS)}
        return [
            item.get("productId") for item in items or []
            if not has_sufficient_stock(products.get(item.get("productId")), item.get("quantity") or 0)
        ]

    def get_customer_order_history(self, customer_id: str) -> List[Record]:
        """Orders of one customer, most recent first."""
        return sort_by_date_desc(self.search({"customerId": customer_id}))

    def get_delivery_location_order_history(self, location_id: str) -> List[Record]:
        """Orders shipped to one delivery location, most recent first."""
        return sort_by_date_desc(self.search({"deliveryLocationId": location_id}))


class ProductRepository(CollectionRepository):
    COLLECTION = PRODUCTS
    ID_FORMAT = identifiers.PRODUCT_ID
    DEFAULTS = {"price": 0, "stock": 0}
    FILTERS = text("name") + exact("category")
    LABEL = "Product"

    def _delete_blocker(self, record: Record) -> Optional[str]:
        product_id = record["id"]
        in_orders = sum(
            1 for o in self._load(ORDERS)
            if any(item.get("productId") == product_id for item in o.get("items") or [])
        )
        if in_orders:
            return f"Cannot delete product {product_id}: used in {in_orders} order(s)"
        in_cellar = sum(1 for s in self._load(CELLAR_STOCK) if s.get("productId") == product_id)
        if in_cellar:
            return f"Cannot delete product {product_id}: held in {in_cellar} cellar stock row(s)"
        return None


class CellarStockRepository(CollectionRepository):
    COLLECTION = CELLAR_STOCK
    ID_FORMAT = identifiers.CELLAR_STOCK_ID
    DEFAULTS = {"currentStock": 0, "safetyStock": 0}
    FILTERS = exact("deliveryLocationId", "productId")
    LABEL = "Cellar stock"


class UsageRecordRepository(CollectionRepository):
    COLLECTION = USAGE_RECORDS
    ID_FORMAT = identifiers.USAGE_RECORD_ID
    DEFAULTS = {"status": UsageStatus.UNBILLED.value}
    FILTERS = exact("deliveryLocationId", "productId", "status") + date_range("usageDate")
    LABEL = "Usage record"


class InvoiceRepository(CollectionRepository):
    COLLECTION = INVOICES
    ID_FORMAT = identifiers.INVOICE_ID
    DEFAULTS = {"status": InvoiceStatus.UNPAID.value, "items": list}
    FILTERS = exact("customerId", "status") + date_range("billingDate")
    LABEL = "Invoice"


class ActivityRepository(CollectionRepository):
    COLLECTION = ACTIVITIES
    ID_FORMAT = identifiers.ACTIVITY_ID
    FILTERS = (
        exact("type", "customerId", "deliveryLocationId", "status", "assignedTo")
        + text("subject")
        + date_range("date")
    )
    LABEL = "Activity"


class DeliveryRepository(CollectionRepository):
    COLLECTION = DELIVERIES
    ID_FORMAT = identifiers.DELIVERY_ID
    FILTERS = exact("orderId", "status") + date_range("deliveryDate")
    LABEL = "Delivery"


class DiscountRuleRepository(CollectionRepository):
    COLLECTION = DISCOUNT_RULES
    ID_FORMAT = identifiers.DISCOUNT_RULE_ID
    FILTERS = text("name") + exact("type")
    LABEL = "Discount rule"


class NoticeRepository(CollectionRepository):
    COLLECTION = NOTICES
    ID_FORMAT = identifiers.NOTICE_ID
    FILTERS = text("title") + exact("target")
    LABEL = "Notice"


# ============================================================
# Repository Factory (Convenience)
# ============================================================

class RepositoryFactory:
    """
    Factory for creating repository instances sharing a storage adapter.

    Usage:
        >>> storage = StorageAdapter(force_backend='memory')
        >>> repos = RepositoryFactory(storage)
        >>> repos.customers().create({'name': 'Yamada Trading'})['id']
        'C001'
    """

    def __init__(self, storage: StorageAdapter, today: Optional[Callable[[], date]] = None):
        self.storage = storage
        self.today = today

    def customers(self) -> CustomerRepository:
        return CustomerRepository(self.storage, self.today)

    def delivery_locations(self) -> DeliveryLocationRepository:
        return DeliveryLocationRepository(self.storage, self.today)

    def orders(self) -> OrderRepository:
        return OrderRepository(self.storage, self.today)

    def products(self) -> ProductRepository:
        return ProductRepository(self.storage, self.today)

    def cellar_stock(self) -> CellarStockRepository:
        return CellarStockRepository(self.storage, self.today)

    def usage_records(self) -> UsageRecordRepository:
        return UsageRecordRepository(self.storage, self.today)

    def invoices(self) -> InvoiceRepository:
        return InvoiceRepository(self.storage, self.today)

    def activities(self) -> ActivityRepository:
        return ActivityRepository(self.storage, self.today)

    def deliveries(self) -> DeliveryRepository:
        return DeliveryRepository(self.storage, self.today)

    def discount_rules(self) -> DiscountRuleRepository:
        return DiscountRuleRepository(self.storage, self.today)

    def notices(self) -> NoticeRepository:
        return NoticeRepository(self.storage, self.today)
