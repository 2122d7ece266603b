"""
Domain models for the wine sales manager.

Records are plain dicts keyed by the persisted camelCase field names; the
field names double as foreign keys (customerId, deliveryLocationId,
productId, orderId, usageId) between collections. This module holds the
collection schemas, the status vocabularies and the value objects built
on top of the records. No I/O, no side effects.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]


# ============================================================
# Collections
# ============================================================

CUSTOMERS = "customers"
DELIVERY_LOCATIONS = "deliveryLocations"
ORDERS = "orders"
PRODUCTS = "products"
DELIVERIES = "deliveries"
CELLAR_STOCK = "cellarStock"
USAGE_RECORDS = "usageRecords"
ACTIVITIES = "activities"
DISCOUNT_RULES = "discountRules"
INVOICES = "invoices"
NOTICES = "notices"

# Collection name -> recognized record fields (id first)
SCHEMAS: Dict[str, List[str]] = {
    CUSTOMERS: ["id", "name", "contactPerson", "email", "phone", "address"],
    DELIVERY_LOCATIONS: ["id", "customerId", "name", "address", "contactPerson", "phone", "defaultSalesType"],
    ORDERS: ["id", "customerId", "deliveryLocationId", "orderDate", "status", "salesType",
             "totalAmount", "assignedTo", "items"],
    PRODUCTS: ["id", "name", "category", "price", "stock", "region", "description"],
    DELIVERIES: ["id", "orderId", "deliveryDate", "status", "confirmedDate"],
    CELLAR_STOCK: ["id", "deliveryLocationId", "productId", "currentStock", "safetyStock",
                   "lastReplenishmentDate"],
    USAGE_RECORDS: ["id", "deliveryLocationId", "productId", "quantity", "usageDate", "registeredBy", "status"],
    ACTIVITIES: ["id", "type", "customerId", "deliveryLocationId", "date", "status", "subject",
                 "description", "assignedTo"],
    DISCOUNT_RULES: ["id", "name", "type", "condition", "discountRate", "discountAmount", "applyTo",
                     "startDate", "endDate"],
    INVOICES: ["id", "customerId", "billingDate", "dueDate", "amount", "status", "items"],
    NOTICES: ["id", "title", "content", "date", "target"],
}

ALL_COLLECTIONS = tuple(SCHEMAS)


# ============================================================
# Vocabularies
# ============================================================

class SalesType(Enum):
    """How an order or delivery location is billed."""
    STANDARD = "Standard"  # Direct sale
    CELLAR = "Cellar"      # Consignment stock held at the customer's location


class OrderStatus(Enum):
    """Order lifecycle, in the order a sale normally moves through it."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    AWAITING_DELIVERY_CONFIRMATION = "awaiting_delivery_confirmation"
    DELIVERED = "delivered"
    DISCREPANCY_REPORTED = "discrepancy_reported"
    CANCELLED = "cancelled"


class DeliveryStatus(Enum):
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    DISCREPANCY_REPORTED = "discrepancy_reported"


class InvoiceStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    OVERDUE = "overdue"


class UsageStatus(Enum):
    UNBILLED = "unbilled"
    BILLED = "billed"


class ActivityType(Enum):
    VISIT = "visit"
    PHONE = "phone"
    EMAIL = "email"


class ActivityStatus(Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


# ============================================================
# Helpers
# ============================================================

def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a stored date value.

    Accepts date/datetime objects and ISO strings ("2024-04-10" or a full
    ISO timestamp). Returns None for empty or unparsable input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


# ============================================================
# Value objects
# ============================================================

@dataclass
class TransactionHistory:
    """
    Everything recorded against one customer or delivery location.

    The lists are gathered independently; no consistency check is made
    between them.
    """
    orders: List[Record] = field(default_factory=list)
    invoices: List[Record] = field(default_factory=list)
    usage_records: List[Record] = field(default_factory=list)
    activities: List[Record] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.orders or self.invoices or self.usage_records or self.activities)

    def to_dict(self) -> Dict[str, List[Record]]:
        """Serialize using the persisted collection key names."""
        return {
            "orders": self.orders,
            "invoices": self.invoices,
            USAGE_RECORDS: self.usage_records,
            "activities": self.activities,
        }
