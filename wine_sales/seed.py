"""
Demo data set: three customers with their delivery locations, a small wine
catalogue, orders, cellar stock, usage, activities, discount rules,
invoices and notices (April 2024).

Usage:
    seed_demo_data(StorageAdapter())              # only if no customers yet
    seed_demo_data(StorageAdapter(), force=True)  # overwrite
"""

import logging
from typing import Any, Dict, List

from .domain.models import (
    CUSTOMERS, DELIVERY_LOCATIONS, PRODUCTS, ORDERS, DELIVERIES, CELLAR_STOCK,
    USAGE_RECORDS, ACTIVITIES, DISCOUNT_RULES, INVOICES, NOTICES,
)
from .domain.orders import calculate_total_amount
from .persistence.storage_adapter import StorageAdapter

logger = logging.getLogger(__name__)


def _orders() -> List[Dict[str, Any]]:
    orders = [
        {
            "id": "O-2024001", "customerId": "C001", "deliveryLocationId": "D001",
            "orderDate": "2024-04-10", "status": "delivered", "salesType": "Standard",
            "assignedTo": "Taro Tanaka",
            "items": [
                {"productId": "P001", "quantity": 2, "price": 85000, "normalSaleFlag": False},
                {"productId": "P003", "quantity": 3, "price": 28000, "normalSaleFlag": False},
            ],
        },
        {
            "id": "O-2024002", "customerId": "C002", "deliveryLocationId": "D003",
            "orderDate": "2024-04-15", "status": "shipped", "salesType": "Cellar",
            "assignedTo": "Ichiro Suzuki",
            "items": [
                {"productId": "P002", "quantity": 2, "price": 42000, "normalSaleFlag": False},
                {"productId": "P005", "quantity": 3, "price": 15000, "normalSaleFlag": True},
            ],
        },
        {
            "id": "O-2024003", "customerId": "C003", "deliveryLocationId": "D004",
            "orderDate": "2024-04-20", "status": "confirmed", "salesType": "Standard",
            "assignedTo": "Taro Tanaka",
            "items": [
                {"productId": "P004", "quantity": 2, "price": 36000, "normalSaleFlag": False},
                {"productId": "P005", "quantity": 1, "price": 15000, "normalSaleFlag": False},
            ],
        },
    ]
    for order in orders:
        order["totalAmount"] = calculate_total_amount(order["items"])
    return orders


def demo_data() -> Dict[str, List[Dict[str, Any]]]:
    """Collection name -> records of the demo data set."""
    return {
        CUSTOMERS: [
            {"id": "C001", "name": "Yamada Trading Co.", "contactPerson": "Ichiro Yamada",
             "email": "yamada@example.com", "phone": "03-1234-5678", "address": "1-1-1 Ginza, Chuo-ku, Tokyo"},
            {"id": "C002", "name": "Sato Industries Ltd.", "contactPerson": "Kenta Sato",
             "email": "sato@example.com", "phone": "06-2345-6789", "address": "2-2-2 Umeda, Kita-ku, Osaka"},
            {"id": "C003", "name": "Nakamura Electric Inc.", "contactPerson": "Yoko Nakamura",
             "email": "nakamura@example.com", "phone": "092-345-6789",
             "address": "3-3-3 Hakata Ekimae, Hakata-ku, Fukuoka"},
        ],
        DELIVERY_LOCATIONS: [
            {"id": "D001", "customerId": "C001", "name": "Tokyo Head Office", "address": "1-1-1 Ginza, Chuo-ku, Tokyo",
             "contactPerson": "Ichiro Yamada", "phone": "03-1234-5678", "defaultSalesType": "Standard"},
            {"id": "D002", "customerId": "C001", "name": "Yokohama Branch",
             "address": "4-4-4 Minatomirai, Nishi-ku, Yokohama", "contactPerson": "Jiro Yamada",
             "phone": "045-234-5678", "defaultSalesType": "Cellar"},
            {"id": "D003", "customerId": "C002", "name": "Osaka Plant", "address": "2-2-2 Umeda, Kita-ku, Osaka",
             "contactPerson": "Kenta Sato", "phone": "06-2345-6789", "defaultSalesType": "Cellar"},
            {"id": "D004", "customerId": "C003", "name": "Fukuoka Sales Office",
             "address": "3-3-3 Hakata Ekimae, Hakata-ku, Fukuoka", "contactPerson": "Yoko Nakamura",
             "phone": "092-345-6789", "defaultSalesType": "Standard"},
        ],
        PRODUCTS: [
            {"id": "P001", "name": "Chateau Margaux 2018", "category": "Red", "price": 85000, "stock": 15,
             "region": "France/Bordeaux", "description": "Deep ruby, blackberry and violet, elegant."},
            {"id": "P002", "name": "Barolo Riserva 2017", "category": "Red", "price": 42000, "stock": 8,
             "region": "Italy/Piedmont", "description": "Firm tannins, cherry and spice, long finish."},
            {"id": "P003", "name": "Chablis Premier Cru 2019", "category": "White", "price": 28000, "stock": 22,
             "region": "France/Burgundy", "description": "Citrus and mineral, crisp."},
            {"id": "P004", "name": "Napa Valley Cabernet 2020", "category": "Red", "price": 36000, "stock": 18,
             "region": "USA/California", "description": "Concentrated fruit and oak, powerful."},
            {"id": "P005", "name": "Marlborough Sauvignon Blanc 2021", "category": "White", "price": 15000,
             "stock": 30, "region": "New Zealand/Marlborough", "description": "Grapefruit and passion fruit."},
        ],
        ORDERS: _orders(),
        DELIVERIES: [
            {"id": "DEL-2024001", "orderId": "O-2024001", "deliveryDate": "2024-04-12",
             "status": "confirmed", "confirmedDate": "2024-04-13"},
            {"id": "DEL-2024002", "orderId": "O-2024002", "deliveryDate": "2024-04-18",
             "status": "awaiting_confirmation", "confirmedDate": None},
        ],
        CELLAR_STOCK: [
            {"id": "CS001", "deliveryLocationId": "D002", "productId": "P001", "currentStock": 5,
             "safetyStock": 3, "lastReplenishmentDate": "2024-04-05"},
            {"id": "CS002", "deliveryLocationId": "D002", "productId": "P003", "currentStock": 2,
             "safetyStock": 2, "lastReplenishmentDate": "2024-04-05"},
            {"id": "CS003", "deliveryLocationId": "D003", "productId": "P002", "currentStock": 4,
             "safetyStock": 2, "lastReplenishmentDate": "2024-04-10"},
            {"id": "CS004", "deliveryLocationId": "D003", "productId": "P005", "currentStock": 1,
             "safetyStock": 3, "lastReplenishmentDate": "2024-04-10"},
        ],
        USAGE_RECORDS: [
            {"id": "U-2024001", "deliveryLocationId": "D002", "productId": "P001", "quantity": 2,
             "usageDate": "2024-04-08", "registeredBy": "Jiro Yamada", "status": "billed"},
            {"id": "U-2024002", "deliveryLocationId": "D002", "productId": "P003", "quantity": 1,
             "usageDate": "2024-04-10", "registeredBy": "Jiro Yamada", "status": "unbilled"},
            {"id": "U-2024003", "deliveryLocationId": "D003", "productId": "P002", "quantity": 1,
             "usageDate": "2024-04-15", "registeredBy": "Kenta Sato", "status": "unbilled"},
        ],
        ACTIVITIES: [
            {"id": "A-2024001", "type": "visit", "customerId": "C001", "deliveryLocationId": "D002",
             "date": "2024-04-05", "status": "completed", "subject": "Cellar stock check",
             "description": "P001 running low, proposed replenishment.", "assignedTo": "Taro Tanaka"},
            {"id": "A-2024002", "type": "phone", "customerId": "C002", "deliveryLocationId": None,
             "date": "2024-04-12", "status": "completed", "subject": "New arrivals",
             "description": "Introduced new wines and the tasting event; sending brochure.",
             "assignedTo": "Ichiro Suzuki"},
            {"id": "A-2024003", "type": "email", "customerId": "C003", "deliveryLocationId": None,
             "date": "2024-04-18", "status": "completed", "subject": "Order follow-up",
             "description": "Confirmed delivery date for O-2024003.", "assignedTo": "Taro Tanaka"},
            {"id": "A-2024004", "type": "visit", "customerId": "C001", "deliveryLocationId": "D001",
             "date": "2024-04-25", "status": "scheduled", "subject": "New proposal",
             "description": "Summer campaign proposal, bringing samples.", "assignedTo": "Taro Tanaka"},
        ],
        DISCOUNT_RULES: [
            {"id": "DR001", "name": "Volume discount", "type": "quantity", "condition": "10 bottles or more",
             "discountRate": 5, "discountAmount": None, "applyTo": "all products",
             "startDate": "2024-01-01", "endDate": "2024-12-31"},
            {"id": "DR002", "name": "VIP customer discount", "type": "customer", "condition": "C001",
             "discountRate": 3, "discountAmount": None, "applyTo": "all products",
             "startDate": "2024-01-01", "endDate": "2024-12-31"},
            {"id": "DR003", "name": "Seasonal discount", "type": "product", "condition": "P003,P005",
             "discountRate": None, "discountAmount": 5000, "applyTo": "listed products only",
             "startDate": "2024-04-01", "endDate": "2024-05-31"},
        ],
        INVOICES: [
            {"id": "INV-2024001", "customerId": "C001", "billingDate": "2024-04-15", "dueDate": "2024-05-15",
             "amount": 254000, "status": "unpaid",
             "items": [{"type": "Standard", "orderId": "O-2024001", "amount": 254000}]},
            {"id": "INV-2024002", "customerId": "C001", "billingDate": "2024-04-15", "dueDate": "2024-05-15",
             "amount": 170000, "status": "paid",
             "items": [{"type": "Cellar", "usageId": "U-2024001", "amount": 170000}]},
        ],
        NOTICES: [
            {"id": "N001", "title": "2024 new arrivals", "content": "This year's new wines are in. "
             "Trial sets are available for a limited time.", "date": "2024-04-20", "target": "all customers"},
            {"id": "N002", "title": "Golden Week closure", "content": "Closed from May 3 to May 6, 2024.",
             "date": "2024-04-15", "target": "all customers"},
            {"id": "N003", "title": "Cellar management update", "content": "Cellar stock management is easier "
             "to use. See the details page.", "date": "2024-04-01", "target": "all customers"},
        ],
    }


def seed_demo_data(storage: StorageAdapter, force: bool = False) -> bool:
    """
    Write the demo data set.

    Args:
        storage: Target store
        force: Overwrite even if customers already exist

    Returns:
        True if data was written; False if skipped or a write failed
    """
    if not force and storage.load(CUSTOMERS) is not None:
        logger.info("Customers already present, demo data not seeded")
        return False

    failed = [name for name, records in demo_data().items() if not storage.save(name, records)]
    if failed:
        logger.error(f"Demo data seeding incomplete, failed collections: {', '.join(failed)}")
        return False

    logger.info("Demo data seeded")
    return True
