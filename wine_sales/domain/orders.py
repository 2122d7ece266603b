"""
Order calculations: totals, stock sufficiency and history ordering.

Pure functions over order and product records; no I/O.
"""
from datetime import date
from typing import Iterable, List, Optional

from .models import Record, parse_iso_date


def calculate_total_amount(items: Optional[Iterable[Record]]) -> float:
    """
    Sum of price * quantity over the line items.

    Missing price or quantity count as 0. Empty or None items give 0.
    Integer prices and quantities keep an integer total.
    """
    if not items:
        return 0
    total = 0
    for item in items:
        total += (item.get("price") or 0) * (item.get("quantity") or 0)
    return total


def has_sufficient_stock(product: Optional[Record], quantity: float) -> bool:
    """True if the product exists and its stock covers the requested quantity."""
    if not product:
        return False
    stock = product.get("stock")
    if stock is None:
        return False
    return stock >= quantity


def sort_by_date_desc(records: Iterable[Record], date_field: str = "orderDate") -> List[Record]:
    """
    Most recent first.

    Ties keep their stored order; records without a usable date sort last.
    """
    return sorted(
        records,
        key=lambda r: parse_iso_date(r.get(date_field)) or date.min,
        reverse=True,
    )
