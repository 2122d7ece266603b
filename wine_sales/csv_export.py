"""
CSV export of records.

Header row = keys of the first record, one row per record in that key
order. Quoting is done by the csv module, so commas, double quotes and
newlines inside values survive a round trip. Files are written as UTF-8
with BOM so spreadsheet applications pick up the encoding.

Usage:
    rows = order_export_rows(repos)
    write_csv(rows, Path("orders.csv"))
    export_snapshot(storage, Path("snapshot_dir"))
"""

import csv
import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .domain.models import ALL_COLLECTIONS, Record
from .persistence.storage_adapter import StorageAdapter
from .repositories import RepositoryFactory
from .utils.formatting import format_date

logger = logging.getLogger(__name__)

ORDER_EXPORT_COLUMNS = [
    "Order ID", "Order Date", "Customer ID", "Customer Name", "Delivery Location ID",
    "Delivery Location Name", "Sales Type", "Status", "Total Amount", "Assigned To", "Item Count",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _rows(records: List[Record]) -> Iterable[List[Any]]:
    columns = list(records[0].keys())
    yield columns
    for record in records:
        yield [_cell(record.get(col)) for col in columns]


def records_to_csv(records: Iterable[Record]) -> str:
    """Render records as CSV text ("" for no records)."""
    records = list(records)
    if not records:
        return ""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(_rows(records))
    return buffer.getvalue()


def write_csv(records: Iterable[Record], output_path: Path) -> int:
    """
    Write records to a CSV file.

    Returns:
        Number of data rows written (an empty input writes an empty file)
    """
    records = list(records)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8-sig", newline="") as f:
        if records:
            csv.writer(f).writerows(_rows(records))
    logger.info(f"Exported {len(records)} rows to {output_path}")
    return len(records)


def order_export_rows(repos: RepositoryFactory, orders: Optional[List[Record]] = None) -> List[Dict[str, Any]]:
    """
    Flatten orders for export, joined with customer and delivery location names.

    Args:
        repos: Repository factory
        orders: Orders to export (default: all orders)
    """
    if orders is None:
        orders = repos.orders().get_all()
    customers = {c.get("id"): c for c in repos.customers().get_all()}
    locations = {d.get("id"): d for d in repos.delivery_locations().get_all()}

    rows = []
    for order in orders:
        customer = customers.get(order.get("customerId"), {})
        location = locations.get(order.get("deliveryLocationId"), {})
        values = [
            order.get("id"),
            format_date(order.get("orderDate")),
            order.get("customerId"),
            customer.get("name") or "",
            order.get("deliveryLocationId"),
            location.get("name") or "",
            order.get("salesType"),
            order.get("status"),
            order.get("totalAmount"),
            order.get("assignedTo"),
            len(order.get("items") or []),
        ]
        rows.append(dict(zip(ORDER_EXPORT_COLUMNS, values)))
    return rows


def export_snapshot(storage: StorageAdapter, output_dir: Path) -> Dict[str, Any]:
    """
    Export every known collection to ``<collection>.csv`` plus a manifest.

    Collections that are absent or empty still get a manifest entry with
    0 rows (and no CSV file).

    Returns:
        Manifest dict (also written to manifest.json)
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest: Dict[str, Any] = {
        "created_at": datetime.now().isoformat(timespec="seconds"),
        "backend": storage.get_backend(),
        "collections": {},
    }

    for name in ALL_COLLECTIONS:
        value = storage.load(name)
        records = value if isinstance(value, list) else []
        if records:
            write_csv(records, output_dir / f"{name}.csv")
        manifest["collections"][name] = len(records)

    with open(output_dir / "manifest.json", "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    logger.info(f"Snapshot exported to {output_dir}")
    return manifest
