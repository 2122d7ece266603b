"""
Command-line interface for the wine sales data store.

Usage:
    wine-sales seed [--force]
    wine-sales customers [--name NAME] [--contact NAME] [--address TEXT] [--page N]
    wine-sales orders [--customer ID] [--location ID] [--status S] [--start DATE] [--end DATE] [--page N]
    wine-sales confirm ORDER_ID
    wine-sales history {customer,location} ID [--json]
    wine-sales export-orders OUTPUT.csv
    wine-sales snapshot OUTPUT_DIR
    wine-sales backend [{json,sqlite}]

Global options --data-dir and --backend select the store.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .csv_export import export_snapshot, order_export_rows, write_csv
from .persistence.storage_adapter import StorageAdapter
from .repositories import InvalidFilterError, RepositoryError, RepositoryFactory
from .seed import seed_demo_data
from .utils.error_formatting import ErrorFormatter, format_error_for_display, validate_date_format
from .utils.formatting import format_currency, format_date, paginate, pagination_range
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _date_arg(value: str) -> str:
    ok, message = validate_date_format(value)
    if not ok:
        raise argparse.ArgumentTypeError(message)
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wine-sales", description="Wine sales data store")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data directory (default: $WINE_SALES_DATA_DIR, <checkout>/data or ~/WineSales/data)")
    parser.add_argument("--backend", choices=["json", "sqlite"], default=None,
                        help="Storage backend (default: from settings.json)")
    parser.add_argument("--log-dir", type=Path, default=None, help="Log directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Echo info logs to the console")

    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Load the demo data set")
    seed.add_argument("--force", action="store_true", help="Overwrite existing data")

    customers = sub.add_parser("customers", help="List or search customers")
    customers.add_argument("--name")
    customers.add_argument("--contact", dest="contactPerson")
    customers.add_argument("--address")
    customers.add_argument("--page", type=int, default=1)

    orders = sub.add_parser("orders", help="List or search orders")
    orders.add_argument("--customer", dest="customerId")
    orders.add_argument("--location", dest="deliveryLocationId")
    orders.add_argument("--status")
    orders.add_argument("--sales-type", dest="salesType")
    orders.add_argument("--assigned-to", dest="assignedTo")
    orders.add_argument("--start", dest="startDate", type=_date_arg)
    orders.add_argument("--end", dest="endDate", type=_date_arg)
    orders.add_argument("--page", type=int, default=1)

    confirm = sub.add_parser("confirm", help="Confirm a pending order")
    confirm.add_argument("order_id")

    history = sub.add_parser("history", help="Transaction history of a customer or delivery location")
    history.add_argument("owner", choices=["customer", "location"])
    history.add_argument("owner_id")
    history.add_argument("--json", action="store_true", help="Print raw JSON")

    export = sub.add_parser("export-orders", help="Export orders to CSV")
    export.add_argument("output", type=Path)

    snapshot = sub.add_parser("snapshot", help="Export every collection to CSV")
    snapshot.add_argument("output_dir", type=Path)

    backend = sub.add_parser("backend", help="Show or set the default storage backend")
    backend.add_argument("name", nargs="?", choices=["json", "sqlite"])

    return parser


def _print_page_footer(page: int, total_pages: int, count: int, label: str) -> None:
    if total_pages > 1:
        start, end = pagination_range(page, total_pages)
        pages = " ".join(f"[{p}]" if p == page else str(p) for p in range(start, end + 1))
        print(f"Page {page}/{total_pages}: {pages}")
    print(f"{count} {label}(s)")


def _print_orders(orders: List[dict], page: int = 1) -> None:
    rows, total_pages = paginate(orders, page)
    for order in rows:
        print(
            f"{order.get('id') or '':<12} {format_date(order.get('orderDate')):<11} "
            f"{order.get('customerId') or '':<6} {order.get('deliveryLocationId') or '':<6} "
            f"{order.get('status') or '':<12} {format_currency(order.get('totalAmount')):>12}"
        )
    _print_page_footer(min(max(page, 1), total_pages), total_pages, len(orders), "order")


def _run(args: argparse.Namespace, storage: StorageAdapter) -> int:
    repos = RepositoryFactory(storage)

    if args.command == "seed":
        if seed_demo_data(storage, force=args.force):
            print("Demo data loaded")
        else:
            print("Demo data not loaded (customers already present, use --force)")
        return 0

    if args.command == "customers":
        filters = {"name": args.name, "contactPerson": args.contactPerson, "address": args.address}
        results = repos.customers().search(filters)
        rows, total_pages = paginate(results, args.page)
        for customer in rows:
            print(f"{customer.get('id') or '':<6} {customer.get('name') or '':<30} "
                  f"{customer.get('contactPerson') or ''}")
        _print_page_footer(min(max(args.page, 1), total_pages), total_pages, len(results), "customer")
        return 0

    if args.command == "orders":
        filters = {key: getattr(args, key) for key in
                   ("customerId", "deliveryLocationId", "status", "salesType", "assignedTo",
                    "startDate", "endDate")}
        _print_orders(repos.orders().search(filters), args.page)
        return 0

    if args.command == "confirm":
        order = repos.orders().confirm_order_or_raise(args.order_id)
        print(f"Order {order['id']} confirmed")
        return 0

    if args.command == "history":
        if args.owner == "customer":
            history = repos.customers().get_transaction_history(args.owner_id)
        else:
            history = repos.delivery_locations().get_transaction_history(args.owner_id)
        if args.json:
            print(json.dumps(history.to_dict(), ensure_ascii=False, indent=2))
        else:
            _print_orders(history.orders)
            print(f"{len(history.invoices)} invoice(s), {len(history.usage_records)} usage record(s), "
                  f"{len(history.activities)} activity(ies)")
        return 0

    if args.command == "export-orders":
        count = write_csv(order_export_rows(repos), args.output)
        print(f"Exported {count} order(s) to {args.output}")
        return 0

    if args.command == "snapshot":
        manifest = export_snapshot(storage, args.output_dir)
        total = sum(manifest["collections"].values())
        print(f"Exported {total} record(s) to {args.output_dir}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_dir, console_level=logging.INFO if args.verbose else logging.CRITICAL)
    data_dir = args.data_dir or config.DATA_DIR

    if args.command == "backend":
        settings_file = data_dir / config.SETTINGS_FILENAME
        if args.name:
            if not config.set_storage_backend(args.name, settings_file):
                print(f"Could not write {settings_file}", file=sys.stderr)
                return 1
        print(config.get_storage_backend(settings_file))
        return 0

    try:
        with StorageAdapter(data_dir=data_dir, force_backend=args.backend) as storage:
            return _run(args, storage)
    except RepositoryError as e:
        logger.warning(ErrorFormatter.format_repository_error(e, args.command).format_for_log())
        title, message = format_error_for_display(e, args.command)
        print(f"{title}: {message}", file=sys.stderr)
        return 1
    except InvalidFilterError as e:
        error_ctx = ErrorFormatter.format_validation_error("filters", str(e), "search filter")
        print(error_ctx.format_for_display(include_technical=True), file=sys.stderr)
        return 2
    except OSError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        title, message = format_error_for_display(e, args.command)
        print(f"{title}: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
