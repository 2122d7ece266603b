"""
Transaction history workflow: everything recorded against one customer or
one delivery location, gathered across collections.
"""
import logging
from typing import List, Set

from ..domain.models import Record, TransactionHistory
from ..repositories import RepositoryFactory

logger = logging.getLogger(__name__)


class TransactionHistoryWorkflow:
    """
    Join orders, invoices, usage records and activities for one owner.

    Each list is queried independently and returned as stored (orders are
    sorted most recent first); no cross-validation between lists.
    """

    def __init__(self, repos: RepositoryFactory):
        self.repos = repos

    def for_customer(self, customer_id: str) -> TransactionHistory:
        """
        History of one customer.

        Usage records carry only a delivery location, so they are collected
        through the customer's delivery locations.
        """
        location_ids = {loc["id"] for loc in self.repos.customers().get_delivery_locations(customer_id)}
        history = TransactionHistory(
            orders=self.repos.orders().get_customer_order_history(customer_id),
            invoices=self.repos.invoices().search({"customerId": customer_id}),
            usage_records=[
                r for r in self.repos.usage_records().get_all()
                if r.get("deliveryLocationId") in location_ids
            ],
            activities=self.repos.activities().search({"customerId": customer_id}),
        )
        logger.debug(
            f"History for customer {customer_id}: {len(history.orders)} orders, "
            f"{len(history.invoices)} invoices, {len(history.usage_records)} usage records, "
            f"{len(history.activities)} activities"
        )
        return history

    def for_delivery_location(self, location_id: str) -> TransactionHistory:
        """
        History of one delivery location.

        Invoices are addressed to customers, so an invoice belongs to the
        location when one of its items bills an order or a usage record of
        that location.
        """
        orders = self.repos.orders().get_delivery_location_order_history(location_id)
        usage_records = self.repos.usage_records().search({"deliveryLocationId": location_id})
        history = TransactionHistory(
            orders=orders,
            invoices=self._invoices_referencing(
                {o["id"] for o in orders}, {u["id"] for u in usage_records}
            ),
            usage_records=usage_records,
            activities=self.repos.activities().search({"deliveryLocationId": location_id}),
        )
        logger.debug(
            f"History for delivery location {location_id}: {len(history.orders)} orders, "
            f"{len(history.invoices)} invoices, {len(history.usage_records)} usage records, "
            f"{len(history.activities)} activities"
        )
        return history

    def _invoices_referencing(self, order_ids: Set[str], usage_ids: Set[str]) -> List[Record]:
        if not order_ids and not usage_ids:
            return []
        return [
            invoice for invoice in self.repos.invoices().get_all()
            if any(
                item.get("orderId") in order_ids or item.get("usageId") in usage_ids
                for item in invoice.get("items") or []
            )
        ]
