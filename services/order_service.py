"""
Order service - order lookups and the staff-driven status lifecycle
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Any, Union

from core.errors import InvalidStatusTransition, OrderNotFound, InvalidRequest
from models.events import EventKind
from models.order import Order, OrderStatus, can_transition
from models.money import to_money
from database.connection import DatabaseConnection
from database.repository import OrderRepository, EventRepository
from .notifier import StatusNotifier

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = [OrderStatus.RECEIVED, OrderStatus.PREPARING, OrderStatus.READY]


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value or "").strip().lower())
    except ValueError:
        raise InvalidRequest(f"Unknown order status: {value!r}")


class OrderService:
    # Order queries for both roles; status changes for staff

    def __init__(self, db_connection: DatabaseConnection, order_repository: OrderRepository,
                 event_repository: EventRepository, notifier: StatusNotifier):
        self.db = db_connection
        self.order_repo = order_repository
        self.event_repo = event_repository
        self.notifier = notifier

    def get_order(self, order_id: str, customer_id: Optional[str] = None) -> Order:
        # With customer_id, another customer's order is reported as missing
        order = self.order_repo.get_order(order_id)
        if order is None or (customer_id and order.customer_id != customer_id):
            raise OrderNotFound(order_id)
        return order

    def list_orders(self, customer_id: Optional[str] = None,
                    status: Optional[Union[str, OrderStatus]] = None,
                    limit: Optional[int] = None) -> List[Order]:
        statuses = [parse_status(status)] if status else None
        return self.order_repo.list_orders(customer_id, statuses, limit)

    def active_orders(self) -> List[Order]:
        return self.order_repo.list_orders(statuses=ACTIVE_STATUSES)

    def update_status(self, order_id: str, new_status: Union[str, OrderStatus],
                      note: Optional[str] = None) -> Order:
        """
        Move an order along its lifecycle.

        The current status is read and replaced inside one write transaction,
        together with the status_changed event; subscribers are notified after
        commit. An edge that does not exist raises InvalidStatusTransition and
        leaves the order untouched.
        """
        requested = parse_status(new_status)

        with self.db.transaction() as conn:
            row = self.order_repo.get_status(conn, order_id)
            if row is None:
                raise OrderNotFound(order_id)

            current = OrderStatus(row["status"])
            if not can_transition(current, requested):
                raise InvalidStatusTransition(current.value, requested.value)

            # Cannot miss under BEGIN IMMEDIATE, but never write over a status we did not read
            if not self.order_repo.update_status(conn, order_id, current, requested, note):
                raise InvalidStatusTransition(current.value, requested.value)

            event = self.event_repo.append(
                conn, order_id, row["customer_id"], EventKind.STATUS_CHANGED,
                requested, previous_status=current
            )
            order = self.order_repo.get_order(order_id, conn)

        self.notifier.publish(event)
        logger.info("Order %s: %s -> %s", order_id, current.value, requested.value)
        return order

    def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Order:
        return self.update_status(order_id, OrderStatus.CANCELLED, note=reason)

    def sales_summary(self) -> Dict[str, Any]:
        # Totals for the staff analytics panel; cancelled orders are excluded
        totals = self.order_repo.sales_totals()
        count = totals["total_orders"]
        revenue = totals["revenue"]
        average = to_money(revenue / count) if count else Decimal("0.00")
        return {
            "total_orders": count,
            "total_revenue": str(revenue),
            "unique_customers": totals["unique_customers"],
            "average_order_value": str(average),
            "active_orders": len(self.active_orders())
        }
