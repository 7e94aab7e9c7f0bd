"""
Main CanteenSystem class - wires repositories and services together
"""
import logging
from typing import Dict, Any, Optional, Mapping

from database.connection import DatabaseConnection
from database.repository import MenuRepository, LedgerRepository, OrderRepository, EventRepository
from services.menu_service import MenuService
from services.ledger_service import LedgerService
from services.notifier import StatusNotifier, Subscription
from services.checkout_service import CheckoutService
from services.order_service import OrderService
from models.cart import Cart
from .errors import CanteenError, InvalidRequest

logger = logging.getLogger(__name__)


class CanteenSystem:
    # Entry point shared by the HTTP layer, scripts and tests.
    # Methods return response dicts: {"success": True, ...} or the error's to_dict().

    def __init__(self, db_path: str = "canteen.db", db_timeout: float = 10.0):
        self.db_connection = DatabaseConnection(db_path, timeout=db_timeout)

        # Repository layer (data access)
        self.menu_repo = MenuRepository(self.db_connection)
        self.ledger_repo = LedgerRepository(self.db_connection)
        self.order_repo = OrderRepository(self.db_connection)
        self.event_repo = EventRepository(self.db_connection)

        # Service layer (business logic)
        self.notifier = StatusNotifier(self.event_repo)
        self.menu_service = MenuService(self.menu_repo)
        self.ledger_service = LedgerService(self.db_connection, self.ledger_repo)
        self.checkout_service = CheckoutService(
            self.db_connection, self.menu_service, self.order_repo,
            self.ledger_service, self.event_repo, self.notifier
        )
        self.order_service = OrderService(
            self.db_connection, self.order_repo, self.event_repo, self.notifier
        )

    # === Menu ===
    def get_menu(self) -> Dict[str, Any]:
        try:
            grouped = self.menu_service.menu_by_cuisine()
        except CanteenError as e:
            return e.to_dict()
        return {
            "success": True,
            "menu": grouped,
            "total_items": sum(len(items) for items in grouped.values())
        }

    def set_item_availability(self, item_id: str, is_available: bool) -> Dict[str, Any]:
        try:
            if not self.menu_service.set_availability(item_id, is_available):
                return InvalidRequest(f"Menu item {item_id} not found.").to_dict()
        except CanteenError as e:
            return e.to_dict()
        return {
            "success": True,
            "item_id": item_id,
            "is_available": is_available
        }

    # === Checkout ===
    def place_order(self, customer_id: str, cart: Cart, payment_method: str = "balance",
                    checkout_key: Optional[str] = None,
                    payment_reference: Optional[str] = None) -> Dict[str, Any]:
        try:
            order = self.checkout_service.place_order(
                customer_id, cart, payment_method, checkout_key, payment_reference
            )
        except CanteenError as e:
            logger.info("Checkout failed for %s: %s", customer_id, e.code)
            return e.to_dict()
        return {
            "success": True,
            "order": order.to_dict(),
            "message": f"Order placed! Order #{order.short_id} has been received."
        }

    def checkout_items(self, customer_id: str, items: Mapping[str, Any],
                       payment_method: str = "balance",
                       checkout_key: Optional[str] = None,
                       payment_reference: Optional[str] = None) -> Dict[str, Any]:
        # Checkout from a request body where the client sends its cart as {item_id: quantity}
        try:
            cart = Cart.from_dict(items)
        except ValueError as e:
            return InvalidRequest(str(e)).to_dict()
        return self.place_order(customer_id, cart, payment_method, checkout_key, payment_reference)

    # === Wallet ===
    def get_wallet(self, customer_id: str, limit: int = 20) -> Dict[str, Any]:
        try:
            balance = self.ledger_service.get_balance(customer_id)
            history = self.ledger_service.get_history(customer_id, limit)
        except CanteenError as e:
            return e.to_dict()
        return {
            "success": True,
            "customer_id": customer_id,
            "balance": str(balance),
            "history": [entry.to_dict() for entry in history]
        }

    def top_up(self, customer_id: str, amount: Any) -> Dict[str, Any]:
        try:
            entry = self.ledger_service.credit(customer_id, amount)
            balance = self.ledger_service.get_balance(customer_id)
        except CanteenError as e:
            return e.to_dict()
        return {
            "success": True,
            "entry": entry.to_dict(),
            "balance": str(balance),
            "message": f"₹{entry.amount:.2f} has been added to your wallet"
        }

    # === Orders ===
    def get_order_details(self, order_id: str, customer_id: Optional[str] = None) -> Dict[str, Any]:
        try:
            order = self.order_service.get_order(order_id, customer_id)
        except CanteenError as e:
            return e.to_dict()
        return {"success": True, "order": order.to_dict()}

    def list_orders(self, customer_id: Optional[str] = None,
                    status: Optional[str] = None) -> Dict[str, Any]:
        try:
            orders = self.order_service.list_orders(customer_id, status)
        except CanteenError as e:
            return e.to_dict()
        return {
            "success": True,
            "orders": [order.to_dict() for order in orders],
            "active": sum(1 for order in orders if not order.status.is_terminal)
        }

    def update_order_status(self, order_id: str, status: str,
                            note: Optional[str] = None) -> Dict[str, Any]:
        try:
            order = self.order_service.update_status(order_id, status, note)
        except CanteenError as e:
            return e.to_dict()
        return {
            "success": True,
            "order": order.to_dict(),
            "message": f"Order status changed to {order.status.value}"
        }

    def sales_summary(self) -> Dict[str, Any]:
        try:
            summary = self.order_service.sales_summary()
        except CanteenError as e:
            return e.to_dict()
        return dict(summary, success=True)

    # === Status fan-out ===
    def subscribe(self, customer_id: Optional[str] = None) -> Subscription:
        return self.notifier.subscribe(customer_id)

    def replay_events(self, after_event_id: int = 0, customer_id: Optional[str] = None):
        return self.notifier.replay(after_event_id, customer_id)
