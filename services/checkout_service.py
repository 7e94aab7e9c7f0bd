"""
Checkout service - turns a client cart into a durable, paid order
"""
import logging
import uuid
from decimal import Decimal
from typing import Optional, Union

from core.errors import EmptyCart, ItemUnavailable, InsufficientBalance, InvalidRequest
from models.cart import Cart
from models.events import EventKind
from models.order import Order, OrderLine, OrderStatus, PaymentMethod
from models.money import to_money
from database.connection import DatabaseConnection, timestamp
from database.repository import OrderRepository, EventRepository
from .menu_service import MenuService
from .ledger_service import LedgerService
from .notifier import StatusNotifier

logger = logging.getLogger(__name__)

# Names the storefront used for the two payment channels
_PAYMENT_ALIASES = {
    "wallet": PaymentMethod.BALANCE,
    "online": PaymentMethod.EXTERNAL,
}


def parse_payment_method(value: Union[str, PaymentMethod]) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    key = str(value or "").strip().lower()
    if key in _PAYMENT_ALIASES:
        return _PAYMENT_ALIASES[key]
    try:
        return PaymentMethod(key)
    except ValueError:
        raise InvalidRequest(f"Unknown payment method: {value!r}")


class CheckoutService:
    # Checkout orchestration: price resolution, balance check, atomic persist + debit

    def __init__(self, db_connection: DatabaseConnection, menu_service: MenuService,
                 order_repository: OrderRepository, ledger_service: LedgerService,
                 event_repository: EventRepository, notifier: StatusNotifier):
        self.db = db_connection
        self.menu_service = menu_service
        self.order_repo = order_repository
        self.ledger_service = ledger_service
        self.event_repo = event_repository
        self.notifier = notifier

    def place_order(self, customer_id: str, cart: Cart,
                    payment_method: Union[str, PaymentMethod] = PaymentMethod.BALANCE,
                    checkout_key: Optional[str] = None,
                    payment_reference: Optional[str] = None) -> Order:
        """
        Place an order for everything in ``cart``.

        Prices come from the menu, never from the client. The order, its
        lines, the balance debit with its ledger entry and the order_created
        event commit together or not at all. The cart is cleared only after
        that commit. Passing the same ``checkout_key`` again returns the
        order already placed with it instead of charging twice.

        Raises EmptyCart, ItemUnavailable, InsufficientBalance or
        PersistenceFailure; on any of them nothing is written and the cart
        is left as it was.
        """
        if not customer_id:
            raise InvalidRequest("A customer id is required to place an order.")
        method = parse_payment_method(payment_method)

        # A retry of a checkout that already committed
        if checkout_key:
            existing = self.order_repo.find_by_checkout_key(customer_id, checkout_key)
            if existing is not None:
                return self._replayed(existing, cart)

        snapshot = cart.snapshot()
        if snapshot.is_empty:
            raise EmptyCart()

        # Authoritative prices for every cart entry
        order_id = str(uuid.uuid4())
        items = self.menu_service.get_items([item_id for item_id, _ in snapshot])
        lines = []
        for item_id, quantity in snapshot:
            item = items.get(item_id)
            if item is None or not item.is_available:
                raise ItemUnavailable(item_id, item.name if item else None)
            lines.append(OrderLine(
                line_id=str(uuid.uuid4()),
                order_id=order_id,
                item_id=item.item_id,
                item_name=item.name,
                quantity=quantity,
                unit_price=item.price
            ))

        try:
            total = to_money(sum((line.subtotal for line in lines), Decimal("0")))
        except ValueError:
            raise InvalidRequest("Order total is too large.")

        # Early refusal only; the debit below re-checks under the write lock
        if method is PaymentMethod.BALANCE:
            balance = self.ledger_service.get_balance(customer_id)
            if balance < total:
                raise InsufficientBalance(required=total, available=balance)

        order = Order(
            order_id=order_id,
            customer_id=customer_id,
            total_amount=total,
            payment_method=method,
            status=OrderStatus.RECEIVED,
            created_at=timestamp(),
            lines=lines,
            checkout_key=checkout_key,
            payment_reference=payment_reference
        )

        with self.db.transaction() as conn:
            # Same key committed by a concurrent session since the check above
            existing = None
            if checkout_key:
                existing = self.order_repo.find_by_checkout_key(customer_id, checkout_key, conn)
            if existing is None:
                event = self._persist(conn, order)

        if existing is not None:
            return self._replayed(existing, cart)

        self.notifier.publish(event)
        logger.info("Order %s placed by %s: %s via %s", order.order_id, customer_id,
                    order.total_amount, method.value)
        cart.clear()
        return order

    def _replayed(self, existing: Order, cart: Cart) -> Order:
        logger.info("Checkout key %s already used by order %s; returning it",
                    existing.checkout_key, existing.order_id)
        cart.clear()
        return existing

    def _persist(self, conn, order: Order):
        self.order_repo.insert_order(conn, order)
        if order.payment_method is PaymentMethod.BALANCE:
            self.ledger_service.debit(
                order.customer_id, order.total_amount, order.order_id, conn=conn
            )
        return self.event_repo.append(
            conn, order.order_id, order.customer_id, EventKind.ORDER_CREATED, order.status
        )
