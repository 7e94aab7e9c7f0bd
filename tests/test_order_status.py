"""
Order status lifecycle tests
"""
import os
import tempfile
import unittest
from decimal import Decimal

from core.canteen import CanteenSystem
from core.errors import InvalidStatusTransition, OrderNotFound, InvalidRequest
from models.cart import Cart
from models.order import OrderStatus, can_transition


class TestTransitionTable(unittest.TestCase):
    """Edges of the order lifecycle"""

    def test_forward_moves_allowed(self):
        self.assertTrue(can_transition(OrderStatus.RECEIVED, OrderStatus.PREPARING))
        self.assertTrue(can_transition(OrderStatus.PREPARING, OrderStatus.READY))
        self.assertTrue(can_transition(OrderStatus.READY, OrderStatus.DELIVERED))
        self.assertTrue(can_transition(OrderStatus.RECEIVED, OrderStatus.READY))

    def test_cancel_before_delivery(self):
        for status in (OrderStatus.RECEIVED, OrderStatus.PREPARING, OrderStatus.READY):
            with self.subTest(status=status):
                self.assertTrue(can_transition(status, OrderStatus.CANCELLED))

    def test_terminal_states_are_final(self):
        for target in OrderStatus:
            with self.subTest(target=target):
                self.assertFalse(can_transition(OrderStatus.DELIVERED, target))
                self.assertFalse(can_transition(OrderStatus.CANCELLED, target))

    def test_no_backward_or_self_moves(self):
        self.assertFalse(can_transition(OrderStatus.READY, OrderStatus.PREPARING))
        self.assertFalse(can_transition(OrderStatus.PREPARING, OrderStatus.RECEIVED))
        self.assertFalse(can_transition(OrderStatus.RECEIVED, OrderStatus.RECEIVED))


class TestOrderStatusService(unittest.TestCase):
    """Test cases for OrderService.update_status"""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.system = CanteenSystem(os.path.join(self.tmp.name, "canteen.db"))
        self.orders = self.system.order_service
        self.system.menu_service.add_item("Veg Thali", "120.00", item_id="thali")
        self.system.ledger_service.credit("student-1", "500.00")
        self.order = self.system.checkout_service.place_order(
            "student-1", Cart({"thali": 2}), "balance"
        )

    def tearDown(self):
        self.tmp.cleanup()

    def test_received_to_ready_directly(self):
        updated = self.orders.update_status(self.order.order_id, "ready")
        self.assertEqual(updated.status, OrderStatus.READY)
        self.assertEqual(self.orders.get_order(self.order.order_id).status, OrderStatus.READY)

    def test_delivered_to_preparing_rejected(self):
        self.orders.update_status(self.order.order_id, OrderStatus.DELIVERED)

        with self.assertRaises(InvalidStatusTransition) as ctx:
            self.orders.update_status(self.order.order_id, OrderStatus.PREPARING)

        self.assertEqual(ctx.exception.current, "delivered")
        self.assertEqual(ctx.exception.requested, "preparing")
        self.assertEqual(self.orders.get_order(self.order.order_id).status, OrderStatus.DELIVERED)

    def test_full_lifecycle(self):
        for status in ("preparing", "ready", "delivered"):
            self.orders.update_status(self.order.order_id, status)
        self.assertEqual(self.orders.get_order(self.order.order_id).status, OrderStatus.DELIVERED)

    def test_status_change_keeps_total_and_lines(self):
        self.orders.update_status(self.order.order_id, "preparing")
        stored = self.orders.get_order(self.order.order_id)
        self.assertEqual(stored.total_amount, Decimal("240.00"))
        self.assertEqual([(line.item_id, line.quantity) for line in stored.lines], [("thali", 2)])

    def test_cancel_records_note(self):
        cancelled = self.orders.cancel_order(self.order.order_id, "Out of rice")
        self.assertEqual(cancelled.status, OrderStatus.CANCELLED)
        self.assertEqual(cancelled.status_note, "Out of rice")

        with self.assertRaises(InvalidStatusTransition):
            self.orders.update_status(self.order.order_id, "ready")

    def test_unknown_order_and_status(self):
        with self.assertRaises(OrderNotFound):
            self.orders.update_status("missing", "ready")
        with self.assertRaises(InvalidRequest):
            self.orders.update_status(self.order.order_id, "eaten")

    def test_customer_cannot_see_other_orders(self):
        with self.assertRaises(OrderNotFound):
            self.orders.get_order(self.order.order_id, customer_id="student-2")
        self.assertEqual(self.orders.get_order(self.order.order_id, "student-1").order_id,
                         self.order.order_id)

    def test_active_orders_and_summary(self):
        self.system.checkout_service.place_order("student-2", Cart({"thali": 1}), "external")
        self.orders.cancel_order(self.order.order_id)

        active = self.orders.active_orders()
        self.assertEqual(len(active), 1)
        self.assertEqual(active[0].customer_id, "student-2")

        summary = self.orders.sales_summary()
        self.assertEqual(summary["total_orders"], 1)
        self.assertEqual(summary["total_revenue"], "120.00")
        self.assertEqual(summary["unique_customers"], 1)
        self.assertEqual(summary["average_order_value"], "120.00")
        self.assertEqual(summary["active_orders"], 1)


if __name__ == '__main__':
    unittest.main()
