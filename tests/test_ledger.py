"""
Balance ledger tests - credits, debits, the sum invariant and concurrent debits
"""
import os
import tempfile
import threading
import unittest
from decimal import Decimal

from core.canteen import CanteenSystem
from core.errors import InsufficientBalance, InvalidAmount
from models.cart import Cart
from models.ledger import EntryKind


class TestLedger(unittest.TestCase):
    """Test cases for LedgerService"""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.tmp.name, "canteen.db")
        self.system = CanteenSystem(self.db_path)
        self.ledger = self.system.ledger_service
        self.customer = "student-1"

    def tearDown(self):
        self.tmp.cleanup()

    def test_unknown_customer_has_zero_balance(self):
        self.assertEqual(self.ledger.get_balance("nobody"), Decimal("0.00"))
        self.assertTrue(self.ledger.verify("nobody"))

    def test_credit_appends_topup(self):
        entry = self.ledger.credit(self.customer, "250")

        self.assertEqual(entry.kind, EntryKind.TOPUP)
        self.assertEqual(entry.amount, Decimal("250.00"))
        self.assertEqual(entry.description, "Wallet top-up of ₹250.00")
        self.assertIsNone(entry.order_id)
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("250.00"))

    def test_credit_rejects_non_positive_amounts(self):
        for amount in ("0", "-10", "abc", None):
            with self.subTest(amount=amount):
                with self.assertRaises(InvalidAmount):
                    self.ledger.credit(self.customer, amount)
        self.assertEqual(self.ledger.get_history(self.customer), [])

    def test_debit_appends_linked_deduction(self):
        self.ledger.credit(self.customer, "100.00")
        entry = self.ledger.debit(self.customer, "30.25", "abcdef12-3456")

        self.assertEqual(entry.kind, EntryKind.DEDUCTION)
        self.assertEqual(entry.amount, Decimal("-30.25"))
        self.assertEqual(entry.order_id, "abcdef12-3456")
        self.assertEqual(entry.description, "Payment for order #abcdef12")
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("69.75"))

    def test_debit_refused_leaves_state_untouched(self):
        self.ledger.credit(self.customer, "50.00")

        with self.assertRaises(InsufficientBalance) as ctx:
            self.ledger.debit(self.customer, "50.01", "order-1")

        self.assertEqual(ctx.exception.available, Decimal("50.00"))
        self.assertEqual(ctx.exception.required, Decimal("50.01"))
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("50.00"))
        self.assertEqual(len(self.ledger.get_history(self.customer)), 1)

    def test_debit_exact_balance(self):
        self.ledger.credit(self.customer, "80.00")
        self.ledger.debit(self.customer, "80.00", "order-1")
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("0.00"))

    def test_balance_matches_entry_sum(self):
        self.ledger.credit(self.customer, "100.00")
        self.ledger.debit(self.customer, "12.34", "order-1")
        self.ledger.credit(self.customer, "7.66")
        with self.assertRaises(InsufficientBalance):
            self.ledger.debit(self.customer, "500.00", "order-2")

        history = self.ledger.get_history(self.customer)
        self.assertEqual(sum(entry.amount for entry in history), self.ledger.get_balance(self.customer))
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("95.32"))
        self.assertTrue(self.ledger.verify(self.customer))
        # Newest first
        self.assertEqual(history[0].amount, Decimal("7.66"))

    def run_concurrently(self, targets):
        barrier = threading.Barrier(len(targets))
        outcomes = []
        lock = threading.Lock()

        def worker(target):
            barrier.wait()
            try:
                target()
                result = "ok"
            except InsufficientBalance:
                result = "insufficient"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker, args=(t,)) for t in targets]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return outcomes

    def test_two_concurrent_debits(self):
        """100.00 balance, two 80.00 debits: exactly one wins"""
        self.ledger.credit(self.customer, "100.00")
        # A second system on the same file stands in for another process
        other = CanteenSystem(self.db_path).ledger_service

        outcomes = self.run_concurrently([
            lambda: self.ledger.debit(self.customer, "80.00", "order-1"),
            lambda: other.debit(self.customer, "80.00", "order-2"),
        ])

        self.assertEqual(sorted(outcomes), ["insufficient", "ok"])
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("20.00"))
        self.assertTrue(self.ledger.verify(self.customer))

    def test_many_concurrent_debits_exhaust_exactly(self):
        self.ledger.credit(self.customer, "100.00")

        outcomes = self.run_concurrently([
            (lambda n=n: self.ledger.debit(self.customer, "30.00", f"order-{n}"))
            for n in range(6)
        ])

        self.assertEqual(outcomes.count("ok"), 3)
        self.assertEqual(outcomes.count("insufficient"), 3)
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("10.00"))
        self.assertTrue(self.ledger.verify(self.customer))

    def test_concurrent_checkouts_same_customer(self):
        """Two sessions checking out against one wallet never overdraw it"""
        self.system.menu_service.add_item("Thali", "80.00", item_id="thali")
        self.ledger.credit(self.customer, "100.00")

        sessions = [self.system, CanteenSystem(self.db_path)]
        outcomes = self.run_concurrently([
            (lambda s=s: s.checkout_service.place_order(self.customer, Cart({"thali": 1}), "balance"))
            for s in sessions
        ])

        self.assertEqual(sorted(outcomes), ["insufficient", "ok"])
        self.assertEqual(len(self.system.order_service.list_orders(self.customer)), 1)
        self.assertEqual(self.ledger.get_balance(self.customer), Decimal("20.00"))
        self.assertTrue(self.ledger.verify(self.customer))


if __name__ == '__main__':
    unittest.main()
