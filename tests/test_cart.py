"""
Cart value object and money helper tests
"""
import unittest
from decimal import Decimal

from models.cart import Cart, MAX_QUANTITY
from models.money import CENT, MAX_AMOUNT, to_money, to_minor, from_minor, format_money


class TestCart(unittest.TestCase):

    def test_add_accumulates(self):
        cart = Cart()
        cart.add("dosa")
        cart.add("dosa", 2)
        self.assertEqual(cart.quantity_of("dosa"), 3)
        self.assertIn("dosa", cart)
        self.assertEqual(len(cart), 1)

    def test_quantity_must_be_positive(self):
        cart = Cart({"dosa": 1})
        with self.assertRaises(ValueError):
            cart.set_quantity("dosa", 0)
        with self.assertRaises(ValueError):
            cart.add("chai", -1)
        self.assertEqual(cart.to_dict(), {"dosa": 1})

    def test_remove_and_clear(self):
        cart = Cart({"dosa": 1, "chai": 2})
        self.assertTrue(cart.remove("dosa"))
        self.assertFalse(cart.remove("dosa"))
        cart.clear()
        self.assertTrue(cart.is_empty)

    def test_snapshot_is_independent(self):
        cart = Cart({"dosa": 2, "chai": 1})
        snapshot = cart.snapshot()
        cart.clear()

        self.assertEqual(snapshot.to_dict(), {"dosa": 2, "chai": 1})
        self.assertEqual(snapshot.total_quantity, 3)
        self.assertFalse(snapshot.is_empty)

    def test_from_dict_rejects_bad_quantities(self):
        for bad in ({"dosa": "2"}, {"dosa": 1.5}, {"dosa": True}, {"dosa": 0}, ["dosa"]):
            with self.subTest(items=bad):
                with self.assertRaises(ValueError):
                    Cart.from_dict(bad)
        self.assertEqual(Cart.from_dict({"dosa": 2}).to_dict(), {"dosa": 2})

    def test_quantity_is_capped(self):
        cart = Cart({"dosa": MAX_QUANTITY})
        with self.assertRaises(ValueError):
            cart.add("dosa")
        with self.assertRaises(ValueError):
            Cart.from_dict({"dosa": 10 ** 17})
        self.assertEqual(cart.quantity_of("dosa"), MAX_QUANTITY)


class TestMoney(unittest.TestCase):

    def test_to_money_quantizes(self):
        self.assertEqual(to_money("45.5"), Decimal("45.50"))
        self.assertEqual(to_money(45.5), Decimal("45.50"))
        self.assertEqual(to_money("0.005"), Decimal("0.01"))
        self.assertEqual(to_money(120), Decimal("120.00"))

    def test_to_money_rejects_garbage(self):
        for value in ("abc", None, "NaN", "Infinity"):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    to_money(value)

    def test_to_money_rejects_out_of_range_and_bool(self):
        for value in (True, False, "100000000000000000", "1e30", "-1e30", MAX_AMOUNT + CENT):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    to_money(value)
        self.assertEqual(to_money(MAX_AMOUNT), MAX_AMOUNT)
        self.assertEqual(to_minor(MAX_AMOUNT), 999999999999)

    def test_minor_units(self):
        self.assertEqual(to_minor(Decimal("285.50")), 28550)
        self.assertEqual(from_minor(-28550), Decimal("-285.50"))
        self.assertEqual(from_minor(1), Decimal("0.01"))

    def test_no_float_drift(self):
        total = sum((to_money("0.10") for _ in range(10)), Decimal("0"))
        self.assertEqual(total, Decimal("1.00"))
        self.assertEqual(format_money(total), "₹1.00")


if __name__ == '__main__':
    unittest.main()
