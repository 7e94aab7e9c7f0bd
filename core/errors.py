"""
Canteen error taxonomy

Every failure carries a stable ``code`` so callers (and the HTTP layer) can
tell reasons apart without parsing messages.
"""
from decimal import Decimal
from typing import Optional, Dict, Any


class CanteenError(Exception):
    """Base class for all canteen failures"""
    code = "canteen_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": self.code
        }


class EmptyCart(CanteenError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty. Add items to cart before placing order.")


class ItemUnavailable(CanteenError):
    code = "item_unavailable"

    def __init__(self, item_id: str, name: Optional[str] = None):
        label = f"{name} ({item_id})" if name else item_id
        super().__init__(f"Menu item {label} is no longer available.")
        self.item_id = item_id

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["item_id"] = self.item_id
        return result


class InsufficientBalance(CanteenError):
    code = "insufficient_balance"

    def __init__(self, required: Decimal, available: Optional[Decimal] = None):
        if available is None:
            message = f"Insufficient balance for a payment of ₹{required:.2f}."
        else:
            message = (f"Insufficient balance: ₹{available:.2f} available, "
                       f"₹{required:.2f} required.")
        super().__init__(message)
        self.required = required
        self.available = available


class InvalidStatusTransition(CanteenError):
    code = "invalid_status_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change order status from '{current}' to '{requested}'.")
        self.current = current
        self.requested = requested

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["current_status"] = self.current
        result["requested_status"] = self.requested
        return result


class PersistenceFailure(CanteenError):
    code = "persistence_failure"


class OrderNotFound(CanteenError):
    code = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found.")
        self.order_id = order_id


class InvalidAmount(CanteenError):
    code = "invalid_amount"


class InvalidRequest(CanteenError):
    code = "invalid_request"
