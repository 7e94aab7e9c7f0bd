"""
Order related data models
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Dict, Any, FrozenSet


class OrderStatus(Enum):
    RECEIVED = "received"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class PaymentMethod(Enum):
    BALANCE = "balance"
    EXTERNAL = "external"


# Kitchen progression; staff may skip forward but never move back
_PROGRESSION = [
    OrderStatus.RECEIVED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
]


def _build_transitions() -> Dict[OrderStatus, FrozenSet[OrderStatus]]:
    transitions = {}
    for index, status in enumerate(_PROGRESSION):
        targets = set(_PROGRESSION[index + 1:])
        if not status.is_terminal:
            targets.add(OrderStatus.CANCELLED)
        transitions[status] = frozenset(targets)
    transitions[OrderStatus.CANCELLED] = frozenset()
    return transitions


ALLOWED_TRANSITIONS = _build_transitions()


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """Whether current -> requested is an edge of the order lifecycle"""
    return requested in ALLOWED_TRANSITIONS[current]


@dataclass(frozen=True)
class OrderLine:
    """Order line data model - price is captured at order time"""
    line_id: str
    order_id: str
    item_id: str
    item_name: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "line_id": self.line_id,
            "order_id": self.order_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "subtotal": str(self.subtotal)
        }


@dataclass
class Order:
    """Order data model"""
    order_id: str
    customer_id: str
    total_amount: Decimal
    payment_method: PaymentMethod
    status: OrderStatus
    created_at: str
    lines: List[OrderLine] = field(default_factory=list)
    updated_at: Optional[str] = None
    checkout_key: Optional[str] = None
    payment_reference: Optional[str] = None
    status_note: Optional[str] = None

    @property
    def short_id(self) -> str:
        return self.order_id[:8]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "total_amount": str(self.total_amount),
            "payment_method": self.payment_method.value,
            "status": self.status.value,
            "status_note": self.status_note,
            "payment_reference": self.payment_reference,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "lines": [line.to_dict() for line in self.lines]
        }
