"""
Models package for Canteen Orders
Contains data models and type definitions
"""

from .menu import MenuItem
from .cart import Cart, CartSnapshot
from .order import Order, OrderLine, OrderStatus, PaymentMethod, can_transition
from .ledger import LedgerEntry, EntryKind
from .events import OrderEvent, EventKind

__all__ = [
    'MenuItem',
    'Cart', 'CartSnapshot',
    'Order', 'OrderLine', 'OrderStatus', 'PaymentMethod', 'can_transition',
    'LedgerEntry', 'EntryKind',
    'OrderEvent', 'EventKind'
]
