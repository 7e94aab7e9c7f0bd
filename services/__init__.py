"""
Services package for Canteen Orders
Contains business logic services
"""

from .menu_service import MenuService
from .ledger_service import LedgerService
from .notifier import StatusNotifier, Subscription
from .checkout_service import CheckoutService
from .order_service import OrderService

__all__ = [
    'MenuService', 'LedgerService', 'StatusNotifier', 'Subscription',
    'CheckoutService', 'OrderService'
]
