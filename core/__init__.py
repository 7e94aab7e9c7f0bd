"""
Core package for Canteen Orders
Contains the error taxonomy, logging setup and the CanteenSystem facade
(import it from core.canteen)
"""

from .errors import (
    CanteenError, EmptyCart, ItemUnavailable, InsufficientBalance,
    InvalidStatusTransition, PersistenceFailure, OrderNotFound,
    InvalidAmount, InvalidRequest
)

__all__ = [
    'CanteenError', 'EmptyCart', 'ItemUnavailable', 'InsufficientBalance',
    'InvalidStatusTransition', 'PersistenceFailure', 'OrderNotFound',
    'InvalidAmount', 'InvalidRequest'
]
