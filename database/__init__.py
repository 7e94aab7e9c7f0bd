"""
Database package for Canteen Orders
Contains database connection and repository classes
"""

from .connection import DatabaseConnection
from .repository import MenuRepository, LedgerRepository, OrderRepository, EventRepository

__all__ = [
    'DatabaseConnection',
    'MenuRepository', 'LedgerRepository', 'OrderRepository', 'EventRepository'
]
