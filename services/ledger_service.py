"""
Ledger service - prepaid balance and its audit trail

Balance changes and their ledger entries are always written in the same
transaction, so for every customer the balance equals the sum of entries.
"""
import logging
import sqlite3
from decimal import Decimal
from typing import List, Optional, Any

from core.errors import InsufficientBalance, InvalidAmount
from models.ledger import LedgerEntry, EntryKind
from models.money import to_money, format_money
from database.connection import DatabaseConnection
from database.repository import LedgerRepository

logger = logging.getLogger(__name__)


class LedgerService:
    # Credits (top-ups) and debits (order payments) against a customer's wallet

    def __init__(self, db_connection: DatabaseConnection, ledger_repository: LedgerRepository):
        self.db = db_connection
        self.ledger_repo = ledger_repository

    @staticmethod
    def _positive_amount(amount: Any) -> Decimal:
        try:
            value = to_money(amount)
        except ValueError as e:
            raise InvalidAmount(str(e))
        if value <= Decimal("0"):
            raise InvalidAmount("Amount must be greater than zero.")
        return value

    def get_balance(self, customer_id: str) -> Decimal:
        return self.ledger_repo.get_balance(customer_id)

    def get_history(self, customer_id: str, limit: Optional[int] = None) -> List[LedgerEntry]:
        return self.ledger_repo.list_entries(customer_id, limit)

    def credit(self, customer_id: str, amount: Any, description: Optional[str] = None) -> LedgerEntry:
        value = self._positive_amount(amount)
        description = description or f"Wallet top-up of {format_money(value)}"

        with self.db.transaction() as conn:
            self.ledger_repo.ensure_customer(conn, customer_id)
            self.ledger_repo.add_to_balance(conn, customer_id, value)
            entry = self.ledger_repo.append_entry(
                conn, customer_id, value, EntryKind.TOPUP, description
            )

        logger.info("Credited %s to %s (entry %s)", value, customer_id, entry.entry_id)
        return entry

    def debit(self, customer_id: str, amount: Any, order_id: str,
              description: Optional[str] = None,
              conn: Optional[sqlite3.Connection] = None) -> LedgerEntry:
        """
        Take amount from the customer's balance for order_id.

        The balance check and the decrement are one conditional UPDATE run
        under the database write lock, so concurrent debits can never both
        pass against the same funds. With ``conn`` the debit joins the
        caller's transaction; otherwise it commits on its own.
        Raises InsufficientBalance, leaving balance and ledger untouched.
        """
        value = self._positive_amount(amount)
        description = description or f"Payment for order #{order_id[:8]}"

        if conn is None:
            with self.db.transaction() as own_conn:
                return self._debit(own_conn, customer_id, value, order_id, description)
        return self._debit(conn, customer_id, value, order_id, description)

    def _debit(self, conn: sqlite3.Connection, customer_id: str, value: Decimal,
               order_id: str, description: str) -> LedgerEntry:
        if not self.ledger_repo.subtract_if_covered(conn, customer_id, value):
            available = self.ledger_repo.get_balance(customer_id, conn)
            logger.info("Debit of %s refused for %s: balance %s", value, customer_id, available)
            raise InsufficientBalance(required=value, available=available)

        entry = self.ledger_repo.append_entry(
            conn, customer_id, -value, EntryKind.DEDUCTION, description, order_id=order_id
        )
        logger.info("Debited %s from %s for order %s", value, customer_id, order_id)
        return entry

    def verify(self, customer_id: str) -> bool:
        # balance == sum(entries)
        totals = self.ledger_repo.balance_and_entry_sum(customer_id)
        consistent = totals["balance"] == totals["entry_sum"]
        if not consistent:
            logger.error("Ledger mismatch for %s: balance %s, entries %s",
                         customer_id, totals["balance"], totals["entry_sum"])
        return consistent
