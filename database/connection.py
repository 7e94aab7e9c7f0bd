"""
Database connection management
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator

from core.errors import PersistenceFailure

logger = logging.getLogger(__name__)


def timestamp() -> str:
    # ISO-8601 UTC, sortable as text
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class DatabaseConnection:
    # Manages SQLite connections and the schema shared by every process

    def __init__(self, db_path: str = "canteen.db", timeout: float = 10.0):
        self.db_path = db_path
        # Seconds a writer waits for the database lock before giving up
        self.timeout = timeout
        self.init_database()

    def init_database(self):
        # Create tables on first use
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute('''
            CREATE TABLE IF NOT EXISTS Menu_Items (
                item_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                price INTEGER NOT NULL CHECK (price > 0),
                cuisine_type TEXT NOT NULL DEFAULT 'Indian',
                is_veg INTEGER NOT NULL DEFAULT 1,
                is_available INTEGER NOT NULL DEFAULT 1,
                updated_at TIMESTAMP
            )
            ''')

            # Balance is the authoritative wallet amount in paise
            cursor.execute('''
            CREATE TABLE IF NOT EXISTS Customers (
                customer_id TEXT PRIMARY KEY,
                display_name TEXT,
                balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
                created_at TIMESTAMP
            )
            ''')

            cursor.execute('''
            CREATE TABLE IF NOT EXISTS Orders (
                order_id TEXT PRIMARY KEY,
                customer_id TEXT NOT NULL,
                total_amount INTEGER NOT NULL CHECK (total_amount >= 0),
                payment_method TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'received',
                status_note TEXT,
                checkout_key TEXT,
                payment_reference TEXT,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP,
                UNIQUE (customer_id, checkout_key)
            )
            ''')

            cursor.execute('''
            CREATE TABLE IF NOT EXISTS Order_Items (
                line_id TEXT PRIMARY KEY,
                order_id TEXT NOT NULL,
                item_id TEXT NOT NULL,
                item_name TEXT NOT NULL,
                quantity INTEGER NOT NULL CHECK (quantity > 0),
                unit_price INTEGER NOT NULL,
                subtotal INTEGER NOT NULL,
                FOREIGN KEY(order_id) REFERENCES Orders(order_id)
            )
            ''')

            cursor.execute('''
            CREATE TABLE IF NOT EXISTS Ledger_Entries (
                entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
                customer_id TEXT NOT NULL,
                amount INTEGER NOT NULL,
                kind TEXT NOT NULL,
                order_id TEXT,
                description TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
            ''')

            # Outbox of order events, written in the same transaction as the change
            cursor.execute('''
            CREATE TABLE IF NOT EXISTS Order_Events (
                event_id INTEGER PRIMARY KEY AUTOINCREMENT,
                order_id TEXT NOT NULL,
                customer_id TEXT NOT NULL,
                kind TEXT NOT NULL,
                status TEXT NOT NULL,
                previous_status TEXT,
                created_at TIMESTAMP NOT NULL
            )
            ''')

            cursor.execute("CREATE INDEX IF NOT EXISTS idx_orders_customer ON Orders(customer_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_order_items_order ON Order_Items(order_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_ledger_customer ON Ledger_Entries(customer_id)")
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_events_customer ON Order_Events(customer_id)")

            conn.commit()

    def _connect(self, **kwargs) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, **kwargs)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        # Plain connection for reads and single-statement writes
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not open database: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Database error: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        # One atomic unit of work. BEGIN IMMEDIATE takes the database write lock
        # up front, so concurrent writers from any process are serialized and
        # every read inside the block sees the latest committed state.
        try:
            conn = self._connect(isolation_level=None)
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not open database: {e}") from e
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            logger.warning("Transaction rolled back: %s", e)
            raise PersistenceFailure(f"Database error: {e}") from e
        except BaseException:
            self._rollback(conn)
            raise
        finally:
            conn.close()

    @staticmethod
    def _rollback(conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
