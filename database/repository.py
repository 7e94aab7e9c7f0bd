"""
Database repository classes

Methods that take a ``conn`` argument run inside the caller's transaction
(see DatabaseConnection.transaction) and never commit on their own.
"""
import sqlite3
from decimal import Decimal
from typing import List, Optional, Dict, Any

from models.menu import MenuItem
from models.order import Order, OrderLine, OrderStatus, PaymentMethod
from models.ledger import LedgerEntry, EntryKind
from models.events import OrderEvent, EventKind
from models.money import to_minor, from_minor
from .connection import DatabaseConnection, timestamp


class MenuRepository:
    # Catalog data access (menu items, prices, availability)

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def list_available(self, cuisine_type: Optional[str] = None) -> List[MenuItem]:
        # Items customers can order, grouped by cuisine
        with self.db.get_connection() as conn:
            sql = """
            SELECT item_id, name, description, price, cuisine_type, is_veg, is_available
            FROM Menu_Items
            WHERE is_available = 1
            """
            params = []

            if cuisine_type:
                sql += " AND cuisine_type = ?"
                params.append(cuisine_type)

            sql += " ORDER BY cuisine_type, name"
            return [self._to_item(row) for row in conn.execute(sql, params).fetchall()]

    def get_items(self, item_ids: List[str]) -> Dict[str, MenuItem]:
        # Batch lookup keyed by id; unknown ids are simply absent
        if not item_ids:
            return {}
        placeholders = ", ".join("?" for _ in item_ids)
        with self.db.get_connection() as conn:
            rows = conn.execute(f"""
            SELECT item_id, name, description, price, cuisine_type, is_veg, is_available
            FROM Menu_Items WHERE item_id IN ({placeholders})
            """, list(item_ids)).fetchall()
        return {row["item_id"]: self._to_item(row) for row in rows}

    def save_item(self, item: MenuItem) -> None:
        with self.db.get_connection() as conn:
            conn.execute("""
            INSERT INTO Menu_Items (
                item_id, name, description, price, cuisine_type, is_veg, is_available, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                price = excluded.price,
                cuisine_type = excluded.cuisine_type,
                is_veg = excluded.is_veg,
                is_available = excluded.is_available,
                updated_at = excluded.updated_at
            """, (
                item.item_id, item.name, item.description, to_minor(item.price),
                item.cuisine_type, int(item.is_veg), int(item.is_available), timestamp()
            ))
            conn.commit()

    def set_availability(self, item_id: str, is_available: bool) -> bool:
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "UPDATE Menu_Items SET is_available = ?, updated_at = ? WHERE item_id = ?",
                (int(is_available), timestamp(), item_id)
            )
            conn.commit()
            return cursor.rowcount > 0

    @staticmethod
    def _to_item(row: sqlite3.Row) -> MenuItem:
        return MenuItem(
            item_id=row["item_id"],
            name=row["name"],
            description=row["description"],
            price=from_minor(row["price"]),
            cuisine_type=row["cuisine_type"],
            is_veg=bool(row["is_veg"]),
            is_available=bool(row["is_available"])
        )


class LedgerRepository:
    # Customer balances and the append-only ledger

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def ensure_customer(self, conn: sqlite3.Connection, customer_id: str,
                        display_name: Optional[str] = None) -> None:
        conn.execute("""
        INSERT OR IGNORE INTO Customers (customer_id, display_name, balance, created_at)
        VALUES (?, ?, 0, ?)
        """, (customer_id, display_name, timestamp()))

    def get_balance(self, customer_id: str, conn: Optional[sqlite3.Connection] = None) -> Decimal:
        sql = "SELECT balance FROM Customers WHERE customer_id = ?"
        if conn is not None:
            row = conn.execute(sql, (customer_id,)).fetchone()
        else:
            with self.db.get_connection() as own_conn:
                row = own_conn.execute(sql, (customer_id,)).fetchone()
        return from_minor(row["balance"]) if row else from_minor(0)

    def add_to_balance(self, conn: sqlite3.Connection, customer_id: str, amount: Decimal) -> None:
        conn.execute(
            "UPDATE Customers SET balance = balance + ? WHERE customer_id = ?",
            (to_minor(amount), customer_id)
        )

    def subtract_if_covered(self, conn: sqlite3.Connection, customer_id: str, amount: Decimal) -> bool:
        # Compare-and-debit in one statement; False means the balance did not cover it
        minor = to_minor(amount)
        cursor = conn.execute(
            "UPDATE Customers SET balance = balance - ? WHERE customer_id = ? AND balance >= ?",
            (minor, customer_id, minor)
        )
        return cursor.rowcount == 1

    def append_entry(self, conn: sqlite3.Connection, customer_id: str, amount: Decimal,
                     kind: EntryKind, description: str, order_id: Optional[str] = None) -> LedgerEntry:
        created_at = timestamp()
        cursor = conn.execute("""
        INSERT INTO Ledger_Entries (customer_id, amount, kind, order_id, description, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """, (customer_id, to_minor(amount), kind.value, order_id, description, created_at))
        return LedgerEntry(
            entry_id=cursor.lastrowid,
            customer_id=customer_id,
            amount=from_minor(to_minor(amount)),
            kind=kind,
            description=description,
            created_at=created_at,
            order_id=order_id
        )

    def list_entries(self, customer_id: str, limit: Optional[int] = None) -> List[LedgerEntry]:
        # Newest first
        sql = """
        SELECT entry_id, customer_id, amount, kind, order_id, description, created_at
        FROM Ledger_Entries WHERE customer_id = ?
        ORDER BY entry_id DESC
        """
        params: List[Any] = [customer_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        with self.db.get_connection() as conn:
            return [self._to_entry(row) for row in conn.execute(sql, params).fetchall()]

    def entries_for_order(self, order_id: str) -> List[LedgerEntry]:
        with self.db.get_connection() as conn:
            rows = conn.execute("""
            SELECT entry_id, customer_id, amount, kind, order_id, description, created_at
            FROM Ledger_Entries WHERE order_id = ? ORDER BY entry_id
            """, (order_id,)).fetchall()
            return [self._to_entry(row) for row in rows]

    def balance_and_entry_sum(self, customer_id: str) -> Dict[str, Decimal]:
        # Read both sides of the ledger invariant from one snapshot
        with self.db.get_connection() as conn:
            row = conn.execute("""
            SELECT
                COALESCE((SELECT balance FROM Customers WHERE customer_id = ?), 0) AS balance,
                COALESCE((SELECT SUM(amount) FROM Ledger_Entries WHERE customer_id = ?), 0) AS entry_sum
            """, (customer_id, customer_id)).fetchone()
        return {
            "balance": from_minor(row["balance"]),
            "entry_sum": from_minor(row["entry_sum"])
        }

    @staticmethod
    def _to_entry(row: sqlite3.Row) -> LedgerEntry:
        return LedgerEntry(
            entry_id=row["entry_id"],
            customer_id=row["customer_id"],
            amount=from_minor(row["amount"]),
            kind=EntryKind(row["kind"]),
            description=row["description"],
            created_at=row["created_at"],
            order_id=row["order_id"]
        )


class OrderRepository:
    # Orders and their line items

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def insert_order(self, conn: sqlite3.Connection, order: Order) -> None:
        # Order row and all its lines; atomic only as part of the caller's transaction
        conn.execute("""
        INSERT INTO Orders (
            order_id, customer_id, total_amount, payment_method, status,
            checkout_key, payment_reference, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            order.order_id, order.customer_id, to_minor(order.total_amount),
            order.payment_method.value, order.status.value, order.checkout_key,
            order.payment_reference, order.created_at, order.created_at
        ))

        conn.executemany("""
        INSERT INTO Order_Items (
            line_id, order_id, item_id, item_name, quantity, unit_price, subtotal
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """, [
            (line.line_id, line.order_id, line.item_id, line.item_name, line.quantity,
             to_minor(line.unit_price), to_minor(line.subtotal))
            for line in order.lines
        ])

    def find_by_checkout_key(self, customer_id: str, checkout_key: str,
                             conn: Optional[sqlite3.Connection] = None) -> Optional[Order]:
        sql = "SELECT * FROM Orders WHERE customer_id = ? AND checkout_key = ?"
        if conn is not None:
            row = conn.execute(sql, (customer_id, checkout_key)).fetchone()
            return self._load(conn, row) if row else None
        with self.db.get_connection() as own_conn:
            row = own_conn.execute(sql, (customer_id, checkout_key)).fetchone()
            return self._load(own_conn, row) if row else None

    def get_status(self, conn: sqlite3.Connection, order_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            "SELECT order_id, customer_id, status FROM Orders WHERE order_id = ?",
            (order_id,)
        ).fetchone()

    def update_status(self, conn: sqlite3.Connection, order_id: str, current: OrderStatus,
                      new_status: OrderStatus, note: Optional[str] = None) -> bool:
        # Only moves the order if nobody changed it since `current` was read
        cursor = conn.execute("""
        UPDATE Orders SET status = ?, status_note = COALESCE(?, status_note), updated_at = ?
        WHERE order_id = ? AND status = ?
        """, (new_status.value, note, timestamp(), order_id, current.value))
        return cursor.rowcount == 1

    def get_order(self, order_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[Order]:
        if conn is not None:
            row = conn.execute("SELECT * FROM Orders WHERE order_id = ?", (order_id,)).fetchone()
            return self._load(conn, row) if row else None
        with self.db.get_connection() as own_conn:
            row = own_conn.execute("SELECT * FROM Orders WHERE order_id = ?", (order_id,)).fetchone()
            return self._load(own_conn, row) if row else None

    def list_orders(self, customer_id: Optional[str] = None,
                    statuses: Optional[List[OrderStatus]] = None,
                    limit: Optional[int] = None) -> List[Order]:
        # Newest first, optionally filtered by owner and status
        sql = "SELECT * FROM Orders"
        conds: List[str] = []
        params: List[Any] = []
        if customer_id:
            conds.append("customer_id = ?")
            params.append(customer_id)
        if statuses:
            conds.append(f"status IN ({', '.join('?' for _ in statuses)})")
            params.extend(status.value for status in statuses)
        if conds:
            sql += " WHERE " + " AND ".join(conds)
        sql += " ORDER BY created_at DESC, order_id"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self.db.get_connection() as conn:
            return [self._load(conn, row) for row in conn.execute(sql, params).fetchall()]

    def sales_totals(self) -> Dict[str, Any]:
        with self.db.get_connection() as conn:
            row = conn.execute("""
            SELECT COUNT(*) AS total_orders,
                   COALESCE(SUM(total_amount), 0) AS revenue,
                   COUNT(DISTINCT customer_id) AS customers
            FROM Orders WHERE status != ?
            """, (OrderStatus.CANCELLED.value,)).fetchone()
        return {
            "total_orders": row["total_orders"],
            "revenue": from_minor(row["revenue"]),
            "unique_customers": row["customers"]
        }

    def _load(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Order:
        line_rows = conn.execute("""
        SELECT line_id, order_id, item_id, item_name, quantity, unit_price
        FROM Order_Items WHERE order_id = ?
        ORDER BY rowid
        """, (row["order_id"],)).fetchall()

        lines = [
            OrderLine(
                line_id=line["line_id"],
                order_id=line["order_id"],
                item_id=line["item_id"],
                item_name=line["item_name"],
                quantity=line["quantity"],
                unit_price=from_minor(line["unit_price"])
            )
            for line in line_rows
        ]

        return Order(
            order_id=row["order_id"],
            customer_id=row["customer_id"],
            total_amount=from_minor(row["total_amount"]),
            payment_method=PaymentMethod(row["payment_method"]),
            status=OrderStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            checkout_key=row["checkout_key"],
            payment_reference=row["payment_reference"],
            status_note=row["status_note"],
            lines=lines
        )


class EventRepository:
    # Durable outbox of order events

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def append(self, conn: sqlite3.Connection, order_id: str, customer_id: str,
               kind: EventKind, status: OrderStatus,
               previous_status: Optional[OrderStatus] = None) -> OrderEvent:
        created_at = timestamp()
        previous = previous_status.value if previous_status else None
        cursor = conn.execute("""
        INSERT INTO Order_Events (order_id, customer_id, kind, status, previous_status, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """, (order_id, customer_id, kind.value, status.value, previous, created_at))
        return OrderEvent(
            event_id=cursor.lastrowid,
            order_id=order_id,
            customer_id=customer_id,
            kind=kind,
            status=status.value,
            previous_status=previous,
            created_at=created_at
        )

    def list_after(self, after_event_id: int = 0, customer_id: Optional[str] = None,
                   limit: int = 500) -> List[OrderEvent]:
        sql = """
        SELECT event_id, order_id, customer_id, kind, status, previous_status, created_at
        FROM Order_Events WHERE event_id > ?
        """
        params: List[Any] = [after_event_id]
        if customer_id:
            sql += " AND customer_id = ?"
            params.append(customer_id)
        sql += " ORDER BY event_id LIMIT ?"
        params.append(limit)

        with self.db.get_connection() as conn:
            return [
                OrderEvent(
                    event_id=row["event_id"],
                    order_id=row["order_id"],
                    customer_id=row["customer_id"],
                    kind=EventKind(row["kind"]),
                    status=row["status"],
                    previous_status=row["previous_status"],
                    created_at=row["created_at"]
                )
                for row in conn.execute(sql, params).fetchall()
            ]
