"""SQLite journal of completed (paid) orders."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from hotpos.config import DB_PATH
from hotpos.models import CompletedOrder

RECEIPT_SAVED = "SAVED"
RECEIPT_PRINTED = "PRINTED"
RECEIPT_PRINT_FAILED = "PRINT_FAILED"


@dataclass(frozen=True)
class SavedReceipt:
    """Journal row metadata for a completed order."""

    receipt_id: str
    created_at: str
    table_id: int
    grand_total: str
    status: str


def _connect(db_path: str | None = None) -> sqlite3.Connection:
    db_file = Path(db_path or DB_PATH)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def bootstrap_schema(db_path: str | None = None) -> None:
    """Create the journal schema if it does not already exist."""
    with _connect(db_path) as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS receipts (
                id TEXT PRIMARY KEY,
                created_at TEXT NOT NULL,
                table_id INTEGER NOT NULL,
                customer_id INTEGER,
                price_list_id INTEGER,
                promotion_id INTEGER,
                bill_discount_kind TEXT NOT NULL,
                bill_discount_value TEXT NOT NULL,
                grand_total TEXT NOT NULL,
                payment_method TEXT NOT NULL,
                payload TEXT NOT NULL,
                status TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS receipt_lines (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                receipt_id TEXT NOT NULL,
                line_index INTEGER NOT NULL,
                product_id INTEGER NOT NULL,
                quantity INTEGER NOT NULL,
                discount_kind TEXT NOT NULL,
                discount_value TEXT NOT NULL,
                FOREIGN KEY(receipt_id) REFERENCES receipts(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_receipt_lines_receipt_id_line
                ON receipt_lines(receipt_id, line_index);

            CREATE TABLE IF NOT EXISTS preferences (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )


def save_completed_order(order: CompletedOrder, db_path: str | None = None) -> SavedReceipt:
    """Persist a completed order and its lines in one transaction."""
    if not order.lines:
        raise ValueError("Cannot save an order without lines")

    receipt_id = uuid4().hex
    created_at = order.completed_at.isoformat()
    # Decimals are stored as text so no precision is lost.
    payload = json.dumps(order.as_dict(), default=str, ensure_ascii=False)

    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                """
                INSERT INTO receipts (
                    id, created_at, table_id, customer_id, price_list_id, promotion_id,
                    bill_discount_kind, bill_discount_value, grand_total, payment_method, payload, status
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    receipt_id,
                    created_at,
                    order.table_id,
                    order.customer_id,
                    order.price_list_id,
                    order.promotion_id,
                    order.bill_discount.kind.value,
                    str(order.bill_discount.value),
                    str(order.grand_total),
                    order.payment_method,
                    payload,
                    RECEIPT_SAVED,
                ),
            )
            for idx, line in enumerate(order.lines):
                conn.execute(
                    """
                    INSERT INTO receipt_lines (receipt_id, line_index, product_id, quantity, discount_kind, discount_value)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (receipt_id, idx, line.product_id, line.quantity, line.line_discount.kind.value, str(line.line_discount.value)),
                )

    return SavedReceipt(
        receipt_id=receipt_id,
        created_at=created_at,
        table_id=order.table_id,
        grand_total=str(order.grand_total),
        status=RECEIPT_SAVED,
    )


def update_receipt_status(receipt_id: str, status: str, db_path: str | None = None) -> None:
    """Update status for a journaled receipt."""
    with _connect(db_path) as conn:
        with conn:
            conn.execute("UPDATE receipts SET status = ? WHERE id = ?", (status, receipt_id))


def recent_receipts(limit: int = 20, db_path: str | None = None) -> list[SavedReceipt]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            "SELECT id, created_at, table_id, grand_total, status FROM receipts ORDER BY created_at DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [SavedReceipt(*row) for row in rows]


_LOGIN_KEYS = ("login_url", "login_db", "login_username")


def remember_login(url: str, db: str, username: str, db_path: str | None = None) -> None:
    """Store the last successful sign-in, without the password."""
    with _connect(db_path) as conn:
        with conn:
            conn.executemany(
                "INSERT OR REPLACE INTO preferences (key, value) VALUES (?, ?)",
                list(zip(_LOGIN_KEYS, (url, db, username))),
            )


def last_login(db_path: str | None = None) -> tuple[str, str, str] | None:
    with _connect(db_path) as conn:
        rows = dict(
            conn.execute(
                "SELECT key, value FROM preferences WHERE key IN (?, ?, ?)",
                _LOGIN_KEYS,
            ).fetchall()
        )
    if not rows:
        return None
    url, db, username = (rows.get(key, "") for key in _LOGIN_KEYS)
    return (url, db, username)
