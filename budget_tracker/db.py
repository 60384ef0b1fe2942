"""SQLite persistence: schema, per-request connection, and the two stores."""

from __future__ import annotations

import datetime as dt
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import current_app, g

from .models import Budget, Transaction

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent
_DEFAULT_DB_PATH = PROJECT_ROOT / "budget_tracker.db"

SCHEMA = """CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    name TEXT,
    password_hash TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    date TEXT NOT NULL,
    amount REAL NOT NULL,
    category TEXT NOT NULL,
    description TEXT,
    type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS ix_transactions_user_category_date
    ON transactions (user_id, category, type, date);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    category TEXT NOT NULL,
    limit_amount REAL NOT NULL,
    timeline TEXT,
    start_date TEXT,
    end_date TEXT,
    month TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);
"""


def get_database_path() -> Path:
    db_path = current_app.config.get("DATABASE") if current_app else None
    if db_path:
        return Path(db_path)
    return _DEFAULT_DB_PATH


def get_db() -> sqlite3.Connection:
    if "db" not in g:
        path = get_database_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        g.db = conn
    return g.db


def close_db(_: object | None = None) -> None:
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db() -> None:
    db = get_db()
    db.executescript(SCHEMA)
    db.commit()


_TRANSACTION_COLUMNS = "id, date, amount, category, description, type"
_BUDGET_COLUMNS = "id, category, limit_amount, timeline, start_date, end_date, month"


class TransactionStore:
    """Transaction rows for one connection. Every query is scoped to a user."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def sum_expenses(self, user_id: int, category: str, start: dt.date, end: dt.date) -> float:
        row = self.conn.execute(
            """
            SELECT COALESCE(SUM(amount), 0) AS total
            FROM transactions
            WHERE user_id = ? AND category = ? AND type = 'expense' AND date >= ? AND date < ?
            """,
            (user_id, category, start.isoformat(), end.isoformat()),
        ).fetchone()
        return float(row["total"])

    def list(self, user_id: int, limit: Optional[int] = None) -> List[Transaction]:
        sql = f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE user_id = ? ORDER BY date DESC, id DESC"
        params: tuple = (user_id,)
        if limit:
            sql += " LIMIT ?"
            params += (limit,)
        return [Transaction.from_row(row) for row in self.conn.execute(sql, params).fetchall()]

    def get(self, user_id: int, txn_id: int) -> Optional[Transaction]:
        row = self.conn.execute(
            f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE user_id = ? AND id = ?",
            (user_id, txn_id),
        ).fetchone()
        return Transaction.from_row(row) if row else None

    def add(self, user_id: int, txn: Transaction) -> Transaction:
        cursor = self.conn.execute(
            """
            INSERT INTO transactions (user_id, date, amount, category, description, type)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, txn.date.isoformat(), txn.amount, txn.category, txn.description, txn.type),
        )
        self.conn.commit()
        txn.id = cursor.lastrowid
        return txn

    def update(self, user_id: int, txn: Transaction) -> None:
        self.conn.execute(
            """
            UPDATE transactions
            SET date = ?, amount = ?, category = ?, description = ?, type = ?
            WHERE id = ? AND user_id = ?
            """,
            (txn.date.isoformat(), txn.amount, txn.category, txn.description, txn.type, txn.id, user_id),
        )
        self.conn.commit()

    def delete(self, user_id: int, txn_id: int) -> bool:
        cursor = self.conn.execute(
            "DELETE FROM transactions WHERE id = ? AND user_id = ?",
            (txn_id, user_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0


class BudgetStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def list(self, user_id: int, month: Optional[str] = None) -> List[Budget]:
        sql = f"SELECT {_BUDGET_COLUMNS} FROM budgets WHERE user_id = ?"
        params: tuple = (user_id,)
        if month:
            sql += " AND month = ?"
            params += (month,)
        sql += " ORDER BY category, id"
        return [Budget.from_row(row) for row in self.conn.execute(sql, params).fetchall()]

    def get(self, user_id: int, budget_id: int) -> Optional[Budget]:
        row = self.conn.execute(
            f"SELECT {_BUDGET_COLUMNS} FROM budgets WHERE user_id = ? AND id = ?",
            (user_id, budget_id),
        ).fetchone()
        return Budget.from_row(row) if row else None

    def add(self, user_id: int, budget: Budget) -> Budget:
        cursor = self.conn.execute(
            """
            INSERT INTO budgets (user_id, category, limit_amount, timeline, start_date, end_date, month)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                budget.category,
                budget.limit,
                budget.timeline,
                budget.start_date,
                budget.end_date,
                budget.month,
            ),
        )
        self.conn.commit()
        budget.id = cursor.lastrowid
        return budget

    def update(self, user_id: int, budget_id: int, changes: Dict[str, Any]) -> Optional[Budget]:
        if changes:
            assignments = ", ".join(f"{column} = ?" for column in changes)
            self.conn.execute(
                f"UPDATE budgets SET {assignments} WHERE id = ? AND user_id = ?",
                (*changes.values(), budget_id, user_id),
            )
            self.conn.commit()
        return self.get(user_id, budget_id)

    def delete(self, user_id: int, budget_id: int) -> bool:
        cursor = self.conn.execute(
            "DELETE FROM budgets WHERE id = ? AND user_id = ?",
            (budget_id, user_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0
