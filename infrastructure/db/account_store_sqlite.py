from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any

from domain.models import NAME_MAX_LENGTH
from infrastructure.db.sql_account_store import BATCH_SIZE, SqlAccountStore


class SqliteAccountStore(SqlAccountStore):
    """
    SQLite-backed implementation of `AccountStore`.

    Stores the ledger in a single local database file. Timestamps are
    written as ISO-8601 text, SQLite's own convention for TIMESTAMP columns.
    Balances are stored as decimal text: SQLite integers stop at 2**63 - 1
    and larger numerics degrade to floating point.
    """

    placeholder = "?"
    id_column_type = "BLOB"
    balance_column_type = "TEXT"
    driver_errors = (sqlite3.Error, OSError)

    def __init__(self, db_path: str, table_prefix: str = "", batch_size: int = BATCH_SIZE) -> None:
        super().__init__(table_prefix, batch_size)
        self._db_path = db_path

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _encode_balance(self, balance_raw: int) -> str:
        return str(balance_raw)

    def _timestamp(self, moment: datetime) -> str:
        return moment.isoformat()

    def _ensure_name_column(self, cur: Any) -> None:
        # SQLite has no ADD COLUMN IF NOT EXISTS.
        cur.execute(f"PRAGMA table_info({self.table_name})")
        if "name" not in {row[1] for row in cur.fetchall()}:
            cur.execute(f"ALTER TABLE {self.table_name} ADD COLUMN name VARCHAR({NAME_MAX_LENGTH})")
