from __future__ import annotations

import logging
import re
from contextlib import closing
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Iterable, Iterator, List, Sequence, Tuple, Type
from uuid import UUID

from domain.errors import ConfigurationError, StorageError
from domain.models import NAME_MAX_LENGTH, AccountRecord

logger = logging.getLogger("xpledger.storage.sql")

BATCH_SIZE = 1000

_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")


def table_name_for(prefix: str) -> str:
    """
    `accounts`, or `<prefix>_accounts` when a prefix is configured.

    The prefix is interpolated into SQL, so only letters, digits and
    underscores are accepted.
    """

    if not _PREFIX_PATTERN.match(prefix or ""):
        raise ConfigurationError(f"Unsafe table prefix: {prefix!r}")
    return f"{prefix}_accounts" if prefix else "accounts"


def batched(records: Sequence[AccountRecord], size: int) -> Iterator[Sequence[AccountRecord]]:
    """Contiguous chunks of exactly `size` records; the last holds the rest."""

    if size <= 0:
        raise ValueError("Batch size must be positive.")
    for start in range(0, len(records), size):
        yield records[start:start + size]


class SqlAccountStore:
    """
    Shared implementation of the relational `AccountStore`.

    Manages a single table keyed by the 16-byte binary form of the player
    UUID, with a numeric balance column, the owner's name and audit
    timestamps. The table is created on demand before every load and save,
    and a table from before names were stored gains the column in place.
    Saves are batched upserts with one commit per batch.

    Subclasses provide the driver connection and dialect details.
    """

    placeholder = "?"
    id_column_type = "BLOB"
    balance_column_type = "NUMERIC"
    driver_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self, table_prefix: str = "", batch_size: int = BATCH_SIZE) -> None:
        self._table = table_name_for(table_prefix)
        self._batch_size = batch_size

    @property
    def table_name(self) -> str:
        return self._table

    def _get_connection(self) -> Any:
        raise NotImplementedError

    def _encode_id(self, player_id: UUID) -> Any:
        return player_id.bytes

    def _encode_balance(self, balance_raw: int) -> Any:
        return balance_raw

    def _timestamp(self, moment: datetime) -> Any:
        return moment

    @staticmethod
    def _to_record(row: Tuple[Any, ...]) -> AccountRecord:
        balance = Decimal(str(row[1])).to_integral_value(rounding=ROUND_DOWN)
        name = row[2] if len(row) > 2 else None
        return AccountRecord(
            id=UUID(bytes=bytes(row[0])),
            balance_raw=max(0, int(balance)),
            name=str(name) if name else None,
        )

    def _ensure_name_column(self, cur: Any) -> None:
        cur.execute(
            f"ALTER TABLE {self._table} ADD COLUMN IF NOT EXISTS name VARCHAR({NAME_MAX_LENGTH})"
        )

    def _ensure_table(self, conn: Any) -> None:
        cur = conn.cursor()
        cur.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                id {self.id_column_type} NOT NULL PRIMARY KEY,
                name VARCHAR({NAME_MAX_LENGTH}),
                balance {self.balance_column_type} NOT NULL,
                create_date TIMESTAMP NOT NULL,
                update_date TIMESTAMP NOT NULL
            )
            """
        )
        self._ensure_name_column(cur)
        conn.commit()

    def load(self) -> List[AccountRecord]:
        try:
            with closing(self._get_connection()) as conn:
                self._ensure_table(conn)
                cur = conn.cursor()
                cur.execute(f"SELECT id, balance, name FROM {self._table}")
                rows = cur.fetchall()
        except self.driver_errors as exc:
            raise StorageError(f"Could not read table {self._table}: {exc}") from exc

        records = []
        for row in rows:
            try:
                records.append(self._to_record(row))
            except (ValueError, TypeError, InvalidOperation):
                logger.warning("Skipping malformed row in %s: %r", self._table, row)
        return records

    def _upsert_sql(self) -> str:
        p = self.placeholder
        return (
            f"INSERT INTO {self._table} (id, name, balance, create_date, update_date) "
            f"VALUES ({p}, {p}, {p}, {p}, {p}) "
            "ON CONFLICT (id) DO UPDATE SET "
            f"name = COALESCE(excluded.name, {self._table}.name), "
            "balance = excluded.balance, update_date = excluded.update_date"
        )

    def _rows(self, batch: Iterable[AccountRecord], now: Any) -> List[Tuple[Any, ...]]:
        return [
            (self._encode_id(r.id), r.name, self._encode_balance(r.balance_raw), now, now)
            for r in batch
        ]

    def save(self, records: Sequence[AccountRecord]) -> bool:
        now = self._timestamp(datetime.now(timezone.utc))
        sql = self._upsert_sql()
        try:
            with closing(self._get_connection()) as conn:
                self._ensure_table(conn)
                cur = conn.cursor()
                for batch in batched(records, self._batch_size):
                    cur.executemany(sql, self._rows(batch, now))
                    conn.commit()
        except self.driver_errors:
            logger.exception("Failed to save %d account(s) to %s.", len(records), self._table)
            return False
        return True
