from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

import psycopg2

from infrastructure.db.sql_account_store import BATCH_SIZE, SqlAccountStore


class PostgresAccountStore(SqlAccountStore):
    """
    Postgres-backed implementation of `AccountStore`.

    Player ids are stored as BYTEA holding the 16 raw UUID bytes. A fresh
    connection is opened for each load or save; an unreachable server
    makes `load()` raise `StorageError` and `save()` return False.
    """

    placeholder = "%s"
    id_column_type = "BYTEA"
    driver_errors = (psycopg2.Error,)

    def __init__(
        self,
        db_params: Dict[str, Any],
        table_prefix: str = "",
        batch_size: int = BATCH_SIZE,
    ) -> None:
        super().__init__(table_prefix, batch_size)
        self._db_params = db_params

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _encode_id(self, player_id: UUID) -> Any:
        return psycopg2.Binary(player_id.bytes)
