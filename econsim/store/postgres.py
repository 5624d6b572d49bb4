"""PostgreSQL key-value backend."""

import logging
from typing import Any

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from econsim.exceptions import StoreError
from econsim.store.backends import KeyValueStore

logger = logging.getLogger(__name__)


class PostgresStore(KeyValueStore):
    """Store each collection as one ``jsonb`` row keyed by name.

    Every statement runs in autocommit mode, so a single ``put`` is an
    atomic upsert of one row.
    """

    def __init__(self, conninfo: str, table: str = "econsim_kv") -> None:
        """Connect and create the table if needed.

        Parameters
        ----------
        conninfo : str
            libpq connection string (``postgresql://user:pw@host:port/db``).
        table : str
            Table name holding the key-value rows.
        """
        self.table = table
        try:
            self._conn = psycopg.connect(conninfo, autocommit=True)
            self._conn.execute(
                sql.SQL(
                    "CREATE TABLE IF NOT EXISTS {} ("
                    "key TEXT PRIMARY KEY, "
                    "value JSONB NOT NULL, "
                    "updated_at TIMESTAMPTZ NOT NULL DEFAULT now())"
                ).format(sql.Identifier(table))
            )
        except psycopg.Error as exc:
            raise StoreError(f"Cannot open PostgreSQL store: {exc}") from exc
        logger.info("PostgreSQL store ready (table=%s)", table)

    def get(self, key: str) -> Any | None:
        try:
            row = self._conn.execute(
                sql.SQL("SELECT value FROM {} WHERE key = %s").format(sql.Identifier(self.table)),
                (key,),
            ).fetchone()
        except psycopg.Error as exc:
            raise StoreError(f"Cannot read {key}: {exc}") from exc
        return row[0] if row else None

    def put(self, key: str, value: Any) -> None:
        try:
            self._conn.execute(
                sql.SQL(
                    "INSERT INTO {} (key, value) VALUES (%s, %s) "
                    "ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = now()"
                ).format(sql.Identifier(self.table)),
                (key, Jsonb(value)),
            )
        except psycopg.Error as exc:
            raise StoreError(f"Cannot write {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._conn.execute(
                sql.SQL("DELETE FROM {} WHERE key = %s").format(sql.Identifier(self.table)),
                (key,),
            )
        except psycopg.Error as exc:
            raise StoreError(f"Cannot delete {key}: {exc}") from exc

    def close(self) -> None:
        self._conn.close()
        logger.info("PostgreSQL store closed")
