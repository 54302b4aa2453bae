from typing import Any

import psycopg
from psycopg.rows import dict_row

from audience_sync.logging.logger import Log
from audience_sync.warehouse.base import BaseWarehouse
from audience_sync.warehouse.exceptions import WarehouseError


class PostgresWarehouse(BaseWarehouse):
    """Runs extraction queries against a PostgreSQL-protocol warehouse."""

    def __init__(self, dsn: str, connect_timeout_seconds: int = 30) -> None:
        self._dsn = dsn
        self._connect_timeout_seconds = connect_timeout_seconds

    def fetch_rows(self, sql: str) -> list[dict[str, Any]]:
        Log.info("Running warehouse query")
        try:
            with psycopg.connect(
                self._dsn,
                connect_timeout=self._connect_timeout_seconds,
                row_factory=dict_row,
            ) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    rows = cur.fetchall() if cur.description else []
        except psycopg.Error as exc:
            raise WarehouseError(f"Warehouse query failed: {exc}") from exc
        Log.info(f"Warehouse query returned {len(rows)} rows")
        return rows
