from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg_pool import ConnectionPool

from audience_sync.config.settings import Settings
from audience_sync.logging.logger import Log

_pool: ConnectionPool | None = None


def build_conninfo(settings: Settings) -> str:
    """libpq connection string for the queue database."""
    return make_conninfo(
        host=settings.db_host,
        port=settings.db_port,
        dbname=settings.db_database,
        user=settings.db_username,
        password=settings.db_password,
    )


def init_pool(settings: Settings) -> None:
    """Open the shared queue-database pool."""
    global _pool  # noqa: PLW0603
    _pool = ConnectionPool(
        build_conninfo(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_pool_timeout_seconds,
        open=True,
    )
    Log.info(
        f"Queue database pool ready ({settings.db_host}:{settings.db_port}/"
        f"{settings.db_database}, max {settings.db_pool_max_size} connections)"
    )


def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is None:
        return
    _pool.close()
    _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Borrow a pooled connection; commit and rollback are up to the caller."""
    if _pool is None:
        raise RuntimeError("Queue database pool is not open; call init_pool() first")
    with _pool.connection() as conn:
        yield conn
