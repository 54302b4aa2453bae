import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from audience_sync.config.settings import Settings
from audience_sync.database.connection import close_pool, get_connection, init_pool

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "audience_sync" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "audience_sync_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text())
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a scratch database"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def queue_settings(
    test_settings: Settings,
    integration_pool: None,
    tmp_path: Path,
) -> Generator[Settings, None, None]:
    """Settings with queue names unique to the test, so rows never collide."""
    suffix = uuid.uuid4().hex[:8]
    settings = test_settings.model_copy(
        update={
            "extract_queue_name": f"extract-{suffix}",
            "populate_queue_name": f"populate-{suffix}",
            "replace_queue_name": f"replace-{suffix}",
            "status_check_queue_name": f"status-check-{suffix}",
            "blob_engine": "local",
            "blob_root": str(tmp_path / "blobs"),
            "notifier_engine": "log",
            "status_api_base_url": "https://status.test",
            "platform_api_base_url": "https://graph.test",
            "admin_notification_email": "ops@example.com",
        }
    )
    yield settings
    names = [
        settings.extract_queue_name,
        settings.populate_queue_name,
        settings.replace_queue_name,
        settings.status_check_queue_name,
    ]
    with get_connection() as conn:
        conn.execute("DELETE FROM queue_messages WHERE queue_name = ANY(%s)", (names,))
        conn.commit()
