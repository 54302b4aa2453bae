import json
from collections.abc import Callable
from pathlib import Path

import pytest

from audience_sync.config.settings import Settings
from audience_sync.normalization.models import CustomerRecord
from audience_sync.storage.local_adapter import LocalBlobStore

CONTAINER = "fb-audiences-data"


def _make_records(count: int, start: int = 0) -> list[CustomerRecord]:
    return [
        CustomerRecord(
            email1=f"User{i}@Example.com ",
            phone1=f"+1 (555) 000-{i:04d}",
            fn="Ann",
            ln="O'Neil",
            zip="12345",
            ct="New York",
            st="NY",
            country="US",
            doby="1980",
            gen="F",
        )
        for i in range(start, start + count)
    ]


def _write_partition(
    store: LocalBlobStore,
    path: str,
    records: list[CustomerRecord],
    container: str = CONTAINER,
) -> str:
    data = json.dumps([record.to_dict() for record in records]).encode("utf-8")
    store.upload(container, path, data)
    return path


@pytest.fixture()
def make_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Callable[..., Settings]:
    """Build Settings isolated from any local .env file."""
    monkeypatch.chdir(tmp_path)

    def _make(**overrides: object) -> Settings:
        values: dict[str, object] = {
            "blob_root": str(tmp_path / "blobs"),
            "warehouse_dsn": "postgresql://warehouse",
            "status_api_base_url": "https://status.example.com",
            "notifier_engine": "log",
            "admin_notification_email": "ops@example.com",
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture()
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture()
def make_records() -> Callable[..., list[CustomerRecord]]:
    return _make_records


@pytest.fixture()
def write_partition(blob_store: LocalBlobStore) -> Callable[..., str]:
    def _write(path: str, records: list[CustomerRecord], container: str = CONTAINER) -> str:
        return _write_partition(blob_store, path, records, container)

    return _write
