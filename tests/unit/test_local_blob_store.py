from pathlib import Path

import pytest

from audience_sync.storage.exceptions import (
    BlobAlreadyExistsError,
    BlobNotFoundError,
    StorageError,
)
from audience_sync.storage.local_adapter import LocalBlobStore, blob_file_path


class TestBlobFilePath:
    def test_builds_nested_path(self, tmp_path: Path) -> None:
        assert blob_file_path(tmp_path, "c", "123/123.json") == tmp_path / "c" / "123" / "123.json"

    @pytest.mark.parametrize("path", ["../escape.json", "/abs.json", "a/../../b.json"])
    def test_rejects_escaping_paths(self, tmp_path: Path, path: str) -> None:
        with pytest.raises(StorageError, match="Invalid blob path"):
            blob_file_path(tmp_path, "c", path)

    def test_rejects_bad_container(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError, match="container"):
            blob_file_path(tmp_path, "..", "a.json")


class TestUploadDownload:
    def test_upload_then_download(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        store.upload("c", "1/1.json", b"[]")
        assert store.exists("c", "1/1.json")
        assert store.download("c", "1/1.json") == b"[]"

    def test_overwrite_replaces_content(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        store.upload("c", "a.json", b"old")
        store.upload("c", "a.json", b"new", overwrite=True)
        assert store.download("c", "a.json") == b"new"

    def test_upload_without_overwrite_raises_when_present(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        store.upload("c", "a.json", b"old")
        with pytest.raises(BlobAlreadyExistsError):
            store.upload("c", "a.json", b"new", overwrite=False)

    def test_download_missing_raises(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        with pytest.raises(BlobNotFoundError, match="missing.json"):
            store.download("c", "missing.json")


class TestDelete:
    def test_deletes_blob(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        store.upload("c", "a.json", b"x")
        store.delete("c", "a.json")
        assert not store.exists("c", "a.json")

    def test_delete_missing_is_noop(self, tmp_path: Path) -> None:
        store = LocalBlobStore(tmp_path)
        store.delete("c", "never.json")
        assert not store.exists("c", "never.json")
