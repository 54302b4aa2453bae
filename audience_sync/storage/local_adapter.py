from pathlib import Path, PurePosixPath

from audience_sync.storage.base import BaseBlobStore
from audience_sync.storage.exceptions import (
    BlobAlreadyExistsError,
    BlobNotFoundError,
    StorageError,
)


def blob_file_path(root: Path, container: str, path: str) -> Path:
    """Build path to a blob file: {root}/{container}/{path}"""
    relative = PurePosixPath(path)
    if relative.is_absolute() or ".." in relative.parts:
        raise StorageError(f"Invalid blob path: {path}")
    if not container or "/" in container or container in (".", ".."):
        raise StorageError(f"Invalid container name: {container}")
    return root / container / Path(*relative.parts)


class LocalBlobStore(BaseBlobStore):
    """Blob store backed by a directory tree on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def exists(self, container: str, path: str) -> bool:
        return blob_file_path(self._root, container, path).is_file()

    def download(self, container: str, path: str) -> bytes:
        file_path = blob_file_path(self._root, container, path)
        if not file_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {container}/{path}")
        try:
            return file_path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read blob {container}/{path}: {exc}") from exc

    def upload(self, container: str, path: str, data: bytes, overwrite: bool = True) -> None:
        file_path = blob_file_path(self._root, container, path)
        if not overwrite and file_path.exists():
            raise BlobAlreadyExistsError(f"Blob already exists: {container}/{path}")
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write blob {container}/{path}: {exc}") from exc

    def delete(self, container: str, path: str) -> None:
        file_path = blob_file_path(self._root, container, path)
        try:
            file_path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete blob {container}/{path}: {exc}") from exc
