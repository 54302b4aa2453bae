"""S3-compatible blob store (AWS S3, MinIO, LocalStack)."""

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from audience_sync.storage.base import BaseBlobStore
from audience_sync.storage.exceptions import (
    BlobAlreadyExistsError,
    BlobNotFoundError,
    StorageError,
)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3BlobStore(BaseBlobStore):
    """Blob store where each container maps to a bucket."""

    def __init__(
        self,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client: object | None = None,
    ) -> None:
        if client is not None:
            self._client = client
            return
        client_kwargs: dict[str, object] = {
            "service_name": "s3",
            "region_name": region,
            "config": Config(signature_version="s3v4"),
        }
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if access_key and secret_key:
            client_kwargs["aws_access_key_id"] = access_key
            client_kwargs["aws_secret_access_key"] = secret_key
        self._client = boto3.client(**client_kwargs)

    def exists(self, container: str, path: str) -> bool:
        try:
            self._client.head_object(Bucket=container, Key=self._key(path))
        except ClientError as exc:
            if self._is_missing(exc):
                return False
            raise StorageError(f"Failed to stat blob {container}/{path}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to stat blob {container}/{path}: {exc}") from exc
        return True

    def download(self, container: str, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=container, Key=self._key(path))
            return response["Body"].read()
        except ClientError as exc:
            if self._is_missing(exc):
                raise BlobNotFoundError(f"Blob not found: {container}/{path}") from exc
            raise StorageError(f"Failed to read blob {container}/{path}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to read blob {container}/{path}: {exc}") from exc

    def upload(self, container: str, path: str, data: bytes, overwrite: bool = True) -> None:
        if not overwrite and self.exists(container, path):
            raise BlobAlreadyExistsError(f"Blob already exists: {container}/{path}")
        try:
            self._client.put_object(
                Bucket=container,
                Key=self._key(path),
                Body=data,
                ContentType="application/json",
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to write blob {container}/{path}: {exc}") from exc

    def delete(self, container: str, path: str) -> None:
        # S3 DeleteObject succeeds for missing keys
        try:
            self._client.delete_object(Bucket=container, Key=self._key(path))
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to delete blob {container}/{path}: {exc}") from exc

    @staticmethod
    def _key(path: str) -> str:
        return path.lstrip("/")

    @staticmethod
    def _is_missing(exc: ClientError) -> bool:
        return str(exc.response.get("Error", {}).get("Code", "")) in _MISSING_CODES
