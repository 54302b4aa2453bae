from pathlib import Path

from audience_sync.config.settings import Settings
from audience_sync.storage.base import BaseBlobStore
from audience_sync.storage.local_adapter import LocalBlobStore
from audience_sync.storage.s3_adapter import S3BlobStore


class BlobStoreFactory:
    """Creates the configured blob store adapter."""

    ENGINES: tuple[str, ...] = ("local", "s3")

    @classmethod
    def create(cls, settings: Settings) -> BaseBlobStore:
        engine = settings.blob_engine.lower()
        if engine == "local":
            return LocalBlobStore(Path(settings.blob_root))
        if engine == "s3":
            return S3BlobStore(
                region=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url or None,
                access_key=settings.s3_access_key or None,
                secret_key=settings.s3_secret_key or None,
            )
        raise ValueError(
            f"Unknown blob engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
