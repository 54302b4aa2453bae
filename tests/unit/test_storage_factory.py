from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from audience_sync.config.settings import Settings
from audience_sync.storage.factory import BlobStoreFactory
from audience_sync.storage.local_adapter import LocalBlobStore
from audience_sync.storage.s3_adapter import S3BlobStore


class TestBlobStoreFactory:
    def test_creates_local_store(self, make_settings: Callable[..., Settings], tmp_path: Path) -> None:
        store = BlobStoreFactory.create(make_settings(blob_engine="local"))
        assert isinstance(store, LocalBlobStore)

    def test_creates_s3_store(self, make_settings: Callable[..., Settings]) -> None:
        with patch("audience_sync.storage.s3_adapter.boto3.client") as mock_client:
            store = BlobStoreFactory.create(
                make_settings(blob_engine="S3", s3_endpoint_url="http://minio:9000")
            )
        assert isinstance(store, S3BlobStore)
        assert mock_client.call_args.kwargs["endpoint_url"] == "http://minio:9000"

    def test_unknown_engine_raises(self, make_settings: Callable[..., Settings]) -> None:
        with pytest.raises(ValueError, match="Unknown blob engine"):
            BlobStoreFactory.create(make_settings(blob_engine="azure"))
