import httpx

from audience_sync.config.settings import Settings
from audience_sync.database.repositories.queue_repository import QueueRepository
from audience_sync.notification.base import BaseNotifier
from audience_sync.notification.factory import NotifierFactory
from audience_sync.platform.client import AudienceClient, AudienceStatusClient
from audience_sync.processor.extractor import Extractor
from audience_sync.processor.pipeline import StageHandler
from audience_sync.processor.uploader import PopulateUploader, ReplaceUploader
from audience_sync.processor.verifier import Verifier
from audience_sync.storage.base import BaseBlobStore
from audience_sync.storage.factory import BlobStoreFactory
from audience_sync.warehouse.base import BaseWarehouse
from audience_sync.warehouse.postgres_adapter import PostgresWarehouse


def build_stage_handlers(
    settings: Settings,
    http_client: httpx.Client,
    queue: QueueRepository,
    *,
    blob_store: BaseBlobStore | None = None,
    warehouse: BaseWarehouse | None = None,
    notifier: BaseNotifier | None = None,
) -> dict[str, StageHandler]:
    """Build every stage handler, keyed by the queue it consumes."""
    blob_store = blob_store or BlobStoreFactory.create(settings)
    warehouse = warehouse or PostgresWarehouse(settings.warehouse_dsn)
    notifier = notifier or NotifierFactory.create(settings, http_client)
    audience_client = AudienceClient(
        http_client,
        base_url=settings.platform_api_base_url,
        api_version=settings.platform_api_version,
    )
    status_client = AudienceStatusClient(http_client, base_url=settings.status_api_base_url)

    return {
        settings.extract_queue_name: Extractor(
            warehouse=warehouse,
            blob_store=blob_store,
            queue=queue,
            settings=settings,
        ),
        settings.populate_queue_name: PopulateUploader(
            blob_store=blob_store,
            audience_client=audience_client,
            queue=queue,
            notifier=notifier,
            settings=settings,
        ),
        settings.replace_queue_name: ReplaceUploader(
            blob_store=blob_store,
            audience_client=audience_client,
            queue=queue,
            notifier=notifier,
            settings=settings,
        ),
        settings.status_check_queue_name: Verifier(
            status_client=status_client,
            notifier=notifier,
            settings=settings,
        ),
    }
