import json

from audience_sync.config.settings import Settings, require_settings
from audience_sync.database.repositories.queue_repository import QueueRepository
from audience_sync.logging.logger import Log
from audience_sync.normalization.models import CustomerRecord
from audience_sync.processor.chunker import chunked
from audience_sync.processor.messages import audience_job_to_message, parse_extract_job
from audience_sync.processor.models import AudienceJob, ExtractJob
from audience_sync.processor.pipeline import StageHandler, StageResult
from audience_sync.storage.base import BaseBlobStore
from audience_sync.warehouse.base import BaseWarehouse


def partition_path(audience_id: str, index: int, total: int) -> str:
    """Blob path for partition index (1-based) out of total partitions."""
    if total == 1:
        return f"{audience_id}/{audience_id}.json"
    return f"{audience_id}/{audience_id}_chunk{index}.json"


class Extractor(StageHandler):
    """Runs the audience query and writes its rows as partition files.

    Hands off to the populate or replace queue depending on the job.
    """

    def __init__(
        self,
        *,
        warehouse: BaseWarehouse,
        blob_store: BaseBlobStore,
        queue: QueueRepository,
        settings: Settings,
    ) -> None:
        self._warehouse = warehouse
        self._blob_store = blob_store
        self._queue = queue
        self._settings = settings

    def handle(self, body: str) -> StageResult:
        require_settings(self._settings, "warehouse_dsn")
        job = parse_extract_job(body, default_container=self._settings.default_container_name)
        Log.info(f"===== Extract START: audience {job.audience_id} =====")

        rows = self._warehouse.fetch_rows(job.sql)
        if not rows:
            Log.info(f"No data found for audience {job.audience_id}, nothing to enqueue")
            return StageResult.skipped("No data found")

        records = [CustomerRecord.from_mapping(row) for row in rows]
        blob_paths = self._write_partitions(job, records)
        Log.info(f"Total records: {len(records)}, partition files created: {len(blob_paths)}")
        if not blob_paths:
            Log.info(f"No partition files written for audience {job.audience_id}")
            return StageResult.skipped("No partition files written")

        audience_job = AudienceJob(
            audience_id=job.audience_id,
            audience_name=job.audience_name,
            access_token=job.access_token,
            container_name=job.container_name,
            blob_paths=tuple(blob_paths),
            user_email=job.user_email,
            is_replace=job.is_replace,
        )
        next_queue = (
            self._settings.replace_queue_name
            if job.is_replace
            else self._settings.populate_queue_name
        )
        self._queue.enqueue(next_queue, audience_job_to_message(audience_job))
        Log.info(f"===== Extract END: audience {job.audience_id} handed to {next_queue} =====")
        return StageResult.success(f"{len(records)} records in {len(blob_paths)} files")

    def _write_partitions(self, job: ExtractJob, records: list[CustomerRecord]) -> list[str]:
        partitions = list(chunked(records, self._settings.partition_file_size))
        blob_paths = []
        for index, partition in enumerate(partitions, start=1):
            path = partition_path(job.audience_id, index, len(partitions))
            data = json.dumps([record.to_dict() for record in partition]).encode("utf-8")
            self._blob_store.upload(job.container_name, path, data, overwrite=True)
            blob_paths.append(path)
            Log.info(f"Wrote partition file {path} ({len(partition)} records)")
        return blob_paths
