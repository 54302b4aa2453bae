"""Upload stages: push partition files into a custom audience.

Populate appends batches independently, file by file. Replace downloads
every partition first and sends the combined record set as one platform
session with ordered batch sequence numbers.
"""

import json
import time
from abc import abstractmethod
from collections.abc import Callable

from audience_sync.config.settings import Settings
from audience_sync.database.repositories.queue_repository import QueueRepository
from audience_sync.logging.logger import Log
from audience_sync.normalization.hasher import hash_records
from audience_sync.normalization.models import CustomerRecord
from audience_sync.notification.base import BaseNotifier
from audience_sync.platform.client import AudienceClient
from audience_sync.platform.models import ReplaceSession
from audience_sync.processor.chunker import chunked
from audience_sync.processor.cleanup import delete_partition_files
from audience_sync.processor.exceptions import PartitionFileError
from audience_sync.processor.messages import parse_audience_job, status_check_job_to_message
from audience_sync.processor.models import AudienceJob, StatusCheckJob, UploadAccumulator
from audience_sync.processor.pipeline import StageHandler, StageResult
from audience_sync.storage.base import BaseBlobStore


def generate_session_id() -> int:
    """Time-derived session id, unique per replace run."""
    return time.time_ns()


class BaseUploader(StageHandler):
    """Shared job lifecycle: upload, clean up, schedule verification, notify."""

    MODE: str = ""
    IS_REPLACE: bool = False

    def __init__(
        self,
        *,
        blob_store: BaseBlobStore,
        audience_client: AudienceClient,
        queue: QueueRepository,
        notifier: BaseNotifier,
        settings: Settings,
    ) -> None:
        self._blob_store = blob_store
        self._audience_client = audience_client
        self._queue = queue
        self._notifier = notifier
        self._settings = settings

    def handle(self, body: str) -> StageResult:
        job = parse_audience_job(body, is_replace=self.IS_REPLACE)
        Log.info(
            f"===== {self.MODE} START: audience {job.audience_id}, "
            f"{len(job.blob_paths)} partition files ====="
        )
        try:
            accumulator = self._upload(job)
        except Exception as exc:
            Log.error(f"{self.MODE} failed for audience {job.audience_id}: {exc}")
            delete_partition_files(self._blob_store, job)
            self._notify_failure(job, exc)
            raise

        delete_partition_files(self._blob_store, job)
        if accumulator is None:
            Log.warning(f"No customer data found for audience {job.audience_id}")
            return StageResult.skipped("No customer data found")

        Log.info(f"{self.MODE} completed for audience {job.audience_id}: {accumulator.summary()}")
        self._enqueue_status_check(job, accumulator)
        self._notify_success(job, accumulator)
        Log.info(f"===== {self.MODE} END: audience {job.audience_id} =====")
        return StageResult.success(accumulator.summary())

    @abstractmethod
    def _upload(self, job: AudienceJob) -> UploadAccumulator | None:
        """Upload the job's records. Returns None when there was nothing to send."""

    def _load_partition(self, job: AudienceJob, path: str) -> list[CustomerRecord] | None:
        """Read one partition file. Returns None if it is missing or empty.

        Raises:
            PartitionFileError: if the file is not valid JSON.
        """
        if not self._blob_store.exists(job.container_name, path):
            Log.warning(f"Partition file {path} does not exist, skipping")
            return None
        Log.info(f"Downloading partition file {path}")
        content = self._blob_store.download(job.container_name, path)
        if not content.strip():
            Log.warning(f"Partition file {path} is empty, skipping")
            return None
        try:
            entries = json.loads(content)
        except json.JSONDecodeError as exc:
            raise PartitionFileError(f"Partition file {path} is not valid JSON: {exc}") from exc
        if not isinstance(entries, list) or not entries:
            Log.warning(f"Partition file {path} is empty or invalid, skipping")
            return None
        if not all(isinstance(entry, dict) for entry in entries):
            raise PartitionFileError(f"Partition file {path} must contain JSON objects")
        return [CustomerRecord.from_mapping(entry) for entry in entries]

    def _enqueue_status_check(self, job: AudienceJob, accumulator: UploadAccumulator) -> None:
        status_job = StatusCheckJob(
            audience_id=job.audience_id,
            audience_name=job.audience_name,
            user_email=job.user_email,
            expected_size=accumulator.expected_size,
        )
        delay_seconds = self._settings.status_check_delay_minutes * 60
        try:
            self._queue.enqueue(
                self._settings.status_check_queue_name,
                status_check_job_to_message(status_job),
                delay_seconds=delay_seconds,
            )
        except Exception as exc:
            Log.error(f"Failed to enqueue status check for audience {job.audience_id}: {exc}")
            return
        Log.info(
            f"Status check for audience {job.audience_id} scheduled in "
            f"{self._settings.status_check_delay_minutes} minutes "
            f"(expected size {status_job.expected_size})"
        )

    def _notify_success(self, job: AudienceJob, accumulator: UploadAccumulator) -> None:
        subject = f"Facebook Audience {self.MODE} Completed: {job.audience_name or job.audience_id}"
        body = (
            f"The {self.MODE.lower()} process for audience {job.audience_name} "
            f"({job.audience_id}) has completed.\n"
            f"{accumulator.summary()}\n"
            f"session_id: {accumulator.session_id}"
        )
        if accumulator.batches == 0:
            # Partition files are deleted on failure, so a redelivered job finds none
            body += (
                "\n\nNo partition files were found, so nothing was uploaded. "
                "If an earlier attempt for this audience failed, its data was not "
                "sent and the audience should be synced again."
            )
            Log.warning(f"No partition files found for audience {job.audience_id}")
        self._notifier.send(self._recipient(job), subject, body)

    def _notify_failure(self, job: AudienceJob, exc: Exception) -> None:
        subject = f"Error in Facebook Audience {self.MODE}: {job.audience_name or job.audience_id}"
        body = (
            f"The {self.MODE.lower()} process for audience {job.audience_name} "
            f"({job.audience_id}) failed.\n"
            f"Error: {type(exc).__name__}: {exc}"
        )
        self._notifier.send(self._recipient(job), subject, body)

    def _recipient(self, job: AudienceJob) -> str:
        return job.user_email or self._settings.admin_notification_email


class PopulateUploader(BaseUploader):
    """Incremental add: each partition file is chunked and sent on its own."""

    MODE = "Populate"
    IS_REPLACE = False

    def _upload(self, job: AudienceJob) -> UploadAccumulator:
        accumulator = UploadAccumulator()
        batch_size = self._settings.populate_batch_size
        for path in job.blob_paths:
            records = self._load_partition(job, path)
            if records is None:
                continue
            for batch in chunked(records, batch_size):
                delta = self._audience_client.add_users(
                    job.audience_id, job.access_token, hash_records(batch)
                )
                accumulator = accumulator.merge(delta)
                Log.info(
                    f"Batch {accumulator.batches} from {path}: "
                    f"received {delta.num_received}, invalid {delta.num_invalid_entries}"
                )
        return accumulator


class ReplaceUploader(BaseUploader):
    """Full replacement: all partitions combined into one ordered session."""

    MODE = "Replace"
    IS_REPLACE = True

    def __init__(
        self,
        *,
        blob_store: BaseBlobStore,
        audience_client: AudienceClient,
        queue: QueueRepository,
        notifier: BaseNotifier,
        settings: Settings,
        session_id_factory: Callable[[], int] = generate_session_id,
    ) -> None:
        super().__init__(
            blob_store=blob_store,
            audience_client=audience_client,
            queue=queue,
            notifier=notifier,
            settings=settings,
        )
        self._session_id_factory = session_id_factory

    def _upload(self, job: AudienceJob) -> UploadAccumulator | None:
        records: list[CustomerRecord] = []
        for path in job.blob_paths:
            loaded = self._load_partition(job, path)
            if loaded is not None:
                records.extend(loaded)
        if not records:
            return None

        total = len(records)
        batch_size = self._settings.replace_batch_size
        batch_count = -(-total // batch_size)
        session_id = self._session_id_factory()
        Log.info(
            f"Replacing audience {job.audience_id} with {total} records "
            f"in {batch_count} batches (session {session_id})"
        )

        accumulator = UploadAccumulator()
        for batch_seq, batch in enumerate(chunked(records, batch_size), start=1):
            session = ReplaceSession(
                session_id=session_id,
                batch_seq=batch_seq,
                last_batch_flag=batch_seq == batch_count,
                estimated_num_total=total,
            )
            delta = self._audience_client.replace_users(
                job.audience_id, job.access_token, hash_records(batch), session
            )
            accumulator = accumulator.merge(delta)
            Log.info(
                f"Batch {batch_seq}/{batch_count}: "
                f"received {delta.num_received}, invalid {delta.num_invalid_entries}"
            )
        return accumulator
