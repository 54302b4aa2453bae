from audience_sync.logging.logger import Log
from audience_sync.processor.models import AudienceJob
from audience_sync.storage.base import BaseBlobStore


def delete_partition_files(blob_store: BaseBlobStore, job: AudienceJob) -> int:
    """Delete every partition file named by the job. Returns the number deleted.

    Failures are logged and skipped; cleanup never fails the caller.
    """
    deleted = 0
    for path in job.blob_paths:
        try:
            blob_store.delete(job.container_name, path)
            deleted += 1
        except Exception as exc:
            Log.error(f"Failed to delete partition file {job.container_name}/{path}: {exc}")
    Log.info(
        f"Deleted {deleted}/{len(job.blob_paths)} partition files",
        audience_id=job.audience_id,
    )
    return deleted
