import time

from audience_sync.config.settings import Settings
from audience_sync.database.connection import get_connection
from audience_sync.database.models import QueueMessageRecord
from audience_sync.database.repositories.queue_repository import QueueRepository
from audience_sync.logging.logger import Log
from audience_sync.worker.job_runner import JobRunner


class Worker:
    """Poll loop: sleep -> claim -> dispatch."""

    def __init__(
        self,
        queue_repo: QueueRepository,
        job_runner: JobRunner,
        settings: Settings,
    ) -> None:
        self._queue_repo = queue_repo
        self._job_runner = job_runner
        self._settings = settings

    def run(self, max_messages: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_messages is set, stop after processing that many messages (for testing).
        """
        Log.info(f"Worker started, polling queues {self._job_runner.queue_names}")
        processed = 0
        try:
            while max_messages is None or processed < max_messages:
                message = self._try_claim_message()
                if message:
                    self._job_runner.run(message)
                    processed += 1
                else:
                    Log.debug("No messages available, sleeping")
                    time.sleep(self._settings.queue_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _try_claim_message(self) -> QueueMessageRecord | None:
        """Attempt to claim the next visible message. Gracefully handle DB errors."""
        try:
            with get_connection() as conn:
                return self._queue_repo.claim_next_message(conn, self._job_runner.queue_names)
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return None
