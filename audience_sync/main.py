import httpx

from audience_sync.config.settings import Settings
from audience_sync.database.connection import close_pool, init_pool
from audience_sync.database.repositories.queue_repository import QueueRepository
from audience_sync.logging.logger import Log
from audience_sync.processor.registry import build_stage_handlers
from audience_sync.worker.job_runner import JobRunner
from audience_sync.worker.worker import Worker


def main() -> None:
    """Entry point: initialize pool and HTTP client -> build stages -> start worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        with httpx.Client(timeout=settings.http_timeout_seconds) as http_client:
            queue_repo = QueueRepository(
                settings.max_message_attempts,
                visibility_timeout_seconds=settings.visibility_timeout_seconds,
                base64_payloads=settings.queue_message_base64,
            )
            handlers = build_stage_handlers(settings, http_client, queue_repo)
            job_runner = JobRunner(handlers, queue_repo, settings)
            worker = Worker(queue_repo, job_runner, settings)
            worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
