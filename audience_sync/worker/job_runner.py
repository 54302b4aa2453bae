from audience_sync.config.settings import Settings
from audience_sync.database.models import QueueMessageRecord
from audience_sync.database.repositories.queue_repository import QueueRepository
from audience_sync.logging.logger import Log
from audience_sync.processor.exceptions import UnknownQueueError
from audience_sync.processor.pipeline import StageHandler


class JobRunner:
    """Run one queue message through its stage, catch exceptions, and apply retry logic."""

    def __init__(
        self,
        handlers: dict[str, StageHandler],
        queue_repo: QueueRepository,
        settings: Settings,
    ) -> None:
        self._handlers = handlers
        self._queue_repo = queue_repo
        self._settings = settings

    @property
    def queue_names(self) -> list[str]:
        return list(self._handlers)

    def run(self, message: QueueMessageRecord) -> None:
        """Execute a single message with error handling."""
        Log.info(
            f"Running message {message.id} from {message.queue_name} "
            f"(attempt {message.attempts + 1})"
        )
        try:
            handler = self._handlers.get(message.queue_name)
            if handler is None:
                raise UnknownQueueError(f"No stage registered for queue '{message.queue_name}'")
            result = handler.handle(message.payload)
            self._queue_repo.mark_done(message.id)
            Log.info(f"Message {message.id} completed: {result.status.value} {result.message}")
        except Exception as exc:
            self._handle_failure(message, exc)

    def _handle_failure(self, message: QueueMessageRecord, exc: Exception) -> None:
        """Release for redelivery, or dead-letter once attempts are exhausted."""
        Log.exception(f"Message {message.id} failed: {exc}")
        error = f"{type(exc).__name__}: {exc}"
        if message.attempts + 1 >= self._settings.max_message_attempts:
            self._queue_repo.mark_dead_lettered(message.id, error)
            Log.error(
                f"Message {message.id} dead-lettered after {message.attempts + 1} attempts"
            )
        else:
            self._queue_repo.release_for_retry(
                message.id, error, self._settings.retry_delay_seconds
            )
            Log.warning(f"Message {message.id} will be redelivered (attempt {message.attempts + 1})")
