from dataclasses import dataclass
from datetime import datetime

STATUS_PENDING = "pending"
STATUS_PROCESSING = "processing"
STATUS_DONE = "done"
STATUS_DEAD = "dead"


@dataclass
class QueueMessageRecord:
    """Represents a row from the queue_messages table."""

    id: int
    queue_name: str
    payload: str
    status: str
    attempts: int
    error_message: str | None = None
    visible_at: datetime | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
