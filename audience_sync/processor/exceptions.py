class ProcessorError(Exception):
    """Base exception for all pipeline stage errors."""


class MessageDecodeError(ProcessorError):
    """Raised when a queue message body cannot be decoded into a job."""


class PartitionFileError(ProcessorError):
    """Raised when a partition file holds malformed JSON."""


class UnknownQueueError(ProcessorError):
    """Raised when a message arrives on a queue with no registered stage."""
