class StorageError(Exception):
    """Base exception for blob storage failures."""


class BlobNotFoundError(StorageError):
    """Raised when downloading a blob that does not exist."""


class BlobAlreadyExistsError(StorageError):
    """Raised when uploading without overwrite onto an existing blob."""
