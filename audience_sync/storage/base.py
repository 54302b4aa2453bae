from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Contract for blob storage adapters holding partition files."""

    @abstractmethod
    def exists(self, container: str, path: str) -> bool:
        """Return True if the blob exists."""

    @abstractmethod
    def download(self, container: str, path: str) -> bytes:
        """Return the blob content.

        Raises:
            BlobNotFoundError: if the blob does not exist.
            StorageError: on any other failure.
        """

    @abstractmethod
    def upload(self, container: str, path: str, data: bytes, overwrite: bool = True) -> None:
        """Write the blob, creating the container if needed.

        Raises:
            BlobAlreadyExistsError: if overwrite is False and the blob exists.
            StorageError: on any other failure.
        """

    @abstractmethod
    def delete(self, container: str, path: str) -> None:
        """Delete the blob. Deleting a missing blob is a no-op."""
