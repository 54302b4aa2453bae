class PlatformError(Exception):
    """Base exception for advertising platform calls."""


class PlatformApiError(PlatformError):
    """Raised when the platform answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AudienceNotFoundError(PlatformApiError):
    """Raised when the status endpoint does not know the audience."""


class PlatformNetworkError(PlatformError):
    """Raised when the platform call fails due to network/infrastructure issues."""


class PlatformResponseError(PlatformError):
    """Raised when a success response body does not have the expected shape."""
