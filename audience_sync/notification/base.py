from abc import ABC, abstractmethod


class BaseNotifier(ABC):
    """Contract for notification channels."""

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> bool:
        """Deliver a message. Returns False on failure, never raises."""
