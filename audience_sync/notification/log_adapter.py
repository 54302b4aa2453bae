from audience_sync.logging.logger import Log
from audience_sync.notification.base import BaseNotifier


class LogNotifier(BaseNotifier):
    """Writes notifications to the log instead of sending them.

    Useful for local development and tests.
    """

    def send(self, recipient: str, subject: str, body: str) -> bool:
        Log.info(f"Notification to {recipient or '<none>'}: {subject}\n{body}")
        return True
