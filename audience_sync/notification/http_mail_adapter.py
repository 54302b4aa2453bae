import httpx

from audience_sync.logging.logger import Log
from audience_sync.notification.base import BaseNotifier


class HttpMailNotifier(BaseNotifier):
    """Sends email through an HTTP mail relay (GET with query parameters)."""

    def __init__(self, http_client: httpx.Client, *, endpoint_url: str) -> None:
        self._http = http_client
        self._endpoint_url = endpoint_url

    def send(self, recipient: str, subject: str, body: str) -> bool:
        if not recipient:
            Log.warning(f"No recipient for notification '{subject}', skipping")
            return False
        params = {"emailTo": recipient, "subject": subject, "bodymessage": body}
        try:
            response = self._http.get(self._endpoint_url, params=params)
        except httpx.HTTPError as exc:
            Log.error(f"Notification '{subject}' failed: {exc}")
            return False
        if not response.is_success:
            Log.error(
                f"Notification '{subject}' failed with status {response.status_code}: "
                f"{response.text}"
            )
            return False
        Log.info(f"Notification '{subject}' sent to {recipient}")
        return True
