import httpx

from audience_sync.config.settings import Settings, require_settings
from audience_sync.notification.base import BaseNotifier
from audience_sync.notification.http_mail_adapter import HttpMailNotifier
from audience_sync.notification.log_adapter import LogNotifier


class NotifierFactory:
    """Creates the configured notifier adapter."""

    ENGINES: tuple[str, ...] = ("http", "log")

    @classmethod
    def create(cls, settings: Settings, http_client: httpx.Client) -> BaseNotifier:
        engine = settings.notifier_engine.lower()
        if engine == "log":
            return LogNotifier()
        if engine == "http":
            require_settings(settings, "notification_email_url")
            return HttpMailNotifier(http_client, endpoint_url=settings.notification_email_url)
        raise ValueError(
            f"Unknown notifier engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
