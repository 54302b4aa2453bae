from pydantic_settings import BaseSettings, SettingsConfigDict

from audience_sync.config.exceptions import MissingConfigurationError


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "audience_sync"
    db_username: str = "audience_sync"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    db_pool_timeout_seconds: float = 30.0

    max_message_attempts: int = 5
    queue_poll_interval_seconds: int = 5
    visibility_timeout_seconds: int = 600
    retry_delay_seconds: int = 30
    queue_message_base64: bool = False

    extract_queue_name: str = "extract-queue"
    populate_queue_name: str = "populate-queue"
    replace_queue_name: str = "replace-queue"
    status_check_queue_name: str = "status-check-queue"

    blob_engine: str = "local"
    blob_root: str = "/app/blobs"
    default_container_name: str = "fb-audiences-data"
    s3_endpoint_url: str = ""
    s3_region: str = "us-east-1"
    s3_access_key: str = ""
    s3_secret_key: str = ""

    warehouse_dsn: str = ""

    partition_file_size: int = 50000
    populate_batch_size: int = 9999
    replace_batch_size: int = 5000

    platform_api_base_url: str = "https://graph.facebook.com"
    platform_api_version: str = "v20.0"
    http_timeout_seconds: int = 60
    status_api_base_url: str = ""

    status_check_delay_minutes: int = 150
    low_size_threshold: int = 1000
    poor_match_ratio: float = 0.10
    ready_status_code: int = 200
    always_notify_status: bool = True

    notifier_engine: str = "http"
    notification_email_url: str = ""
    admin_notification_email: str = ""


def require_settings(settings: Settings, *names: str) -> None:
    """Raise MissingConfigurationError if any named setting is empty."""
    missing = [name for name in names if not str(getattr(settings, name, "") or "").strip()]
    if missing:
        raise MissingConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )
