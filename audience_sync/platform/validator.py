"""Builds typed results from raw platform response JSON."""

from typing import Any

from audience_sync.platform.exceptions import PlatformResponseError
from audience_sync.platform.models import AudienceStatus, DeliveryStatus
from audience_sync.processor.models import UploadDelta


def build_upload_delta(data: Any) -> UploadDelta:
    """Validate an add/replace response and build its UploadDelta.

    Raises:
        PlatformResponseError: if a counter is missing or not an integer.
    """
    if not isinstance(data, dict):
        raise PlatformResponseError("Upload response must be an object")
    session_id = data.get("session_id")
    return UploadDelta(
        session_id="" if session_id is None else str(session_id),
        num_received=_require_int(data, "num_received"),
        num_invalid_entries=_require_int(data, "num_invalid_entries"),
        invalid_entry_samples=_build_samples(data.get("invalid_entry_samples")),
    )


def build_audience_status(data: Any) -> AudienceStatus:
    """Validate a status response and build an AudienceStatus.

    Raises:
        PlatformResponseError: on a malformed body.
    """
    if not isinstance(data, dict):
        raise PlatformResponseError("Status response must be an object")
    audience_id = data.get("id")
    if audience_id is None:
        raise PlatformResponseError("Status response is missing 'id'")
    return AudienceStatus(
        id=str(audience_id),
        name=str(data.get("name") or ""),
        description=str(data.get("description") or ""),
        approximate_count_lower_bound=_optional_int(data, "approximate_count_lower_bound"),
        approximate_count_upper_bound=_optional_int(data, "approximate_count_upper_bound"),
        delivery_status=_build_delivery_status(data.get("delivery_status")),
    )


def _require_int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        raise PlatformResponseError(f"Upload response is missing '{key}'")
    return _to_int(value, key)


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    return _to_int(value, key)


def _to_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise PlatformResponseError(f"'{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise PlatformResponseError(f"'{key}' must be an integer") from exc


def _build_samples(raw: Any) -> tuple[Any, ...]:
    # The platform reports samples either as a list or as an object keyed by entry
    if raw is None:
        return ()
    if isinstance(raw, list):
        return tuple(raw)
    if isinstance(raw, dict):
        return tuple({key: value} for key, value in raw.items())
    return (raw,)


def _build_delivery_status(raw: Any) -> DeliveryStatus | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise PlatformResponseError("'delivery_status' must be an object")
    return DeliveryStatus(
        code=_optional_int(raw, "code"),
        description=str(raw.get("description") or ""),
    )
