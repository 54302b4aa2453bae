"""Queue message wire format.

Messages are JSON objects with camelCase keys, optionally base64-encoded.
Keys are matched case-insensitively because older producers emitted
PascalCase (``AudienceId``).
"""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any

from audience_sync.processor.exceptions import MessageDecodeError
from audience_sync.processor.models import AudienceJob, ExtractJob, StatusCheckJob


def encode_message(payload: Mapping[str, Any], base64_encoded: bool = False) -> str:
    body = json.dumps(payload, separators=(",", ":"))
    if base64_encoded:
        return base64.b64encode(body.encode("utf-8")).decode("ascii")
    return body


def decode_message(body: str | bytes) -> dict[str, Any]:
    """Decode a plain or base64-encoded JSON object.

    Raises:
        MessageDecodeError: if the body is not a JSON object in either form.
    """
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    text = text.strip()
    if not text.startswith("{"):
        try:
            text = base64.b64decode(text, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise MessageDecodeError(f"Message is neither JSON nor base64 JSON: {exc}") from exc
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MessageDecodeError(f"Invalid JSON message: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MessageDecodeError("Message must be a JSON object")
    return {str(key).lower(): value for key, value in parsed.items()}


def parse_extract_job(body: str | bytes, default_container: str) -> ExtractJob:
    data = decode_message(body)
    return ExtractJob(
        audience_id=_require_str(data, "audienceId"),
        audience_name=_optional_str(data, "audienceName"),
        sql=_require_str(data, "sql"),
        access_token=_require_str(data, "facebookAccessToken"),
        is_replace=_optional_bool(data, "isReplace"),
        container_name=_optional_str(data, "containerName") or default_container,
        user_email=_optional_str(data, "userEmail"),
    )


def parse_audience_job(body: str | bytes, is_replace: bool) -> AudienceJob:
    data = decode_message(body)
    blob_paths = data.get("blobpaths")
    if not isinstance(blob_paths, list) or not all(isinstance(p, str) for p in blob_paths):
        raise MessageDecodeError("'blobPaths' must be a list of strings")
    return AudienceJob(
        audience_id=_require_str(data, "audienceId"),
        audience_name=_optional_str(data, "audienceName"),
        access_token=_require_str(data, "facebookAccessToken"),
        container_name=_require_str(data, "containerName"),
        blob_paths=tuple(blob_paths),
        user_email=_optional_str(data, "userEmail"),
        is_replace=is_replace,
    )


def parse_status_check_job(body: str | bytes) -> StatusCheckJob:
    data = decode_message(body)
    expected = data.get("expectedsize", 0)
    if isinstance(expected, bool) or not isinstance(expected, (int, float)):
        raise MessageDecodeError("'expectedSize' must be a number")
    return StatusCheckJob(
        audience_id=_require_str(data, "audienceId"),
        audience_name=_optional_str(data, "audienceName"),
        user_email=_optional_str(data, "userEmail"),
        expected_size=int(expected),
    )


def audience_job_to_message(job: AudienceJob) -> dict[str, Any]:
    return {
        "audienceId": job.audience_id,
        "audienceName": job.audience_name,
        "facebookAccessToken": job.access_token,
        "containerName": job.container_name,
        "blobPaths": list(job.blob_paths),
        "userEmail": job.user_email,
    }


def status_check_job_to_message(job: StatusCheckJob) -> dict[str, Any]:
    return {
        "audienceId": job.audience_id,
        "audienceName": job.audience_name,
        "userEmail": job.user_email,
        "expectedSize": job.expected_size,
    }


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key.lower())
    if not isinstance(value, str) or not value.strip():
        raise MessageDecodeError(f"'{key}' must be a non-empty string")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key.lower())
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MessageDecodeError(f"'{key}' must be a string")
    return value


def _optional_bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key.lower(), False)
    if not isinstance(value, bool):
        raise MessageDecodeError(f"'{key}' must be a boolean")
    return value
