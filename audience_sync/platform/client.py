import json
from collections.abc import Sequence
from dataclasses import asdict

import httpx

from audience_sync.logging.logger import Log
from audience_sync.normalization.models import AUDIENCE_SCHEMA, NormalizedRow
from audience_sync.platform.exceptions import (
    AudienceNotFoundError,
    PlatformApiError,
    PlatformNetworkError,
    PlatformResponseError,
)
from audience_sync.platform.models import AudienceStatus, ReplaceSession
from audience_sync.platform.validator import build_audience_status, build_upload_delta
from audience_sync.processor.models import UploadDelta


def _build_users_payload(rows: Sequence[NormalizedRow]) -> str:
    return json.dumps({"schema": list(AUDIENCE_SCHEMA), "data": [list(row) for row in rows]})


def _parse_json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise PlatformResponseError(f"Platform returned invalid JSON: {exc}") from exc


class AudienceClient:
    """Custom-audience ingestion endpoints (add users, replace users).

    The HTTP client is owned by the caller; this class never closes it.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        *,
        base_url: str,
        api_version: str,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version

    def add_users(
        self,
        audience_id: str,
        access_token: str,
        rows: Sequence[NormalizedRow],
    ) -> UploadDelta:
        """Append one batch of hashed rows to the audience."""
        url = f"{self._base_url}/{self._api_version}/{audience_id}/users"
        files = {
            "payload": (None, _build_users_payload(rows)),
            "access_token": (None, access_token),
        }
        return self._post(url, files=files)

    def replace_users(
        self,
        audience_id: str,
        access_token: str,
        rows: Sequence[NormalizedRow],
        session: ReplaceSession,
    ) -> UploadDelta:
        """Submit one batch of a replace session."""
        url = f"{self._base_url}/{self._api_version}/{audience_id}/usersreplace"
        files = {
            "payload": (None, _build_users_payload(rows)),
            "session": (None, json.dumps(asdict(session))),
        }
        return self._post(url, files=files, params={"access_token": access_token})

    def _post(
        self,
        url: str,
        *,
        files: dict[str, tuple[None, str]],
        params: dict[str, str] | None = None,
    ) -> UploadDelta:
        try:
            response = self._http.post(url, files=files, params=params)
        except httpx.HTTPError as exc:
            raise PlatformNetworkError(f"Platform network error: {exc}") from exc
        if not response.is_success:
            raise PlatformApiError(
                f"Platform API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        return build_upload_delta(_parse_json(response))


class AudienceStatusClient:
    """Audience-status lookup used by the delayed verification stage."""

    def __init__(self, http_client: httpx.Client, *, base_url: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    def get_status(self, audience_id: str) -> AudienceStatus:
        """Fetch the audience status.

        Raises:
            AudienceNotFoundError: on HTTP 404.
            PlatformApiError: on any other non-success status.
            PlatformNetworkError: on transport failure.
            PlatformResponseError: on a malformed success body.
        """
        url = f"{self._base_url}/audiences/{audience_id}/status"
        try:
            response = self._http.get(url)
        except httpx.HTTPError as exc:
            raise PlatformNetworkError(f"Status API network error: {exc}") from exc
        if response.status_code == httpx.codes.NOT_FOUND:
            raise AudienceNotFoundError(
                f"Audience {audience_id} not found: {response.text}",
                status_code=response.status_code,
            )
        if not response.is_success:
            raise PlatformApiError(
                f"Status API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        Log.debug(f"Status API response for audience {audience_id}: {response.text}")
        return build_audience_status(_parse_json(response))
