"""Delayed post-upload verification of a custom audience.

Runs once per status-check message, after the queue's deferred visibility
has elapsed, and alerts when the platform reports an implausibly small
audience, a poor match rate or a delivery status other than ready.
"""

from dataclasses import dataclass

from audience_sync.config.settings import Settings, require_settings
from audience_sync.logging.logger import Log
from audience_sync.notification.base import BaseNotifier
from audience_sync.platform.client import AudienceStatusClient
from audience_sync.platform.exceptions import (
    AudienceNotFoundError,
    PlatformError,
    PlatformResponseError,
)
from audience_sync.platform.models import AudienceStatus
from audience_sync.processor.messages import parse_status_check_job
from audience_sync.processor.models import StatusCheckJob
from audience_sync.processor.pipeline import StageHandler, StageResult


@dataclass(frozen=True)
class Alert:
    reason: str
    details: str


@dataclass(frozen=True)
class VerificationThresholds:
    low_size: int = 1000
    poor_match_ratio: float = 0.10
    ready_status_code: int = 200


def _delivery_text(status: AudienceStatus) -> str:
    delivery = status.delivery_status
    if delivery is None:
        return "unknown"
    if delivery.code is None:
        return delivery.description or "unknown"
    return f"{delivery.code} - {delivery.description}"


def evaluate_status(
    status: AudienceStatus,
    expected_size: int,
    thresholds: VerificationThresholds,
) -> Alert | None:
    """Return the first matching alert, or None if the audience looks healthy.

    Checks run in priority order: low estimated size, poor match rate,
    delivery status not ready.
    """
    lower = status.approximate_count_lower_bound
    upper = status.approximate_count_upper_bound

    if (
        upper is not None
        and upper <= thresholds.low_size
        and (lower is None or lower <= thresholds.low_size)
    ):
        return Alert(
            reason="Low Estimated Size",
            details=(
                f"Estimated audience size is very low ({lower}-{upper}), suggesting few "
                f"or no matches. Expected ~{expected_size}. "
                f"Delivery Status: {_delivery_text(status)}"
            ),
        )

    if (
        expected_size > 0
        and upper is not None
        and upper <= expected_size * thresholds.poor_match_ratio
    ):
        match_percentage = upper / expected_size * 100
        return Alert(
            reason="Poor Match Rate",
            details=(
                f"Estimated audience size upper bound ({upper}) is less than "
                f"{thresholds.poor_match_ratio:.0%} of the expected size ({expected_size}). "
                f"Actual match rate: {match_percentage:.1f}%. "
                f"Delivery Status: {_delivery_text(status)}"
            ),
        )

    delivery = status.delivery_status
    if (
        delivery is not None
        and delivery.code is not None
        and delivery.code != thresholds.ready_status_code
    ):
        return Alert(
            reason=f"Audience Not Ready (Status Code: {delivery.code})",
            details=(
                f"Audience delivery status indicates it's not ready: "
                f"'{delivery.description}'. Expected Size: ~{expected_size}, "
                f"Actual Size: {lower}-{upper}."
            ),
        )

    return None


class Verifier(StageHandler):
    """Polls the audience status once and reports anomalies."""

    def __init__(
        self,
        *,
        status_client: AudienceStatusClient,
        notifier: BaseNotifier,
        settings: Settings,
    ) -> None:
        self._status_client = status_client
        self._notifier = notifier
        self._settings = settings
        self._thresholds = VerificationThresholds(
            low_size=settings.low_size_threshold,
            poor_match_ratio=settings.poor_match_ratio,
            ready_status_code=settings.ready_status_code,
        )

    def handle(self, body: str) -> StageResult:
        require_settings(self._settings, "status_api_base_url")
        job = parse_status_check_job(body)
        Log.info(
            f"Checking status for audience {job.audience_id} "
            f"({job.audience_name}), expected size {job.expected_size}"
        )

        try:
            status = self._status_client.get_status(job.audience_id)
        except AudienceNotFoundError:
            return self._alert(
                job,
                Alert(
                    reason="Audience Not Found",
                    details=(
                        f"The status check API could not find Audience ID {job.audience_id}. "
                        "It might have been deleted or never fully created."
                    ),
                ),
            )
        except PlatformResponseError as exc:
            return self._alert(
                job,
                Alert(
                    reason="Status Check Internal Error",
                    details=(
                        f"Could not process the status response for Audience ID "
                        f"{job.audience_id}: {exc}"
                    ),
                ),
            )
        except PlatformError as exc:
            return self._alert(
                job,
                Alert(
                    reason="Status Check API Error",
                    details=(
                        f"Could not check status for Audience ID {job.audience_id}. "
                        f"Error calling API: {exc}"
                    ),
                ),
            )

        alert = evaluate_status(status, job.expected_size, self._thresholds)
        if alert is not None:
            return self._alert(job, alert)

        summary = (
            f"Audience {job.audience_id} status check passed. Estimated size: "
            f"{status.approximate_count_lower_bound}-{status.approximate_count_upper_bound}. "
            f"Expected: {job.expected_size}. Status: {_delivery_text(status)}"
        )
        if self._settings.always_notify_status:
            self._notifier.send(
                self._recipient(job),
                f"Facebook Audience Status: {job.audience_name}",
                self._status_body(job, status),
            )
            Log.info(f"Sent routine status email for audience {job.audience_id}")
        else:
            Log.info(summary)
        return StageResult.success(summary)

    def _alert(self, job: StatusCheckJob, alert: Alert) -> StageResult:
        subject = f"ALERT: Facebook Audience Issue ({alert.reason}) - {job.audience_name}"
        body = (
            "An issue was detected for Facebook Custom Audience:\n\n"
            f"Audience ID: {job.audience_id}\n"
            f"Audience Name: {job.audience_name}\n\n"
            f"Reason: {alert.reason}\n\n"
            f"Details:\n{alert.details}\n\n"
            "Please investigate."
        )
        self._notifier.send(self._recipient(job), subject, body)
        Log.warning(f"Alert sent for audience {job.audience_id}. Reason: {alert.reason}")
        return StageResult.success(alert.reason)

    def _recipient(self, job: StatusCheckJob) -> str:
        return job.user_email or self._settings.admin_notification_email

    @staticmethod
    def _status_body(job: StatusCheckJob, status: AudienceStatus) -> str:
        return (
            f"Audience ID: {status.id}\n"
            f"Name: {status.name}\n"
            f"Description: {status.description}\n"
            f"Expected Size: ~{job.expected_size}\n"
            f"Estimated Size: {status.approximate_count_lower_bound} - "
            f"{status.approximate_count_upper_bound}\n"
            f"Delivery Status: {_delivery_text(status)}"
        )
