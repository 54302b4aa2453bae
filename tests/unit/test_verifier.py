import json
from unittest.mock import MagicMock

import httpx
import pytest

from audience_sync.config.exceptions import MissingConfigurationError
from audience_sync.config.settings import Settings
from audience_sync.notification.base import BaseNotifier
from audience_sync.platform.client import AudienceStatusClient
from audience_sync.platform.exceptions import (
    AudienceNotFoundError,
    PlatformApiError,
    PlatformNetworkError,
    PlatformResponseError,
)
from audience_sync.platform.models import AudienceStatus, DeliveryStatus
from audience_sync.processor.pipeline import StageStatus
from audience_sync.processor.verifier import (
    Alert,
    VerificationThresholds,
    Verifier,
    evaluate_status,
)


def _status(
    lower: int | None = 5000,
    upper: int | None = 8000,
    code: int | None = 200,
) -> AudienceStatus:
    return AudienceStatus(
        id="123",
        name="Loyal Customers",
        description="CRM export",
        approximate_count_lower_bound=lower,
        approximate_count_upper_bound=upper,
        delivery_status=None if code is None else DeliveryStatus(code, "status text"),
    )


def _make_verifier(settings: Settings) -> tuple[Verifier, MagicMock, MagicMock]:
    status_client = MagicMock(spec=AudienceStatusClient)
    notifier = MagicMock(spec=BaseNotifier)
    verifier = Verifier(status_client=status_client, notifier=notifier, settings=settings)
    return verifier, status_client, notifier


def _message(expected_size: int = 10000, user_email: str = "owner@example.com") -> str:
    return json.dumps(
        {
            "audienceId": "123",
            "audienceName": "Loyal Customers",
            "userEmail": user_email,
            "expectedSize": expected_size,
        }
    )


class TestEvaluateStatus:
    thresholds = VerificationThresholds()

    def test_low_estimated_size(self) -> None:
        alert = evaluate_status(_status(500, 900), 10000, self.thresholds)
        assert alert is not None
        assert alert.reason == "Low Estimated Size"
        assert "(500-900)" in alert.details

    def test_low_size_takes_priority_over_not_ready(self) -> None:
        alert = evaluate_status(_status(500, 900, code=300), 10000, self.thresholds)
        assert alert is not None
        assert alert.reason == "Low Estimated Size"

    def test_low_size_with_unknown_lower_bound(self) -> None:
        alert = evaluate_status(_status(None, 1000), 0, self.thresholds)
        assert alert is not None
        assert alert.reason == "Low Estimated Size"

    def test_poor_match_rate(self) -> None:
        alert = evaluate_status(_status(1000, 1200), 20000, self.thresholds)
        assert alert is not None
        assert alert.reason == "Poor Match Rate"
        assert "6.0%" in alert.details

    def test_poor_match_rate_at_boundary(self) -> None:
        alert = evaluate_status(_status(1500, 2000), 20000, self.thresholds)
        assert alert is not None
        assert alert.reason == "Poor Match Rate"
        assert "10.0%" in alert.details

    def test_no_poor_match_check_when_nothing_expected(self) -> None:
        assert evaluate_status(_status(1500, 2000), 0, self.thresholds) is None

    def test_not_ready(self) -> None:
        alert = evaluate_status(_status(code=300), 10000, self.thresholds)
        assert alert is not None
        assert alert.reason == "Audience Not Ready (Status Code: 300)"
        assert "'status text'" in alert.details

    def test_healthy_audience(self) -> None:
        assert evaluate_status(_status(5000, 8000), 10000, self.thresholds) is None

    def test_unknown_bounds_and_delivery(self) -> None:
        assert evaluate_status(_status(None, None, code=None), 10000, self.thresholds) is None

    def test_delivery_without_code_is_not_an_alert(self) -> None:
        status = AudienceStatus(
            id="123",
            approximate_count_lower_bound=5000,
            approximate_count_upper_bound=8000,
            delivery_status=DeliveryStatus(code=None, description="pending review"),
        )
        assert evaluate_status(status, 10000, self.thresholds) is None

    def test_custom_thresholds(self) -> None:
        thresholds = VerificationThresholds(low_size=10, poor_match_ratio=0.5, ready_status_code=201)
        alert = evaluate_status(_status(300, 400, code=201), 1000, thresholds)
        assert alert == Alert(
            reason="Poor Match Rate",
            details=(
                "Estimated audience size upper bound (400) is less than 50% of the expected "
                "size (1000). Actual match rate: 40.0%. Delivery Status: 201 - status text"
            ),
        )


class TestVerifierAlerts:
    def test_sends_alert_email(self, make_settings) -> None:
        verifier, status_client, notifier = _make_verifier(make_settings())
        status_client.get_status.return_value = _status(500, 900)

        result = verifier.handle(_message())

        status_client.get_status.assert_called_once_with("123")
        recipient, subject, body = notifier.send.call_args.args
        assert recipient == "owner@example.com"
        assert subject == "ALERT: Facebook Audience Issue (Low Estimated Size) - Loyal Customers"
        assert "Reason: Low Estimated Size" in body
        assert result.status == StageStatus.SUCCESS
        assert result.message == "Low Estimated Size"

    def test_alert_falls_back_to_admin(self, make_settings) -> None:
        verifier, status_client, notifier = _make_verifier(make_settings())
        status_client.get_status.return_value = _status(code=400)

        verifier.handle(_message(user_email=""))

        assert notifier.send.call_args.args[0] == "ops@example.com"

    @pytest.mark.parametrize(
        ("error", "reason"),
        [
            (AudienceNotFoundError("gone", status_code=404), "Audience Not Found"),
            (PlatformApiError("boom", status_code=500), "Status Check API Error"),
            (PlatformNetworkError("timeout"), "Status Check API Error"),
            (PlatformResponseError("bad json"), "Status Check Internal Error"),
        ],
    )
    def test_status_errors_become_alerts(self, make_settings, error, reason) -> None:
        verifier, status_client, notifier = _make_verifier(make_settings())
        status_client.get_status.side_effect = error

        result = verifier.handle(_message())

        assert result.message == reason
        assert notifier.send.call_args.args[1] == (
            f"ALERT: Facebook Audience Issue ({reason}) - Loyal Customers"
        )


class TestVerifierRoutineStatus:
    def test_healthy_sends_status_email(self, make_settings) -> None:
        verifier, status_client, notifier = _make_verifier(make_settings())
        status_client.get_status.return_value = _status(5000, 8000)

        result = verifier.handle(_message())

        _recipient, subject, body = notifier.send.call_args.args
        assert subject == "Facebook Audience Status: Loyal Customers"
        assert "Expected Size: ~10000" in body
        assert "Estimated Size: 5000 - 8000" in body
        assert "Delivery Status: 200 - status text" in body
        assert result.status == StageStatus.SUCCESS

    def test_healthy_only_logs_when_routine_email_disabled(self, make_settings) -> None:
        verifier, status_client, notifier = _make_verifier(
            make_settings(always_notify_status=False)
        )
        status_client.get_status.return_value = _status(5000, 8000)

        result = verifier.handle(_message())

        notifier.send.assert_not_called()
        assert "status check passed" in result.message


class TestVerifierConfiguration:
    def test_missing_status_url_raises(self, make_settings) -> None:
        verifier, status_client, _notifier = _make_verifier(
            make_settings(status_api_base_url="")
        )

        with pytest.raises(MissingConfigurationError, match="status_api_base_url"):
            verifier.handle(_message())

        status_client.get_status.assert_not_called()


class TestVerifierWithStatusService:
    def test_delivery_status_without_code_sends_routine_email(self, make_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "id": "123",
                    "name": "Loyal Customers",
                    "approximate_count_lower_bound": 5000,
                    "approximate_count_upper_bound": 8000,
                    "delivery_status": {"description": "pending review"},
                },
            )

        status_client = AudienceStatusClient(
            httpx.Client(transport=httpx.MockTransport(handler)),
            base_url="https://status.example.com",
        )
        notifier = MagicMock(spec=BaseNotifier)
        verifier = Verifier(
            status_client=status_client, notifier=notifier, settings=make_settings()
        )

        result = verifier.handle(_message())

        _recipient, subject, body = notifier.send.call_args.args
        assert subject == "Facebook Audience Status: Loyal Customers"
        assert "Delivery Status: pending review" in body
        assert result.status == StageStatus.SUCCESS
