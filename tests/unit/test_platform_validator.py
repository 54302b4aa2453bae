import pytest

from audience_sync.platform.exceptions import PlatformResponseError
from audience_sync.platform.validator import build_audience_status, build_upload_delta


class TestBuildUploadDelta:
    def test_builds_delta(self) -> None:
        delta = build_upload_delta(
            {
                "session_id": 123,
                "num_received": 10,
                "num_invalid_entries": 2,
                "invalid_entry_samples": ["a", "b"],
            }
        )
        assert delta.session_id == "123"
        assert delta.num_received == 10
        assert delta.num_invalid_entries == 2
        assert delta.invalid_entry_samples == ("a", "b")

    def test_object_samples_become_entries(self) -> None:
        delta = build_upload_delta(
            {
                "num_received": 1,
                "num_invalid_entries": 1,
                "invalid_entry_samples": {"abc": "bad email"},
            }
        )
        assert delta.invalid_entry_samples == ({"abc": "bad email"},)
        assert delta.session_id == ""

    def test_missing_counter_raises(self) -> None:
        with pytest.raises(PlatformResponseError, match="num_received"):
            build_upload_delta({"num_invalid_entries": 0})

    def test_non_integer_counter_raises(self) -> None:
        with pytest.raises(PlatformResponseError, match="num_invalid_entries"):
            build_upload_delta({"num_received": 1, "num_invalid_entries": "n/a"})

    def test_non_object_raises(self) -> None:
        with pytest.raises(PlatformResponseError):
            build_upload_delta([])


class TestBuildAudienceStatus:
    def test_missing_bounds_are_none(self) -> None:
        status = build_audience_status({"id": "1"})
        assert status.approximate_count_lower_bound is None
        assert status.approximate_count_upper_bound is None
        assert status.delivery_status is None

    def test_missing_id_raises(self) -> None:
        with pytest.raises(PlatformResponseError, match="id"):
            build_audience_status({"name": "x"})

    def test_delivery_status_without_code(self) -> None:
        status = build_audience_status(
            {"id": "1", "delivery_status": {"code": None, "description": "pending review"}}
        )
        assert status.delivery_status is not None
        assert status.delivery_status.code is None
        assert status.delivery_status.description == "pending review"

    def test_delivery_status_must_be_object(self) -> None:
        with pytest.raises(PlatformResponseError, match="delivery_status"):
            build_audience_status({"id": "1", "delivery_status": "ready"})
