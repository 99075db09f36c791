"""Tests for RequestTrackingService."""

from lmchat.services.request_tracking_service import RequestTrackingService


class TestRequestTrackingService:
    """Tests for request registration, cancellation and completion."""

    def test_register_generates_id(self) -> None:
        service = RequestTrackingService()

        request_id = service.register_request(model="qwen3-8b")

        assert request_id
        assert service.get_active_requests()[request_id].model == "qwen3-8b"

    def test_register_with_explicit_id(self) -> None:
        service = RequestTrackingService()

        assert service.register_request(model="m", request_id="abc") == "abc"

    def test_cancel(self) -> None:
        service = RequestTrackingService()
        request_id = service.register_request(model="m")

        assert service.is_cancelled(request_id) is False
        assert service.cancel_request(request_id) is True
        assert service.is_cancelled(request_id) is True
        # Cancelling twice is fine
        assert service.cancel_request(request_id) is True

    def test_cancel_unknown(self) -> None:
        service = RequestTrackingService()

        assert service.cancel_request("missing") is False
        assert service.is_cancelled("missing") is False

    def test_complete_removes_request(self) -> None:
        service = RequestTrackingService()
        request_id = service.register_request(model="m")

        assert service.complete_request(request_id) is True
        assert service.complete_request(request_id) is False
        assert request_id not in service.get_active_requests()
