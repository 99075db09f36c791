"""
Request Tracking Service

Keeps the registry of in-flight chat streams so a client can cancel one by id.
A cancelled stream stops reading from LM Studio at the next frame and still
sends its final stats record.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class ActiveRequest:
    """An in-flight chat stream"""

    request_id: str
    model: str
    created_at: datetime = field(default_factory=datetime.now)
    cancelled: bool = False


class RequestTrackingService:
    def __init__(self):
        self._active_requests: dict[str, ActiveRequest] = {}

    def generate_request_id(self) -> str:
        return str(uuid.uuid4())

    def register_request(self, model: str, request_id: str | None = None) -> str:
        """
        Start tracking a chat stream.

        Args:
            model: Model serving the stream
            request_id: Client-supplied id; a fresh UUID when omitted

        Returns:
            The id the stream is tracked under
        """
        request_id = request_id or self.generate_request_id()
        self._active_requests[request_id] = ActiveRequest(request_id, model)
        logger.info(f"[RequestTracking] Registered {request_id} (model={model})")
        return request_id

    def cancel_request(self, request_id: str) -> bool:
        """Flag a stream for cancellation. False when the id is unknown."""
        active = self._active_requests.get(request_id)
        if active is None:
            logger.warning(f"[RequestTracking] Cannot cancel unknown request {request_id}")
            return False

        if not active.cancelled:
            active.cancelled = True
            logger.info(f"[RequestTracking] Cancelled {request_id}")
        return True

    def is_cancelled(self, request_id: str) -> bool:
        active = self._active_requests.get(request_id)
        return active is not None and active.cancelled

    def complete_request(self, request_id: str) -> bool:
        """Stop tracking a finished stream. False when it was not tracked."""
        if self._active_requests.pop(request_id, None) is None:
            return False
        logger.info(f"[RequestTracking] Completed {request_id}")
        return True

    def get_active_requests(self) -> dict[str, ActiveRequest]:
        return dict(self._active_requests)


request_tracking_service = RequestTrackingService()
