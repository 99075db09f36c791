"""
Services Package

This package contains the incremental response decoder for LM Studio chat
streams and the services around it: the upstream client and request tracking.
"""

from .lm_studio_service import LMStudioService, lm_studio_service
from .request_tracking_service import RequestTrackingService, request_tracking_service
from .stream_decoder import StreamDecoder

__all__ = [
    "LMStudioService",
    "lm_studio_service",
    "RequestTrackingService",
    "request_tracking_service",
    "StreamDecoder",
]
