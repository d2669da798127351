"""
app/schemas package marker.
"""

from app.schemas.stream_failure import (
    HealthResponse,
    StatusOptionResponse,
    StatusPresentationResponse,
    StreamFailureCreateRequest,
    StreamFailureDetailResponse,
    StreamFailureOptionsResponse,
    StreamFailurePageResponse,
    StreamFailureResponse,
)

__all__ = [
    "HealthResponse",
    "StatusOptionResponse",
    "StatusPresentationResponse",
    "StreamFailureCreateRequest",
    "StreamFailureDetailResponse",
    "StreamFailureOptionsResponse",
    "StreamFailurePageResponse",
    "StreamFailureResponse",
]
