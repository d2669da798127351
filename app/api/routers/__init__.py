"""
app/api/routers package marker.
"""

from app.api.routers.stream_failures import router as stream_failures_router

__all__ = [
    "stream_failures_router",
]
