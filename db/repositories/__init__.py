"""
Repository layer exports.
"""

from db.repositories.stream_failure_repository import (
    StreamFailureRepository,
    stream_failure_to_row,
)

__all__ = [
    "StreamFailureRepository",
    "stream_failure_to_row",
]
