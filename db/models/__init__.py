"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.stream_failure import StreamFailure

__all__ = [
    "StreamFailure",
]
