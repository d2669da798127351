"""
app/domain/errors.py

Exceptions raised by the stream failure feed and its record stores.
"""

from __future__ import annotations


class StreamFailureError(Exception):
    """Base exception for stream failure feed and store failures."""


class QueryError(StreamFailureError):
    """Raised when the record store rejects or fails a read."""


class InsertError(StreamFailureError):
    """Raised when a new failure record cannot be created."""


class SortConfigurationError(StreamFailureError, ValueError):
    """Raised when a sort clause names a field that cannot be ordered."""


class RecordStoreRequestError(StreamFailureError):
    """
    Raised when the remote record store cannot be reached after retries.
    """
