"""
app/api/dependencies.py

Shared FastAPI dependencies for the stream failure endpoints.
"""

from __future__ import annotations

from functools import lru_cache

from app.config import FeedSettings, get_feed_settings
from app.services.record_store import RecordStore, build_record_store


def get_settings() -> FeedSettings:
    return get_feed_settings()


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    """
    Process-wide record store built from the current feed settings.
    """

    return build_record_store(get_feed_settings())
