"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from db.config import load_env_files

RECORD_STORE_MEMORY = "memory"
RECORD_STORE_SQL = "sql"
RECORD_STORE_HTTP = "http"
_ALLOWED_RECORD_STORE_BACKENDS = {RECORD_STORE_MEMORY, RECORD_STORE_SQL, RECORD_STORE_HTTP}

_DEFAULT_ORG_IDS: tuple[str, ...] = ("org-001", "org-002", "org-003", "org-004", "org-005")


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_optional_int_env(name: str) -> int | None:
    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value)
    except ValueError:
        return None


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; blank entries are dropped.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def require_record_store_backend() -> str:
    """
    Read and validate RECORD_STORE_BACKEND from the environment.
    """

    raw = _get_str_env("RECORD_STORE_BACKEND", RECORD_STORE_MEMORY)
    backend = raw.lower()
    if backend not in _ALLOWED_RECORD_STORE_BACKENDS:
        raise RuntimeError(
            f"RECORD_STORE_BACKEND '{raw}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_RECORD_STORE_BACKENDS)}."
        )
    return backend


@dataclass(frozen=True)
class FeedSettings:
    """
    Runtime settings for the stream failure feed and its backing store.
    """

    record_store_backend: str = RECORD_STORE_MEMORY
    page_size: int = 200
    mock_failure_count: int = 1000
    mock_failure_seed: int | None = None
    org_ids: tuple[str, ...] = field(default=_DEFAULT_ORG_IDS)


@dataclass(frozen=True)
class RecordStoreHTTPSettings:
    """
    HTTP behavior settings for the remote record store client.
    """

    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0


@lru_cache(maxsize=1)
def get_feed_settings() -> FeedSettings:
    """
    Return cached feed settings from environment variables.

    Raises RuntimeError if RECORD_STORE_BACKEND names an unknown backend.
    """

    return FeedSettings(
        record_store_backend=require_record_store_backend(),
        page_size=max(1, _get_int_env("FEED_PAGE_SIZE", 200)),
        mock_failure_count=max(0, _get_int_env("MOCK_FAILURE_COUNT", 1000)),
        mock_failure_seed=_get_optional_int_env("MOCK_FAILURE_SEED"),
        org_ids=_get_csv_env("STREAM_FAILURE_ORG_IDS", _DEFAULT_ORG_IDS),
    )


@lru_cache(maxsize=1)
def get_record_store_http_settings() -> RecordStoreHTTPSettings:
    """
    Return remote record store client settings from environment variables.
    """

    return RecordStoreHTTPSettings(
        base_url=_get_str_env("RECORD_STORE_BASE_URL", "http://localhost:8000").rstrip("/"),
        timeout_seconds=max(1.0, _get_float_env("RECORD_STORE_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("RECORD_STORE_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("RECORD_STORE_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("RECORD_STORE_BACKOFF_MULTIPLIER", 2.0)),
    )
