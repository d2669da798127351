"""
tests/test_config.py

Environment-driven settings, startup validation and the health endpoint.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_record_store
from app.config import (
    RECORD_STORE_HTTP,
    RECORD_STORE_MEMORY,
    RECORD_STORE_SQL,
    get_feed_settings,
    get_record_store_http_settings,
)
from app.connectors.record_store_http import HttpRecordStore
from app.main import create_app
from db.config import normalize_postgres_url, resolve_database_url

_ENV_VARS = (
    "RECORD_STORE_BACKEND",
    "FEED_PAGE_SIZE",
    "MOCK_FAILURE_COUNT",
    "MOCK_FAILURE_SEED",
    "STREAM_FAILURE_ORG_IDS",
    "RECORD_STORE_BASE_URL",
    "RECORD_STORE_MAX_RETRIES",
    "DATABASE_URL",
    "CLOUD_DATABASE_URL",
    "LOCAL_DATABASE_URL",
    "ENVIRONMENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_feed_settings.cache_clear()
    get_record_store_http_settings.cache_clear()
    get_record_store.cache_clear()
    yield
    get_feed_settings.cache_clear()
    get_record_store_http_settings.cache_clear()
    get_record_store.cache_clear()


class TestFeedSettings:
    def test_defaults(self) -> None:
        settings = get_feed_settings()
        assert settings.record_store_backend == RECORD_STORE_MEMORY
        assert settings.page_size == 200
        assert settings.mock_failure_count == 1000
        assert settings.mock_failure_seed is None
        assert settings.org_ids == ("org-001", "org-002", "org-003", "org-004", "org-005")

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORD_STORE_BACKEND", "SQL")
        monkeypatch.setenv("FEED_PAGE_SIZE", "50")
        monkeypatch.setenv("MOCK_FAILURE_SEED", "9")
        monkeypatch.setenv("STREAM_FAILURE_ORG_IDS", "acme, , globex")

        settings = get_feed_settings()

        assert settings.record_store_backend == RECORD_STORE_SQL
        assert settings.page_size == 50
        assert settings.mock_failure_seed == 9
        assert settings.org_ids == ("acme", "globex")

    def test_invalid_numbers_fall_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED_PAGE_SIZE", "lots")
        monkeypatch.setenv("MOCK_FAILURE_SEED", "seed")
        settings = get_feed_settings()
        assert settings.page_size == 200
        assert settings.mock_failure_seed is None

    def test_unknown_backend_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORD_STORE_BACKEND", "redis")
        with pytest.raises(RuntimeError, match="RECORD_STORE_BACKEND"):
            get_feed_settings()

    def test_http_settings_are_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORD_STORE_BASE_URL", "https://records.internal/")
        monkeypatch.setenv("RECORD_STORE_MAX_RETRIES", "-4")
        settings = get_record_store_http_settings()
        assert settings.base_url == "https://records.internal"
        assert settings.max_retries == 0


class TestDatabaseUrl:
    def test_postgres_urls_use_psycopg_driver(self) -> None:
        assert normalize_postgres_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
        assert normalize_postgres_url("postgresql://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
        assert normalize_postgres_url("postgresql+psycopg://h/db") == "postgresql+psycopg://h/db"

    def test_direct_url_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql://direct/db")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")
        assert resolve_database_url() == "postgresql+psycopg://direct/db"

    def test_cloud_url_needs_cloud_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")
        assert resolve_database_url() == "postgresql+psycopg://local/db"

        monkeypatch.setenv("ENVIRONMENT", "production")
        assert resolve_database_url() == "postgresql+psycopg://cloud/db"

    def test_missing_url_raises(self) -> None:
        with pytest.raises(RuntimeError):
            resolve_database_url()


class TestApplication:
    def test_health_with_memory_store(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOCK_FAILURE_COUNT", "5")
        with TestClient(create_app()) as client:
            response = client.get("/health")
            listed = client.get("/stream-failures", params={"page_size": 10})

        assert response.json() == {"status": "ok", "record_store_backend": "memory"}
        assert len(listed.json()["items"]) == 5

    def test_http_backend_is_accepted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORD_STORE_BACKEND", "http")
        monkeypatch.setenv("RECORD_STORE_BASE_URL", "https://records.example.test")

        with TestClient(create_app()) as client:
            response = client.get("/health")

        assert get_feed_settings().record_store_backend == RECORD_STORE_HTTP
        assert isinstance(get_record_store(), HttpRecordStore)
        assert response.json() == {"status": "ok", "record_store_backend": "http"}

    def test_sql_backend_without_url_fails_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RECORD_STORE_BACKEND", "sql")
        with pytest.raises(RuntimeError, match="database URL"):
            create_app()

    def test_bad_page_size_fails_validation(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED_PAGE_SIZE", "0")
        with pytest.raises(RuntimeError, match="FEED_PAGE_SIZE"):
            create_app()
