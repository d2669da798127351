from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import RECORD_STORE_HTTP, RECORD_STORE_MEMORY, RECORD_STORE_SQL
from app.schemas.stream_failure import HealthResponse


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable.

    Rules:
    - RECORD_STORE_BACKEND must be 'memory' (default), 'sql' or 'http'.
    - The SQL backend needs a database URL; no SQLite fallback is permitted.
    - FEED_PAGE_SIZE, when set, must be a positive integer.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Record store backend -------------------------------------------
    allowed = sorted({RECORD_STORE_MEMORY, RECORD_STORE_SQL, RECORD_STORE_HTTP})
    backend = os.getenv("RECORD_STORE_BACKEND", RECORD_STORE_MEMORY).strip().lower() or RECORD_STORE_MEMORY
    if backend not in allowed:
        errors.append(f"RECORD_STORE_BACKEND='{backend}' is not valid. Allowed values: {allowed}.")

    # --- Database URL ---------------------------------------------------
    if backend == RECORD_STORE_SQL:
        urls = [
            os.getenv(name, "").strip()
            for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
        ]
        if not any(urls):
            errors.append(
                "No database URL configured for the SQL record store. Set DATABASE_URL, "
                "CLOUD_DATABASE_URL or LOCAL_DATABASE_URL. SQLite fallbacks are not permitted."
            )

    # --- Page size ------------------------------------------------------
    page_size_raw = os.getenv("FEED_PAGE_SIZE", "").strip()
    if page_size_raw and (not page_size_raw.isdigit() or int(page_size_raw) < 1):
        errors.append(f"FEED_PAGE_SIZE='{page_size_raw}' must be a positive integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed - missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _ping_database() -> None:
    """Raise RuntimeError unless a trivial query succeeds on the record store database."""
    from sqlalchemy import text

    from db.session import get_engine

    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:
        raise RuntimeError("Record store database is unreachable.") from exc


def _require_stream_failure_tables() -> None:
    """
    Abort startup when a mapped table has not been migrated yet.

    Tables are never created here; run `alembic upgrade head` first.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  registers mapped tables on Base.metadata
    from db.base import Base
    from db.session import get_engine

    present = set(sa_inspect(get_engine()).get_table_names())
    absent = sorted(set(Base.metadata.tables) - present)
    if not absent:
        return

    logging.getLogger(__name__).critical(
        "Record store tables not migrated: %s. Run 'alembic upgrade head'.",
        ", ".join(absent),
    )
    raise RuntimeError(f"Missing tables: {', '.join(absent)}. Apply migrations before starting.")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema when the SQL store is selected, then warm the store."""
    from app.api.dependencies import get_record_store
    from app.config import get_feed_settings

    log = logging.getLogger(__name__)
    settings = get_feed_settings()
    if settings.record_store_backend == RECORD_STORE_SQL:
        _ping_database()
        _require_stream_failure_tables()
        log.info("SQL record store reachable and migrated")

    get_record_store()
    log.info("Record store ready backend=%s page_size=%d", settings.record_store_backend, settings.page_size)
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Stream Failure Viewer API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import stream_failures_router

    application.include_router(stream_failures_router)

    @application.get("/health")
    def healthcheck() -> HealthResponse:
        from app.config import get_feed_settings

        return HealthResponse(
            status="ok",
            record_store_backend=get_feed_settings().record_store_backend,
        )

    return application


app = create_app()
