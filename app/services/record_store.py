"""
app/services/record_store.py

Record store interface consumed by the failure feed, with in-memory and
SQL-backed implementations.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy.orm import Session

from app.config import (
    RECORD_STORE_HTTP,
    RECORD_STORE_SQL,
    FeedSettings,
    RecordStoreHTTPSettings,
    get_record_store_http_settings,
)
from app.connectors.record_store_http import HttpRecordStore
from app.domain.stream_failure import (
    NewFailureRecord,
    OrderByClause,
    PageWindow,
    QueryConstraint,
    StreamFailureEntity,
)
from app.mappers.stream_failure_mapper import entity_to_row
from app.services.failure_query import constraint_matches, sort_entities
from app.services.mock_failures import format_failure_id, generate_mock_failures
from db.repositories.stream_failure_repository import StreamFailureRepository, stream_failure_to_row

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def query(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> list[Mapping[str, Any]]:
        ...

    async def insert(self, record: NewFailureRecord) -> Mapping[str, Any]:
        ...


class InMemoryRecordStore:
    """
    Record store holding entities in a list, in insertion order.
    """

    def __init__(
        self,
        entities: Iterable[StreamFailureEntity] = (),
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._entities: list[StreamFailureEntity] = list(entities)
        self._next_index = len(self._entities)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __len__(self) -> int:
        return len(self._entities)

    async def query(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> list[Mapping[str, Any]]:
        matched = (
            entity
            for entity in self._entities
            if all(constraint_matches(constraint, entity) for constraint in constraints)
        )
        ordered = sort_entities(matched, order_by)
        return [entity_to_row(entity) for entity in ordered[window.start : window.end + 1]]

    async def insert(self, record: NewFailureRecord) -> Mapping[str, Any]:
        entity = StreamFailureEntity(
            id=format_failure_id(self._next_index),
            org_id=record.org_id,
            failure_status=record.failure_status,
            created_date=record.created_date.isoformat(),
            end_date=record.end_date.isoformat() if record.end_date else None,
            failure_payload=record.failure_payload,
        )
        self._next_index += 1
        self._entities.append(entity)

        stamped = self._clock().isoformat()
        return {**entity_to_row(entity), "created_at": stamped, "updated_at": stamped}


class SqlRecordStore:
    """
    Record store backed by the stream_failures table.

    Each call opens its own session and runs on a worker thread so the
    event loop is never blocked on database I/O.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def query(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> list[Mapping[str, Any]]:
        return await asyncio.to_thread(self._query_sync, constraints, order_by, window)

    async def insert(self, record: NewFailureRecord) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._insert_sync, record)

    def _query_sync(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> list[Mapping[str, Any]]:
        session = self._session_factory()
        try:
            records = StreamFailureRepository(session).query(constraints, order_by, window)
            return [stream_failure_to_row(record) for record in records]
        finally:
            session.close()

    def _insert_sync(self, record: NewFailureRecord) -> Mapping[str, Any]:
        session = self._session_factory()
        try:
            with session.begin():
                failure = StreamFailureRepository(session).insert(record)
                row = stream_failure_to_row(failure)
            return row
        finally:
            session.close()


def build_record_store(
    settings: FeedSettings,
    *,
    http_settings: RecordStoreHTTPSettings | None = None,
) -> RecordStore:
    """
    Create the record store selected by *settings*.

    The http backend reads RECORD_STORE_* client settings unless
    *http_settings* is given.
    """

    if settings.record_store_backend == RECORD_STORE_SQL:
        from db.session import SessionLocal

        logger.info("Using SQL record store")
        return SqlRecordStore(SessionLocal)

    if settings.record_store_backend == RECORD_STORE_HTTP:
        http_settings = http_settings or get_record_store_http_settings()
        logger.info("Using HTTP record store base_url=%s", http_settings.base_url)
        return HttpRecordStore(settings=http_settings)

    rng = random.Random(settings.mock_failure_seed)
    entities = generate_mock_failures(
        settings.mock_failure_count,
        org_ids=settings.org_ids,
        rng=rng,
    )
    logger.info("Using in-memory record store seeded with %d failures", len(entities))
    return InMemoryRecordStore(entities)
