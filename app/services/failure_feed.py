"""
app/services/failure_feed.py

Paginated, filtered and sorted view over a record store for one viewer
session.

State machine
-------------
IDLE -> LOADING          start(), set_filters(), set_sort(), load_more()
LOADING -> LOADED        page fetched and applied, full page
LOADING -> EXHAUSTED     page shorter than the page size
LOADING -> FAILED        store raised; settles to LOADED (data present) or
                         IDLE (no data) with the sequence unchanged

A full last page is not treated as final: the feed stays LOADED and the
next load_more() fetches once more, declaring EXHAUSTED on an empty page.

Every reset (start, filter change, sort change) bumps a generation token.
A response is applied only when its generation still matches, so a
late-arriving page for a superseded configuration is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from app.domain.errors import InsertError, QueryError, StreamFailureError
from app.domain.stream_failure import (
    DEFAULT_ORDER_BY,
    DEFAULT_PAGE_SIZE,
    FailureDraft,
    FilterState,
    OrderByClause,
    PageWindow,
    StreamFailureEntity,
)
from app.logging_utils import error_fields, log_event
from app.mappers.stream_failure_mapper import draft_to_record, normalize_row
from app.services.failure_query import build_constraints, toggle_sort, validate_order_by
from app.services.ports import LoggingNotifier, NoticeLevel, Notifier
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class FeedState:
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


@dataclass(frozen=True)
class FeedSnapshot:
    """
    What the presentation layer renders.
    """

    state: str
    items: tuple[StreamFailureEntity, ...]
    filters: FilterState
    order_by: tuple[OrderByClause, ...]
    error: StreamFailureError | None = None

    @property
    def loading(self) -> bool:
        return self.state == FeedState.LOADING

    @property
    def exhausted(self) -> bool:
        return self.state == FeedState.EXHAUSTED


@dataclass(frozen=True)
class CreateOutcome:
    """
    Result of create_failure(); the draft is always handed back.
    """

    draft: FailureDraft
    entity: StreamFailureEntity | None = None
    error: InsertError | None = None

    @property
    def ok(self) -> bool:
        return self.entity is not None


FeedListener = Callable[[FeedSnapshot], None]


class FailureFeed:
    """
    Controller owning the visible failure sequence for one viewer.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        filters: FilterState | None = None,
        order_by: Sequence[OrderByClause] = DEFAULT_ORDER_BY,
        notifier: Notifier | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1.")
        self._store = store
        self._page_size = page_size
        self._filters = filters or FilterState()
        self._order_by = tuple(validate_order_by(clause) for clause in order_by[:1])
        self._notifier = notifier or LoggingNotifier()

        self._items: tuple[StreamFailureEntity, ...] = ()
        self._state = FeedState.IDLE
        self._next_page = 0
        self._generation = 0
        self._error: StreamFailureError | None = None
        self._listeners: list[FeedListener] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def items(self) -> tuple[StreamFailureEntity, ...]:
        return self._items

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def order_by(self) -> tuple[OrderByClause, ...]:
        return self._order_by

    @property
    def error(self) -> StreamFailureError | None:
        return self._error

    @property
    def next_page(self) -> int:
        return self._next_page

    @property
    def page_size(self) -> int:
        return self._page_size

    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            state=self._state,
            items=self._items,
            filters=self._filters,
            order_by=self._order_by,
            error=self._error,
        )

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        """
        Register *listener* for snapshots; returns an unsubscribe callable.
        """

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self._reset(reason="start")

    async def set_filters(self, filters: FilterState) -> None:
        self._filters = filters
        await self._reset(reason="filters")

    async def set_sort(self, field_name: str) -> None:
        """
        Toggle the sort on *field_name* and reload from page 0.

        Raises SortConfigurationError for fields that cannot be sorted; the
        feed is left untouched in that case.
        """

        self._order_by = toggle_sort(self._order_by, field_name)
        await self._reset(reason="sort")

    async def load_more(self) -> None:
        if self._state in (FeedState.LOADING, FeedState.EXHAUSTED):
            return
        await self._fetch(reset=False)

    async def create_failure(self, draft: FailureDraft) -> CreateOutcome:
        """
        Insert *draft* through the store and prepend the stored entity.

        Payload text that is not a JSON object is stored as
        ``{"message": text}``. Failures leave the sequence unchanged and are
        reported in the outcome together with the original draft.
        """

        if not draft.org_id.strip() or not draft.failure_status.strip():
            error = InsertError("Organization ID and failure status are required.")
            self._report_insert_failure(draft, error)
            return CreateOutcome(draft=draft, error=error)

        record = draft_to_record(draft)
        try:
            row = await self._store.insert(record)
            entity = normalize_row(row)
        except Exception as exc:  # noqa: BLE001
            error = InsertError(f"Failed to create failure for {record.org_id}: {exc}")
            error.__cause__ = exc
            self._report_insert_failure(draft, error)
            return CreateOutcome(draft=draft, error=error)

        self._items = (entity, *self._items)
        self._error = None
        log_event(
            logger,
            logging.INFO,
            "feed_failure_created",
            failure_id=entity.id,
            org_id=entity.org_id,
            failure_status=entity.failure_status,
        )
        self._notifier.notify("Failure created", f"Created {entity.id}.")
        self._emit()
        return CreateOutcome(draft=draft, entity=entity)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _reset(self, *, reason: str) -> None:
        self._generation += 1
        self._items = ()
        self._next_page = 0
        self._error = None
        log_event(
            logger,
            logging.DEBUG,
            "feed_reset",
            reason=reason,
            generation=self._generation,
        )
        await self._fetch(reset=True)

    async def _fetch(self, *, reset: bool) -> None:
        generation = self._generation
        page = self._next_page
        window = PageWindow.for_page(page, self._page_size)
        constraints = build_constraints(self._filters)
        order_by = self._order_by

        self._transition(FeedState.LOADING)
        try:
            rows = await self._store.query(constraints, order_by, window)
            entities = tuple(normalize_row(row) for row in rows)
        except Exception as exc:  # noqa: BLE001
            if generation != self._generation:
                self._log_stale(generation, page, outcome="error")
                return
            error = QueryError(f"Failed to load page {page}: {exc}")
            error.__cause__ = exc
            self._fail(error, page=page)
            return

        if generation != self._generation:
            self._log_stale(generation, page, outcome="rows", rows=len(entities))
            return

        self._items = entities if reset else self._items + entities
        self._next_page = page + 1
        self._error = None
        log_event(
            logger,
            logging.DEBUG,
            "feed_page_loaded",
            generation=generation,
            page=page,
            rows=len(entities),
            total=len(self._items),
        )
        if len(entities) < self._page_size:
            self._transition(FeedState.EXHAUSTED)
        else:
            self._transition(FeedState.LOADED)

    def _fail(self, error: QueryError, *, page: int) -> None:
        self._error = error
        log_event(
            logger,
            logging.WARNING,
            "feed_query_failed",
            generation=self._generation,
            page=page,
            **error_fields(error),
        )
        self._notifier.notify("Failed to load failures", str(error), level=NoticeLevel.ERROR)
        self._transition(FeedState.FAILED)
        self._transition(FeedState.LOADED if self._items else FeedState.IDLE)

    def _report_insert_failure(self, draft: FailureDraft, error: InsertError) -> None:
        self._error = error
        log_event(
            logger,
            logging.WARNING,
            "feed_create_failed",
            org_id=draft.org_id,
            failure_status=draft.failure_status,
            **error_fields(error),
        )
        self._notifier.notify("Failed to create failure", str(error), level=NoticeLevel.ERROR)
        self._emit()

    def _log_stale(self, generation: int, page: int, **fields: object) -> None:
        log_event(
            logger,
            logging.DEBUG,
            "feed_stale_response_discarded",
            generation=generation,
            current_generation=self._generation,
            page=page,
            **fields,
        )

    def _transition(self, state: str) -> None:
        self._state = state
        self._emit()

    def _emit(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
