"""
app/api/routers/stream_failures.py

Stream failure endpoints backed by the configured record store.

GET  /stream-failures               filtered, sorted, paginated list
GET  /stream-failures/options       filter vocabulary with status display attributes
GET  /stream-failures/{failure_id}  one failure with its formatted payload
POST /stream-failures               manual creation

Filters combine with AND; repeated ``org_id`` / ``status`` values combine
with OR. ``has_more`` is true whenever a full page was returned, so a
result set that is an exact multiple of the page size ends with one empty
page.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_record_store, get_settings
from app.config import FeedSettings
from app.domain.errors import QueryError, SortConfigurationError
from app.domain.stream_failure import (
    KNOWN_FAILURE_STATUSES,
    SORTABLE_FIELDS,
    ConstraintOp,
    DateRange,
    FailureDraft,
    FilterState,
    OrderByClause,
    PageWindow,
    QueryConstraint,
    parse_instant,
)
from app.mappers.stream_failure_mapper import draft_to_record, normalize_row
from app.schemas.stream_failure import (
    StatusOptionResponse,
    StatusPresentationResponse,
    StreamFailureCreateRequest,
    StreamFailureDetailResponse,
    StreamFailureOptionsResponse,
    StreamFailurePageResponse,
    StreamFailureResponse,
)
from app.services.failure_query import build_constraints, validate_order_by
from app.services.payload_view import build_payload_detail
from app.services.record_store import RecordStore
from app.services.status_presentation import status_presentation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stream-failures", tags=["stream-failures"])


def _check_range(name: str, start: datetime | None, end: datetime | None) -> DateRange:
    # naive bounds are taken as UTC
    start, end = parse_instant(start), parse_instant(end)
    if start and end and start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{name}_from must not be later than {name}_to.",
        )
    return DateRange(start=start, end=end)


@router.get("", response_model=StreamFailurePageResponse)
async def list_stream_failures(
    failure_id: str | None = Query(default=None, alias="id", description="Case-insensitive id substring"),
    org_id: list[str] | None = Query(default=None, description="Organization ids (repeatable)"),
    status_filter: list[str] | None = Query(default=None, alias="status", description="Failure statuses (repeatable)"),
    created_from: datetime | None = Query(default=None, description="Inclusive created date lower bound"),
    created_to: datetime | None = Query(default=None, description="Inclusive created date upper bound"),
    end_from: datetime | None = Query(default=None, description="Inclusive end date lower bound"),
    end_to: datetime | None = Query(default=None, description="Inclusive end date upper bound"),
    sort: str = Query(default="created_date", description="Sort field"),
    direction: str = Query(default="desc", description='"asc" or "desc"'),
    page: int = Query(default=0, ge=0, description="Zero-based page number"),
    page_size: int | None = Query(default=None, ge=1, le=1000, description="Rows per page"),
    settings: FeedSettings = Depends(get_settings),
    store: RecordStore = Depends(get_record_store),
) -> StreamFailurePageResponse:
    filters = FilterState(
        org_ids=tuple(org_id or ()),
        failure_statuses=tuple(status_filter or ()),
        created_date_range=_check_range("created", created_from, created_to),
        end_date_range=_check_range("end", end_from, end_to),
    ).with_id(failure_id)

    try:
        clause = validate_order_by(OrderByClause(field=sort, direction=direction.lower()))
    except SortConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    size = page_size or settings.page_size
    window = PageWindow.for_page(page, size)
    try:
        rows = await store.query(build_constraints(filters), (clause,), window)
        items = [normalize_row(row) for row in rows]
    except QueryError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Stream failure query failed page=%d sort=%r", page, sort)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Record store query failed; see server logs for details.",
        ) from exc

    logger.info(
        "Stream failures listed page=%d size=%d rows=%d filters=%d",
        page,
        size,
        len(items),
        filters.active_count(),
    )
    return StreamFailurePageResponse(
        items=[StreamFailureResponse.from_entity(item) for item in items],
        page=page,
        page_size=size,
        has_more=len(items) == size,
    )


@router.get("/options", response_model=StreamFailureOptionsResponse)
def get_stream_failure_options(
    settings: FeedSettings = Depends(get_settings),
) -> StreamFailureOptionsResponse:
    return StreamFailureOptionsResponse(
        org_ids=list(settings.org_ids),
        statuses=[
            StatusOptionResponse(
                value=value,
                presentation=StatusPresentationResponse.from_presentation(status_presentation(value)),
            )
            for value in KNOWN_FAILURE_STATUSES
        ],
        sortable_fields=sorted(SORTABLE_FIELDS),
    )


@router.get("/{failure_id}", response_model=StreamFailureDetailResponse)
async def get_stream_failure(
    failure_id: str,
    store: RecordStore = Depends(get_record_store),
) -> StreamFailureDetailResponse:
    try:
        rows = await store.query(
            [QueryConstraint(field="id", op=ConstraintOp.EQ, value=failure_id)],
            (),
            PageWindow(start=0, end=0),
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Stream failure lookup failed failure_id=%r", failure_id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Record store query failed; see server logs for details.",
        ) from exc

    if not rows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stream failure not found: {failure_id}",
        )

    entity = normalize_row(rows[0])
    detail = build_payload_detail(entity)
    return StreamFailureDetailResponse(
        failure=StreamFailureResponse.from_entity(entity),
        status=StatusPresentationResponse.from_presentation(detail.status),
        created_display=detail.created_display,
        end_display=detail.end_display,
        payload_json=detail.payload_json,
    )


@router.post(
    "",
    response_model=StreamFailureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_stream_failure(
    body: StreamFailureCreateRequest,
    store: RecordStore = Depends(get_record_store),
) -> StreamFailureResponse:
    """
    Create a failure record.

    A JSON object payload is stored as-is; text that is not a JSON object is
    stored as ``{"message": text}``.
    """

    payload_text = (
        json.dumps(body.failure_payload)
        if isinstance(body.failure_payload, dict)
        else body.failure_payload or ""
    )
    record = draft_to_record(
        FailureDraft(
            org_id=body.org_id,
            failure_status=body.failure_status,
            payload_text=payload_text,
        )
    )

    try:
        row = await store.insert(record)
        entity = normalize_row(row)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Stream failure insert failed org_id=%r", body.org_id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Record store insert failed; see server logs for details.",
        ) from exc

    logger.info(
        "Stream failure created id=%s org_id=%r status=%r",
        entity.id,
        entity.org_id,
        entity.failure_status,
    )
    return StreamFailureResponse.from_entity(entity)
