"""
app/domain/stream_failure.py

Domain models for the stream failure feed: the entity, the client-side
filter state, sort clauses, and the constraint vocabulary sent to stores.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


class FailureStatus:
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    FAILED = "FAILED"
    RESOLVED = "RESOLVED"
    ESCALATED = "ESCALATED"


KNOWN_FAILURE_STATUSES: tuple[str, ...] = (
    FailureStatus.PENDING,
    FailureStatus.PROCESSING,
    FailureStatus.FAILED,
    FailureStatus.RESOLVED,
    FailureStatus.ESCALATED,
)


class SortDirection:
    ASC = "asc"
    DESC = "desc"


class ConstraintOp:
    EQ = "=="
    IN = "in"
    GTE = ">="
    LTE = "<="
    ICONTAINS = "icontains"


DATE_FIELDS: frozenset[str] = frozenset({"created_date", "end_date"})
SORTABLE_FIELDS: frozenset[str] = frozenset(
    {"id", "org_id", "failure_status", "created_date", "end_date"}
)

DEFAULT_PAGE_SIZE = 200


@dataclass(frozen=True)
class StreamFailureEntity:
    """
    One stream failure record as seen by the feed.

    Dates are kept as the ISO 8601 strings delivered by the store; they are
    parsed only when filtering or ordering.
    """

    id: str
    org_id: str
    failure_status: str
    created_date: str
    end_date: str | None
    failure_payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DateRange:
    """
    Closed date interval; an unset bound leaves that side open.
    """

    start: datetime | None = None
    end: datetime | None = None

    def bound_count(self) -> int:
        return int(self.start is not None) + int(self.end is not None)


@dataclass(frozen=True)
class FilterState:
    """
    Active query predicate for one feed.

    Dimensions combine with AND; members of ``org_ids`` and
    ``failure_statuses`` combine with OR. Empty or unset values impose no
    constraint.
    """

    id: str | None = None
    org_ids: tuple[str, ...] = ()
    failure_statuses: tuple[str, ...] = ()
    created_date_range: DateRange = field(default_factory=DateRange)
    end_date_range: DateRange = field(default_factory=DateRange)

    def active_count(self) -> int:
        """Number of active filter values, as shown on the filter badge."""
        return (
            int(bool(self.id))
            + len(self.org_ids)
            + len(self.failure_statuses)
            + self.created_date_range.bound_count()
            + self.end_date_range.bound_count()
        )

    def with_id(self, value: str | None) -> FilterState:
        stripped = (value or "").strip()
        return replace(self, id=stripped or None)

    def toggle_org_id(self, org_id: str) -> FilterState:
        return replace(self, org_ids=_toggle(self.org_ids, org_id))

    def toggle_status(self, status: str) -> FilterState:
        return replace(self, failure_statuses=_toggle(self.failure_statuses, status))

    def cleared(self) -> FilterState:
        return FilterState()


def _toggle(values: tuple[str, ...], value: str) -> tuple[str, ...]:
    if value in values:
        return tuple(item for item in values if item != value)
    return (*values, value)


@dataclass(frozen=True)
class OrderByClause:
    field: str
    direction: str = SortDirection.ASC


DEFAULT_ORDER_BY: tuple[OrderByClause, ...] = (
    OrderByClause(field="created_date", direction=SortDirection.DESC),
)


@dataclass(frozen=True)
class QueryConstraint:
    """
    One per-field predicate sent to a record store.
    """

    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class PageWindow:
    """
    Zero-based inclusive offset window ``[start, end]``.
    """

    start: int
    end: int

    @classmethod
    def for_page(cls, page: int, page_size: int = DEFAULT_PAGE_SIZE) -> PageWindow:
        start = max(0, page) * page_size
        return cls(start=start, end=start + page_size - 1)

    @property
    def size(self) -> int:
        return max(0, self.end - self.start + 1)


@dataclass(frozen=True)
class FailureDraft:
    """
    User-entered values for a manually created failure.
    """

    org_id: str
    failure_status: str
    payload_text: str = ""


@dataclass(frozen=True)
class NewFailureRecord:
    """
    Record handed to a store for insertion; the store assigns the id.
    """

    org_id: str
    failure_status: str
    created_date: datetime
    end_date: datetime | None
    failure_payload: dict[str, Any]


def parse_instant(value: Any) -> datetime | None:
    """
    Parse an ISO 8601 timestamp into an aware datetime.

    Returns None for missing or malformed values instead of raising. Naive
    timestamps are taken as UTC.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
