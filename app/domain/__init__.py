"""
app/domain package marker.
"""

from app.domain.errors import (
    InsertError,
    QueryError,
    RecordStoreRequestError,
    SortConfigurationError,
    StreamFailureError,
)
from app.domain.stream_failure import (
    DateRange,
    FailureDraft,
    FilterState,
    NewFailureRecord,
    OrderByClause,
    PageWindow,
    QueryConstraint,
    StreamFailureEntity,
)

__all__ = [
    "DateRange",
    "FailureDraft",
    "FilterState",
    "InsertError",
    "NewFailureRecord",
    "OrderByClause",
    "PageWindow",
    "QueryConstraint",
    "QueryError",
    "RecordStoreRequestError",
    "SortConfigurationError",
    "StreamFailureEntity",
    "StreamFailureError",
]
