"""
Repository translating feed constraints into SQL against stream_failures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from app.domain.errors import QueryError
from app.domain.stream_failure import (
    ConstraintOp,
    NewFailureRecord,
    OrderByClause,
    PageWindow,
    QueryConstraint,
    SortDirection,
)
from app.services.failure_query import validate_order_by
from db.models.stream_failure import StreamFailure

_COLUMNS: dict[str, InstrumentedAttribute[Any]] = {
    "id": StreamFailure.id,
    "org_id": StreamFailure.org_id,
    "failure_status": StreamFailure.failure_status,
    "created_date": StreamFailure.created_date,
    "end_date": StreamFailure.end_date,
}


def _column(field: str) -> InstrumentedAttribute[Any]:
    try:
        return _COLUMNS[field]
    except KeyError as exc:
        raise QueryError(f"Unknown constraint field {field!r}.") from exc


def _where_clause(constraint: QueryConstraint) -> Any:
    column = _column(constraint.field)
    op = constraint.op
    if op == ConstraintOp.ICONTAINS:
        escaped = (
            str(constraint.value).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        )
        return column.ilike(f"%{escaped}%", escape="\\")
    if op == ConstraintOp.EQ:
        return column == constraint.value
    if op == ConstraintOp.IN:
        return column.in_(list(constraint.value))
    if op == ConstraintOp.GTE:
        return column >= constraint.value
    if op == ConstraintOp.LTE:
        return column <= constraint.value
    raise QueryError(f"Unsupported constraint operator {op!r}.")


def stream_failure_to_row(record: StreamFailure) -> dict[str, Any]:
    return {
        "id": record.id,
        "org_id": record.org_id,
        "failure_status": record.failure_status,
        "created_date": record.created_date,
        "end_date": record.end_date,
        "failure_payload": record.failure_payload,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


class StreamFailureRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def build_query(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> Select[tuple[StreamFailure]]:
        stmt: Select[tuple[StreamFailure]] = select(StreamFailure)

        for constraint in constraints:
            stmt = stmt.where(_where_clause(constraint))

        if order_by:
            clause = validate_order_by(order_by[0])
            column = _column(clause.field)
            ordered = column.desc() if clause.direction == SortDirection.DESC else column.asc()
            stmt = stmt.order_by(ordered.nulls_last())

        return stmt.offset(window.start).limit(window.size)

    def query(
        self,
        constraints: Sequence[QueryConstraint],
        order_by: Sequence[OrderByClause],
        window: PageWindow,
    ) -> list[StreamFailure]:
        stmt = self.build_query(constraints, order_by, window)
        return list(self._session.scalars(stmt).all())

    def insert(self, record: NewFailureRecord) -> StreamFailure:
        failure = StreamFailure(
            org_id=record.org_id,
            failure_status=record.failure_status,
            created_date=record.created_date,
            end_date=record.end_date,
            failure_payload=record.failure_payload,
        )
        self._session.add(failure)
        self._session.flush()
        self._session.refresh(failure)
        return failure
