"""
app/services/failure_query.py

Filter/sort model for the stream failure feed.

Translates a FilterState into the constraint list understood by record
stores, and compiles the same constraints into an in-memory predicate so the
local and remote modes share one set of matching rules.

Ordering
--------
Date fields are compared by parsed instant. Values that cannot be ordered
(None, or a malformed date string) always sort after orderable ones,
whichever direction is active. ``desc`` negates the ascending comparison;
there is no secondary tie-break, so ties keep the input order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from functools import cmp_to_key
from typing import Any

from app.domain.errors import QueryError, SortConfigurationError
from app.domain.stream_failure import (
    DATE_FIELDS,
    SORTABLE_FIELDS,
    ConstraintOp,
    DateRange,
    FilterState,
    OrderByClause,
    QueryConstraint,
    SortDirection,
    StreamFailureEntity,
    parse_instant,
)

Predicate = Callable[[StreamFailureEntity], bool]
Comparator = Callable[[StreamFailureEntity, StreamFailureEntity], int]

_VALID_DIRECTIONS = frozenset({SortDirection.ASC, SortDirection.DESC})


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


def _membership_constraint(field: str, values: Sequence[str]) -> QueryConstraint | None:
    unique = tuple(dict.fromkeys(values))
    if not unique:
        return None
    if len(unique) == 1:
        return QueryConstraint(field=field, op=ConstraintOp.EQ, value=unique[0])
    return QueryConstraint(field=field, op=ConstraintOp.IN, value=unique)


def _range_constraints(field: str, date_range: DateRange) -> list[QueryConstraint]:
    """Bounds are emitted as aware instants; naive values are taken as UTC."""
    constraints: list[QueryConstraint] = []
    for op, bound in ((ConstraintOp.GTE, date_range.start), (ConstraintOp.LTE, date_range.end)):
        instant = parse_instant(bound)
        if instant is not None:
            constraints.append(QueryConstraint(field=field, op=op, value=instant))
    return constraints


def build_constraints(filters: FilterState) -> list[QueryConstraint]:
    """
    Translate *filters* into a conjunction of per-field constraints.

    Unset or empty dimensions produce no constraint.
    """

    constraints: list[QueryConstraint] = []

    id_query = (filters.id or "").strip()
    if id_query:
        constraints.append(
            QueryConstraint(field="id", op=ConstraintOp.ICONTAINS, value=id_query.lower())
        )

    for field, values in (
        ("org_id", filters.org_ids),
        ("failure_status", filters.failure_statuses),
    ):
        constraint = _membership_constraint(field, values)
        if constraint is not None:
            constraints.append(constraint)

    constraints.extend(_range_constraints("created_date", filters.created_date_range))
    constraints.extend(_range_constraints("end_date", filters.end_date_range))
    return constraints


def constraint_matches(constraint: QueryConstraint, entity: StreamFailureEntity) -> bool:
    """
    Evaluate one constraint against *entity*.

    A missing or malformed date never satisfies a range bound.
    """

    if not hasattr(entity, constraint.field):
        raise QueryError(f"Unknown constraint field {constraint.field!r}.")
    actual: Any = getattr(entity, constraint.field)
    op = constraint.op

    if op == ConstraintOp.ICONTAINS:
        return str(constraint.value).lower() in str(actual or "").lower()
    if op == ConstraintOp.EQ:
        return actual == constraint.value
    if op == ConstraintOp.IN:
        return actual in constraint.value

    if op in (ConstraintOp.GTE, ConstraintOp.LTE):
        if constraint.field in DATE_FIELDS:
            left = parse_instant(actual)
            right = parse_instant(constraint.value)
        else:
            left, right = actual, constraint.value
        if left is None or right is None:
            return False
        return left >= right if op == ConstraintOp.GTE else left <= right

    raise QueryError(f"Unsupported constraint operator {op!r}.")


def build_predicate(filters: FilterState) -> Predicate:
    constraints = build_constraints(filters)

    def predicate(entity: StreamFailureEntity) -> bool:
        return all(constraint_matches(constraint, entity) for constraint in constraints)

    return predicate


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def validate_order_by(clause: OrderByClause) -> OrderByClause:
    """
    Reject clauses naming an unknown field or direction.
    """

    if clause.field not in SORTABLE_FIELDS:
        raise SortConfigurationError(
            f"Cannot sort by {clause.field!r}. Sortable fields: {sorted(SORTABLE_FIELDS)}."
        )
    if clause.direction not in _VALID_DIRECTIONS:
        raise SortConfigurationError(
            f"Invalid sort direction {clause.direction!r}. "
            f"Must be one of: {sorted(_VALID_DIRECTIONS)}."
        )
    return clause


def _sort_value(field: str, entity: StreamFailureEntity) -> Any:
    raw = getattr(entity, field)
    if field in DATE_FIELDS:
        return parse_instant(raw)
    return raw


def compare_ascending(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def build_comparator(clause: OrderByClause) -> Comparator:
    validate_order_by(clause)
    sign = -1 if clause.direction == SortDirection.DESC else 1

    def comparator(a: StreamFailureEntity, b: StreamFailureEntity) -> int:
        left = _sort_value(clause.field, a)
        right = _sort_value(clause.field, b)
        if left is None or right is None:
            # unorderable values stay last in both directions
            return (left is None) - (right is None)
        return sign * compare_ascending(left, right)

    return comparator


def sort_entities(
    entities: Iterable[StreamFailureEntity],
    order_by: Sequence[OrderByClause],
) -> list[StreamFailureEntity]:
    items = list(entities)
    if not order_by:
        return items
    return sorted(items, key=cmp_to_key(build_comparator(order_by[0])))


def apply_query(
    entities: Iterable[StreamFailureEntity],
    filters: FilterState,
    order_by: Sequence[OrderByClause] = (),
) -> list[StreamFailureEntity]:
    """
    Filter and order *entities* in memory.
    """

    predicate = build_predicate(filters)
    return sort_entities((entity for entity in entities if predicate(entity)), order_by)


def toggle_sort(
    order_by: Sequence[OrderByClause],
    field: str,
) -> tuple[OrderByClause, ...]:
    """
    Toggle the sort on *field*.

    The same field flips direction; a different field replaces the clause
    and starts ascending.
    """

    validate_order_by(OrderByClause(field=field))
    current = next((clause for clause in order_by if clause.field == field), None)
    if current is None:
        return (OrderByClause(field=field, direction=SortDirection.ASC),)
    flipped = SortDirection.DESC if current.direction == SortDirection.ASC else SortDirection.ASC
    return (OrderByClause(field=field, direction=flipped),)
