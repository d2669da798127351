"""
tests/test_failure_query.py

Filter/sort model: constraint translation, in-memory predicate and
comparator, and the sort toggle rule. Pure Python, no I/O.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.domain.errors import SortConfigurationError
from app.domain.stream_failure import (
    ConstraintOp,
    DateRange,
    FilterState,
    OrderByClause,
    QueryConstraint,
    SortDirection,
    StreamFailureEntity,
)
from app.services.failure_query import (
    apply_query,
    build_comparator,
    build_constraints,
    build_predicate,
    constraint_matches,
    sort_entities,
    toggle_sort,
)


def _entity(
    failure_id: str,
    *,
    org_id: str = "org-001",
    status: str = "PENDING",
    created: str = "2026-01-01T00:00:00+00:00",
    end: str | None = None,
) -> StreamFailureEntity:
    return StreamFailureEntity(
        id=failure_id,
        org_id=org_id,
        failure_status=status,
        created_date=created,
        end_date=end,
        failure_payload={},
    )


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture()
def entities() -> list[StreamFailureEntity]:
    return [
        _entity("failure-000001", org_id="org-001", status="PENDING", created="2026-01-03T00:00:00Z"),
        _entity(
            "failure-000002",
            org_id="org-002",
            status="FAILED",
            created="2026-01-01T00:00:00Z",
            end="2026-01-04T00:00:00Z",
        ),
        _entity(
            "FAILURE-000003",
            org_id="org-003",
            status="RESOLVED",
            created="2026-01-02T00:00:00Z",
            end="2026-01-02T12:00:00Z",
        ),
        _entity("failure-000004", org_id="org-001", status="CUSTOM_STATUS", created="2026-01-05T00:00:00Z"),
    ]


# ---------------------------------------------------------------------------
# Constraint translation
# ---------------------------------------------------------------------------


class TestBuildConstraints:
    def test_empty_filter_produces_no_constraints(self) -> None:
        assert build_constraints(FilterState()) == []

    def test_id_becomes_lowercased_icontains(self) -> None:
        constraints = build_constraints(FilterState(id="  ORG-001 "))
        assert constraints == [QueryConstraint(field="id", op=ConstraintOp.ICONTAINS, value="org-001")]

    def test_blank_id_is_ignored(self) -> None:
        assert build_constraints(FilterState(id="   ")) == []

    def test_single_org_uses_equality(self) -> None:
        constraints = build_constraints(FilterState(org_ids=("org-001",)))
        assert constraints == [QueryConstraint(field="org_id", op=ConstraintOp.EQ, value="org-001")]

    def test_multiple_statuses_use_membership(self) -> None:
        constraints = build_constraints(FilterState(failure_statuses=("FAILED", "PENDING")))
        assert constraints == [
            QueryConstraint(field="failure_status", op=ConstraintOp.IN, value=("FAILED", "PENDING"))
        ]

    def test_date_bounds_emit_one_constraint_per_bound(self) -> None:
        start, end = _utc(2026, 1, 1), _utc(2026, 1, 31)
        constraints = build_constraints(
            FilterState(
                created_date_range=DateRange(start=start, end=end),
                end_date_range=DateRange(end=end),
            )
        )
        assert constraints == [
            QueryConstraint(field="created_date", op=ConstraintOp.GTE, value=start),
            QueryConstraint(field="created_date", op=ConstraintOp.LTE, value=end),
            QueryConstraint(field="end_date", op=ConstraintOp.LTE, value=end),
        ]

    def test_naive_bounds_are_emitted_as_utc(self) -> None:
        constraints = build_constraints(FilterState(created_date_range=DateRange(start=datetime(2026, 1, 1))))

        assert constraints == [
            QueryConstraint(field="created_date", op=ConstraintOp.GTE, value=_utc(2026, 1, 1)),
        ]
        assert constraints[0].value.tzinfo is not None


# ---------------------------------------------------------------------------
# Predicate
# ---------------------------------------------------------------------------


class TestPredicate:
    def test_identity_law(self, entities: list[StreamFailureEntity]) -> None:
        assert apply_query(entities, FilterState()) == entities

    @pytest.mark.parametrize("query", ["FAILURE-00000", "failure-00000", "FaIlUrE-00000"])
    def test_id_filter_is_case_insensitive(
        self, entities: list[StreamFailureEntity], query: str
    ) -> None:
        result = apply_query(entities, FilterState(id=query))
        assert [e.id for e in result] == [e.id for e in entities]

    def test_id_filter_is_substring(self, entities: list[StreamFailureEntity]) -> None:
        result = apply_query(entities, FilterState(id="0003"))
        assert [e.id for e in result] == ["FAILURE-000003"]

    def test_org_ids_combine_with_or(self, entities: list[StreamFailureEntity]) -> None:
        result = apply_query(entities, FilterState(org_ids=("org-002", "org-003")))
        assert {e.org_id for e in result} == {"org-002", "org-003"}

    def test_dimensions_combine_with_and(self, entities: list[StreamFailureEntity]) -> None:
        result = apply_query(
            entities,
            FilterState(org_ids=("org-001",), failure_statuses=("CUSTOM_STATUS",)),
        )
        assert [e.id for e in result] == ["failure-000004"]

    def test_unknown_status_values_can_be_filtered(self, entities: list[StreamFailureEntity]) -> None:
        result = apply_query(entities, FilterState(failure_statuses=("CUSTOM_STATUS",)))
        assert len(result) == 1

    def test_created_range_is_inclusive(self, entities: list[StreamFailureEntity]) -> None:
        result = apply_query(
            entities,
            FilterState(created_date_range=DateRange(start=_utc(2026, 1, 2), end=_utc(2026, 1, 3))),
        )
        assert {e.id for e in result} == {"failure-000001", "FAILURE-000003"}

    @pytest.mark.parametrize(
        "date_range",
        [
            DateRange(start=_utc(2000, 1, 1)),
            DateRange(end=_utc(2100, 1, 1)),
            DateRange(start=_utc(2000, 1, 1), end=_utc(2100, 1, 1)),
        ],
    )
    def test_null_end_date_never_matches_bounded_range(self, date_range: DateRange) -> None:
        predicate = build_predicate(FilterState(end_date_range=date_range))
        assert predicate(_entity("open", end=None)) is False

    def test_null_end_date_matches_unbounded_range(self) -> None:
        predicate = build_predicate(FilterState(end_date_range=DateRange()))
        assert predicate(_entity("open", end=None)) is True

    def test_malformed_date_does_not_match_and_does_not_raise(self) -> None:
        constraint = QueryConstraint(field="created_date", op=ConstraintOp.GTE, value=_utc(2000, 1, 1))
        assert constraint_matches(constraint, _entity("bad", created="not-a-date")) is False

    def test_range_compares_instants_across_offsets(self) -> None:
        # 10:00+02:00 is 08:00Z, before the 09:00Z bound
        constraint = QueryConstraint(field="created_date", op=ConstraintOp.LTE, value=_utc(2026, 1, 1, 9))
        assert constraint_matches(constraint, _entity("x", created="2026-01-01T10:00:00+02:00")) is True


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_dates_are_compared_as_instants_not_strings(self) -> None:
        later = _entity("later", created="2026-01-01T09:00:00Z")
        earlier = _entity("earlier", created="2026-01-01T10:00:00+02:00")
        ordered = sort_entities([later, earlier], [OrderByClause("created_date", SortDirection.ASC)])
        assert [e.id for e in ordered] == ["earlier", "later"]

    def test_desc_is_reverse_of_asc(self, entities: list[StreamFailureEntity]) -> None:
        asc = sort_entities(entities, [OrderByClause("created_date", SortDirection.ASC)])
        desc = sort_entities(entities, [OrderByClause("created_date", SortDirection.DESC)])
        assert desc == list(reversed(asc))

    @pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
    def test_unorderable_values_sort_last_in_both_directions(self, direction: str) -> None:
        items = [
            _entity("open", end=None),
            _entity("a", end="2026-01-02T00:00:00Z"),
            _entity("broken", end="yesterday"),
            _entity("b", end="2026-01-03T00:00:00Z"),
        ]
        ordered = sort_entities(items, [OrderByClause("end_date", direction)])
        assert {e.id for e in ordered[2:]} == {"open", "broken"}
        assert [e.id for e in ordered[:2]] == (["a", "b"] if direction == SortDirection.ASC else ["b", "a"])

    def test_string_fields_sort_lexically(self, entities: list[StreamFailureEntity]) -> None:
        ordered = sort_entities(entities, [OrderByClause("failure_status", SortDirection.ASC)])
        assert [e.failure_status for e in ordered] == ["CUSTOM_STATUS", "FAILED", "PENDING", "RESOLVED"]

    def test_ties_keep_input_order(self) -> None:
        items = [_entity(f"f{i}", org_id="org-001") for i in range(5)]
        ordered = sort_entities(items, [OrderByClause("org_id", SortDirection.DESC)])
        assert ordered == items

    def test_unknown_sort_field_is_rejected(self) -> None:
        with pytest.raises(SortConfigurationError):
            build_comparator(OrderByClause("failure_payload"))

    def test_unknown_direction_is_rejected(self) -> None:
        with pytest.raises(SortConfigurationError):
            build_comparator(OrderByClause("id", "sideways"))

    def test_sort_configuration_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            sort_entities([], [OrderByClause("nope")])


class TestToggleSort:
    def test_same_field_flips_direction(self) -> None:
        current = (OrderByClause("created_date", SortDirection.DESC),)
        assert toggle_sort(current, "created_date") == (OrderByClause("created_date", SortDirection.ASC),)

    def test_flip_back_to_desc(self) -> None:
        current = (OrderByClause("id", SortDirection.ASC),)
        assert toggle_sort(current, "id") == (OrderByClause("id", SortDirection.DESC),)

    def test_different_field_replaces_with_ascending(self) -> None:
        current = (OrderByClause("created_date", SortDirection.DESC),)
        assert toggle_sort(current, "end_date") == (OrderByClause("end_date", SortDirection.ASC),)

    def test_unknown_field_is_rejected(self) -> None:
        with pytest.raises(SortConfigurationError):
            toggle_sort((), "orgId")
