"""Tests for the list-endpoint query-string interpreter."""

import json

import pytest

from taskboard.models.constants import DEFAULT_TASK_LIMIT
from taskboard.query.builder import All, AnyOf, Condition
from taskboard.query.errors import QueryParamError
from taskboard.query.fields import TASK_FIELDS, USER_FIELDS
from taskboard.query.params import interpret_query_params, looks_like_projection, parse_select_param


def _q(**params):
    encoded = {key: json.dumps(value) if isinstance(value, (dict, list)) else value for key, value in params.items()}
    return interpret_query_params(encoded, TASK_FIELDS, DEFAULT_TASK_LIMIT)


def _error(params, fields=TASK_FIELDS) -> str:
    with pytest.raises(QueryParamError) as exc_info:
        interpret_query_params(params, fields)
    return exc_info.value.message


class TestFilterParameter:
    """`filter` is either a projection or a predicate depending on its values."""

    @pytest.mark.parametrize("raw", [
        {"name": 1},
        {"name": 1, "deadline": 1},
        {"description": 0},
        {"_id": 0, "name": 1},
        {"name": 1.0},
    ])
    def test_all_flag_values_become_projection(self, raw):
        query = _q(filter=raw)
        assert query.predicate == All()
        assert query.projection is not None

    @pytest.mark.parametrize("raw", [
        {"name": "Write report"},
        {"completed": True},
        {"completed": False},
        {"name": "Write report", "completed": True},
    ])
    def test_other_objects_become_predicate(self, raw):
        query = _q(filter=raw)
        assert query.projection is None
        assert query.predicate != All()

    def test_equality_on_zero_is_read_as_projection(self):
        """Documented ambiguity: {"completed": 0} excludes the field."""
        query = _q(filter={"completed": 0})
        doc = {"_id": "t1", "name": "n", "completed": False}
        assert query.project(doc) == {"_id": "t1", "name": "n"}

    def test_empty_object_is_a_match_all_filter(self):
        query = _q(filter={})
        assert query.predicate == All()
        assert query.projection is None

    def test_looks_like_projection_excludes_booleans(self):
        assert looks_like_projection({"a": 1, "b": 0}) is True
        assert looks_like_projection({"a": True}) is False
        assert looks_like_projection({}) is False
        assert looks_like_projection([1]) is False


class TestWhereParameter:

    def test_where_always_sets_predicate(self):
        query = _q(where={"completed": False})
        assert query.projection is None
        assert query.predicate.clauses[0].field.name == "completed"

    def test_where_never_reads_flags_as_projection(self):
        message = _error({"where": '{"name": 1}'})
        assert message == "Invalid where parameter. Field 'name': Expected a string, got 1."

    @pytest.mark.parametrize("raw,expected", [
        (0, False),
        (1, True),
        ("true", True),
        ("false", False),
        ("0", False),
        ("1", True),
    ])
    def test_where_completed_casts_to_boolean(self, raw, expected):
        query = _q(where={"completed": raw})
        assert query.projection is None
        assert query.predicate.clauses[0].value is expected

    def test_where_takes_precedence_over_filter(self):
        query = _q(where={"completed": True}, filter={"name": "ignored"})
        clause = query.predicate.clauses[0]
        assert isinstance(clause, Condition)
        assert clause.field.name == "completed"
        assert clause.value is True
        assert len(query.predicate.clauses) == 1

    def test_malformed_filter_ignored_when_where_present(self):
        query = interpret_query_params(
            {"where": '{"completed": false}', "filter": "{not json"}, TASK_FIELDS
        )
        assert query.predicate.clauses[0].value is False

    def test_where_invalid_json(self):
        assert _error({"where": "{oops"}) == "Invalid where parameter. Must be valid JSON."

    def test_filter_invalid_json(self):
        assert _error({"filter": "nope"}) == "Invalid filter parameter. Must be valid JSON."

    def test_unknown_field_is_rejected(self):
        assert _error({"where": '{"colour": "red"}'}) == "Invalid where parameter. Unknown field 'colour'."

    def test_unsupported_operator_is_rejected(self):
        message = _error({"where": '{"name": {"$where": "1"}}'})
        assert message.startswith("Invalid where parameter.")

    def test_where_must_be_object(self):
        assert _error({"where": "[1, 2]"}) == "Invalid where parameter. Must be a JSON object."

    def test_or_builds_disjunction(self):
        query = _q(where={"$or": [{"completed": True}, {"assignedUser": ""}]})
        assert isinstance(query.predicate.clauses[0], AnyOf)

    def test_unassigned_sentinels_are_mapped_to_none(self):
        query = _q(where={"assignedUser": "", "assignedUserName": "unassigned"})
        values = [clause.value for clause in query.predicate.clauses]
        assert values == [None, None]

    def test_datetime_values_are_coerced(self):
        query = _q(where={"deadline": {"$gte": "2024-01-01T00:00:00Z"}})
        clause = query.predicate.clauses[0]
        assert clause.op == "gte"
        assert clause.value.year == 2024
        assert clause.value.tzinfo is None

    def test_regex_with_options(self):
        query = _q(where={"name": {"$regex": "^rep", "$options": "i"}})
        clause = query.predicate.clauses[0]
        assert clause.op == "regex"
        assert clause.flags == "i"


class TestSortAndSelect:

    def test_sort_directions(self):
        query = _q(sort={"deadline": 1, "name": -1})
        assert [(key.field.name, key.descending) for key in query.sort] == [
            ("deadline", False),
            ("name", True),
        ]

    def test_sort_invalid_json(self):
        assert _error({"sort": "{"}) == "Invalid sort parameter. Must be valid JSON."

    def test_sort_on_array_field_rejected(self):
        message = _error({"sort": '{"pendingTasks": 1}'}, USER_FIELDS)
        assert message == "Invalid sort parameter. Cannot sort on 'pendingTasks'."

    def test_select_overrides_filter_projection(self):
        query = _q(filter={"name": 1}, select={"deadline": 1})
        assert query.projection.fields == frozenset({"deadline"})

    def test_select_invalid_json(self):
        assert _error({"select": "x"}) == "Invalid select parameter. Must be valid JSON."

    def test_select_rejects_mixed_projection(self):
        message = _error({"select": '{"name": 1, "deadline": 0}'})
        assert message == "Invalid select parameter. Cannot mix inclusion and exclusion."

    def test_parse_select_param_absent(self):
        assert parse_select_param({}) is None
        assert parse_select_param({"select": ""}) is None

    def test_parse_select_param_excludes_id(self):
        projection = parse_select_param({"select": '{"_id": 0, "name": 1}'})
        assert projection.apply({"_id": "u1", "name": "Ann", "email": "a@x"}) == {"name": "Ann"}


class TestPagination:

    def test_skip_not_a_number(self):
        assert _error({"skip": "abc"}) == "Invalid skip parameter. Must be a number."

    def test_limit_not_a_number(self):
        assert _error({"limit": "abc"}) == "Invalid limit parameter. Must be a number."

    def test_negative_values_rejected(self):
        assert _error({"skip": "-1"}) == "Invalid skip parameter. Must be a non-negative number."
        assert _error({"limit": "-5"}) == "Invalid limit parameter. Must be a non-negative number."

    def test_leading_integer_is_parsed(self):
        query = interpret_query_params({"skip": "10abc", "limit": "3 items"}, TASK_FIELDS)
        assert query.skip == 10
        assert query.limit == 3

    def test_default_limits(self):
        assert interpret_query_params({}, USER_FIELDS, None).limit is None
        assert interpret_query_params({}, TASK_FIELDS, 100).limit == 100

    def test_explicit_limit_overrides_default(self):
        assert interpret_query_params({"limit": "7"}, TASK_FIELDS, 100).limit == 7

    def test_zero_means_not_applied(self):
        query = interpret_query_params({"skip": "0", "limit": "0"}, TASK_FIELDS, 100)
        assert query.skip is None
        assert query.limit is None

    def test_empty_values_are_treated_as_absent(self):
        query = interpret_query_params(
            {"where": "", "filter": "", "sort": "", "select": "", "skip": "", "limit": ""},
            TASK_FIELDS,
            100,
        )
        assert query.predicate == All()
        assert query.sort == ()
        assert query.projection is None
        assert query.skip is None
        assert query.limit == 100


class TestCountAndOrder:

    @pytest.mark.parametrize("value,expected", [
        ("true", True),
        ("True", False),
        ("1", False),
        ("false", False),
    ])
    def test_count_only_for_literal_true(self, value, expected):
        assert interpret_query_params({"count": value}, TASK_FIELDS).count_only is expected

    def test_first_malformed_parameter_wins(self):
        message = _error({"where": "{bad", "sort": "{bad", "skip": "x"})
        assert message.startswith("Invalid where parameter.")

    def test_sort_checked_before_skip(self):
        message = _error({"sort": "{bad", "skip": "x", "limit": "y"})
        assert message.startswith("Invalid sort parameter.")

    def test_skip_checked_before_limit(self):
        assert _error({"skip": "x", "limit": "y"}).startswith("Invalid skip parameter.")

    def test_unrecognized_parameters_are_ignored(self):
        query = interpret_query_params({"page": "2", "fields": "name"}, TASK_FIELDS)
        assert query.predicate == All()
