"""Query interpretation for taskboard list endpoints."""

from taskboard.query.builder import All, AnyOf, Condition, Projection, Query, SortKey
from taskboard.query.errors import QueryParamError, QueryShapeError
from taskboard.query.fields import FieldSpec, TASK_FIELDS, USER_FIELDS
from taskboard.query.params import interpret_query_params, parse_select_param

__all__ = [
    "All",
    "AnyOf",
    "Condition",
    "Projection",
    "Query",
    "SortKey",
    "QueryParamError",
    "QueryShapeError",
    "FieldSpec",
    "TASK_FIELDS",
    "USER_FIELDS",
    "interpret_query_params",
    "parse_select_param",
]
