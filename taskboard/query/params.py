"""Query-string interpreter shared by the list endpoints.

Turns the recognized URL parameters (``where``/``filter``, ``sort``,
``select``, ``skip``, ``limit``, ``count``) into a typed :class:`Query`.
Parameters are checked in that fixed order and the first malformed one
raises :class:`QueryParamError`; the rest are not looked at.

``filter`` has two meanings, kept for compatibility with existing clients:
a non-empty object whose values are all the number 0 or 1 is a field
projection, anything else is a filter predicate. This means a filter such as
``{"completed": 0}`` is read as a projection; clients that need an equality
filter on a numeric field should use ``where``.
"""

import json
import re
from typing import Any, Callable, Mapping, Optional

from taskboard.query.builder import (
    All,
    Projection,
    Query,
    build_predicate,
    build_projection,
    build_sort,
    is_flag_value,
)
from taskboard.query.errors import QueryParamError, QueryShapeError
from taskboard.query.fields import FieldSpec

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_json(name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        raise QueryParamError(f"Invalid {name} parameter. Must be valid JSON.") from None


def _build(name: str, build: Callable[..., Any], *args: Any) -> Any:
    """Run a builder, reporting shape errors against parameter ``name``."""
    try:
        return build(*args)
    except QueryShapeError as e:
        raise QueryParamError(f"Invalid {name} parameter. {e}") from None


def _parse_int(name: str, raw: Optional[str]) -> Optional[int]:
    """Parse a leading integer (``"10abc"`` is 10); empty or absent is None."""
    if not raw:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        raise QueryParamError(f"Invalid {name} parameter. Must be a number.")
    value = int(match.group(1))
    if value < 0:
        raise QueryParamError(f"Invalid {name} parameter. Must be a non-negative number.")
    return value


def looks_like_projection(raw: Any) -> bool:
    """True when a parsed ``filter`` value should be read as a projection."""
    return isinstance(raw, dict) and bool(raw) and all(is_flag_value(value) for value in raw.values())


def interpret_query_params(
    params: Mapping[str, str],
    fields: Mapping[str, FieldSpec],
    default_limit: Optional[int] = None,
) -> Query:
    """Interpret list-endpoint query parameters.

    Args:
        params: Query-string keys mapped to their (last) values
        fields: Field table of the queried resource
        default_limit: Limit applied when ``limit`` is absent (None = unlimited)

    Returns:
        Typed query. A skip or limit of 0 is treated as not applied.

    Raises:
        QueryParamError: For the first malformed parameter
    """
    predicate = All()
    projection: Optional[Projection] = None

    where = params.get("where")
    filter_ = params.get("filter")
    if where:
        predicate = _build("where", build_predicate, _parse_json("where", where), fields)
    elif filter_:
        raw = _parse_json("filter", filter_)
        if looks_like_projection(raw):
            projection = _build("filter", build_projection, raw)
        else:
            predicate = _build("filter", build_predicate, raw, fields)

    sort = ()
    if params.get("sort"):
        sort = _build("sort", build_sort, _parse_json("sort", params["sort"]), fields)

    if params.get("select"):
        projection = _build("select", build_projection, _parse_json("select", params["select"]))

    skip = _parse_int("skip", params.get("skip"))
    if params.get("limit"):
        limit = _parse_int("limit", params["limit"])
    else:
        limit = default_limit

    return Query(
        predicate=predicate,
        sort=sort,
        projection=projection,
        skip=skip or None,
        limit=limit or None,
        count_only=params.get("count") == "true",
    )


def parse_select_param(params: Mapping[str, str]) -> Optional[Projection]:
    """Interpret the ``select`` parameter of the single-document endpoints."""
    if not params.get("select"):
        return None
    return _build("select", build_projection, _parse_json("select", params["select"]))
