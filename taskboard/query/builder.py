"""Typed query model for taskboard.

Parsed JSON from the query string is compiled into the structures below
before it reaches a store. Stores either compile a :class:`Query` to SQL or
evaluate it in memory with :meth:`Query.apply`.
"""

import operator
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from taskboard.models.constants import ID_FIELD
from taskboard.query.errors import QueryShapeError
from taskboard.query.fields import FieldSpec

T = TypeVar('T')

COMPARISON_OPERATORS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "nin", "regex")

_ORDERINGS = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_DIRECTIONS = {
    "asc": False,
    "ascending": False,
    "desc": True,
    "descending": True,
}


def _compare(op: str, actual: Any, expected: Any, flags: str = "") -> bool:
    """Evaluate one scalar comparison the way the document store does."""
    if op == "eq":
        return actual == expected
    if op == "ne":
        return actual != expected
    if op == "in":
        return actual in expected
    if op == "nin":
        return actual not in expected
    if op == "regex":
        if not isinstance(actual, str):
            return False
        return re.search(expected, actual, re.IGNORECASE if "i" in flags else 0) is not None
    if actual is None or expected is None:
        return False
    try:
        return _ORDERINGS[op](actual, expected)
    except TypeError:
        return False


@dataclass(frozen=True)
class Condition:
    """A single ``field <op> value`` test with the value already coerced."""

    field: FieldSpec
    op: str
    value: Any
    flags: str = ""

    def matches(self, obj: Any) -> bool:
        actual = getattr(obj, self.field.attr)
        if not self.field.array:
            return _compare(self.op, actual, self.value, self.flags)
        items = actual or []
        # Array fields use membership semantics.
        if self.op == "ne":
            return self.value not in items
        if self.op == "nin":
            return not any(item in self.value for item in items)
        return any(_compare(self.op, item, self.value, self.flags) for item in items)


@dataclass(frozen=True)
class All:
    """Conjunction of clauses; an empty conjunction matches everything."""

    clauses: Tuple["Clause", ...] = ()

    def matches(self, obj: Any) -> bool:
        return all(clause.matches(obj) for clause in self.clauses)


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of clauses."""

    clauses: Tuple["Clause", ...] = ()

    def matches(self, obj: Any) -> bool:
        return any(clause.matches(obj) for clause in self.clauses)


Clause = Union[Condition, All, AnyOf]


@dataclass(frozen=True)
class SortKey:
    field: FieldSpec
    descending: bool = False


@dataclass(frozen=True)
class Projection:
    """Field projection with inclusion or exclusion semantics.

    In inclusion mode only ``fields`` are kept, plus ``_id`` unless it was
    explicitly excluded. In exclusion mode ``fields`` are dropped.
    """

    fields: FrozenSet[str]
    inclusive: bool
    keep_id: bool = True

    def apply(self, doc: Mapping[str, Any]) -> Dict[str, Any]:
        if not self.inclusive:
            return {key: value for key, value in doc.items() if key not in self.fields}
        projected = {}
        if self.keep_id and ID_FIELD in doc:
            projected[ID_FIELD] = doc[ID_FIELD]
        for key, value in doc.items():
            if key in self.fields and key != ID_FIELD:
                projected[key] = value
        return projected


@dataclass(frozen=True)
class Query:
    """Predicate, ordering, projection and pagination as explicit fields.

    ``skip`` and ``limit`` are None when not applied.
    """

    predicate: All = All()
    sort: Tuple[SortKey, ...] = ()
    projection: Optional[Projection] = None
    skip: Optional[int] = None
    limit: Optional[int] = None
    count_only: bool = False

    def apply(self, items: Iterable[T]) -> List[T]:
        """Evaluate the query against in-memory models.

        Stable sort: items that compare equal keep their input order.
        """
        selected = [item for item in items if self.predicate.matches(item)]
        for key in reversed(self.sort):
            selected.sort(key=lambda item: _sort_value(item, key.field), reverse=key.descending)
        start = self.skip or 0
        end = start + self.limit if self.limit else None
        return selected[start:end]

    def project(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        if self.projection is None:
            return doc
        return self.projection.apply(doc)


def _sort_value(item: Any, field: FieldSpec) -> tuple:
    # Missing values sort before everything else, as in the document store.
    value = getattr(item, field.attr)
    return (value is not None, value)


def _lookup(fields: Mapping[str, FieldSpec], name: str) -> FieldSpec:
    spec = fields.get(name)
    if spec is None:
        raise QueryShapeError(f"Unknown field '{name}'.")
    return spec


def _coerce(spec: FieldSpec, value: Any) -> Any:
    try:
        return spec.coerce(value)
    except QueryShapeError as e:
        raise QueryShapeError(f"Field '{spec.name}': {e}") from None


def _field_conditions(spec: FieldSpec, value: Any) -> List[Condition]:
    if isinstance(value, list):
        raise QueryShapeError(f"Field '{spec.name}' cannot be compared to a list.")
    if not isinstance(value, dict):
        return [Condition(spec, "eq", _coerce(spec, value))]
    if not value or not all(key.startswith("$") for key in value):
        raise QueryShapeError(f"Field '{spec.name}' cannot be compared to an object.")

    flags = value.get("$options", "")
    if "$options" in value and "$regex" not in value:
        raise QueryShapeError("'$options' requires '$regex'.")
    if not isinstance(flags, str):
        raise QueryShapeError("'$options' must be a string.")

    conditions = []
    for key, operand in value.items():
        if key == "$options":
            continue
        op = key[1:]
        if op not in COMPARISON_OPERATORS:
            raise QueryShapeError(f"Unsupported operator '{key}'.")
        if op in ("in", "nin"):
            if not isinstance(operand, list):
                raise QueryShapeError(f"'{key}' on '{spec.name}' requires an array.")
            conditions.append(Condition(spec, op, tuple(_coerce(spec, item) for item in operand)))
        elif op == "regex":
            if not spec.text:
                raise QueryShapeError(f"'$regex' is not supported on '{spec.name}'.")
            if not isinstance(operand, str):
                raise QueryShapeError("'$regex' requires a string pattern.")
            try:
                re.compile(operand)
            except re.error as e:
                raise QueryShapeError(f"Invalid regular expression: {e}") from None
            conditions.append(Condition(spec, op, operand, flags))
        else:
            conditions.append(Condition(spec, op, _coerce(spec, operand)))
    return conditions


def build_predicate(raw: Any, fields: Mapping[str, FieldSpec]) -> All:
    """Compile a JSON filter object into a predicate.

    Args:
        raw: Parsed JSON value (must be an object)
        fields: Field table of the queried resource

    Returns:
        Conjunction of the object's conditions

    Raises:
        QueryShapeError: If the object references unknown fields, uses an
            unsupported operator, or carries values of the wrong type
    """
    if not isinstance(raw, dict):
        raise QueryShapeError("Must be a JSON object.")
    clauses: List[Clause] = []
    for key, value in raw.items():
        if key in ("$and", "$or"):
            if not isinstance(value, list) or not value:
                raise QueryShapeError(f"'{key}' requires a non-empty array.")
            parts = tuple(build_predicate(item, fields) for item in value)
            clauses.append(All(parts) if key == "$and" else AnyOf(parts))
        elif key.startswith("$"):
            raise QueryShapeError(f"Unsupported operator '{key}'.")
        else:
            clauses.extend(_field_conditions(_lookup(fields, key), value))
    return All(tuple(clauses))


def build_sort(raw: Any, fields: Mapping[str, FieldSpec]) -> Tuple[SortKey, ...]:
    """Compile a JSON ``{field: direction}`` object into sort keys."""
    if not isinstance(raw, dict):
        raise QueryShapeError("Must be a JSON object.")
    keys = []
    for name, direction in raw.items():
        spec = _lookup(fields, name)
        if spec.array:
            raise QueryShapeError(f"Cannot sort on '{name}'.")
        keys.append(SortKey(spec, _descending(name, direction)))
    return tuple(keys)


def _descending(name: str, direction: Any) -> bool:
    if isinstance(direction, (int, float)) and not isinstance(direction, bool) and direction in (1, -1):
        return direction == -1
    if isinstance(direction, str) and direction.lower() in _DIRECTIONS:
        return _DIRECTIONS[direction.lower()]
    raise QueryShapeError(f"Sort direction for '{name}' must be 1 or -1.")


def is_flag_value(value: Any) -> bool:
    """True for the JSON numbers 0 and 1 (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value in (0, 1)


def build_projection(raw: Any) -> Optional[Projection]:
    """Compile a JSON ``{field: 0|1}`` object into a projection.

    Fields that do not exist are ignored. An empty object means no projection.
    """
    if not isinstance(raw, dict):
        raise QueryShapeError("Must be a JSON object.")
    if not raw:
        return None
    flags = {}
    for name, value in raw.items():
        if not (is_flag_value(value) or isinstance(value, bool)):
            raise QueryShapeError(f"Projection value for '{name}' must be 0 or 1.")
        flags[name] = bool(value)

    keep_id = flags.pop(ID_FIELD, True)
    if not flags:
        # Only _id was given.
        if keep_id:
            return Projection(frozenset([ID_FIELD]), inclusive=True)
        return Projection(frozenset([ID_FIELD]), inclusive=False)

    included = {name for name, keep in flags.items() if keep}
    excluded = set(flags) - included
    if included and excluded:
        raise QueryShapeError("Cannot mix inclusion and exclusion.")
    if included:
        return Projection(frozenset(included), inclusive=True, keep_id=keep_id)
    if not keep_id:
        excluded.add(ID_FIELD)
    return Projection(frozenset(excluded), inclusive=False)

