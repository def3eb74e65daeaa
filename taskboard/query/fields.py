"""Queryable field tables for users and tasks.

Each table maps a wire field name to the model attribute it reads and the
coercion applied to values compared against it, so that query values reach
the store with the same types the models use.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict

from pydantic import TypeAdapter, ValidationError

from taskboard.models.constants import ID_FIELD, UNASSIGNED_USER_ID, UNASSIGNED_USER_NAME
from taskboard.models.timeutil import as_naive_utc
from taskboard.query.errors import QueryShapeError

_datetime_adapter = TypeAdapter(datetime)


@dataclass(frozen=True)
class FieldSpec:
    """A field that filters, sorts and projections may reference."""

    name: str
    attr: str
    coerce: Callable[[Any], Any]
    array: bool = False
    text: bool = True


def coerce_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    raise QueryShapeError(f"Expected a string, got {value!r}.")


_BOOL_LITERALS = {"true": True, "false": False, "1": True, "0": False}


def coerce_bool(value: Any) -> Any:
    """Accept booleans, the numbers 0/1 and their string spellings."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.lower() in _BOOL_LITERALS:
        return _BOOL_LITERALS[value.lower()]
    raise QueryShapeError(f"Expected true or false, got {value!r}.")


def coerce_datetime(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        raise QueryShapeError(f"Expected a date, got {value!r}.")
    try:
        return as_naive_utc(_datetime_adapter.validate_python(value))
    except ValidationError:
        raise QueryShapeError(f"Expected a date, got {value!r}.") from None


def _sentinel_to_none(sentinel: str) -> Callable[[Any], Any]:
    """Text coercion that maps a legacy wire sentinel to None."""
    def coerce(value: Any) -> Any:
        value = coerce_text(value)
        return None if value == sentinel else value
    return coerce


def _table(*specs: FieldSpec) -> Dict[str, FieldSpec]:
    return {spec.name: spec for spec in specs}


USER_FIELDS = _table(
    FieldSpec(ID_FIELD, "id", coerce_text),
    FieldSpec("name", "name", coerce_text),
    FieldSpec("email", "email", coerce_text),
    FieldSpec("pendingTasks", "pending_tasks", coerce_text, array=True),
    FieldSpec("dateCreated", "date_created", coerce_datetime, text=False),
)

TASK_FIELDS = _table(
    FieldSpec(ID_FIELD, "id", coerce_text),
    FieldSpec("name", "name", coerce_text),
    FieldSpec("description", "description", coerce_text),
    FieldSpec("deadline", "deadline", coerce_datetime, text=False),
    FieldSpec("completed", "completed", coerce_bool, text=False),
    FieldSpec("assignedUser", "assigned_user", _sentinel_to_none(UNASSIGNED_USER_ID)),
    FieldSpec("assignedUserName", "assigned_user_name", _sentinel_to_none(UNASSIGNED_USER_NAME)),
    FieldSpec("dateCreated", "date_created", coerce_datetime, text=False),
)
