"""Compile typed queries to SQLAlchemy expressions."""

from typing import Any

from sqlalchemy import and_, or_, true, false, select
from sqlalchemy.orm import Query as OrmQuery

from taskboard.database.models import PendingTaskDB, UserDB
from taskboard.query.builder import All, AnyOf, Condition, Query


def _compare(column, op: str, value: Any, flags: str = ""):
    """SQL counterpart of builder._compare for a scalar column."""
    if op == "eq":
        return column.is_(None) if value is None else column == value
    if op == "ne":
        # NULL columns satisfy $ne, as missing fields do in the document store.
        return column.isnot(None) if value is None else or_(column != value, column.is_(None))
    if op in ("in", "nin"):
        values = [v for v in value if v is not None]
        has_null = len(values) != len(value)
        if op == "in":
            return or_(column.in_(values), column.is_(None)) if has_null else column.in_(values)
        if has_null:
            return and_(column.notin_(values), column.isnot(None))
        return or_(column.notin_(values), column.is_(None))
    if op == "regex":
        # Inline flag syntax is understood by Python re, PostgreSQL and MySQL alike.
        return column.regexp_match("(?i)" + value if "i" in flags else value)
    if value is None:
        return false()
    if op == "gt":
        return column > value
    if op == "gte":
        return column >= value
    if op == "lt":
        return column < value
    if op == "lte":
        return column <= value
    raise ValueError(f"Unsupported operator: {op}")


def _compare_pending_tasks(condition: Condition):
    """Membership test against the user_pending_tasks rows of a user."""
    links = select(PendingTaskDB.id).where(PendingTaskDB.user_id == UserDB.id)
    if condition.op == "ne":
        return ~links.where(PendingTaskDB.task_id == condition.value).exists()
    if condition.op == "nin":
        return ~links.where(PendingTaskDB.task_id.in_(condition.value)).exists()
    return links.where(
        _compare(PendingTaskDB.task_id, condition.op, condition.value, condition.flags)
    ).exists()


def compile_clause(model, clause):
    """Compile a predicate tree against an ORM model."""
    if isinstance(clause, All):
        if not clause.clauses:
            return true()
        return and_(*[compile_clause(model, part) for part in clause.clauses])
    if isinstance(clause, AnyOf):
        return or_(*[compile_clause(model, part) for part in clause.clauses])
    if clause.field.array:
        if model is not UserDB or clause.field.attr != "pending_tasks":
            raise ValueError(f"No storage for array field {clause.field.name}")
        return _compare_pending_tasks(clause)
    return _compare(getattr(model, clause.field.attr), clause.op, clause.value, clause.flags)


def apply_query(orm_query: OrmQuery, model, query: Query) -> OrmQuery:
    """Apply predicate, ordering and pagination of ``query`` to an ORM query.

    Ordering falls back to creation time so that unsorted pages are stable.
    """
    orm_query = orm_query.filter(compile_clause(model, query.predicate))
    order = []
    for key in query.sort:
        column = getattr(model, key.field.attr)
        # Missing values sort first ascending and last descending.
        order.append(column.desc().nulls_last() if key.descending else column.asc().nulls_first())
    order.extend([model.date_created.asc(), model.id.asc()])
    orm_query = orm_query.order_by(*order)
    if query.skip:
        orm_query = orm_query.offset(query.skip)
    if query.limit:
        orm_query = orm_query.limit(query.limit)
    return orm_query
