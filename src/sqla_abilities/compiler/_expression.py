"""Predicate building — leaf comparisons and the allow/deny fold."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, and_, false, or_, text, true
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.expression import False_ as SAFalse
from sqlalchemy.sql.expression import True_ as SATrue

from sqla_abilities.compiler._schema import SchemaReflector, get_default_schema
from sqla_abilities.rules._conditions import Comparison

__all__ = [
    "merge_conditions",
    "merge_proxy_conditions",
    "to_expression",
    "wrap_not_null",
]

_COLLECTIONS = (list, tuple, set, frozenset)


def _leaf(column: Any, value: Any) -> ColumnElement[bool]:
    if isinstance(value, Comparison):
        return value.to_expression(column)
    if value is None:
        result: ColumnElement[bool] = column.is_(None)
    elif isinstance(value, _COLLECTIONS):
        result = column.in_(list(value))
    else:
        result = column == value
    return result


def to_expression(
    conditions: Any,
    entity: type,
    *,
    schema: SchemaReflector | None = None,
) -> ColumnElement[bool]:
    """Turn tableized conditions into a SQL boolean expression.

    Each entry becomes one comparison (``=``, ``IN``, ``IS NULL`` or a
    ``Comparison`` operator) and the entries are AND'd. Values are always
    bound parameters. SQL fragments pass through; raw strings are wrapped
    in ``text()``. An empty mapping is ``true()``.

    Raises:
        ConfigurationError: A key names no column.
        TypeError: *conditions* is not a mapping or a SQL fragment.
    """
    if isinstance(conditions, str):
        return text(conditions)  # type: ignore[return-value]
    if isinstance(conditions, (ColumnElement, TextClause)):
        return conditions  # type: ignore[return-value]
    if not isinstance(conditions, Mapping):
        raise TypeError(f"Cannot build a filter from {type(conditions).__name__}")
    if not conditions:
        return true()

    reflector = schema if schema is not None else get_default_schema()
    clauses = [_leaf(reflector.column(entity, key), value) for key, value in conditions.items()]
    return and_(*clauses)


def _negate(condition: ColumnElement[bool]) -> ColumnElement[bool]:
    """NULL-safe NOT: a condition evaluating to NULL counts as not matching."""
    if isinstance(condition, SATrue):
        return false()
    if isinstance(condition, SAFalse):
        return true()
    return condition.is_not(true())


def merge_conditions(
    acc: ColumnElement[bool],
    condition: ColumnElement[bool] | None,
    behavior: bool,
) -> ColumnElement[bool]:
    """Fold one rule's condition over the accumulated predicate.

    *condition* is ``None`` when the rule has no conditions. Allow rules
    widen the accumulator with OR, deny rules narrow it with
    ``AND (condition) IS NOT true`` so rows where the denied column is NULL
    are kept.

    Example::

        acc = false()
        acc = merge_conditions(acc, User.id == 1, True)           # id = 1
        acc = merge_conditions(acc, User.manager_id == 1, True)   # manager_id = 1 OR id = 1
        acc = merge_conditions(acc, User.self_managed == True, False)
        # (self_managed = true) IS NOT true AND (manager_id = 1 OR id = 1)
    """
    if condition is None:
        return true() if behavior else false()
    if isinstance(acc, SATrue):
        return true() if behavior else _negate(condition)
    if isinstance(acc, SAFalse):
        return condition if behavior else false()
    if behavior:
        return or_(condition, acc)
    return and_(_negate(condition), acc)


def wrap_not_null(
    primary_key: ColumnElement[Any],
    condition: ColumnElement[bool],
) -> ColumnElement[bool]:
    """Limit *condition* to rows where the left-joined subject exists.

    Without the guard an always-true condition would match proxy rows
    joined to any other subject table.
    """
    return and_(primary_key.is_not(None), condition)


def merge_proxy_conditions(
    acc: ColumnElement[bool] | None,
    wrapped: ColumnElement[bool],
    behavior: bool,
) -> ColumnElement[bool]:
    """Fold one wrapped proxy condition; *acc* is ``None`` on the first rule."""
    if acc is None:
        return wrapped if behavior else _negate(wrapped)
    if behavior:
        return or_(wrapped, acc)
    return and_(_negate(wrapped), acc)
