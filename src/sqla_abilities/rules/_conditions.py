"""Condition shapes carried by a rule.

A rule's conditions are resolved once, when the rule is built, into one
of three variants:

- ``Structured`` — a (possibly nested) mapping of attribute and
  association names to literal values. Mergeable.
- ``Opaque`` — a pre-built SQL boolean fragment. Not mergeable.
- ``Scope`` — a pre-built ``Select`` that overrides the whole query.
  Not mergeable.

Inside a ``Structured`` mapping a value may also be a ``Comparison``
leaf, e.g. ``{"age": Comparison("gteq", 18)}``.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from sqlalchemy import ColumnElement, Select, and_, false, or_, text, true
from sqlalchemy.sql.elements import TextClause

from sqla_abilities._types import ConditionTree, JoinTree
from sqla_abilities.exceptions import UnsupportedOperatorError

__all__ = [
    "Comparison",
    "Condition",
    "Opaque",
    "Scope",
    "Structured",
    "associations_hash",
    "resolve_condition",
]


def _like_match(value: Any, pattern: Any) -> bool:
    """Case-insensitive whole-string match of a SQL LIKE pattern (``%`` only)."""
    if not isinstance(value, str) or not isinstance(pattern, str):
        return False
    regex = "^" + re.escape(pattern).replace("%", ".*") + "$"
    return re.match(regex, value, re.IGNORECASE | re.DOTALL) is not None


def _contains(value: Any, operand: Any) -> bool:
    return value in operand


# Operator name -> (in-memory check, SQL builder).
_OPERATORS: dict[str, tuple[Callable[[Any, Any], bool], Callable[[Any, Any], Any]]] = {
    "eq": (operator.eq, lambda col, v: col == v),
    "not_eq": (operator.ne, lambda col, v: col != v),
    "in": (_contains, lambda col, v: col.in_(list(v))),
    "not_in": (lambda a, b: not _contains(a, b), lambda col, v: col.not_in(list(v))),
    "lt": (operator.lt, lambda col, v: col < v),
    "lteq": (operator.le, lambda col, v: col <= v),
    "gt": (operator.gt, lambda col, v: col > v),
    "gteq": (operator.ge, lambda col, v: col >= v),
    "matches": (_like_match, lambda col, v: col.ilike(v)),
    "does_not_match": (lambda a, b: not _like_match(a, b), lambda col, v: col.not_ilike(v)),
}

_QUANTIFIERS = ("_any", "_all")


@dataclass(frozen=True, slots=True)
class Comparison:
    """An operator condition on a single column.

    ``op`` is one of ``eq``, ``not_eq``, ``in``, ``not_in``, ``lt``,
    ``lteq``, ``gt``, ``gteq``, ``matches`` or ``does_not_match``,
    optionally suffixed with ``_any`` or ``_all``. With a suffix the
    operand is a collection and the comparisons are OR'd / AND'd.

    Example::

        ability.can("read", Post, {"title": Comparison("matches", "Draft%")})
        ability.can("read", Post, {"id": Comparison("gt_any", [10, 20])})
    """

    op: str
    operand: Any
    base_op: str = field(init=False, repr=False)
    quantifier: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        base_op, quantifier = self.op, ""
        for suffix in _QUANTIFIERS:
            if self.op.endswith(suffix):
                base_op, quantifier = self.op[: -len(suffix)], suffix[1:]
                break
        if base_op not in _OPERATORS:
            raise UnsupportedOperatorError(self.op)
        object.__setattr__(self, "base_op", base_op)
        object.__setattr__(self, "quantifier", quantifier)

    def matches(self, value: Any) -> bool:
        """Evaluate the comparison against an in-memory attribute value."""
        check = _OPERATORS[self.base_op][0]
        if self.quantifier == "any":
            return any(check(value, v) for v in self.operand)
        if self.quantifier == "all":
            return all(check(value, v) for v in self.operand)
        return bool(check(value, self.operand))

    def to_expression(self, column: Any) -> ColumnElement[bool]:
        """Build the SQL comparison against *column*."""
        build = _OPERATORS[self.base_op][1]
        if self.quantifier == "any":
            return or_(false(), *[build(column, v) for v in self.operand])
        if self.quantifier == "all":
            return and_(true(), *[build(column, v) for v in self.operand])
        result: ColumnElement[bool] = build(column, self.operand)
        return result


def associations_hash(conditions: ConditionTree) -> JoinTree:
    """Return the association-reference tree of a condition mapping.

    Example::

        associations_hash({"published": True, "author": {"organization": {"id": 1}}})
        # {"author": {"organization": {}}}
    """
    return {
        name: associations_hash(value)
        for name, value in conditions.items()
        if isinstance(value, Mapping)
    }


@dataclass(frozen=True, slots=True)
class Structured:
    """Attribute/association conditions given as a mapping."""

    mapping: ConditionTree
    kind: ClassVar[str] = "structured"
    mergeable: ClassVar[bool] = True

    @property
    def raw(self) -> ConditionTree:
        return self.mapping

    @property
    def empty(self) -> bool:
        return not self.mapping

    def associations(self) -> JoinTree:
        return associations_hash(self.mapping)


@dataclass(frozen=True, slots=True)
class Opaque:
    """A pre-built SQL boolean fragment."""

    fragment: ColumnElement[bool] | TextClause
    kind: ClassVar[str] = "opaque"
    mergeable: ClassVar[bool] = False

    @property
    def raw(self) -> ColumnElement[bool] | TextClause:
        return self.fragment

    @property
    def empty(self) -> bool:
        return False

    def associations(self) -> JoinTree:
        return {}


@dataclass(frozen=True, slots=True)
class Scope:
    """A pre-built ``Select`` that replaces the compiled query."""

    select: Select[Any]
    kind: ClassVar[str] = "scope"
    mergeable: ClassVar[bool] = False

    @property
    def raw(self) -> Select[Any]:
        return self.select

    @property
    def empty(self) -> bool:
        return False

    def associations(self) -> JoinTree:
        return {}


Condition = Union[Structured, Opaque, Scope]


def resolve_condition(raw: Any) -> Condition:
    """Classify raw rule conditions into a condition variant.

    Raises:
        TypeError: If *raw* is none of the supported shapes.
    """
    if raw is None:
        return Structured({})
    if isinstance(raw, (Structured, Opaque, Scope)):
        return raw
    if isinstance(raw, Mapping):
        return Structured(dict(raw))
    if isinstance(raw, Select):
        return Scope(raw)
    if isinstance(raw, str):
        return Opaque(text(raw))
    if isinstance(raw, (ColumnElement, TextClause)):
        return Opaque(raw)
    raise TypeError(
        f"Rule conditions must be a mapping, a SQL fragment or a Select, "
        f"got {type(raw).__name__}"
    )
