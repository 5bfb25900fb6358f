"""Join collection — merge the association paths used by all rules."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select

from sqla_abilities._types import JoinList, JoinTree
from sqla_abilities.compiler._schema import SchemaReflector, get_default_schema
from sqla_abilities.rules._rule import Rule

__all__ = [
    "apply_joins",
    "clean_joins",
    "collect_joins",
    "joins_collection",
    "merge_joins",
]


def merge_joins(base: JoinTree, add: JoinTree) -> None:
    """Deep-merge *add* into *base* in place.

    An existing path is merged into, never replaced.
    """
    for name, nested in add.items():
        if name in base:
            if nested:
                merge_joins(base[name], nested)
        else:
            base[name] = {}
            merge_joins(base[name], nested)


def clean_joins(tree: JoinTree) -> JoinList:
    """Convert a join tree to the list form: leaves become bare names.

    Example::

        clean_joins({"tags": {}, "author": {"organization": {}}})
        # ["tags", {"author": ["organization"]}]
    """
    joins: JoinList = []
    for name, nested in tree.items():
        joins.append({name: clean_joins(nested)} if nested else name)
    return joins


def collect_joins(rules: Sequence[Rule]) -> JoinList | None:
    """Return the joins needed by the association conditions of *rules*.

    Returns ``None`` when no rule has an association condition.
    """
    tree: JoinTree = {}
    for rule in rules:
        merge_joins(tree, rule.associations_hash())
    if not tree:
        return None
    return clean_joins(tree)


def apply_joins(
    stmt: Select[Any],
    entity: type,
    joins: JoinList | None,
    *,
    schema: SchemaReflector | None = None,
) -> Select[Any]:
    """Inner-join *stmt* along the relationship paths in *joins*."""
    reflector = schema if schema is not None else get_default_schema()
    for item in joins or ():
        if isinstance(item, str):
            stmt = stmt.join(reflector.association_attribute(entity, item))
            continue
        for name, nested in item.items():
            stmt = stmt.join(reflector.association_attribute(entity, name))
            target = reflector.association_target(entity, name)
            stmt = apply_joins(stmt, target, nested, schema=reflector)
    return stmt


def joins_collection(
    entity: type,
    joins: JoinList | None,
    *,
    schema: SchemaReflector | None = None,
) -> bool:
    """Whether any path in *joins* crosses a to-many relationship.

    Inner-joining such a path repeats the parent row once per matching
    child, so the caller has to add ``DISTINCT``.
    """
    reflector = schema if schema is not None else get_default_schema()
    for item in joins or ():
        if isinstance(item, str):
            if reflector.association_is_collection(entity, item):
                return True
            continue
        for name, nested in item.items():
            if reflector.association_is_collection(entity, name):
                return True
            target = reflector.association_target(entity, name)
            if joins_collection(target, nested, schema=reflector):
                return True
    return False
