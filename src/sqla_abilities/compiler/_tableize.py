"""Condition tableizer — qualify nested rule conditions with table names."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqla_abilities._types import TableizedCondition
from sqla_abilities.compiler._schema import SchemaReflector, get_default_schema

__all__ = ["tableize"]


def tableize(
    conditions: Any,
    entity: type,
    *,
    schema: SchemaReflector | None = None,
    qualify: bool = False,
) -> TableizedCondition | Any:
    """Flatten nested association conditions into column references.

    Literal conditions on an association are keyed by the associated
    table (``"posts.author_id"``). Deeper association mappings are
    resolved recursively against the associated entity. Anything that is
    not a mapping (a SQL fragment, a ``Select``) is returned unchanged.

    Args:
        conditions: The rule's conditions.
        entity: The mapped class the conditions apply to.
        schema: Association lookup. Defaults to SQLAlchemy mapper inspection.
        qualify: Also prefix plain attributes with *entity*'s table name.
            Needed when the query left-joins several tables whose column
            names may collide.

    Returns:
        A flat mapping of column references to literal values.

    Raises:
        ConfigurationError: An association name does not resolve on *entity*.

    Example::

        tableize({"post": {"author_id": 1}}, Comment)
        # {"posts.author_id": 1}
    """
    if not isinstance(conditions, Mapping):
        return conditions
    reflector = schema if schema is not None else get_default_schema()

    result: TableizedCondition = {}
    for name, value in conditions.items():
        if isinstance(value, Mapping):
            target = reflector.association_target(entity, name)
            table = reflector.association_table(entity, name)
            nested: dict[str, Any] = {}
            for key, sub_value in value.items():
                if isinstance(sub_value, Mapping):
                    nested[key] = sub_value
                else:
                    result[f"{table}.{key}"] = sub_value
            result.update(tableize(nested, target, schema=reflector, qualify=qualify))
        elif qualify:
            result[f"{reflector.table_name(entity)}.{name}"] = value
        else:
            result[name] = value
    return result
