"""Compiler — transforms rules into SQL filter expressions and joins."""

from sqla_abilities.compiler._expression import (
    merge_conditions,
    merge_proxy_conditions,
    to_expression,
    wrap_not_null,
)
from sqla_abilities.compiler._joins import (
    apply_joins,
    clean_joins,
    collect_joins,
    joins_collection,
    merge_joins,
)
from sqla_abilities.compiler._query import QueryCompiler
from sqla_abilities.compiler._schema import SchemaReflector, SQLAlchemySchema, get_default_schema
from sqla_abilities.compiler._tableize import tableize

__all__ = [
    "QueryCompiler",
    "SQLAlchemySchema",
    "SchemaReflector",
    "apply_joins",
    "clean_joins",
    "collect_joins",
    "get_default_schema",
    "joins_collection",
    "merge_conditions",
    "merge_joins",
    "merge_proxy_conditions",
    "tableize",
    "to_expression",
    "wrap_not_null",
]
