"""Shared type aliases for sqla-abilities."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, Union

from sqlalchemy import ColumnElement

__all__ = [
    "ConditionTree",
    "FilterExpression",
    "JoinList",
    "JoinTree",
    "OnFallbackQuery",
    "OnMissingRules",
    "TableizedCondition",
]

# Valid values for AbilityConfig.on_missing_rules.
OnMissingRules = Literal["deny", "raise"]

# Valid values for AbilityConfig.on_fallback_query.
OnFallbackQuery = Literal["ignore", "warn", "raise"]

# Nested attribute/association conditions as written in a rule.
ConditionTree = Mapping[str, Any]

# Flat mapping of bare or ``table.column`` keys to literal values.
TableizedCondition = dict[str, Any]

# Association-reference tree, e.g. ``{"post": {"author": {}}}``.
JoinTree = dict[str, "JoinTree"]

# Engine form of a JoinTree, e.g. ``["tags", {"post": ["author"]}]``.
JoinList = list[Union[str, dict[str, "JoinList"]]]

# The universal output type of the compiler.
FilterExpression = ColumnElement[bool]
