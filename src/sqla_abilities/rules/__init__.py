"""Rules — ``can`` / ``cannot`` statements and their conditions."""

from sqla_abilities.rules._ability import Ability
from sqla_abilities.rules._conditions import (
    Comparison,
    Condition,
    Opaque,
    Scope,
    Structured,
    associations_hash,
    resolve_condition,
)
from sqla_abilities.rules._rule import ALL, MANAGE, Rule

__all__ = [
    "ALL",
    "MANAGE",
    "Ability",
    "Comparison",
    "Condition",
    "Opaque",
    "Rule",
    "Scope",
    "Structured",
    "associations_hash",
    "resolve_condition",
]
