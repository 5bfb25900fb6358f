"""Logging for query compilation decisions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement

from sqla_abilities.rules._rule import Rule

__all__ = ["log_fallback_query", "log_query_compilation"]

logger = logging.getLogger("sqla_abilities")


def log_query_compilation(
    *,
    entity: type,
    action: str,
    rules: Sequence[Rule],
    strategy: str,
    predicate: ColumnElement[bool] | None = None,
    joins: Any = None,
) -> None:
    """Log how an accessible-records query was compiled.

    Logging levels:
    - INFO: Summary (entity, action, rule count, strategy)
    - DEBUG: The rules, the predicate and the joins
    - WARNING: No relevant rules (deny-by-default triggered)
    """
    entity_name = entity.__name__

    if not rules:
        logger.warning(
            "No rule defined for (%s, %r), deny-by-default applied",
            entity_name,
            action,
        )
        return

    logger.info(
        "Accessible query: %s.%s, %d rule(s), strategy=%s",
        entity_name,
        action,
        len(rules),
        strategy,
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Rules for %s.%s: %r, filter: %s, joins: %r",
            entity_name,
            action,
            list(rules),
            predicate,
            joins,
        )


def log_fallback_query(*, entity: type, action: str, rules: Sequence[Rule]) -> None:
    """Warn that deny precedence is not applied to a fallback query."""
    unmergeable = [rule for rule in rules if not rule.mergeable]
    logger.warning(
        "Rules for (%s, %r) include %d SQL fragment(s); OR-ing raw conditions, "
        "cannot rules are not subtracted",
        entity.__name__,
        action,
        len(unmergeable),
    )
