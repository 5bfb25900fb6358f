"""explain_accessible() — describe how an accessible-records query is built."""

from __future__ import annotations

from typing import Any

from sqlalchemy import ClauseElement

from sqla_abilities.compiler._query import QueryCompiler
from sqla_abilities.compiler._schema import SchemaReflector
from sqla_abilities.config._config import get_global_config
from sqla_abilities.explain._models import QueryExplanation, RuleExplanation
from sqla_abilities.proxy._registry import ProxyRegistry
from sqla_abilities.rules._ability import Ability
from sqla_abilities.rules._rule import Rule

__all__ = ["explain_accessible"]


def _compile_sql(expr: ClauseElement) -> str:
    """Compile a SQLAlchemy expression to SQL with literal binds."""
    return str(expr.compile(compile_kwargs={"literal_binds": True}))


def _explain_rule(compiler: QueryCompiler, rule: Rule) -> RuleExplanation:
    if rule.conditions.kind == "scope":
        condition_sql = _compile_sql(rule.raw_conditions)
    else:
        entity = compiler.entity
        if compiler.is_polymorphic_proxy and isinstance(rule.primary_subject, type):
            entity = rule.primary_subject
        expr = compiler.rule_expression(rule, entity)
        condition_sql = _compile_sql(expr) if expr is not None else ""
    return RuleExplanation(
        behavior="can" if rule.behavior else "cannot",
        actions=list(rule.actions),
        subjects=[getattr(s, "__name__", str(s)) for s in rule.subjects],
        condition_kind=rule.conditions.kind,
        condition_sql=condition_sql,
    )


def explain_accessible(
    entity: type,
    ability: Ability,
    action: str | None = None,
    *,
    schema: SchemaReflector | None = None,
    proxies: ProxyRegistry | None = None,
) -> QueryExplanation:
    """Explain how ``accessible_by`` would filter *entity*.

    Does not execute anything. Raises the same errors ``accessible_by``
    would raise for the same rules.

    Example::

        print(explain_accessible(Post, ability, "read"))
    """
    if action is None:
        action = get_global_config().default_action
    compiler = ability.query(action, entity, schema=schema, proxies=proxies)
    stmt = compiler.database_records()
    strategy = compiler.strategy()

    predicate: Any = None
    if strategy == "merged":
        predicate = compiler.predicate()
    elif strategy == "fallback":
        predicate = compiler.fallback_conditions()
    elif strategy == "proxy":
        predicate = compiler.proxy_conditions()
    elif strategy == "deny_by_default":
        predicate = stmt.whereclause

    return QueryExplanation(
        entity_name=entity.__name__,
        action=action,
        strategy=strategy,
        rules=[_explain_rule(compiler, rule) for rule in compiler.rules],
        predicate_sql=_compile_sql(predicate) if predicate is not None else "",
        joins=compiler.joins() if strategy in ("merged", "fallback") else None,
        authorized_sql=_compile_sql(stmt),
    )
