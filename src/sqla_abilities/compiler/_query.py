"""QueryCompiler — assemble the accessible-records ``Select`` for one entity."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, false, or_, select, true

from sqla_abilities._audit import log_fallback_query, log_query_compilation
from sqla_abilities._types import JoinList, TableizedCondition
from sqla_abilities.compiler._expression import (
    merge_conditions,
    merge_proxy_conditions,
    to_expression,
    wrap_not_null,
)
from sqla_abilities.compiler._joins import apply_joins, collect_joins, joins_collection
from sqla_abilities.compiler._schema import SchemaReflector, get_default_schema
from sqla_abilities.compiler._tableize import tableize
from sqla_abilities.config._config import AbilityConfig, get_global_config
from sqla_abilities.exceptions import (
    ConfigurationError,
    NoRulesError,
    UnmergeableConditionsError,
)
from sqla_abilities.proxy._registry import (
    PolymorphicProxyConfig,
    ProxyRegistry,
    get_default_proxy_registry,
)
from sqla_abilities.rules._rule import Rule

__all__ = ["QueryCompiler"]


class QueryCompiler:
    """Compile the rules relevant to one (action, entity) into SQL.

    *rules* are in precedence order, most recently declared first, as
    returned by ``Ability.relevant_rules()``. Folding walks them in
    declaration order so the last declared rule ends up outermost.

    Example::

        compiler = ability.query("manage", User)
        compiler.conditions()        # {"id": 1} or a ColumnElement[bool]
        compiler.joins()             # ["organization"] or None
        stmt = compiler.database_records()
    """

    def __init__(
        self,
        entity: type,
        rules: Sequence[Rule],
        *,
        action: str = "",
        schema: SchemaReflector | None = None,
        proxies: ProxyRegistry | None = None,
        config: AbilityConfig | None = None,
    ) -> None:
        self.entity = entity
        self.rules = list(rules)
        self.action = action
        self.schema = schema if schema is not None else get_default_schema()
        self.proxies = proxies if proxies is not None else get_default_proxy_registry()
        self.config = config if config is not None else get_global_config()

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    @property
    def proxy_config(self) -> PolymorphicProxyConfig | None:
        return self.proxies.lookup(self.entity)

    @property
    def is_polymorphic_proxy(self) -> bool:
        return self.proxy_config is not None

    @property
    def mergeable(self) -> bool:
        return all(rule.mergeable for rule in self.rules)

    def tableized_conditions(
        self, conditions: Any, entity: type | None = None
    ) -> TableizedCondition | Any:
        return tableize(
            conditions,
            entity if entity is not None else self.entity,
            schema=self.schema,
            qualify=self.is_polymorphic_proxy,
        )

    def rule_expression(
        self, rule: Rule, entity: type | None = None
    ) -> ColumnElement[bool] | None:
        """One rule's own condition as SQL, or ``None`` when it has none."""
        if rule.conditions.empty:
            return None
        target = entity if entity is not None else self.entity
        tableized = self.tableized_conditions(rule.raw_conditions, target)
        return to_expression(tableized, target, schema=self.schema)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def conditions(self) -> TableizedCondition | ColumnElement[bool]:
        """Return the combined conditions of all rules.

        A single ``can`` rule yields its tableized mapping as is. Anything
        else is folded into one expression, starting from ``false()``.

        Example::

            # can manage User, id=1
            # can manage User, manager_id=1
            # cannot manage User, self_managed=True
            compiler.conditions()
            # (self_managed = true) IS NOT true AND (manager_id = 1 OR id = 1)
        """
        if len(self.rules) == 1 and self.rules[0].behavior:
            tableized: TableizedCondition | ColumnElement[bool] = self.tableized_conditions(
                self.rules[0].raw_conditions
            )
            return tableized

        acc: ColumnElement[bool] = false()
        for rule in reversed(self.rules):
            acc = merge_conditions(acc, self.rule_expression(rule), rule.behavior)
        return acc

    def predicate(self) -> ColumnElement[bool]:
        """``conditions()`` as a SQL expression."""
        return to_expression(self.conditions(), self.entity, schema=self.schema)

    def joins(self) -> JoinList | None:
        """Joins required by association conditions, or ``None``."""
        return collect_joins(self.rules)

    def _proxy_subject(self, rule: Rule) -> type:
        subject = rule.primary_subject
        if not isinstance(subject, type):
            raise ConfigurationError(
                entity=self.entity.__name__,
                association=str(subject),
                message=(
                    f"Rules on polymorphic proxy {self.entity.__name__} need a mapped "
                    f"primary subject, got {subject!r}"
                ),
            )
        return subject

    def _wrapped_proxy_condition(self, rule: Rule) -> ColumnElement[bool]:
        subject = self._proxy_subject(rule)
        condition = self.rule_expression(rule, subject)
        if condition is None:
            condition = true()
        return wrap_not_null(self.schema.primary_key(subject), condition)

    def proxy_conditions(self) -> ColumnElement[bool]:
        """Combined conditions for a polymorphic proxy query.

        Every rule is tableized against its primary subject and guarded
        with ``<subject>.id IS NOT NULL`` so it only matches proxy rows
        joined to that subject.
        """
        if len(self.rules) == 1 and self.rules[0].behavior:
            return self._wrapped_proxy_condition(self.rules[0])

        acc: ColumnElement[bool] | None = None
        for rule in reversed(self.rules):
            acc = merge_proxy_conditions(acc, self._wrapped_proxy_condition(rule), rule.behavior)
        return acc if acc is not None else false()

    def fallback_conditions(self) -> ColumnElement[bool]:
        """OR of every rule's own conditions, ignoring allow/deny."""
        clauses = []
        for rule in self.rules:
            condition = self.rule_expression(rule)
            clauses.append(condition if condition is not None else true())
        return or_(false(), *clauses)

    # ------------------------------------------------------------------
    # Query assembly
    # ------------------------------------------------------------------

    def override_scope(self) -> Select[Any] | None:
        """The ``Select`` supplied by a scope rule, if any.

        Raises:
            UnmergeableConditionsError: A scope is combined with other rules.
        """
        scopes = [rule for rule in self.rules if rule.conditions.kind == "scope"]
        if not scopes:
            return None
        if len(self.rules) == 1:
            scope: Select[Any] = scopes[0].raw_conditions
            return scope
        raise UnmergeableConditionsError(
            action=scopes[0].actions[0],
            subject=scopes[0].primary_subject,
            rules=self.rules,
            message=(
                "Unable to merge a Select scope with other conditions. Instead use a "
                f"mapping or SQL for {scopes[0].actions[0]} "
                f"{getattr(scopes[0].primary_subject, '__name__', scopes[0].primary_subject)} "
                f"ability ({len(self.rules)} conflicting rules: {self.rules!r})."
            ),
        )

    def strategy(self) -> str:
        """Which assembly path ``database_records()`` takes."""
        if any(rule.conditions.kind == "scope" for rule in self.rules):
            return "scope"
        if not self.rules:
            return "deny_by_default"
        if self.is_polymorphic_proxy:
            return "proxy"
        return "merged" if self.mergeable else "fallback"

    def _proxy_records(self) -> Select[Any]:
        proxy = self.proxy_config
        assert proxy is not None
        unmergeable = [rule for rule in self.rules if not rule.mergeable]
        if unmergeable:
            raise UnmergeableConditionsError(
                action=self.action or unmergeable[0].actions[0],
                subject=self.entity,
                rules=unmergeable,
            )
        with_associations = [rule for rule in self.rules if rule.associations_hash()]
        if with_associations:
            raise UnmergeableConditionsError(
                action=self.action or with_associations[0].actions[0],
                subject=self.entity,
                rules=with_associations,
                message=(
                    "Association conditions are not supported on polymorphic proxy "
                    f"{self.entity.__name__}. The rules are mergeable, but proxy queries "
                    "only left-join each subject table on its primary key, so an "
                    "association table would be referenced without a join. Use "
                    "conditions on the subject's own columns instead."
                ),
            )

        type_column = self.schema.column(self.entity, proxy.type_column)
        id_column = self.schema.column(self.entity, proxy.id_column)
        stmt = select(self.entity)
        subjects = dict.fromkeys(self._proxy_subject(rule) for rule in self.rules)
        for subject in subjects:
            stmt = stmt.outerjoin(
                subject,
                and_(
                    type_column == subject.__name__,
                    id_column == self.schema.primary_key(subject),
                ),
            )
        return stmt.where(self.proxy_conditions())

    def _joined_records(
        self, predicate: ColumnElement[bool], joins: JoinList | None
    ) -> Select[Any]:
        stmt = apply_joins(
            select(self.entity).where(predicate), self.entity, joins, schema=self.schema
        )
        if joins_collection(self.entity, joins, schema=self.schema):
            stmt = stmt.distinct()
        return stmt

    def database_records(self) -> Select[Any]:
        """Return a ``Select`` of the entity's accessible rows.

        Raises:
            UnmergeableConditionsError: The rules cannot be combined.
            NoRulesError: No rule is relevant and ``on_missing_rules="raise"``.
            ConfigurationError: A condition names an unknown association.
        """
        strategy = self.strategy()
        predicate: ColumnElement[bool] | None = None
        joins: JoinList | None = None

        if strategy == "scope":
            scope = self.override_scope()
            assert scope is not None
            stmt = scope
        elif strategy == "deny_by_default":
            if self.config.on_missing_rules == "raise":
                raise NoRulesError(action=self.action, subject=self.entity)
            predicate = false()
            stmt = select(self.entity).where(predicate)
        elif strategy == "proxy":
            stmt = self._proxy_records()
        elif strategy == "merged":
            predicate = self.predicate()
            joins = self.joins()
            stmt = self._joined_records(predicate, joins)
        else:
            if self.config.on_fallback_query == "raise":
                raise UnmergeableConditionsError(
                    action=self.action, subject=self.entity, rules=self.rules
                )
            if self.config.on_fallback_query == "warn":
                log_fallback_query(entity=self.entity, action=self.action, rules=self.rules)
            predicate = self.fallback_conditions()
            joins = self.joins()
            stmt = self._joined_records(predicate, joins)

        if self.config.log_query_building:
            log_query_compilation(
                entity=self.entity,
                action=self.action,
                rules=self.rules,
                strategy=strategy,
                predicate=predicate,
                joins=joins,
            )
        return stmt
