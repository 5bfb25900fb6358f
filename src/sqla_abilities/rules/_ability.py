"""Ability — ordered store of ``can`` / ``cannot`` rules."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqla_abilities.rules._rule import Rule

if TYPE_CHECKING:
    from sqla_abilities.compiler._query import QueryCompiler
    from sqla_abilities.compiler._schema import SchemaReflector
    from sqla_abilities.proxy._registry import ProxyRegistry

__all__ = ["Ability"]

_DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    "read": ("index", "show"),
    "create": ("new",),
    "update": ("edit",),
}


class Ability:
    """Holds the rules for one actor in declaration order.

    Append-only while rules are being defined, read-only afterwards.
    Later rules take precedence over earlier ones.

    Example::

        ability = Ability()
        ability.can("read", Post)
        ability.cannot("read", Post, {"is_published": False})
        stmt = Post.accessible_by(ability, "read")
    """

    def __init__(self) -> None:
        self._rules: list[Rule] = []
        self._aliases: dict[str, tuple[str, ...]] = dict(_DEFAULT_ALIASES)

    def can(self, action: str | Iterable[str], subject: Any, conditions: Any = None) -> Rule:
        """Allow *action* on *subject*, optionally limited by *conditions*.

        *conditions* may be a mapping of attribute/association conditions,
        a SQL fragment, or a pre-built ``Select`` scope.
        """
        return self.add_rule(Rule.build(True, action, subject, conditions))

    def cannot(self, action: str | Iterable[str], subject: Any, conditions: Any = None) -> Rule:
        """Deny *action* on *subject*, optionally limited by *conditions*."""
        return self.add_rule(Rule.build(False, action, subject, conditions))

    def add_rule(self, rule: Rule) -> Rule:
        self._rules.append(rule)
        return rule

    def alias_action(self, *actions: str, to: str) -> None:
        """Make a rule on *to* also cover *actions*.

        Example::

            ability.alias_action("archive", "restore", to="update")
        """
        self._aliases[to] = tuple(dict.fromkeys((*self._aliases.get(to, ()), *actions)))

    def expand_actions(self, actions: Iterable[str]) -> set[str]:
        """Return *actions* plus everything they alias, transitively."""
        expanded: set[str] = set()
        pending = list(actions)
        while pending:
            action = pending.pop()
            if action in expanded:
                continue
            expanded.add(action)
            pending.extend(self._aliases.get(action, ()))
        return expanded

    @property
    def rules(self) -> list[Rule]:
        """All rules in declaration order (a copy)."""
        return list(self._rules)

    def relevant_rules(self, action: str, subject: Any) -> list[Rule]:
        """Rules covering (action, subject), most recently declared first."""
        return [
            rule
            for rule in reversed(self._rules)
            if rule.matches_action(self.expand_actions(rule.actions), action)
            and rule.matches_subject(subject)
        ]

    def query(
        self,
        action: str,
        entity: type,
        *,
        schema: SchemaReflector | None = None,
        proxies: ProxyRegistry | None = None,
    ) -> QueryCompiler:
        """Return a compiler for the rules relevant to (action, entity)."""
        from sqla_abilities.compiler._query import QueryCompiler

        return QueryCompiler(
            entity,
            self.relevant_rules(action, entity),
            action=action,
            schema=schema,
            proxies=proxies,
        )

    def clear(self) -> None:
        """Remove all rules. Aliases are kept."""
        self._rules.clear()
