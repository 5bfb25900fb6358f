"""Data models for explain/dry-run output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

__all__ = ["QueryExplanation", "RuleExplanation"]


@dataclass(frozen=True, slots=True)
class RuleExplanation:
    """One relevant rule as seen by the compiler.

    Attributes:
        behavior: ``"can"`` or ``"cannot"``.
        actions: Actions the rule covers.
        subjects: Names of the subjects the rule covers.
        condition_kind: ``"structured"``, ``"opaque"`` or ``"scope"``.
        condition_sql: The rule's own condition compiled with literal binds.
    """

    behavior: str
    actions: list[str]
    subjects: list[str]
    condition_kind: str
    condition_sql: str

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return {
            "behavior": self.behavior,
            "actions": list(self.actions),
            "subjects": list(self.subjects),
            "condition_kind": self.condition_kind,
            "condition_sql": self.condition_sql,
        }


@dataclass(frozen=True, slots=True)
class QueryExplanation:
    """How the accessible-records query for an entity is built.

    Attributes:
        entity_name: Short class name (e.g. ``"Post"``).
        action: The action being explained.
        strategy: ``"merged"``, ``"fallback"``, ``"proxy"``, ``"scope"``
            or ``"deny_by_default"``.
        rules: Relevant rules, most recently declared first.
        predicate_sql: The combined filter, empty for scopes.
        joins: The join list, or ``None``.
        authorized_sql: The full compiled statement.
    """

    entity_name: str
    action: str
    strategy: str
    rules: list[RuleExplanation]
    predicate_sql: str
    joins: Any
    authorized_sql: str

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return {
            "entity_name": self.entity_name,
            "action": self.action,
            "strategy": self.strategy,
            "rules": [r.to_dict() for r in self.rules],
            "predicate_sql": self.predicate_sql,
            "joins": self.joins,
            "authorized_sql": self.authorized_sql,
        }

    def __str__(self) -> str:
        """Return a human-readable multi-line explanation."""
        lines: list[str] = []
        lines.append(f"Accessible {self.entity_name} for action={self.action!r}")
        lines.append(f"  Strategy: {self.strategy}")
        lines.append("")
        if not self.rules:
            lines.append("  DENY BY DEFAULT (no relevant rules)")
        else:
            lines.append(f"  Rules ({len(self.rules)}, latest first):")
            for r in self.rules:
                lines.append(f"    - {r.behavior} {r.actions} {r.subjects} [{r.condition_kind}]")
                lines.append(f"      SQL: {r.condition_sql}")
        if self.predicate_sql:
            lines.append(f"  Combined SQL: {self.predicate_sql}")
        if self.joins:
            lines.append(f"  Joins: {self.joins!r}")
        lines.append("")
        lines.append(f"  Authorized SQL: {self.authorized_sql}")
        return "\n".join(lines)
