"""Rule dataclass — one ``can`` / ``cannot`` statement."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqla_abilities._types import JoinTree
from sqla_abilities.rules._conditions import Condition, resolve_condition

__all__ = ["ALL", "MANAGE", "Rule"]

# Subject matching every entity type.
ALL = "all"

# Action matching every action.
MANAGE = "manage"


def _as_tuple(value: Any) -> tuple[Any, ...]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(value)
    return (value,)


@dataclass(frozen=True, slots=True, eq=False)
class Rule:
    """A single authorization statement.

    Attributes:
        behavior: ``True`` for ``can`` (allow), ``False`` for ``cannot`` (deny).
        actions: Actions the rule covers.
        subjects: Entity types the rule covers; the first one is primary.
        conditions: The resolved condition variant.
    """

    behavior: bool
    actions: tuple[str, ...]
    subjects: tuple[Any, ...]
    conditions: Condition

    @classmethod
    def build(
        cls,
        behavior: bool,
        action: str | Iterable[str],
        subject: Any,
        conditions: Any = None,
    ) -> Rule:
        """Build a rule from loosely typed ``can``/``cannot`` arguments."""
        return cls(
            behavior=behavior,
            actions=_as_tuple(action),
            subjects=_as_tuple(subject),
            conditions=resolve_condition(conditions),
        )

    @property
    def base_behavior(self) -> bool:
        return self.behavior

    @property
    def primary_subject(self) -> Any:
        return self.subjects[0]

    @property
    def mergeable(self) -> bool:
        return self.conditions.mergeable

    @property
    def raw_conditions(self) -> Any:
        return self.conditions.raw

    def associations_hash(self) -> JoinTree:
        return self.conditions.associations()

    def matches_action(self, expanded_actions: Iterable[str], action: str) -> bool:
        return MANAGE in self.actions or action in expanded_actions

    def matches_subject(self, subject: Any) -> bool:
        for candidate in self.subjects:
            if candidate == ALL or candidate is subject:
                return True
            if isinstance(candidate, type) and isinstance(subject, type):
                if issubclass(subject, candidate):
                    return True
        return False

    def __repr__(self) -> str:
        verb = "can" if self.behavior else "cannot"
        subjects = ", ".join(getattr(s, "__name__", str(s)) for s in self.subjects)
        return f"<Rule {verb} {list(self.actions)} [{subjects}] {self.conditions.kind}>"
