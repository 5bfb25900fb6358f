"""Exception hierarchy for sqla-abilities."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqla_abilities.rules._rule import Rule

__all__ = [
    "AbilityError",
    "ConfigurationError",
    "NoRulesError",
    "UnmergeableConditionsError",
    "UnsupportedOperatorError",
]


def _subject_name(subject: object) -> str:
    return getattr(subject, "__name__", str(subject))


class AbilityError(Exception):
    """Base exception for all sqla-abilities errors."""


class ConfigurationError(AbilityError):
    """A rule refers to an association or column the schema does not know.

    Raised while tableizing conditions, before any SQL is executed.
    Retrying cannot succeed without changing the rule or the model.

    Attributes:
        entity: Name of the entity the lookup was made on.
        association: The association or column name that failed to resolve.

    Example::

        ability.can("read", Comment, {"psot": {"author_id": 1}})
        Comment.accessible_by(ability, "read")  # raises ConfigurationError
    """

    def __init__(
        self,
        *,
        entity: str,
        association: str,
        message: str | None = None,
    ) -> None:
        self.entity = entity
        self.association = association
        if message is None:
            message = f"{entity} has no association or column named {association!r}"
        super().__init__(message)


class UnmergeableConditionsError(AbilityError):
    """The relevant rules cannot be combined into one filter expression.

    Raised when a pre-built ``Select`` scope is combined with any other
    rule, or when a polymorphic proxy query meets an opaque SQL fragment.

    Attributes:
        action: The action being queried.
        subject: Name of the entity being queried.
        rules: The rules carrying the conflicting conditions.
    """

    def __init__(
        self,
        *,
        action: str,
        subject: object,
        rules: Sequence[Rule] = (),
        message: str | None = None,
    ) -> None:
        self.action = action
        self.subject = _subject_name(subject)
        self.rules = list(rules)
        if message is None:
            message = (
                f"Unable to merge the conditions of {len(self.rules)} rule(s) for "
                f"{action} {self.subject} ability. Use a condition mapping instead."
            )
        super().__init__(message)


class UnsupportedOperatorError(AbilityError):
    """A comparison condition uses an operator that is not supported.

    Attributes:
        operator: The rejected operator name.
    """

    def __init__(self, operator: str) -> None:
        self.operator = operator
        super().__init__(f"The {operator!r} comparison condition is not supported")


class NoRulesError(AbilityError):
    """No rule is relevant for (action, subject).

    Raised when configured to error on missing rules instead of the
    default deny-by-default (WHERE false) behavior.

    Example::

        configure(on_missing_rules="raise")
        Post.accessible_by(Ability(), "read")  # raises NoRulesError
    """

    def __init__(self, *, action: str, subject: object) -> None:
        self.action = action
        self.subject = _subject_name(subject)
        super().__init__(f"No rule defined for ({self.subject}, {action!r})")
