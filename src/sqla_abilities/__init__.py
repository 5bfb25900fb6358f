"""sqla-abilities — compile can/cannot rules into SQLAlchemy queries.

Turns an ordered list of allow/deny rules with attribute conditions into
one WHERE clause plus the joins it needs, so a collection can be
filtered down to the rows an actor may act on.

Example::

    from sqla_abilities import Ability, accessible_by

    ability = Ability()
    ability.can("read", Post)
    ability.cannot("read", Post, {"is_published": False})
    ability.can("read", Post, {"author_id": current_user.id})

    stmt = accessible_by(Post, ability, "read").order_by(Post.id)
    posts = session.execute(stmt).scalars().all()
"""

from importlib.metadata import PackageNotFoundError, version

from sqla_abilities._mixin import AccessibleMixin, accessible_by
from sqla_abilities.compiler._query import QueryCompiler
from sqla_abilities.config._config import AbilityConfig, configure
from sqla_abilities.exceptions import (
    AbilityError,
    ConfigurationError,
    NoRulesError,
    UnmergeableConditionsError,
    UnsupportedOperatorError,
)
from sqla_abilities.explain._query import explain_accessible
from sqla_abilities.proxy._registry import ProxyRegistry
from sqla_abilities.rules._ability import Ability
from sqla_abilities.rules._conditions import Comparison
from sqla_abilities.rules._rule import ALL, MANAGE, Rule

try:
    __version__ = version("sqla-abilities")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "__version__",
    "ALL",
    "MANAGE",
    "Ability",
    "AbilityConfig",
    "AbilityError",
    "AccessibleMixin",
    "Comparison",
    "ConfigurationError",
    "NoRulesError",
    "ProxyRegistry",
    "QueryCompiler",
    "Rule",
    "UnmergeableConditionsError",
    "UnsupportedOperatorError",
    "accessible_by",
    "configure",
    "explain_accessible",
]
