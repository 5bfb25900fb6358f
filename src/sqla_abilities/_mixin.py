"""Entity extension point — ``accessible_by`` on mapped classes."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select

from sqla_abilities.compiler._schema import SchemaReflector
from sqla_abilities.config._config import get_global_config
from sqla_abilities.proxy._registry import ProxyRegistry, get_default_proxy_registry
from sqla_abilities.rules._ability import Ability

__all__ = ["AccessibleMixin", "accessible_by"]


def accessible_by(
    entity: type,
    ability: Ability,
    action: str | None = None,
    *,
    schema: SchemaReflector | None = None,
    proxies: ProxyRegistry | None = None,
) -> Select[Any]:
    """Return a ``Select`` of the *entity* rows *ability* may *action*.

    The statement is lazy and composable: add ordering, paging or further
    filters before executing it. An actor with no relevant rules gets an
    empty result.

    Args:
        entity: The mapped class to query.
        ability: The actor's rules.
        action: The action to check. Defaults to the configured
            ``default_action`` (``"index"``).
        schema: Optional schema reflector. Defaults to mapper inspection.
        proxies: Optional proxy registry. Defaults to the global registry.

    Example::

        stmt = accessible_by(Post, current_ability).order_by(Post.id)
        posts = session.execute(stmt).scalars().all()
    """
    if action is None:
        action = get_global_config().default_action
    compiler = ability.query(action, entity, schema=schema, proxies=proxies)
    return compiler.database_records()


class AccessibleMixin:
    """Mixin adding ``accessible_by`` and proxy setup to mapped classes.

    Example::

        class Post(AccessibleMixin, Base):
            __tablename__ = "posts"
            ...

        class Activity(AccessibleMixin, Base):
            __tablename__ = "activities"
            ...

        Activity.configure_polymorphic_proxy("trackable")
        stmt = Post.accessible_by(ability, "update")
    """

    @classmethod
    def accessible_by(cls, ability: Ability, action: str | None = None) -> Select[Any]:
        return accessible_by(cls, ability, action)

    @classmethod
    def configure_polymorphic_proxy(cls, field: str) -> None:
        """Mark this entity as a proxy on the polymorphic association *field*."""
        get_default_proxy_registry().configure(cls, field)

    @classmethod
    def is_polymorphic_proxy(cls) -> bool:
        return get_default_proxy_registry().is_polymorphic_proxy(cls)

    @classmethod
    def proxy_field(cls) -> str | None:
        return get_default_proxy_registry().proxy_field(cls)
