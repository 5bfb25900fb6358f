"""ProxyRegistry — entities joined polymorphically to their subjects.

A polymorphic proxy is an entity whose rows point at rows of other
entities through a ``<field>_type`` / ``<field>_id`` column pair, such
as an activity feed or a version history table. Querying a proxy
left-joins every subject table named by the relevant rules.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "PolymorphicProxyConfig",
    "ProxyRegistry",
    "get_default_proxy_registry",
]


@dataclass(frozen=True, slots=True)
class PolymorphicProxyConfig:
    """Proxy settings for one entity type.

    Attributes:
        entity: The proxy entity.
        field: Name of the polymorphic association, e.g. ``"trackable"``.
    """

    entity: type
    field: str

    @property
    def type_column(self) -> str:
        return f"{self.field}_type"

    @property
    def id_column(self) -> str:
        return f"{self.field}_id"


class ProxyRegistry:
    """Maps entity types to their polymorphic proxy configuration.

    Configure during startup; read-only afterwards.

    Example::

        proxies = ProxyRegistry()
        proxies.configure(Activity, "trackable")
        assert proxies.is_polymorphic_proxy(Activity)
    """

    def __init__(self) -> None:
        self._configs: dict[type, PolymorphicProxyConfig] = {}

    def configure(self, entity: type, field: str) -> PolymorphicProxyConfig:
        """Mark *entity* as a proxy on the polymorphic association *field*.

        Configuring the same field twice is a no-op.

        Raises:
            ValueError: *field* is empty or *entity* is already configured
                with a different field.
        """
        if not field:
            raise ValueError("field must be a non-empty association name")
        existing = self._configs.get(entity)
        if existing is not None:
            if existing.field != field:
                raise ValueError(
                    f"{entity.__name__} is already a polymorphic proxy on {existing.field!r}"
                )
            return existing
        config = PolymorphicProxyConfig(entity=entity, field=field)
        self._configs[entity] = config
        return config

    def lookup(self, entity: type) -> PolymorphicProxyConfig | None:
        return self._configs.get(entity)

    def is_polymorphic_proxy(self, entity: type) -> bool:
        return entity in self._configs

    def proxy_field(self, entity: type) -> str | None:
        config = self._configs.get(entity)
        return config.field if config is not None else None

    def clear(self) -> None:
        """Forget every proxy. Primarily for test teardown."""
        self._configs.clear()


# Module-level default registry (singleton).
_default_proxy_registry = ProxyRegistry()


def get_default_proxy_registry() -> ProxyRegistry:
    """Return the global default proxy registry."""
    return _default_proxy_registry
