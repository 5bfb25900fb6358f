"""Polymorphic proxy configuration."""

from sqla_abilities.proxy._registry import (
    PolymorphicProxyConfig,
    ProxyRegistry,
    get_default_proxy_registry,
)

__all__ = ["PolymorphicProxyConfig", "ProxyRegistry", "get_default_proxy_registry"]
