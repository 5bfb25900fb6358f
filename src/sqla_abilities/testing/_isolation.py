"""Isolation utilities for global sqla-abilities state in tests."""

from __future__ import annotations

import contextlib
from collections.abc import Generator

from sqla_abilities.config._config import (  # pyright: ignore[reportPrivateUsage]
    AbilityConfig,
    _reset_global_config,
    _set_global_config,
    get_global_config,
)
from sqla_abilities.proxy._registry import ProxyRegistry, get_default_proxy_registry

__all__ = ["isolated_abilities"]


@contextlib.contextmanager
def isolated_abilities(
    *,
    config: AbilityConfig | None = None,
) -> Generator[tuple[AbilityConfig, ProxyRegistry], None, None]:
    """Context manager that isolates the global config and proxy registry.

    Saves both, resets them (or applies *config*), yields the effective
    config and the cleared default proxy registry, and restores the
    original state on exit, even if the body raises.

    Example::

        with isolated_abilities(config=AbilityConfig(on_missing_rules="raise")) as (cfg, proxies):
            proxies.configure(Activity, "trackable")
        # Original state is restored
    """
    saved_config = get_global_config()
    proxies = get_default_proxy_registry()
    saved_proxies = dict(proxies._configs)  # pyright: ignore[reportPrivateUsage]

    try:
        _reset_global_config()
        proxies.clear()
        if config is not None:
            _set_global_config(config)
        yield get_global_config(), proxies
    finally:
        _set_global_config(saved_config)
        proxies.clear()
        for entity, proxy in saved_proxies.items():
            proxies.configure(entity, proxy.field)
