"""Configuration module for sqla-abilities."""

from __future__ import annotations

from sqla_abilities.config._config import AbilityConfig, configure, get_global_config

__all__ = ["AbilityConfig", "configure", "get_global_config"]
