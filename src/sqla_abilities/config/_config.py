"""Layered configuration for sqla-abilities."""

from __future__ import annotations

from dataclasses import dataclass

from sqla_abilities._types import OnFallbackQuery, OnMissingRules

__all__ = [
    "AbilityConfig",
    "configure",
    "get_global_config",
    "_reset_global_config",
    "_set_global_config",
]

_VALID_MISSING_RULES: set[str] = {"deny", "raise"}
_VALID_FALLBACK_QUERY: set[str] = {"ignore", "warn", "raise"}


@dataclass(frozen=True, slots=True)
class AbilityConfig:
    """Layered configuration with merge semantics (global -> call).

    Attributes:
        default_action: Action used by ``accessible_by`` when none is given.
        on_missing_rules: Behavior when no rule is relevant.
            ``"deny"`` filters every row out (WHERE false).
            ``"raise"`` raises ``NoRulesError``.
        log_query_building: Log every compiled query on the
            ``sqla_abilities`` logger.
        on_fallback_query: Behavior when non-mergeable rules force the
            disjunctive fallback query, which ignores deny precedence.

    Example::

        config = AbilityConfig(on_missing_rules="raise")
        merged = config.merge(default_action="read")
    """

    default_action: str = "index"
    on_missing_rules: OnMissingRules = "deny"
    log_query_building: bool = False
    on_fallback_query: OnFallbackQuery = "warn"

    def __post_init__(self) -> None:
        if not self.default_action:
            raise ValueError("default_action must be a non-empty string")
        if self.on_missing_rules not in _VALID_MISSING_RULES:
            raise ValueError(
                f"on_missing_rules must be one of {_VALID_MISSING_RULES!r}, "
                f"got {self.on_missing_rules!r}"
            )
        if self.on_fallback_query not in _VALID_FALLBACK_QUERY:
            raise ValueError(
                f"on_fallback_query must be one of {_VALID_FALLBACK_QUERY!r}, "
                f"got {self.on_fallback_query!r}"
            )

    def merge(
        self,
        *,
        default_action: str | None = None,
        on_missing_rules: OnMissingRules | None = None,
        log_query_building: bool | None = None,
        on_fallback_query: OnFallbackQuery | None = None,
    ) -> AbilityConfig:
        """Return a new config with non-None overrides applied.

        Example::

            base = AbilityConfig()
            strict = base.merge(on_missing_rules="raise", on_fallback_query="raise")
        """
        return AbilityConfig(
            default_action=(default_action if default_action is not None else self.default_action),
            on_missing_rules=(
                on_missing_rules if on_missing_rules is not None else self.on_missing_rules
            ),
            log_query_building=(
                log_query_building if log_query_building is not None else self.log_query_building
            ),
            on_fallback_query=(
                on_fallback_query if on_fallback_query is not None else self.on_fallback_query
            ),
        )


# ---------------------------------------------------------------------------
# Global configuration singleton
# ---------------------------------------------------------------------------

_global_config = AbilityConfig()


def get_global_config() -> AbilityConfig:
    """Return the current global configuration."""
    return _global_config


def configure(
    *,
    default_action: str | None = None,
    on_missing_rules: OnMissingRules | None = None,
    log_query_building: bool | None = None,
    on_fallback_query: OnFallbackQuery | None = None,
) -> AbilityConfig:
    """Update the global configuration by merging overrides.

    Only non-None values are applied. Returns the new global config.

    Example::

        configure(default_action="read", log_query_building=True)
    """
    global _global_config
    _global_config = _global_config.merge(
        default_action=default_action,
        on_missing_rules=on_missing_rules,
        log_query_building=log_query_building,
        on_fallback_query=on_fallback_query,
    )
    return _global_config


def _set_global_config(cfg: AbilityConfig) -> None:
    """Replace global config with an exact snapshot. For testing only."""
    global _global_config
    _global_config = cfg


def _reset_global_config() -> None:
    """Reset global config to defaults. For testing only."""
    global _global_config
    _global_config = AbilityConfig()
