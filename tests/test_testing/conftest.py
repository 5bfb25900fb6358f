"""Import fixtures from sqla_abilities.testing for test discovery."""

from sqla_abilities.testing._fixtures import ability, isolated_ability_state, proxy_registry

__all__ = ["ability", "isolated_ability_state", "proxy_registry"]
