"""sqla-abilities testing utilities — assertions, fixtures and isolation.

Example::

    from sqla_abilities.testing import assert_accessible

    def test_reader_sees_published(session, ability):
        ability.can("read", Post, {"is_published": True})
        assert_accessible(session, Post, ability, "read", expected_ids={1, 3})
"""

from sqla_abilities.testing._assertions import (
    assert_accessible,
    assert_not_accessible,
    assert_query_contains,
)
from sqla_abilities.testing._fixtures import ability, isolated_ability_state, proxy_registry
from sqla_abilities.testing._isolation import isolated_abilities

__all__ = [
    "ability",
    "assert_accessible",
    "assert_not_accessible",
    "assert_query_contains",
    "isolated_abilities",
    "isolated_ability_state",
    "proxy_registry",
]
