"""Tests for rules/_conditions.py — condition variants and comparisons."""

from __future__ import annotations

import pytest
from sqlalchemy import select, text

from sqla_abilities.exceptions import UnsupportedOperatorError
from sqla_abilities.rules._conditions import (
    Comparison,
    Opaque,
    Scope,
    Structured,
    associations_hash,
    resolve_condition,
)
from tests.conftest import Post


def _sql(expr) -> str:
    return str(expr.compile(compile_kwargs={"literal_binds": True}))


class TestResolveCondition:
    """resolve_condition() classifies raw conditions once."""

    def test_none_is_empty_structured(self):
        cond = resolve_condition(None)
        assert isinstance(cond, Structured)
        assert cond.empty
        assert cond.mergeable

    def test_mapping_is_structured(self):
        cond = resolve_condition({"is_published": True})
        assert isinstance(cond, Structured)
        assert cond.raw == {"is_published": True}
        assert not cond.empty

    def test_string_is_opaque_text(self):
        cond = resolve_condition("posts.id > 1")
        assert isinstance(cond, Opaque)
        assert not cond.mergeable
        assert _sql(cond.raw) == "posts.id > 1"

    def test_column_element_is_opaque(self):
        cond = resolve_condition(Post.id > 1)
        assert isinstance(cond, Opaque)
        assert cond.kind == "opaque"

    def test_text_clause_is_opaque(self):
        assert isinstance(resolve_condition(text("1 = 1")), Opaque)

    def test_select_is_scope(self):
        stmt = select(Post).where(Post.is_published == True)  # noqa: E712
        cond = resolve_condition(stmt)
        assert isinstance(cond, Scope)
        assert cond.raw is stmt
        assert not cond.mergeable

    def test_variant_passes_through(self):
        cond = Structured({"id": 1})
        assert resolve_condition(cond) is cond

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError, match="int"):
            resolve_condition(42)


class TestAssociationsHash:
    """associations_hash() keeps only mapping-valued keys, recursively."""

    def test_no_associations(self):
        assert associations_hash({"id": 1, "name": "x"}) == {}

    def test_nested_associations(self):
        conditions = {
            "is_published": True,
            "author": {"organization": {"name": "Acme"}, "id": 1},
            "tags": {"visibility": "public"},
        }
        assert associations_hash(conditions) == {
            "author": {"organization": {}},
            "tags": {},
        }

    def test_opaque_and_scope_have_none(self):
        assert Opaque(text("1 = 1")).associations() == {}
        assert Scope(select(Post)).associations() == {}


class TestComparison:
    """Comparison leaves: validation, in-memory matching and SQL."""

    def test_unknown_operator_raises(self):
        with pytest.raises(UnsupportedOperatorError) as exc_info:
            Comparison("between", (1, 2))
        assert exc_info.value.operator == "between"

    def test_unknown_operator_with_suffix_raises(self):
        with pytest.raises(UnsupportedOperatorError):
            Comparison("near_any", [1])

    def test_quantifier_split(self):
        cmp = Comparison("gt_any", [1, 2])
        assert cmp.base_op == "gt"
        assert cmp.quantifier == "any"

    @pytest.mark.parametrize(
        ("op", "operand", "value", "expected"),
        [
            ("eq", 5, 5, True),
            ("not_eq", 5, 5, False),
            ("in", [1, 2], 2, True),
            ("not_in", [1, 2], 2, False),
            ("lt", 5, 4, True),
            ("lteq", 5, 5, True),
            ("gt", 5, 5, False),
            ("gteq", 5, 5, True),
            ("matches", "dra%", "Draft Post", True),
            ("matches", "dra%", "A Draft", False),
            ("does_not_match", "dra%", "Draft Post", False),
        ],
    )
    def test_matches(self, op, operand, value, expected):
        assert Comparison(op, operand).matches(value) is expected

    def test_matches_any_and_all(self):
        assert Comparison("gt_any", [10, 1]).matches(5)
        assert not Comparison("gt_all", [10, 1]).matches(5)
        assert Comparison("matches_all", ["%ost", "Dra%"]).matches("Draft Post")

    def test_matches_escapes_regex_characters(self):
        assert not Comparison("matches", "a.c").matches("abc")
        assert Comparison("matches", "a.c").matches("a.c")

    def test_matches_non_string_is_false(self):
        assert not Comparison("matches", "1%").matches(10)

    def test_sql_comparison(self):
        sql = _sql(Comparison("gteq", 2).to_expression(Post.id))
        assert sql == "posts.id >= 2"

    def test_sql_in(self):
        sql = _sql(Comparison("not_in", (1, 2)).to_expression(Post.id))
        assert "NOT IN" in sql

    def test_sql_matches_is_case_insensitive_like(self):
        sql = _sql(Comparison("matches", "dra%").to_expression(Post.title)).lower()
        assert "like" in sql

    def test_sql_any_is_or(self):
        sql = _sql(Comparison("eq_any", [1, 2]).to_expression(Post.id))
        assert "posts.id = 1 OR posts.id = 2" in sql
