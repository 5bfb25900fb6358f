"""Explain/dry-run mode — structured insight into compiled queries."""

from sqla_abilities.explain._models import QueryExplanation, RuleExplanation
from sqla_abilities.explain._query import explain_accessible

__all__ = ["QueryExplanation", "RuleExplanation", "explain_accessible"]
