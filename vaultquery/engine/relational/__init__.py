"""Relational dialect — SELECT parsing and evaluation."""

from vaultquery.engine.relational.evaluator import RelationalEvaluator
from vaultquery.engine.relational.parser import parse_select

__all__ = [
    "RelationalEvaluator",
    "parse_select",
]
