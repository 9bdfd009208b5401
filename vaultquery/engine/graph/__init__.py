"""Graph dialect — MATCH/RETURN/SHOW parsing and evaluation."""

from vaultquery.engine.graph.evaluator import GraphEvaluator, classify_query
from vaultquery.engine.graph.parser import parse_graph

__all__ = [
    "GraphEvaluator",
    "classify_query",
    "parse_graph",
]
