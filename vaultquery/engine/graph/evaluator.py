"""
Graph Evaluator — runs a parsed graph statement over a GraphDataset.

Records are ordered dicts keyed by return item name; node and
relationship values are the dataset's own GraphNode/GraphRelationship
objects so the result normalizer can collect them by type.
"""

import logging
import re
from typing import Any

from vaultquery.engine.graph.parser import parse_graph
from vaultquery.engine.graph.statements import (
    ConstantReturn,
    CountAggregate,
    GraphStatement,
    NodePattern,
    NodeScan,
    PropertyFilter,
    ReturnItem,
    ShowSchema,
    Traversal,
)
from vaultquery.shared.exceptions import NoSuchLabel
from vaultquery.shared.models import (
    GraphDataset,
    GraphNode,
    GraphRelationship,
    QueryType,
    RawResult,
    compare,
)

logger = logging.getLogger("vaultquery.graph.evaluator")

_SCHEMA_PATTERN = re.compile(r"\b(SHOW|INDEX|CONSTRAINT)\b", re.IGNORECASE)
_WRITE_PATTERN = re.compile(r"\b(CREATE|MERGE|DELETE|SET|REMOVE)\b", re.IGNORECASE)


def classify_query(text: str) -> QueryType:
    """Advisory query type for reporting; never used for dispatch."""
    if _SCHEMA_PATTERN.search(text):
        return QueryType.SCHEMA
    if _WRITE_PATTERN.search(text):
        return QueryType.WRITE
    return QueryType.READ


class GraphEvaluator:
    """Evaluate graph statements against one read-only GraphDataset.

    With ``strict_labels`` a MATCH naming a label the dataset does not
    contain raises NoSuchLabel; otherwise it simply matches nothing.
    """

    def __init__(self, dataset: GraphDataset, strict_labels: bool = False):
        self._dataset = dataset
        self._strict_labels = strict_labels

    def execute(self, text: str) -> RawResult:
        return self.evaluate(parse_graph(text))

    def evaluate(self, statement: GraphStatement) -> RawResult:
        if isinstance(statement, ConstantReturn):
            record = {item.output_name: item.value for item in statement.items}
            return RawResult(columns=list(record), rows=[record])
        if isinstance(statement, ShowSchema):
            return self._show(statement)
        if isinstance(statement, CountAggregate):
            return self._count(statement)
        if isinstance(statement, NodeScan):
            return self._scan(statement)
        if isinstance(statement, Traversal):
            return self._traverse(statement)
        raise TypeError(f"unhandled graph statement {type(statement).__name__}")

    # ─── Shapes ────────────────────────────────────────────

    def _show(self, statement: ShowSchema) -> RawResult:
        if statement.target == "LABELS":
            return RawResult(
                columns=["label"],
                rows=[{"label": label} for label in self._dataset.labels],
            )
        return RawResult(
            columns=["relationshipType"],
            rows=[{"relationshipType": t} for t in self._dataset.relationship_types],
        )

    def _count(self, statement: CountAggregate) -> RawResult:
        count = sum(1 for _ in self._match_nodes(statement.node, statement.where))
        name = statement.output_name
        rows = [{name: count}]
        if statement.limit is not None:
            rows = rows[: statement.limit]
        return RawResult(columns=[name], rows=rows)

    def _scan(self, statement: NodeScan) -> RawResult:
        records = []
        for node in self._match_nodes(statement.node, statement.where):
            bindings = {statement.node.variable: node}
            records.append(_project(statement.items, bindings))
        return _result(statement.items, records, statement.limit)

    def _traverse(self, statement: Traversal) -> RawResult:
        self._check_label(statement.start.label)
        self._check_label(statement.end.label)

        records = []
        for rel in self._dataset.relationships:
            if rel.type != statement.relationship.rel_type:
                continue
            start = self._dataset.node(rel.start_node_id)
            end = self._dataset.node(rel.end_node_id)
            if start is None or end is None:
                continue
            if not (_has_label(start, statement.start) and _has_label(end, statement.end)):
                continue

            bindings: dict[str | None, Any] = {
                statement.start.variable: start,
                statement.end.variable: end,
                statement.relationship.variable: rel,
            }
            if statement.where is not None and not _passes(bindings[statement.where.variable], statement.where):
                continue
            records.append(_project(statement.items, bindings))
        return _result(statement.items, records, statement.limit)

    # ─── Helpers ───────────────────────────────────────────

    def _match_nodes(self, pattern: NodePattern, where: PropertyFilter | None):
        self._check_label(pattern.label)
        for node in self._dataset.nodes:
            if not _has_label(node, pattern):
                continue
            if where is not None and not _passes(node, where):
                continue
            yield node

    def _check_label(self, label: str | None) -> None:
        if self._strict_labels and label is not None and label not in self._dataset.labels:
            raise NoSuchLabel(label)


def _has_label(node: GraphNode, pattern: NodePattern) -> bool:
    return pattern.label is None or pattern.label in node.labels


def _passes(node: GraphNode, where: PropertyFilter) -> bool:
    if where.prop not in node.properties:
        return False
    return compare(node.properties[where.prop], where.operator, where.value)


def _project(items: tuple[ReturnItem, ...], bindings: dict) -> dict[str, Any]:
    record = {}
    for item in items:
        value = bindings[item.variable]
        if item.prop is not None:
            value = _property(value, item.prop)
        record[item.output_name] = value
    return record


def _property(entity: GraphNode | GraphRelationship, name: str) -> Any:
    return entity.properties.get(name)


def _result(items: tuple[ReturnItem, ...], records: list[dict], limit: int | None) -> RawResult:
    if limit is not None:
        records = records[:limit]
    return RawResult(columns=[item.output_name for item in items], rows=records)
