"""
Value and Entity Models

Data classes shared by every engine component: scalar values, table
rows, graph nodes and relationships, the datasets that own them, and
the raw result a backend hands back from ``execute``.
"""

import operator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from vaultquery.shared.exceptions import DatasetError, InvalidQuery, NoSuchTable

# A scalar cell or property value.
Value = int | float | str | bool | datetime | None

# Ordered column name -> value mapping (dicts keep insertion order).
Row = dict[str, Any]


class Dialect(str, Enum):
    """Which query language a statement belongs to."""

    RELATIONAL = "relational"
    GRAPH = "graph"

    @classmethod
    def from_name(cls, name: "str | Dialect") -> "Dialect":
        """Resolve a dialect or one of its code-block aliases."""
        if isinstance(name, Dialect):
            return name
        key = (name or "").strip().lower()
        if key in _DIALECT_ALIASES:
            return _DIALECT_ALIASES[key]
        raise InvalidQuery(f"unknown dialect '{name}'", rule="dialect")


_DIALECT_ALIASES = {
    "relational": Dialect.RELATIONAL,
    "sql": Dialect.RELATIONAL,
    "sqlite": Dialect.RELATIONAL,
    "graph": Dialect.GRAPH,
    "cypher": Dialect.GRAPH,
    "neo4j": Dialect.GRAPH,
}


class QueryType(str, Enum):
    """Advisory classification of a graph statement."""

    READ = "READ"
    WRITE = "WRITE"
    SCHEMA = "SCHEMA"


# ─── Graph entities ─────────────────────────────────────


@dataclass(frozen=True)
class GraphNode:
    """A node with a stable id, a label set and a property map."""

    id: str
    labels: frozenset[str] = frozenset()
    properties: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "labels": sorted(self.labels),
            "properties": {k: serialize_value(v) for k, v in self.properties.items()},
        }


@dataclass(frozen=True)
class GraphRelationship:
    """A directed, typed relationship between two node ids."""

    id: str
    type: str
    start_node_id: str
    end_node_id: str
    properties: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "startNodeId": self.start_node_id,
            "endNodeId": self.end_node_id,
            "properties": {k: serialize_value(v) for k, v in self.properties.items()},
        }


def make_node(node_id: Any, labels: Iterable[str] = (), properties: dict | None = None) -> GraphNode:
    """Build a node, collapsing duplicate labels."""
    return GraphNode(id=str(node_id), labels=frozenset(labels), properties=dict(properties or {}))


def make_relationship(
    rel_id: Any,
    rel_type: str,
    start: Any,
    end: Any,
    properties: dict | None = None,
) -> GraphRelationship:
    return GraphRelationship(
        id=str(rel_id),
        type=rel_type,
        start_node_id=str(start),
        end_node_id=str(end),
        properties=dict(properties or {}),
    )


# ─── Datasets ───────────────────────────────────────────


@dataclass(frozen=True)
class Table:
    """A named, ordered sequence of rows sharing one column set."""

    name: str
    columns: tuple[str, ...]
    rows: tuple[Row, ...]

    @classmethod
    def from_records(cls, name: str, records: Iterable[dict[str, Any]]) -> "Table":
        records = list(records)
        columns: list[str] = []
        for record in records:
            for key in record:
                if key not in columns:
                    columns.append(key)
        rows = tuple({col: record.get(col) for col in columns} for record in records)
        return cls(name=name, columns=tuple(columns), rows=rows)


class TableDataset:
    """Read-only collection of tables, looked up by name."""

    def __init__(self, tables: Iterable[Table]):
        self._tables = {table.name: table for table in tables}

    def table(self, name: str) -> Table:
        if name in self._tables:
            return self._tables[name]
        # SQL identifiers are case-insensitive
        for table_name, table in self._tables.items():
            if table_name.lower() == name.lower():
                return table
        raise NoSuchTable(name)

    @property
    def table_names(self) -> list[str]:
        return sorted(self._tables)


class GraphDataset:
    """Read-only nodes and relationships with id indexes."""

    def __init__(self, nodes: Iterable[GraphNode], relationships: Iterable[GraphRelationship]):
        self._nodes: dict[str, GraphNode] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise DatasetError(f"duplicate node id: {node.id}")
            self._nodes[node.id] = node

        self._relationships: dict[str, GraphRelationship] = {}
        for rel in relationships:
            if rel.id in self._relationships:
                raise DatasetError(f"duplicate relationship id: {rel.id}")
            for endpoint in (rel.start_node_id, rel.end_node_id):
                if endpoint not in self._nodes:
                    raise DatasetError(
                        f"relationship {rel.id} references unknown node {endpoint}"
                    )
            self._relationships[rel.id] = rel

    @property
    def nodes(self) -> list[GraphNode]:
        return list(self._nodes.values())

    @property
    def relationships(self) -> list[GraphRelationship]:
        return list(self._relationships.values())

    def node(self, node_id: str) -> GraphNode | None:
        return self._nodes.get(node_id)

    @property
    def labels(self) -> list[str]:
        return sorted({label for node in self._nodes.values() for label in node.labels})

    @property
    def relationship_types(self) -> list[str]:
        return sorted({rel.type for rel in self._relationships.values()})


@dataclass
class RawResult:
    """Column names plus name -> value rows, as returned by a backend."""

    columns: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]]) -> "RawResult":
        """Infer the column order from the first row."""
        columns = list(rows[0].keys()) if rows else []
        return cls(columns=columns, rows=[dict(row) for row in rows])


# ─── Value helpers ──────────────────────────────────────

_COMPARATORS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "=": operator.eq,
}


def is_numeric(value: Any) -> bool:
    """True for int/float values; booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare(value: Any, op: str, literal: Value) -> bool:
    """Evaluate ``value <op> literal`` for the supported predicate shapes.

    Text literals only support exact, case-sensitive equality.  Numeric
    literals require a numeric value; anything else never matches.
    """
    if isinstance(literal, str):
        return op == "=" and isinstance(value, str) and value == literal
    if not is_numeric(value) or not is_numeric(literal):
        return False
    return _COMPARATORS[op](value, literal)


def sort_key(value: Any) -> tuple:
    """Total ordering across mixed value types: null < numbers < text < timestamps."""
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, int(value))
    if is_numeric(value):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, datetime):
        return (3, value.isoformat())
    return (4, str(value))


def serialize_value(value: Any) -> Any:
    """Convert a cell value into something JSON can carry."""
    if isinstance(value, (GraphNode, GraphRelationship)):
        return value.to_dict()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value
