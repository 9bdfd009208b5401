"""
Conversion of neo4j driver values into the engine's value model.

Driver nodes and relationships become GraphNode / GraphRelationship
(keyed by element id); paths expand to a list of their entities;
neo4j temporal values become ``datetime`` where they have a native
equivalent.
"""

from typing import Any

from neo4j.graph import Node, Path, Relationship

from vaultquery.shared.models import GraphNode, GraphRelationship, RawResult


def convert_value(value: Any) -> Any:
    """Recursively convert one driver value."""
    if isinstance(value, Node):
        return GraphNode(
            id=value.element_id,
            labels=frozenset(value.labels),
            properties={k: convert_value(v) for k, v in value.items()},
        )
    if isinstance(value, Relationship):
        return GraphRelationship(
            id=value.element_id,
            type=value.type,
            start_node_id=value.start_node.element_id,
            end_node_id=value.end_node.element_id,
            properties={k: convert_value(v) for k, v in value.items()},
        )
    if isinstance(value, Path):
        entities: list[Any] = [convert_value(n) for n in value.nodes]
        entities.extend(convert_value(r) for r in value.relationships)
        return entities
    if isinstance(value, list):
        return [convert_value(v) for v in value]
    if isinstance(value, dict):
        return {k: convert_value(v) for k, v in value.items()}
    if hasattr(value, "to_native"):
        return value.to_native()
    return value


def convert_records(keys: list[str], rows: list[tuple]) -> RawResult:
    """Build a RawResult from driver record keys and value tuples."""
    return RawResult(
        columns=list(keys),
        rows=[{key: convert_value(v) for key, v in zip(keys, values)} for values in rows],
    )
