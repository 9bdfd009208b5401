"""
Fixed seed datasets and the JSON dataset loader.

The built-in backends serve either the seeds below or a dataset file
named by ``seed_tables_path`` or ``seed_graph_path``.  A dataset file
holds tables::

    {"tables": {"books": [{"id": 1, "title": "..."}]}}

or a graph::

    {"nodes": [{"id": "p1", "labels": ["Person"], "properties": {}}],
     "relationships": [{"id": "r1", "type": "KNOWS", "start": "p1", "end": "p2"}]}
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from vaultquery.shared.exceptions import DatasetError
from vaultquery.shared.models import (
    GraphDataset,
    Table,
    TableDataset,
    make_node,
    make_relationship,
)

logger = logging.getLogger("vaultquery.backends.seed")


# ─── Fixed seeds ────────────────────────────────────────

SEED_BOOKS = [
    {"id": 1, "title": "The Silent Archive", "author": "Author A", "rating": 4.5, "year": 2019},
    {"id": 2, "title": "Notes on Graphs", "author": "Author B", "rating": 3.8, "year": 2021},
    {"id": 3, "title": "Indexing the Past", "author": "Author A", "rating": 4.9, "year": 2015},
    {"id": 4, "title": "Quiet Tables", "author": "Author C", "rating": 4.1, "year": 2022},
    {"id": 5, "title": "Margins", "author": "Author B", "rating": None, "year": 2023},
]

SEED_USERS = [
    {"id": 1, "name": "Alice", "email": "alice@example.com", "age": 34},
    {"id": 2, "name": "Bob", "email": "bob@example.com", "age": 27},
    {"id": 3, "name": "Carol", "email": "carol@example.com", "age": 45},
]

SEED_NODES = [
    ("p1", ["Person"], {"name": "Alice", "age": 34}),
    ("p2", ["Person"], {"name": "Bob", "age": 27}),
    ("p3", ["Person"], {"name": "Carol", "age": 45}),
    ("c1", ["Company"], {"name": "Acme", "founded": 1999}),
    ("c2", ["Company"], {"name": "Globex", "founded": 2008}),
    ("l1", ["City"], {"name": "Lisbon"}),
]

SEED_RELATIONSHIPS = [
    ("r1", "WORKS_FOR", "p1", "c1", {"since": 2018}),
    ("r2", "WORKS_FOR", "p2", "c1", {"since": 2021}),
    ("r3", "WORKS_FOR", "p3", "c2", {"since": 2010}),
    ("r4", "KNOWS", "p1", "p2", {}),
    ("r5", "LOCATED_IN", "c1", "l1", {}),
]


def seed_tables() -> TableDataset:
    return TableDataset([
        Table.from_records("books", SEED_BOOKS),
        Table.from_records("users", SEED_USERS),
    ])


def seed_graph() -> GraphDataset:
    return GraphDataset(
        [make_node(node_id, labels, props) for node_id, labels, props in SEED_NODES],
        [
            make_relationship(rel_id, rel_type, start, end, props)
            for rel_id, rel_type, start, end, props in SEED_RELATIONSHIPS
        ],
    )


# ─── Dataset files ──────────────────────────────────────


class NodeRecord(BaseModel):
    id: str | int
    labels: list[str] = Field(default_factory=list)
    properties: dict[str, Any] = Field(default_factory=dict)


class RelationshipRecord(BaseModel):
    id: str | int
    type: str
    start: str | int
    end: str | int
    properties: dict[str, Any] = Field(default_factory=dict)


class DatasetFile(BaseModel):
    tables: dict[str, list[dict[str, Any]]] | None = None
    nodes: list[NodeRecord] | None = None
    relationships: list[RelationshipRecord] = Field(default_factory=list)


def load_dataset(path: str | Path) -> TableDataset | GraphDataset:
    """Load a table or graph dataset from a JSON file.

    Raises:
        DatasetError: If the file is missing, malformed, or holds both
            or neither of the two dataset shapes.
    """
    path = Path(path).expanduser()
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DatasetError(f"cannot read dataset file {path}: {e}") from e

    try:
        data = DatasetFile.model_validate_json(content)
    except ValidationError as e:
        raise DatasetError(f"invalid dataset file {path}: {e.error_count()} validation error(s)") from e

    if data.tables is not None and data.nodes is not None:
        raise DatasetError(f"dataset file {path} holds both tables and nodes")

    if data.tables is not None:
        dataset = TableDataset(
            Table.from_records(name, records) for name, records in data.tables.items()
        )
        logger.info("Loaded %d table(s) from %s", len(data.tables), path)
        return dataset

    if data.nodes is not None:
        dataset = GraphDataset(
            [make_node(n.id, n.labels, n.properties) for n in data.nodes],
            [
                make_relationship(r.id, r.type, r.start, r.end, r.properties)
                for r in data.relationships
            ],
        )
        logger.info(
            "Loaded %d node(s) and %d relationship(s) from %s",
            len(data.nodes), len(data.relationships), path,
        )
        return dataset

    raise DatasetError(f"dataset file {path} holds neither tables nor nodes")
