"""Shared fixtures: small datasets used across test areas."""

import pytest

from vaultquery.shared.models import (
    GraphDataset,
    Table,
    TableDataset,
    make_node,
    make_relationship,
)


@pytest.fixture
def books_dataset() -> TableDataset:
    return TableDataset([
        Table.from_records("books", [
            {"id": 1, "title": "First", "author": "Author A", "rating": 4.5},
            {"id": 2, "title": "Second", "author": "Author B", "rating": 3.8},
            {"id": 3, "title": "Third", "author": "Author A", "rating": 4.9},
        ]),
    ])


@pytest.fixture
def people_graph() -> GraphDataset:
    return GraphDataset(
        [
            make_node("p1", ["Person"], {"name": "Alice", "age": 34}),
            make_node("p2", ["Person"], {"name": "Bob", "age": 27}),
            make_node("c1", ["Company"], {"name": "Acme"}),
        ],
        [
            make_relationship("r1", "WORKS_FOR", "p1", "c1", {"since": 2018}),
            make_relationship("r2", "WORKS_FOR", "p2", "c1", {"since": 2021}),
            make_relationship("r3", "KNOWS", "p1", "p2"),
        ],
    )
