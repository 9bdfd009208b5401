"""
Unit tests for the graph dialect: pattern parser, evaluator and
neo4j value conversion.

Run with: pytest tests/test_graph/test_graph.py -v
"""

from datetime import datetime

import pytest
from unittest.mock import MagicMock

from vaultquery.engine.graph import GraphEvaluator, classify_query, parse_graph
from vaultquery.engine.graph.statements import (
    ConstantReturn,
    CountAggregate,
    NodeScan,
    ShowSchema,
    Traversal,
)
from vaultquery.shared.exceptions import NoSuchLabel, QuerySyntaxError, UnsupportedPattern
from vaultquery.shared.models import GraphNode, GraphRelationship, QueryType


@pytest.fixture
def evaluator(people_graph):
    return GraphEvaluator(people_graph)


# ──────────────────────────────────────────────────
# Test 1: parser shapes
# ──────────────────────────────────────────────────


class TestParseGraph:
    def test_node_scan(self):
        statement = parse_graph("MATCH (p:Person) WHERE p.age > 30 RETURN p.name AS name LIMIT 5")
        assert isinstance(statement, NodeScan)
        assert statement.node.label == "Person"
        assert statement.where.prop == "age"
        assert statement.items[0].output_name == "name"
        assert statement.limit == 5

    def test_traversal(self):
        statement = parse_graph("MATCH (a:Person)-[r:WORKS_FOR]->(b) RETURN a, r, b")
        assert isinstance(statement, Traversal)
        assert statement.relationship.rel_type == "WORKS_FOR"
        assert statement.end.label is None

    def test_count(self):
        statement = parse_graph("MATCH (p:Person) RETURN COUNT(p)")
        assert isinstance(statement, CountAggregate)
        assert statement.output_name == "COUNT(p)"
        assert statement.limit is None

    def test_count_keeps_limit(self):
        statement = parse_graph("MATCH (p:Person) RETURN COUNT(p) AS n LIMIT 0")
        assert isinstance(statement, CountAggregate)
        assert statement.alias == "n"
        assert statement.limit == 0

    def test_property_item(self):
        statement = parse_graph("MATCH (p:Person) RETURN p.name, p")
        assert statement.items[0].prop == "name"
        assert statement.items[0].output_name == "p.name"
        assert statement.items[1].prop is None

    @pytest.mark.parametrize("text,name", [
        ("MATCH (p:Person) RETURN p, p", "p"),
        ("MATCH (p:Person) RETURN p.name AS x, p.age AS x", "x"),
        ("RETURN 1, 1", "1"),
        ("RETURN 1 AS a, 'b' AS a", "a"),
    ])
    def test_duplicate_return_names_rejected(self, text, name):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_graph(text)
        assert exc_info.value.token == name
        assert "duplicate" in str(exc_info.value)


    def test_show(self):
        assert parse_graph("SHOW LABELS") == ShowSchema(target="LABELS")
        assert parse_graph("show relationship types") == ShowSchema(target="RELATIONSHIP TYPES")

    def test_constant_return(self):
        statement = parse_graph("RETURN 1 AS test")
        assert isinstance(statement, ConstantReturn)
        assert statement.items[0].value == 1

    @pytest.mark.parametrize("text", [
        "MATCH (p:Person:Admin) RETURN p",
        "MATCH (p {name: 'Alice'}) RETURN p",
        "MATCH (a)-[r]->(b) RETURN a",
        "MATCH (a)-[r:KNOWS|WORKS_FOR]->(b) RETURN a",
        "MATCH (a)-[r:KNOWS*1..3]->(b) RETURN a",
        "MATCH (a)<-[r:KNOWS]-(b) RETURN a",
        "MATCH (a)-[r:KNOWS]-(b) RETURN a",
        "MATCH (p) WHERE p.name = 'Alice' RETURN p",
        "MATCH (p) RETURN toUpper(p.name)",
        "MATCH (a)-[r:KNOWS]->(b) RETURN COUNT(a)",
        "MATCH (p) RETURN COUNT(p), p",
        "MATCH (a)-[r:KNOWS]->(b) WHERE r.since > 2000 RETURN a",
        "MATCH (a)-[r:KNOWS]->(b) WHERE since > 2000 RETURN a",
        "MATCH (a)-[r:KNOWS]->(a) RETURN a",
        "MATCH (p) RETURN p ORDER BY p.name",
        "SHOW INDEXES",
        "WITH 1 AS x RETURN x",
        "RETURN p",
    ])
    def test_unsupported_shapes(self, text):
        with pytest.raises(UnsupportedPattern):
            parse_graph(text)

    @pytest.mark.parametrize("text,variable", [
        ("MATCH (p:Person) RETURN q", "q"),
        ("MATCH (p:Person) WHERE q.age > 1 RETURN p", "q"),
        ("MATCH (p:Person) RETURN COUNT(x)", "x"),
    ])
    def test_unbound_variable_is_syntax_error(self, text, variable):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_graph(text)
        assert exc_info.value.token == variable


# ──────────────────────────────────────────────────
# Test 2: evaluator
# ──────────────────────────────────────────────────


class TestGraphEvaluator:
    def test_traversal_binds_all_three(self, people_graph):
        result = GraphEvaluator(people_graph).execute(
            "MATCH (p:Person)-[r:WORKS_FOR]->(c:Company) RETURN p, r, c LIMIT 1"
        )
        assert result.columns == ["p", "r", "c"]
        record = result.rows[0]
        assert record["p"].id == "p1"
        assert record["r"].id == "r1"
        assert record["c"].id == "c1"

    def test_scan_projects_property(self, evaluator):
        result = evaluator.execute("MATCH (p:Person) RETURN p.name")
        assert result.rows == [{"p.name": "Alice"}, {"p.name": "Bob"}]

    def test_scan_without_label(self, evaluator):
        assert len(evaluator.execute("MATCH (n) RETURN n").rows) == 3

    def test_numeric_filter_excludes_missing_property(self, evaluator):
        result = evaluator.execute("MATCH (n) WHERE age >= 30 RETURN n.name")
        assert result.rows == [{"n.name": "Alice"}]

    def test_traversal_filter_on_end_node(self, evaluator):
        result = evaluator.execute(
            "MATCH (a:Person)-[r:KNOWS]->(b:Person) WHERE b.age < 30 RETURN a.name, b.name"
        )
        assert result.rows == [{"a.name": "Alice", "b.name": "Bob"}]

    def test_traversal_endpoint_labels_must_match(self, evaluator):
        result = evaluator.execute("MATCH (a:Company)-[r:WORKS_FOR]->(b) RETURN r")
        assert result.rows == []

    def test_relationship_property_projection(self, evaluator):
        result = evaluator.execute("MATCH (a)-[r:WORKS_FOR]->(b) RETURN r.since AS since")
        assert result.rows == [{"since": 2018}, {"since": 2021}]

    def test_count(self, evaluator):
        result = evaluator.execute("MATCH (p:Person) RETURN COUNT(p) AS people")
        assert result.rows == [{"people": 2}]

    @pytest.mark.parametrize("limit,rows", [(0, []), (1, [{"people": 2}]), (5, [{"people": 2}])])
    def test_count_honours_limit(self, evaluator, limit, rows):
        result = evaluator.execute(f"MATCH (p:Person) RETURN COUNT(p) AS people LIMIT {limit}")
        assert result.columns == ["people"]
        assert result.rows == rows


    def test_show_labels_sorted_distinct(self, evaluator):
        assert evaluator.execute("SHOW LABELS").rows == [{"label": "Company"}, {"label": "Person"}]

    def test_show_relationship_types(self, evaluator):
        result = evaluator.execute("SHOW RELATIONSHIP TYPES")
        assert result.columns == ["relationshipType"]
        assert result.rows == [{"relationshipType": "KNOWS"}, {"relationshipType": "WORKS_FOR"}]

    def test_constant_return_keeps_int(self, evaluator):
        result = evaluator.execute("RETURN 1 AS test")
        assert result.rows == [{"test": 1}]
        assert type(result.rows[0]["test"]) is int

    def test_unknown_label_matches_nothing(self, evaluator):
        assert evaluator.execute("MATCH (x:NonexistentLabel) RETURN x").rows == []
        assert evaluator.execute("MATCH (x:NonexistentLabel) RETURN COUNT(x)").rows == [{"COUNT(x)": 0}]

    @pytest.mark.parametrize("text", [
        "MATCH (x:NonexistentLabel) RETURN x",
        "MATCH (x:NonexistentLabel) RETURN COUNT(x)",
        "MATCH (a:Person)-[r:KNOWS]->(b:NonexistentLabel) RETURN a",
    ])
    def test_strict_labels_raise(self, people_graph, text):
        with pytest.raises(NoSuchLabel):
            GraphEvaluator(people_graph, strict_labels=True).execute(text)

    def test_dataset_untouched(self, people_graph, evaluator):
        before = [(n.id, dict(n.properties)) for n in people_graph.nodes]
        evaluator.execute("MATCH (p:Person)-[r:WORKS_FOR]->(c) RETURN p, r, c")
        assert [(n.id, dict(n.properties)) for n in people_graph.nodes] == before


@pytest.mark.parametrize("text,expected", [
    ("MATCH (n) RETURN n", QueryType.READ),
    ("SHOW LABELS", QueryType.SCHEMA),
    ("CALL db.index.fulltext.queryNodes('x', 'y') YIELD node RETURN node", QueryType.SCHEMA),
    ("MATCH (n) SET n.x = 1", QueryType.WRITE),
])
def test_classify_query(text, expected):
    assert classify_query(text) == expected


# ──────────────────────────────────────────────────
# Test 3: neo4j value conversion (mocked driver types)
# ──────────────────────────────────────────────────


class TestConvert:
    @pytest.fixture
    def driver_types(self, monkeypatch):
        """Stand-in driver Node/Relationship classes patched into convert."""
        import vaultquery.engine.graph.convert as convert

        class FakeNode(dict):
            def __init__(self, element_id, labels, props):
                super().__init__(props)
                self.element_id = element_id
                self.labels = frozenset(labels)

        class FakeRelationship(dict):
            def __init__(self, element_id, rel_type, start, end, props):
                super().__init__(props)
                self.element_id = element_id
                self.type = rel_type
                self.start_node = start
                self.end_node = end

        monkeypatch.setattr(convert, "Node", FakeNode)
        monkeypatch.setattr(convert, "Relationship", FakeRelationship)
        return convert, FakeNode, FakeRelationship

    def test_records_become_entities(self, driver_types):
        convert, FakeNode, FakeRelationship = driver_types
        alice = FakeNode("4:x:1", ["Person"], {"name": "Alice"})
        acme = FakeNode("4:x:2", ["Company"], {"name": "Acme"})
        works = FakeRelationship("5:x:9", "WORKS_FOR", alice, acme, {"since": 2018})

        result = convert.convert_records(["p", "r", "c"], [(alice, works, acme)])

        record = result.rows[0]
        assert isinstance(record["p"], GraphNode)
        assert record["p"].labels == frozenset({"Person"})
        assert isinstance(record["r"], GraphRelationship)
        assert record["r"].start_node_id == "4:x:1"
        assert record["r"].end_node_id == "4:x:2"
        assert record["r"].properties == {"since": 2018}

    def test_nested_values_and_temporals(self, driver_types):
        convert, FakeNode, _ = driver_types
        temporal = MagicMock()
        temporal.to_native.return_value = datetime(2024, 1, 2, 3, 4, 5)
        node = FakeNode("4:x:3", ["Event"], {})

        value = convert.convert_value({"when": temporal, "nodes": [node], "n": 3})

        assert value["when"] == datetime(2024, 1, 2, 3, 4, 5)
        assert isinstance(value["nodes"][0], GraphNode)
        assert value["n"] == 3
