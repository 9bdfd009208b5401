"""
Unit tests for the relational dialect: SELECT parser and evaluator.

Pure in-memory, no database driver.
Run with: pytest tests/test_relational/test_relational.py -v
"""

import pytest

from vaultquery.engine.relational import RelationalEvaluator, parse_select
from vaultquery.engine.relational.statements import (
    Aggregate,
    ColumnRef,
    ConstantSelect,
    TableSelect,
)
from vaultquery.shared.exceptions import (
    AggregateError,
    NoSuchColumn,
    NoSuchTable,
    QuerySyntaxError,
)
from vaultquery.shared.models import Table, TableDataset


@pytest.fixture
def evaluator(books_dataset):
    return RelationalEvaluator(books_dataset)


# ──────────────────────────────────────────────────
# Test 1: parser
# ──────────────────────────────────────────────────


class TestParseSelect:
    def test_star_select(self):
        statement = parse_select("SELECT * FROM books")
        assert isinstance(statement, TableSelect)
        assert statement.table == "books"
        assert statement.items is None

    def test_full_clause_order(self):
        statement = parse_select(
            "SELECT author, COUNT(*) AS n FROM books WHERE rating >= 4 "
            "GROUP BY author ORDER BY n DESC LIMIT 2"
        )
        assert statement.items == (
            ColumnRef(name="author"),
            Aggregate(function="COUNT", argument="*", alias="n"),
        )
        assert statement.where.column == "rating"
        assert statement.where.operator == ">="
        assert statement.where.value == 4
        assert statement.group_by == "author"
        assert statement.order_by.descending is True
        assert statement.limit == 2

    def test_constant_select(self):
        statement = parse_select("SELECT 1 AS test")
        assert isinstance(statement, ConstantSelect)
        assert statement.items[0].value == 1
        assert statement.items[0].output_name == "test"

    def test_unrecognised_where_is_ignored(self):
        statement = parse_select("SELECT * FROM books WHERE rating BETWEEN 1 AND 3 ORDER BY id")
        assert statement.where is None
        assert statement.ignored_where == "rating BETWEEN 1 AND 3"
        assert statement.order_by.column == "id"

    def test_supported_where_is_not_marked_ignored(self):
        statement = parse_select("SELECT * FROM books WHERE rating > 4")
        assert statement.where is not None
        assert statement.ignored_where is None

    @pytest.mark.parametrize("text,token", [
        ("SELECT id, id FROM books", "id"),
        ("SELECT title AS x, author AS x FROM books", "x"),
        ("SELECT COUNT(*), COUNT(*) FROM books", "COUNT(*)"),
        ("SELECT 1 AS a, 2 AS a", "a"),
    ])
    def test_duplicate_output_names_rejected(self, text, token):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_select(text)
        assert exc_info.value.token == token
        assert "duplicate" in str(exc_info.value)


    def test_missing_from_names_first_column(self):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_select("SELECT title")
        assert exc_info.value.token == "title"
        assert "FROM" in str(exc_info.value)

    def test_trailing_garbage_names_token(self):
        with pytest.raises(QuerySyntaxError) as exc_info:
            parse_select("SELECT * FROM books HAVING x")
        assert exc_info.value.token == "HAVING"
        assert str(exc_info.value).startswith("SyntaxError: ")

    @pytest.mark.parametrize("limit", ["-1", "2.5", "ten"])
    def test_limit_must_be_integer(self, limit):
        with pytest.raises(QuerySyntaxError):
            parse_select(f"SELECT * FROM books LIMIT {limit}")

    @pytest.mark.parametrize("text", [
        "SELECT SUM(rating) FROM books",
        "SELECT AVG(*) FROM books",
    ])
    def test_malformed_aggregates(self, text):
        with pytest.raises(AggregateError):
            parse_select(text)


# ──────────────────────────────────────────────────
# Test 2: scenarios A-C
# ──────────────────────────────────────────────────


class TestScenarios:
    def test_filter_and_order_desc(self):
        dataset = TableDataset([
            Table.from_records("books", [
                {"id": 1, "rating": 4.5},
                {"id": 2, "rating": 3.8},
                {"id": 3, "rating": 4.9},
            ]),
        ])
        result = RelationalEvaluator(dataset).execute(
            "SELECT * FROM books WHERE rating > 4.0 ORDER BY rating DESC"
        )
        assert result.columns == ["id", "rating"]
        assert result.rows == [{"id": 3, "rating": 4.9}, {"id": 1, "rating": 4.5}]

    def test_group_by_count(self, evaluator):
        result = evaluator.execute("SELECT author, COUNT(*) FROM books GROUP BY author")
        assert result.columns == ["author", "COUNT(*)"]
        assert result.rows == [
            {"author": "Author A", "COUNT(*)": 2},
            {"author": "Author B", "COUNT(*)": 1},
        ]

    def test_unknown_table(self, evaluator):
        with pytest.raises(NoSuchTable) as exc_info:
            evaluator.execute("SELECT * FROM nonexistent_table")
        assert str(exc_info.value) == "NoSuchTable: no such table: nonexistent_table"


# ──────────────────────────────────────────────────
# Test 3: pipeline stages
# ──────────────────────────────────────────────────


class TestPipeline:
    def test_projection_keeps_requested_order(self, evaluator):
        result = evaluator.execute("SELECT title, id FROM books LIMIT 1")
        assert result.columns == ["title", "id"]
        assert result.rows == [{"title": "First", "id": 1}]

    def test_alias_renames_column(self, evaluator):
        result = evaluator.execute("SELECT title AS name FROM books WHERE id = 2")
        assert result.rows == [{"name": "Second"}]

    def test_text_equality_is_case_sensitive(self, evaluator):
        assert evaluator.execute("SELECT id FROM books WHERE author = 'Author B'").rows == [{"id": 2}]
        assert evaluator.execute("SELECT id FROM books WHERE author = 'author b'").rows == []

    def test_unknown_projection_column(self, evaluator):
        with pytest.raises(NoSuchColumn):
            evaluator.execute("SELECT isbn FROM books")

    def test_unknown_filter_column(self, evaluator):
        with pytest.raises(NoSuchColumn):
            evaluator.execute("SELECT * FROM books WHERE pages > 100")

    def test_permissive_where_returns_all_rows(self, evaluator):
        result = evaluator.execute("SELECT id FROM books WHERE title LIKE 'F%'")
        assert len(result.rows) == 3
        assert len(result.warnings) == 1
        assert "title LIKE" in result.warnings[0]

    def test_order_by_output_name_is_case_insensitive(self, evaluator):
        result = evaluator.execute(
            "SELECT author, COUNT(*) AS n FROM books GROUP BY author ORDER BY Author DESC"
        )
        assert [row["author"] for row in result.rows] == ["Author B", "Author A"]
        by_count = evaluator.execute(
            "SELECT author, COUNT(*) AS n FROM books GROUP BY author ORDER BY N"
        )
        assert [row["n"] for row in by_count.rows] == [1, 2]

    def test_order_by_alias_any_case(self, evaluator):
        result = evaluator.execute("SELECT rating AS Score FROM books ORDER BY score DESC")
        assert [row["Score"] for row in result.rows] == [4.9, 4.5, 3.8]


    def test_avg_with_group(self, evaluator):
        result = evaluator.execute(
            "SELECT author, AVG(rating) FROM books GROUP BY author ORDER BY author"
        )
        assert result.columns == ["author", "AVG(rating)"]
        assert result.rows[0]["author"] == "Author A"
        assert result.rows[0]["AVG(rating)"] == pytest.approx(4.7)

    def test_aggregate_without_group_by(self, evaluator):
        result = evaluator.execute("SELECT COUNT(*) AS total FROM books WHERE rating > 4")
        assert result.rows == [{"total": 2}]

    def test_order_by_aggregate_output(self, evaluator):
        result = evaluator.execute(
            "SELECT author, COUNT(*) AS n FROM books GROUP BY author ORDER BY n ASC"
        )
        assert [row["author"] for row in result.rows] == ["Author B", "Author A"]

    def test_bare_column_outside_group_by(self, evaluator):
        with pytest.raises(AggregateError):
            evaluator.execute("SELECT title, COUNT(*) FROM books GROUP BY author")

    def test_avg_over_text_column(self, evaluator):
        with pytest.raises(AggregateError):
            evaluator.execute("SELECT AVG(title) FROM books")

    def test_null_sorts_first_ascending(self):
        dataset = TableDataset([
            Table.from_records("t", [{"v": 2}, {"v": None}, {"v": 1}]),
        ])
        result = RelationalEvaluator(dataset).execute("SELECT v FROM t ORDER BY v")
        assert [row["v"] for row in result.rows] == [None, 1, 2]

    def test_order_is_stable(self):
        dataset = TableDataset([
            Table.from_records("t", [{"k": 1, "n": "a"}, {"k": 0, "n": "b"}, {"k": 1, "n": "c"}]),
        ])
        result = RelationalEvaluator(dataset).execute("SELECT n FROM t ORDER BY k DESC")
        assert [row["n"] for row in result.rows] == ["a", "c", "b"]

    def test_null_cells_never_match_numeric_filter(self):
        dataset = TableDataset([
            Table.from_records("t", [{"v": None}, {"v": "7"}, {"v": 7}]),
        ])
        result = RelationalEvaluator(dataset).execute("SELECT * FROM t WHERE v >= 7")
        assert result.rows == [{"v": 7}]


# ──────────────────────────────────────────────────
# Test 4: properties
# ──────────────────────────────────────────────────


@pytest.mark.parametrize("limit", [0, 1, 2, 3, 10])
def test_limit_bounds_row_count(evaluator, limit):
    unlimited = evaluator.execute("SELECT * FROM books WHERE rating > 4")
    limited = evaluator.execute(f"SELECT * FROM books WHERE rating > 4 LIMIT {limit}")
    assert len(limited.rows) <= limit
    assert len(limited.rows) <= len(unlimited.rows)
    assert limited.rows == unlimited.rows[:limit]


def test_rerun_is_identical(evaluator):
    text = "SELECT author, COUNT(*) FROM books GROUP BY author ORDER BY author DESC"
    first = evaluator.execute(text)
    second = evaluator.execute(text)
    assert first.columns == second.columns
    assert first.rows == second.rows
