"""
Relational Evaluator — runs a parsed SELECT over a TableDataset.

Pipeline order is fixed: table resolution, filter, group/aggregate,
projection, order, limit.  Every stage except table resolution is
optional.
"""

import logging
from typing import Any

from vaultquery.engine.relational.parser import parse_select
from vaultquery.engine.relational.statements import (
    Aggregate,
    ColumnRef,
    ConstantSelect,
    Literal,
    SelectStatement,
    TableSelect,
)
from vaultquery.shared.exceptions import AggregateError, NoSuchColumn
from vaultquery.shared.models import (
    RawResult,
    Row,
    Table,
    TableDataset,
    compare,
    is_numeric,
    sort_key,
)

logger = logging.getLogger("vaultquery.relational.evaluator")


class RelationalEvaluator:
    """Evaluate SELECT statements against one read-only TableDataset."""

    def __init__(self, dataset: TableDataset):
        self._dataset = dataset

    def execute(self, text: str) -> RawResult:
        """Parse and evaluate statement text."""
        return self.evaluate(parse_select(text))

    def evaluate(self, statement: SelectStatement) -> RawResult:
        if isinstance(statement, ConstantSelect):
            row = {item.output_name: item.value for item in statement.items}
            return RawResult(columns=list(row), rows=[row])
        return self._evaluate_table_select(statement)

    # ─── Pipeline ──────────────────────────────────────────

    def _evaluate_table_select(self, statement: TableSelect) -> RawResult:
        table = self._dataset.table(statement.table)
        rows = list(table.rows)

        if statement.where is not None:
            predicate = statement.where
            _require_column(table, predicate.column)
            rows = [
                row for row in rows
                if compare(row[_column(table, predicate.column)], predicate.operator, predicate.value)
            ]

        if statement.group_by is not None or statement.aggregates:
            columns, pairs = self._group(table, statement, rows)
        else:
            columns, pairs = self._project(table, statement, rows)

        if statement.order_by is not None:
            pairs = self._order(table, statement, pairs)

        output = [out for _, out in pairs]
        if statement.limit is not None:
            output = output[: statement.limit]

        warnings = []
        if statement.ignored_where is not None:
            warnings.append(f"WHERE clause not supported and ignored: {statement.ignored_where}")
        return RawResult(columns=columns, rows=output, warnings=warnings)

    def _project(
        self, table: Table, statement: TableSelect, rows: list[Row]
    ) -> tuple[list[str], list[tuple[Row, Row]]]:
        if statement.items is None:
            columns = list(table.columns)
            return columns, [(row, dict(row)) for row in rows]

        for item in statement.items:
            if isinstance(item, ColumnRef):
                _require_column(table, item.name)

        columns = [item.output_name for item in statement.items]
        pairs = []
        for row in rows:
            out = {}
            for item in statement.items:
                if isinstance(item, Literal):
                    out[item.output_name] = item.value
                else:
                    out[item.output_name] = row[_column(table, item.name)]
            pairs.append((row, out))
        return columns, pairs

    def _group(
        self, table: Table, statement: TableSelect, rows: list[Row]
    ) -> tuple[list[str], list[tuple[Row, Row]]]:
        if statement.items is None:
            raise AggregateError("SELECT * cannot be combined with GROUP BY")

        key_column = None
        if statement.group_by is not None:
            _require_column(table, statement.group_by)
            key_column = _column(table, statement.group_by)

        for item in statement.items:
            if isinstance(item, ColumnRef):
                _require_column(table, item.name)
                if key_column is None or _column(table, item.name) != key_column:
                    raise AggregateError(
                        f"column {item.name} must appear in GROUP BY or inside an aggregate"
                    )
            elif isinstance(item, Aggregate) and item.argument != "*":
                _require_column(table, item.argument)

        groups: dict[Any, list[Row]] = {}
        if key_column is None:
            groups[None] = rows
        else:
            for row in rows:
                groups.setdefault(_group_key(row[key_column]), []).append(row)

        columns = [item.output_name for item in statement.items]
        pairs = []
        for members in groups.values():
            out = {}
            for item in statement.items:
                if isinstance(item, ColumnRef):
                    out[item.output_name] = members[0][key_column]
                elif isinstance(item, Literal):
                    out[item.output_name] = item.value
                else:
                    out[item.output_name] = _aggregate(table, item, members)
            pairs.append(({}, out))
        return columns, pairs

    def _order(
        self, table: Table, statement: TableSelect, pairs: list[tuple[Row, Row]]
    ) -> list[tuple[Row, Row]]:
        order = statement.order_by
        output_name = _find_name(_output_names(table, statement), order.column)

        def lookup(pair: tuple[Row, Row]) -> Any:
            source, out = pair
            if output_name is not None:
                return out[output_name]
            return source[_column(table, order.column)]

        grouped = statement.group_by is not None or bool(statement.aggregates)
        if output_name is None:
            # grouped rows only carry their output columns
            if grouped or _find_column(table, order.column) is None:
                raise NoSuchColumn(order.column)

        return sorted(pairs, key=lambda pair: sort_key(lookup(pair)), reverse=order.descending)


# ─── Helpers ───────────────────────────────────────────────


def _find_name(names: list[str] | tuple[str, ...], name: str) -> str | None:
    """Exact match first, then a case-insensitive one."""
    if name in names:
        return name
    for candidate in names:
        if candidate.lower() == name.lower():
            return candidate
    return None


def _find_column(table: Table, name: str) -> str | None:
    return _find_name(table.columns, name)


def _require_column(table: Table, name: str) -> None:
    if _find_column(table, name) is None:
        raise NoSuchColumn(name)


def _column(table: Table, name: str) -> str:
    return _find_column(table, name) or name


def _output_names(table: Table, statement: TableSelect) -> list[str]:
    if statement.items is None:
        return list(table.columns)
    return [item.output_name for item in statement.items]


def _group_key(value: Any) -> Any:
    # True == 1 in Python; keep booleans and numbers in separate groups
    return (type(value) is bool, value)


def _aggregate(table: Table, item: Aggregate, rows: list[Row]) -> Any:
    if item.function == "COUNT":
        if item.argument == "*":
            return len(rows)
        column = _column(table, item.argument)
        return sum(1 for row in rows if row[column] is not None)

    column = _column(table, item.argument)
    values = [row[column] for row in rows if row[column] is not None]
    for value in values:
        if not is_numeric(value):
            raise AggregateError(f"AVG({item.argument}) needs numeric values, got {value!r}")
    if not values:
        return None
    return sum(values) / len(values)
