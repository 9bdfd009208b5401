"""
Result Normalizer — the single seam where backend output or failure
becomes a QueryResult envelope.

Both dialects return the same envelope: success flag, execution id,
timing, the caller's opaque context, and exactly one payload (tabular
for relational statements, graph for graph statements).  Every
exception raised while running a statement is caught here and turned
into a failure envelope with zeroed counts.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from vaultquery.engine.graph import classify_query
from vaultquery.shared.exceptions import (
    EngineError,
    ExecutionError,
    InvalidQuery,
    NoSuchColumn,
    NoSuchTable,
    QuerySyntaxError,
)
from vaultquery.shared.logging import generate_execution_id
from vaultquery.shared.models import (
    Dialect,
    GraphNode,
    GraphRelationship,
    QueryType,
    RawResult,
    Row,
    serialize_value,
)

logger = logging.getLogger("vaultquery.results")


# ─── Payloads ───────────────────────────────────────────


@dataclass
class TabularPayload:
    columns: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    row_count: int = 0
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "tabular",
            "columns": list(self.columns),
            "rows": [{k: serialize_value(v) for k, v in row.items()} for row in self.rows],
            "rowCount": self.row_count,
            "truncated": self.truncated,
        }


@dataclass
class GraphData:
    nodes: list[GraphNode] = field(default_factory=list)
    relationships: list[GraphRelationship] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "relationships": [rel.to_dict() for rel in self.relationships],
        }


@dataclass
class GraphPayload:
    records: list[Row] = field(default_factory=list)
    graph: GraphData | None = None
    query_type: QueryType = QueryType.READ
    record_count: int = 0
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "graph",
            "records": [{k: serialize_value(v) for k, v in rec.items()} for rec in self.records],
            "graph": self.graph.to_dict() if self.graph is not None else None,
            "queryType": self.query_type.value,
            "recordCount": self.record_count,
            "truncated": self.truncated,
        }


Payload = TabularPayload | GraphPayload


@dataclass
class QueryResult:
    """Unified envelope returned for every statement, success or failure."""

    success: bool
    execution_id: str
    execution_time_ms: float
    dialect: Dialect | None
    payload: Payload
    error: str | None = None
    error_kind: str | None = None
    hints: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    context: Any = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping of the envelope."""
        return {
            "success": self.success,
            "executionId": self.execution_id,
            "executionTimeMs": self.execution_time_ms,
            "dialect": self.dialect.value if self.dialect is not None else None,
            "error": self.error,
            "errorKind": self.error_kind,
            "hints": list(self.hints),
            "warnings": list(self.warnings),
            "context": self.context,
            "payload": self.payload.to_dict(),
        }


# ─── Error mapping ──────────────────────────────────────

_NO_SUCH_TABLE = re.compile(r"no such table:?\s*([\w.]+)", re.IGNORECASE)
_NO_SUCH_COLUMN = re.compile(r"no such column:?\s*([\w.]+)", re.IGNORECASE)
_SYNTAX_NEAR = re.compile(r"near \"([^\"]*)\"")
_READ_ONLY = re.compile(r"read-?only|not allowed for .*read", re.IGNORECASE)


def classify_error(exc: BaseException) -> EngineError:
    """Map an arbitrary driver exception onto the error taxonomy."""
    if isinstance(exc, EngineError):
        return exc
    message = str(exc)

    match = _NO_SUCH_TABLE.search(message)
    if match:
        return NoSuchTable(match.group(1))
    match = _NO_SUCH_COLUMN.search(message)
    if match:
        return NoSuchColumn(match.group(1))
    if "syntax error" in message.lower() or "SyntaxError" in type(exc).__name__:
        match = _SYNTAX_NEAR.search(message)
        return QuerySyntaxError(match.group(1) if match else "?", message)
    if _READ_ONLY.search(message):
        return InvalidQuery(f"backend refused a write: {message}", rule="read-only")
    return ExecutionError(f"query execution failed: {type(exc).__name__}: {message}")


def error_hints(dialect: Dialect | None, error: str) -> list[str]:
    """Help suggestions for a failure message, as shown under an error."""
    text = (error or "").lower()
    hints: list[str] = []
    if dialect is not Dialect.GRAPH:
        if "syntax error" in text:
            hints.append("Check your SQL syntax. Make sure all keywords are spelled correctly.")
        if "no such table" in text:
            hints.append(
                "The table name might be incorrect. Use "
                "\"SELECT name FROM sqlite_master WHERE type='table'\" to list available tables."
            )
        if "no such column" in text:
            hints.append("The column name might be incorrect. Check the table structure.")
    else:
        if "syntax error" in text:
            hints.append("Check your Cypher syntax. Ensure proper use of parentheses, brackets, and keywords.")
        if "no such label" in text:
            hints.append("The node label might be incorrect. Use \"SHOW LABELS\" to see available labels.")
        if "unsupported" in text:
            hints.append(
                "Try using basic MATCH patterns like \"MATCH (n) RETURN n\" "
                "or \"MATCH (p:Person) RETURN p\"."
            )
    if "read-only" in text:
        hints.append("Only read queries are supported; write and DDL statements are rejected.")
    return hints


# ─── Graph extraction ───────────────────────────────────


def extract_graph(records: list[Row]) -> GraphData | None:
    """Collect nodes and relationships from records, deduplicated by id.

    First occurrence wins and order follows the records.  Returns None
    when no record carries a graph entity.
    """
    nodes: dict[str, GraphNode] = {}
    relationships: dict[str, GraphRelationship] = {}

    def visit(value: Any) -> None:
        if isinstance(value, GraphNode):
            nodes.setdefault(value.id, value)
        elif isinstance(value, GraphRelationship):
            relationships.setdefault(value.id, value)
        elif isinstance(value, (list, tuple)):
            for item in value:
                visit(item)
        elif isinstance(value, dict):
            for item in value.values():
                visit(item)

    for record in records:
        for value in record.values():
            visit(value)

    if not nodes and not relationships:
        return None
    return GraphData(nodes=list(nodes.values()), relationships=list(relationships.values()))


# ─── Normalizer ─────────────────────────────────────────


class ResultNormalizer:
    """Wrap backend output or failure into QueryResult envelopes."""

    def __init__(self, max_rows: int = 1000):
        self._max_rows = max_rows

    def build_payload(self, dialect: Dialect, raw: RawResult, text: str = "") -> Payload:
        truncated = len(raw.rows) > self._max_rows
        rows = raw.rows[: self._max_rows]
        if truncated:
            logger.info("Result truncated to %d of %d rows", self._max_rows, len(raw.rows))

        if dialect is Dialect.RELATIONAL:
            columns = list(raw.columns)
            projected = [{col: row.get(col) for col in columns} for row in rows]
            return TabularPayload(
                columns=columns,
                rows=projected,
                row_count=len(projected),
                truncated=truncated,
            )

        records = [dict(row) for row in rows]
        return GraphPayload(
            records=records,
            graph=extract_graph(records),
            query_type=classify_query(text),
            record_count=len(records),
            truncated=truncated,
        )

    def success(
        self,
        dialect: Dialect,
        raw: RawResult,
        execution_id: str,
        elapsed_ms: float,
        text: str = "",
        context: Any = None,
    ) -> QueryResult:
        return QueryResult(
            success=True,
            execution_id=execution_id,
            execution_time_ms=elapsed_ms,
            dialect=dialect,
            payload=self.build_payload(dialect, raw, text),
            warnings=list(raw.warnings),
            context=context,
        )

    def failure(
        self,
        dialect: Dialect | None,
        exc: BaseException,
        execution_id: str,
        elapsed_ms: float = 0.0,
        text: str = "",
        context: Any = None,
    ) -> QueryResult:
        error = classify_error(exc)
        if dialect is Dialect.GRAPH:
            payload: Payload = GraphPayload(query_type=classify_query(text))
        else:
            payload = TabularPayload()
        return QueryResult(
            success=False,
            execution_id=execution_id,
            execution_time_ms=elapsed_ms,
            dialect=dialect,
            payload=payload,
            error=str(error),
            error_kind=error.kind,
            hints=error_hints(dialect, str(error)),
            context=context,
        )

    async def capture(
        self,
        dialect: Dialect,
        text: str,
        run: Callable[[], Awaitable[RawResult]],
        context: Any = None,
        execution_id: str | None = None,
    ) -> QueryResult:
        """Await ``run`` and wrap whatever happens into an envelope."""
        execution_id = execution_id or generate_execution_id()
        started = time.perf_counter()
        try:
            raw = await run()
        except EngineError as exc:
            elapsed = _elapsed_ms(started)
            logger.info("[%s] %s", execution_id, exc)
            return self.failure(dialect, exc, execution_id, elapsed, text, context)
        except Exception as exc:
            elapsed = _elapsed_ms(started)
            logger.warning("[%s] Backend raised %s: %s", execution_id, type(exc).__name__, exc)
            return self.failure(dialect, exc, execution_id, elapsed, text, context)

        elapsed = _elapsed_ms(started)
        result = self.success(dialect, raw, execution_id, elapsed, text, context)
        logger.info("[%s] Completed in %.2fms", execution_id, elapsed)
        return result


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)
