"""
Native driver backends: aiosqlite for relational file paths and the
official neo4j async driver for bolt/neo4j URIs.

The statement text is handed to the driver unchanged; driver rows are
converted into the engine's value model on the way back.
"""

import logging
from pathlib import Path
from typing import Any

from vaultquery.engine.backends.base import Backend
from vaultquery.engine.backends.descriptors import GraphDescriptor
from vaultquery.engine.graph.convert import convert_records
from vaultquery.shared.database import Neo4jHandler, SqliteHandler
from vaultquery.shared.models import Dialect, RawResult

logger = logging.getLogger("vaultquery.backends.native")


class SqliteBackend(Backend):
    """Relational backend over a read-only SQLite file."""

    kind = "sqlite"
    external = True

    def __init__(self, path: Path):
        super().__init__(Dialect.RELATIONAL)
        self._handler = SqliteHandler(path)

    async def open(self) -> "SqliteBackend":
        await self._handler.connect()
        return self

    async def execute(self, text: str) -> RawResult:
        columns, rows = await self._handler.fetch(text)
        return RawResult(columns=columns, rows=[dict(zip(columns, row)) for row in rows])

    async def _close(self) -> None:
        await self._handler.close()

    def describe(self) -> dict[str, Any]:
        info = super().describe()
        info["target"] = str(self._handler.path)
        return info


class Neo4jBackend(Backend):
    """Graph backend over a live Neo4j server."""

    kind = "neo4j"
    external = True

    def __init__(self, descriptor: GraphDescriptor, database: str = "neo4j"):
        super().__init__(Dialect.GRAPH)
        self._descriptor = descriptor
        self._handler = Neo4jHandler(
            uri=descriptor.uri,
            username=descriptor.username,
            password=descriptor.password,
            database=database,
        )

    async def open(self) -> "Neo4jBackend":
        logger.info("Opening Neo4j backend %s", self._descriptor.obfuscated)
        await self._handler.connect()
        return self

    async def execute(self, text: str) -> RawResult:
        keys, rows = await self._handler.fetch(text)
        return convert_records(keys, rows)

    async def _close(self) -> None:
        await self._handler.close()

    def describe(self) -> dict[str, Any]:
        info = super().describe()
        info["target"] = self._descriptor.obfuscated
        info["database"] = self._handler.database
        return info
