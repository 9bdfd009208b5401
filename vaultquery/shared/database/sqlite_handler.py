"""
Async SQLite connection management.

Opens the database file read-only through aiosqlite; the engine never
writes, so the connection refuses writes at the driver level as well.
"""

import logging
from pathlib import Path
from typing import Any

import aiosqlite

logger = logging.getLogger("vaultquery.sqlite_handler")


class SqliteHandler:
    """Manages one read-only aiosqlite connection."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> "SqliteHandler":
        """Open the connection (idempotent)."""
        if self._conn is not None:
            return self
        self._conn = await aiosqlite.connect(f"file:{self._path.as_posix()}?mode=ro", uri=True)
        logger.info("Opened SQLite database %s (read-only)", self._path)
        return self

    async def close(self) -> None:
        """Close the connection.  Safe to call more than once."""
        conn, self._conn = self._conn, None
        if conn is not None:
            await conn.close()
            logger.info("SQLite connection closed")

    @property
    def path(self) -> Path:
        return self._path

    async def fetch(self, sql: str) -> tuple[list[str], list[tuple[Any, ...]]]:
        """Run one statement and return column names and value tuples.

        Raises:
            RuntimeError: If the handler is not connected.
            aiosqlite.Error: If SQLite rejects the statement.
        """
        if self._conn is None:
            raise RuntimeError("SqliteHandler is not connected, call connect() first")
        async with self._conn.execute(sql) as cursor:
            rows = await cursor.fetchall()
            columns = [d[0] for d in cursor.description or ()]
        return columns, [tuple(row) for row in rows]
