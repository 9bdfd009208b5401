"""
Neo4j Connection Handler

Owns one async Neo4j driver for a graph backend.  Credentials come from
a parsed connection descriptor rather than the environment, so several
handlers can coexist and each one is closed by the backend that owns it.
"""

import logging
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase

logger = logging.getLogger("vaultquery.neo4j_handler")


class Neo4jHandler:
    """
    Manages a single async Neo4j driver.

    Usage
    -----
    handler = Neo4jHandler("bolt://localhost:7687", "neo4j", "secret")
    await handler.connect()
    keys, rows = await handler.fetch("MATCH (n) RETURN n LIMIT 5")
    await handler.close()
    """

    def __init__(
        self,
        uri: str,
        username: str,
        password: str,
        database: str = "neo4j",
    ):
        if not uri:
            raise ValueError("Neo4j URI is not set")
        if not username:
            raise ValueError("Neo4j username is not set")
        self._uri = uri
        self._username = username
        self._password = password
        self._database = database
        self._driver: AsyncDriver | None = None

    # ─── Lifecycle ──────────────────────────────────────────

    async def connect(self) -> "Neo4jHandler":
        """Create the async driver and verify connectivity.

        Returns:
            Self for method chaining.

        Raises:
            Exception: If Neo4j connection cannot be established or verified.
        """
        if self._driver is not None:
            return self

        self._driver = AsyncGraphDatabase.driver(
            self._uri,
            auth=(self._username, self._password),
            max_connection_lifetime=3 * 60 * 60,
            max_connection_pool_size=50,
            connection_acquisition_timeout=2 * 60,
        )
        try:
            await self._driver.verify_connectivity()
            logger.info("Connected to Neo4j at %s (db=%s)", self._uri, self._database)
        except Exception:
            logger.error("Failed to connect to Neo4j at %s", self._uri)
            await self.close()
            raise
        return self

    async def close(self) -> None:
        """Close the underlying driver.  Safe to call more than once."""
        driver, self._driver = self._driver, None
        if driver is not None:
            await driver.close()
            logger.info("Neo4j connection closed")

    # ─── Properties ─────────────────────────────────────────

    @property
    def driver(self) -> AsyncDriver:
        """Return the raw async driver.

        Raises:
            RuntimeError: If handler is not connected (call connect() first).
        """
        if self._driver is None:
            raise RuntimeError("Neo4jHandler is not connected, call connect() first")
        return self._driver

    @property
    def database(self) -> str:
        return self._database

    # ─── Query Helpers ──────────────────────────────────────

    async def fetch(
        self, query: str, params: dict[str, Any] | None = None
    ) -> tuple[list[str], list[tuple]]:
        """Execute a Cypher query and return its keys and raw value tuples.

        Values are left as driver objects (Node, Relationship, ...) so the
        caller can keep entity identity.

        Raises:
            RuntimeError: If handler is not connected (call connect() first).
            Exception: If query execution fails.
        """
        async with self.driver.session(database=self._database) as session:
            result = await session.run(query, params or {})
            keys = list(result.keys())
            rows = [tuple(record.values()) async for record in result]
            return keys, rows
