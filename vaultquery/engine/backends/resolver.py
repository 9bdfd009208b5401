"""
Backend Resolver — obtain a live, verified backend for a dialect.

Strategies are tried in a fixed order: the host-integration bridge,
then the native driver for the configured descriptor, then the built-in
dataset.  Each candidate must answer the canary query with exactly the
integer 1 before it is trusted.  A failing strategy is logged, its
half-open backend torn down, and the next one tried.
"""

import logging
from typing import Any, Awaitable, Callable

from vaultquery.engine.backends.base import Backend
from vaultquery.engine.backends.bridge import BridgeBackend
from vaultquery.engine.backends.builtin import BuiltinGraphBackend, BuiltinTableBackend
from vaultquery.engine.backends.descriptors import (
    parse_graph_descriptor,
    parse_relational_descriptor,
    resolve_database_path,
)
from vaultquery.engine.backends.native import Neo4jBackend, SqliteBackend
from vaultquery.engine.backends.seed import load_dataset, seed_graph, seed_tables
from vaultquery.engine.config import EngineSettings
from vaultquery.shared.exceptions import BackendUnavailable, DatasetError, InvalidDescriptor
from vaultquery.shared.logging import obfuscate_descriptor
from vaultquery.shared.models import Dialect, GraphDataset, TableDataset

logger = logging.getLogger("vaultquery.backends.resolver")

CANARY_STATEMENTS = {
    Dialect.RELATIONAL: "SELECT 1 AS test",
    Dialect.GRAPH: "RETURN 1 AS test",
}

Strategy = tuple[str, Callable[[], Awaitable[Backend]]]


async def verify_backend(backend: Backend) -> None:
    """Run the canary query and require the integer 1 back.

    Raises:
        BackendUnavailable: If the answer is missing or not exactly ``1``.
    """
    result = await backend.execute(CANARY_STATEMENTS[backend.dialect])
    value = result.rows[0].get("test") if result.rows else None
    # bool is a subclass of int, so compare the exact type
    if type(value) is not int or value != 1:
        raise BackendUnavailable(f"canary query returned {value!r}, expected 1")


class BackendResolver:
    """Pick the first backend strategy that opens and passes the canary."""

    def __init__(self, settings: EngineSettings, bridges: dict[Dialect, Any] | None = None):
        self._settings = settings
        self._bridges = dict(bridges or {})

    async def resolve(self, dialect: Dialect | str, descriptor: str | None = None) -> Backend:
        """Return a verified backend for ``dialect``.

        Args:
            dialect: Dialect the backend must serve.
            descriptor: Native target (file path or connection URI).
                Defaults to the configured path/URI for the dialect.

        Raises:
            BackendUnavailable: If every strategy failed.
        """
        dialect = Dialect.from_name(dialect)
        if descriptor is None:
            descriptor = self._configured_descriptor(dialect)

        failures: list[str] = []
        strategies = self._strategies(dialect, descriptor)
        for idx, (name, factory) in enumerate(strategies, 1):
            logger.info("Resolving %s backend: strategy %d/%d (%s)", dialect.value, idx, len(strategies), name)
            backend: Backend | None = None
            try:
                backend = await factory()
                await verify_backend(backend)
            except Exception as exc:
                failures.append(f"{name}: {exc}")
                logger.warning("Strategy %s failed for %s: %s", name, dialect.value, exc)
                if backend is not None:
                    await self._discard(backend)
                continue

            logger.info("Resolved %s backend via %s", dialect.value, name)
            return backend

        raise BackendUnavailable(
            f"no backend available for {dialect.value} ({'; '.join(failures) or 'no strategies'})"
        )

    def _configured_descriptor(self, dialect: Dialect) -> str:
        if dialect is Dialect.RELATIONAL:
            return self._settings.sqlite_database_path
        return self._settings.neo4j_uri

    def _strategies(self, dialect: Dialect, descriptor: str) -> list[Strategy]:
        strategies: list[Strategy] = []
        if dialect in self._bridges:
            strategies.append(("bridge", lambda: self._open_bridge(dialect)))
        if descriptor and descriptor.strip():
            if dialect is Dialect.RELATIONAL:
                strategies.append(("sqlite", lambda: self._open_sqlite(descriptor)))
            else:
                strategies.append(("neo4j", lambda: self._open_neo4j(descriptor)))
        strategies.append(("builtin", lambda: self._open_builtin(dialect)))
        return strategies

    # ─── Strategies ───────────────────────────────────────

    async def _open_bridge(self, dialect: Dialect) -> Backend:
        return await BridgeBackend(dialect, self._bridges[dialect]).open()

    async def _open_sqlite(self, descriptor: str) -> Backend:
        path = parse_relational_descriptor(descriptor)
        resolved = resolve_database_path(path)
        if resolved is None:
            raise InvalidDescriptor(f"database file not found or not readable: {path}")
        backend = SqliteBackend(resolved)
        try:
            return await backend.open()
        except Exception:
            await self._discard(backend)
            raise

    async def _open_neo4j(self, descriptor: str) -> Backend:
        parsed = parse_graph_descriptor(descriptor)
        logger.info("Connecting to %s", obfuscate_descriptor(descriptor))
        backend = Neo4jBackend(parsed, database=self._settings.neo4j_database)
        try:
            return await backend.open()
        except Exception:
            await self._discard(backend)
            raise

    async def _open_builtin(self, dialect: Dialect) -> Backend:
        if dialect is Dialect.RELATIONAL:
            dataset, source = self._seed_dataset(self._settings.seed_tables_path, TableDataset, seed_tables)
            return BuiltinTableBackend(dataset, source=source)
        dataset, source = self._seed_dataset(self._settings.seed_graph_path, GraphDataset, seed_graph)
        return BuiltinGraphBackend(dataset, source=source, strict_labels=self._settings.strict_labels)

    @staticmethod
    def _seed_dataset(
        path: str,
        expected: type[TableDataset] | type[GraphDataset],
        fixed_seed: Callable[[], TableDataset | GraphDataset],
    ) -> tuple[TableDataset | GraphDataset, str]:
        """Load the configured seed file, or fall back to the fixed seed."""
        if not path:
            return fixed_seed(), "seed"
        try:
            dataset = load_dataset(path)
        except DatasetError as exc:
            logger.warning("Seed file %s unusable, using the fixed seed: %s", path, exc)
            return fixed_seed(), "seed"
        if not isinstance(dataset, expected):
            logger.warning(
                "Seed file %s does not hold a %s, using the fixed seed",
                path, expected.__name__,
            )
            return fixed_seed(), "seed"
        return dataset, path

    @staticmethod
    async def _discard(backend: Backend) -> None:
        try:
            await backend.teardown()
        except Exception as exc:
            logger.warning("Teardown of half-open %s backend failed: %s", backend.kind, exc)
