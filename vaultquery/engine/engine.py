"""
Query Engine — the entry point collaborators call.

Owns one backend per dialect, resolved once at initialization.  Each
``run_query`` cleans the statement, runs it through the gatekeeper,
executes it on the dialect's backend and returns a QueryResult
envelope.  No exception escapes ``run_query``.

Usage::

    engine = await QueryEngine.create()
    result = await engine.run_query("sql", "SELECT * FROM books LIMIT 3")
    await engine.close()
"""

import asyncio
import logging
from typing import Any

from vaultquery.engine.backends import Backend, BackendResolver, verify_backend
from vaultquery.engine.config import EngineSettings
from vaultquery.engine.gatekeeper import check, clean_statement
from vaultquery.engine.results import QueryResult, ResultNormalizer
from vaultquery.shared.exceptions import BackendUnavailable, EngineError
from vaultquery.shared.logging import generate_execution_id, truncate_for_log
from vaultquery.shared.models import Dialect, RawResult

logger = logging.getLogger("vaultquery.engine")


class QueryEngine:
    """Read-only query engine over one relational and one graph backend."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        bridges: dict[Dialect, Any] | None = None,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._bridges = dict(bridges or {})
        self._resolver = BackendResolver(self._settings, self._bridges)
        self._normalizer = ResultNormalizer(self._settings.max_result_rows)
        self._backends: dict[Dialect, Backend] = {}
        self._failures: dict[Dialect, BackendUnavailable] = {}
        self._initialized = False
        # serializes initialize, reconfigure and close
        self._lifecycle_lock = asyncio.Lock()

    # ─── Factory ──────────────────────────────────────────

    @classmethod
    async def create(
        cls,
        settings: EngineSettings | None = None,
        bridges: dict[Dialect, Any] | None = None,
    ) -> "QueryEngine":
        """Build an engine and resolve its backends.

        Args:
            settings: Optional settings override.  Falls back to env vars.
            bridges: Host-integration bridges keyed by dialect.
        """
        engine = cls(settings=settings, bridges=bridges)
        await engine.initialize()
        return engine

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def _enabled(self, dialect: Dialect) -> bool:
        if dialect is Dialect.RELATIONAL:
            return self._settings.enable_sqlite
        return self._settings.enable_neo4j

    # ─── Lifecycle ────────────────────────────────────────

    async def initialize(self) -> None:
        """Resolve a backend for every enabled dialect.

        A dialect whose resolution fails stays unavailable until
        ``reconfigure``; calls for it short-circuit to a
        BackendUnavailable envelope.  Does nothing if the engine is
        already initialized.
        """
        async with self._lifecycle_lock:
            if self._initialized:
                return
            await self._initialize()

    async def _initialize(self) -> None:
        logger.info("Initializing query engine...")
        for dialect in Dialect:
            if not self._enabled(dialect):
                self._failures[dialect] = BackendUnavailable(f"{dialect.value} queries are disabled")
                logger.info("%s dialect disabled by settings", dialect.value)
                continue
            try:
                self._backends[dialect] = await self._resolver.resolve(dialect)
            except BackendUnavailable as exc:
                self._failures[dialect] = exc
                logger.error("No %s backend: %s", dialect.value, exc)
        self._initialized = True
        logger.info(
            "Query engine ready: available=%s unavailable=%s",
            [d.value for d in self._backends],
            [d.value for d in self._failures],
        )

    async def reconfigure(
        self,
        settings: EngineSettings | None = None,
        bridges: dict[Dialect, Any] | None = None,
    ) -> None:
        """Tear down current backends and resolve new ones."""
        logger.info("Reconfiguring query engine")
        async with self._lifecycle_lock:
            await self._close()
            if settings is not None:
                self._settings = settings
                self._normalizer = ResultNormalizer(settings.max_result_rows)
            if bridges is not None:
                self._bridges = dict(bridges)
            self._resolver = BackendResolver(self._settings, self._bridges)
            await self._initialize()

    async def close(self) -> None:
        """Tear down every backend.  Safe to call more than once."""
        async with self._lifecycle_lock:
            await self._close()

    async def _close(self) -> None:
        backends = list(self._backends.values())
        self._backends.clear()
        self._failures.clear()
        self._initialized = False
        for backend in backends:
            try:
                await backend.teardown()
            except Exception as exc:
                logger.warning("Teardown of %s backend failed: %s", backend.kind, exc)

    async def __aenter__(self) -> "QueryEngine":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ─── Queries ──────────────────────────────────────────

    async def run_query(
        self,
        dialect: Dialect | str,
        text: str,
        context: Any = None,
    ) -> QueryResult:
        """Execute one read-only statement and return its envelope.

        Args:
            dialect: Dialect name or alias (``sql``, ``cypher``, ...).
            text: Raw statement text, optionally wrapped in a code fence.
            context: Opaque value copied onto the envelope.
        """
        execution_id = generate_execution_id()
        try:
            dialect = Dialect.from_name(dialect)
        except EngineError as exc:
            return self._normalizer.failure(None, exc, execution_id, text=text or "", context=context)

        if not self._initialized:
            await self.initialize()

        logger.info(
            "[%s] Executing %s query: %s",
            execution_id, dialect.value, truncate_for_log(text or ""),
        )

        backend = self._backends.get(dialect)
        if backend is None:
            failure = self._failures.get(dialect) or BackendUnavailable(
                f"no {dialect.value} backend"
            )
            logger.warning("[%s] %s", execution_id, failure)
            return self._normalizer.failure(dialect, failure, execution_id, text=text or "", context=context)

        async def run() -> RawResult:
            statement = clean_statement(text)
            check(dialect, statement)
            return await backend.execute(statement)

        return await self._normalizer.capture(
            dialect, text or "", run, context=context, execution_id=execution_id,
        )

    # ─── Status ───────────────────────────────────────────

    async def test_connection(self, dialect: Dialect | str) -> bool:
        """Re-run the canary query on the dialect's installed backend.

        Returns False when the dialect is unknown, has no backend, or the
        canary fails; never raises.
        """
        try:
            dialect = Dialect.from_name(dialect)
        except EngineError as exc:
            logger.warning("Connection test skipped: %s", exc)
            return False

        if not self._initialized:
            await self.initialize()

        backend = self._backends.get(dialect)
        if backend is None:
            logger.warning("Connection test for %s: no backend installed", dialect.value)
            return False
        try:
            await verify_backend(backend)
        except Exception as exc:
            logger.warning("Connection test for %s (%s) failed: %s", dialect.value, backend.kind, exc)
            return False
        logger.info("Connection test for %s (%s) passed", dialect.value, backend.kind)
        return True

    def status(self) -> dict[str, Any]:
        """Per-dialect availability and backend description."""
        dialects: dict[str, Any] = {}
        for dialect in Dialect:
            backend = self._backends.get(dialect)
            failure = self._failures.get(dialect)
            dialects[dialect.value] = {
                "enabled": self._enabled(dialect),
                "available": backend is not None,
                "backend": backend.describe() if backend is not None else None,
                "error": str(failure) if failure is not None else None,
            }
        return {
            "initialized": self._initialized,
            "max_result_rows": self._settings.max_result_rows,
            "dialects": dialects,
        }
