"""
Backend base class.

A backend is a live handle able to execute statement text against one
dataset.  Subclasses implement ``execute`` and ``_close``; ``teardown``
wraps ``_close`` so it is idempotent and safe on a backend whose
``open`` never completed.
"""

import logging
from typing import Any

from vaultquery.shared.models import Dialect, RawResult

logger = logging.getLogger("vaultquery.backends")


class Backend:
    """Base class for every backend strategy."""

    kind = "base"
    external = False

    def __init__(self, dialect: Dialect):
        self.dialect = dialect
        self._closed = False

    async def open(self) -> "Backend":
        """Acquire resources.  Built-in backends have nothing to open."""
        return self

    async def execute(self, text: str) -> RawResult:
        raise NotImplementedError

    async def teardown(self) -> None:
        """Release resources.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._close()
        finally:
            logger.info("Backend %s (%s) torn down", self.kind, self.dialect.value)

    async def _close(self) -> None:
        return None

    @property
    def closed(self) -> bool:
        return self._closed

    def describe(self) -> dict[str, Any]:
        """Status mapping for health reporting."""
        return {
            "kind": self.kind,
            "dialect": self.dialect.value,
            "external": self.external,
            "closed": self._closed,
        }
