"""
Host-integration bridge backend.

A host application that already owns a database handle can hand it to
the engine as a bridge: any object with an ``execute(text)`` method
(sync or async) returning either a RawResult or a list of row dicts.
The bridge stays owned by the host, so teardown only drops the
reference.
"""

import inspect
from typing import Any

from vaultquery.engine.backends.base import Backend
from vaultquery.shared.models import Dialect, RawResult


class BridgeBackend(Backend):
    """Adapter from a host-supplied bridge object to the Backend contract."""

    kind = "bridge"
    external = True

    def __init__(self, dialect: Dialect, bridge: Any):
        super().__init__(dialect)
        if not callable(getattr(bridge, "execute", None)):
            raise TypeError(f"bridge {type(bridge).__name__} has no execute() method")
        self._bridge = bridge

    async def execute(self, text: str) -> RawResult:
        if self._bridge is None:
            raise RuntimeError("bridge backend has been torn down")
        result = self._bridge.execute(text)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, RawResult):
            return result
        return RawResult.from_rows(list(result or []))

    async def _close(self) -> None:
        self._bridge = None

    def describe(self) -> dict[str, Any]:
        info = super().describe()
        info["bridge"] = type(self._bridge).__name__ if self._bridge is not None else None
        return info
