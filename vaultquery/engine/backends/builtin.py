"""
Built-in backends over an in-memory dataset.

These are the last resolver strategy.  ``execute`` parses the statement
with the dialect's grammar and evaluates it over the dataset, which is
never modified.
"""

from typing import Any

from vaultquery.engine.backends.base import Backend
from vaultquery.engine.graph import GraphEvaluator
from vaultquery.engine.relational import RelationalEvaluator
from vaultquery.shared.models import Dialect, GraphDataset, RawResult, TableDataset


class BuiltinTableBackend(Backend):
    """Relational backend serving a fixed TableDataset."""

    kind = "builtin"

    def __init__(self, dataset: TableDataset, source: str = "seed"):
        super().__init__(Dialect.RELATIONAL)
        self._evaluator = RelationalEvaluator(dataset)
        self._dataset = dataset
        self._source = source

    async def execute(self, text: str) -> RawResult:
        return self._evaluator.execute(text)

    def describe(self) -> dict[str, Any]:
        info = super().describe()
        info.update(source=self._source, tables=self._dataset.table_names)
        return info


class BuiltinGraphBackend(Backend):
    """Graph backend serving a fixed GraphDataset."""

    kind = "builtin"

    def __init__(self, dataset: GraphDataset, source: str = "seed", strict_labels: bool = False):
        super().__init__(Dialect.GRAPH)
        self._evaluator = GraphEvaluator(dataset, strict_labels=strict_labels)
        self._dataset = dataset
        self._source = source

    async def execute(self, text: str) -> RawResult:
        return self._evaluator.execute(text)

    def describe(self) -> dict[str, Any]:
        info = super().describe()
        info.update(
            source=self._source,
            labels=self._dataset.labels,
            relationship_types=self._dataset.relationship_types,
        )
        return info
