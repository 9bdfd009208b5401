from vaultquery.engine.config import EngineSettings
from vaultquery.engine.engine import QueryEngine
from vaultquery.engine.results import GraphPayload, QueryResult, TabularPayload

__all__ = [
    "EngineSettings",
    "GraphPayload",
    "QueryEngine",
    "QueryResult",
    "TabularPayload",
]
