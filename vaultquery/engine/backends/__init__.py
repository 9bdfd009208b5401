from vaultquery.engine.backends.base import Backend
from vaultquery.engine.backends.bridge import BridgeBackend
from vaultquery.engine.backends.builtin import BuiltinGraphBackend, BuiltinTableBackend
from vaultquery.engine.backends.descriptors import (
    GraphDescriptor,
    parse_graph_descriptor,
    parse_relational_descriptor,
)
from vaultquery.engine.backends.native import Neo4jBackend, SqliteBackend
from vaultquery.engine.backends.resolver import BackendResolver, verify_backend

__all__ = [
    "Backend",
    "BackendResolver",
    "BridgeBackend",
    "BuiltinGraphBackend",
    "BuiltinTableBackend",
    "GraphDescriptor",
    "Neo4jBackend",
    "SqliteBackend",
    "parse_graph_descriptor",
    "parse_relational_descriptor",
    "verify_backend",
]
