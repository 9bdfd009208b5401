"""
Database package — native driver connection handlers.
"""

from .neo4j_handler import Neo4jHandler
from .sqlite_handler import SqliteHandler

__all__ = ["Neo4jHandler", "SqliteHandler"]
