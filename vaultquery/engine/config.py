"""Query engine configuration."""

from pydantic import Field

from vaultquery.shared.config import BaseEngineSettings


class EngineSettings(BaseEngineSettings):
    """Settings specific to the query engine."""

    enable_sqlite: bool = True
    enable_neo4j: bool = True

    # Target descriptors; empty means the built-in dataset is used
    sqlite_database_path: str = ""
    neo4j_uri: str = ""
    neo4j_database: str = "neo4j"

    # JSON files replacing the fixed seed of each built-in backend; an
    # unreadable file or one holding the other dataset shape is ignored
    seed_tables_path: str = ""
    seed_graph_path: str = ""

    max_result_rows: int = Field(default=1000, ge=100, le=5000)
    strict_labels: bool = False

    class Config(BaseEngineSettings.Config):
        env_prefix = "VAULTQUERY_"
