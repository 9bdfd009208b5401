"""
Base configuration for all engine components.

Uses Pydantic Settings for environment-based configuration.
Each component extends BaseEngineSettings with its own prefix.
"""

from pydantic_settings import BaseSettings


class BaseEngineSettings(BaseSettings):
    """Base settings shared by the engine and the gateway."""

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
