"""Gateway configuration."""

from vaultquery.shared.config import BaseEngineSettings


class GatewaySettings(BaseEngineSettings):
    """Settings specific to the HTTP gateway."""

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    class Config(BaseEngineSettings.Config):
        env_prefix = "GATEWAY_"
