"""
FastAPI Gateway — HTTP API layer.

External interface for the query engine.  The engine is created on
startup, stored on ``app.state`` for route access, and closed on
shutdown.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vaultquery import __version__
from vaultquery.engine import EngineSettings, QueryEngine
from vaultquery.gateway.config import GatewaySettings
from vaultquery.gateway.routes import health, query
from vaultquery.shared.logging import setup_logging
from vaultquery.shared.models import Dialect

logger = setup_logging("vaultquery.gateway.app", level="INFO")


def create_app(
    engine_settings: EngineSettings | None = None,
    bridges: dict[Dialect, Any] | None = None,
    settings: GatewaySettings | None = None,
) -> FastAPI:
    """Build the gateway app around a QueryEngine."""
    settings = settings or GatewaySettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the engine on startup, close it on shutdown."""
        logger.info("Starting query gateway")
        app.state.engine = await QueryEngine.create(settings=engine_settings, bridges=bridges)
        logger.info("Gateway initialized successfully")

        yield

        logger.info("Shutting down query gateway")
        await app.state.engine.close()

    app = FastAPI(
        title="vaultquery",
        description="Restricted read-only queries over table and graph datasets",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(query.router, prefix="/api", tags=["Query"])
    app.include_router(health.router, prefix="/api", tags=["Health"])

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "vaultquery",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "query": "/api/query",
                "reconfigure": "/api/reconfigure",
                "health": "/api/health",
                "test_connection": "/api/test-connection",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    gateway_settings = GatewaySettings()
    uvicorn.run(
        "vaultquery.gateway.app:app",
        host=gateway_settings.host,
        port=gateway_settings.port,
        reload=False,
        log_level=gateway_settings.log_level.lower(),
    )
