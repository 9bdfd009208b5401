"""
Health routes — GET /api/health and POST /api/test-connection.
"""

from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from vaultquery import __version__
from vaultquery.shared.logging import setup_logging

logger = setup_logging("vaultquery.gateway.routes.health", level="INFO")

router = APIRouter()


# ─── Response Models ─────────────────────────────────────────


class DialectHealth(BaseModel):
    """Availability of one dialect's backend."""

    dialect: str = Field(..., description="relational or graph")
    enabled: bool = Field(..., description="Whether settings enable the dialect")
    available: bool = Field(..., description="Whether a verified backend is installed")
    backend: dict[str, Any] | None = Field(None, description="Backend description")
    error: str | None = Field(None, description="Resolution error if unavailable")


class HealthResponse(BaseModel):
    """Response model for GET /api/health."""

    status: str = Field(..., description="healthy, degraded, or unhealthy")
    version: str = Field(..., description="Service version")
    dialects: list[DialectHealth] = Field(..., description="Per-dialect status")


class ConnectionTestRequest(BaseModel):
    """Request body for POST /api/test-connection."""

    dialect: str = Field(..., description="Dialect name or alias (sql, cypher, ...)")


class ConnectionTestResponse(BaseModel):
    """Response model for POST /api/test-connection."""

    dialect: str = Field(..., description="Dialect as requested")
    connected: bool = Field(..., description="Whether the canary query passed just now")


# ─── GET /api/health ────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Report which dialects have a working backend.

    - healthy: every enabled dialect is available
    - degraded: some enabled dialects are available
    - unhealthy: no enabled dialect is available
    """
    status = request.app.state.engine.status()
    dialects = [
        DialectHealth(dialect=name, **info) for name, info in status["dialects"].items()
    ]
    enabled = [d for d in dialects if d.enabled]
    available = [d for d in enabled if d.available]

    if enabled and len(available) == len(enabled):
        overall = "healthy"
    elif available:
        overall = "degraded"
    else:
        overall = "unhealthy"

    logger.info("Health check: %s (%d/%d dialects available)", overall, len(available), len(enabled))
    return HealthResponse(status=overall, version=__version__, dialects=dialects)


# ─── POST /api/test-connection ──────────────────────────────


@router.post("/test-connection", response_model=ConnectionTestResponse)
async def test_connection(body: ConnectionTestRequest, request: Request) -> ConnectionTestResponse:
    """Re-run the canary query against the installed backend."""
    connected = await request.app.state.engine.test_connection(body.dialect)
    logger.info("Connection test for %s: %s", body.dialect, "ok" if connected else "failed")
    return ConnectionTestResponse(dialect=body.dialect, connected=connected)
