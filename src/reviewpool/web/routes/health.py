"""Health check endpoints for Reviewpool.

- ``GET /health/``: liveness, always ok while the process serves requests.
- ``GET /health/ready``: readiness, verifies the database accepts queries.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reviewpool.logging import get_logger
from reviewpool.web.dependencies import get_session_factory

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Readiness check response model.

    Attributes:
        status: "ok" or "unhealthy"
        database: "connected" or "disconnected"
    """

    status: str
    database: str


def create_health_router() -> APIRouter:
    """Create health check router.

    Routes:
        GET /health/ - Basic liveness check
        GET /health/ready - Readiness check with database verification
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> Any:
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("readiness_check_failed", database="disconnected", error=str(exc))
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "database": "disconnected"},
            )

        logger.debug("readiness_check_passed", database="connected")
        return {"status": "ok", "database": "connected"}

    return router
