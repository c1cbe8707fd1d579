"""FastAPI route definitions for the Reviewpool HTTP API."""

from __future__ import annotations

from reviewpool.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from reviewpool.web.routes.pull_requests import create_pull_requests_router
from reviewpool.web.routes.stats import create_stats_router
from reviewpool.web.routes.teams import create_teams_router
from reviewpool.web.routes.users import create_users_router

__all__ = [
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Resources
    "create_teams_router",
    "create_users_router",
    "create_pull_requests_router",
    "create_stats_router",
]
