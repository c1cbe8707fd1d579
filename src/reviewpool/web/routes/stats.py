"""Statistics endpoints for Reviewpool.

Routes:
    GET /stats - Global assignment counts
    GET /stats/summary - Counts restricted by creation window and status
    GET /stats/reviewer/{user_id} - One reviewer's workload
    GET /stats/pr/{pr_id} - One pull request's reviewers and history
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from reviewpool.database.models.pull_request import PRStatus
from reviewpool.engine.service import ReviewOperations
from reviewpool.engine.types import (
    GlobalStats,
    PRStats,
    ReviewerStats,
    StatsFilter,
    StatsSummary,
)
from reviewpool.web.dependencies import get_service


def create_stats_router() -> APIRouter:
    """Create the statistics router."""
    router = APIRouter(prefix="/stats", tags=["stats"])

    @router.get("", response_model=GlobalStats)
    async def global_stats(
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> GlobalStats:
        return await service.global_stats()

    @router.get("/summary", response_model=StatsSummary)
    async def summary(
        created_from: datetime | None = Query(default=None, alias="from"),
        created_to: datetime | None = Query(default=None, alias="to"),
        status: PRStatus | None = None,
        limit: int = 0,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> StatsSummary:
        return await service.summary(
            StatsFilter(
                created_from=created_from,
                created_to=created_to,
                status=status,
                limit=limit,
            )
        )

    @router.get("/reviewer/{user_id}", response_model=ReviewerStats)
    async def reviewer_stats(
        user_id: str,
        limit: int = 0,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> ReviewerStats:
        return await service.reviewer_stats(user_id, limit)

    @router.get("/pr/{pr_id}", response_model=PRStats)
    async def pr_stats(
        pr_id: str,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> PRStats:
        return await service.pr_stats(pr_id)

    return router
