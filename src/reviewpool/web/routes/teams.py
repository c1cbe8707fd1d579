"""Team endpoints for Reviewpool.

Routes:
    POST /team/add - Create a team and upsert its members
    GET /team/get - Fetch a team with its members
    POST /team/deactivate - Deactivate a team and repair its open reviews
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi import status as http_status

from reviewpool.engine.service import ReviewOperations
from reviewpool.engine.types import DeactivateResult, TeamView
from reviewpool.logging import bind_request_context
from reviewpool.web.dependencies import get_service
from reviewpool.web.routes.schemas import TeamAddRequest, TeamEnvelope, TeamNameRequest


def create_teams_router() -> APIRouter:
    """Create the team router."""
    router = APIRouter(prefix="/team", tags=["teams"])

    @router.post(
        "/add",
        response_model=TeamEnvelope,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def add_team(
        body: TeamAddRequest,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> TeamEnvelope:
        bind_request_context(team_name=body.team_name)
        team = await service.create_team(body.team_name, body.members)
        return TeamEnvelope(team=team)

    @router.get("/get", response_model=TeamView)
    async def get_team(
        team_name: str = Query(...),
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> TeamView:
        return await service.get_team(team_name)

    @router.post("/deactivate", response_model=DeactivateResult)
    async def deactivate_team(
        body: TeamNameRequest,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> DeactivateResult:
        team_name = body.team_name.strip()
        bind_request_context(team_name=team_name)
        return await service.deactivate_team(team_name)

    return router
