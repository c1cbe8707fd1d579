"""Pull request endpoints for Reviewpool.

Routes:
    POST /pullRequest/create - Create a PR with auto-assigned reviewers
    POST /pullRequest/merge - Merge a PR (idempotent)
    POST /pullRequest/reassign - Replace one reviewer of an open PR
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi import status as http_status

from reviewpool.engine.service import ReviewOperations
from reviewpool.logging import bind_request_context
from reviewpool.web.dependencies import get_service
from reviewpool.web.routes.schemas import (
    PullRequestCreateRequest,
    PullRequestEnvelope,
    PullRequestIdRequest,
    PullRequestResponse,
    ReassignRequest,
    ReassignResponse,
)


def create_pull_requests_router() -> APIRouter:
    """Create the pull request router."""
    router = APIRouter(prefix="/pullRequest", tags=["pull-requests"])

    @router.post(
        "/create",
        response_model=PullRequestEnvelope,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_pull_request(
        body: PullRequestCreateRequest,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> PullRequestEnvelope:
        bind_request_context(pr_id=body.pull_request_id)
        pr = await service.create_pr(
            body.pull_request_id, body.pull_request_name, body.author_id
        )
        return PullRequestEnvelope(pr=PullRequestResponse.from_view(pr))

    @router.post("/merge", response_model=PullRequestEnvelope)
    async def merge_pull_request(
        body: PullRequestIdRequest,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> PullRequestEnvelope:
        bind_request_context(pr_id=body.pull_request_id)
        pr = await service.merge_pr(body.pull_request_id)
        return PullRequestEnvelope(pr=PullRequestResponse.from_view(pr))

    @router.post("/reassign", response_model=ReassignResponse)
    async def reassign_reviewer(
        body: ReassignRequest,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> ReassignResponse:
        bind_request_context(pr_id=body.pull_request_id)
        pr, replaced_by = await service.reassign_reviewer(
            body.pull_request_id, body.old_user_id
        )
        return ReassignResponse(pr=PullRequestResponse.from_view(pr), replaced_by=replaced_by)

    return router
