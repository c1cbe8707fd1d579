"""User endpoints for Reviewpool.

Routes:
    POST /users/setIsActive - Flip a user's active flag
    GET /users/getReview - List the pull requests a user reviews
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from reviewpool.engine.service import ReviewOperations
from reviewpool.logging import bind_request_context
from reviewpool.web.dependencies import get_service
from reviewpool.web.routes.schemas import SetActiveRequest, UserEnvelope, UserReviewsResponse


def create_users_router() -> APIRouter:
    """Create the user router."""
    router = APIRouter(prefix="/users", tags=["users"])

    @router.post("/setIsActive", response_model=UserEnvelope)
    async def set_is_active(
        body: SetActiveRequest,
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> UserEnvelope:
        bind_request_context(user_id=body.user_id)
        user = await service.set_user_active(body.user_id, body.is_active)
        return UserEnvelope(user=user)

    @router.get("/getReview", response_model=UserReviewsResponse)
    async def get_review(
        user_id: str = Query(...),
        service: ReviewOperations = Depends(get_service),  # noqa: B008
    ) -> UserReviewsResponse:
        prs = await service.list_reviewed_prs(user_id)
        return UserReviewsResponse(user_id=user_id, pull_requests=prs)

    return router
