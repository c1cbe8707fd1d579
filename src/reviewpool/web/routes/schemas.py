"""Request and response bodies of the Reviewpool HTTP API.

Field names follow the public API contract, which mixes snake_case ids
with camelCase timestamps (``createdAt``, ``mergedAt``) on pull requests.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from reviewpool.database.models.pull_request import PRStatus
from reviewpool.engine.types import Member, PullRequestShort, PullRequestView, TeamView, UserView


class TeamAddRequest(BaseModel):
    team_name: str
    members: list[Member] = Field(default_factory=list)


class TeamNameRequest(BaseModel):
    team_name: str


class TeamEnvelope(BaseModel):
    team: TeamView


class SetActiveRequest(BaseModel):
    user_id: str
    is_active: bool


class UserEnvelope(BaseModel):
    user: UserView


class UserReviewsResponse(BaseModel):
    user_id: str
    pull_requests: list[PullRequestShort]


class PullRequestCreateRequest(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str


class PullRequestIdRequest(BaseModel):
    pull_request_id: str


class ReassignRequest(BaseModel):
    pull_request_id: str
    old_user_id: str


class PullRequestResponse(BaseModel):
    """A pull request as exposed over the API."""

    model_config = ConfigDict(populate_by_name=True)

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus
    assigned_reviewers: list[str]
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")
    merged_at: datetime | None = Field(default=None, serialization_alias="mergedAt")

    @classmethod
    def from_view(cls, view: PullRequestView) -> PullRequestResponse:
        return cls(**view.model_dump())


class PullRequestEnvelope(BaseModel):
    pr: PullRequestResponse


class ReassignResponse(BaseModel):
    pr: PullRequestResponse
    replaced_by: str
