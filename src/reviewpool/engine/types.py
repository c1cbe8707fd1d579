"""Result and filter models returned by the Reviewpool engines.

These Pydantic models are the values handed to callers (the HTTP adapter,
the CLI). They are built from ORM rows inside a unit of work and never hold
a reference back to the session.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from reviewpool.database.models.pull_request import PRStatus


class Member(BaseModel):
    """A team member as submitted to or returned from team operations."""

    user_id: str
    username: str
    is_active: bool = True


class TeamView(BaseModel):
    team_name: str
    members: list[Member] = Field(default_factory=list)


class UserView(BaseModel):
    """A user joined with the name of its current team."""

    user_id: str
    username: str
    team_name: str
    is_active: bool


class PullRequestView(BaseModel):
    """A pull request with its reviewers projected from the assignment rows."""

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus
    assigned_reviewers: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    merged_at: datetime | None = None


class PullRequestShort(BaseModel):
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus


class DeactivateResult(BaseModel):
    """Outcome counters of a team deactivation cascade.

    Attributes:
        deactivated_users: Members whose active flag was flipped.
        reassigned: Reviewer slots handed to a replacement.
        removed: Reviewer slots dropped because no candidate existed.
    """

    deactivated_users: int = 0
    reassigned: int = 0
    removed: int = 0


class UserStat(BaseModel):
    user_id: str
    assign_cnt: int


class PRStat(BaseModel):
    pr_id: str
    assign_cnt: int


class StatusStat(BaseModel):
    status: PRStatus
    pr_count: int


class TeamStat(BaseModel):
    team_name: str
    assign_cnt: int


class GlobalStats(BaseModel):
    by_user: list[UserStat] = Field(default_factory=list)
    by_pr: list[PRStat] = Field(default_factory=list)
    by_status: list[StatusStat] = Field(default_factory=list)
    by_team: list[TeamStat] = Field(default_factory=list)


class StatsFilter(BaseModel):
    """Restricts summary statistics to a creation window and/or status.

    Attributes:
        created_from: Inclusive lower bound on PR creation time.
        created_to: Inclusive upper bound on PR creation time.
        status: Only count PRs in this status.
        limit: Maximum number of top reviewers; non-positive means default.
    """

    created_from: datetime | None = None
    created_to: datetime | None = None
    status: PRStatus | None = None
    limit: int = 0


class StatsSummary(BaseModel):
    top_reviewers: list[UserStat] = Field(default_factory=list)
    pr_status_counts: list[StatusStat] = Field(default_factory=list)
    team_assignments: list[TeamStat] = Field(default_factory=list)


class ReviewerStats(BaseModel):
    user_id: str
    assign_cnt: int = 0
    open_pr_cnt: int = 0
    merged_pr_cnt: int = 0
    recent_prs: list[PullRequestShort] = Field(default_factory=list)


class ReassignmentRecord(BaseModel):
    """One entry of a pull request's reassignment history.

    ``new_reviewer_id`` is None for a removal without replacement.
    """

    old_reviewer_id: str
    new_reviewer_id: str | None = None
    changed_at: datetime


class PRStats(BaseModel):
    pr_id: str
    pr_name: str
    author_id: str
    status: PRStatus
    reviewers: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    merged_at: datetime | None = None
    reassignments: list[ReassignmentRecord] = Field(default_factory=list)
    transfer_cnt: int = 0
