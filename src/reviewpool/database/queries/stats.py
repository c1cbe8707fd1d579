"""Aggregation query functions for Reviewpool.

Read-only grouped counts over current reviewer assignments and pull
requests. Team attribution always follows the reviewer's current team.
Grouped results are returned as ``(key, count)`` tuples.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.pull_request import (
    PRStatus,
    PullRequest,
    ReviewAssignment,
)
from reviewpool.database.models.team import Team, User


def _apply_pr_filter(
    stmt: Select[Any],
    created_from: datetime | None,
    created_to: datetime | None,
    status: PRStatus | None,
) -> Select[Any]:
    """Restrict a statement that already selects from pull_requests."""
    if created_from is not None:
        stmt = stmt.where(PullRequest.created_at >= created_from)
    if created_to is not None:
        stmt = stmt.where(PullRequest.created_at <= created_to)
    if status is not None:
        stmt = stmt.where(PullRequest.status == status)
    return stmt


async def assignment_counts_by_reviewer(
    session: AsyncSession,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    status: PRStatus | None = None,
    limit: int | None = None,
) -> list[tuple[str, int]]:
    """Count current assignments per reviewer.

    Ordered by count descending, then reviewer id ascending, so a
    ``limit`` always cuts ties at the same place.
    """
    cnt = func.count().label("cnt")
    stmt = (
        select(ReviewAssignment.reviewer_id, cnt)
        .join(PullRequest, PullRequest.id == ReviewAssignment.pr_id)
        .group_by(ReviewAssignment.reviewer_id)
        .order_by(cnt.desc(), ReviewAssignment.reviewer_id.asc())
    )
    stmt = _apply_pr_filter(stmt, created_from, created_to, status)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return [(row[0], int(row[1])) for row in result.all()]


async def assignment_counts_by_pr(
    session: AsyncSession,
) -> list[tuple[str, int]]:
    """Count current reviewers per pull request, ordered by PR id."""
    stmt = (
        select(ReviewAssignment.pr_id, func.count())
        .group_by(ReviewAssignment.pr_id)
        .order_by(ReviewAssignment.pr_id.asc())
    )
    result = await session.execute(stmt)
    return [(row[0], int(row[1])) for row in result.all()]


async def pr_counts_by_status(
    session: AsyncSession,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    status: PRStatus | None = None,
) -> list[tuple[PRStatus, int]]:
    """Count pull requests per status, ordered by status name."""
    stmt = (
        select(PullRequest.status, func.count())
        .group_by(PullRequest.status)
        .order_by(PullRequest.status.asc())
    )
    stmt = _apply_pr_filter(stmt, created_from, created_to, status)
    result = await session.execute(stmt)
    return [(row[0], int(row[1])) for row in result.all()]


async def assignment_counts_by_team(
    session: AsyncSession,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    status: PRStatus | None = None,
) -> list[tuple[str, int]]:
    """Count current assignments per reviewer's current team.

    Ordered by count descending, then team name.
    """
    cnt = func.count().label("cnt")
    stmt = (
        select(Team.name, cnt)
        .select_from(ReviewAssignment)
        .join(User, User.id == ReviewAssignment.reviewer_id)
        .join(Team, Team.id == User.team_id)
        .join(PullRequest, PullRequest.id == ReviewAssignment.pr_id)
        .group_by(Team.name)
        .order_by(cnt.desc(), Team.name.asc())
    )
    stmt = _apply_pr_filter(stmt, created_from, created_to, status)
    result = await session.execute(stmt)
    return [(row[0], int(row[1])) for row in result.all()]


async def reviewer_status_counts(
    session: AsyncSession,
    user_id: str,
) -> dict[PRStatus, int]:
    """Count the reviewer's current assignments per pull request status."""
    stmt = (
        select(PullRequest.status, func.count())
        .select_from(ReviewAssignment)
        .join(PullRequest, PullRequest.id == ReviewAssignment.pr_id)
        .where(ReviewAssignment.reviewer_id == user_id)
        .group_by(PullRequest.status)
    )
    result = await session.execute(stmt)
    return {row[0]: int(row[1]) for row in result.all()}
