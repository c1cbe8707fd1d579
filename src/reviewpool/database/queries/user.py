"""User query functions for Reviewpool.

Provides lookups by id, the reviewer's PR listing, and candidate pool
queries used by the assignment engine and the deactivation cascade.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.pull_request import PullRequest, ReviewAssignment
from reviewpool.database.models.team import User


async def get_user(
    session: AsyncSession,
    user_id: str,
    for_update: bool = False,
) -> User | None:
    """Retrieve a user by id.

    Args:
        session: Active async database session.
        user_id: User identifier.
        for_update: Lock the row for the rest of the transaction.

    Returns:
        The User instance if found, None otherwise.
    """
    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_reviewed_prs(
    session: AsyncSession,
    user_id: str,
    limit: int | None = None,
) -> list[PullRequest]:
    """List pull requests the user currently reviews, newest first.

    Args:
        session: Active async database session.
        user_id: Reviewer identifier.
        limit: Optional maximum number of rows.

    Returns:
        PullRequest instances ordered by creation time descending, then id.
    """
    stmt = (
        select(PullRequest)
        .join(ReviewAssignment, ReviewAssignment.pr_id == PullRequest.id)
        .where(ReviewAssignment.reviewer_id == user_id)
        .order_by(PullRequest.created_at.desc(), PullRequest.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_active_candidates(
    session: AsyncSession,
    *,
    team_id: int | None = None,
    outside_team_id: int | None = None,
    exclude: Iterable[str] = (),
) -> list[str]:
    """Compute a candidate pool of active user ids.

    Exactly one of ``team_id`` (members of that team) or ``outside_team_id``
    (members of every other team) should be given.

    Args:
        session: Active async database session.
        team_id: Restrict the pool to this team.
        outside_team_id: Restrict the pool to teams other than this one.
        exclude: User ids that must not appear in the pool.

    Returns:
        Eligible user ids in ascending order.
    """
    stmt = select(User.id).where(User.is_active.is_(True))
    if team_id is not None:
        stmt = stmt.where(User.team_id == team_id)
    if outside_team_id is not None:
        stmt = stmt.where(User.team_id != outside_team_id)
    excluded = list(exclude)
    if excluded:
        stmt = stmt.where(User.id.not_in(excluded))
    stmt = stmt.order_by(User.id.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())
