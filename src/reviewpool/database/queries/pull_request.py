"""Pull request, assignment and history query functions for Reviewpool.

Row locking uses ``SELECT ... FOR UPDATE``; on backends without row locks
(SQLite in tests) the clause is omitted by the dialect.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.pull_request import (
    PRStatus,
    PullRequest,
    ReassignmentEvent,
    ReviewAssignment,
)


async def insert_pull_request(
    session: AsyncSession,
    pr_id: str,
    name: str,
    author_id: str,
) -> PullRequest:
    """Insert an OPEN pull request and flush it immediately.

    Flushing here surfaces a duplicate id as an IntegrityError at the point
    of insertion, inside the caller's transaction.

    Args:
        session: Active async database session.
        pr_id: Pull request identifier.
        name: Pull request title.
        author_id: Authoring user id.

    Returns:
        The PullRequest with its database-assigned created_at loaded.

    Raises:
        sqlalchemy.exc.IntegrityError: If the id is already used.
    """
    pr = PullRequest(id=pr_id, name=name, author_id=author_id, status=PRStatus.OPEN)
    session.add(pr)
    await session.flush()
    await session.refresh(pr)
    return pr


async def get_pull_request(
    session: AsyncSession,
    pr_id: str,
    for_update: bool = False,
) -> PullRequest | None:
    """Retrieve a pull request by id, optionally locking its row."""
    stmt = select(PullRequest).where(PullRequest.id == pr_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def lock_open_prs_reviewed_by(
    session: AsyncSession,
    reviewer_ids: Iterable[str],
) -> list[PullRequest]:
    """Lock every OPEN pull request that has one of the reviewers assigned.

    Rows are selected and locked in ascending id order so that two
    concurrent cascades always acquire overlapping locks in the same order.

    Args:
        session: Active async database session.
        reviewer_ids: Reviewer ids to look for.

    Returns:
        The locked PullRequest rows, ordered by id.
    """
    ids = list(reviewer_ids)
    if not ids:
        return []
    reviewed = (
        select(ReviewAssignment.pr_id)
        .where(ReviewAssignment.reviewer_id.in_(ids))
        .scalar_subquery()
    )
    stmt = (
        select(PullRequest)
        .where(PullRequest.status == PRStatus.OPEN, PullRequest.id.in_(reviewed))
        .order_by(PullRequest.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_reviewer_ids(
    session: AsyncSession,
    pr_id: str,
) -> list[str]:
    """Return the current reviewers of a pull request in ascending id order."""
    stmt = (
        select(ReviewAssignment.reviewer_id)
        .where(ReviewAssignment.pr_id == pr_id)
        .order_by(ReviewAssignment.reviewer_id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_assignment(
    session: AsyncSession,
    pr_id: str,
    reviewer_id: str,
) -> None:
    """Assign a reviewer to a pull request."""
    session.add(ReviewAssignment(pr_id=pr_id, reviewer_id=reviewer_id))
    await session.flush()


async def remove_assignment(
    session: AsyncSession,
    pr_id: str,
    reviewer_id: str,
) -> int:
    """Delete a reviewer assignment.

    Returns:
        Number of rows deleted (0 or 1).
    """
    stmt = delete(ReviewAssignment).where(
        ReviewAssignment.pr_id == pr_id,
        ReviewAssignment.reviewer_id == reviewer_id,
    )
    result = await session.execute(stmt)
    return result.rowcount  # type: ignore[attr-defined]


async def record_reassignment(
    session: AsyncSession,
    pr_id: str,
    old_reviewer_id: str,
    new_reviewer_id: str | None,
) -> ReassignmentEvent:
    """Append one reassignment event to the history log."""
    event = ReassignmentEvent(
        pr_id=pr_id,
        old_reviewer_id=old_reviewer_id,
        new_reviewer_id=new_reviewer_id,
    )
    session.add(event)
    await session.flush()
    return event


async def list_reassignments(
    session: AsyncSession,
    pr_id: str,
) -> list[ReassignmentEvent]:
    """Return a pull request's reassignment history, most recent first."""
    stmt = (
        select(ReassignmentEvent)
        .where(ReassignmentEvent.pr_id == pr_id)
        .order_by(ReassignmentEvent.changed_at.desc(), ReassignmentEvent.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
