"""Pull request merge state machine for Reviewpool.

A pull request has exactly one transition: OPEN -> MERGED. MERGED is
terminal, and a merged pull request's reviewer assignments are frozen.
Merging is idempotent: merging a merged pull request returns it unchanged,
with the merge timestamp recorded by the first call.
"""

from __future__ import annotations

from typing import Callable

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.pull_request import PRStatus, PullRequest
from reviewpool.database.queries import pull_request as pr_queries
from reviewpool.engine.types import PullRequestView
from reviewpool.errors import InternalError, PRMergedError, PRNotFoundError

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]


class InvalidTransitionError(InternalError):
    """Raised when an invalid status transition is attempted.

    Attributes:
        current: The current pull request status.
        target: The attempted target status.
        pr_id: The ID of the pull request that failed to transition.
    """

    def __init__(self, current: PRStatus, target: PRStatus, pr_id: str | None = None):
        self.current = current
        self.target = target
        self.pr_id = pr_id
        msg = f"Invalid transition from {current.value} to {target.value}"
        if pr_id:
            msg += f" for pull request {pr_id}"
        super().__init__(msg)


# Authoritative state machine definition
VALID_TRANSITIONS: dict[PRStatus, set[PRStatus]] = {
    PRStatus.OPEN: {PRStatus.MERGED},
    PRStatus.MERGED: set(),  # Terminal state - no transitions allowed
}


def validate_transition(current: PRStatus, target: PRStatus) -> bool:
    """Validate if a status transition is allowed.

    Args:
        current: Current pull request status.
        target: Target pull request status.

    Returns:
        True if the transition is valid according to VALID_TRANSITIONS.
    """
    return target in VALID_TRANSITIONS.get(current, set())


def ensure_open(pr: PullRequest) -> None:
    """Reject reviewer changes on a pull request that is no longer OPEN.

    Raises:
        PRMergedError: If the pull request is merged.
    """
    if pr.status != PRStatus.OPEN:
        raise PRMergedError()


def to_view(pr: PullRequest, reviewers: list[str]) -> PullRequestView:
    """Project a pull request row and its reviewer ids into a result model."""
    return PullRequestView(
        pull_request_id=pr.id,
        pull_request_name=pr.name,
        author_id=pr.author_id,
        status=pr.status,
        assigned_reviewers=list(reviewers),
        created_at=pr.created_at,
        merged_at=pr.merged_at,
    )


class PRStateMachine:
    """Applies the OPEN -> MERGED transition under a row lock.

    Attributes:
        session_factory: Callable that produces async database sessions.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.session_factory = session_factory
        self._logger = (log or logger).bind(component="PRStateMachine")

    async def transition(
        self,
        session: AsyncSession,
        pr: PullRequest,
        target_status: PRStatus,
    ) -> PullRequest:
        """Move a locked pull request to a new status inside the caller's transaction.

        The merge timestamp is taken from the database clock.

        Args:
            session: Session holding the row lock on ``pr``.
            pr: The pull request to transition.
            target_status: Target status.

        Returns:
            The pull request with refreshed status and timestamps.

        Raises:
            InvalidTransitionError: If the transition is not valid.
        """
        current_status = pr.status
        if not validate_transition(current_status, target_status):
            raise InvalidTransitionError(current_status, target_status, pr.id)

        pr.status = target_status
        if target_status == PRStatus.MERGED:
            pr.merged_at = func.now()  # type: ignore[assignment]

        await session.flush()
        await session.refresh(pr)

        self._logger.info(
            "pr_transition",
            pr_id=pr.id,
            from_status=current_status.value,
            to_status=target_status.value,
        )
        return pr

    async def merge_pr(self, pr_id: str) -> PullRequestView:
        """Mark a pull request merged, idempotently.

        Args:
            pr_id: Pull request identifier.

        Returns:
            The merged pull request with its current reviewers.

        Raises:
            PRNotFoundError: If the id is unknown.
        """
        async with self.session_factory() as session:
            async with session.begin():
                pr = await pr_queries.get_pull_request(session, pr_id, for_update=True)
                if pr is None:
                    raise PRNotFoundError()

                already_merged = pr.status == PRStatus.MERGED
                if not already_merged:
                    pr = await self.transition(session, pr, PRStatus.MERGED)

                reviewers = await pr_queries.list_reviewer_ids(session, pr_id)
                view = to_view(pr, reviewers)

        self._logger.info(
            "pr_merged",
            pr_id=pr_id,
            already_merged=already_merged,
            merged_at=view.merged_at.isoformat() if view.merged_at else None,
        )
        return view
