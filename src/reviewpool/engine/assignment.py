"""Reviewer assignment engine for Reviewpool.

Creates pull requests with automatically picked reviewers and swaps one
reviewer for another on request. Both operations run as a single unit of
work: either every row they touch is committed, or none is.

Selection rules:
- On creation the candidate pool is the author's active teammates,
  excluding the author. Up to ``max_reviewers`` are sampled uniformly
  without replacement; a small pool yields fewer reviewers, never an error.
- On reassignment the pool is the active members of the *old reviewer's*
  team, excluding the author and everyone currently assigned. Exactly one
  candidate is drawn.

Example:
    >>> engine = AssignmentEngine(session_factory)
    >>> pr = await engine.create_pr("pr-1", "Add search", "u1")
    >>> pr, new_reviewer = await engine.reassign_reviewer("pr-1", pr.assigned_reviewers[0])
"""

from __future__ import annotations

from typing import Callable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.connection import is_unique_violation
from reviewpool.database.queries import pull_request as pr_queries
from reviewpool.database.queries import user as user_queries
from reviewpool.engine.merge import ensure_open, to_view
from reviewpool.engine.random_source import RandomSource
from reviewpool.engine.types import PullRequestView
from reviewpool.errors import (
    InvalidArgumentError,
    NoCandidateError,
    NotAssignedError,
    PRExistsError,
    PRNotFoundError,
    UserNotFoundError,
)

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]

DEFAULT_MAX_REVIEWERS = 2


class AssignmentEngine:
    """Pull request creation with auto-assignment, and manual reviewer swap.

    Attributes:
        session_factory: Callable that produces async database sessions.
        random_source: Uniform sampler used for every pick.
        max_reviewers: Reviewers assigned at creation when the pool allows.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        random_source: RandomSource | None = None,
        max_reviewers: int = DEFAULT_MAX_REVIEWERS,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.random_source = random_source or RandomSource()
        self.max_reviewers = max_reviewers
        self._logger = (log or logger).bind(component="AssignmentEngine")

    async def create_pr(self, pr_id: str, name: str, author_id: str) -> PullRequestView:
        """Create an OPEN pull request and auto-assign reviewers.

        A duplicate id is detected from the primary key violation on
        insert rather than by a prior lookup, so two concurrent creations
        with the same id cannot both succeed.

        Args:
            pr_id: Pull request identifier.
            name: Pull request title.
            author_id: Authoring user id.

        Returns:
            The created pull request and its reviewers.

        Raises:
            UserNotFoundError: If the author is unknown.
            InvalidArgumentError: If the author is inactive.
            PRExistsError: If the id is already used.
            EntropyUnavailableError: If reviewers cannot be drawn randomly.
        """
        async with self.session_factory() as session:
            async with session.begin():
                author = await user_queries.get_user(session, author_id)
                if author is None:
                    raise UserNotFoundError()
                if not author.is_active:
                    raise InvalidArgumentError("invalid argument: author inactive")

                try:
                    pr = await pr_queries.insert_pull_request(session, pr_id, name, author_id)
                except IntegrityError as e:
                    if is_unique_violation(e):
                        self._logger.warning("pr_create_duplicate", pr_id=pr_id)
                        raise PRExistsError() from e
                    raise

                pool = await user_queries.list_active_candidates(
                    session,
                    team_id=author.team_id,
                    exclude=[author_id],
                )
                reviewers = self.random_source.sample(pool, self.max_reviewers)
                for reviewer_id in reviewers:
                    await pr_queries.add_assignment(session, pr_id, reviewer_id)

                view = to_view(pr, reviewers)

        self._logger.info(
            "pr_created",
            pr_id=pr_id,
            author_id=author_id,
            reviewers=reviewers,
            pool_size=len(pool),
        )
        return view

    async def reassign_reviewer(
        self,
        pr_id: str,
        old_reviewer_id: str,
    ) -> tuple[PullRequestView, str]:
        """Replace one reviewer of an OPEN pull request.

        The pull request row is locked before its status and reviewer set
        are read, so a concurrent merge or reassignment of the same PR
        is serialized with this one.

        Args:
            pr_id: Pull request identifier.
            old_reviewer_id: Reviewer to replace.

        Returns:
            Tuple of (updated pull request, id of the replacement reviewer).

        Raises:
            PRNotFoundError: If the pull request is unknown.
            PRMergedError: If the pull request is merged.
            NotAssignedError: If old_reviewer_id is not a current reviewer.
            NoCandidateError: If no eligible replacement exists.
            EntropyUnavailableError: If the replacement cannot be drawn randomly.
        """
        async with self.session_factory() as session:
            async with session.begin():
                pr = await pr_queries.get_pull_request(session, pr_id, for_update=True)
                if pr is None:
                    raise PRNotFoundError()
                ensure_open(pr)

                reviewers = await pr_queries.list_reviewer_ids(session, pr_id)
                if old_reviewer_id not in reviewers:
                    self._logger.warning(
                        "reviewer_not_assigned",
                        pr_id=pr_id,
                        old_reviewer_id=old_reviewer_id,
                    )
                    raise NotAssignedError()

                old_reviewer = await user_queries.get_user(session, old_reviewer_id)
                if old_reviewer is None:
                    raise UserNotFoundError()

                pool = await user_queries.list_active_candidates(
                    session,
                    team_id=old_reviewer.team_id,
                    exclude=[pr.author_id, *reviewers],
                )
                replacement = self.random_source.choice(pool)
                if replacement is None:
                    raise NoCandidateError()

                await pr_queries.remove_assignment(session, pr_id, old_reviewer_id)
                await pr_queries.add_assignment(session, pr_id, replacement)
                await pr_queries.record_reassignment(
                    session, pr_id, old_reviewer_id, replacement
                )

                remaining = [r for r in reviewers if r != old_reviewer_id]
                view = to_view(pr, [*remaining, replacement])

        self._logger.info(
            "reviewer_reassigned",
            pr_id=pr_id,
            old_reviewer_id=old_reviewer_id,
            new_reviewer_id=replacement,
        )
        return view, replacement
