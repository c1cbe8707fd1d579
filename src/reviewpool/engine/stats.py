"""Read-only aggregation over assignments, pull requests and history.

Each call reads from a single snapshot: on PostgreSQL the read transaction
runs at REPEATABLE READ, so the groups of one result never mix states from
before and after a concurrent commit. Nothing here takes row locks, so
statistics never block writers.
"""

from __future__ import annotations

from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.pull_request import PRStatus
from reviewpool.database.queries import pull_request as pr_queries
from reviewpool.database.queries import stats as stats_queries
from reviewpool.database.queries import user as user_queries
from reviewpool.engine.types import (
    GlobalStats,
    PRStat,
    PRStats,
    PullRequestShort,
    ReassignmentRecord,
    ReviewerStats,
    StatsFilter,
    StatsSummary,
    StatusStat,
    TeamStat,
    UserStat,
)
from reviewpool.errors import PRNotFoundError, UserNotFoundError

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]

DEFAULT_LIMIT = 10


async def _use_snapshot(session: AsyncSession) -> None:
    """Pin the session's transaction to one consistent snapshot."""
    if session.get_bind().dialect.name == "postgresql":
        await session.connection(execution_options={"isolation_level": "REPEATABLE READ"})


class AggregationEngine:
    """Global, filtered, per-reviewer and per-PR statistics.

    Attributes:
        session_factory: Callable that produces async database sessions.
        default_limit: Row limit used when a call passes a non-positive one.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        default_limit: int = DEFAULT_LIMIT,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.default_limit = default_limit
        self._logger = (log or logger).bind(component="AggregationEngine")

    def _limit(self, limit: int) -> int:
        return limit if limit > 0 else self.default_limit

    async def global_stats(self) -> GlobalStats:
        """Count current assignments by reviewer, PR and team, and PRs by status.

        Every group is sorted by its key.
        """
        async with self.session_factory() as session:
            async with session.begin():
                await _use_snapshot(session)
                by_user = await stats_queries.assignment_counts_by_reviewer(session)
                by_pr = await stats_queries.assignment_counts_by_pr(session)
                by_status = await stats_queries.pr_counts_by_status(session)
                by_team = await stats_queries.assignment_counts_by_team(session)

        return GlobalStats(
            by_user=[UserStat(user_id=k, assign_cnt=v) for k, v in sorted(by_user)],
            by_pr=[PRStat(pr_id=k, assign_cnt=v) for k, v in sorted(by_pr)],
            by_status=[
                StatusStat(status=k, pr_count=v)
                for k, v in sorted(by_status, key=lambda row: row[0].value)
            ],
            by_team=[TeamStat(team_name=k, assign_cnt=v) for k, v in sorted(by_team)],
        )

    async def summary(self, stats_filter: StatsFilter | None = None) -> StatsSummary:
        """Aggregate over pull requests matching a creation window and status.

        Args:
            stats_filter: Optional bounds; ``limit`` caps the top reviewers.

        Returns:
            Top reviewers by assignment count (ties by reviewer id), PR counts
            per status and assignment counts per reviewer team.
        """
        f = stats_filter or StatsFilter()
        bounds = {
            "created_from": f.created_from,
            "created_to": f.created_to,
            "status": f.status,
        }

        async with self.session_factory() as session:
            async with session.begin():
                await _use_snapshot(session)
                top = await stats_queries.assignment_counts_by_reviewer(
                    session, limit=self._limit(f.limit), **bounds
                )
                statuses = await stats_queries.pr_counts_by_status(session, **bounds)
                teams = await stats_queries.assignment_counts_by_team(session, **bounds)

        return StatsSummary(
            top_reviewers=[UserStat(user_id=k, assign_cnt=v) for k, v in top],
            pr_status_counts=[StatusStat(status=k, pr_count=v) for k, v in statuses],
            team_assignments=[TeamStat(team_name=k, assign_cnt=v) for k, v in teams],
        )

    async def reviewer_stats(self, user_id: str, limit: int = 0) -> ReviewerStats:
        """Summarize one reviewer's current assignments.

        Args:
            user_id: Reviewer identifier.
            limit: Maximum number of recent pull requests listed.

        Raises:
            UserNotFoundError: If the id is unknown.
        """
        async with self.session_factory() as session:
            async with session.begin():
                await _use_snapshot(session)
                user = await user_queries.get_user(session, user_id)
                if user is None:
                    raise UserNotFoundError()
                counts = await stats_queries.reviewer_status_counts(session, user_id)
                recent = await user_queries.list_reviewed_prs(
                    session, user_id, limit=self._limit(limit)
                )

        return ReviewerStats(
            user_id=user_id,
            assign_cnt=sum(counts.values()),
            open_pr_cnt=counts.get(PRStatus.OPEN, 0),
            merged_pr_cnt=counts.get(PRStatus.MERGED, 0),
            recent_prs=[
                PullRequestShort(
                    pull_request_id=pr.id,
                    pull_request_name=pr.name,
                    author_id=pr.author_id,
                    status=pr.status,
                )
                for pr in recent
            ],
        )

    async def pr_stats(self, pr_id: str) -> PRStats:
        """Return a pull request's reviewers and its full reassignment history.

        Raises:
            PRNotFoundError: If the id is unknown.
        """
        async with self.session_factory() as session:
            async with session.begin():
                await _use_snapshot(session)
                pr = await pr_queries.get_pull_request(session, pr_id)
                if pr is None:
                    raise PRNotFoundError()
                reviewers = await pr_queries.list_reviewer_ids(session, pr_id)
                history = await pr_queries.list_reassignments(session, pr_id)

        return PRStats(
            pr_id=pr.id,
            pr_name=pr.name,
            author_id=pr.author_id,
            status=pr.status,
            reviewers=reviewers,
            created_at=pr.created_at,
            merged_at=pr.merged_at,
            reassignments=[
                ReassignmentRecord(
                    old_reviewer_id=e.old_reviewer_id,
                    new_reviewer_id=e.new_reviewer_id,
                    changed_at=e.changed_at,
                )
                for e in history
            ],
            transfer_cnt=len(history),
        )
