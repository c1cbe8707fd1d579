"""Service facade composing the Reviewpool engines.

ReviewService is the single entry point used by the HTTP adapter and the
CLI. It validates input before touching the store, applies default limits,
and runs every call under a deadline. When the deadline expires the
running unit of work is cancelled, its transaction rolls back, and
``TimeoutError`` reaches the caller.

Example:
    >>> service = ReviewService(session_factory, EngineConfig())
    >>> pr = await service.create_pr("pr-1", "Add search", "u1")
    >>> await service.merge_pr("pr-1")
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import Callable, Protocol, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.config import EngineConfig
from reviewpool.engine.assignment import AssignmentEngine
from reviewpool.engine.cascade import DeactivationCascade
from reviewpool.engine.membership import MembershipStore
from reviewpool.engine.merge import PRStateMachine
from reviewpool.engine.random_source import RandomSource
from reviewpool.engine.stats import AggregationEngine
from reviewpool.engine.types import (
    DeactivateResult,
    GlobalStats,
    Member,
    PRStats,
    PullRequestShort,
    PullRequestView,
    ReviewerStats,
    StatsFilter,
    StatsSummary,
    TeamView,
    UserView,
)
from reviewpool.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]

T = TypeVar("T")


class ReviewOperations(Protocol):
    """Capability set offered to transport adapters."""

    async def create_team(self, name: str, members: Sequence[Member]) -> TeamView: ...

    async def get_team(self, name: str) -> TeamView: ...

    async def set_user_active(self, user_id: str, is_active: bool) -> UserView: ...

    async def list_reviewed_prs(self, user_id: str) -> list[PullRequestShort]: ...

    async def create_pr(self, pr_id: str, name: str, author_id: str) -> PullRequestView: ...

    async def reassign_reviewer(
        self, pr_id: str, old_reviewer_id: str
    ) -> tuple[PullRequestView, str]: ...

    async def merge_pr(self, pr_id: str) -> PullRequestView: ...

    async def deactivate_team(self, team_name: str) -> DeactivateResult: ...

    async def global_stats(self) -> GlobalStats: ...

    async def summary(self, stats_filter: StatsFilter) -> StatsSummary: ...

    async def reviewer_stats(self, user_id: str, limit: int = 0) -> ReviewerStats: ...

    async def pr_stats(self, pr_id: str) -> PRStats: ...


def _require(value: str | None, field: str) -> str:
    """Return a stripped non-empty value or raise InvalidArgumentError."""
    if value is None or not value.strip():
        raise InvalidArgumentError(f"invalid argument: {field} is required")
    return value


class ReviewService:
    """Validated, deadline-bounded access to all engine operations.

    Attributes:
        config: Engine settings (deadline, reviewer count, default limit).
        membership: Team and user store.
        assignment: PR creation and reviewer swap.
        merger: Merge state machine.
        cascade: Team deactivation cascade.
        aggregation: Statistics.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        config: EngineConfig | None = None,
        random_source: RandomSource | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        base = log or logger
        source = random_source or RandomSource()

        self.membership = MembershipStore(session_factory, log=base)
        self.assignment = AssignmentEngine(
            session_factory,
            random_source=source,
            max_reviewers=self.config.max_reviewers,
            log=base,
        )
        self.merger = PRStateMachine(session_factory, log=base)
        self.cascade = DeactivationCascade(session_factory, random_source=source, log=base)
        self.aggregation = AggregationEngine(
            session_factory,
            default_limit=self.config.default_stats_limit,
            log=base,
        )
        self._logger = base.bind(component="ReviewService")

    def _limit(self, limit: int) -> int:
        return limit if limit > 0 else self.config.default_stats_limit

    async def _run(self, operation: str, call: Awaitable[T]) -> T:
        """Await an engine call under the configured deadline."""
        try:
            return await asyncio.wait_for(call, timeout=self.config.operation_timeout_seconds)
        except TimeoutError:
            self._logger.warning(
                "operation_timed_out",
                operation=operation,
                timeout_seconds=self.config.operation_timeout_seconds,
            )
            raise

    # --- membership -------------------------------------------------------

    async def create_team(self, name: str, members: Sequence[Member]) -> TeamView:
        _require(name, "team_name")
        for member in members:
            _require(member.user_id, "user_id")
        return await self._run("create_team", self.membership.create_team(name, members))

    async def get_team(self, name: str) -> TeamView:
        _require(name, "team_name")
        return await self._run("get_team", self.membership.get_team(name))

    async def set_user_active(self, user_id: str, is_active: bool) -> UserView:
        _require(user_id, "user_id")
        return await self._run(
            "set_user_active", self.membership.set_user_active(user_id, is_active)
        )

    async def list_reviewed_prs(self, user_id: str) -> list[PullRequestShort]:
        _require(user_id, "user_id")
        return await self._run("list_reviewed_prs", self.membership.list_reviewed_prs(user_id))

    # --- pull requests ----------------------------------------------------

    async def create_pr(self, pr_id: str, name: str, author_id: str) -> PullRequestView:
        _require(pr_id, "pull_request_id")
        _require(name, "pull_request_name")
        _require(author_id, "author_id")
        return await self._run("create_pr", self.assignment.create_pr(pr_id, name, author_id))

    async def reassign_reviewer(
        self, pr_id: str, old_reviewer_id: str
    ) -> tuple[PullRequestView, str]:
        _require(pr_id, "pull_request_id")
        _require(old_reviewer_id, "old_user_id")
        return await self._run(
            "reassign_reviewer",
            self.assignment.reassign_reviewer(pr_id, old_reviewer_id),
        )

    async def merge_pr(self, pr_id: str) -> PullRequestView:
        _require(pr_id, "pull_request_id")
        return await self._run("merge_pr", self.merger.merge_pr(pr_id))

    async def deactivate_team(self, team_name: str) -> DeactivateResult:
        _require(team_name, "team_name")
        return await self._run("deactivate_team", self.cascade.deactivate_team(team_name))

    # --- statistics -------------------------------------------------------

    async def global_stats(self) -> GlobalStats:
        return await self._run("global_stats", self.aggregation.global_stats())

    async def summary(self, stats_filter: StatsFilter) -> StatsSummary:
        bounded = stats_filter.model_copy(update={"limit": self._limit(stats_filter.limit)})
        return await self._run("summary", self.aggregation.summary(bounded))

    async def reviewer_stats(self, user_id: str, limit: int = 0) -> ReviewerStats:
        _require(user_id, "user_id")
        return await self._run(
            "reviewer_stats",
            self.aggregation.reviewer_stats(user_id, self._limit(limit)),
        )

    async def pr_stats(self, pr_id: str) -> PRStats:
        _require(pr_id, "pull_request_id")
        return await self._run("pr_stats", self.aggregation.pr_stats(pr_id))
