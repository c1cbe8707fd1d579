"""Unit tests for the ReviewService facade.

Engines are replaced with mocks: these tests cover input validation,
limit defaulting and the operation deadline, not store behavior.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from reviewpool.config import EngineConfig
from reviewpool.engine.assignment import AssignmentEngine
from reviewpool.engine.cascade import DeactivationCascade
from reviewpool.engine.membership import MembershipStore
from reviewpool.engine.merge import PRStateMachine
from reviewpool.engine.service import ReviewService
from reviewpool.engine.stats import AggregationEngine
from reviewpool.engine.types import Member, StatsFilter
from reviewpool.errors import InvalidArgumentError


@pytest.fixture
def service() -> ReviewService:
    svc = ReviewService(
        MagicMock(),
        EngineConfig(operation_timeout_seconds=1.0, max_reviewers=3, default_stats_limit=7),
    )
    svc.membership = AsyncMock(spec=MembershipStore)
    svc.assignment = AsyncMock(spec=AssignmentEngine)
    svc.merger = AsyncMock(spec=PRStateMachine)
    svc.cascade = AsyncMock(spec=DeactivationCascade)
    svc.aggregation = AsyncMock(spec=AggregationEngine)
    return svc


class TestComposition:
    def test_engines_share_config_and_random_source(self) -> None:
        svc = ReviewService(MagicMock(), EngineConfig(max_reviewers=3, default_stats_limit=5))

        assert svc.assignment.max_reviewers == 3
        assert svc.aggregation.default_limit == 5
        assert svc.assignment.random_source is svc.cascade.random_source

    def test_default_config(self) -> None:
        svc = ReviewService(MagicMock())
        assert svc.config.max_reviewers == 2


class TestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "pr_id,name,author_id",
        [
            ("", "Add search", "u1"),
            ("pr-1", "   ", "u1"),
            ("pr-1", "Add search", ""),
        ],
    )
    async def test_create_pr_requires_fields(
        self, service: ReviewService, pr_id: str, name: str, author_id: str
    ) -> None:
        with pytest.raises(InvalidArgumentError):
            await service.create_pr(pr_id, name, author_id)

        service.assignment.create_pr.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_team_requires_member_ids(self, service: ReviewService) -> None:
        with pytest.raises(InvalidArgumentError, match="user_id"):
            await service.create_team("backend", [Member(user_id=" ", username="Ghost")])

        service.membership.create_team.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_team_requires_name(self, service: ReviewService) -> None:
        with pytest.raises(InvalidArgumentError, match="team_name"):
            await service.create_team("", [])

    @pytest.mark.asyncio
    async def test_reassign_requires_old_reviewer(self, service: ReviewService) -> None:
        with pytest.raises(InvalidArgumentError, match="old_user_id"):
            await service.reassign_reviewer("pr-1", "")

        service.assignment.reassign_reviewer.assert_not_called()

    @pytest.mark.asyncio
    async def test_deactivate_requires_team_name(self, service: ReviewService) -> None:
        with pytest.raises(InvalidArgumentError):
            await service.deactivate_team("  ")

        service.cascade.deactivate_team.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_call_is_delegated(self, service: ReviewService) -> None:
        service.merger.merge_pr.return_value = "merged"

        assert await service.merge_pr("pr-1") == "merged"
        service.merger.merge_pr.assert_awaited_once_with("pr-1")


class TestLimits:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("given,expected", [(0, 7), (-3, 7), (4, 4)])
    async def test_reviewer_stats_limit(
        self, service: ReviewService, given: int, expected: int
    ) -> None:
        await service.reviewer_stats("u2", given)

        service.aggregation.reviewer_stats.assert_awaited_once_with("u2", expected)

    @pytest.mark.asyncio
    async def test_summary_limit_defaults(self, service: ReviewService) -> None:
        original = StatsFilter()

        await service.summary(original)

        passed = service.aggregation.summary.await_args.args[0]
        assert passed.limit == 7
        assert original.limit == 0


class TestDeadline:
    @pytest.mark.asyncio
    async def test_slow_operation_times_out(self, service: ReviewService) -> None:
        service.config = EngineConfig(operation_timeout_seconds=0.01)
        cancelled = asyncio.Event()

        async def slow(pr_id: str) -> None:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        service.merger.merge_pr.side_effect = slow

        with pytest.raises(TimeoutError):
            await service.merge_pr("pr-1")

        assert cancelled.is_set()
