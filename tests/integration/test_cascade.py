"""Integration tests for the team deactivation cascade."""

from __future__ import annotations

import asyncio
import random

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session

from conftest import fetch_assignments, fetch_history
from reviewpool.config import EngineConfig
from reviewpool.database.queries import pull_request as pr_queries
from reviewpool.engine.cascade import DeactivationCascade
from reviewpool.engine.random_source import RandomSource
from reviewpool.engine.service import ReviewService
from reviewpool.engine.types import DeactivateResult, Member
from reviewpool.errors import EntropyUnavailableError, TeamNotFoundError


@pytest.fixture
def cascade(session_factory, random_source) -> DeactivationCascade:
    return DeactivationCascade(session_factory, random_source=random_source)


@pytest.mark.integration
class TestDeactivateTeam:
    """Tests for bulk deactivation with reviewer repair."""

    @pytest.mark.asyncio
    async def test_reviewers_replaced_from_other_teams(
        self, cascade, service, session_factory, backend_team, frontend_team
    ):
        pr = await service.create_pr("pr-1", "Add search", "u1")
        original = sorted(pr.assigned_reviewers)

        result = await cascade.deactivate_team("backend")

        assert result == DeactivateResult(deactivated_users=4, reassigned=2, removed=0)
        reviewers = await fetch_assignments(session_factory, "pr-1")
        assert len(reviewers) == 2
        assert set(reviewers) <= set(frontend_team)

        history = await fetch_history(session_factory, "pr-1")
        # Slots are repaired in ascending reviewer id order
        assert [old for old, _ in history] == original
        assert sorted(new for _, new in history) == reviewers

    @pytest.mark.asyncio
    async def test_all_members_deactivated(self, cascade, membership, backend_team):
        await cascade.deactivate_team("backend")

        team = await membership.get_team("backend")
        assert all(not m.is_active for m in team.members)

    @pytest.mark.asyncio
    async def test_slots_removed_without_candidates(
        self, cascade, service, session_factory, backend_team
    ):
        pr = await service.create_pr("pr-1", "Add search", "u1")

        result = await cascade.deactivate_team("backend")

        assert result == DeactivateResult(deactivated_users=4, reassigned=0, removed=2)
        assert await fetch_assignments(session_factory, "pr-1") == []
        assert await fetch_history(session_factory, "pr-1") == [
            (r, None) for r in sorted(pr.assigned_reviewers)
        ]

    @pytest.mark.asyncio
    async def test_replacement_not_reused_within_pr(
        self, cascade, service, membership, session_factory, backend_team
    ):
        await membership.create_team("ops", [Member(user_id="o1", username="Ops")])
        await service.create_pr("pr-1", "Add search", "u1")

        result = await cascade.deactivate_team("backend")

        assert result.reassigned == 1
        assert result.removed == 1
        assert await fetch_assignments(session_factory, "pr-1") == ["o1"]

    @pytest.mark.asyncio
    async def test_merged_prs_are_untouched(
        self, cascade, service, session_factory, backend_team, frontend_team
    ):
        merged = await service.create_pr("pr-merged", "Old work", "u1")
        await service.merge_pr("pr-merged")

        result = await cascade.deactivate_team("backend")

        assert result.reassigned == 0
        assert result.removed == 0
        assert await fetch_assignments(session_factory, "pr-merged") == sorted(
            merged.assigned_reviewers
        )
        assert await fetch_history(session_factory, "pr-merged") == []

    @pytest.mark.asyncio
    async def test_counters_cover_every_slot(
        self, cascade, service, session_factory, backend_team, frontend_team
    ):
        slots = 0
        for i, author in enumerate(["u1", "u2", "u3"]):
            pr = await service.create_pr(f"pr-{i}", "Change", author)
            slots += len(pr.assigned_reviewers)

        result = await cascade.deactivate_team("backend")

        assert result.reassigned + result.removed == slots
        for i in range(3):
            reviewers = await fetch_assignments(session_factory, f"pr-{i}")
            assert not set(reviewers) & set(backend_team)

    @pytest.mark.asyncio
    async def test_team_without_active_members_is_noop(
        self, cascade, membership, backend_team
    ):
        await cascade.deactivate_team("backend")

        result = await cascade.deactivate_team("backend")

        assert result == DeactivateResult()

    @pytest.mark.asyncio
    async def test_unknown_team_raises(self, cascade):
        with pytest.raises(TeamNotFoundError):
            await cascade.deactivate_team("missing")

    @pytest.mark.asyncio
    async def test_other_teams_prs_unaffected(
        self, cascade, service, session_factory, backend_team, frontend_team
    ):
        pr = await service.create_pr("pr-f", "Restyle", "f1")

        await cascade.deactivate_team("backend")

        assert await fetch_assignments(session_factory, "pr-f") == sorted(pr.assigned_reviewers)


class FailsOnSecondDraw(random.Random):
    """Generator that loses its entropy source after the first pick."""

    def __init__(self) -> None:
        super().__init__(7)
        self.draws = 0

    def sample(self, population, k, *, counts=None):  # type: ignore[override]
        self.draws += 1
        if self.draws > 1:
            raise OSError("getrandom failed")
        return super().sample(population, k)


async def _member_flags(membership, team_name: str) -> list[bool]:
    team = await membership.get_team(team_name)
    return [m.is_active for m in team.members]


@pytest.mark.integration
class TestCascadeAtomicity:
    """A failed or cancelled cascade leaves no partial state behind."""

    @pytest.mark.asyncio
    async def test_failure_midway_rolls_back(
        self, service, membership, session_factory, backend_team, frontend_team
    ):
        pr = await service.create_pr("pr-1", "Add search", "u1")
        cascade = DeactivationCascade(
            session_factory, random_source=RandomSource(FailsOnSecondDraw())
        )

        with pytest.raises(EntropyUnavailableError):
            await cascade.deactivate_team("backend")

        assert await _member_flags(membership, "backend") == [True, True, True, True]
        assert await fetch_assignments(session_factory, "pr-1") == sorted(pr.assigned_reviewers)
        assert await fetch_history(session_factory, "pr-1") == []

    @pytest.mark.asyncio
    async def test_deadline_cancellation_rolls_back(
        self,
        monkeypatch,
        membership,
        service,
        session_factory,
        random_source,
        backend_team,
        frontend_team,
    ):
        pr = await service.create_pr("pr-1", "Add search", "u1")
        record = pr_queries.record_reassignment

        async def slow_record(*args, **kwargs):
            event = await record(*args, **kwargs)
            await asyncio.sleep(5)
            return event

        monkeypatch.setattr(pr_queries, "record_reassignment", slow_record)
        bounded = ReviewService(
            session_factory,
            EngineConfig(operation_timeout_seconds=0.2),
            random_source=random_source,
        )

        with pytest.raises(TimeoutError):
            await bounded.deactivate_team("backend")

        assert await _member_flags(membership, "backend") == [True, True, True, True]
        assert await fetch_assignments(session_factory, "pr-1") == sorted(pr.assigned_reviewers)
        assert await fetch_history(session_factory, "pr-1") == []


@pytest.mark.integration
class TestCascadeLocking:
    @pytest.mark.asyncio
    async def test_only_pull_requests_are_locked(
        self, cascade, service, backend_team, frontend_team
    ):
        await service.create_pr("pr-2", "Fix cache", "u2")
        await service.create_pr("pr-1", "Add search", "u1")
        statements: list[str] = []

        def record(orm_execute_state):
            compiled = orm_execute_state.statement.compile(dialect=postgresql.dialect())
            statements.append(" ".join(str(compiled).split()))

        event.listen(Session, "do_orm_execute", record)
        try:
            await cascade.deactivate_team("backend")
        finally:
            event.remove(Session, "do_orm_execute", record)

        locking = [sql for sql in statements if "FOR UPDATE" in sql]
        assert len(locking) == 1
        assert locking[0].startswith("SELECT pull_requests.id")
        assert locking[0].endswith("ORDER BY pull_requests.id ASC FOR UPDATE")
        assert any(
            sql.startswith("UPDATE users SET") and "RETURNING users.id" in sql
            for sql in statements
        )
