"""Unit tests for the pull request state machine.

Tests cover:
- The VALID_TRANSITIONS table
- InvalidTransitionError messages
- transition() on a mocked session
- ensure_open() and to_view() helpers
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from reviewpool.database.models.pull_request import PRStatus, PullRequest
from reviewpool.engine.merge import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    PRStateMachine,
    ensure_open,
    to_view,
    validate_transition,
)
from reviewpool.errors import InternalError, PRMergedError


def _pr(status: PRStatus = PRStatus.OPEN) -> PullRequest:
    return PullRequest(
        id="pr-1",
        name="Add search",
        author_id="u1",
        status=status,
        created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )


class TestValidTransitions:
    def test_every_status_is_defined(self) -> None:
        assert set(VALID_TRANSITIONS) == set(PRStatus)

    def test_merged_is_terminal(self) -> None:
        assert VALID_TRANSITIONS[PRStatus.MERGED] == set()

    @pytest.mark.parametrize(
        "current,target,expected",
        [
            (PRStatus.OPEN, PRStatus.MERGED, True),
            (PRStatus.OPEN, PRStatus.OPEN, False),
            (PRStatus.MERGED, PRStatus.OPEN, False),
            (PRStatus.MERGED, PRStatus.MERGED, False),
        ],
    )
    def test_validate_transition(
        self, current: PRStatus, target: PRStatus, expected: bool
    ) -> None:
        assert validate_transition(current, target) is expected


class TestInvalidTransitionError:
    def test_error_without_pr_id(self) -> None:
        error = InvalidTransitionError(PRStatus.MERGED, PRStatus.OPEN)
        assert str(error) == "Invalid transition from MERGED to OPEN"
        assert error.pr_id is None

    def test_error_with_pr_id(self) -> None:
        error = InvalidTransitionError(PRStatus.MERGED, PRStatus.OPEN, "pr-9")
        assert "pr-9" in str(error)
        assert error.current == PRStatus.MERGED
        assert error.target == PRStatus.OPEN

    def test_is_internal_error(self) -> None:
        error = InvalidTransitionError(PRStatus.MERGED, PRStatus.OPEN)
        assert isinstance(error, InternalError)
        assert error.code == "INTERNAL"


class TestTransition:
    @pytest.fixture
    def session(self) -> AsyncMock:
        session = AsyncMock()
        session.flush = AsyncMock()
        session.refresh = AsyncMock()
        return session

    @pytest.mark.asyncio
    async def test_open_to_merged(self, session: AsyncMock) -> None:
        machine = PRStateMachine(MagicMock())
        pr = _pr()

        result = await machine.transition(session, pr, PRStatus.MERGED)

        assert result is pr
        assert pr.status == PRStatus.MERGED
        assert pr.merged_at is not None
        session.flush.assert_awaited_once()
        session.refresh.assert_awaited_once_with(pr)

    @pytest.mark.asyncio
    async def test_merged_cannot_reopen(self, session: AsyncMock) -> None:
        machine = PRStateMachine(MagicMock())
        pr = _pr(PRStatus.MERGED)

        with pytest.raises(InvalidTransitionError):
            await machine.transition(session, pr, PRStatus.OPEN)

        assert pr.status == PRStatus.MERGED
        session.flush.assert_not_awaited()


class TestHelpers:
    def test_ensure_open_accepts_open(self) -> None:
        ensure_open(_pr())

    def test_ensure_open_rejects_merged(self) -> None:
        with pytest.raises(PRMergedError):
            ensure_open(_pr(PRStatus.MERGED))

    def test_to_view_copies_reviewers(self) -> None:
        reviewers = ["u2", "u3"]

        view = to_view(_pr(), reviewers)
        reviewers.append("u4")

        assert view.pull_request_id == "pr-1"
        assert view.pull_request_name == "Add search"
        assert view.author_id == "u1"
        assert view.status == PRStatus.OPEN
        assert view.assigned_reviewers == ["u2", "u3"]
        assert view.merged_at is None
