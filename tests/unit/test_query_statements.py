"""Unit tests for the SQL emitted by locking and upsert queries.

Statements are captured from a mocked session and compiled for the
PostgreSQL dialect, which is where row locks and ON CONFLICT apply.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from reviewpool.database.connection import is_transient_failure
from reviewpool.database.models.team import User
from reviewpool.database.queries import pull_request as pr_queries
from reviewpool.database.queries import team as team_queries


def _session(dialect_name: str = "postgresql", rows: list[str] | None = None) -> MagicMock:
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows or []
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect_name
    session.execute = AsyncMock(return_value=result)
    session.get = AsyncMock(return_value=None)
    return session


def _sql(session: MagicMock, dialect=None) -> str:
    stmt = session.execute.await_args.args[0]
    compiled = stmt.compile(dialect=dialect or postgresql.dialect())
    return " ".join(str(compiled).split())


class TestMemberDeactivation:
    @pytest.mark.asyncio
    async def test_single_update_without_row_lock(self) -> None:
        session = _session(rows=["u3", "u1"])

        ids = await team_queries.deactivate_active_members(session, 7)

        assert ids == ["u1", "u3"]
        session.execute.assert_awaited_once()
        sql = _sql(session)
        assert sql.startswith("UPDATE users SET")
        assert "is_active=" in sql
        assert "RETURNING users.id" in sql
        assert "FOR UPDATE" not in sql

    @pytest.mark.asyncio
    async def test_no_active_members(self) -> None:
        assert await team_queries.deactivate_active_members(_session(), 7) == []


class TestPullRequestLocking:
    @pytest.mark.asyncio
    async def test_open_prs_locked_in_id_order(self) -> None:
        session = _session()

        await pr_queries.lock_open_prs_reviewed_by(session, ["u1", "u2"])

        sql = _sql(session)
        assert sql.endswith("ORDER BY pull_requests.id ASC FOR UPDATE")

    @pytest.mark.asyncio
    async def test_empty_reviewer_set_issues_no_query(self) -> None:
        session = _session()

        assert await pr_queries.lock_open_prs_reviewed_by(session, []) == []
        session.execute.assert_not_awaited()


class TestUpsertMember:
    @pytest.mark.asyncio
    async def test_postgresql_on_conflict_update(self) -> None:
        session = _session("postgresql")

        await team_queries.upsert_member(session, 3, "u1", "Alice", True)

        sql = _sql(session)
        assert sql.startswith("INSERT INTO users")
        assert "ON CONFLICT (id) DO UPDATE SET" in sql
        for column in ("username", "team_id", "is_active"):
            assert f"{column} = excluded.{column}" in sql
        session.get.assert_awaited_once_with(User, "u1", populate_existing=True)

    @pytest.mark.asyncio
    async def test_sqlite_on_conflict_update(self) -> None:
        session = _session("sqlite")

        await team_queries.upsert_member(session, 3, "u1", "Alice", False)

        assert "ON CONFLICT (id) DO UPDATE SET" in _sql(session, sqlite.dialect())


class DriverError(Exception):
    def __init__(self, sqlstate: str | None) -> None:
        super().__init__("driver failure")
        self.sqlstate = sqlstate


class TestTransientFailure:
    @pytest.mark.parametrize("sqlstate", ["40001", "40P01", "55P03", "57014", "08006"])
    def test_retryable_sqlstates(self, sqlstate: str) -> None:
        assert is_transient_failure(DBAPIError("SELECT", {}, DriverError(sqlstate)))

    @pytest.mark.parametrize("sqlstate", ["42601", "22001", None])
    def test_other_driver_errors(self, sqlstate: str | None) -> None:
        assert not is_transient_failure(DBAPIError("SELECT", {}, DriverError(sqlstate)))

    def test_operational_error(self) -> None:
        assert is_transient_failure(OperationalError("SELECT", {}, DriverError(None)))

    def test_integrity_error_is_never_transient(self) -> None:
        assert not is_transient_failure(IntegrityError("INSERT", {}, DriverError("23505")))
