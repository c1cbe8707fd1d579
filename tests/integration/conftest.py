"""Pytest fixtures for integration tests.

Engines run against an in-memory SQLite database through aiosqlite. The
production store is PostgreSQL; on SQLite ``SELECT ... FOR UPDATE`` is
dropped by the dialect, so these tests check atomicity, invariants and
outcomes of each operation, not lock contention.

Random picks come from a seeded generator so outcomes are reproducible.
"""

from __future__ import annotations

import random
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from reviewpool.config import EngineConfig
from reviewpool.database.models import Base, ReassignmentEvent, ReviewAssignment
from reviewpool.engine.membership import MembershipStore
from reviewpool.engine.random_source import RandomSource
from reviewpool.engine.service import ReviewService
from reviewpool.engine.types import Member
from reviewpool.web.app import create_app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite async engine with all tables."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def random_source() -> RandomSource:
    """Seeded random source for reproducible reviewer picks."""
    return RandomSource(random.Random(20240601))


@pytest_asyncio.fixture
async def membership(
    session_factory: async_sessionmaker[AsyncSession],
) -> MembershipStore:
    return MembershipStore(session_factory)


@pytest_asyncio.fixture
async def backend_team(membership: MembershipStore) -> list[str]:
    """Team "backend" with four active members u1..u4."""
    await membership.create_team(
        "backend",
        [Member(user_id=f"u{i}", username=f"User {i}") for i in range(1, 5)],
    )
    return ["u1", "u2", "u3", "u4"]


@pytest_asyncio.fixture
async def frontend_team(membership: MembershipStore) -> list[str]:
    """Team "frontend" with three active members f1..f3."""
    await membership.create_team(
        "frontend",
        [Member(user_id=f"f{i}", username=f"Front {i}") for i in range(1, 4)],
    )
    return ["f1", "f2", "f3"]


@pytest_asyncio.fixture
async def service(
    session_factory: async_sessionmaker[AsyncSession],
    random_source: RandomSource,
) -> ReviewService:
    return ReviewService(
        session_factory,
        EngineConfig(operation_timeout_seconds=10),
        random_source=random_source,
    )


@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    service: ReviewService,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the API bound to the test database.

    ASGITransport does not run the lifespan, so the state it would build
    is installed directly.
    """
    app = create_app()
    app.state.session_factory = session_factory
    app.state.service = service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def fetch_assignments(
    session_factory: async_sessionmaker[AsyncSession], pr_id: str
) -> list[str]:
    """Reviewer ids currently assigned to a pull request, sorted."""
    async with session_factory() as session:
        result = await session.execute(
            select(ReviewAssignment.reviewer_id)
            .where(ReviewAssignment.pr_id == pr_id)
            .order_by(ReviewAssignment.reviewer_id)
        )
        return list(result.scalars().all())


async def fetch_history(
    session_factory: async_sessionmaker[AsyncSession], pr_id: str
) -> list[tuple[str, str | None]]:
    """(old, new) reviewer pairs recorded for a pull request, in insertion order."""
    async with session_factory() as session:
        result = await session.execute(
            select(ReassignmentEvent.old_reviewer_id, ReassignmentEvent.new_reviewer_id)
            .where(ReassignmentEvent.pr_id == pr_id)
            .order_by(ReassignmentEvent.id)
        )
        return [(row[0], row[1]) for row in result.all()]
