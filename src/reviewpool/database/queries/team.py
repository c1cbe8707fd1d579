"""Team and membership query functions for Reviewpool.

Provides async functions for reading and writing Team and User rows. None of
these functions opens or commits a transaction; callers run them inside the
unit of work of the operation they belong to.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.team import Team, User


async def get_team_by_name(
    session: AsyncSession,
    name: str,
) -> Team | None:
    """Retrieve a team by its unique name.

    Args:
        session: Active async database session.
        name: Team name.

    Returns:
        The Team instance if found, None otherwise.
    """
    stmt = select(Team).where(Team.name == name)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def insert_team(
    session: AsyncSession,
    name: str,
) -> Team:
    """Insert a new team row and flush it so its id is available.

    Args:
        session: Active async database session.
        name: Unique team name.

    Returns:
        The newly created Team instance.

    Raises:
        sqlalchemy.exc.IntegrityError: If the name is already taken.
    """
    team = Team(name=name)
    session.add(team)
    await session.flush()
    return team


def _insert_for(session: AsyncSession) -> Any:
    """Return the dialect's INSERT construct that supports ON CONFLICT."""
    if session.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def upsert_member(
    session: AsyncSession,
    team_id: int,
    user_id: str,
    username: str,
    is_active: bool,
) -> User | None:
    """Insert a user or update an existing one, binding it to a team.

    Runs as a single ``INSERT ... ON CONFLICT (id) DO UPDATE``, so two
    concurrent submissions of the same new user id both succeed and the
    last writer wins.

    Args:
        session: Active async database session.
        team_id: Id of the team the user now belongs to.
        user_id: User identifier.
        username: Display name.
        is_active: Active flag.

    Returns:
        The persistent User instance, reloaded from the row.
    """
    insert = _insert_for(session)
    stmt = insert(User).values(
        id=user_id,
        username=username,
        team_id=team_id,
        is_active=is_active,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.id],
        set_={
            "username": stmt.excluded.username,
            "team_id": stmt.excluded.team_id,
            "is_active": stmt.excluded.is_active,
            "updated_at": func.now(),
        },
    )
    await session.execute(stmt)
    return await session.get(User, user_id, populate_existing=True)


async def list_team_members(
    session: AsyncSession,
    team_id: int,
) -> list[User]:
    """List all members of a team ordered by user id."""
    stmt = select(User).where(User.team_id == team_id).order_by(User.id.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def deactivate_active_members(
    session: AsyncSession,
    team_id: int,
) -> list[str]:
    """Flip every active member of a team to inactive.

    A plain ``UPDATE ... RETURNING`` takes the weaker row lock, which does
    not block foreign-key checks from concurrent reviewer inserts that
    reference these users. No ``SELECT ... FOR UPDATE`` is issued.

    Args:
        session: Active async database session.
        team_id: Id of the team.

    Returns:
        Ids of the users that were active before the call, ascending.
    """
    stmt = (
        update(User)
        .where(User.team_id == team_id, User.is_active.is_(True))
        .values(is_active=False)
        .returning(User.id)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return sorted(result.scalars().all())
