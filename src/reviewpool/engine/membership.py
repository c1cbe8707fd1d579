"""Membership store: teams, users and their active flags.

Teams are created once with an initial member list. Members are upserted
by id, so re-submitting a known user moves it to the new team and updates
its name and active flag instead of failing.

Example:
    >>> store = MembershipStore(session_factory)
    >>> team = await store.create_team("backend", [Member(user_id="u1", username="Alice")])
    >>> user = await store.set_user_active("u1", False)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Callable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.connection import is_unique_violation
from reviewpool.database.queries import team as team_queries
from reviewpool.database.queries import user as user_queries
from reviewpool.engine.types import Member, PullRequestShort, TeamView, UserView
from reviewpool.errors import TeamExistsError, TeamNotFoundError, UserNotFoundError

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]


class MembershipStore:
    """Team creation, lookup and user activation.

    Attributes:
        session_factory: Callable that produces async database sessions.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.session_factory = session_factory
        self._logger = (log or logger).bind(component="MembershipStore")

    async def create_team(self, name: str, members: Sequence[Member]) -> TeamView:
        """Create a team and upsert its members in one transaction.

        Args:
            name: Unique team name.
            members: Initial members; known ids are updated and rebound.

        Returns:
            The team with every member currently bound to it.

        Raises:
            TeamExistsError: If the name is already taken.
        """
        async with self.session_factory() as session:
            async with session.begin():
                try:
                    team = await team_queries.insert_team(session, name)
                except IntegrityError as e:
                    if is_unique_violation(e):
                        raise TeamExistsError() from e
                    raise

                for member in members:
                    await team_queries.upsert_member(
                        session,
                        team_id=team.id,
                        user_id=member.user_id,
                        username=member.username,
                        is_active=member.is_active,
                    )

                rows = await team_queries.list_team_members(session, team.id)

        self._logger.info("team_created", team_name=name, members=len(rows))
        return TeamView(
            team_name=name,
            members=[
                Member(user_id=u.id, username=u.username, is_active=u.is_active)
                for u in rows
            ],
        )

    async def get_team(self, name: str) -> TeamView:
        """Fetch a team with its members.

        Raises:
            TeamNotFoundError: If no team has this name.
        """
        async with self.session_factory() as session:
            team = await team_queries.get_team_by_name(session, name)
            if team is None:
                raise TeamNotFoundError()
            rows = await team_queries.list_team_members(session, team.id)

        return TeamView(
            team_name=team.name,
            members=[
                Member(user_id=u.id, username=u.username, is_active=u.is_active)
                for u in rows
            ],
        )

    async def set_user_active(self, user_id: str, is_active: bool) -> UserView:
        """Flip a user's active flag.

        Only the flag changes; existing reviewer assignments are left as
        they are. Team-wide deactivation with reviewer repair is done by
        DeactivationCascade.

        Args:
            user_id: User identifier.
            is_active: New value of the flag.

        Returns:
            The updated user joined with its team name.

        Raises:
            UserNotFoundError: If the id is unknown.
        """
        async with self.session_factory() as session:
            async with session.begin():
                user = await user_queries.get_user(session, user_id, for_update=True)
                if user is None:
                    raise UserNotFoundError()
                user.is_active = is_active
                await session.flush()
                view = UserView(
                    user_id=user.id,
                    username=user.username,
                    team_name=user.team.name,
                    is_active=user.is_active,
                )

        self._logger.info("user_active_updated", user_id=user_id, is_active=is_active)
        return view

    async def list_reviewed_prs(self, user_id: str) -> list[PullRequestShort]:
        """List the pull requests a user currently reviews, newest first.

        An unknown user simply has no reviews.
        """
        async with self.session_factory() as session:
            prs = await user_queries.list_reviewed_prs(session, user_id)

        return [
            PullRequestShort(
                pull_request_id=pr.id,
                pull_request_name=pr.name,
                author_id=pr.author_id,
                status=pr.status,
            )
            for pr in prs
        ]
