"""Team deactivation cascade for Reviewpool.

Deactivating a team flips every active member to inactive and then repairs
every OPEN pull request that one of them reviews: each affected reviewer
slot is handed to an active user from another team, or dropped when no
such user is eligible. MERGED pull requests are never touched.

The cascade runs as one transaction:

1. Flip the team's active members to inactive with one
   ``UPDATE ... RETURNING``; the returned ids are the deactivated set.
   User rows are not locked with ``SELECT ... FOR UPDATE``, so foreign-key
   checks on reviewer inserts made by concurrent transactions never wait
   on this cascade.
2. Lock every OPEN pull request reviewed by the deactivated set, in
   ascending PR id order.
3. Walk those PRs by id, and within each PR the deactivated reviewers by
   id, replacing or removing each slot and recording one history event
   per slot.

The fixed walk order makes outcomes reproducible for a seeded random
source. PR rows are the only rows locked explicitly, always in the same
order, so two overlapping cascades cannot deadlock on each other.
"""

from __future__ import annotations

from typing import Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from reviewpool.database.models.pull_request import PullRequest
from reviewpool.database.queries import pull_request as pr_queries
from reviewpool.database.queries import team as team_queries
from reviewpool.database.queries import user as user_queries
from reviewpool.engine.random_source import RandomSource
from reviewpool.engine.types import DeactivateResult
from reviewpool.errors import TeamNotFoundError

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]


class DeactivationCascade:
    """Bulk team deactivation with reviewer repair.

    Attributes:
        session_factory: Callable that produces async database sessions.
        random_source: Uniform sampler used to pick replacements.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        random_source: RandomSource | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.random_source = random_source or RandomSource()
        self._logger = (log or logger).bind(component="DeactivationCascade")

    async def deactivate_team(self, team_name: str) -> DeactivateResult:
        """Deactivate all active members of a team and repair their open reviews.

        Args:
            team_name: Name of the team to deactivate.

        Returns:
            Counters of deactivated users, replaced slots and removed slots.
            A team without active members yields all zeros.

        Raises:
            TeamNotFoundError: If no team has this name.
            EntropyUnavailableError: If a replacement cannot be drawn randomly.
        """
        result = DeactivateResult()
        impacted: list[PullRequest] = []

        async with self.session_factory() as session:
            async with session.begin():
                team = await team_queries.get_team_by_name(session, team_name)
                if team is None:
                    raise TeamNotFoundError()

                deactivated = await team_queries.deactivate_active_members(session, team.id)
                if not deactivated:
                    self._logger.info("team_deactivated", team_name=team_name, **result.model_dump())
                    return result

                result.deactivated_users = len(deactivated)
                deactivated_set = set(deactivated)

                impacted = await pr_queries.lock_open_prs_reviewed_by(session, deactivated)
                for pr in impacted:
                    reviewers = await pr_queries.list_reviewer_ids(session, pr.id)
                    for reviewer_id in sorted(r for r in reviewers if r in deactivated_set):
                        replacement = await self._repair_slot(
                            session, pr.id, pr.author_id, reviewer_id, team.id
                        )
                        if replacement is None:
                            result.removed += 1
                        else:
                            result.reassigned += 1

        self._logger.info(
            "team_deactivated",
            team_name=team_name,
            impacted_prs=len(impacted),
            **result.model_dump(),
        )
        return result

    async def _repair_slot(
        self,
        session: AsyncSession,
        pr_id: str,
        author_id: str,
        reviewer_id: str,
        team_id: int,
    ) -> str | None:
        """Remove one deactivated reviewer from a PR and try to replace it.

        The pool is read after the removal, so replacements chosen earlier
        in the same pass over this PR are already excluded.

        Returns:
            The replacement reviewer id, or None if the slot was dropped.
        """
        await pr_queries.remove_assignment(session, pr_id, reviewer_id)
        current = await pr_queries.list_reviewer_ids(session, pr_id)
        pool = await user_queries.list_active_candidates(
            session,
            outside_team_id=team_id,
            exclude=[author_id, *current],
        )
        replacement = self.random_source.choice(pool)
        if replacement is not None:
            await pr_queries.add_assignment(session, pr_id, replacement)
        await pr_queries.record_reassignment(session, pr_id, reviewer_id, replacement)

        self._logger.debug(
            "cascade_slot_repaired",
            pr_id=pr_id,
            old_reviewer_id=reviewer_id,
            new_reviewer_id=replacement,
        )
        return replacement
