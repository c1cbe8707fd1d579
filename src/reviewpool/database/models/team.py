"""Team and User models for Reviewpool.

A team is identified by its unique name and owns its members through the
``users.team_id`` reference. Users are never deleted; deactivation flips
``is_active`` so historical assignments and reassignment events keep
pointing at valid rows.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reviewpool.database.models.base import Base, TimestampMixin


class Team(TimestampMixin, Base):
    """A named group of users whose members review each other's PRs.

    Attributes:
        id: Serial primary key.
        name: Unique team name; immutable after creation.
        created_at: Row creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class User(TimestampMixin, Base):
    """A team member who can author and review pull requests.

    Attributes:
        id: Caller-supplied user identifier (primary key).
        username: Display name; not unique across teams.
        team_id: Foreign key to the member's current team.
        is_active: Whether the user may author PRs or be picked as reviewer.
        team: Relationship to the current Team.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    team_id: Mapped[int] = mapped_column(
        ForeignKey("teams.id"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    # Relationships
    team: Mapped[Team] = relationship(
        Team,
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_users_team_id", "team_id"),
        Index("ix_users_team_active", "team_id", "is_active"),
    )
