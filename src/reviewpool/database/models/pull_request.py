"""Pull request, reviewer assignment and reassignment history models.

The reviewers of a pull request are not stored on the PR row. They are the
set of ``pr_reviewers`` rows for that PR, whose composite primary key
guarantees a reviewer is assigned at most once per PR. Every removal of a
reviewer row is mirrored by exactly one append-only row in
``pr_reassignment_history``.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from reviewpool.database.models.base import Base


class PRStatus(str, enum.Enum):
    """Pull request lifecycle.

    States:
        OPEN: Created and awaiting review; reviewers may change.
        MERGED: Terminal. Reviewer assignments are frozen.
    """

    OPEN = "OPEN"
    MERGED = "MERGED"


class PullRequest(Base):
    """A pull request awaiting or having completed review.

    Attributes:
        id: Caller-supplied PR identifier (primary key).
        name: PR title.
        author_id: Foreign key to the authoring user.
        status: OPEN or MERGED.
        created_at: Timestamp assigned by the database on insert.
        merged_at: Timestamp of the OPEN -> MERGED transition, if any.
    """

    __tablename__ = "pull_requests"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    status: Mapped[PRStatus] = mapped_column(
        Enum(PRStatus, name="pr_status"),
        default=PRStatus.OPEN,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    merged_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_pull_requests_status", "status"),
        Index("ix_pull_requests_created_at", "created_at"),
    )


class ReviewAssignment(Base):
    """Current assignment of one reviewer to one pull request.

    This is mutable current state: rows are inserted on creation and
    reassignment and deleted when a reviewer is replaced or removed.

    Attributes:
        pr_id: Foreign key to the pull request.
        reviewer_id: Foreign key to the assigned user.
        assigned_at: Timestamp of the assignment.
    """

    __tablename__ = "pr_reviewers"

    pr_id: Mapped[str] = mapped_column(
        ForeignKey("pull_requests.id"),
        primary_key=True,
    )
    reviewer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        primary_key=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_pr_reviewers_reviewer_id", "reviewer_id"),
    )


class ReassignmentEvent(Base):
    """Append-only audit record of one reviewer change.

    ``new_reviewer_id`` is None when a reviewer was removed without a
    replacement (deactivation cascade with an empty candidate pool).

    Attributes:
        id: Serial primary key; also orders events within one transaction.
        pr_id: Foreign key to the pull request.
        old_reviewer_id: Reviewer whose assignment was removed.
        new_reviewer_id: Replacement reviewer, if any.
        changed_at: Timestamp of the change.
    """

    __tablename__ = "pr_reassignment_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pr_id: Mapped[str] = mapped_column(
        ForeignKey("pull_requests.id"),
        nullable=False,
    )
    old_reviewer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    new_reviewer_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_pr_reassignment_history_pr_id", "pr_id"),
    )
