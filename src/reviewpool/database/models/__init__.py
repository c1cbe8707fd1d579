"""SQLAlchemy ORM models for Reviewpool.

This module defines the database schema: teams, users, pull requests,
current reviewer assignments and the reassignment history log.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from reviewpool.database.models.base import Base, TimestampMixin
from reviewpool.database.models.pull_request import (
    PRStatus,
    PullRequest,
    ReassignmentEvent,
    ReviewAssignment,
)
from reviewpool.database.models.team import Team, User

__all__ = [
    "Base",
    "TimestampMixin",
    "Team",
    "User",
    "PRStatus",
    "PullRequest",
    "ReviewAssignment",
    "ReassignmentEvent",
]
