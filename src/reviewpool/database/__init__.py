"""Database layer for Reviewpool.

This module handles database connections, session management, and provides
the SQLAlchemy async engine configuration for PostgreSQL.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    is_unique_violation: Classify an IntegrityError as a duplicate key.
    is_transient_failure: Classify a store error as retryable.
    Base: SQLAlchemy declarative base for all models.
"""

from reviewpool.database.connection import (
    get_engine,
    get_session_factory,
    is_transient_failure,
    is_unique_violation,
)
from reviewpool.database.models import (
    Base,
    PRStatus,
    PullRequest,
    ReassignmentEvent,
    ReviewAssignment,
    Team,
    TimestampMixin,
    User,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "is_transient_failure",
    "is_unique_violation",
    "Base",
    "TimestampMixin",
    "Team",
    "User",
    "PRStatus",
    "PullRequest",
    "ReviewAssignment",
    "ReassignmentEvent",
]
