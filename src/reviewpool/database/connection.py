"""Database connection management for Reviewpool.

This module provides factory functions for creating SQLAlchemy async engines
and session factories, configured from the application's DatabaseConfig.

The connection manager uses asyncpg as the PostgreSQL driver and supports
connection pooling with configurable pool size and overflow limits.

Example usage:
    >>> from reviewpool.config import DatabaseConfig
    >>> from reviewpool.database.connection import get_engine, get_session_factory
    >>>
    >>> config = DatabaseConfig(url="postgresql+asyncpg://localhost/reviewpool")
    >>> engine = get_engine(config)
    >>> SessionFactory = get_session_factory(engine)
    >>>
    >>> async with SessionFactory() as session:
    ...     result = await session.execute(select(Team))
"""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from reviewpool.config import DatabaseConfig

# SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

TRANSIENT_SQLSTATES = frozenset(
    {
        "40001",  # serialization_failure
        "40P01",  # deadlock_detected
        "55P03",  # lock_not_available
        "57014",  # query_canceled
        "57P01",  # admin_shutdown
    }
)
CONNECTION_EXCEPTION_CLASS = "08"


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    Args:
        config: Database configuration containing URL, pool settings,
                and SQL echo preference.

    Returns:
        Configured AsyncEngine instance with connection pooling.
    """
    return create_async_engine(
        config.url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        echo=config.echo,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine.

    Sessions use expire_on_commit=False so results can be read after the
    unit of work commits without triggering lazy loads.

    Args:
        engine: AsyncEngine to bind sessions to.

    Returns:
        Configured async_sessionmaker that produces AsyncSession instances.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell a unique/primary-key violation apart from other integrity errors.

    Recognises PostgreSQL's SQLSTATE 23505 as exposed by the asyncpg adapter
    and SQLite's constraint messages (used by the test suite).

    Args:
        exc: IntegrityError raised by a flush or execute.

    Returns:
        True if the error was caused by a duplicate key.
    """
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        if getattr(orig, attr, None) == UNIQUE_VIOLATION:
            return True
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


def _sqlstate(exc: DBAPIError) -> str | None:
    for attr in ("sqlstate", "pgcode"):
        code = getattr(exc.orig, attr, None)
        if code:
            return str(code)
    return None


def is_transient_failure(exc: DBAPIError) -> bool:
    """Tell a retryable store failure apart from a programming error.

    Connection loss, deadlocks, serialization failures, lock timeouts and
    cancelled statements are transient. Constraint violations never are.

    Args:
        exc: Error raised by the database adapter.

    Returns:
        True if retrying the same call may succeed.
    """
    if isinstance(exc, IntegrityError):
        return False
    if isinstance(exc, (OperationalError, InterfaceError)) or exc.connection_invalidated:
        return True
    code = _sqlstate(exc)
    if code is None:
        return False
    return code in TRANSIENT_SQLSTATES or code.startswith(CONNECTION_EXCEPTION_CLASS)
