"""FastAPI dependencies shared by the Reviewpool routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from reviewpool.engine.service import ReviewOperations


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state."""
    return request.app.state.session_factory  # type: ignore[no-any-return]


def get_service(request: Request) -> ReviewOperations:
    """Dependency that retrieves the review service from app state."""
    return request.app.state.service  # type: ignore[no-any-return]
