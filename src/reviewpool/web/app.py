"""FastAPI application factory for Reviewpool.

The application is a thin adapter over ReviewService: the lifespan builds
the database engine, the session factory and the service, and stores them
on ``app.state`` for the route dependencies.

Example usage:
    >>> from reviewpool.config import ReviewpoolConfig
    >>> from reviewpool.web.app import create_app
    >>>
    >>> app = create_app(ReviewpoolConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8080)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reviewpool import __version__
from reviewpool.config import ReviewpoolConfig
from reviewpool.database.connection import get_engine, get_session_factory
from reviewpool.engine.service import ReviewService
from reviewpool.logging import get_logger
from reviewpool.web.errors import register_exception_handlers
from reviewpool.web.middleware import RequestLoggingMiddleware
from reviewpool.web.routes.health import create_health_router
from reviewpool.web.routes.pull_requests import create_pull_requests_router
from reviewpool.web.routes.stats import create_stats_router
from reviewpool.web.routes.teams import create_teams_router
from reviewpool.web.routes.users import create_users_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the connection pool and service on startup, dispose on shutdown."""
    config: ReviewpoolConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = get_engine(config.database)
    session_factory = get_session_factory(engine)

    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.service = ReviewService(session_factory, config.engine)

    logger.info(
        "database_pool_initialized",
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )

    yield

    logger.info("app_shutdown_begin")
    await engine.dispose()
    logger.info("database_pool_disposed")


def create_app(config: ReviewpoolConfig | None = None) -> FastAPI:
    """Create and configure the Reviewpool API application.

    Args:
        config: Optional ReviewpoolConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.

    Example:
        >>> from reviewpool.config import ReviewpoolConfig, WebConfig
        >>>
        >>> app = create_app(
        ...     ReviewpoolConfig(web=WebConfig(cors_origins=["https://example.com"]))
        ... )
    """
    if config is None:
        config = ReviewpoolConfig()

    app = FastAPI(
        title="Reviewpool",
        version=__version__,
        description="Pull request reviewer assignment service",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(create_health_router())
    app.include_router(create_teams_router())
    app.include_router(create_users_router())
    app.include_router(create_pull_requests_router())
    app.include_router(create_stats_router())

    logger.info("app_created", cors_origins=config.web.cors_origins, version=__version__)

    return app
