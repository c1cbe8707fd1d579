"""Main CLI entry point for Reviewpool.

This module provides the main Typer application: the API server, a
development schema bootstrap, and sub-commands for team and pull request
operations run directly against the database.

Usage:
    reviewpool serve --port 8080
    reviewpool init-db
    reviewpool team deactivate backend
    reviewpool pr reassign pr-1 u2
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from reviewpool.cli import pr as pr_cli
from reviewpool.cli import team as team_cli
from reviewpool.config import ReviewpoolConfig, load_config
from reviewpool.database.connection import get_engine, get_session_factory
from reviewpool.database.models import Base
from reviewpool.engine.service import ReviewService
from reviewpool.logging import get_logger, setup_logging

app = typer.Typer(
    name="reviewpool",
    help="Reviewpool: pull request reviewer assignment",
    no_args_is_help=True,
)

app.add_typer(team_cli.app, name="team", help="Team operations")
app.add_typer(pr_cli.app, name="pr", help="Pull request operations")

console = Console()
logger = get_logger(__name__)


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded Reviewpool configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
        service: Review service bound to the session factory
    """

    def __init__(self, config: ReviewpoolConfig):
        self.config = config
        self.engine = get_engine(config.database)
        self.session_factory = get_session_factory(self.engine)
        self.service = ReviewService(self.session_factory, config.engine)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: ReviewpoolConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
) -> None:
    """Start the Reviewpool API server."""
    import uvicorn

    from reviewpool.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting Reviewpool API[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print()

    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.command("init-db")
def init_db() -> None:
    """Create all tables from the ORM metadata (development only).

    Production databases are managed with ``alembic upgrade head``.
    """
    ctx = get_app_context()

    async def _create_all() -> None:
        async with ctx.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await ctx.engine.dispose()

    asyncio.run(_create_all())
    logger.info("schema_created", tables=sorted(Base.metadata.tables))
    console.print("[green]Schema created.[/green]")


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration, set up logging and initialize the application context."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
