"""Team CLI commands.

This module provides commands for inspecting and deactivating teams.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from reviewpool.errors import ReviewpoolError

app = typer.Typer(help="Team commands")
console = Console()


@app.command()
def show(
    name: Annotated[str, typer.Argument(help="Team name")],
) -> None:
    """Show a team and its members."""
    from reviewpool.main import get_app_context

    ctx = get_app_context()

    try:
        team = asyncio.run(ctx.service.get_team(name))
    except ReviewpoolError as e:
        console.print(f"[red]{e.code}:[/red] {e.message}")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Team {team.team_name}")
    table.add_column("User ID", style="cyan")
    table.add_column("Username")
    table.add_column("Active")
    for member in team.members:
        table.add_row(
            member.user_id,
            member.username,
            "[green]yes[/green]" if member.is_active else "[red]no[/red]",
        )
    console.print(table)


@app.command()
def deactivate(
    name: Annotated[str, typer.Argument(help="Team name")],
) -> None:
    """Deactivate every member of a team and repair their open reviews."""
    from reviewpool.main import get_app_context

    ctx = get_app_context()

    try:
        result = asyncio.run(ctx.service.deactivate_team(name))
    except ReviewpoolError as e:
        console.print(f"[red]{e.code}:[/red] {e.message}")
        raise typer.Exit(code=1) from e

    panel = Panel(
        f"[bold]Deactivated users:[/bold] {result.deactivated_users}\n"
        f"[bold]Reviewers reassigned:[/bold] {result.reassigned}\n"
        f"[bold]Reviewers removed:[/bold] {result.removed}",
        title=f"Team {name} deactivated",
        border_style="yellow",
    )
    console.print(panel)
