"""Pull request CLI commands.

This module provides commands for merging pull requests, reassigning a
reviewer and showing a pull request's reassignment history.
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from reviewpool.engine.types import PullRequestView
from reviewpool.errors import ReviewpoolError

app = typer.Typer(help="Pull request commands")
console = Console()


def _format_pr(pr: PullRequestView) -> str:
    reviewers = ", ".join(pr.assigned_reviewers) or "-"
    merged = pr.merged_at.strftime("%Y-%m-%d %H:%M:%S") if pr.merged_at else "-"
    return (
        f"[bold]ID:[/bold] {pr.pull_request_id}\n"
        f"[bold]Name:[/bold] {pr.pull_request_name}\n"
        f"[bold]Author:[/bold] {pr.author_id}\n"
        f"[bold]Status:[/bold] {pr.status.value}\n"
        f"[bold]Reviewers:[/bold] {reviewers}\n"
        f"[bold]Merged:[/bold] {merged}"
    )


@app.command()
def merge(
    pr_id: Annotated[str, typer.Argument(help="Pull request ID")],
) -> None:
    """Merge a pull request. Merging a merged pull request is a no-op."""
    from reviewpool.main import get_app_context

    ctx = get_app_context()

    try:
        pr = asyncio.run(ctx.service.merge_pr(pr_id))
    except ReviewpoolError as e:
        console.print(f"[red]{e.code}:[/red] {e.message}")
        raise typer.Exit(code=1) from e

    console.print(Panel(_format_pr(pr), title="Pull Request Merged", border_style="green"))


@app.command()
def reassign(
    pr_id: Annotated[str, typer.Argument(help="Pull request ID")],
    old_reviewer_id: Annotated[str, typer.Argument(help="Reviewer to replace")],
) -> None:
    """Replace one reviewer of an open pull request."""
    from reviewpool.main import get_app_context

    ctx = get_app_context()

    try:
        pr, replaced_by = asyncio.run(ctx.service.reassign_reviewer(pr_id, old_reviewer_id))
    except ReviewpoolError as e:
        console.print(f"[red]{e.code}:[/red] {e.message}")
        raise typer.Exit(code=1) from e

    console.print(
        Panel(
            f"[green]{old_reviewer_id} replaced by {replaced_by}[/green]\n\n{_format_pr(pr)}",
            title="Reviewer Reassigned",
            border_style="green",
        )
    )


@app.command()
def stats(
    pr_id: Annotated[str, typer.Argument(help="Pull request ID")],
) -> None:
    """Show a pull request's reviewers and reassignment history."""
    from reviewpool.main import get_app_context

    ctx = get_app_context()

    try:
        result = asyncio.run(ctx.service.pr_stats(pr_id))
    except ReviewpoolError as e:
        console.print(f"[red]{e.code}:[/red] {e.message}")
        raise typer.Exit(code=1) from e

    console.print(
        f"[bold]{result.pr_id}[/bold] {result.pr_name} "
        f"({result.status.value}), reviewers: {', '.join(result.reviewers) or '-'}"
    )

    table = Table(title=f"Transfers: {result.transfer_cnt}")
    table.add_column("Changed At", style="dim")
    table.add_column("Old Reviewer", style="cyan")
    table.add_column("New Reviewer")
    for event in result.reassignments:
        table.add_row(
            event.changed_at.strftime("%Y-%m-%d %H:%M:%S"),
            event.old_reviewer_id,
            event.new_reviewer_id or "[red]removed[/red]",
        )
    console.print(table)
