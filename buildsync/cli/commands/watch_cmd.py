"""``buildsync watch`` — stream build status until every build is final.

Prints every snapshot as it arrives: first the whole discovered batch,
then one line per refresh of each build still in progress.  Ctrl+C
cancels the stream at its next fetch.
"""

from __future__ import annotations

import asyncio
import os

import typer
from rich.console import Console

from buildsync.adapter import AppVeyorAdapter
from buildsync.cli.commands._common import configure_logging, load_settings, render_record
from buildsync.config import BuildsyncConfig

console = Console()


async def _watch(
    settings: BuildsyncConfig, commits: list[str], max_cycles: int | None
) -> int:
    wanted = {c.lower() for c in commits}
    is_relevant = (lambda commit: commit in wanted) if wanted else None

    delivered = 0
    async with AppVeyorAdapter(max_cycles=max_cycles) as adapter:
        await adapter.initialize(
            settings, is_relevant=is_relevant, replace_variables=os.path.expandvars
        )
        async for record in adapter.get_running_builds():
            console.print(render_record(record))
            delivered += 1
    return delivered


def watch_cmd(
    account: str = typer.Option(None, "--account", "-a", help="AppVeyor account name."),
    token: str = typer.Option(None, "--token", "-t", help="AppVeyor API token."),
    project: str = typer.Option(
        None, "--project", "-p", help="Pipe-delimited project names (empty = all)."
    ),
    commit: list[str] = typer.Option(
        [], "--commit", "-c", help="Only report these commits (repeatable)."
    ),
    tests: bool = typer.Option(
        None, "--tests/--no-tests", help="Load test counts of finished builds."
    ),
    interval: float = typer.Option(None, "--interval", "-i", help="Seconds between polls."),
    max_cycles: int = typer.Option(
        None, "--max-cycles", help="Give up after this many poll cycles."
    ),
) -> None:
    """Watch build status of the configured AppVeyor projects."""
    settings = load_settings(
        account_name=account,
        account_token=token,
        project_name=project,
        load_tests_results=tests,
        poll_interval_seconds=interval,
    )
    configure_logging(settings.log_level)
    if not settings.is_configured:
        console.print("[bold red]No account or project configured.[/bold red]")
        console.print("[dim]Set BUILDSYNC_ACCOUNT_NAME or pass --account.[/dim]")
        raise typer.Exit(code=1)

    try:
        delivered = asyncio.run(_watch(settings, commit, max_cycles))
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled.[/yellow]")
        raise typer.Exit(code=130)
    console.print(f"[dim]{delivered} update(s) delivered.[/dim]")
