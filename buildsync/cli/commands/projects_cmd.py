"""``buildsync projects`` — show the projects that would be polled."""

from __future__ import annotations

import asyncio
import os

import typer
from rich.console import Console
from rich.table import Table

from buildsync.bridge.appveyor_client import AppVeyorClient
from buildsync.cli.commands._common import configure_logging, load_settings
from buildsync.core.project_catalog import ProjectCatalog
from buildsync.models.builds import Project

console = Console()


async def _resolve(account: str | None, token: str | None, project: str | None) -> list[Project]:
    settings = load_settings(account_name=account, account_token=token, project_name=project)
    configure_logging(settings.log_level)
    async with AppVeyorClient(
        settings.base_url, settings.token, timeout_seconds=settings.http_timeout_seconds
    ) as client:
        catalog = ProjectCatalog(client, records_number=settings.records_number)
        return await catalog.resolve(
            settings.account_name,
            settings.token,
            settings.project_names(os.path.expandvars),
        )


def projects_cmd(
    account: str = typer.Option(None, "--account", "-a", help="AppVeyor account name."),
    token: str = typer.Option(None, "--token", "-t", help="AppVeyor API token."),
    project: str = typer.Option(
        None, "--project", "-p", help="Pipe-delimited project names (empty = all)."
    ),
) -> None:
    """List the projects resolved from configuration or the account."""
    projects = asyncio.run(_resolve(account, token, project))
    if not projects:
        console.print("[dim]No projects resolved.[/dim]")
        raise typer.Exit(code=1)

    table = Table(title="Tracked Projects")
    table.add_column("Name", style="cyan")
    table.add_column("Id", style="green")
    table.add_column("History URL", style="dim")
    for p in projects:
        table.add_row(p.name, p.id, p.query_url)
    console.print(table)
