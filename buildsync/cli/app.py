"""Main Typer application — imports and registers all CLI commands.

Entry point: ``buildsync`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from buildsync.cli.commands.projects_cmd import projects_cmd
from buildsync.cli.commands.watch_cmd import watch_cmd

app = typer.Typer(
    name="buildsync",
    help="Buildsync: live CI build status for commits.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="projects", help="List the tracked projects.")(projects_cmd)
app.command(name="watch", help="Stream build status until all builds finish.")(watch_cmd)


@app.command(name="adapters", help="List registered build-server adapters.")
def adapters_cmd() -> None:
    """List the build-server adapters this installation provides."""
    from rich.console import Console
    from rich.table import Table

    from buildsync.plugins.registry import default_registry

    console = Console()
    entries = default_registry().list_adapters(enabled_only=False)
    if not entries:
        console.print("[dim]No adapters registered.[/dim]")
        return

    table = Table(title="Build-Server Adapters")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Enabled", justify="center")
    for e in entries:
        enabled = "[green]Yes[/green]" if e.enabled else "[red]No[/red]"
        table.add_row(e.name, e.description, enabled)
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
