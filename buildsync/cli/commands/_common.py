"""Helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from typing import Any

from rich.logging import RichHandler

from buildsync.config import BuildsyncConfig
from buildsync.models.builds import BuildRecord, BuildStatus

STATUS_STYLES: dict[BuildStatus, str] = {
    BuildStatus.SUCCESS: "green",
    BuildStatus.FAILURE: "red",
    BuildStatus.STOPPED: "yellow",
    BuildStatus.IN_PROGRESS: "cyan",
    BuildStatus.UNKNOWN: "dim",
}


def load_settings(**overrides: Any) -> BuildsyncConfig:
    """Environment/.env settings with non-``None`` CLI options on top."""
    return BuildsyncConfig(**{k: v for k, v in overrides.items() if v is not None})


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def render_record(record: BuildRecord) -> str:
    """Rich markup line for one build snapshot."""
    style = STATUS_STYLES[record.status]
    line = (
        f"[bold]{record.commit_id[:10]}[/bold] "
        f"[magenta]{record.branch}[/magenta] "
        f"[{style}]{record.description}[/{style}] "
        f"[dim]{record.version}[/dim]"
    )
    if record.pull_request_url:
        line += f" [link={record.pull_request_url}]{record.pull_request_url}[/link]"
    return line
