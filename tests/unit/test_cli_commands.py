"""Unit tests for the CLI — Typer command registration and basic behavior."""

from __future__ import annotations

import os

import pytest
from typer.testing import CliRunner

from buildsync.cli.app import app
from buildsync.cli.commands._common import load_settings, render_record
from buildsync.core.project_catalog import default_project_cache
from buildsync.models.builds import BuildStatus

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("BUILDSYNC_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    default_project_cache.clear()
    yield
    default_project_cache.clear()


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # no_args_is_help exits with 0 or 2 depending on the Typer version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "projects" in result.output
        assert "watch" in result.output
        assert "adapters" in result.output

    @pytest.mark.parametrize("command", ["projects", "watch", "adapters"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestAdaptersCommand:
    def test_lists_appveyor(self):
        result = runner.invoke(app, ["adapters"])
        assert result.exit_code == 0
        assert "AppVeyor" in result.output


class TestProjectsCommand:
    def test_nothing_configured(self):
        result = runner.invoke(app, ["projects"])
        assert result.exit_code == 1
        assert "No projects resolved" in result.output

    def test_explicit_projects_without_token(self):
        result = runner.invoke(app, ["projects", "-a", "acme", "-p", "widget|gear"])
        assert result.exit_code == 0
        assert "widget" in result.output
        assert "gear" in result.output


class TestWatchCommand:
    def test_requires_configuration(self):
        result = runner.invoke(app, ["watch"])
        assert result.exit_code == 1
        assert "No account or project configured" in result.output


class TestHelpers:
    def test_load_settings_ignores_unset_options(self, monkeypatch):
        monkeypatch.setenv("BUILDSYNC_ACCOUNT_NAME", "from-env")
        settings = load_settings(account_name=None, project_name="widget")
        assert settings.account_name == "from-env"
        assert settings.project_name == "widget"

    def test_render_record(self, make_record):
        record = make_record(
            status=BuildStatus.SUCCESS,
            duration_ms=65_000,
            pull_request_url="https://github.com/acme/widget/pull/7",
        )
        line = render_record(record)
        assert record.commit_id[:10] in line
        assert "[green]success (1m 05s)[/green]" in line
        assert "pull/7" in line
