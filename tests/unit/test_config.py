"""Tests for runtime config — env-driven settings."""

from __future__ import annotations

import os

import pytest

from buildsync.config import APPVEYOR_WEB_URL, BuildsyncConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """No BUILDSYNC_* variables and no stray .env file."""
    for key in list(os.environ):
        if key.startswith("BUILDSYNC_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestBuildsyncConfig:
    def test_defaults(self):
        config = BuildsyncConfig()
        assert config.account_name == ""
        assert config.token is None
        assert config.project_name == ""
        assert config.load_tests_results is False
        assert config.base_url == APPVEYOR_WEB_URL
        assert config.records_number == 25
        assert config.http_timeout_seconds == 120.0
        assert config.poll_interval_seconds == 5.0
        assert config.log_level == "INFO"

    def test_not_configured_by_default(self):
        assert BuildsyncConfig().is_configured is False

    def test_configured_by_account_or_project(self):
        assert BuildsyncConfig(account_name="acme").is_configured
        assert BuildsyncConfig(project_name="widget").is_configured
        assert not BuildsyncConfig(account_name="   ").is_configured

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("BUILDSYNC_ACCOUNT_NAME", "acme")
        monkeypatch.setenv("BUILDSYNC_ACCOUNT_TOKEN", "v2.secret")
        monkeypatch.setenv("BUILDSYNC_LOAD_TESTS_RESULTS", "true")
        monkeypatch.setenv("BUILDSYNC_POLL_INTERVAL_SECONDS", "1.5")
        config = BuildsyncConfig()
        assert config.account_name == "acme"
        assert config.token == "v2.secret"
        assert config.load_tests_results is True
        assert config.poll_interval_seconds == 1.5

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("BUILDSYNC_PROJECT_NAME=api|web\n")
        assert BuildsyncConfig().project_name == "api|web"

    def test_token_is_secret(self):
        config = BuildsyncConfig(account_token="v2.secret")
        assert "v2.secret" not in repr(config)
        assert config.token == "v2.secret"

    def test_blank_token_is_none(self):
        assert BuildsyncConfig(account_token="  ").token is None


class TestProjectNames:
    def test_blank_means_all(self):
        assert BuildsyncConfig().project_names() is None
        assert BuildsyncConfig(project_name="  ").project_names() is None

    def test_pipe_delimited(self):
        assert BuildsyncConfig(project_name="api|web").project_names() == ["api", "web"]

    def test_empty_segments_dropped(self):
        assert BuildsyncConfig(project_name="|api||web|").project_names() == ["api", "web"]

    def test_variables_replaced_before_split(self):
        config = BuildsyncConfig(project_name="%TEAM%-api")
        names = config.project_names(lambda raw: raw.replace("%TEAM%", "core|core"))
        assert names == ["core", "core-api"]
