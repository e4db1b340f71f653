"""Tests for domain models and the provider schema."""

from __future__ import annotations

from datetime import timezone

import pytest
from pydantic import ValidationError

from buildsync.models import (
    BuildDetailResponse,
    BuildStatus,
    HistoryBuild,
    HistoryResponse,
    Project,
)


class TestBuildStatus:
    def test_terminal_statuses(self):
        assert BuildStatus.SUCCESS.is_terminal
        assert BuildStatus.FAILURE.is_terminal
        assert BuildStatus.STOPPED.is_terminal
        assert not BuildStatus.IN_PROGRESS.is_terminal
        assert not BuildStatus.UNKNOWN.is_terminal

    def test_duration_statuses(self):
        assert {s for s in BuildStatus if s.has_duration} == {
            BuildStatus.SUCCESS,
            BuildStatus.FAILURE,
        }


class TestProject:
    def test_frozen(self):
        project = Project(name="w", id="acme/w", query_url="/q")
        with pytest.raises(ValidationError):
            project.name = "other"


class TestBuildRecord:
    def test_rewrite_version_moves_urls_together(self, make_record):
        record = make_record(version="1.0.100")

        record.rewrite_version("v2")

        assert record.version == "v2"
        assert record.url == "https://ci.appveyor.com/project/acme/widget/build/v2"
        assert record.detail_url == "https://ci.appveyor.com/api/projects/acme/widget/build/v2"

    def test_commit_id_lowercased(self, make_record):
        assert make_record(commit="A" * 40).commit_id == "a" * 40

    def test_status_assignment_validated(self, make_record):
        record = make_record()
        with pytest.raises(ValidationError):
            record.status = "finished"

    def test_snapshot_is_independent(self, make_record):
        record = make_record()
        snapshot = record.model_copy()
        record.status = BuildStatus.SUCCESS
        assert snapshot.status is BuildStatus.IN_PROGRESS

    def test_description_finished(self, make_record):
        record = make_record(
            status=BuildStatus.FAILURE,
            duration_ms=125_000,
            tests_result_text="10 tests ( 1 failed, 0 skipped )",
            pull_request_label="PR#42",
        )
        assert record.description == "failure (2m 05s) 10 tests ( 1 failed, 0 skipped ) PR#42"

    def test_description_running_shows_progress(self, make_record):
        record = make_record(progress_counter=1)
        assert record.description == "in progress.."


class TestHistorySchema:
    def test_aliases_and_number_coercion(self):
        build = HistoryBuild.model_validate(
            {
                "buildId": 123,
                "version": "1.0.5",
                "branch": "main",
                "status": "running",
                "commitId": "a" * 40,
                "pullRequestId": 9,
            }
        )
        assert build.build_id == "123"
        assert build.pull_request_id == "9"
        assert build.identifying_commit == "a" * 40
        assert build.started is None

    def test_seven_digit_fraction_and_naive_timestamps(self):
        build = HistoryBuild.model_validate(
            {
                "buildId": 1,
                "version": "1",
                "branch": "main",
                "status": "success",
                "started": "2024-01-01T00:00:00.1234567+00:00",
                "updated": "2024-01-01T00:00:05",
            }
        )
        assert build.started is not None and build.started.microsecond == 123456
        assert build.updated is not None and build.updated.tzinfo is timezone.utc

    def test_history_defaults(self):
        history = HistoryResponse.model_validate({})
        assert history.builds == []
        assert history.project.repository_type is None

    def test_detail_requires_jobs(self):
        with pytest.raises(ValidationError):
            BuildDetailResponse.model_validate({"build": {}})
