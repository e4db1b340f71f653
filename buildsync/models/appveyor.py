"""Response schema for the AppVeyor REST API.

Every payload the provider returns is validated once against these models;
absent or null fields surface as ``None`` instead of ad-hoc lookups.  Field
names are snake_case with the provider's camelCase names as aliases.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# The provider emits .NET round-trip timestamps with seven fractional digits.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def _trim_fraction(value: Any) -> Any:
    if isinstance(value, str):
        return _EXCESS_FRACTION.sub(r"\1", value)
    return value


def _assume_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class ProjectListItem(_ApiModel):
    """One entry of ``GET /api/projects/``."""

    slug: str
    name: str


class HistoryProject(_ApiModel):
    repository_name: str | None = Field(default=None, alias="repositoryName")
    repository_type: str | None = Field(default=None, alias="repositoryType")


class HistoryResponse(_ApiModel):
    """Top level of ``GET /api/projects/{account}/{slug}/history``.

    Entries are kept raw so that one malformed build does not reject the
    whole page; they are validated individually with :class:`HistoryBuild`.
    """

    project: HistoryProject = HistoryProject()
    builds: list[Any] = []


class BuildVersionRef(_ApiModel):
    """The part of a history entry needed to re-address a build."""

    version: str


class HistoryBuild(BuildVersionRef):
    """A single build entry of a project history page."""

    build_id: str = Field(alias="buildId")
    branch: str | None = None
    status: str | None = None
    commit_id: str | None = Field(default=None, alias="commitId")
    pull_request_head_commit_id: str | None = Field(
        default=None, alias="pullRequestHeadCommitId"
    )
    pull_request_id: str | None = Field(default=None, alias="pullRequestId")
    pull_request_name: str | None = Field(default=None, alias="pullRequestName")
    started: datetime | None = None
    created: datetime | None = None
    updated: datetime | None = None

    trim_timestamps = field_validator(
        "started", "created", "updated", mode="before"
    )(_trim_fraction)
    assume_utc = field_validator("started", "created", "updated")(_assume_utc)

    @property
    def identifying_commit(self) -> str | None:
        """Pull-request head commit when present, else the pushed commit."""
        if self.pull_request_head_commit_id is not None:
            return self.pull_request_head_commit_id
        return self.commit_id


class BuildJob(_ApiModel):
    status: str | None = None
    tests_count: int = Field(default=0, alias="testsCount")
    failed_tests_count: int = Field(default=0, alias="failedTestsCount")
    passed_tests_count: int = Field(default=0, alias="passedTestsCount")


class BuildDetail(_ApiModel):
    jobs: list[BuildJob]
    started: datetime | None = None
    created: datetime | None = None
    updated: datetime | None = None

    trim_timestamps = field_validator(
        "started", "created", "updated", mode="before"
    )(_trim_fraction)
    assume_utc = field_validator("started", "created", "updated")(_assume_utc)


class BuildDetailResponse(_ApiModel):
    """``GET /api/projects/{account}/{slug}/build/{version}``."""

    build: BuildDetail
