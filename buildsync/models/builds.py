"""Domain models: tracked projects and the build records pushed to the host."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

# Sentinel start date for entries the provider has not started yet.
EPOCH_MIN = datetime.min.replace(tzinfo=timezone.utc)


class BuildStatus(str, Enum):
    """Build status as presented to the host."""

    SUCCESS = "success"
    FAILURE = "failure"
    STOPPED = "stopped"
    IN_PROGRESS = "in_progress"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        """Success, Failure and Stopped end polling."""
        return self in (BuildStatus.SUCCESS, BuildStatus.FAILURE, BuildStatus.STOPPED)

    @property
    def has_duration(self) -> bool:
        """Only finished-and-judged builds carry a duration."""
        return self in (BuildStatus.SUCCESS, BuildStatus.FAILURE)


class Project(BaseModel):
    """A tracked AppVeyor project.

    ``id`` is account-qualified (``"account/slug"``) and ``query_url`` is the
    history URL used to discover its builds.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    id: str
    query_url: str


class BuildRecord(BaseModel):
    """One build attempt mapped to exactly one commit.

    Records are mutated in place by the poll loop; consumers receive
    snapshots (``model_copy()``) so an emitted value never changes under
    them.  ``version``, ``url`` and ``detail_url`` must only be changed
    together through :meth:`rewrite_version`.
    """

    model_config = ConfigDict(validate_assignment=True)

    version: str
    build_id: str
    branch: str
    commit_id: str
    status: BuildStatus
    start_date: datetime = EPOCH_MIN
    duration_ms: int | None = None
    base_web_url: str
    url: str
    base_api_url: str
    detail_url: str
    pull_request_url: str | None = None
    pull_request_label: str = ""
    pull_request_title: str = ""
    tests_result_text: str = ""
    progress_counter: int = 0

    @field_validator("commit_id")
    @classmethod
    def lower_commit(cls, value: str) -> str:
        return value.lower()

    @property
    def is_running(self) -> bool:
        return self.status is BuildStatus.IN_PROGRESS

    def rewrite_version(self, version: str) -> None:
        """Re-address the build after the provider reassigned its version."""
        self.version = version
        self.url = self.base_web_url + version
        self.detail_url = f"{self.base_api_url}/build/{version}"

    @property
    def description(self) -> str:
        """One-line summary: status, duration, tests and pull request."""
        parts = [self.status.value.replace("_", " ")]
        if self.is_running:
            parts[0] += "." * (self.progress_counter % 3 + 1)
        if self.duration_ms is not None:
            parts.append(f"({_format_duration(self.duration_ms)})")
        if self.tests_result_text:
            parts.append(self.tests_result_text)
        if self.pull_request_label:
            parts.append(self.pull_request_label)
        return " ".join(parts)


def _format_duration(duration_ms: int) -> str:
    seconds = duration_ms // 1000
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {seconds:02d}s"
    if minutes:
        return f"{minutes}m {seconds:02d}s"
    return f"{seconds}s"
