"""Build extraction — turns a project history page into ``BuildRecord``s.

Each entry is validated on its own; an entry that is malformed, whose
commit cannot be parsed, or that the host does not display is skipped
without affecting its siblings.  Ordering is left untouched (response
order); recency ordering is the deduplicator's job.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from buildsync.bridge.appveyor_client import project_api_url, project_web_url
from buildsync.config import APPVEYOR_WEB_URL
from buildsync.models.appveyor import HistoryBuild, HistoryResponse
from buildsync.models.builds import EPOCH_MIN, BuildRecord, BuildStatus, Project

logger = logging.getLogger(__name__)

_COMMIT_ID = re.compile(r"[0-9a-fA-F]{40}")

# Provider status -> host status.  Case-sensitive on purpose.
STATUS_MAP: dict[str, BuildStatus] = {
    "success": BuildStatus.SUCCESS,
    "failed": BuildStatus.FAILURE,
    "cancelled": BuildStatus.STOPPED,
    "queued": BuildStatus.IN_PROGRESS,
    "running": BuildStatus.IN_PROGRESS,
}

PULL_REQUEST_URL_TEMPLATES: dict[str, str] = {
    "bitbucket": "https://bitbucket.org/{repo}/pull-requests/{id}",
    "github": "https://github.com/{repo}/pull/{id}",
    "gitlab": "https://gitlab.com/{repo}/merge_requests/{id}",
}


def parse_build_status(value: str | None) -> BuildStatus:
    """Map a raw provider status; anything unrecognised is ``UNKNOWN``."""
    if value is None:
        return BuildStatus.UNKNOWN
    return STATUS_MAP.get(value, BuildStatus.UNKNOWN)


def build_duration_ms(
    started: datetime | None,
    created: datetime | None,
    updated: datetime | None,
) -> int:
    """``updated - (started or created)`` in milliseconds, 0 if either is absent."""
    start = started if started is not None else created
    if start is None or updated is None:
        return 0
    return (updated - start) // timedelta(milliseconds=1)


def pull_request_url(
    repository_type: str | None,
    repository_name: str | None,
    pull_request_id: str | None,
) -> str | None:
    if repository_type is None or repository_name is None or pull_request_id is None:
        return None
    template = PULL_REQUEST_URL_TEMPLATES.get(repository_type.lower())
    if template is None:
        return None
    return template.format(repo=repository_name, id=pull_request_id)


def parse_commit_id(value: str | None) -> str | None:
    """Return the normalised SHA-1, or ``None`` if *value* is not one."""
    if value is None or not _COMMIT_ID.fullmatch(value):
        return None
    return value.lower()


def _load(raw: str | bytes | dict[str, Any] | None) -> dict[str, Any] | None:
    if raw is None or isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("History response is not JSON; treating it as empty.")
        return None
    return data if isinstance(data, dict) else None


class BuildExtractor:
    """Parses history pages for one host.

    Parameters
    ----------
    is_relevant:
        Host predicate: ``True`` when the commit is currently displayed.
        Defaults to accepting every commit.
    base_url:
        Provider web root used to derive build URLs.
    """

    def __init__(
        self,
        is_relevant: Callable[[str], bool] | None = None,
        base_url: str = APPVEYOR_WEB_URL,
    ) -> None:
        self._is_relevant = is_relevant or (lambda _commit: True)
        self._base_url = base_url

    def extract(
        self, project: Project, raw: str | bytes | dict[str, Any] | None
    ) -> list[BuildRecord]:
        data = _load(raw)
        if data is None:
            return []
        try:
            history = HistoryResponse.model_validate(data)
        except ValidationError:
            logger.debug("History of %s has an unexpected shape.", project.name)
            return []

        base_api_url = project_api_url(project.id, self._base_url)
        base_web_url = project_web_url(project.id, self._base_url)

        records: list[BuildRecord] = []
        for entry in history.builds:
            try:
                record = self._extract_entry(entry, history, base_api_url, base_web_url)
            except Exception as exc:
                # One bad entry, or a failing host predicate, must not hide the others.
                logger.debug("Skipping malformed build of %s: %s", project.name, exc)
                continue
            if record is not None:
                records.append(record)

        logger.debug(
            "Extracted %d of %d build(s) for %s",
            len(records),
            len(history.builds),
            project.name,
        )
        return records

    def _extract_entry(
        self,
        entry: Any,
        history: HistoryResponse,
        base_api_url: str,
        base_web_url: str,
    ) -> BuildRecord | None:
        build = HistoryBuild.model_validate(entry)

        commit_id = parse_commit_id(build.identifying_commit)
        if commit_id is None or not self._is_relevant(commit_id):
            return None

        status = parse_build_status(build.status)
        duration = None
        if status.has_duration:
            duration = build_duration_ms(build.started, build.created, build.updated)

        pr_id = build.pull_request_id
        return BuildRecord(
            version=build.version,
            build_id=build.build_id,
            branch=build.branch or "",
            commit_id=commit_id,
            status=status,
            start_date=build.started or EPOCH_MIN,
            duration_ms=duration,
            base_web_url=base_web_url,
            url=base_web_url + build.version,
            base_api_url=base_api_url,
            detail_url=f"{base_api_url}/build/{build.version}",
            pull_request_url=pull_request_url(
                history.project.repository_type,
                history.project.repository_name,
                pr_id,
            ),
            pull_request_label=f"PR#{pr_id}" if pr_id is not None else "",
            pull_request_title=build.pull_request_name or "",
        )
