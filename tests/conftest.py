"""Shared test fixtures for buildsync."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from buildsync.bridge.appveyor_client import AppVeyorClient
from buildsync.core.project_catalog import ProjectCache
from buildsync.models.builds import BuildRecord, BuildStatus, Project

BASE_URL = "https://ci.appveyor.com"
API = f"{BASE_URL}/api/projects"

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40


def _route_key(url: str | httpx.URL) -> tuple[str, tuple[tuple[str, str], ...]]:
    parsed = httpx.URL(url)
    return parsed.path, tuple(sorted(parsed.params.multi_items()))


class FakeProvider:
    """Canned AppVeyor answers served through ``httpx.MockTransport``.

    Each route holds a queue of responses; every request pops the head and
    the last response keeps being served.  Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, tuple[tuple[str, str], ...]], list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, *responses: Any) -> FakeProvider:
        """Queue responses for *url*: a JSON body, a str body, or an int status."""
        self._routes.setdefault(_route_key(url), []).extend(responses)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get(_route_key(request.url))
        if not queue:
            return httpx.Response(404, text="not found")
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, int):
            return httpx.Response(answer, text="")
        if isinstance(answer, str):
            return httpx.Response(200, text=answer)
        return httpx.Response(200, json=answer)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def count(self, url: str) -> int:
        key = _route_key(url)
        return sum(1 for r in self.requests if _route_key(r.url) == key)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest_asyncio.fixture
async def client(provider: FakeProvider):
    async with AppVeyorClient(BASE_URL, transport=provider.transport) as c:
        yield c


@pytest.fixture
def project_cache() -> ProjectCache:
    """A fresh cache so tests never share the process-wide one."""
    return ProjectCache()


@pytest.fixture
def project() -> Project:
    return Project(
        name="widget",
        id="acme/widget",
        query_url=f"{API}/acme/widget/history?recordsNumber=25",
    )


@pytest.fixture
def no_sleep() -> Callable[[float], Any]:
    """Records requested sleeps without waiting."""
    calls: list[float] = []

    async def _sleep(seconds: float) -> None:
        calls.append(seconds)

    _sleep.calls = calls  # type: ignore[attr-defined]
    return _sleep


# ---------------------------------------------------------------------------
# Payload and record factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_history_entry() -> Callable[..., dict[str, Any]]:
    """Factory fixture: one raw history ``builds[]`` entry."""

    def _factory(
        commit: str = SHA_A,
        build_id: int = 100,
        version: str = "1.0.100",
        status: str = "success",
        **overrides: Any,
    ) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "buildId": build_id,
            "version": version,
            "branch": "main",
            "commitId": commit,
            "status": status,
            "started": "2024-01-01T00:00:00Z",
            "updated": "2024-01-01T00:10:00Z",
        }
        entry.update(overrides)
        return entry

    return _factory


@pytest.fixture
def make_detail() -> Callable[..., dict[str, Any]]:
    """Factory fixture: a build-detail payload with a single job."""

    def _factory(
        status: str = "success",
        tests: int = 0,
        failed: int = 0,
        passed: int = 0,
        **build_overrides: Any,
    ) -> dict[str, Any]:
        build: dict[str, Any] = {
            "jobs": [
                {
                    "status": status,
                    "testsCount": tests,
                    "failedTestsCount": failed,
                    "passedTestsCount": passed,
                }
            ],
            "started": "2024-01-01T00:00:00Z",
            "updated": "2024-01-01T00:05:00Z",
        }
        build.update(build_overrides)
        return {"build": build}

    return _factory


@pytest.fixture
def make_record() -> Callable[..., BuildRecord]:
    """Factory fixture: a BuildRecord for project acme/widget."""

    def _factory(
        commit: str = SHA_A,
        build_id: str = "100",
        version: str = "1.0.100",
        status: BuildStatus = BuildStatus.IN_PROGRESS,
        **overrides: Any,
    ) -> BuildRecord:
        base_api = f"{API}/acme/widget"
        base_web = f"{BASE_URL}/project/acme/widget/build/"
        defaults: dict[str, Any] = {
            "version": version,
            "build_id": build_id,
            "branch": "main",
            "commit_id": commit,
            "status": status,
            "base_web_url": base_web,
            "url": base_web + version,
            "base_api_url": base_api,
            "detail_url": f"{base_api}/build/{version}",
        }
        defaults.update(overrides)
        return BuildRecord(**defaults)

    return _factory
