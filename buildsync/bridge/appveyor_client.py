"""AppVeyor REST client — thin async wrapper over ``httpx.AsyncClient``.

Bridge boundary
---------------
Everything above this module deals in validated pydantic models; nothing
above it builds request URLs by hand or touches ``httpx`` directly.

Every request first checks the caller's :class:`CancellationToken`, so a
cancelled stream stops at the next fetch boundary rather than mid-request.
Non-2xx answers, transport failures and non-JSON bodies all surface as
:class:`ProviderError`; callers decide whether that means "zero results"
(catalog, history) or "try to recover" (build detail).
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import TypeAdapter, ValidationError

from buildsync.config import APPVEYOR_WEB_URL
from buildsync.core.cancellation import NEVER_CANCELLED, CancellationToken
from buildsync.errors import ProviderError
from buildsync.models.appveyor import (
    BuildDetailResponse,
    HistoryResponse,
    ProjectListItem,
)

logger = logging.getLogger(__name__)

_PROJECT_LIST = TypeAdapter(list[ProjectListItem])


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


def api_projects_url(base_url: str = APPVEYOR_WEB_URL) -> str:
    return base_url.rstrip("/") + "/api/projects/"


def project_api_url(project_id: str, base_url: str = APPVEYOR_WEB_URL) -> str:
    """``{base}/api/projects/{account}/{slug}``: root of a project's API."""
    return api_projects_url(base_url) + project_id


def project_web_url(project_id: str, base_url: str = APPVEYOR_WEB_URL) -> str:
    """``{base}/project/{account}/{slug}/build/``: prefix of build pages."""
    return f"{base_url.rstrip('/')}/project/{project_id}/build/"


def history_url(
    api_url: str,
    records_number: int,
    start_build_id: int | None = None,
) -> str:
    url = f"{api_url}/history?recordsNumber={records_number}"
    if start_build_id is not None:
        url += f"&startBuildId={start_build_id}"
    return url


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class AppVeyorClient:
    """Async read-only client for the AppVeyor API.

    Parameters
    ----------
    base_url:
        Provider web root, e.g. ``https://ci.appveyor.com``.
    token:
        Optional bearer token.  Without one, only public projects named
        explicitly can be queried.
    timeout_seconds:
        Per-request timeout.
    transport:
        Optional ``httpx`` transport, used by tests to serve canned answers.
    """

    def __init__(
        self,
        base_url: str = APPVEYOR_WEB_URL,
        token: str | None = None,
        *,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    @property
    def host(self) -> str:
        return urlsplit(self.base_url).hostname or self.base_url

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    async def get_text(
        self, url: str, cancel: CancellationToken = NEVER_CANCELLED
    ) -> str:
        """GET *url* and return the body; raise :class:`ProviderError` on failure."""
        cancel.raise_if_cancelled()
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise ProviderError(f"GET {url} failed: {exc}", url=url) from exc

        logger.debug("GET %s -> %d", url, response.status_code)
        if not response.is_success:
            raise ProviderError(
                f"GET {url} returned HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response.text

    async def get_json(
        self, url: str, cancel: CancellationToken = NEVER_CANCELLED
    ) -> Any:
        text = await self.get_text(url, cancel)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"GET {url} returned invalid JSON: {exc}", url=url) from exc

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def list_projects(
        self, cancel: CancellationToken = NEVER_CANCELLED
    ) -> list[ProjectListItem]:
        """``GET /api/projects/``: every project visible to the token."""
        url = api_projects_url(self.base_url)
        try:
            return _PROJECT_LIST.validate_python(await self.get_json(url, cancel))
        except ValidationError as exc:
            raise ProviderError(f"Unexpected project list shape: {exc}", url=url) from exc

    async def get_history_text(
        self, url: str, cancel: CancellationToken = NEVER_CANCELLED
    ) -> str:
        """Raw history page; parsing is left to the extractor."""
        return await self.get_text(url, cancel)

    async def get_history(
        self, url: str, cancel: CancellationToken = NEVER_CANCELLED
    ) -> HistoryResponse:
        try:
            return HistoryResponse.model_validate(await self.get_json(url, cancel))
        except ValidationError as exc:
            raise ProviderError(f"Unexpected history shape: {exc}", url=url) from exc

    async def get_build_detail(
        self, url: str, cancel: CancellationToken = NEVER_CANCELLED
    ) -> BuildDetailResponse:
        """Build detail by its version-qualified URL.

        A shape mismatch is *not* converted to :class:`ProviderError`: the
        provider answered, so the ``ValidationError`` escalates.
        """
        return BuildDetailResponse.model_validate(await self.get_json(url, cancel))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AppVeyorClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"AppVeyorClient(base_url={self.base_url!r})"
