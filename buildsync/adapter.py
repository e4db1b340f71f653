"""AppVeyor build-server adapter — the facade a host talks to.

``initialize()`` resolves the tracked projects, reads each project's
history and deduplicates the builds found.  ``get_running_builds()`` then
hands that batch to a :class:`PollLoop` behind a :class:`BuildStream` that
the host subscribes to.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from buildsync.bridge.appveyor_client import AppVeyorClient
from buildsync.config import BuildsyncConfig
from buildsync.core.cancellation import NEVER_CANCELLED, CancellationToken
from buildsync.core.deduplicator import Deduplicator
from buildsync.core.emitter import BuildStream
from buildsync.core.extractor import BuildExtractor
from buildsync.core.poll_loop import PollLoop, Sleep
from buildsync.core.project_catalog import ProjectCache, ProjectCatalog
from buildsync.errors import AdapterStateError, ProviderError
from buildsync.models.builds import BuildRecord, Project

logger = logging.getLogger(__name__)

PLUGIN_NAME = "AppVeyor"


class AppVeyorAdapter:
    """Build-status adapter for AppVeyor.

    Parameters
    ----------
    project_cache:
        Project cache shared with other adapters; the process-wide default
        when ``None``.
    transport:
        Optional ``httpx`` transport handed to the client (tests).
    sleep:
        Awaitable sleep used between poll cycles (tests).
    max_cycles:
        Optional cap on poll cycles per stream.
    """

    name = PLUGIN_NAME

    def __init__(
        self,
        *,
        project_cache: ProjectCache | None = None,
        transport: Any = None,
        sleep: Sleep = asyncio.sleep,
        max_cycles: int | None = None,
    ) -> None:
        self._project_cache = project_cache
        self._transport = transport
        self._sleep = sleep
        self._max_cycles = max_cycles

        self._settings: BuildsyncConfig | None = None
        self._client: AppVeyorClient | None = None
        self._deduplicator = Deduplicator()
        self._pending: list[BuildRecord] | None = None
        self._projects: list[Project] = []

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    async def initialize(
        self,
        settings: BuildsyncConfig,
        *,
        is_relevant: Callable[[str], bool] | None = None,
        replace_variables: Callable[[str], str] | None = None,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> None:
        """Resolve projects and discover their builds.

        Raises
        ------
        AdapterStateError
            If the adapter was already initialized.
        """
        if self._settings is not None:
            raise AdapterStateError("Already initialized")
        self._settings = settings

        if not settings.is_configured:
            logger.info("No account or project configured; adapter stays idle.")
            return

        self._client = AppVeyorClient(
            settings.base_url,
            settings.token,
            timeout_seconds=settings.http_timeout_seconds,
            transport=self._transport,
        )
        catalog = ProjectCatalog(
            self._client, self._project_cache, records_number=settings.records_number
        )
        self._projects = await catalog.resolve(
            settings.account_name,
            settings.token,
            settings.project_names(replace_variables),
            cancel,
        )

        extractor = BuildExtractor(is_relevant, base_url=settings.base_url)
        discovered: list[BuildRecord] = []
        for project in self._projects:
            discovered.extend(
                await self._query_builds(self._client, extractor, project, cancel)
            )
        self._pending = self._deduplicator.filter(discovered)
        logger.info(
            "Found %d build(s) for %d commit(s) across %d project(s)",
            len(discovered),
            len(self._pending),
            len(self._projects),
        )

    @staticmethod
    async def _query_builds(
        client: AppVeyorClient,
        extractor: BuildExtractor,
        project: Project,
        cancel: CancellationToken,
    ) -> list[BuildRecord]:
        try:
            raw = await client.get_history_text(project.query_url, cancel)
        except ProviderError as exc:
            logger.warning("History of %s unavailable: %s", project.name, exc)
            return []
        return extractor.extract(project, raw)

    # ------------------------------------------------------------------
    # Host API
    # ------------------------------------------------------------------

    @property
    def unique_key(self) -> str:
        """Identifies this build server (the provider host)."""
        if self._client is None:
            raise AdapterStateError("Adapter is not connected")
        return self._client.host

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def seen_commits(self) -> frozenset[str]:
        return self._deduplicator.seen

    def get_running_builds(self) -> BuildStream:
        """Stream of the discovered builds, refreshed until all are final.

        The discovered batch is handed to exactly one stream; later calls
        return an empty stream.
        """
        if self._settings is None:
            raise AdapterStateError("Adapter is not initialized")
        if self._client is None or self._pending is None:
            return BuildStream.empty()

        builds, self._pending = self._pending, None
        loop = PollLoop(
            self._client,
            builds,
            load_test_results=self._settings.load_tests_results,
            poll_interval=self._settings.poll_interval_seconds,
            sleep=self._sleep,
            max_cycles=self._max_cycles,
        )
        return BuildStream(loop.run)

    def get_finished_builds_since(self, since: datetime | None = None) -> BuildStream:
        """Always empty: the history endpoint cannot filter by date, and
        every finished build is already part of :meth:`get_running_builds`."""
        return BuildStream.empty()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AppVeyorAdapter:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        state = "idle" if self._client is None else "connected"
        return f"AppVeyorAdapter({state}, projects={len(self._projects)})"
