"""Project catalog — resolves the set of tracked projects.

Projects come either straight from configuration (explicit names, no
token: URLs are pre-computable) or from listing the account's projects.
Resolved projects are cached per process in a :class:`ProjectCache` so that
later adapters reuse them; the cache owns a lock and is the only writer of
its mapping.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from buildsync.bridge.appveyor_client import (
    AppVeyorClient,
    history_url,
    project_api_url,
)
from buildsync.core.cancellation import NEVER_CANCELLED, CancellationToken
from buildsync.errors import ProviderError
from buildsync.models.builds import Project

logger = logging.getLogger(__name__)


class ProjectCache:
    """Thread-safe name -> :class:`Project` mapping shared across adapters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._projects: dict[str, Project] = {}

    def satisfies(self, project_names: list[str] | None) -> bool:
        """Whether the cached set already answers the request.

        ``None`` ("use all") is satisfied by any non-empty cache; an explicit
        list is satisfied when every name is cached.
        """
        with self._lock:
            if not self._projects:
                return False
            if project_names is None:
                return True
            return all(name in self._projects for name in project_names)

    def replace(self, projects: Iterable[Project]) -> None:
        """Clear the cache and store *projects*."""
        with self._lock:
            self._projects = {p.name: p for p in projects}

    def select(self, project_names: list[str] | None) -> list[Project]:
        with self._lock:
            if project_names is None:
                return list(self._projects.values())
            return [self._projects[n] for n in project_names if n in self._projects]

    def clear(self) -> None:
        with self._lock:
            self._projects.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._projects)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._projects


# Process-wide cache used when an adapter is not given its own.
default_project_cache = ProjectCache()


class ProjectCatalog:
    """Resolves :class:`Project` objects for one adapter.

    Parameters
    ----------
    client:
        The provider client used to list projects when a token is present.
    cache:
        Shared project cache; defaults to :data:`default_project_cache`.
    records_number:
        History page size baked into each project's ``query_url``.
    """

    def __init__(
        self,
        client: AppVeyorClient,
        cache: ProjectCache | None = None,
        *,
        records_number: int = 25,
    ) -> None:
        self._client = client
        self._cache = cache if cache is not None else default_project_cache
        self._records_number = records_number

    def make_project(self, name: str, project_id: str) -> Project:
        api_url = project_api_url(project_id, self._client.base_url)
        return Project(
            name=name,
            id=project_id,
            query_url=history_url(api_url, self._records_number),
        )

    async def resolve(
        self,
        account_name: str,
        token: str | None,
        project_names: list[str] | None,
        cancel: CancellationToken = NEVER_CANCELLED,
    ) -> list[Project]:
        """Return the projects to poll.

        Parameters
        ----------
        account_name:
            Account owning the projects; may be empty.
        token:
            Bearer token, or ``None``.
        project_names:
            Names to keep, or ``None`` for every project of the account.
        """
        if not self._cache.satisfies(project_names):
            if token is None and project_names is not None:
                self._cache.replace(self._from_settings(account_name, project_names))
            elif account_name.strip():
                self._cache.replace(
                    await self._from_account(account_name, project_names, cancel)
                )
            else:
                logger.warning(
                    "A token is configured but the account name is empty; "
                    "no projects can be listed."
                )
                self._cache.clear()

        projects = self._cache.select(project_names)
        logger.info("Resolved %d project(s) for account %r", len(projects), account_name)
        return projects

    def _from_settings(self, account_name: str, project_names: list[str]) -> list[Project]:
        return [
            self.make_project(name, _combine(account_name, name))
            for name in project_names
        ]

    async def _from_account(
        self,
        account_name: str,
        project_names: list[str] | None,
        cancel: CancellationToken,
    ) -> list[Project]:
        try:
            listed = await self._client.list_projects(cancel)
        except ProviderError as exc:
            logger.warning("Could not list projects of %r: %s", account_name, exc)
            return []

        projects = []
        for item in listed:
            if project_names is None or item.name in project_names:
                projects.append(self.make_project(item.name, _combine(account_name, item.slug)))
        return projects


def _combine(account_name: str, name: str) -> str:
    """Join with a single ``/``, tolerating slashes on either side."""
    account_name = account_name.strip().rstrip("/")
    name = name.strip().lstrip("/")
    if not account_name:
        return name
    return f"{account_name}/{name}"
