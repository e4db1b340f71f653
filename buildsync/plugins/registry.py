"""Adapter registry — explicit name -> factory mapping for build servers.

Hosts look adapters up by name (``"AppVeyor"``) and call ``create()``;
there is no attribute scanning or import-time discovery.  Every adapter
satisfies the :class:`BuildServerAdapter` protocol.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from buildsync.config import BuildsyncConfig
from buildsync.core.emitter import BuildStream

logger = logging.getLogger(__name__)


@runtime_checkable
class BuildServerAdapter(Protocol):
    """What a host needs from a build-server adapter."""

    name: str

    async def initialize(
        self,
        settings: BuildsyncConfig,
        *,
        is_relevant: Callable[[str], bool] | None = None,
        replace_variables: Callable[[str], str] | None = None,
    ) -> None: ...

    @property
    def unique_key(self) -> str: ...

    def get_running_builds(self) -> BuildStream: ...

    def get_finished_builds_since(self, since: datetime | None = None) -> BuildStream: ...

    async def aclose(self) -> None: ...


class AdapterEntry(BaseModel):
    """Immutable registration of one adapter kind.

    Examples
    --------
    >>> from buildsync.adapter import AppVeyorAdapter
    >>> entry = AdapterEntry(name="AppVeyor", factory=AppVeyorAdapter)
    >>> entry.enabled
    True
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    factory: Callable[..., Any]
    description: str = ""
    enabled: bool = True


class AdapterRegistry:
    """In-memory registry of adapter factories keyed by name."""

    def __init__(self) -> None:
        self._entries: dict[str, AdapterEntry] = {}

    def register(self, entry: AdapterEntry) -> None:
        """Add *entry*.

        Raises
        ------
        ValueError
            If an adapter with the same name is already registered.
        """
        if entry.name in self._entries:
            raise ValueError(f"Adapter '{entry.name}' is already registered.")
        self._entries[entry.name] = entry
        logger.debug("Registered adapter %s", entry.name)

    def unregister(self, name: str) -> bool:
        """Remove *name*; ``False`` if it was not registered."""
        if self._entries.pop(name, None) is None:
            logger.warning("Cannot unregister '%s': not found in registry.", name)
            return False
        return True

    def get(self, name: str) -> AdapterEntry | None:
        return self._entries.get(name)

    def list_adapters(self, enabled_only: bool = True) -> list[AdapterEntry]:
        """Registered adapters sorted by name."""
        entries = [e for e in self._entries.values() if e.enabled or not enabled_only]
        return sorted(entries, key=lambda e: e.name)

    def create(self, name: str, **kwargs: Any) -> BuildServerAdapter:
        """Instantiate the adapter registered as *name*.

        Raises
        ------
        KeyError
            If *name* is unknown or disabled.
        """
        entry = self._entries.get(name)
        if entry is None or not entry.enabled:
            raise KeyError(f"No enabled adapter named '{name}'.")
        return entry.factory(**kwargs)

    def __contains__(self, name: object) -> bool:
        return name in self._entries


def default_registry() -> AdapterRegistry:
    """A registry holding every adapter shipped with buildsync."""
    from buildsync.adapter import PLUGIN_NAME, AppVeyorAdapter

    registry = AdapterRegistry()
    registry.register(
        AdapterEntry(
            name=PLUGIN_NAME,
            factory=AppVeyorAdapter,
            description="AppVeyor build status via the REST API",
        )
    )
    return registry
