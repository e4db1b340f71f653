"""Build-server adapter registry."""

from buildsync.plugins.registry import (
    AdapterEntry,
    AdapterRegistry,
    BuildServerAdapter,
    default_registry,
)

__all__ = ["AdapterEntry", "AdapterRegistry", "BuildServerAdapter", "default_registry"]
