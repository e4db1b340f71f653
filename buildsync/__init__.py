"""Buildsync: live CI build status for version-control commits.

Discovers the builds of tracked AppVeyor projects, maps each to a commit,
drops duplicates and keeps refreshing unfinished builds until they reach a
final status, pushing every update to a single consumer.
"""

__version__ = "0.1.0"
__description__ = "Live AppVeyor build status for commit history views"

from buildsync.adapter import AppVeyorAdapter
from buildsync.core.emitter import BuildStream
from buildsync.models.builds import BuildRecord, BuildStatus, Project

__all__ = [
    "AppVeyorAdapter",
    "BuildStream",
    "BuildRecord",
    "BuildStatus",
    "Project",
    "__version__",
]
