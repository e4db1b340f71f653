"""Buildsync data models — Pydantic v2."""

from buildsync.models.appveyor import (
    BuildDetail,
    BuildDetailResponse,
    BuildJob,
    BuildVersionRef,
    HistoryBuild,
    HistoryProject,
    HistoryResponse,
    ProjectListItem,
)
from buildsync.models.builds import EPOCH_MIN, BuildRecord, BuildStatus, Project

__all__ = [
    # domain
    "BuildStatus",
    "BuildRecord",
    "Project",
    "EPOCH_MIN",
    # provider schema
    "ProjectListItem",
    "HistoryProject",
    "HistoryResponse",
    "BuildVersionRef",
    "HistoryBuild",
    "BuildJob",
    "BuildDetail",
    "BuildDetailResponse",
]
