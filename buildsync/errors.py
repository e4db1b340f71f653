"""Exception hierarchy shared by every buildsync layer."""

from __future__ import annotations


class BuildsyncError(RuntimeError):
    """Base class for all buildsync failures."""


class ProviderError(BuildsyncError):
    """Raised when the CI provider answers with an error or cannot be reached.

    Parameters
    ----------
    message:
        Human-readable description.
    url:
        The request URL (relative or absolute) that failed.
    status_code:
        HTTP status code, or ``None`` for transport-level failures.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class VersionShiftError(ProviderError):
    """Raised when the replacement version of a build cannot be located."""


class OperationCancelled(BuildsyncError):
    """Raised at a fetch boundary once the consumer has cancelled."""


class AdapterStateError(BuildsyncError):
    """Raised when an adapter is initialized twice or used before setup."""
