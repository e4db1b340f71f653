"""Cooperative cancellation passed explicitly through every fetch."""

from __future__ import annotations

import threading

from buildsync.errors import OperationCancelled


class CancellationToken:
    """A one-way flag set by the consumer and checked by the producer.

    The flag is a ``threading.Event`` so a consumer on any thread may
    cancel; the producer only ever reads it at fetch boundaries.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelled` once :meth:`cancel` was called."""
        if self._event.is_set():
            raise OperationCancelled("Build stream cancelled by consumer.")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


# Shared token that is never cancelled, for one-shot calls.
NEVER_CANCELLED = CancellationToken()
