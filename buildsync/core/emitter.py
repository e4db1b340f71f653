"""Build stream — push-based, cancellable delivery of build snapshots.

A :class:`BuildStream` wraps one producer coroutine (normally
:meth:`PollLoop.run`) and hands its emissions to exactly one consumer,
either an observer object via :meth:`BuildStream.subscribe` or an
``async for`` loop.  The stream completes exactly once: ``on_completed``
or ``on_error``, never both, and nothing is delivered afterwards.
Cancellation completes the stream cleanly.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol

from buildsync.core.cancellation import CancellationToken
from buildsync.errors import AdapterStateError, OperationCancelled
from buildsync.models.builds import BuildRecord

logger = logging.getLogger(__name__)

Emit = Callable[[BuildRecord], None]
Producer = Callable[[Emit, CancellationToken], Awaitable[None]]


class BuildObserver(Protocol):
    """Consumer side of a :class:`BuildStream`."""

    def on_next(self, record: BuildRecord) -> None: ...

    def on_error(self, error: BaseException) -> None: ...

    def on_completed(self) -> None: ...


class Subscription:
    """Handle returned by :meth:`BuildStream.subscribe`."""

    def __init__(
        self,
        future: asyncio.Future[None] | concurrent.futures.Future[None],
        token: CancellationToken,
    ) -> None:
        self._future = future
        self._token = token

    def cancel(self) -> None:
        """Ask the producer to stop at its next fetch boundary."""
        self._token.cancel()

    @property
    def is_cancelled(self) -> bool:
        return self._token.is_cancelled

    @property
    def done(self) -> bool:
        return self._future.done()

    async def wait(self) -> None:
        """Wait until the stream has completed (either way)."""
        if isinstance(self._future, concurrent.futures.Future):
            await asyncio.wrap_future(self._future)
        else:
            await self._future


class BuildStream:
    """Single-consumer stream of :class:`BuildRecord` snapshots.

    Parameters
    ----------
    producer:
        Coroutine function receiving an ``emit`` callback and the
        stream's cancellation token.  ``None`` makes an empty stream.
    """

    def __init__(self, producer: Producer | None) -> None:
        self._producer = producer
        self._subscribed = False

    @classmethod
    def empty(cls) -> BuildStream:
        return cls(None)

    def subscribe(
        self,
        observer: BuildObserver,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> Subscription:
        """Start the producer on *loop* and push its output to *observer*.

        *loop* defaults to the running loop.  A loop running on another
        thread is supported; the producer is then scheduled thread-safely.
        """
        if self._subscribed:
            raise AdapterStateError("A build stream supports a single consumer.")
        running = _running_loop()
        target = loop or running
        if target is None:
            raise AdapterStateError("subscribe() needs a running or explicit event loop.")
        self._subscribed = True

        token = CancellationToken()
        future: asyncio.Future[None] | concurrent.futures.Future[None]
        if target is running:
            future = target.create_task(self._drive(observer, token))
        else:
            future = asyncio.run_coroutine_threadsafe(self._drive(observer, token), target)
        return Subscription(future, token)

    async def _drive(self, observer: BuildObserver, token: CancellationToken) -> None:
        def emit(record: BuildRecord) -> None:
            if token.is_cancelled:
                return
            observer.on_next(record.model_copy())

        try:
            if self._producer is not None:
                await self._producer(emit, token)
        except OperationCancelled:
            logger.debug("Build stream cancelled by consumer")
        except Exception as exc:
            logger.exception("Build stream failed")
            observer.on_error(exc)
            return
        observer.on_completed()

    async def __aiter__(self) -> AsyncIterator[BuildRecord]:
        queue: asyncio.Queue[tuple[str, object]] = asyncio.Queue()
        subscription = self.subscribe(_QueueObserver(queue))
        try:
            while True:
                kind, value = await queue.get()
                if kind == "next":
                    yield value  # type: ignore[misc]
                elif kind == "error":
                    raise value  # type: ignore[misc]
                else:
                    return
        finally:
            subscription.cancel()

    async def collect(self) -> list[BuildRecord]:
        """Drain the whole stream into a list."""
        return [record async for record in self]


class _QueueObserver:
    def __init__(self, queue: asyncio.Queue[tuple[str, object]]) -> None:
        self._queue = queue

    def on_next(self, record: BuildRecord) -> None:
        self._queue.put_nowait(("next", record))

    def on_error(self, error: BaseException) -> None:
        self._queue.put_nowait(("error", error))

    def on_completed(self) -> None:
        self._queue.put_nowait(("completed", None))


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
