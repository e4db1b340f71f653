"""Poll loop — delivers builds and refreshes them until they finish.

Per-record lifecycle
--------------------
1. **Delivered-Initial**: every deduplicated record is emitted once,
   before any refinement.
2. **Enriched**: with test results enabled, records that are already
   Success or Failure get one detail fetch and are emitted again.
3. **Polling**: records still in progress form the active set.  Every
   ``poll_interval`` seconds each one is refreshed in turn from the last
   job of its build detail and re-emitted; records that reached another
   status leave the set.  The loop ends when the set is empty.

Version shift
-------------
The provider may reassign a build's version after the fact, which breaks
the version-qualified detail URL.  When a detail fetch fails, the next
build in the project history (``startBuildId = build_id + 1``, one record)
carries the new version; the record is re-addressed and the detail fetch
is retried exactly once.  If that fails too the record is left unchanged
for this cycle and is retried on the next one.

The cancellation token is checked before every fetch.  Only provider
errors are absorbed; any other failure propagates to the stream.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from pydantic import ValidationError

from buildsync.bridge.appveyor_client import AppVeyorClient, history_url
from buildsync.core.cancellation import NEVER_CANCELLED, CancellationToken
from buildsync.core.emitter import Emit
from buildsync.core.extractor import build_duration_ms, parse_build_status
from buildsync.errors import ProviderError, VersionShiftError
from buildsync.models.appveyor import BuildDetail, BuildDetailResponse, BuildVersionRef
from buildsync.models.builds import BuildRecord

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0

Sleep = Callable[[float], Awaitable[object]]


def format_tests_result(tests: int, failed: int, passed: int) -> str:
    """``"12 tests"`` or ``"12 tests ( 1 failed, 2 skipped )"``; empty for no tests."""
    if tests == 0:
        return ""
    skipped = tests - passed
    text = f"{tests} tests"
    if failed != 0 or skipped != 0:
        text += f" ( {failed} failed, {skipped} skipped )"
    return text


def apply_build_detail(record: BuildRecord, detail: BuildDetail) -> None:
    """Fold the latest job of *detail* into *record*.

    Status only advances out of InProgress; a record that already holds a
    final classification keeps it.  Duration is set for Success and
    Failure only.
    """
    job = detail.jobs[-1]

    if record.is_running:
        record.status = parse_build_status(job.status)
    record.progress_counter += 1

    if record.status.has_duration:
        record.duration_ms = build_duration_ms(detail.started, detail.created, detail.updated)

    tests_text = format_tests_result(
        job.tests_count, job.failed_tests_count, job.passed_tests_count
    )
    if tests_text:
        record.tests_result_text = tests_text


class PollLoop:
    """Drives one batch of builds from first delivery to terminal status.

    Parameters
    ----------
    client:
        Provider client used for build detail and history lookups.
    builds:
        Deduplicated records, in delivery order.
    load_test_results:
        Fetch test counts for builds that are already finished.
    poll_interval:
        Seconds between refresh cycles.
    sleep:
        Awaitable sleep, injectable for tests.
    max_cycles:
        Optional upper bound on refresh cycles.  ``None`` polls until every
        build is final, however long that takes.
    """

    def __init__(
        self,
        client: AppVeyorClient,
        builds: Sequence[BuildRecord],
        *,
        load_test_results: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        sleep: Sleep = asyncio.sleep,
        max_cycles: int | None = None,
    ) -> None:
        self._client = client
        self._builds = list(builds)
        self._load_test_results = load_test_results
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._max_cycles = max_cycles
        self.cycles = 0

    async def run(self, emit: Emit, cancel: CancellationToken = NEVER_CANCELLED) -> None:
        builds, self._builds = self._builds, []

        for record in builds:
            emit(record)

        if self._load_test_results:
            for record in builds:
                if record.status.has_duration:
                    if await self.refresh(record, cancel):
                        emit(record)

        active = [r for r in builds if r.is_running]
        logger.info(
            "Delivered %d build(s); %d still in progress", len(builds), len(active)
        )
        while active:
            if self._max_cycles is not None and self.cycles >= self._max_cycles:
                logger.warning(
                    "Stopping after %d cycle(s) with %d build(s) still in progress",
                    self.cycles,
                    len(active),
                )
                return
            await self._sleep(self._poll_interval)
            self.cycles += 1
            for record in active:
                if await self.refresh(record, cancel):
                    emit(record)
            active = [r for r in active if r.is_running]
            logger.debug("Cycle %d: %d build(s) in progress", self.cycles, len(active))

    async def refresh(self, record: BuildRecord, cancel: CancellationToken) -> bool:
        """Fetch and apply the current detail of *record*.

        Returns ``False`` when the detail could not be fetched even after
        version-shift recovery; the record is then unchanged.
        """
        response = await self.fetch_detail(record, cancel)
        if response is None:
            return False
        apply_build_detail(record, response.build)
        return True

    async def fetch_detail(
        self, record: BuildRecord, cancel: CancellationToken
    ) -> BuildDetailResponse | None:
        try:
            return await self._client.get_build_detail(record.detail_url, cancel)
        except ProviderError as exc:
            logger.info(
                "Detail of build %s (%s) unavailable, checking for a new version: %s",
                record.build_id,
                record.version,
                exc,
            )

        try:
            await self.recover_version(record, cancel)
            return await self._client.get_build_detail(record.detail_url, cancel)
        except ProviderError as exc:
            logger.warning(
                "Build %s (%s) could not be refreshed this cycle: %s",
                record.build_id,
                record.version,
                exc,
            )
            return None

    async def recover_version(self, record: BuildRecord, cancel: CancellationToken) -> None:
        """Re-address *record* using the version of the next history entry."""
        try:
            start_build_id = int(record.build_id) + 1
        except ValueError as exc:
            raise VersionShiftError(
                f"Build id {record.build_id!r} is not numeric", url=record.detail_url
            ) from exc

        url = history_url(record.base_api_url, 1, start_build_id)
        history = await self._client.get_history(url, cancel)
        if not history.builds:
            raise VersionShiftError("History lookup returned no build", url=url)
        try:
            ref = BuildVersionRef.model_validate(history.builds[0])
        except ValidationError as exc:
            raise VersionShiftError(f"History entry has no version: {exc}", url=url) from exc

        logger.info(
            "Build %s moved from version %s to %s", record.build_id, record.version, ref.version
        )
        record.rewrite_version(ref.version)
