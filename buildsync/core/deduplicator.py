"""Per-adapter deduplication of discovered builds by commit."""

from __future__ import annotations

from collections.abc import Iterable

from buildsync.models.builds import BuildRecord


class Deduplicator:
    """Keeps the most recent build per commit, once per adapter lifetime.

    The seen set is never purged: a commit delivered once is never
    delivered again, even if the provider later reports it differently.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    @property
    def seen(self) -> frozenset[str]:
        return frozenset(self._seen)

    def filter(self, records: Iterable[BuildRecord]) -> list[BuildRecord]:
        """Return records with an unseen commit, newest first, and mark them seen."""
        fresh: list[BuildRecord] = []
        for record in sorted(records, key=lambda r: r.start_date, reverse=True):
            if record.commit_id in self._seen:
                continue
            self._seen.add(record.commit_id)
            fresh.append(record)
        return fresh
