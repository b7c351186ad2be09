"""Global counters for observability.

Each counter is bumped exactly once per terminal event:
issued (challenge issued), passed, failed, renewals, decayed.
"""

from __future__ import annotations

from .models import ProtocolStats
from .store import CredentialStore


class StatsAggregator:
    """Thin counter facade over the store so counters persist with the records."""

    def __init__(self, store: CredentialStore):
        self._store = store

    def issued_count(self) -> int:
        return self._store.get_stats().issued

    def record_issued(self) -> int | None:
        return self._store.increment_counter("issued")

    def record_passed(self) -> int | None:
        return self._store.increment_counter("passed")

    def record_failed(self) -> int | None:
        return self._store.increment_counter("failed")

    def record_renewal(self) -> int | None:
        return self._store.increment_counter("renewals")

    def record_decay(self) -> int | None:
        return self._store.increment_counter("decayed")

    def snapshot(self) -> ProtocolStats:
        return self._store.get_stats()
