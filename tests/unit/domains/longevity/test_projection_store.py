"""Tests for ProjectionStore — sequence-based staleness."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from lifeclock.domains.longevity.domain_logic.engine import ProjectionSnapshot
from lifeclock.domains.longevity.domain_logic.projection_calculator import ProjectionOutcome
from lifeclock.domains.longevity.domain_logic.projection_store import ProjectionStore

NOW = datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc)


def _snapshot(sequence: int) -> ProjectionSnapshot:
    empty = ProjectionOutcome(projection=None)
    return ProjectionSnapshot(current=empty, optimal=empty, anchor=NOW, sequence=sequence)


class TestProjectionStore:
    def test_empty_store(self):
        store = ProjectionStore()
        assert store.latest is None
        assert store.published_sequence == 0

    def test_sequences_increase(self):
        store = ProjectionStore()
        assert store.begin_refresh() == 1
        assert store.begin_refresh() == 2

    def test_publish_current_request(self):
        store = ProjectionStore()
        seq = store.begin_refresh()
        assert store.publish(seq, _snapshot(seq)) is True
        assert store.latest.sequence == seq
        assert store.published_sequence == seq

    def test_older_request_finishing_last_is_discarded(self):
        store = ProjectionStore()
        first = store.begin_refresh()
        second = store.begin_refresh()

        assert store.publish(second, _snapshot(second)) is True
        assert store.publish(first, _snapshot(first)) is False
        assert store.latest.sequence == second

    def test_superseded_request_discarded_even_before_newer_publishes(self):
        store = ProjectionStore()
        first = store.begin_refresh()
        store.begin_refresh()

        assert store.is_current(first) is False
        assert store.publish(first, _snapshot(first)) is False
        assert store.latest is None

    def test_republish_same_sequence_rejected(self):
        store = ProjectionStore()
        seq = store.begin_refresh()
        store.publish(seq, _snapshot(seq))
        assert store.publish(seq, _snapshot(seq)) is False

    def test_concurrent_refreshes_keep_newest(self):
        store = ProjectionStore()
        barrier = threading.Barrier(8)
        results: dict[int, bool] = {}
        lock = threading.Lock()

        def refresh():
            seq = store.begin_refresh()
            barrier.wait()
            ok = store.publish(seq, _snapshot(seq))
            with lock:
                results[seq] = ok

        threads = [threading.Thread(target=refresh) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(results.values()) == 1
        assert results[8] is True
        assert store.latest.sequence == 8
