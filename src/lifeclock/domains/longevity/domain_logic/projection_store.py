"""Holder for the most recently completed projection snapshot.

Refreshes may overlap each other and the countdown ticks. Readers always see
one whole snapshot (old or new). A refresh result is applied only if no newer
refresh has been started or published since it began; staleness is judged by
request sequence, not by completion time.
"""

from __future__ import annotations

import logging
import threading

from lifeclock.domains.longevity.domain_logic.engine import ProjectionSnapshot

logger = logging.getLogger(__name__)


class ProjectionStore:
    """Thread-safe latest-snapshot holder with sequence-based staleness.

    Usage::

        seq = store.begin_refresh()
        snapshot = engine.build_snapshot(..., sequence=seq)
        store.publish(seq, snapshot)   # False if superseded
        latest = store.latest         # read by every countdown tick
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: ProjectionSnapshot | None = None
        self._issued = 0
        self._published = 0

    @property
    def latest(self) -> ProjectionSnapshot | None:
        return self._latest

    @property
    def published_sequence(self) -> int:
        return self._published

    def begin_refresh(self) -> int:
        """Issue the sequence number for a new refresh request."""
        with self._lock:
            self._issued += 1
            return self._issued

    def is_current(self, sequence: int) -> bool:
        """True while no newer refresh has been requested."""
        with self._lock:
            return sequence == self._issued

    def publish(self, sequence: int, snapshot: ProjectionSnapshot) -> bool:
        """Apply ``snapshot`` unless a newer request superseded it."""
        with self._lock:
            if sequence < self._issued or sequence <= self._published:
                logger.info(
                    "Discarding stale projection #%d (latest requested #%d, published #%d)",
                    sequence,
                    self._issued,
                    self._published,
                )
                return False
            self._latest = snapshot
            self._published = sequence
            return True
