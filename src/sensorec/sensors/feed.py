"""
Latest-value adapter over three independently updating sensor sources.

Sources push samples at whatever cadence the hardware or OS picks; the feed
only remembers the newest sample per :class:`SensorKind` so that a fixed-rate
clock can read a consistent snapshot without consuming anything.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

from .models import SENSOR_KINDS, SensorKind, SensorSample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[SensorSample], None]
Snapshot = Tuple[Optional[SensorSample], Optional[SensorSample], Optional[SensorSample]]


class SensorSource(Protocol):
    """Push-based source for one sensor kind."""

    kind: SensorKind

    def subscribe(self, callback: SampleCallback) -> None:  # pragma: no cover - protocol
        ...

    def unsubscribe(self) -> None:  # pragma: no cover - protocol
        ...


class LatestSensorState:
    """Newest sample per sensor kind, guarded by a lock.

    Samples are immutable, so replacing the stored reference under the lock
    is enough to rule out torn reads of the three-axis tuple.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Dict[SensorKind, Optional[SensorSample]] = {
            kind: None for kind in SENSOR_KINDS
        }

    def update(self, sample: SensorSample) -> None:
        with self._lock:
            self._latest[sample.kind] = sample

    def get(self, kind: SensorKind) -> Optional[SensorSample]:
        with self._lock:
            return self._latest[kind]

    def snapshot(self) -> Snapshot:
        """Return ``(acc, gyro, mag)`` read under a single lock acquisition."""
        with self._lock:
            return (
                self._latest[SensorKind.ACCELERATION],
                self._latest[SensorKind.ANGULAR_RATE],
                self._latest[SensorKind.MAGNETIC_FIELD],
            )

    def clear(self) -> None:
        with self._lock:
            for kind in SENSOR_KINDS:
                self._latest[kind] = None


class SensorFeed:
    """Owns the subscriptions to all sensor sources and their latest values.

    ``subscribe``/``unsubscribe`` are reference counted so a recording and a
    monitoring session can share one feed; the sources are only torn down
    when the last user lets go. Values survive ``unsubscribe`` until
    :meth:`clear` is called or the feed is subscribed again from idle.
    """

    def __init__(self, sources: Iterable[SensorSource]) -> None:
        self._sources: Dict[SensorKind, SensorSource] = {}
        for source in sources:
            if source.kind in self._sources:
                raise ValueError(f"Duplicate source for {source.kind.name}")
            self._sources[source.kind] = source
        self.state = LatestSensorState()
        self._users = 0
        self._lock = threading.Lock()

    @property
    def subscribed(self) -> bool:
        with self._lock:
            return self._users > 0

    def subscribe(self) -> None:
        with self._lock:
            self._users += 1
            if self._users > 1:
                return
            # First user: values from an earlier session are stale.
            self.state.clear()
            for kind, source in self._sources.items():
                try:
                    source.subscribe(self._ingest)
                except Exception:
                    # A kind that cannot be subscribed simply never reports.
                    logger.exception("Failed to subscribe to %s source", kind.name)

    def unsubscribe(self) -> None:
        with self._lock:
            if self._users == 0:
                return
            self._users -= 1
            if self._users > 0:
                return
            for kind, source in self._sources.items():
                try:
                    source.unsubscribe()
                except Exception:
                    logger.exception("Failed to unsubscribe from %s source", kind.name)

    def latest(self, kind: SensorKind) -> Optional[SensorSample]:
        """Latest sample for ``kind`` or ``None`` if nothing has arrived yet."""
        return self.state.get(kind)

    def snapshot(self) -> Snapshot:
        return self.state.snapshot()

    def clear(self) -> None:
        self.state.clear()

    def push(self, sample: SensorSample) -> None:
        """Ingest a sample directly (used by sources without their own thread)."""
        self._ingest(sample)

    def _ingest(self, sample: SensorSample) -> None:
        self.state.update(sample)
