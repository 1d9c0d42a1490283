"""Live preview loop: refresh notifications without recording anything."""

from __future__ import annotations

import functools
import logging
import threading
from typing import Callable, Optional

from ..config.recording import validate_duration_s
from ..sensors.feed import SensorFeed, Snapshot
from .clock import NANOS_PER_SECOND, SampleClock, Stopwatch, period_ns_for_rate

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_HZ = 30.0


class MonitoringSession:
    """Tick at a UI refresh rate for ``duration_s`` and report the live values.

    ``on_refresh(elapsed_s, snapshot)`` runs on every tick; ``on_stopped()``
    runs once when the session ends, whether it timed out or was stopped.
    A non-positive ``refresh_hz`` raises ``ValueError`` at construction.
    """

    def __init__(
        self,
        feed: SensorFeed,
        duration_s: float,
        *,
        refresh_hz: float = DEFAULT_REFRESH_HZ,
        on_refresh: Optional[Callable[[float, Snapshot], None]] = None,
        on_stopped: Optional[Callable[[], None]] = None,
        clock_factory: Callable[[], SampleClock] | None = None,
        stopwatch_factory: Callable[[], Stopwatch] = Stopwatch,
    ) -> None:
        self.feed = feed
        self.duration_s = validate_duration_s(duration_s)
        self.refresh_hz = float(refresh_hz)
        self._period_ns = period_ns_for_rate(self.refresh_hz)
        self.on_refresh = on_refresh
        self.on_stopped = on_stopped
        self._clock_factory = clock_factory or (lambda: SampleClock(name="MonitorClock"))
        self._stopwatch_factory = stopwatch_factory
        self._lock = threading.RLock()
        self._done = threading.Event()
        self._done.set()
        self._running = False
        self._clock: Optional[SampleClock] = None
        self._stopwatch: Optional[Stopwatch] = None
        self._generation = 0
        self.ticks = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def elapsed_s(self) -> float:
        with self._lock:
            return self._stopwatch.elapsed_s if self._stopwatch is not None else 0.0

    def set_duration(self, duration_s: float) -> None:
        """Change the duration for the next run (ignored while running)."""
        with self._lock:
            if self._running:
                logger.debug("Ignoring duration change while monitoring")
                return
            self.duration_s = validate_duration_s(duration_s)

    def start(self) -> bool:
        with self._lock:
            if self._running:
                return False
            self._running = True
            self._done.clear()
            self._generation += 1
            self.ticks = 0
            self.feed.subscribe()
            self._stopwatch = self._stopwatch_factory()
            self._clock = self._clock_factory()
            self._stopwatch.start()
            self._clock.start(
                self._period_ns,
                functools.partial(self._on_tick, generation=self._generation),
            )
            logger.info("Monitoring for %.3f s at %.1f Hz", self.duration_s, self.refresh_hz)
            return True

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._shutdown()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def _on_tick(self, tick: int, *, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            self.ticks += 1
            elapsed_ns = self._stopwatch.elapsed_ns() if self._stopwatch is not None else 0
            if self.on_refresh is not None:
                try:
                    self.on_refresh(elapsed_ns / NANOS_PER_SECOND, self.feed.snapshot())
                except Exception:
                    logger.exception("Monitor refresh callback failed")
            if elapsed_ns >= int(round(self.duration_s * NANOS_PER_SECOND)):
                self._shutdown()

    def _shutdown(self) -> None:
        self._running = False
        if self._clock is not None:
            self._clock.stop()
        if self._stopwatch is not None:
            self._stopwatch.stop()
        self.feed.unsubscribe()
        self._done.set()
        if self.on_stopped is not None:
            try:
                self.on_stopped()
            except Exception:
                logger.exception("Monitor stop callback failed")
