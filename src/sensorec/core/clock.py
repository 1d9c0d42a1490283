"""Fixed-rate tick source with drift-free deadline scheduling."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from ..tools.debug import debug_enabled

logger = logging.getLogger(__name__)

TimeSource = Callable[[], int]
TickCallback = Callable[[int], None]

NANOS_PER_SECOND = 1_000_000_000


def period_ns_for_rate(rate_hz: float) -> int:
    """Convert a rate in Hz into a positive integer period in nanoseconds."""
    hz = float(rate_hz)
    if hz <= 0.0:
        raise ValueError(f"rate_hz must be positive, got {rate_hz}")
    return max(1, int(round(NANOS_PER_SECOND / hz)))


def deadline_schedule(start_ns: int, period_ns: int) -> Iterator[int]:
    """Yield tick deadlines ``start_ns + i * period_ns`` for ``i = 1, 2, ...``.

    Every deadline is derived from the start time rather than from the
    previous wake-up, so sleep error in one tick never accumulates.
    """
    if period_ns <= 0:
        raise ValueError("period_ns must be positive")
    i = 0
    while True:
        i += 1
        yield start_ns + i * period_ns


class Stopwatch:
    """Monotonic elapsed-time counter."""

    def __init__(self, time_ns: TimeSource = time.monotonic_ns) -> None:
        self._time_ns = time_ns
        self._start_ns: Optional[int] = None
        self._stop_ns: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._start_ns is not None and self._stop_ns is None

    def start(self) -> None:
        self._start_ns = self._time_ns()
        self._stop_ns = None

    def stop(self) -> None:
        if self.running:
            self._stop_ns = self._time_ns()

    def elapsed_ns(self) -> int:
        if self._start_ns is None:
            return 0
        end = self._stop_ns if self._stop_ns is not None else self._time_ns()
        return end - self._start_ns

    @property
    def elapsed_s(self) -> float:
        return self.elapsed_ns() / NANOS_PER_SECOND


@dataclass
class ClockStats:
    period_ns: int = 0
    ticks: int = 0
    overruns: int = 0
    started_ns: int = 0
    last_tick_ns: int = 0

    @property
    def achieved_hz(self) -> float:
        """Mean tick rate between the start and the most recent tick."""
        span = self.last_tick_ns - self.started_ns
        if self.ticks == 0 or span <= 0:
            return 0.0
        return self.ticks * NANOS_PER_SECOND / span


class SampleClock:
    """Fire a callback at a fixed period from a background thread.

    Tick ``i`` is due at ``start + i * period``. A tick that runs late fires
    immediately; the one after it snaps back onto the original grid, skipping
    any deadlines that already passed instead of replaying them in a burst.
    Exceptions raised by the callback are logged and ticking continues.
    """

    def __init__(
        self,
        *,
        time_ns: TimeSource = time.monotonic_ns,
        name: str = "SampleClock",
    ) -> None:
        self._time_ns = time_ns
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.stats = ClockStats()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self, period_ns: int, on_tick: TickCallback) -> bool:
        """Begin ticking every ``period_ns``; returns ``False`` if already running."""
        if period_ns <= 0:
            raise ValueError("period_ns must be positive")
        if self.running:
            return False
        self._stop_event = threading.Event()
        self.stats = ClockStats(period_ns=period_ns, started_ns=self._time_ns())
        self._thread = threading.Thread(
            target=self._run,
            args=(period_ns, on_tick, self._stop_event, self.stats),
            name=self._name,
            daemon=True,
        )
        self._thread.start()
        return True

    def stop(self) -> None:
        """Cancel future ticks. A tick already in progress runs to completion."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(
        self,
        period_ns: int,
        on_tick: TickCallback,
        stop_event: threading.Event,
        stats: ClockStats,
    ) -> None:
        start_ns = stats.started_ns
        deadline_index = 1
        debug_on = debug_enabled()
        while not stop_event.is_set():
            deadline = start_ns + deadline_index * period_ns
            wait_ns = deadline - self._time_ns()
            while wait_ns > 0:
                if stop_event.wait(wait_ns / NANOS_PER_SECOND):
                    return
                wait_ns = deadline - self._time_ns()
            if stop_event.is_set():
                break

            now = self._time_ns()
            stats.ticks += 1
            stats.last_tick_ns = now
            try:
                on_tick(stats.ticks)
            except Exception:
                logger.exception("%s tick callback failed (tick=%d)", self._name, stats.ticks)

            # Snap the next deadline onto the original grid.
            behind = (self._time_ns() - start_ns) // period_ns
            if behind > deadline_index:
                stats.overruns += 1
                if debug_on and stats.overruns % 50 == 1:
                    logger.info(
                        "%s overrun: %d deadline(s) skipped (count=%d)",
                        self._name,
                        behind - deadline_index,
                        stats.overruns,
                    )
                deadline_index = behind
            deadline_index += 1
