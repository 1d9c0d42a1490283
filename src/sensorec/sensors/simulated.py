"""Synthetic sensor sources for benchmarking without hardware.

Each :class:`SimulatedSource` runs its own daemon thread and pushes samples at
an irregular cadence around ``rate_hz``, the way real phone/IMU sensor streams
arrive independently of the recorder's sampling clock.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import List, Optional

import numpy as np

from .feed import SampleCallback
from .models import SENSOR_KINDS, SensorKind, SensorSample

logger = logging.getLogger(__name__)

# (offset, amplitude, frequency Hz) per axis
_PROFILES = {
    SensorKind.ACCELERATION: ((0.0, 0.3, 1.3), (0.0, 0.3, 0.9), (9.80665, 0.2, 0.5)),
    SensorKind.ANGULAR_RATE: ((0.0, 0.05, 0.7), (0.0, 0.05, 1.1), (0.0, 0.1, 0.4)),
    SensorKind.MAGNETIC_FIELD: ((22.0, 1.0, 0.2), (-5.0, 1.0, 0.3), (-42.0, 1.0, 0.1)),
}


class SimulatedSource:
    """Push sinusoid-plus-noise samples for one sensor kind.

    ``rate_hz <= 0`` produces a source that never fires, which is handy for
    exercising the missing-sample path.
    """

    def __init__(
        self,
        kind: SensorKind,
        rate_hz: float = 100.0,
        *,
        start_delay_s: float = 0.0,
        jitter: float = 0.2,
        noise: float = 0.01,
        seed: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.rate_hz = float(rate_hz)
        self.start_delay_s = max(0.0, float(start_delay_s))
        self.jitter = min(0.9, max(0.0, float(jitter)))
        self.noise = float(noise)
        self._rng = np.random.default_rng(seed)
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._callback: Optional[SampleCallback] = None

    def subscribe(self, callback: SampleCallback) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._callback = callback
        if self.rate_hz <= 0.0:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"SimulatedSource({self.kind.prefix})",
            daemon=True,
        )
        self._thread.start()

    def unsubscribe(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
        self._thread = None
        self._callback = None

    def sample_at(self, t_s: float) -> SensorSample:
        axes = []
        for offset, amplitude, freq in _PROFILES[self.kind]:
            value = offset + amplitude * math.sin(2.0 * math.pi * freq * t_s)
            value += float(self._rng.normal(0.0, self.noise))
            axes.append(value)
        return SensorSample(self.kind, axes[0], axes[1], axes[2])

    def _run(self) -> None:
        if self.start_delay_s and self._stop_event.wait(self.start_delay_s):
            return
        period = 1.0 / self.rate_hz
        t0 = time.monotonic()
        while not self._stop_event.is_set():
            callback = self._callback
            if callback is None:
                break
            try:
                callback(self.sample_at(time.monotonic() - t0))
            except Exception:
                logger.exception("Sample callback failed for %s", self.kind.name)
            spread = period * self.jitter
            self._stop_event.wait(period + float(self._rng.uniform(-spread, spread)))


def simulated_sources(
    rate_hz: float = 100.0, *, seed: Optional[int] = None
) -> List[SimulatedSource]:
    """Build one simulated source per sensor kind."""
    sources = []
    for i, kind in enumerate(SENSOR_KINDS):
        kind_seed = None if seed is None else seed + i
        sources.append(SimulatedSource(kind, rate_hz, seed=kind_seed))
    return sources
