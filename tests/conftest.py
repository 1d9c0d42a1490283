from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from sensorec.core.clock import ClockStats, Stopwatch
from sensorec.dataio.storage import StorageUnavailable
from sensorec.sensors.feed import SensorFeed
from sensorec.sensors.models import SENSOR_KINDS, SensorKind, SensorSample


class FakeTime:
    """Manually advanced nanosecond time source."""

    def __init__(self, start_ns: int = 1_700_000_000_000_000_000) -> None:
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance(self, ns: int) -> None:
        self.now_ns += int(ns)


class ManualClock:
    """Stand-in for SampleClock whose ticks are fired by the test."""

    def __init__(self, time: FakeTime) -> None:
        self.time = time
        self.period_ns = 0
        self.on_tick: Optional[Callable[[int], None]] = None
        self.running = False
        self.stats = ClockStats()

    def start(self, period_ns: int, on_tick: Callable[[int], None]) -> bool:
        if self.running:
            return False
        self.period_ns = period_ns
        self.on_tick = on_tick
        self.running = True
        self.stats = ClockStats(period_ns=period_ns, started_ns=self.time())
        return True

    def stop(self) -> None:
        self.running = False

    def join(self, timeout: Optional[float] = None) -> None:
        pass

    def tick(self) -> bool:
        """Advance time by one period and fire; returns False once stopped."""
        if not self.running or self.on_tick is None:
            return False
        self.time.advance(self.period_ns)
        self.stats.ticks += 1
        self.stats.last_tick_ns = self.time()
        self.on_tick(self.stats.ticks)
        return True

    def run_until_stopped(self, limit: int = 100_000) -> int:
        fired = 0
        while fired < limit and self.tick():
            fired += 1
        return fired


class FakeSource:
    """Sensor source that only delivers when the test calls ``emit``."""

    def __init__(self, kind: SensorKind) -> None:
        self.kind = kind
        self.callback = None
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0

    def subscribe(self, callback) -> None:
        self.subscribe_calls += 1
        self.callback = callback

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        self.callback = None

    def emit(self, x: float, y: float, z: float) -> bool:
        if self.callback is None:
            return False
        self.callback(SensorSample(self.kind, x, y, z))
        return True


class MemoryStorage:
    """Storage collaborator that keeps written payloads in memory."""

    def __init__(self, directory: Path = Path("/recordings")) -> None:
        self.directory = directory
        self.files: Dict[Path, bytes] = {}

    def destination(self, moment: datetime | None = None) -> Path:
        return self.directory / f"sensor_{len(self.files)}.csv"

    def write(self, path: Path, payload: bytes) -> Path:
        self.files[path] = payload
        return path


class FailingStorage(MemoryStorage):
    def __init__(self, *, fail_destination: bool = False) -> None:
        super().__init__()
        self.fail_destination = fail_destination
        self.attempts = 0

    def destination(self, moment: datetime | None = None) -> Path:
        if self.fail_destination:
            raise StorageUnavailable("no storage location")
        return super().destination(moment)

    def write(self, path: Path, payload: bytes) -> Path:
        self.attempts += 1
        raise StorageUnavailable("disk full")


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def fake_sources() -> Dict[SensorKind, FakeSource]:
    return {kind: FakeSource(kind) for kind in SENSOR_KINDS}


@pytest.fixture
def feed(fake_sources: Dict[SensorKind, FakeSource]) -> SensorFeed:
    return SensorFeed(fake_sources.values())


@pytest.fixture
def clocks(fake_time: FakeTime) -> List[ManualClock]:
    """Every ManualClock handed out by ``clock_factory`` (most recent last)."""
    return []


@pytest.fixture
def clock_factory(fake_time: FakeTime, clocks: List[ManualClock]) -> Callable[[], ManualClock]:
    def _factory() -> ManualClock:
        clock = ManualClock(fake_time)
        clocks.append(clock)
        return clock

    return _factory


@pytest.fixture
def stopwatch_factory(fake_time: FakeTime) -> Callable[[], Stopwatch]:
    return lambda: Stopwatch(time_ns=fake_time)
