from __future__ import annotations

import itertools
import threading
import time

import pytest

from sensorec.core.clock import (
    SampleClock,
    Stopwatch,
    deadline_schedule,
    period_ns_for_rate,
)


def test_deadlines_are_multiples_of_period() -> None:
    deadlines = list(itertools.islice(deadline_schedule(1_000, 250), 5))
    assert deadlines == [1_250, 1_500, 1_750, 2_000, 2_250]


def test_period_for_rate() -> None:
    assert period_ns_for_rate(60) == 16_666_667
    assert period_ns_for_rate(500) == 2_000_000
    with pytest.raises(ValueError):
        period_ns_for_rate(0)


def test_stopwatch_uses_injected_time(fake_time) -> None:
    sw = Stopwatch(time_ns=fake_time)
    assert sw.elapsed_ns() == 0
    sw.start()
    fake_time.advance(1_500_000_000)
    assert sw.elapsed_s == 1.5
    sw.stop()
    fake_time.advance(10)
    assert sw.elapsed_ns() == 1_500_000_000
    assert not sw.running


def test_clock_ticks_at_requested_rate() -> None:
    ticks: list[int] = []
    clock = SampleClock()
    assert clock.start(period_ns_for_rate(100), ticks.append)
    time.sleep(0.5)
    clock.stop()
    clock.join(1.0)

    # Best effort on a shared host: roughly 50 ticks in 0.5 s.
    assert 35 <= len(ticks) <= 55
    assert ticks == list(range(1, len(ticks) + 1))
    assert clock.stats.ticks == len(ticks)


def test_clock_does_not_accumulate_drift() -> None:
    stamps: list[int] = []
    clock = SampleClock()
    period = period_ns_for_rate(50)
    clock.start(period, lambda _: stamps.append(time.monotonic_ns()))
    time.sleep(1.0)
    clock.stop()
    clock.join(1.0)

    start = clock.stats.started_ns
    last_index = len(stamps)
    # The n-th tick stays close to start + n * period instead of drifting later.
    lag_ms = (stamps[-1] - (start + last_index * period)) / 1e6
    assert lag_ms < 20.0


def test_start_while_running_is_noop() -> None:
    clock = SampleClock()
    assert clock.start(period_ns_for_rate(10), lambda _: None)
    assert clock.start(period_ns_for_rate(10), lambda _: None) is False
    clock.stop()
    clock.join(1.0)
    assert not clock.running


def test_callback_exception_does_not_stop_clock() -> None:
    seen = threading.Event()
    calls: list[int] = []

    def _tick(index: int) -> None:
        calls.append(index)
        if index == 1:
            raise RuntimeError("boom")
        seen.set()

    clock = SampleClock()
    clock.start(period_ns_for_rate(100), _tick)
    assert seen.wait(1.0)
    clock.stop()
    clock.join(1.0)
    assert calls[:2] == [1, 2]


def test_stop_from_inside_callback() -> None:
    calls: list[int] = []
    clock = SampleClock()

    def _tick(index: int) -> None:
        calls.append(index)
        if index == 3:
            clock.stop()

    clock.start(period_ns_for_rate(200), _tick)
    clock.join(1.0)
    assert calls == [1, 2, 3]


def test_slow_callback_realigns_to_schedule() -> None:
    period = period_ns_for_rate(100)
    stamps: list[int] = []
    clock = SampleClock()

    def _tick(index: int) -> None:
        stamps.append(time.monotonic_ns())
        if index == 2:
            time.sleep(0.055)  # overrun ~5 deadlines
        if index >= 6:
            clock.stop()

    clock.start(period, _tick)
    clock.join(2.0)

    assert clock.stats.overruns >= 1
    start = clock.stats.started_ns
    # Ticks after the overrun land on grid points, not at arbitrary offsets.
    for stamp in stamps[3:]:
        phase = (stamp - start) % period
        assert phase < period * 0.5 or phase > period * 0.95
