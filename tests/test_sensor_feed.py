from __future__ import annotations

import threading

import pytest

from sensorec.sensors.feed import SensorFeed
from sensorec.sensors.models import SENSOR_KINDS, SensorKind, SensorSample


def test_latest_is_none_until_first_sample(feed, fake_sources) -> None:
    feed.subscribe()
    for kind in SENSOR_KINDS:
        assert feed.latest(kind) is None
    assert feed.snapshot() == (None, None, None)


def test_last_write_wins_and_reads_do_not_consume(feed, fake_sources) -> None:
    feed.subscribe()
    gyro = fake_sources[SensorKind.ANGULAR_RATE]
    gyro.emit(1.0, 2.0, 3.0)
    gyro.emit(4.0, 5.0, 6.0)

    first = feed.latest(SensorKind.ANGULAR_RATE)
    second = feed.latest(SensorKind.ANGULAR_RATE)
    assert first is second
    assert first.axes == (4.0, 5.0, 6.0)
    assert feed.latest(SensorKind.ACCELERATION) is None


def test_unsubscribe_keeps_values_until_clear(feed, fake_sources) -> None:
    feed.subscribe()
    fake_sources[SensorKind.MAGNETIC_FIELD].emit(10.0, 20.0, 30.0)
    feed.unsubscribe()

    assert fake_sources[SensorKind.MAGNETIC_FIELD].emit(0.0, 0.0, 0.0) is False
    assert feed.latest(SensorKind.MAGNETIC_FIELD).axes == (10.0, 20.0, 30.0)

    feed.clear()
    assert feed.latest(SensorKind.MAGNETIC_FIELD) is None


def test_subscriptions_are_reference_counted(feed, fake_sources) -> None:
    feed.subscribe()
    feed.subscribe()
    acc = fake_sources[SensorKind.ACCELERATION]
    assert acc.subscribe_calls == 1

    feed.unsubscribe()
    assert feed.subscribed
    assert acc.unsubscribe_calls == 0

    feed.unsubscribe()
    assert not feed.subscribed
    assert acc.unsubscribe_calls == 1

    # Extra unsubscribes are harmless.
    feed.unsubscribe()
    assert acc.unsubscribe_calls == 1


def test_duplicate_kind_rejected(fake_sources) -> None:
    acc = fake_sources[SensorKind.ACCELERATION]
    with pytest.raises(ValueError):
        SensorFeed([acc, acc])


def test_failing_source_does_not_block_others(fake_sources) -> None:
    class Broken:
        kind = SensorKind.MAGNETIC_FIELD

        def subscribe(self, callback):
            raise OSError("no magnetometer")

        def unsubscribe(self):
            pass

    feed = SensorFeed([fake_sources[SensorKind.ACCELERATION], Broken()])
    feed.subscribe()
    fake_sources[SensorKind.ACCELERATION].emit(1.0, 1.0, 1.0)
    assert feed.latest(SensorKind.ACCELERATION) is not None
    assert feed.latest(SensorKind.MAGNETIC_FIELD) is None


def test_concurrent_writers_never_tear_snapshot() -> None:
    feed = SensorFeed([])
    stop = threading.Event()

    def _writer(kind: SensorKind) -> None:
        i = 0.0
        while not stop.is_set():
            feed.push(SensorSample(kind, i, i, i))
            i += 1.0

    threads = [threading.Thread(target=_writer, args=(k,), daemon=True) for k in SENSOR_KINDS]
    for t in threads:
        t.start()
    try:
        for _ in range(2000):
            for sample in feed.snapshot():
                if sample is not None:
                    assert sample.x == sample.y == sample.z
    finally:
        stop.set()
        for t in threads:
            t.join(1.0)


def test_kind_parse_aliases() -> None:
    assert SensorKind.parse("accelerometer") is SensorKind.ACCELERATION
    assert SensorKind.parse("GYRO") is SensorKind.ANGULAR_RATE
    assert SensorKind.parse("magnetic-field") is SensorKind.MAGNETIC_FIELD
    with pytest.raises(ValueError):
        SensorKind.parse("barometer")


def test_resubscribe_from_idle_forgets_old_values(feed, fake_sources) -> None:
    feed.subscribe()
    fake_sources[SensorKind.ACCELERATION].emit(1.0, 2.0, 3.0)
    feed.unsubscribe()
    assert feed.latest(SensorKind.ACCELERATION) is not None

    feed.subscribe()
    assert feed.latest(SensorKind.ACCELERATION) is None
    feed.unsubscribe()


def test_second_user_keeps_live_values(feed, fake_sources) -> None:
    feed.subscribe()
    fake_sources[SensorKind.ANGULAR_RATE].emit(0.5, 0.5, 0.5)
    feed.subscribe()
    assert feed.latest(SensorKind.ANGULAR_RATE).axes == (0.5, 0.5, 0.5)
