from __future__ import annotations

import io
import json
import queue
import threading
import time

from sensorec.sensors.feed import SensorFeed
from sensorec.sensors.jsonl import JsonlSensorStream, parse_line, reader_loop, start_reader
from sensorec.sensors.models import SensorKind


def _build_line(sensor: str, x: float, y: float, z: float) -> str:
    return json.dumps({"sensor": sensor, "x": x, "y": y, "z": z})


def test_parse_line_accepts_prefixes_and_long_names() -> None:
    sample = parse_line(_build_line("gyroscope", 0.1, 0.2, 0.3))
    assert sample is not None
    assert sample.kind is SensorKind.ANGULAR_RATE
    assert sample.axes == (0.1, 0.2, 0.3)
    assert parse_line(_build_line("acc", 1, 2, 3)).kind is SensorKind.ACCELERATION


def test_reader_loop_ignores_invalid_records() -> None:
    seen = []
    lines = [
        "not-json",
        "",
        "[1, 2, 3]",
        json.dumps({"x": 1.0, "y": 2.0, "z": 3.0}),  # missing sensor
        json.dumps({"sensor": "baro", "x": 1.0, "y": 2.0, "z": 3.0}),
        json.dumps({"sensor": "acc", "x": 1.0, "y": "high", "z": 3.0}),
        json.dumps({"sensor": "acc", "x": 1.0, "z": 3.0}),
        _build_line("mag", 20.0, -5.0, -40.0),
    ]
    reader_loop(lines, seen.append)

    assert len(seen) == 1
    assert seen[0].kind is SensorKind.MAGNETIC_FIELD


def test_reader_loop_survives_dispatch_errors() -> None:
    seen = []

    def _dispatch(sample) -> None:
        seen.append(sample)
        if len(seen) == 1:
            raise RuntimeError("consumer failed")

    reader_loop([_build_line("acc", 1, 1, 1), _build_line("acc", 2, 2, 2)], _dispatch)
    assert [s.x for s in seen] == [1.0, 2.0]


def test_reader_loop_honours_stop_event() -> None:
    stop = threading.Event()
    stop.set()
    seen = []
    reader_loop([_build_line("acc", 1, 1, 1)], seen.append, stop_event=stop)
    assert seen == []


def test_start_reader_background_thread() -> None:
    buffer = io.StringIO(_build_line("acc", 1.5, 0.0, 9.8) + "\n")
    seen = []
    handle = start_reader(buffer, seen.append)

    handle.thread.join(1.0)
    assert not handle.is_alive()
    assert len(seen) == 1


def test_stream_feeds_latest_state() -> None:
    text = "\n".join(
        [
            _build_line("acc", 0.0, 0.0, 9.8),
            _build_line("gyro", 0.1, 0.1, 0.1),
            _build_line("acc", 0.5, 0.5, 9.7),
        ]
    )
    stream = JsonlSensorStream(io.StringIO(text + "\n"))
    feed = SensorFeed(stream.sources())
    feed.subscribe()

    timeout = time.time() + 1.0
    while time.time() < timeout:
        acc = feed.latest(SensorKind.ACCELERATION)
        if acc is not None and acc.x == 0.5:
            break
        time.sleep(0.01)

    assert feed.latest(SensorKind.ACCELERATION).axes == (0.5, 0.5, 9.7)
    assert feed.latest(SensorKind.ANGULAR_RATE).axes == (0.1, 0.1, 0.1)
    assert feed.latest(SensorKind.MAGNETIC_FIELD) is None
    feed.unsubscribe()


def test_stream_drops_kinds_without_subscriber() -> None:
    stream = JsonlSensorStream([])
    received = []
    acc_source = stream.sources()[0]
    acc_source.subscribe(received.append)

    stream.dispatch(parse_line(_build_line("mag", 1, 2, 3)))
    stream.dispatch(parse_line(_build_line("acc", 1, 2, 3)))
    acc_source.unsubscribe()
    stream.dispatch(parse_line(_build_line("acc", 4, 5, 6)))

    assert [s.kind for s in received] == [SensorKind.ACCELERATION]


def _blocking_lines(q: "queue.Queue[str | None]"):
    while True:
        line = q.get()
        if line is None:
            return
        yield line


def _wait_for(predicate, timeout: float = 1.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_resubscribe_reuses_the_running_reader() -> None:
    q: "queue.Queue[str | None]" = queue.Queue()
    stream = JsonlSensorStream(_blocking_lines(q))
    feed = SensorFeed(stream.sources())

    feed.subscribe()
    first_reader = stream.reader
    q.put(_build_line("acc", 1.0, 1.0, 1.0))
    assert _wait_for(lambda: feed.latest(SensorKind.ACCELERATION) is not None)
    feed.unsubscribe()

    # Reader is still blocked on the queue; a second one must not start.
    feed.subscribe()
    assert stream.reader is first_reader
    assert first_reader.is_alive()
    q.put(_build_line("acc", 2.0, 2.0, 2.0))
    assert _wait_for(lambda: feed.latest(SensorKind.ACCELERATION) is not None
                     and feed.latest(SensorKind.ACCELERATION).x == 2.0)
    feed.unsubscribe()

    stream.close()
    q.put(None)
    first_reader.thread.join(1.0)
    assert not first_reader.is_alive()


def test_closed_stream_does_not_restart() -> None:
    stream = JsonlSensorStream(io.StringIO(""))
    stream.close()
    source = stream.sources()[0]
    source.subscribe(lambda sample: None)
    assert stream.reader is None
