"""
Sensor sources fed from a JSON-lines stream (stdin, a pipe or a socket file).

Each line carries one sensor event::

    {"sensor": "acc", "x": 0.01, "y": -0.02, "z": 9.81}

``sensor`` accepts the column prefixes (``acc``, ``gyro``, ``mag``) and the
usual long names (``accelerometer``, ``gyroscope``, ``magnetometer``). Lines
that do not parse are logged and skipped; the stream keeps going.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .feed import SampleCallback
from .models import SENSOR_KINDS, SensorKind, SensorSample

logger = logging.getLogger(__name__)


def parse_line(line: str) -> SensorSample | None:
    """Parse one JSON line into a :class:`SensorSample` (``None`` if unusable)."""
    text = line.strip()
    if not text:
        return None
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Dropping malformed JSON line: %r (%s)", text, exc)
        return None
    if not isinstance(obj, Mapping):
        logger.debug("Skipping non-object JSON payload: %r", obj)
        return None

    name = obj.get("sensor")
    if name is None:
        logger.warning("Missing field %s in sensor line: %r", "sensor", obj)
        return None
    try:
        kind = SensorKind.parse(str(name))
    except ValueError:
        logger.warning("Unknown sensor %r in line: %r", name, obj)
        return None

    try:
        x = float(obj["x"])
        y = float(obj["y"])
        z = float(obj["z"])
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Bad axis value in sensor line %r (%s)", obj, exc)
        return None
    return SensorSample(kind, x, y, z)


def reader_loop(
    lines: Iterable[str],
    dispatch: Callable[[SensorSample], None],
    *,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """Parse ``lines`` and hand every sample to ``dispatch`` until exhausted or stopped."""
    for raw_line in lines:
        if stop_event is not None and stop_event.is_set():
            break
        sample = parse_line(raw_line)
        if sample is None:
            continue
        try:
            dispatch(sample)
        except Exception:
            logger.exception("Error in stream callback for sample %r", sample)


@dataclass
class StreamReaderHandle:
    thread: threading.Thread
    stop_event: threading.Event

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        self.stop_event.set()
        if join and self.thread is not threading.current_thread():
            self.thread.join(timeout)

    def is_alive(self) -> bool:
        return self.thread.is_alive()


def start_reader(
    lines: Iterable[str],
    dispatch: Callable[[SensorSample], None],
    *,
    thread_name: Optional[str] = None,
) -> StreamReaderHandle:
    """Start a daemon thread running :func:`reader_loop` over ``lines``."""
    stop_event = threading.Event()

    def _target() -> None:
        reader_loop(lines, dispatch, stop_event=stop_event)

    thread = threading.Thread(
        target=_target,
        name=thread_name or "SensorecStreamReader",
        daemon=True,
    )
    thread.start()
    return StreamReaderHandle(thread=thread, stop_event=stop_event)


class StreamSource:
    """One sensor kind's view of a shared :class:`JsonlSensorStream`."""

    def __init__(self, kind: SensorKind, stream: "JsonlSensorStream") -> None:
        self.kind = kind
        self._stream = stream

    def subscribe(self, callback: SampleCallback) -> None:
        self._stream._attach(self.kind, callback)

    def unsubscribe(self) -> None:
        self._stream._detach(self.kind)


class JsonlSensorStream:
    """Demultiplex one JSON-lines stream into three per-kind sources.

    A single background reader starts with the first subscription and keeps
    consuming the stream for the life of this object; samples for kinds
    without a subscriber are dropped. A new reader is started only once the
    previous one has exited. Only :meth:`close` stops the reader, and a
    blocking read on the underlying stream finishes before the thread
    notices. A closed stream does not restart.
    """

    def __init__(self, lines: Iterable[str], *, thread_name: Optional[str] = None) -> None:
        self._lines = lines
        self._thread_name = thread_name
        self._callbacks: Dict[SensorKind, SampleCallback] = {}
        self._lock = threading.Lock()
        self._handle: Optional[StreamReaderHandle] = None
        self._closed = False

    @property
    def reader(self) -> Optional[StreamReaderHandle]:
        return self._handle

    def sources(self) -> List[StreamSource]:
        return [StreamSource(kind, self) for kind in SENSOR_KINDS]

    def dispatch(self, sample: SensorSample) -> None:
        with self._lock:
            callback = self._callbacks.get(sample.kind)
        if callback is not None:
            callback(sample)

    def close(self, timeout: Optional[float] = None) -> None:
        """Drop all subscribers and ask the reader to stop."""
        with self._lock:
            self._callbacks.clear()
            self._closed = True
            handle = self._handle
        if handle is not None:
            handle.stop(join=timeout is not None, timeout=timeout)

    def _attach(self, kind: SensorKind, callback: SampleCallback) -> None:
        with self._lock:
            self._callbacks[kind] = callback
            if self._closed:
                logger.warning("Stream is closed; %s will not receive samples", kind.name)
                return
            if self._handle is None or not self._handle.is_alive():
                self._handle = start_reader(
                    self._lines, self.dispatch, thread_name=self._thread_name
                )

    def _detach(self, kind: SensorKind) -> None:
        with self._lock:
            self._callbacks.pop(kind, None)


def stdin_sources() -> List[StreamSource]:
    """Convenience wrapper that reads sensor events from ``sys.stdin``."""
    import sys

    return JsonlSensorStream(sys.stdin, thread_name="SensorecStreamReader(stdin)").sources()
