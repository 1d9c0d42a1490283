"""Fixed-rate recording session: Idle -> Recording -> Finalizing -> Idle."""

from __future__ import annotations

import enum
import functools
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from ..config.recording import RecordingConfig
from ..dataio.csv_writer import encode_rows
from ..dataio.storage import DirectoryStorage, RecordingStorage
from ..sensors.feed import SensorFeed
from ..tools.debug import time_block
from .clock import NANOS_PER_SECOND, ClockStats, SampleClock, Stopwatch, period_ns_for_rate
from .rows import HEADER, Row, assemble_row

logger = logging.getLogger(__name__)


class SessionStatus(enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"


class SessionBusy(RuntimeError):
    """Configuration cannot change while a recording is in progress."""


@dataclass
class SessionCallbacks:
    """Optional notification hooks for whatever renders the session.

    Hooks run on the thread that caused the event (usually the clock
    thread). Exceptions they raise are logged and otherwise ignored.
    """

    on_state_changed: Optional[Callable[[SessionStatus], None]] = None
    on_progress: Optional[Callable[[int, float], None]] = None
    on_file_ready: Optional[Callable[[Path], None]] = None
    on_finalize_failed: Optional[Callable[[Exception], None]] = None


class RecordingSession:
    """
    Owns one recording: its configuration, row buffer, clock and stopwatch.

    ``start`` subscribes the sensor feed and starts a :class:`SampleClock` at
    the configured rate. Each tick appends one row built from the freshest
    value of every sensor; the tick whose elapsed time reaches the configured
    duration records its row and then finalizes the session, which encodes
    the buffer and hands it to the storage collaborator. Finalization happens
    exactly once per session and always ends in ``IDLE``, even when the write
    fails.
    """

    def __init__(
        self,
        feed: SensorFeed,
        storage: RecordingStorage | None = None,
        config: RecordingConfig | None = None,
        *,
        callbacks: SessionCallbacks | None = None,
        clock_factory: Callable[[], SampleClock] | None = None,
        stopwatch_factory: Callable[[], Stopwatch] = Stopwatch,
        wall_time_ns: Callable[[], int] = time.time_ns,
    ) -> None:
        self.feed = feed
        self.storage: RecordingStorage = storage or DirectoryStorage()
        self._config = (config or RecordingConfig()).validated()
        self.callbacks = callbacks or SessionCallbacks()
        self._clock_factory = clock_factory or (lambda: SampleClock(name="RecordingClock"))
        self._stopwatch_factory = stopwatch_factory
        self._wall_time_ns = wall_time_ns

        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._status = SessionStatus.IDLE
        self._rows: List[Row] = []
        self._sample_count = 0
        self._last_epoch_ns = 0
        self._last_saved_path: Optional[Path] = None
        self._clock: Optional[SampleClock] = None
        self._stopwatch: Optional[Stopwatch] = None
        self._duration_ns = 0
        self._generation = 0

    # ------------------------------------------------------------ properties
    @property
    def config(self) -> RecordingConfig:
        return self._config

    @property
    def status(self) -> SessionStatus:
        with self._lock:
            return self._status

    @property
    def is_recording(self) -> bool:
        return self.status is SessionStatus.RECORDING

    @property
    def rows(self) -> Tuple[Row, ...]:
        """Snapshot of the buffer, header first."""
        with self._lock:
            return tuple(self._rows)

    @property
    def sample_count(self) -> int:
        with self._lock:
            return self._sample_count

    @property
    def progress(self) -> float:
        with self._lock:
            return self._progress_locked()

    @property
    def last_saved_path(self) -> Optional[Path]:
        with self._lock:
            return self._last_saved_path

    @property
    def clock_stats(self) -> Optional[ClockStats]:
        with self._lock:
            return self._clock.stats if self._clock is not None else None

    # --------------------------------------------------------- configuration
    def configure(self, *, rate_hz: Any = None, duration_s: Any = None) -> RecordingConfig:
        """
        Change the rate and/or duration for the next recording.

        Raises :class:`~sensorec.config.recording.InvalidConfiguration` for
        out-of-range values (the previous configuration stays active) and
        :class:`SessionBusy` while a recording is in progress.
        """
        with self._lock:
            if self._status is not SessionStatus.IDLE:
                raise SessionBusy("Configuration is locked while recording")
            self._config = self._config.with_changes(rate_hz=rate_hz, duration_s=duration_s)
            return self._config

    # ------------------------------------------------------------- lifecycle
    def start(self) -> bool:
        """Begin a new recording. Returns ``False`` if one is already active."""
        with self._lock:
            if self._status is not SessionStatus.IDLE:
                logger.debug("Ignoring start request while %s", self._status.value)
                return False

            config = self._config
            self._rows = [HEADER]
            self._sample_count = 0
            self._last_epoch_ns = 0
            self._last_saved_path = None
            self._duration_ns = int(round(config.duration_s * NANOS_PER_SECOND))
            self._generation += 1
            self._idle.clear()
            self._set_status(SessionStatus.RECORDING)

            self.feed.subscribe()
            self._stopwatch = self._stopwatch_factory()
            self._clock = self._clock_factory()
            self._stopwatch.start()
            self._clock.start(
                period_ns_for_rate(config.rate_hz),
                functools.partial(self._on_tick, generation=self._generation),
            )
            logger.info(
                "Recording started: %d Hz for %.3f s (~%d rows)",
                config.rate_hz,
                config.duration_s,
                round(config.expected_samples),
            )
            return True

    def stop(self) -> Optional[Path]:
        """Stop early and save what has been recorded so far.

        Does nothing if no recording is active. Returns the saved path, or
        ``None`` when nothing was saved.
        """
        with self._lock:
            if self._status is not SessionStatus.RECORDING:
                return self._last_saved_path
            logger.info("Recording stopped early after %d samples", self._sample_count)
            self._finalize()
            return self._last_saved_path

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the session is idle again. Returns ``False`` on timeout."""
        return self._idle.wait(timeout)

    # -------------------------------------------------------------- internals
    def _on_tick(self, tick: int, *, generation: int) -> None:
        with self._lock:
            # A late tick from a previous session's clock must not leak in.
            if self._status is not SessionStatus.RECORDING or generation != self._generation:
                return

            with time_block("assemble_row"):
                acc, gyro, mag = self.feed.snapshot()
                epoch_ns = max(self._last_epoch_ns, self._wall_time_ns())
                self._last_epoch_ns = epoch_ns
                row = assemble_row(acc, gyro, mag, now_ns=epoch_ns)

            self._rows.append(row)
            self._sample_count = len(self._rows) - 1
            self._notify(self.callbacks.on_progress, self._sample_count, self._progress_locked())

            stopwatch = self._stopwatch
            if stopwatch is not None and stopwatch.elapsed_ns() >= self._duration_ns:
                self._finalize()

    def _finalize(self) -> None:
        # Caller holds self._lock and status is RECORDING.
        self._set_status(SessionStatus.FINALIZING)
        if self._clock is not None:
            self._clock.stop()
        if self._stopwatch is not None:
            self._stopwatch.stop()
        self.feed.unsubscribe()

        stats = self._clock.stats if self._clock is not None else None
        if stats is not None:
            logger.info(
                "Recorded %d samples (achieved %.1f Hz, %d overruns)",
                self._sample_count,
                stats.achieved_hz,
                stats.overruns,
            )

        try:
            payload = encode_rows(self._rows)
            path = self.storage.destination()
            saved = self.storage.write(path, payload)
        except Exception as exc:
            logger.exception("Failed to save recording")
            self._last_saved_path = None
            self._set_status(SessionStatus.IDLE)
            self._idle.set()
            self._notify(self.callbacks.on_finalize_failed, exc)
            return

        self._last_saved_path = Path(saved)
        logger.info("Recording saved to %s", self._last_saved_path)
        self._set_status(SessionStatus.IDLE)
        self._idle.set()
        self._notify(self.callbacks.on_file_ready, self._last_saved_path)

    def _progress_locked(self) -> float:
        expected = self._config.expected_samples
        if expected <= 0:
            return 0.0
        return min(1.0, self._sample_count / expected)

    def _set_status(self, status: SessionStatus) -> None:
        self._status = status
        self._notify(self.callbacks.on_state_changed, status)

    @staticmethod
    def _notify(hook: Optional[Callable[..., None]], *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception("Session callback %r failed", hook)
