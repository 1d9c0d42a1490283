from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, Signal, Slot

from ..config.recording import InvalidConfiguration, RecordingConfig
from ..core.monitor import DEFAULT_REFRESH_HZ, MonitoringSession
from ..core.recorder_session import (
    RecordingSession,
    SessionBusy,
    SessionCallbacks,
    SessionStatus,
)
from ..dataio.storage import RecordingStorage
from ..sensors.feed import SensorFeed, Snapshot

logger = logging.getLogger(__name__)


class RecorderController(QObject):
    """Non-visual controller exposing a recording and a monitoring session to Qt.

    Session hooks fire on the clock threads; emitting Qt signals from there
    lets widgets in the GUI thread receive them through queued connections.
    """

    recording_started = Signal()
    recording_stopped = Signal()
    progress_changed = Signal(int, float)
    file_ready = Signal(str)
    recording_error = Signal(str)
    config_changed = Signal(object)
    monitor_started = Signal()
    monitor_refresh = Signal(float, object)
    monitor_stopped = Signal()

    def __init__(
        self,
        feed: SensorFeed,
        storage: RecordingStorage | None = None,
        config: RecordingConfig | None = None,
        *,
        refresh_hz: float = DEFAULT_REFRESH_HZ,
        parent: Optional[QObject] = None,
        session: RecordingSession | None = None,
        monitor: MonitoringSession | None = None,
    ) -> None:
        super().__init__(parent)
        self._session = session or RecordingSession(feed, storage, config)
        self._session.callbacks = SessionCallbacks(
            on_state_changed=self._on_state_changed,
            on_progress=self._on_progress,
            on_file_ready=self._on_file_ready,
            on_finalize_failed=self._on_finalize_failed,
        )
        self._monitor = monitor or MonitoringSession(
            feed,
            self._session.config.duration_s,
            refresh_hz=refresh_hz,
        )
        self._monitor.on_refresh = self._on_monitor_refresh
        self._monitor.on_stopped = self.monitor_stopped.emit

    # ------------------------------------------------------------ accessors
    @property
    def session(self) -> RecordingSession:
        return self._session

    @property
    def monitor(self) -> MonitoringSession:
        return self._monitor

    def last_saved_path(self) -> Optional[Path]:
        return self._session.last_saved_path

    def can_share(self) -> bool:
        return self._session.last_saved_path is not None

    # -------------------------------------------------------- configuration
    def set_rate_hz(self, rate_hz: object) -> bool:
        return self._apply_config(rate_hz=rate_hz)

    def set_duration_s(self, duration_s: object) -> bool:
        if not self._apply_config(duration_s=duration_s):
            return False
        self._monitor.set_duration(self._session.config.duration_s)
        return True

    def _apply_config(self, **changes: object) -> bool:
        try:
            config = self._session.configure(**changes)
        except (InvalidConfiguration, SessionBusy) as exc:
            logger.info("Rejected configuration change %r: %s", changes, exc)
            self.recording_error.emit(str(exc))
            return False
        self.config_changed.emit(config)
        return True

    # ------------------------------------------------------------- controls
    @Slot()
    def start_recording(self) -> bool:
        return self._session.start()

    @Slot()
    def stop_recording(self) -> None:
        self._session.stop()

    @Slot()
    def start_monitoring(self) -> bool:
        started = self._monitor.start()
        if started:
            self.monitor_started.emit()
        return started

    @Slot()
    def stop_monitoring(self) -> None:
        self._monitor.stop()

    def shutdown(self) -> None:
        """Stop both loops (e.g. when the window closes)."""
        self._monitor.stop()
        self._session.stop()

    # -------------------------------------------------------------- hooks
    def _on_state_changed(self, status: SessionStatus) -> None:
        if status is SessionStatus.RECORDING:
            self.recording_started.emit()
        elif status is SessionStatus.IDLE:
            self.recording_stopped.emit()

    def _on_progress(self, count: int, fraction: float) -> None:
        self.progress_changed.emit(count, fraction)

    def _on_file_ready(self, path: Path) -> None:
        self.file_ready.emit(str(path))

    def _on_finalize_failed(self, exc: Exception) -> None:
        self.recording_error.emit(f"Failed to save recording: {exc}")

    def _on_monitor_refresh(self, elapsed_s: float, snapshot: Snapshot) -> None:
        self.monitor_refresh.emit(elapsed_s, snapshot)
