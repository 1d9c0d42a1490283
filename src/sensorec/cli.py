"""Headless command-line recorder.

Records the three sensor streams at a fixed rate for a fixed duration and
prints the path of the CSV it saved. ``--monitor`` previews the live values
instead of recording. All launches (``sensorec-record``, ``python main.py``
or ``python -m sensorec.cli``) flow through :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config.runtime import RecorderSettings, load_settings
from .core.monitor import MonitoringSession
from .core.recorder_session import RecordingSession
from .core.rows import format_axis
from .dataio.storage import DirectoryStorage
from .sensors.feed import SensorFeed, SensorSource, Snapshot
from .sensors.jsonl import stdin_sources
from .sensors.simulated import simulated_sources

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_SAVED = 1
EXIT_BAD_CONFIG = 2


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Record accelerometer, gyroscope and magnetometer streams to CSV"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML settings file (default: built-in defaults)",
    )
    parser.add_argument(
        "--rate",
        default=None,
        help="Sampling rate in Hz, integer 5-500 (default: from config, 60)",
    )
    parser.add_argument(
        "--duration",
        default=None,
        help="Recording duration in seconds (default: from config, 5.0)",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Directory for recordings (default: data/recordings)",
    )
    parser.add_argument(
        "--source",
        choices=("simulated", "stdin"),
        default=None,
        help="Sensor source: synthetic streams or JSON lines on stdin",
    )
    parser.add_argument(
        "--monitor",
        action="store_true",
        help="Preview live values for the duration instead of recording",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO)",
    )
    return parser


def _build_sources(settings: RecorderSettings) -> List[SensorSource]:
    if settings.source == "stdin":
        return stdin_sources()
    return simulated_sources(settings.simulated_rate_hz)


def _format_snapshot(elapsed_s: float, snapshot: Snapshot) -> str:
    parts = [f"t={elapsed_s:6.2f}s"]
    for label, sample in zip(("acc", "gyro", "mag"), snapshot):
        if sample is None:
            parts.append(f"{label}=N/A")
        else:
            axes = "/".join(format_axis(v) for v in sample.axes)
            parts.append(f"{label}={axes}")
    return " ".join(parts)


def run_monitor(feed: SensorFeed, settings: RecorderSettings) -> int:
    def _print(elapsed_s: float, snapshot: Snapshot) -> None:
        print(_format_snapshot(elapsed_s, snapshot), flush=True)

    # Cap terminal output at 5 lines per second.
    monitor = MonitoringSession(
        feed,
        settings.recording.duration_s,
        refresh_hz=min(settings.ui_refresh_hz, 5.0),
        on_refresh=_print,
    )
    monitor.start()
    try:
        monitor.wait()
    except KeyboardInterrupt:
        monitor.stop()
    return EXIT_OK


def run_recording(feed: SensorFeed, settings: RecorderSettings) -> int:
    session = RecordingSession(
        feed,
        DirectoryStorage(settings.output_dir),
        settings.recording,
    )
    session.start()
    try:
        session.wait()
    except KeyboardInterrupt:
        session.stop()

    path = session.last_saved_path
    if path is None:
        logger.error("Recording finished but no file was saved")
        return EXIT_NOT_SAVED
    print(path)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config)
        settings.recording = settings.recording.with_changes(
            rate_hz=args.rate, duration_s=args.duration
        )
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_BAD_CONFIG
    if args.out is not None:
        settings.output_dir = args.out
    if args.source is not None:
        settings.source = args.source

    feed = SensorFeed(_build_sources(settings))
    if args.monitor:
        return run_monitor(feed, settings)
    return run_recording(feed, settings)


if __name__ == "__main__":
    sys.exit(main())
