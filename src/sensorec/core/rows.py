"""Build one fixed-width CSV row from the latest sensor values."""

from __future__ import annotations

import math
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from ..sensors.models import SensorSample

MISSING = "NaN"

HEADER: Tuple[str, ...] = (
    "timestamp_iso",
    "epoch_ms",
    "acc_x",
    "acc_y",
    "acc_z",
    "gyro_x",
    "gyro_y",
    "gyro_z",
    "mag_x",
    "mag_y",
    "mag_z",
)

AXIS_COLUMNS: Tuple[str, ...] = HEADER[2:]

Row = Tuple[str, ...]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_axis(value: Optional[float]) -> str:
    """Render an axis value with six fractional digits, or ``NaN`` if unknown."""
    if value is None:
        return MISSING
    number = float(value)
    if not math.isfinite(number):
        return MISSING
    return f"{number:.6f}"


def format_timestamp(epoch_ns: int) -> Tuple[str, str]:
    """Return ``(timestamp_iso, epoch_ms)`` for a wall-clock time in nanoseconds."""
    moment = _EPOCH + timedelta(microseconds=epoch_ns // 1_000)
    iso = moment.isoformat(timespec="microseconds").replace("+00:00", "Z")
    return iso, str(epoch_ns // 1_000_000)


def _axes(sample: Optional[SensorSample]) -> Tuple[str, str, str]:
    if sample is None:
        return (MISSING, MISSING, MISSING)
    return (format_axis(sample.x), format_axis(sample.y), format_axis(sample.z))


def assemble_row(
    acc: Optional[SensorSample],
    gyro: Optional[SensorSample],
    mag: Optional[SensorSample],
    *,
    now_ns: Optional[int] = None,
) -> Row:
    """
    Assemble a data row from the latest sample of each sensor kind.

    The wall-clock time is read once (unless ``now_ns`` is given) so the ISO
    timestamp and ``epoch_ms`` always agree. A kind without a sample yields
    ``NaN`` in all three of its columns.
    """
    epoch_ns = time.time_ns() if now_ns is None else int(now_ns)
    iso, epoch_ms = format_timestamp(epoch_ns)
    return (iso, epoch_ms) + _axes(acc) + _axes(gyro) + _axes(mag)
