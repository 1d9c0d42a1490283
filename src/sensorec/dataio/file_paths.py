"""Helpers for constructing output file names and locations."""

from datetime import datetime
from pathlib import Path

from ..config.app_config import AppPaths


def recording_filename(moment: datetime | None = None) -> str:
    """
    Build the CSV file name for a finished recording.

    The local ISO-8601 timestamp is kept with ``:`` and ``.`` removed so the
    name is valid everywhere, e.g. ``sensor_2025-12-04T153045123456.csv``.
    """
    stamp = (moment or datetime.now()).isoformat(timespec="microseconds")
    return f"sensor_{stamp.replace(':', '').replace('.', '')}.csv"


def recordings_directory(base: Path | None = None) -> Path:
    """Directory that receives finished recordings."""
    return base if base is not None else AppPaths().recordings
