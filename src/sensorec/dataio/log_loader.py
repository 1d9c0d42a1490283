"""Utilities for loading finished recordings for offline review."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

import numpy as np

from ..core.rows import AXIS_COLUMNS, HEADER


@dataclass
class RecordingData:
    timestamps: List[str]
    epoch_ms: np.ndarray
    values: np.ndarray  # shape (n, 9), NaN where a sensor had not reported

    columns: Sequence[str] = AXIS_COLUMNS

    def __len__(self) -> int:
        return len(self.timestamps)

    def column(self, name: str) -> np.ndarray:
        return self.values[:, list(self.columns).index(name)]


def load_recording(path: Path) -> RecordingData:
    """
    Load a recording written by the recorder.

    The header row must match the recorder's column layout exactly.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        header = f.readline().rstrip("\n")
        rest = f.read()

    if tuple(header.split(",")) != HEADER:
        raise ValueError(f"Unexpected header in {path}: {header!r}")

    lines = [line for line in rest.splitlines() if line.strip()]
    if not lines:
        return RecordingData(
            timestamps=[],
            epoch_ms=np.empty(0, dtype=np.int64),
            values=np.empty((0, len(AXIS_COLUMNS))),
        )

    timestamps = [line.split(",", 1)[0] for line in lines]
    numeric = np.loadtxt(
        io.StringIO("\n".join(lines)),
        delimiter=",",
        usecols=range(1, len(HEADER)),
        ndmin=2,
    )
    return RecordingData(
        timestamps=timestamps,
        epoch_ms=numeric[:, 0].astype(np.int64),
        values=numeric[:, 1:],
    )


def effective_rate_hz(data: RecordingData) -> float:
    """Mean row rate implied by the ``epoch_ms`` column (0.0 if undefined)."""
    if len(data) < 2:
        return 0.0
    span_ms = float(data.epoch_ms[-1] - data.epoch_ms[0])
    if span_ms <= 0.0:
        return 0.0
    return (len(data) - 1) * 1000.0 / span_ms
