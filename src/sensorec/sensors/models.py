"""Shared dataclasses for the three motion sensors."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field


class SensorKind(enum.Enum):
    ACCELERATION = "acc"
    ANGULAR_RATE = "gyro"
    MAGNETIC_FIELD = "mag"

    @property
    def prefix(self) -> str:
        """CSV column prefix (``acc``, ``gyro`` or ``mag``)."""
        return self.value

    @classmethod
    def parse(cls, name: str) -> "SensorKind":
        """Resolve a kind from its prefix or a few common aliases."""
        key = str(name).strip().lower().replace("-", "_")
        alias = _ALIASES.get(key, key)
        for kind in cls:
            if kind.value == alias:
                return kind
        raise ValueError(f"Unknown sensor kind {name!r}")


_ALIASES = {
    "accel": "acc",
    "accelerometer": "acc",
    "acceleration": "acc",
    "gyroscope": "gyro",
    "angular_rate": "gyro",
    "magnetometer": "mag",
    "magnetic_field": "mag",
}

SENSOR_KINDS: tuple[SensorKind, ...] = (
    SensorKind.ACCELERATION,
    SensorKind.ANGULAR_RATE,
    SensorKind.MAGNETIC_FIELD,
)


@dataclass(frozen=True)
class SensorSample:
    kind: SensorKind
    x: float
    y: float
    z: float
    arrival_ns: int = field(default_factory=time.monotonic_ns)

    @property
    def axes(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)
