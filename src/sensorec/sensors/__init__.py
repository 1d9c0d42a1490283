"""Sensor data models and push sources.

:mod:`models` defines :class:`SensorSample` and :class:`SensorKind`;
:mod:`feed` keeps the latest sample per kind for the recorder, and
:mod:`simulated` / :mod:`jsonl` provide concrete sources that push into it.
"""

from .feed import LatestSensorState, SensorFeed, SensorSource
from .models import SENSOR_KINDS, SensorKind, SensorSample

__all__ = [
    "LatestSensorState",
    "SensorFeed",
    "SensorSource",
    "SENSOR_KINDS",
    "SensorKind",
    "SensorSample",
]
