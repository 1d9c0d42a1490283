"""Recording parameters and their boundary validation."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Mapping

MIN_RATE_HZ = 5
MAX_RATE_HZ = 500
DEFAULT_RATE_HZ = 60
DEFAULT_DURATION_S = 5.0


class InvalidConfiguration(ValueError):
    """Raised when a rate or duration falls outside the accepted range."""


def validate_rate_hz(value: Any) -> int:
    """Return ``value`` as an integer rate in [MIN_RATE_HZ, MAX_RATE_HZ]."""
    if isinstance(value, bool):
        raise InvalidConfiguration(f"rate_hz must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidConfiguration(f"rate_hz must be an integer, got {value!r}")
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError as exc:
            raise InvalidConfiguration(f"rate_hz must be an integer, got {value!r}") from exc
    if not isinstance(value, int):
        raise InvalidConfiguration(f"rate_hz must be an integer, got {value!r}")
    if not MIN_RATE_HZ <= value <= MAX_RATE_HZ:
        raise InvalidConfiguration(
            f"rate_hz must be between {MIN_RATE_HZ} and {MAX_RATE_HZ} Hz, got {value}"
        )
    return value


def validate_duration_s(value: Any) -> float:
    """Return ``value`` as a positive, finite number of seconds."""
    if isinstance(value, bool):
        raise InvalidConfiguration(f"duration_s must be a number, got {value!r}")
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfiguration(f"duration_s must be a number, got {value!r}") from exc
    if not math.isfinite(seconds) or seconds <= 0.0:
        raise InvalidConfiguration(f"duration_s must be positive, got {value!r}")
    return seconds


@dataclass(frozen=True)
class RecordingConfig:
    """
    Target sampling rate and recording window.

    rate_hz: integer sampling rate, 5..500 Hz.
    duration_s: recording length in seconds (> 0).
    """

    rate_hz: int = DEFAULT_RATE_HZ
    duration_s: float = DEFAULT_DURATION_S

    def validated(self) -> "RecordingConfig":
        """Return a normalized copy, raising :class:`InvalidConfiguration` on bad values."""
        return RecordingConfig(
            rate_hz=validate_rate_hz(self.rate_hz),
            duration_s=validate_duration_s(self.duration_s),
        )

    def with_changes(self, *, rate_hz: Any = None, duration_s: Any = None) -> "RecordingConfig":
        """Apply optional overrides and validate the result."""
        changes = {}
        if rate_hz is not None:
            changes["rate_hz"] = rate_hz
        if duration_s is not None:
            changes["duration_s"] = duration_s
        return replace(self, **changes).validated()

    @property
    def expected_samples(self) -> float:
        """Nominal number of rows for one session (rate × duration)."""
        return self.rate_hz * self.duration_s

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "RecordingConfig":
        """
        Build a config from a mapping such as ``recorder.yaml``.

        Supported shape::

            recording:
              rate_hz: 60
              duration_s: 5.0

        Missing keys use the defaults; present but invalid values raise.
        """
        payload: Mapping[str, Any] = mapping or {}
        block = payload.get("recording") if isinstance(payload, Mapping) else None
        if not isinstance(block, Mapping):
            return cls()
        return cls(
            rate_hz=block.get("rate_hz", DEFAULT_RATE_HZ),
            duration_s=block.get("duration_s", DEFAULT_DURATION_S),
        ).validated()

    def to_mapping(self) -> dict:
        return {
            "recording": {
                "rate_hz": int(self.rate_hz),
                "duration_s": float(self.duration_s),
            }
        }
