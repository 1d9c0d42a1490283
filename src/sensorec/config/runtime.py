"""Runtime settings for the recorder, loaded from ``recorder.yaml``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .recording import RecordingConfig

SOURCES = ("simulated", "stdin")


@dataclass(slots=True)
class RecorderSettings:
    """
    Everything the headless recorder needs besides the sensor hardware.

    The defaults mirror the handheld app: 60 Hz for 5 s with a 30 Hz
    monitoring refresh.
    """

    recording: RecordingConfig = field(default_factory=RecordingConfig)
    ui_refresh_hz: float = 30.0
    output_dir: Optional[Path] = None
    source: str = "simulated"
    simulated_rate_hz: float = 100.0

    def sanitized(self) -> RecorderSettings:
        """Return a copy with derived limits applied."""
        source = str(self.source or "simulated").strip().lower()
        output_dir = Path(self.output_dir).expanduser() if self.output_dir else None
        return RecorderSettings(
            recording=self.recording.validated(),
            ui_refresh_hz=min(120.0, max(1.0, float(self.ui_refresh_hz))),
            output_dir=output_dir,
            source=source if source in SOURCES else "simulated",
            simulated_rate_hz=max(0.0, float(self.simulated_rate_hz)),
        )

    def to_mapping(self) -> dict:
        data = self.recording.to_mapping()
        data.update(
            {
                "ui_refresh_hz": float(self.ui_refresh_hz),
                "output_dir": str(self.output_dir) if self.output_dir else None,
                "source": self.source,
                "simulated_rate_hz": float(self.simulated_rate_hz),
            }
        )
        return data


def settings_from_mapping(data: Mapping[str, Any] | None) -> RecorderSettings:
    """Build :class:`RecorderSettings` from ``data`` (ignoring unknown keys)."""
    if not data:
        return RecorderSettings()
    defaults = RecorderSettings()
    output_dir = data.get("output_dir")
    return RecorderSettings(
        recording=RecordingConfig.from_mapping(data),
        ui_refresh_hz=data.get("ui_refresh_hz", defaults.ui_refresh_hz),
        output_dir=Path(output_dir) if output_dir else None,
        source=data.get("source", defaults.source),
        simulated_rate_hz=data.get("simulated_rate_hz", defaults.simulated_rate_hz),
    ).sanitized()


def load_settings(path: str | Path | None) -> RecorderSettings:
    """
    Load settings from ``path``.

    Missing files fall back to default :class:`RecorderSettings`; unreadable
    YAML or a non-mapping document raises ``ValueError``.
    """
    if path is None:
        return RecorderSettings()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return RecorderSettings()
    with cfg_path.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Malformed YAML in {cfg_path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return settings_from_mapping(raw)


def save_settings(path: str | Path, settings: RecorderSettings) -> None:
    cfg_path = Path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(settings.to_mapping(), fh, default_flow_style=False, sort_keys=False)


__all__ = ["RecorderSettings", "settings_from_mapping", "load_settings", "save_settings"]
