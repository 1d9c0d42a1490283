"""Configuration objects and helpers for the recorder.

This package loads/saves the YAML settings file (``recorder.yaml``) and
validates the recording parameters:
- :mod:`recording` holds :class:`RecordingConfig` and its [5, 500] Hz bounds
- :mod:`runtime` holds :class:`RecorderSettings` for the CLI
- :mod:`app_config` resolves default data/log directories
"""

from .app_config import AppPaths
from .recording import InvalidConfiguration, RecordingConfig
from .runtime import RecorderSettings, load_settings, settings_from_mapping

__all__ = [
    "AppPaths",
    "InvalidConfiguration",
    "RecordingConfig",
    "RecorderSettings",
    "load_settings",
    "settings_from_mapping",
]
