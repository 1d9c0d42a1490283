"""Storage collaborators that receive finished recordings."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

from .csv_writer import write_bytes
from .file_paths import recording_filename, recordings_directory

logger = logging.getLogger(__name__)


class StorageUnavailable(OSError):
    """No writable location could be obtained, or the write failed."""


class RecordingStorage(Protocol):
    """Where a finished recording goes."""

    def destination(self, moment: datetime | None = None) -> Path:  # pragma: no cover - protocol
        ...

    def write(self, path: Path, payload: bytes) -> Path:  # pragma: no cover - protocol
        ...


class DirectoryStorage:
    """Store recordings as files inside one directory."""

    def __init__(self, directory: Path | None = None) -> None:
        self.directory = recordings_directory(Path(directory) if directory else None)

    def destination(self, moment: datetime | None = None) -> Path:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Cannot create {self.directory}: {exc}") from exc
        if not self.directory.is_dir():
            raise StorageUnavailable(f"{self.directory} is not a directory")
        return self.directory / recording_filename(moment)

    def write(self, path: Path, payload: bytes) -> Path:
        try:
            written = write_bytes(path, payload)
        except OSError as exc:
            raise StorageUnavailable(f"Failed to write {path}: {exc}") from exc
        logger.info("Wrote %d bytes to %s", len(payload), written)
        return written
