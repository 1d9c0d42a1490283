"""CSV encoding helpers for recorded sensor rows."""

import csv
import io
from pathlib import Path
from typing import Iterable, Sequence

SEPARATOR = ","
LINE_END = "\n"


def encode_rows(rows: Iterable[Sequence[str]]) -> bytes:
    """
    Encode rows (header first) as UTF-8 CSV bytes.

    Fields are joined with a bare comma and every row ends with ``\\n``.
    Values are numeric strings or ISO timestamps, so nothing is quoted;
    a field containing the separator raises :class:`csv.Error`.
    """
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=SEPARATOR,
        lineterminator=LINE_END,
        quoting=csv.QUOTE_NONE,
    )
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def write_bytes(path: Path, payload: bytes) -> Path:
    """
    Write ``payload`` to ``path``, creating parent directories as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        fh.write(payload)
    return path
