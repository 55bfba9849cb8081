from __future__ import annotations

import csv
import os
import tempfile
from io import StringIO
from pathlib import Path
from typing import Any, Iterable, Sequence

from loguru import logger


def read_records(path: Path) -> list[tuple[int, list[str]]]:
    """Return ``(line_number, fields)`` for every non-blank line of ``path``.

    A missing file reads as empty. Lines the csv module cannot split are
    logged and skipped.
    """
    if not path.exists():
        return []
    records: list[tuple[int, list[str]]] = []
    with path.open(encoding="utf-8", newline="") as handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                fields = next(csv.reader(StringIO(line)))
            except (csv.Error, StopIteration) as exc:
                logger.warning("Skipping unreadable record {}:{} ({})", path.name, line_number, exc)
                continue
            records.append((line_number, [field.strip() for field in fields]))
    return records


def write_records(path: Path, rows: Iterable[Sequence[Any]]) -> None:
    """Replace ``path`` with ``rows`` through a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            for row in rows:
                writer.writerow(row)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
