"""Shared JSON I/O for the persistent data files.

Both the preference store and the reminder registry write full snapshots
through write_json_atomic, so the file on disk is always either the previous
complete snapshot or the new one.
"""

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


def read_json(filepath: Path) -> Any | None:
    """None for a missing or empty file; decode errors propagate."""
    if not filepath.exists():
        return None
    text = filepath.read_text(encoding="utf-8")
    if not text.strip():
        return None
    return json.loads(text)


def write_json_atomic(filepath: Path, data: object) -> None:
    """Temp file in the same directory, fsync, then rename over the target."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    fd, tmp = tempfile.mkstemp(
        dir=filepath.parent, prefix=f"{filepath.stem}-", suffix=".tmp"
    )
    try:
        try:
            os.write(fd, content.encode("utf-8"))
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(tmp, filepath)
    except OSError:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        log.error("Failed to write %s", filepath)
        raise
